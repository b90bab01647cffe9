"""
Test configuration and fixtures for authentication tests.

Usage:
    def test_example(creator, company):
        assert creator.is_creator
        assert company.user.is_company
"""

import pytest

from authentication.tests.factories import (
    AdminFactory,
    CompanyProfileFactory,
    CreatorFactory,
)


@pytest.fixture
def creator(db):
    """Create a creator-role user."""
    return CreatorFactory()


@pytest.fixture
def company(db):
    """Create a company profile with its company-role user."""
    return CompanyProfileFactory()


@pytest.fixture
def admin_user(db):
    """Create an admin-role user."""
    return AdminFactory()
