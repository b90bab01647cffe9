"""
Test configuration and fixtures for notification tests.

This module provides:
- Users receiving and triggering notifications
- NotificationType fixtures (active/inactive, with/without templates)

Usage:
    def test_example(user, notification_type):
        NotificationService.create_notification(user, notification_type.key)
"""

import pytest

from authentication.tests.factories import UserFactory
from notifications.tests.factories import NotificationTypeFactory


# =============================================================================
# User Fixtures
# =============================================================================


@pytest.fixture
def user(db):
    """Create a user to receive notifications."""
    return UserFactory()


@pytest.fixture
def actor_user(db):
    """Create a user to act as notification actor (trigger)."""
    return UserFactory()


# =============================================================================
# NotificationType Fixtures
# =============================================================================


@pytest.fixture
def notification_type(db):
    """Create an active notification type with plain templates."""
    return NotificationTypeFactory(
        key="test_notification",
        title_template="Test Title",
        body_template="Test Body",
    )


@pytest.fixture
def notification_type_with_placeholders(db):
    """
    Create an email-capable type with template placeholders.

    Templates use {amount} and {company_name} placeholders.
    """
    return NotificationTypeFactory(
        key="template_notification",
        title_template="Payout of ${amount}",
        body_template="{company_name} sent ${amount}.",
        supports_email=True,
    )


@pytest.fixture
def inactive_notification_type(db):
    """Create an inactive (deactivated) notification type."""
    return NotificationTypeFactory(
        key="inactive_notification",
        is_active=False,
        supports_email=True,
    )
