"""
Tests for UserManager.

The UserManager handles email-based user creation:
- create_user(): Regular accounts (creator role unless given)
- create_superuser(): Platform admins with elevated privileges
"""

import pytest

from authentication.models import User, UserRole


class TestUserManagerCreateUser:
    """Tests for UserManager.create_user() method."""

    def test_creates_user_with_email_and_password(self, db):
        user = User.objects.create_user(
            email="mgr_create_user@example.com", password="SecurePass123!"
        )

        assert user.pk is not None
        assert user.check_password("SecurePass123!") is True
        assert user.role == UserRole.CREATOR

    def test_normalizes_email_domain_to_lowercase(self, db):
        user = User.objects.create_user(email="Test.User@EXAMPLE.COM")

        assert user.email == "Test.User@example.com"

    def test_user_without_password_has_unusable_password(self, db):
        user = User.objects.create_user(email="nopass@example.com")

        assert user.has_usable_password() is False

    def test_accepts_role(self, db):
        user = User.objects.create_user(
            email="co@example.com", password="pw", role=UserRole.COMPANY
        )

        assert user.is_company is True
        assert user.is_creator is False

    def test_empty_email_raises(self, db):
        with pytest.raises(ValueError, match="Email"):
            User.objects.create_user(email="", password="pw")


class TestUserManagerCreateSuperuser:
    """Tests for UserManager.create_superuser() method."""

    def test_superuser_is_platform_admin(self, db):
        admin = User.objects.create_superuser(email="root@example.com", password="pw")

        assert admin.is_staff is True
        assert admin.is_superuser is True
        assert admin.role == UserRole.ADMIN
        assert admin.is_platform_admin is True

    def test_superuser_requires_staff(self, db):
        with pytest.raises(ValueError, match="is_staff"):
            User.objects.create_superuser(
                email="root@example.com", password="pw", is_staff=False
            )
