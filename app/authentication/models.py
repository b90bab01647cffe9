"""
Authentication models.

This module defines the account records the settlement subsystem needs to
express who is acting and who owns a payment:
- User: Custom user model with email-based authentication and a marketplace role
- CompanyProfile: The company a company-role user operates, including its
  optional platform fee override

Related files:
    - managers.py: Custom user manager for email-based creation

Security:
    - User passwords hashed with Django's PBKDF2
"""

from decimal import Decimal

from django.conf import settings
from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin
from authentication.managers import UserManager


# Platform fee override bounds (fraction of gross, 0% - 50%)
MIN_PLATFORM_FEE_RATE = Decimal("0")
MAX_PLATFORM_FEE_RATE = Decimal("0.5")


class UserRole(models.TextChoices):
    """Marketplace role of an account."""

    CREATOR = "creator", "Creator"
    COMPANY = "company", "Company"
    ADMIN = "admin", "Admin"


class User(AbstractBaseUser, PermissionsMixin):
    """
    Custom User model using email as the primary identifier.

    Fields:
        email: Primary identifier, unique, used for login
        role: Marketplace role (creator, company, admin)
        is_active: Whether the user account is active
        is_staff: Whether the user can access Django admin
        date_joined: When the user account was created
        updated_at: When the user record was last modified

    Usage:
        creator = User.objects.create_user(
            email='creator@example.com',
            password='securepassword',
        )
        admin = User.objects.create_superuser(
            email='admin@example.com',
            password='adminpassword',
        )
    """

    email = models.EmailField(
        unique=True,
        db_index=True,
        max_length=254,
        help_text="User's email address (primary identifier)",
    )

    role = models.CharField(
        max_length=20,
        choices=UserRole.choices,
        default=UserRole.CREATOR,
        db_index=True,
        help_text="Marketplace role used to scope payment operations",
    )

    is_active = models.BooleanField(
        default=True,
        help_text="Whether this user account is active. Deselect instead of deleting.",
    )
    is_staff = models.BooleanField(
        default=False,
        help_text="Whether the user can access the admin site.",
    )

    date_joined = models.DateTimeField(
        auto_now_add=True,
        help_text="When the user account was created",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="When the user record was last modified",
    )

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    objects = UserManager()

    class Meta:
        verbose_name = "user"
        verbose_name_plural = "users"
        ordering = ["-date_joined"]

    def __str__(self):
        return self.email

    @property
    def is_creator(self) -> bool:
        return self.role == UserRole.CREATOR

    @property
    def is_company(self) -> bool:
        return self.role == UserRole.COMPANY

    @property
    def is_platform_admin(self) -> bool:
        """Admins are either admin-role accounts or Django staff."""
        return self.role == UserRole.ADMIN or self.is_staff


class CompanyProfile(UUIDPrimaryKeyMixin, BaseModel):
    """
    A company that owns offers and pays creators.

    Fields:
        user: The company-role account operating this company
        legal_name: Registered company name
        custom_platform_fee_percentage: Optional platform fee override as a
            fraction of gross (0.0350 = 3.5%). NULL means the platform
            default applies.

    Usage:
        company = CompanyProfile.objects.create(
            user=owner,
            legal_name="Acme Inc.",
            custom_platform_fee_percentage=Decimal("0.0350"),
        )
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="company_profile",
        help_text="Company-role account that operates this company",
    )

    legal_name = models.CharField(
        max_length=255,
        help_text="Registered company name",
    )

    custom_platform_fee_percentage = models.DecimalField(
        max_digits=5,
        decimal_places=4,
        null=True,
        blank=True,
        validators=[
            MinValueValidator(MIN_PLATFORM_FEE_RATE),
            MaxValueValidator(MAX_PLATFORM_FEE_RATE),
        ],
        help_text="Platform fee override as a fraction of gross (NULL = platform default)",
    )

    class Meta:
        ordering = ["legal_name"]
        verbose_name = "company profile"
        verbose_name_plural = "company profiles"
        constraints = [
            models.CheckConstraint(
                condition=(
                    models.Q(custom_platform_fee_percentage__isnull=True)
                    | models.Q(
                        custom_platform_fee_percentage__gte=MIN_PLATFORM_FEE_RATE,
                        custom_platform_fee_percentage__lte=MAX_PLATFORM_FEE_RATE,
                    )
                ),
                name="company_fee_override_in_range",
            ),
        ]

    def __str__(self) -> str:
        return self.legal_name

    @property
    def has_fee_override(self) -> bool:
        return self.custom_platform_fee_percentage is not None
