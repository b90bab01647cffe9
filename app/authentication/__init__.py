"""
Authentication application.

Provides the account records payment settlement is scoped by.

Key components:
    - User model: Custom email-based user with a marketplace role
    - CompanyProfile model: Company owned by a company-role user, carrying
      the optional per-company platform fee override

Usage:
    from authentication.models import CompanyProfile, User, UserRole
"""
