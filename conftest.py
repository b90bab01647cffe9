"""
Root pytest configuration for the Django project.

This module sets the test environment before Django settings load. Settings
are loaded here, in pytest_configure, not by pytest-django at startup, so
every default below is in place when config.settings is imported.
Project-wide fixtures and markers live in app/conftest.py; app-specific
fixtures are defined in each app's tests/conftest.py.
"""

import os

import django

# Ensure Django settings are configured before any tests run
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

# Tests run against in-memory SQLite with tasks executed inline
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("DATABASE_URL", "sqlite://:memory:")
os.environ.setdefault("CACHE_URL", "locmemcache://")
os.environ.setdefault("CELERY_TASK_ALWAYS_EAGER", "true")
os.environ.setdefault("CELERY_BROKER_URL", "memory://")
os.environ.setdefault("CELERY_RESULT_BACKEND", "cache+memory://")
os.environ.setdefault("EMAIL_BACKEND", "django.core.mail.backends.locmem.EmailBackend")
os.environ.setdefault("PAYMENT_RAIL_BACKEND", "sandbox")


def pytest_configure():
    """Configure Django settings before tests run."""
    django.setup()
