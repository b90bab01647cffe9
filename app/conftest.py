"""
Project-wide pytest configuration.

Adjusts settings for speed, resets the injected payment rail between tests,
and auto-marks tests by filename.
"""

import pytest


def pytest_configure():
    """Adjust Django settings for the test run."""
    from django.conf import settings

    # Disable throttling during tests to prevent rate limit failures
    settings.REST_FRAMEWORK["DEFAULT_THROTTLE_CLASSES"] = []
    settings.REST_FRAMEWORK["DEFAULT_THROTTLE_RATES"] = {}

    # Use fast password hasher for tests (PBKDF2 is too slow with 870K iterations)
    settings.PASSWORD_HASHERS = [
        "django.contrib.auth.hashers.MD5PasswordHasher",
    ]


@pytest.fixture(autouse=True)
def reset_payment_rail():
    """Drop any rail a test injected into SettlementService."""
    yield
    from payments.services import SettlementService

    SettlementService.set_payment_rail(None)


def pytest_collection_modifyitems(items):
    """
    Auto-mark tests based on filename patterns.

    Mapping:
    - test_views.py, test_*_service.py, test_tasks.py, etc. → integration
    - test_models.py, test_exceptions.py, test_fee_calculator.py, etc. → unit
    - Unmatched files → integration (safe default for Django)

    Explicit markers on test functions/classes take precedence.
    """
    # Filename patterns for each category
    integration_patterns = [
        "test_views.py",
        "test_services.py",
        "test_tasks.py",
        "test_settlement_service.py",
        "test_dispute_service.py",
        "test_payment_method_service.py",
        "test_concurrency.py",
        "test_notifier.py",
        "test_roles.py",
        "test_platform_configuration.py",
        "test_health_check.py",
    ]

    unit_patterns = [
        "test_models.py",
        "test_exceptions.py",
        "test_service_result.py",
        "test_adapters.py",
        "test_fee_calculator.py",
        "test_earnings_service.py",
        "test_state_transitions.py",
    ]

    for item in items:
        # Skip if test already has unit/integration marker
        existing_markers = {m.name for m in item.iter_markers()}
        if existing_markers & {"unit", "integration"}:
            continue

        filepath = str(item.fspath)
        filename = filepath.split("/")[-1]

        # Check patterns in priority order
        if any(pattern in filename for pattern in integration_patterns):
            item.add_marker(pytest.mark.integration)
        elif any(pattern in filename for pattern in unit_patterns):
            item.add_marker(pytest.mark.unit)
        else:
            # Default: integration (safe for Django where most tests hit DB)
            item.add_marker(pytest.mark.integration)
