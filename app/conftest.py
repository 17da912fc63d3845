"""
Root pytest configuration for the Django project.

Sets test defaults for the environment before Django loads settings, then
configures Django. App-specific fixtures live in each app's tests/conftest.py.

Environment defaults (overridable from the shell):
    SECRET_KEY, STRIPE_SECRET_KEY, STRIPE_WEBHOOK_SECRET - dummy values; the
        Stripe SDK is always mocked
    REVENUE_SHARE_FIXED_ACCOUNT_ID - the fixed account the tests expect
    DATABASE_URL - in-memory SQLite
    SECURE_SSL_REDIRECT - off, so the test client is not redirected to https
"""

import os

import django
import pytest

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("ENV_FILE", os.devnull)
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_dummy")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test_env")
os.environ.setdefault("REVENUE_SHARE_FIXED_ACCOUNT_ID", "acct_fixed_test")
os.environ.setdefault("DATABASE_URL", "sqlite://:memory:")
os.environ.setdefault("SECURE_SSL_REDIRECT", "False")


# Set up on import: conftests under app/<name>/tests import models, and
# `pytest app/<name>` loads them before any pytest_configure hook runs
django.setup()


def pytest_collection_modifyitems(items):
    """
    Auto-mark tests based on filename patterns.

    Mapping:
    - test_views.py, test_commands.py, test_distribution_service.py, etc. → integration
    - test_models.py, test_revenue_split.py, test_events.py, etc. → unit
    - Unmatched files → integration (safe default for Django)

    Explicit markers on test functions/classes take precedence.
    """
    integration_patterns = [
        "test_views.py",
        "test_services.py",
        "test_commands.py",
        "test_handlers.py",
        "test_distribution_service.py",
        "test_transfer_executor.py",
    ]

    unit_patterns = [
        "test_bootstrap.py",
        "test_models.py",
        "test_exception_handlers.py",
        "test_decorators.py",
        "test_admin.py",
        "test_stripe_adapter.py",
        "test_events.py",
        "test_revenue_split.py",
        "test_account_resolver.py",
    ]

    for item in items:
        existing_markers = {m.name for m in item.iter_markers()}
        if existing_markers & {"unit", "integration"}:
            continue

        filename = str(item.fspath).split("/")[-1]

        if any(pattern in filename for pattern in integration_patterns):
            item.add_marker(pytest.mark.integration)
        elif any(pattern in filename for pattern in unit_patterns):
            item.add_marker(pytest.mark.unit)
        else:
            item.add_marker(pytest.mark.integration)
