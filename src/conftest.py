"""Shared pytest fixtures and factories for ITAM tests."""

import pytest

from django.conf import settings

settings.STORAGES["staticfiles"] = {
    "BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage",
}

# Run Celery tasks synchronously in tests
settings.CELERY_TASK_ALWAYS_EAGER = True
settings.CELERY_TASK_EAGER_PROPAGATES = True

# Use in-memory cache for tests (avoids Redis connection errors)
settings.CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
    }
}

settings.ASSET_TEAM_EMAIL = "asset-team@example.com"
settings.ASSET_NOTIFICATIONS_ENABLED = True


@pytest.fixture(autouse=True)
def _clear_cache():
    """Clear the in-memory cache before each test.

    Prevents rate-limit counters (django_ratelimit) from bleeding
    across tests.
    """
    from django.core.cache import cache

    cache.clear()


from assets.factories import (  # noqa: E402
    AssetFactory,
    EmployeeFactory,
    UserFactory,
)


@pytest.fixture
def password():
    return "testpass123!"


@pytest.fixture
def super_admin(db, password):
    return UserFactory(
        username="superadmin",
        email="superadmin@example.com",
        password=password,
        role="Super Admin",
    )


@pytest.fixture
def admin_user(db, password):
    return UserFactory(
        username="admin",
        email="admin@example.com",
        password=password,
        role="Admin",
        is_staff=True,
        is_superuser=True,
    )


@pytest.fixture
def operator(db, password):
    return UserFactory(
        username="operator",
        email="operator@example.com",
        password=password,
        role="Operator",
    )


@pytest.fixture
def reporter(db, password):
    return UserFactory(
        username="reporter",
        email="reporter@example.com",
        password=password,
        role="Reporter",
    )


@pytest.fixture
def admin_client(client, admin_user, password):
    client.login(username=admin_user.username, password=password)
    return client


@pytest.fixture
def super_admin_client(client, super_admin, password):
    client.login(username=super_admin.username, password=password)
    return client


@pytest.fixture
def operator_client(client, operator, password):
    client.login(username=operator.username, password=password)
    return client


@pytest.fixture
def reporter_client(client, reporter, password):
    client.login(username=reporter.username, password=password)
    return client


@pytest.fixture
def asset(db):
    return AssetFactory(
        asset_id="AST-001",
        name='MacBook Pro 16"',
        serial_number="MBP16-2023-001",
        brand="Apple",
    )


@pytest.fixture
def assigned_asset(db):
    return AssetFactory(
        asset_id="AST-002",
        serial_number="TPX1-2023-002",
        assigned=True,
    )


@pytest.fixture
def employee(db):
    return EmployeeFactory(
        employee_id="EMP001",
        employee_name="Jane Smith",
        email="jane.smith@example.com",
    )
