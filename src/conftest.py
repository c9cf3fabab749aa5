"""Shared pytest fixtures for the asset registry tests."""

import pytest

from django.conf import settings

from assets.factories import AssetFactory, UserFactory

# Use local filesystem storage for tests (avoids S3 credential errors)
settings.STORAGES["default"] = {
    "BACKEND": "django.core.files.storage.FileSystemStorage",
}
settings.STORAGES["staticfiles"] = {
    "BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage",
}

# Use in-memory cache for tests (avoids Redis connection errors)
settings.CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
    }
}


@pytest.fixture(autouse=True)
def _clear_cache():
    """Clear the in-memory cache before each test.

    Keeps the personnel directory snapshot from leaking between tests.
    """
    from django.core.cache import cache

    cache.clear()


@pytest.fixture(autouse=True)
def _media_root(settings, tmp_path):
    """Write QR images and report photos under a per-test directory."""
    settings.MEDIA_ROOT = tmp_path / "media"
    settings.SITE_URL = "https://assets.example.com"


@pytest.fixture
def password():
    return "testpass123!"


@pytest.fixture
def user(db, password):
    return UserFactory(
        username="testuser",
        email="test@example.com",
        password=password,
        display_name="Test User",
    )


@pytest.fixture
def admin_user(db, password):
    return UserFactory(
        username="admin",
        email="admin@example.com",
        password=password,
        display_name="Admin User",
        is_staff=True,
        is_superuser=True,
    )


@pytest.fixture
def second_user(db, password):
    return UserFactory(
        username="otheruser",
        email="other@example.com",
        password=password,
        display_name="Other User",
    )


@pytest.fixture
def admin_client(client, admin_user, password):
    client.login(username=admin_user.username, password=password)
    return client


@pytest.fixture
def asset(user):
    return AssetFactory(
        asset_id="A-100",
        asset_name="Dell Latitude 5420",
        category="Asset",
        sub_type="Laptop",
        serial_number="DL5420-001",
        operational_period="subscription",
        status="functional",
        assigned_personnel=user,
        created_by=user,
    )
