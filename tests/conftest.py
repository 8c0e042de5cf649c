"""
Pytest configuration and fixtures for the test suite.

This module contains shared fixtures used across all tests.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from django.contrib.auth import get_user_model
from django.test import Client
from rest_framework.test import APIClient

from services.taxes.initializer import get_initializer
from services.taxes.store import TaxDataStore
from tests.factories import InMemoryKeyValueStore

if TYPE_CHECKING:
    from collections.abc import Iterator

    from django.contrib.auth.models import User


@pytest.fixture(autouse=True)
def _reset_initializer() -> Iterator[None]:
    """Drop the process-wide initializer so each test reads fresh settings."""
    get_initializer.cache_clear()
    yield
    get_initializer.cache_clear()


@pytest.fixture()
def test_client() -> Client:
    """Return a Django test client."""
    return Client()


@pytest.fixture()
def api_client() -> APIClient:
    """Create an API test client."""
    return APIClient()


@pytest.fixture()
def user(db: None) -> User:
    """Create a regular test user."""
    return get_user_model().objects.create_user(
        username="testuser",
        email="test@example.com",
        password="testpass123",
    )


@pytest.fixture()
def admin_user(db: None) -> User:
    """Create a staff user allowed to manage tax collection."""
    return get_user_model().objects.create_user(
        username="admin",
        email="admin@example.com",
        password="adminpass123",
        is_staff=True,
    )


@pytest.fixture()
def authenticated_client(api_client: APIClient, user: User) -> APIClient:
    """Create an authenticated API client."""
    api_client.force_authenticate(user=user)
    return api_client


@pytest.fixture()
def admin_client(api_client: APIClient, admin_user: User) -> APIClient:
    """Create an API client authenticated as a staff user."""
    api_client.force_authenticate(user=admin_user)
    return api_client


@pytest.fixture()
def kv() -> InMemoryKeyValueStore:
    """Create an empty in-memory key-value store."""
    return InMemoryKeyValueStore()


@pytest.fixture()
def memory_store(kv: InMemoryKeyValueStore) -> TaxDataStore:
    """Create a TaxDataStore over the in-memory key-value store, without caching."""
    return TaxDataStore(kv=kv, use_cache=False)
