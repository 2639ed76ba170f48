"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
Environment defaults are set before anything imports ``app.core.config``,
so the global settings never pick up a developer's .env file or Redis.
"""

import os
from unittest.mock import Mock

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("APP_API_KEYS", "abc123,test-api-key-456")
os.environ.setdefault("APP_IDENTITY_BACKEND", "memory")
os.environ.setdefault("APP_RATE_LIMIT_BACKEND", "memory")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient

from app.adapters.identity.in_memory import InMemoryIdentityStore
from app.adapters.rate_limit.in_memory import InMemoryCounterStore
from app.core.app_factory import create_app
from app.core.config import settings
from app.core.gate import build_admission_gate


VALID_TOKEN = "abc123"


@pytest.fixture
def clock() -> Mock:
    """Controllable time source shared by stores and limiters."""
    return Mock(return_value=1_000.0)


@pytest.fixture
def counter_store(clock: Mock) -> InMemoryCounterStore:
    return InMemoryCounterStore(clock=clock)


@pytest.fixture
def identity_store() -> InMemoryIdentityStore:
    return InMemoryIdentityStore([VALID_TOKEN, "test-api-key-456"])


@pytest.fixture
def client(identity_store: InMemoryIdentityStore, counter_store: InMemoryCounterStore) -> TestClient:
    """Test client over an app whose gate uses in-memory stores."""
    gate = build_admission_gate(
        settings,
        identity_store=identity_store,
        counter_store=counter_store,
    )
    return TestClient(create_app(settings, gate=gate))


@pytest.fixture
def auth_headers() -> dict[str, str]:
    """Authorization header for a provisioned token."""
    return {"Authorization": f'Token token="{VALID_TOKEN}"'}
