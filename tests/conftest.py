"""Shared fixtures for symcrypt tests."""

import pytest

from symcrypt.config import Settings, reset_settings
from symcrypt.keys import default_registry

# Low iteration count keeps password tests fast
TEST_KDF_ITERATIONS = 1_000


@pytest.fixture(autouse=True)
def fresh_settings():
    """Give every test unsealed default settings and an empty key cache."""
    settings = reset_settings(Settings(kdf_iterations=TEST_KDF_ITERATIONS))
    default_registry.clear()
    yield settings
    reset_settings()
    default_registry.clear()


@pytest.fixture
def zero_key():
    """32 zero bytes, valid for AES-256."""
    return b"\x00" * 32


@pytest.fixture
def sample_value():
    return {"id": 42, "name": "alice"}
