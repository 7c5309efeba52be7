"""Key management for symcrypt.

This module provides:
- Random key generation sized by the private-key cipher
- Deterministic password-based key derivation (PBKDF2-HMAC-SHA256)
- A lock-guarded registry holding one cached key per including type
- Text encoding of keys for environment variables and config files

Key storage and rotation are the caller's responsibility.

Example:
    >>> from symcrypt.keys import KeyRegistry, derive_key_from_password
    >>>
    >>> key = derive_key_from_password("correct-horse")
    >>> len(key)
    16
    >>>
    >>> registry = KeyRegistry()
    >>> registry.get_or_create(MyModel) == registry.get_or_create(MyModel)
    True
"""

from __future__ import annotations

import hashlib
import logging
import os
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Hashable

from symcrypt import transport
from symcrypt.base import (
    CipherSpec,
    ConfigurationError,
    FormatError,
    random_bytes,
    resolve_cipher_spec,
)
from symcrypt.config import Settings, get_settings

logger = logging.getLogger(__name__)


# =============================================================================
# Key Generation
# =============================================================================


def generate_key(strength_bits: int | None = None, settings: Settings | None = None) -> bytes:
    """Generate a cryptographically secure random key.

    Args:
        strength_bits: Key strength in bits. Defaults to the key size of the
            configured private-key cipher (256 bits out of the box).
        settings: Settings snapshot (defaults to the active one).

    Returns:
        Random key bytes.

    Raises:
        ConfigurationError: If the strength is not a positive multiple of 8.
    """
    if strength_bits is None:
        settings = settings or get_settings()
        return random_bytes(settings.private_key_spec.key_size)

    if (
        isinstance(strength_bits, bool)
        or not isinstance(strength_bits, int)
        or strength_bits <= 0
        or strength_bits % 8
    ):
        raise ConfigurationError(
            f"Key strength must be a positive multiple of 8 bits, got {strength_bits!r}"
        )
    return random_bytes(strength_bits // 8)


# =============================================================================
# Password Key Derivation
# =============================================================================


class BaseKeyDeriver(ABC):
    """Base class for password key derivation."""

    name: str = "base"

    @abstractmethod
    def derive(self, password: str | bytes, salt: bytes, key_size: int) -> bytes:
        """Derive a key of ``key_size`` bytes from a password."""
        ...


class PBKDF2KeyDeriver(BaseKeyDeriver):
    """PBKDF2-HMAC key derivation."""

    name = "pbkdf2"

    def __init__(self, hash_name: str = "sha256", iterations: int = 600_000) -> None:
        """Initialize PBKDF2 key deriver.

        Args:
            hash_name: Hash function (sha256, sha512).
            iterations: Number of iterations (higher = slower + more secure).
        """
        self.hash_name = hash_name
        self.iterations = iterations

    def derive(self, password: str | bytes, salt: bytes, key_size: int) -> bytes:
        """Derive key using PBKDF2."""
        if isinstance(password, str):
            password = password.encode("utf-8")
        return hashlib.pbkdf2_hmac(
            self.hash_name,
            password,
            salt,
            self.iterations,
            dklen=key_size,
        )


def derive_key_from_password(
    password: str | bytes | None,
    cipher_spec: str | CipherSpec | None = None,
    settings: Settings | None = None,
) -> bytes:
    """Derive a key from a password.

    The derivation is deterministic: the same password and cipher always
    produce the same key, so a password decrypts whatever it encrypted.
    Passwords are case-sensitive.

    Args:
        password: Password or passphrase.
        cipher_spec: Cipher the key is for (defaults to the password cipher).
        settings: Settings snapshot supplying salt and iteration count.

    Returns:
        Key bytes sized for the cipher (16 bytes for AES-128-CBC).

    Raises:
        ConfigurationError: If the password is empty or absent.
    """
    if password is None or not isinstance(password, (str, bytes)) or len(password) == 0:
        raise ConfigurationError("A non-empty password is required")

    settings = settings or get_settings()
    spec = resolve_cipher_spec(cipher_spec) if cipher_spec is not None else settings.password_spec
    deriver = PBKDF2KeyDeriver(iterations=settings.kdf_iterations)
    return deriver.derive(password, settings.kdf_salt, spec.key_size)


# =============================================================================
# Key Text Encoding
# =============================================================================


def encode_key(key: bytes) -> str:
    """Encode a key as base64url text (safe for env vars and config files)."""
    return transport.encode(key)


def decode_key(text: str | bytes) -> bytes:
    """Decode a key from its base64url text form.

    Raises:
        FormatError: If the text is not valid base64url or decodes to nothing.
    """
    key = transport.decode(text.strip() if isinstance(text, str) else text)
    if not key:
        raise FormatError("Key text decodes to an empty key")
    return key


def key_from_env(name: str) -> bytes:
    """Read a base64url-encoded key from an environment variable.

    Raises:
        ConfigurationError: If the variable is unset or empty.
        FormatError: If its value is not a valid encoded key.
    """
    value = os.environ.get(name)
    if not value:
        raise ConfigurationError(f"Environment variable {name} is not set")
    return decode_key(value)


def coerce_key(value: bytes | bytearray | str) -> bytes:
    """Accept a key as raw bytes or in its base64url text form."""
    if isinstance(value, (bytes, bytearray)):
        if not value:
            raise ConfigurationError("Key must not be empty")
        return bytes(value)
    if isinstance(value, str):
        return decode_key(value)
    raise ConfigurationError(f"Key must be bytes or base64url text, got {type(value).__name__}")


# =============================================================================
# Key Registry
# =============================================================================


class KeyRegistry:
    """Thread-safe registry of one cached key per owner.

    Owners are usually classes that include :class:`symcrypt.mixin.Encryptable`,
    but any hashable identity works. Each owner has its own slot lock, so
    concurrent first access for the same owner produces exactly one key while
    different owners never block each other.

    Example:
        >>> registry = KeyRegistry()
        >>> key = registry.get_or_create(User)
        >>> registry.set(User, new_key)  # last write wins
    """

    def __init__(self, key_factory: Callable[[], bytes] | None = None) -> None:
        """Initialize the registry.

        Args:
            key_factory: Callable producing new keys (defaults to
                :func:`generate_key` with the active settings).
        """
        self._key_factory = key_factory or generate_key
        self._keys: dict[Hashable, bytes] = {}
        self._slot_locks: dict[Hashable, threading.Lock] = {}
        self._lock = threading.Lock()

    def _slot_lock(self, owner: Hashable) -> threading.Lock:
        with self._lock:
            lock = self._slot_locks.get(owner)
            if lock is None:
                lock = self._slot_locks[owner] = threading.Lock()
            return lock

    def get(self, owner: Hashable) -> bytes | None:
        """Get the cached key for an owner, if any."""
        with self._slot_lock(owner):
            return self._keys.get(owner)

    def get_or_create(
        self, owner: Hashable, factory: Callable[[], bytes] | None = None
    ) -> bytes:
        """Get the cached key for an owner, generating one on first access.

        Args:
            owner: Type identity owning the slot.
            factory: Key factory overriding the registry default.
        """
        with self._slot_lock(owner):
            key = self._keys.get(owner)
            if key is None:
                key = (factory or self._key_factory)()
                self._keys[owner] = key
                logger.debug("Generated cached key for %s", _describe(owner))
            return key

    def set(self, owner: Hashable, key: bytes) -> bytes:
        """Assign the cached key for an owner (last write wins)."""
        if not isinstance(key, (bytes, bytearray)) or not key:
            raise ConfigurationError("Cached key must be non-empty bytes")
        with self._slot_lock(owner):
            self._keys[owner] = bytes(key)
            logger.debug("Assigned cached key for %s", _describe(owner))
            return self._keys[owner]

    def discard(self, owner: Hashable) -> bool:
        """Remove the cached key for an owner."""
        with self._slot_lock(owner):
            return self._keys.pop(owner, None) is not None

    def clear(self) -> None:
        """Remove every cached key.

        Slot locks are kept: a thread may still hold one.
        """
        with self._lock:
            self._keys.clear()

    def __contains__(self, owner: Any) -> bool:
        return self.get(owner) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._keys)


def _describe(owner: Hashable) -> str:
    if isinstance(owner, type):
        return f"{owner.__module__}.{owner.__qualname__}"
    return repr(owner)


default_registry = KeyRegistry()
