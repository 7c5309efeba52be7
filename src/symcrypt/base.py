"""Base classes, protocols, and types for the symcrypt pipeline.

This module defines the exception taxonomy, the cipher specification table
and the structural protocols every pipeline component follows.

Security Considerations:
    - Every token carries an authentication tag (AEAD tag or HMAC-SHA256)
    - IVs are generated cryptographically and never reused
    - Decryption failures are reported through one opaque error
    - Timing-safe comparisons for authentication tags

Example:
    >>> from symcrypt.base import resolve_cipher_spec
    >>>
    >>> spec = resolve_cipher_spec("aes-256-cbc")
    >>> spec.key_size, spec.iv_size
    (32, 16)
"""

from __future__ import annotations

import hmac
import secrets
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol, runtime_checkable


# =============================================================================
# Exceptions
# =============================================================================


class SymCryptError(Exception):
    """Base exception for all symcrypt errors."""

    def __init__(self, message: str, algorithm: str | None = None) -> None:
        self.algorithm = algorithm
        super().__init__(f"[{algorithm}] {message}" if algorithm else message)


class ConfigurationError(SymCryptError):
    """Invalid configuration: unknown cipher, bad level, empty password."""

    pass


class SerializationError(SymCryptError):
    """Value cannot be serialized, or bytes do not hold a serialized value."""

    pass


class FormatError(SymCryptError):
    """Malformed transport text or token layout."""

    pass


class DecryptionError(SymCryptError):
    """Decryption failed.

    Raised for wrong keys, IV length mismatches, truncated ciphertext,
    padding failures and tag mismatches alike. The message never says
    which check failed.
    """

    def __init__(self, algorithm: str | None = None) -> None:
        super().__init__("decryption failed", algorithm)


# =============================================================================
# Enums
# =============================================================================


class CipherMode(str, Enum):
    """Block cipher modes supported by the cipher engine."""

    CBC = "cbc"
    GCM = "gcm"
    AEAD_STREAM = "aead-stream"

    @property
    def is_aead(self) -> bool:
        """Check if the mode authenticates natively."""
        return self != CipherMode.CBC


# =============================================================================
# Cipher Specifications
# =============================================================================


@dataclass(frozen=True)
class CipherSpec:
    """Concrete parameters for a named cipher.

    Attributes:
        name: Canonical identifier (e.g. ``"AES-256-CBC"``).
        wire_id: Single byte identifying the cipher inside a token.
        algorithm: Primitive family (``"aes"`` or ``"chacha20"``).
        mode: Cipher mode.
        key_size: Key size in bytes.
        iv_size: IV/nonce size in bytes.
        block_size: Block size in bytes (1 for stream ciphers).
        tag_size: Authentication tag size in bytes.
    """

    name: str
    wire_id: int
    algorithm: str
    mode: CipherMode
    key_size: int
    iv_size: int
    block_size: int
    tag_size: int

    @property
    def key_bits(self) -> int:
        """Key strength in bits."""
        return self.key_size * 8

    def __str__(self) -> str:
        return self.name


def _aes_cbc(bits: int, wire_id: int) -> CipherSpec:
    # CBC tokens carry an HMAC-SHA256 tag
    return CipherSpec(f"AES-{bits}-CBC", wire_id, "aes", CipherMode.CBC, bits // 8, 16, 16, 32)


def _aes_gcm(bits: int, wire_id: int) -> CipherSpec:
    return CipherSpec(f"AES-{bits}-GCM", wire_id, "aes", CipherMode.GCM, bits // 8, 12, 16, 16)


CIPHER_SPECS: dict[str, CipherSpec] = {
    spec.name: spec
    for spec in (
        _aes_cbc(128, 0x01),
        _aes_cbc(192, 0x02),
        _aes_cbc(256, 0x03),
        _aes_gcm(128, 0x11),
        _aes_gcm(192, 0x12),
        _aes_gcm(256, 0x13),
        CipherSpec(
            "CHACHA20-POLY1305", 0x21, "chacha20", CipherMode.AEAD_STREAM, 32, 12, 1, 16
        ),
    )
}

_SPECS_BY_WIRE_ID: dict[int, CipherSpec] = {
    spec.wire_id: spec for spec in CIPHER_SPECS.values()
}


def resolve_cipher_spec(cipher: str | CipherSpec) -> CipherSpec:
    """Resolve a cipher identifier to its specification.

    Args:
        cipher: Identifier (case-insensitive) or an already resolved spec.

    Returns:
        The cipher specification.

    Raises:
        ConfigurationError: If the identifier names no supported cipher.
    """
    if isinstance(cipher, CipherSpec):
        return cipher
    if not isinstance(cipher, str) or not cipher.strip():
        raise ConfigurationError(f"Cipher identifier must be a non-empty string, got {cipher!r}")

    spec = CIPHER_SPECS.get(cipher.strip().upper())
    if spec is None:
        raise ConfigurationError(
            f"Cipher '{cipher}' is not supported. "
            f"Available: {', '.join(list_cipher_names())}"
        )
    return spec


def cipher_spec_for_wire_id(wire_id: int) -> CipherSpec | None:
    """Look up a cipher specification by its token byte."""
    return _SPECS_BY_WIRE_ID.get(wire_id)


def list_cipher_names() -> list[str]:
    """List the canonical names of all supported ciphers."""
    return sorted(CIPHER_SPECS)


# =============================================================================
# Protocols
# =============================================================================


@runtime_checkable
class Serializer(Protocol):
    """Protocol for value serializers."""

    def serialize(self, value: Any) -> bytes:
        """Convert a value to bytes."""
        ...

    def deserialize(self, data: bytes) -> Any:
        """Recover a value from bytes."""
        ...


@runtime_checkable
class Compressor(Protocol):
    """Protocol for byte compressors."""

    def compress(self, data: bytes) -> bytes:
        """Compress data."""
        ...

    def decompress(self, data: bytes) -> bytes:
        """Decompress data."""
        ...


@runtime_checkable
class TransportCodec(Protocol):
    """Protocol for text-safe transport encodings."""

    def encode(self, data: bytes) -> str:
        """Encode bytes as text."""
        ...

    def decode(self, text: str | bytes) -> bytes:
        """Decode text back to bytes."""
        ...


# =============================================================================
# Utility Functions
# =============================================================================


def random_bytes(size: int) -> bytes:
    """Generate cryptographically secure random bytes.

    Args:
        size: Number of bytes.

    Returns:
        Random bytes.
    """
    return secrets.token_bytes(size)


def generate_iv(spec: CipherSpec) -> bytes:
    """Generate a fresh IV sized for a cipher."""
    return random_bytes(spec.iv_size)


def constant_time_compare(a: bytes, b: bytes) -> bool:
    """Compare two byte strings in constant time.

    Args:
        a: First byte string.
        b: Second byte string.

    Returns:
        True if equal, False otherwise.
    """
    return hmac.compare_digest(a, b)
