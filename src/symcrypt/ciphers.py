"""Cipher engine implementations.

Every cipher produces an ``(iv, ciphertext, tag)`` triple and refuses to
return plaintext unless the tag verifies.

Supported Ciphers:
    - AES-128/192/256-CBC with PKCS7 padding and an HMAC-SHA256 tag
      (encrypt-then-MAC; encryption and MAC subkeys come from HKDF)
    - AES-128/192/256-GCM
    - ChaCha20-Poly1305

Example:
    >>> from symcrypt.ciphers import get_cipher
    >>>
    >>> cipher = get_cipher("AES-256-CBC")
    >>> key = b"\\x00" * 32
    >>> result = cipher.encrypt(b"secret data", key)
    >>> cipher.decrypt(result.iv, result.ciphertext, result.tag, key)
    b'secret data'
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes, hmac, padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM, ChaCha20Poly1305
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from symcrypt.base import (
    CipherMode,
    CipherSpec,
    ConfigurationError,
    DecryptionError,
    constant_time_compare,
    generate_iv,
    resolve_cipher_spec,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CipherResult:
    """Output of a single encryption.

    Attributes:
        iv: IV/nonce used for this encryption.
        ciphertext: Encrypted data (without tag).
        tag: Authentication tag.
    """

    iv: bytes
    ciphertext: bytes
    tag: bytes


# =============================================================================
# Base Cipher
# =============================================================================


class BaseCipher(ABC):
    """Base class for all cipher implementations.

    Handles key and IV validation so implementations only deal with the
    primitive itself.
    """

    def __init__(self, spec: CipherSpec) -> None:
        self._spec = spec

    @property
    def spec(self) -> CipherSpec:
        """Get the cipher specification."""
        return self._spec

    @property
    def name(self) -> str:
        return self._spec.name

    @property
    def key_size(self) -> int:
        return self._spec.key_size

    @property
    def iv_size(self) -> int:
        return self._spec.iv_size

    @property
    def tag_size(self) -> int:
        return self._spec.tag_size

    @abstractmethod
    def _encrypt_impl(
        self, plaintext: bytes, key: bytes, iv: bytes, aad: bytes
    ) -> tuple[bytes, bytes]:
        """Implementation-specific encryption.

        Returns:
            Tuple of (ciphertext, tag).
        """
        ...

    @abstractmethod
    def _decrypt_impl(
        self, ciphertext: bytes, key: bytes, iv: bytes, tag: bytes, aad: bytes
    ) -> bytes:
        """Implementation-specific decryption.

        Raises:
            DecryptionError: If the tag does not verify or the data is malformed.
        """
        ...

    def encrypt(self, plaintext: bytes, key: bytes, aad: bytes = b"") -> CipherResult:
        """Encrypt plaintext under a fresh random IV.

        Args:
            plaintext: Data to encrypt.
            key: Encryption key of exactly ``key_size`` bytes.
            aad: Associated data authenticated alongside the ciphertext.

        Raises:
            ConfigurationError: If the key has the wrong type or length.
        """
        if not isinstance(key, (bytes, bytearray)) or len(key) != self.key_size:
            got = len(key) if isinstance(key, (bytes, bytearray)) else type(key).__name__
            raise ConfigurationError(
                f"Invalid key: expected {self.key_size} bytes, got {got}",
                self.name,
            )
        iv = generate_iv(self._spec)
        ciphertext, tag = self._encrypt_impl(bytes(plaintext), bytes(key), iv, aad)
        return CipherResult(iv=iv, ciphertext=ciphertext, tag=tag)

    def decrypt(
        self,
        iv: bytes,
        ciphertext: bytes,
        tag: bytes,
        key: bytes,
        aad: bytes = b"",
    ) -> bytes:
        """Decrypt and authenticate.

        Raises:
            DecryptionError: For a wrong key length, wrong IV length, wrong tag
                length, malformed ciphertext or failed authentication.
        """
        if (
            not isinstance(key, (bytes, bytearray))
            or len(key) != self.key_size
            or len(iv) != self.iv_size
            or len(tag) != self.tag_size
        ):
            logger.debug("Rejected %s input with mismatched key, IV or tag length", self.name)
            raise DecryptionError(self.name)
        try:
            return self._decrypt_impl(bytes(ciphertext), bytes(key), bytes(iv), bytes(tag), aad)
        except DecryptionError:
            logger.debug("%s authentication failed", self.name)
            raise


# =============================================================================
# AES-CBC + HMAC-SHA256
# =============================================================================


class AesCbcHmacCipher(BaseCipher):
    """AES-CBC with PKCS7 padding, authenticated by HMAC-SHA256.

    The caller's key is expanded with HKDF-SHA256 into an AES key of the
    same length and a 32-byte MAC key. The tag covers
    ``aad || iv || ciphertext`` and is checked before any padding is
    removed.
    """

    _HKDF_INFO = b"symcrypt/aes-cbc-hmac-sha256"
    _MAC_KEY_SIZE = 32

    def _subkeys(self, key: bytes) -> tuple[bytes, bytes]:
        material = HKDF(
            algorithm=hashes.SHA256(),
            length=self.key_size + self._MAC_KEY_SIZE,
            salt=None,
            info=self._HKDF_INFO,
        ).derive(key)
        return material[: self.key_size], material[self.key_size :]

    def _mac(self, mac_key: bytes, aad: bytes, iv: bytes, ciphertext: bytes) -> bytes:
        h = hmac.HMAC(mac_key, hashes.SHA256())
        h.update(aad)
        h.update(iv)
        h.update(ciphertext)
        return h.finalize()

    def _encrypt_impl(
        self, plaintext: bytes, key: bytes, iv: bytes, aad: bytes
    ) -> tuple[bytes, bytes]:
        enc_key, mac_key = self._subkeys(key)
        padder = padding.PKCS7(self._spec.block_size * 8).padder()
        padded = padder.update(plaintext) + padder.finalize()
        encryptor = Cipher(algorithms.AES(enc_key), modes.CBC(iv)).encryptor()
        ciphertext = encryptor.update(padded) + encryptor.finalize()
        return ciphertext, self._mac(mac_key, aad, iv, ciphertext)

    def _decrypt_impl(
        self, ciphertext: bytes, key: bytes, iv: bytes, tag: bytes, aad: bytes
    ) -> bytes:
        enc_key, mac_key = self._subkeys(key)
        if not constant_time_compare(self._mac(mac_key, aad, iv, ciphertext), tag):
            raise DecryptionError(self.name)
        if not ciphertext or len(ciphertext) % self._spec.block_size:
            raise DecryptionError(self.name)

        try:
            decryptor = Cipher(algorithms.AES(enc_key), modes.CBC(iv)).decryptor()
            padded = decryptor.update(ciphertext) + decryptor.finalize()
            unpadder = padding.PKCS7(self._spec.block_size * 8).unpadder()
            return unpadder.update(padded) + unpadder.finalize()
        except ValueError as e:
            raise DecryptionError(self.name) from e


# =============================================================================
# AEAD Ciphers
# =============================================================================


class _AeadCipher(BaseCipher):
    """Shared logic for ciphers from ``cryptography``'s AEAD module."""

    _primitive: type

    def _encrypt_impl(
        self, plaintext: bytes, key: bytes, iv: bytes, aad: bytes
    ) -> tuple[bytes, bytes]:
        # cryptography returns ciphertext || tag
        result = self._primitive(key).encrypt(iv, plaintext, aad or None)
        return result[: -self.tag_size], result[-self.tag_size :]

    def _decrypt_impl(
        self, ciphertext: bytes, key: bytes, iv: bytes, tag: bytes, aad: bytes
    ) -> bytes:
        try:
            return self._primitive(key).decrypt(iv, ciphertext + tag, aad or None)
        except (InvalidTag, ValueError) as e:
            raise DecryptionError(self.name) from e


class AesGcmCipher(_AeadCipher):
    """AES-GCM authenticated encryption (96-bit nonce, 128-bit tag)."""

    _primitive = AESGCM


class ChaCha20Poly1305Cipher(_AeadCipher):
    """ChaCha20-Poly1305 authenticated encryption."""

    _primitive = ChaCha20Poly1305


# =============================================================================
# Factory Functions
# =============================================================================

_CIPHER_REGISTRY: dict[tuple[str, CipherMode], type[BaseCipher]] = {
    ("aes", CipherMode.CBC): AesCbcHmacCipher,
    ("aes", CipherMode.GCM): AesGcmCipher,
    ("chacha20", CipherMode.AEAD_STREAM): ChaCha20Poly1305Cipher,
}


def get_cipher(cipher: str | CipherSpec) -> BaseCipher:
    """Get a cipher instance for an identifier.

    Args:
        cipher: Identifier such as ``"AES-256-CBC"`` or a resolved spec.

    Returns:
        Cipher instance.

    Raises:
        ConfigurationError: If the cipher is not supported.
    """
    spec = resolve_cipher_spec(cipher)
    cipher_class = _CIPHER_REGISTRY.get((spec.algorithm, spec.mode))
    if cipher_class is None:
        raise ConfigurationError(f"No implementation for cipher '{spec.name}'")
    return cipher_class(spec)


def is_cipher_available(cipher: str | CipherSpec) -> bool:
    """Check if a cipher identifier is supported."""
    try:
        get_cipher(cipher)
        return True
    except ConfigurationError:
        return False
