"""Encryption pipeline composing serialization, compression and encryption.

Encode path:
    value -> serialize -> compress (if enabled) -> encrypt -> token -> base64url

Decode path (the mirror):
    base64url -> token -> decrypt -> decompress (if flagged) -> deserialize

Compression always happens before encryption: ciphertext does not compress,
and the flag recording whether it happened is authenticated with the rest
of the token.

Example:
    >>> from symcrypt.pipeline import CryptPipeline
    >>>
    >>> pipeline = CryptPipeline()
    >>> key = pipeline.generate_key()
    >>> token = pipeline.encrypt_with_key({"id": 42, "name": "alice"}, key)
    >>> pipeline.decrypt_with_key(token, key)
    {'id': 42, 'name': 'alice'}
    >>>
    >>> token = pipeline.encrypt_with_password([1, 2, 3], "correct-horse")
    >>> pipeline.decrypt_with_password(token, "correct-horse")
    [1, 2, 3]
"""

from __future__ import annotations

import logging
from typing import Any

from symcrypt.base import CipherSpec, Serializer, TransportCodec, resolve_cipher_spec
from symcrypt.ciphers import get_cipher
from symcrypt.compression import DeflateCompressor, get_compressor
from symcrypt.config import Settings, get_settings
from symcrypt.keys import decode_key, derive_key_from_password, generate_key
from symcrypt.serialization import PickleSerializer
from symcrypt.token import Token, TokenInfo, build_header
from symcrypt.transport import Base64UrlCodec

logger = logging.getLogger(__name__)

KeyLike = bytes | bytearray | str


class CryptPipeline:
    """The four public operations plus their byte-level building blocks.

    Args:
        settings: Settings snapshot. When omitted the active process-wide
            snapshot is read at every call.
        serializer: Value serializer (defaults to :class:`PickleSerializer`).
        codec: Transport codec (defaults to :class:`Base64UrlCodec`).
    """

    def __init__(
        self,
        settings: Settings | None = None,
        serializer: Serializer | None = None,
        codec: TransportCodec | None = None,
    ) -> None:
        self._settings = settings
        self._serializer = serializer or PickleSerializer()
        self._codec = codec or Base64UrlCodec()

    @property
    def settings(self) -> Settings:
        """The settings snapshot in effect."""
        return self._settings if self._settings is not None else get_settings()

    # -------------------------------------------------------------------------
    # Key helpers
    # -------------------------------------------------------------------------

    def generate_key(self, strength_bits: int | None = None) -> bytes:
        """Generate a random key sized for the private-key cipher."""
        return generate_key(strength_bits, settings=self.settings)

    def derive_key(self, password: str | bytes, cipher: str | CipherSpec | None = None) -> bytes:
        """Derive a key from a password for a cipher (default: password cipher)."""
        return derive_key_from_password(password, cipher, settings=self.settings)

    # -------------------------------------------------------------------------
    # Bytes in, token out
    # -------------------------------------------------------------------------

    def encrypt_bytes(
        self,
        data: bytes,
        key: KeyLike,
        cipher: str | CipherSpec | None = None,
    ) -> str:
        """Compress, encrypt and transport-encode raw bytes.

        Args:
            data: Plaintext bytes.
            key: Key bytes, or their base64url text form.
            cipher: Cipher override (defaults to the data cipher).

        Returns:
            Token text.
        """
        settings = self.settings
        spec = resolve_cipher_spec(cipher if cipher is not None else settings.data_cipher)
        engine = get_cipher(spec)
        compressor = get_compressor(settings)

        payload = compressor.compress(data)
        header = build_header(spec, compressor.enabled)
        result = engine.encrypt(payload, _key_bytes(key), aad=header)

        token = Token(
            cipher=spec,
            compressed=compressor.enabled,
            iv=result.iv,
            ciphertext=result.ciphertext,
            tag=result.tag,
        )
        text = self._codec.encode(token.to_bytes())
        logger.debug(
            "Encrypted %d bytes with %s (compressed=%s, payload=%d, token=%d chars)",
            len(data),
            spec.name,
            compressor.enabled,
            len(payload),
            len(text),
        )
        return text

    def parse(self, token: str | bytes) -> Token:
        """Transport-decode and parse a token without decrypting it."""
        return Token.parse(self._codec.decode(token))

    def inspect(self, token: str | bytes) -> TokenInfo:
        """Describe a token's header and sizes; no key required."""
        return TokenInfo.from_token(self.parse(token))

    def decrypt_bytes(self, token: str | bytes, key: KeyLike) -> bytes:
        """Decode, decrypt and decompress a token to raw bytes.

        The cipher and compression flag are taken from the token itself,
        never from the current settings.
        """
        return self._decrypt_token(self.parse(token), _key_bytes(key))

    def _decrypt_token(self, token: Token, key: bytes) -> bytes:
        engine = get_cipher(token.cipher)
        payload = engine.decrypt(token.iv, token.ciphertext, token.tag, key, aad=token.header)
        data = DeflateCompressor().decompress(payload) if token.compressed else payload
        logger.debug(
            "Decrypted token with %s (compressed=%s, plaintext=%d bytes)",
            token.cipher.name,
            token.compressed,
            len(data),
        )
        return data

    # -------------------------------------------------------------------------
    # Values
    # -------------------------------------------------------------------------

    def encrypt_with_key(self, value: Any, key: KeyLike) -> str:
        """Encrypt any serializable value under a key with the data cipher."""
        return self.encrypt_bytes(self._serializer.serialize(value), key)

    def decrypt_with_key(self, token: str | bytes, key: KeyLike) -> Any:
        """Recover the value from a token encrypted under a key."""
        return self._serializer.deserialize(self.decrypt_bytes(token, key))

    def encrypt_with_password(self, value: Any, password: str | bytes) -> str:
        """Encrypt a value under a password-derived key with the password cipher."""
        settings = self.settings
        spec = settings.password_spec
        key = derive_key_from_password(password, spec, settings=settings)
        return self.encrypt_bytes(self._serializer.serialize(value), key, cipher=spec)

    def decrypt_with_password(self, token: str | bytes, password: str | bytes) -> Any:
        """Recover a value from a password-encrypted token.

        The key is derived for the cipher recorded in the token, so tokens
        stay readable after the password cipher setting changes.
        """
        parsed = self.parse(token)
        key = derive_key_from_password(password, parsed.cipher, settings=self.settings)
        return self._serializer.deserialize(self._decrypt_token(parsed, key))


def _key_bytes(key: KeyLike) -> bytes:
    # Text keys use the same base64url form as encode_key()
    if isinstance(key, str):
        return decode_key(key)
    return key


# =============================================================================
# Module-level shortcuts over the active settings
# =============================================================================

default_pipeline = CryptPipeline()


def encrypt_with_key(value: Any, key: KeyLike) -> str:
    """Encrypt a value under a key using the active settings."""
    return default_pipeline.encrypt_with_key(value, key)


def decrypt_with_key(token: str | bytes, key: KeyLike) -> Any:
    """Decrypt a key-encrypted token."""
    return default_pipeline.decrypt_with_key(token, key)


def encrypt_with_password(value: Any, password: str | bytes) -> str:
    """Encrypt a value under a password using the active settings."""
    return default_pipeline.encrypt_with_password(value, password)


def decrypt_with_password(token: str | bytes, password: str | bytes) -> Any:
    """Decrypt a password-encrypted token."""
    return default_pipeline.decrypt_with_password(token, password)


def inspect_token(token: str | bytes) -> TokenInfo:
    """Describe a token without decrypting it."""
    return default_pipeline.inspect(token)
