"""Binary token layout.

Format (version 1):
    - Version: 1 byte (0x01)
    - Cipher id: 1 byte (see ``symcrypt.base.CIPHER_SPECS``)
    - Flags: 1 byte (bit 0 = payload compressed, other bits reserved as 0)
    - IV: iv_size bytes of the cipher
    - Ciphertext: variable
    - Tag: tag_size bytes of the cipher

Multi-byte integers, should a later version add any, are big-endian. The
three header bytes are authenticated together with the ciphertext, so a
flipped compression flag or cipher id never decodes silently.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from symcrypt.base import CipherSpec, FormatError, cipher_spec_for_wire_id

TOKEN_VERSION = 1
HEADER_SIZE = 3

FLAG_COMPRESSED = 0x01
_KNOWN_FLAGS = FLAG_COMPRESSED


@dataclass(frozen=True)
class Token:
    """A parsed token.

    Attributes:
        cipher: Cipher the payload was encrypted with.
        compressed: Whether the plaintext was compressed before encryption.
        iv: IV/nonce bytes.
        ciphertext: Encrypted payload.
        tag: Authentication tag.
        version: Layout version.
    """

    cipher: CipherSpec
    compressed: bool
    iv: bytes
    ciphertext: bytes
    tag: bytes
    version: int = TOKEN_VERSION

    @property
    def flags(self) -> int:
        return FLAG_COMPRESSED if self.compressed else 0

    @property
    def header(self) -> bytes:
        """The authenticated header bytes."""
        return build_header(self.cipher, self.compressed, self.version)

    def to_bytes(self) -> bytes:
        """Serialize the token to its binary layout."""
        return self.header + self.iv + self.ciphertext + self.tag

    @classmethod
    def parse(cls, data: bytes) -> "Token":
        """Parse a token from its binary layout.

        Raises:
            FormatError: For a short buffer, unknown version, unknown cipher
                id, reserved flag bits, or a body too short for IV and tag.
        """
        if len(data) < HEADER_SIZE:
            raise FormatError("Token is too short")

        version, wire_id, flags = data[0], data[1], data[2]
        if version != TOKEN_VERSION:
            raise FormatError(f"Unsupported token version: {version}")

        spec = cipher_spec_for_wire_id(wire_id)
        if spec is None:
            raise FormatError(f"Unknown cipher id in token: 0x{wire_id:02x}")

        if flags & ~_KNOWN_FLAGS:
            raise FormatError(f"Unknown token flags: 0x{flags:02x}")

        body = data[HEADER_SIZE:]
        if len(body) < spec.iv_size + spec.tag_size:
            raise FormatError("Token is truncated", spec.name)

        iv = body[: spec.iv_size]
        ciphertext = body[spec.iv_size : len(body) - spec.tag_size]
        tag = body[len(body) - spec.tag_size :]
        return cls(
            cipher=spec,
            compressed=bool(flags & FLAG_COMPRESSED),
            iv=iv,
            ciphertext=ciphertext,
            tag=tag,
            version=version,
        )


def build_header(cipher: CipherSpec, compressed: bool, version: int = TOKEN_VERSION) -> bytes:
    """Build the authenticated header for a token."""
    return bytes([version, cipher.wire_id, FLAG_COMPRESSED if compressed else 0])


@dataclass(frozen=True)
class TokenInfo:
    """Non-secret description of a token.

    Attributes:
        version: Layout version.
        cipher: Cipher name.
        compressed: Whether the payload was compressed.
        iv_size: IV size in bytes.
        ciphertext_size: Ciphertext size in bytes.
        tag_size: Tag size in bytes.
    """

    version: int
    cipher: str
    compressed: bool
    iv_size: int
    ciphertext_size: int
    tag_size: int

    @classmethod
    def from_token(cls, token: Token) -> "TokenInfo":
        return cls(
            version=token.version,
            cipher=token.cipher.name,
            compressed=token.compressed,
            iv_size=len(token.iv),
            ciphertext_size=len(token.ciphertext),
            tag_size=len(token.tag),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "version": self.version,
            "cipher": self.cipher,
            "compressed": self.compressed,
            "iv_size": self.iv_size,
            "ciphertext_size": self.ciphertext_size,
            "tag_size": self.tag_size,
        }
