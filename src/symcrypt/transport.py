"""Transport encoding.

Tokens travel as URL- and filename-safe base64 (RFC 4648 section 5), padded
with ``=`` and never line-wrapped, so they survive JSON fields, URLs and
environment variables unchanged.
"""

from __future__ import annotations

import base64
import binascii
import re

from symcrypt.base import FormatError

_URLSAFE_B64 = re.compile(rb"\A[A-Za-z0-9_-]*={0,2}\Z")


class Base64UrlCodec:
    """Strict base64url codec."""

    def encode(self, data: bytes) -> str:
        """Encode bytes as padded base64url text."""
        return base64.urlsafe_b64encode(data).decode("ascii")

    def decode(self, text: str | bytes) -> bytes:
        """Decode padded base64url text.

        Raises:
            FormatError: On characters outside the alphabet, wrong padding
                or a truncated quantum.
        """
        if isinstance(text, str):
            try:
                raw = text.encode("ascii")
            except UnicodeEncodeError as e:
                raise FormatError("Token contains non-ASCII characters") from e
        elif isinstance(text, (bytes, bytearray)):
            raw = bytes(text)
        else:
            raise FormatError(f"Token must be text, got {type(text).__name__}")

        if not _URLSAFE_B64.match(raw):
            raise FormatError("Token contains characters outside the base64url alphabet")
        if len(raw) % 4:
            raise FormatError("Token has invalid base64 padding")

        try:
            # Translate to the standard alphabet so validate=True is strict
            data = base64.b64decode(raw, altchars=b"-_", validate=True)
        except (binascii.Error, ValueError) as e:
            raise FormatError(f"Token is not valid base64url: {e}") from e

        # Unused trailing bits must be zero so each byte string has one text form
        if base64.urlsafe_b64encode(data) != raw:
            raise FormatError("Token has non-canonical base64url padding bits")
        return data


_default = Base64UrlCodec()


def encode(data: bytes) -> str:
    """Encode bytes with the default codec."""
    return _default.encode(data)


def decode(text: str | bytes) -> bytes:
    """Decode text with the default codec."""
    return _default.decode(text)
