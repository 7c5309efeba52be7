"""Tests for the binary token layout."""

import pytest

from symcrypt.base import FormatError, resolve_cipher_spec
from symcrypt.token import (
    FLAG_COMPRESSED,
    HEADER_SIZE,
    TOKEN_VERSION,
    Token,
    TokenInfo,
    build_header,
)

CBC = resolve_cipher_spec("AES-256-CBC")
GCM = resolve_cipher_spec("AES-128-GCM")


def _token(spec=CBC, compressed=True, ciphertext=b"\xaa" * 32):
    return Token(
        cipher=spec,
        compressed=compressed,
        iv=b"\x01" * spec.iv_size,
        ciphertext=ciphertext,
        tag=b"\x02" * spec.tag_size,
    )


class TestLayout:
    """Tests for serializing tokens."""

    def test_header_bytes(self):
        """The header holds version, cipher id and flags."""
        assert build_header(CBC, True) == bytes([TOKEN_VERSION, 0x03, FLAG_COMPRESSED])
        assert build_header(GCM, False) == bytes([TOKEN_VERSION, 0x11, 0x00])

    def test_to_bytes(self):
        """Fields are laid out header, IV, ciphertext, tag."""
        token = _token()
        data = token.to_bytes()
        assert data[:HEADER_SIZE] == token.header
        assert data[HEADER_SIZE : HEADER_SIZE + 16] == token.iv
        assert data.endswith(token.tag)
        assert len(data) == HEADER_SIZE + 16 + 32 + 32

    def test_flags(self):
        """Compressed tokens set bit 0."""
        assert _token(compressed=True).flags == FLAG_COMPRESSED
        assert _token(compressed=False).flags == 0


class TestParse:
    """Tests for parsing tokens."""

    @pytest.mark.parametrize("spec", [CBC, GCM, resolve_cipher_spec("CHACHA20-POLY1305")])
    def test_parse_matches_built(self, spec):
        """Parsing returns the token that was built."""
        token = _token(spec=spec, compressed=False)
        assert Token.parse(token.to_bytes()) == token

    def test_empty_ciphertext(self):
        """An empty ciphertext is allowed."""
        token = _token(spec=GCM, ciphertext=b"")
        assert Token.parse(token.to_bytes()).ciphertext == b""

    @pytest.mark.parametrize("data", [b"", b"\x01", b"\x01\x03"])
    def test_too_short(self, data):
        """Buffers shorter than the header are rejected."""
        with pytest.raises(FormatError):
            Token.parse(data)

    def test_unsupported_version(self):
        """Unknown versions are rejected."""
        data = bytearray(_token().to_bytes())
        data[0] = 0x02
        with pytest.raises(FormatError, match="version"):
            Token.parse(bytes(data))

    def test_unknown_cipher_id(self):
        """Unknown cipher ids are rejected."""
        data = bytearray(_token().to_bytes())
        data[1] = 0x7F
        with pytest.raises(FormatError, match="cipher"):
            Token.parse(bytes(data))

    def test_reserved_flags(self):
        """Reserved flag bits must be zero."""
        data = bytearray(_token().to_bytes())
        data[2] = 0x80
        with pytest.raises(FormatError, match="flags"):
            Token.parse(bytes(data))

    def test_truncated_body(self):
        """Bodies too short for IV and tag are rejected."""
        data = build_header(CBC, False) + b"\x00" * (CBC.iv_size + CBC.tag_size - 1)
        with pytest.raises(FormatError, match="truncated"):
            Token.parse(data)


class TestTokenInfo:
    """Tests for token descriptions."""

    def test_from_token(self):
        """TokenInfo reports the token's cipher and sizes."""
        info = TokenInfo.from_token(_token())
        assert info.cipher == "AES-256-CBC"
        assert info.compressed is True
        assert info.iv_size == 16
        assert info.ciphertext_size == 32
        assert info.tag_size == 32

    def test_to_dict(self):
        """to_dict returns plain JSON-ready values."""
        assert TokenInfo.from_token(_token(spec=GCM, compressed=False)).to_dict() == {
            "version": 1,
            "cipher": "AES-128-GCM",
            "compressed": False,
            "iv_size": 12,
            "ciphertext_size": 32,
            "tag_size": 16,
        }
