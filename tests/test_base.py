"""Tests for base types, cipher specs and errors."""

import pytest

from symcrypt.base import (
    CIPHER_SPECS,
    CipherMode,
    ConfigurationError,
    DecryptionError,
    FormatError,
    SymCryptError,
    cipher_spec_for_wire_id,
    constant_time_compare,
    list_cipher_names,
    random_bytes,
    resolve_cipher_spec,
)


class TestResolveCipherSpec:
    """Tests for cipher identifier resolution."""

    def test_default_data_cipher(self):
        """AES-256-CBC resolves with its sizes."""
        spec = resolve_cipher_spec("AES-256-CBC")
        assert spec.key_size == 32
        assert spec.iv_size == 16
        assert spec.block_size == 16
        assert spec.mode == CipherMode.CBC
        assert spec.key_bits == 256

    def test_default_password_cipher(self):
        """AES-128-CBC resolves with its sizes."""
        spec = resolve_cipher_spec("AES-128-CBC")
        assert spec.key_size == 16

    def test_case_insensitive(self):
        """Cipher names are case-insensitive."""
        assert resolve_cipher_spec("aes-256-gcm") is resolve_cipher_spec("AES-256-GCM")

    def test_surrounding_whitespace(self):
        """Surrounding whitespace is ignored."""
        assert resolve_cipher_spec("  aes-128-cbc ").name == "AES-128-CBC"

    def test_spec_passthrough(self):
        """A resolved spec passes through unchanged."""
        spec = CIPHER_SPECS["CHACHA20-POLY1305"]
        assert resolve_cipher_spec(spec) is spec

    @pytest.mark.parametrize("name", ["DES-CBC", "AES-512-CBC", "rot13", "", "   "])
    def test_unknown_cipher(self, name):
        """Unknown names raise ConfigurationError."""
        with pytest.raises(ConfigurationError):
            resolve_cipher_spec(name)

    def test_non_string(self):
        """Non-string identifiers raise ConfigurationError."""
        with pytest.raises(ConfigurationError):
            resolve_cipher_spec(256)

    def test_error_lists_available(self):
        """The error names the supported ciphers."""
        with pytest.raises(ConfigurationError, match="AES-256-CBC"):
            resolve_cipher_spec("blowfish")


class TestCipherTable:
    """Tests for the cipher specification table."""

    def test_wire_ids_unique(self):
        """Every cipher has its own wire id."""
        ids = [spec.wire_id for spec in CIPHER_SPECS.values()]
        assert len(ids) == len(set(ids))

    def test_wire_id_lookup(self):
        """Wire ids map back to their spec."""
        for spec in CIPHER_SPECS.values():
            assert cipher_spec_for_wire_id(spec.wire_id) is spec

    def test_unknown_wire_id(self):
        """Unknown wire ids map to None."""
        assert cipher_spec_for_wire_id(0xFF) is None

    def test_every_cipher_authenticates(self):
        """Every cipher carries an authentication tag."""
        for spec in CIPHER_SPECS.values():
            assert spec.tag_size >= 16

    def test_aead_modes(self):
        """Only GCM and ChaCha20 modes are AEAD."""
        assert not CipherMode.CBC.is_aead
        assert CipherMode.GCM.is_aead
        assert CipherMode.AEAD_STREAM.is_aead

    def test_list_names_sorted(self):
        """Cipher names are listed in sorted order."""
        names = list_cipher_names()
        assert names == sorted(names)
        assert "AES-128-CBC" in names


class TestErrors:
    """Tests for the exception taxonomy."""

    def test_hierarchy(self):
        """All errors derive from SymCryptError."""
        for cls in (ConfigurationError, DecryptionError, FormatError):
            assert issubclass(cls, SymCryptError)

    def test_algorithm_prefix(self):
        """Errors prefix the message with the algorithm."""
        err = FormatError("bad token", "AES-256-CBC")
        assert str(err) == "[AES-256-CBC] bad token"
        assert err.algorithm == "AES-256-CBC"

    def test_decryption_error_is_opaque(self):
        """DecryptionError always has the same message."""
        assert str(DecryptionError()) == "decryption failed"
        assert str(DecryptionError("AES-128-CBC")) == "[AES-128-CBC] decryption failed"


class TestUtilities:
    """Tests for random and comparison helpers."""

    def test_random_bytes(self):
        """random_bytes returns fresh bytes of the requested size."""
        a, b = random_bytes(32), random_bytes(32)
        assert len(a) == 32
        assert a != b

    def test_constant_time_compare(self):
        """constant_time_compare matches ==."""
        assert constant_time_compare(b"abc", b"abc")
        assert not constant_time_compare(b"abc", b"abd")
