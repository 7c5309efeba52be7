"""Tests for the symcrypt command line."""

import json

import pytest
from typer.testing import CliRunner

from symcrypt.cli import app
from symcrypt.keys import decode_key, encode_key
from symcrypt.transport import decode, encode

ENV = {"SYMCRYPT_KDF_ITERATIONS": "1000"}


@pytest.fixture
def runner(monkeypatch):
    for name in ("SYMCRYPT_KEY", "SYMCRYPT_PASSWORD", "SYMCRYPT_DATA_CIPHER"):
        monkeypatch.delenv(name, raising=False)
    return CliRunner()


@pytest.fixture
def key_text():
    return encode_key(b"\x11" * 32)


def invoke(runner, args, **env):
    return runner.invoke(app, args, env={**ENV, **env})


class TestGenerateKey:
    """Tests for the generate-key command."""

    def test_default(self, runner):
        """generate-key prints a 256-bit key."""
        result = invoke(runner, ["generate-key"])
        assert result.exit_code == 0
        assert len(decode_key(result.stdout.strip())) == 32

    def test_bits(self, runner):
        """--bits sets the key strength."""
        result = invoke(runner, ["generate-key", "--bits", "128"])
        assert result.exit_code == 0
        assert len(decode_key(result.stdout.strip())) == 16

    def test_invalid_bits(self, runner):
        """An invalid strength exits with an error."""
        result = invoke(runner, ["generate-key", "--bits", "12"])
        assert result.exit_code == 1
        assert "Error" in result.output


class TestEncryptDecrypt:
    """Tests for the encrypt and decrypt commands."""

    def test_key_round_trip(self, runner, key_text):
        """A JSON value round-trips under a key."""
        result = invoke(runner, ["encrypt", '{"id": 42, "name": "alice"}', "--key", key_text])
        assert result.exit_code == 0
        token = result.stdout.strip()

        result = invoke(runner, ["decrypt", token, "--key", key_text])
        assert result.exit_code == 0
        assert json.loads(result.stdout) == {"id": 42, "name": "alice"}

    def test_password_round_trip(self, runner):
        """A plain string round-trips under a password."""
        result = invoke(runner, ["encrypt", "--string", "hello", "-p", "correct-horse"])
        assert result.exit_code == 0
        token = result.stdout.strip()

        result = invoke(runner, ["decrypt", token, "-p", "correct-horse"])
        assert result.exit_code == 0
        assert json.loads(result.stdout) == "hello"

    def test_key_from_environment(self, runner, key_text):
        """SYMCRYPT_KEY supplies the key."""
        result = invoke(runner, ["encrypt", "[1, 2]"], SYMCRYPT_KEY=key_text)
        assert result.exit_code == 0
        result = invoke(runner, ["decrypt", result.stdout.strip()], SYMCRYPT_KEY=key_text)
        assert json.loads(result.stdout) == [1, 2]

    def test_cipher_and_compression_options(self, runner, key_text):
        """--cipher and --no-compress are recorded in the token."""
        result = invoke(
            runner,
            ["encrypt", '"abc"', "-k", key_text, "--cipher", "aes-256-gcm", "--no-compress"],
        )
        assert result.exit_code == 0
        info = json.loads(invoke(runner, ["inspect", result.stdout.strip()]).stdout)
        assert info["cipher"] == "AES-256-GCM"
        assert info["compressed"] is False

    def test_cipher_from_environment(self, runner, key_text):
        """SYMCRYPT_DATA_CIPHER selects the data cipher."""
        result = invoke(runner, ["encrypt", "1", "-k", key_text], SYMCRYPT_DATA_CIPHER="CHACHA20-POLY1305")
        assert result.exit_code == 0
        info = json.loads(invoke(runner, ["inspect", result.stdout.strip()]).stdout)
        assert info["cipher"] == "CHACHA20-POLY1305"

    def test_requires_key_or_password(self, runner):
        """Encrypting without a key or password fails."""
        result = invoke(runner, ["encrypt", "1"])
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_rejects_both_key_and_password(self, runner, key_text):
        """Supplying both a key and a password fails."""
        result = invoke(runner, ["encrypt", "1", "-k", key_text, "-p", "pw"])
        assert result.exit_code == 1

    def test_invalid_json(self, runner, key_text):
        """Invalid JSON suggests --string."""
        result = invoke(runner, ["encrypt", "not json", "-k", key_text])
        assert result.exit_code == 1
        assert "--string" in result.output

    def test_unknown_cipher(self, runner, key_text):
        """An unknown cipher exits with an error."""
        result = invoke(runner, ["encrypt", "1", "-k", key_text, "--cipher", "RC4"])
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_wrong_key(self, runner, key_text):
        """Decrypting with the wrong key reports a decryption failure."""
        token = invoke(runner, ["encrypt", "1", "-k", key_text]).stdout.strip()
        result = invoke(runner, ["decrypt", token, "-k", encode_key(b"\x22" * 32)])
        assert result.exit_code == 1
        assert "decryption failed" in result.output

    def test_tampered_token(self, runner, key_text):
        """A tampered token exits with an error."""
        token = invoke(runner, ["encrypt", "1", "-k", key_text]).stdout.strip()
        raw = bytearray(decode(token))
        raw[-1] ^= 0x01
        result = invoke(runner, ["decrypt", encode(bytes(raw)), "-k", key_text])
        assert result.exit_code == 1


class TestInspect:
    """Tests for the inspect command."""

    def test_inspect(self, runner, key_text):
        """inspect prints the token header as JSON."""
        token = invoke(runner, ["encrypt", "1", "-k", key_text]).stdout.strip()
        result = invoke(runner, ["inspect", token])
        assert result.exit_code == 0
        info = json.loads(result.stdout)
        assert info["version"] == 1
        assert info["cipher"] == "AES-256-CBC"
        assert info["compressed"] is True

    def test_inspect_garbage(self, runner):
        """inspect rejects text that is not a token."""
        result = invoke(runner, ["inspect", "???"])
        assert result.exit_code == 1
        assert "Error" in result.output
