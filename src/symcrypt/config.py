"""Settings provider for symcrypt.

One immutable :class:`Settings` snapshot is active per process. It is read by
every pipeline component and may be replaced through :func:`configure` only
until the first cryptographic operation reads it. Changing settings while
operations are in flight is the caller's responsibility to avoid: configure
once at startup, then treat the snapshot as immutable.

Usage:
    >>> from symcrypt.config import configure, get_settings
    >>>
    >>> configure(data_cipher="AES-256-GCM", compression_level=6)
    >>> get_settings().data_cipher
    'AES-256-GCM'

Environment:
    >>> # SYMCRYPT_DATA_CIPHER=aes-128-cbc SYMCRYPT_COMPRESSION_ENABLED=false
    >>> settings = Settings.from_env()
"""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass, fields, replace
from typing import Any

from symcrypt.base import CipherSpec, ConfigurationError, resolve_cipher_spec

logger = logging.getLogger(__name__)


DEFAULT_DATA_CIPHER = "AES-256-CBC"
DEFAULT_PASSWORD_CIPHER = "AES-128-CBC"
DEFAULT_COMPRESSION_LEVEL = 9  # zlib best compression
DEFAULT_KDF_ITERATIONS = 600_000
MIN_RECOMMENDED_KDF_ITERATIONS = 10_000
DEFAULT_KDF_SALT = b"symcrypt/password-key/v1"

ENV_PREFIX = "SYMCRYPT"


def validate_compression_level(level: Any) -> int:
    """Validate a zlib compression level.

    Args:
        level: Candidate level, 0 (store) .. 9 (best).

    Returns:
        The level.

    Raises:
        ConfigurationError: If the level is not an integer in range.
    """
    if isinstance(level, bool) or not isinstance(level, int) or not 0 <= level <= 9:
        raise ConfigurationError(
            f"compression_level must be an integer between 0 and 9, got {level!r}"
        )
    return level


# =============================================================================
# Settings
# =============================================================================


@dataclass(frozen=True)
class Settings:
    """Tunable defaults read by every pipeline component.

    Attributes:
        data_cipher: Cipher for key-based encryption.
        password_cipher: Cipher for password-based encryption; also sets
            the length of password-derived keys.
        private_key_cipher: Cipher whose key size sets the strength of
            generated keys. ``None`` means "same as data_cipher".
        compression_enabled: Compress payloads before encryption.
        compression_level: zlib level, 0..9.
        kdf_iterations: PBKDF2 iteration count for password-derived keys.
        kdf_salt: PBKDF2 salt for password-derived keys.
    """

    data_cipher: str = DEFAULT_DATA_CIPHER
    password_cipher: str = DEFAULT_PASSWORD_CIPHER
    private_key_cipher: str | None = None
    compression_enabled: bool = True
    compression_level: int = DEFAULT_COMPRESSION_LEVEL
    kdf_iterations: int = DEFAULT_KDF_ITERATIONS
    kdf_salt: bytes = DEFAULT_KDF_SALT

    def __post_init__(self) -> None:
        # Normalise cipher names to their canonical spelling
        object.__setattr__(self, "data_cipher", resolve_cipher_spec(self.data_cipher).name)
        object.__setattr__(
            self, "password_cipher", resolve_cipher_spec(self.password_cipher).name
        )
        if self.private_key_cipher is not None:
            object.__setattr__(
                self,
                "private_key_cipher",
                resolve_cipher_spec(self.private_key_cipher).name,
            )
        self.validate()

    def validate(self) -> None:
        """Validate configuration."""
        if not isinstance(self.compression_enabled, bool):
            raise ConfigurationError(
                f"compression_enabled must be a bool, got {self.compression_enabled!r}"
            )
        validate_compression_level(self.compression_level)
        if (
            isinstance(self.kdf_iterations, bool)
            or not isinstance(self.kdf_iterations, int)
            or self.kdf_iterations < 1
        ):
            raise ConfigurationError("kdf_iterations must be a positive integer")
        if not isinstance(self.kdf_salt, bytes) or not self.kdf_salt:
            raise ConfigurationError("kdf_salt must be non-empty bytes")

    @property
    def data_spec(self) -> CipherSpec:
        """Resolved data cipher."""
        return resolve_cipher_spec(self.data_cipher)

    @property
    def password_spec(self) -> CipherSpec:
        """Resolved password cipher."""
        return resolve_cipher_spec(self.password_cipher)

    @property
    def private_key_spec(self) -> CipherSpec:
        """Resolved private-key cipher (defaults to the data cipher)."""
        return resolve_cipher_spec(self.private_key_cipher or self.data_cipher)

    def with_overrides(self, **overrides: Any) -> "Settings":
        """Return a new snapshot with some values replaced.

        Raises:
            ConfigurationError: On unknown setting names or invalid values.
        """
        known = {f.name for f in fields(self)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise ConfigurationError(f"Unknown settings: {', '.join(unknown)}")
        return replace(self, **overrides)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary (the KDF salt is hex-encoded)."""
        return {
            "data_cipher": self.data_cipher,
            "password_cipher": self.password_cipher,
            "private_key_cipher": self.private_key_spec.name,
            "compression_enabled": self.compression_enabled,
            "compression_level": self.compression_level,
            "kdf_iterations": self.kdf_iterations,
            "kdf_salt": self.kdf_salt.hex(),
        }

    @classmethod
    def from_env(cls, prefix: str = ENV_PREFIX, separator: str = "_") -> "Settings":
        """Build settings from environment variables.

        Example:
            SYMCRYPT_DATA_CIPHER=AES-256-GCM
            SYMCRYPT_COMPRESSION_LEVEL=6

        Unset variables keep their defaults.
        """
        values: dict[str, Any] = {}
        env_prefix = f"{prefix}{separator}"
        for f in fields(cls):
            if f.name == "kdf_salt":
                continue
            raw = os.environ.get(f"{env_prefix}{f.name.upper()}")
            if raw is None or raw == "":
                continue
            values[f.name] = _parse_env_value(f.name, raw)
        return cls(**values)


def _parse_env_value(name: str, value: str) -> Any:
    """Parse an environment string for the named setting."""
    if name == "compression_enabled":
        lowered = value.strip().lower()
        if lowered in ("true", "yes", "1", "on"):
            return True
        if lowered in ("false", "no", "0", "off"):
            return False
        raise ConfigurationError(f"Invalid boolean for {name}: {value!r}")

    if name in ("compression_level", "kdf_iterations"):
        try:
            return int(value.strip())
        except ValueError as e:
            raise ConfigurationError(f"Invalid integer for {name}: {value!r}") from e

    return value.strip()


# =============================================================================
# Process-wide Snapshot
# =============================================================================


_lock = threading.Lock()
_settings: Settings = Settings()
_sealed = False


def get_settings() -> Settings:
    """Get the active settings snapshot.

    The first call seals the configuration; later calls to
    :func:`configure` fail.
    """
    global _sealed
    with _lock:
        _sealed = True
        return _settings


def configure(settings: Settings | None = None, **overrides: Any) -> Settings:
    """Install a new settings snapshot.

    Args:
        settings: A complete snapshot to install (defaults to the current one).
        **overrides: Individual values to replace.

    Returns:
        The installed snapshot.

    Raises:
        ConfigurationError: If settings were already read, or on invalid values.
    """
    global _settings
    with _lock:
        if _sealed:
            raise ConfigurationError(
                "Settings are read-only once encryption has started; "
                "configure before first use or build a CryptPipeline "
                "with an explicit Settings snapshot"
            )
        base = settings if settings is not None else _settings
        new = base.with_overrides(**overrides) if overrides else base
        _settings = new
        if new.kdf_iterations < MIN_RECOMMENDED_KDF_ITERATIONS:
            logger.warning(
                "kdf_iterations=%d is below the recommended minimum of %d; "
                "password-derived keys are cheap to brute-force",
                new.kdf_iterations,
                MIN_RECOMMENDED_KDF_ITERATIONS,
            )
        logger.debug(
            "Configured symcrypt: data_cipher=%s password_cipher=%s compression=%s/%d",
            new.data_cipher,
            new.password_cipher,
            new.compression_enabled,
            new.compression_level,
        )
        return new


def reset_settings(settings: Settings | None = None) -> Settings:
    """Replace the snapshot and unseal it (for test setup).

    Args:
        settings: Snapshot to install (defaults to :class:`Settings` defaults).
    """
    global _settings, _sealed
    with _lock:
        _settings = settings if settings is not None else Settings()
        _sealed = False
        return _settings


def is_sealed() -> bool:
    """Check whether the active settings have been read."""
    with _lock:
        return _sealed
