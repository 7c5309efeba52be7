"""Payload compression.

Payloads are compressed with zlib (deflate with a zlib header and Adler-32
checksum) before encryption. Whether a payload was compressed is recorded
in the token, so the decoder never has to guess.
"""

from __future__ import annotations

import logging
import zlib
from abc import ABC, abstractmethod

from symcrypt.base import SerializationError
from symcrypt.config import DEFAULT_COMPRESSION_LEVEL, Settings, validate_compression_level

logger = logging.getLogger(__name__)


# =============================================================================
# Base Compressor
# =============================================================================


class BaseCompressor(ABC):
    """Abstract base class for compressor implementations."""

    name: str = "base"

    @abstractmethod
    def _do_compress(self, data: bytes) -> bytes:
        """Perform actual compression. Override in subclasses."""
        pass

    @abstractmethod
    def _do_decompress(self, data: bytes) -> bytes:
        """Perform actual decompression. Override in subclasses."""
        pass

    @property
    def enabled(self) -> bool:
        """Whether this compressor changes the data."""
        return True

    def compress(self, data: bytes) -> bytes:
        """Compress data.

        Raises:
            SerializationError: If compression fails.
        """
        try:
            result = self._do_compress(data)
        except zlib.error as e:
            raise SerializationError(f"Compression failed: {e}", self.name) from e
        if self.enabled:
            logger.debug("Compressed %d -> %d bytes with %s", len(data), len(result), self.name)
        return result

    def decompress(self, data: bytes) -> bytes:
        """Decompress data.

        Raises:
            SerializationError: If the data is not valid compressed data.
        """
        try:
            return self._do_decompress(data)
        except zlib.error as e:
            raise SerializationError(f"Decompression failed: {e}", self.name) from e


# =============================================================================
# Implementations
# =============================================================================


class NoopCompressor(BaseCompressor):
    """No-operation compressor (passthrough)."""

    name = "none"

    @property
    def enabled(self) -> bool:
        return False

    def _do_compress(self, data: bytes) -> bytes:
        return data

    def _do_decompress(self, data: bytes) -> bytes:
        return data


class DeflateCompressor(BaseCompressor):
    """zlib compression using Python's built-in zlib module."""

    name = "zlib"

    def __init__(self, level: int = DEFAULT_COMPRESSION_LEVEL) -> None:
        """Initialize the compressor.

        Args:
            level: Compression level, 0 (store) .. 9 (best).

        Raises:
            ConfigurationError: If the level is out of range.
        """
        self._level = validate_compression_level(level)

    @property
    def level(self) -> int:
        return self._level

    def _do_compress(self, data: bytes) -> bytes:
        return zlib.compress(data, self._level)

    def _do_decompress(self, data: bytes) -> bytes:
        decompressor = zlib.decompressobj()
        result = decompressor.decompress(data)
        if not decompressor.eof or decompressor.unused_data:
            raise zlib.error("incomplete or trailing compressed data")
        return result


def get_compressor(settings: Settings) -> BaseCompressor:
    """Create the compressor selected by the settings."""
    if not settings.compression_enabled:
        return NoopCompressor()
    return DeflateCompressor(settings.compression_level)


def compress(data: bytes, level: int = DEFAULT_COMPRESSION_LEVEL) -> bytes:
    """Compress data at the given level."""
    return DeflateCompressor(level).compress(data)


def decompress(data: bytes) -> bytes:
    """Decompress zlib data."""
    return DeflateCompressor().decompress(data)
