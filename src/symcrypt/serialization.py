"""Value serialization.

Values are serialized with :mod:`pickle` at a pinned protocol, which keeps
the exact Python types of the value: tuples stay tuples, sets stay sets,
and ``bytes``, ``datetime`` or ``Decimal`` come back as themselves.

Only payloads that the cipher layer has already authenticated are ever
handed to :meth:`PickleSerializer.deserialize`.
"""

from __future__ import annotations

import pickle
from typing import Any

from symcrypt.base import SerializationError

# Protocol 4 is available on every supported interpreter
PICKLE_PROTOCOL = 4


class PickleSerializer:
    """Structure- and type-preserving serializer."""

    def __init__(self, protocol: int = PICKLE_PROTOCOL) -> None:
        if not 0 <= protocol <= pickle.HIGHEST_PROTOCOL:
            raise SerializationError(f"Unsupported pickle protocol: {protocol}")
        self._protocol = protocol

    @property
    def protocol(self) -> int:
        return self._protocol

    def serialize(self, value: Any) -> bytes:
        """Serialize a value to bytes.

        Raises:
            SerializationError: If the value holds something unpicklable,
                such as an open file, a lock or a lambda.
        """
        try:
            return pickle.dumps(value, protocol=self._protocol)
        except (pickle.PicklingError, TypeError, AttributeError, RecursionError) as e:
            raise SerializationError(
                f"Value of type {type(value).__name__} cannot be serialized: {e}"
            ) from e

    def deserialize(self, data: bytes) -> Any:
        """Recover a value from bytes.

        Raises:
            SerializationError: If the bytes are not a serialized value.
        """
        if not data:
            raise SerializationError("Cannot deserialize empty data")
        try:
            return pickle.loads(data)
        except Exception as e:
            # Corrupt pickles surface as many exception types
            raise SerializationError(f"Invalid serialized data: {e}") from e


_default = PickleSerializer()


def serialize(value: Any) -> bytes:
    """Serialize a value with the default serializer."""
    return _default.serialize(value)


def deserialize(data: bytes) -> Any:
    """Deserialize bytes with the default serializer."""
    return _default.deserialize(data)
