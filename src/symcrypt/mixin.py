"""Field-level encryption for any class.

Inherit from :class:`Encryptable` to get the four crypto operations as
instance methods and a cached per-class key.

Example:
    >>> import os
    >>> from symcrypt import Encryptable
    >>>
    >>> class Account(Encryptable):
    ...     def __init__(self, ssn):
    ...         self.ssn = ssn
    ...
    ...     @property
    ...     def ssn(self):
    ...         return self.decrypt_with_key(self._ssn)
    ...
    ...     @ssn.setter
    ...     def ssn(self, value):
    ...         self._ssn = self.encrypt_with_key(value)
    >>>
    >>> Account.get_or_set_key(os.environ["ACCOUNT_KEY"])  # or let it generate one
    >>> Account("123-45-6789").ssn
    '123-45-6789'

Each class has its own key slot: a subclass does not share its parent's
cached key.
"""

from __future__ import annotations

from typing import Any

from symcrypt.keys import KeyRegistry, coerce_key, default_registry, generate_key
from symcrypt.pipeline import CryptPipeline, KeyLike, default_pipeline


class Encryptable:
    """Capability mixin: one cached key per class plus four crypto operations.

    Class attributes:
        crypt_pipeline: Pipeline used by the instance methods.
        key_registry: Registry holding the per-class key.
    """

    crypt_pipeline: CryptPipeline = default_pipeline
    key_registry: KeyRegistry = default_registry

    # -------------------------------------------------------------------------
    # Class-level key management
    # -------------------------------------------------------------------------

    @classmethod
    def generate_key(cls, strength_bits: int | None = None) -> bytes:
        """Return a new random key; nothing is cached."""
        return generate_key(strength_bits, settings=cls.crypt_pipeline.settings)

    @classmethod
    def get_or_set_key(cls, value: KeyLike | None = None) -> bytes:
        """Get this class's cached key, or assign it.

        Args:
            value: Key bytes or base64url text to assign. When omitted the
                cached key is returned, generated on first access.

        Returns:
            The class's key after the call.
        """
        if value is not None:
            return cls.key_registry.set(cls, coerce_key(value))
        return cls.key_registry.get_or_create(cls, cls.generate_key)

    # -------------------------------------------------------------------------
    # Instance operations
    # -------------------------------------------------------------------------

    def encrypt_with_key(self, value: Any, key: KeyLike | None = None) -> str:
        """Encrypt a value (key defaults to the class key)."""
        return self.crypt_pipeline.encrypt_with_key(
            value, key if key is not None else type(self).get_or_set_key()
        )

    def decrypt_with_key(self, token: str | bytes, key: KeyLike | None = None) -> Any:
        """Decrypt a token (key defaults to the class key)."""
        return self.crypt_pipeline.decrypt_with_key(
            token, key if key is not None else type(self).get_or_set_key()
        )

    def encrypt_with_password(self, value: Any, password: str | bytes) -> str:
        """Encrypt a value under a password."""
        return self.crypt_pipeline.encrypt_with_password(value, password)

    def decrypt_with_password(self, token: str | bytes, password: str | bytes) -> Any:
        """Decrypt a password-encrypted token."""
        return self.crypt_pipeline.decrypt_with_password(token, password)
