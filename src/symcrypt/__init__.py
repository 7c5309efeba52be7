"""symcrypt - symmetric encryption of arbitrary values into transport-safe tokens.

Features:
    - Any picklable value in, a base64url token out, the exact value back
    - Key-based (AES-256-CBC + HMAC by default) and password-based
      (AES-128-CBC + HMAC by default) encryption
    - Compress-then-encrypt with a flag recorded in the token
    - Self-describing, versioned tokens that fail closed when tampered with
    - ``Encryptable`` mixin giving any class a cached key and the four
      operations

Quick Start:
    >>> import symcrypt
    >>>
    >>> key = symcrypt.generate_key()
    >>> token = symcrypt.encrypt_with_key({"id": 42, "name": "alice"}, key)
    >>> symcrypt.decrypt_with_key(token, key)
    {'id': 42, 'name': 'alice'}

Configuration (once, before first use):
    >>> symcrypt.configure(data_cipher="AES-256-GCM", compression_level=6)
"""

from symcrypt.base import (
    CIPHER_SPECS,
    CipherMode,
    CipherSpec,
    ConfigurationError,
    DecryptionError,
    FormatError,
    SerializationError,
    SymCryptError,
    list_cipher_names,
    resolve_cipher_spec,
)
from symcrypt.ciphers import BaseCipher, CipherResult, get_cipher
from symcrypt.compression import DeflateCompressor, NoopCompressor
from symcrypt.config import Settings, configure, get_settings, reset_settings
from symcrypt.keys import (
    KeyRegistry,
    decode_key,
    derive_key_from_password,
    encode_key,
    generate_key,
    key_from_env,
)
from symcrypt.mixin import Encryptable
from symcrypt.pipeline import (
    CryptPipeline,
    decrypt_with_key,
    decrypt_with_password,
    encrypt_with_key,
    encrypt_with_password,
    inspect_token,
)
from symcrypt.serialization import PickleSerializer
from symcrypt.token import Token, TokenInfo
from symcrypt.transport import Base64UrlCodec

__version__ = "0.1.0"

__all__ = [
    # === Operations ===
    "encrypt_with_key",
    "decrypt_with_key",
    "encrypt_with_password",
    "decrypt_with_password",
    "inspect_token",
    "CryptPipeline",
    "Encryptable",
    # === Keys ===
    "generate_key",
    "derive_key_from_password",
    "encode_key",
    "decode_key",
    "key_from_env",
    "KeyRegistry",
    # === Configuration ===
    "Settings",
    "configure",
    "get_settings",
    "reset_settings",
    # === Components ===
    "PickleSerializer",
    "DeflateCompressor",
    "NoopCompressor",
    "Base64UrlCodec",
    "BaseCipher",
    "CipherResult",
    "get_cipher",
    "Token",
    "TokenInfo",
    # === Ciphers ===
    "CIPHER_SPECS",
    "CipherMode",
    "CipherSpec",
    "list_cipher_names",
    "resolve_cipher_spec",
    # === Errors ===
    "SymCryptError",
    "ConfigurationError",
    "SerializationError",
    "FormatError",
    "DecryptionError",
]
