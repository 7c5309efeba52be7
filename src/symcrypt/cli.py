"""Command-line interface for symcrypt."""

import json
from typing import Annotated, Any, Optional

import typer

from symcrypt.base import SymCryptError, list_cipher_names
from symcrypt.config import Settings
from symcrypt.keys import encode_key
from symcrypt.pipeline import CryptPipeline

app = typer.Typer(
    name="symcrypt",
    help="Symmetric encryption of values into transport-safe tokens",
    add_completion=False,
)

KeyOption = Annotated[
    Optional[str],
    typer.Option("--key", "-k", envvar="SYMCRYPT_KEY", help="Base64url-encoded key"),
]
PasswordOption = Annotated[
    Optional[str],
    typer.Option("--password", "-p", envvar="SYMCRYPT_PASSWORD", help="Password"),
]


def _fail(message: str) -> None:
    typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(1)


def _require_one(key: Optional[str], password: Optional[str]) -> None:
    if bool(key) == bool(password):
        _fail("Provide exactly one of --key or --password")


def _pipeline(**overrides: Any) -> CryptPipeline:
    return CryptPipeline(settings=Settings.from_env().with_overrides(**overrides))


@app.command(name="generate-key")
def generate_key_cmd(
    bits: Annotated[
        Optional[int],
        typer.Option("--bits", "-b", help="Key strength in bits (default: private key cipher)"),
    ] = None,
) -> None:
    """Generate a random key and print it as base64url."""
    try:
        typer.echo(encode_key(_pipeline().generate_key(bits)))
    except SymCryptError as e:
        _fail(str(e))


@app.command(name="encrypt")
def encrypt_cmd(
    value: Annotated[str, typer.Argument(help="JSON value to encrypt")],
    key: KeyOption = None,
    password: PasswordOption = None,
    string: Annotated[
        bool,
        typer.Option("--string", "-s", help="Treat VALUE as a plain string, not JSON"),
    ] = False,
    no_compress: Annotated[
        bool,
        typer.Option("--no-compress", help="Disable compression"),
    ] = False,
    cipher: Annotated[
        Optional[str],
        typer.Option("--cipher", "-c", help=f"Data cipher ({', '.join(list_cipher_names())})"),
    ] = None,
) -> None:
    """Encrypt a value and print the token."""
    _require_one(key, password)

    if string:
        data: Any = value
    else:
        try:
            data = json.loads(value)
        except json.JSONDecodeError as e:
            _fail(f"VALUE is not valid JSON ({e}); use --string for plain text")

    overrides: dict[str, Any] = {}
    if no_compress:
        overrides["compression_enabled"] = False
    if cipher:
        overrides["password_cipher" if password else "data_cipher"] = cipher

    try:
        pipeline = _pipeline(**overrides)
        if password:
            token = pipeline.encrypt_with_password(data, password)
        else:
            token = pipeline.encrypt_with_key(data, key)
    except SymCryptError as e:
        _fail(str(e))
    typer.echo(token)


@app.command(name="decrypt")
def decrypt_cmd(
    token: Annotated[str, typer.Argument(help="Token to decrypt")],
    key: KeyOption = None,
    password: PasswordOption = None,
) -> None:
    """Decrypt a token and print the value as JSON."""
    _require_one(key, password)

    try:
        pipeline = _pipeline()
        if password:
            value = pipeline.decrypt_with_password(token.strip(), password)
        else:
            value = pipeline.decrypt_with_key(token.strip(), key)
    except SymCryptError as e:
        _fail(str(e))
    typer.echo(json.dumps(value, default=repr, ensure_ascii=False))


@app.command(name="inspect")
def inspect_cmd(
    token: Annotated[str, typer.Argument(help="Token to describe")],
) -> None:
    """Show a token's cipher, flags and sizes without decrypting it."""
    try:
        info = _pipeline().inspect(token.strip())
    except SymCryptError as e:
        _fail(str(e))
    typer.echo(json.dumps(info.to_dict(), indent=2))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
