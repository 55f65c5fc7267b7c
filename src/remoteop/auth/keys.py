"""Private key loading."""

import io
import os
from typing import Optional

import click
import paramiko

from remoteop.errors import FileAccessError

# Tried in order; each class rejects the formats it does not understand.
KEY_CLASSES = (paramiko.Ed25519Key, paramiko.ECDSAKey, paramiko.RSAKey)


def read_key_file(path: str) -> bytes:
    """Read a private key file, expanding ``~``.

    Raises:
        FileAccessError: If the file cannot be read.
    """
    try:
        with open(os.path.expanduser(path), "rb") as f:
            return f.read()
    except OSError as e:
        raise FileAccessError(f"unable to read private key: {path}: {e}") from e


def load_private_key(data: bytes, passphrase: Optional[str] = None) -> paramiko.PKey:
    """Parse private key material of any supported type.

    Args:
        data: Contents of a PEM or OpenSSH private key file.
        passphrase: Passphrase for encrypted keys.

    Returns:
        The parsed key.

    Raises:
        paramiko.PasswordRequiredException: If the key is encrypted and no
            passphrase was given.
        paramiko.SSHException: If no key class can parse the data.
    """
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise paramiko.SSHException(f"not a text key file: {e}") from e

    encrypted: Optional[paramiko.PasswordRequiredException] = None
    last_error: Optional[Exception] = None
    for key_class in KEY_CLASSES:
        try:
            return key_class.from_private_key(io.StringIO(text), password=passphrase)
        except paramiko.PasswordRequiredException as e:
            encrypted = e
        except Exception as e:
            last_error = e

    if encrypted is not None:
        raise encrypted
    if isinstance(last_error, paramiko.SSHException):
        raise last_error
    raise paramiko.SSHException(f"unsupported private key format: {last_error}") from last_error


def prompt_passphrase(path: str) -> str:
    """Ask for a key passphrase on the terminal without echoing it."""
    return click.prompt(
        f"Enter passphrase for '{path}'",
        hide_input=True,
        default="",
        show_default=False,
    )
