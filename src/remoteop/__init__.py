"""remoteop - run commands and upload files locally or over SSH."""

from remoteop.errors import (
    AgentUnavailableError,
    ConnectionFailedError,
    FileAccessError,
    KeyParseError,
    RemoteOpError,
    TransportError,
)
from remoteop.executor import (
    execute_local,
    execute_remote,
    execute_remote_with_password,
    execute_remote_with_private_key,
    execute_with_credential,
)
from remoteop.models import (
    AgentCredential,
    CommandResult,
    PasswordCredential,
    PrivateKeyCredential,
)
from remoteop.remote import CommandOperator, LocalOperator, SSHOperator

__version__ = "0.1.0"

__all__ = [
    "AgentCredential",
    "AgentUnavailableError",
    "CommandOperator",
    "CommandResult",
    "ConnectionFailedError",
    "FileAccessError",
    "KeyParseError",
    "LocalOperator",
    "PasswordCredential",
    "PrivateKeyCredential",
    "RemoteOpError",
    "SSHOperator",
    "TransportError",
    "execute_local",
    "execute_remote",
    "execute_remote_with_password",
    "execute_remote_with_private_key",
    "execute_with_credential",
]
