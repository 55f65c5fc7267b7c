"""Callback-style entry points tying authentication, connection and work together.

Each function hands a CommandOperator to the caller's callback and returns
whatever the callback returns. The operator is only valid for the duration
of the callback; remote connections are closed before the function returns,
whether the callback succeeded or raised.
"""

import logging
from typing import Callable, Optional, TypeVar

import paramiko

from remoteop.auth.agent import connect_agent
from remoteop.auth.keys import prompt_passphrase
from remoteop.auth.methods import AuthMethod
from remoteop.auth.resolver import AgentConnector, PromptFn, resolve_auth
from remoteop.models import (
    AgentCredential,
    Credential,
    PasswordCredential,
    PrivateKeyCredential,
)
from remoteop.remote.base import CommandOperator
from remoteop.remote.local import LocalOperator
from remoteop.remote.ssh import ClientFactory, SSHOperator

logger = logging.getLogger(__name__)

T = TypeVar("T")
Callback = Callable[[CommandOperator], T]


def execute_local(callback: Callback[T]) -> T:
    """Run a callback against the local machine."""
    return callback(LocalOperator())


def execute_remote_with_password(
    host: str,
    port: int,
    user: str,
    password: str,
    callback: Callback[T],
    *,
    client_factory: ClientFactory = paramiko.SSHClient,
) -> T:
    """Run a callback against a remote host, authenticating with a password."""
    return execute_with_credential(
        host, port, user, PasswordCredential(password), callback,
        client_factory=client_factory,
    )


def execute_remote_with_private_key(
    host: str,
    port: int,
    user: str,
    private_key: str,
    callback: Callback[T],
    *,
    passphrase: Optional[str] = None,
    client_factory: ClientFactory = paramiko.SSHClient,
    prompt: PromptFn = prompt_passphrase,
    agent_connector: AgentConnector = connect_agent,
) -> T:
    """Run a callback against a remote host, authenticating with a private key.

    Encrypted keys are matched against the SSH agent first; the passphrase
    is only asked for when the agent does not hold the key.
    """
    return execute_with_credential(
        host, port, user, PrivateKeyCredential(private_key, passphrase), callback,
        client_factory=client_factory,
        prompt=prompt,
        agent_connector=agent_connector,
    )


def execute_remote(
    host: str,
    port: int,
    user: str,
    callback: Callback[T],
    *,
    client_factory: ClientFactory = paramiko.SSHClient,
    agent_connector: AgentConnector = connect_agent,
) -> T:
    """Run a callback against a remote host using every identity in the SSH agent."""
    return execute_with_credential(
        host, port, user, AgentCredential(), callback,
        client_factory=client_factory,
        agent_connector=agent_connector,
    )


def execute_with_credential(
    host: str,
    port: int,
    user: str,
    credential: Credential,
    callback: Callback[T],
    *,
    client_factory: ClientFactory = paramiko.SSHClient,
    prompt: PromptFn = prompt_passphrase,
    agent_connector: AgentConnector = connect_agent,
) -> T:
    """Resolve a credential, connect, and run a callback on the connection.

    Raises:
        RemoteOpError: If authentication or the connection fails.
        Exception: Whatever the callback raises, unchanged.
    """
    auth = resolve_auth(credential, prompt=prompt, agent_connector=agent_connector)
    return _execute_remote(host, port, user, auth, callback, client_factory)


def _execute_remote(
    host: str,
    port: int,
    user: str,
    auth: AuthMethod,
    callback: Callback[T],
    client_factory: ClientFactory,
) -> T:
    with auth:
        operator = SSHOperator.connect(host, port, user, auth, client_factory=client_factory)

    logger.debug("Running callback against %s", operator.address)
    try:
        return callback(operator)
    finally:
        operator.close()
