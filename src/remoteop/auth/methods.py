"""Resolved authentication methods.

An AuthMethod is what the resolver hands to the connection step. Each one
renders itself as a paramiko ``AuthStrategy`` so ``SSHClient.connect`` can
drive the handshake with it.
"""

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Iterator, Optional, Sequence

import paramiko
from paramiko.auth_strategy import AuthSource, AuthStrategy, InMemoryPrivateKey, Password

if TYPE_CHECKING:
    from remoteop.auth.agent import AgentConnection

logger = logging.getLogger(__name__)


class _FixedSources(AuthStrategy):
    """AuthStrategy over a precomputed list of sources, tried in order."""

    def __init__(self, sources: Sequence[AuthSource]):
        super().__init__(ssh_config=paramiko.SSHConfig())
        self._sources = list(sources)

    def get_sources(self) -> Iterator[AuthSource]:
        yield from self._sources


class AuthMethod(ABC):
    """A ready-to-use authentication capability for one connection attempt."""

    @abstractmethod
    def sources(self, username: str) -> list[AuthSource]:
        """Return the paramiko auth sources to try, in order."""
        pass

    def strategy(self, username: str) -> AuthStrategy:
        return _FixedSources(self.sources(username))

    def close(self) -> None:
        """Release resources held for the handshake. Idempotent."""
        pass

    def __enter__(self) -> "AuthMethod":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class PasswordAuth(AuthMethod):
    """Present a password."""

    def __init__(self, password: str):
        self._password = password

    def sources(self, username: str) -> list[AuthSource]:
        return [Password(username=username, password_getter=lambda: self._password)]

    def __repr__(self) -> str:
        return "PasswordAuth()"


class KeyAuth(AuthMethod):
    """Sign challenges with an in-memory private key."""

    def __init__(self, key: paramiko.PKey):
        self.key = key

    def sources(self, username: str) -> list[AuthSource]:
        return [InMemoryPrivateKey(username=username, pkey=self.key)]

    def __repr__(self) -> str:
        return f"KeyAuth({self.key.get_name()})"


class AgentAuth(AuthMethod):
    """Delegate signing to identities held by an SSH agent.

    The agent connection is owned by this object and closed by ``close()``.
    """

    def __init__(
        self,
        agent: "AgentConnection",
        keys: Optional[Sequence[paramiko.AgentKey]] = None,
    ):
        self.agent = agent
        self.keys = tuple(keys) if keys is not None else tuple(agent.get_keys())
        self._closed = False

    def sources(self, username: str) -> list[AuthSource]:
        return [InMemoryPrivateKey(username=username, pkey=key) for key in self.keys]

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        logger.debug("Closing SSH agent connection")
        self.agent.close()

    def __repr__(self) -> str:
        return f"AgentAuth(identities={len(self.keys)})"
