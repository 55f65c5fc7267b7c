"""remoteop data models."""

import re
from dataclasses import dataclass
from typing import Any, Optional, Union


@dataclass(frozen=True)
class CommandResult:
    """Captured output of one command execution.

    Output is kept as raw bytes; decoding is left to the caller.
    """

    stdout: bytes
    stderr: bytes
    exit_code: int = 0

    @property
    def ok(self) -> bool:
        """True if the command exited with status zero."""
        return self.exit_code == 0

    @property
    def stdout_text(self) -> str:
        return self.stdout.decode("utf-8", errors="replace")

    @property
    def stderr_text(self) -> str:
        return self.stderr.decode("utf-8", errors="replace")


@dataclass(frozen=True)
class PasswordCredential:
    """Authenticate with a plain password."""

    password: str

    def __repr__(self) -> str:
        return "PasswordCredential(password='***')"


@dataclass(frozen=True)
class PrivateKeyCredential:
    """Authenticate with a private key file.

    When ``passphrase`` is None and the key turns out to be encrypted, the
    SSH agent is consulted first and the user is prompted as a last resort.
    """

    path: str
    passphrase: Optional[str] = None

    def __repr__(self) -> str:
        masked = "'***'" if self.passphrase is not None else "None"
        return f"PrivateKeyCredential(path={self.path!r}, passphrase={masked})"


@dataclass(frozen=True)
class AgentCredential:
    """Delegate authentication to the agent reachable through SSH_AUTH_SOCK."""


Credential = Union[PasswordCredential, PrivateKeyCredential, AgentCredential]


AUTH_KINDS = ("local", "password", "key", "agent")

HOST_NAME_PATTERN = re.compile(r"[a-zA-Z0-9_-]+")


@dataclass
class Host:
    """A named connection profile."""

    name: str
    hostname: str
    port: int = 22
    username: Optional[str] = None
    auth: str = "agent"
    key_file: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate host configuration."""
        if not self.name:
            raise ValueError("Host name is required")
        if not HOST_NAME_PATTERN.fullmatch(self.name):
            raise ValueError(
                "Host name must contain only alphanumeric characters, dashes, and underscores"
            )
        if self.auth not in AUTH_KINDS:
            raise ValueError(
                f"Unknown auth method '{self.auth}' (expected one of: {', '.join(AUTH_KINDS)})"
            )
        if self.auth != "local" and not self.hostname:
            raise ValueError("Hostname is required")
        if not 1 <= int(self.port) <= 65535:
            raise ValueError(f"Port out of range: {self.port}")
        if self.auth == "key" and not self.key_file:
            raise ValueError("Key authentication requires a key file")

    def is_local(self) -> bool:
        """Check if this host represents the local machine."""
        return self.name == "local" or self.auth == "local"

    @property
    def address(self) -> str:
        return f"{self.hostname}:{self.port}"

    def credential(self, password: Optional[str] = None) -> Credential:
        """Build the credential matching this profile's auth method.

        Args:
            password: Password for ``password`` hosts; never stored.

        Returns:
            The credential to resolve.

        Raises:
            ValueError: If the profile is local or a password is missing.
        """
        if self.auth == "password":
            if password is None:
                raise ValueError(f"Host '{self.name}' requires a password")
            return PasswordCredential(password)
        if self.auth == "key":
            return PrivateKeyCredential(self.key_file)  # type: ignore[arg-type]
        if self.auth == "agent":
            return AgentCredential()
        raise ValueError(f"Host '{self.name}' is local and has no credential")

    def to_dict(self) -> dict[str, Any]:
        """Convert host to dictionary."""
        data: dict[str, Any] = {
            "name": self.name,
            "hostname": self.hostname,
            "port": self.port,
            "username": self.username,
            "auth": self.auth,
        }
        if self.key_file:
            data["key_file"] = self.key_file
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Host":
        """Create host from dictionary."""
        return cls(
            name=data["name"],
            hostname=data.get("hostname", ""),
            port=int(data.get("port", 22)),
            username=data.get("username"),
            auth=data.get("auth", "agent"),
            key_file=data.get("key_file"),
        )
