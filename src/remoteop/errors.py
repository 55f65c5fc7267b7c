"""Exceptions raised by remoteop."""


class RemoteOpError(Exception):
    """Base class for every error raised by remoteop itself.

    Exceptions raised by user callbacks are never wrapped in this type.
    """


class FileAccessError(RemoteOpError):
    """A local file (private key, public key, upload source) is unreadable."""


class KeyParseError(RemoteOpError):
    """A private key is malformed, unsupported, or the passphrase is wrong."""


class AgentUnavailableError(RemoteOpError):
    """The SSH agent named by SSH_AUTH_SOCK cannot be reached."""


class ConnectionFailedError(RemoteOpError):
    """Dialing, handshaking or authenticating against a remote host failed."""


class TransportError(RemoteOpError):
    """Executing a command or transferring a file failed below the command level."""
