"""SSH agent access."""

import logging
import os
import socket
from typing import Callable, Mapping, Optional

import paramiko
from paramiko.agent import AgentSSH
from paramiko.pkey import PublicBlob

from remoteop.auth.methods import AgentAuth
from remoteop.errors import AgentUnavailableError

logger = logging.getLogger(__name__)

SSH_AUTH_SOCK = "SSH_AUTH_SOCK"
PUBLIC_KEY_SUFFIX = ".pub"


class AgentConnection(AgentSSH):
    """paramiko agent client speaking over an already connected socket."""

    def __init__(self, sock: socket.socket):
        AgentSSH.__init__(self)
        self._connect(sock)


def connect_agent(environ: Optional[Mapping[str, str]] = None) -> AgentConnection:
    """Open a connection to the agent named by SSH_AUTH_SOCK.

    Args:
        environ: Environment to read the socket path from (default: os.environ).

    Returns:
        A connected agent client. The caller must close it.

    Raises:
        AgentUnavailableError: If the variable is unset or the socket is unreachable.
    """
    environ = os.environ if environ is None else environ
    path = environ.get(SSH_AUTH_SOCK)
    if not path:
        raise AgentUnavailableError(f"unable to reach SSH agent: {SSH_AUTH_SOCK} is not set")

    sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    try:
        sock.connect(path)
        agent = AgentConnection(sock)
    except (OSError, paramiko.SSHException) as e:
        sock.close()
        raise AgentUnavailableError(f"unable to reach SSH agent at {path}: {e}") from e

    logger.debug("Connected to SSH agent at %s (%d identities)", path, len(agent.get_keys()))
    return agent


def read_public_key_blob(path: str) -> bytes:
    """Read a public key in authorized-key format and return its wire blob."""
    with open(os.path.expanduser(path), "r") as f:
        blob = PublicBlob.from_string(f.read().strip())
    return blob.key_blob


def find_agent_identity(
    public_key_path: str,
    agent_connector: Callable[[], AgentConnection] = connect_agent,
) -> Optional[AgentAuth]:
    """Look for an agent identity matching a public key file.

    Any failure along the way (agent unreachable, no identities, unreadable
    or malformed public key) counts as "no match".

    Args:
        public_key_path: Path to the ``.pub`` companion of a private key.
        agent_connector: Callable opening the agent connection.

    Returns:
        An AgentAuth owning the agent connection if an identity matched,
        otherwise None. On None the agent connection is already closed.
    """
    try:
        agent = agent_connector()
    except AgentUnavailableError as e:
        logger.debug("Agent probe skipped: %s", e)
        return None

    matched = None
    try:
        keys = agent.get_keys()
        if not keys:
            logger.debug("Agent probe: agent holds no identities")
            return None

        expected = read_public_key_blob(public_key_path)
        for key in keys:
            if key.blob == expected:
                matched = AgentAuth(agent, keys=[key])
                logger.debug("Agent probe: identity for %s is loaded", public_key_path)
                return matched

        logger.debug("Agent probe: no identity matches %s", public_key_path)
        return None
    except (OSError, ValueError, paramiko.SSHException) as e:
        logger.debug("Agent probe for %s failed: %s", public_key_path, e)
        return None
    finally:
        if matched is None:
            agent.close()
