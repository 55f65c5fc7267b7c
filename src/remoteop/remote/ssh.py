"""SSH command operator."""

import logging
import time
from typing import BinaryIO, Callable, Optional

import paramiko

from remoteop.auth.methods import AuthMethod
from remoteop.errors import ConnectionFailedError, TransportError
from remoteop.models import CommandResult
from remoteop.remote.base import CommandOperator, parse_mode

logger = logging.getLogger(__name__)

ClientFactory = Callable[[], paramiko.SSHClient]

RECV_CHUNK = 32768
POLL_INTERVAL = 0.05


def _drain(channel: paramiko.Channel) -> tuple[bytes, bytes]:
    """Read stdout and stderr from a channel until the command exits.

    Both streams are consumed as data arrives; a stream left unread keeps
    the channel window closed and stalls the remote command.
    """
    out: list[bytes] = []
    err: list[bytes] = []
    while True:
        busy = False
        while channel.recv_ready():
            out.append(channel.recv(RECV_CHUNK))
            busy = True
        while channel.recv_stderr_ready():
            err.append(channel.recv_stderr(RECV_CHUNK))
            busy = True

        finished = channel.exit_status_ready() or channel.closed
        if finished and not channel.recv_ready() and not channel.recv_stderr_ready():
            break
        if not busy:
            time.sleep(POLL_INTERVAL)

    return b"".join(out), b"".join(err)


class SSHOperator(CommandOperator):
    """Executes commands and uploads files over one open SSH connection.

    Host keys are not verified: the client starts with an empty host key
    store and accepts whatever key the server presents.
    """

    def __init__(self, client: paramiko.SSHClient, address: str):
        self._client: Optional[paramiko.SSHClient] = client
        self.address = address

    @classmethod
    def connect(
        cls,
        hostname: str,
        port: int,
        username: str,
        auth: AuthMethod,
        client_factory: ClientFactory = paramiko.SSHClient,
    ) -> "SSHOperator":
        """Open an authenticated connection.

        Args:
            hostname: Remote hostname or IP address.
            port: SSH port.
            username: Login name.
            auth: Resolved authentication method.
            client_factory: Creates the underlying paramiko client.

        Returns:
            An operator bound to the new connection.

        Raises:
            ConnectionFailedError: If dialing, the handshake or authentication fails.
        """
        address = f"{hostname}:{port}"
        client = client_factory()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())

        logger.info("Connecting to %s as %s using %r", address, username, auth)
        try:
            client.connect(
                hostname=hostname,
                port=port,
                username=username,
                auth_strategy=auth.strategy(username),
            )
        except (OSError, paramiko.SSHException) as e:
            client.close()
            raise ConnectionFailedError(f"unable to connect to {address} over ssh: {e}") from e

        return cls(client, address)

    def is_connected(self) -> bool:
        """Check if the SSH transport is still active."""
        if not self._client:
            return False
        transport = self._client.get_transport()
        return transport is not None and transport.is_active()

    def _require_client(self) -> paramiko.SSHClient:
        if self._client is None:
            raise TransportError(f"connection to {self.address} is closed")
        return self._client

    def execute(self, command: str) -> CommandResult:
        """Execute a command on the remote host."""
        client = self._require_client()
        logger.debug("Executing on %s: %s", self.address, command)
        try:
            stdin, stdout, stderr = client.exec_command(command)
            stdin.close()
            channel = stdout.channel
            out, err = _drain(channel)
            exit_code = channel.recv_exit_status()
        except (OSError, paramiko.SSHException) as e:
            raise TransportError(f"unable to execute command on {self.address}: {e}") from e

        return CommandResult(stdout=out, stderr=err, exit_code=exit_code)

    def upload(self, src: BinaryIO, remote_path: str, mode: str) -> None:
        """Upload a byte stream via SFTP and apply its mode."""
        file_mode = parse_mode(mode)
        client = self._require_client()
        logger.debug("Uploading to %s:%s (mode %s)", self.address, remote_path, mode)
        try:
            sftp = client.open_sftp()
        except (OSError, paramiko.SSHException) as e:
            raise TransportError(f"unable to open sftp session on {self.address}: {e}") from e

        try:
            sftp.putfo(src, remote_path)
            sftp.chmod(remote_path, file_mode)
        except (OSError, paramiko.SSHException) as e:
            raise TransportError(f"unable to upload {remote_path} to {self.address}: {e}") from e
        finally:
            sftp.close()

    def close(self) -> None:
        """Close the SSH connection. Errors are logged, not raised."""
        if self._client is None:
            return
        client, self._client = self._client, None
        logger.info("Closing connection to %s", self.address)
        try:
            client.close()
        except Exception as e:
            logger.warning("Error while closing connection to %s: %s", self.address, e)

    def __enter__(self) -> "SSHOperator":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
