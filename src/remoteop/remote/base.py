"""Base command operator interface."""

import os
from abc import ABC, abstractmethod
from typing import BinaryIO

from remoteop.errors import FileAccessError
from remoteop.models import CommandResult


def parse_mode(mode: str) -> int:
    """Parse an octal permission string such as ``"0755"``.

    Raises:
        ValueError: If the string is not a valid octal permission mode.
    """
    try:
        value = int(mode, 8)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid file mode '{mode}': expected an octal string like 0644")
    if not 0 <= value <= 0o7777:
        raise ValueError(f"Invalid file mode '{mode}': out of range")
    return value


class CommandOperator(ABC):
    """Capability set shared by the local and remote backends."""

    @abstractmethod
    def execute(self, command: str) -> CommandResult:
        """Execute a shell command and capture its output.

        A non-zero exit status is reported through the result, not raised.

        Args:
            command: Command to execute.

        Returns:
            CommandResult with stdout/stderr bytes and exit code.

        Raises:
            TransportError: If the command could not be run at all.
        """
        pass

    @abstractmethod
    def upload(self, src: BinaryIO, remote_path: str, mode: str) -> None:
        """Write a byte stream to a path on the target.

        Args:
            src: Readable binary stream.
            remote_path: Destination path on the target.
            mode: Octal permission string applied to the destination.

        Raises:
            TransportError: If the destination cannot be written.
        """
        pass

    def upload_file(self, path: str, remote_path: str, mode: str) -> None:
        """Upload a local file to a path on the target.

        Args:
            path: Local file path (``~`` is expanded).
            remote_path: Destination path on the target.
            mode: Octal permission string applied to the destination.

        Raises:
            FileAccessError: If the local file cannot be opened.
            TransportError: If the destination cannot be written.
        """
        parse_mode(mode)
        local_path = os.path.expanduser(path)
        try:
            src = open(local_path, "rb")
        except OSError as e:
            raise FileAccessError(f"unable to open {path} for upload: {e}") from e
        with src:
            self.upload(src, remote_path, mode)
