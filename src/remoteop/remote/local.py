"""Local command operator."""

import logging
import os
import shutil
import subprocess
import sys
from typing import BinaryIO

from remoteop.errors import TransportError
from remoteop.models import CommandResult
from remoteop.remote.base import CommandOperator, parse_mode

logger = logging.getLogger(__name__)


class LocalOperator(CommandOperator):
    """Executes commands and writes files on the local machine."""

    def execute(self, command: str) -> CommandResult:
        """Execute a command locally through the platform shell."""
        if sys.platform == "win32":
            shell_cmd = ["cmd", "/c", command]
        else:
            shell_cmd = ["/bin/sh", "-c", command]

        logger.debug("Executing locally: %s", command)
        try:
            result = subprocess.run(
                shell_cmd,
                stdin=subprocess.DEVNULL,
                capture_output=True,
            )
        except OSError as e:
            raise TransportError(f"unable to execute command locally: {e}") from e

        return CommandResult(
            stdout=result.stdout,
            stderr=result.stderr,
            exit_code=result.returncode,
        )

    def upload(self, src: BinaryIO, remote_path: str, mode: str) -> None:
        """Copy a byte stream to a local path and apply its mode."""
        file_mode = parse_mode(mode)
        logger.debug("Writing %s (mode %s)", remote_path, mode)
        try:
            with open(remote_path, "wb") as dst:
                shutil.copyfileobj(src, dst)
            os.chmod(remote_path, file_mode)
        except OSError as e:
            raise TransportError(f"unable to write {remote_path}: {e}") from e
