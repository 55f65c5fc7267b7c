"""Execution backends: the local machine and SSH connections."""

from remoteop.remote.base import CommandOperator, parse_mode
from remoteop.remote.ssh import SSHOperator
from remoteop.remote.local import LocalOperator

__all__ = [
    "CommandOperator",
    "SSHOperator",
    "LocalOperator",
    "parse_mode",
]
