"""Host profile management."""

from pathlib import Path
from typing import Any, Optional

import yaml

from remoteop.models import HOST_NAME_PATTERN, Host


class HostManager:
    """Manages host profiles stored as YAML files."""

    def __init__(self, hosts_dir: Path):
        """Initialize the host manager.

        Args:
            hosts_dir: Directory where host files are stored.
        """
        self.hosts_dir = hosts_dir
        self.hosts_dir.mkdir(parents=True, exist_ok=True)

    def _host_file(self, name: str) -> Path:
        """Get the file path for a host.

        Raises:
            ValueError: If the name is not a valid host name.
        """
        if not HOST_NAME_PATTERN.fullmatch(name):
            raise ValueError(f"Invalid host name '{name}'")
        return self.hosts_dir / f"{name}.yaml"

    def _write(self, host: Host) -> None:
        with open(self._host_file(host.name), "w") as f:
            yaml.safe_dump(host.to_dict(), f, default_flow_style=False, sort_keys=False)

    def has_host(self, name: str) -> bool:
        """Check whether a host file exists, without parsing it."""
        return self._host_file(name).exists()

    def get_host(self, name: str) -> Optional[Host]:
        """Get a host by name.

        Args:
            name: The host name.

        Returns:
            The host if found, None otherwise.

        Raises:
            ValueError: If the name is invalid or the host file is malformed.
        """
        host_file = self._host_file(name)
        if not host_file.exists():
            return None

        with open(host_file, "r") as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ValueError(f"Host file for '{name}' is not valid YAML: {e}") from e

        if not isinstance(data, dict) or "name" not in data:
            raise ValueError(f"Host file for '{name}' is not a host profile")
        return Host.from_dict(data)

    def list_hosts(self, auth: Optional[str] = None) -> list[Host]:
        """List all hosts, optionally filtered by auth method.

        Unreadable or invalid host files are skipped.
        """
        hosts = []
        for host_file in self.hosts_dir.glob("*.yaml"):
            try:
                with open(host_file, "r") as f:
                    data = yaml.safe_load(f)
                if isinstance(data, dict):
                    hosts.append(Host.from_dict(data))
            except (OSError, yaml.YAMLError, KeyError, ValueError):
                continue

        if auth is not None:
            hosts = [h for h in hosts if h.auth == auth]

        return sorted(hosts, key=lambda h: h.name)

    def create_host(self, host: Host) -> Host:
        """Create a new host.

        Raises:
            ValueError: If a host with the same name already exists.
        """
        if self.has_host(host.name):
            raise ValueError(f"Host '{host.name}' already exists")

        self._write(host)
        return host

    def update_host(self, name: str, **kwargs: Any) -> Host:
        """Update an existing host.

        Args:
            name: The host name.
            **kwargs: Fields to update.

        Returns:
            The updated host.

        Raises:
            ValueError: If the host doesn't exist or the update is invalid.
        """
        host = self.get_host(name)
        if not host:
            raise ValueError(f"Host '{name}' not found")

        data = host.to_dict()
        data.update({k: v for k, v in kwargs.items() if k != "name"})
        updated = Host.from_dict(data)

        self._write(updated)
        return updated

    def delete_host(self, name: str) -> bool:
        """Delete a host.

        Returns:
            True if deleted, False if not found.
        """
        host_file = self._host_file(name)
        if host_file.exists():
            host_file.unlink()
            return True
        return False

    def import_from_file(self, file_path: Path, overwrite: bool = False) -> int:
        """Import hosts from a YAML file.

        Args:
            file_path: Path to the YAML file (a single mapping or a list).
            overwrite: Whether to overwrite existing hosts.

        Returns:
            Number of hosts imported.
        """
        with open(file_path, "r") as f:
            data = yaml.safe_load(f)

        if not data:
            return 0

        hosts_data = data if isinstance(data, list) else [data]
        imported = 0

        for host_data in hosts_data:
            if not isinstance(host_data, dict):
                continue

            host = Host.from_dict(host_data)
            if self.has_host(host.name) and not overwrite:
                continue

            self._write(host)
            imported += 1

        return imported

    def export_to_file(self, file_path: Path, host_names: Optional[list[str]] = None) -> int:
        """Export hosts to a YAML file.

        Args:
            file_path: Path to the output file.
            host_names: Specific hosts to export (None for all).

        Returns:
            Number of hosts exported.
        """
        if host_names:
            hosts = [self.get_host(name) for name in host_names]
            hosts = [h for h in hosts if h is not None]
        else:
            hosts = self.list_hosts()

        if not hosts:
            return 0

        with open(file_path, "w") as f:
            yaml.safe_dump(
                [host.to_dict() for host in hosts], f, default_flow_style=False, sort_keys=False
            )

        return len(hosts)
