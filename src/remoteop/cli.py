"""remoteop CLI - Main entry point."""

import getpass
import json
import logging
import sys
import uuid
from pathlib import Path
from typing import Callable, Optional, TypeVar

import click
from rich.console import Console
from rich.table import Table

from remoteop import __version__
from remoteop.errors import RemoteOpError
from remoteop.executor import execute_local, execute_with_credential
from remoteop.host_manager import HostManager
from remoteop.models import AUTH_KINDS, CommandResult, Host
from remoteop.remote.base import CommandOperator

console = Console()
error_console = Console(stderr=True)

T = TypeVar("T")

PASSWORD_ENVVAR = "REMOTEOP_PASSWORD"


def get_config_dir() -> Path:
    """Get the configuration directory."""
    config_dir = Path.home() / ".remoteop"
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


class OutputFormatter:
    """Handles output formatting for CLI."""

    def __init__(self, json_output: bool = False):
        self.json_output = json_output

    def print_hosts(self, hosts: list[Host]) -> None:
        """Print hosts in table or JSON format."""
        if self.json_output:
            console.print_json(json.dumps([host.to_dict() for host in hosts]))
            return

        if not hosts:
            console.print("[yellow]No hosts found.[/yellow]")
            return

        table = Table(title="Hosts")
        table.add_column("Name", style="cyan", no_wrap=True)
        table.add_column("Address", style="magenta")
        table.add_column("User", style="green")
        table.add_column("Auth", style="bold")

        for host in hosts:
            table.add_row(
                host.name,
                "—" if host.is_local() else host.address,
                host.username or "—",
                host.auth if host.auth != "key" else f"key ({host.key_file})",
            )

        console.print(table)

    def print_host_detail(self, host: Host) -> None:
        """Print detailed host information."""
        if self.json_output:
            console.print_json(json.dumps(host.to_dict()))
            return

        console.print(f"\n[bold cyan]Host: {host.name}[/bold cyan]")
        console.print(f"  Hostname: {host.hostname or '—'}")
        console.print(f"  Port: {host.port}")
        console.print(f"  User: {host.username or '—'}")
        console.print(f"  Auth: {host.auth}")
        if host.key_file:
            console.print(f"  Key file: {host.key_file}")

    def print_result(self, result: CommandResult) -> None:
        """Print a command result; raw bytes are passed through unchanged."""
        if self.json_output:
            console.print_json(
                json.dumps(
                    {
                        "exit_code": result.exit_code,
                        "stdout": result.stdout_text,
                        "stderr": result.stderr_text,
                    }
                )
            )
            return

        click.echo(result.stdout, nl=False)
        click.echo(result.stderr, nl=False, err=True)

    def print_success(self, message: str) -> None:
        """Print success message."""
        if not self.json_output:
            console.print(f"[green]✓[/green] {message}")

    def print_error(self, message: str) -> None:
        """Print error message."""
        if self.json_output:
            error_console.print_json(json.dumps({"error": message}))
        else:
            error_console.print(f"[red]✗[/red] {message}")

    def print_warning(self, message: str) -> None:
        """Print warning message."""
        if not self.json_output:
            console.print(f"[yellow]![/yellow] {message}")


def run_on_target(
    host_manager: HostManager,
    target: str,
    callback: Callable[[CommandOperator], T],
    password: Optional[str] = None,
) -> T:
    """Run a callback against ``local`` or a named host profile.

    Raises:
        ValueError: If the host profile does not exist.
        RemoteOpError: If authentication, the connection or the work fails.
    """
    if target == "local":
        return execute_local(callback)

    host = host_manager.get_host(target)
    if host is None:
        raise ValueError(f"Host '{target}' not found")
    if host.is_local():
        return execute_local(callback)

    username = host.username or getpass.getuser()
    if host.auth == "password" and password is None:
        password = click.prompt(
            f"Password for {username}@{host.address}", hide_input=True, err=True
        )

    return execute_with_credential(
        host.hostname, host.port, username, host.credential(password), callback
    )


@click.group()
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
@click.option("--config-dir", type=click.Path(), help="Custom configuration directory")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.version_option(version=__version__, prog_name="remoteop")
@click.pass_context
def cli(
    ctx: click.Context, json_output: bool, config_dir: Optional[str], verbose: bool
) -> None:
    """remoteop - run commands and upload files locally or over SSH."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    ctx.ensure_object(dict)
    ctx.obj["formatter"] = OutputFormatter(json_output)
    ctx.obj["config_dir"] = Path(config_dir) if config_dir else get_config_dir()
    ctx.obj["host_manager"] = HostManager(ctx.obj["config_dir"] / "hosts")


# --- Host Commands ---

@cli.group("hosts")
def hosts() -> None:
    """Manage host profiles."""


@hosts.command("list")
@click.option("--auth", type=click.Choice(AUTH_KINDS), help="Filter by auth method")
@click.pass_context
def list_hosts(ctx: click.Context, auth: Optional[str]) -> None:
    """List all host profiles."""
    formatter: OutputFormatter = ctx.obj["formatter"]
    host_manager: HostManager = ctx.obj["host_manager"]

    formatter.print_hosts(host_manager.list_hosts(auth=auth))


@hosts.command("show")
@click.argument("name")
@click.pass_context
def show_host(ctx: click.Context, name: str) -> None:
    """Show details of a host profile."""
    formatter: OutputFormatter = ctx.obj["formatter"]
    host_manager: HostManager = ctx.obj["host_manager"]

    try:
        host = host_manager.get_host(name)
    except ValueError as e:
        formatter.print_error(str(e))
        sys.exit(1)

    if host:
        formatter.print_host_detail(host)
    else:
        formatter.print_error(f"Host '{name}' not found")
        sys.exit(1)


@hosts.command("add")
@click.argument("name")
@click.option("--hostname", "-H", default="", help="Remote hostname or IP address")
@click.option("--port", "-p", type=int, default=22, help="SSH port (default: 22)")
@click.option("--user", "-u", "username", default=None, help="Login name")
@click.option(
    "--auth",
    type=click.Choice(AUTH_KINDS),
    default=None,
    help="Auth method (default: key if --key is given, otherwise agent)",
)
@click.option("--key", "-k", "key_file", default=None, help="Private key file")
@click.pass_context
def add_host(
    ctx: click.Context,
    name: str,
    hostname: str,
    port: int,
    username: Optional[str],
    auth: Optional[str],
    key_file: Optional[str],
) -> None:
    """Add a host profile."""
    formatter: OutputFormatter = ctx.obj["formatter"]
    host_manager: HostManager = ctx.obj["host_manager"]

    if auth is None:
        auth = "key" if key_file else "agent"

    try:
        host = Host(
            name=name,
            hostname=hostname,
            port=port,
            username=username,
            auth=auth,
            key_file=key_file,
        )
        host_manager.create_host(host)
        formatter.print_success(f"Host '{name}' added")
    except ValueError as e:
        formatter.print_error(str(e))
        sys.exit(1)


@hosts.command("remove")
@click.argument("name")
@click.option("--force", "-f", is_flag=True, help="Skip confirmation")
@click.pass_context
def remove_host(ctx: click.Context, name: str, force: bool) -> None:
    """Remove a host profile."""
    formatter: OutputFormatter = ctx.obj["formatter"]
    host_manager: HostManager = ctx.obj["host_manager"]

    try:
        exists = host_manager.has_host(name)
    except ValueError as e:
        formatter.print_error(str(e))
        sys.exit(1)

    if not exists:
        formatter.print_error(f"Host '{name}' not found")
        sys.exit(1)

    if not force:
        if not click.confirm(f"Are you sure you want to remove host '{name}'?"):
            formatter.print_warning("Aborted")
            return

    host_manager.delete_host(name)
    formatter.print_success(f"Host '{name}' removed")


@hosts.command("import")
@click.argument("file", type=click.Path(exists=True))
@click.option("--overwrite", is_flag=True, help="Overwrite existing hosts")
@click.pass_context
def import_hosts(ctx: click.Context, file: str, overwrite: bool) -> None:
    """Import host profiles from a YAML file."""
    formatter: OutputFormatter = ctx.obj["formatter"]
    host_manager: HostManager = ctx.obj["host_manager"]

    try:
        imported = host_manager.import_from_file(Path(file), overwrite=overwrite)
        formatter.print_success(f"Imported {imported} host(s)")
    except (OSError, ValueError, KeyError) as e:
        formatter.print_error(f"Import failed: {e}")
        sys.exit(1)


@hosts.command("export")
@click.argument("file", type=click.Path())
@click.option("--name", "-n", multiple=True, help="Export specific hosts")
@click.pass_context
def export_hosts(ctx: click.Context, file: str, name: tuple[str, ...]) -> None:
    """Export host profiles to a YAML file."""
    formatter: OutputFormatter = ctx.obj["formatter"]
    host_manager: HostManager = ctx.obj["host_manager"]

    try:
        exported = host_manager.export_to_file(Path(file), host_names=list(name) or None)
        formatter.print_success(f"Exported {exported} host(s) to {file}")
    except OSError as e:
        formatter.print_error(f"Export failed: {e}")
        sys.exit(1)


# --- Execution Commands ---

def _run(
    ctx: click.Context,
    target: str,
    callback: Callable[[CommandOperator], T],
    password: Optional[str],
) -> T:
    formatter: OutputFormatter = ctx.obj["formatter"]
    host_manager: HostManager = ctx.obj["host_manager"]

    try:
        return run_on_target(host_manager, target, callback, password=password)
    except (RemoteOpError, ValueError) as e:
        formatter.print_error(str(e))
        sys.exit(1)


password_option = click.option(
    "--password",
    envvar=PASSWORD_ENVVAR,
    default=None,
    help=f"Password for password hosts (or set {PASSWORD_ENVVAR}; prompted otherwise)",
)


@cli.command("exec")
@click.argument("target")
@click.argument("command")
@password_option
@click.pass_context
def exec_command(
    ctx: click.Context, target: str, command: str, password: Optional[str]
) -> None:
    """Execute COMMAND on TARGET (a host profile or 'local')."""
    formatter: OutputFormatter = ctx.obj["formatter"]

    result = _run(ctx, target, lambda op: op.execute(command), password)
    formatter.print_result(result)
    sys.exit(result.exit_code)


@cli.command("upload")
@click.argument("target")
@click.argument("src", type=click.Path(exists=True, dir_okay=False))
@click.argument("dest")
@click.option("--mode", "-m", default="0644", help="Destination permission mode (octal)")
@password_option
@click.pass_context
def upload_file(
    ctx: click.Context,
    target: str,
    src: str,
    dest: str,
    mode: str,
    password: Optional[str],
) -> None:
    """Upload SRC to DEST on TARGET."""
    formatter: OutputFormatter = ctx.obj["formatter"]

    _run(ctx, target, lambda op: op.upload_file(src, dest, mode), password)
    formatter.print_success(f"Uploaded {src} to {target}:{dest}")


@cli.command("run")
@click.argument("target")
@click.argument("script", type=click.Path(exists=True, dir_okay=False))
@click.option("--mode", "-m", default="0755", help="Script permission mode (octal)")
@click.option("--remote-path", default=None, help="Where to place the script on TARGET")
@password_option
@click.pass_context
def run_script(
    ctx: click.Context,
    target: str,
    script: str,
    mode: str,
    remote_path: Optional[str],
    password: Optional[str],
) -> None:
    """Upload SCRIPT to TARGET and execute it."""
    formatter: OutputFormatter = ctx.obj["formatter"]
    dest = remote_path or f"/tmp/{Path(script).name}.{uuid.uuid4().hex[:8]}"

    def upload_and_execute(op: CommandOperator) -> CommandResult:
        op.upload_file(script, dest, mode)
        return op.execute(dest)

    result = _run(ctx, target, upload_and_execute, password)
    formatter.print_result(result)
    sys.exit(result.exit_code)


def main() -> None:
    """Main entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
