"""Tests for CLI commands."""

import json
import sys

import pytest
from click.testing import CliRunner
from pathlib import Path
import tempfile
from unittest.mock import patch

from remoteop.cli import cli
from remoteop.errors import ConnectionFailedError
from remoteop.models import AgentCredential, CommandResult, PasswordCredential

unix_only = pytest.mark.skipif(sys.platform == "win32", reason="Unix-specific test")


@pytest.fixture
def runner():
    """Create a CLI test runner."""
    return CliRunner()


@pytest.fixture
def temp_config_dir():
    """Create a temporary config directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


class TestHostCommands:
    """Tests for the hosts command group."""

    def test_version(self, runner):
        """Test version command."""
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "remoteop" in result.output.lower()

    def test_list_empty(self, runner, temp_config_dir):
        """Test listing with no hosts."""
        result = runner.invoke(cli, ["--config-dir", temp_config_dir, "hosts", "list"])
        assert result.exit_code == 0
        assert "No hosts found" in result.output

    def test_add_and_list(self, runner, temp_config_dir):
        """Test adding and listing a host."""
        result = runner.invoke(
            cli,
            [
                "--config-dir", temp_config_dir,
                "hosts", "add", "web01",
                "--hostname", "10.0.0.5",
                "--user", "deploy",
            ],
        )
        assert result.exit_code == 0
        assert "Host 'web01' added" in result.output

        result = runner.invoke(cli, ["--config-dir", temp_config_dir, "hosts", "list"])
        assert result.exit_code == 0
        assert "web01" in result.output

    def test_add_with_key_defaults_to_key_auth(self, runner, temp_config_dir):
        """Test that giving a key selects key authentication."""
        runner.invoke(
            cli,
            [
                "--config-dir", temp_config_dir,
                "hosts", "add", "db01",
                "-H", "db.example.com",
                "-k", "~/.ssh/deploy",
            ],
        )

        result = runner.invoke(
            cli, ["--json", "--config-dir", temp_config_dir, "hosts", "show", "db01"]
        )
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["auth"] == "key"
        assert data["key_file"] == "~/.ssh/deploy"

    def test_add_key_auth_without_key(self, runner, temp_config_dir):
        """Test that key hosts need a key file."""
        result = runner.invoke(
            cli,
            [
                "--config-dir", temp_config_dir,
                "hosts", "add", "db01",
                "-H", "db.example.com",
                "--auth", "key",
            ],
        )
        assert result.exit_code == 1
        assert "key file" in result.output

    def test_show_nonexistent_host(self, runner, temp_config_dir):
        """Test showing a host that doesn't exist."""
        result = runner.invoke(
            cli, ["--config-dir", temp_config_dir, "hosts", "show", "nonexistent"]
        )
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_remove_host(self, runner, temp_config_dir):
        """Test removing a host."""
        runner.invoke(
            cli, ["--config-dir", temp_config_dir, "hosts", "add", "web01", "-H", "a"]
        )

        result = runner.invoke(
            cli, ["--config-dir", temp_config_dir, "hosts", "remove", "web01", "--force"]
        )
        assert result.exit_code == 0
        assert "Host 'web01' removed" in result.output

    def test_show_empty_profile(self, runner, temp_config_dir):
        """Test that an empty profile file is an error, not a crash."""
        hosts_dir = Path(temp_config_dir) / "hosts"
        hosts_dir.mkdir()
        (hosts_dir / "web01.yaml").write_text("")

        result = runner.invoke(cli, ["--config-dir", temp_config_dir, "hosts", "show", "web01"])
        assert result.exit_code == 1
        assert "not a host profile" in result.output

    def test_remove_broken_profile(self, runner, temp_config_dir):
        """Test that an unreadable profile can still be removed."""
        hosts_dir = Path(temp_config_dir) / "hosts"
        hosts_dir.mkdir()
        (hosts_dir / "web01.yaml").write_text("- nonsense\n")

        result = runner.invoke(
            cli, ["--config-dir", temp_config_dir, "hosts", "remove", "web01", "--force"]
        )
        assert result.exit_code == 0
        assert not (hosts_dir / "web01.yaml").exists()

    def test_json_output(self, runner, temp_config_dir):
        """Test JSON output format."""
        runner.invoke(
            cli, ["--config-dir", temp_config_dir, "hosts", "add", "web01", "-H", "a"]
        )

        result = runner.invoke(
            cli, ["--json", "--config-dir", temp_config_dir, "hosts", "list"]
        )
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert [h["name"] for h in data] == ["web01"]

    def test_import_export(self, runner, temp_config_dir):
        """Test import and export functionality."""
        runner.invoke(
            cli, ["--config-dir", temp_config_dir, "hosts", "add", "web01", "-H", "a"]
        )
        export_file = str(Path(temp_config_dir) / "export.yaml")

        result = runner.invoke(
            cli, ["--config-dir", temp_config_dir, "hosts", "export", export_file]
        )
        assert result.exit_code == 0
        assert "Exported 1 host" in result.output

        with tempfile.TemporaryDirectory() as new_config:
            result = runner.invoke(
                cli, ["--config-dir", new_config, "hosts", "import", export_file]
            )
            assert result.exit_code == 0
            assert "Imported 1 host" in result.output


class TestExecutionCommands:
    """Tests for exec, upload and run."""

    @unix_only
    def test_exec_local(self, runner, temp_config_dir):
        """Test running a command on this machine."""
        result = runner.invoke(
            cli, ["--config-dir", temp_config_dir, "exec", "local", "echo hello"]
        )
        assert result.exit_code == 0
        assert "hello" in result.output

    @unix_only
    def test_exec_propagates_exit_code(self, runner, temp_config_dir):
        """Test that the command's exit code becomes the CLI's."""
        result = runner.invoke(cli, ["--config-dir", temp_config_dir, "exec", "local", "exit 3"])
        assert result.exit_code == 3

    @unix_only
    def test_exec_json(self, runner, temp_config_dir):
        """Test JSON output for a command result."""
        result = runner.invoke(
            cli, ["--json", "--config-dir", temp_config_dir, "exec", "local", "echo hello"]
        )
        data = json.loads(result.output)
        assert data == {"exit_code": 0, "stdout": "hello\n", "stderr": ""}

    def test_exec_unknown_host(self, runner, temp_config_dir):
        """Test targeting a host that doesn't exist."""
        result = runner.invoke(
            cli, ["--config-dir", temp_config_dir, "exec", "nowhere", "uptime"]
        )
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_exec_empty_profile(self, runner, temp_config_dir):
        """Test that an empty profile file is reported and exits 1."""
        hosts_dir = Path(temp_config_dir) / "hosts"
        hosts_dir.mkdir()
        (hosts_dir / "web01.yaml").write_text("")

        result = runner.invoke(cli, ["--config-dir", temp_config_dir, "exec", "web01", "true"])
        assert result.exit_code == 1
        assert result.exception is None or isinstance(result.exception, SystemExit)
        assert "not a host profile" in result.output

    def test_exec_rejects_path_target(self, runner, temp_config_dir):
        """Test that a target cannot name a file outside the hosts directory."""
        (Path(temp_config_dir) / "outside.yaml").write_text("name: outside\nhostname: x\n")

        result = runner.invoke(
            cli, ["--config-dir", temp_config_dir, "exec", "../outside", "true"]
        )
        assert result.exit_code == 1
        assert "Invalid host name" in result.output

    @unix_only
    def test_upload_local(self, runner, temp_config_dir):
        """Test uploading a file on this machine."""
        src = Path(temp_config_dir) / "src.txt"
        src.write_text("payload")
        dest = Path(temp_config_dir) / "dest.txt"

        result = runner.invoke(
            cli,
            ["--config-dir", temp_config_dir, "upload", "local", str(src), str(dest), "-m", "0600"],
        )
        assert result.exit_code == 0
        assert "Uploaded" in result.output
        assert dest.read_text() == "payload"

    @unix_only
    def test_run_local_script(self, runner, temp_config_dir):
        """Test uploading and running a script on this machine."""
        script = Path(temp_config_dir) / "hello.sh"
        script.write_text("#!/bin/sh\necho from-script\n")
        dest = Path(temp_config_dir) / "hello.run"

        result = runner.invoke(
            cli,
            [
                "--config-dir", temp_config_dir,
                "run", "local", str(script),
                "--remote-path", str(dest),
            ],
        )
        assert result.exit_code == 0
        assert "from-script" in result.output
        assert dest.exists()

    def test_password_host_uses_envvar(self, runner, temp_config_dir):
        """Test that password hosts read the password from the environment."""
        runner.invoke(
            cli,
            [
                "--config-dir", temp_config_dir,
                "hosts", "add", "db01",
                "-H", "db.example.com", "-p", "2222", "-u", "deploy",
                "--auth", "password",
            ],
        )

        with patch(
            "remoteop.cli.execute_with_credential",
            return_value=CommandResult(b"ok\n", b"", 0),
        ) as execute:
            result = runner.invoke(
                cli,
                ["--config-dir", temp_config_dir, "exec", "db01", "uptime"],
                env={"REMOTEOP_PASSWORD": "hunter2"},
            )

        assert result.exit_code == 0
        assert "ok" in result.output
        args = execute.call_args[0]
        assert args[:4] == ("db.example.com", 2222, "deploy", PasswordCredential("hunter2"))

    def test_agent_host(self, runner, temp_config_dir):
        """Test that agent hosts pass an agent credential."""
        runner.invoke(
            cli,
            ["--config-dir", temp_config_dir, "hosts", "add", "web01", "-H", "a", "-u", "ops"],
        )

        with patch(
            "remoteop.cli.execute_with_credential",
            return_value=CommandResult(b"", b"", 0),
        ) as execute:
            runner.invoke(cli, ["--config-dir", temp_config_dir, "exec", "web01", "true"])

        assert execute.call_args[0][3] == AgentCredential()

    def test_connection_failure_exits_nonzero(self, runner, temp_config_dir):
        """Test that operator errors are reported and exit 1."""
        runner.invoke(
            cli, ["--config-dir", temp_config_dir, "hosts", "add", "web01", "-H", "a"]
        )

        with patch(
            "remoteop.cli.execute_with_credential",
            side_effect=ConnectionFailedError("unable to connect to a:22 over ssh: refused"),
        ):
            result = runner.invoke(
                cli, ["--config-dir", temp_config_dir, "exec", "web01", "true"]
            )

        assert result.exit_code == 1
        assert "unable to connect" in result.output
