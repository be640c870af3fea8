"""Tests for CommandRunner and the package manager backends."""

import sys
from unittest.mock import patch

import pytest

from reconverge.infra.command_runner import CommandRunner, ExternalCommandError, format_argv
from reconverge.infra.package_managers import AptBackend, PipxBackend, SnapBackend


class TestPrivilege:
    """Privilege prefix handling."""

    def test_prefix_added_for_regular_user(self):
        runner = CommandRunner(privilege_command="sudo -n")
        with patch('reconverge.infra.command_runner.os.geteuid', return_value=1000):
            assert runner.privileged_argv(["apt-get", "update"]) == ["sudo", "-n", "apt-get", "update"]

    def test_no_prefix_when_already_root(self):
        runner = CommandRunner(privilege_command="sudo")
        with patch('reconverge.infra.command_runner.os.geteuid', return_value=0):
            assert runner.privileged_argv(["apt-get", "update"]) == ["apt-get", "update"]

    def test_empty_privilege_command(self):
        runner = CommandRunner(privilege_command="")
        assert runner.privileged_argv(["true"]) == ["true"]


class TestExecution:
    """Real process execution."""

    def test_captures_output(self):
        result = CommandRunner().run([sys.executable, "-c", "print('hi')"])
        assert result.ok
        assert result.stdout.strip() == "hi"

    def test_undecodable_output_is_replaced(self):
        result = CommandRunner().run([sys.executable, "-c", "import sys; sys.stdout.buffer.write(b'\\xff\\xfeok')"])
        assert result.stdout.endswith("ok")
        assert "\ufffd" in result.stdout

    def test_nonzero_exit_raises(self):
        with pytest.raises(ExternalCommandError) as exc_info:
            CommandRunner().run([sys.executable, "-c", "import sys; sys.stderr.write('bad thing\\n'); sys.exit(3)"])
        assert exc_info.value.returncode == 3
        assert "bad thing" in str(exc_info.value)

    def test_unchecked_failure_returns_result(self):
        result = CommandRunner().run([sys.executable, "-c", "raise SystemExit(2)"], check=False)
        assert result.returncode == 2
        assert not result.ok

    def test_missing_program(self):
        with pytest.raises(ExternalCommandError) as exc_info:
            CommandRunner().run(["definitely-not-a-real-program-xyz"])
        assert exc_info.value.returncode == 127

    def test_arguments_are_not_shell_interpreted(self, tmp_path):
        result = CommandRunner().run([sys.executable, "-c", "import sys; print(sys.argv[1])", "$HOME; rm -rf x"])
        assert result.stdout.strip() == "$HOME; rm -rf x"

    def test_shell_command_runs_in_cwd(self, tmp_path):
        CommandRunner().run_shell("echo done > marker.txt", cwd=str(tmp_path))
        assert (tmp_path / "marker.txt").read_text().strip() == "done"

    def test_format_argv_quotes(self):
        assert format_argv(["echo", "a b"]) == "echo 'a b'"


class TestBackends:
    """Argument vectors produced by the package manager backends."""

    def test_apt_empty_install_is_noop(self, runner):
        assert AptBackend(runner).install([]) is None
        assert runner.calls == []

    def test_apt_install_file_uses_absolute_path(self, runner, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        AptBackend(runner).install_file("tool.deb")
        assert runner.calls == [["apt-get", "install", "-y", str(tmp_path.resolve() / "tool.deb")]]

    def test_apt_autoremove(self, runner):
        AptBackend(runner).autoremove()
        assert runner.calls == [["apt-get", "autoremove", "-y"]]

    def test_snap_options_are_split(self, runner):
        SnapBackend(runner).install("code", "--classic --channel=stable")
        assert runner.calls == [["snap", "install", "code", "--classic", "--channel=stable"]]

    def test_pipx_is_not_privileged(self):
        runner = CommandRunner(privilege_command="sudo")
        with patch.object(runner, '_execute') as execute, \
                patch('reconverge.infra.command_runner.os.geteuid', return_value=1000):
            PipxBackend(runner).install("black")
        assert execute.call_args[0][0] == ["pipx", "install", "black"]

    def test_snap_is_privileged(self):
        runner = CommandRunner(privilege_command="sudo")
        with patch.object(runner, '_execute') as execute, \
                patch('reconverge.infra.command_runner.os.geteuid', return_value=1000):
            SnapBackend(runner).install("vlc")
        assert execute.call_args[0][0] == ["sudo", "snap", "install", "vlc"]
