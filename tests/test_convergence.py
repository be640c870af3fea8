"""Tests for the convergence driver."""

import pytest

from reconverge.domain.manifest import TargetKind
from reconverge.exit_codes import NO_MANIFESTS, PERMISSION_ERROR, PreconditionError
from reconverge.services.convergence_service import STAGE_NAMES, ConvergenceDriver


def _driver(context, euid=1000):
    return ConvergenceDriver(context, geteuid=lambda: euid)


class TestPreconditions:

    def test_refuses_to_run_as_root(self, context, runner, write_manifest):
        write_manifest(TargetKind.SYSTEM_PACKAGE, "vim\n")
        with pytest.raises(PreconditionError) as exc_info:
            _driver(context, euid=0).run()
        assert exc_info.value.exit_code == PERMISSION_ERROR
        assert runner.calls == []

    def test_requires_a_manifest(self, context, runner):
        with pytest.raises(PreconditionError) as exc_info:
            _driver(context).run()
        assert exc_info.value.exit_code == NO_MANIFESTS
        assert runner.calls == []

    def test_any_single_manifest_is_enough(self, context, write_manifest):
        write_manifest(TargetKind.RELEASE, "# nothing yet\n")
        _driver(context).check_preconditions()


class TestStageOrdering:

    def test_runs_every_stage_in_order(self, context, write_manifest):
        write_manifest(TargetKind.SYSTEM_PACKAGE, "vim\n")
        report = _driver(context).run()
        assert [s.stage for s in report.stages] == STAGE_NAMES
        assert report.success

    def test_command_order_across_stages(self, context, runner, write_manifest):
        write_manifest(TargetKind.SYSTEM_REPOSITORY, "ppa:x/y\n")
        write_manifest(TargetKind.SYSTEM_PACKAGE, "vim\n")
        write_manifest(TargetKind.SANDBOX_PACKAGE, "code --classic\n")
        write_manifest(TargetKind.LANGUAGE_PACKAGE, "black\n")
        _driver(context).run()

        programs = [argv[0] if argv[0] != "apt-get" else f"apt-get {argv[1]}" for argv in runner.calls]
        assert programs == [
            "apt-get update",
            "apt-get install",
            "dpkg",
            "add-apt-repository",
            "apt-get update",
            "apt-get install",
            "snap",
            "pipx",
            "pipx",
            "apt-get autoremove",
        ]

    def test_failed_stage_does_not_stop_later_stages(self, context, runner, write_manifest):
        write_manifest(TargetKind.SYSTEM_PACKAGE, "vim\n")
        write_manifest(TargetKind.SANDBOX_PACKAGE, "code --classic\n")
        runner.fail_when(lambda argv: argv == ["apt-get", "install", "-y", "vim"], 100)

        report = _driver(context).run()

        system = report.stage("system_packages")
        assert system.error is not None
        assert "100" in system.error
        assert ["snap", "install", "code", "--classic"] in runner.calls
        assert report.stage("cleanup").success
        assert report.failed_stages == [system]

    def test_unexpected_exception_is_contained(self, context, runner, write_manifest):
        write_manifest(TargetKind.RELEASE, "acme/tool\n")
        context.github.get_latest_release.side_effect = RuntimeError("unexpected")

        report = _driver(context).run()

        assert report.stage("releases").error == "unexpected"
        assert ["apt-get", "autoremove", "-y"] in runner.calls

    def test_empty_manifests_skip_their_stages(self, context, runner, write_manifest):
        write_manifest(TargetKind.SYSTEM_PACKAGE, "# nothing\n")
        report = _driver(context).run()
        assert report.stage("system_packages").skipped
        assert report.stage("repositories").skipped
        assert runner.calls_to("snap") == []
        assert runner.calls_to("pipx") == []
        assert runner.calls_to("git") == []
