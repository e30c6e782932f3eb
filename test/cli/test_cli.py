import os

import pytest
from click.testing import CliRunner

from evm.__main__ import cli


@pytest.fixture
def runner():
    return CliRunner()


def test_help(runner):
    result = runner.invoke(cli, ["-h"])
    assert result.exit_code == 0
    assert "install" in result.output

    result = runner.invoke(cli, ["help"])
    assert result.exit_code == 0
    assert "plugin" in result.output


def test_tool_version(runner):
    result = runner.invoke(cli, ["-V"])
    assert result.exit_code == 0
    assert "Elasticsearch Version Manager" in result.output


def test_list_empty(runner):
    result = runner.invoke(cli, ["list"])
    assert result.exit_code == 0
    assert "No versions installed." in result.output


def test_list_marks_active(runner, make_installed, activate):
    for version in ("5.3.1", "5.2.0", "6.0.0"):
        make_installed(version)
    activate("5.3.1")

    result = runner.invoke(cli, ["list"])

    assert result.exit_code == 0
    lines = [line.strip() for line in result.output.splitlines() if line.strip()]
    assert lines == ["6.0.0", "* 5.3.1", "5.2.0"]


def test_use_and_version(runner, make_installed, evm_home):
    make_installed("6.2.0")

    result = runner.invoke(cli, ["use", "6.2.0"])
    assert result.exit_code == 0
    assert os.readlink(evm_home / "elasticsearch") == "elasticsearch-6.2.0"

    result = runner.invoke(cli, ["version"])
    assert result.exit_code == 0
    assert result.output.strip() == "6.2.0"


def test_version_without_active(runner):
    result = runner.invoke(cli, ["version"])
    assert result.exit_code == 0
    assert "No active version." in result.output


def test_use_not_installed(runner):
    result = runner.invoke(cli, ["use", "6.2.0"])
    assert result.exit_code == 4
    assert "not installed" in result.output


def test_use_without_version_non_interactive(runner):
    result = runner.invoke(cli, ["use"])
    assert result.exit_code == 2


def test_invalid_version(runner):
    result = runner.invoke(cli, ["use", "v5.3.1"])
    assert result.exit_code == 3


def test_remove_active_version(runner, make_installed, activate):
    make_installed("6.2.0")
    activate("6.2.0")

    result = runner.invoke(cli, ["remove", "6.2.0"])

    assert result.exit_code == 6
    assert "in use" in result.output


def test_extraneous_arguments_rejected(runner, make_installed):
    make_installed("6.2.0")
    for args in (["remove", "6.2.0", "extra"], ["list", "extra"], ["stop", "now"]):
        result = runner.invoke(cli, args)
        assert result.exit_code == 2, args


def test_which(runner, make_installed, activate, evm_home):
    make_installed("6.2.0")
    activate("6.2.0")

    result = runner.invoke(cli, ["which"])
    assert result.exit_code == 0
    assert result.output.strip() == str(evm_home / "elasticsearch-6.2.0")

    result = runner.invoke(cli, ["which", "7.0.0"])
    assert result.exit_code == 0
    assert "Not found" in result.output


def test_install(runner, mocker, evm_home):
    def fake_install(self):
        os.makedirs(self.install_dir)
        return self.install_dir

    mocker.patch("evm.core.downloader.ReleaseDownloader.install", fake_install)

    result = runner.invoke(cli, ["install", "6.2.0"])

    assert result.exit_code == 0
    assert "Now using 6.2.0" in result.output
    assert (evm_home / "elasticsearch-6.2.0").is_dir()

    result = runner.invoke(cli, ["install", "6.2.0"])
    assert result.exit_code == 5


def test_start_without_active_version(runner, make_installed):
    make_installed("6.2.0")
    result = runner.invoke(cli, ["start"])
    assert result.exit_code == 9


def test_start_with_config_path(runner, make_installed, activate, mocker, tmp_path):
    make_installed("2.4.6", plugin_executables=("plugin",))
    activate("2.4.6")
    launch = mocker.patch("evm.core.server.system_process.launch_detached_process")
    mocker.patch("evm.core.server.system_process.wait_for_pid_file", return_value=99)
    config_dir = tmp_path / "conf"
    config_dir.mkdir()

    result = runner.invoke(cli, ["start", "--config-path", str(config_dir)])

    assert result.exit_code == 0
    assert "PID 99" in result.output
    assert launch.call_args.args[0][-1] == f"--path.conf={config_dir}"


def test_start_with_missing_config_path(runner, make_installed, activate, tmp_path):
    make_installed("6.2.0")
    activate("6.2.0")
    result = runner.invoke(cli, ["start", "-c", str(tmp_path / "nope")])
    assert result.exit_code == 10


def test_stop_and_status_when_not_running(runner):
    result = runner.invoke(cli, ["stop"])
    assert result.exit_code == 8

    result = runner.invoke(cli, ["status"])
    assert result.exit_code == 0
    assert "not running" in result.output


def test_plugin_errors(runner, make_installed, activate, mocker):
    mock_run = mocker.patch("evm.core.server.subprocess.run")

    result = runner.invoke(cli, ["plugin", "list"])
    assert result.exit_code == 9

    make_installed("6.2.0")
    activate("6.2.0")

    result = runner.invoke(cli, ["plugin", "install"])
    assert result.exit_code == 2
    assert "plugin name is required" in result.output

    result = runner.invoke(cli, ["plugin", "frobnicate"])
    assert result.exit_code == 2
    assert "Unknown command" in result.output

    result = runner.invoke(cli, ["plugin", "list", "extra"])
    assert result.exit_code == 2

    mock_run.assert_not_called()


def test_plugin_install(runner, make_installed, activate, mocker):
    make_installed("6.2.0")
    activate("6.2.0")
    mock_run = mocker.patch("evm.core.server.subprocess.run")
    mock_run.return_value.returncode = 0

    result = runner.invoke(cli, ["plugin", "install", "analysis-icu"])

    assert result.exit_code == 0
    assert mock_run.call_args.args[0][1:] == ["install", "analysis-icu"]
