import pytest

from evm.api.server import get_server_status, start_server, stop_server
from evm.api.plugins import run_plugin_command


def test_start_without_active_version(make_installed):
    make_installed("6.2.0")

    result = start_server()

    assert result["status"] == "error"
    assert result["error"] == "NoActiveVersionError"
    assert result["exit_code"] == 9


def test_start_success(make_installed, activate, mocker):
    make_installed("6.2.0")
    activate("6.2.0")
    mocker.patch("evm.core.server.system_process.launch_detached_process")
    mocker.patch("evm.core.server.system_process.wait_for_pid_file", return_value=31337)

    result = start_server()

    assert result["status"] == "success"
    assert result["pid"] == 31337
    assert result["version"] == "6.2.0"


def test_stop_not_running():
    result = stop_server()
    assert result["status"] == "error"
    assert result["exit_code"] == 8


def test_status_not_running():
    result = get_server_status()
    assert result["status"] == "success"
    assert result["running"] is False
    assert result["message"] == "Elasticsearch is not running."


def test_status_running(make_installed, activate, evm_home, mocker):
    make_installed("6.2.0")
    activate("6.2.0")
    (evm_home / "elasticsearch.pid").write_text("4242")
    mocker.patch("evm.core.server.system_process.is_process_running", return_value=True)

    result = get_server_status()

    assert result["running"] is True
    assert "6.2.0" in result["message"]
    assert "4242" in result["message"]


def test_plugin_install_missing_name(make_installed, activate, mocker):
    make_installed("6.2.0")
    activate("6.2.0")
    mock_run = mocker.patch("evm.core.server.subprocess.run")

    result = run_plugin_command("install")

    assert result["status"] == "error"
    assert result["error"] == "MissingPluginNameError"
    assert result["exit_code"] == 2
    mock_run.assert_not_called()


def test_plugin_success(make_installed, activate, mocker):
    make_installed("6.2.0")
    activate("6.2.0")
    mocker.patch("evm.core.server.subprocess.run").return_value.returncode = 0

    result = run_plugin_command("install", "analysis-icu")

    assert result["status"] == "success"
    assert "analysis-icu" in result["message"]
