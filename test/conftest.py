import os

import pytest

from evm.config.settings import Settings
from evm.core.registry import VersionRegistry
from evm.instances import reset_instances


@pytest.fixture(autouse=True)
def evm_home(monkeypatch, tmp_path):
    """
    Points EVM_HOME at a temporary directory so that every test gets its own
    registry, settings file and PID file, and forgets cached instances.
    """
    home = tmp_path / "evm_home"
    home.mkdir()
    monkeypatch.setenv("EVM_HOME", str(home))
    reset_instances()

    yield home

    reset_instances()


@pytest.fixture
def settings(evm_home):
    return Settings(str(evm_home))


@pytest.fixture
def registry(evm_home):
    return VersionRegistry(str(evm_home))


@pytest.fixture
def make_installed(evm_home):
    """Factory creating a fake unpacked release under the home directory."""

    def _make_installed(version, plugin_executables=("elasticsearch-plugin",)):
        version_dir = evm_home / f"elasticsearch-{version}"
        bin_dir = version_dir / "bin"
        bin_dir.mkdir(parents=True)
        (bin_dir / "elasticsearch").write_text("#!/bin/sh\n")
        for name in plugin_executables:
            (bin_dir / name).write_text("#!/bin/sh\n")
        return version_dir

    return _make_installed


@pytest.fixture
def activate(evm_home):
    """Points the active-version link at a version directory."""

    def _activate(version):
        os.symlink(f"elasticsearch-{version}", evm_home / "elasticsearch")

    return _activate
