# evm/core/server.py
"""Lifecycle control of the active Elasticsearch version.

The server is started detached and told to write its own PID file; from
then on evm knows about the process only through that file.
"""
import os
import enum
import logging
import platform
import subprocess
from typing import Dict, List, Optional, Sequence

from evm.config.const import PID_FILENAME, product_name
from evm.config.product_lines import PLUGIN_EXECUTABLES, ProductLine, get_product_line
from evm.config.settings import Settings
from evm.core.registry import VersionRegistry
from evm.core.system import process as system_process
from evm.core.version import Version
from evm.error import (
    AlreadyRunningError,
    ArgumentError,
    FileOperationError,
    InvalidPathError,
    MissingPluginNameError,
    NoActiveVersionError,
    NotFoundError,
    NotRunningError,
    ProcessError,
    UnknownCommandError,
)

logger = logging.getLogger(__name__)


class PluginAction(enum.Enum):
    LIST = "list"
    INSTALL = "install"
    REMOVE = "remove"

    @classmethod
    def parse(cls, text: str) -> "PluginAction":
        try:
            return cls(str(text).lower())
        except ValueError:
            raise UnknownCommandError(text, [action.value for action in cls]) from None


def _list_arguments(line: ProductLine, name: Optional[str], extra: Sequence[str]):
    if name is not None or extra:
        unexpected = [a for a in (name, *extra) if a is not None]
        raise ArgumentError(
            f"'plugin list' takes no arguments, got: {' '.join(unexpected)}"
        )
    return [line.plugin_actions["list"]]


def _named_arguments(action: PluginAction):
    def build(line: ProductLine, name: Optional[str], extra: Sequence[str]):
        if not name:
            raise MissingPluginNameError(action.value)
        if extra:
            raise ArgumentError(
                f"'plugin {action.value}' takes one plugin name, got extra: {' '.join(extra)}"
            )
        return [line.plugin_actions[action.value], name]

    return build


# One entry per PluginAction.
_PLUGIN_ARGUMENT_BUILDERS = {
    PluginAction.LIST: _list_arguments,
    PluginAction.INSTALL: _named_arguments(PluginAction.INSTALL),
    PluginAction.REMOVE: _named_arguments(PluginAction.REMOVE),
}


class ServerController:
    """Starts, stops and inspects the server of the active version.

    Args:
        settings: Supplies the start/stop timeouts.
        registry: Resolves the active version and its install directory.
    """

    def __init__(self, settings: Settings, registry: VersionRegistry):
        self.settings = settings
        self.registry = registry
        self.pid_file_path = os.path.join(registry.home_dir, PID_FILENAME)

    # --- Helpers ---

    def _require_active_version(self) -> str:
        version = self.registry.current()
        if not version:
            raise NoActiveVersionError()
        return version

    @staticmethod
    def _bin_name(name: str) -> str:
        return f"{name}.bat" if platform.system() == "Windows" else name

    def get_running_pid(self) -> Optional[int]:
        """Returns the PID of the running server, or None.

        A PID file that is unreadable or names a dead process is stale and
        gets removed.
        """
        try:
            pid = system_process.read_pid_from_file(self.pid_file_path)
        except FileOperationError as e:
            logger.warning(f"Ignoring unusable PID file: {e}")
            system_process.remove_pid_file_if_exists(self.pid_file_path)
            return None
        if pid is None:
            return None
        if system_process.is_process_running(pid):
            return pid
        logger.info(f"PID {pid} from '{self.pid_file_path}' is not running; removing stale file.")
        system_process.remove_pid_file_if_exists(self.pid_file_path)
        return None

    def build_start_command(
        self, version: str, config_path: Optional[str] = None
    ) -> List[str]:
        """Builds the command line that starts `version` in the background.

        The flag that selects a configuration directory differs between
        release lines; it is looked up in the product line table.
        """
        line = get_product_line(Version.parse(version).major)
        executable = os.path.join(
            self.registry.install_dir(version), "bin", self._bin_name(product_name)
        )
        command = [executable, "-p", self.pid_file_path]
        if config_path:
            command.append(line.config_flag(config_path))
        return command

    # --- Lifecycle ---

    def start(self, config_path: Optional[str] = None) -> int:
        """Starts the active version and waits for its PID file.

        Returns:
            The PID written by the server.

        Raises:
            AlreadyRunningError: If a live server is already recorded.
            NoActiveVersionError: If no version is active.
            InvalidPathError: If `config_path` is not a directory.
            StartTimeoutError: If the PID file does not appear in time.
        """
        running_pid = self.get_running_pid()
        if running_pid is not None:
            raise AlreadyRunningError(running_pid)

        version = self._require_active_version()

        if config_path is not None:
            config_path = os.path.abspath(os.path.expanduser(config_path))
            if not os.path.isdir(config_path):
                raise InvalidPathError(config_path, "Config path")

        command = self.build_start_command(version, config_path)
        logger.info(f"Starting Elasticsearch {version}...")
        system_process.launch_detached_process(
            command, cwd=self.registry.install_dir(version)
        )

        pid = system_process.wait_for_pid_file(
            self.pid_file_path, timeout=self.settings.get("server.start_timeout", 60)
        )
        logger.info(f"Elasticsearch {version} started with PID {pid}.")
        return pid

    def stop(self) -> int:
        """Stops the recorded server process.

        Returns:
            The PID that was stopped.

        Raises:
            NotRunningError: If no live server is recorded.
        """
        pid = self.get_running_pid()
        if pid is None:
            raise NotRunningError()

        system_process.terminate_process_by_pid(
            pid, terminate_timeout=self.settings.get("server.stop_timeout", 10)
        )
        system_process.remove_pid_file_if_exists(self.pid_file_path)
        logger.info(f"Elasticsearch (PID {pid}) stopped.")
        return pid

    def status(self) -> Dict[str, object]:
        pid = self.get_running_pid()
        return {
            "running": pid is not None,
            "pid": pid,
            "version": self.registry.current(),
        }

    # --- Plugins ---

    def get_plugin_executable(self, version: str) -> str:
        """Finds the plugin tool shipped with `version`.

        The product line names the preferred tool; the other known name is
        used when the preferred one is absent.

        Raises:
            NotFoundError: If neither tool exists.
        """
        line = get_product_line(Version.parse(version).major)
        bin_dir = os.path.join(self.registry.install_dir(version), "bin")
        candidates = [line.plugin_executable] + [
            name for name in PLUGIN_EXECUTABLES if name != line.plugin_executable
        ]
        for name in candidates:
            path = os.path.join(bin_dir, self._bin_name(name))
            if os.path.isfile(path):
                return path
        raise NotFoundError(
            f"No plugin executable ({', '.join(candidates)}) found in '{bin_dir}'."
        )

    def build_plugin_command(
        self,
        action: PluginAction,
        name: Optional[str] = None,
        extra: Sequence[str] = (),
    ) -> List[str]:
        version = self._require_active_version()
        line = get_product_line(Version.parse(version).major)
        arguments = _PLUGIN_ARGUMENT_BUILDERS[action](line, name, extra)
        return [self.get_plugin_executable(version)] + arguments

    def plugin(
        self,
        action: str,
        name: Optional[str] = None,
        extra: Sequence[str] = (),
    ) -> int:
        """Runs the product's plugin tool for `action`.

        Raises:
            UnknownCommandError: If `action` is not list, install or remove.
            NoActiveVersionError: If no version is active.
            MissingPluginNameError: If install/remove lacks a plugin name.
            ArgumentError: If extraneous arguments are given.
            ProcessError: If the plugin tool fails.
        """
        self._require_active_version()
        parsed = PluginAction.parse(action)
        command = self.build_plugin_command(parsed, name, extra)
        logger.info(f"Running plugin command: {' '.join(command)}")
        try:
            result = subprocess.run(command, check=False)
        except OSError as e:
            raise ProcessError(f"Failed to run '{command[0]}': {e}") from e
        if result.returncode != 0:
            raise ProcessError(
                f"Plugin command '{parsed.value}' failed with exit code {result.returncode}."
            )
        return result.returncode
