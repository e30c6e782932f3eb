# evm/error.py
"""Defines the exception hierarchy for the Elasticsearch Version Manager.

Every error raised by evm derives from :class:`EVMError`. Each class carries
an ``exit_code`` so the command-line layer can terminate with a code that
identifies the kind of failure.
"""


class EVMError(Exception):
    """Base exception for all application-specific errors."""

    exit_code = 1


# --- Argument & Input Errors ---


class ArgumentError(EVMError):
    """Raised when a command receives extraneous or malformed arguments."""

    exit_code = 2


class UnknownCommandError(ArgumentError):
    """Raised when a sub-command name is not recognized."""

    def __init__(self, command: str, valid_commands=None):
        self.command = command
        message = f"Unknown command '{command}'."
        if valid_commands:
            message += f" Valid commands: {', '.join(valid_commands)}."
        super().__init__(message)


class MissingPluginNameError(ArgumentError):
    """Raised when a plugin install/remove is requested without a name."""

    def __init__(self, action: str):
        self.action = action
        super().__init__(f"A plugin name is required for 'plugin {action}'.")


class InvalidVersionError(EVMError):
    """Raised when a version string does not have the form X.Y.Z or X.Y.*."""

    exit_code = 3

    def __init__(self, version, reason: str = None):
        self.version = version
        message = f"Invalid version '{version}'."
        message += f" {reason}" if reason else " Expected the form X.Y.Z or X.Y.*."
        super().__init__(message)


# --- Registry Errors ---


class NotFoundError(EVMError):
    """Raised when a version or path is not installed or does not exist."""

    exit_code = 4


class AlreadyInstalledError(EVMError):
    """Raised when installing a version whose directory already exists."""

    exit_code = 5

    def __init__(self, version: str):
        self.version = version
        super().__init__(f"Version {version} is already installed.")


class InUseError(EVMError):
    """Raised when trying to remove the currently active version."""

    exit_code = 6

    def __init__(self, version: str):
        self.version = version
        super().__init__(
            f"Version {version} is currently in use. Switch to another version before removing it."
        )


# --- Server Lifecycle Errors ---


class AlreadyRunningError(EVMError):
    """Raised when starting the server while a live process is recorded."""

    exit_code = 7

    def __init__(self, pid: int):
        self.pid = pid
        super().__init__(f"Elasticsearch is already running (PID {pid}).")


class NotRunningError(EVMError):
    """Raised when stopping the server while no live process is recorded."""

    exit_code = 8

    def __init__(self, message: str = "Elasticsearch is not running."):
        super().__init__(message)


class NoActiveVersionError(EVMError):
    """Raised when an operation needs an active version and none is set."""

    exit_code = 9

    def __init__(self, message: str = None):
        super().__init__(
            message or "No active version. Run 'evm use <version>' first."
        )


class InvalidPathError(EVMError):
    """Raised when a user supplied path does not exist or has the wrong type."""

    exit_code = 10

    def __init__(self, path: str, description: str = "Path"):
        self.path = path
        super().__init__(f"{description} '{path}' does not exist or is not a directory.")


class StartTimeoutError(EVMError):
    """Raised when the started server does not write its PID file in time."""

    exit_code = 11

    def __init__(self, pid_file_path: str, timeout: float):
        self.pid_file_path = pid_file_path
        self.timeout = timeout
        super().__init__(
            f"Elasticsearch did not write its PID file '{pid_file_path}' within {timeout:g} seconds."
        )


# --- Download Errors ---


class DownloadError(EVMError):
    """Raised when a release archive cannot be downloaded or extracted."""

    exit_code = 12


class ChecksumMismatchError(DownloadError):
    """Raised when a downloaded archive does not match its published digest."""

    exit_code = 13

    def __init__(self, file_path: str, algorithm: str, expected: str, actual: str):
        self.file_path = file_path
        self.algorithm = algorithm
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"{algorithm} checksum mismatch for '{file_path}': expected {expected}, got {actual}."
        )


# --- System Errors ---


class ConfigurationError(EVMError):
    """Raised when the settings file cannot be read or written."""

    exit_code = 14


class FileOperationError(EVMError):
    """Raised for failures reading, writing or deleting files."""

    exit_code = 15


class ProcessError(EVMError):
    """Raised when an external process cannot be launched or fails."""

    exit_code = 16
