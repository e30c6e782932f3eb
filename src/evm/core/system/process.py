# evm/core/system/process.py
"""Provides process management utilities for the managed server.

This module includes functions for:
- Reading and removing PID files.
- Checking if a process is running by its PID.
- Launching detached background processes.
- Waiting, with a bounded backoff, for a PID file to appear.
- Terminating processes gracefully and, if necessary, forcefully.

It relies on the `psutil` library for process inspection and termination.
"""
import os
import time
import logging
import platform
import subprocess
from typing import Dict, List, Optional

import psutil

from evm.error import (
    FileOperationError,
    InvalidPathError,
    ProcessError,
    StartTimeoutError,
)

logger = logging.getLogger(__name__)


def read_pid_from_file(pid_file_path: str) -> Optional[int]:
    """Reads and validates a PID from a specified file.

    Args:
        pid_file_path: The path to the PID file.

    Returns:
        The PID as an integer if the file exists and contains a valid number.
        Returns `None` if the PID file does not exist.

    Raises:
        FileOperationError: If the file exists but is empty, unreadable, or
            contains non-integer content.
    """
    if not os.path.isfile(pid_file_path):
        logger.debug(f"PID file '{pid_file_path}' not found.")
        return None

    try:
        with open(pid_file_path, "r") as f:
            pid_str = f.read().strip()
    except OSError as e:
        raise FileOperationError(
            f"Error reading PID file '{pid_file_path}': {e}"
        ) from e

    if not pid_str:
        raise FileOperationError(f"PID file '{pid_file_path}' is empty.")
    try:
        pid = int(pid_str)
    except ValueError:
        raise FileOperationError(
            f"Invalid content in PID file '{pid_file_path}'. Expected an integer, got '{pid_str}'."
        )
    logger.debug(f"Found PID {pid} in file '{pid_file_path}'.")
    return pid


def is_process_running(pid: int) -> bool:
    """Checks if a process with the given PID is currently running."""
    if not psutil.pid_exists(pid):
        return False
    try:
        return psutil.Process(pid).status() != psutil.STATUS_ZOMBIE
    except psutil.NoSuchProcess:
        return False
    except psutil.AccessDenied:
        # The process exists but belongs to someone else.
        return True


def launch_detached_process(
    command: List[str],
    cwd: Optional[str] = None,
    env: Optional[Dict[str, str]] = None,
) -> int:
    """Launches a command as a detached background process.

    The child gets its own session (or no console window on Windows) and
    has its standard streams connected to the null device, so it outlives
    the evm invocation that started it. No wait or reap is performed.

    Args:
        command: The command and its arguments as a list of strings.
        cwd: Working directory for the child.
        env: Environment for the child; defaults to the current environment.

    Returns:
        The PID of the newly launched process.

    Raises:
        ProcessError: If the command is empty or the OS refuses to start it.
        InvalidPathError: If the command's executable is not found.
    """
    if not command or not command[0]:
        raise ProcessError("Command list and executable cannot be empty.")

    logger.info(f"Executing detached command: {' '.join(command)}")

    creation_flags = 0
    start_new_session = False
    if platform.system() == "Windows":
        creation_flags = subprocess.CREATE_NO_WINDOW
    else:
        start_new_session = True

    try:
        process = subprocess.Popen(
            command,
            cwd=cwd,
            env=env if env is not None else os.environ.copy(),
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            creationflags=creation_flags,
            start_new_session=start_new_session,
            close_fds=(platform.system() != "Windows"),
        )
    except FileNotFoundError:
        raise InvalidPathError(command[0], "Command executable") from None
    except OSError as e:
        raise ProcessError(f"OS error starting detached process: {e}") from e

    logger.info(f"Started detached process with PID: {process.pid}")
    return process.pid


def wait_for_pid_file(
    pid_file_path: str,
    timeout: float,
    initial_interval: float = 0.1,
    max_interval: float = 2.0,
) -> int:
    """Blocks until a PID file with a valid PID appears.

    The poll interval starts at `initial_interval` and doubles after each
    attempt up to `max_interval`.

    Returns:
        The PID read from the file.

    Raises:
        StartTimeoutError: If no valid PID file appears within `timeout`
            seconds.
    """
    deadline = time.monotonic() + timeout
    interval = initial_interval
    while True:
        try:
            pid = read_pid_from_file(pid_file_path)
        except FileOperationError as e:
            # The server may be mid-write.
            logger.debug(f"PID file not readable yet: {e}")
            pid = None
        if pid is not None:
            return pid

        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise StartTimeoutError(pid_file_path, timeout)
        time.sleep(min(interval, remaining))
        interval = min(interval * 2, max_interval)


def terminate_process_by_pid(
    pid: int, terminate_timeout: float = 10, kill_timeout: float = 2
):
    """Gracefully terminates, then forcefully kills, a process by its PID.

    This function first sends a SIGTERM signal and waits for the process to
    exit. If it doesn't exit within the timeout, it sends a SIGKILL signal.

    Args:
        pid: The PID of the process to terminate.
        terminate_timeout: Seconds to wait for graceful termination (SIGTERM).
        kill_timeout: Seconds to wait after sending the forceful kill (SIGKILL).

    Raises:
        ProcessError: If access is denied or termination fails unexpectedly.
    """
    try:
        process = psutil.Process(pid)
        logger.info(f"Attempting graceful termination (SIGTERM) for PID {pid}...")
        process.terminate()
        try:
            process.wait(timeout=terminate_timeout)
            logger.info(f"Process {pid} terminated gracefully.")
            return
        except psutil.TimeoutExpired:
            logger.warning(
                f"Process {pid} did not terminate gracefully within {terminate_timeout}s. Attempting kill (SIGKILL)..."
            )
            process.kill()
            process.wait(timeout=kill_timeout)
            logger.info(f"Process {pid} forcefully killed.")
            return
    except psutil.NoSuchProcess:
        logger.warning(
            f"Process with PID {pid} was already stopped during termination attempt."
        )
    except psutil.AccessDenied:
        raise ProcessError(
            f"Permission denied trying to terminate process with PID {pid}."
        )
    except psutil.Error as e:
        raise ProcessError(
            f"Unexpected error terminating process PID {pid}: {e}"
        ) from e


def remove_pid_file_if_exists(pid_file_path: str) -> bool:
    """Removes the specified PID file if it exists.

    Returns:
        True if the file was removed or did not exist. False if removal failed
        due to an `OSError`.
    """
    if os.path.exists(pid_file_path):
        try:
            os.remove(pid_file_path)
            logger.info(f"Removed PID file '{pid_file_path}'.")
            return True
        except OSError as e:
            logger.warning(f"Could not remove PID file '{pid_file_path}': {e}")
            return False
    return True
