# evm/core/registry.py
"""The version registry: installed versions and the active-version pointer.

Installed versions live side by side in the evm home directory, one
directory per release named ``elasticsearch-<version>``. The active version
is marked by a symbolic link named ``elasticsearch`` in the same directory.
Only :meth:`VersionRegistry.use` changes that link.

Concurrent evm invocations are not coordinated. Two processes racing on
``use`` or ``remove`` can interleave; evm is meant to be run one command at
a time.
"""
import os
import logging
from dataclasses import dataclass
from typing import List, Optional

from evm.config.const import product_name
from evm.core.system import base as system_base
from evm.core.version import Version, sort_versions, validate_version
from evm.error import (
    FileOperationError,
    InUseError,
    InvalidVersionError,
    NotFoundError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InstalledVersion:
    version: str
    path: str
    current: bool = False


class VersionRegistry:
    """Answers which versions are installed and which one is active.

    Args:
        home_dir: The directory holding the version directories and the
            pointer symlink.
        product: Name used for both the directory prefix and the pointer.
    """

    def __init__(self, home_dir: str, product: str = product_name):
        self.home_dir = os.path.abspath(home_dir)
        self.product = product
        self._prefix = f"{product}-"

    # --- Paths ---

    @property
    def pointer_path(self) -> str:
        return os.path.join(self.home_dir, self.product)

    def dir_name(self, version: str) -> str:
        return f"{self._prefix}{version}"

    def install_dir(self, version: str) -> str:
        return os.path.join(self.home_dir, self.dir_name(version))

    def _version_from_name(self, name: str) -> Optional[str]:
        if not name.startswith(self._prefix):
            return None
        candidate = name[len(self._prefix) :]
        try:
            parsed = Version.parse(candidate)
        except InvalidVersionError:
            return None
        return None if parsed.is_wildcard else candidate

    # --- Scanner ---

    def installed_versions(self) -> List[str]:
        """Returns installed version strings, highest first."""
        if not os.path.isdir(self.home_dir):
            return []
        versions = []
        for entry in os.scandir(self.home_dir):
            if entry.is_symlink() or not entry.is_dir():
                continue
            version = self._version_from_name(entry.name)
            if version:
                versions.append(version)
        return sort_versions(versions)

    def list(self) -> List[InstalledVersion]:
        """Lists installed versions, highest first, marking the active one."""
        current = self.current()
        return [
            InstalledVersion(
                version=version,
                path=self.install_dir(version),
                current=(version == current),
            )
            for version in self.installed_versions()
        ]

    # --- Pointer ---

    def current(self) -> Optional[str]:
        """Returns the active version, or None when no valid pointer exists."""
        pointer = self.pointer_path
        if not os.path.islink(pointer):
            return None
        try:
            target = os.readlink(pointer)
        except OSError as e:
            raise FileOperationError(
                f"Could not read active version link '{pointer}': {e}"
            ) from e

        version = self._version_from_name(os.path.basename(target.rstrip("/\\")))
        if version is None:
            logger.warning(
                f"Active version link '{pointer}' points at unexpected target '{target}'."
            )
            return None
        if not self.is_installed(version):
            logger.warning(
                f"Active version link '{pointer}' points at missing version {version}."
            )
            return None
        return version

    def is_installed(self, version: str) -> bool:
        """True if a directory exists for exactly `version`.

        A wildcard never names a directory, so it is never installed.

        Raises:
            InvalidVersionError: If `version` is malformed.
        """
        if validate_version(version).is_wildcard:
            return False
        path = self.install_dir(version)
        return os.path.isdir(path) and not os.path.islink(path)

    def resolve(self, version: str) -> Optional[str]:
        """Resolves a requested version to an installed one.

        An exact version resolves to itself when installed. A wildcard
        (``5.3.*``) resolves to the highest installed version of that
        major/minor line.

        Returns:
            The installed version string, or None if nothing matches.
        """
        requested = validate_version(version)
        if not requested.is_wildcard:
            return version if self.is_installed(version) else None
        for installed in self.installed_versions():
            if requested.matches(Version.parse(installed)):
                return installed
        return None

    def use(self, version: str) -> str:
        """Points the active-version link at an installed version.

        The new link is created under a temporary name and renamed over the
        old one, so the pointer is never missing.

        Returns:
            The exact version now active.

        Raises:
            InvalidVersionError: If `version` is malformed.
            NotFoundError: If no installed version matches.
            FileOperationError: If the link cannot be replaced.
        """
        resolved = self.resolve(version)
        if resolved is None:
            raise NotFoundError(f"Version {version} is not installed.")

        pointer = self.pointer_path
        if os.path.lexists(pointer) and not os.path.islink(pointer):
            raise FileOperationError(
                f"'{pointer}' exists and is not a symbolic link; refusing to replace it."
            )

        temp_link = os.path.join(self.home_dir, f".{self.product}.{os.getpid()}.tmp")
        try:
            if os.path.lexists(temp_link):
                os.remove(temp_link)
            os.symlink(self.dir_name(resolved), temp_link)
            os.replace(temp_link, pointer)
        except OSError as e:
            if os.path.lexists(temp_link):
                os.remove(temp_link)
            raise FileOperationError(
                f"Failed to activate version {resolved}: {e}"
            ) from e

        logger.info(f"Active version set to {resolved}.")
        return resolved

    def remove(self, version: str) -> None:
        """Deletes an installed, inactive version.

        Raises:
            InvalidVersionError: If `version` is malformed.
            NotFoundError: If the version (or a wildcard) is not installed.
            InUseError: If the version is the active one.
            FileOperationError: If the directory cannot be deleted.
        """
        if not self.is_installed(version):
            raise NotFoundError(f"Version {version} is not installed.")
        if version == self.current():
            raise InUseError(version)

        path = self.install_dir(version)
        if not system_base.delete_path_robustly(path, f"version {version}"):
            raise FileOperationError(f"Failed to delete '{path}'.")

    def resolve_path(self, version: Optional[str] = None) -> Optional[str]:
        """Returns the install directory of `version`, or of the active version.

        Returns:
            The directory path, or None if the version (or an active version,
            when `version` is omitted) is not installed.
        """
        if version is None:
            resolved = self.current()
        else:
            resolved = self.resolve(version)
        if resolved is None:
            return None
        return self.install_dir(resolved)
