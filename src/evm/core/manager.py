# evm/core/manager.py
import logging
from typing import List, Optional

from evm.config.settings import Settings
from evm.core.downloader import ReleaseDownloader
from evm.core.registry import InstalledVersion, VersionRegistry
from evm.core.server import ServerController
from evm.core.version import validate_version
from evm.error import AlreadyInstalledError

logger = logging.getLogger(__name__)


class VersionManager:
    """Ties the registry, the downloader and the server controller together.

    All state lives under the settings' home directory; two managers built
    on different settings never see each other's versions.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.registry = VersionRegistry(settings.home_dir)
        self.server = ServerController(settings, self.registry)
        logger.debug(f"VersionManager initialized for home '{settings.home_dir}'.")

    def install(self, version: str) -> dict:
        """Downloads and unpacks `version`, activating it if nothing is active.

        Returns:
            ``{"version", "path", "activated"}`` describing the result.

        Raises:
            InvalidVersionError: If `version` is not an exact X.Y.Z version.
            AlreadyInstalledError: If the version directory already exists.
            DownloadError: If no mirror serves the release or it fails to verify.
        """
        validate_version(version, allow_wildcard=False)
        if self.registry.is_installed(version):
            raise AlreadyInstalledError(version)

        downloader = ReleaseDownloader(
            self.settings, version, self.registry.install_dir(version)
        )
        path = downloader.install()

        activated = False
        if self.registry.current() is None:
            logger.info(f"No active version; activating {version}.")
            self.registry.use(version)
            activated = True
        return {"version": version, "path": path, "activated": activated}

    def use(self, version: str) -> str:
        return self.registry.use(version)

    def remove(self, version: str) -> None:
        validate_version(version, allow_wildcard=False)
        self.registry.remove(version)

    def list_versions(self) -> List[InstalledVersion]:
        return self.registry.list()

    def current_version(self) -> Optional[str]:
        return self.registry.current()

    def which(self, version: Optional[str] = None) -> Optional[str]:
        return self.registry.resolve_path(version)
