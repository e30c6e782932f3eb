# evm/core/downloader.py
"""Downloads, verifies and unpacks Elasticsearch release archives.

A release is looked up on each configured mirror in turn. A mirror serves a
release when it publishes a detached checksum file for the archive; the
archive is then streamed to the downloads directory, its digest compared
with the published one, and the archive extracted into the version's
install directory.
"""
import os
import time
import uuid
import hashlib
import logging
import tarfile
import zipfile
from typing import Optional, Tuple

import requests

from evm.config.const import package_name, get_installed_version
from evm.config.product_lines import get_product_line
from evm.config.settings import Settings
from evm.core.system import base as system_base
from evm.core.version import validate_version
from evm.error import (
    AlreadyInstalledError,
    ChecksumMismatchError,
    DownloadError,
    FileOperationError,
)

logger = logging.getLogger(__name__)


class ReleaseDownloader:
    """Fetches one release and installs it into a target directory.

    Args:
        settings: Supplies mirrors, timeouts and the downloads directory.
        version: The exact version to fetch.
        install_dir: Final location of the unpacked release.
    """

    def __init__(self, settings: Settings, version: str, install_dir: str):
        parsed = validate_version(version, allow_wildcard=False)
        self.settings = settings
        self.version = version
        self.install_dir = install_dir
        self.product_line = get_product_line(parsed.major)
        self.archive_name = self.product_line.archive_name(version)

        self.download_dir = settings.get("paths.downloads")
        self.connect_timeout = settings.get("download.connect_timeout", 60)
        self.total_timeout = settings.get("download.total_timeout", 3600)
        self.chunk_size = settings.get("download.chunk_size", 65536)
        self.headers = {"User-Agent": f"{package_name}/{get_installed_version()}"}

        self.archive_url: Optional[str] = None
        self.checksum_algorithm: Optional[str] = None
        self.expected_digest: Optional[str] = None
        self._archive_path: Optional[str] = None

    # --- Lookup ---

    def _mirror_urls(self):
        for template in self.settings.get("download.mirrors", []):
            yield template.format(version=self.version, archive=self.archive_name)

    def _fetch_checksum(self, archive_url: str) -> Optional[Tuple[str, str]]:
        """Returns (algorithm, hex digest) for the first published checksum."""
        for algorithm in self.settings.get("download.checksums", ["sha512", "sha1"]):
            url = f"{archive_url}.{algorithm}"
            response = requests.get(
                url,
                headers=self.headers,
                timeout=(self.connect_timeout, self.connect_timeout),
            )
            if response.status_code == 404:
                logger.debug(f"No {algorithm} checksum at {url}.")
                continue
            response.raise_for_status()
            tokens = response.text.split()
            if not tokens:
                raise DownloadError(f"Checksum file at {url} is empty.")
            return algorithm, tokens[0].lower()
        return None

    def find_release(self) -> str:
        """Finds the first mirror publishing this release.

        Returns:
            The archive URL on the selected mirror.

        Raises:
            DownloadError: If no mirror serves the version, including when
                every mirror was unreachable.
        """
        last_error = None
        for archive_url in self._mirror_urls():
            logger.debug(f"Looking for {self.archive_name} at {archive_url}")
            try:
                found = self._fetch_checksum(archive_url)
            except requests.exceptions.RequestException as e:
                logger.warning(f"Mirror lookup failed for {archive_url}: {e}")
                last_error = e
                continue
            if found:
                self.archive_url = archive_url
                self.checksum_algorithm, self.expected_digest = found
                logger.info(
                    f"Found {self.archive_name} at {archive_url} ({self.checksum_algorithm})."
                )
                return archive_url

        message = f"Version {self.version} not found on any download mirror."
        if last_error is not None:
            message += f" Last error: {last_error}"
        raise DownloadError(message)

    # --- Download ---

    def download_archive(self) -> str:
        """Streams the release archive into the downloads directory.

        Raises:
            DownloadError: On HTTP errors, connection failures or when the
                transfer exceeds the total timeout.
            FileOperationError: If the archive cannot be written.
        """
        if not self.archive_url:
            self.find_release()

        os.makedirs(self.download_dir, exist_ok=True)
        archive_path = os.path.join(self.download_dir, self.archive_name)
        self._archive_path = archive_path

        logger.info(f"Downloading {self.archive_url} to {archive_path}")
        started = time.monotonic()
        try:
            with requests.get(
                self.archive_url,
                headers=self.headers,
                stream=True,
                timeout=(self.connect_timeout, self.connect_timeout),
            ) as response:
                response.raise_for_status()
                try:
                    with open(archive_path, "wb") as f:
                        for chunk in response.iter_content(chunk_size=self.chunk_size):
                            if time.monotonic() - started > self.total_timeout:
                                raise DownloadError(
                                    f"Download of {self.archive_name} exceeded {self.total_timeout}s."
                                )
                            if chunk:
                                f.write(chunk)
                except OSError as e:
                    raise FileOperationError(
                        f"Failed to write archive '{archive_path}': {e}"
                    ) from e
        except requests.exceptions.RequestException as e:
            raise DownloadError(
                f"Failed to download Elasticsearch {self.version}: {e}"
            ) from e

        logger.info(f"Downloaded {self.archive_name}.")
        return archive_path

    def verify_archive(self) -> None:
        """Compares the downloaded archive's digest with the published one.

        Raises:
            ChecksumMismatchError: If the digests differ.
        """
        digest = hashlib.new(self.checksum_algorithm)
        try:
            with open(self._archive_path, "rb") as f:
                for block in iter(lambda: f.read(self.chunk_size), b""):
                    digest.update(block)
        except OSError as e:
            raise FileOperationError(
                f"Failed to read archive '{self._archive_path}': {e}"
            ) from e

        actual = digest.hexdigest()
        if actual != self.expected_digest:
            raise ChecksumMismatchError(
                self._archive_path, self.checksum_algorithm, self.expected_digest, actual
            )
        logger.info(f"{self.checksum_algorithm} checksum verified for {self.archive_name}.")

    # --- Extraction ---

    def extract_archive(self) -> str:
        """Unpacks the archive into `install_dir`.

        The archive is unpacked into a staging directory first and its single
        top-level directory is then renamed into place, so a failed
        extraction never leaves a half-populated version directory.

        Raises:
            AlreadyInstalledError: If `install_dir` appeared meanwhile.
            DownloadError: If the archive is corrupt or has an unexpected layout.
        """
        staging_root = os.path.join(os.path.dirname(self.install_dir), ".staging")
        staging_dir = os.path.join(staging_root, uuid.uuid4().hex)
        os.makedirs(staging_dir, exist_ok=True)
        try:
            logger.info(f"Extracting {self._archive_path} to {staging_dir}")
            try:
                if self._archive_path.endswith(".zip"):
                    with zipfile.ZipFile(self._archive_path) as zf:
                        zf.extractall(staging_dir)
                else:
                    with tarfile.open(self._archive_path, "r:*") as tf:
                        tf.extractall(staging_dir, filter="data")
            except (tarfile.TarError, zipfile.BadZipFile, OSError) as e:
                raise DownloadError(
                    f"Failed to extract '{self._archive_path}': {e}"
                ) from e

            entries = os.listdir(staging_dir)
            if len(entries) != 1 or not os.path.isdir(
                os.path.join(staging_dir, entries[0])
            ):
                raise DownloadError(
                    f"Unexpected archive layout in '{self.archive_name}': {entries}"
                )

            if os.path.exists(self.install_dir):
                raise AlreadyInstalledError(self.version)
            os.replace(os.path.join(staging_dir, entries[0]), self.install_dir)
            logger.info(f"Installed Elasticsearch {self.version} to {self.install_dir}")
            return self.install_dir
        finally:
            system_base.delete_path_robustly(staging_dir, "staging directory")

    def cleanup(self) -> None:
        if self._archive_path:
            system_base.delete_path_robustly(self._archive_path, "downloaded archive")

    def install(self) -> str:
        """Finds, downloads, verifies and extracts the release.

        The downloaded archive is removed afterwards whatever the outcome.

        Returns:
            The install directory.
        """
        try:
            self.find_release()
            self.download_archive()
            self.verify_archive()
            return self.extract_archive()
        finally:
            self.cleanup()
