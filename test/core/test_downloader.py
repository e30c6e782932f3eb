import hashlib
import io
import os
import tarfile
from unittest.mock import MagicMock, patch

import pytest
import requests

from evm.core.downloader import ReleaseDownloader
from evm.error import ChecksumMismatchError, DownloadError, InvalidVersionError

MIRROR_1 = "https://mirror-one.example/{version}/{archive}"
MIRROR_2 = "https://mirror-two.example/{archive}"


def _build_archive(version):
    """Returns the bytes of a tar.gz shaped like an Elasticsearch release."""
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as tf:
        top = tarfile.TarInfo(f"elasticsearch-{version}")
        top.type = tarfile.DIRTYPE
        top.mode = 0o755
        tf.addfile(top)
        content = b"#!/bin/sh\necho elasticsearch\n"
        script = tarfile.TarInfo(f"elasticsearch-{version}/bin/elasticsearch")
        script.size = len(content)
        script.mode = 0o755
        tf.addfile(script, io.BytesIO(content))
    return buffer.getvalue()


def _response(status_code=200, text="", content=b""):
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    response.iter_content.return_value = [content]
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(
            f"{status_code} error"
        )
    else:
        response.raise_for_status.return_value = None
    response.__enter__.return_value = response
    return response


def _fake_get(files):
    """Serves `files` (url -> bytes or str); everything else is a 404."""
    calls = []

    def get(url, **kwargs):
        calls.append(url)
        if url not in files:
            return _response(404)
        body = files[url]
        if isinstance(body, str):
            return _response(text=body)
        return _response(content=body)

    get.calls = calls
    return get


@pytest.fixture
def mirror_settings(settings):
    settings.set("download.mirrors", [MIRROR_1, MIRROR_2])
    return settings


def _downloader(settings, evm_home, version):
    return ReleaseDownloader(
        settings, version, str(evm_home / f"elasticsearch-{version}")
    )


def test_install_from_first_mirror(mirror_settings, evm_home):
    archive = _build_archive("6.2.0")
    digest = hashlib.sha512(archive).hexdigest()
    url = "https://mirror-one.example/6.2.0/elasticsearch-6.2.0.tar.gz"
    fake_get = _fake_get(
        {url: archive, f"{url}.sha512": f"{digest}  elasticsearch-6.2.0.tar.gz\n"}
    )

    with patch("evm.core.downloader.requests.get", side_effect=fake_get):
        path = _downloader(mirror_settings, evm_home, "6.2.0").install()

    assert path == str(evm_home / "elasticsearch-6.2.0")
    assert (evm_home / "elasticsearch-6.2.0" / "bin" / "elasticsearch").is_file()
    # The archive is cleaned up after extraction.
    assert os.listdir(mirror_settings.get("paths.downloads")) == []
    assert not any(
        name.startswith("elasticsearch-6.2.0") and name != "elasticsearch-6.2.0"
        for name in os.listdir(evm_home)
    )


def test_falls_back_to_next_mirror_and_sha1(mirror_settings, evm_home):
    archive = _build_archive("1.7.5")
    digest = hashlib.sha1(archive).hexdigest()
    url = "https://mirror-two.example/elasticsearch-1.7.5.tar.gz"
    fake_get = _fake_get({url: archive, f"{url}.sha1": digest})

    with patch("evm.core.downloader.requests.get", side_effect=fake_get):
        downloader = _downloader(mirror_settings, evm_home, "1.7.5")
        downloader.install()

    assert downloader.archive_url == url
    assert downloader.checksum_algorithm == "sha1"
    assert (evm_home / "elasticsearch-1.7.5").is_dir()
    assert fake_get.calls[0].startswith("https://mirror-one.example/")


def test_version_not_found_on_any_mirror(mirror_settings, evm_home):
    with patch("evm.core.downloader.requests.get", side_effect=_fake_get({})):
        with pytest.raises(DownloadError, match="not found"):
            _downloader(mirror_settings, evm_home, "9.9.9").install()

    assert not (evm_home / "elasticsearch-9.9.9").exists()


def test_unreachable_mirrors(mirror_settings, evm_home):
    with patch(
        "evm.core.downloader.requests.get",
        side_effect=requests.exceptions.ConnectionError("connection refused"),
    ):
        with pytest.raises(DownloadError, match="connection refused"):
            _downloader(mirror_settings, evm_home, "6.2.0").install()


def test_checksum_mismatch(mirror_settings, evm_home):
    archive = _build_archive("6.2.0")
    url = "https://mirror-one.example/6.2.0/elasticsearch-6.2.0.tar.gz"
    fake_get = _fake_get({url: archive, f"{url}.sha512": "0" * 128})

    with patch("evm.core.downloader.requests.get", side_effect=fake_get):
        with pytest.raises(ChecksumMismatchError) as exc_info:
            _downloader(mirror_settings, evm_home, "6.2.0").install()

    assert isinstance(exc_info.value, DownloadError)
    assert not (evm_home / "elasticsearch-6.2.0").exists()
    assert os.listdir(mirror_settings.get("paths.downloads")) == []


def test_corrupt_archive(mirror_settings, evm_home):
    archive = b"this is not a tarball"
    digest = hashlib.sha512(archive).hexdigest()
    url = "https://mirror-one.example/6.2.0/elasticsearch-6.2.0.tar.gz"
    fake_get = _fake_get({url: archive, f"{url}.sha512": digest})

    with patch("evm.core.downloader.requests.get", side_effect=fake_get):
        with pytest.raises(DownloadError, match="extract"):
            _downloader(mirror_settings, evm_home, "6.2.0").install()

    assert not (evm_home / "elasticsearch-6.2.0").exists()
    assert os.listdir(evm_home / ".staging") == []


def test_total_timeout(mirror_settings, evm_home):
    archive = _build_archive("6.2.0")
    digest = hashlib.sha512(archive).hexdigest()
    url = "https://mirror-one.example/6.2.0/elasticsearch-6.2.0.tar.gz"
    fake_get = _fake_get({url: archive, f"{url}.sha512": digest})
    mirror_settings.set("download.total_timeout", -1)

    with patch("evm.core.downloader.requests.get", side_effect=fake_get):
        with pytest.raises(DownloadError, match="exceeded"):
            _downloader(mirror_settings, evm_home, "6.2.0").install()


def test_requests_use_connect_timeout(mirror_settings, evm_home):
    mirror_settings.set("download.connect_timeout", 42)
    with patch(
        "evm.core.downloader.requests.get", side_effect=_fake_get({})
    ) as mock_get:
        with pytest.raises(DownloadError):
            _downloader(mirror_settings, evm_home, "6.2.0").find_release()

    assert mock_get.call_args.kwargs["timeout"] == (42, 42)


def test_archive_name_depends_on_product_line(settings, evm_home):
    assert (
        _downloader(settings, evm_home, "6.8.0").archive_name
        == "elasticsearch-6.8.0.tar.gz"
    )
    assert (
        _downloader(settings, evm_home, "7.17.0").archive_name
        == "elasticsearch-7.17.0-linux-x86_64.tar.gz"
    )


def test_wildcard_cannot_be_downloaded(settings, evm_home):
    with pytest.raises(InvalidVersionError):
        ReleaseDownloader(settings, "6.2.*", str(evm_home / "x"))
