"""Download and unpack the ``oc`` client binary.

The mirror publishes one archive per version and platform::

    <mirror>/<version>/<platform>/oc.<tar.gz|zip>

Each archive unpacks to a single entry, either the binary itself or a
directory holding it. The binary is copied into the requested output
directory and made executable.
"""
import logging
import os
import re
import shutil
import sys
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterator, List, Optional, Union

import requests

from shiftctl.config import Config
from shiftctl.errors import DownloadError, FilesystemError, UnexpectedLayoutError
from shiftctl.modules import archive

logger = logging.getLogger("shiftctl.ocp.download")

BINARY_NAME = "oc"
TAR = "tar.gz"
ZIP = "zip"
CHUNK_SIZE = 64 * 1024


class Platform(str, Enum):
    """Client platforms the mirror publishes archives for."""
    LINUX = 'linux'
    DARWIN = 'darwin'
    WINDOWS = 'windows'

    @classmethod
    def current(cls) -> 'Platform':
        """Platform of the machine running shiftctl."""
        if sys.platform.startswith('win'):
            return cls.WINDOWS
        if sys.platform == 'darwin':
            return cls.DARWIN
        return cls.LINUX


@dataclass
class DownloadRequest:
    """A request for one versioned client binary."""
    version: str
    platform: Platform
    output_dir: Union[str, Path]

    @property
    def normalized_version(self) -> str:
        return self.version[1:] if self.version.startswith('v') else self.version

    @property
    def url_platform(self) -> str:
        if self.platform == Platform.DARWIN:
            return 'macosx'
        return self.platform.value

    @property
    def extension(self) -> str:
        return ZIP if self.platform == Platform.WINDOWS else TAR

    @property
    def archive_name(self) -> str:
        return f"{BINARY_NAME}.{self.extension}"

    @property
    def binary_name(self) -> str:
        if self.platform == Platform.WINDOWS:
            return f"{BINARY_NAME}.exe"
        return BINARY_NAME

    def url(self, base_url: str = Config.MIRROR_URL) -> str:
        # e.g. 3.7.0/windows/oc.zip
        return f"{base_url}{self.normalized_version}/{self.url_platform}/{self.archive_name}"

    def dev_portal_url(self, base_url: str = Config.DEV_DOWNLOAD_URL) -> str:
        # e.g. oc-3.5.5.31.24-windows.zip
        return f"{base_url}{BINARY_NAME}-{self.version}-{self.url_platform}.{self.extension}?workflow=direct"


@contextmanager
def _download_workdir() -> Iterator[str]:
    try:
        tmp_dir = tempfile.mkdtemp(prefix="shiftctl-asset-download-")
    except OSError as e:
        raise FilesystemError(f"Cannot create temporary download directory: {e}") from e
    try:
        yield tmp_dir
    finally:
        shutil.rmtree(tmp_dir, ignore_errors=True)


def download_file(url: str, filename: str, username: Optional[str] = None, password: Optional[str] = None,
             timeout: int = Config.DOWNLOAD_TIMEOUT) -> None:
    """Stream url into filename.

    Basic auth is only sent when a username is given.

    Raises:
        DownloadError: On transport failure or a non-200 response
        FilesystemError: If the target file cannot be written
    """
    auth = (username, password or "") if username else None
    logger.debug(f"Downloading {url} to {filename}")

    try:
        response = requests.get(url, auth=auth, stream=True, timeout=timeout)
    except requests.RequestException as e:
        raise DownloadError(f"Unable to get resource '{url}': {e}") from e

    try:
        if response.status_code != 200:
            raise DownloadError(f"Wrong credentials or filename '{url}': {response.status_code}")

        try:
            with open(filename, 'wb') as out:
                for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                    if chunk:
                        out.write(chunk)
        except requests.RequestException as e:
            raise DownloadError(f"Not able to download '{url}': {e}") from e
        except OSError as e:
            raise FilesystemError(f"Not able to copy file to '{filename}': {e}") from e
    finally:
        response.close()


def list_dir_excluding(directory: str, exclude_regexp: str) -> List[str]:
    """List entry names in directory that do not match exclude_regexp."""
    pattern = re.compile(exclude_regexp)
    return sorted(name for name in os.listdir(directory) if not pattern.match(name))


def copy_file(src: str, dest: str) -> None:
    """Copy src to dest byte for byte and fsync the destination."""
    try:
        with open(src, 'rb') as src_file, open(dest, 'wb') as dest_file:
            shutil.copyfileobj(src_file, dest_file)
            dest_file.flush()
            os.fsync(dest_file.fileno())
    except OSError as e:
        raise FilesystemError(f"Cannot copy {src} to {dest}: {e}") from e


def _locate_binary(work_dir: str, request: DownloadRequest) -> str:
    exclude = r"^" + re.escape(BINARY_NAME) + r"\.(tar.*|zip)$"
    try:
        content = list_dir_excluding(work_dir, exclude)
    except OSError as e:
        raise FilesystemError(f"Cannot list content of {work_dir}: {e}") from e

    if len(content) != 1:
        raise UnexpectedLayoutError(
            f"Unexpected number of files in tmp directory {work_dir}: {content}"
        )

    root = os.path.join(work_dir, content[0])
    if os.path.isdir(root):
        binary_path = os.path.join(root, request.binary_name)
    else:
        binary_path = root

    if os.path.islink(root) or os.path.islink(binary_path):
        raise UnexpectedLayoutError(f"Archive entry {content[0]} is a link, not the {request.binary_name} binary")
    if not os.path.isfile(binary_path) or os.path.basename(binary_path) != request.binary_name:
        raise UnexpectedLayoutError(f"Archive does not contain {request.binary_name}: found {content[0]}")
    return binary_path


def _install_binary(binary_path: str, output_dir: Union[str, Path], binary_name: str) -> Path:
    try:
        os.makedirs(output_dir, mode=0o755, exist_ok=True)
    except OSError as e:
        raise FilesystemError(f"Cannot create the target directory {output_dir}: {e}") from e

    final_path = Path(output_dir) / binary_name
    copy_file(binary_path, str(final_path))

    try:
        os.chmod(final_path, 0o777)
    except OSError as e:
        raise FilesystemError(f"Cannot make {final_path} executable: {e}") from e

    return final_path


def _fetch(request: DownloadRequest, url: str, username: Optional[str] = None,
           password: Optional[str] = None) -> Path:
    with _download_workdir() as work_dir:
        archive_path = os.path.join(work_dir, request.archive_name)
        download_file(url, archive_path, username, password)
        archive.extract(archive_path, work_dir)
        binary_path = _locate_binary(work_dir, request)
        final_path = _install_binary(binary_path, request.output_dir, request.binary_name)

    logger.info(f"Installed {final_path} from {url}")
    return final_path


def fetch_binary(version: str, platform: Platform, output_dir: Union[str, Path],
                 base_url: str = Config.MIRROR_URL) -> Path:
    """Download the client binary for version/platform into output_dir.

    Args:
        version: Release version, with or without a leading "v"
        platform: Target platform of the binary
        output_dir: Directory the binary is installed into (created if missing)
        base_url: Mirror root URL

    Returns:
        Path: Location of the installed, executable binary

    Raises:
        DownloadError: If the archive cannot be downloaded
        ExtractionError: If the archive cannot be unpacked
        UnexpectedLayoutError: If the archive does not hold exactly one entry
        FilesystemError: If local file operations fail
    """
    request = DownloadRequest(version=version, platform=Platform(platform), output_dir=output_dir)
    return _fetch(request, request.url(base_url))


def fetch_binary_from_developer_portal(username: str, password: str, version: str, platform: Platform,
                                       output_dir: Union[str, Path],
                                       base_url: str = Config.DEV_DOWNLOAD_URL) -> Path:
    """Same as fetch_binary, but from the authenticated developer download manager."""
    request = DownloadRequest(version=version, platform=Platform(platform), output_dir=output_dir)
    return _fetch(request, request.dev_portal_url(base_url), username, password)
