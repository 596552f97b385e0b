"""Client tooling download and install."""

from .download import (
    DownloadRequest,
    Platform,
    download_file,
    fetch_binary,
    fetch_binary_from_developer_portal,
)
from .versions import PublishedVersion, is_published, latest_version, published_versions

__all__ = [
    'DownloadRequest',
    'Platform',
    'download_file',
    'fetch_binary',
    'fetch_binary_from_developer_portal',
    'PublishedVersion',
    'is_published',
    'latest_version',
    'published_versions',
]
