"""Published client versions available from the developer download manager."""
from datetime import date
from typing import List, NamedTuple


class PublishedVersion(NamedTuple):
    value: str
    released: date


VERSIONS: List[PublishedVersion] = [
    PublishedVersion("3.6.173.0.21", date(2017, 9, 8)),
    PublishedVersion("3.5.5.31.24", date(2017, 9, 7)),
]


def published_versions() -> List[PublishedVersion]:
    """Published versions, newest release first."""
    return sorted(VERSIONS, key=lambda v: v.released, reverse=True)


def is_published(version: str) -> bool:
    normalized = version[1:] if version.startswith('v') else version
    return any(v.value == normalized for v in VERSIONS)


def latest_version() -> str:
    return published_versions()[0].value
