"""Archive helpers used when unpacking downloaded client tooling."""
import gzip
import logging
import os
import shutil
import tarfile
import zipfile

from shiftctl.errors import ExtractionError

logger = logging.getLogger("shiftctl.archive")


def _check_member_path(dest: str, name: str) -> None:
    target = os.path.realpath(os.path.join(dest, name))
    root = os.path.realpath(dest)
    if target != root and not target.startswith(root + os.sep):
        raise ExtractionError(f"Archive member escapes target directory: {name}")


def _check_member_link(dest: str, member: tarfile.TarInfo) -> None:
    if member.issym():
        target = os.path.join(os.path.dirname(member.name), member.linkname)
    elif member.islnk():
        target = member.linkname
    else:
        return
    if os.path.isabs(member.linkname):
        raise ExtractionError(f"Archive link {member.name} points outside target directory: {member.linkname}")
    _check_member_path(dest, target)


def ungzip(source: str, target: str) -> None:
    """Decompress a gzip file into target."""
    try:
        with gzip.open(source, 'rb') as src, open(target, 'wb') as dst:
            shutil.copyfileobj(src, dst)
    except (OSError, EOFError) as e:
        raise ExtractionError(f"Cannot ungzip {source}: {e}") from e


def untar(source: str, dest: str) -> None:
    """Extract a plain tar file into dest."""
    try:
        with tarfile.open(source, 'r:') as tf:
            for member in tf.getmembers():
                _check_member_path(dest, member.name)
                _check_member_link(dest, member)
            tf.extractall(dest)
    except (tarfile.TarError, OSError) as e:
        raise ExtractionError(f"Cannot untar {source}: {e}") from e


def unzip(source: str, dest: str) -> None:
    """Extract a zip file into dest."""
    try:
        with zipfile.ZipFile(source, 'r') as zf:
            for name in zf.namelist():
                _check_member_path(dest, name)
            zf.extractall(dest)
    except (zipfile.BadZipFile, OSError) as e:
        raise ExtractionError(f"Cannot unzip {source}: {e}") from e


def extract(archive_path: str, dest: str) -> None:
    """Extract archive_path into dest, picking the format from its extension.

    ``.tar.gz`` archives are gunzipped next to the archive first and then
    untarred; ``.zip`` archives are extracted directly.
    """
    logger.debug(f"Extracting {archive_path} into {dest}")
    if archive_path.endswith('.tar.gz'):
        tar_path = archive_path[:-len('.gz')]
        ungzip(archive_path, tar_path)
        untar(tar_path, dest)
    elif archive_path.endswith('.zip'):
        unzip(archive_path, dest)
    else:
        raise ExtractionError(f"Unsupported archive format: {archive_path}")
