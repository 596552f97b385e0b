import io
import tarfile
import zipfile

import pytest

from shiftctl.errors import RemoteCommandError
from shiftctl.modules.instance_config import InMemoryInstanceConfigStore


class FakeChannel:
    """Records commands and answers them from (substring, output) rules."""

    def __init__(self, ip="192.168.99.100", responses=None, failures=()):
        self.ip = ip
        self.responses = list(responses or [])
        self.failures = list(failures)
        self.commands = []
        self.closed = False

    def get_ip(self):
        return self.ip

    def run_command(self, command):
        self.commands.append(command)
        for marker in self.failures:
            if marker in command:
                raise RemoteCommandError(command, f"Process exited with status 1: {marker}", exit_status=1)
        for marker, output in self.responses:
            if marker in command:
                return output
        return ""

    def writes(self):
        return [c for c in self.commands if "base64 --decode" in c]

    def close(self):
        self.closed = True


class FakeTransfer:
    def __init__(self):
        self.puts = []

    def put(self, localpath, remotepath, mode=0o644):
        self.puts.append((localpath, remotepath, mode))


class FakeResponse:
    def __init__(self, status_code=200, body=b""):
        self.status_code = status_code
        self.body = body
        self.closed = False

    def iter_content(self, chunk_size=1):
        for i in range(0, len(self.body), chunk_size):
            yield self.body[i:i + chunk_size]

    def close(self):
        self.closed = True


def make_tar_gz(entries, symlinks=None):
    """entries: {name: bytes}; names ending with '/' become directories.

    symlinks: {name: link target}, added after the entries.
    """
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tf:
        for name, target in (symlinks or {}).items():
            info = tarfile.TarInfo(name)
            info.type = tarfile.SYMTYPE
            info.linkname = target
            tf.addfile(info)
        for name, data in entries.items():
            info = tarfile.TarInfo(name.rstrip("/"))
            if name.endswith("/"):
                info.type = tarfile.DIRTYPE
                info.mode = 0o755
                tf.addfile(info)
            else:
                info.size = len(data)
                info.mode = 0o755
                tf.addfile(info, io.BytesIO(data))
    return buf.getvalue()


def make_zip(entries):
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name, data in entries.items():
            zf.writestr(name, data)
    return buf.getvalue()


@pytest.fixture
def channel():
    return FakeChannel()


@pytest.fixture
def transfer():
    return FakeTransfer()


@pytest.fixture
def supported_store():
    return InMemoryInstanceConfigStore(is_rhel_based=True, supports_network_assignment=True)
