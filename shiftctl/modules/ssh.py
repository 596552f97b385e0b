"""
SSH channel to the guest, built on paramiko.
"""
import logging
import os
import posixpath
import shlex
import shutil
from typing import Optional

import paramiko
from paramiko.ssh_exception import (
    AuthenticationException,
    NoValidConnectionsError,
    SSHException,
)

from shiftctl.config import Config
from shiftctl.errors import RemoteCommandError

logger = logging.getLogger("shiftctl.ssh")


class SSHFileTransfer:
    """Uploads files to root-owned guest paths by streaming them into ``sudo tee``."""

    def __init__(self, client: paramiko.SSHClient, host: str):
        self.client = client
        self.host = host

    def put(self, localpath: str, remotepath: str, mode: int = 0o644) -> None:
        """Upload a file to the guest.

        Args:
            localpath: Path to the local file to upload
            remotepath: Path on the guest to upload to
            mode: Permission bits to set on the remote file

        Raises:
            RemoteCommandError: If the upload fails
            OSError: If the local file cannot be read
        """
        target = shlex.quote(remotepath)
        command = (
            f"sudo mkdir -p {shlex.quote(posixpath.dirname(remotepath))} && "
            f"sudo tee {target} > /dev/null && sudo chmod {mode:o} {target}"
        )
        logger.debug(f"[{self.host}] Uploading {localpath} to {remotepath}")

        try:
            stdin, stdout, stderr = self.client.exec_command(command)
            with open(localpath, 'rb') as f:
                shutil.copyfileobj(f, stdin)
            stdin.channel.shutdown_write()
            error = stderr.read().decode("utf-8", errors="replace")
            exit_status = stdout.channel.recv_exit_status()
        except SSHException as e:
            raise RemoteCommandError(command, f"Failed to upload {localpath} to {self.host}:{remotepath}: {e}") from e

        if exit_status != 0:
            raise RemoteCommandError(
                command,
                f"Failed to upload {localpath} to {self.host}:{remotepath}: {error.strip()}",
                exit_status=exit_status,
            )


class SSHChannel:
    """Remote command channel to a single guest."""

    def __init__(self, host: str, username: str, key_path: str = None, port: int = 22,
                 timeout: int = Config.SSH_TIMEOUT, command_timeout: int = Config.COMMAND_TIMEOUT):
        """Initialize the channel.

        Args:
            host: Guest address
            username: Username for authentication
            key_path: Path to SSH private key (optional)
            port: SSH port (default: 22)
            timeout: Connection timeout in seconds
            command_timeout: Per-command timeout in seconds
        """
        self.host = host
        self.username = username
        self.key_path = os.path.expanduser(key_path) if key_path else None
        self.port = port
        self.timeout = timeout
        self.command_timeout = command_timeout
        self._client: Optional[paramiko.SSHClient] = None

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def connect(self) -> None:
        """Open the underlying SSH connection."""
        if self._client is not None:
            return

        client = paramiko.SSHClient()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())

        logger.debug(f"Connecting to {self.username}@{self.host}:{self.port}")
        try:
            client.connect(
                hostname=self.host,
                port=self.port,
                username=self.username,
                key_filename=self.key_path,
                timeout=self.timeout,
                allow_agent=True,
                look_for_keys=self.key_path is None,
            )
        except (AuthenticationException, NoValidConnectionsError, SSHException, OSError) as e:
            client.close()
            raise RemoteCommandError(
                "connect",
                f"Failed to establish SSH connection to {self.username}@{self.host}:{self.port}: {e}",
            ) from e

        self._client = client

    def get_ip(self) -> str:
        """Return the address the guest is reachable on."""
        return self.host

    def run_command(self, command: str) -> str:
        """Run a command on the guest and return its stdout.

        Raises:
            RemoteCommandError: If the command cannot be run or exits non-zero
        """
        self.connect()
        logger.debug(f"[{self.host}] Executing: {command}")

        try:
            _, stdout, stderr = self._client.exec_command(command, timeout=self.command_timeout)
            output = stdout.read().decode("utf-8", errors="replace")
            error = stderr.read().decode("utf-8", errors="replace")
            exit_status = stdout.channel.recv_exit_status()
        except (SSHException, OSError) as e:
            raise RemoteCommandError(command, f"Error running '{command}' on {self.host}: {e}") from e

        if exit_status != 0:
            raise RemoteCommandError(
                command,
                f"Command '{command}' on {self.host} exited with status {exit_status}: {error.strip()}",
                exit_status=exit_status,
            )

        return output

    def open_transfer(self) -> SSHFileTransfer:
        """File transfer over a separate session on this connection."""
        self.connect()
        return SSHFileTransfer(self._client, self.host)

    def close(self) -> None:
        """Close the SSH connection."""
        if self._client is not None:
            self._client.close()
            self._client = None

