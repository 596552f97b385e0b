"""Helpers shared by the command groups."""
import logging
from typing import Optional

import typer

from shiftctl.config import ToolSettings
from shiftctl.errors import ShiftctlError
from shiftctl.modules.ssh import SSHChannel

logger = logging.getLogger("shiftctl.commands")


def open_channel(host: str, user: Optional[str], key: Optional[str], port: Optional[int],
                 settings: ToolSettings) -> SSHChannel:
    """Build a channel, filling unset options from the settings file."""
    return SSHChannel(
        host=host,
        username=user or settings.ssh.user,
        key_path=key or settings.ssh.key_path,
        port=port or settings.ssh.port,
        timeout=settings.ssh.connect_timeout,
    )


def fail(error: ShiftctlError) -> None:
    """Report an engine error and exit non-zero."""
    logger.debug("Command failed", exc_info=error)
    typer.echo(f"❌ {error}", err=True)
    raise typer.Exit(1)
