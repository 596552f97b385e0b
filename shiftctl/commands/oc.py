"""``shiftctl oc``: install the cluster client binary."""
import logging
from pathlib import Path

import typer

from shiftctl.config import Config
from shiftctl.errors import ShiftctlError
from shiftctl.modules.ocp import (
    Platform,
    fetch_binary,
    fetch_binary_from_developer_portal,
    is_published,
    latest_version,
    published_versions,
)
from .common import fail

logger = logging.getLogger("shiftctl.commands.oc")

app = typer.Typer(help="Client binary management")


@app.command("install")
def install_cmd(
    version: str = typer.Option(None, "--version", help="Client version (portal downloads default to the latest published)"),
    platform: Platform = typer.Option(Platform.current(), "--platform", "-p", help="Target platform"),
    output_dir: Path = typer.Option(Path(Config.SHIFTCTL_HOME) / "bin", "--output-dir", "-o", help="Install directory"),
    dev_portal: bool = typer.Option(False, "--dev-portal", help="Download from the authenticated developer portal"),
    username: str = typer.Option(None, "--username", envvar="SHIFTCTL_DEV_USERNAME", help="Developer portal username"),
    password: str = typer.Option(None, "--password", envvar="SHIFTCTL_DEV_PASSWORD", help="Developer portal password"),
):
    """Download and install the oc binary."""
    if not version:
        if not dev_portal:
            raise typer.BadParameter("--version is required when installing from the mirror")
        version = latest_version()
    typer.echo(f"📦 Installing oc {version} for {platform.value} into {output_dir}")

    try:
        if dev_portal:
            if not username:
                raise typer.BadParameter("--username is required with --dev-portal")
            if not is_published(version):
                logger.warning(f"Version {version} is not in the published version list")
            path = fetch_binary_from_developer_portal(username, password, version, platform, output_dir)
        else:
            path = fetch_binary(version, platform, output_dir)
    except ShiftctlError as e:
        fail(e)

    typer.echo(f"✅ Installed {path}")


@app.command("versions")
def versions_cmd():
    """List published client versions."""
    for published in published_versions():
        typer.echo(f"{published.value}\t{published.released.isoformat()}")
