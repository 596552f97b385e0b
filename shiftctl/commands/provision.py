"""``shiftctl provision``: push TLS material and engine options to a guest."""
import logging
from pathlib import Path
from typing import List, Optional

import typer

from shiftctl.config import Config, ToolSettings
from shiftctl.errors import ShiftctlError
from shiftctl.modules.instance_config import FileInstanceConfigStore
from shiftctl.modules.provisioner import (
    AuthOptions,
    Distro,
    EngineOptions,
    EngineProvisioningContext,
    detect_distro,
    do_feature_detection,
    provision_engine,
)
from .common import fail, open_channel

logger = logging.getLogger("shiftctl.commands.provision")

app = typer.Typer(help="Guest provisioning commands")


@app.command("engine")
def provision_engine_cmd(
    host: str = typer.Option(..., "--host", help="Guest address"),
    machine: str = typer.Option("minishift", "--machine", "-m", help="Instance name"),
    distro: Optional[Distro] = typer.Option(None, "--distro", help="Guest distribution family (detected when omitted)"),
    storage_driver: str = typer.Option(None, "--storage-driver", help="Engine storage driver (detected when omitted)"),
    certs_dir: Path = typer.Option(Path(Config.SHIFTCTL_HOME) / "certs", "--certs-dir", help="Directory holding ca.pem, ca-key.pem, cert.pem and key.pem"),
    san: List[str] = typer.Option([], "--san", help="Extra subject alternative name for the server cert"),
    label: List[str] = typer.Option([], "--label", help="Engine label"),
    insecure_registry: List[str] = typer.Option([], "--insecure-registry", help="Insecure registry"),
    registry_mirror: List[str] = typer.Option([], "--registry-mirror", help="Registry mirror"),
    engine_opt: List[str] = typer.Option([], "--engine-opt", help="Arbitrary engine flag, without leading dashes"),
    engine_env: List[str] = typer.Option([], "--engine-env", help="Engine environment variable as KEY=VALUE"),
    ssh_user: str = typer.Option(None, "--ssh-user", "-u", help="SSH username for guest access"),
    ssh_key: str = typer.Option(None, "--ssh-key", help="Path to SSH private key"),
    ssh_port: int = typer.Option(None, "--ssh-port", help="SSH port"),
    config: str = typer.Option(None, "--config", "-c", help="Path to settings file"),
):
    """Provision the container engine on a running guest."""
    try:
        settings = ToolSettings.load(config)
        store = FileInstanceConfigStore.for_machine(machine)
        store_path = Config.machines_dir() / machine

        with open_channel(host, ssh_user, ssh_key, ssh_port, settings) as channel:
            if distro is None:
                distro = detect_distro(channel)
                logger.info(f"Detected guest distribution: {distro.value}")

            ctx = EngineProvisioningContext(
                distro=distro,
                auth_options=AuthOptions.from_certs_dir(str(certs_dir), str(store_path), sans=list(san)),
                engine_options=EngineOptions(
                    storage_driver=storage_driver or "",
                    labels=list(label),
                    insecure_registry=list(insecure_registry or settings.engine.insecure_registry),
                    registry_mirror=list(registry_mirror or settings.engine.registry_mirror),
                    arbitrary_flags=list(engine_opt),
                    env=list(engine_env),
                ),
                docker_port=settings.engine.docker_port,
                docker_options_dir=settings.engine.docker_options_dir,
                machine_name=machine,
                default_storage_driver=settings.engine.default_storage_driver,
            )

            typer.echo(f"🔧 Provisioning container engine on {host} ({distro.value})...")
            provision_engine(ctx, channel, channel.open_transfer())

            supported = do_feature_detection(channel, store)
    except ShiftctlError as e:
        fail(e)

    typer.echo(f"✅ Engine provisioned on {host}; network assignment supported: {supported}")
