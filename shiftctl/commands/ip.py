"""``shiftctl ip``: show or pin the guest's address."""
import typer

from shiftctl.config import ToolSettings
from shiftctl.errors import ShiftctlError
from shiftctl.modules.instance_config import FileInstanceConfigStore
from shiftctl.modules.network import (
    HypervisorKind,
    configure_dynamic_assignment,
    configure_static_assignment,
    get_ip,
)
from .common import fail, open_channel


def ip_cmd(
    host: str = typer.Option(..., "--host", help="Guest address"),
    static: bool = typer.Option(False, "--static", help="Sets the current assigned IP address as static address for the instance"),
    dhcp: bool = typer.Option(False, "--dhcp", help="Sets network configuration to use DHCP to assign IP address to the instance"),
    hypervisor: str = typer.Option("virtualbox", "--hypervisor", help="Hypervisor the guest runs on"),
    machine: str = typer.Option("minishift", "--machine", "-m", help="Instance name"),
    ssh_user: str = typer.Option(None, "--ssh-user", "-u", help="SSH username for guest access"),
    ssh_key: str = typer.Option(None, "--ssh-key", help="Path to SSH private key"),
    ssh_port: int = typer.Option(None, "--ssh-port", help="SSH port"),
    config: str = typer.Option(None, "--config", "-c", help="Path to settings file"),
):
    """Gets the IP address of the running cluster and prints it to standard output."""
    if static and dhcp:
        typer.echo("Invalid options specified", err=True)
        raise typer.Exit(1)

    try:
        settings = ToolSettings.load(config)
        store = FileInstanceConfigStore.for_machine(machine)

        channel = open_channel(host, ssh_user, ssh_key, ssh_port, settings)
        try:
            if dhcp:
                configure_dynamic_assignment(channel, store)
            elif static:
                configure_static_assignment(channel, store, HypervisorKind.parse(hypervisor))
            else:
                typer.echo(get_ip(channel, store))
        finally:
            channel.close()
    except ShiftctlError as e:
        fail(e)
