"""Guest network settings: discovery, rendering and application.

The ``channel`` passed to these functions is any object with
``run_command(command) -> str`` (raising RemoteCommandError on failure)
and ``get_ip() -> str``; see shiftctl.modules.ssh.SSHChannel.

Discovery is fail-fast: any failed query raises. Applying settings is
best-effort: a failed write is reported and the caller carries on with
the remaining devices.
"""
import base64
import logging
import os
from typing import List

import typer
from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateError

from shiftctl.config import Config
from shiftctl.errors import RemoteCommandError, TemplateRenderError, UnsupportedPlatformError
from shiftctl.modules.instance_config import InstanceConfigStore
from .models import AddressMode, HypervisorKind, NetworkSettings, companion_interface

logger = logging.getLogger("shiftctl.network")

CONFIGURE_IP_ADDRESS_MESSAGE = "-- Set the following network settings to VM ..."
RESTART_NEEDED_MESSAGE = "Network settings get applied to the instance on restart"
NETWORK_NOT_SUPPORTED_MESSAGE = "The VM does not support network assignment"

TEMPLATES = {
    AddressMode.STATIC: 'static.j2',
    AddressMode.DHCP: 'dhcp.j2',
    AddressMode.DISABLED: 'disabled.j2',
}


def get_template_path() -> str:
    """Get the absolute path to the templates directory."""
    return os.path.join(os.path.dirname(os.path.abspath(__file__)), 'templates')


_env = Environment(
    loader=FileSystemLoader(get_template_path()),
    keep_trailing_newline=True,
    undefined=StrictUndefined,
)


def render_network_script(settings: NetworkSettings) -> str:
    """Render settings into the key=value script for its effective mode."""
    try:
        return _env.get_template(TEMPLATES[settings.mode]).render(settings=settings)
    except TemplateError as e:
        raise TemplateRenderError(f"Error executing network script template for {settings.device}: {e}") from e


def network_script_path(device: str) -> str:
    return f"{Config.STATE_DIR}/networking-{device}"


def get_ip(channel, store: InstanceConfigStore) -> str:
    """Address assigned by us if one was persisted, else the driver's."""
    configured_ip = store.get('ip_address')
    if configured_ip:
        return configured_ip
    return channel.get_ip()


def check_support_for_address_assignment(store: InstanceConfigStore) -> None:
    """Raise UnsupportedPlatformError unless the guest can take network settings."""
    if not (store.get('is_rhel_based') and store.get('supports_network_assignment')):
        raise UnsupportedPlatformError(NETWORK_NOT_SUPPORTED_MESSAGE)


def _query(channel, command: str, what: str) -> str:
    try:
        return channel.run_command(command)
    except RemoteCommandError as e:
        raise RemoteCommandError(command, f"Error getting {what}: {e}") from e


def get_current_network_settings(channel) -> NetworkSettings:
    """Read the guest's current network settings.

    The queries are chained because each one after the first depends on the
    device resolved from the current IP.

    Raises:
        RemoteCommandError: If any query fails or returns nothing usable
    """
    try:
        instance_ip = channel.get_ip()
    except RemoteCommandError as e:
        raise RemoteCommandError("get_ip", f"Error getting IP address: {e}") from e
    if not instance_ip:
        raise RemoteCommandError("get_ip", "Error getting IP address: No address available")

    device = _query(
        channel,
        f"ip a |grep -i '{instance_ip}' | awk '{{print $NF}}' | tr -d '\\n'",
        "device",
    ).strip()
    if not device:
        raise RemoteCommandError("ip a", f"Error getting device: no device holds {instance_ip}")

    address_info = _query(
        channel,
        f"ip -o -f inet addr show {device} | head -n1 | awk '/scope global/ {{print $4}}'",
        "netmask",
    ).strip()
    if '/' not in address_info:
        raise RemoteCommandError("ip addr show", f"Error getting netmask: unexpected address '{address_info}' on {device}")
    ip_address, netmask = address_info.split('/', 1)

    resolve_info = _query(
        channel,
        "cat /etc/resolv.conf |grep -i '^nameserver' | cut -d ' ' -f2 | tr '\\n' ' '",
        "nameserver",
    )
    nameservers: List[str] = resolve_info.split()

    gateway = _query(
        channel,
        "route -n | grep 'UG[ \\t]' | awk '{print $2}' | tr -d '\\n'",
        "gateway",
    ).strip()

    settings = NetworkSettings(
        device=device,
        ip_address=ip_address,
        netmask=netmask,
        gateway=gateway,
        dns1=nameservers[0] if nameservers else "",
        dns2=nameservers[1] if len(nameservers) > 1 else "",
    )
    logger.debug(f"Discovered network settings: {settings}")
    return settings


def write_network_settings_to_host(channel, settings: NetworkSettings) -> bool:
    """Write the rendered script for one device onto the guest.

    The file is overwritten unconditionally. Returns False if the write
    failed; the failure is reported, not raised.
    """
    script = render_network_script(settings)
    encoded = base64.b64encode(script.encode('utf-8')).decode('ascii')
    command = (
        f"echo {encoded} | base64 --decode | sudo tee {network_script_path(settings.device)} > /dev/null"
    )

    try:
        channel.run_command(command)
    except RemoteCommandError as e:
        logger.warning(f"Writing network settings for {settings.device} failed: {e}")
        typer.echo("FAIL")
        return False

    typer.echo("OK")
    return True


def print_network_settings(settings: NetworkSettings) -> None:
    typer.echo(CONFIGURE_IP_ADDRESS_MESSAGE)
    typer.echo(f"   Device:      {settings.device}")
    typer.echo(f"   IP Address:  {settings.ip_address}/{settings.netmask}")
    if settings.gateway:
        typer.echo(f"   Gateway:     {settings.gateway}")
    if settings.dns1:
        typer.echo(f"   Nameservers: {settings.dns1} {settings.dns2}".rstrip())


def configure_dynamic_assignment(channel, store: InstanceConfigStore) -> None:
    """Switch eth0 and eth1 to DHCP."""
    check_support_for_address_assignment(store)
    typer.echo("Dynamic assignment of IP address")

    for device in ("eth0", "eth1"):
        write_network_settings_to_host(channel, NetworkSettings(device=device, use_dhcp=True))

    typer.echo(RESTART_NEEDED_MESSAGE)


def configure_static_assignment(channel, store: InstanceConfigStore,
                                hypervisor: HypervisorKind) -> NetworkSettings:
    """Pin the guest's current address as its static address.

    The discovered settings go to the primary device; the companion
    interface, if the hypervisor has one, is written after it regardless of
    whether the primary write succeeded.
    """
    check_support_for_address_assignment(store)
    typer.echo("Static assignment of IP address")

    settings = get_current_network_settings(channel)

    write_network_settings_to_host(channel, settings)
    companion = companion_interface(hypervisor)
    if companion is not None:
        write_network_settings_to_host(channel, companion)
    else:
        logger.debug(f"No companion interface for hypervisor {hypervisor.value}")

    print_network_settings(settings)

    store.set('ip_address', settings.ip_address)
    store.write()

    typer.echo(RESTART_NEEDED_MESSAGE)
    return settings
