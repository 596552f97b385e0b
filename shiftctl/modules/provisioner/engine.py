"""Container engine provisioning on the guest.

This module pushes TLS material and engine options to a freshly started
guest and restarts the engine. The ``channel`` argument is any object with
``run_command(command) -> str`` and ``get_ip() -> str``; ``transfer`` is any
object with ``put(localpath, remotepath, mode)``.
"""
import getpass
import logging
import os
import posixpath
import shlex
from typing import Callable, Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateError

from shiftctl.config import Config
from shiftctl.errors import ProvisioningError, RemoteCommandError, TemplateRenderError
from shiftctl.modules.instance_config import InstanceConfigStore
from .certs import copy_host_certs, generate_server_cert
from .models import AuthOptions, Distro, EngineProvisioningContext

logger = logging.getLogger("shiftctl.provisioner.engine")

ENGINE_OPTIONS_PATH = "/etc/systemd/system/docker.service.d/10-machine.conf"
FILESYSTEM_PROBE_DIR = "/var/lib"
RHEL_FAMILY = ('rhel', 'centos', 'fedora')

TEMPLATES = {
    Distro.RHEL: 'rhel.j2',
    Distro.CENTOS: 'centos.j2',
    Distro.BUILDROOT: 'buildroot.j2',
}

CertGenerator = Callable[[AuthOptions, str, str], None]


def get_template_path() -> str:
    """Get the absolute path to the templates directory."""
    return os.path.join(os.path.dirname(os.path.abspath(__file__)), 'templates')


_env = Environment(
    loader=FileSystemLoader(get_template_path()),
    keep_trailing_newline=True,
    undefined=StrictUndefined,
)


def make_docker_options_dir(channel, docker_options_dir: str) -> None:
    channel.run_command(f"sudo mkdir -p {docker_options_dir}")


def set_remote_auth_options(auth: AuthOptions, docker_options_dir: str) -> AuthOptions:
    """Point the remote cert paths into docker_options_dir.

    Always joined POSIX-style; the guest is Linux whatever the client runs on.
    """
    auth.ca_cert_remote_path = posixpath.join(docker_options_dir, "ca.pem")
    auth.server_cert_remote_path = posixpath.join(docker_options_dir, "server.pem")
    auth.server_key_remote_path = posixpath.join(docker_options_dir, "server-key.pem")
    return auth


def get_filesystem_type(channel, directory: str) -> str:
    try:
        output = channel.run_command(f"stat -f -c %T {directory}")
    except RemoteCommandError as e:
        raise RemoteCommandError(e.command, f"Error looking up file system type: {e}") from e
    return output.strip()


def decide_storage_driver(channel, default_driver: str, supplied_driver: Optional[str]) -> str:
    """Pick the engine storage driver.

    A supplied driver is used verbatim. Otherwise a non-aufs default is kept,
    and an aufs default becomes btrfs when the guest's /var/lib is btrfs.
    """
    if supplied_driver:
        return supplied_driver

    if default_driver != "aufs":
        best_suited = default_driver
    elif get_filesystem_type(channel, FILESYSTEM_PROBE_DIR) == "btrfs":
        best_suited = "btrfs"
    else:
        best_suited = "aufs"

    logger.debug(f"No storage driver specified, instead using {best_suited}")
    return best_suited


def transfer_certs(transfer, auth: AuthOptions) -> None:
    remote_certs = {
        auth.ca_cert_path: auth.ca_cert_remote_path,
        auth.server_cert_path: auth.server_cert_remote_path,
        auth.server_key_path: auth.server_key_remote_path,
    }
    for src, dst in remote_certs.items():
        try:
            transfer.put(src, dst, mode=0o640)
        except (RemoteCommandError, OSError) as e:
            raise ProvisioningError(f"transferring file to machine {src} -> {dst}: {e}") from e


def render_engine_options(ctx: EngineProvisioningContext) -> str:
    """Render the engine options file for the guest's distribution family."""
    template_name = TEMPLATES.get(ctx.distro, TEMPLATES[Distro.BUILDROOT])
    try:
        return _env.get_template(template_name).render(
            docker_port=ctx.docker_port,
            engine=ctx.engine_options,
            auth=ctx.auth_options,
        )
    except TemplateError as e:
        raise TemplateRenderError(f"Error rendering engine options {template_name}: {e}") from e


def write_engine_options(channel, content: str, path: str = ENGINE_OPTIONS_PATH) -> None:
    channel.run_command(
        f"sudo mkdir -p {posixpath.dirname(path)} && printf %s {shlex.quote(content)} | sudo tee {path}"
    )


def restart_engine(channel) -> None:
    channel.run_command("sudo systemctl daemon-reload && sudo systemctl -f restart docker")


def provision_engine(ctx: EngineProvisioningContext, channel, transfer,
                     cert_generator: CertGenerator = generate_server_cert) -> str:
    """Push TLS material and engine options to the guest and restart the engine.

    Args:
        ctx: Provisioning context for this pass
        channel: Remote command channel to the guest
        transfer: File transfer to the guest
        cert_generator: Called as (auth_options, ip, org) to create the server cert

    Returns:
        str: The rendered engine options

    Raises:
        RemoteCommandError: If a remote command, including the restart, fails
        ProvisioningError: If a certificate step fails
        TemplateRenderError: If the engine options cannot be rendered
    """
    make_docker_options_dir(channel, ctx.docker_options_dir)
    set_remote_auth_options(ctx.auth_options, ctx.docker_options_dir)

    ctx.engine_options.storage_driver = decide_storage_driver(
        channel, ctx.default_storage_driver, ctx.engine_options.storage_driver
    )

    copy_host_certs(ctx.auth_options)

    try:
        ip = channel.get_ip()
    except RemoteCommandError as e:
        raise ProvisioningError(f"error getting ip during provisioning: {e}") from e
    org = f"{getpass.getuser()}.{ctx.machine_name}"
    cert_generator(ctx.auth_options, ip, org)

    transfer_certs(transfer, ctx.auth_options)

    engine_options = render_engine_options(ctx)
    logger.info("Setting Docker configuration on the remote daemon...")
    write_engine_options(channel, engine_options)

    restart_engine(channel)
    return engine_options


def detect_distro(channel) -> Distro:
    """Read the guest's distribution family from /etc/os-release."""
    os_id = channel.run_command(". /etc/os-release && echo $ID")
    return Distro.from_os_release(os_id)


def do_feature_detection(channel, store: InstanceConfigStore) -> bool:
    """Record whether the guest ships the network helper script.

    Also records whether the guest is RHEL based, the other half of the
    network-assignment capability gate.
    """
    out = channel.run_command(
        f"test -f {Config.NETWORK_HELPER_SCRIPT} && echo '1' || echo '0' "
    )
    supported = out.strip() == "1"
    store.set('supports_network_assignment', supported)
    store.write()

    os_release = channel.run_command(". /etc/os-release && echo $ID $ID_LIKE")
    store.set('is_rhel_based', any(name in RHEL_FAMILY for name in os_release.split()))

    store.write()
    logger.debug(f"Network assignment supported: {supported}")
    return supported
