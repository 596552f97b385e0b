"""Container engine provisioning for freshly started guests."""

from .certs import copy_host_certs, generate_server_cert, server_cert_hosts
from .engine import (
    decide_storage_driver,
    detect_distro,
    do_feature_detection,
    get_filesystem_type,
    make_docker_options_dir,
    provision_engine,
    render_engine_options,
    restart_engine,
    set_remote_auth_options,
    transfer_certs,
    write_engine_options,
)
from .models import AuthOptions, Distro, EngineOptions, EngineProvisioningContext

__all__ = [
    'AuthOptions',
    'Distro',
    'EngineOptions',
    'EngineProvisioningContext',
    'copy_host_certs',
    'generate_server_cert',
    'server_cert_hosts',
    'decide_storage_driver',
    'detect_distro',
    'do_feature_detection',
    'get_filesystem_type',
    'make_docker_options_dir',
    'provision_engine',
    'render_engine_options',
    'restart_engine',
    'set_remote_auth_options',
    'transfer_certs',
    'write_engine_options',
]
