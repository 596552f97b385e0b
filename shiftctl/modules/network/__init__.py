"""Guest network configuration."""

from .models import AddressMode, HypervisorKind, NetworkSettings, companion_interface
from .settings import (
    check_support_for_address_assignment,
    configure_dynamic_assignment,
    configure_static_assignment,
    get_current_network_settings,
    get_ip,
    render_network_script,
    write_network_settings_to_host,
)

__all__ = [
    'AddressMode',
    'HypervisorKind',
    'NetworkSettings',
    'companion_interface',
    'check_support_for_address_assignment',
    'configure_dynamic_assignment',
    'configure_static_assignment',
    'get_current_network_settings',
    'get_ip',
    'render_network_script',
    'write_network_settings_to_host',
]
