"""Data models for guest network configuration."""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional


class AddressMode(str, Enum):
    """Effective mode of a NetworkSettings object."""
    STATIC = 'static'
    DHCP = 'dhcp'
    DISABLED = 'disabled'


class HypervisorKind(str, Enum):
    """Hypervisors the guest may run on."""
    VIRTUALBOX = 'virtualbox'
    KVM = 'kvm'
    HYPERV = 'hyperv'
    XHYVE = 'xhyve'
    OTHER = 'other'

    @classmethod
    def parse(cls, value: str) -> 'HypervisorKind':
        """Map a driver name onto a kind; unknown drivers become OTHER."""
        try:
            return cls(value.lower())
        except ValueError:
            return cls.OTHER


@dataclass
class NetworkSettings:
    """Settings for one guest network device.

    The fields are not mutually exclusive; ``mode`` picks the effective one
    with disabled taking priority over dhcp, and dhcp over static.
    """
    device: str
    ip_address: str = ""
    netmask: str = ""
    gateway: str = ""
    dns1: str = ""
    dns2: str = ""
    use_dhcp: bool = False
    disabled: bool = False

    @property
    def mode(self) -> AddressMode:
        if self.disabled:
            return AddressMode.DISABLED
        if self.use_dhcp:
            return AddressMode.DHCP
        return AddressMode.STATIC


# VirtualBox and KVM use two interfaces: eth0 for host communication and
# eth1 for external traffic. HyperV and Xhyve use a single interface, so
# eth1 is disabled. Kinds not listed get no companion interface.
COMPANION_INTERFACES: Dict[HypervisorKind, NetworkSettings] = {
    HypervisorKind.VIRTUALBOX: NetworkSettings(device="eth0", use_dhcp=True),
    HypervisorKind.KVM: NetworkSettings(device="eth0", use_dhcp=True),
    HypervisorKind.HYPERV: NetworkSettings(device="eth1", disabled=True),
    HypervisorKind.XHYVE: NetworkSettings(device="eth1", disabled=True),
}


def companion_interface(kind: HypervisorKind) -> Optional[NetworkSettings]:
    """Companion interface settings for a hypervisor kind, or None."""
    companion = COMPANION_INTERFACES.get(kind)
    if companion is None:
        return None
    return NetworkSettings(**vars(companion))
