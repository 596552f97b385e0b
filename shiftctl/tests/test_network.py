import base64

import pytest

from conftest import FakeChannel
from shiftctl.errors import RemoteCommandError, UnsupportedPlatformError
from shiftctl.modules.instance_config import InMemoryInstanceConfigStore
from shiftctl.modules.network import (
    HypervisorKind,
    NetworkSettings,
    companion_interface,
    configure_dynamic_assignment,
    configure_static_assignment,
    get_current_network_settings,
    get_ip,
    render_network_script,
    write_network_settings_to_host,
)
from shiftctl.modules.network.models import AddressMode

DISCOVERY = [
    ("ip a |grep", "eth1"),
    ("ip -o -f inet", "192.168.99.100/24\n"),
    ("resolv.conf", "10.0.2.3 8.8.8.8 "),
    ("route -n", "192.168.99.1"),
]


def decoded(command):
    """Script content and target path of a network settings write."""
    encoded = command.split()[1]
    target = command.split("sudo tee ")[1].split()[0]
    return base64.b64decode(encoded).decode("utf-8"), target


@pytest.fixture
def discovering_channel():
    return FakeChannel(responses=DISCOVERY)


def test_render_static_script():
    settings = NetworkSettings(
        device="eth1", ip_address="192.168.99.100", netmask="24",
        gateway="192.168.99.1", dns1="10.0.2.3", dns2="8.8.8.8",
    )
    assert render_network_script(settings) == (
        "DEVICE=eth1\n"
        "IPADDR=192.168.99.100\n"
        "NETMASK=24\n"
        "GATEWAY=192.168.99.1\n"
        "DNS1=10.0.2.3\n"
        "DNS2=8.8.8.8\n"
    )


def test_render_dhcp_and_disabled_scripts():
    assert render_network_script(NetworkSettings(device="eth0", use_dhcp=True)) == "DEVICE=eth0\nUSEDHCP=true\n"
    assert render_network_script(NetworkSettings(device="eth1", disabled=True)) == "DEVICE=eth1\nDISABLED=true\n"


def test_disabled_takes_priority_over_dhcp_and_static():
    settings = NetworkSettings(device="eth1", ip_address="10.0.0.5", use_dhcp=True, disabled=True)
    assert settings.mode == AddressMode.DISABLED
    assert render_network_script(settings) == "DEVICE=eth1\nDISABLED=true\n"

    settings.disabled = False
    assert settings.mode == AddressMode.DHCP


def test_companion_interfaces():
    assert companion_interface(HypervisorKind.KVM) == NetworkSettings(device="eth0", use_dhcp=True)
    assert companion_interface(HypervisorKind.VIRTUALBOX) == NetworkSettings(device="eth0", use_dhcp=True)
    assert companion_interface(HypervisorKind.HYPERV) == NetworkSettings(device="eth1", disabled=True)
    assert companion_interface(HypervisorKind.XHYVE) == NetworkSettings(device="eth1", disabled=True)
    assert companion_interface(HypervisorKind.OTHER) is None


def test_companion_interface_returns_a_copy():
    companion_interface(HypervisorKind.KVM).device = "eth9"
    assert companion_interface(HypervisorKind.KVM).device == "eth0"


def test_hypervisor_parse_maps_unknown_to_other():
    assert HypervisorKind.parse("KVM") == HypervisorKind.KVM
    assert HypervisorKind.parse("vmwarefusion") == HypervisorKind.OTHER


def test_get_current_network_settings(discovering_channel):
    settings = get_current_network_settings(discovering_channel)

    assert settings == NetworkSettings(
        device="eth1", ip_address="192.168.99.100", netmask="24",
        gateway="192.168.99.1", dns1="10.0.2.3", dns2="8.8.8.8",
    )
    assert "192.168.99.100" in discovering_channel.commands[0]
    assert "show eth1" in discovering_channel.commands[1]


def test_discovery_failure_is_fatal():
    channel = FakeChannel(responses=DISCOVERY, failures=["resolv.conf"])

    with pytest.raises(RemoteCommandError, match="Error getting nameserver"):
        get_current_network_settings(channel)
    assert not any("route -n" in c for c in channel.commands)


def test_discovery_without_device_is_fatal():
    channel = FakeChannel(responses=[("ip a |grep", "")])

    with pytest.raises(RemoteCommandError, match="Error getting device"):
        get_current_network_settings(channel)


def test_discovery_without_address_is_fatal():
    with pytest.raises(RemoteCommandError, match="Error getting IP address"):
        get_current_network_settings(FakeChannel(ip=""))


def test_write_reports_failure_without_raising(capsys):
    channel = FakeChannel(failures=["base64 --decode"])

    assert write_network_settings_to_host(channel, NetworkSettings(device="eth0", use_dhcp=True)) is False
    assert "FAIL" in capsys.readouterr().out


def test_write_targets_device_script(channel, capsys):
    assert write_network_settings_to_host(channel, NetworkSettings(device="eth0", use_dhcp=True)) is True

    content, target = decoded(channel.writes()[0])
    assert target == "/var/lib/minishift/networking-eth0"
    assert content == "DEVICE=eth0\nUSEDHCP=true\n"
    assert "OK" in capsys.readouterr().out


def test_static_on_kvm_writes_primary_then_companion(discovering_channel, supported_store, capsys):
    configure_static_assignment(discovering_channel, supported_store, HypervisorKind.KVM)

    writes = [decoded(c) for c in discovering_channel.writes()]
    assert [target for _, target in writes] == [
        "/var/lib/minishift/networking-eth1",
        "/var/lib/minishift/networking-eth0",
    ]
    assert "IPADDR=192.168.99.100" in writes[0][0]
    assert writes[1][0] == "DEVICE=eth0\nUSEDHCP=true\n"

    out = capsys.readouterr().out
    assert "IP Address:  192.168.99.100/24" in out
    assert "Network settings get applied to the instance on restart" in out


def test_static_on_hyperv_disables_eth1(supported_store):
    channel = FakeChannel(responses=[
        ("ip a |grep", "eth0"),
        ("ip -o -f inet", "10.0.75.2/24"),
        ("resolv.conf", "10.0.75.1"),
        ("route -n", ""),
    ])

    configure_static_assignment(channel, supported_store, HypervisorKind.HYPERV)

    writes = [decoded(c) for c in channel.writes()]
    assert [target for _, target in writes] == [
        "/var/lib/minishift/networking-eth0",
        "/var/lib/minishift/networking-eth1",
    ]
    assert writes[1][0] == "DEVICE=eth1\nDISABLED=true\n"


def test_static_on_other_hypervisor_writes_primary_only(discovering_channel, supported_store):
    configure_static_assignment(discovering_channel, supported_store, HypervisorKind.OTHER)

    assert len(discovering_channel.writes()) == 1


def test_static_persists_address(discovering_channel, supported_store):
    settings = configure_static_assignment(discovering_channel, supported_store, HypervisorKind.VIRTUALBOX)

    assert settings.ip_address == "192.168.99.100"
    assert supported_store.get("ip_address") == "192.168.99.100"
    assert supported_store.writes == 1


def test_failed_primary_write_still_writes_companion(supported_store):
    channel = FakeChannel(responses=DISCOVERY, failures=["networking-eth1"])

    configure_static_assignment(channel, supported_store, HypervisorKind.KVM)

    attempted = [c for c in channel.commands if "base64 --decode" in c]
    assert len(attempted) == 2
    assert "networking-eth0" in attempted[1]


@pytest.mark.parametrize("values", [
    {},
    {"is_rhel_based": True},
    {"supports_network_assignment": True},
])
def test_unsupported_guest_is_refused_without_writes(discovering_channel, values):
    store = InMemoryInstanceConfigStore(**values)

    with pytest.raises(UnsupportedPlatformError, match="does not support network assignment"):
        configure_static_assignment(discovering_channel, store, HypervisorKind.KVM)
    with pytest.raises(UnsupportedPlatformError):
        configure_dynamic_assignment(discovering_channel, store)

    assert discovering_channel.commands == []
    assert store.writes == 0


def test_dynamic_switches_both_interfaces_to_dhcp(channel, supported_store):
    configure_dynamic_assignment(channel, supported_store)

    writes = [decoded(c) for c in channel.writes()]
    assert writes == [
        ("DEVICE=eth0\nUSEDHCP=true\n", "/var/lib/minishift/networking-eth0"),
        ("DEVICE=eth1\nUSEDHCP=true\n", "/var/lib/minishift/networking-eth1"),
    ]


def test_get_ip_prefers_persisted_address(channel):
    assert get_ip(channel, InMemoryInstanceConfigStore()) == "192.168.99.100"
    assert get_ip(channel, InMemoryInstanceConfigStore(ip_address="10.0.0.9")) == "10.0.0.9"
