import pytest
from pyroute2 import NetlinkError

from discovery_agent.lib.discovery import HostInterface, derive_serial, enumerate_interfaces
from discovery_agent.models.exceptions import EnumerationFailure


@pytest.fixture
def mocked_iproute(mocker):
    MockedIPRoute = mocker.patch("discovery_agent.lib.discovery.enumeration.IPRoute")
    ipr = MockedIPRoute.return_value.__enter__.return_value
    ipr.get_links.return_value = [
        {
            "index": 2,
            "flags": 0x1043,
            "attrs": [("IFLA_IFNAME", "eth0"), ("IFLA_ADDRESS", "aa:bb:cc:dd:ee:ff")],
        },
        {
            "index": 1,
            "flags": 0x49,
            "attrs": [("IFLA_IFNAME", "lo"), ("IFLA_ADDRESS", "00:00:00:00:00:00")],
        },
        {"index": 5, "flags": 0x1043, "attrs": [("IFLA_IFNAME", "tun0")]},
    ]
    ipr.get_addr.return_value = [
        {"index": 1, "attrs": [("IFA_ADDRESS", "127.0.0.1"), ("IFA_LOCAL", "127.0.0.1")]},
        {"index": 5, "attrs": [("IFA_ADDRESS", "10.8.0.2"), ("IFA_LOCAL", "10.8.0.1")]},
        {"index": 9, "attrs": [("IFA_LOCAL", "10.9.9.9")]},
    ]
    return ipr


def test_enumerate_interfaces(mocked_iproute):
    interfaces = enumerate_interfaces()

    assert interfaces == [
        HostInterface(
            name="lo",
            index=1,
            hw_address="00:00:00:00:00:00",
            addresses=["127.0.0.1"],
            loopback=True,
        ),
        HostInterface(name="eth0", index=2, hw_address="aa:bb:cc:dd:ee:ff"),
        HostInterface(name="tun0", index=5, addresses=["10.8.0.1"]),
    ]


def test_enumeration_failure(mocker):
    MockedIPRoute = mocker.patch("discovery_agent.lib.discovery.enumeration.IPRoute")
    MockedIPRoute.return_value.__enter__.return_value.get_links.side_effect = NetlinkError(1)

    with pytest.raises(EnumerationFailure):
        enumerate_interfaces()


def test_enumeration_socket_failure(mocker):
    mocker.patch(
        "discovery_agent.lib.discovery.enumeration.IPRoute",
        side_effect=PermissionError(1, "Operation not permitted"),
    )

    with pytest.raises(EnumerationFailure):
        enumerate_interfaces()


def test_derive_serial_skips_loopback(mocked_iproute):
    assert derive_serial(enumerate_interfaces()) == "aa:bb:cc:dd:ee:ff"


def test_derive_serial_without_hardware():
    interfaces = [
        HostInterface(name="lo", index=1, hw_address="00:00:00:00:00:00", loopback=True),
        HostInterface(name="tun0", index=5, addresses=["10.8.0.1"]),
    ]

    assert derive_serial(interfaces) is None
