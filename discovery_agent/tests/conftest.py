"""
Pytest configuration and shared fixtures for discovery-agent tests
"""
import logging
from typing import Dict, List

import pytest

from discovery_agent.discovery_client import DiscoveryClient
from discovery_agent.lib.discovery import (
    DiscoveryState,
    HostInterface,
    InterfaceTable,
    RegistrationController,
)
from discovery_agent.lib.logging_utils import setup_logging

ETH0_MAC = "aa:bb:cc:dd:ee:ff"
WLAN0_MAC = "11:22:33:44:55:66"


@pytest.fixture(autouse=True)
def setup_test_logging():
    """Setup logging for tests with appropriate levels"""
    setup_logging(level=logging.INFO)

    # Reduce noise from common libraries
    logging.getLogger("pyroute2.netlink.core").setLevel(logging.WARNING)
    logging.getLogger("pyroute2.ndb").setLevel(logging.WARNING)


@pytest.fixture
def host_interfaces() -> List[HostInterface]:
    """lo plus an eth0 that has a hardware address but no IPv4 address yet"""
    return [
        HostInterface(
            name="lo",
            index=1,
            hw_address="00:00:00:00:00:00",
            addresses=["127.0.0.1"],
            loopback=True,
        ),
        HostInterface(name="eth0", index=2, hw_address=ETH0_MAC),
    ]


@pytest.fixture
def enumerator(host_interfaces):
    """Enumerator returning whatever host_interfaces currently holds"""
    return lambda: list(host_interfaces)


@pytest.fixture
def interface_names() -> Dict[int, str]:
    return {1: "lo", 2: "eth0", 3: "wlan0"}


@pytest.fixture
def resolver(interface_names):
    def resolve(index: int) -> str:
        try:
            return interface_names[index]
        except KeyError:
            raise OSError(6, "No such device or address")

    return resolve


@pytest.fixture
def client(mocker):
    """Autospecced DiscoveryClient recording every call instead of sending it"""
    return mocker.create_autospec(DiscoveryClient, instance=True)


@pytest.fixture
def state() -> DiscoveryState:
    return DiscoveryState(interfaces=InterfaceTable())


@pytest.fixture
def controller(state, client, enumerator) -> RegistrationController:
    return RegistrationController(state, client, enumerator=enumerator, hostname="testhost")
