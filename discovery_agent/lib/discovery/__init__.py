"""
Discovery Module

Keeps a remote device directory in sync with this host's network interfaces.
It handles:
- Decoding rtnetlink link and IPv4 address notifications
- Tracking each interface's hardware and IPv4 address
- Registering and unregistering the device, with a stable serial derived from
  the first non-loopback hardware address
- Mirroring address changes to the directory while registered

Main components:
- DiscoveryService: Owns the netlink socket, the lock and the state
- RegistrationController: Registration lifecycle and mirroring decisions
- InterfaceTable: Interfaces keyed by name
- decode_events: Netlink buffer decoder

Usage:
    from discovery_agent.lib.discovery import DiscoveryService

    service = DiscoveryService()
    await service.start()
    service.register_device("living-room", 8080)

    # Stop when done
    service.unregister_device()
    await service.stop()
"""

from .discovery_service import DiscoveryService, open_netlink_socket
from .domain import (
    DiscoveryState,
    DiscoveryStatus,
    Events,
    HostInterface,
    Interface,
    KernelEvent,
)
from .enumeration import derive_serial, enumerate_interfaces
from .interface_table import InterfaceTable
from .netlink_decoder import decode_events
from .registration import RegistrationController

__all__ = [
    "DiscoveryService",
    "RegistrationController",
    "InterfaceTable",
    "DiscoveryState",
    "DiscoveryStatus",
    "Events",
    "HostInterface",
    "Interface",
    "KernelEvent",
    "decode_events",
    "derive_serial",
    "enumerate_interfaces",
    "open_netlink_socket",
]
