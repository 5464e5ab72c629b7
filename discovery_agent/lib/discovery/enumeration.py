import logging
import socket
from typing import Dict, Iterable, List, Optional

from pyroute2 import IPRoute, NetlinkError

from discovery_agent.models.exceptions import EnumerationFailure

from .domain import HostInterface

# Linux kernel interface flag constants, see if.h
IFF_LOOPBACK = 0x8

logger = logging.getLogger(__name__)


def enumerate_interfaces() -> List[HostInterface]:
    """
    List every interface on the host with its hardware address and IPv4 addresses,
    in kernel index order.

    :raises EnumerationFailure: when the kernel cannot be queried
    """
    try:
        with IPRoute() as ipr:
            links = list(ipr.get_links())
            addrs = list(ipr.get_addr(family=socket.AF_INET))
    except (NetlinkError, OSError) as e:
        logger.error(f"Unable to enumerate interfaces: {e}")
        raise EnumerationFailure(f"Unable to enumerate interfaces: {e}") from e

    interfaces: Dict[int, HostInterface] = {}
    for link in links:
        attrs = dict(link.get("attrs", []))
        name = attrs.get("IFLA_IFNAME")
        if not name:
            continue
        index = link["index"]
        interfaces[index] = HostInterface(
            name=name,
            index=index,
            hw_address=attrs.get("IFLA_ADDRESS"),
            loopback=bool(link.get("flags", 0) & IFF_LOOPBACK),
        )

    for addr in addrs:
        interface = interfaces.get(addr.get("index"))
        if interface is None:
            continue
        attrs = dict(addr.get("attrs", []))
        # Point-to-point links report the peer in IFA_ADDRESS; IFA_LOCAL is ours.
        address = attrs.get("IFA_LOCAL") or attrs.get("IFA_ADDRESS")
        if address:
            interface.addresses.append(address)

    return [interfaces[index] for index in sorted(interfaces)]


def derive_serial(interfaces: Iterable[HostInterface]) -> Optional[str]:
    """Returns the first non-loopback hardware address, or None if there is none."""
    for interface in interfaces:
        if not interface.loopback and interface.hw_address:
            return interface.hw_address.lower()
    return None
