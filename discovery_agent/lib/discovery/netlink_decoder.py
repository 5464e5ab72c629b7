import logging
import socket
import struct
from typing import Iterator, Optional, Tuple

from pyroute2.netlink import NLMSG_DONE, NLMSG_ERROR
from pyroute2.netlink.rtnl import (
    RTM_DELADDR,
    RTM_DELLINK,
    RTM_NEWADDR,
    RTM_NEWLINK,
)
from pyroute2.netlink.rtnl.ifaddrmsg import ifaddrmsg
from pyroute2.netlink.rtnl.ifinfmsg import ifinfmsg

from discovery_agent.utils import format_hw_address

from .domain import Events, KernelEvent

logger = logging.getLogger(__name__)

# struct nlmsghdr: length, type, flags, sequence number, port id
NLMSG_HEADER = struct.Struct("=IHHII")
NLMSG_HDRLEN = NLMSG_HEADER.size
NLMSG_ALIGNTO = 4


def nlmsg_align(length: int) -> int:
    return (length + NLMSG_ALIGNTO - 1) & ~(NLMSG_ALIGNTO - 1)


def iter_frames(buffer: bytes) -> Iterator[Tuple[int, bytes]]:
    """
    Split a buffer read from a netlink socket into (message type, frame) pairs.

    Iteration ends at the first header that does not fit in what is left of the
    buffer, so truncated or garbage trailing bytes never produce a frame.
    """
    offset = 0
    remaining = len(buffer)
    while remaining >= NLMSG_HDRLEN:
        length, msg_type, _flags, _seq, _pid = NLMSG_HEADER.unpack_from(buffer, offset)
        if length < NLMSG_HDRLEN or length > remaining:
            return
        yield msg_type, bytes(buffer[offset : offset + length])
        step = nlmsg_align(length)
        offset += step
        remaining -= step


def _attrs(msg) -> list:
    return [(attr[0], attr[1]) for attr in msg.get("attrs", [])]


def _decode(msg_class, frame: bytes):
    msg = msg_class(frame)
    msg.decode()
    return msg


def _decode_link(msg_type: int, frame: bytes) -> Iterator[KernelEvent]:
    msg = _decode(ifinfmsg, frame)
    index = msg["index"]
    if msg_type == RTM_DELLINK:
        yield Events.LinkRemoved(index=index)
        return

    hw_address: Optional[str] = None
    for name, value in _attrs(msg):
        if name == "IFLA_ADDRESS":
            hw_address = value.lower() if isinstance(value, str) else format_hw_address(value)
    yield Events.LinkUpdated(index=index, hw_address=hw_address)


def _decode_addr(msg_type: int, frame: bytes) -> Iterator[KernelEvent]:
    msg = _decode(ifaddrmsg, frame)
    if msg["family"] != socket.AF_INET:
        return
    index = msg["index"]
    if msg_type == RTM_DELADDR:
        yield Events.AddressRemoved(index=index)
        return

    for name, value in _attrs(msg):
        if name == "IFA_LOCAL":
            yield Events.AddressAdded(index=index, address=value)


def decode_events(buffer: bytes) -> Iterator[KernelEvent]:
    """
    Lazily decode every link and IPv4 address notification in a netlink buffer.

    A done or error message ends the sequence. Frames that cannot be decoded are
    skipped.
    """
    for msg_type, frame in iter_frames(buffer):
        if msg_type in (NLMSG_DONE, NLMSG_ERROR):
            return

        if msg_type in (RTM_NEWLINK, RTM_DELLINK):
            decoder = _decode_link
        elif msg_type in (RTM_NEWADDR, RTM_DELADDR):
            decoder = _decode_addr
        else:
            continue

        try:
            events = list(decoder(msg_type, frame))
        except Exception as e:
            logger.debug(f"Dropping undecodable netlink message of type {msg_type}: {e}")
            continue
        yield from events
