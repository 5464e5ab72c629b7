import threading
import typing as t
from dataclasses import dataclass, field
from typing import Optional

from pydantic import BaseModel, Field

if t.TYPE_CHECKING:
    from .interface_table import InterfaceTable


class Interface(BaseModel):
    """A local network interface as last observed"""

    name: str = Field(..., description="Interface name (e.g., eth0)")
    hw_address: Optional[str] = Field(
        None, description="Hardware address, lowercase colon hex"
    )
    address: Optional[str] = Field(None, description="IPv4 address, dotted quad")


class HostInterface(BaseModel):
    """One interface as reported by a full enumeration of the host"""

    name: str
    index: int
    hw_address: Optional[str] = None
    addresses: list[str] = Field(default_factory=list)
    loopback: bool = False


class DiscoveryStatus(BaseModel):
    serial: Optional[str] = None
    registered: bool = False
    interfaces: list[Interface] = Field(default_factory=list)


@dataclass
class DiscoveryState:
    """Mutable discovery state. Every field is guarded by ``lock``."""

    interfaces: "InterfaceTable"
    serial: Optional[str] = None
    registered: bool = False
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)


class Events:
    """Typed events decoded from rtnetlink notifications"""

    @dataclass(frozen=True)
    class LinkUpdated:
        index: int
        hw_address: Optional[str] = None

    @dataclass(frozen=True)
    class LinkRemoved:
        index: int

    @dataclass(frozen=True)
    class AddressAdded:
        index: int
        address: str

    @dataclass(frozen=True)
    class AddressRemoved:
        index: int


KernelEvent = t.Union[
    Events.LinkUpdated,
    Events.LinkRemoved,
    Events.AddressAdded,
    Events.AddressRemoved,
]
