import logging
from typing import Callable, List, Optional

from discovery_agent.models.exceptions import NoHardwareIdentity, NotDiscovered
from discovery_agent.utils import get_hostname

from .domain import DiscoveryState, Events, HostInterface, Interface, KernelEvent
from .enumeration import derive_serial, enumerate_interfaces

Enumerator = Callable[[], List[HostInterface]]


class RegistrationController:
    """
    Owns the device registration lifecycle and decides which interface changes
    are mirrored to the remote directory.

    Address changes are only mirrored while the device is registered, and only
    for interfaces whose hardware address is already known.
    """

    def __init__(
        self,
        state: DiscoveryState,
        client,
        enumerator: Enumerator = enumerate_interfaces,
        hostname: Optional[str] = None,
    ):
        self.logger = logging.getLogger(__name__)
        self.logger.info(f"Initializing {__name__}")
        self.state = state
        self.client = client
        self.enumerator = enumerator
        self.hostname = hostname

    def register_device(self, name: str, port: int) -> str:
        """
        Registers the device with the directory and pushes every known address.

        Blocks for one round trip to the directory. Returns the device serial.

        :raises EnumerationFailure: if the host's interfaces cannot be listed
        :raises NoHardwareIdentity: if no hardware address can serve as serial
        :raises TransportError: if the directory does not accept the device
        """
        host_interfaces = self.enumerator()

        with self.state.lock:
            serial = self.state.serial
        if serial is None:
            serial = derive_serial(host_interfaces)
            if serial is not None:
                self.logger.info(f"Derived device serial {serial}")

        if serial is None:
            raise NoHardwareIdentity(
                "No non-loopback hardware address available to derive a serial"
            )

        hostname = self.hostname or get_hostname()
        self.logger.info(f"Registering device {name} ({serial}) on {hostname}:{port}")
        self.client.add_device(serial, name, hostname, port)

        with self.state.lock:
            if self.state.serial is None:
                self.state.serial = serial
            serial = self.state.serial
            self.state.registered = True
        # Sent again in the background; the directory tolerates duplicates.
        self.client.queue_add_device(serial, name, hostname, port)

        with self.state.lock:
            self._reconcile(host_interfaces)
            for interface in self.state.interfaces:
                if interface.hw_address is None:
                    continue
                if interface.address is not None:
                    self._mirror_add(interface)
                else:
                    self._mirror_remove(interface)

        return serial

    def unregister_device(self):
        """
        Removes the device from the directory. Repeating the call is harmless.

        :raises NotDiscovered: if no serial was ever derived
        """
        with self.state.lock:
            serial = self.state.serial
            if serial is None:
                raise NotDiscovered("Device has no serial, it was never registered")
            self.state.registered = False
            self.logger.info(f"Unregistering device {serial}")
            self.client.queue_remove_device(serial)

    def _reconcile(self, host_interfaces: List[HostInterface]):
        table = self.state.interfaces
        for host_interface in host_interfaces:
            if host_interface.loopback:
                continue
            interface = table.get_or_create(host_interface.name)
            if host_interface.hw_address:
                interface.hw_address = host_interface.hw_address.lower()
            if host_interface.addresses:
                interface.address = host_interface.addresses[0]

    def apply_event(self, event: KernelEvent, name: str):
        """Folds one kernel event into the interface table. Caller holds the lock."""
        table = self.state.interfaces

        if isinstance(event, Events.LinkUpdated):
            if event.hw_address is not None:
                table.set_hw_address(name, event.hw_address)
            else:
                table.get_or_create(name)

        elif isinstance(event, Events.LinkRemoved):
            # Interfaces are kept for the life of the process.
            self.logger.debug(f"Link {name} removed, keeping its entry")

        elif isinstance(event, Events.AddressAdded):
            interface = table.set_address(name, event.address)
            self.logger.debug(f"Address {event.address} added on {name}")
            self._mirror_add(interface)

        elif isinstance(event, Events.AddressRemoved):
            interface = table.clear_address(name)
            self.logger.debug(f"Address removed from {name}")
            self._mirror_remove(interface)

    def _mirror_add(self, interface: Interface):
        if not self.state.registered or interface.hw_address is None:
            return
        self.client.queue_add_address(
            self.state.serial, interface.hw_address, interface.address
        )

    def _mirror_remove(self, interface: Interface):
        if not self.state.registered or interface.hw_address is None:
            return
        self.client.queue_remove_address(self.state.serial, interface.hw_address)
