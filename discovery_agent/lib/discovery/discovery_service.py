import asyncio
import logging
import socket
from typing import Callable, Optional

from pyroute2.netlink.rtnl import RTMGRP_IPV4_IFADDR, RTMGRP_LINK

from discovery_agent.discovery_client import DiscoveryClient
from discovery_agent.lib.configuration.schemas import DiscoverySettings

from .domain import DiscoveryState, DiscoveryStatus
from .enumeration import enumerate_interfaces
from .interface_table import InterfaceTable
from .netlink_decoder import decode_events
from .registration import Enumerator, RegistrationController


def open_netlink_socket() -> socket.socket:
    """Opens a non-blocking rtnetlink socket subscribed to link and IPv4 address changes."""
    sock = socket.socket(socket.AF_NETLINK, socket.SOCK_RAW, socket.NETLINK_ROUTE)
    try:
        sock.setblocking(False)
        sock.bind((0, RTMGRP_LINK | RTMGRP_IPV4_IFADDR))
    except OSError:
        sock.close()
        raise
    return sock


class DiscoveryService:
    """Watches local interfaces over rtnetlink and keeps the remote directory in sync"""

    def __init__(
        self,
        client: Optional[DiscoveryClient] = None,
        settings: Optional[DiscoverySettings] = None,
        enumerator: Enumerator = enumerate_interfaces,
        resolver: Callable[[int], str] = socket.if_indextoname,
        socket_factory: Callable[[], socket.socket] = open_netlink_socket,
        hostname: Optional[str] = None,
    ):
        self.logger = logging.getLogger(__name__)
        self.logger.info(f"Initializing {__name__}")

        self.settings = settings or DiscoverySettings()
        self.client = client or DiscoveryClient(
            base_url=self.settings.url,
            user_agent=self.settings.user_agent,
            timeout=self.settings.timeout,
        )
        self.state = DiscoveryState(interfaces=InterfaceTable())
        self.registration = RegistrationController(
            self.state, self.client, enumerator=enumerator, hostname=hostname
        )
        self.resolver = resolver
        self.socket_factory = socket_factory

        self.loop: Optional[asyncio.AbstractEventLoop] = None
        self.sock: Optional[socket.socket] = None
        self.running = False

    async def start(self):
        """Start watching netlink events on the running loop"""
        if self.running:
            return

        self.loop = asyncio.get_running_loop()
        self.client.loop = self.loop
        self.running = True

        try:
            self.sock = self.socket_factory()
        except OSError as e:
            self.logger.error(f"Unable to open netlink socket, interface changes will not be tracked: {e}")
            self.sock = None
        else:
            self.loop.add_reader(self.sock.fileno(), self._on_readable)

        self.logger.info("Discovery service started")

    async def stop(self):
        """Stop watching and release the socket, the client and the interface table"""
        if not self.running:
            return
        self.running = False

        if self.sock is not None:
            self.loop.remove_reader(self.sock.fileno())
            self.sock.close()
            self.sock = None

        await self.client.close()

        with self.state.lock:
            self.state.interfaces.clear()

        self.logger.info("Discovery service stopped")

    def _on_readable(self):
        try:
            data = self.sock.recv(self.settings.buffer_size)
        except (BlockingIOError, InterruptedError):
            return
        except OSError as e:
            self.logger.error(f"Netlink read failed: {e}")
            return

        if not data:
            self.logger.warning("Netlink socket returned no data")
            return

        self.process_buffer(data)

    def process_buffer(self, data: bytes):
        """Apply every event in one netlink read, in delivery order"""
        with self.state.lock:
            for event in decode_events(data):
                name = self._resolve(event.index)
                if name is None:
                    continue
                self.registration.apply_event(event, name)

    def _resolve(self, index: int) -> Optional[str]:
        try:
            return self.resolver(index)
        except OSError as e:
            self.logger.debug(f"Unable to resolve interface index {index}: {e}")
            return None

    def register_device(self, name: str, port: int) -> str:
        return self.registration.register_device(name, port)

    def unregister_device(self):
        self.registration.unregister_device()

    @property
    def registered(self) -> bool:
        with self.state.lock:
            return self.state.registered

    def status(self) -> DiscoveryStatus:
        with self.state.lock:
            return DiscoveryStatus(
                serial=self.state.serial,
                registered=self.state.registered,
                interfaces=[
                    interface.model_copy() for interface in self.state.interfaces
                ],
            )
