import logging
from typing import Dict, Iterator, Optional

from .domain import Interface


class InterfaceTable:
    """Locally known interfaces keyed by name.

    Entries are created on first reference and are never removed individually.
    The table does no locking of its own; callers hold the discovery lock.
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self._interfaces: Dict[str, Interface] = {}

    def get_or_create(self, name: str) -> Interface:
        interface = self._interfaces.get(name)
        if interface is None:
            self.logger.debug(f"Tracking new interface {name}")
            interface = Interface(name=name)
            self._interfaces[name] = interface
        return interface

    def get(self, name: str) -> Optional[Interface]:
        return self._interfaces.get(name)

    def set_hw_address(self, name: str, hw_address: Optional[str]) -> Interface:
        interface = self.get_or_create(name)
        interface.hw_address = hw_address
        return interface

    def set_address(self, name: str, address: Optional[str]) -> Interface:
        interface = self.get_or_create(name)
        interface.address = address
        return interface

    def clear_address(self, name: str) -> Interface:
        return self.set_address(name, None)

    def clear(self):
        """Drop every entry. Only used when the owning service shuts down."""
        self._interfaces.clear()

    def __iter__(self) -> Iterator[Interface]:
        return iter(list(self._interfaces.values()))

    def __len__(self) -> int:
        return len(self._interfaces)

    def __contains__(self, name: object) -> bool:
        return name in self._interfaces
