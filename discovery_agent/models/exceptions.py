class DiscoveryAgentException(Exception):
    """Base class for all errors raised by the discovery agent."""


class NoHardwareIdentity(DiscoveryAgentException):
    """No non-loopback hardware address exists to derive a serial from."""


class NotDiscovered(DiscoveryAgentException):
    """An operation needs a serial, but none has been derived yet."""


class EnumerationFailure(DiscoveryAgentException):
    """Listing the host's interfaces and addresses failed."""


class TransportError(DiscoveryAgentException):
    """A request to the remote directory could not be completed."""

    def __init__(self, message: str, status_code=None):
        super().__init__(message)
        self.status_code = status_code
