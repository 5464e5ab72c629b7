import pytest

from discovery_agent.lib.discovery import Events, HostInterface
from discovery_agent.models.exceptions import (
    EnumerationFailure,
    NoHardwareIdentity,
    NotDiscovered,
    TransportError,
)
from discovery_agent.tests.conftest import ETH0_MAC, WLAN0_MAC


def apply(controller, state, event, name):
    with state.lock:
        controller.apply_event(event, name)


def test_register_derives_serial_and_sweeps(controller, client, state):
    serial = controller.register_device("player", 8080)

    assert serial == ETH0_MAC
    assert state.serial == ETH0_MAC
    assert state.registered is True
    client.add_device.assert_called_once_with(ETH0_MAC, "player", "testhost", 8080)
    client.queue_add_device.assert_called_once_with(ETH0_MAC, "player", "testhost", 8080)
    # eth0 has a hardware address but no IPv4 address yet
    client.queue_remove_address.assert_called_once_with(ETH0_MAC, ETH0_MAC)
    client.queue_add_address.assert_not_called()


def test_register_skips_loopback(controller, state):
    controller.register_device("player", 8080)

    assert "lo" not in state.interfaces
    assert state.interfaces.get("eth0").hw_address == ETH0_MAC


def test_register_sweep_adds_known_addresses(controller, client, host_interfaces):
    host_interfaces.append(
        HostInterface(name="wlan0", index=3, hw_address=WLAN0_MAC, addresses=["10.0.0.5", "10.0.0.6"])
    )
    host_interfaces.append(HostInterface(name="tun0", index=4, addresses=["10.8.0.1"]))

    controller.register_device("player", 8080)

    client.queue_add_address.assert_called_once_with(ETH0_MAC, WLAN0_MAC, "10.0.0.5")
    client.queue_remove_address.assert_called_once_with(ETH0_MAC, ETH0_MAC)


def test_register_twice_is_idempotent(controller, client, state):
    first = controller.register_device("player", 8080)
    second = controller.register_device("player", 8080)

    assert first == second == ETH0_MAC
    assert state.registered is True
    assert client.add_device.call_count == 2


def test_serial_is_not_rederived(controller, state, host_interfaces):
    controller.register_device("player", 8080)
    host_interfaces[1] = HostInterface(name="eth0", index=2, hw_address="02:00:00:00:00:01")

    assert controller.register_device("player", 8080) == ETH0_MAC
    assert state.serial == ETH0_MAC


def test_register_without_hardware_identity(controller, client, state, host_interfaces):
    del host_interfaces[1]

    with pytest.raises(NoHardwareIdentity):
        controller.register_device("player", 8080)

    assert state.serial is None
    assert state.registered is False
    client.add_device.assert_not_called()


def test_register_enumeration_failure_leaves_state(state, client):
    from discovery_agent.lib.discovery import RegistrationController

    def failing_enumerator():
        raise EnumerationFailure("netlink unavailable")

    controller = RegistrationController(state, client, enumerator=failing_enumerator, hostname="testhost")

    with pytest.raises(EnumerationFailure):
        controller.register_device("player", 8080)

    assert state.serial is None
    assert state.registered is False
    assert len(state.interfaces) == 0
    client.add_device.assert_not_called()


def test_register_transport_failure(controller, client, state):
    client.add_device.side_effect = TransportError("connection refused")

    with pytest.raises(TransportError):
        controller.register_device("player", 8080)

    assert state.registered is False
    assert state.serial is None
    client.queue_add_device.assert_not_called()
    client.queue_remove_address.assert_not_called()


def test_unregister_after_failed_register(controller, client, state):
    client.add_device.side_effect = TransportError("connection refused")
    with pytest.raises(TransportError):
        controller.register_device("player", 8080)

    with pytest.raises(NotDiscovered):
        controller.unregister_device()

    client.queue_remove_device.assert_not_called()


def test_register_after_transport_recovers(controller, client, state):
    client.add_device.side_effect = [TransportError("connection refused"), None]
    with pytest.raises(TransportError):
        controller.register_device("player", 8080)

    assert controller.register_device("player", 8080) == ETH0_MAC
    assert state.serial == ETH0_MAC
    assert state.registered is True


def test_unregister_before_register(controller, client, state):
    with pytest.raises(NotDiscovered):
        controller.unregister_device()

    assert state.registered is False
    client.queue_remove_device.assert_not_called()


def test_unregister_after_register(controller, client, state):
    controller.register_device("player", 8080)

    controller.unregister_device()
    controller.unregister_device()

    assert state.registered is False
    assert client.queue_remove_device.call_count == 2
    client.queue_remove_device.assert_called_with(ETH0_MAC)


def test_no_mirroring_while_unregistered(controller, client, state):
    apply(controller, state, Events.LinkUpdated(index=2, hw_address=ETH0_MAC), "eth0")
    apply(controller, state, Events.AddressAdded(index=2, address="192.168.1.10"), "eth0")
    apply(controller, state, Events.AddressRemoved(index=2), "eth0")

    client.queue_add_address.assert_not_called()
    client.queue_remove_address.assert_not_called()
    assert state.interfaces.get("eth0").address is None


def test_no_mirroring_after_unregister(controller, client, state):
    controller.register_device("player", 8080)
    controller.unregister_device()
    client.reset_mock()

    apply(controller, state, Events.AddressAdded(index=2, address="192.168.1.10"), "eth0")

    client.queue_add_address.assert_not_called()


def test_address_events_mirror_while_registered(controller, client, state):
    controller.register_device("player", 8080)
    client.reset_mock()

    apply(controller, state, Events.AddressAdded(index=2, address="192.168.1.10"), "eth0")

    client.queue_add_address.assert_called_once_with(ETH0_MAC, ETH0_MAC, "192.168.1.10")
    client.queue_remove_address.assert_not_called()

    apply(controller, state, Events.AddressRemoved(index=2), "eth0")

    client.queue_remove_address.assert_called_once_with(ETH0_MAC, ETH0_MAC)
    assert client.queue_add_address.call_count == 1


def test_address_on_unknown_hardware_is_not_mirrored(controller, client, state):
    controller.register_device("player", 8080)
    client.reset_mock()

    apply(controller, state, Events.AddressAdded(index=3, address="10.0.0.5"), "wlan0")

    client.queue_add_address.assert_not_called()
    assert state.interfaces.get("wlan0").address == "10.0.0.5"

    apply(controller, state, Events.LinkUpdated(index=3, hw_address=WLAN0_MAC), "wlan0")
    apply(controller, state, Events.AddressAdded(index=3, address="10.0.0.6"), "wlan0")

    client.queue_add_address.assert_called_once_with(ETH0_MAC, WLAN0_MAC, "10.0.0.6")


def test_link_update_without_address_keeps_known_hw(controller, state):
    apply(controller, state, Events.LinkUpdated(index=2, hw_address=ETH0_MAC), "eth0")
    apply(controller, state, Events.LinkUpdated(index=2, hw_address=None), "eth0")

    assert state.interfaces.get("eth0").hw_address == ETH0_MAC


def test_link_removed_keeps_interface(controller, state):
    apply(controller, state, Events.LinkUpdated(index=3, hw_address=WLAN0_MAC), "wlan0")
    apply(controller, state, Events.LinkRemoved(index=3), "wlan0")

    assert state.interfaces.get("wlan0").hw_address == WLAN0_MAC
