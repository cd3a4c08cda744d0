"""Unit tests for the connector registry and factory loading."""

from __future__ import annotations

import functools
from typing import Any

import pytest

from instrlink_core.errors import (
    MalformedFieldError,
    TransportConnectError,
    UnrecognizedInterfaceError,
)
from instrlink_core.types.address import InterfaceType, ResourceAddress

from instrlink_visa.address import resolve
from instrlink_visa.config import ConnectorConfig, InstrlinkConfig
from instrlink_visa.connectors.usbtmc import connect_usbtmc
from instrlink_visa.connectors.visa import connect_visa
from instrlink_visa.registry import (
    ConnectorRegistry,
    default_registry,
    load_factory,
    registry_from_config,
)

USB_ADDRESS = "USB::0x0699::0x0368::SN123::INSTR"


class StubConnector:
    """Connector that only remembers the address it was opened for."""

    def __init__(self, address: ResourceAddress) -> None:
        self.address = address

    def set_timeout(self, seconds: float) -> None:
        pass

    def command(self, cmd: str) -> None:
        pass

    def query_raw(self, cmd: str) -> bytes:
        return b""

    def query(self, cmd: str) -> str:
        return ""

    def close(self) -> None:
        pass


def module_level_factory(address: ResourceAddress, *, tag: str = "none") -> Any:
    connector = StubConnector(address)
    connector.tag = tag  # type: ignore[attr-defined]
    return connector


# ---------------------------------------------------------------------------
# load_factory
# ---------------------------------------------------------------------------


class TestLoadFactory:
    def test_load_valid_factory(self) -> None:
        factory = load_factory("instrlink_visa.connectors.usbtmc:connect_usbtmc")
        assert factory is connect_usbtmc

    def test_load_stdlib_function(self) -> None:
        factory = load_factory("os.path:join")
        assert factory("a", "b") == "a/b"

    def test_missing_colon(self) -> None:
        with pytest.raises(ValueError, match="module:function"):
            load_factory("os.path.join")

    def test_empty_module(self) -> None:
        with pytest.raises(ValueError, match="module:function"):
            load_factory(":join")

    def test_empty_function(self) -> None:
        with pytest.raises(ValueError, match="module:function"):
            load_factory("os.path:")

    def test_nonexistent_module(self) -> None:
        with pytest.raises(ImportError, match="Failed to import"):
            load_factory("nonexistent_module_xyz:func")

    def test_nonexistent_function(self) -> None:
        with pytest.raises(AttributeError, match="no attribute"):
            load_factory("os.path:nonexistent_function_xyz")

    def test_not_callable(self) -> None:
        with pytest.raises(TypeError, match="not callable"):
            load_factory("os:sep")


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


class TestRegistration:
    """Tests for register/unregister."""

    def test_register_and_get(self) -> None:
        registry = ConnectorRegistry()
        registry.register(InterfaceType.USB, StubConnector)
        assert InterfaceType.USB in registry
        assert registry.get(InterfaceType.USB) is StubConnector
        assert registry.interfaces() == (InterfaceType.USB,)
        assert len(registry) == 1

    def test_get_missing_returns_none(self) -> None:
        assert ConnectorRegistry().get(InterfaceType.GPIB) is None

    def test_duplicate_rejected(self) -> None:
        registry = ConnectorRegistry()
        registry.register(InterfaceType.USB, StubConnector)
        with pytest.raises(ValueError, match="already registered"):
            registry.register(InterfaceType.USB, StubConnector)

    def test_replace(self) -> None:
        registry = ConnectorRegistry()
        registry.register(InterfaceType.USB, StubConnector)
        registry.register(InterfaceType.USB, module_level_factory, replace=True)
        assert registry.get(InterfaceType.USB) is module_level_factory

    def test_non_callable_rejected(self) -> None:
        with pytest.raises(TypeError, match="callable"):
            ConnectorRegistry().register(InterfaceType.USB, "not a factory")  # type: ignore[arg-type]

    def test_unregister(self) -> None:
        registry = ConnectorRegistry()
        registry.register(InterfaceType.USB, StubConnector)
        registry.unregister(InterfaceType.USB)
        assert InterfaceType.USB not in registry

    def test_unregister_missing(self) -> None:
        with pytest.raises(KeyError):
            ConnectorRegistry().unregister(InterfaceType.USB)


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------


class TestDispatch:
    """Tests for ConnectorRegistry.dispatch."""

    def test_factory_receives_parsed_ids(self) -> None:
        registry = ConnectorRegistry()
        registry.register(InterfaceType.USB, StubConnector)
        connector = registry.dispatch(resolve(USB_ADDRESS))
        assert isinstance(connector, StubConnector)
        assert connector.address.vendor_id == 0x0699
        assert connector.address.product_id == 0x0368

    def test_unregistered_interface(self) -> None:
        with pytest.raises(UnrecognizedInterfaceError):
            ConnectorRegistry().dispatch(resolve(USB_ADDRESS))

    def test_transport_connect_error_propagates_unchanged(self) -> None:
        original = TransportConnectError("device not found")

        def failing(address: ResourceAddress) -> Any:
            raise original

        registry = ConnectorRegistry()
        registry.register(InterfaceType.USB, failing)
        with pytest.raises(TransportConnectError) as exc_info:
            registry.dispatch(resolve(USB_ADDRESS))
        assert exc_info.value is original

    def test_other_instrlink_errors_propagate_unchanged(self) -> None:
        def failing(address: ResourceAddress) -> Any:
            raise MalformedFieldError(address.raw, "serial_number", "?")

        registry = ConnectorRegistry()
        registry.register(InterfaceType.USB, failing)
        with pytest.raises(MalformedFieldError):
            registry.dispatch(resolve(USB_ADDRESS))

    def test_foreign_errors_become_transport_connect_error(self) -> None:
        def failing(address: ResourceAddress) -> Any:
            raise PermissionError("Access denied (insufficient permissions)")

        registry = ConnectorRegistry()
        registry.register(InterfaceType.USB, failing)
        with pytest.raises(TransportConnectError, match="insufficient permissions") as exc_info:
            registry.dispatch(resolve(USB_ADDRESS))
        assert isinstance(exc_info.value.__cause__, PermissionError)


# ---------------------------------------------------------------------------
# Built-in and configured registries
# ---------------------------------------------------------------------------


class TestDefaultRegistry:
    def test_usb_uses_usbtmc(self) -> None:
        registry = default_registry()
        assert registry.interfaces() == (InterfaceType.USB,)
        assert registry.get(InterfaceType.USB) is connect_usbtmc

    def test_each_call_returns_new_registry(self) -> None:
        assert default_registry() is not default_registry()


class TestRegistryFromConfig:
    def test_no_overrides(self) -> None:
        registry = registry_from_config(InstrlinkConfig())
        assert registry.get(InterfaceType.USB) is connect_usbtmc

    def test_override_without_kwargs(self) -> None:
        config = InstrlinkConfig(
            connectors=(
                ConnectorConfig(
                    interface=InterfaceType.USB,
                    factory="instrlink_visa.connectors.visa:connect_visa",
                ),
            )
        )
        registry = registry_from_config(config)
        assert registry.get(InterfaceType.USB) is connect_visa

    def test_override_binds_kwargs(self) -> None:
        config = InstrlinkConfig(
            connectors=(
                ConnectorConfig(
                    interface=InterfaceType.USB,
                    factory="instrlink_visa.connectors.visa:connect_visa",
                    kwargs={"backend": "@py"},
                ),
            )
        )
        factory = registry_from_config(config).get(InterfaceType.USB)
        assert isinstance(factory, functools.partial)
        assert factory.func is connect_visa
        assert factory.keywords == {"backend": "@py"}

    def test_adds_new_interface(self) -> None:
        config = InstrlinkConfig(
            connectors=(
                ConnectorConfig(
                    interface=InterfaceType.TCPIP,
                    factory="instrlink_visa.connectors.visa:connect_visa",
                ),
            )
        )
        registry = registry_from_config(config)
        assert set(registry.interfaces()) == {InterfaceType.USB, InterfaceType.TCPIP}

    def test_bad_factory_path(self) -> None:
        config = InstrlinkConfig(
            connectors=(ConnectorConfig(interface=InterfaceType.USB, factory="no_such_mod:f"),)
        )
        with pytest.raises(ImportError):
            registry_from_config(config)
