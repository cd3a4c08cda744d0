"""Connector registry and dispatch.

The registry maps each :class:`InterfaceType` to the factory that opens a
connector for it. Resolution and dispatch are kept apart, so a new transport
is added by registering an address grammar with the resolver and a factory
here; the instrument facade is untouched.

Factories named in configuration files are loaded from ``"module:function"``
paths with :func:`load_factory`.

Example:
    registry = default_registry()
    registry.register(InterfaceType.TCPIP, connect_lan, replace=True)
    connector = registry.dispatch(resolve("USB::0x0699::0x0368::SN::INSTR"))
"""

from __future__ import annotations

import functools
import importlib
import logging
from typing import Any, Callable

from instrlink_core.errors import InstrlinkError, TransportConnectError, UnrecognizedInterfaceError
from instrlink_core.interfaces.connector import Connector, ConnectorFactory
from instrlink_core.types.address import InterfaceType, ResourceAddress

from instrlink_visa.config import InstrlinkConfig

logger = logging.getLogger(__name__)

DEFAULT_FACTORIES: dict[InterfaceType, str] = {
    InterfaceType.USB: "instrlink_visa.connectors.usbtmc:connect_usbtmc",
}
"""Built-in factory path for every interface with a shipped connector."""


def load_factory(factory_path: str) -> Callable[..., Any]:
    """Import a factory from a ``"module:function"`` path.

    Args:
        factory_path: e.g. ``"instrlink_visa.connectors.visa:connect_visa"``.

    Returns:
        The callable named by the path.

    Raises:
        ValueError: If the path is not in "module:function" format.
        ImportError: If the module cannot be imported.
        AttributeError: If the module has no such attribute.
        TypeError: If the attribute is not callable.
    """
    module_path, sep, func_name = factory_path.rpartition(":")
    if not sep or not module_path or not func_name:
        raise ValueError(
            f"Invalid factory path '{factory_path}': expected 'module:function'"
        )

    try:
        module = importlib.import_module(module_path)
    except ImportError as exc:
        raise ImportError(f"Failed to import module '{module_path}': {exc}") from exc

    factory = getattr(module, func_name, None)
    if factory is None:
        raise AttributeError(f"Module '{module_path}' has no attribute '{func_name}'")
    if not callable(factory):
        raise TypeError(f"'{factory_path}' is not callable")
    return factory


class ConnectorRegistry:
    """Mapping from interface family to connector factory.

    Example:
        >>> registry = ConnectorRegistry()
        >>> registry.register(InterfaceType.USB, connect_usbtmc)
        >>> InterfaceType.USB in registry
        True
    """

    def __init__(self) -> None:
        self._factories: dict[InterfaceType, ConnectorFactory] = {}

    def __contains__(self, interface: object) -> bool:
        return interface in self._factories

    def __len__(self) -> int:
        return len(self._factories)

    def register(
        self,
        interface: InterfaceType,
        factory: ConnectorFactory,
        *,
        replace: bool = False,
    ) -> None:
        """Register the factory for an interface family.

        Args:
            interface: The interface family.
            factory: Callable taking a :class:`ResourceAddress` and returning
                an open connector.
            replace: Overwrite an existing registration instead of failing.

        Raises:
            TypeError: If *factory* is not callable.
            ValueError: If *interface* is already registered and *replace*
                is False.
        """
        if not callable(factory):
            raise TypeError(f"Connector factory for {interface.name} must be callable")
        if interface in self._factories and not replace:
            raise ValueError(f"Connector already registered for {interface.name}")
        self._factories[interface] = factory
        logger.info("Registered connector for %s: %r", interface.name, factory)

    def unregister(self, interface: InterfaceType) -> None:
        """Remove the factory for an interface family.

        Raises:
            KeyError: If nothing is registered for *interface*.
        """
        if interface not in self._factories:
            raise KeyError(f"No connector registered for {interface.name}")
        del self._factories[interface]
        logger.info("Unregistered connector for %s", interface.name)

    def get(self, interface: InterfaceType) -> ConnectorFactory | None:
        """Return the factory for *interface*, or None."""
        return self._factories.get(interface)

    def interfaces(self) -> tuple[InterfaceType, ...]:
        """Return the registered interface families."""
        return tuple(self._factories)

    def dispatch(self, address: ResourceAddress) -> Connector:
        """Open a connector for a resolved address.

        This is the only point at which a physical connection is opened.

        Args:
            address: The resolved address.

        Returns:
            The open connector.

        Raises:
            UnrecognizedInterfaceError: If no factory is registered for the
                address's interface family.
            TransportConnectError: If the factory fails to open the device.
        """
        factory = self._factories.get(address.interface)
        if factory is None:
            raise UnrecognizedInterfaceError(address.raw, address.tag)

        logger.debug("Dispatching %s to %r", address.raw, factory)
        try:
            return factory(address)
        except InstrlinkError:
            raise
        except Exception as exc:
            raise TransportConnectError(
                f"Failed to connect to {address.raw!r}: {exc}"
            ) from exc


def default_registry() -> ConnectorRegistry:
    """Return a new registry holding the built-in connectors."""
    registry = ConnectorRegistry()
    for interface, path in DEFAULT_FACTORIES.items():
        registry.register(interface, load_factory(path))
    return registry


def registry_from_config(config: InstrlinkConfig) -> ConnectorRegistry:
    """Return the built-in registry with the configured overrides applied.

    Args:
        config: Configuration whose ``connectors`` entries replace or add
            factories. Entry ``kwargs`` are bound to the factory.

    Returns:
        The configured registry.

    Raises:
        ValueError, ImportError, AttributeError, TypeError: If a configured
            factory path cannot be loaded.
    """
    registry = default_registry()
    for entry in config.connectors:
        factory = load_factory(entry.factory)
        if entry.kwargs:
            factory = functools.partial(factory, **entry.kwargs)
        registry.register(entry.interface, factory, replace=True)
    return registry
