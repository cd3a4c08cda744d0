"""VISA-style instrument addressing for instrlink.

This package connects to laboratory instruments from a single resource
address string. It includes:

- Address resolution against per-transport grammars
- A connector registry mapping interface families to connector factories
- The transport-agnostic, shareable :class:`Instrument` handle
- python-usbtmc and PyVISA connectors for USB instruments
- YAML configuration for connector overrides and default timeouts

Typical usage::

    from instrlink_visa import connect

    scope = connect("USB0::0x0699::0x0368::C012345::INSTR")
    print(scope.query("*IDN?"))
"""

from instrlink_visa.address import (
    USB_GRAMMAR,
    AddressResolver,
    FieldKind,
    FieldSpec,
    InterfaceGrammar,
    resolve,
)
from instrlink_visa.config import (
    CONFIG_ENV_VAR,
    ConnectorConfig,
    InstrlinkConfig,
    config_from_dict,
    config_from_env,
    load_config,
)
from instrlink_visa.instrument import Instrument, connect
from instrlink_visa.registry import (
    ConnectorRegistry,
    default_registry,
    load_factory,
    registry_from_config,
)

__all__ = [
    # Address resolution
    "AddressResolver",
    "FieldKind",
    "FieldSpec",
    "InterfaceGrammar",
    "USB_GRAMMAR",
    "resolve",
    # Configuration
    "CONFIG_ENV_VAR",
    "ConnectorConfig",
    "InstrlinkConfig",
    "config_from_dict",
    "config_from_env",
    "load_config",
    # Instrument
    "Instrument",
    "connect",
    # Registry
    "ConnectorRegistry",
    "default_registry",
    "load_factory",
    "registry_from_config",
]
