"""YAML configuration loading for instrlink.

Configuration is optional: without it every address resolves with the
built-in grammars and USB devices open through python-usbtmc. A config file
can change the connector used for an interface family, pass keyword
arguments to it, tighten tag matching, and set a default timeout.

Example YAML configuration:
    instrlink:
      default_timeout: 2.5
      strict_interface_tags: false
      connectors:
        USB:
          factory: "instrlink_visa.connectors.visa:connect_visa"
          kwargs:
            backend: "@py"

The file named by the ``INSTRLINK_CONFIG`` environment variable is picked up
by :func:`config_from_env`.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml

from instrlink_core.types.address import InterfaceType

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "INSTRLINK_CONFIG"
"""Environment variable holding the path of the configuration file."""


@dataclass(frozen=True)
class ConnectorConfig:
    """Connector override for one interface family.

    Attributes:
        interface: Interface family the override applies to.
        factory: Factory path in "module:function" format
            (e.g., "instrlink_visa.connectors.visa:connect_visa").
        kwargs: Keyword arguments passed to the factory after the address.
    """

    interface: InterfaceType
    factory: str
    kwargs: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class InstrlinkConfig:
    """Top-level instrlink configuration.

    Attributes:
        default_timeout: Timeout in seconds applied to every new instrument,
            or None to keep the connector's own default.
        strict_interface_tags: Require exact interface tags (``USB``,
            ``USB0``) instead of substring matching.
        connectors: Connector overrides, at most one per interface.
    """

    default_timeout: float | None = None
    strict_interface_tags: bool = False
    connectors: tuple[ConnectorConfig, ...] = ()

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.default_timeout is not None and self.default_timeout <= 0:
            raise ValueError("default_timeout must be positive")
        seen: set[InterfaceType] = set()
        for connector in self.connectors:
            if connector.interface in seen:
                raise ValueError(
                    f"Duplicate connector override for {connector.interface.name}"
                )
            seen.add(connector.interface)

    def connector_for(self, interface: InterfaceType) -> ConnectorConfig | None:
        """Return the override for *interface*, if configured."""
        for connector in self.connectors:
            if connector.interface is interface:
                return connector
        return None


def _parse_interface(name: Any) -> InterfaceType:
    try:
        return InterfaceType(str(name).upper())
    except ValueError:
        valid = ", ".join(member.value for member in InterfaceType)
        raise ValueError(f"Unknown interface '{name}' (expected one of: {valid})") from None


def _parse_connectors(data: Any) -> tuple[ConnectorConfig, ...]:
    if not isinstance(data, dict):
        raise ValueError("instrlink.connectors must be a mapping")

    connectors: list[ConnectorConfig] = []
    for name, entry in data.items():
        interface = _parse_interface(name)
        if isinstance(entry, str):
            entry = {"factory": entry}
        if not isinstance(entry, dict):
            raise ValueError(f"Connector '{name}' must be a mapping or a factory path")

        factory = entry.get("factory")
        if not factory:
            raise ValueError(f"Connector '{name}' missing required field: factory")

        kwargs = entry.get("kwargs", {})
        if not isinstance(kwargs, dict):
            raise ValueError(f"Connector '{name}' kwargs must be a mapping")

        connectors.append(ConnectorConfig(interface=interface, factory=factory, kwargs=kwargs))
    return tuple(connectors)


def config_from_dict(data: Mapping[str, Any]) -> InstrlinkConfig:
    """Build a configuration from the contents of the ``instrlink`` section.

    Args:
        data: Mapping with the optional keys ``default_timeout``,
            ``strict_interface_tags`` and ``connectors``.

    Returns:
        Parsed configuration.

    Raises:
        ValueError: If a value has the wrong type or fails validation.
    """
    timeout = data.get("default_timeout")
    if timeout is not None:
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
            raise ValueError("instrlink.default_timeout must be a number of seconds")
        timeout = float(timeout)

    strict = data.get("strict_interface_tags", False)
    if not isinstance(strict, bool):
        raise ValueError("instrlink.strict_interface_tags must be a boolean")

    return InstrlinkConfig(
        default_timeout=timeout,
        strict_interface_tags=strict,
        connectors=_parse_connectors(data.get("connectors", {})),
    )


def load_config(path: str | Path) -> InstrlinkConfig:
    """Load configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        Parsed configuration.

    Raises:
        FileNotFoundError: If the config file doesn't exist.
        ValueError: If the config is invalid.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError("Config must be a YAML mapping")

    section = data.get("instrlink", {})
    if section is None:
        section = {}
    if not isinstance(section, dict):
        raise ValueError("instrlink section must be a mapping")

    config = config_from_dict(section)
    logger.debug("Loaded instrlink config from %s", path)
    return config


def config_from_env(environ: Mapping[str, str] | None = None) -> InstrlinkConfig:
    """Load the configuration named by ``INSTRLINK_CONFIG``.

    Args:
        environ: Environment mapping. Defaults to ``os.environ``.

    Returns:
        The loaded configuration, or defaults when the variable is unset.
    """
    env = os.environ if environ is None else environ
    path = env.get(CONFIG_ENV_VAR)
    if not path:
        return InstrlinkConfig()
    return load_config(path)
