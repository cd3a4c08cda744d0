"""Protocol-based interface definitions for instrlink.

Interfaces:
    Connector: Open transport connection to a single instrument.
    ConnectorFactory: Callable opening a Connector for a resolved address.
"""

from instrlink_core.interfaces.connector import Connector, ConnectorFactory

__all__ = [
    "Connector",
    "ConnectorFactory",
]
