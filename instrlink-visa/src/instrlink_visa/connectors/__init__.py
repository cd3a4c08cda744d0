"""Shipped transport connectors.

- :mod:`instrlink_visa.connectors.usbtmc`: python-usbtmc, the USB default
- :mod:`instrlink_visa.connectors.visa`: PyVISA, selectable per interface
"""

from instrlink_visa.connectors.base import LockedConnector
from instrlink_visa.connectors.usbtmc import UsbtmcConnector, connect_usbtmc
from instrlink_visa.connectors.visa import VisaConnector, connect_visa

__all__ = [
    "LockedConnector",
    "UsbtmcConnector",
    "VisaConnector",
    "connect_usbtmc",
    "connect_visa",
]
