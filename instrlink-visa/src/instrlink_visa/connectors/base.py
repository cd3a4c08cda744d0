"""Shared plumbing for the shipped connectors.

:class:`LockedConnector` implements the :class:`Connector` operations on top
of three primitives (write, raw read, timeout) supplied by a backend
subclass. Every operation runs under one lock, so the write and read of a
query are never interleaved with another thread's traffic, and backend
exceptions are re-raised as :class:`TransportIOError`.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import Callable, TypeVar

from instrlink_core.errors import TransportIOError

logger = logging.getLogger(__name__)

_T = TypeVar("_T")


class LockedConnector(ABC):
    """Base class for thread-safe connectors.

    Args:
        name: Label used in error messages and logs (usually the address).
    """

    def __init__(self, name: str) -> None:
        self._name = name
        self._lock = threading.Lock()
        self._closed = False

    @property
    def name(self) -> str:
        """Label of the connected device."""
        return self._name

    @property
    def is_closed(self) -> bool:
        """Return True once :meth:`close` has run."""
        return self._closed

    # -- Backend primitives --------------------------------------------------

    @abstractmethod
    def _write(self, cmd: str) -> None:
        """Send *cmd* to the device."""

    @abstractmethod
    def _read_raw(self) -> bytes:
        """Read one complete response from the device."""

    @abstractmethod
    def _apply_timeout(self, seconds: float) -> None:
        """Apply an I/O timeout to the backend handle."""

    @abstractmethod
    def _release(self) -> None:
        """Release the backend handle."""

    # -- Connector interface -------------------------------------------------

    def set_timeout(self, seconds: float) -> None:
        """Set the I/O timeout for subsequent operations.

        Failures reported by the backend are raised as
        :class:`TransportIOError`; the facade does not distinguish them.
        """
        self._locked("set timeout", lambda: self._apply_timeout(seconds))

    def command(self, cmd: str) -> None:
        """Send a command with no response."""
        self._locked(f"command {cmd!r}", lambda: self._write(cmd))

    def query_raw(self, cmd: str) -> bytes:
        """Send a command and return the raw response bytes."""

        def exchange() -> bytes:
            self._write(cmd)
            return self._read_raw()

        return self._locked(f"query {cmd!r}", exchange)

    def query(self, cmd: str) -> str:
        """Send a command and return the response decoded as UTF-8."""
        payload = self.query_raw(cmd)
        try:
            return payload.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise TransportIOError(
                f"Response to {cmd!r} from {self._name} is not valid UTF-8: {exc}"
            ) from exc

    def close(self) -> None:
        """Release the device. Safe to call multiple times."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._release()
        logger.debug("Closed connector %s", self._name)

    # -- Private helpers -----------------------------------------------------

    def _locked(self, operation: str, func: Callable[[], _T]) -> _T:
        with self._lock:
            if self._closed:
                raise TransportIOError(f"Cannot {operation}: {self._name} is closed")
            try:
                return func()
            except TransportIOError:
                raise
            except Exception as exc:
                raise TransportIOError(f"Failed to {operation} on {self._name}: {exc}") from exc
