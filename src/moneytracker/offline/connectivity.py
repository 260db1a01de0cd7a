"""Connectivity tracking.

The tracker trusts whatever reports transitions to it (a platform
network event, a CLI flag). It never polls the remote store: an
"online" transition does not promise the store is reachable, and
replay failures are handled by the queue.
"""
import logging
import socket
from typing import Callable

from moneytracker.core.events import emit_event

logger = logging.getLogger("moneytracker.connectivity")

Listener = Callable[[bool], None]


class ConnectivityTracker:
    """Boolean online signal with transition listeners."""

    def __init__(self, initial_online: bool = True):
        self._online = initial_online
        self._listeners: list[Listener] = []

    @property
    def is_online(self) -> bool:
        return self._online

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener(online)``; returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def set_online(self) -> None:
        self._transition(True)

    def set_offline(self) -> None:
        self._transition(False)

    def _transition(self, online: bool) -> None:
        if online == self._online:
            return
        self._online = online
        emit_event("connectivity_change", {"online": online})
        for listener in list(self._listeners):
            listener(online)


def probe(host: str, port: int, timeout: float = 5.0) -> bool:
    """Check whether a TCP connection to host:port succeeds.

    Args:
        host: Remote host
        port: Remote port
        timeout: Connection timeout in seconds

    Returns:
        True if the host is reachable
    """
    try:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.settimeout(timeout)
        result = sock.connect_ex((host, port))
        sock.close()
        return result == 0
    except (socket.error, OSError) as e:
        logger.debug(f"Probe of {host}:{port} failed: {e}")
        return False
