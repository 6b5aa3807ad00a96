import logging
from typing import Callable, List

logger = logging.getLogger(__name__)

Listener = Callable[[bool], None]


class ConnectivityObserver:
    """Online/offline flag fed by the host environment. Informational only."""

    def __init__(self, online: bool = True):
        self._online = online
        self._listeners: List[Listener] = []

    @property
    def is_online(self) -> bool:
        return self._online

    def set_online(self, online: bool) -> bool:
        """Record a host connectivity event; returns True on an actual transition."""
        online = bool(online)
        if online == self._online:
            return False
        self._online = online
        logger.info("Connectivity changed: %s", "online" if online else "offline")
        for listener in list(self._listeners):
            try:
                listener(online)
            except Exception:
                logger.exception("Connectivity listener failed")
        return True

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe
