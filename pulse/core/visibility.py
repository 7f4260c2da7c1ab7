# pulse/core/visibility.py

import threading


class VisibilityGate:
    """
    Whether the host surface is in the foreground. While hidden, the scanner
    does no work at all. Flipped by the host (see pulse.api.server).
    """

    def __init__(self, visible: bool = True) -> None:
        self._visible = visible
        self._lock = threading.Lock()

    def is_visible(self) -> bool:
        with self._lock:
            return self._visible

    def set_visible(self, visible: bool) -> None:
        with self._lock:
            self._visible = bool(visible)
