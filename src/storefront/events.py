"""Tiny synchronous signal used to report UI side effects from the core."""

import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)

Listener = Callable[..., None]


class Signal:
    """A named list of listeners called in subscription order."""

    def __init__(self, name: str):
        self.name = name
        self._listeners: list[Listener] = []

    def connect(self, listener: Listener) -> Listener:
        """Subscribe a listener. Returns it so this can be used as a decorator."""
        if listener not in self._listeners:
            self._listeners.append(listener)
        return listener

    def disconnect(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def emit(self, *args: Any, **kwargs: Any) -> None:
        """Call every listener. A failing listener never breaks the core."""
        for listener in list(self._listeners):
            try:
                listener(*args, **kwargs)
            except Exception:
                logger.exception("Listener for %s failed", self.name)

    def __len__(self) -> int:
        return len(self._listeners)
