"""
Notebook event surface.

Collaborators outside the dependency engine (web views, broadcasters) listen
here for the notifications the engine raises while cells run.
"""
import logging
from typing import Callable, Dict, List

logger = logging.getLogger(__name__)

SET_DIRTY = "set_dirty"
CELL_EXECUTED = "cell_executed"
OPEN_PAGER = "open_pager"
SET_NEXT_INPUT = "set_next_input"
HIGHLIGHT_CHANGED = "highlight_changed"
CELL_UPDATED = "cell_updated"

EventHandler = Callable[[dict], None]


class NotebookEvents:
    """Synchronous publish/subscribe hub, one per notebook."""

    def __init__(self):
        self._handlers: Dict[str, List[EventHandler]] = {}

    def on(self, event: str, handler: EventHandler):
        """Register ``handler`` for ``event``."""
        self._handlers.setdefault(event, []).append(handler)

    def trigger(self, event: str, data: dict = None):
        """Call every handler registered for ``event`` in registration order."""
        for handler in list(self._handlers.get(event, [])):
            try:
                handler(data or {})
            except Exception:
                logger.exception(f"Handler for {event} failed")
