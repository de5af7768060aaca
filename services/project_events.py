"""
Update Notification Bus - in-process project change events
"""
import logging
from dataclasses import dataclass
from typing import Callable, List, Literal

logger = logging.getLogger(__name__)

ProjectAction = Literal["created", "updated", "deleted"]


@dataclass(frozen=True)
class ProjectUpdateEvent:
    action: ProjectAction
    project_id: str
    image_url: str = ""


ProjectListener = Callable[[ProjectUpdateEvent], None]


class ProjectEventBus:
    """
    Synchronous publish/subscribe for project changes.

    Delivery is same-process only, with no persistence of missed events and
    no acknowledgement. Listeners are advisory (views re-query on an event),
    so a failing listener is logged and skipped.
    """

    def __init__(self):
        self._listeners: List[ProjectListener] = []

    def subscribe(self, listener: ProjectListener) -> Callable[[], None]:
        """Register a listener; returns a function that unsubscribes it."""
        self._listeners.append(listener)
        return lambda: self.unsubscribe(listener)

    def unsubscribe(self, listener: ProjectListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def publish(self, action: ProjectAction, project_id: str, image_url: str = "") -> ProjectUpdateEvent:
        event = ProjectUpdateEvent(action=action, project_id=project_id, image_url=image_url or "")
        logger.debug(f"Project event: {event}")
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.warning(f"Project event listener {listener!r} failed: {e}")
        return event
