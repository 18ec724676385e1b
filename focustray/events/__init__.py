"""Global event system for the tracker."""
import logging
from enum import Enum
from typing import Callable, Any, Dict, List, Optional, TypeVar, TYPE_CHECKING

if TYPE_CHECKING:
    from ..models import Alert, DailyUsageRecord

logger = logging.getLogger(__name__)


class Event(Enum):
    """Application-wide events."""
    APP_SWITCHED = "app_switched"
    USAGE_ALERT = "usage_alert"
    DAY_ROLLED_OVER = "day_rolled_over"


class EventContext:
    """Base context for event handlers."""
    pass


class AppSwitchedContext(EventContext):
    """Context passed to APP_SWITCHED handlers."""
    def __init__(self, previous: Optional[str], current: Optional[str]) -> None:
        self.previous = previous
        self.current = current


class UsageAlertContext(EventContext):
    """Context passed to USAGE_ALERT handlers."""
    def __init__(self, alert: 'Alert') -> None:
        self.alert = alert


class RolloverContext(EventContext):
    """Context passed to DAY_ROLLED_OVER handlers."""
    def __init__(self, record: 'DailyUsageRecord') -> None:
        self.record = record


ContextT = TypeVar('ContextT', bound=EventContext)


class EventBus:
    """Central event dispatcher."""

    def __init__(self) -> None:
        self._handlers: Dict[Event, List[Callable[[Any], None]]] = {}

    def subscribe(self, event: Event, handler: Callable[[ContextT], None]) -> None:
        """Subscribe to an event with a typed handler."""
        if event not in self._handlers:
            self._handlers[event] = []
        self._handlers[event].append(handler)  # type: ignore[arg-type]

    def unsubscribe(self, event: Event, handler: Callable[[ContextT], None]) -> None:
        handlers = self._handlers.get(event, [])
        if handler in handlers:
            handlers.remove(handler)  # type: ignore[arg-type]

    def emit(self, event: Event, context: EventContext) -> None:
        """Emit an event to all subscribers."""
        for handler in list(self._handlers.get(event, [])):
            try:
                handler(context)
            except Exception:
                logger.exception("Event handler error (%s)", event.value)


# Global instance
event_bus = EventBus()
