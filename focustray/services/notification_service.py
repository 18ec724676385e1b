"""Desktop notification delivery."""
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Dict, Optional

from ..events import Event, EventBus, UsageAlertContext, event_bus
from ..models import Alert

logger = logging.getLogger(__name__)

APP_NAME = "FocusTray"
ALERT_ICON = "chronometer-pause-symbolic"
ALERT_TIMEOUT_MS = 10_000


class NotificationService:
    """Sends notifications over org.freedesktop.Notifications."""

    def notify(self, title: str, message: str, icon: str = "dialog-information",
               hints: Optional[Dict[str, Any]] = None, timeout: int = 0) -> bool:
        """
        Send desktop notification.

        Args:
            title: Notification title
            message: Notification message
            icon: Icon name (theme icon)
            hints: Freedesktop hints (category, urgency, ...)
            timeout: Timeout in ms (0 = no timeout)

        Returns:
            True if DBus notification succeeded, False otherwise
        """
        try:
            import dbus  # type: ignore[import-untyped]

            bus = dbus.SessionBus()  # type: ignore[reportUnknownMemberType]
            obj = bus.get_object("org.freedesktop.Notifications",  # type: ignore[reportUnknownMemberType]
                                 "/org/freedesktop/Notifications")
            interface = dbus.Interface(obj, "org.freedesktop.Notifications")  # type: ignore[reportUnknownMemberType]

            interface.Notify(APP_NAME, 0, icon, title, message,  # type: ignore[reportUnknownMemberType]
                             [], hints or {}, timeout)
            return True
        except Exception as e:
            logger.warning("DBus notification failed: %s", e)
            return False

    def send(self, alert: Alert) -> bool:
        """Deliver a usage alert: {title, body, category, correlationId}."""
        hints = {
            "category": alert.category,
            "x-focustray-correlation-id": alert.correlation_id,
        }
        delivered = self.notify(alert.title, alert.body, ALERT_ICON, hints, ALERT_TIMEOUT_MS)
        if delivered:
            logger.info("Notification sent for %s after %.0f seconds (%s)",
                        alert.app_name, alert.duration, alert.correlation_id)
        else:
            logger.error("Error sending notification for %s (%s)", alert.app_name, alert.correlation_id)
        return delivered


class AlertDispatcher:
    """
    Hands USAGE_ALERT events to the notification service off the sampling
    thread. Delivery results are only logged; nothing is re-queued.
    """

    def __init__(self, service: Optional[NotificationService] = None,
                 bus: Optional[EventBus] = None,
                 executor: Optional[ThreadPoolExecutor] = None,
                 enabled: bool = True) -> None:
        self.service = service or NotificationService()
        self.bus = bus if bus is not None else event_bus
        self.executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="notify")
        self.enabled = enabled
        self.bus.subscribe(Event.USAGE_ALERT, self.on_alert)

    def on_alert(self, context: UsageAlertContext) -> Optional['Future[bool]']:
        if not self.enabled:
            logger.debug("Notifications disabled, dropping alert for %s", context.alert.app_name)
            return None
        future = self.executor.submit(self.service.send, context.alert)
        future.add_done_callback(self._log_failure)
        return future

    @staticmethod
    def _log_failure(future: 'Future[bool]') -> None:
        error = future.exception()
        if error is not None:
            logger.error("Notification delivery raised: %s", error)

    def close(self) -> None:
        self.bus.unsubscribe(Event.USAGE_ALERT, self.on_alert)
        self.executor.shutdown(wait=False)
