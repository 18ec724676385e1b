"""Per-application time limits and alert suppression."""
import datetime
import logging
import sqlite3
import threading
from dataclasses import replace
from typing import Callable, Iterable, List, Optional, Set, TYPE_CHECKING

from ..events import Event, EventBus, UsageAlertContext, event_bus
from ..models import Alert, NotificationRule, local_now

if TYPE_CHECKING:
    from ..db.rule_repository import RuleRepository

logger = logging.getLogger(__name__)

ALERT_TITLE = "FocusTray Alert"
ALERT_CATEGORY = "focustray.usage-limit"


def format_usage_message(app_name: str, seconds: float) -> str:
    """Describe the time spent using the largest two units."""
    total = int(seconds)
    hours = total // 3600
    minutes = (total % 3600) // 60
    secs = total % 60

    if hours > 0:
        spent = f"{hours}h {minutes}m"
    elif minutes > 0:
        spent = f"{minutes}m {secs}s"
    else:
        spent = f"{secs}s"
    return f"You've spent {spent} on {app_name}. Time for a break!"


class RuleEngine:
    """
    Matches accumulated durations against the user's rules.

    An app that has triggered an alert stays quiet for the rest of the
    accounting period, until clear_notified() runs on rollover.
    """

    def __init__(self, rules: Iterable[NotificationRule] = (),
                 bus: Optional[EventBus] = None,
                 repository: Optional['RuleRepository'] = None,
                 clock: Callable[[], datetime.datetime] = local_now) -> None:
        self.bus = bus if bus is not None else event_bus
        self.repository = repository
        self.clock = clock
        self._rules: List[NotificationRule] = list(rules)
        self._notified: Set[str] = set()
        self._lock = threading.Lock()

    # --- Evaluation ---

    def evaluate(self, app_name: str, cumulative_duration: float) -> List[Alert]:
        """
        Check one app's cumulative time.

        Emits one alert per qualifying enabled rule, at most once per app
        per accounting period. Never raises.
        """
        try:
            return self._evaluate(app_name, float(cumulative_duration))
        except (TypeError, ValueError, AttributeError) as e:
            logger.warning("Skipping rule evaluation for %r: %s", app_name, e)
            return []

    def _evaluate(self, app_name: str, duration: float) -> List[Alert]:
        if not app_name:
            return []
        key = app_name.lower()

        with self._lock:
            if key in self._notified:
                return []
            qualifying = [rule for rule in self._rules
                          if rule.enabled and rule.matches(app_name) and duration >= rule.time_limit]
            if not qualifying:
                return []
            self._notified.add(key)

        now = self.clock()
        alerts = [self._build_alert(rule, app_name, duration, now) for rule in qualifying]
        for alert in alerts:
            logger.info("Limit reached for %s (%.0fs >= rule %s)", app_name, duration, alert.rule_id)
            self.bus.emit(Event.USAGE_ALERT, UsageAlertContext(alert))
        return alerts

    def _build_alert(self, rule: NotificationRule, app_name: str,
                     duration: float, now: datetime.datetime) -> Alert:
        if rule.custom_message:
            body = rule.custom_message
        else:
            body = format_usage_message(rule.app_name, duration)
        return Alert(
            rule_id=rule.id,
            app_name=app_name,
            duration=duration,
            title=ALERT_TITLE,
            body=body,
            category=ALERT_CATEGORY,
            correlation_id=f"{rule.id}-{now.timestamp():.0f}",
        )

    def send_test_alert(self, app_name: str, duration: float) -> List[Alert]:
        """
        Fire the rules for app_name as if it had been used for duration.

        Lets the user preview an alert. Suppression is ignored and the
        notified set is left alone, so real alerts still fire later.
        """
        logger.info("Testing notification for %s with %.0f seconds", app_name, duration)
        with self._lock:
            qualifying = [rule for rule in self._rules
                          if rule.enabled and rule.matches(app_name) and duration >= rule.time_limit]
        now = self.clock()
        alerts = [self._build_alert(rule, app_name, float(duration), now) for rule in qualifying]
        for alert in alerts:
            self.bus.emit(Event.USAGE_ALERT, UsageAlertContext(alert))
        return alerts

    def is_notified(self, app_name: str) -> bool:
        with self._lock:
            return app_name.lower() in self._notified

    def clear_notified(self) -> None:
        with self._lock:
            self._notified.clear()

    # --- Rule CRUD ---

    @property
    def rules(self) -> List[NotificationRule]:
        with self._lock:
            return [replace(rule) for rule in self._rules]

    def rules_for(self, app_name: str) -> List[NotificationRule]:
        return [rule for rule in self.rules if rule.matches(app_name)]

    def add(self, app_name: str, time_limit: float, custom_message: Optional[str] = None,
            enabled: bool = True) -> NotificationRule:
        rule = NotificationRule(app_name=app_name, time_limit=time_limit,
                                enabled=enabled, custom_message=custom_message)
        with self._lock:
            self._rules.append(rule)
        self._save()
        logger.info("Added rule %s: %s after %.0fs", rule.id, rule.app_name, rule.time_limit)
        return replace(rule)

    def update(self, rule: NotificationRule) -> None:
        """Replace the stored rule with the same id. Raises KeyError if unknown."""
        with self._lock:
            index = self._index_of(rule.id)
            self._rules[index] = replace(rule)
        self._save()

    def toggle(self, rule_id: str) -> bool:
        """Flip a rule's enabled flag and return the new value."""
        with self._lock:
            index = self._index_of(rule_id)
            rule = self._rules[index]
            rule.enabled = not rule.enabled
            enabled = rule.enabled
        self._save()
        return enabled

    def remove(self, rule_id: str) -> None:
        """Delete a rule. Raises KeyError if unknown."""
        with self._lock:
            index = self._index_of(rule_id)
            del self._rules[index]
        self._save()

    def load(self, rules: Iterable[NotificationRule]) -> None:
        with self._lock:
            self._rules = list(rules)

    def _index_of(self, rule_id: str) -> int:
        for index, rule in enumerate(self._rules):
            if rule.id == rule_id:
                return index
        raise KeyError(rule_id)

    def _save(self) -> None:
        if self.repository is None:
            return
        try:
            self.repository.save_all(self.rules)
        except (sqlite3.Error, OSError) as e:
            # The whole list is written again on the next change
            logger.error("Failed to save notification rules: %s", e)
