"""
Data models for the application.
"""
import datetime
import uuid
from dataclasses import dataclass, field
from typing import Dict, Optional


def local_now() -> datetime.datetime:
    """Current local time with its UTC offset attached."""
    return datetime.datetime.now().astimezone()


def seconds_between(start: datetime.datetime, end: datetime.datetime) -> float:
    """
    Real seconds from start to end.

    Aware timestamps are compared in UTC, so a DST change between them
    does not add or remove an hour. Aware datetimes sharing one zoneinfo
    tzinfo would otherwise subtract as wall-clock times.
    """
    if start.tzinfo is not None and end.tzinfo is not None:
        start = start.astimezone(datetime.timezone.utc)
        end = end.astimezone(datetime.timezone.utc)
    elif start.tzinfo is not None or end.tzinfo is not None:
        start = start.replace(tzinfo=None)
        end = end.replace(tzinfo=None)
    return (end - start).total_seconds()


@dataclass(frozen=True)
class ApplicationIdentity:
    """The foreground application as reported by the platform on one tick."""
    display_name: str
    bundle_id: str = ""
    process_id: int = 0


@dataclass
class ActiveSession:
    """The currently attributed, not yet flushed interval."""
    app_name: str
    started_at: datetime.datetime

    def elapsed(self, now: datetime.datetime) -> float:
        return max(0.0, seconds_between(self.started_at, now))


@dataclass
class DailyUsageRecord:
    """Per-application seconds for one calendar day."""
    date: datetime.date
    per_app_duration: Dict[str, float] = field(default_factory=dict)

    @property
    def total_duration(self) -> float:
        return float(sum(self.per_app_duration.values()))

    @property
    def date_key(self) -> str:
        return self.date.isoformat()

    def copy(self) -> "DailyUsageRecord":
        return DailyUsageRecord(date=self.date, per_app_duration=dict(self.per_app_duration))


def new_rule_id() -> str:
    return uuid.uuid4().hex


@dataclass
class NotificationRule:
    """A per-application time limit."""
    app_name: str
    time_limit: float
    enabled: bool = True
    custom_message: Optional[str] = None
    id: str = field(default_factory=new_rule_id)

    def __post_init__(self) -> None:
        if not self.app_name or not self.app_name.strip():
            raise ValueError("rule app_name must not be empty")
        if self.time_limit <= 0:
            raise ValueError(f"rule time_limit must be positive, got {self.time_limit}")

    def matches(self, app_name: str) -> bool:
        return self.app_name.lower() == app_name.lower()


@dataclass(frozen=True)
class Alert:
    """Payload handed to the notification collaborator."""
    rule_id: str
    app_name: str
    duration: float
    title: str
    body: str
    category: str
    correlation_id: str
