"""Archive of past days' usage."""
import datetime
import logging
import threading
from typing import Iterable, List, Optional, Union

from ..classifier import should_filter_name
from ..models import DailyUsageRecord

logger = logging.getLogger(__name__)

DateLike = Union[datetime.date, datetime.datetime]


def to_local_day(value: DateLike) -> datetime.date:
    """
    Normalize a date or timestamp to a calendar day.

    A timestamp's day is its own wall-clock day, the same day the ledger
    keys it under.
    """
    if isinstance(value, datetime.datetime):
        return value.date()
    return value


def _filtered(record: DailyUsageRecord) -> DailyUsageRecord:
    return DailyUsageRecord(
        date=to_local_day(record.date),
        per_app_duration={app: float(seconds) for app, seconds in record.per_app_duration.items()
                          if not should_filter_name(app)},
    )


class HistoryArchive:
    """
    Newest-first collection of DailyUsageRecord, one per calendar day.
    """

    def __init__(self, retention_days: Optional[int] = None) -> None:
        self.retention_days = retention_days
        self.revision: int = 0
        self._records: List[DailyUsageRecord] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def upsert(self, record: DailyUsageRecord) -> None:
        """Replace the record for the same day, or add it."""
        day = to_local_day(record.date)
        stored = DailyUsageRecord(date=day, per_app_duration=dict(record.per_app_duration))
        with self._lock:
            for index, existing in enumerate(self._records):
                if existing.date == day:
                    self._records[index] = stored
                    break
            else:
                self._records.append(stored)
            self._sort_and_trim()
            self.revision += 1
        logger.debug("Archived %s (%.0fs)", stored.date_key, stored.total_duration)

    def records_for_date(self, value: DateLike) -> Optional[DailyUsageRecord]:
        day = to_local_day(value)
        with self._lock:
            for record in self._records:
                if record.date == day:
                    return record.copy()
        return None

    def all(self) -> List[DailyUsageRecord]:
        with self._lock:
            return [record.copy() for record in self._records]

    def dates(self) -> List[datetime.date]:
        with self._lock:
            return [record.date for record in self._records]

    def load(self, records: Iterable[DailyUsageRecord]) -> None:
        """
        Replace the archive with persisted records.

        Every record is re-filtered through the classifier and its total
        re-derived, so deny-list changes apply to old days too. Duplicate
        days keep the last occurrence.
        """
        by_day = {}
        for record in records:
            cleaned = _filtered(record)
            by_day[cleaned.date] = cleaned
        with self._lock:
            self._records = list(by_day.values())
            self._sort_and_trim()
            self.revision += 1
        logger.info("Loaded %d archived days", len(self._records))

    def _sort_and_trim(self) -> None:
        self._records.sort(key=lambda r: r.date, reverse=True)
        if self.retention_days is not None and self._records:
            cutoff = self._records[0].date - datetime.timedelta(days=self.retention_days)
            self._records = [r for r in self._records if r.date > cutoff]
