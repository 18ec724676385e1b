"""Service for per-day statistics over the ledger and the archive."""
import datetime
from typing import Callable, Dict, List, Tuple

from ..classifier import should_filter_name
from ..models import local_now
from .history import DateLike, HistoryArchive, to_local_day
from .ledger import UsageLedger


class StatsService:
    """Answers per-date questions, using live totals for today."""

    def __init__(self, ledger: UsageLedger, archive: HistoryArchive,
                 clock: Callable[[], datetime.datetime] = local_now) -> None:
        self.ledger = ledger
        self.archive = archive
        self.clock = clock

    def _is_today(self, day: datetime.date) -> bool:
        return day == self.ledger.day

    def get_app_usage(self, value: DateLike) -> Dict[str, float]:
        """
        Get seconds per application for a day.

        Returns:
            Dict mapping app_name to seconds, system apps excluded
        """
        day = to_local_day(value)
        if self._is_today(day):
            usage = self.ledger.current_totals(self.clock())
        else:
            record = self.archive.records_for_date(day)
            usage = record.per_app_duration if record else {}
        return {app: seconds for app, seconds in usage.items() if not should_filter_name(app)}

    def get_total(self, value: DateLike) -> float:
        """Total tracked seconds for a day (live for today)."""
        return float(sum(self.get_app_usage(value).values()))

    def get_top_apps(self, value: DateLike, limit: int = 8) -> List[Tuple[str, float]]:
        """
        Get top applications by time for a day.

        Returns:
            List of (app_name, seconds) tuples sorted by usage
        """
        day = to_local_day(value)
        if self._is_today(day):
            return self.ledger.top_applications(limit, self.clock())
        sorted_apps = sorted(self.get_app_usage(day).items(), key=lambda x: x[1], reverse=True)
        return sorted_apps[:limit]

    def get_all_dates(self) -> List[datetime.date]:
        """Every day with data, newest first, today included."""
        dates = self.archive.dates()
        if self.ledger.day not in dates:
            dates.insert(0, self.ledger.day)
        return sorted(dates, reverse=True)
