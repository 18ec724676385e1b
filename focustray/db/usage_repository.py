"""Repository for today's ledger and the history archive."""
import datetime
from dataclasses import dataclass
from typing import Dict, List, Optional
from ..models import DailyUsageRecord
from .connection import get_cursor

LAST_ACTIVITY_KEY = "last_activity"
TODAY_DAY_KEY = "today_day"


@dataclass
class LedgerState:
    """Persisted shape of today's ledger."""
    per_app_duration: Dict[str, float]
    total_duration: float
    last_activity: Optional[datetime.datetime]
    day: Optional[datetime.date] = None


class UsageRepository:
    """Reads and writes the two usage blobs: today's ledger and the archive."""

    def __init__(self, db_path: Optional[str] = None) -> None:
        self.db_path = db_path

    # --- Today's ledger ---

    def save_today(self, record: DailyUsageRecord,
                   last_activity: Optional[datetime.datetime]) -> None:
        """Replace the stored ledger with the given snapshot."""
        with get_cursor(self.db_path) as cur:
            cur.execute("DELETE FROM today_usage")
            cur.executemany(
                "INSERT INTO today_usage (app_name, seconds) VALUES (?, ?)",
                list(record.per_app_duration.items())
            )
            cur.execute(
                "INSERT OR REPLACE INTO tracker_state (key, value) VALUES (?, ?)",
                (TODAY_DAY_KEY, record.date.isoformat())
            )
            if last_activity is not None:
                cur.execute(
                    "INSERT OR REPLACE INTO tracker_state (key, value) VALUES (?, ?)",
                    (LAST_ACTIVITY_KEY, last_activity.isoformat(timespec="seconds"))
                )

    def load_today(self) -> Optional[LedgerState]:
        """
        Load today's ledger.

        Returns:
            LedgerState, or None when nothing has been saved yet.
        Raises:
            sqlite3.Error or ValueError on unreadable data.
        """
        with get_cursor(self.db_path) as cur:
            cur.execute("SELECT app_name, seconds FROM today_usage")
            rows = cur.fetchall()
            cur.execute("SELECT key, value FROM tracker_state")
            state = {r[0]: r[1] for r in cur.fetchall()}

        if not rows and LAST_ACTIVITY_KEY not in state:
            return None

        per_app = {str(r[0]): float(r[1]) for r in rows}
        last_activity = None
        if LAST_ACTIVITY_KEY in state:
            last_activity = datetime.datetime.fromisoformat(state[LAST_ACTIVITY_KEY])
        day = None
        if TODAY_DAY_KEY in state:
            day = datetime.date.fromisoformat(state[TODAY_DAY_KEY])

        return LedgerState(
            per_app_duration=per_app,
            total_duration=sum(per_app.values()),
            last_activity=last_activity,
            day=day,
        )

    # --- History archive ---

    def save_history(self, records: List[DailyUsageRecord]) -> None:
        """Replace the stored archive with the given records."""
        with get_cursor(self.db_path) as cur:
            cur.execute("DELETE FROM history_usage")
            cur.execute("DELETE FROM history_days")
            for record in records:
                cur.execute(
                    "INSERT INTO history_days (day, total_seconds) VALUES (?, ?)",
                    (record.date_key, record.total_duration)
                )
                cur.executemany(
                    "INSERT INTO history_usage (day, app_name, seconds) VALUES (?, ?, ?)",
                    [(record.date_key, app, seconds)
                     for app, seconds in record.per_app_duration.items()]
                )

    def load_history(self) -> List[DailyUsageRecord]:
        """
        Load every archived day, newest first.

        Raises:
            sqlite3.Error or ValueError on unreadable data.
        """
        with get_cursor(self.db_path) as cur:
            cur.execute("SELECT day FROM history_days ORDER BY day DESC")
            days = [r[0] for r in cur.fetchall()]
            cur.execute("SELECT day, app_name, seconds FROM history_usage")
            usage_rows = cur.fetchall()

        records: Dict[str, DailyUsageRecord] = {
            day: DailyUsageRecord(date=datetime.date.fromisoformat(day)) for day in days
        }
        for day, app_name, seconds in usage_rows:
            record = records.get(day)
            if record is None:
                # Usage rows without a day row still describe that day
                record = DailyUsageRecord(date=datetime.date.fromisoformat(day))
                records[day] = record
            record.per_app_duration[str(app_name)] = float(seconds)

        return sorted(records.values(), key=lambda r: r.date, reverse=True)
