"""Day boundaries: moving today's ledger into the archive."""
import datetime
import logging
from typing import Optional

from ..config import TrackerConfig
from ..db.usage_repository import LedgerState
from ..events import Event, EventBus, RolloverContext, event_bus
from ..models import DailyUsageRecord
from .history import HistoryArchive
from .ledger import UsageLedger
from .rule_engine import RuleEngine

logger = logging.getLogger(__name__)


class RolloverManager:
    """
    Archives the ledger on an explicit reset or a calendar-day change.

    Runs on the sampling thread, so the loop never observes a ledger that
    is half rolled over.
    """

    def __init__(self, ledger: UsageLedger, archive: HistoryArchive, rule_engine: RuleEngine,
                 config: Optional[TrackerConfig] = None, bus: Optional[EventBus] = None) -> None:
        self.ledger = ledger
        self.archive = archive
        self.rule_engine = rule_engine
        self.config = config or TrackerConfig()
        self.bus = bus if bus is not None else event_bus
        self.rollovers: int = 0
        ledger.on_reset = self.archive_snapshot

    def reset(self, now: datetime.datetime) -> DailyUsageRecord:
        """Explicit user reset."""
        logger.info("Manual reset requested")
        return self.ledger.reset(now)

    def archive_snapshot(self, snapshot: DailyUsageRecord) -> None:
        """Ledger reset hook: archive the old day and start a new period."""
        if snapshot.per_app_duration:
            self.archive.upsert(snapshot)
        self.rule_engine.clear_notified()
        self.rollovers += 1
        self.bus.emit(Event.DAY_ROLLED_OVER, RolloverContext(snapshot))

    def check_day_change(self, now: datetime.datetime) -> bool:
        """
        Roll over when the calendar day changed while running.

        The in-flight session is credited to the old day first.
        """
        if not self.config.auto_reset_daily or now.date() == self.ledger.day:
            return False
        logger.info("Calendar day changed (%s -> %s)", self.ledger.day, now.date())
        app = self.ledger.active_app
        self.ledger.flush(now)
        self.ledger.reset(now)
        if app is not None:
            # reset() only restarts a session that was still open
            self.ledger.restart_session(app, now)
        return True

    def restore(self, state: Optional[LedgerState], now: datetime.datetime) -> None:
        """
        Startup: reload today's ledger, or archive it if it belongs to an
        earlier day.
        """
        if state is None:
            self.ledger.restore({}, now.date())
            return

        stamped = state.last_activity or (
            datetime.datetime.combine(state.day, datetime.time.min) if state.day else None)
        if stamped is None or stamped.date() == now.date():
            self.ledger.restore(state.per_app_duration, now.date(), state.last_activity)
            logger.info("Restored today's usage (%d apps)", len(self.ledger.per_app_duration))
            return

        logger.info("Last activity %s is not today, archiving it", stamped.isoformat())
        self.ledger.restore(state.per_app_duration, stamped.date(), state.last_activity)
        self.ledger.reset(now)
