"""Today's per-application usage and the active session."""
import datetime
import logging
import threading
from typing import Callable, Dict, List, Mapping, Optional, Tuple

from ..classifier import should_filter, should_filter_name
from ..config import TrackerConfig
from ..models import ActiveSession, ApplicationIdentity, DailyUsageRecord

logger = logging.getLogger(__name__)

FlushListener = Callable[[str, float], object]
ResetListener = Callable[[DailyUsageRecord], None]


class UsageLedger:
    """
    Accumulates foreground time per application for one calendar day.

    Time is credited only when a session is flushed (app switch, filtered
    app, idle, shutdown). Reads combine the flushed totals with the live
    elapsed time of the active session without mutating anything.

    All mutations happen on the sampling thread; the lock keeps readers on
    other threads from seeing a half-applied update.
    """

    def __init__(self, config: Optional[TrackerConfig] = None,
                 day: Optional[datetime.date] = None,
                 on_flush: Optional[FlushListener] = None,
                 on_reset: Optional[ResetListener] = None) -> None:
        self.config = config or TrackerConfig()
        self.day: datetime.date = day or datetime.date.today()
        self.on_flush = on_flush
        self.on_reset = on_reset
        self.last_activity: Optional[datetime.datetime] = None
        self.revision: int = 0

        self._per_app: Dict[str, float] = {}
        self._session: Optional[ActiveSession] = None
        self._lock = threading.Lock()

    # --- Read side ---

    @property
    def active_session(self) -> Optional[ActiveSession]:
        with self._lock:
            if self._session is None:
                return None
            return ActiveSession(self._session.app_name, self._session.started_at)

    @property
    def active_app(self) -> Optional[str]:
        with self._lock:
            return self._session.app_name if self._session else None

    @property
    def per_app_duration(self) -> Dict[str, float]:
        """Flushed totals only."""
        with self._lock:
            return dict(self._per_app)

    @property
    def total_duration(self) -> float:
        with self._lock:
            return float(sum(self._per_app.values()))

    def snapshot(self) -> DailyUsageRecord:
        with self._lock:
            return DailyUsageRecord(date=self.day, per_app_duration=dict(self._per_app))

    def current_totals(self, now: datetime.datetime) -> Dict[str, float]:
        """Flushed totals plus the unflushed time of the active session."""
        with self._lock:
            totals = dict(self._per_app)
            if self._session is not None:
                app = self._session.app_name
                totals[app] = totals.get(app, 0.0) + self._session.elapsed(now)
        return totals

    def live_duration(self, app_name: str, now: datetime.datetime) -> float:
        return self.current_totals(now).get(app_name, 0.0)

    def top_applications(self, limit: int, now: datetime.datetime) -> List[Tuple[str, float]]:
        """
        Highest live totals first, system apps excluded.

        sorted() is stable, so ties keep the mapping's insertion order.
        """
        if limit <= 0:
            return []
        visible = [(app, seconds) for app, seconds in self.current_totals(now).items()
                   if not should_filter_name(app)]
        visible.sort(key=lambda item: item[1], reverse=True)
        return visible[:limit]

    # --- Write side ---

    def observe(self, identity: ApplicationIdentity, now: datetime.datetime) -> None:
        """Feed one sample of the foreground application."""
        self.last_activity = now

        if should_filter(identity):
            if self.active_app is not None:
                logger.debug("Filtered foreground app %r, closing session", identity.display_name)
                self.flush(now)
            return

        app_name = identity.display_name
        current = self.active_app
        if app_name == current:
            return

        if current is not None:
            self.flush(now)
        with self._lock:
            self._session = ActiveSession(app_name=app_name, started_at=now)
        logger.info("App switch: %s -> %s", current or "-", app_name)

    def flush(self, now: datetime.datetime) -> float:
        """
        Close the active session, crediting its elapsed time.

        Sessions shorter than min_session_seconds are discarded (alt-tab
        flicker). Returns the seconds credited.
        """
        with self._lock:
            session = self._session
            self._session = None
            if session is None:
                return 0.0

            elapsed = session.elapsed(now)
            if elapsed < self.config.min_session_seconds:
                logger.debug("Discarding %.1fs of %s (below %.0fs minimum)",
                             elapsed, session.app_name, self.config.min_session_seconds)
                return 0.0

            cumulative = self._per_app.get(session.app_name, 0.0) + elapsed
            self._per_app[session.app_name] = cumulative
            self.revision += 1

        logger.debug("Credited %.1fs to %s (now %.1fs)", elapsed, session.app_name, cumulative)
        if self.on_flush is not None:
            self.on_flush(session.app_name, cumulative)
        return elapsed

    def suspend(self, now: datetime.datetime) -> float:
        """Stop attributing time because the user is idle."""
        if self.active_app is None:
            return 0.0
        logger.debug("User idle, closing session for %s", self.active_app)
        return self.flush(now)

    def reset(self, now: datetime.datetime) -> DailyUsageRecord:
        """
        Hard boundary: drop the in-flight session, clear the day.

        The pre-reset totals are handed to on_reset (the archive) and
        returned. The current app keeps being attributed from `now`.
        """
        with self._lock:
            snapshot = DailyUsageRecord(date=self.day, per_app_duration=dict(self._per_app))
            self._per_app.clear()
            self.day = now.date()
            if self._session is not None:
                self._session = ActiveSession(app_name=self._session.app_name, started_at=now)
            self.revision += 1

        logger.info("Ledger reset (%d apps, %.0fs archived for %s)",
                    len(snapshot.per_app_duration), snapshot.total_duration, snapshot.date_key)
        if self.on_reset is not None:
            self.on_reset(snapshot)
        return snapshot

    def restart_session(self, app_name: str, now: datetime.datetime) -> None:
        """Start attributing app_name from now, replacing any open session."""
        with self._lock:
            self._session = ActiveSession(app_name=app_name, started_at=now)

    def restore(self, per_app_duration: Mapping[str, float], day: datetime.date,
                last_activity: Optional[datetime.datetime] = None) -> None:
        """Load persisted totals, dropping names the classifier now filters."""
        with self._lock:
            self._per_app = {
                app: float(seconds) for app, seconds in per_app_duration.items()
                if not should_filter_name(app) and seconds > 0
            }
            self.day = day
            self._session = None
            self.revision += 1
        self.last_activity = last_activity
