#!/usr/bin/env python3
"""
Background service that tracks per-application foreground time.
"""
import datetime
import logging
import signal
import sqlite3
from dataclasses import dataclass
from typing import Callable, Optional

from ..config import DB_PATH, TrackerConfig, settings
from ..db import RuleRepository, UsageRepository, ensure_db_exists
from ..db.usage_repository import LedgerState
from ..events import EventBus, event_bus
from ..logging_setup import configure_logging
from ..models import local_now
from ..platform import get_platform
from ..services.history import HistoryArchive
from ..services.ledger import UsageLedger
from ..services.notification_service import AlertDispatcher, NotificationService
from ..services.persistence_service import PersistenceScheduler
from ..services.rollover import RolloverManager
from ..services.rule_engine import RuleEngine
from ..services.stats_service import StatsService
from .loop import ForegroundProbe, IdleProbe, SamplingLoop

logger = logging.getLogger(__name__)


@dataclass
class Tracker:
    """Every wired component, for the host application."""
    config: TrackerConfig
    ledger: UsageLedger
    archive: HistoryArchive
    rule_engine: RuleEngine
    rollover: RolloverManager
    persistence: PersistenceScheduler
    stats: StatsService
    loop: SamplingLoop
    dispatcher: Optional[AlertDispatcher] = None

    def close(self) -> None:
        if self.dispatcher is not None:
            self.dispatcher.close()


def _load_history(repo: UsageRepository, archive: HistoryArchive) -> None:
    try:
        archive.load(repo.load_history())
    except (sqlite3.Error, ValueError, TypeError) as e:
        logger.warning("Error loading historical data, starting empty: %s", e)
        archive.load([])


def _load_today(repo: UsageRepository) -> Optional[LedgerState]:
    try:
        return repo.load_today()
    except (sqlite3.Error, ValueError, TypeError) as e:
        logger.warning("Error loading today's usage, starting empty: %s", e)
        return None


def _load_rules(repo: RuleRepository, engine: RuleEngine) -> None:
    try:
        engine.load(repo.load_all())
    except (sqlite3.Error, ValueError, TypeError) as e:
        logger.warning("Error loading notification rules: %s", e)


def build_tracker(config: Optional[TrackerConfig] = None,
                  db_path: Optional[str] = None,
                  foreground: Optional[ForegroundProbe] = None,
                  idle_probe: Optional[IdleProbe] = None,
                  notifier: Optional[NotificationService] = None,
                  bus: Optional[EventBus] = None,
                  clock: Callable[[], datetime.datetime] = local_now) -> Tracker:
    """
    Wire the components together and restore persisted state.

    foreground/idle_probe default to the detected desktop platform.
    """
    config = config or settings.tracker_config()
    bus = bus if bus is not None else event_bus
    ensure_db_exists(db_path)

    if foreground is None or idle_probe is None:
        platform = get_platform()
        foreground = foreground or platform.get_foreground_app
        idle_probe = idle_probe or platform.get_idle_seconds

    usage_repo = UsageRepository(db_path)
    rule_repo = RuleRepository(db_path)

    rule_engine = RuleEngine(bus=bus, repository=rule_repo, clock=clock)
    _load_rules(rule_repo, rule_engine)

    ledger = UsageLedger(config, on_flush=rule_engine.evaluate)
    archive = HistoryArchive(retention_days=config.history_retention_days)
    _load_history(usage_repo, archive)

    rollover = RolloverManager(ledger, archive, rule_engine, config, bus=bus)
    persistence = PersistenceScheduler(ledger, archive, usage_repo, interval=config.persist_interval)

    now = clock()
    rollover.restore(_load_today(usage_repo), now)
    if rollover.rollovers:
        persistence.save()
    else:
        persistence.mark_clean()

    dispatcher = AlertDispatcher(notifier, bus=bus, enabled=config.notifications_enabled)
    loop = SamplingLoop(ledger, rule_engine, rollover, foreground, config,
                        clock=clock, idle_probe=idle_probe, persistence=persistence, bus=bus)

    return Tracker(
        config=config,
        ledger=ledger,
        archive=archive,
        rule_engine=rule_engine,
        rollover=rollover,
        persistence=persistence,
        stats=StatsService(ledger, archive, clock=clock),
        loop=loop,
        dispatcher=dispatcher,
    )


def main() -> None:
    """Main tracking loop."""
    configure_logging()
    logger.info("tracker_start (db: %s)", DB_PATH)

    tracker = build_tracker()
    signal.signal(signal.SIGTERM, lambda signum, frame: tracker.loop.stop())

    try:
        tracker.loop.run()
    finally:
        tracker.close()
        logger.info("tracker_stop")


if __name__ == "__main__":
    main()
