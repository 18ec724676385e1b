"""
The 1 Hz sampling loop that drives the ledger, rules and rollover.
"""
import datetime
import logging
import threading
import time
from typing import Callable, Optional

from ..config import TrackerConfig
from ..events import AppSwitchedContext, Event, EventBus, event_bus
from ..models import ApplicationIdentity, local_now, seconds_between
from ..services.ledger import UsageLedger
from ..services.persistence_service import PersistenceScheduler
from ..services.rollover import RolloverManager
from ..services.rule_engine import RuleEngine

logger = logging.getLogger(__name__)

ForegroundProbe = Callable[[], Optional[ApplicationIdentity]]
IdleProbe = Callable[[], float]


class SamplingLoop:
    """
    Single-threaded driver: every tick samples the foreground app and
    feeds the ledger. Rollover and rule checks run on the same thread.
    """

    def __init__(self, ledger: UsageLedger, rule_engine: RuleEngine, rollover: RolloverManager,
                 foreground: ForegroundProbe,
                 config: Optional[TrackerConfig] = None,
                 clock: Callable[[], datetime.datetime] = local_now,
                 idle_probe: Optional[IdleProbe] = None,
                 persistence: Optional[PersistenceScheduler] = None,
                 bus: Optional[EventBus] = None,
                 monotonic: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], None] = time.sleep) -> None:
        self.ledger = ledger
        self.rule_engine = rule_engine
        self.rollover = rollover
        self.foreground = foreground
        self.config = config or TrackerConfig()
        self.clock = clock
        self.idle_probe = idle_probe
        self.persistence = persistence
        self.bus = bus if bus is not None else event_bus
        self.monotonic = monotonic
        self.sleep = sleep

        self.ticks: int = 0
        self.skipped_ticks: int = 0
        self._last_rule_check: Optional[datetime.datetime] = None
        self._stop = threading.Event()
        self._reset_requested = threading.Event()

    # --- Control ---

    def stop(self) -> None:
        """Ask run() to return after the current tick."""
        self._stop.set()

    def request_reset(self) -> None:
        """Schedule a manual reset on the sampling thread (safe from any thread)."""
        self._reset_requested.set()

    @property
    def running(self) -> bool:
        return not self._stop.is_set()

    # --- Tick ---

    def tick(self, now: Optional[datetime.datetime] = None) -> None:
        """Run one sample."""
        if now is None:
            now = self.clock()
        self.ticks += 1

        rolled_over = self.rollover.check_day_change(now)
        if self._reset_requested.is_set():
            self._reset_requested.clear()
            self.rollover.reset(now)
            rolled_over = True

        self._sample(now)
        self._check_rules(now)

        if self.persistence is not None:
            if rolled_over:
                self.persistence.save()
            else:
                self.persistence.maybe_save()

    def _sample(self, now: datetime.datetime) -> None:
        try:
            identity = self.foreground()
        except Exception as e:
            logger.debug("Foreground query failed: %s", e)
            identity = None

        if identity is None:
            self.skipped_ticks += 1
            return

        if self._is_idle():
            self.ledger.suspend(now)
            return

        previous = self.ledger.active_app
        self.ledger.observe(identity, now)
        current = self.ledger.active_app
        if current != previous:
            self.bus.emit(Event.APP_SWITCHED, AppSwitchedContext(previous, current))

    def _is_idle(self) -> bool:
        if self.idle_probe is None:
            return False
        try:
            return self.idle_probe() >= self.config.idle_threshold_seconds
        except Exception as e:
            logger.debug("Idle query failed: %s", e)
            return False

    def _check_rules(self, now: datetime.datetime) -> None:
        """Evaluate the live total of the focused app, throttled."""
        if (self._last_rule_check is not None
                and seconds_between(self._last_rule_check, now) < self.config.rule_check_interval):
            return
        self._last_rule_check = now

        app = self.ledger.active_app
        if app is None:
            return
        self.rule_engine.evaluate(app, self.ledger.live_duration(app, now))

    # --- Loop ---

    def run(self) -> None:
        """
        Tick every sample_interval until stop().

        Missed boundaries after a slow tick are skipped, never queued.
        """
        interval = self.config.sample_interval
        logger.info("Sampling loop started (interval %.1fs)", interval)
        next_tick = self.monotonic()
        try:
            while not self._stop.is_set():
                self.tick()

                next_tick += interval
                now_mono = self.monotonic()
                if now_mono > next_tick:
                    missed = int((now_mono - next_tick) // interval) + 1
                    logger.debug("Tick overran, skipping %d boundary(ies)", missed)
                    next_tick += missed * interval
                self.sleep(max(0.0, next_tick - now_mono))
        except KeyboardInterrupt:
            logger.info("Tracker stopping.")
        finally:
            self.shutdown(self.clock())

    def shutdown(self, now: datetime.datetime) -> None:
        """
        Credit the in-flight session (minimum duration still applies) and
        force a save. Time since the last tick is not attributed.
        """
        self._stop.set()
        self.ledger.flush(now)
        if self.persistence is not None:
            self.persistence.save()
        logger.info("Sampling loop stopped after %d ticks", self.ticks)
