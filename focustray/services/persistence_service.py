"""Debounced writes of the ledger and archive."""
import logging
import sqlite3
import time
from typing import Callable, Optional

from ..db.usage_repository import UsageRepository
from .history import HistoryArchive
from .ledger import UsageLedger

logger = logging.getLogger(__name__)


class PersistenceScheduler:
    """
    Saves the ledger and archive at most once per interval.

    Changes are detected through the components' revision counters. A
    failed write leaves the scheduler dirty, so the next window retries it.
    """

    def __init__(self, ledger: UsageLedger, archive: HistoryArchive, repository: UsageRepository,
                 interval: float = 30.0,
                 monotonic: Callable[[], float] = time.monotonic) -> None:
        self.ledger = ledger
        self.archive = archive
        self.repository = repository
        self.interval = interval
        self.monotonic = monotonic
        self._saved_ledger_revision: Optional[int] = None
        self._saved_archive_revision: Optional[int] = None
        self._last_save: Optional[float] = None
        self._last_activity_saved = None

    @property
    def dirty(self) -> bool:
        return (self.ledger.revision != self._saved_ledger_revision
                or self.archive.revision != self._saved_archive_revision)

    def mark_clean(self) -> None:
        """Treat the current in-memory state as already persisted."""
        self._saved_ledger_revision = self.ledger.revision
        self._saved_archive_revision = self.archive.revision
        self._last_save = self.monotonic()

    def maybe_save(self) -> bool:
        """Save if something changed and the debounce window has passed."""
        now = self.monotonic()
        if self._last_save is not None and now - self._last_save < self.interval:
            return False
        if not self.dirty and self.ledger.last_activity == self._last_activity_saved:
            return False
        return self.save()

    def save(self) -> bool:
        """Write whatever changed now. Returns False on failure."""
        self._last_save = self.monotonic()
        ledger_revision = self.ledger.revision
        archive_revision = self.archive.revision
        try:
            if archive_revision != self._saved_archive_revision:
                self.repository.save_history(self.archive.all())
                self._saved_archive_revision = archive_revision
            last_activity = self.ledger.last_activity
            self.repository.save_today(self.ledger.snapshot(), last_activity)
            self._saved_ledger_revision = ledger_revision
            self._last_activity_saved = last_activity
        except (sqlite3.Error, OSError) as e:
            logger.error("Failed to save usage data, will retry: %s", e)
            return False
        logger.debug("Saved usage data (ledger r%d, archive r%d)", ledger_revision, archive_revision)
        return True
