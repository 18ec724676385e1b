"""Business logic services."""
from .ledger import UsageLedger
from .history import HistoryArchive
from .rule_engine import RuleEngine
from .rollover import RolloverManager
from .persistence_service import PersistenceScheduler
from .notification_service import NotificationService, AlertDispatcher
from .stats_service import StatsService

__all__ = ['UsageLedger', 'HistoryArchive', 'RuleEngine', 'RolloverManager',
           'PersistenceScheduler', 'NotificationService', 'AlertDispatcher', 'StatsService']
