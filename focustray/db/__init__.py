"""Database layer."""
from .connection import get_connection, get_cursor, ensure_db_exists
from .usage_repository import UsageRepository, LedgerState
from .rule_repository import RuleRepository

__all__ = ['get_connection', 'get_cursor', 'ensure_db_exists',
           'UsageRepository', 'LedgerState', 'RuleRepository']
