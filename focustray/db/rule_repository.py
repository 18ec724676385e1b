"""Repository for notification rules."""
from typing import List, Optional
from ..models import NotificationRule
from .connection import get_cursor


class RuleRepository:
    """Stores the rule list independently of usage data."""

    def __init__(self, db_path: Optional[str] = None) -> None:
        self.db_path = db_path

    def save_all(self, rules: List[NotificationRule]) -> None:
        """Replace the stored rules, keeping list order."""
        with get_cursor(self.db_path) as cur:
            cur.execute("DELETE FROM notification_rules")
            cur.executemany("""
                INSERT INTO notification_rules
                    (id, position, app_name, time_limit, enabled, custom_message)
                VALUES (?, ?, ?, ?, ?, ?)
            """, [
                (rule.id, position, rule.app_name, rule.time_limit,
                 1 if rule.enabled else 0, rule.custom_message)
                for position, rule in enumerate(rules)
            ])

    def load_all(self) -> List[NotificationRule]:
        with get_cursor(self.db_path) as cur:
            cur.execute("""
                SELECT id, app_name, time_limit, enabled, custom_message
                FROM notification_rules
                ORDER BY position ASC
            """)
            return [
                NotificationRule(
                    id=r[0],
                    app_name=r[1],
                    time_limit=float(r[2]),
                    enabled=bool(r[3]),
                    custom_message=r[4],
                )
                for r in cur.fetchall()
            ]
