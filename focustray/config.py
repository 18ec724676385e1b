import os
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

DB_PATH: str = os.path.expanduser(os.environ.get("SCREENTIME_DB", "~/.local/share/focustray.db"))
SAMPLE_INTERVAL: float = 1.0  # seconds
SWITCH_MIN_DURATION: float = 5.0  # seconds
RULE_CHECK_INTERVAL: float = 5.0  # seconds
PERSIST_INTERVAL: float = 30.0  # seconds
IDLE_THRESHOLD_SEC: float = 600.0  # 10 minutes
FOREGROUND_QUERY_TIMEOUT: float = 0.5  # seconds per subprocess call

# User configuration file path
USER_CONFIG_PATH: str = os.path.expanduser("~/.config/focustray/settings.json")

# Debug mode - logs detailed tracking information
DEBUG_MODE: bool = os.environ.get("SCREENTIME_DEBUG", "0") == "1"
DEBUG_LOG_PATH: str = os.path.expanduser("~/.local/share/focustray_debug.log")


@dataclass(frozen=True)
class TrackerConfig:
    """Explicit tuning values handed to every tracking component."""
    sample_interval: float = SAMPLE_INTERVAL
    min_session_seconds: float = SWITCH_MIN_DURATION
    rule_check_interval: float = RULE_CHECK_INTERVAL
    persist_interval: float = PERSIST_INTERVAL
    idle_threshold_seconds: float = IDLE_THRESHOLD_SEC
    auto_reset_daily: bool = True
    history_retention_days: Optional[int] = None
    notifications_enabled: bool = True


# --- Dynamic Configuration Class ---

class Config:
    """
    Manages user settings loaded from the JSON settings file.

    Values can be reloaded at runtime; components never read this object
    directly, they receive the TrackerConfig built by tracker_config().
    """
    DEFAULT_AUTO_RESET_DAILY: bool = True
    DEFAULT_NOTIFICATIONS_ENABLED: bool = True
    DEFAULT_IDLE_MINUTES: int = int(IDLE_THRESHOLD_SEC // 60)

    def __init__(self, config_path: str = USER_CONFIG_PATH):
        self.config_path = config_path
        self._user_config: Dict[str, Any] = {}

        self.auto_reset_daily: bool = self.DEFAULT_AUTO_RESET_DAILY
        self.notifications_enabled: bool = self.DEFAULT_NOTIFICATIONS_ENABLED
        self.idle_minutes: int = self.DEFAULT_IDLE_MINUTES
        self.history_retention_days: Optional[int] = None

        self.reload()

    def _load_user_config(self) -> Dict[str, Any]:
        """Load user configuration from file."""
        if os.path.exists(self.config_path):
            try:
                with open(self.config_path, 'r') as f:
                    data = json.load(f)
                if isinstance(data, dict):
                    return data
                logger.warning("Ignoring settings file %s: not a JSON object", self.config_path)
            except (json.JSONDecodeError, IOError) as e:
                logger.warning("Could not read settings file %s: %s", self.config_path, e)
        return {}

    def reload(self) -> None:
        """
        Reload configuration from disk, updating this object's attributes.
        """
        self._user_config = self._load_user_config()

        self.auto_reset_daily = bool(self._user_config.get(
            'auto_reset_daily', self.DEFAULT_AUTO_RESET_DAILY
        ))
        self.notifications_enabled = bool(self._user_config.get(
            'notifications_enabled', self.DEFAULT_NOTIFICATIONS_ENABLED
        ))
        self.idle_minutes = self._positive_int(
            'idle_minutes', self.DEFAULT_IDLE_MINUTES
        ) or self.DEFAULT_IDLE_MINUTES
        self.history_retention_days = self._positive_int('history_retention_days', None)

    def _positive_int(self, key: str, default: Optional[int]) -> Optional[int]:
        """Read a positive whole number, keeping the default for bad values."""
        value = self._user_config.get(key)
        if value is None:
            return default
        try:
            number = int(value)
        except (TypeError, ValueError, OverflowError):
            number = 0
        if isinstance(value, bool) or number <= 0:
            logger.warning("Ignoring %s=%r in %s, using %s", key, value, self.config_path, default)
            return default
        return number

    def tracker_config(self) -> TrackerConfig:
        """Snapshot the current settings as an immutable TrackerConfig."""
        return TrackerConfig(
            idle_threshold_seconds=float(self.idle_minutes * 60),
            auto_reset_daily=self.auto_reset_daily,
            history_retention_days=self.history_retention_days,
            notifications_enabled=self.notifications_enabled,
        )


# --- Singleton Instance ---
settings = Config()
