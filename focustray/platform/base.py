"""Base platform abstraction."""
import logging
import os
import subprocess
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

import psutil

from ..config import FOREGROUND_QUERY_TIMEOUT
from ..models import ApplicationIdentity

logger = logging.getLogger(__name__)


class PlatformBase(ABC):
    """Abstract base for the desktop queries the tracker polls."""

    # Subclasses override these
    IDLE_COMMANDS: List[List[str]] = [["xprintidle"]]
    WINDOW_COMMANDS: Optional[Dict[str, List[str]]] = {
        "get_id": ["xdotool", "getactivewindow"],
        "get_class": ["xdotool", "getwindowclassname"],
        "get_pid": ["xdotool", "getwindowpid"],
    }

    def __init__(self, timeout: float = FOREGROUND_QUERY_TIMEOUT) -> None:
        self.timeout = timeout

    @property
    @abstractmethod
    def name(self) -> str:
        """Platform name for logging."""
        pass

    @property
    @abstractmethod
    def supports_window_tracking(self) -> bool:
        """Whether platform supports window tracking."""
        pass

    def get_idle_seconds(self) -> float:
        """Return current idle time in seconds (0 when unknown)."""
        try:
            idle_ms = int(self._output(self.IDLE_COMMANDS[0]))
            return idle_ms / 1000.0
        except (FileNotFoundError, subprocess.CalledProcessError,
                subprocess.TimeoutExpired, ValueError):
            return 0.0

    def get_foreground_app(self) -> Optional[ApplicationIdentity]:
        """
        Identify the focused application.

        Returns:
            ApplicationIdentity, or None when it can't be determined
        """
        if not self.supports_window_tracking or not self.WINDOW_COMMANDS:
            return None
        return self._query_x11_window(self.WINDOW_COMMANDS)

    # Shared helpers
    def _output(self, cmd: List[str]) -> str:
        return subprocess.check_output(
            cmd, stderr=subprocess.DEVNULL, timeout=self.timeout
        ).decode().strip()

    def _query_x11_window(self, commands: Dict[str, List[str]]) -> Optional[ApplicationIdentity]:
        """Window class as display name, process name as bundle id."""
        try:
            window_id = self._output(commands["get_id"])
            app_name = self._output(commands["get_class"] + [window_id])
        except (subprocess.CalledProcessError, subprocess.TimeoutExpired, FileNotFoundError) as e:
            logger.debug("Active window query failed: %s", e)
            return None

        pid = 0
        try:
            pid = int(self._output(commands["get_pid"] + [window_id]))
        except (subprocess.CalledProcessError, subprocess.TimeoutExpired,
                FileNotFoundError, ValueError):
            # Some windows don't advertise _NET_WM_PID
            pass

        return ApplicationIdentity(display_name=app_name,
                                   bundle_id=self._process_name(pid),
                                   process_id=pid)

    @staticmethod
    def _process_name(pid: int) -> str:
        if pid <= 0:
            return ""
        try:
            return psutil.Process(pid).name()
        except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
            return ""

    def _check_command(self, cmd: str) -> bool:
        """Check if command exists."""
        try:
            subprocess.run(["which", cmd], capture_output=True, check=True)
            return True
        except (subprocess.CalledProcessError, FileNotFoundError):
            return False

    def _is_x11(self) -> bool:
        """Check if running on X11."""
        session_type = os.environ.get("XDG_SESSION_TYPE", "").lower()
        return session_type == "x11" or os.environ.get("DISPLAY") is not None
