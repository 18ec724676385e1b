"""GNOME platform implementation."""
import subprocess
from .base import PlatformBase


class GNOMEPlatform(PlatformBase):
    """GNOME-specific implementation."""

    IDLE_COMMANDS = [
        ["xprintidle"],  # X11 fallback
        ["gdbus", "call", "--session",
         "--dest", "org.gnome.Mutter.IdleMonitor",
         "--object-path", "/org/gnome/Mutter/IdleMonitor/Core",
         "--method", "org.gnome.Mutter.IdleMonitor.GetIdletime"]  # Wayland
    ]

    def __init__(self, **kwargs: float) -> None:
        super().__init__(**kwargs)
        # GNOME on Wayland doesn't expose window info by default
        self._window_tracking: bool = self._is_x11() and self._check_command("xdotool")

    @property
    def name(self) -> str:
        return "GNOME"

    @property
    def supports_window_tracking(self) -> bool:
        return self._window_tracking

    def get_idle_seconds(self) -> float:
        """
        Try multiple methods:
        1. xprintidle on X11
        2. gdbus query to Mutter (Wayland)
        3. Fallback to 0
        """
        if self._is_x11():
            idle = super().get_idle_seconds()
            if idle > 0:
                return idle

        try:
            result = self._output(self.IDLE_COMMANDS[1])
            # Reply looks like "(uint64 12345,)"
            idle_ms = int(result.strip("(),").split()[1])
            return idle_ms / 1000.0
        except (FileNotFoundError, subprocess.CalledProcessError,
                subprocess.TimeoutExpired, ValueError, IndexError):
            pass

        return 0.0
