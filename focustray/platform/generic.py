"""Generic X11 implementation (KDE Plasma, Xfce, other window managers)."""
from .base import PlatformBase


class GenericPlatform(PlatformBase):
    """xdotool + xprintidle on X11."""

    def __init__(self, desktop: str = "Generic", **kwargs: float) -> None:
        super().__init__(**kwargs)
        self._desktop = desktop
        self._window_tracking: bool = self._is_x11() and self._check_command("xdotool")

    @property
    def name(self) -> str:
        return self._desktop

    @property
    def supports_window_tracking(self) -> bool:
        return self._window_tracking
