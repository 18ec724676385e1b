"""Platform detection and factory."""
import logging
import os
import subprocess
from typing import Optional
from .base import PlatformBase
from .gnome import GNOMEPlatform
from .generic import GenericPlatform

logger = logging.getLogger(__name__)

_platform_instance: Optional[PlatformBase] = None


def detect_platform() -> PlatformBase:
    """
    Detect desktop environment and return appropriate platform instance.

    Detection order:
    1. Check XDG_CURRENT_DESKTOP environment variable
    2. Check for KDE / GNOME processes
    3. Fallback to generic implementation
    """
    global _platform_instance

    if _platform_instance is not None:
        return _platform_instance

    desktop = os.environ.get("XDG_CURRENT_DESKTOP", "").lower()

    if "kde" in desktop or "plasma" in desktop:
        _platform_instance = GenericPlatform("KDE Plasma")
    elif "gnome" in desktop or "ubuntu" in desktop:
        _platform_instance = GNOMEPlatform()
    else:
        # Process-based fallback detection
        try:
            processes = subprocess.check_output(["ps", "-e"]).decode().lower()
            if "plasmashell" in processes or "kwin" in processes:
                _platform_instance = GenericPlatform("KDE Plasma")
            elif "gnome-shell" in processes or "mutter" in processes:
                _platform_instance = GNOMEPlatform()
            else:
                _platform_instance = GenericPlatform()
        except (subprocess.CalledProcessError, FileNotFoundError):
            _platform_instance = GenericPlatform()

    logger.info("Detected platform: %s (window tracking: %s)",
                _platform_instance.name, _platform_instance.supports_window_tracking)
    return _platform_instance


def get_platform() -> PlatformBase:
    """Get current platform instance (cached)."""
    return detect_platform()


__all__ = ["PlatformBase", "GenericPlatform", "GNOMEPlatform", "get_platform", "detect_platform"]
