"""
Decide whether a foreground application counts as user activity.

The lists below are lookup tables: changing what gets filtered means editing
data, not control flow. Stored history is re-filtered on load, so additions
apply retroactively.
"""
from typing import FrozenSet, Optional, Tuple

from .models import ApplicationIdentity

# Well-known system processes, compared case-insensitively
SYSTEM_PROCESS_NAMES: FrozenSet[str] = frozenset(name.lower() for name in (
    # Window managers, compositors and shells
    "WindowManager", "Window Server", "quartz-wm", "CoreDisplay", "Dock",
    "Finder", "SystemUIServer", "kwin", "kwin_x11", "kwin_wayland", "mutter",
    "gnome-shell", "plasmashell", "xfwm4", "xfce4-panel", "xfdesktop",
    "openbox", "Desktop",
    # Menu bar / panel items
    "MenuBar", "StatusBar", "ControlCenter", "ControlStrip", "notificationcenter",
    # Login and authentication
    "loginwindow", "login", "logind", "SecurityAgent", "lightdm", "gdm",
    "sddm", "polkit-gnome-authentication-agent-1", "ksecretd",
    # Core system daemons
    "launchd", "kernel", "kernel_task", "systemd", "dbus-daemon", "trustd",
    "cfprefsd", "distnoted", "apsd", "sharingd", "coreservicesd", "coreauthd",
    "syspolicyd", "securityd", "UserEventAgent", "mds", "mds_stores",
    "mdworker", "mdworker_shared", "fseventsd", "Xorg", "Xwayland",
    # Cloud sync
    "bird", "cloudd", "com.apple.cloudd", "com.apple.iCloud", "nsurlsessiond",
    "nsurlstoraged", "softwareupdated", "storeassetd",
    # Power
    "pmset", "powermanagementd", "thermald", "upowerd",
    # Audio and input
    "AudioComponentRegistrar", "coreaudiod", "pulseaudio", "pipewire",
    "AppleMultitouchDevice", "AppleHIDMouse", "ibus-x11",
    # Bluetooth and network
    "bluetoothd", "wifid", "airportd", "networksetupd", "NetworkManager",
    "nm-applet",
    # Printing
    "cupsd", "cups-browsed",
    # Diagnostics
    "ReportCrash", "diagnostics_agent", "spindump", "systemstats",
    "tmhelper", "tmutil", "TMRoutedVolume",
    # Generic placeholders
    "Unknown", "Untitled",
))

# Bundle / process identifiers in system namespaces, substring match
SYSTEM_BUNDLE_PATTERNS: Tuple[str, ...] = tuple(pattern.lower() for pattern in (
    "com.apple.loginwindow",
    "com.apple.WindowManager",
    "com.apple.dock",
    "com.apple.finder",
    "com.apple.systemuiserver",
    "com.apple.notificationcenter",
    "com.apple.UserEventAgent",
    "com.apple.trustd",
    "com.apple.cfprefsd",
    "com.apple.securityd",
    "com.apple.launchd",
    "com.apple.CoreDisplay",
    "com.apple.backgroundtaskmanagementagent",
    "com.apple.cloudd",
    "com.apple.iCloud",
    "com.apple.softwareupdated",
    "com.apple.powermanagementd",
    "com.apple.coreaudiod",
    "com.apple.bluetoothd",
    "com.apple.cupsd",
    "com.apple.ReportCrash",
    "org.gnome.Shell",
    "org.kde.plasmashell",
    "org.kde.kwin",
    "org.kde.polkit-kde-authentication-agent",
    "org.freedesktop.impl.portal",
    "xdg-desktop-portal",
    "gnome-session",
    "ksmserver",
))

# Role words that usually mark background processes
GENERIC_ROLE_WORDS: Tuple[str, ...] = (
    "agent", "daemon", "helper", "service", "plugin", "extension", "update", "install",
)

# Real applications whose names can contain a role word
ALLOWED_APP_KEYWORDS: Tuple[str, ...] = ("spotify", "slack", "discord", "zoom", "teams")


def should_filter(identity: Optional[ApplicationIdentity]) -> bool:
    """
    Return True when the identity is system/background noise.

    Pure and total: the same identity always gives the same answer and no
    input raises.
    """
    if identity is None:
        return True

    name = identity.display_name if isinstance(identity.display_name, str) else ""
    bundle_id = identity.bundle_id if isinstance(identity.bundle_id, str) else ""
    lowered = name.lower()

    if lowered in SYSTEM_PROCESS_NAMES:
        return True

    lowered_bundle = bundle_id.lower()
    if lowered_bundle and any(pattern in lowered_bundle for pattern in SYSTEM_BUNDLE_PATTERNS):
        return True

    if len(name) < 2 or not name.strip():
        return True

    if any(word in lowered for word in GENERIC_ROLE_WORDS):
        if not any(allowed in lowered for allowed in ALLOWED_APP_KEYWORDS):
            return True

    # Purely numeric or symbolic process names
    letters = "".join(ch for ch in name if ch.isalpha() or ch.isspace())
    if not letters:
        return True

    return False


def should_filter_name(app_name: Optional[str]) -> bool:
    """Classify a stored application name (no bundle id or pid available)."""
    return should_filter(ApplicationIdentity(display_name=app_name or "", bundle_id="", process_id=0))
