"""Unit tests for the platform probes."""
import subprocess
import unittest
from unittest.mock import MagicMock, patch
from focustray import platform as platform_module
from focustray.models import ApplicationIdentity
from focustray.platform.generic import GenericPlatform
from focustray.platform.gnome import GNOMEPlatform


def make_generic(tracking: bool = True) -> GenericPlatform:
    with patch.object(GenericPlatform, "_is_x11", return_value=tracking), \
         patch.object(GenericPlatform, "_check_command", return_value=tracking):
        return GenericPlatform()


class TestForegroundProbe(unittest.TestCase):
    """Test foreground window parsing."""

    @patch("focustray.platform.base.psutil.Process")
    @patch("focustray.platform.base.subprocess.check_output")
    def test_identity_from_xdotool(self, mock_output: MagicMock, mock_process: MagicMock) -> None:
        mock_output.side_effect = [b"4194307\n", b"firefox\n", b"2112\n"]
        mock_process.return_value.name.return_value = "firefox-bin"

        identity = make_generic().get_foreground_app()

        self.assertEqual(identity, ApplicationIdentity("firefox", "firefox-bin", 2112))
        mock_process.assert_called_once_with(2112)
        # Calls are bounded
        self.assertIn("timeout", mock_output.call_args.kwargs)

    @patch("focustray.platform.base.subprocess.check_output")
    def test_missing_pid_still_identifies_app(self, mock_output: MagicMock) -> None:
        mock_output.side_effect = [b"42\n", b"Editor\n", subprocess.CalledProcessError(1, "xdotool")]

        identity = make_generic().get_foreground_app()

        self.assertEqual(identity, ApplicationIdentity("Editor", "", 0))

    @patch("focustray.platform.base.subprocess.check_output")
    def test_timeout_means_unknown(self, mock_output: MagicMock) -> None:
        mock_output.side_effect = subprocess.TimeoutExpired("xdotool", 0.5)
        self.assertIsNone(make_generic().get_foreground_app())

    def test_no_window_tracking(self) -> None:
        self.assertIsNone(make_generic(tracking=False).get_foreground_app())

    @patch("focustray.platform.base.subprocess.check_output")
    def test_no_window_commands(self, mock_output: MagicMock) -> None:
        platform = make_generic()
        platform.WINDOW_COMMANDS = None

        self.assertIsNone(platform.get_foreground_app())
        mock_output.assert_not_called()


class TestIdleProbe(unittest.TestCase):
    """Test idle time queries."""

    @patch("focustray.platform.base.subprocess.check_output", return_value=b"12500\n")
    def test_xprintidle(self, _mock: MagicMock) -> None:
        self.assertEqual(make_generic().get_idle_seconds(), 12.5)

    @patch("focustray.platform.base.subprocess.check_output", side_effect=FileNotFoundError)
    def test_missing_tool(self, _mock: MagicMock) -> None:
        self.assertEqual(make_generic().get_idle_seconds(), 0.0)

    @patch("focustray.platform.base.subprocess.check_output", return_value=b"(uint64 30000,)\n")
    def test_gnome_wayland_idle(self, _mock: MagicMock) -> None:
        with patch.object(GNOMEPlatform, "_is_x11", return_value=False), \
             patch.object(GNOMEPlatform, "_check_command", return_value=False):
            gnome = GNOMEPlatform()
            self.assertEqual(gnome.get_idle_seconds(), 30.0)
            self.assertIsNone(gnome.get_foreground_app())


class TestDetectPlatform(unittest.TestCase):
    """Test desktop detection."""

    def setUp(self) -> None:
        platform_module._platform_instance = None

    def tearDown(self) -> None:
        platform_module._platform_instance = None

    @patch.object(GNOMEPlatform, "_check_command", return_value=False)
    def test_gnome_from_environment(self, _mock: MagicMock) -> None:
        with patch.dict("os.environ", {"XDG_CURRENT_DESKTOP": "ubuntu:GNOME"}):
            self.assertEqual(platform_module.detect_platform().name, "GNOME")

    @patch.object(GenericPlatform, "_check_command", return_value=False)
    def test_kde_from_environment_is_cached(self, _mock: MagicMock) -> None:
        with patch.dict("os.environ", {"XDG_CURRENT_DESKTOP": "KDE"}):
            first = platform_module.get_platform()
            self.assertEqual(first.name, "KDE Plasma")
            self.assertIs(platform_module.get_platform(), first)


if __name__ == "__main__":
    unittest.main()
