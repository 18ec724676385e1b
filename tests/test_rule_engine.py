"""Unit tests for RuleEngine."""
import unittest
from unittest.mock import Mock
import datetime
from focustray.events import Event, EventBus
from focustray.models import NotificationRule
from focustray.services.rule_engine import RuleEngine, format_usage_message


class TestRuleEngine(unittest.TestCase):
    """Test rule matching and alert suppression."""

    def setUp(self) -> None:
        self.bus = EventBus()
        self.received = []
        self.bus.subscribe(Event.USAGE_ALERT, lambda ctx: self.received.append(ctx.alert))
        self.now = datetime.datetime(2025, 1, 1, 12, 0, 0)
        self.engine = RuleEngine(bus=self.bus, clock=lambda: self.now)

    def test_alert_fires_once_per_period(self) -> None:
        """30s, 65s, 90s against a 60s limit yields one alert at 65s."""
        rule = self.engine.add("Chat", 60)

        results = [self.engine.evaluate("Chat", d) for d in (30, 65, 90)]

        self.assertEqual([len(r) for r in results], [0, 1, 0])
        alert = results[1][0]
        self.assertEqual(alert.rule_id, rule.id)
        self.assertEqual(alert.app_name, "Chat")
        self.assertEqual(alert.duration, 65.0)
        self.assertEqual(len(self.received), 1)

    def test_case_insensitive_match(self) -> None:
        self.engine.add("chat", 60)
        self.assertEqual(len(self.engine.evaluate("CHAT", 61)), 1)
        self.assertTrue(self.engine.is_notified("Chat"))

    def test_disabled_rules_are_ignored(self) -> None:
        self.engine.add("Chat", 60, enabled=False)
        self.assertEqual(self.engine.evaluate("Chat", 600), [])
        self.assertFalse(self.engine.is_notified("Chat"))

    def test_multiple_rules_each_alert_once(self) -> None:
        self.engine.add("Chat", 60)
        self.engine.add("Chat", 120, custom_message="Two minutes of chat")
        self.engine.add("Chat", 900)

        alerts = self.engine.evaluate("Chat", 130)

        self.assertEqual(len(alerts), 2)
        self.assertEqual(alerts[1].body, "Two minutes of chat")
        self.assertEqual(self.engine.evaluate("Chat", 1000), [])

    def test_other_apps_unaffected(self) -> None:
        self.engine.add("Chat", 60)
        self.engine.evaluate("Chat", 70)
        self.assertFalse(self.engine.is_notified("Editor"))
        self.assertEqual(self.engine.evaluate("Editor", 1000), [])

    def test_clear_notified_rearms(self) -> None:
        self.engine.add("Chat", 60)
        self.engine.evaluate("Chat", 70)
        self.engine.clear_notified()
        self.assertEqual(len(self.engine.evaluate("Chat", 70)), 1)

    def test_generated_message(self) -> None:
        self.engine.add("Chat", 60)
        alert = self.engine.evaluate("Chat", 3725)[0]
        self.assertEqual(alert.body, "You've spent 1h 2m on Chat. Time for a break!")
        self.assertEqual(alert.title, "FocusTray Alert")
        self.assertTrue(alert.correlation_id.startswith(alert.rule_id))

    def test_empty_custom_message_falls_back(self) -> None:
        self.engine.add("Chat", 10, custom_message="")
        alert = self.engine.evaluate("Chat", 42)[0]
        self.assertEqual(alert.body, "You've spent 42s on Chat. Time for a break!")

    def test_evaluate_never_raises(self) -> None:
        self.engine.add("Chat", 60)
        self.assertEqual(self.engine.evaluate("", 100), [])
        self.assertEqual(self.engine.evaluate(None, 100), [])  # type: ignore[arg-type]
        self.assertEqual(self.engine.evaluate("Chat", "lots"), [])  # type: ignore[arg-type]

    def test_crud(self) -> None:
        repo = Mock()
        engine = RuleEngine(bus=self.bus, repository=repo)

        rule = engine.add("Chat", 60)
        engine.add("Chat", 30)  # duplicates are allowed
        self.assertEqual(len(engine.rules_for("chat")), 2)

        rule.time_limit = 120
        engine.update(rule)
        self.assertEqual(engine.rules_for("Chat")[0].time_limit, 120)

        self.assertFalse(engine.toggle(rule.id))
        engine.remove(rule.id)
        self.assertEqual(len(engine.rules), 1)
        self.assertEqual(repo.save_all.call_count, 5)

        with self.assertRaises(KeyError):
            engine.remove("missing")

    def test_rule_validation(self) -> None:
        with self.assertRaises(ValueError):
            NotificationRule(app_name="Chat", time_limit=0)
        with self.assertRaises(ValueError):
            self.engine.add("  ", 60)

    def test_send_test_alert_leaves_suppression_alone(self) -> None:
        self.engine.add("Chat", 60, custom_message="Close the chat")
        self.engine.add("Chat", 600, enabled=False)

        alerts = self.engine.send_test_alert("chat", 120)

        self.assertEqual([a.body for a in alerts], ["Close the chat"])
        self.assertEqual(self.received, alerts)
        self.assertFalse(self.engine.is_notified("Chat"))
        # A real alert still fires afterwards
        self.assertEqual(len(self.engine.evaluate("Chat", 120)), 1)
        self.assertEqual(self.engine.send_test_alert("Chat", 30), [])

    def test_format_usage_message(self) -> None:
        self.assertEqual(format_usage_message("Chat", 305), "You've spent 5m 5s on Chat. Time for a break!")
        self.assertEqual(format_usage_message("Chat", 7200), "You've spent 2h 0m on Chat. Time for a break!")


if __name__ == "__main__":
    unittest.main()
