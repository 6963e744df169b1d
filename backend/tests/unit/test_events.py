"""
Unit tests for the notification channel.
"""

from core.types import AutomationState, NotificationKind
from automation.events import NotificationChannel


class TestSubscription:

    def test_no_subscribers_is_fine(self):
        """Emitting with nobody listening does nothing."""
        NotificationChannel().emit_log_message("hello")

    def test_all_subscribers_receive(self):
        events = NotificationChannel()
        a, b = [], []
        events.on_state_changed(a.append)
        events.on_state_changed(b.append)

        events.emit_state_changed(AutomationState.PROCESSING)

        assert a == [AutomationState.PROCESSING]
        assert b == [AutomationState.PROCESSING]

    def test_kinds_are_separate(self):
        events = NotificationChannel()
        states, logs, errors = [], [], []
        events.on_state_changed(states.append)
        events.on_log_message(logs.append)
        events.on_error_occurred(errors.append)

        events.emit_log_message("line")

        assert states == []
        assert logs == ["line"]
        assert errors == []

    def test_unsubscribe(self):
        events = NotificationChannel()
        seen = []
        events.subscribe(NotificationKind.LOG_MESSAGE, seen.append)
        events.unsubscribe(NotificationKind.LOG_MESSAGE, seen.append)

        events.emit_log_message("ignored")

        assert seen == []
        assert events.subscriber_count(NotificationKind.LOG_MESSAGE) == 0

    def test_unsubscribe_unknown_is_noop(self):
        NotificationChannel().unsubscribe(NotificationKind.ERROR_OCCURRED, print)


class TestDelivery:

    def test_delivered_in_emission_order(self):
        events = NotificationChannel()
        seen = []
        events.on_state_changed(seen.append)

        for state in (AutomationState.INITIALIZE, AutomationState.START_PROCESS, AutomationState.PROCESSING):
            events.emit_state_changed(state)

        assert seen == [
            AutomationState.INITIALIZE,
            AutomationState.START_PROCESS,
            AutomationState.PROCESSING,
        ]

    def test_failing_subscriber_does_not_block_others(self, capsys):
        """A raising callback is reported, the next one still runs."""
        events = NotificationChannel()
        seen = []

        def broken(_):
            raise RuntimeError("boom")

        events.on_error_occurred(broken)
        events.on_error_occurred(seen.append)

        err = ValueError("fault")
        events.emit_error_occurred(err)

        assert seen == [err]
        assert "subscriber failed" in capsys.readouterr().out

    def test_subscriber_may_unsubscribe_itself(self):
        events = NotificationChannel()
        seen = []

        def once(message):
            seen.append(message)
            events.unsubscribe(NotificationKind.LOG_MESSAGE, once)

        events.on_log_message(once)
        events.emit_log_message("first")
        events.emit_log_message("second")

        assert seen == ["first"]
