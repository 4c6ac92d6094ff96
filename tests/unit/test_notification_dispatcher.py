import threading
from unittest.mock import MagicMock, patch

from intake.notification.base import BaseNotifier
from intake.notification.dispatcher import NotificationDispatcher
from intake.notification.factory import NotifierFactory
from intake.notification.models import NotificationPayload


def _payload() -> NotificationPayload:
    return NotificationPayload(
        document_id="doc-1",
        storage_path="public/1-a.pdf",
        public_url=None,
        file_name="a.pdf",
        owner_id="user-1",
    )


class TestDispatch:
    def test_runs_notifier_in_background(self) -> None:
        notifier = MagicMock(spec=BaseNotifier)
        dispatcher = NotificationDispatcher(notifier, max_workers=1)

        dispatcher.dispatch(_payload())
        dispatcher.shutdown(wait=True)

        notifier.notify.assert_called_once_with(_payload())
        notifier.close.assert_called_once()

    def test_returns_before_notifier_finishes(self) -> None:
        release = threading.Event()
        notifier = MagicMock(spec=BaseNotifier)
        notifier.notify.side_effect = lambda _payload: release.wait(5)
        dispatcher = NotificationDispatcher(notifier, max_workers=1)

        future = dispatcher.dispatch(_payload())

        assert not future.done()
        release.set()
        dispatcher.shutdown(wait=True)
        assert future.done()

    def test_escaped_exception_is_dead_lettered(self) -> None:
        notifier = MagicMock(spec=BaseNotifier)
        notifier.notify.side_effect = RuntimeError("boom")
        dispatcher = NotificationDispatcher(notifier, max_workers=1)

        with patch("intake.notification.dispatcher.Log") as mock_log:
            dispatcher.dispatch(_payload())
            dispatcher.shutdown(wait=True)

        mock_log.error.assert_called_once()
        message = mock_log.error.call_args.args[0]
        assert "dead-lettered" in message
        assert "doc-1" in mock_log.error.call_args.kwargs["payload"]

    def test_successful_delivery_is_not_dead_lettered(self) -> None:
        notifier = MagicMock(spec=BaseNotifier)
        dispatcher = NotificationDispatcher(notifier, max_workers=1)

        with patch("intake.notification.dispatcher.Log") as mock_log:
            dispatcher.dispatch(_payload())
            dispatcher.shutdown(wait=True)

        mock_log.error.assert_not_called()


class TestNotifierFactory:
    def test_returns_none_without_webhook_url(self) -> None:
        settings = MagicMock(notify_webhook_url="   ")
        assert NotifierFactory.create(settings) is None

    def test_builds_dispatcher_for_configured_url(self) -> None:
        settings = MagicMock(
            notify_webhook_url="https://hooks.example.com/ingest",
            notify_timeout_seconds=2.0,
            notify_max_workers=2,
        )

        dispatcher = NotifierFactory.create(settings)

        assert isinstance(dispatcher, NotificationDispatcher)
        dispatcher.shutdown(wait=True)
