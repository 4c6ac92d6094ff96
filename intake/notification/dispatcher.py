import json
from concurrent.futures import Future, ThreadPoolExecutor
from functools import partial

from intake.logging.logger import Log
from intake.notification.base import BaseNotifier
from intake.notification.models import NotificationPayload


class NotificationDispatcher:
    """Fire-and-forget delivery on a background executor.

    ``dispatch`` returns as soon as the task is queued. Notifiers dead-letter
    their own delivery failures; anything a notifier lets escape, including
    a cancelled task, is written to the same dead-letter log with the payload.
    """

    def __init__(self, notifier: BaseNotifier, max_workers: int = 4) -> None:
        self._notifier = notifier
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="notify",
        )

    def dispatch(self, payload: NotificationPayload) -> Future[None]:
        future = self._executor.submit(self._notifier.notify, payload)
        future.add_done_callback(partial(self._dead_letter_on_failure, payload))
        return future

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting work; with ``wait`` let in-flight notifications finish."""
        self._executor.shutdown(wait=wait, cancel_futures=not wait)
        self._notifier.close()

    @staticmethod
    def _dead_letter_on_failure(payload: NotificationPayload, future: Future[None]) -> None:
        if future.cancelled():
            Log.error(
                "Notification dead-lettered: cancelled before delivery",
                payload=json.dumps(payload.to_json()),
            )
            return
        exc = future.exception()
        if exc is None:
            return
        Log.error(
            f"Notification dead-lettered: {exc!r}",
            payload=json.dumps(payload.to_json()),
        )
