import json

import httpx

from intake.logging.logger import Log
from intake.notification.base import BaseNotifier
from intake.notification.models import NotificationPayload


class WebhookNotifier(BaseNotifier):
    """POSTs the notification payload as JSON to a configured endpoint.

    Delivery failures are not raised; they go to the dead-letter log with
    the full payload so the notification can be replayed by hand.
    """

    def __init__(
        self,
        *,
        url: str,
        timeout_seconds: float,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._url = url
        self._client = httpx.Client(timeout=timeout_seconds, transport=transport)

    def notify(self, payload: NotificationPayload) -> None:
        try:
            response = self._client.post(self._url, json=payload.to_json())
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._dead_letter(
                f"webhook rejected notification with HTTP {exc.response.status_code}",
                payload,
            )
            return
        except httpx.HTTPError as exc:
            self._dead_letter(f"webhook call failed: {exc!r}", payload)
            return
        Log.info(
            "Downstream pipeline notified",
            document_id=payload.document_id,
            status_code=response.status_code,
        )

    def close(self) -> None:
        self._client.close()

    @staticmethod
    def _dead_letter(reason: str, payload: NotificationPayload) -> None:
        Log.error(
            f"Notification dead-lettered: {reason}",
            document_id=payload.document_id,
            payload=json.dumps(payload.to_json()),
        )
