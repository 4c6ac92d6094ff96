from intake.config.settings import Settings
from intake.notification.dispatcher import NotificationDispatcher
from intake.notification.webhook_notifier import WebhookNotifier


class NotifierFactory:
    """Creates the notification dispatcher, or None when no webhook is configured."""

    @classmethod
    def create(cls, settings: Settings) -> NotificationDispatcher | None:
        url = settings.notify_webhook_url.strip()
        if not url:
            return None
        notifier = WebhookNotifier(url=url, timeout_seconds=settings.notify_timeout_seconds)
        return NotificationDispatcher(notifier, max_workers=settings.notify_max_workers)
