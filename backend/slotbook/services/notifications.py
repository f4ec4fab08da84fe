"""
backend/slotbook/services/notifications.py

Customer notifications, fire-and-forget.

Producers push email jobs onto the Redis list `events:email` and return
immediately; the consumer loop in email_consumer.py delivers them. A
notification that can't be queued is logged and dropped, it never fails
the booking operation that triggered it.
"""

import json
import logging
import time
from dataclasses import dataclass
from typing import Protocol

from redis import Redis

logger = logging.getLogger(__name__)

EMAIL_QUEUE = "events:email"


@dataclass(frozen=True)
class EmailMessage:
    subject: str
    html: str
    kind: str = "generic"  # booking_created / booking_cancelled / ...


class NotificationSender(Protocol):
    def send(self, recipient_email: str, message: EmailMessage) -> bool:
        ...


class RedisQueueSender:
    """Queues email jobs in Redis for the consumer loop."""

    def __init__(self, redis: Redis, queue: str = EMAIL_QUEUE):
        self.redis = redis
        self.queue = queue

    def send(self, recipient_email: str, message: EmailMessage) -> bool:
        job = {
            "type": message.kind,
            "to": recipient_email,
            "subject": message.subject,
            "html": message.html,
            "ts": int(time.time()),
        }
        try:
            self.redis.lpush(self.queue, json.dumps(job))
            logger.info(f"Email queued: {message.kind} → {self.queue}")
            return True
        except Exception as e:
            logger.error(f"Failed to queue email {message.kind}: {e}")
            return False


def dispatch_notification(
    sender: NotificationSender | None,
    recipient_email: str | None,
    message: EmailMessage,
) -> None:
    """
    Hand a message to the sender without letting anything propagate.

    No-op when there is no sender or no recipient address on file.
    """
    if sender is None or not recipient_email:
        return
    try:
        if not sender.send(recipient_email, message):
            logger.warning(f"Notification {message.kind} was not accepted by sender")
    except Exception:
        logger.exception(f"Notification {message.kind} dispatch failed")


_default_sender: RedisQueueSender | None = None


def get_notification_sender() -> NotificationSender:
    """FastAPI dependency: the Redis-backed sender (overridden in tests)."""
    global _default_sender
    if _default_sender is None:
        from ..redis_client import redis_client
        _default_sender = RedisQueueSender(redis_client)
    return _default_sender
