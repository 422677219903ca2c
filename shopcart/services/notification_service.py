# shopcart/services/notification_service.py
from dataclasses import dataclass
from enum import Enum
from typing import List

from shopcart.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationKind(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class Notification:
    kind: NotificationKind
    text: str


class NotificationService:
    """
    Sink komunikatow dla uzytkownika (toasty w UI).
    Domyslna implementacja tylko loguje.
    """

    def notify(self, kind: NotificationKind, text: str) -> None:
        if kind is NotificationKind.ERROR:
            logger.warning(f"[NOTIFICATION] {kind.value}: {text}")
        else:
            logger.info(f"[NOTIFICATION] {kind.value}: {text}")

    def success(self, text: str) -> None:
        self.notify(NotificationKind.SUCCESS, text)

    def error(self, text: str) -> None:
        self.notify(NotificationKind.ERROR, text)


class CollectingNotificationService(NotificationService):
    """Keeps notifications in memory until a display layer drains them."""

    def __init__(self):
        self.messages: List[Notification] = []

    def notify(self, kind: NotificationKind, text: str) -> None:
        super().notify(kind, text)
        self.messages.append(Notification(kind=kind, text=text))

    def drain(self) -> List[Notification]:
        messages, self.messages = self.messages, []
        return messages
