"""Transient user notices (toast-style) published by the sync services."""

import logging
from collections.abc import Callable
from enum import StrEnum

from pydantic import BaseModel, Field


logger = logging.getLogger(__name__)


class NoticeType(StrEnum):
    """Visual style of a notice."""

    INFO = "info"
    ERROR = "error"


class Notice(BaseModel):
    """A fire-and-forget message for the user."""

    type: NoticeType = Field(..., description="info or error")
    title: str = Field(..., description="Short headline")
    message: str = Field(..., description="Body text")


NoticeSubscriber = Callable[[Notice], None]


class NoticeChannel:
    """Fan-out of notices to UI subscribers.

    Publishing never waits for acknowledgement and never fails the caller;
    subscriber errors are logged and dropped.
    """

    def __init__(self) -> None:
        """Initialize channel with no subscribers."""
        self._subscribers: list[NoticeSubscriber] = []

    def subscribe(self, subscriber: NoticeSubscriber) -> Callable[[], None]:
        """Register a subscriber and return a function that removes it."""
        self._subscribers.append(subscriber)

        def unsubscribe() -> None:
            if subscriber in self._subscribers:
                self._subscribers.remove(subscriber)

        return unsubscribe

    def publish(self, notice: Notice) -> None:
        logger.info("Notice: %s - %s", notice.title, notice.message, extra={"notice_type": notice.type.value})
        for subscriber in list(self._subscribers):
            try:
                subscriber(notice)
            except Exception as e:
                logger.warning("Notice subscriber failed: %s", e)

    def info(self, title: str, message: str) -> None:
        self.publish(Notice(type=NoticeType.INFO, title=title, message=message))

    def error(self, title: str, message: str) -> None:
        self.publish(Notice(type=NoticeType.ERROR, title=title, message=message))


# Global notice channel instance
notice_channel = NoticeChannel()
