"""Notification collaborator.

Notifications are fire-and-forget: they are sent after a transition has been
persisted and a failure to send never rolls the transition back.
"""

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import List, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from lsp_core_lib.models.case import CasePriority

logger = logging.getLogger(__name__)


class NotificationKind(str, Enum):
    ADVOCATE_ASSIGNED = "advocate_assigned"
    CASE_RESOLVED = "case_resolved"
    URGENT_ALERT = "urgent_alert"


class Notification(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    kind: NotificationKind
    case_id: str
    recipient_id: str
    title: str
    message: str
    priority: CasePriority = CasePriority.NORMAL
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


@runtime_checkable
class Notifier(Protocol):
    async def notify(self, notification: Notification) -> None:
        ...


class InMemoryNotifier:
    """Collects notifications in a list"""

    def __init__(self):
        self.sent: List[Notification] = []

    async def notify(self, notification: Notification) -> None:
        logger.debug(
            f"Notification {notification.kind.value} for case {notification.case_id} "
            f"-> {notification.recipient_id}"
        )
        self.sent.append(notification)

    def of_kind(self, kind: NotificationKind) -> List[Notification]:
        return [n for n in self.sent if n.kind == kind]
