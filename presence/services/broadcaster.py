"""
Outbound event contract used by the session coordinator.

Implementations must not block: every call is a fire-and-forget notification
and the coordinator never waits for delivery.
"""
from abc import ABC, abstractmethod
from typing import Any, List

from ..models.schemas import ClientSummary

USER_ID = "userId"
USER_COUNT = "userCount"
USER_LIST = "userList"
COUNTDOWN_START = "countdownStart"
COUNTDOWN_UPDATE = "countdownUpdate"
COUNTDOWN_CANCEL = "countdownCancel"
SYSTEM_RESET = "systemReset"


class Broadcaster(ABC):

    @abstractmethod
    def publish(self, event: str, data: Any = None):
        """Deliver an event to every connected endpoint."""

    @abstractmethod
    def send(self, connection_token: str, event: str, data: Any = None):
        """Deliver an event to a single endpoint."""

    def send_user_id(self, connection_token: str, client_id: int):
        self.send(connection_token, USER_ID, client_id)

    def publish_count(self, count: int):
        self.publish(USER_COUNT, count)

    def publish_roster(self, roster: List[ClientSummary]):
        self.publish(USER_LIST, [entry.model_dump() for entry in roster])

    def publish_countdown_start(self, duration_seconds: int):
        self.publish(COUNTDOWN_START, duration_seconds)

    def publish_countdown_update(self, remaining_seconds: int):
        self.publish(COUNTDOWN_UPDATE, remaining_seconds)

    def publish_countdown_cancel(self):
        self.publish(COUNTDOWN_CANCEL)

    def publish_system_reset(self):
        self.publish(SYSTEM_RESET)
