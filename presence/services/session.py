"""
Session coordinator: the entry point the transport calls on connect/disconnect.

Every handler is synchronous so it runs to completion on the event loop
without interleaving. Registry mutation always happens before any broadcast.
"""
import logging
from typing import Optional

from ..models.schemas import ClientRecord, ConnectResult, PresenceSnapshot
from .broadcaster import Broadcaster
from .countdown import ResetCountdown
from .registry import Registry
from . import metrics

logger = logging.getLogger(__name__)


class SessionCoordinator:
    def __init__(
        self,
        registry: Registry,
        broadcaster: Broadcaster,
        countdown_s: int = 20,
        tick_interval_s: float = 1.0,
        broadcast_countdown_events: bool = True,
        broadcast_countdown_ticks: bool = False,
    ):
        self.registry = registry
        self.broadcaster = broadcaster
        self.broadcast_countdown_events = broadcast_countdown_events
        self.broadcast_countdown_ticks = broadcast_countdown_ticks
        self.countdown = ResetCountdown(
            duration_s=countdown_s,
            tick_interval_s=tick_interval_s,
            on_tick=self._on_countdown_tick,
            on_complete=self._on_countdown_complete,
        )

    def on_connect(self, connection_token: str) -> ConnectResult:
        if self.countdown.cancel():
            metrics.presence_countdowns_cancelled_total.inc()
            metrics.on_countdown_change(None)
            if self.broadcast_countdown_events:
                self.broadcaster.publish_countdown_cancel()

        record = self.registry.add_client(connection_token)
        count = self.registry.count()
        metrics.presence_connections_total.inc()
        metrics.on_roster_change(count)
        logger.info(f"Client {record.id} connected. Active clients: {count}")

        self._publish_presence(count)
        return ConnectResult(assigned_id=record.id, current_count=count)

    def on_disconnect(self, connection_token: str) -> Optional[ClientRecord]:
        record = self.registry.remove_client(connection_token)
        if record is None:
            logger.debug(f"Ignoring disconnect for unknown connection {connection_token[:8]}")
            return None

        count = self.registry.count()
        metrics.presence_disconnections_total.inc()
        metrics.on_roster_change(count)
        logger.info(f"Client {record.id} disconnected. Active clients: {count}")

        self._publish_presence(count)

        if count == 0 and not self.countdown.active:
            self.countdown.start()
            metrics.on_countdown_change(self.countdown.remaining)
            if self.broadcast_countdown_events:
                self.broadcaster.publish_countdown_start(self.countdown.duration_s)
        return record

    def snapshot(self) -> PresenceSnapshot:
        return PresenceSnapshot(
            count=self.registry.count(),
            clients=self.registry.list_clients(),
            next_id=self.registry.next_id,
            epoch=self.registry.epoch,
            countdown=self.countdown.status(),
        )

    def shutdown(self):
        self.countdown.shutdown()
        metrics.on_countdown_change(None)

    def _publish_presence(self, count: int):
        self.broadcaster.publish_count(count)
        self.broadcaster.publish_roster(self.registry.list_clients())

    def _on_countdown_tick(self, remaining: int):
        metrics.on_countdown_change(remaining)
        if self.broadcast_countdown_ticks:
            self.broadcaster.publish_countdown_update(remaining)

    def _on_countdown_complete(self):
        self.registry.reset_id_sequence()
        metrics.presence_id_resets_total.inc()
        metrics.on_countdown_change(None)
        logger.info(f"Id sequence reset (epoch {self.registry.epoch})")
        if self.broadcast_countdown_events:
            self.broadcaster.publish_system_reset()
