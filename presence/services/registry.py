from __future__ import annotations
import threading
import logging
from typing import Dict, List, Optional
from datetime import datetime, timezone
from ..models.schemas import ClientRecord, ClientSummary

logger = logging.getLogger(__name__)

FIRST_ID = 1

class Registry:
    """
    In-memory table of connected clients and the id counter.

    Records are kept in connection order. Ids come from a counter that only
    goes back to FIRST_ID through reset_id_sequence().
    """

    def __init__(self):
        self._lock = threading.RLock()
        self.clients: Dict[str, ClientRecord] = {}
        self._next_id = FIRST_ID
        self._epoch = 0

    @staticmethod
    def now():
        return datetime.now(timezone.utc)

    @property
    def next_id(self) -> int:
        return self._next_id

    @property
    def epoch(self) -> int:
        """Number of id-sequence resets since the registry was created."""
        return self._epoch

    def add_client(self, connection_token: str) -> ClientRecord:
        with self._lock:
            existing = self.clients.get(connection_token)
            if existing is not None:
                logger.warning(f"Connection {connection_token[:8]} already registered as client {existing.id}")
                return existing

            record = ClientRecord(
                id=self._next_id,
                connection_token=connection_token,
                connected_at=self.now(),
            )
            self._next_id += 1
            self.clients[connection_token] = record
            return record

    def remove_client(self, connection_token: str) -> Optional[ClientRecord]:
        """Remove and return the record for a token, or None if it is unknown."""
        with self._lock:
            return self.clients.pop(connection_token, None)

    def get_client(self, connection_token: str) -> Optional[ClientRecord]:
        with self._lock:
            return self.clients.get(connection_token)

    def list_clients(self) -> List[ClientSummary]:
        with self._lock:
            records = sorted(self.clients.values(), key=lambda r: r.id)
        return [r.summary() for r in records]

    def count(self) -> int:
        with self._lock:
            return len(self.clients)

    def __len__(self) -> int:
        return self.count()

    def reset_id_sequence(self):
        """Start a new id epoch. Existing records are left alone."""
        with self._lock:
            if self.clients:
                logger.warning(f"Resetting id sequence with {len(self.clients)} clients still registered")
            self._next_id = FIRST_ID
            self._epoch += 1
