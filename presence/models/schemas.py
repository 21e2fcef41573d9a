from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import datetime

class ClientRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int = Field(gt=0)
    # Transport handle used to find the record on disconnect; never serialized
    connection_token: str = Field(exclude=True, repr=False)
    connected_at: datetime

    def summary(self) -> "ClientSummary":
        return ClientSummary(id=self.id, connectionTime=self.connected_at.isoformat())

class ClientSummary(BaseModel):
    id: int
    connectionTime: str

class ConnectResult(BaseModel):
    assigned_id: int
    current_count: int

class CountdownStatus(BaseModel):
    active: bool
    remaining_seconds: Optional[int] = None
    duration_seconds: int

class PresenceSnapshot(BaseModel):
    """Point-in-time view of the registry and countdown for the HTTP API."""
    count: int
    clients: List[ClientSummary] = []
    next_id: int
    epoch: int
    countdown: CountdownStatus
