"""
MODULE OVERVIEW:
Typed data structures shared by the client and its transports, powered by
Pydantic v2.

WHAT IS HAPPENING HERE:
`ClientOptions` is what the caller tunes before `open()`; the transport reads
it once while connecting. `ReceiveResult` is the contract between the
receive loop and a transport: how many bytes of the caller's buffer were
filled, what kind of message they belong to, and whether they finish it.
"""
from datetime import datetime

from pydantic import BaseModel, Field

from .config import settings
from .enums import CloseStatus, MessageType


class ClientOptions(BaseModel):
    subprotocols: list[str] = Field(default_factory=list)
    additional_headers: dict[str, str] = Field(default_factory=dict)
    user_agent: str | None = None
    open_timeout: float | None = Field(default_factory=lambda: settings.OPEN_TIMEOUT_S)
    ping_interval: float | None = Field(default_factory=lambda: settings.PING_INTERVAL_S)
    ping_timeout: float | None = Field(default_factory=lambda: settings.PING_TIMEOUT_S)
    close_timeout: float | None = Field(default_factory=lambda: settings.CLOSE_TIMEOUT_S)
    # Engine-side limit. Left off by default, the client enforces its own cap
    max_size: int | None = None


# WHAT IS HAPPENING HERE:
# One fragment copied into the receive buffer. `close_status` and
# `close_reason` are only set on a CLOSE result, i.e. when the peer
# completed the closing handshake instead of sending data.
class ReceiveResult(BaseModel):
    count: int
    message_type: MessageType
    end_of_message: bool
    close_status: CloseStatus | int | None = None
    close_reason: str | None = None


class EchoStats(BaseModel):
    active_ws: int
    messages_echoed: int
    bytes_echoed: int
    uptime_s: float
    server_time: datetime
