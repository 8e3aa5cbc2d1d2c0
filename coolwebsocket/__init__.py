"""Event-driven WebSocket client built on top of the `websockets` library."""

from coolwebsocket.client.transport import Transport, WebsocketsTransport
from coolwebsocket.client.websocket_client import CoolWebSocket
from coolwebsocket.shared.buffers import BufferPool
from coolwebsocket.shared.enums import CloseStatus, MessageType, WebSocketError, WebSocketState
from coolwebsocket.shared.errors import WebSocketException
from coolwebsocket.shared.events import EventHandler
from coolwebsocket.shared.models import ClientOptions, ReceiveResult

__version__ = "1.0.0"

__all__ = [
    "BufferPool",
    "ClientOptions",
    "CloseStatus",
    "CoolWebSocket",
    "EventHandler",
    "MessageType",
    "ReceiveResult",
    "Transport",
    "WebSocketError",
    "WebSocketException",
    "WebSocketState",
    "WebsocketsTransport",
]
