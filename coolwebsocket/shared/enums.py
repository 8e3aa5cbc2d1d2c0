"""
MODULE OVERVIEW:
The vocabularies the wrapper speaks, independent of the engine underneath.

WHAT IS HAPPENING HERE:
Close status values are the RFC 6455 wire codes, and the error and state
values match the numbering used by common platform WebSocket clients, so a
code logged here means the same thing on either side of a connection.
"""
from enum import Enum, IntEnum


class MessageType(str, Enum):
    TEXT = "text"
    BINARY = "binary"
    CLOSE = "close"


class CloseStatus(IntEnum):
    NORMAL_CLOSURE = 1000
    ENDPOINT_UNAVAILABLE = 1001
    PROTOCOL_ERROR = 1002
    INVALID_MESSAGE_TYPE = 1003
    EMPTY = 1005
    INVALID_PAYLOAD_DATA = 1007
    POLICY_VIOLATION = 1008
    MESSAGE_TOO_BIG = 1009
    MANDATORY_EXTENSION = 1010
    INTERNAL_SERVER_ERROR = 1011

    @classmethod
    def from_code(cls, code: int) -> "CloseStatus | int":
        """Known codes become members; application codes stay plain ints."""
        try:
            return cls(code)
        except ValueError:
            return code


class WebSocketError(IntEnum):
    SUCCESS = 0
    INVALID_MESSAGE_TYPE = 1
    FAULTED = 2
    NATIVE_ERROR = 3
    NOT_A_WEBSOCKET = 4
    UNSUPPORTED_VERSION = 5
    UNSUPPORTED_PROTOCOL = 6
    HEADER_ERROR = 7
    CONNECTION_CLOSED_PREMATURELY = 8
    INVALID_STATE = 9


class WebSocketState(IntEnum):
    NONE = 0
    CONNECTING = 1
    OPEN = 2
    CLOSE_SENT = 3
    CLOSE_RECEIVED = 4
    CLOSED = 5
    ABORTED = 6
