"""
MODULE OVERVIEW:
The underlying socket. Everything protocol-level lives behind this seam.

WHAT IS HAPPENING HERE:
`Transport` is the small contract the client needs from a WebSocket engine:
connect, send one message, receive one fragment into a caller-provided
buffer, close, and abort. `WebsocketsTransport` fulfils it with the
`websockets` library, which does the handshake, masking, ping/pong and
framing for us. Its exceptions are translated into `WebSocketException`
so the client only ever sees the wrapper's error codes.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import AsyncIterator, Iterable

from loguru import logger
from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import (
    ConcurrencyError,
    ConnectionClosed,
    ConnectionClosedError,
    ConnectionClosedOK,
    InvalidHeader,
    InvalidMessage,
    InvalidState,
    InvalidStatus,
    InvalidUpgrade,
    InvalidURI,
    NegotiationError,
    WebSocketException as EngineException,
)
from websockets.protocol import State

from coolwebsocket.shared.enums import CloseStatus, MessageType, WebSocketError, WebSocketState
from coolwebsocket.shared.errors import WebSocketException
from coolwebsocket.shared.models import ClientOptions, ReceiveResult

Payload = bytes | bytearray | memoryview


class Transport(ABC):
    @property
    @abstractmethod
    def state(self) -> WebSocketState: ...

    @property
    @abstractmethod
    def subprotocol(self) -> str | None: ...

    @property
    @abstractmethod
    def close_status(self) -> CloseStatus | int | None:
        """The status of the close frame received from the peer, if any."""

    @property
    @abstractmethod
    def close_reason(self) -> str | None: ...

    @abstractmethod
    async def connect(self, uri: str, options: ClientOptions) -> None: ...

    @abstractmethod
    async def send(self, data: Payload, message_type: MessageType) -> None:
        """Send one complete message."""

    @abstractmethod
    async def send_fragments(self, chunks: Iterable[Payload], message_type: MessageType) -> None:
        """Send one message made of several fragments, in order."""

    @abstractmethod
    async def receive_into(self, buffer: bytearray) -> ReceiveResult:
        """Receive the next fragment, or part of it, into `buffer`."""

    @abstractmethod
    async def close(self, status: CloseStatus | int, reason: str | None) -> None: ...

    @abstractmethod
    def abort(self) -> None:
        """Drop the connection without a closing handshake. Must not raise."""


def translate_exception(exc: BaseException) -> WebSocketException:
    """Map an engine exception onto the wrapper's error vocabulary."""
    if isinstance(exc, WebSocketException):
        return exc
    # InvalidUpgrade is an InvalidHeader, so it has to be checked first
    if isinstance(exc, (InvalidStatus, InvalidUpgrade, InvalidMessage)):
        code = WebSocketError.NOT_A_WEBSOCKET
    elif isinstance(exc, NegotiationError):
        code = WebSocketError.UNSUPPORTED_PROTOCOL
    elif isinstance(exc, InvalidHeader):
        code = WebSocketError.HEADER_ERROR
    elif isinstance(exc, ConnectionClosedError):
        code = WebSocketError.CONNECTION_CLOSED_PREMATURELY
    elif isinstance(exc, (ConnectionClosedOK, InvalidState, ConcurrencyError)):
        code = WebSocketError.INVALID_STATE
    elif isinstance(exc, (InvalidURI, asyncio.TimeoutError)):
        code = WebSocketError.FAULTED
    elif isinstance(exc, OSError):
        code = WebSocketError.NATIVE_ERROR
    else:
        code = WebSocketError.FAULTED
    return WebSocketException(code, str(exc) or exc.__class__.__name__)


def _engine_options(options: ClientOptions) -> dict:
    kwargs = {
        "subprotocols": options.subprotocols or None,
        "additional_headers": options.additional_headers or None,
        "open_timeout": options.open_timeout,
        "ping_interval": options.ping_interval,
        "ping_timeout": options.ping_timeout,
        "close_timeout": options.close_timeout,
        "max_size": options.max_size,
    }
    if options.user_agent is not None:
        kwargs["user_agent_header"] = options.user_agent
    return kwargs


class WebsocketsTransport(Transport):
    """
    A single-use transport over `websockets.asyncio.client`.

    Fragments arrive from `recv_streaming()`. The next fragment is read ahead
    so the current one can be flagged end-of-message as soon as it is handed
    out, and a fragment bigger than the caller's buffer is handed out over
    several calls.
    """

    def __init__(self):
        self._connection: ClientConnection | None = None
        self._started = False
        self._connecting = False
        self._aborted = False

        self._stream: AsyncIterator[str | bytes] | None = None
        self._lookahead: str | bytes | None = None
        self._pending: memoryview | None = None
        self._pending_type = MessageType.BINARY
        self._pending_final = False

    @property
    def connection(self) -> ClientConnection | None:
        return self._connection

    @property
    def state(self) -> WebSocketState:
        if self._aborted:
            return WebSocketState.ABORTED
        if self._connection is None:
            if self._connecting:
                return WebSocketState.CONNECTING
            return WebSocketState.CLOSED if self._started else WebSocketState.NONE

        engine_state = self._connection.state
        if engine_state is State.CONNECTING:
            return WebSocketState.CONNECTING
        if engine_state is State.OPEN:
            return WebSocketState.OPEN
        if engine_state is State.CLOSING:
            protocol = self._connection.protocol
            if protocol.close_rcvd is not None and protocol.close_sent is None:
                return WebSocketState.CLOSE_RECEIVED
            return WebSocketState.CLOSE_SENT
        return WebSocketState.CLOSED

    @property
    def subprotocol(self) -> str | None:
        return self._connection.subprotocol if self._connection else None

    @property
    def close_status(self) -> CloseStatus | int | None:
        if self._connection is None or self._connection.protocol.close_rcvd is None:
            return None
        return CloseStatus.from_code(self._connection.protocol.close_rcvd.code)

    @property
    def close_reason(self) -> str | None:
        if self._connection is None or self._connection.protocol.close_rcvd is None:
            return None
        return self._connection.protocol.close_rcvd.reason

    def _require_connection(self) -> ClientConnection:
        if self._connection is None or self._aborted:
            raise WebSocketException(WebSocketError.INVALID_STATE, "the connection is not open")
        return self._connection

    async def connect(self, uri: str, options: ClientOptions) -> None:
        if self._started:
            raise WebSocketException(WebSocketError.INVALID_STATE, "the transport has already been started")
        self._started = True
        self._connecting = True
        try:
            self._connection = await connect(uri, **_engine_options(options))
        except (EngineException, OSError, asyncio.TimeoutError) as exc:
            raise translate_exception(exc) from exc
        finally:
            self._connecting = False
        logger.debug(f"uri={uri} event=engine_connected subprotocol={self._connection.subprotocol}")

    async def send(self, data: Payload, message_type: MessageType) -> None:
        connection = self._require_connection()
        if message_type is MessageType.CLOSE:
            raise WebSocketException(WebSocketError.INVALID_MESSAGE_TYPE, "close frames are sent with close()")
        try:
            await connection.send(bytes(data), text=message_type is MessageType.TEXT)
        except (EngineException, OSError) as exc:
            raise translate_exception(exc) from exc

    async def send_fragments(self, chunks: Iterable[Payload], message_type: MessageType) -> None:
        connection = self._require_connection()
        if message_type is MessageType.CLOSE:
            raise WebSocketException(WebSocketError.INVALID_MESSAGE_TYPE, "close frames are sent with close()")
        try:
            await connection.send([bytes(chunk) for chunk in chunks], text=message_type is MessageType.TEXT)
        except (EngineException, OSError) as exc:
            raise translate_exception(exc) from exc

    async def _next_fragment(self, connection: ClientConnection) -> None:
        if self._stream is None:
            self._stream = connection.recv_streaming().__aiter__()
            current = await self._stream.__anext__()
        else:
            current = self._lookahead

        try:
            self._lookahead = await self._stream.__anext__()
            final = False
        except StopAsyncIteration:
            self._stream = None
            self._lookahead = None
            final = True

        if isinstance(current, str):
            self._pending = memoryview(current.encode("utf-8"))
            self._pending_type = MessageType.TEXT
        else:
            self._pending = memoryview(current)
            self._pending_type = MessageType.BINARY
        self._pending_final = final

    async def receive_into(self, buffer: bytearray) -> ReceiveResult:
        connection = self._require_connection()
        if self._pending is None:
            try:
                await self._next_fragment(connection)
            except ConnectionClosed as exc:
                self._stream = None
                # No close frame from the peer means the TCP connection just dropped
                if exc.rcvd is None:
                    raise translate_exception(exc) from exc
                return ReceiveResult(
                    count=0,
                    message_type=MessageType.CLOSE,
                    end_of_message=True,
                    close_status=CloseStatus.from_code(exc.rcvd.code),
                    close_reason=exc.rcvd.reason,
                )
            except (EngineException, OSError) as exc:
                self._stream = None
                raise translate_exception(exc) from exc

        count = min(len(buffer), len(self._pending))
        buffer[:count] = self._pending[:count]
        self._pending = self._pending[count:]
        end_of_message = False
        if not len(self._pending):
            end_of_message = self._pending_final
            self._pending = None
        return ReceiveResult(count=count, message_type=self._pending_type, end_of_message=end_of_message)

    async def close(self, status: CloseStatus | int, reason: str | None) -> None:
        connection = self._require_connection()
        try:
            await connection.close(int(status), reason or "")
        except (EngineException, OSError) as exc:
            raise translate_exception(exc) from exc

    def abort(self) -> None:
        if self._aborted:
            return
        self._aborted = True
        if self._connection is not None and self._connection.state is not State.CLOSED:
            self._connection.transport.abort()
