"""
MODULE OVERVIEW:
The event-driven WebSocket client.

WHAT IS HAPPENING HERE:
`CoolWebSocket` turns the request/response style of a transport into
callbacks. `open()` connects and spawns one background task per connection,
the receive loop, which glues fragments back together and fires `on_message`
once per complete message. `send()` and `close()` run on the caller's task
alongside it: one direction writes, the other reads, so no lock is needed.

Nothing here raises to the caller. Faults become `on_error` events, followed
by `on_close` when the connection ended with a close frame. Calling
`send()` or `close()` on a socket that is not open does nothing at all.
"""

import asyncio
from typing import Iterable

from loguru import logger

from coolwebsocket.client.transport import Payload, Transport, WebsocketsTransport
from coolwebsocket.shared.buffers import BufferPool, shared_pool
from coolwebsocket.shared.config import settings
from coolwebsocket.shared.enums import CloseStatus, MessageType, WebSocketError, WebSocketState
from coolwebsocket.shared.errors import WebSocketException
from coolwebsocket.shared.events import EventHandler
from coolwebsocket.shared.models import ClientOptions

_UNSET = object()


class CoolWebSocket:
    def __init__(
        self,
        transport: Transport | None = None,
        *,
        options: ClientOptions | None = None,
        pool: BufferPool | None = None,
        max_message_size: int | None = _UNSET,
    ):
        self._transport = transport if transport is not None else WebsocketsTransport()
        self._options = options if options is not None else ClientOptions()
        self._pool = pool if pool is not None else shared_pool
        self.max_message_size = settings.MAX_MESSAGE_SIZE if max_message_size is _UNSET else max_message_size

        self.uri: str | None = None
        self._accumulator = bytearray()
        self._receive_task: asyncio.Task | None = None
        self._closing = False
        self._disposed = False

        self.on_open = EventHandler("open")
        self.on_error = EventHandler("error")
        self.on_close = EventHandler("close")
        self.on_message = EventHandler("message")

    # ==========================
    # CONNECTION HANDLE
    # ==========================
    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def state(self) -> WebSocketState:
        if self._disposed:
            return WebSocketState.CLOSED
        return self._transport.state

    @property
    def subprotocol(self) -> str | None:
        return self._transport.subprotocol

    @property
    def options(self) -> ClientOptions:
        return self._options

    @property
    def is_open(self) -> bool:
        return self.state in (WebSocketState.OPEN, WebSocketState.CONNECTING)

    @property
    def buffered(self) -> int:
        """Bytes of the message currently being assembled."""
        return len(self._accumulator)

    async def __aenter__(self) -> "CoolWebSocket":
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.dispose()

    async def _report(self, exc: BaseException) -> None:
        if isinstance(exc, WebSocketException):
            code, message = exc.error_code, exc.message
        else:
            code, message = WebSocketError.FAULTED, str(exc) or exc.__class__.__name__
        logger.warning(f"uri={self.uri} event=error code={code.name} reason='{message}'")
        await self.on_error.dispatch(code, message)
        await self._raise_close_if_closed()

    async def _raise_close_if_closed(self) -> None:
        if self.is_open or self._transport.close_status is None:
            return
        await self.on_close.dispatch(self._transport.close_status, self._transport.close_reason)

    def _engine_options(self) -> ClientOptions:
        # An engine limit at or below our cap would drop the connection before
        # the receive loop sees the message, so lift it
        limit = self._options.max_size
        if limit is not None and (self.max_message_size is None or limit <= self.max_message_size):
            return self._options.model_copy(update={"max_size": None})
        return self._options

    # ==========================
    # LIFECYCLE
    # ==========================
    async def open(self, uri: str) -> None:
        if self._disposed or self.is_open:
            return

        self.uri = uri
        try:
            await self._transport.connect(uri, self._engine_options())
        except Exception as exc:
            await self._report(exc)
            return

        self._closing = False
        self._receive_task = asyncio.create_task(self._receive_loop(), name=f"coolwebsocket-receive:{uri}")
        logger.info(f"uri={uri} event=open subprotocol={self.subprotocol}")
        await self.on_open.dispatch()

    async def close(self, status: CloseStatus | int = CloseStatus.NORMAL_CLOSURE, reason: str | None = None) -> None:
        if not self.is_open:
            return

        self._closing = True
        try:
            await self._transport.close(status, reason)
        except Exception as exc:
            await self._report(exc)
            return
        finally:
            self._cancel_receive_loop()

        logger.info(f"uri={self.uri} event=close status={int(status)} reason='{reason}'")
        await self.on_close.dispatch(status, reason)

    def _cancel_receive_loop(self) -> None:
        self._closing = True
        task = self._receive_task
        # close() may be running on the receive task itself
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    async def wait_closed(self) -> None:
        """Wait until the receive loop has finished."""
        if self._receive_task is None:
            return
        try:
            await asyncio.shield(self._receive_task)
        except asyncio.CancelledError:
            if not self._receive_task.cancelled():
                raise

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        self._cancel_receive_loop()
        self._transport.abort()
        self._accumulator = bytearray()
        logger.debug(f"uri={self.uri} event=dispose")

    # ==========================
    # SENDING
    # ==========================
    async def _send(self, data: Payload, message_type: MessageType) -> None:
        if not self.is_open:
            return
        try:
            await self._transport.send(data, message_type)
        except Exception as exc:
            await self._report(exc)

    async def send_binary(self, data: Payload) -> None:
        await self._send(data, MessageType.BINARY)

    async def send_text(self, text: str) -> None:
        await self._send(text.encode("utf-8"), MessageType.TEXT)

    async def send(self, data: Payload | str) -> None:
        """Send `str` as a text message and anything bytes-like as binary."""
        if isinstance(data, str):
            await self.send_text(data)
        else:
            await self.send_binary(data)

    async def send_chunks(self, chunks: Iterable[Payload], message_type: MessageType = MessageType.BINARY) -> None:
        """Send a pre-chunked payload as the fragments of a single message."""
        if not self.is_open:
            return
        try:
            await self._transport.send_fragments(chunks, message_type)
        except Exception as exc:
            await self._report(exc)

    # ==========================
    # RECEIVING
    # ==========================
    async def _receive_loop(self) -> None:
        try:
            while self.is_open:
                message_type = await self.poll()
                if message_type is MessageType.CLOSE:
                    break
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            if not (self._closing or self._disposed):
                await self._report(exc)
            return

        if not (self._closing or self._disposed):
            logger.info(
                f"uri={self.uri} event=closed_by_peer status={self._transport.close_status} "
                f"reason='{self._transport.close_reason}'"
            )
            await self._raise_close_if_closed()

    async def poll(self) -> MessageType:
        """Receive fragments until one complete message has been dispatched."""
        while True:
            with self._pool.rent() as buffer:
                result = await self._transport.receive_into(buffer)
                self._accumulator += buffer[:result.count]

            if self.max_message_size is not None and len(self._accumulator) > self.max_message_size:
                size = len(self._accumulator)
                self._accumulator = bytearray()
                await self._report(WebSocketException(
                    WebSocketError.FAULTED, f"message of {size} bytes exceeds the {self.max_message_size} byte limit"
                ))
                await self.close(CloseStatus.MESSAGE_TOO_BIG, "message too big")
                return MessageType.CLOSE

            if result.end_of_message:
                break

        payload = bytes(self._accumulator)
        self._accumulator.clear()
        # The echo of our own close frame is not a message
        if result.message_type is MessageType.CLOSE and self._closing:
            return MessageType.CLOSE
        logger.debug(f"uri={self.uri} event=message type={result.message_type.value} size={len(payload)}")
        await self.on_message.dispatch(result.message_type, payload)
        return result.message_type

    @staticmethod
    def read_string(message: Payload) -> str:
        return bytes(message).decode("utf-8")
