"""Fakes and small async helpers shared by the test modules."""
import asyncio

from coolwebsocket.client.transport import Transport
from coolwebsocket.client.websocket_client import CoolWebSocket
from coolwebsocket.shared.enums import CloseStatus, MessageType, WebSocketState
from coolwebsocket.shared.models import ReceiveResult


class FakeTransport(Transport):
    """
    Scripted transport: receive_into() replays whatever was fed to it,
    every other call is recorded in `calls`.
    """

    def __init__(self, connect_error=None, send_error=None, close_error=None):
        self.connect_error = connect_error
        self.send_error = send_error
        self.close_error = close_error

        self.calls: list[str] = []
        self.sent: list[tuple[bytes, MessageType]] = []
        self.closed_with = None
        self.options = None
        self.incoming: asyncio.Queue = asyncio.Queue()
        self._remainder = None

        self._state = WebSocketState.NONE
        self._close_status = None
        self._close_reason = None

    @property
    def state(self):
        return self._state

    @property
    def subprotocol(self):
        return "chat" if self._state is WebSocketState.OPEN else None

    @property
    def close_status(self):
        return self._close_status

    @property
    def close_reason(self):
        return self._close_reason

    def peer_closed(self, status, reason=""):
        self._state = WebSocketState.CLOSED
        self._close_status = status
        self._close_reason = reason

    # Scripting helpers
    def feed(self, data: bytes, message_type=MessageType.BINARY, end_of_message=True):
        self.incoming.put_nowait((data, message_type, end_of_message))

    def feed_close(self, status=CloseStatus.NORMAL_CLOSURE, reason="bye"):
        self.incoming.put_nowait(("close", status, reason))

    def feed_error(self, exc: BaseException, close_status=None):
        self.incoming.put_nowait(("error", exc, close_status))

    # Transport
    async def connect(self, uri, options):
        self.calls.append("connect")
        self.options = options
        self._state = WebSocketState.CONNECTING
        if self.connect_error is not None:
            self._state = WebSocketState.CLOSED
            raise self.connect_error
        self._state = WebSocketState.OPEN

    async def send(self, data, message_type):
        self.calls.append("send")
        if self.send_error is not None:
            raise self.send_error
        self.sent.append((bytes(data), message_type))

    async def send_fragments(self, chunks, message_type):
        self.calls.append("send_fragments")
        if self.send_error is not None:
            raise self.send_error
        self.sent.append((b"".join(bytes(c) for c in chunks), message_type))

    async def receive_into(self, buffer):
        self.calls.append("receive_into")
        if self._remainder is not None:
            item, self._remainder = self._remainder, None
        else:
            item = await self.incoming.get()

        if item[0] == "close":
            _, status, reason = item
            self.peer_closed(status, reason)
            return ReceiveResult(
                count=0, message_type=MessageType.CLOSE, end_of_message=True,
                close_status=status, close_reason=reason,
            )
        if item[0] == "error":
            _, exc, close_status = item
            if close_status is not None:
                self.peer_closed(close_status, "")
            else:
                self._state = WebSocketState.CLOSED
            raise exc

        # Fragments larger than the buffer are handed out over several calls
        data, message_type, end_of_message = item
        count = min(len(buffer), len(data))
        buffer[:count] = data[:count]
        if count < len(data):
            self._remainder = (data[count:], message_type, end_of_message)
            end_of_message = False
        return ReceiveResult(count=count, message_type=message_type, end_of_message=end_of_message)

    async def close(self, status, reason):
        self.calls.append("close")
        if self.close_error is not None:
            raise self.close_error
        self.closed_with = (status, reason)
        self._state = WebSocketState.CLOSED

    def abort(self):
        self.calls.append("abort")
        if self._state is not WebSocketState.NONE:
            self._state = WebSocketState.ABORTED


class Recorder:
    """Subscribes to every event of a socket and keeps them in order."""

    def __init__(self, ws: CoolWebSocket):
        self.events: list[tuple] = []
        ws.on_open(lambda: self.events.append(("open",)))
        ws.on_error(lambda code, message: self.events.append(("error", code, message)))
        ws.on_close(lambda status, reason: self.events.append(("close", status, reason)))
        ws.on_message(lambda kind, payload: self.events.append(("message", kind, payload)))

    def of(self, kind: str) -> list[tuple]:
        return [e for e in self.events if e[0] == kind]

    @property
    def kinds(self) -> list[str]:
        return [e[0] for e in self.events]


async def until(predicate, timeout: float = 2.0):
    """Yield to the event loop until `predicate()` holds."""
    async def wait():
        while not predicate():
            await asyncio.sleep(0.001)
    await asyncio.wait_for(wait(), timeout=timeout)
