import pytest
import pytest_asyncio
from websockets.asyncio.server import serve

from coolwebsocket.client.websocket_client import CoolWebSocket
from coolwebsocket.shared.buffers import BufferPool
from coolwebsocket.shared.models import ClientOptions
from helpers import FakeTransport, Recorder


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def pool():
    return BufferPool(buffer_size=64, max_retained=4)


@pytest_asyncio.fixture
async def ws(transport, pool):
    socket = CoolWebSocket(transport, pool=pool, max_message_size=1024)
    yield socket
    socket.dispose()
    await socket.wait_closed()


@pytest.fixture
def recorder(ws):
    return Recorder(ws)


async def _echo_handler(connection):
    async for message in connection:
        if message == "fragments":
            await connection.send([b"ab", b"cd", b"ef"])
        elif message == "close":
            await connection.close(4000, "bye")
        else:
            await connection.send(message)


def _reject_non_echo(connection, request):
    if request.path != "/echo":
        return connection.respond(404, "not a websocket endpoint\n")
    return None


@pytest_asyncio.fixture
async def echo_uri():
    """A live `websockets` echo server on an ephemeral port."""
    async with serve(_echo_handler, "127.0.0.1", 0, process_request=_reject_non_echo) as server:
        port = list(server.sockets)[0].getsockname()[1]
        yield f"ws://127.0.0.1:{port}/echo"


@pytest.fixture
def live_options():
    return ClientOptions(ping_interval=None, open_timeout=5.0, close_timeout=2.0)
