"""
CLI entrypoint for coolwebsocket.
"""
import asyncio
import sys
from collections import Counter

import typer
from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from coolwebsocket.client.websocket_client import CoolWebSocket
from coolwebsocket.shared.config import settings
from coolwebsocket.shared.enums import CloseStatus, MessageType

app = typer.Typer(help="coolwebsocket: an event-driven WebSocket client")
console = Console()

EVENT_STYLES = {
    "open": "green",
    "message": "cyan",
    "error": "red",
    "close": "yellow",
}


def configure_logging(level: str = settings.LOG_LEVEL) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level.upper())


def _describe(message_type: MessageType, payload: bytes) -> str:
    if message_type is MessageType.TEXT:
        text = CoolWebSocket.read_string(payload)
        return text[:60] + "..." if len(text) > 60 else text
    return f"<{len(payload)} bytes>"


def attach_printer(ws: CoolWebSocket, counts: Counter) -> None:
    """Print every event the socket raises, colour-coded by kind."""
    def show(kind: str, detail: str = ""):
        counts[kind] += 1
        style = EVENT_STYLES[kind]
        console.print(f"[{style} bold]{kind:<8}[/] {detail}")

    ws.on_open(lambda: show("open", ws.uri or ""))
    ws.on_error(lambda code, message: show("error", f"{code.name}: {message}"))
    ws.on_close(lambda status, reason: show("close", f"{status} {reason or ''}".rstrip()))
    ws.on_message(lambda message_type, payload: show("message", f"[{message_type.value}] {_describe(message_type, payload)}"))


def summary_table(counts: Counter) -> Table:
    table = Table(title="Events", expand=False)
    table.add_column("Event", style="magenta")
    table.add_column("Count", justify="right", style="green")
    for kind in EVENT_STYLES:
        table.add_row(kind, str(counts[kind]))
    return table


async def run_connect(uri: str, texts: list[str], duration: float, counts: Counter) -> None:
    async with CoolWebSocket() as ws:
        attach_printer(ws, counts)
        await ws.open(uri)
        for text in texts:
            await ws.send_text(text)
        try:
            await asyncio.wait_for(ws.wait_closed(), timeout=duration)
        except asyncio.TimeoutError:
            pass
        await ws.close(CloseStatus.NORMAL_CLOSURE, "done")


async def run_ping(uri: str, text: str, timeout: float, counts: Counter) -> bool:
    """Send one text message and check that the same text comes back."""
    received: list[tuple[MessageType, bytes]] = []
    arrived = asyncio.Event()

    async with CoolWebSocket() as ws:
        attach_printer(ws, counts)

        @ws.on_message
        def collect(message_type, payload):
            received.append((message_type, payload))
            arrived.set()

        await ws.open(uri)
        if not ws.is_open:
            return False
        await ws.send_text(text)
        try:
            await asyncio.wait_for(arrived.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(f"uri={uri} event=ping_timeout timeout_s={timeout}")
        await ws.close(CloseStatus.NORMAL_CLOSURE)

    return bool(received) and received[0] == (MessageType.TEXT, text.encode("utf-8"))


@app.command()
def connect(
    uri: str = typer.Argument(..., help="ws:// or wss:// URI to open"),
    send: list[str] = typer.Option([], "--send", "-s", help="Text message to send after opening, repeatable"),
    duration: float = typer.Option(10.0, help="Seconds to stay connected before closing"),
):
    """Open a connection, print every event, and close after a while."""
    configure_logging()
    counts: Counter = Counter()
    try:
        asyncio.run(run_connect(uri, send, duration, counts))
    except KeyboardInterrupt:
        pass
    console.print(summary_table(counts))
    if counts["error"]:
        raise typer.Exit(1)


@app.command()
def ping(
    uri: str = typer.Argument(..., help="URI of an echo endpoint"),
    text: str = typer.Option("ping", help="Text to send"),
    timeout: float = typer.Option(5.0, help="Seconds to wait for the echo"),
):
    """Round-trip one text message through an echo endpoint."""
    configure_logging()
    counts: Counter = Counter()
    ok = asyncio.run(run_ping(uri, text, timeout, counts))
    if ok:
        console.print(Panel(f"[green bold]echo received:[/] {text}", style="green"))
    else:
        console.print(Panel("[red bold]no matching echo[/]", style="red"))
        raise typer.Exit(1)


@app.command("echo-server")
def echo_server(
    host: str = typer.Option(settings.ECHO_HOST, help="Interface to bind"),
    port: int = typer.Option(settings.ECHO_PORT, help="Port to listen on"),
):
    """Start the echo server using Uvicorn."""
    import uvicorn
    typer.echo(f"Starting echo server on ws://{host}:{port}/ws/echo ...")
    uvicorn.run("coolwebsocket.server.main:app", host=host, port=port, log_level=settings.LOG_LEVEL.lower())


if __name__ == "__main__":
    app()
