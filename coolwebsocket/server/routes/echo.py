"""
MODULE OVERVIEW:
The echo route, a test peer for the client.

WHAT IS HAPPENING HERE:
Upgrades the HTTP request to a WebSocket and sends every message straight
back in the frame type it arrived in: text stays text, binary stays binary.
A text message of the form `close:<code>` makes the server start the closing
handshake with that code instead, so peer-initiated closes can be exercised.
"""
from fastapi import APIRouter, WebSocket, WebSocketDisconnect, Query
from loguru import logger

from coolwebsocket.server.echo_stats import echo_stats

router = APIRouter()

CLOSE_COMMAND = "close:"


def parse_close_code(value: str) -> int:
    """Close codes a server may send; anything else falls back to 1000."""
    try:
        code = int(value)
    except ValueError:
        return 1000
    if 1000 <= code <= 1003 or 1007 <= code <= 1014 or 3000 <= code <= 4999:
        return code
    return 1000


@router.websocket("/ws/echo")
async def echo_endpoint(
    websocket: WebSocket,
    client_id: str | None = Query(None)
):
    cid = client_id or f"client-{id(websocket) & 0xffff:04x}"
    offered = websocket.scope.get("subprotocols") or []
    await websocket.accept(subprotocol=offered[0] if offered else None)
    echo_stats.connected()
    logger.info(f"client_id={cid} protocol=websocket event=connect reason=accepted")

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break

            text = message.get("text")
            if text is not None:
                if text.startswith(CLOSE_COMMAND):
                    code = parse_close_code(text[len(CLOSE_COMMAND):])
                    await websocket.close(code=code, reason="closed on request")
                    break
                await websocket.send_text(text)
                echo_stats.echoed(len(text.encode("utf-8")))
            else:
                data = message.get("bytes") or b""
                await websocket.send_bytes(data)
                echo_stats.echoed(len(data))
            logger.debug(f"client_id={cid} protocol=websocket event=echo")
    except WebSocketDisconnect:
        pass
    finally:
        echo_stats.disconnected()
        logger.info(f"client_id={cid} protocol=websocket event=disconnect reason=cleanup")
