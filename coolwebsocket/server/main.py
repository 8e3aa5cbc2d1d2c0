"""
MODULE OVERVIEW:
The FastAPI application serving the echo endpoint.

WHAT IS HAPPENING HERE:
A tiny peer to point the client at: `/ws/echo` bounces every message back,
`/healthz` answers liveness checks and `/stats` reports how much has been
echoed. The lifespan only logs, there are no background tasks to manage.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from loguru import logger

from coolwebsocket.server.echo_stats import echo_stats
from coolwebsocket.server.routes import echo


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Echo server starting up...")
    yield
    logger.info(f"Echo server shutting down after {echo_stats.messages_echoed} echoed messages.")


app = FastAPI(
    title="coolwebsocket echo server",
    description="A WebSocket echo peer for exercising the client",
    version="1.0.0",
    lifespan=lifespan
)

app.include_router(echo.router, tags=["Echo"])

@app.get("/healthz", tags=["Ops"])
async def health_check():
    return {"status": "ok"}

@app.get("/stats", tags=["Ops"])
async def get_stats():
    return echo_stats.snapshot()
