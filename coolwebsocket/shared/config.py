"""
MODULE OVERVIEW:
Library-wide configuration using Pydantic Settings.

WHAT IS HAPPENING HERE:
The receive loop, the scratch buffer pool and the engine defaults all read
their sizes and timings from here. Every value can be overridden with a
`COOLWS_` prefixed environment variable or a `.env` file, so a deployment
can tune buffer sizes without touching code.
"""

from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    LOG_LEVEL: str = "INFO"

    # Receive loop
    RECEIVE_BUFFER_SIZE: int = 16384
    BUFFER_POOL_MAX_RETAINED: int = 32
    # None keeps accumulating without a limit
    MAX_MESSAGE_SIZE: int | None = 64 * 1024 * 1024

    # Engine defaults, copied into ClientOptions
    OPEN_TIMEOUT_S: float | None = 10.0
    PING_INTERVAL_S: float | None = 20.0
    PING_TIMEOUT_S: float | None = 20.0
    CLOSE_TIMEOUT_S: float | None = 10.0

    # Echo server
    ECHO_HOST: str = "127.0.0.1"
    ECHO_PORT: int = 8765

    class Config:
        env_prefix = "COOLWS_"
        env_file = ".env"
        env_file_encoding = 'utf-8'
        extra = 'ignore'

settings = Settings()
