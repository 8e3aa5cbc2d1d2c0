from datetime import datetime, timezone

from coolwebsocket.shared.models import EchoStats


class EchoCounters:
    """Live counters for the echo server's /stats endpoint."""

    def __init__(self):
        self.active = 0
        self.messages_echoed = 0
        self.bytes_echoed = 0
        self.startup_time = datetime.now(timezone.utc)

    def connected(self):
        self.active += 1

    def disconnected(self):
        self.active -= 1

    def echoed(self, size: int):
        self.messages_echoed += 1
        self.bytes_echoed += size

    def snapshot(self) -> EchoStats:
        return EchoStats(
            active_ws=self.active,
            messages_echoed=self.messages_echoed,
            bytes_echoed=self.bytes_echoed,
            uptime_s=(datetime.now(timezone.utc) - self.startup_time).total_seconds(),
            server_time=datetime.now(timezone.utc)
        )


# Global singleton instance
echo_stats = EchoCounters()
