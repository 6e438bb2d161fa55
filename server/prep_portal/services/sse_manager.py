"""
SSE (Server-Sent Events) Connection Manager for real-time updates.

Channels:
- admin: user and class changes
- submission:{id}: answers saved, submitted, evaluation ready/failed
- test:{id}: submissions of a test getting evaluated (teacher view)
"""
import asyncio
import json
import logging
from typing import Dict, List

from fastapi import Request
from fastapi.responses import StreamingResponse

logger = logging.getLogger(__name__)

PING_INTERVAL_SECONDS = 30.0


def submission_channel(submission_id: str) -> str:
    return f"submission:{submission_id}"


def test_channel(test_id: str) -> str:
    return f"test:{test_id}"


ADMIN_CHANNEL = "admin"


class SSEConnectionManager:
    """Manages SSE connections grouped by channel."""

    def __init__(self):
        # Map channel -> list of queues
        self.active_connections: Dict[str, List[asyncio.Queue]] = {}

    async def connect(self, channel: str) -> asyncio.Queue:
        """Create a new connection on a channel."""
        if channel not in self.active_connections:
            self.active_connections[channel] = []
        queue: asyncio.Queue = asyncio.Queue()
        self.active_connections[channel].append(queue)
        logger.debug("🔌 SSE connect %s (%d listeners)", channel, self.listener_count(channel))
        return queue

    def disconnect(self, channel: str, queue: asyncio.Queue) -> None:
        """Remove a connection from a channel."""
        if channel in self.active_connections:
            if queue in self.active_connections[channel]:
                self.active_connections[channel].remove(queue)
            if not self.active_connections[channel]:
                del self.active_connections[channel]
        logger.debug("🔌 SSE disconnect %s", channel)

    def listener_count(self, channel: str) -> int:
        return len(self.active_connections.get(channel, []))

    async def broadcast(self, channel: str, message: dict) -> None:
        """Broadcast a message to all connections on a channel."""
        for queue in list(self.active_connections.get(channel, [])):
            await queue.put(message)


# Global manager instance
sse_manager = SSEConnectionManager()


def event_stream(channel: str, request: Request) -> StreamingResponse:
    """Stream a channel to the client until it disconnects."""
    async def event_generator():
        queue = await sse_manager.connect(channel)
        try:
            while True:
                # Check for client disconnect
                if await request.is_disconnected():
                    break

                # Wait for message with timeout
                try:
                    data = await asyncio.wait_for(queue.get(), timeout=PING_INTERVAL_SECONDS)
                    yield f"data: {json.dumps(data, default=str)}\n\n"
                except asyncio.TimeoutError:
                    # Send ping to keep connection alive
                    yield ": ping\n\n"
        except asyncio.CancelledError:
            pass
        finally:
            sse_manager.disconnect(channel, queue)

    return StreamingResponse(event_generator(), media_type="text/event-stream")
