"""Secondary control channel attached to an established call.

Each attach opens one websocket scoped to a call id, waits briefly for the
upstream session to settle, asks the model to start responding and then
logs control events until the remote side or the transport ends the
channel. Nothing here reports back to the request that triggered it.
"""

from __future__ import annotations

import asyncio
import enum
import json
import logging
from collections.abc import Callable
from typing import Any
from urllib.parse import urlencode

import websockets

from config.settings import RealtimeConfig
from realtime.errors import ObserverTransportFailure

LOGGER = logging.getLogger(__name__)

START_DIRECTIVE = {"type": "response.create"}

# High-frequency transcript deltas (beta and GA event names).
QUIET_EVENT_TYPES = frozenset(
    {
        "response.audio_transcript.delta",
        "response.output_audio_transcript.delta",
    }
)


class ObserverState(str, enum.Enum):
    CONNECTING = "connecting"
    OPEN = "open"
    DIRECTIVE_SENT = "directive-sent"
    STREAMING = "streaming"
    CLOSED = "closed"


class ObserverChannel:
    """One observer connection; owned by the attach call that created it."""

    def __init__(self, call_id: str) -> None:
        self.call_id = call_id
        self.state = ObserverState.CONNECTING
        self.events_seen = 0
        self.close_reason: str | None = None
        self.error: ObserverTransportFailure | None = None

    def close(self, reason: str) -> None:
        self.state = ObserverState.CLOSED
        self.close_reason = reason


class ObserverAttacher:
    def __init__(
        self,
        cfg: RealtimeConfig,
        *,
        start_delay: float = 0.25,
        max_lifetime: float | None = None,
        idle_timeout: float | None = None,
        connect: Callable[..., Any] = websockets.connect,
    ) -> None:
        self._ws_base = cfg.ws_base
        self._headers = {"Authorization": f"Bearer {cfg.api_key}"}
        self._start_delay = start_delay
        self._max_lifetime = max_lifetime
        self._idle_timeout = idle_timeout
        self._connect = connect

    def channel_url(self, call_id: str) -> str:
        return f"{self._ws_base}?{urlencode({'call_id': call_id})}"

    async def attach(self, call_id: str) -> ObserverChannel:
        channel = ObserverChannel(call_id)
        try:
            async with self._connect(self.channel_url(call_id), additional_headers=self._headers) as ws:
                channel.state = ObserverState.OPEN
                LOGGER.info("observer connected call=%s", call_id)
                try:
                    async with asyncio.timeout(self._max_lifetime):
                        await self._drive(ws, channel)
                except TimeoutError:
                    LOGGER.info("observer call=%s reached max lifetime; closing", call_id)
                    channel.close("max-lifetime")
        except (OSError, websockets.WebSocketException) as exc:
            channel.error = ObserverTransportFailure(str(exc))
            LOGGER.error("observer websocket failed call=%s: %s", call_id, channel.error)
            channel.close("transport-error")

        if channel.state is not ObserverState.CLOSED:
            channel.close("remote-closed")
        return channel

    async def _drive(self, ws, channel: ObserverChannel) -> None:
        await asyncio.sleep(self._start_delay)
        await ws.send(json.dumps(START_DIRECTIVE))
        channel.state = ObserverState.DIRECTIVE_SENT

        while True:
            try:
                raw = await asyncio.wait_for(ws.recv(), timeout=self._idle_timeout)
            except TimeoutError:
                LOGGER.info("observer call=%s idle for %ss; closing", channel.call_id, self._idle_timeout)
                channel.close("idle")
                return
            except websockets.ConnectionClosedOK:
                LOGGER.info("observer call=%s closed by remote", channel.call_id)
                channel.close("remote-closed")
                return

            channel.state = ObserverState.STREAMING
            channel.events_seen += 1
            self._log_event(channel.call_id, raw)

    @staticmethod
    def _log_event(call_id: str, raw: str | bytes) -> None:
        try:
            event = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError):
            LOGGER.warning("observer call=%s skipped non-JSON frame", call_id)
            return
        if not isinstance(event, dict):
            LOGGER.warning("observer call=%s skipped unexpected frame: %r", call_id, event)
            return

        event_type = str(event.get("type") or "")
        if event_type in QUIET_EVENT_TYPES:
            return
        LOGGER.info("observer call=%s event=%s %s", call_id, event_type, event)
