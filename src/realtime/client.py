"""HTTP client for the realtime API's call endpoints."""

from __future__ import annotations

import json
from dataclasses import dataclass

import httpx

from config.settings import RealtimeConfig
from realtime.errors import UpstreamRejection
from realtime.session import SessionDescriptor


@dataclass(frozen=True, slots=True)
class CreatedCall:
    call_id: str
    body: bytes
    content_type: str | None


def call_id_from_location(location: str | None) -> str | None:
    """``/v1/realtime/calls/call_abc123`` -> ``call_abc123``."""

    if not location:
        return None
    call_id = location.split("?", 1)[0].rstrip("/").rsplit("/", 1)[-1]
    return call_id or None


class RealtimeCallsClient:
    """Creates and accepts calls on behalf of browser and SIP callers."""

    def __init__(self, cfg: RealtimeConfig, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._base_url = cfg.api_base
        self._headers = {"Authorization": f"Bearer {cfg.api_key}"}
        self._timeout = cfg.timeout_seconds
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(headers=self._headers, timeout=self._timeout, transport=self._transport)

    async def create_call(self, sdp: bytes, session: SessionDescriptor) -> CreatedCall:
        """Submit an SDP offer; the response body is the SDP answer."""

        files = {
            "sdp": (None, sdp),
            "session": (None, json.dumps(session.to_payload())),
        }
        response = await self._post(f"{self._base_url}/calls", files=files)

        call_id = call_id_from_location(response.headers.get("Location"))
        if not call_id:
            raise UpstreamRejection(
                "call created without a Location header",
                upstream_status=response.status_code,
            )
        return CreatedCall(
            call_id=call_id,
            body=response.content,
            content_type=response.headers.get("Content-Type"),
        )

    async def accept_call(self, call_id: str, session: SessionDescriptor) -> None:
        await self._post(
            f"{self._base_url}/calls/{call_id}/accept",
            json=session.to_payload(),
        )

    async def _post(self, url: str, **kwargs) -> httpx.Response:
        try:
            async with self._client() as client:
                response = await client.post(url, **kwargs)
        except httpx.HTTPError as exc:
            raise UpstreamRejection(f"transport error: {exc}") from exc

        if response.is_success:
            return response

        body = response.text or "<no body>"
        raise UpstreamRejection(
            f"{response.status_code} {body}",
            upstream_status=response.status_code,
            upstream_body=body,
        )
