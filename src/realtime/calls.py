"""Call establishment flows.

Both flows finish the upstream request before anything else happens; only a
confirmed call id is handed to the observer trigger, and the trigger never
blocks or fails the flow that fired it.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Protocol

from config.settings import RealtimeConfig
from realtime.client import CreatedCall, RealtimeCallsClient
from realtime.errors import UpstreamRejection
from realtime.session import build_session
from realtime.webhooks import INCOMING_CALL_EVENT, WebhookVerifier

LOGGER = logging.getLogger(__name__)


class ObserverLauncher(Protocol):
    def fire(self, call_id: str, origin: str) -> None: ...


async def initiate_call(
    sdp_offer: bytes,
    origin: str,
    *,
    cfg: RealtimeConfig,
    client: RealtimeCallsClient,
    observers: ObserverLauncher,
    video_enabled: bool = False,
) -> CreatedCall:
    """Relay a browser SDP offer upstream and return the untouched answer."""

    session = build_session(cfg, video_enabled=video_enabled)
    try:
        created = await client.create_call(sdp_offer, session)
    except UpstreamRejection as exc:
        LOGGER.error("start call failed: %s", exc)
        raise

    LOGGER.info("call created: %s", created.call_id)
    _launch_observer(observers, created.call_id, origin)
    return created


async def accept_inbound_call(
    raw_body: bytes,
    headers: Mapping[str, str],
    origin: str,
    *,
    cfg: RealtimeConfig,
    verifier: WebhookVerifier,
    client: RealtimeCallsClient,
    observers: ObserverLauncher,
) -> str | None:
    """Verify a SIP webhook and accept the call it announces.

    Returns the accepted call id, or ``None`` for verified events that are
    not incoming calls.
    """

    event = verifier.verify(raw_body, headers)
    call_id = event.data.call_id
    LOGGER.info("verified webhook: %s (%s)", call_id, event.type)

    if event.type != INCOMING_CALL_EVENT:
        LOGGER.info("ignoring webhook event %s", event.type)
        return None

    try:
        await client.accept_call(call_id, build_session(cfg))
    except UpstreamRejection as exc:
        LOGGER.error("accept failed: %s", exc)
        raise

    LOGGER.info("call accepted: %s", call_id)
    _launch_observer(observers, call_id, origin)
    return call_id


def _launch_observer(observers: ObserverLauncher, call_id: str, origin: str) -> None:
    try:
        observers.fire(call_id, origin)
    except Exception:
        LOGGER.exception("observer trigger failed for call %s", call_id)
