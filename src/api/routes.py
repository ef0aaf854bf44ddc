"""HTTP entry points: browser calls, SIP webhooks and the internal observer trigger."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response

from api.dependencies import (
    get_calls_client,
    get_detached_tasks,
    get_observer_attacher,
    get_observer_trigger,
    get_realtime_cfg,
    get_webhook_verifier,
)
from config.settings import RealtimeConfig, get_settings
from realtime.calls import accept_inbound_call, initiate_call
from realtime.client import RealtimeCallsClient
from realtime.dispatch import DetachedTasks, ObserverTrigger
from realtime.observer import ObserverAttacher
from realtime.webhooks import WebhookVerifier

router = APIRouter()


def _self_origin(request: Request) -> str:
    settings = get_settings()
    if settings.public_base_url:
        return settings.public_base_url.rstrip("/")
    return str(request.base_url).rstrip("/")


@router.post("/rtc")
async def create_call(
    request: Request,
    video: bool | None = None,
    cfg: RealtimeConfig = Depends(get_realtime_cfg),
    client: RealtimeCallsClient = Depends(get_calls_client),
    observers: ObserverTrigger = Depends(get_observer_trigger),
) -> Response:
    sdp_offer = await request.body()
    created = await initiate_call(
        sdp_offer,
        _self_origin(request),
        cfg=cfg,
        client=client,
        observers=observers,
        video_enabled=get_settings().realtime_video_enabled if video is None else video,
    )

    headers = {"Content-Type": created.content_type} if created.content_type else None
    return Response(content=created.body, headers=headers)


@router.post("/sip")
async def sip_webhook(
    request: Request,
    verifier: WebhookVerifier = Depends(get_webhook_verifier),
    cfg: RealtimeConfig = Depends(get_realtime_cfg),
    client: RealtimeCallsClient = Depends(get_calls_client),
    observers: ObserverTrigger = Depends(get_observer_trigger),
) -> Response:
    await accept_inbound_call(
        await request.body(),
        request.headers,
        _self_origin(request),
        cfg=cfg,
        verifier=verifier,
        client=client,
        observers=observers,
    )
    return Response()


@router.post("/observer/{call_id}")
async def attach_observer(
    call_id: str,
    attacher: ObserverAttacher = Depends(get_observer_attacher),
    tasks: DetachedTasks = Depends(get_detached_tasks),
) -> Response:
    """Internal, self-addressed. Returns at once; the channel lives on in the background."""

    tasks.spawn(attacher.attach(call_id), name=f"observer:{call_id}")
    return Response()
