"""Shared FastAPI dependencies.

Separated so tests can override any collaborator through
``app.dependency_overrides``.
"""

from __future__ import annotations

from functools import lru_cache

from fastapi import Depends

from config.settings import RealtimeConfig, get_realtime_config, get_settings
from realtime.client import RealtimeCallsClient
from realtime.dispatch import DetachedTasks, ObserverTrigger
from realtime.observer import ObserverAttacher
from realtime.webhooks import WebhookVerifier


@lru_cache(maxsize=1)
def get_detached_tasks() -> DetachedTasks:
    return DetachedTasks()


def get_realtime_cfg() -> RealtimeConfig:
    return get_realtime_config()


def get_calls_client(cfg: RealtimeConfig = Depends(get_realtime_cfg)) -> RealtimeCallsClient:
    return RealtimeCallsClient(cfg)


def get_observer_trigger(tasks: DetachedTasks = Depends(get_detached_tasks)) -> ObserverTrigger:
    return ObserverTrigger(tasks)


def get_observer_attacher(cfg: RealtimeConfig = Depends(get_realtime_cfg)) -> ObserverAttacher:
    settings = get_settings()
    return ObserverAttacher(
        cfg,
        start_delay=settings.observer_start_delay_seconds,
        max_lifetime=settings.observer_max_lifetime_seconds,
        idle_timeout=settings.observer_idle_timeout_seconds,
    )


@lru_cache(maxsize=1)
def get_webhook_verifier() -> WebhookVerifier:
    settings = get_settings()
    return WebhookVerifier(
        settings.openai_signing_secret,
        tolerance_seconds=settings.webhook_tolerance_seconds,
    )
