from __future__ import annotations

import base64
import hashlib
import hmac
import os
import sys
import time
from pathlib import Path

import httpx
import pytest
from fastapi import Depends
from fastapi.testclient import TestClient

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

SIGNING_KEY = b"test-signing-key-0123456789abcdef"
SIGNING_SECRET = "whsec_" + base64.b64encode(SIGNING_KEY).decode("ascii")


def _sign(body: bytes, *, timestamp: int | None = None, msg_id: str = "msg_test_1") -> dict[str, str]:
    ts = str(int(time.time()) if timestamp is None else timestamp)
    signed = f"{msg_id}.{ts}.".encode() + body
    signature = base64.b64encode(hmac.new(SIGNING_KEY, signed, hashlib.sha256).digest()).decode()
    return {
        "webhook-id": msg_id,
        "webhook-timestamp": ts,
        "webhook-signature": f"v1,{signature}",
    }


class FakeUpstream:
    """Records requests sent to the realtime API and answers from a queue."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.responses: list[httpx.Response] = []

    def reply(self, status_code: int, **kwargs) -> None:
        self.responses.append(httpx.Response(status_code, **kwargs))

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.responses:
            return httpx.Response(500, text="no canned response")
        return self.responses.pop(0)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)


class RecordingTrigger:
    def __init__(self) -> None:
        self.fired: list[tuple[str, str]] = []

    def fire(self, call_id: str, origin: str) -> None:
        self.fired.append((call_id, origin))


@pytest.fixture(scope="session")
def app():
    os.environ["OPENAI_API_KEY"] = "sk-test"
    os.environ["OPENAI_SIGNING_SECRET"] = SIGNING_SECRET
    os.environ["OBSERVER_START_DELAY_SECONDS"] = "0"
    os.environ.pop("PUBLIC_BASE_URL", None)

    import importlib

    for module_name in [
        "config.settings",
        "api.dependencies",
        "api.routes",
        "main",
    ]:
        sys.modules.pop(module_name, None)

    main = importlib.import_module("main")
    return main.app


@pytest.fixture()
def sign_webhook():
    return _sign


@pytest.fixture()
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture()
def observer_trigger() -> RecordingTrigger:
    return RecordingTrigger()


@pytest.fixture()
def client(app, upstream, observer_trigger):
    import api.dependencies as deps
    from realtime.client import RealtimeCallsClient

    def _calls_client(cfg=Depends(deps.get_realtime_cfg)):
        return RealtimeCallsClient(cfg, transport=upstream.transport)

    app.dependency_overrides[deps.get_calls_client] = _calls_client
    app.dependency_overrides[deps.get_observer_trigger] = lambda: observer_trigger

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture()
def realtime_cfg():
    from config.settings import RealtimeConfig

    return RealtimeConfig(
        api_key="sk-test",
        api_base="https://upstream.test/v1/realtime",
        ws_base="wss://upstream.test/v1/realtime",
        timeout_seconds=5.0,
        model="gpt-realtime",
        voice="marin",
        noise_reduction="near_field",
        instructions="Be brief.\n",
    )


@pytest.fixture()
def signing_secret() -> str:
    return SIGNING_SECRET
