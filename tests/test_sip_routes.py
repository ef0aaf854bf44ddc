from __future__ import annotations

import json
import time

from fastapi.testclient import TestClient


def _incoming_call(call_id: str = "rtc_u1_9c6574da8b8a41a18da9308f4ad974ce") -> bytes:
    return json.dumps(
        {
            "object": "event",
            "id": "evt_685343a0b5e8819087c3b5a2e8f8e3ab",
            "type": "realtime.call.incoming",
            "created_at": 1719168092,
            "data": {
                "call_id": call_id,
                "sip_headers": [{"name": "From", "value": "sip:+142555512112@sip.example.com"}],
            },
        }
    ).encode()


def test_sip_accepts_verified_call_and_fires_observer(client, upstream, observer_trigger, sign_webhook):
    upstream.reply(200)
    body = _incoming_call("rtc_abc")

    resp = client.post("/sip", content=body, headers=sign_webhook(body))

    assert resp.status_code == 200
    assert resp.content == b""
    (request,) = upstream.requests
    assert request.url.path == "/v1/realtime/calls/rtc_abc/accept"
    assert json.loads(request.read())["type"] == "realtime"
    assert observer_trigger.fired == [("rtc_abc", "http://testserver")]


def test_sip_tampered_signature_is_rejected_without_upstream_call(client, upstream, observer_trigger, sign_webhook):
    body = _incoming_call()
    headers = sign_webhook(body)
    headers["webhook-signature"] = "v1,dGFtcGVyZWQtc2lnbmF0dXJlLXRhbXBlcmVkLXNpZw=="

    resp = client.post("/sip", content=body, headers=headers)

    assert resp.status_code == 401
    assert resp.text == "Invalid signature"
    assert upstream.requests == []
    assert observer_trigger.fired == []


def test_sip_expired_timestamp_is_rejected_without_upstream_call(client, upstream, sign_webhook):
    body = _incoming_call()

    resp = client.post("/sip", content=body, headers=sign_webhook(body, timestamp=int(time.time()) - 3600))

    assert resp.status_code == 401
    assert upstream.requests == []


def test_sip_unsigned_request_is_rejected(client, upstream):
    resp = client.post("/sip", content=_incoming_call())

    assert resp.status_code == 401
    assert upstream.requests == []


def test_sip_accept_failure_is_opaque_and_logged(client, upstream, observer_trigger, sign_webhook, caplog):
    upstream.reply(500, text="upstream exploded: call not found")
    body = _incoming_call("rtc_gone")

    resp = client.post("/sip", content=body, headers=sign_webhook(body))

    assert resp.status_code == 500
    assert resp.text == "Internal error"
    assert observer_trigger.fired == []
    assert "accept failed" in caplog.text
    assert "upstream exploded: call not found" in caplog.text


def test_sip_other_event_types_are_acknowledged_only(client, upstream, observer_trigger, sign_webhook):
    body = json.dumps({"type": "realtime.call.hangup", "data": {"call_id": "rtc_abc"}}).encode()

    resp = client.post("/sip", content=body, headers=sign_webhook(body))

    assert resp.status_code == 200
    assert upstream.requests == []
    assert observer_trigger.fired == []


def test_sip_missing_secret_is_internal_error(app, upstream, observer_trigger, sign_webhook):
    import api.dependencies as deps
    from realtime.webhooks import WebhookVerifier

    app.dependency_overrides[deps.get_webhook_verifier] = lambda: WebhookVerifier(None)
    app.dependency_overrides[deps.get_observer_trigger] = lambda: observer_trigger

    body = _incoming_call()
    with TestClient(app) as test_client:
        resp = test_client.post("/sip", content=body, headers=sign_webhook(body))

    app.dependency_overrides.clear()

    assert resp.status_code == 500
    assert resp.text == "Internal error"
    assert observer_trigger.fired == []
