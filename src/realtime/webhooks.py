"""Verification and parsing of realtime API webhooks.

Signatures follow the Standard Webhooks scheme (``webhook-id``,
``webhook-timestamp``, ``webhook-signature``); the openai SDK performs the
HMAC and replay-window checks.
"""

from __future__ import annotations

import base64
import binascii
from collections.abc import Mapping
from typing import Any

from openai import InvalidWebhookSignatureError, OpenAI
from pydantic import BaseModel, Field, ValidationError

from realtime.errors import AuthenticationFailure, ConfigurationError

INCOMING_CALL_EVENT = "realtime.call.incoming"


class IncomingCallData(BaseModel):
    call_id: str = Field(min_length=1)
    sip_headers: list[dict[str, Any]] = Field(default_factory=list)


class IncomingCallEvent(BaseModel):
    id: str | None = None
    type: str
    data: IncomingCallData


class WebhookVerifier:
    def __init__(self, secret: str | None, *, tolerance_seconds: int = 300) -> None:
        if not secret:
            raise ConfigurationError("webhook secret not configured")
        if secret.startswith("whsec_"):
            try:
                base64.b64decode(secret.removeprefix("whsec_"), validate=True)
            except binascii.Error as exc:
                raise ConfigurationError(f"webhook secret is not valid base64: {exc}") from exc
        self._secret = secret
        self._tolerance = tolerance_seconds
        # Only the webhooks helper is used; no request is ever sent with this key.
        self._client = OpenAI(api_key="webhook-verification-only", webhook_secret=secret)

    def verify(self, body: bytes, headers: Mapping[str, str]) -> IncomingCallEvent:
        """Return the parsed event or raise ``AuthenticationFailure``."""

        try:
            self._client.webhooks.verify_signature(
                body,
                dict(headers),
                secret=self._secret,
                tolerance=self._tolerance,
            )
        except (InvalidWebhookSignatureError, ValueError) as exc:
            raise AuthenticationFailure(f"verify failed: {exc}") from exc

        try:
            return IncomingCallEvent.model_validate_json(body)
        except ValidationError as exc:
            raise AuthenticationFailure(f"malformed webhook payload: {exc}") from exc
