"""Discord webhook sink: POSTs payloads to a webhook execute URL.

One attempt per payload.  Failures surface as ``DestinationDeliveryError``
and are never retried here.
"""

from __future__ import annotations

import logging

import httpx

from cvnadvanced.errors import ConfigurationError, DestinationDeliveryError
from cvnadvanced.formats import Payload
from cvnadvanced.models.payloads import DiscordPayload

logger = logging.getLogger(__name__)

WEBHOOK_BASE = "https://discord.com/api/webhooks"


class DiscordWebhookSink:
    """Delivers ``DiscordPayload`` objects to one webhook.

    Parameters
    ----------
    name:
        Transport name, used in logs and delivery errors.
    webhook_id, token:
        Webhook credentials.  Both are required.
    client:
        Shared ``httpx.Client``.  When omitted the sink owns a private
        client and closes it in ``close()``.
    timeout:
        Per-request timeout in seconds for a privately owned client.
    username:
        Optional display name override applied to every payload.
    """

    def __init__(
        self,
        name: str,
        webhook_id: str,
        token: str,
        *,
        client: httpx.Client | None = None,
        timeout: float = 10.0,
        username: str | None = None,
    ) -> None:
        if not webhook_id or not token:
            raise ConfigurationError(
                f"Transport {name!r}: invalid or missing webhook configuration"
            )
        self._name = name
        self._url = f"{WEBHOOK_BASE}/{webhook_id}/{token}"
        self._username = username
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=httpx.Timeout(timeout))

    @property
    def sink_name(self) -> str:
        return self._name

    @property
    def url(self) -> str:
        return self._url

    def deliver(self, payload: Payload) -> None:
        if not isinstance(payload, DiscordPayload):
            raise DestinationDeliveryError(
                self._name, f"cannot post {type(payload).__name__} to a webhook"
            )
        if self._username and not payload.username:
            payload = payload.model_copy(update={"username": self._username})
        try:
            response = self._client.post(self._url, json=payload.to_json())
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise DestinationDeliveryError(
                self._name, f"webhook returned HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise DestinationDeliveryError(self._name, str(exc)) from exc
        logger.debug("DiscordWebhookSink %s: delivered payload", self._name)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()
