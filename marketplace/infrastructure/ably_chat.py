"""Ably pub/sub adapter over the Ably REST API.

Messages are published, and history and presence read, with HTTP basic
auth using the API key. Token requests are signed locally with the key
secret, the same way the Ably client libraries build them, so clients
can exchange them for tokens without the key ever leaving the server.
"""

import base64
import hashlib
import hmac
import json
import secrets
import time
from typing import Any
from urllib.parse import quote

import httpx
import structlog

from marketplace.domain.exceptions import InternalError
from marketplace.domain.repositories import ChatRepository
from marketplace.infrastructure.config import Settings

logger = structlog.get_logger()

MESSAGE_NAME = "message"


class AblyKey:
    """An Ably API key split into its public name and secret."""

    def __init__(self, api_key: str) -> None:
        """Parse ``<app>.<key-id>:<secret>``.

        Raises:
            ValueError: If the key has no secret part.
        """
        name, sep, secret = api_key.partition(":")
        if not sep or not name or not secret:
            raise ValueError("Ably API key must look like '<keyName>:<keySecret>'")
        self.name = name
        self.secret = secret


def create_ably_http_client(settings: Settings, timeout: float = 10.0) -> httpx.AsyncClient:
    """Create the HTTP client used for Ably REST calls."""
    key = AblyKey(settings.ably_api_key)
    return httpx.AsyncClient(
        base_url=settings.ably_rest_url,
        auth=httpx.BasicAuth(key.name, key.secret),
        timeout=timeout,
    )


def sign_token_request(
    key: AblyKey,
    client_id: str,
    capabilities: dict[str, list[str]],
    ttl_ms: int,
    timestamp_ms: int | None = None,
    nonce: str | None = None,
) -> dict[str, Any]:
    """Build a signed Ably token request.

    Args:
        key: API key used for signing.
        client_id: Identity the token is issued to.
        capabilities: Channel name patterns mapped to allowed operations.
        ttl_ms: Requested token lifetime in milliseconds.
        timestamp_ms: Signing time, now by default.
        nonce: Unique nonce, random by default.

    Returns:
        Token request ready to hand to a client library.
    """
    capability = json.dumps(capabilities, separators=(",", ":"))
    timestamp_ms = timestamp_ms if timestamp_ms is not None else int(time.time() * 1000)
    nonce = nonce or secrets.token_hex(16)

    sign_text = "".join(
        f"{part}\n"
        for part in (key.name, ttl_ms, capability, client_id, timestamp_ms, nonce)
    )
    mac = hmac.new(key.secret.encode(), sign_text.encode(), hashlib.sha256).digest()

    return {
        "keyName": key.name,
        "ttl": ttl_ms,
        "capability": capability,
        "clientId": client_id,
        "timestamp": timestamp_ms,
        "nonce": nonce,
        "mac": base64.b64encode(mac).decode(),
    }


def _decode(item: dict[str, Any]) -> dict[str, Any]:
    """Decode the JSON payload of a history or presence item."""
    data = item.get("data")
    if item.get("encoding") == "json" and isinstance(data, str):
        item = {**item, "data": json.loads(data)}
        item.pop("encoding", None)
    return item


class AblyChatRepository(ChatRepository):
    """ChatRepository backed by the Ably REST API."""

    def __init__(self, http_client: httpx.AsyncClient, api_key: str) -> None:
        """Initialize adapter.

        Args:
            http_client: Client with Ably base URL and basic auth configured.
            api_key: API key used to sign token requests.
        """
        self.http_client = http_client
        self.key = AblyKey(api_key)

    async def publish_message(self, channel: str, data: dict[str, Any]) -> None:
        """Publish a JSON payload on a channel.

        Raises:
            InternalError: If Ably cannot be reached or rejects the message.
        """
        await self._request(
            "POST",
            f"/channels/{quote(channel, safe='')}/messages",
            json={"name": MESSAGE_NAME, "data": data},
        )
        logger.debug("Published chat message", channel=channel)

    async def generate_token_request(
        self, client_id: str, capabilities: dict[str, list[str]], ttl_ms: int
    ) -> dict[str, Any]:
        return sign_token_request(self.key, client_id, capabilities, ttl_ms)

    async def get_channel_history(self, channel: str, limit: int = 50) -> list[dict[str, Any]]:
        """Get recent messages of a channel, newest first."""
        response = await self._request(
            "GET",
            f"/channels/{quote(channel, safe='')}/messages",
            params={"limit": limit},
        )
        return [_decode(item) for item in response.json()]

    async def get_presence(self, channel: str) -> list[dict[str, Any]]:
        """Get members currently present on a channel."""
        response = await self._request("GET", f"/channels/{quote(channel, safe='')}/presence")
        return [_decode(item) for item in response.json()]

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self.http_client.request(method, url, **kwargs)
        except httpx.RequestError as e:
            logger.error("Ably request failed", method=method, url=url, error=str(e))
            raise InternalError(f"Chat service unavailable: {e}") from e

        if response.status_code >= 400:
            logger.error(
                "Ably request rejected",
                method=method,
                url=url,
                status_code=response.status_code,
                body=response.text,
            )
            raise InternalError(
                "Chat service rejected the request",
                details={"status_code": response.status_code},
            )
        return response
