from __future__ import annotations
# BuildHerald - Build Result Notifier
# Copyright (C) 2026 BuildHerald Authors
# SPDX-License-Identifier: Apache-2.0

"""Message delivery to the messaging service.

``Dispatcher`` is the single "send to stream+topic" primitive the
notifier depends on.  ``ZulipTransport`` implements it over the Zulip
REST API with httpx.
"""

import logging
from abc import ABC, abstractmethod

import httpx

from core.config.models import ZulipCredentials
from core.exceptions import TransportError

logger = logging.getLogger("buildherald.notification.transport")

USER_AGENT = "BuildHerald/0.1"
DEFAULT_TIMEOUT = 30.0


# ── Abstract base ───────────────────────────────────────────


class Dispatcher(ABC):
    """Sends one composed message.  No retries."""

    @property
    @abstractmethod
    def transport_type(self) -> str:
        """Return the transport identifier (e.g. 'zulip')."""

    @abstractmethod
    def send(
        self,
        credentials: ZulipCredentials,
        stream: str,
        topic: str,
        message: str,
    ) -> bool:
        """Deliver *message*.  Returns False if the service rejected it.

        Raises ``TransportError`` when the service could not be reached.
        """


# ── Factory ─────────────────────────────────────────────────

_TRANSPORT_REGISTRY: dict[str, type[Dispatcher]] = {}


def register_transport(transport_type: str):
    """Decorator to register a transport implementation."""
    def decorator(cls: type[Dispatcher]):
        _TRANSPORT_REGISTRY[transport_type] = cls
        return cls
    return decorator


def create_transport(transport_type: str = "zulip", **kwargs) -> Dispatcher:
    cls = _TRANSPORT_REGISTRY.get(transport_type)
    if cls is None:
        raise ValueError(f"Unknown transport type: {transport_type}")
    return cls(**kwargs)


# ── Zulip ───────────────────────────────────────────────────


def api_url(credentials: ZulipCredentials, path: str) -> str:
    """Join the configured API base URL and *path*."""
    return f"{credentials.url.rstrip('/')}/v1/{path.lstrip('/')}"


@register_transport("zulip")
class ZulipTransport(Dispatcher):
    """Post stream messages through the Zulip REST API.

    ``credentials.url`` is the API base, e.g. ``https://chat.example.com/api``.
    Authentication is HTTP basic with the bot e-mail and API key.
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT) -> None:
        self._timeout = timeout

    @property
    def transport_type(self) -> str:
        return "zulip"

    def send(
        self,
        credentials: ZulipCredentials,
        stream: str,
        topic: str,
        message: str,
    ) -> bool:
        url = api_url(credentials, "messages")
        data = {
            "type": "stream",
            "to": stream,
            "topic": topic,
            "content": message,
        }
        try:
            with httpx.Client(timeout=self._timeout, headers={"User-Agent": USER_AGENT}) as client:
                resp = client.post(
                    url,
                    data=data,
                    auth=(credentials.email, credentials.api_key),
                )
        except httpx.HTTPError as e:
            raise TransportError(f"Zulip request failed: {e}") from e

        if resp.status_code >= 400:
            logger.error(
                "Zulip rejected message to %s > %s: HTTP %d %s",
                stream, topic, resp.status_code, _error_detail(resp),
            )
            return False

        body = _json_or_empty(resp)
        if body.get("result", "success") != "success":
            logger.error("Zulip rejected message to %s > %s: %s", stream, topic, body.get("msg", "unknown"))
            return False

        logger.info("Zulip message sent: %s > %s", stream, topic)
        return True

    def check_connection(self, credentials: ZulipCredentials) -> str:
        """Verify the credentials.  Returns the bot's full name.

        Raises ``TransportError`` with a readable reason on failure.
        """
        url = api_url(credentials, "users/me")
        try:
            with httpx.Client(timeout=self._timeout, headers={"User-Agent": USER_AGENT}) as client:
                resp = client.get(url, auth=(credentials.email, credentials.api_key))
        except httpx.HTTPError as e:
            raise TransportError(f"Zulip request failed: {e}") from e

        if resp.status_code >= 400:
            raise TransportError(
                f"Zulip answered HTTP {resp.status_code}: {_error_detail(resp)}",
                status_code=resp.status_code,
            )
        body = _json_or_empty(resp)
        return str(body.get("full_name") or credentials.email)


def _json_or_empty(resp: httpx.Response) -> dict:
    try:
        body = resp.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def _error_detail(resp: httpx.Response) -> str:
    return str(_json_or_empty(resp).get("msg") or resp.reason_phrase)
