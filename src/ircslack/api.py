"""Slack Web API gateway: one blocking call per request, no retries."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

import httpx
from loguru import logger

from ircslack import __version__
from ircslack.core.constants import BASE_URL, DEFAULT_TIMEOUT, HttpMethod
from ircslack.core.errors import (
    SlackNotConfiguredError,
    SlackRemoteError,
    SlackTransportError,
)

TokenSource = Callable[[], str]


class SlackClient:
    """Synchronous client for the Slack Web API.

    Every request carries its parameters and ``token=<credential>`` in the
    query string, for POST as well as GET. The token is read from
    ``token_source`` on each call so a changed setting takes effect at once.

    ``call`` returns the decoded payload when Slack answers ``ok: true`` and
    otherwise logs the failure and raises:
      - SlackNotConfiguredError  no token configured (nothing is sent)
      - SlackTransportError      timeout, connection error, HTTP status, bad JSON
      - SlackRemoteError         ``ok: false``; ``code`` is Slack's ``error``
    """

    def __init__(
        self,
        token_source: TokenSource,
        *,
        base_url: str = BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._token_source = token_source
        self._base_url = base_url if base_url.endswith("/") else f"{base_url}/"
        self._timeout = timeout
        self._http = httpx.Client(
            timeout=timeout,
            headers={"User-Agent": f"ircslack/{__version__}", "Accept": "application/json"},
            transport=transport,
            trust_env=True,
        )

    @property
    def token(self) -> str:
        return self._token_source() or ""

    @property
    def enabled(self) -> bool:
        """True when a token is configured."""
        return bool(self.token)

    def close(self) -> None:
        self._http.close()

    def call(
        self,
        method: HttpMethod,
        endpoint: str,
        params: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        token = self.token
        if not token:
            logger.debug("Slack API call {} skipped: no token configured", endpoint)
            raise SlackNotConfiguredError("No Slack token configured", code="not_configured")

        query = {k: _param(v) for k, v in (params or {}).items()}
        query["token"] = token
        url = f"{self._base_url}{endpoint}"

        try:
            resp = self._http.request(method, url, params=query)
        except httpx.TimeoutException as exc:
            logger.error("Error calling the Slack API {}: timed out after {}s", endpoint, self._timeout)
            raise SlackTransportError(
                f"{endpoint} timed out",
                code="timeout",
                details={"endpoint": endpoint},
                original_error=exc,
            ) from exc
        except httpx.HTTPError as exc:
            logger.error("Error calling the Slack API {}: {}", endpoint, exc)
            raise SlackTransportError(
                f"{endpoint} failed: {exc}",
                code="transport",
                details={"endpoint": endpoint},
                original_error=exc,
            ) from exc

        if not resp.is_success:
            logger.error(
                "Error calling the Slack API {}: {} {}",
                endpoint,
                resp.status_code,
                resp.reason_phrase,
            )
            raise SlackTransportError(
                f"{endpoint} returned HTTP {resp.status_code}",
                code="http_status",
                details={
                    "endpoint": endpoint,
                    "status": resp.status_code,
                    "reason": resp.reason_phrase,
                },
            )

        try:
            payload = resp.json()
        except ValueError as exc:
            logger.error("Error calling the Slack API {}: response is not JSON", endpoint)
            raise SlackTransportError(
                f"{endpoint} returned a non-JSON body",
                code="invalid_json",
                details={"endpoint": endpoint},
                original_error=exc,
            ) from exc

        if not isinstance(payload, dict) or not payload.get("ok"):
            error = payload.get("error", "unknown_error") if isinstance(payload, dict) else "unknown_error"
            logger.error("The Slack API returned the following error: {} ({})", error, endpoint)
            raise SlackRemoteError(
                f"{endpoint}: {error}",
                code=str(error),
                details={"endpoint": endpoint},
            )

        return payload


def _param(value: Any) -> str:
    """Render a query value the way the Slack API expects it."""
    if isinstance(value, bool):
        return "1" if value else "0"
    return str(value)
