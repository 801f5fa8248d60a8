"""
Upstream HTTP forwarding. Split out of the router so it can be stubbed in tests.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any

import httpx

from simgate.config.settings import Settings
from simgate.core.errors import UpstreamError
from simgate.util.logger import logger

_ERROR_DETAIL_MAX_CHARS = 600


class UpstreamClient:
    """Owns one pooled ``httpx.AsyncClient`` per app, created on first use."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._client: httpx.AsyncClient | None = None
        self._lock: asyncio.Lock | None = None

    def _limits(self) -> httpx.Limits:
        return httpx.Limits(
            max_connections=max(10, int(self._settings.upstream_max_connections)),
            max_keepalive_connections=max(5, int(self._settings.upstream_max_keepalive_connections)),
        )

    def _timeout(self) -> httpx.Timeout:
        timeout = float(self._settings.upstream_timeout_seconds)
        return httpx.Timeout(connect=timeout, read=timeout, write=timeout, pool=timeout)

    async def get(self) -> httpx.AsyncClient:
        if self._client is not None:
            return self._client
        if self._lock is None:
            self._lock = asyncio.Lock()
        async with self._lock:
            if self._client is None:
                self._client = httpx.AsyncClient(
                    http2=False,
                    timeout=self._timeout(),
                    limits=self._limits(),
                )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


def _decode_json_or_text(body: bytes) -> dict[str, Any] | str:
    text = body.decode("utf-8", errors="replace")
    if not text:
        return ""
    try:
        parsed = json.loads(text)
        if isinstance(parsed, dict):
            return parsed
        return text
    except json.JSONDecodeError:
        return text


def _safe_error_detail(payload: dict[str, Any] | str) -> str:
    if isinstance(payload, str):
        return payload[:_ERROR_DETAIL_MAX_CHARS]
    if isinstance(payload.get("error"), str):
        return payload["error"][:_ERROR_DETAIL_MAX_CHARS]
    return json.dumps(payload, ensure_ascii=False)[:_ERROR_DETAIL_MAX_CHARS]


async def _forward_json(upstream: UpstreamClient, url: str, payload: dict[str, Any]) -> tuple[int, dict[str, Any] | str]:
    body = json.dumps(payload, ensure_ascii=False).encode("utf-8")
    logger.debug("forward_json start url=%s payload_bytes=%d", url, len(body))
    client = await upstream.get()
    try:
        response = await client.post(url=url, content=body, headers={"Content-Type": "application/json"})
        logger.debug("forward_json done url=%s status=%s", url, response.status_code)
        return response.status_code, _decode_json_or_text(response.content)
    except httpx.HTTPError as exc:
        detail = (str(exc) or "").strip() or "connection_failed_or_timeout"
        logger.warning("forward_json http_error url=%s error=%s", url, detail)
        raise UpstreamError(502, f"upstream_unreachable: {detail}") from exc


def _raise_for_upstream_status(status_code: int, body: dict[str, Any] | str) -> None:
    """Non-2xx keeps the upstream's own status code."""
    if 200 <= status_code < 300:
        return
    detail = _safe_error_detail(body)
    logger.warning("upstream error status=%s detail=%s", status_code, detail)
    status = status_code if status_code >= 400 else 502
    raise UpstreamError(status, f"Upstream API error: {status_code}", detail=detail)


def _require_json_object(body: dict[str, Any] | str) -> dict[str, Any]:
    if isinstance(body, dict):
        return body
    detail = _safe_error_detail(body)
    logger.warning("upstream returned non-object body detail=%s", detail)
    raise UpstreamError(502, "Upstream API error: invalid response body", detail=detail)
