"""OpenAI-compatible routes."""

from __future__ import annotations

import hmac
import json
import logging
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from simgate.adapters.openai_compat.mapper import (
    extract_chat_content,
    new_completion_id,
    now_ts,
    to_chat_chunks,
    to_chat_response,
    to_image_response,
    to_model_list,
    to_upstream_chat,
    to_upstream_image,
)
from simgate.adapters.openai_compat.stream_utils import _build_streaming_response, _replay_chunks
from simgate.adapters.openai_compat.upstream import (
    UpstreamClient,
    _forward_json,
    _raise_for_upstream_status,
    _require_json_object,
)
from simgate.config.settings import Settings
from simgate.core.errors import BadRequest, ModelNotFound, Unauthorized
from simgate.core.registry import MODALITY_CHAT, MODALITY_IMAGE, ModelRegistry
from simgate.observability.logging import log_event
from simgate.util.logger import logger


router = APIRouter()

_DEBUG_REQUEST_BODY_MAX_CHARS = 32000
_DEBUG_HEADERS_REDACT = frozenset({"authorization", "cookie", "proxy-authorization"})


def _settings(request: Request) -> Settings:
    return request.app.state.settings


def _registry(request: Request) -> ModelRegistry:
    return request.app.state.registry


def _upstream(request: Request) -> UpstreamClient:
    return request.app.state.upstream


def _should_stream(payload: dict[str, Any]) -> bool:
    return bool(payload.get("stream") is True)


def _check_bearer(request: Request, settings: Settings) -> None:
    if not settings.api_key:
        return
    presented = request.headers.get("authorization", "")
    expected = f"Bearer {settings.api_key}"
    if not hmac.compare_digest(presented.encode("utf-8"), expected.encode("utf-8")):
        logger.warning("auth rejected path=%s header_present=%s", request.url.path, bool(presented))
        raise Unauthorized()


async def _read_json_object(request: Request) -> dict[str, Any]:
    try:
        payload = await request.json()
    except ValueError as exc:
        raise BadRequest("Invalid JSON body") from exc
    if not isinstance(payload, dict):
        raise BadRequest("Request body must be a JSON object")
    return payload


def _log_request_if_debug(request: Request, payload: dict[str, Any], route: str, settings: Settings) -> None:
    """At DEBUG log method/path/redacted headers; the body only when log_full_request_body is on, in segments."""
    if not logger.isEnabledFor(logging.DEBUG):
        return
    headers_safe = {}
    for k, v in request.headers.items():
        key_lower = k.lower()
        if key_lower in _DEBUG_HEADERS_REDACT or "key" in key_lower or "secret" in key_lower or "token" in key_lower:
            headers_safe[k] = "***"
        else:
            headers_safe[k] = v
    try:
        body_str = json.dumps(payload, ensure_ascii=False, indent=2)
    except (TypeError, ValueError):
        body_str = str(payload)
    total_len = len(body_str)
    logger.debug(
        "incoming request method=%s path=%s route=%s headers=%s body_size=%d",
        request.method,
        request.url.path,
        route,
        headers_safe,
        total_len,
    )
    if not settings.log_full_request_body:
        return
    offset = 0
    segment = 0
    while offset < total_len:
        chunk = body_str[offset : offset + _DEBUG_REQUEST_BODY_MAX_CHARS]
        segment += 1
        logger.debug(
            "incoming request body segment %d (chars %d-%d of %d):\n%s",
            segment,
            offset + 1,
            min(offset + _DEBUG_REQUEST_BODY_MAX_CHARS, total_len),
            total_len,
            chunk,
        )
        offset += _DEBUG_REQUEST_BODY_MAX_CHARS


@router.get("/models")
async def list_models(request: Request) -> JSONResponse:
    return JSONResponse(content=to_model_list(_registry(request).list_all(), now_ts()))


@router.post("/chat/completions")
async def chat_completions(request: Request):
    settings = _settings(request)
    _check_bearer(request, settings)
    payload = await _read_json_object(request)
    _log_request_if_debug(request, payload, "/v1/chat/completions", settings)

    model = payload.get("model")
    entry = _registry(request).lookup(model, MODALITY_CHAT)
    if entry is None:
        raise ModelNotFound(f"Chat model not found: {model}")

    status_code, body = await _forward_json(_upstream(request), entry.api_url, to_upstream_chat(entry, payload))
    _raise_for_upstream_status(status_code, body)
    content = extract_chat_content(_require_json_object(body))

    completion_id = new_completion_id()
    created = now_ts()
    stream = _should_stream(payload)
    log_event("chat_completion", "/v1/chat/completions", model=entry.public_id, stream=stream, content_chars=len(content))
    if stream:
        chunks = to_chat_chunks(content, entry.public_id, completion_id, created)
        return _build_streaming_response(_replay_chunks(chunks))
    return JSONResponse(content=to_chat_response(content, entry.public_id, completion_id, created))


@router.post("/images/generations")
async def image_generations(request: Request) -> JSONResponse:
    settings = _settings(request)
    _check_bearer(request, settings)
    payload = await _read_json_object(request)
    _log_request_if_debug(request, payload, "/v1/images/generations", settings)

    model = payload.get("model")
    entry = _registry(request).lookup(model, MODALITY_IMAGE)
    if entry is None:
        raise ModelNotFound(f"Image model not found: {model}")

    upstream_payload = to_upstream_image(entry, payload)
    status_code, body = await _forward_json(_upstream(request), entry.api_url, upstream_payload)
    _raise_for_upstream_status(status_code, body)
    output = to_image_response(_require_json_object(body), now_ts())

    log_event("image_generation", "/v1/images/generations", model=entry.public_id, aspect_ratio=upstream_payload["aspect_ratio"])
    return JSONResponse(content=output)
