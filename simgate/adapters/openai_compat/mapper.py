"""OpenAI <-> websim payload mapping."""

from __future__ import annotations

import time
import uuid
from typing import Any

from simgate.core.registry import ModelEntry


# DALL-E 3 sizes; anything else is square
_SIZE_TO_ASPECT_RATIO = {
    "1024x1024": "1:1",
    "1792x1024": "16:9",
    "1024x1792": "9:16",
}
DEFAULT_ASPECT_RATIO = "1:1"


def now_ts() -> int:
    return int(time.time())


def new_completion_id() -> str:
    return f"chatcmpl-{uuid.uuid4()}"


def size_to_aspect_ratio(size: Any) -> str:
    if not isinstance(size, str):
        return DEFAULT_ASPECT_RATIO
    return _SIZE_TO_ASPECT_RATIO.get(size.strip(), DEFAULT_ASPECT_RATIO)


def to_upstream_chat(entry: ModelEntry, payload: dict[str, Any]) -> dict[str, Any]:
    # temperature, max_tokens etc. are not accepted upstream
    return {
        "project_id": entry.project_id,
        "messages": payload.get("messages"),
    }


def to_upstream_image(entry: ModelEntry, payload: dict[str, Any]) -> dict[str, Any]:
    return {
        "project_id": entry.project_id,
        "prompt": payload.get("prompt"),
        "aspect_ratio": size_to_aspect_ratio(payload.get("size")),
    }


def extract_chat_content(upstream_body: dict[str, Any]) -> str:
    content = upstream_body.get("content")
    if content is None:
        return ""
    return str(content).strip()


def to_chat_response(content: str, model: str, completion_id: str, created: int) -> dict[str, Any]:
    return {
        "id": completion_id,
        "object": "chat.completion",
        "created": created,
        "model": model,
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
        "usage": {"prompt_tokens": None, "completion_tokens": None, "total_tokens": None},
    }


def to_chat_chunks(content: str, model: str, completion_id: str, created: int) -> list[dict[str, Any]]:
    """Content chunk carrying the whole reply, then the terminal stop chunk."""
    base = {
        "id": completion_id,
        "object": "chat.completion.chunk",
        "created": created,
        "model": model,
    }
    return [
        {
            **base,
            "choices": [
                {
                    "index": 0,
                    "delta": {"role": "assistant", "content": content},
                    "finish_reason": None,
                }
            ],
        },
        {
            **base,
            "choices": [{"index": 0, "delta": {}, "finish_reason": "stop"}],
        },
    ]


def to_image_response(upstream_body: dict[str, Any], created: int) -> dict[str, Any]:
    return {
        "created": created,
        "data": [{"url": upstream_body.get("url")}],
    }


def to_model_list(entries: list[ModelEntry], created: int) -> dict[str, Any]:
    return {
        "object": "list",
        "data": [
            {
                "id": entry.public_id,
                "object": "model",
                "created": created,
                "owned_by": "user",
            }
            for entry in entries
        ],
    }
