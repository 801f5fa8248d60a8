"""
SSE frame building. The upstream never streams, so a finished reply is replayed
as one content chunk, one stop chunk and the [DONE] marker.
"""

from __future__ import annotations

import json
from typing import Any, AsyncIterable, Iterable

from fastapi.responses import StreamingResponse


def _sse_chunk(payload: dict[str, Any]) -> bytes:
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n".encode("utf-8")


def _stream_done_sse_chunk() -> bytes:
    return b"data: [DONE]\n\n"


async def _replay_chunks(chunks: list[dict[str, Any]]):
    for chunk in chunks:
        yield _sse_chunk(chunk)
    yield _stream_done_sse_chunk()


def _build_streaming_response(generator: Iterable[bytes] | AsyncIterable[bytes]) -> StreamingResponse:
    return StreamingResponse(
        generator,
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
