import asyncio
import json

from simgate.adapters.openai_compat.mapper import to_chat_chunks
from simgate.adapters.openai_compat.stream_utils import (
    _build_streaming_response,
    _replay_chunks,
    _sse_chunk,
    _stream_done_sse_chunk,
)


def _frame_payload(frame: bytes) -> str:
    text = frame.decode("utf-8")
    assert text.startswith("data: ")
    assert text.endswith("\n\n")
    return text[len("data: "):-2]


def test_sse_chunk_framing():
    frame = _sse_chunk({"content": "héllo"})
    assert json.loads(_frame_payload(frame)) == {"content": "héllo"}
    assert _stream_done_sse_chunk() == b"data: [DONE]\n\n"


def test_replay_chunks_emits_chunks_then_done_and_stops():
    chunks = to_chat_chunks("Hello", "websim-chat", "chatcmpl-1", 1)

    async def collect() -> list[bytes]:
        return [frame async for frame in _replay_chunks(chunks)]

    frames = asyncio.run(collect())
    assert len(frames) == 3
    payloads = [_frame_payload(frame) for frame in frames]
    assert payloads[2] == "[DONE]"
    assert json.loads(payloads[0])["choices"][0]["delta"]["content"] == "Hello"
    assert json.loads(payloads[1])["choices"][0]["finish_reason"] == "stop"


def test_build_streaming_response_headers():
    response = _build_streaming_response(iter([b"data: [DONE]\n\n"]))
    assert response.media_type == "text/event-stream"
    assert response.headers["cache-control"] == "no-cache"
    assert response.headers["connection"] == "keep-alive"
