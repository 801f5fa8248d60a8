from simgate.adapters.openai_compat.mapper import (
    extract_chat_content,
    new_completion_id,
    size_to_aspect_ratio,
    to_chat_chunks,
    to_chat_response,
    to_image_response,
    to_model_list,
    to_upstream_chat,
    to_upstream_image,
)
from simgate.core.registry import MODALITY_CHAT, MODALITY_IMAGE, ModelEntry


CHAT = ModelEntry("websim-chat", MODALITY_CHAT, "chat-proj", "https://u.example.com/chat")
IMAGE = ModelEntry("websim-image", MODALITY_IMAGE, "img-proj", "https://u.example.com/img")


def test_size_to_aspect_ratio_table_and_fallback():
    assert size_to_aspect_ratio("1024x1024") == "1:1"
    assert size_to_aspect_ratio("1792x1024") == "16:9"
    assert size_to_aspect_ratio("1024x1792") == "9:16"
    assert size_to_aspect_ratio("256x256") == "1:1"
    assert size_to_aspect_ratio(None) == "1:1"
    assert size_to_aspect_ratio(1024) == "1:1"


def test_to_upstream_chat_drops_unsupported_fields():
    payload = {"model": "websim-chat", "messages": [{"role": "user", "content": "hi"}], "temperature": 0.1, "stream": True}
    assert to_upstream_chat(CHAT, payload) == {
        "project_id": "chat-proj",
        "messages": [{"role": "user", "content": "hi"}],
    }


def test_to_upstream_image_maps_size():
    payload = {"model": "websim-image", "prompt": "a cat", "size": "1024x1792", "n": 2}
    assert to_upstream_image(IMAGE, payload) == {
        "project_id": "img-proj",
        "prompt": "a cat",
        "aspect_ratio": "9:16",
    }


def test_extract_chat_content():
    assert extract_chat_content({"content": "\n  Hello  \t"}) == "Hello"
    assert extract_chat_content({"content": None}) == ""
    assert extract_chat_content({}) == ""


def test_to_chat_response_shape():
    out = to_chat_response("Hello", "websim-chat", "chatcmpl-1", 1700000000)
    assert out["id"] == "chatcmpl-1"
    assert out["object"] == "chat.completion"
    assert out["created"] == 1700000000
    assert out["choices"] == [
        {"index": 0, "message": {"role": "assistant", "content": "Hello"}, "finish_reason": "stop"}
    ]
    assert set(out["usage"]) == {"prompt_tokens", "completion_tokens", "total_tokens"}
    assert all(value is None for value in out["usage"].values())


def test_to_chat_chunks_share_identity():
    first, last = to_chat_chunks("Hello world", "websim-chat", "chatcmpl-2", 1700000001)
    for chunk in (first, last):
        assert chunk["id"] == "chatcmpl-2"
        assert chunk["created"] == 1700000001
        assert chunk["model"] == "websim-chat"
        assert chunk["object"] == "chat.completion.chunk"
    assert first["choices"][0]["delta"]["content"] == "Hello world"
    assert first["choices"][0]["finish_reason"] is None
    assert last["choices"][0] == {"index": 0, "delta": {}, "finish_reason": "stop"}


def test_to_image_response_and_model_list():
    assert to_image_response({"url": "https://cdn/x.png"}, 5) == {"created": 5, "data": [{"url": "https://cdn/x.png"}]}
    listing = to_model_list([CHAT, IMAGE], 7)
    assert listing["object"] == "list"
    assert listing["data"][1] == {"id": "websim-image", "object": "model", "created": 7, "owned_by": "user"}


def test_new_completion_id_is_unique():
    first, second = new_completion_id(), new_completion_id()
    assert first.startswith("chatcmpl-")
    assert first != second
