from __future__ import annotations

import json

import httpx
import pytest

from conftest import json_response, make_api
from desktop.workspace_chat.core.errors import (
    AUTH_FAILED_MESSAGE,
    CONNECTIVITY_MESSAGE,
    NOT_FOUND_MESSAGE,
    SERVER_ERROR_MESSAGE,
    NetworkError,
    ParseError,
    ServerError,
    user_message_for,
)
from desktop.workspace_chat.services.schemas import ChatMode, ChatRequest


@pytest.mark.asyncio
async def test_chat_posts_payload_with_bearer_auth() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return json_response({"textResponse": "Hi there", "sources": []})

    api = make_api(handler)
    try:
        response = await api.chat(ChatRequest("Hello", ChatMode.CHAT, "chat-session-1234abcd"))
    finally:
        await api.close()

    assert response.text_response == "Hi there"
    request = seen[0]
    assert request.method == "POST"
    assert str(request.url) == "http://llm.test/api/v1/workspace/demo/chat"
    assert request.headers["Authorization"] == "Bearer secret-key"
    assert request.headers["Content-Type"] == "application/json"
    assert request.headers["Accept"] == "application/json"
    assert json.loads(request.content) == {
        "message": "Hello",
        "mode": "chat",
        "sessionId": "chat-session-1234abcd",
        "attachments": [],
        "reset": False,
    }


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("status_code", "expected"),
    [
        (401, AUTH_FAILED_MESSAGE),
        (404, NOT_FOUND_MESSAGE),
        (500, SERVER_ERROR_MESSAGE),
        (503, SERVER_ERROR_MESSAGE),
        (400, CONNECTIVITY_MESSAGE),
    ],
)
async def test_error_status_raises_server_error(status_code: int, expected: str) -> None:
    api = make_api(lambda request: httpx.Response(status_code, text="nope"))
    try:
        with pytest.raises(ServerError) as info:
            await api.chat(ChatRequest("Hello", ChatMode.CHAT, "s"))
    finally:
        await api.close()
    assert info.value.status_code == status_code
    assert info.value.body == "nope"
    assert user_message_for(info.value) == expected


@pytest.mark.asyncio
async def test_timeout_maps_to_network_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    api = make_api(handler)
    try:
        with pytest.raises(NetworkError) as info:
            await api.chat(ChatRequest("Hello", ChatMode.CHAT, "s"))
    finally:
        await api.close()
    assert user_message_for(info.value) == CONNECTIVITY_MESSAGE


@pytest.mark.asyncio
async def test_connect_error_maps_to_network_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    api = make_api(handler)
    try:
        with pytest.raises(NetworkError):
            await api.test_connection()
    finally:
        await api.close()


@pytest.mark.asyncio
@pytest.mark.parametrize("body", ["<html>oops</html>", "[1, 2]"])
async def test_unparseable_body_raises_parse_error(body: str) -> None:
    api = make_api(lambda request: httpx.Response(200, text=body))
    try:
        with pytest.raises(ParseError) as info:
            await api.chat(ChatRequest("Hello", ChatMode.CHAT, "s"))
    finally:
        await api.close()
    assert info.value.raw == body


@pytest.mark.asyncio
async def test_connection_check_uses_query_mode() -> None:
    payloads: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        payloads.append(json.loads(request.content))
        return json_response({"textResponse": "pong"})

    api = make_api(handler)
    try:
        await api.test_connection()
    finally:
        await api.close()
    assert payloads[0]["message"] == "Hello"
    assert payloads[0]["mode"] == "query"
    assert payloads[0]["sessionId"] == "test-session-id"


@pytest.mark.asyncio
async def test_list_workspaces() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "GET"
        assert request.url.path == "/api/v1/workspaces"
        return json_response({"workspaces": [{"slug": "demo"}]})

    api = make_api(handler)
    try:
        assert await api.list_workspaces() == {"workspaces": [{"slug": "demo"}]}
    finally:
        await api.close()


def test_response_parsing_rules() -> None:
    from desktop.workspace_chat.services.schemas import ChatResponse

    assert ChatResponse.from_json('{"textResponse": null}').text_or("fallback") == "fallback"
    assert ChatResponse.from_json('{"textResponse": "  "}').text_or("fallback") == "fallback"
    assert ChatResponse.from_json("{}").text_response is None
    assert ChatResponse.from_json('{"textResponse": 42}').text_response == "42"
