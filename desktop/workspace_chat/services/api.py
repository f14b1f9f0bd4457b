"""HTTP client used to talk to the workspace chat API."""

from __future__ import annotations

from typing import Any

import httpx

from ..config.settings import ChatConfig
from ..core.errors import NetworkError, ParseError, ServerError
from ..core.logger import get_logger
from .schemas import ChatMode, ChatRequest, ChatResponse

LOGGER = get_logger("api")

DEFAULT_TIMEOUT = 30.0
TEST_SESSION_ID = "test-session-id"


class WorkspaceAPI:
    """Async client for one workspace of the remote chat service."""

    def __init__(
        self,
        config: ChatConfig,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._client = httpx.AsyncClient(
            base_url=config.base_url,
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    @property
    def chat_path(self) -> str:
        return f"/v1/workspace/{self.config.workspace_slug}/chat"

    async def chat(self, request: ChatRequest) -> ChatResponse:
        """POST a chat request and parse the reply."""
        payload = request.to_payload()
        LOGGER.debug("Sending payload to %s: %s", self.config.chat_url, payload)
        response = await self._send("POST", self.chat_path, json=payload)
        LOGGER.debug("Raw response: %s", response.text)
        return ChatResponse.from_json(response.text)

    async def test_connection(self) -> ChatResponse:
        """Send a fixed query-mode message to check URL, slug and key."""
        request = ChatRequest(message="Hello", mode=ChatMode.QUERY, session_id=TEST_SESSION_ID)
        return await self.chat(request)

    async def list_workspaces(self) -> Any:
        """Return the workspaces visible to the API key."""
        response = await self._send("GET", "/v1/workspaces")
        try:
            return response.json()
        except ValueError as exc:
            raise ParseError("Workspace list is not JSON", raw=response.text) from exc

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "Authorization": f"Bearer {self.config.api_key}",
        }

    async def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.request(method, path, headers=self._headers(), **kwargs)
        except httpx.TimeoutException as exc:
            raise NetworkError(f"Timeout while calling {path}") from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise NetworkError(f"Request to {path} failed: {exc}") from exc
        if response.is_error:
            LOGGER.error(
                "API request failed: %s %s -> %s | %s",
                method,
                path,
                response.status_code,
                response.text,
            )
            raise ServerError(response.status_code, response.text)
        return response
