"""Async HTTP client for the chat API."""

import logging
from typing import Any
from uuid import UUID

import httpx

from app.schemas.chat import (
    ChatSessionDetailResponse,
    ChatSessionListResponse,
    ChatSessionResponse,
    ChatTurnPair,
)
from app.schemas.user import TokenResponse, UserResponse


logger = logging.getLogger(__name__)


class ChatAPIError(Exception):
    """Raised when the API rejects a request or cannot be reached."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        error_code: str | None = None,
        details: Any = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details


class ChatAPIClient:
    """Thin wrapper over the HTTP endpoints returning parsed schemas."""

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:8000",
        token: str | None = None,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 60.0,
    ):
        self._client = http_client or httpx.AsyncClient(base_url=base_url, timeout=timeout)
        self.token = token

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def aclose(self):
        await self._client.aclose()

    def _headers(self) -> dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = await self._client.request(method, path, headers=self._headers(), **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"{method} {path} failed: {str(e)}")
            raise ChatAPIError(f"Request failed: {str(e)}") from e

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.is_error:
            message = body.get("message") if isinstance(body, dict) else None
            raise ChatAPIError(
                message or response.reason_phrase,
                status_code=response.status_code,
                error_code=body.get("error_code") if isinstance(body, dict) else None,
                details=body.get("details") if isinstance(body, dict) else None,
            )
        return body

    async def _data(self, method: str, path: str, **kwargs) -> dict:
        """Unwrap the ``data`` member of a success envelope."""
        body = await self._request(method, path, **kwargs)
        return body["data"]

    # Authentication

    async def sign_up(self, email: str, name: str, password: str) -> UserResponse:
        body = await self._request(
            "POST", "/api/auth/signup", json={"email": email, "name": name, "password": password}
        )
        return UserResponse.model_validate(body)

    async def sign_in(self, email: str, password: str) -> TokenResponse:
        """Sign in and keep the returned token for subsequent requests."""
        body = await self._request("POST", "/api/auth/signin", json={"email": email, "password": password})
        token = TokenResponse.model_validate(body)
        self.token = token.access_token
        return token

    # Sessions

    async def create_session(self) -> ChatSessionResponse:
        return ChatSessionResponse.model_validate(await self._data("POST", "/api/chat/sessions"))

    async def list_sessions(self, limit: int | None = None, cursor: UUID | None = None) -> ChatSessionListResponse:
        params = {}
        if limit is not None:
            params["limit"] = limit
        if cursor is not None:
            params["cursor"] = str(cursor)
        return ChatSessionListResponse.model_validate(await self._data("GET", "/api/chat/sessions", params=params))

    async def get_session(self, session_id: UUID) -> ChatSessionDetailResponse:
        return ChatSessionDetailResponse.model_validate(await self._data("GET", f"/api/chat/sessions/{session_id}"))

    async def send_message(self, session_id: UUID, message: str) -> ChatTurnPair:
        data = await self._data("POST", f"/api/chat/sessions/{session_id}/messages", json={"message": message})
        return ChatTurnPair.model_validate(data)

    async def delete_session(self, session_id: UUID) -> ChatSessionResponse:
        return ChatSessionResponse.model_validate(await self._data("DELETE", f"/api/chat/sessions/{session_id}"))
