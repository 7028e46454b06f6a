# app/client.py
"""
Async HTTP client for the campus tour API.

Auth state lives in an explicit `AuthSession` handed to the client, so two
clients never share a token by accident. The server stays the only
authority: role helpers here are for UI decisions, not access control.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

import httpx
from loguru import logger


class ApiError(Exception):
    def __init__(self, message: str, status_code: int, errors: Optional[list] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.errors = errors or []


@dataclass
class AuthSession:
    token: Optional[str] = None
    user: Optional[dict[str, Any]] = field(default=None)

    @property
    def role(self) -> Optional[str]:
        return (self.user or {}).get("role")

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    @property
    def is_super_admin(self) -> bool:
        return self.is_authenticated and self.role == "superAdmin"

    @property
    def is_department_admin(self) -> bool:
        return self.is_authenticated and self.role == "departmentAdmin"

    @property
    def is_admin(self) -> bool:
        return self.is_super_admin or self.is_department_admin

    def clear(self) -> None:
        self.token = None
        self.user = None


class CampusClient:
    def __init__(
        self,
        base_url: str,
        session: Optional[AuthSession] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 10.0,
    ):
        self.session = session if session is not None else AuthSession()
        self._http = httpx.AsyncClient(base_url=base_url, transport=transport, timeout=timeout)

    async def __aenter__(self) -> "CampusClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    # ------------------------------------------------------------
    # TRANSPORT
    # ------------------------------------------------------------
    def _headers(self) -> dict[str, str]:
        if self.session.token:
            return {"Authorization": f"Bearer {self.session.token}"}
        return {}

    async def request(self, method: str, path: str, **kwargs) -> Any:
        response = await self._http.request(method, path, headers=self._headers(), **kwargs)

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.status_code == 401:
            # stale or revoked token; force a fresh login
            self.session.clear()

        if response.is_error or body.get("success") is False:
            message = body.get("message") or response.reason_phrase
            logger.debug(f"{method} {path} failed with {response.status_code}: {message}")
            raise ApiError(message, response.status_code, body.get("errors"))

        return body.get("data") if "data" in body else body

    async def get(self, path: str, params: Optional[dict] = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json: Any = None, **kwargs) -> Any:
        return await self.request("POST", path, json=json, **kwargs)

    async def put(self, path: str, json: Any = None) -> Any:
        return await self.request("PUT", path, json=json)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)

    # ------------------------------------------------------------
    # AUTH
    # ------------------------------------------------------------
    async def login(self, email: str, password: str) -> dict[str, Any]:
        data = await self.post("/api/auth/login", json={"email": email, "password": password})
        self.session.token = data["token"]
        self.session.user = data["user"]
        return data["user"]

    async def logout(self) -> None:
        try:
            if self.session.is_authenticated:
                await self.post("/api/auth/logout")
        finally:
            self.session.clear()

    async def profile(self) -> dict[str, Any]:
        user = await self.get("/api/auth/profile")
        self.session.user = user
        return user
