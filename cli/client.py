"""
HTTP client for the complaint portal API

Every response is the envelope {"status", "message"?, "data"?, "errors"?};
PortalClient returns `data` on success and raises PortalAPIError otherwise.
"""

from typing import Any, Dict, List, Optional

import httpx


class PortalAPIError(Exception):
    """Non-2xx response or a transport failure"""

    def __init__(self, status_code: int, message: str, errors: Optional[Dict[str, List[str]]] = None):
        self.status_code = status_code
        self.message = message
        self.errors = errors or {}
        super().__init__(f"{status_code}: {message}")


class PortalClient:
    """Thin async wrapper over the /api/v1 endpoints the CLI needs"""

    def __init__(
        self,
        api_base_url: str,
        token: Optional[str] = None,
        timeout: float = 30,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_base_url = api_base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            async with httpx.AsyncClient(
                base_url=self.api_base_url,
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                response = await client.request(method, path, headers=self._headers(), **kwargs)
        except httpx.ConnectError as e:
            raise PortalAPIError(0, "Cannot connect to server. Is the backend running?") from e
        except httpx.TimeoutException as e:
            raise PortalAPIError(0, "Request timed out") from e

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.is_error:
            raise PortalAPIError(
                response.status_code,
                body.get("message") or response.reason_phrase,
                body.get("errors"),
            )
        return body.get("data")

    # ==================== Auth ====================

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        """Returns {"access_token", "refresh_token", "user"}"""
        data = await self._request("POST", "/login", json={"email": email, "password": password})
        self.token = data["access_token"]
        return data

    async def logout(self) -> None:
        await self._request("POST", "/logout")

    async def current_user(self) -> Dict[str, Any]:
        return await self._request("GET", "/user")

    # ==================== Complaints ====================

    async def track(self, registration_number: str) -> Dict[str, Any]:
        return await self._request(
            "POST", "/complaints/track",
            json={"registration_number": registration_number.strip()}
        )

    async def complaints(
        self,
        page: int = 1,
        status: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Dict[str, Any]:
        params: Dict[str, Any] = {"page": page}
        if status:
            params["status"] = status
        if search:
            params["search"] = search
        return await self._request("GET", "/complaints", params=params)

    async def statistics(self) -> Dict[str, Any]:
        return await self._request("GET", "/complaints-statistics")

    # ==================== Notifications ====================

    async def notifications(self, page: int = 1) -> Dict[str, Any]:
        return await self._request("GET", "/notifications", params={"page": page})

    async def unread_count(self) -> int:
        data = await self._request("GET", "/notifications/unread-count")
        return int(data["count"])

    async def mark_all_read(self) -> None:
        await self._request("PUT", "/notifications/mark-all-read")
