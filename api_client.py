"""Minimal REST client for the block-layouts endpoints."""

from typing import Any

import httpx


class ApiClient:
    """Thin wrapper over ``httpx.Client`` bound to one API base URL.

    Errors are not translated: connection problems raise ``httpx.TransportError``
    subclasses and non-2xx responses raise ``httpx.HTTPStatusError``.
    """

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        user_agent: str | None = None,
        timeout: float = 30.0,
    ) -> None:
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        if user_agent:
            headers["User-Agent"] = user_agent

        self.base_url = base_url.rstrip("/")
        self.authenticated = token is not None
        self._client = httpx.Client(base_url=self.base_url, headers=headers, timeout=timeout)

    @classmethod
    def anonymous(cls, base_url: str, user_agent: str, timeout: float = 30.0) -> "ApiClient":
        """Unauthenticated client identified only by its user agent."""
        return cls(base_url, token=None, user_agent=user_agent, timeout=timeout)

    def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """GET ``path`` relative to the base URL and return the decoded JSON body."""
        response = self._client.get(path, params=params)
        response.raise_for_status()
        return response.json()

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "ApiClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
