"""Async HTTP transport for the Discourse API.

Every request carries the API key and an acting username as query
parameters. Responses are logged on the way back, successes at info and
failures at error, and failures are raised to the caller. Nothing is retried.
"""

import asyncio
from typing import Any, Optional
from urllib.parse import urlencode

import aiohttp
from yarl import URL

from ..errors import NetworkError, UpstreamHTTPError
from .logger import get_logger

logger = get_logger("http_client")

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


class ForumHttpClient:
    """Shared aiohttp session bound to one forum.

    The session is opened on first use and reused until ``close()``.
    Configuration is fixed at construction and only read afterwards, so one
    instance can serve any number of concurrent calls.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        system_username: str,
        timeout: Optional[int] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.system_username = system_username
        self.default_params = {
            "api_key": api_key,
            "api_username": system_username,
        }
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: Optional[aiohttp.ClientSession] = None
        self._lock = asyncio.Lock()

    async def __aenter__(self) -> "ForumHttpClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def _get_session(self) -> aiohttp.ClientSession:
        async with self._lock:
            if self._session is None or self._session.closed:
                self._session = aiohttp.ClientSession(
                    timeout=self.timeout,
                    headers={
                        "User-Agent": "ForumRelay/1.0",
                        "Accept": "application/json",
                    },
                )
        return self._session

    def build_url(self, path: str, params: Optional[dict] = None) -> str:
        """Join the base URL, the path and the query string.

        A query string already present in ``path`` is kept verbatim and comes
        first. Per-call params override the defaults; None values are dropped.
        """
        merged = {**self.default_params, **(params or {})}
        merged = {k: v for k, v in merged.items() if v is not None}

        route, _, inline_query = path.partition("?")
        parts = [p for p in (inline_query, urlencode(merged)) if p]
        url = f"{self.base_url}{route}"
        if parts:
            url += "?" + "&".join(parts)
        return url

    @staticmethod
    async def _read_body(response: aiohttp.ClientResponse) -> Any:
        if response.content_type == "application/json":
            try:
                return await response.json(content_type=None)
            except ValueError:
                pass  # malformed JSON falls back to the raw text
        text = await response.text()
        return text or None

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict] = None,
        json: Any = None,
        data: Any = None,
        headers: Optional[dict] = None,
    ) -> Any:
        """Send one request and return the decoded response body.

        Args:
            method: HTTP verb.
            path: Path relative to the base URL, optionally with a
                pre-encoded query string.
            params: Query parameters overriding the defaults.
            json: JSON body.
            data: Form body. A ``str`` is sent url-encoded; multipart
                writers are sent as-is.
            headers: Extra request headers.

        Returns:
            Parsed JSON, raw text, or None for an empty body.

        Raises:
            UpstreamHTTPError: On any non-2xx response.
            NetworkError: When no response was received.
        """
        session = await self._get_session()
        url = self.build_url(path, params)
        log_url = f"{self.base_url}{path}"

        request_headers = dict(headers or {})
        if isinstance(data, str):
            request_headers.setdefault("Content-Type", FORM_CONTENT_TYPE)

        try:
            async with session.request(
                method,
                URL(url, encoded=True),
                json=json,
                data=data,
                headers=request_headers or None,
            ) as response:
                body = await self._read_body(response)
                status = response.status
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(
                "forum_request_failed",
                method=method,
                url=log_url,
                error=str(e) or e.__class__.__name__,
            )
            raise NetworkError(log_url, e) from e

        if status < 200 or status >= 300:
            logger.error(
                "forum_request_failed",
                method=method,
                url=log_url,
                status=status,
                body=body,
            )
            raise UpstreamHTTPError(log_url, status, body)

        logger.info("forum_request_succeeded", method=method, url=log_url, status=status)
        return body

    async def get(self, path: str, **kwargs) -> Any:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs) -> Any:
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs) -> Any:
        return await self.request("PUT", path, **kwargs)

    async def delete(self, path: str, **kwargs) -> Any:
        return await self.request("DELETE", path, **kwargs)

    async def close(self):
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
