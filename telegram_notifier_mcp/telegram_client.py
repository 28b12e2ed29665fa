"""Telegram Bot API client using aiohttp.

Every call opens a short-lived ClientSession, so the client holds no
connection state and can be shared across event loops (stdio and HTTP
transports each run their own).

Bot API envelopes are decoded regardless of HTTP status: Telegram reports
``{"ok": false, "description": "Unauthorized"}`` with a 401, and that is a
normal result rather than an exception.
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

import aiohttp

from telegram_notifier_core.config import DEFAULT_API_BASE
from telegram_notifier_core.types import (
    ApiResponse,
    FetchWindow,
    TelegramDownloadError,
    TelegramTransportError,
)

logger = logging.getLogger(__name__)

# Extra seconds allowed on top of the long-poll hold before giving up.
LONG_POLL_GRACE = 5


class TelegramClient:
    """Bot API client implementing the MessagingClient protocol.

    Attributes:
        api_base: Base URL of the Bot API server, without trailing slash.
    """

    def __init__(self, token: str, api_base: str = DEFAULT_API_BASE) -> None:
        """Initialize the client.

        Args:
            token: Bot credential. Never logged.
            api_base: Bot API base URL.
        """
        self._token = token
        self.api_base = api_base.rstrip("/")

    def _method_url(self, method: str) -> str:
        return f"{self.api_base}/bot{self._token}/{method}"

    def _file_url(self, remote_path: str) -> str:
        return f"{self.api_base}/file/bot{self._token}/{remote_path}"

    async def _request(
        self,
        http_method: str,
        method: str,
        *,
        timeout: aiohttp.ClientTimeout | None = None,
        **kwargs: Any,
    ) -> ApiResponse:
        """Send one request and decode the envelope.

        Args:
            http_method: "GET" or "POST".
            method: Bot API method name (used in the URL and in logs).
            timeout: Optional total timeout for the request.
            **kwargs: Passed through to ``ClientSession.request``.

        Returns:
            Decoded ApiResponse.

        Raises:
            TelegramTransportError: On network failure, timeout, or a body
                that is not JSON.
        """
        if timeout is not None:
            kwargs["timeout"] = timeout
        try:
            async with aiohttp.ClientSession() as session:
                async with session.request(
                    http_method, self._method_url(method), **kwargs
                ) as resp:
                    body = await resp.text()
                    status = resp.status
        except asyncio.TimeoutError as e:
            raise TelegramTransportError(f"{method} timed out") from e
        except aiohttp.ClientError as e:
            raise TelegramTransportError(f"{method} failed: {e}") from e

        try:
            data = json.loads(body)
        except ValueError as e:
            raise TelegramTransportError(
                f"{method} returned a non-JSON body (HTTP {status})"
            ) from e

        response = ApiResponse.from_dict(data)
        if not response.ok:
            logger.warning(
                "Telegram %s failed (HTTP %d): %s", method, status, response.error_text
            )
        return response

    async def call(self, method: str, payload: dict[str, Any]) -> ApiResponse:
        """Invoke a Bot API method with a JSON body."""
        return await self._request("POST", method, json=payload)

    async def upload(
        self,
        method: str,
        fields: dict[str, str],
        file_field: str,
        file_path: Path,
    ) -> ApiResponse:
        """Invoke a Bot API method with a multipart body carrying one file.

        Args:
            method: Bot API method (e.g. ``sendDocument``).
            fields: Plain form fields.
            file_field: Form field name for the file part.
            file_path: Local file to upload.

        Returns:
            The decoded envelope.

        Raises:
            OSError: If the file cannot be read.
            TelegramTransportError: On network failure.
        """
        content = await asyncio.to_thread(file_path.read_bytes)

        form = aiohttp.FormData()
        for name, value in fields.items():
            form.add_field(name, value)
        form.add_field(
            file_field,
            content,
            filename=file_path.name,
            content_type="application/octet-stream",
        )

        logger.info(
            "Uploading %s (%d bytes) via %s", file_path.name, len(content), method
        )
        return await self._request("POST", method, data=form)

    async def get_updates(self, window: FetchWindow) -> ApiResponse:
        """Fetch updates for a window, bounded by the long-poll hold plus grace."""
        params = {
            "offset": str(window.offset),
            "limit": str(window.limit),
            "timeout": str(window.timeout),
            "allowed_updates": json.dumps(["message"]),
        }
        timeout = aiohttp.ClientTimeout(total=window.timeout + LONG_POLL_GRACE)
        logger.debug(
            "getUpdates offset=%d limit=%d timeout=%d",
            window.offset,
            window.limit,
            window.timeout,
        )
        return await self._request("GET", "getUpdates", params=params, timeout=timeout)

    async def get_file(self, file_id: str) -> ApiResponse:
        """Resolve a file handle to its remote path."""
        return await self._request("GET", "getFile", params={"file_id": file_id})

    async def download(self, remote_path: str) -> bytes:
        """Fetch raw bytes for a resolved remote file path.

        Raises:
            TelegramDownloadError: If the file endpoint does not return 2xx.
            TelegramTransportError: On network failure.
        """
        try:
            async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout()) as session:
                async with session.get(self._file_url(remote_path)) as resp:
                    if resp.status >= 300:
                        raise TelegramDownloadError(f"Download failed: {resp.status}")
                    return await resp.read()
        except asyncio.TimeoutError as e:
            raise TelegramTransportError("File download timed out") from e
        except aiohttp.ClientError as e:
            raise TelegramTransportError(f"File download failed: {e}") from e
