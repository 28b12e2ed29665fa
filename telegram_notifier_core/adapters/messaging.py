"""Messaging adapter protocol.

Implemented by: telegram_notifier_mcp.telegram_client.TelegramClient, or
any fake that speaks the same envelope (tests).

Responsible for the four Bot API interactions the notifier needs: JSON
method calls, multipart file uploads, update polling, and file retrieval.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from telegram_notifier_core.types import ApiResponse, FetchWindow


@runtime_checkable
class MessagingClient(Protocol):
    """Speaks the Bot API's ``{ok, description, result}`` envelope.

    Design principles:
    - ``ok: false`` is a normal return value, not an exception.
    - Transport failures raise TelegramTransportError.
    - No retries; callers decide what a failure means.
    """

    async def call(self, method: str, payload: dict[str, Any]) -> ApiResponse:
        """Invoke a Bot API method with a JSON body."""
        ...

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
            fields: Plain form fields (chat_id, caption, ...).
            file_field: Form field name for the file part.
            file_path: Local file to upload.

        Returns:
            The decoded envelope.
        """
        ...

    async def get_updates(self, window: FetchWindow) -> ApiResponse:
        """Fetch updates for a window. ``result`` is a list of raw update dicts."""
        ...

    async def get_file(self, file_id: str) -> ApiResponse:
        """Resolve a file handle. ``result`` carries ``file_path``."""
        ...

    async def download(self, remote_path: str) -> bytes:
        """Fetch raw bytes for a resolved remote file path.

        Raises:
            TelegramDownloadError: If the file endpoint does not return 2xx.
            TelegramTransportError: On network failure.
        """
        ...
