"""Shared test fixtures for telegram-notifier tests.

Provides a fake messaging client that simulates the Bot API update stream,
plus raw update builders and wired cursor/poller fixtures.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from telegram_notifier_core.config import NotifierConfig
from telegram_notifier_core.types import (
    ApiResponse,
    FetchWindow,
    TelegramDownloadError,
)
from telegram_notifier_mcp.cursor import CursorStore, UpdateCursor
from telegram_notifier_mcp.downloads import AttachmentDownloader
from telegram_notifier_mcp.poller import UpdatePoller

# 2024-05-01T12:00:00Z
SAMPLE_DATE = 1714564800


class FakeMessagingClient:
    """In-memory MessagingClient.

    ``stream`` holds raw update dicts; ``get_updates`` returns those with
    update_id >= offset, capped at limit, the way the Bot API does. Set
    ``updates_response`` or ``updates_error`` to override that.
    """

    def __init__(self) -> None:
        self.stream: list[dict[str, Any]] = []
        self.updates_response: ApiResponse | None = None
        self.updates_error: Exception | None = None
        self.windows: list[FetchWindow] = []

        self.responses: dict[str, ApiResponse] = {}
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.uploads: list[tuple[str, dict[str, str], str, Path]] = []
        self.send_error: Exception | None = None

        self.files: dict[str, str] = {}
        self.blobs: dict[str, bytes] = {}
        self.file_requests: list[str] = []

    async def call(self, method: str, payload: dict[str, Any]) -> ApiResponse:
        self.calls.append((method, payload))
        if self.send_error:
            raise self.send_error
        return self.responses.get(method, ApiResponse(ok=True, result={"message_id": 1}))

    async def upload(
        self, method: str, fields: dict[str, str], file_field: str, file_path: Path
    ) -> ApiResponse:
        self.uploads.append((method, fields, file_field, file_path))
        if self.send_error:
            raise self.send_error
        return self.responses.get(method, ApiResponse(ok=True, result={"message_id": 1}))

    async def get_updates(self, window: FetchWindow) -> ApiResponse:
        self.windows.append(window)
        if self.updates_error:
            raise self.updates_error
        if self.updates_response is not None:
            return self.updates_response
        matching = [u for u in self.stream if u["update_id"] >= window.offset]
        return ApiResponse(ok=True, result=matching[: window.limit])

    async def get_file(self, file_id: str) -> ApiResponse:
        self.file_requests.append(file_id)
        if file_id not in self.files:
            return ApiResponse(ok=False, description="Bad Request: invalid file_id")
        return ApiResponse(ok=True, result={"file_path": self.files[file_id]})

    async def download(self, remote_path: str) -> bytes:
        if remote_path not in self.blobs:
            raise TelegramDownloadError("Download failed: 404")
        return self.blobs[remote_path]


def _build_update(
    update_id: int,
    text: str | None = "hello",
    *,
    chat_id: int = 42,
    date: int = SAMPLE_DATE,
    first_name: str = "Ada",
    username: str | None = "ada",
    **extra: Any,
) -> dict[str, Any]:
    """Build a raw Bot API update dict carrying a message."""
    sender: dict[str, Any] = {"id": 7, "first_name": first_name}
    if username:
        sender["username"] = username
    message: dict[str, Any] = {
        "message_id": update_id * 10,
        "from": sender,
        "chat": {"id": chat_id, "type": "private"},
        "date": date,
    }
    if text is not None:
        message["text"] = text
    message.update(extra)
    return {"update_id": update_id, "message": message}


@pytest.fixture
def make_update() -> Callable[..., dict[str, Any]]:
    """Provide the raw update builder.

    Call as ``make_update(update_id, text="hello", *, chat_id=42, ...)``;
    extra keyword arguments are merged into the message (e.g. ``document=``).
    """
    return _build_update


@pytest.fixture
def fake_client() -> FakeMessagingClient:
    """Provide a fresh FakeMessagingClient."""
    return FakeMessagingClient()


@pytest.fixture
def config(tmp_path: Path) -> NotifierConfig:
    """Provide a configuration rooted in a temporary state directory."""
    return NotifierConfig(bot_token="123:test", default_chat_id="42", state_dir=tmp_path)


@pytest.fixture
def cursor_store(config: NotifierConfig) -> CursorStore:
    """Provide a CursorStore at the configured offset file."""
    return CursorStore(config.offset_file)


@pytest.fixture
def cursor(cursor_store: CursorStore) -> UpdateCursor:
    """Provide a cursor starting at 0."""
    return UpdateCursor(cursor_store)


@pytest.fixture
def poller(fake_client: FakeMessagingClient, cursor: UpdateCursor) -> UpdatePoller:
    """Provide a poller over the fake client and cursor."""
    return UpdatePoller(fake_client, cursor)


@pytest.fixture
def downloader(
    fake_client: FakeMessagingClient, config: NotifierConfig
) -> AttachmentDownloader:
    """Provide a downloader with a fixed clock (1700000000000 ms)."""
    return AttachmentDownloader(
        fake_client, config.download_dir, clock=lambda: 1_700_000_000.0
    )
