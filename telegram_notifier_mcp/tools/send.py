"""Telegram send tools: one operation behind all five send variants.

Text goes out as a JSON ``sendMessage``; documents, photos, videos and audio
go out as multipart uploads. Which method and field to use comes from
``SEND_SPECS``, keyed by OutboundKind.

File sends are validated locally (exists, regular file, within the upload
limit) before anything touches the network.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from telegram_notifier_core.config import MAX_UPLOAD_BYTES
from telegram_notifier_core.types import (
    SEND_SPECS,
    OutboundKind,
    TelegramTransportError,
    ToolResult,
)

from ._helpers import NO_CHAT_ID_MESSAGE, api_result, format_megabytes, resolve_chat_id

if TYPE_CHECKING:
    from telegram_notifier_core.adapters import MessagingClient

logger = logging.getLogger(__name__)


async def _check_upload(path: Path, max_bytes: int) -> ToolResult | None:
    """Return an error result if ``path`` cannot be uploaded, else None."""
    try:
        stat = await asyncio.to_thread(path.stat)
    except FileNotFoundError:
        return ToolResult.error(f"File not found: {path}")
    except OSError as e:
        return ToolResult.error(f"Cannot access file: {path} ({e.strerror or e})")

    if not path.is_file():
        return ToolResult.error(f"Not a regular file: {path}")

    if stat.st_size > max_bytes:
        return ToolResult.error(
            f"File exceeds {max_bytes // (1024 * 1024)} MB limit "
            f"({format_megabytes(stat.st_size)} MB): {path}"
        )
    return None


async def execute(
    kind: OutboundKind,
    *,
    client: MessagingClient,
    text: str | None = None,
    file_path: str | None = None,
    chat_id: str | None = None,
    default_chat_id: str | None = None,
    caption: str | None = None,
    parse_mode: str | None = None,
    disable_notification: bool | None = None,
    max_upload_bytes: int = MAX_UPLOAD_BYTES,
) -> ToolResult:
    """Send text or a file to a Telegram chat.

    Args:
        kind: What to send; selects the Bot API method and payload field.
        client: Messaging client (injected from the server runtime).
        text: Message text (TEXT only).
        file_path: Local file to upload (file kinds only).
        chat_id: Per-call destination override.
        default_chat_id: Configured destination (TELEGRAM_CHAT_ID).
        caption: File caption (file kinds only).
        parse_mode: "Markdown", "MarkdownV2" or "HTML".
        disable_notification: Deliver silently.
        max_upload_bytes: Upload size limit.

    Returns:
        ToolResult with a confirmation, or an error describing what failed.
    """
    spec = SEND_SPECS[kind]

    resolved_chat = resolve_chat_id(chat_id, default_chat_id)
    if resolved_chat is None:
        return ToolResult.error(NO_CHAT_ID_MESSAGE)

    success_text = f"{spec.noun} sent to chat {resolved_chat}."

    try:
        if not spec.multipart:
            payload: dict[str, Any] = {"chat_id": resolved_chat, spec.field: text or ""}
            if parse_mode:
                payload["parse_mode"] = parse_mode
            if disable_notification:
                payload["disable_notification"] = True
            response = await client.call(spec.method, payload)
            return api_result(response, success_text)

        if not file_path:
            return ToolResult.error("No file_path provided.")
        path = Path(file_path).expanduser()
        problem = await _check_upload(path, max_upload_bytes)
        if problem is not None:
            return problem

        fields = {"chat_id": resolved_chat}
        if caption:
            fields["caption"] = caption
        if parse_mode:
            fields["parse_mode"] = parse_mode
        if disable_notification:
            fields["disable_notification"] = "true"
        response = await client.upload(spec.method, fields, spec.field, path)
        return api_result(response, success_text)
    except TelegramTransportError as e:
        logger.warning("%s to chat %s failed: %s", spec.method, resolved_chat, e)
        return ToolResult.error(f"Failed to reach Telegram: {e}")
    except OSError as e:
        logger.warning("%s could not read %s: %s", spec.method, file_path, e)
        return ToolResult.error(f"Could not read file {file_path}: {e}")
