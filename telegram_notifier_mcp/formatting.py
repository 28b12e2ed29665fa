"""Render inbound updates as single display lines.

Line shape:
    [2024-05-01T12:00:00+00:00] Ada (@ada) (chat 42): hello

Attachments are materialized through an AttachmentDownloader when one is
given; the summary names the local path on success and falls back to the
variant and caption otherwise. Rendering never raises.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from telegram_notifier_core.types import Attachment, AttachmentKind, Update

from .downloads import Downloaded

if TYPE_CHECKING:
    from .downloads import AttachmentDownloader

logger = logging.getLogger(__name__)

# Local names used when the message does not carry its own file name.
DEFAULT_NAMES: dict[AttachmentKind, str] = {
    AttachmentKind.PHOTO: "photo.jpg",
    AttachmentKind.VIDEO: "video.mp4",
    AttachmentKind.AUDIO: "audio.mp3",
    AttachmentKind.VOICE: "voice.ogg",
    AttachmentKind.STICKER: "sticker.webp",
}


def _display_name(attachment: Attachment) -> str:
    if attachment.file_name:
        return attachment.file_name
    if attachment.kind is AttachmentKind.DOCUMENT:
        return "unknown"
    return DEFAULT_NAMES[attachment.kind]


def _label(attachment: Attachment) -> str:
    """Bracket text naming the variant, without the local path."""
    kind = attachment.kind
    if kind is AttachmentKind.PHOTO:
        return "Photo"
    if kind is AttachmentKind.VOICE:
        return f"Voice message ({attachment.duration or 0}s)"
    if kind is AttachmentKind.STICKER:
        return f"Sticker {attachment.emoji}" if attachment.emoji else "Sticker"
    return f"{kind.value.capitalize()}: {_display_name(attachment)}"


def summarize_attachment(
    attachment: Attachment, caption: str | None, local_path: str | None
) -> str:
    """Summary text for an attachment, with or without its local path."""
    label = _label(attachment)
    if local_path:
        label = f"{label} downloaded to {local_path}"
    suffix = ""
    # Stickers never carry captions.
    if caption and attachment.kind is not AttachmentKind.STICKER:
        suffix = f" {caption}"
    return f"[{label}]{suffix}"


def format_timestamp(epoch_seconds: int) -> str:
    return datetime.fromtimestamp(epoch_seconds, tz=UTC).isoformat()


async def render_update(
    update: Update, downloader: AttachmentDownloader | None = None
) -> str:
    """Render one update as a display line.

    Args:
        update: Parsed update.
        downloader: Materializes attachments when given; without one,
            attachments render in their fallback form.

    Returns:
        ``[<timestamp>] <sender> (chat <id>): <summary>``, or
        ``[Update <id>] (no message)`` for updates without a message.
    """
    msg = update.message
    if msg is None:
        return f"[Update {update.update_id}] (no message)"

    sender = msg.sender.display if msg.sender else "Unknown"
    content = msg.text or ""

    if msg.attachment is not None:
        local_path = None
        if downloader is not None:
            outcome = await downloader.fetch(
                msg.attachment.file_id, _display_name(msg.attachment)
            )
            if isinstance(outcome, Downloaded):
                local_path = str(outcome.path)
        content = summarize_attachment(msg.attachment, msg.caption, local_path)

    return f"[{format_timestamp(msg.date)}] {sender} (chat {msg.chat_id}): {content}"


async def render_updates(
    updates: list[Update], downloader: AttachmentDownloader | None = None
) -> list[str]:
    """Render updates one at a time, preserving order.

    An update that fails to render still yields a line, so a consumed
    batch is never dropped from the output.
    """
    lines: list[str] = []
    for update in updates:
        try:
            lines.append(await render_update(update, downloader))
        except Exception:
            logger.exception("Could not render update %d", update.update_id)
            lines.append(f"[Update {update.update_id}] (could not be rendered)")
    return lines
