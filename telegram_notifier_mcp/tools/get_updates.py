"""Telegram get_updates tool: read new messages, or re-read old ones.

Without ``previous`` this drains new messages and advances the stored
offset. With ``previous=N`` it re-fetches the last N already-read messages
and leaves the offset alone; ``limit`` and ``timeout`` are ignored then.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from telegram_notifier_core.types import ToolResult

from ..formatting import render_updates

if TYPE_CHECKING:
    from ..downloads import AttachmentDownloader
    from ..poller import UpdatePoller

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 10


async def execute(
    limit: int | None = None,
    timeout: int | None = None,
    previous: int | None = None,
    *,
    poller: UpdatePoller,
    downloader: AttachmentDownloader | None = None,
) -> ToolResult:
    """Fetch and render updates.

    Args:
        limit: Max new messages (1-100, default 10).
        timeout: Long-poll seconds (0-30, default 0).
        previous: Re-fetch this many already-read messages (1-100).
        poller: Update poller (injected from the server runtime).
        downloader: Attachment downloader; None renders without downloads.

    Returns:
        ToolResult with a count header and one line per message.
    """
    try:
        if previous is not None:
            outcome = await poller.peek(previous)
        else:
            outcome = await poller.consume(
                limit if limit is not None else DEFAULT_LIMIT,
                timeout if timeout is not None else 0,
            )
    except ValueError as e:
        return ToolResult.error(str(e))
    except OSError as e:
        logger.error("Could not persist update offset: %s", e)
        return ToolResult.error(f"Failed to save update offset: {e}")

    if not outcome.ok:
        return ToolResult.error(outcome.error or "Unknown error")

    if not outcome.updates:
        return ToolResult.success(
            "No previous messages found." if outcome.peeking else "No new messages."
        )

    lines = await render_updates(outcome.updates, downloader)
    body = "\n".join(lines)
    return ToolResult.success(f"{len(lines)} {outcome.label} message(s):\n\n{body}")
