"""Cursor-tracked update poller.

Two access modes over the same remote stream:

- consume: fetch from the cursor forward and advance it past what came back
- peek: re-fetch the last N already-consumed updates without touching it

Only a successful, non-empty consume moves the cursor, and it always moves
to exactly one past the highest update_id returned. Peek results are
whatever the remote returns for the window; nothing is reconstructed by
local counting.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from telegram_notifier_core.types import (
    FetchWindow,
    TelegramTransportError,
    Update,
)

if TYPE_CHECKING:
    from telegram_notifier_core.adapters import MessagingClient

    from .cursor import UpdateCursor

logger = logging.getLogger(__name__)

MAX_BATCH = 100
MAX_LONG_POLL = 30


@dataclass(frozen=True)
class PollOutcome:
    """Result of one consume or peek call.

    Attributes:
        peeking: True for peek mode.
        window: The window that was requested.
        updates: Updates in ascending update_id order (empty on error).
        error: Human-readable failure, or None on success.
    """

    peeking: bool
    window: FetchWindow
    updates: list[Update] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def label(self) -> str:
        return "previous" if self.peeking else "new"


def _check_range(name: str, value: int, low: int, high: int) -> None:
    if not low <= value <= high:
        raise ValueError(f"{name} must be between {low} and {high}, got {value}")


class UpdatePoller:
    """Fetches updates through a MessagingClient, gated by an UpdateCursor."""

    def __init__(self, client: MessagingClient, cursor: UpdateCursor) -> None:
        self.client = client
        self.cursor = cursor

    async def _fetch(self, window: FetchWindow, peeking: bool) -> PollOutcome:
        try:
            response = await self.client.get_updates(window)
        except TelegramTransportError as e:
            logger.warning("getUpdates transport failure: %s", e)
            return PollOutcome(
                peeking, window, error=f"Failed to fetch updates: {e}"
            )

        if not response.ok:
            return PollOutcome(
                peeking, window, error=f"Telegram API error: {response.error_text}"
            )

        try:
            updates = sorted(
                (Update.from_dict(raw) for raw in response.result or []),
                key=lambda u: u.update_id,
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Malformed getUpdates payload: %s", e)
            return PollOutcome(
                peeking, window, error=f"Malformed update from Telegram: {e}"
            )
        return PollOutcome(peeking, window, updates=updates)

    async def consume(self, limit: int = 10, timeout: int = 0) -> PollOutcome:
        """Fetch new updates and advance the cursor past them.

        Args:
            limit: Maximum updates to return (1-100).
            timeout: Long-poll hold in seconds (0-30).

        Returns:
            PollOutcome. On any failure the cursor is left untouched.

        Raises:
            ValueError: If limit or timeout is out of range.
            OSError: If persisting the advanced cursor fails.
        """
        _check_range("limit", limit, 1, MAX_BATCH)
        _check_range("timeout", timeout, 0, MAX_LONG_POLL)

        async with self.cursor.lock:
            window = FetchWindow(offset=self.cursor.value, limit=limit, timeout=timeout)
            outcome = await self._fetch(window, peeking=False)
            if outcome.ok and outcome.updates:
                await self.cursor.advance_past(u.update_id for u in outcome.updates)
        return outcome

    async def peek(self, count: int) -> PollOutcome:
        """Re-fetch up to ``count`` updates ending at the cursor.

        The window starts at ``max(0, cursor - count)`` with no long-poll
        hold. The cursor is never modified, whatever the outcome.

        Raises:
            ValueError: If count is out of range.
        """
        _check_range("count", count, 1, MAX_BATCH)

        window = FetchWindow(
            offset=self.cursor.peek_offset(count), limit=count, timeout=0
        )
        return await self._fetch(window, peeking=True)
