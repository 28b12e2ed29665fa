"""Update-offset cursor with on-disk persistence.

The cursor is the lowest update_id not yet delivered to the client. It is
stored as a single decimal integer in one file, overwritten in place on
every advance. A missing or corrupt file means "start from 0"; that is the
first-run state, not an error.

Storage path: $TELEGRAM_NOTIFIER_STATE_DIR/update-offset
(default ~/.telegram-notifier-mcp/update-offset).
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from pathlib import Path

logger = logging.getLogger(__name__)


class CursorStore:
    """Reads and writes the persisted offset file."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def _read(self) -> int:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.debug("No offset file at %s, starting from 0", self.path)
            return 0
        except OSError as exc:
            logger.warning("Unreadable offset file %s: %s", self.path, exc)
            return 0

        try:
            value = int(raw.strip())
        except ValueError:
            logger.warning("Corrupt offset file %s: %r", self.path, raw[:32])
            return 0
        if value < 0:
            logger.warning("Negative offset %d in %s, ignoring", value, self.path)
            return 0
        return value

    def _write(self, value: int) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(str(value), encoding="utf-8")

    async def load(self) -> int:
        """Read the persisted offset.

        Returns:
            The stored offset, or 0 if the file is absent, unreadable, or
            does not hold a non-negative decimal integer.
        """
        return await asyncio.to_thread(self._read)

    async def save(self, value: int) -> None:
        """Overwrite the persisted offset, creating parent directories.

        Raises:
            OSError: If the file cannot be written.
        """
        await asyncio.to_thread(self._write, value)


class UpdateCursor:
    """The in-memory offset plus exclusive-access discipline around it.

    Consumers take ``lock`` for the whole fetch/advance/persist sequence so
    two overlapping consume calls cannot both read the pre-advance value.
    Readers that never write (peek) use ``value`` directly.
    """

    def __init__(self, store: CursorStore, value: int = 0) -> None:
        self.store = store
        self._value = value
        self.lock: asyncio.Lock = asyncio.Lock()

    @classmethod
    async def open(cls, store: CursorStore) -> UpdateCursor:
        """Create a cursor initialized from the store."""
        value = await store.load()
        logger.info("Loaded update offset %d from %s", value, store.path)
        return cls(store, value)

    @property
    def value(self) -> int:
        return self._value

    async def reload(self) -> int:
        """Replace the in-memory value with what is on disk."""
        self._value = await self.store.load()
        return self._value

    def peek_offset(self, count: int) -> int:
        """Lower bound for re-inspecting the last ``count`` consumed updates."""
        return max(0, self._value - count)

    async def advance_past(self, update_ids: Iterable[int]) -> int:
        """Move the cursor one past the highest id seen, then persist it.

        The value never decreases: ids at or below the current cursor leave
        it untouched and skip the write.

        Args:
            update_ids: Identifiers returned by a successful consume fetch.

        Returns:
            The cursor value after the call.

        Raises:
            OSError: If persisting fails. The in-memory value is only
                updated once the write has succeeded.
        """
        ids = list(update_ids)
        if not ids:
            return self._value

        candidate = max(ids) + 1
        if candidate <= self._value:
            return self._value

        await self.store.save(candidate)
        logger.info("Advanced update offset %d -> %d", self._value, candidate)
        self._value = candidate
        return self._value
