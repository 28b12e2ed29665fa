"""Attachment materialization.

Resolves a Bot API file handle to its remote path, then stores the bytes
under the download directory as ``<epoch-ms>-<name>[.ext]``. Failures come
back as ``DownloadUnavailable`` instead of raising, so rendering can fall
back to a summary without the local path.

Storage path: $TELEGRAM_NOTIFIER_STATE_DIR/downloads/
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from telegram_notifier_core.types import TelegramError

if TYPE_CHECKING:
    from telegram_notifier_core.adapters import MessagingClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Downloaded:
    """The attachment was written to ``path``."""

    path: Path


@dataclass(frozen=True)
class DownloadUnavailable:
    """The attachment could not be materialized."""

    reason: str


DownloadOutcome = Downloaded | DownloadUnavailable


def local_file_name(fallback_name: str, remote_path: str, created_ms: int) -> str:
    """Build the local file name for a download.

    The remote extension is appended only when the fallback name has none.
    Only the final path component of the fallback is used, with
    non-printable characters removed.

    Args:
        fallback_name: Display name (e.g. the sender's file name or "photo.jpg").
        remote_path: Path returned by ``getFile`` (e.g. "photos/file_7.jpg").
        created_ms: Creation timestamp in epoch milliseconds.

    Returns:
        File name such as ``1700000000000-report.pdf``.
    """
    # NUL and lone surrogates cannot be written to disk.
    printable = "".join(ch for ch in fallback_name if ch.isprintable())
    name = Path(printable).name or "file"
    ext = "." + remote_path.rsplit(".", 1)[-1] if "." in remote_path else ""
    if "." in name:
        ext = ""
    return f"{created_ms}-{name}{ext}"


class AttachmentDownloader:
    """Fetches attachments through a MessagingClient into a local directory."""

    def __init__(
        self,
        client: MessagingClient,
        directory: Path,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.client = client
        self.directory = directory
        self._clock = clock

    async def _materialize(self, file_id: str, fallback_name: str) -> Path:
        response = await self.client.get_file(file_id)
        remote_path = (
            response.result.get("file_path")
            if response.ok and isinstance(response.result, dict)
            else None
        )
        if not remote_path:
            raise TelegramError(response.description or "Failed to get file path")

        name = local_file_name(fallback_name, remote_path, int(self._clock() * 1000))
        await asyncio.to_thread(self.directory.mkdir, parents=True, exist_ok=True)
        local_path = self.directory / name

        content = await self.client.download(remote_path)
        await asyncio.to_thread(local_path.write_bytes, content)
        logger.info("Downloaded %s (%d bytes) to %s", file_id, len(content), local_path)
        return local_path

    async def fetch(self, file_id: str, fallback_name: str) -> DownloadOutcome:
        """Download one attachment.

        Args:
            file_id: Bot API file handle.
            fallback_name: Display name used to build the local file name.

        Returns:
            Downloaded with the local path, or DownloadUnavailable with the
            reason if any API call, transfer, or write failed.
        """
        try:
            return Downloaded(await self._materialize(file_id, fallback_name))
        except (TelegramError, OSError, ValueError) as e:
            logger.warning("Could not download %s (%s): %s", fallback_name, file_id, e)
            return DownloadUnavailable(str(e))
