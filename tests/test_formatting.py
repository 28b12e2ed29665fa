"""Tests for update rendering."""

from __future__ import annotations

import pytest

from telegram_notifier_core.types import Update
from telegram_notifier_mcp.downloads import AttachmentDownloader
from telegram_notifier_mcp.formatting import render_update, render_updates

PREFIX = "[2024-05-01T12:00:00+00:00] Ada (@ada) (chat 42): "


@pytest.fixture
def parsed(make_update):
    """Build a parsed Update from raw builder arguments."""

    def build(update_id: int = 1, text: str | None = None, **extra: object) -> Update:
        return Update.from_dict(make_update(update_id, text, **extra))

    return build


class TestTextAndSenders:
    """Line shape, sender display, and the no-message case."""

    @pytest.mark.asyncio
    async def test_text_message(self, parsed) -> None:
        line = await render_update(parsed(text="hello there"))
        assert line == PREFIX + "hello there"

    @pytest.mark.asyncio
    async def test_sender_without_username(self, make_update) -> None:
        update = Update.from_dict(make_update(1, "hi", username=None))
        line = await render_update(update)
        assert line == "[2024-05-01T12:00:00+00:00] Ada (chat 42): hi"

    @pytest.mark.asyncio
    async def test_unknown_sender(self, make_update) -> None:
        raw = make_update(1, "hi")
        del raw["message"]["from"]
        line = await render_update(Update.from_dict(raw))
        assert "Unknown (chat 42): hi" in line

    @pytest.mark.asyncio
    async def test_update_without_message(self) -> None:
        line = await render_update(Update.from_dict({"update_id": 77}))
        assert line == "[Update 77] (no message)"


class TestFallbackSummaries:
    """Without a downloader every attachment renders in fallback form."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("extra", "summary"),
        [
            (
                {"photo": [{"file_id": "s"}, {"file_id": "l"}], "caption": "sunset"},
                "[Photo] sunset",
            ),
            ({"document": {"file_id": "d", "file_name": "a.pdf"}}, "[Document: a.pdf]"),
            ({"document": {"file_id": "d"}}, "[Document: unknown]"),
            ({"video": {"file_id": "v"}, "caption": "clip"}, "[Video: video.mp4] clip"),
            ({"audio": {"file_id": "a", "file_name": "song.flac"}}, "[Audio: song.flac]"),
            ({"voice": {"file_id": "o", "duration": 4}}, "[Voice message (4s)]"),
            ({"sticker": {"file_id": "k", "emoji": "🔥"}}, "[Sticker 🔥]"),
            ({"sticker": {"file_id": "k"}}, "[Sticker]"),
        ],
    )
    async def test_fallback(self, parsed, extra: dict, summary: str) -> None:
        line = await render_update(parsed(**extra))
        assert line == PREFIX + summary


class TestMaterializedSummaries:
    """With a downloader, summaries name the local path or degrade."""

    @pytest.mark.asyncio
    async def test_photo_downloads_largest_size(
        self, parsed, downloader: AttachmentDownloader, fake_client
    ) -> None:
        fake_client.files["large"] = "photos/file_2.jpg"
        fake_client.blobs["photos/file_2.jpg"] = b"jpeg"
        update = parsed(photo=[{"file_id": "small"}, {"file_id": "large"}], caption="hi")

        line = await render_update(update, downloader)

        expected = downloader.directory / "1700000000000-photo.jpg"
        assert line == PREFIX + f"[Photo downloaded to {expected}] hi"
        assert fake_client.file_requests == ["large"]

    @pytest.mark.asyncio
    async def test_document_download(
        self, parsed, downloader: AttachmentDownloader, fake_client
    ) -> None:
        fake_client.files["d"] = "documents/file_5.csv"
        fake_client.blobs["documents/file_5.csv"] = b"a,b"
        update = parsed(document={"file_id": "d", "file_name": "data.csv"})

        line = await render_update(update, downloader)

        expected = downloader.directory / "1700000000000-data.csv"
        assert line.endswith(f"[Document: data.csv downloaded to {expected}]")

    @pytest.mark.asyncio
    async def test_voice_download_keeps_default_name(
        self, parsed, downloader: AttachmentDownloader, fake_client
    ) -> None:
        fake_client.files["o"] = "voice/file_3.oga"
        fake_client.blobs["voice/file_3.oga"] = b"ogg"
        update = parsed(voice={"file_id": "o", "duration": 2})

        line = await render_update(update, downloader)

        assert line.endswith("voice.ogg]")
        assert "[Voice message (2s) downloaded to " in line

    @pytest.mark.asyncio
    async def test_failed_download_degrades(
        self, parsed, downloader: AttachmentDownloader
    ) -> None:
        update = parsed(video={"file_id": "gone", "file_name": "talk.mp4"}, caption="x")
        line = await render_update(update, downloader)
        assert line == PREFIX + "[Video: talk.mp4] x"

    @pytest.mark.asyncio
    async def test_nul_in_file_name_still_downloads(
        self, parsed, downloader: AttachmentDownloader, fake_client
    ) -> None:
        fake_client.files["d"] = "documents/file_8.txt"
        fake_client.blobs["documents/file_8.txt"] = b"body"
        update = parsed(document={"file_id": "d", "file_name": "a\x00b.txt"})

        line = await render_update(update, downloader)

        expected = downloader.directory / "1700000000000-ab.txt"
        assert f"downloaded to {expected}]" in line
        assert expected.read_bytes() == b"body"


class _BrokenDownloader:
    async def fetch(self, file_id: str, fallback_name: str):
        raise RuntimeError("disk on fire")


@pytest.mark.asyncio
async def test_render_updates_preserves_order(parsed) -> None:
    updates = [parsed(1, "one"), parsed(2, "two"), parsed(3, "three")]
    lines = await render_updates(updates)
    assert [line.rsplit(": ", 1)[1] for line in lines] == ["one", "two", "three"]


@pytest.mark.asyncio
async def test_render_updates_keeps_a_line_for_a_failing_update(parsed) -> None:
    updates = [
        parsed(1, document={"file_id": "d", "file_name": "r.txt"}),
        parsed(2, "after"),
    ]

    lines = await render_updates(updates, _BrokenDownloader())

    assert lines == ["[Update 1] (could not be rendered)", PREFIX + "after"]
