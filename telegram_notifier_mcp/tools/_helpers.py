"""Shared helper functions for Telegram notifier tools."""

from __future__ import annotations

from telegram_notifier_core.types import ApiResponse, ToolResult

NO_CHAT_ID_MESSAGE = (
    "No chat ID provided. Set TELEGRAM_CHAT_ID env var or pass chat_id parameter."
)


def resolve_chat_id(override: str | None, default: str | None) -> str | None:
    """Pick the per-call chat ID, falling back to the configured default.

    Blank strings count as absent.
    """
    for candidate in (override, default):
        if candidate and candidate.strip():
            return candidate.strip()
    return None


def api_result(response: ApiResponse, success_text: str) -> ToolResult:
    """Convert a Bot API envelope into a tool result."""
    if response.ok:
        return ToolResult.success(success_text)
    return ToolResult.error(f"Telegram API error: {response.error_text}")


def format_megabytes(size: int) -> str:
    return f"{size / 1024 / 1024:.1f}"
