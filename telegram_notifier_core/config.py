"""Telegram notifier configuration.

Settings are read from environment variables (optionally seeded from a
``.env`` file by the entry point):

- TELEGRAM_BOT_TOKEN (required): bot credential from @BotFather
- TELEGRAM_CHAT_ID: default destination chat
- TELEGRAM_NOTIFIER_STATE_DIR: where the update offset and downloads live
- TELEGRAM_API_BASE: Bot API base URL (for self-hosted Bot API servers)
- TELEGRAM_NOTIFIER_LOG_LEVEL: logging level name
- TELEGRAM_NOTIFIER_HOST / TELEGRAM_NOTIFIER_PORT / TELEGRAM_NOTIFIER_API_TOKEN:
  streamable-HTTP transport settings
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_API_BASE = "https://api.telegram.org"
DEFAULT_STATE_DIR = Path.home() / ".telegram-notifier-mcp"
MAX_UPLOAD_BYTES = 50 * 1024 * 1024


class ConfigError(Exception):
    """Required configuration is missing or invalid."""


def _clean(value: str | None) -> str | None:
    """Treat unset and blank variables the same way."""
    if value is None:
        return None
    value = value.strip()
    return value or None


@dataclass
class HttpConfig:
    """Streamable-HTTP transport configuration."""

    host: str = "127.0.0.1"
    port: int = 8421
    api_token: str | None = None
    """Bearer token required on every route except /health. None disables auth."""


@dataclass
class NotifierConfig:
    """Top-level notifier configuration.

    Load from the environment:
        config = NotifierConfig.from_env()

    Or construct directly (tests):
        config = NotifierConfig(bot_token="123:abc", state_dir=tmp_path)
    """

    bot_token: str
    default_chat_id: str | None = None
    state_dir: Path = field(default_factory=lambda: DEFAULT_STATE_DIR)
    api_base: str = DEFAULT_API_BASE
    log_level: str = "INFO"
    max_upload_bytes: int = MAX_UPLOAD_BYTES
    http: HttpConfig = field(default_factory=HttpConfig)

    @property
    def offset_file(self) -> Path:
        """File holding the persisted update offset."""
        return self.state_dir / "update-offset"

    @property
    def download_dir(self) -> Path:
        """Directory receiving materialized attachments."""
        return self.state_dir / "downloads"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> NotifierConfig:
        """Build configuration from environment variables.

        Args:
            environ: Mapping to read instead of ``os.environ``.

        Returns:
            Populated NotifierConfig.

        Raises:
            ConfigError: If TELEGRAM_BOT_TOKEN is missing or a numeric
                setting does not parse.
        """
        env = os.environ if environ is None else environ

        token = _clean(env.get("TELEGRAM_BOT_TOKEN"))
        if not token:
            raise ConfigError(
                "TELEGRAM_BOT_TOKEN environment variable is required. "
                "Get a token from @BotFather on Telegram."
            )

        state_dir = _clean(env.get("TELEGRAM_NOTIFIER_STATE_DIR"))
        raw_port = _clean(env.get("TELEGRAM_NOTIFIER_PORT")) or "8421"
        try:
            port = int(raw_port)
        except ValueError as e:
            raise ConfigError(
                f"TELEGRAM_NOTIFIER_PORT must be an integer, got {raw_port!r}"
            ) from e

        return cls(
            bot_token=token,
            default_chat_id=_clean(env.get("TELEGRAM_CHAT_ID")),
            state_dir=Path(state_dir).expanduser() if state_dir else DEFAULT_STATE_DIR,
            api_base=(_clean(env.get("TELEGRAM_API_BASE")) or DEFAULT_API_BASE).rstrip(
                "/"
            ),
            log_level=(_clean(env.get("TELEGRAM_NOTIFIER_LOG_LEVEL")) or "INFO").upper(),
            http=HttpConfig(
                host=_clean(env.get("TELEGRAM_NOTIFIER_HOST")) or "127.0.0.1",
                port=port,
                api_token=_clean(env.get("TELEGRAM_NOTIFIER_API_TOKEN")),
            ),
        )
