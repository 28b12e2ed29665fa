"""Entry point for the Telegram notifier MCP server.

Run with:
  python -m telegram_notifier_mcp          # MCP stdio transport (default)
  python -m telegram_notifier_mcp --http   # Streamable-HTTP MCP server
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from telegram_notifier_core.config import DEFAULT_STATE_DIR, ConfigError, NotifierConfig

logger = logging.getLogger("telegram_notifier_mcp")


def _load_env_file() -> None:
    """Seed the environment from a .env file without overriding set values.

    Resolution order: TELEGRAM_NOTIFIER_ENV_FILE > <state dir>/.env > cwd search.
    """
    explicit = os.getenv("TELEGRAM_NOTIFIER_ENV_FILE")
    if explicit:
        load_dotenv(Path(explicit).expanduser())
        return

    state_env = DEFAULT_STATE_DIR / ".env"
    if state_env.exists():
        load_dotenv(state_env)
    else:
        load_dotenv()


def main(argv: list[str] | None = None) -> None:
    """Main entry point: load config, wire the runtime, serve.

    Args:
        argv: Command-line arguments without the program name. Defaults to
            ``sys.argv[1:]``. ``--http`` selects streamable HTTP; ``--stdio``
            or nothing selects stdio.
    """
    args = sys.argv[1:] if argv is None else argv
    _load_env_file()

    # stdout belongs to the stdio transport; logs go to stderr.
    logging.basicConfig(
        level=os.getenv("TELEGRAM_NOTIFIER_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    if args and args[0] not in ("--stdio", "--http"):
        logger.error("Unknown argument: %s (expected --stdio or --http)", args[0])
        sys.exit(2)
    use_http = bool(args) and args[0] == "--http"

    try:
        config = NotifierConfig.from_env()
    except ConfigError as e:
        logger.error("Error: %s", e)
        sys.exit(1)

    from .server import NotifierRuntime, create_http_app, mcp, set_runtime

    set_runtime(NotifierRuntime.from_config(config))

    try:
        if use_http:
            import uvicorn

            logger.info(
                "Telegram Notifier MCP server running on http://%s:%d",
                config.http.host,
                config.http.port,
            )
            uvicorn.run(
                create_http_app(config.http.api_token),
                host=config.http.host,
                port=config.http.port,
                log_level=config.log_level.lower(),
            )
        else:
            # Default: stdio transport
            logger.info("Telegram Notifier MCP server running on stdio")
            mcp.run()
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    except Exception:
        logger.exception("Fatal error")
        sys.exit(1)


if __name__ == "__main__":
    main()
