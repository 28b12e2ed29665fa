"""MCP server setup and tool registration for the Telegram notifier."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Annotated, Literal

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError
from pydantic import Field
from starlette.applications import Starlette
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from telegram_notifier_core.adapters import MessagingClient
from telegram_notifier_core.config import NotifierConfig
from telegram_notifier_core.types import OutboundKind, ToolResult

from . import __version__
from .cursor import CursorStore, UpdateCursor
from .downloads import AttachmentDownloader
from .poller import UpdatePoller
from .telegram_client import TelegramClient
from .tools import get_updates as get_updates_tool
from .tools import send

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Runtime wiring
# ---------------------------------------------------------------------------


@dataclass
class NotifierRuntime:
    """Everything the tools need, built once from configuration.

    Attributes:
        config: Loaded configuration.
        client: Bot API client.
        cursor: Update offset shared by every get_updates call.
        downloader: Attachment materializer.
        poller: Consume/peek poller over ``cursor``.
    """

    config: NotifierConfig
    client: MessagingClient
    cursor: UpdateCursor
    downloader: AttachmentDownloader
    poller: UpdatePoller
    started: bool = field(default=False)

    @classmethod
    def from_config(
        cls, config: NotifierConfig, client: MessagingClient | None = None
    ) -> NotifierRuntime:
        """Wire the runtime for a configuration.

        Args:
            config: Loaded configuration.
            client: Override the Bot API client (tests).
        """
        client = client or TelegramClient(config.bot_token, config.api_base)
        cursor = UpdateCursor(CursorStore(config.offset_file))
        return cls(
            config=config,
            client=client,
            cursor=cursor,
            downloader=AttachmentDownloader(client, config.download_dir),
            poller=UpdatePoller(client, cursor),
        )

    async def start(self) -> None:
        """Load the persisted offset. Safe to call more than once."""
        if self.started:
            return
        value = await self.cursor.reload()
        self.started = True
        logger.info("Update offset loaded: %d (%s)", value, self.cursor.store.path)


# Global runtime (initialized on first access)
_runtime: NotifierRuntime | None = None

# Server start time - captured at module import
_SERVER_START_TIME: str = datetime.now(timezone.utc).isoformat()


def get_runtime() -> NotifierRuntime:
    """Get or create the global runtime from the environment.

    Raises:
        ConfigError: If TELEGRAM_BOT_TOKEN is not set.
    """
    global _runtime

    if _runtime is None:
        _runtime = NotifierRuntime.from_config(NotifierConfig.from_env())
    return _runtime


def set_runtime(runtime: NotifierRuntime | None) -> None:
    """Install (or clear) the global runtime."""
    global _runtime
    _runtime = runtime


@asynccontextmanager
async def _lifespan(server: FastMCP) -> AsyncIterator[None]:
    await get_runtime().start()
    yield


mcp = FastMCP("telegram-notifier", stateless_http=True, lifespan=_lifespan)


def _unwrap(result: ToolResult) -> str:
    """Hand success text to FastMCP, or raise so the client sees isError."""
    if result.is_error:
        raise ToolError(result.text)
    return result.text


# ---------------------------------------------------------------------------
# Tool parameter types
# ---------------------------------------------------------------------------

ParseMode = Literal["Markdown", "MarkdownV2", "HTML"]

ChatIdArg = Annotated[
    str | None,
    Field(description="Target chat ID (overrides TELEGRAM_CHAT_ID env var)"),
]
ParseModeArg = Annotated[
    ParseMode | None, Field(description="Message or caption formatting mode")
]
SilentArg = Annotated[
    bool, Field(description="Send silently without notification sound")
]
FilePathArg = Annotated[str, Field(description="Absolute path to the file to send")]
CaptionArg = Annotated[str | None, Field(description="Caption for the file")]

# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------


@mcp.tool()
async def send_message(
    text: Annotated[str, Field(description="The message text to send")],
    chat_id: ChatIdArg = None,
    parse_mode: ParseModeArg = None,
    disable_notification: SilentArg = False,
) -> str:
    """Send a text message to a Telegram chat."""
    runtime = get_runtime()
    return _unwrap(
        await send.execute(
            OutboundKind.TEXT,
            client=runtime.client,
            text=text,
            chat_id=chat_id,
            default_chat_id=runtime.config.default_chat_id,
            parse_mode=parse_mode,
            disable_notification=disable_notification,
        )
    )


FileSendTool = Callable[..., Awaitable[str]]

# tool name -> (kind, description)
FILE_TOOLS: dict[str, tuple[OutboundKind, str]] = {
    "send_document": (OutboundKind.DOCUMENT, "Send a file/document to a Telegram chat"),
    "send_photo": (OutboundKind.PHOTO, "Send a photo/image to a Telegram chat"),
    "send_video": (OutboundKind.VIDEO, "Send a video to a Telegram chat"),
    "send_audio": (OutboundKind.AUDIO, "Send an audio file to a Telegram chat"),
}


def _make_file_tool(kind: OutboundKind) -> FileSendTool:
    """Build the handler for one file-upload tool."""

    async def handler(
        file_path: FilePathArg,
        chat_id: ChatIdArg = None,
        caption: CaptionArg = None,
        parse_mode: ParseModeArg = None,
        disable_notification: SilentArg = False,
    ) -> str:
        runtime = get_runtime()
        return _unwrap(
            await send.execute(
                kind,
                client=runtime.client,
                file_path=file_path,
                chat_id=chat_id,
                default_chat_id=runtime.config.default_chat_id,
                caption=caption,
                parse_mode=parse_mode,
                disable_notification=disable_notification,
                max_upload_bytes=runtime.config.max_upload_bytes,
            )
        )

    return handler


file_tool_handlers: dict[str, FileSendTool] = {}
for _name, (_kind, _description) in FILE_TOOLS.items():
    file_tool_handlers[_name] = _make_file_tool(_kind)
    mcp.add_tool(file_tool_handlers[_name], name=_name, description=_description)


@mcp.tool()
async def get_updates(
    limit: Annotated[
        int | None,
        Field(
            ge=1,
            le=100,
            description="Max number of messages to retrieve (1-100, default 10)",
        ),
    ] = None,
    timeout: Annotated[
        int | None,
        Field(
            ge=0,
            le=30,
            description=(
                "Long-polling timeout in seconds (0-30, default 0). "
                "Set >0 to wait for new messages."
            ),
        ),
    ] = None,
    previous: Annotated[
        int | None,
        Field(
            ge=1,
            le=100,
            description=(
                "Re-fetch the last N already-read messages. "
                "Does not advance the offset."
            ),
        ),
    ] = None,
) -> str:
    """Check for new messages sent to the bot.

    Returns only new messages since the last check. Attachments are
    downloaded locally and their paths included in the output.
    """
    runtime = get_runtime()
    await runtime.start()
    return _unwrap(
        await get_updates_tool.execute(
            limit,
            timeout,
            previous,
            poller=runtime.poller,
            downloader=runtime.downloader,
        )
    )


# ---------------------------------------------------------------------------
# Health route, bearer token middleware, HTTP app factory
# ---------------------------------------------------------------------------


@mcp.custom_route("/health", methods=["GET"])
async def health_check(request: Request) -> JSONResponse:
    """Report server version, start time, and the current update offset."""
    runtime = _runtime
    return JSONResponse(
        {
            "status": "ok",
            "version": __version__,
            "server_start_time": _SERVER_START_TIME,
            "cursor": runtime.cursor.value if runtime else None,
            "default_chat_configured": bool(
                runtime and runtime.config.default_chat_id
            ),
        }
    )


class BearerAuthMiddleware(BaseHTTPMiddleware):
    """Simple bearer token authentication for MCP HTTP transport.

    Skips auth on /health (public).
    """

    def __init__(self, app: Starlette, token: str) -> None:
        super().__init__(app)
        self.token = token

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        """Check Authorization header on protected routes."""
        if request.url.path == "/health":
            return await call_next(request)

        auth = request.headers.get("Authorization", "")
        if not auth.startswith("Bearer ") or auth[7:] != self.token:
            logger.warning("Rejected unauthenticated request to %s", request.url.path)
            return JSONResponse({"error": "unauthorized"}, status_code=401)

        return await call_next(request)


def create_http_app(api_token: str | None = None) -> Starlette:
    """Create the streamable-HTTP MCP app with optional bearer auth.

    Args:
        api_token: Token required on every route except /health. None
            leaves the app open (local use).

    Returns:
        Starlette ASGI app.
    """
    app = mcp.streamable_http_app()
    if api_token:
        app.add_middleware(BearerAuthMiddleware, token=api_token)  # type: ignore[arg-type]
    return app
