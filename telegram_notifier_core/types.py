"""Shared data types for the Telegram notifier.

Inbound records (``Update`` and friends) are parsed from the raw Bot API
JSON. Outbound sends are described by the ``SEND_SPECS`` table so every
send tool runs through one code path.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


# ============================================================
# Exceptions
# ============================================================


class TelegramError(Exception):
    """Base class for failures talking to the Telegram Bot API."""


class TelegramTransportError(TelegramError):
    """The request never produced a usable JSON envelope.

    Raised for network errors, timeouts, and undecodable response bodies.
    """


class TelegramDownloadError(TelegramError):
    """The file endpoint answered with a non-success status."""


# ============================================================
# Enums
# ============================================================


class AttachmentKind(Enum):
    """Binary payload variants an inbound message can carry."""

    PHOTO = "photo"
    DOCUMENT = "document"
    VIDEO = "video"
    AUDIO = "audio"
    VOICE = "voice"
    STICKER = "sticker"


class OutboundKind(Enum):
    """What a send tool delivers."""

    TEXT = "text"
    DOCUMENT = "document"
    PHOTO = "photo"
    VIDEO = "video"
    AUDIO = "audio"


@dataclass(frozen=True)
class SendSpec:
    """How one outbound kind maps onto the Bot API.

    Attributes:
        method: Bot API method name (e.g. ``sendPhoto``).
        field: Request field carrying the payload (text or file part).
        multipart: True when the payload is a file upload.
        noun: Human label used in the success message.
    """

    method: str
    field: str
    multipart: bool
    noun: str


SEND_SPECS: dict[OutboundKind, SendSpec] = {
    OutboundKind.TEXT: SendSpec("sendMessage", "text", False, "Message"),
    OutboundKind.DOCUMENT: SendSpec("sendDocument", "document", True, "Document"),
    OutboundKind.PHOTO: SendSpec("sendPhoto", "photo", True, "Photo"),
    OutboundKind.VIDEO: SendSpec("sendVideo", "video", True, "Video"),
    OutboundKind.AUDIO: SendSpec("sendAudio", "audio", True, "Audio"),
}


# ============================================================
# Wire envelope and request descriptors
# ============================================================


@dataclass(frozen=True)
class ApiResponse:
    """The ``{ok, description?, result?}`` envelope every Bot API call returns."""

    ok: bool
    description: str | None = None
    result: Any = None

    @classmethod
    def from_dict(cls, data: Any) -> ApiResponse:
        """Build an envelope from decoded JSON.

        Args:
            data: Decoded JSON body.

        Returns:
            ApiResponse. Anything that is not a JSON object is a failed call.
        """
        if not isinstance(data, dict):
            return cls(ok=False, description="Malformed response from Telegram")
        description = data.get("description")
        return cls(
            ok=bool(data.get("ok", False)),
            description=str(description) if description is not None else None,
            result=data.get("result"),
        )

    @property
    def error_text(self) -> str:
        """Remote description, or a generic fallback."""
        return self.description or "Unknown error"


@dataclass(frozen=True)
class FetchWindow:
    """A ``getUpdates`` request.

    Attributes:
        offset: Lowest update_id to return (inclusive).
        limit: Maximum number of updates.
        timeout: Seconds the server may hold the request open.
    """

    offset: int
    limit: int
    timeout: int


# ============================================================
# Inbound records
# ============================================================


@dataclass(frozen=True)
class Sender:
    """Who sent a message."""

    first_name: str
    username: str | None = None

    @property
    def display(self) -> str:
        if self.username:
            return f"{self.first_name} (@{self.username})"
        return self.first_name


@dataclass(frozen=True)
class Attachment:
    """Binary payload referenced by a message."""

    kind: AttachmentKind
    file_id: str
    file_name: str | None = None
    duration: int | None = None
    emoji: str | None = None


@dataclass(frozen=True)
class Message:
    """The message payload of an update."""

    message_id: int
    chat_id: int
    date: int
    sender: Sender | None = None
    text: str | None = None
    caption: str | None = None
    attachment: Attachment | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Message:
        """Parse a Bot API ``Message`` object.

        Args:
            data: Raw message dict.

        Returns:
            Message with at most one attachment. Photos keep only the
            largest size (the last entry of the array).
        """
        raw_from = data.get("from")
        sender = None
        if isinstance(raw_from, dict):
            sender = Sender(
                first_name=str(raw_from.get("first_name", "")),
                username=_as_str(raw_from.get("username")),
            )

        chat = data.get("chat")
        if not isinstance(chat, dict):
            chat = {}
        return cls(
            message_id=_as_int(data.get("message_id")),
            chat_id=_as_int(chat.get("id")),
            date=_as_int(data.get("date")),
            sender=sender,
            text=_as_str(data.get("text")),
            caption=_as_str(data.get("caption")),
            attachment=_parse_attachment(data),
        )


@dataclass(frozen=True)
class Update:
    """One inbound event from ``getUpdates``."""

    update_id: int
    message: Message | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Update:
        raw_message = data.get("message")
        return cls(
            update_id=int(data["update_id"]),
            message=Message.from_dict(raw_message)
            if isinstance(raw_message, dict)
            else None,
        )


def _as_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _as_str(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


def _file_id(raw: Any) -> str | None:
    if isinstance(raw, dict) and raw.get("file_id"):
        return str(raw["file_id"])
    return None


def _parse_attachment(data: dict[str, Any]) -> Attachment | None:
    """Pick the first attachment variant present on a raw message.

    Variants without a usable ``file_id`` are skipped; the message is kept
    either way.
    """
    photos = data.get("photo")
    if isinstance(photos, list) and photos:
        file_id = _file_id(photos[-1])
        if file_id:
            return Attachment(AttachmentKind.PHOTO, file_id)

    for kind in (
        AttachmentKind.DOCUMENT,
        AttachmentKind.VIDEO,
        AttachmentKind.AUDIO,
        AttachmentKind.VOICE,
        AttachmentKind.STICKER,
    ):
        raw = data.get(kind.value)
        file_id = _file_id(raw)
        if file_id:
            duration = raw.get("duration")
            return Attachment(
                kind=kind,
                file_id=file_id,
                file_name=_as_str(raw.get("file_name")),
                duration=duration if isinstance(duration, int) else None,
                emoji=_as_str(raw.get("emoji")),
            )
    return None


# ============================================================
# Tool return type
# ============================================================


@dataclass(frozen=True)
class ToolResult:
    """Text returned to the MCP client, flagged when it reports a failure."""

    text: str
    is_error: bool = False

    @classmethod
    def success(cls, text: str) -> ToolResult:
        return cls(text=text)

    @classmethod
    def error(cls, text: str) -> ToolResult:
        return cls(text=text, is_error=True)
