"""
Telegram Notifier: core types and configuration.

Domain records for Bot API updates and sends, environment-driven
configuration, and the messaging adapter protocol. Carries no MCP
dependency.
"""

__version__ = "0.1.0"

from telegram_notifier_core.adapters import MessagingClient
from telegram_notifier_core.config import ConfigError, HttpConfig, NotifierConfig
from telegram_notifier_core.types import (
    # Exceptions
    TelegramDownloadError,
    TelegramError,
    TelegramTransportError,
    # Enums
    AttachmentKind,
    OutboundKind,
    # Send table
    SEND_SPECS,
    SendSpec,
    # Wire types
    ApiResponse,
    FetchWindow,
    # Inbound records
    Attachment,
    Message,
    Sender,
    Update,
    # Tool return type
    ToolResult,
)

__all__ = [
    # Adapter protocols
    "MessagingClient",
    # Configuration
    "ConfigError",
    "HttpConfig",
    "NotifierConfig",
    # Exceptions
    "TelegramError",
    "TelegramTransportError",
    "TelegramDownloadError",
    # Enums
    "AttachmentKind",
    "OutboundKind",
    # Send table
    "SEND_SPECS",
    "SendSpec",
    # Wire types
    "ApiResponse",
    "FetchWindow",
    # Inbound records
    "Attachment",
    "Message",
    "Sender",
    "Update",
    # Tool return type
    "ToolResult",
]
