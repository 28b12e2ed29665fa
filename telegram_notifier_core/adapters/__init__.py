"""Adapter protocol interfaces for the Telegram notifier.

    telegram_notifier_mcp.telegram_client → MessagingClient

Protocols use structural subtyping (PEP 544); adapters implement the
interface without inheriting from it.
"""

from telegram_notifier_core.adapters.messaging import MessagingClient

__all__ = [
    "MessagingClient",
]
