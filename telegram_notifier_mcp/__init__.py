"""Telegram Notifier MCP Server - bot messaging via Model Context Protocol."""

__version__ = "0.1.0"
