"""Telegram notifier MCP tool implementations."""
