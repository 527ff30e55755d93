# connection_bot/transport/__init__.py
"""Telegram transport: update adapter, sender, polling and webhook handlers."""
