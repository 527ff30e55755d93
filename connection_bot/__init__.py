# connection_bot/__init__.py
"""Telegram bot that collects business-customer connection reports."""
