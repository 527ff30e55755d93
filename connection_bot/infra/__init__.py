# connection_bot/infra/__init__.py
"""Infrastructure: geocoding client, HTTP sessions, logging, metrics, session storage."""
