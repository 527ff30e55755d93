# connection_bot/core/__init__.py
