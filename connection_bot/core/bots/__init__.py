# connection_bot/core/bots/__init__.py
"""
Bot packages. Each one defines its questions, validators and report
template on top of the generic wizard engine.
"""
