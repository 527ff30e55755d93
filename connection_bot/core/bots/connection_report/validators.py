# connection_bot/core/bots/connection_report/validators.py
"""
Synchronous field validators for the connection report bot.

Each validator takes the raw user text and returns a ValidationResult;
expected failures are values, never exceptions.
"""
from __future__ import annotations

import re

from connection_bot.core.engine.domain import Invalid, Valid, ValidationResult
from connection_bot.core.bots.connection_report.texts import get_text

__all__ = [
    "validate_acc_number", "validate_order_number",
    "_ACC_NUMBER_RE", "_ORDER_NUMBER_RE",
]


_ACC_NUMBER_RE = re.compile(r"\d{5}", re.ASCII)
_ORDER_NUMBER_RE = re.compile(r"[\d+]+", re.ASCII)


def validate_acc_number(text: str) -> ValidationResult:
    """ACC number: exactly five digits, nothing else."""
    if _ACC_NUMBER_RE.fullmatch(text or ""):
        return Valid()
    return Invalid(get_text("err_acc_number"))


def validate_order_number(text: str) -> ValidationResult:
    """Order number: digits and ``+`` only (several orders are joined with ``+``)."""
    if _ORDER_NUMBER_RE.fullmatch(text or ""):
        return Valid()
    return Invalid(get_text("err_order_number"))
