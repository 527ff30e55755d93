# connection_bot/core/bots/connection_report/report.py
"""
Final report rendering.

The report is Hebrew plain text in a fixed layout that operators paste
into their ticketing system.  Every slot tolerates a missing answer.
"""
from __future__ import annotations

import re
from typing import Any, Mapping

from connection_bot.core.engine.domain import StructuredAddress
from connection_bot.core.bots.connection_report.questions import (
    KEY_ACC_NUMBER,
    KEY_ADDRESS,
    KEY_CLIENT_NAME,
    KEY_DISTANCE,
    KEY_ORDER_NUMBER,
    KEY_PANEL_PORTS,
    KEY_PANEL_TYPE,
    KEY_POP,
    KEY_PORTS,
    PANEL_EXISTING,
)

_NON_DIGIT_RE = re.compile(r"[^0-9]")


def _text(answers: Mapping[str, Any], key: str) -> str:
    value = answers.get(key)
    return "" if value is None else str(value)


def _address_line(address: Any) -> str:
    """``"{street} {building} {city}"``; a missing building leaves a single space."""
    if not isinstance(address, StructuredAddress):
        return " "
    street = address.street or ""
    city = address.city or ""
    middle = f" {address.building} " if address.building else " "
    return f"{street}{middle}{city}"


def format_report(answers: Mapping[str, Any]) -> str:
    """Render collected answers into the connection report. Never raises."""
    panel_state = "קיים" if answers.get(KEY_PANEL_TYPE) == PANEL_EXISTING else ""
    distance = _NON_DIGIT_RE.sub("", _text(answers, KEY_DISTANCE))

    lines = [
        "חיבור לקוח עסקי",
        f"ACC-{_text(answers, KEY_ACC_NUMBER)}",
        f"{_text(answers, KEY_ORDER_NUMBER)} {_text(answers, KEY_CLIENT_NAME)}",
        _address_line(answers.get(KEY_ADDRESS)),
        f"פורטים: {_text(answers, KEY_PORTS)}",
        f"אתר מזין - {_text(answers, KEY_POP)}",
        f"פנל לקוחות {panel_state}",
        f"פורטים {_text(answers, KEY_PANEL_PORTS).upper()}",
        f"מרחק {distance} OTDR",
    ]
    return "\n".join(lines).strip()
