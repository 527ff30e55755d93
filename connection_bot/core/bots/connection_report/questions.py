# connection_bot/core/bots/connection_report/questions.py
"""
Question sequence for the connection report wizard.

The tuple order is the traversal order.  The address step needs a live
geocoder, so the sequence is built by ``build_questions()`` at startup
rather than defined as a module constant.
"""
from __future__ import annotations

from connection_bot.core.engine.domain import QuestionKind, QuestionSpec, Validator
from connection_bot.core.bots.connection_report.texts import get_text
from connection_bot.core.bots.connection_report.validators import (
    validate_acc_number,
    validate_order_number,
)

# Answer keys (stable; the report template reads them)
KEY_ACC_NUMBER = "acc_number"
KEY_ORDER_NUMBER = "order_number"
KEY_CLIENT_NAME = "client_name"
KEY_ADDRESS = "address"
KEY_PORTS = "ports"
KEY_POP = "pop"
KEY_PANEL_TYPE = "panel_type"
KEY_PANEL_PORTS = "panel_ports"
KEY_DISTANCE = "distance"

# panel_type choice values
PANEL_EXISTING = "existing"
PANEL_NEW = "new"


def build_questions(address_validator: Validator) -> tuple[QuestionSpec, ...]:
    """Build the ordered question sequence with the given address validator."""
    return (
        QuestionSpec(KEY_ACC_NUMBER, get_text("q_acc_number"), validator=validate_acc_number),
        QuestionSpec(KEY_ORDER_NUMBER, get_text("q_order_number"), validator=validate_order_number),
        QuestionSpec(KEY_CLIENT_NAME, get_text("q_client_name")),
        QuestionSpec(KEY_ADDRESS, get_text("q_address"), validator=address_validator),
        QuestionSpec(KEY_PORTS, get_text("q_ports")),
        QuestionSpec(KEY_POP, get_text("q_pop")),
        QuestionSpec(
            KEY_PANEL_TYPE,
            get_text("q_panel_type"),
            kind=QuestionKind.SINGLE_CHOICE,
            choices=(
                (get_text("choice_panel_existing"), PANEL_EXISTING),
                (get_text("choice_panel_new"), PANEL_NEW),
            ),
        ),
        QuestionSpec(KEY_PANEL_PORTS, get_text("q_panel_ports")),
        QuestionSpec(KEY_DISTANCE, get_text("q_distance")),
    )
