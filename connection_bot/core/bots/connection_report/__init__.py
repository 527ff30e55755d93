# connection_bot/core/bots/connection_report/__init__.py
"""
Connection report bot: business-customer connection wizard.

Sub-modules:
    texts      : user-facing Russian texts, get_text(key)
    validators : ACC / order number validators
    address    : address normalization + geocoder-backed validator
    questions  : ordered QuestionSpec sequence and answer keys
    report     : Hebrew report template

``build_wizard()`` assembles a ready WizardEngine from these parts.
"""
from __future__ import annotations

from connection_bot.core.engine.ports import AsyncGeocoder, AsyncSessionStore
from connection_bot.core.engine.wizard import WizardEngine, WizardTexts
from connection_bot.core.bots.connection_report.address import AddressValidator
from connection_bot.core.bots.connection_report.questions import build_questions
from connection_bot.core.bots.connection_report.report import format_report
from connection_bot.core.bots.connection_report.texts import get_text


def build_wizard_texts() -> WizardTexts:
    return WizardTexts(
        suggestions_intro=get_text("q_address_suggestions"),
        generic_error=get_text("err_generic"),
        no_session=get_text("hint_send_start"),
        already_done=get_text("info_already_done"),
    )


def build_wizard(
    *,
    geocoder: AsyncGeocoder,
    sessions: AsyncSessionStore,
    region: str = "il",
    language: str = "he",
) -> WizardEngine:
    """Create the connection report WizardEngine."""
    validator = AddressValidator(geocoder, region=region, language=language)
    return WizardEngine(
        questions=build_questions(validator),
        sessions=sessions,
        render_report=format_report,
        texts=build_wizard_texts(),
    )


__all__ = ["build_wizard", "build_wizard_texts"]
