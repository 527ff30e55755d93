# connection_bot/core/engine/__init__.py
"""
Core engine -- provider-agnostic domain logic.

This package contains the pure domain models, abstract protocols (ports),
the linear wizard engine and the application-level use-case
orchestrator (ConversationService).

Canonical imports:
    from connection_bot.core.engine import WizardEngine, ConversationService
    from connection_bot.core.engine.domain import Session, QuestionSpec
    from connection_bot.core.engine.ports import AsyncSessionStore
"""
from connection_bot.core.engine.domain import (  # noqa: F401
    QuestionKind,
    QuestionSpec,
    Valid,
    Invalid,
    InvalidWithSuggestions,
    ValidationResult,
    StructuredAddress,
    GeocodeResult,
    AddressComponent,
    Session,
    InboundKind,
    InboundMessage,
    Reply,
)
from connection_bot.core.engine.ports import (  # noqa: F401
    AsyncSessionStore,
    AsyncGeocoder,
)
from connection_bot.core.engine.wizard import WizardEngine, WizardTexts  # noqa: F401
from connection_bot.core.engine.use_cases import ConversationService  # noqa: F401
