# connection_bot/core/engine/domain.py
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Union


# ============================================================================
# QUESTIONS
# ============================================================================

class QuestionKind(str, Enum):
    """How a wizard step collects its answer."""
    FREE_TEXT = "text"
    SINGLE_CHOICE = "choice"


# ============================================================================
# VALIDATION RESULTS (tagged variant)
# ============================================================================

@dataclass(frozen=True)
class Valid:
    """Input accepted. ``value`` replaces the raw text when not None."""
    value: Any = None


@dataclass(frozen=True)
class Invalid:
    """Input rejected with a human-readable message."""
    error: Optional[str] = None


@dataclass(frozen=True)
class InvalidWithSuggestions:
    """Input rejected, but the user can pick one of the candidates instead."""
    suggestions: tuple[str, ...] = ()


ValidationResult = Union[Valid, Invalid, InvalidWithSuggestions]

# Validators may be plain functions or coroutines (address lookup awaits the geocoder)
Validator = Callable[[str], Union[ValidationResult, Awaitable[ValidationResult]]]


@dataclass(frozen=True)
class QuestionSpec:
    """
    Declarative description of one wizard step.
    The order of the question tuple is the traversal order.
    """
    key: str
    prompt: str
    kind: QuestionKind = QuestionKind.FREE_TEXT
    choices: tuple[tuple[str, str], ...] = ()  # (label, value) pairs for SINGLE_CHOICE
    validator: Optional[Validator] = None


# ============================================================================
# ADDRESS
# ============================================================================

@dataclass(frozen=True)
class StructuredAddress:
    """City/street/building decomposition of a validated address."""
    street: Optional[str] = None
    building: Optional[str] = None
    city: Optional[str] = None


@dataclass
class AddressComponent:
    """One typed piece of a geocoding result (e.g. types=["locality", "political"])."""
    long_name: str
    types: list[str] = field(default_factory=list)


@dataclass
class GeocodeResult:
    """
    Provider-agnostic geocoding candidate.
    The geocoding client converts raw provider JSON into this shape.
    """
    formatted_address: str
    components: list[AddressComponent] = field(default_factory=list)

    def component(self, kind: str) -> Optional[str]:
        """Return the long name of the first component having ``kind`` among its types"""
        for comp in self.components:
            if kind in comp.types:
                return comp.long_name
        return None


# ============================================================================
# SESSION STATE
# ============================================================================

@dataclass
class Session:
    """
    One user's in-progress wizard traversal, keyed by chat id.
    ``current_step`` never exceeds the number of questions.
    """
    chat_id: str
    current_step: int = 0
    answers: Dict[str, Any] = field(default_factory=dict)
    pending_suggestions: Optional[list[str]] = None

    def has_suggestion(self, value: str) -> bool:
        """Check if value exactly matches one of the pending suggestions"""
        return bool(self.pending_suggestions) and value in self.pending_suggestions


# ============================================================================
# INBOUND / OUTBOUND MESSAGES
# ============================================================================

class InboundKind(str, Enum):
    """Universal inbound event types"""
    START = "start"
    TEXT = "text"
    CHOICE = "choice"


@dataclass
class InboundMessage:
    """
    Normalized inbound event from the chat transport.
    This is the domain model that represents an incoming user action.
    """
    provider: str  # "telegram", "dev", etc.
    chat_id: str
    message_id: str
    kind: InboundKind = InboundKind.TEXT
    text: Optional[str] = None
    choice: Optional[str] = None  # callback payload for CHOICE events
    callback_id: Optional[str] = None  # provider id to acknowledge a button press
    sender_name: Optional[str] = None

    def has_text(self) -> bool:
        """Check if message contains text"""
        return bool(self.text and self.text.strip())


@dataclass(frozen=True)
class Reply:
    """Outbound message: plain text, optionally with selectable (label, value) options."""
    text: str
    options: tuple[tuple[str, str], ...] = ()

    def has_options(self) -> bool:
        return bool(self.options)
