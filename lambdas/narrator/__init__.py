"""Narration engine: prompt selection, combat resolution and turn orchestration."""

from .combat import CombatResolver
from .events import ChunkReceived, MessageReceived, TurnEvent, TurnEventChannel
from .models import CombatOutcome, CombatResult, LlmResponse, PromptSelection, SystemPromptType
from .selector import SystemPromptSelector
from .service import TurnOrchestrator, strip_transient_messages

__all__ = [
    "ChunkReceived",
    "CombatOutcome",
    "CombatResolver",
    "CombatResult",
    "LlmResponse",
    "MessageReceived",
    "PromptSelection",
    "SystemPromptSelector",
    "SystemPromptType",
    "TurnEvent",
    "TurnEventChannel",
    "TurnOrchestrator",
    "strip_transient_messages",
]
