"""Pydantic models for narration payloads and combat resolution."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class SystemPromptType(str, Enum):
    """Named instruction templates for the narration model."""

    DEFAULT = "Default"
    COMBAT_HIT_HIT = "CombatHitHit"
    COMBAT_HIT_MISS = "CombatHitMiss"
    COMBAT_MISS_HIT = "CombatMissHit"
    COMBAT_MISS_MISS = "CombatMissMiss"
    COMBAT_OPPONENT_DESCRIPTION = "CombatOpponentDescription"


class CombatOutcome(str, Enum):
    """Result of one combat exchange: player roll first, opponent second."""

    HIT_HIT = "hit_hit"
    HIT_MISS = "hit_miss"
    MISS_HIT = "miss_hit"
    MISS_MISS = "miss_miss"

    @property
    def player_hits(self) -> bool:
        return self in (CombatOutcome.HIT_HIT, CombatOutcome.HIT_MISS)

    @property
    def opponent_hits(self) -> bool:
        return self in (CombatOutcome.HIT_HIT, CombatOutcome.MISS_HIT)

    @property
    def prompt_type(self) -> SystemPromptType:
        """Template used to narrate this outcome."""
        return _OUTCOME_PROMPTS[self]


_OUTCOME_PROMPTS = {
    CombatOutcome.HIT_HIT: SystemPromptType.COMBAT_HIT_HIT,
    CombatOutcome.HIT_MISS: SystemPromptType.COMBAT_HIT_MISS,
    CombatOutcome.MISS_HIT: SystemPromptType.COMBAT_MISS_HIT,
    CombatOutcome.MISS_MISS: SystemPromptType.COMBAT_MISS_MISS,
}


class CombatResult(BaseModel):
    """Mechanical result of one exchange, resolved before narration."""

    outcome: CombatOutcome
    player_damage: int = Field(default=0, ge=0)
    """Damage the player deals to the opponent."""

    opponent_damage: int = Field(default=0, ge=0)
    """Damage the opponent deals to the player."""


class LlmResponseCharacter(BaseModel):
    """Character entry reported by the narrator."""

    name: str = Field(..., min_length=1)
    description: str | None = None
    type: str | None = None


class LlmResponseEnvironment(BaseModel):
    """Location entry reported by the narrator."""

    name: str = Field(..., min_length=1)
    description: str | None = None


class LlmResponse(BaseModel):
    """Structured narration payload.

    Every field is optional; anything missing or malformed means
    "no update" for that part of the world state.
    """

    model_config = ConfigDict(populate_by_name=True)

    narrative: str | None = None
    characters: list[LlmResponseCharacter] = Field(default_factory=list)
    environment: LlmResponseEnvironment | None = None
    is_in_combat: bool | None = Field(default=None, alias="isInCombat")
    opponent: str | None = None


class PromptSelection(BaseModel):
    """System prompt chosen for the next narration request."""

    prompt_type: SystemPromptType = SystemPromptType.DEFAULT
    system_prompt: str
    combat_result: CombatResult | None = None
    player_died: bool = False
