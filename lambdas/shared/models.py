"""Pydantic models for Chronicle RPG game entities."""

from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field, model_validator


class MessageRole(str, Enum):
    """Message sender role."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class CharacterType(str, Enum):
    """Broad character classes used to scale combat damage."""

    HUMANOID = "humanoid"
    SMALL_CREATURE = "small_creature"
    LARGE_CREATURE = "large_creature"
    MONSTER = "monster"

    @classmethod
    def parse(cls, value: str | None) -> "CharacterType":
        """Parse a model-reported type, defaulting to HUMANOID.

        Accepts the enum value ("small_creature") as well as the spaced or
        camel-cased spellings a model tends to produce ("Small Creature",
        "SmallCreature").
        """
        if not value:
            return cls.HUMANOID
        normalized = "".join(ch for ch in value.lower() if ch.isalpha())
        for member in cls:
            if member.value.replace("_", "") == normalized:
                return member
        return cls.HUMANOID


class CampaignStatus(str, Enum):
    """Campaign lifecycle."""

    ACTIVE = "active"
    CONCLUDED = "concluded"


# Starting health for characters introduced by the narrator
DEFAULT_MAX_HEALTH: dict[CharacterType, int] = {
    CharacterType.SMALL_CREATURE: 20,
    CharacterType.HUMANOID: 50,
    CharacterType.LARGE_CREATURE: 75,
    CharacterType.MONSTER: 100,
}


class Message(BaseModel):
    """A single conversation turn.

    Content is mutable so a streamed reply can grow chunk by chunk, but it
    never shrinks.
    """

    message_id: str = Field(default_factory=lambda: str(uuid4()))
    role: MessageRole
    content: str = ""
    timestamp: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    transient: bool = False
    """Synthesized system context that is dropped once the turn completes."""

    def append_chunk(self, chunk: str) -> None:
        """Append a streamed fragment to the content."""
        self.content += chunk


class Environment(BaseModel):
    """A location visited during the campaign."""

    environment_id: str = Field(default_factory=lambda: str(uuid4()))
    name: str = Field(..., min_length=1)
    description: str = ""


class Character(BaseModel):
    """Player or non-player character."""

    character_id: str = Field(default_factory=lambda: str(uuid4()))
    environment_id: str | None = None
    type: CharacterType = CharacterType.HUMANOID
    name: str = Field(..., min_length=1)
    description: str = ""
    is_player: bool = False
    current_health: int = Field(default=50, ge=0)
    max_health: int = Field(default=50, ge=1)

    @model_validator(mode="after")
    def _clamp_health(self) -> "Character":
        if self.current_health > self.max_health:
            self.current_health = self.max_health
        return self

    @property
    def is_dead(self) -> bool:
        """A character at zero health is dead but stays in the campaign."""
        return self.current_health <= 0

    def adjust_health(self, delta: int) -> bool:
        """Apply a health change, clamped to [0, max_health].

        Args:
            delta: Negative for damage, positive for healing

        Returns:
            True if the character is dead after the adjustment
        """
        self.current_health = max(0, min(self.max_health, self.current_health + delta))
        return self.is_dead


class Campaign(BaseModel):
    """Campaign aggregate: player, cast, locations and combat flag.

    Characters do not point back at the campaign; lookups go through the
    campaign instead.
    """

    campaign_id: str = Field(default_factory=lambda: str(uuid4()))
    user_id: str
    title: str = "Untitled Campaign"
    player: Character
    characters: list[Character] = Field(default_factory=list)
    environments: list[Environment] = Field(default_factory=list)
    combat_mode: bool = False
    opponent_name: str | None = None
    start_scenario: str | None = None
    messages: list[Message] = Field(default_factory=list)
    status: CampaignStatus = CampaignStatus.ACTIVE
    created_at: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    updated_at: str | None = None

    @property
    def current_environment(self) -> Environment | None:
        """The most recently entered location."""
        return self.environments[-1] if self.environments else None

    @property
    def is_concluded(self) -> bool:
        return self.status == CampaignStatus.CONCLUDED

    def find_character(self, name: str) -> Character | None:
        """Find a non-player character by name, most recent first."""
        wanted = name.strip().lower()
        for character in reversed(self.characters):
            if not character.is_player and character.name.strip().lower() == wanted:
                return character
        return None

    def find_opponent(self) -> Character | None:
        """The character currently being fought, if combat has one."""
        if not self.opponent_name:
            return None
        return self.find_character(self.opponent_name)

    def find_environment(self, name: str) -> Environment | None:
        """Find a known location by case-insensitive name."""
        wanted = name.strip().lower()
        for environment in self.environments:
            if environment.name.strip().lower() == wanted:
                return environment
        return None

    def characters_in(self, environment_id: str) -> list[Character]:
        """Characters last seen in the given location."""
        return [c for c in self.characters if c.environment_id == environment_id]

    def end_combat(self) -> None:
        """Leave combat mode and forget the current opponent."""
        self.combat_mode = False
        self.opponent_name = None

    def to_db_keys(self) -> tuple[str, str]:
        """Get DynamoDB PK and SK for this campaign.

        Returns:
            Tuple of (PK, SK)
        """
        return f"USER#{self.user_id}", f"CAMP#{self.campaign_id}"

    def to_db_item(self) -> tuple[str, str, dict[str, Any]]:
        """Convert to DynamoDB item format.

        Transient messages are never persisted.

        Returns:
            Tuple of (PK, SK, data dict)
        """
        pk, sk = self.to_db_keys()
        data = self.model_dump(mode="json", exclude={"user_id", "campaign_id", "messages"})
        data["messages"] = [
            msg.model_dump(mode="json", exclude={"transient"})
            for msg in self.messages
            if not msg.transient
        ]
        return pk, sk, data

    @classmethod
    def from_db_item(cls, item: dict[str, Any]) -> "Campaign":
        """Create Campaign from DynamoDB item.

        Args:
            item: DynamoDB item dict

        Returns:
            Campaign instance
        """
        user_id = item["PK"].replace("USER#", "")
        campaign_id = item["SK"].replace("CAMP#", "")
        return cls(
            user_id=user_id,
            campaign_id=campaign_id,
            **{k: v for k, v in item.items() if k not in ("PK", "SK")},
        )
