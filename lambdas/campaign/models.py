"""Pydantic models for campaign API request/response validation."""

from enum import Enum

from pydantic import BaseModel, Field, field_validator

from narrator.events import MessageReceived, TurnEvent
from shared.models import Campaign, CampaignStatus, Character, Environment, Message


class PromptType(str, Enum):
    """How the player frames their input."""

    DO = "do"
    SAY = "say"
    ATTACK = "attack"


INPUT_PLACEHOLDERS: dict[PromptType, str] = {
    PromptType.DO: "What do you do?",
    PromptType.SAY: "What do you say?",
    PromptType.ATTACK: "How do you attack?",
}


class CampaignCreateRequest(BaseModel):
    """Request body for creating a new campaign."""

    title: str = Field(default="Untitled Campaign", min_length=1, max_length=100)
    player_name: str = Field(..., min_length=1, max_length=50)
    player_description: str = Field(default="", max_length=1000)
    start_scenario: str | None = Field(default=None, max_length=4000)

    @field_validator("player_name")
    @classmethod
    def validate_player_name(cls, v: str) -> str:
        """Reject names made only of whitespace."""
        v = v.strip()
        if not v:
            raise ValueError("player_name must not be blank")
        return v


class PromptRequest(BaseModel):
    """Request body for submitting a player prompt."""

    prompt: str = Field(..., max_length=2000)
    prompt_type: PromptType = PromptType.DO


class EventPayload(BaseModel):
    """Serialized turn event, in emission order."""

    type: str
    message: Message | None = None
    is_done: bool | None = None
    chunk: str | None = None

    @classmethod
    def from_event(cls, event: TurnEvent) -> "EventPayload":
        if isinstance(event, MessageReceived):
            return cls(type="message_received", message=event.message)
        return cls(type="chunk_received", is_done=event.is_done, chunk=event.chunk)


class CampaignSnapshot(BaseModel):
    """Client-facing view of a campaign."""

    campaign_id: str
    title: str
    status: CampaignStatus
    combat_mode: bool
    opponent_name: str | None = None
    player: Character
    characters: list[Character]
    current_environment: Environment | None = None
    messages: list[Message]

    @classmethod
    def from_campaign(cls, campaign: Campaign) -> "CampaignSnapshot":
        return cls(
            campaign_id=campaign.campaign_id,
            title=campaign.title,
            status=campaign.status,
            combat_mode=campaign.combat_mode,
            opponent_name=campaign.opponent_name,
            player=campaign.player,
            characters=campaign.characters,
            current_environment=campaign.current_environment,
            messages=campaign.messages,
        )


class TurnResponse(BaseModel):
    """Response body for a processed turn."""

    message: Message | None = None
    events: list[EventPayload] = Field(default_factory=list)
    campaign: CampaignSnapshot
    input_placeholder: str = INPUT_PLACEHOLDERS[PromptType.DO]
