"""World state synchronization: narration payloads into the campaign."""

import asyncio

from aws_lambda_powertools import Logger

from campaign.repository import CampaignRepository
from narrator.models import LlmResponse, LlmResponseCharacter, LlmResponseEnvironment
from narrator.parser import parse_llm_response
from shared.models import (
    DEFAULT_MAX_HEALTH,
    Campaign,
    Character,
    CharacterType,
    Environment,
    Message,
    MessageRole,
)

logger = Logger(child=True)


class GameStateManager:
    """Applies narrated facts to a campaign and persists it."""

    def __init__(self, repository: CampaignRepository) -> None:
        """Initialize state manager.

        Args:
            repository: Campaign persistence
        """
        self.repository = repository

    def update_state_from_message(self, campaign: Campaign, message: Message) -> LlmResponse | None:
        """Record a message in the transcript and apply what it reports.

        Only assistant messages carry a structured payload; user messages
        are recorded and nothing more. Transient system context is ignored.

        Args:
            campaign: Campaign to update in place
            message: Message from the current turn

        Returns:
            The parsed payload for assistant messages, otherwise None
        """
        if message.transient or message.role == MessageRole.SYSTEM:
            return None

        if all(m.message_id != message.message_id for m in campaign.messages):
            campaign.messages.append(message)

        if message.role != MessageRole.ASSISTANT:
            return None

        payload = parse_llm_response(message.content)
        self.apply_payload(campaign, payload)
        return payload

    def apply_payload(self, campaign: Campaign, payload: LlmResponse) -> None:
        """Apply a parsed payload: location first, then characters, then combat."""
        if payload.environment is not None:
            self.update_environment(campaign, payload.environment)

        for entry in payload.characters:
            self.upsert_character(campaign, entry)

        if campaign.is_concluded:
            return

        if payload.is_in_combat is True:
            campaign.combat_mode = True
        elif payload.is_in_combat is False and campaign.combat_mode:
            logger.info("Narrator ended combat", extra={"campaign_id": campaign.campaign_id})
            campaign.end_combat()

        if payload.opponent and campaign.combat_mode:
            campaign.opponent_name = payload.opponent

    def update_environment(self, campaign: Campaign, entry: LlmResponseEnvironment) -> Environment:
        """Move the party to a location, creating it on first visit.

        The current location is always the last one in the list.
        """
        environment = campaign.find_environment(entry.name)
        if environment is None:
            environment = Environment(name=entry.name.strip(), description=entry.description or "")
            logger.info("New location discovered", extra={"environment": environment.name})
        else:
            campaign.environments.remove(environment)
            if entry.description:
                environment.description = entry.description
        campaign.environments.append(environment)
        return environment

    def upsert_character(self, campaign: Campaign, entry: LlmResponseCharacter) -> Character | None:
        """Create or update a non-player character in the current location.

        Types that are missing or unrecognised default to humanoid. Entries
        naming the player are ignored.

        Returns:
            The stored character, or None for the player
        """
        if entry.name.strip().lower() == campaign.player.name.strip().lower():
            return None

        environment = campaign.current_environment
        environment_id = environment.environment_id if environment else None

        character = campaign.find_character(entry.name)
        if character is not None:
            if entry.description:
                character.description = entry.description
            if entry.type:
                character.type = CharacterType.parse(entry.type)
            if environment_id:
                character.environment_id = environment_id
            return character

        character_type = CharacterType.parse(entry.type)
        max_health = DEFAULT_MAX_HEALTH[character_type]
        character = Character(
            name=entry.name.strip(),
            description=entry.description or "",
            type=character_type,
            environment_id=environment_id,
            current_health=max_health,
            max_health=max_health,
        )
        campaign.characters.append(character)
        logger.info(
            "New character introduced",
            extra={"character": character.name, "type": character_type.value},
        )
        return character

    async def save_current_state(self, campaign: Campaign) -> None:
        """Persist the campaign without blocking the event loop."""
        await asyncio.to_thread(self.repository.save, campaign)
