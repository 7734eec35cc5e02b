"""System prompt selection and combat narration.

Outside combat the default template passes through. During combat the
opponent is identified, the exchange is resolved mechanically, health is
applied, and a transient system message states the result so the narrator
describes exactly what happened.
"""

from collections.abc import MutableSequence
from typing import Protocol

from aws_lambda_powertools import Logger

from narrator.claude_client import NarrationClient
from narrator.combat import CombatResolver
from narrator.models import (
    LlmResponseCharacter,
    PromptSelection,
    SystemPromptType,
)
from narrator.parser import parse_llm_response
from narrator.prompts import SystemPrompts
from shared.models import (
    Campaign,
    CampaignStatus,
    Character,
    Message,
    MessageRole,
)

logger = Logger(child=True)

PLAYER_DEATH_MESSAGE = "The player has died and the campaign is over."


class WorldStateSynchronizer(Protocol):
    """What the engine needs from the world state manager."""

    def update_state_from_message(self, campaign: Campaign, message: Message) -> object: ...

    def upsert_character(self, campaign: Campaign, entry: LlmResponseCharacter) -> Character | None: ...

    async def save_current_state(self, campaign: Campaign) -> None: ...


def last_user_message(conversation: MutableSequence[Message]) -> Message | None:
    """Most recent user message, if any."""
    for message in reversed(conversation):
        if message.role == MessageRole.USER:
            return message
    return None


class SystemPromptSelector:
    """Chooses the instruction template for the next narration request."""

    def __init__(
        self,
        narration_client: NarrationClient,
        state_manager: WorldStateSynchronizer,
        system_prompts: SystemPrompts,
        resolver: CombatResolver,
    ) -> None:
        """Initialize selector.

        Args:
            narration_client: Used for the opponent-description request
            state_manager: Stores the opponent reported by the narrator
            system_prompts: Read-only template table
            resolver: Combat resolver with its injected random source
        """
        self.narration_client = narration_client
        self.state_manager = state_manager
        self.system_prompts = system_prompts
        self.resolver = resolver

    def _selection(self, prompt_type: SystemPromptType, **kwargs) -> PromptSelection:
        return PromptSelection(
            prompt_type=prompt_type,
            system_prompt=self.system_prompts[prompt_type],
            **kwargs,
        )

    async def select(
        self,
        campaign: Campaign,
        conversation: MutableSequence[Message],
    ) -> PromptSelection:
        """Pick the template for this turn, resolving combat when active.

        Mutates character health, the campaign's combat flag and the
        conversation before returning, so everything is settled before
        narration is requested.

        Args:
            campaign: Campaign being played
            conversation: Conversation for this turn (appended to)

        Returns:
            PromptSelection with the template text and any combat result

        Raises:
            NarrationError: If the opponent-description request fails
        """
        if not campaign.combat_mode:
            return self._selection(SystemPromptType.DEFAULT)

        if campaign.opponent_name is None:
            await self._describe_opponent(campaign, conversation)

        opponent = campaign.find_opponent()
        if opponent is None or opponent.is_dead:
            user_message = last_user_message(conversation)
            logger.error(
                "Could not find an opponent",
                extra={
                    "campaign_id": campaign.campaign_id,
                    "opponent_name": campaign.opponent_name,
                    "content": user_message.content if user_message else None,
                },
            )
            campaign.end_combat()
            return self._selection(SystemPromptType.DEFAULT)

        return self._resolve_exchange(campaign, conversation, opponent)

    async def _describe_opponent(
        self,
        campaign: Campaign,
        conversation: MutableSequence[Message],
    ) -> None:
        """Ask the narrator who the player is fighting and record them."""
        response_text = await self.narration_client.get_chat_completion(
            conversation,
            self.system_prompts[SystemPromptType.COMBAT_OPPONENT_DESCRIPTION],
        )
        payload = parse_llm_response(response_text)

        for entry in payload.characters:
            self.state_manager.upsert_character(campaign, entry)

        opponent_name = payload.opponent
        if opponent_name is None and len(payload.characters) == 1:
            opponent_name = payload.characters[0].name
        campaign.opponent_name = opponent_name

        logger.info(
            "Combat started",
            extra={"campaign_id": campaign.campaign_id, "opponent": opponent_name},
        )

    def _resolve_exchange(
        self,
        campaign: Campaign,
        conversation: MutableSequence[Message],
        opponent: Character,
    ) -> PromptSelection:
        player = campaign.player
        result = self.resolver.resolve(opponent.type)

        parts: list[str] = []
        opponent_died = False
        player_died = False

        if result.player_damage:
            opponent_died = opponent.adjust_health(-result.player_damage)
            parts.append(
                f"The player hits {opponent.name} with their attack, "
                f"dealing {result.player_damage} damage."
            )
            logger.info(
                "Combat damage applied",
                extra={
                    "attacker": player.name,
                    "defender": opponent.name,
                    "damage": result.player_damage,
                    "health": f"{opponent.current_health}/{opponent.max_health}",
                },
            )
            if opponent_died:
                parts.append(
                    f"With no health points remaining, {opponent.name} dies "
                    "and can no longer participate in the narrative."
                )
        else:
            parts.append("The player misses with their attack, dealing no damage.")

        if result.opponent_damage:
            player_died = player.adjust_health(-result.opponent_damage)
            parts.append(
                f"{opponent.name} will hit with their next attack, "
                f"dealing {result.opponent_damage} damage."
            )
            logger.info(
                "Combat damage applied",
                extra={
                    "attacker": opponent.name,
                    "defender": player.name,
                    "damage": result.opponent_damage,
                    "health": f"{player.current_health}/{player.max_health}",
                },
            )
        else:
            parts.append(f"{opponent.name} will miss their next attack, dealing no damage.")

        conversation.append(
            Message(role=MessageRole.SYSTEM, content=" ".join(parts), transient=True)
        )

        if opponent_died or player_died:
            campaign.end_combat()

        if player_died:
            conversation.append(
                Message(role=MessageRole.SYSTEM, content=PLAYER_DEATH_MESSAGE, transient=True)
            )
            campaign.status = CampaignStatus.CONCLUDED
            logger.info("Player died", extra={"campaign_id": campaign.campaign_id})
            return self._selection(
                SystemPromptType.DEFAULT,
                combat_result=result,
                player_died=True,
            )

        return self._selection(result.outcome.prompt_type, combat_result=result)
