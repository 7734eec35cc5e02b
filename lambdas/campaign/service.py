"""Campaign service - business logic for campaigns and player turns."""

from dataclasses import dataclass, field

from aws_lambda_powertools import Logger

from campaign.models import CampaignCreateRequest, PromptType
from campaign.repository import CampaignRepository
from narrator.events import TurnEvent, TurnEventChannel
from narrator.service import TurnOrchestrator
from shared.models import Campaign, Character, Message, MessageRole

logger = Logger(child=True)

PLAYER_MAX_HEALTH = 100


@dataclass
class TurnResult:
    """Outcome of one turn as seen by the caller."""

    campaign: Campaign
    message: Message | None = None
    events: list[TurnEvent] = field(default_factory=list)


def opening_message(campaign: Campaign) -> Message:
    """System context introducing the player and the starting scenario."""
    content = (
        f"The player is {campaign.player.name}, "
        f'described as "{campaign.player.description}".'
    )
    if campaign.start_scenario:
        content += "\n" + campaign.start_scenario
    return Message(role=MessageRole.SYSTEM, content=content, transient=True)


def load_conversation(campaign: Campaign) -> list[Message]:
    """Rebuild the conversation for a campaign from its stored transcript.

    The opening context comes first, then the recorded user and assistant
    messages in timestamp order.
    """
    transcript = sorted(campaign.messages, key=lambda m: m.timestamp)
    return [opening_message(campaign), *transcript]


class CampaignService:
    """Service layer for campaign creation and turn processing."""

    def __init__(self, repository: CampaignRepository, orchestrator: TurnOrchestrator) -> None:
        """Initialize campaign service.

        Args:
            repository: Campaign persistence
            orchestrator: Turn orchestrator shared by all campaigns
        """
        self.repository = repository
        self.orchestrator = orchestrator

    def create_campaign(self, user_id: str, request: CampaignCreateRequest) -> Campaign:
        """Create and store a new campaign with its player character.

        Args:
            user_id: The user's ID
            request: Campaign creation request

        Returns:
            The created campaign
        """
        player = Character(
            name=request.player_name,
            description=request.player_description,
            is_player=True,
            current_health=PLAYER_MAX_HEALTH,
            max_health=PLAYER_MAX_HEALTH,
        )
        campaign = Campaign(
            user_id=user_id,
            title=request.title,
            player=player,
            start_scenario=request.start_scenario,
        )
        self.repository.save(campaign)

        logger.info(
            "Campaign created",
            extra={"user_id": user_id, "campaign_id": campaign.campaign_id},
        )
        return campaign

    def get_campaign(self, user_id: str, campaign_id: str) -> Campaign:
        """Load a campaign owned by the user.

        Raises:
            NotFoundError: If the campaign doesn't exist
        """
        return self.repository.get_or_raise(user_id, campaign_id)

    async def _run(
        self,
        campaign: Campaign,
        conversation: list[Message],
        start_combat: bool = False,
    ) -> TurnResult:
        channel = TurnEventChannel()
        message = await self.orchestrator.handle_user_prompt(
            campaign, conversation, channel, start_combat=start_combat
        )
        return TurnResult(campaign=campaign, message=message, events=channel.drain())

    async def start_campaign(self, campaign: Campaign) -> TurnResult:
        """Narrate the opening scene of a new campaign."""
        return await self._run(campaign, [opening_message(campaign)])

    async def submit_prompt(
        self,
        campaign: Campaign,
        conversation: list[Message],
        text: str,
        prompt_type: PromptType = PromptType.DO,
    ) -> TurnResult:
        """Run one player turn.

        Args:
            campaign: Campaign being played
            conversation: Current conversation, appended to in place
            text: The player's input
            prompt_type: How the input is framed; ATTACK starts combat

        Returns:
            TurnResult with the narrated reply and every event emitted

        Raises:
            GameStateError: If the campaign has concluded
            NarrationError: If the narration backend fails
        """
        if not text.strip():
            return TurnResult(campaign=campaign)

        conversation.append(Message(role=MessageRole.USER, content=text))
        result = await self._run(
            campaign, conversation, start_combat=prompt_type == PromptType.ATTACK
        )

        logger.info(
            "Prompt submitted",
            extra={
                "campaign_id": campaign.campaign_id,
                "prompt_type": prompt_type.value,
                "events": len(result.events),
            },
        )
        return result
