"""Turn orchestration: one user prompt in, one narrated reply out."""

import asyncio
import weakref
from collections.abc import MutableSequence

from aws_lambda_powertools import Logger

from narrator.claude_client import NarrationClient
from narrator.combat import CombatResolver
from narrator.events import TurnEventChannel
from narrator.prompts import SystemPrompts
from narrator.selector import SystemPromptSelector, WorldStateSynchronizer, last_user_message
from shared.exceptions import GameStateError
from shared.models import Campaign, Message, MessageRole

logger = Logger(child=True)


def strip_transient_messages(conversation: MutableSequence[Message]) -> int:
    """Remove system context injected for a single turn.

    Args:
        conversation: Conversation to clean in place

    Returns:
        Number of messages removed (0 when already clean)
    """
    kept = [m for m in conversation if not (m.transient or m.role == MessageRole.SYSTEM)]
    removed = len(conversation) - len(kept)
    if removed:
        conversation[:] = kept
    return removed


class TurnOrchestrator:
    """Runs user turns against a campaign.

    Turns for the same campaign are serialized with a per-campaign lock;
    different campaigns proceed concurrently. A lock lives only while some
    turn holds or waits on it.
    """

    def __init__(
        self,
        narration_client: NarrationClient,
        state_manager: WorldStateSynchronizer,
        system_prompts: SystemPrompts,
        stream_chat_completions: bool = False,
        resolver: CombatResolver | None = None,
    ) -> None:
        """Initialize orchestrator.

        Args:
            narration_client: Narration backend (Claude or the mock)
            state_manager: World state synchronization and persistence
            system_prompts: Read-only template table
            stream_chat_completions: Stream replies fragment by fragment
            resolver: Combat resolver; a default one is built when omitted
        """
        self.narration_client = narration_client
        self.state_manager = state_manager
        self.stream_chat_completions = stream_chat_completions
        self.selector = SystemPromptSelector(
            narration_client=narration_client,
            state_manager=state_manager,
            system_prompts=system_prompts,
            resolver=resolver or CombatResolver(),
        )
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def _lock_for(self, campaign_id: str) -> asyncio.Lock:
        # Callers must hold the returned lock for as long as they use it
        lock = self._locks.get(campaign_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[campaign_id] = lock
        return lock

    async def handle_user_prompt(
        self,
        campaign: Campaign,
        conversation: MutableSequence[Message],
        events: TurnEventChannel | None = None,
        start_combat: bool = False,
    ) -> Message | None:
        """Process the latest user message and narrate the result.

        The last user message in ``conversation`` is the prompt; a
        conversation with no user message yet is narrated as the opening
        turn. System context is stripped before returning, including when
        the turn fails.

        Args:
            campaign: Campaign being played (mutated in place)
            conversation: Ordered conversation, appended to in place
            events: Optional channel for lifecycle events; closed on return
            start_combat: Enter combat mode before the prompt is resolved

        Returns:
            The assistant message, or None when the prompt was blank

        Raises:
            GameStateError: If the campaign has already concluded
            NarrationError: If the narration backend fails
        """
        try:
            user_message = last_user_message(conversation)
            if not conversation or (user_message is not None and not user_message.content.strip()):
                logger.debug("Ignoring empty prompt", extra={"campaign_id": campaign.campaign_id})
                return None

            lock = self._lock_for(campaign.campaign_id)
            async with lock:
                # The previous holder of this lock may have concluded the campaign
                if campaign.is_concluded:
                    raise GameStateError(
                        "The campaign is over",
                        current_state=campaign.status.value,
                    )
                if start_combat:
                    campaign.combat_mode = True
                return await self._run_turn(campaign, conversation, user_message, events)
        finally:
            strip_transient_messages(conversation)
            if events is not None:
                events.close()

    async def _run_turn(
        self,
        campaign: Campaign,
        conversation: MutableSequence[Message],
        user_message: Message | None,
        events: TurnEventChannel | None,
    ) -> Message:
        logger.info(
            "Turn started",
            extra={"campaign_id": campaign.campaign_id, "combat_mode": campaign.combat_mode},
        )

        # The opening turn is narrated from system context alone
        if user_message is not None:
            self.state_manager.update_state_from_message(campaign, user_message)

        selection = await self.selector.select(campaign, conversation)

        if self.stream_chat_completions:
            reply = await self._stream_reply(conversation, selection.system_prompt, events)
        else:
            reply = await self._complete_reply(conversation, selection.system_prompt, events)

        self.state_manager.update_state_from_message(campaign, reply)
        await self.state_manager.save_current_state(campaign)

        logger.info(
            "Turn processed",
            extra={
                "campaign_id": campaign.campaign_id,
                "prompt_type": selection.prompt_type.value,
                "combat_mode": campaign.combat_mode,
                "player_health": campaign.player.current_health,
                "player_died": selection.player_died,
                "streamed": self.stream_chat_completions,
            },
        )
        return reply

    async def _complete_reply(
        self,
        conversation: MutableSequence[Message],
        system_prompt: str,
        events: TurnEventChannel | None,
    ) -> Message:
        text = await self.narration_client.get_chat_completion(conversation, system_prompt)
        reply = Message(role=MessageRole.ASSISTANT, content=text)
        conversation.append(reply)
        if events is not None:
            events.message_received(reply)
        return reply

    async def _stream_reply(
        self,
        conversation: MutableSequence[Message],
        system_prompt: str,
        events: TurnEventChannel | None,
    ) -> Message:
        reply = Message(role=MessageRole.ASSISTANT)
        # Snapshot before appending so the request never sees the empty reply
        history = list(conversation)
        conversation.append(reply)
        if events is not None:
            events.message_received(reply)

        try:
            async for chunk in self.narration_client.get_streamed_chat_completion(history, system_prompt):
                if not chunk:
                    continue
                reply.append_chunk(chunk)
                if events is not None:
                    events.chunk_received(is_done=False, chunk=chunk)
        except BaseException:
            conversation.remove(reply)
            raise

        if events is not None:
            events.chunk_received(is_done=True)
        return reply
