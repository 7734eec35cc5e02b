"""Deterministic narration backend used when USE_MOCKS is set."""

import json
from collections.abc import AsyncIterator, Sequence

from aws_lambda_powertools import Logger

from narrator.models import SystemPromptType
from narrator.prompts import SystemPrompts
from shared.models import Message

logger = Logger(child=True)

MOCK_NARRATION = {
    "narrative": (
        "The wind shifts, carrying the smell of rain and woodsmoke. "
        "Somewhere ahead, a lantern flickers to life."
    ),
    "environment": {
        "name": "The Old Road",
        "description": "A rutted road winding between dark pines",
    },
    "isInCombat": False,
}

MOCK_OPPONENT = {
    "characters": [
        {
            "name": "Bandit",
            "description": "A desperate highwayman with a notched blade",
            "type": "Humanoid",
        }
    ],
    "opponent": "Bandit",
}


class MockNarrationClient:
    """Returns canned JSON payloads without touching the network.

    Opponent-description requests are recognised by comparing the system
    prompt against the configured template. Every request is recorded in
    ``calls`` as (system_prompt, conversation snapshot).
    """

    def __init__(
        self,
        system_prompts: SystemPrompts,
        responses: Sequence[str] | None = None,
    ) -> None:
        """Initialize mock client.

        Args:
            system_prompts: Prompt table, used to spot opponent requests
            responses: Optional narration responses, returned in rotation
        """
        self._opponent_prompt = system_prompts[SystemPromptType.COMBAT_OPPONENT_DESCRIPTION]
        self._responses = list(responses) if responses else [json.dumps(MOCK_NARRATION)]
        self._next = 0
        self.calls: list[tuple[str, list[Message]]] = []

    def _respond(self, conversation: Sequence[Message], system_prompt: str) -> str:
        self.calls.append((system_prompt, [m.model_copy() for m in conversation]))
        if system_prompt == self._opponent_prompt:
            return json.dumps(MOCK_OPPONENT)
        response = self._responses[self._next % len(self._responses)]
        self._next += 1
        return response

    async def get_chat_completion(
        self,
        conversation: Sequence[Message],
        system_prompt: str,
    ) -> str:
        response = self._respond(conversation, system_prompt)
        logger.debug("Mock narration returned", extra={"length": len(response)})
        return response

    async def get_streamed_chat_completion(
        self,
        conversation: Sequence[Message],
        system_prompt: str,
    ) -> AsyncIterator[str]:
        response = self._respond(conversation, system_prompt)
        # Word-sized fragments, whitespace kept so they join back exactly
        start = 0
        for index, char in enumerate(response):
            if char == " ":
                yield response[start : index + 1]
                start = index + 1
        if start < len(response):
            yield response[start:]
