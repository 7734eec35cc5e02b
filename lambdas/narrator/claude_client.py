"""Claude API client for narration, buffered or streamed."""

import asyncio
from collections.abc import AsyncIterator, Sequence
from typing import Any, Protocol

import anthropic
from aws_lambda_powertools import Logger

from shared.exceptions import NarrationError
from shared.models import Message, MessageRole

logger = Logger(child=True)


class NarrationClient(Protocol):
    """Protocol for narration backends (Claude or the mock)."""

    async def get_chat_completion(
        self,
        conversation: Sequence[Message],
        system_prompt: str,
    ) -> str:
        """Return the complete narration for the conversation."""
        ...

    def get_streamed_chat_completion(
        self,
        conversation: Sequence[Message],
        system_prompt: str,
    ) -> AsyncIterator[str]:
        """Yield narration fragments as they are generated."""
        ...


def to_anthropic_messages(conversation: Sequence[Message]) -> list[dict[str, str]]:
    """Map a conversation onto the Messages API format.

    System messages become bracketed user turns, empty messages (such as a
    reply still being streamed) are skipped, and consecutive turns of the
    same role are merged so roles alternate.

    Args:
        conversation: Ordered conversation

    Returns:
        List of {"role", "content"} dicts starting with a user turn
    """
    messages: list[dict[str, str]] = []
    for message in conversation:
        if not message.content.strip():
            continue
        if message.role == MessageRole.ASSISTANT:
            role, content = "assistant", message.content
        elif message.role == MessageRole.SYSTEM:
            role, content = "user", f"[System] {message.content}"
        else:
            role, content = "user", message.content

        if messages and messages[-1]["role"] == role:
            messages[-1]["content"] += f"\n\n{content}"
        else:
            messages.append({"role": role, "content": content})

    if not messages or messages[0]["role"] != "user":
        messages.insert(0, {"role": "user", "content": "[System] Continue the story."})
    return messages


class ClaudeClient:
    """Wrapper for the Claude API with prompt caching on the system prompt."""

    MODEL = "claude-3-haiku-20240307"
    MAX_TOKENS = 1024
    PROVIDER = "anthropic"

    def __init__(self, api_key: str):
        """Initialize Claude client.

        Args:
            api_key: Anthropic API key
        """
        self._api_key = api_key
        self._client: anthropic.AsyncAnthropic | None = None
        self._client_loop: asyncio.AbstractEventLoop | None = None

    @property
    def client(self) -> anthropic.AsyncAnthropic:
        """Async Anthropic client bound to the running event loop.

        Each ``asyncio.run`` gets a fresh client, so pooled connections are
        never reused on a loop other than the one that opened them.
        """
        loop = asyncio.get_running_loop()
        if self._client is None or self._client_loop is not loop:
            self._client = anthropic.AsyncAnthropic(api_key=self._api_key)
            self._client_loop = loop
            logger.debug("Created Anthropic client for event loop")
        return self._client

    def _request(self, conversation: Sequence[Message], system_prompt: str) -> dict[str, Any]:
        return {
            "model": self.MODEL,
            "max_tokens": self.MAX_TOKENS,
            "system": [
                {
                    "type": "text",
                    "text": system_prompt,
                    "cache_control": {"type": "ephemeral"},
                }
            ],
            "messages": to_anthropic_messages(conversation),
        }

    def _log_usage(self, usage: Any) -> None:
        cache_creation = getattr(usage, "cache_creation_input_tokens", 0) or 0
        cache_read = getattr(usage, "cache_read_input_tokens", 0) or 0

        # Haiku pricing, cached reads at a 90% discount
        estimated_cost = (
            (usage.input_tokens * 0.25 / 1_000_000)
            + (usage.output_tokens * 1.25 / 1_000_000)
            + (cache_read * 0.025 / 1_000_000)
        )

        logger.info(
            "Claude API usage",
            extra={
                "input_tokens": usage.input_tokens,
                "output_tokens": usage.output_tokens,
                "cache_creation_input_tokens": cache_creation,
                "cache_read_input_tokens": cache_read,
                "estimated_cost_usd": round(estimated_cost, 6),
            },
        )

    async def get_chat_completion(
        self,
        conversation: Sequence[Message],
        system_prompt: str,
    ) -> str:
        """Request one complete narration.

        Args:
            conversation: Conversation so far
            system_prompt: Instruction template for this turn

        Returns:
            The narration text

        Raises:
            NarrationError: If the API call fails
        """
        try:
            response = await self.client.messages.create(**self._request(conversation, system_prompt))
        except anthropic.APIError as e:
            logger.error("Claude API error", extra={"error": str(e)})
            raise NarrationError(f"Narration request failed: {e}", provider=self.PROVIDER) from e

        self._log_usage(response.usage)
        return "".join(getattr(block, "text", "") for block in response.content)

    async def get_streamed_chat_completion(
        self,
        conversation: Sequence[Message],
        system_prompt: str,
    ) -> AsyncIterator[str]:
        """Stream narration fragments as the model produces them.

        Args:
            conversation: Conversation so far
            system_prompt: Instruction template for this turn

        Yields:
            Text fragments in order

        Raises:
            NarrationError: If the API call fails mid-stream
        """
        try:
            async with self.client.messages.stream(**self._request(conversation, system_prompt)) as stream:
                async for text in stream.text_stream:
                    yield text
                final = await stream.get_final_message()
        except anthropic.APIError as e:
            logger.error("Claude streaming error", extra={"error": str(e)})
            raise NarrationError(f"Narration stream failed: {e}", provider=self.PROVIDER) from e

        self._log_usage(final.usage)
