"""Tests for Claude API client."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import anthropic
import pytest

from narrator.claude_client import ClaudeClient, to_anthropic_messages
from shared.exceptions import NarrationError
from shared.models import Message, MessageRole


def make_usage() -> MagicMock:
    usage = MagicMock()
    usage.input_tokens = 100
    usage.output_tokens = 200
    usage.cache_creation_input_tokens = 0
    usage.cache_read_input_tokens = 50
    return usage


def rate_limit_error() -> anthropic.RateLimitError:
    return anthropic.RateLimitError(
        message="Rate limit exceeded",
        response=MagicMock(status_code=429),
        body={"error": {"message": "Rate limit exceeded"}},
    )


class FakeStream:
    """Stands in for the SDK's message stream context manager."""

    def __init__(self, fragments, error=None):
        self.fragments = fragments
        self.error = error
        self.final = MagicMock(usage=make_usage())

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    @property
    def text_stream(self):
        return self._texts()

    async def _texts(self):
        for fragment in self.fragments:
            yield fragment
        if self.error is not None:
            raise self.error

    async def get_final_message(self):
        return self.final


@pytest.fixture
def conversation():
    return [
        Message(role=MessageRole.SYSTEM, content="The player is Aria."),
        Message(role=MessageRole.USER, content="I enter the tavern"),
    ]


class TestToAnthropicMessages:
    """Tests for conversation mapping."""

    def test_system_messages_folded_into_user_turns(self, conversation):
        """System context becomes a bracketed user turn merged with the prompt."""
        messages = to_anthropic_messages(conversation)

        assert messages == [
            {"role": "user", "content": "[System] The player is Aria.\n\nI enter the tavern"}
        ]

    def test_empty_messages_skipped(self):
        """An empty in-flight reply is not sent."""
        messages = to_anthropic_messages(
            [
                Message(role=MessageRole.USER, content="Hello"),
                Message(role=MessageRole.ASSISTANT, content=""),
            ]
        )

        assert messages == [{"role": "user", "content": "Hello"}]

    def test_starts_with_user_turn(self):
        """A conversation opening with the narrator gets a user turn first."""
        messages = to_anthropic_messages(
            [
                Message(role=MessageRole.ASSISTANT, content="Welcome."),
                Message(role=MessageRole.USER, content="Hi"),
            ]
        )

        assert messages[0]["role"] == "user"
        assert [m["role"] for m in messages] == ["user", "assistant", "user"]


class TestClaudeClient:
    """Tests for ClaudeClient class."""

    def test_init_defers_async_client(self) -> None:
        """No Anthropic client is built until a loop is running."""
        with patch("anthropic.AsyncAnthropic") as mock_anthropic:
            ClaudeClient("test-api-key")

            mock_anthropic.assert_not_called()

    @pytest.mark.asyncio
    async def test_client_reused_within_loop(self) -> None:
        """One async client is created per event loop with the API key."""
        with patch("anthropic.AsyncAnthropic") as mock_anthropic:
            client = ClaudeClient("test-api-key")

            first = client.client
            second = client.client

        mock_anthropic.assert_called_once_with(api_key="test-api-key")
        assert first is second is mock_anthropic.return_value

    def test_new_client_per_event_loop(self, conversation) -> None:
        """Each asyncio.run gets its own client, as warm Lambdas run one loop per request."""
        per_loop = []
        for _ in range(2):
            mock_client = MagicMock()
            response = MagicMock(usage=make_usage(), content=[MagicMock(text="Rain.")])
            mock_client.messages.create = AsyncMock(return_value=response)
            per_loop.append(mock_client)

        with patch("anthropic.AsyncAnthropic", side_effect=per_loop) as mock_anthropic:
            client = ClaudeClient("test-key")
            first = asyncio.run(client.get_chat_completion(conversation, "prompt"))
            second = asyncio.run(client.get_chat_completion(conversation, "prompt"))

        assert first == second == "Rain."
        assert mock_anthropic.call_count == 2
        per_loop[0].messages.create.assert_awaited_once()
        per_loop[1].messages.create.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_get_chat_completion(self, conversation) -> None:
        """Buffered completion calls messages.create with a cached system prompt."""
        with patch("anthropic.AsyncAnthropic") as mock_anthropic:
            mock_client = MagicMock()
            mock_anthropic.return_value = mock_client
            response = MagicMock()
            response.usage = make_usage()
            response.content = [MagicMock(text="The tavern is warm.")]
            mock_client.messages.create = AsyncMock(return_value=response)

            client = ClaudeClient("test-key")
            result = await client.get_chat_completion(conversation, "You are the narrator")

        assert result == "The tavern is warm."
        call_kwargs = mock_client.messages.create.await_args.kwargs
        assert call_kwargs["model"] == "claude-3-haiku-20240307"
        assert call_kwargs["max_tokens"] == 1024
        assert call_kwargs["system"][0]["text"] == "You are the narrator"
        assert call_kwargs["system"][0]["cache_control"] == {"type": "ephemeral"}
        assert call_kwargs["messages"][0]["role"] == "user"

    @pytest.mark.asyncio
    async def test_get_chat_completion_wraps_api_errors(self, conversation) -> None:
        """API failures surface as NarrationError with the cause attached."""
        with patch("anthropic.AsyncAnthropic") as mock_anthropic:
            mock_client = MagicMock()
            mock_anthropic.return_value = mock_client
            mock_client.messages.create = AsyncMock(side_effect=rate_limit_error())

            client = ClaudeClient("test-key")
            with pytest.raises(NarrationError) as exc_info:
                await client.get_chat_completion(conversation, "prompt")

        assert exc_info.value.provider == "anthropic"
        assert isinstance(exc_info.value.__cause__, anthropic.RateLimitError)

    @pytest.mark.asyncio
    async def test_streamed_completion_yields_fragments(self, conversation) -> None:
        """Streaming yields each text fragment in order."""
        with patch("anthropic.AsyncAnthropic") as mock_anthropic:
            mock_client = MagicMock()
            mock_anthropic.return_value = mock_client
            mock_client.messages.stream.return_value = FakeStream(["The ", "door ", "opens."])

            client = ClaudeClient("test-key")
            fragments = [
                fragment
                async for fragment in client.get_streamed_chat_completion(conversation, "prompt")
            ]

        assert fragments == ["The ", "door ", "opens."]
        call_kwargs = mock_client.messages.stream.call_args.kwargs
        assert call_kwargs["system"][0]["text"] == "prompt"

    @pytest.mark.asyncio
    async def test_streamed_completion_wraps_errors(self, conversation) -> None:
        """A mid-stream failure raises NarrationError after the received fragments."""
        with patch("anthropic.AsyncAnthropic") as mock_anthropic:
            mock_client = MagicMock()
            mock_anthropic.return_value = mock_client
            mock_client.messages.stream.return_value = FakeStream(["The "], error=rate_limit_error())

            client = ClaudeClient("test-key")
            received = []
            with pytest.raises(NarrationError):
                async for fragment in client.get_streamed_chat_completion(conversation, "prompt"):
                    received.append(fragment)

        assert received == ["The "]
