"""Tests for turn events and the event channel."""

import pytest

from narrator.events import ChunkReceived, MessageReceived, TurnEventChannel
from shared.models import Message, MessageRole


class TestChunkReceived:
    """Tests for ChunkReceived validation."""

    def test_done_event_has_no_chunk(self):
        """The terminal event cannot carry text."""
        with pytest.raises(ValueError):
            ChunkReceived(is_done=True, chunk="late")

    def test_chunk_event_needs_text(self):
        """A non-terminal event needs a non-empty chunk."""
        with pytest.raises(ValueError):
            ChunkReceived(is_done=False, chunk="")
        with pytest.raises(ValueError):
            ChunkReceived(is_done=False)

    def test_valid_events(self):
        """Valid events construct normally."""
        assert ChunkReceived(is_done=False, chunk="Hello").chunk == "Hello"
        assert ChunkReceived(is_done=True).chunk is None


class TestTurnEventChannel:
    """Tests for TurnEventChannel."""

    def test_message_event_is_snapshot(self):
        """Later edits to a message do not leak into emitted events."""
        channel = TurnEventChannel()
        message = Message(role=MessageRole.ASSISTANT)

        channel.message_received(message)
        message.append_chunk("grown")

        [event] = channel.drain()
        assert isinstance(event, MessageReceived)
        assert event.message.content == ""
        assert event.message.message_id == message.message_id

    def test_drain_preserves_order(self):
        """Events come out in emission order."""
        channel = TurnEventChannel()
        channel.chunk_received(is_done=False, chunk="a")
        channel.chunk_received(is_done=False, chunk="b")
        channel.chunk_received(is_done=True)
        channel.close()

        events = channel.drain()

        assert [e.chunk for e in events] == ["a", "b", None]
        assert events[-1].is_done is True

    def test_emit_after_close_fails(self):
        """Nothing can be emitted once the channel is closed."""
        channel = TurnEventChannel()
        channel.close()

        with pytest.raises(RuntimeError):
            channel.chunk_received(is_done=True)

    def test_close_is_idempotent(self):
        """Closing twice is harmless."""
        channel = TurnEventChannel()
        channel.close()
        channel.close()

        assert channel.closed
        assert channel.drain() == []

    @pytest.mark.asyncio
    async def test_async_iteration_stops_at_close(self):
        """async for yields every event then ends."""
        channel = TurnEventChannel()
        channel.chunk_received(is_done=False, chunk="x")
        channel.chunk_received(is_done=True)
        channel.close()

        events = [event async for event in channel]

        assert len(events) == 2
        assert events[0].chunk == "x"

    @pytest.mark.asyncio
    async def test_async_iteration_after_drain(self):
        """A reader after drain still sees the end of the stream."""
        channel = TurnEventChannel()
        channel.chunk_received(is_done=True)
        channel.close()
        channel.drain()

        events = [event async for event in channel]

        assert events == []
