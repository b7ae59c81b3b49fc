"""Tests for inbound event routing."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

from utils.enums import ConnectionStatus
from utils.events import ConnectionChanged, EventRouter, MemberJoined, MessagePosted


class TestEventRouter:
    async def test_dispatches_by_type(self) -> None:
        router = EventRouter()
        on_join = AsyncMock()
        on_message = AsyncMock()
        router.register(MemberJoined, on_join)
        router.register(MessagePosted, on_message)

        event = MemberJoined(member=MagicMock())
        assert await router.dispatch(event) == 1

        on_join.assert_awaited_once_with(event)
        on_message.assert_not_awaited()

    async def test_unhandled_event_ignored(self) -> None:
        router = EventRouter()
        assert await router.dispatch(ConnectionChanged(ConnectionStatus.READY)) == 0

    async def test_failing_handler_does_not_block_others(self) -> None:
        router = EventRouter()
        failing = AsyncMock(side_effect=RuntimeError("boom"))
        working = AsyncMock()
        router.register(MessagePosted, failing)
        router.register(MessagePosted, working)

        assert await router.dispatch(MessagePosted(message=MagicMock())) == 2

        working.assert_awaited_once()

    async def test_unregister(self) -> None:
        router = EventRouter()
        handler = AsyncMock()
        router.register(MemberJoined, handler)
        router.unregister(MemberJoined, handler)
        router.unregister(MemberJoined, handler)

        assert router.handlers_for(MemberJoined) == []
        assert await router.dispatch(MemberJoined(member=MagicMock())) == 0
