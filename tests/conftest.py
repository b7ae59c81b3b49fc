"""Shared test fixtures.

Discord is never contacted: the core components talk to an in-memory gateway.
"""

from __future__ import annotations

import asyncio
from typing import Dict, List, Optional, Tuple

import pytest

from config import BotConfig
from utils.enums import ConnectionStatus
from utils.errors import AnchorUnavailable
from utils.gateway import Gateway, MessageHandle


class FakeGateway(Gateway):
    """Records every request and answers from in-memory state."""

    def __init__(self) -> None:
        self.posted: List[Tuple[object, Optional[str], object]] = []
        self.reactions: List[Tuple[MessageHandle, str]] = []
        self.counts: Dict[int, Dict[str, int]] = {}
        self.deleted: set[int] = set()
        self.status = ConnectionStatus.READY
        self.reconnect_results: List[bool] = []
        self.reconnect_default = False
        self.reconnect_calls = 0
        self.channel_id = 42
        self._next_id = 1000

    async def post_message(self, destination, *, content=None, embed=None) -> MessageHandle:
        self._next_id += 1
        channel_id = destination if isinstance(destination, int) else self.channel_id
        handle = MessageHandle(channel_id=channel_id, message_id=self._next_id)
        self.posted.append((destination, content, embed))
        return handle

    async def add_reaction(self, handle: MessageHandle, symbol: str) -> None:
        self.reactions.append((handle, symbol))

    async def get_reaction_counts(self, handle: MessageHandle) -> Dict[str, int]:
        if handle.message_id in self.deleted:
            raise AnchorUnavailable(f"message {handle.message_id} deleted")
        return dict(self.counts.get(handle.message_id, {}))

    def get_connection_status(self) -> ConnectionStatus:
        return self.status

    async def reconnect(self) -> bool:
        self.reconnect_calls += 1
        if self.reconnect_results:
            return self.reconnect_results.pop(0)
        return self.reconnect_default

    def symbols_on(self, handle: MessageHandle) -> List[str]:
        return [symbol for h, symbol in self.reactions if h == handle]


class RecordingSleep:
    """Stand-in for asyncio.sleep that returns at once and remembers delays."""

    def __init__(self) -> None:
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        await asyncio.sleep(0)


class GatedSleep:
    """Stand-in for asyncio.sleep that blocks until the test opens the gate."""

    def __init__(self) -> None:
        self.delays: List[float] = []
        self.sleeping = asyncio.Event()
        self.gate = asyncio.Event()

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        self.sleeping.set()
        await self.gate.wait()


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def settings() -> BotConfig:
    """Test settings with short liveness values."""
    return BotConfig(
        token="test-token-not-real",
        guild_id=987654321,
        welcome_channel="bienvenue",
        port=3000,
        max_retries=3,
        retry_delay=30.0,
    )
