"""
Inbound platform events
Platform callbacks are wrapped in one of these and routed to whoever registered for them
"""
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Type, Union

import discord

from logger import log
from utils.enums import ConnectionStatus


@dataclass(frozen=True)
class MemberJoined:
    member: discord.Member


@dataclass(frozen=True)
class MessagePosted:
    message: discord.Message


@dataclass(frozen=True)
class ConnectionChanged:
    status: ConnectionStatus


InboundEvent = Union[MemberJoined, MessagePosted, ConnectionChanged]
Handler = Callable[[InboundEvent], Awaitable[None]]


class EventRouter:
    """Dispatches events by type; events nobody registered for are ignored"""

    def __init__(self):
        self._handlers: Dict[Type, List[Handler]] = {}

    def register(self, event_type: Type, handler: Handler):
        self._handlers.setdefault(event_type, []).append(handler)

    def unregister(self, event_type: Type, handler: Handler):
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def handlers_for(self, event_type: Type) -> List[Handler]:
        return list(self._handlers.get(event_type, []))

    async def dispatch(self, event: InboundEvent) -> int:
        """Run every handler for the event; returns how many ran"""
        handlers = self.handlers_for(type(event))
        if not handlers:
            log.debug(f"No handler for {type(event).__name__}, ignoring")
            return 0

        for handler in handlers:
            try:
                await handler(event)
            except Exception as e:
                log.error(f"Error handling {type(event).__name__}: {e}")

        return len(handlers)
