"""
Gateway to the chat platform
The poll engine and the liveness supervisor only talk to Discord through here
"""
import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Optional, Union

import discord
from discord.ext import commands

from logger import log
from utils.enums import ConnectionStatus
from utils.errors import AnchorUnavailable, GatewayError

Destination = Union[discord.Interaction, discord.abc.Messageable, int]


@dataclass(frozen=True)
class MessageHandle:
    """Identifies a message the bot posted"""
    channel_id: int
    message_id: int


class Gateway(ABC):
    """Requests the core components can make of the chat platform"""

    @abstractmethod
    async def post_message(
        self,
        destination: Destination,
        *,
        content: Optional[str] = None,
        embed: Optional[discord.Embed] = None
    ) -> MessageHandle:
        """Post a message and return its handle"""

    @abstractmethod
    async def add_reaction(self, handle: MessageHandle, symbol: str) -> None:
        """React to a posted message"""

    @abstractmethod
    async def get_reaction_counts(self, handle: MessageHandle) -> Dict[str, int]:
        """
        Current raw reaction counts on a message, bot reactions included

        Raises:
            AnchorUnavailable: the message was deleted or cannot be fetched
        """

    @abstractmethod
    def get_connection_status(self) -> ConnectionStatus:
        """Status of the real-time connection"""

    @abstractmethod
    async def reconnect(self) -> bool:
        """Tear the session down and log in again; True once ready"""


class DiscordGateway(Gateway):
    """Gateway backed by a discord.py bot"""

    def __init__(self, bot: commands.Bot, token: str, ready_timeout: float = 60.0):
        self.bot = bot
        self.token = token
        self.ready_timeout = ready_timeout
        self._session_task: Optional[asyncio.Task] = None

    # ============================================
    # Messages
    # ============================================

    async def post_message(
        self,
        destination: Destination,
        *,
        content: Optional[str] = None,
        embed: Optional[discord.Embed] = None
    ) -> MessageHandle:
        kwargs = {}
        if content is not None:
            kwargs["content"] = content
        if embed is not None:
            kwargs["embed"] = embed

        try:
            if isinstance(destination, discord.Interaction):
                if destination.response.is_done():
                    message = await destination.followup.send(wait=True, **kwargs)
                else:
                    await destination.response.send_message(**kwargs)
                    message = await destination.original_response()
            else:
                channel = await self._resolve_channel(destination)
                message = await channel.send(**kwargs)
        except discord.HTTPException as e:
            raise GatewayError(f"Could not post message: {e}") from e

        return MessageHandle(channel_id=message.channel.id, message_id=message.id)

    async def add_reaction(self, handle: MessageHandle, symbol: str) -> None:
        try:
            message = await self._fetch_message(handle)
            await message.add_reaction(symbol)
        except discord.HTTPException as e:
            raise GatewayError(f"Could not add reaction {symbol}: {e}") from e

    async def get_reaction_counts(self, handle: MessageHandle) -> Dict[str, int]:
        try:
            message = await self._fetch_message(handle)
        except (discord.NotFound, discord.Forbidden) as e:
            raise AnchorUnavailable(f"Message {handle.message_id} is unavailable: {e}") from e
        except discord.HTTPException as e:
            raise AnchorUnavailable(f"Could not fetch message {handle.message_id}: {e}") from e

        return {str(reaction.emoji): reaction.count for reaction in message.reactions}

    async def _resolve_channel(self, destination: Union[discord.abc.Messageable, int]):
        if not isinstance(destination, int):
            return destination

        channel = self.bot.get_channel(destination)
        if channel is None:
            channel = await self.bot.fetch_channel(destination)
        return channel

    async def _fetch_message(self, handle: MessageHandle) -> discord.Message:
        try:
            channel = await self._resolve_channel(handle.channel_id)
        except discord.NotFound as e:
            raise AnchorUnavailable(f"Channel {handle.channel_id} no longer exists") from e
        return await channel.fetch_message(handle.message_id)

    # ============================================
    # Session
    # ============================================

    def get_connection_status(self) -> ConnectionStatus:
        if self.bot.is_closed():
            return ConnectionStatus.CLOSED

        if self._session_task is not None and self._session_task.done():
            return ConnectionStatus.DISCONNECTED

        ws = self.bot.ws
        if ws is None or not ws.open:
            return ConnectionStatus.DISCONNECTED

        if not self.bot.is_ready():
            return ConnectionStatus.CONNECTING

        return ConnectionStatus.READY

    async def open_session(self):
        """Log in and run the websocket connection in the background"""
        await self.bot.login(self.token)
        self._session_task = asyncio.create_task(self.bot.connect(reconnect=True))
        self._session_task.add_done_callback(self._on_session_done)

    def _on_session_done(self, task: asyncio.Task):
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            log.error(f"Discord session ended with an error: {error}")
        else:
            log.warning("Discord session ended")

    async def close_session(self):
        """Close the bot and wait for the websocket task to finish"""
        await self.bot.close()
        if self._session_task is not None and not self._session_task.done():
            self._session_task.cancel()
            try:
                await self._session_task
            except asyncio.CancelledError:
                pass
        self._session_task = None

    async def reconnect(self) -> bool:
        log.info("Tearing down the Discord session...")
        try:
            await self.close_session()
            self.bot.clear()
            connector = getattr(self.bot.http, "connector", None)
            if connector is not None and connector is not discord.utils.MISSING and connector.closed:
                # A closed connector cannot back the next HTTP session
                self.bot.http.connector = discord.utils.MISSING
            await self.open_session()
            await asyncio.wait_for(self.bot.wait_until_ready(), timeout=self.ready_timeout)
        except asyncio.TimeoutError:
            log.error(f"Discord session not ready after {self.ready_timeout:.0f}s")
            return False
        except (discord.HTTPException, discord.GatewayNotFound, discord.ConnectionClosed, OSError) as e:
            log.error(f"Reconnect failed: {e}")
            return False

        log.success("Reconnected to Discord")
        return True
