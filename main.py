"""
Commune Bot - Main Entry Point
A Discord bot for the self-managed community of the Commune Libre
"""
import asyncio
import platform
import signal
from typing import Optional, Set

import discord
from discord.ext import commands

import embeds
from config import BotConfig
from logger import log
from utils.enums import ConnectionStatus
from utils.errors import ReconnectExhausted, handle_app_command_error
from utils.events import ConnectionChanged, EventRouter, MemberJoined, MessagePosted
from utils.gateway import DiscordGateway
from utils.keep_alive import KeepAliveServer, LoopbackProbe
from utils.liveness import LivenessSupervisor
from utils.poll_engine import Poll, PollEngine, PollResult


# ============================================
# Bot Client
# ============================================

class CommuneBot(commands.Bot):
    """Main bot client"""

    def __init__(self, config: BotConfig):
        intents = discord.Intents.default()
        intents.members = True
        intents.message_content = True

        super().__init__(
            command_prefix=commands.when_mentioned,
            intents=intents,
            help_command=None
        )
        self.config = config
        self.cogs_list = [
            "cogs.assembly",
            "cogs.votes",
            "cogs.community",
            "cogs.welcome"
        ]

        # These live on the bot so they survive the cog reloads of a reconnect
        self.events = EventRouter()
        self.gateway = DiscordGateway(self, config.token, config.ready_timeout)
        self.polls = PollEngine(
            self.gateway,
            self.announce_poll_result,
            keycap_symbols=config.keycap_symbols,
            vote_symbols=config.vote_symbols
        )
        self.supervisor = LivenessSupervisor(
            self.gateway,
            config,
            http_probe=LoopbackProbe.for_port(config.port, config.probe_timeout),
            on_exhausted=self.on_reconnect_exhausted
        )
        self.reminders: Set[asyncio.Task] = set()
        self._commands_synced = False

        self.tree.on_error = handle_app_command_error
        self.events.register(ConnectionChanged, self.on_connection_changed)

    async def setup_hook(self):
        """Setup hook called on every login"""
        log.info("Loading cogs...")
        for ext in self.cogs_list:
            if ext in self.extensions:
                continue
            try:
                await self.load_extension(ext)
                log.success(f"Loaded {ext}")
            except Exception as e:
                log.error(f"Failed to load {ext}: {e}")

    async def sync_commands(self):
        """Sync slash commands to the community guild, or globally when none is configured"""
        log.info("Syncing slash commands...")
        try:
            if self.config.guild_id:
                guild = discord.Object(id=self.config.guild_id)
                self.tree.copy_global_to(guild=guild)
                synced = await self.tree.sync(guild=guild)
            else:
                synced = await self.tree.sync()
            self._commands_synced = True
            log.success(f"Synced {len(synced)} commands")
        except discord.HTTPException as e:
            log.error(f"Failed to sync commands: {e}")

    async def on_ready(self):
        """Called when the bot is ready, again after every reconnect"""
        log.success(f"Logged in as {self.user}")
        log.info(f"Bot ID: {self.user.id}")
        log.info(f"Discord.py version: {discord.__version__}")
        log.info(f"Python version: {platform.python_version()}")

        if not self._commands_synced:
            await self.sync_commands()

        await self.events.dispatch(ConnectionChanged(ConnectionStatus.READY))

        if not self.supervisor.is_running and not self.supervisor.degraded:
            self.supervisor.start()
            log.success("Started keep-alive probes")

    async def on_resumed(self):
        await self.events.dispatch(ConnectionChanged(ConnectionStatus.READY))

    async def on_disconnect(self):
        await self.events.dispatch(ConnectionChanged(ConnectionStatus.DISCONNECTED))

    async def on_member_join(self, member: discord.Member):
        await self.events.dispatch(MemberJoined(member))

    async def on_message(self, message: discord.Message):
        if message.author.bot:
            return
        await self.events.dispatch(MessagePosted(message))

    async def on_connection_changed(self, event: ConnectionChanged):
        if event.status is ConnectionStatus.READY:
            self.supervisor.report_success()
        else:
            # discord.py retries on its own, the next probe decides whether we step in
            log.warning(f"Discord connection {event.status.value}")

    async def announce_poll_result(self, poll: Poll, result: PollResult):
        """Post a tally in the channel of its poll"""
        await self.gateway.post_message(poll.anchor.channel_id, embed=embeds.create_result_embed(poll, result))
        log.info(f"Announced {'final' if result.final else 'intermediate'} result of poll {poll.id}")

    async def on_reconnect_exhausted(self, error: ReconnectExhausted):
        log.error(f"Bot is degraded: {error}")

    def cancel_reminders(self):
        for task in list(self.reminders):
            task.cancel()
        self.reminders.clear()


# ============================================
# Run Bot
# ============================================

def install_signal_handlers(stop: asyncio.Event):
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:
            # Windows event loops have no signal support
            pass


async def main(config: Optional[BotConfig] = None):
    config = config or BotConfig.from_env()
    client = CommuneBot(config)
    server = KeepAliveServer(config.port, status_provider=client.supervisor.snapshot)

    stop = asyncio.Event()
    install_signal_handlers(stop)

    await server.start()
    try:
        await client.gateway.open_session()
        await stop.wait()
        log.warning("Shutdown requested")
    finally:
        client.supervisor.stop()
        client.polls.shutdown()
        client.cancel_reminders()
        await client.gateway.close_session()
        await server.stop()


if __name__ == "__main__":
    try:
        log.info("Starting Commune Bot...")
        asyncio.run(main())
    except KeyboardInterrupt:
        log.warning("Bot stopped by user")
    except Exception as e:
        log.error(f"Fatal error: {e}")
