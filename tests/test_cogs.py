"""Tests for the slash command cogs and event handlers.

Discord interactions are mocked and the poll engine runs on the in-memory gateway.
"""

from __future__ import annotations

import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest
from discord import app_commands

from cogs.assembly import Assembly
from cogs.community import Community
from cogs.votes import Votes
from cogs.welcome import Welcome, find_welcome_channel, reactions_for
from config import BotConfig
from conftest import FakeGateway
from utils.enums import PollKind, TallyMode
from utils.events import EventRouter, MemberJoined, MessagePosted
from utils.poll_engine import PollEngine


def make_interaction(**overrides) -> AsyncMock:
    """Build a Discord interaction mock that has not been answered yet."""
    interaction = AsyncMock(spec=discord.Interaction)
    interaction.response = MagicMock()
    interaction.response.is_done.return_value = False
    interaction.response.send_message = AsyncMock()
    interaction.followup = AsyncMock()
    interaction.user = MagicMock(spec=discord.Member)
    interaction.user.id = overrides.get("user_id", 12345)
    interaction.user.mention = f"<@{interaction.user.id}>"
    interaction.channel_id = overrides.get("channel_id", 42)
    interaction.command = None
    return interaction


def sent_text(interaction: AsyncMock) -> str:
    call = interaction.response.send_message.call_args
    return call.args[0] if call.args else call.kwargs.get("content", "")


@pytest.fixture
def bot(gateway: FakeGateway, settings: BotConfig) -> MagicMock:
    bot = MagicMock()
    bot.config = settings
    bot.gateway = gateway
    bot.polls = PollEngine(gateway, AsyncMock())
    bot.events = EventRouter()
    bot.reminders = set()
    return bot


# ---------------------------------------------------------------------------
# Votes
# ---------------------------------------------------------------------------


class TestVotes:
    @pytest.fixture
    def cog(self, bot: MagicMock) -> Votes:
        return Votes(bot)

    async def test_vote_seeds_three_reactions(self, cog: Votes, bot: MagicMock, gateway: FakeGateway) -> None:
        interaction = make_interaction()
        await cog.vote.callback(cog, interaction, "Repeindre le local", 2.0)

        [poll] = bot.polls.open_polls
        assert poll.kind is PollKind.VOTE
        assert poll.tally_mode is TallyMode.SNAPSHOT_ONCE
        assert gateway.symbols_on(poll.anchor) == ["✅", "❌", "⚪"]
        destination, _, embed = gateway.posted[0]
        assert destination is interaction
        assert isinstance(embed, discord.Embed)
        assert bot.polls.active_timers == 1

        bot.polls.shutdown()

    async def test_vote_with_follow_up_is_periodic(self, cog: Votes, bot: MagicMock) -> None:
        await cog.vote.callback(cog, make_interaction(), "Budget", 1.0, 20)

        [poll] = bot.polls.open_polls
        assert poll.tally_mode is TallyMode.PERIODIC_THEN_FINAL

        bot.polls.shutdown()

    async def test_follow_up_longer_than_vote_is_single_tally(self, cog: Votes, bot: MagicMock) -> None:
        await cog.vote.callback(cog, make_interaction(), "Budget", 0.5, 60)

        [poll] = bot.polls.open_polls
        assert poll.tally_mode is TallyMode.SNAPSHOT_ONCE

        bot.polls.shutdown()

    async def test_survey_keycaps(self, cog: Votes, bot: MagicMock, gateway: FakeGateway) -> None:
        await cog.sondage.callback(cog, make_interaction(), "Boisson ?", "Thé, Café, ,Eau")

        [poll] = bot.polls.open_polls
        assert [option.label for option in poll.options] == ["Thé", "Café", "Eau"]
        assert gateway.symbols_on(poll.anchor) == ["1️⃣", "2️⃣", "3️⃣"]
        assert poll.closes_at is None
        assert poll.title == "Boisson ?"

    async def test_survey_with_duration_is_scheduled(self, cog: Votes, bot: MagicMock) -> None:
        await cog.sondage.callback(cog, make_interaction(), "Date ?", "lundi,mardi", 24.0)

        [poll] = bot.polls.open_polls
        assert poll.closes_at is not None
        assert bot.polls.active_timers == 1

        bot.polls.shutdown()

    async def test_too_many_options_rejected(self, cog: Votes, bot: MagicMock, gateway: FakeGateway) -> None:
        interaction = make_interaction()
        options = ",".join(f"option {i}" for i in range(11))

        await cog.sondage.callback(cog, interaction, "Trop ?", options)

        assert gateway.posted == []
        assert bot.polls.open_polls == []
        interaction.response.send_message.assert_awaited_once()
        assert interaction.response.send_message.call_args.kwargs.get("ephemeral") is True
        assert "between 1 and 10" in sent_text(interaction)

    async def test_empty_options_rejected(self, cog: Votes, gateway: FakeGateway) -> None:
        interaction = make_interaction()

        await cog.sondage.callback(cog, interaction, "Rien ?", " , ,")

        assert gateway.posted == []
        assert sent_text(interaction).startswith("❌")


# ---------------------------------------------------------------------------
# Assembly
# ---------------------------------------------------------------------------


class TestAssembly:
    async def test_opens_thread(self, bot: MagicMock) -> None:
        cog = Assembly(bot)
        interaction = make_interaction()
        message = MagicMock()
        message.create_thread = AsyncMock()
        interaction.original_response = AsyncMock(return_value=message)

        await cog.assemblee.callback(cog, interaction, "Jardin partagé" * 10)

        embed = interaction.response.send_message.call_args.kwargs["embed"]
        assert "Assemblée" in embed.title
        name = message.create_thread.call_args.kwargs["name"]
        assert len(name) == 100

    async def test_thread_failure_is_not_fatal(self, bot: MagicMock) -> None:
        cog = Assembly(bot)
        interaction = make_interaction()
        message = MagicMock()
        response = MagicMock(status=403, reason="Forbidden")
        message.create_thread = AsyncMock(side_effect=discord.Forbidden(response, "Missing Permissions"))
        interaction.original_response = AsyncMock(return_value=message)

        await cog.assemblee.callback(cog, interaction, "Cuisine")

        interaction.response.send_message.assert_awaited_once()
        interaction.followup.send.assert_not_awaited()


# ---------------------------------------------------------------------------
# Community
# ---------------------------------------------------------------------------


class TestCommunity:
    @pytest.fixture
    def cog(self, bot: MagicMock) -> Community:
        return Community(bot)

    async def test_manifesto(self, cog: Community) -> None:
        interaction = make_interaction()
        await cog.manifeste.callback(cog, interaction)

        embed = interaction.response.send_message.call_args.kwargs["embed"]
        assert "Manifeste" in embed.title
        assert "Autogestion" in embed.description

    async def test_mutual_aid_seeds_solidarity(self, cog: Community, gateway: FakeGateway) -> None:
        interaction = make_interaction()
        choice = app_commands.Choice(name="Offrir", value="offre")

        await cog.entraide.callback(cog, interaction, choice, "Je prête une perceuse")

        [(destination, _, embed)] = gateway.posted
        assert destination is interaction
        assert "Offre d'aide" in embed.description
        assert [symbol for _, symbol in gateway.reactions] == ["✨"]

    async def test_reminder_scheduled_and_delivered(
        self, cog: Community, bot: MagicMock, gateway: FakeGateway
    ) -> None:
        interaction = make_interaction(channel_id=77)

        await cog.rappel.callback(cog, interaction, "Assemblée ce soir", 30)

        interaction.response.send_message.assert_awaited_once()
        [task] = bot.reminders
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert gateway.posted == []

    async def test_deliver_reminder_posts_mention(self, cog: Community, gateway: FakeGateway) -> None:
        embed = discord.Embed(title="Rappel")

        await cog.deliver_reminder(77, 12345, embed, timedelta(0))

        assert gateway.posted == [(77, "<@12345>", embed)]


# ---------------------------------------------------------------------------
# Welcome
# ---------------------------------------------------------------------------


def make_channel(name: str, channel_id: int) -> MagicMock:
    channel = MagicMock()
    channel.name = name
    channel.id = channel_id
    channel.send = AsyncMock()
    return channel


class TestWelcome:
    def test_find_channel_by_name_or_id(self) -> None:
        guild = MagicMock()
        general = make_channel("general", 1)
        welcome = make_channel("bienvenue", 2)
        guild.text_channels = [general, welcome]

        assert find_welcome_channel(guild, "bienvenue") is welcome
        assert find_welcome_channel(guild, "1") is general
        assert find_welcome_channel(guild, "absent") is None
        assert find_welcome_channel(guild, None) is None

    def test_reactions_for_keywords(self) -> None:
        assert reactions_for("Vive l'Anarchie et la solidarité !") == ["Ⓐ", "✨"]
        assert reactions_for("solidarite et entraide") == ["✨"]
        assert reactions_for("bonjour") == []

    async def test_greets_new_member(self, bot: MagicMock) -> None:
        cog = Welcome(bot)
        await cog.cog_load()
        welcome = make_channel("bienvenue", 2)
        member = MagicMock(spec=discord.Member)
        member.name = "Louise"
        member.guild = MagicMock()
        member.guild.text_channels = [welcome]

        await bot.events.dispatch(MemberJoined(member))

        embed = welcome.send.call_args.kwargs["embed"]
        assert "Louise" in embed.description

    async def test_missing_channel_sends_nothing(self, bot: MagicMock) -> None:
        cog = Welcome(bot)
        member = MagicMock(spec=discord.Member)
        member.guild = MagicMock()
        other = make_channel("general", 1)
        member.guild.text_channels = [other]

        await cog.greet(MemberJoined(member))

        other.send.assert_not_awaited()

    async def test_reacts_to_keywords(self, bot: MagicMock) -> None:
        cog = Welcome(bot)
        await cog.cog_load()
        message = MagicMock()
        message.content = "La paix avant tout"
        message.add_reaction = AsyncMock()

        await bot.events.dispatch(MessagePosted(message))

        message.add_reaction.assert_awaited_once_with("🕊️")

    async def test_unload_unregisters(self, bot: MagicMock) -> None:
        cog = Welcome(bot)
        await cog.cog_load()
        await cog.cog_unload()

        assert bot.events.handlers_for(MemberJoined) == []
        assert bot.events.handlers_for(MessagePosted) == []
