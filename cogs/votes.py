"""
Votes Commands Cog
Collective votes and participative surveys, tallied from reactions
"""
from typing import Optional

import discord
from discord import app_commands
from discord.ext import commands

import embeds
from logger import log
from utils.errors import handle_interaction_error
from utils.helpers import datetime_now, hours, minutes, split_poll_options
from utils.poll_engine import PollEngine


class Votes(commands.Cog):
    """Vote and survey commands"""

    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self.polls: PollEngine = bot.polls

    @app_commands.command(name="vote", description="Lance un vote collectif")
    @app_commands.describe(
        proposition="La proposition à voter",
        duree="Durée du vote en heures",
        suivi="Publier des résultats intermédiaires toutes les N minutes"
    )
    async def vote(
        self,
        interaction: discord.Interaction,
        proposition: str,
        duree: app_commands.Range[float, 0.01, 720.0],
        suivi: Optional[app_commands.Range[int, 1, 1440]] = None
    ):
        """Start a for / against / abstain vote"""
        try:
            duration = hours(duree)
            interval = minutes(suivi) if suivi is not None else None
            embed = embeds.create_vote_embed(proposition, duration, datetime_now() + duration, interval)

            poll = await self.polls.open_vote(interaction, embed=embed, title=proposition)
            if interval is not None and interval < duration:
                self.polls.schedule_periodic_tally(poll, interval, duration)
            else:
                self.polls.schedule_tally(poll, duration)

            log.info(f"Vote {poll.id} started by {interaction.user}, closes {poll.closes_at.isoformat()}")

        except Exception as e:
            await handle_interaction_error(interaction, e)

    @app_commands.command(name="sondage", description="Crée un sondage participatif")
    @app_commands.describe(
        question="La question du sondage",
        options="Options séparées par des virgules (10 maximum)",
        duree="Publier les résultats après N heures"
    )
    async def sondage(
        self,
        interaction: discord.Interaction,
        question: str,
        options: str,
        duree: Optional[app_commands.Range[float, 0.01, 720.0]] = None
    ):
        """Start a survey with one keycap reaction per option"""
        try:
            labels = self.polls.validate_labels(split_poll_options(options))
            duration = hours(duree) if duree is not None else None
            closes_at = datetime_now() + duration if duration is not None else None

            poll = await self.polls.open_poll(
                interaction,
                labels,
                embed=embeds.create_poll_embed(question, labels, closes_at),
                duration=duration,
                title=question
            )

            log.info(f"Survey {poll.id} started by {interaction.user} with {len(labels)} options")

        except Exception as e:
            await handle_interaction_error(interaction, e)


async def setup(bot: commands.Bot) -> None:
    await bot.add_cog(Votes(bot))
