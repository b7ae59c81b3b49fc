"""
Community Commands Cog
Manifesto, mutual aid network and reminders
"""
import asyncio
from datetime import timedelta

import discord
from discord import app_commands
from discord.ext import commands

import config
import embeds
from logger import log
from utils.enums import MutualAidType, MUTUAL_AID_CONFIG
from utils.errors import GatewayError, handle_interaction_error
from utils.formatting import format_user_mention
from utils.helpers import datetime_now, minutes


class Community(commands.Cog):
    """Community life commands"""

    def __init__(self, bot: commands.Bot):
        self.bot = bot

    @app_commands.command(name="manifeste", description="Affiche le manifeste de notre communauté")
    async def manifeste(self, interaction: discord.Interaction):
        """Display the community manifesto"""
        try:
            await interaction.response.send_message(embed=embeds.create_manifesto_embed())
        except Exception as e:
            await handle_interaction_error(interaction, e)

    @app_commands.command(name="entraide", description="Système d'entraide mutuelle")
    @app_commands.describe(type="Type d'entraide", description="Description de l'entraide")
    @app_commands.choices(type=[
        app_commands.Choice(name=MUTUAL_AID_CONFIG[aid]["choice"], value=aid.value) for aid in MutualAidType
    ])
    async def entraide(self, interaction: discord.Interaction, type: app_commands.Choice[str], description: str):
        """Post a mutual aid offer or request"""
        try:
            aid_type = MutualAidType(type.value)
            embed = embeds.create_mutual_aid_embed(aid_type, description, interaction.user)

            handle = await self.bot.gateway.post_message(interaction, embed=embed)
            await self.bot.gateway.add_reaction(handle, config.EMOJIS["solidarity"])

            log.info(f"Mutual aid {aid_type.value} posted by {interaction.user}")

        except Exception as e:
            await handle_interaction_error(interaction, e)

    @app_commands.command(name="rappel", description="Programme un rappel dans ce salon")
    @app_commands.describe(message="Le contenu du rappel", delai="Dans combien de minutes")
    async def rappel(
        self,
        interaction: discord.Interaction,
        message: str,
        delai: app_commands.Range[int, 1, 10080]
    ):
        """Schedule a reminder in the current channel"""
        try:
            delay = minutes(delai)
            remind_at = datetime_now() + delay
            await interaction.response.send_message(embed=embeds.create_reminder_scheduled_embed(message, remind_at))

            reminder = embeds.create_reminder_embed(message, interaction.user)
            task = asyncio.create_task(
                self.deliver_reminder(interaction.channel_id, interaction.user.id, reminder, delay)
            )
            self.bot.reminders.add(task)
            task.add_done_callback(self.bot.reminders.discard)

            log.info(f"Reminder scheduled by {interaction.user} for {remind_at.isoformat()}")

        except Exception as e:
            await handle_interaction_error(interaction, e)

    async def deliver_reminder(self, channel_id: int, author_id: int, embed: discord.Embed, delay: timedelta):
        await asyncio.sleep(delay.total_seconds())
        try:
            await self.bot.gateway.post_message(channel_id, content=format_user_mention(author_id), embed=embed)
            log.info(f"Reminder delivered in channel {channel_id}")
        except (GatewayError, discord.HTTPException) as e:
            log.warning(f"Could not deliver reminder in channel {channel_id}: {e}")


async def setup(bot: commands.Bot) -> None:
    await bot.add_cog(Community(bot))
