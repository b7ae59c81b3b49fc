"""
Assembly Commands Cog
Opens a discussion thread for a popular assembly
"""
import discord
from discord import app_commands
from discord.ext import commands

import embeds
from logger import log
from utils.errors import handle_interaction_error

THREAD_NAME_LIMIT = 100


class Assembly(commands.Cog):
    """Popular assembly commands"""

    def __init__(self, bot: commands.Bot):
        self.bot = bot

    @app_commands.command(name="assemblee", description="Crée une nouvelle assemblée populaire")
    @app_commands.describe(sujet="Sujet de l'assemblée")
    async def assemblee(self, interaction: discord.Interaction, sujet: str):
        """Announce an assembly and open a thread to discuss it"""
        try:
            await interaction.response.send_message(embed=embeds.create_assembly_embed(sujet))
            message = await interaction.original_response()

            try:
                await message.create_thread(name=sujet[:THREAD_NAME_LIMIT])
            except discord.HTTPException as e:
                # Threads need a guild text channel and the right permission
                log.warning(f"Could not open assembly thread: {e}")
                return

            log.info(f"Assembly opened by {interaction.user}: {sujet}")

        except Exception as e:
            await handle_interaction_error(interaction, e)


async def setup(bot: commands.Bot) -> None:
    await bot.add_cog(Assembly(bot))
