"""
Welcome Cog
Greets new members and reacts to messages mentioning community keywords
"""
from typing import List, Optional

import discord
from discord.ext import commands

import config
import embeds
from logger import log
from utils.events import MemberJoined, MessagePosted


def find_welcome_channel(guild: discord.Guild, name_or_id: Optional[str]) -> Optional[discord.TextChannel]:
    """Find the welcome channel by name or by id"""
    if not name_or_id:
        return None

    for channel in guild.text_channels:
        if channel.name == name_or_id or str(channel.id) == name_or_id:
            return channel
    return None


def reactions_for(content: str) -> List[str]:
    """Emoji triggered by the keywords of a message, without repeats"""
    lowered = content.lower()
    found = []
    for keyword, emoji in config.REACTION_TRIGGERS.items():
        if keyword in lowered and emoji not in found:
            found.append(emoji)
    return found


class Welcome(commands.Cog):
    """Member welcome and keyword reactions"""

    def __init__(self, bot: commands.Bot):
        self.bot = bot

    async def cog_load(self):
        self.bot.events.register(MemberJoined, self.greet)
        self.bot.events.register(MessagePosted, self.react)

    async def cog_unload(self):
        self.bot.events.unregister(MemberJoined, self.greet)
        self.bot.events.unregister(MessagePosted, self.react)

    async def greet(self, event: MemberJoined):
        member = event.member
        channel = find_welcome_channel(member.guild, self.bot.config.welcome_channel)
        if channel is None:
            log.error(f"Welcome channel {self.bot.config.welcome_channel!r} not found in {member.guild.name}")
            return

        await channel.send(embed=embeds.create_welcome_embed(member))
        log.info(f"Welcomed {member} in #{channel.name}")

    async def react(self, event: MessagePosted):
        for emoji in reactions_for(event.message.content):
            try:
                await event.message.add_reaction(emoji)
            except discord.HTTPException as e:
                log.warning(f"Could not react with {emoji}: {e}")
                return


async def setup(bot: commands.Bot) -> None:
    await bot.add_cog(Welcome(bot))
