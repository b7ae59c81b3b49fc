"""
Discord formatting utilities
Provides consistent Discord markdown formatting
"""
import discord
from typing import Dict, Optional, Sequence
from datetime import datetime


def format_bold(text: str) -> str:
    """Format text as bold"""
    return f"**{text}**"


def format_list_item(text: str, ordered: bool = False, number: int = 1) -> str:
    """Format text as a list item"""
    if ordered:
        return f"{number}. {text}"
    return f"• {text}"


def format_timestamp(dt: datetime, style: str = "F") -> str:
    """
    Format a datetime as a Discord timestamp

    Styles:
    - t: Short Time (16:20)
    - f: Short Date/Time (20 April 2021 16:20)
    - F: Long Date/Time (Tuesday, 20 April 2021 16:20)
    - R: Relative Time (2 months ago)
    """
    timestamp = int(dt.timestamp())
    return f"<t:{timestamp}:{style}>"


def format_user_mention(user_id: int) -> str:
    """Format a user mention"""
    return f"<@{user_id}>"


def format_tally(counts: Dict[str, int], symbols: Sequence[str]) -> str:
    """One line per option: symbol, label and count, in option order"""
    return "\n".join(
        f"{symbol} {label}: {format_bold(str(count))}"
        for (label, count), symbol in zip(counts.items(), symbols)
    )


def create_embed(
    title: str,
    description: Optional[str] = None,
    color: Optional[int] = None,
    footer_text: Optional[str] = None,
    image: Optional[str] = None,
    timestamp: Optional[datetime] = None
) -> discord.Embed:
    """
    Create a consistently formatted embed

    Args:
        title: Embed title
        description: Embed description
        color: Embed color (hex or int)
        footer_text: Footer text
        image: Image URL
        timestamp: Timestamp

    Returns:
        Configured Discord embed
    """
    if color is None:
        color = discord.Color.red()
    elif isinstance(color, int):
        color = discord.Color(color)

    embed = discord.Embed(
        title=title,
        description=description,
        color=color,
        timestamp=timestamp
    )

    if footer_text:
        embed.set_footer(text=footer_text)

    if image:
        embed.set_image(url=image)

    return embed
