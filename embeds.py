import discord
from datetime import datetime, timedelta
from typing import Optional, Sequence

import config
from utils.enums import MutualAidType, MUTUAL_AID_CONFIG, PollKind
from utils.formatting import create_embed, format_bold, format_list_item, format_tally, format_timestamp
from utils.helpers import datetime_now, format_duration, generate_keycap_emoji, truncate_for_embed
from utils.poll_engine import Poll, PollResult

COLORS = config.COLORS
EMOJIS = config.EMOJIS


def create_welcome_embed(member: discord.Member) -> discord.Embed:
    """Create embed greeting a new member"""
    description = (
        f"**Salutations {member.name} !**\n\n"
        f"Tu viens de rejoindre un espace d'autogestion et de liberté.\n\n"
        f"{EMOJIS['solidarity']} **Notre Vision :**\n"
        f"• Démocratie directe et participative\n"
        f"• Entraide mutuelle et solidarité\n"
        f"• Organisation horizontale\n"
        f"• Action directe et autonomie\n\n"
        f"{EMOJIS['revolution']} **Participe à la vie collective :**\n"
        f"• /assemblee - Pour créer une assemblée\n"
        f"• /vote - Pour les décisions collectives\n"
        f"• /sondage - Pour consulter la communauté\n"
        f"• /entraide - Pour l'entraide mutuelle\n"
        f"• /manifeste - Pour comprendre nos principes"
    )
    return create_embed(
        title=f"{EMOJIS['anarchist']} Bienvenue dans la Commune Libre !",
        description=description,
        color=COLORS["black"],
        footer_text=config.WELCOME_FOOTER,
        image=config.WELCOME_IMAGE_URL,
        timestamp=datetime_now()
    )


def create_assembly_embed(subject: str) -> discord.Embed:
    return create_embed(
        title=f"{EMOJIS['assembly']} Nouvelle Assemblée Populaire",
        description=f"**Sujet :** {subject}\n"
                    f"{EMOJIS['solidarity']} Cette assemblée est un espace de discussion horizontale.",
        color=COLORS["red"],
        timestamp=datetime_now()
    )


def create_vote_embed(proposition: str, duration: timedelta, closes_at: datetime,
                      interval: Optional[timedelta] = None) -> discord.Embed:
    """Create embed for a collective vote"""
    symbols = config.VOTE_SYMBOLS
    how_to = " • ".join(f"{symbol} {label}" for symbol, label in zip(symbols, config.VOTE_LABELS))
    description = (
        f"**Proposition :** {proposition}\n"
        f"**Durée :** {format_duration(duration.total_seconds())}\n"
        f"**Fin du vote :** {format_timestamp(closes_at, 'R')}\n\n"
        f"{how_to}"
    )
    if interval is not None:
        description += f"\n\nRésultats intermédiaires toutes les {format_duration(interval.total_seconds())}."

    return create_embed(
        title=f"{EMOJIS['vote']} Vote Collectif",
        description=description,
        color=COLORS["gold"],
        timestamp=datetime_now()
    )


def create_poll_embed(question: str, labels: Sequence[str], closes_at: Optional[datetime] = None) -> discord.Embed:
    """Create embed for a multi-option survey"""
    lines = [f"{generate_keycap_emoji(i)} {label}" for i, label in enumerate(labels, 1)]
    description = f"**Question :** {question}\n**Options :**\n" + "\n".join(lines)
    if closes_at is not None:
        description += f"\n\n**Résultats :** {format_timestamp(closes_at, 'R')}"

    return create_embed(
        title=f"{EMOJIS['vote']} Sondage Participatif",
        description=description,
        color=COLORS["red"],
        timestamp=datetime_now()
    )


def create_result_embed(poll: Poll, result: PollResult) -> discord.Embed:
    """Create embed announcing an intermediate or final tally"""
    if poll.kind is PollKind.VOTE:
        title = "Résultats du Vote" if result.final else "Résultats Intermédiaires du Vote"
        color = COLORS["gold"]
    else:
        title = "Résultats du Sondage" if result.final else "Résultats Intermédiaires du Sondage"
        color = COLORS["red"]

    description = ""
    if poll.title:
        description = f"{format_bold(truncate_for_embed(poll.title, 256))}\n\n"
    description += format_tally(result.counts, poll.symbols)
    description += f"\n\nParticipation : {result.total}"

    return create_embed(
        title=f"{EMOJIS['vote']} {title}",
        description=description,
        color=color,
        timestamp=result.taken_at
    )


def create_mutual_aid_embed(aid_type: MutualAidType, description: str, author: discord.abc.User) -> discord.Embed:
    aid = MUTUAL_AID_CONFIG[aid_type]
    return create_embed(
        title=f"{EMOJIS['solidarity']} Réseau d'Entraide Mutuelle",
        description=f"**Type :** {aid['text']}\n**Description :** {description}\n\n"
                    f"Réagis avec {EMOJIS['solidarity']} pour te manifester auprès de {author.mention}.",
        color=COLORS["red"],
        timestamp=datetime_now()
    )


def create_manifesto_embed() -> discord.Embed:
    principles = "\n".join(
        format_list_item(f"{format_bold(name)} : {text}", ordered=True, number=i)
        for i, (name, text) in enumerate(config.MANIFESTO_PRINCIPLES, 1)
    )
    return create_embed(
        title=f"{EMOJIS['revolution']} Manifeste de la Commune Numérique",
        description=f"**Nos Principes Fondamentaux**\n{principles}",
        color=COLORS["black"],
        footer_text=config.WELCOME_FOOTER,
        timestamp=datetime_now()
    )


def create_reminder_scheduled_embed(message: str, remind_at: datetime) -> discord.Embed:
    return create_embed(
        title=f"{EMOJIS['reminder']} Rappel programmé",
        description=f"{message}\n\n**Quand :** {format_timestamp(remind_at, 'F')} ({format_timestamp(remind_at, 'R')})",
        color=COLORS["gold"],
        timestamp=datetime_now()
    )


def create_reminder_embed(message: str, author: discord.abc.User) -> discord.Embed:
    return create_embed(
        title=f"{EMOJIS['reminder']} Rappel",
        description=f"{message}\n\n*Rappel demandé par {author.mention}*",
        color=COLORS["gold"],
        timestamp=datetime_now()
    )
