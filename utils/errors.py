"""
Error handling utilities for the Commune Bot
"""
import traceback

import discord
from discord import app_commands

from logger import log


class CommuneError(Exception):
    """Base exception for Commune Bot errors"""
    pass


class InvalidInputError(CommuneError):
    """Raised when user input is invalid"""
    pass


class InvalidOptionCount(InvalidInputError):
    """Raised when a poll has no options or more options than there are symbols"""

    def __init__(self, count: int, maximum: int):
        self.count = count
        self.maximum = maximum
        super().__init__(f"A poll needs between 1 and {maximum} options, got {count}.")


class TallyAlreadyScheduled(CommuneError):
    """Raised when a poll already has a running tally timer"""
    pass


class PollNotFoundError(CommuneError):
    """Raised when a poll handle no longer refers to an open poll"""
    pass


class GatewayError(CommuneError):
    """Raised when a request to the chat platform fails"""
    pass


class AnchorUnavailable(GatewayError):
    """Raised when a poll's anchor message was deleted or cannot be fetched"""
    pass


class ProbeFailure(CommuneError):
    """Raised when a liveness probe fails"""
    pass


class ProbeTimeout(ProbeFailure):
    """Raised when a liveness probe does not answer in time"""
    pass


class ReconnectExhausted(CommuneError):
    """Raised when every reconnect attempt allowed has failed"""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"Gave up reconnecting after {attempts} failed attempts")


async def _respond(interaction: discord.Interaction, message: str):
    """Send an ephemeral message, following up if the interaction was already answered"""
    if interaction.response.is_done():
        await interaction.followup.send(message, ephemeral=True)
    else:
        await interaction.response.send_message(message, ephemeral=True)


async def handle_app_command_error(interaction: discord.Interaction, error: Exception):
    """
    Error handler for application (slash) commands

    Args:
        interaction: The interaction that triggered the error
        error: The error that occurred
    """
    # Unwrap CommandInvokeError
    if isinstance(error, app_commands.CommandInvokeError):
        error = error.original

    if isinstance(error, InvalidOptionCount):
        await _respond(interaction, f"❌ {error}")

    elif isinstance(error, InvalidInputError):
        await _respond(interaction, f"❌ The provided input is invalid. {error}")

    elif isinstance(error, GatewayError):
        log.warning(f"Platform request failed: {error}")
        await _respond(interaction, "❌ Discord refused the request, please try again later.")

    elif isinstance(error, app_commands.MissingPermissions):
        perms = ", ".join(error.missing_permissions)
        await _respond(interaction, f"❌ You are missing required permissions: {perms}")

    elif isinstance(error, app_commands.BotMissingPermissions):
        perms = ", ".join(error.missing_permissions)
        await _respond(interaction, f"❌ I am missing required permissions: {perms}")

    elif isinstance(error, app_commands.CommandOnCooldown):
        await _respond(interaction, f"❌ This command is on cooldown. Try again in {error.retry_after:.1f} seconds.")

    # Handle any other errors
    else:
        await _respond(interaction, f"❌ An error occurred: {str(error)}")

        # Log the full traceback
        log.error(f"Error in slash command {interaction.command.name if interaction.command else 'unknown'}:")
        traceback.print_exception(type(error), error, error.__traceback__)


# Alias handle_app_command_error as handle_interaction_error
handle_interaction_error = handle_app_command_error
