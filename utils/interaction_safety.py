"""
Helpers for responding to Discord interactions without crashing on expired tokens.
"""

import logging

import discord

logger = logging.getLogger("survivor_bot.utils.interaction_safety")


async def safe_defer(interaction: discord.Interaction, ephemeral: bool = False) -> bool:
    """
    Defer an interaction response.

    Returns:
        True if the interaction can still be followed up, False if it expired
    """
    if interaction.response.is_done():
        return True
    try:
        await interaction.response.defer(ephemeral=ephemeral)
        return True
    except discord.NotFound:
        logger.warning(f"Interaction {interaction.id} expired before defer")
        return False
    except discord.HTTPException as e:
        logger.warning(f"Failed to defer interaction {interaction.id}: {e}")
        return False


async def safe_followup(interaction: discord.Interaction, **kwargs):
    """
    Send a followup message after safe_defer.

    Returns:
        The sent message, or None if the interaction is gone
    """
    try:
        return await interaction.followup.send(**kwargs)
    except discord.NotFound:
        logger.warning(f"Interaction {interaction.id} expired before followup")
        return None
    except discord.HTTPException as e:
        logger.warning(f"Failed to send followup for interaction {interaction.id}: {e}")
        return None
