"""
Permission checks for admin and room-host commands.
"""

import discord

from config import ADMIN_USER_IDS
from domain.models.room import Room


def has_allowlisted_admin(interaction: discord.Interaction) -> bool:
    """
    True if the user is listed in ADMIN_USER_IDS.
    An empty list means nobody is admin by this check.
    """
    return interaction.user.id in ADMIN_USER_IDS


def has_admin_permission(interaction: discord.Interaction) -> bool:
    """
    Bot admins are allowlisted users or members with Administrator /
    Manage Server in the current guild.
    """
    if has_allowlisted_admin(interaction):
        return True

    if interaction.guild:
        get_member = getattr(interaction.guild, "get_member", None)
        if callable(get_member):
            member = get_member(interaction.user.id)
            if member and getattr(member, "guild_permissions", None):
                return bool(
                    member.guild_permissions.administrator or member.guild_permissions.manage_guild
                )

    # interaction.user is already a Member in most guild interactions
    perms = getattr(interaction.user, "guild_permissions", None)
    if perms:
        return bool(getattr(perms, "administrator", False) or getattr(perms, "manage_guild", False))
    return False


def can_manage_room(interaction: discord.Interaction, room: Room | None) -> bool:
    """Admins can manage any room; hosts can manage their own."""
    if has_admin_permission(interaction):
        return True
    return room is not None and is_room_host(room, interaction.user.id)


def is_room_host(room: Room, user_id: int) -> bool:
    return room.host_id == user_id
