"""
Survivor pool commands.

Provides the /survivor command group and the background task that resolves
finished gameweeks.
"""

import asyncio
import logging

import discord
from discord import app_commands
from discord.ext import commands, tasks

from config import RESULTS_POLL_INTERVAL_MINUTES, SURVIVOR_ENABLED
from domain.models.deal import DealVoteChoice, RematchVoteChoice
from services.deal_service import DealService
from services.elimination_service import EliminationService
from services.gameweek_processing_service import GameweekProcessingService
from services.permissions import can_manage_room
from services.pick_service import PickService
from services.player_status_service import PlayerStatusService
from services.rematch_service import RematchService
from services.room_service import RoomService
from services.room_status_service import RoomStatusService
from services.weekly_brief_service import WeeklyBriefService
from utils.formatting import (
    format_cents,
    format_fixture_line,
    format_pick_line,
    format_player_status_line,
    format_timestamp,
    parse_amount_to_cents,
)
from utils.interaction_safety import safe_defer, safe_followup

logger = logging.getLogger("survivor_bot.commands.survivor")

EMBED_COLOR = 0x37003C  # Premier League purple


class SurvivorCommands(commands.Cog):
    """Slash commands for last-team-standing rooms."""

    survivor = app_commands.Group(name="survivor", description="Last team standing survivor pool")

    def __init__(
        self,
        bot: commands.Bot,
        room_service: RoomService,
        pick_service: PickService,
        room_status_service: RoomStatusService,
        player_status_service: PlayerStatusService,
        elimination_service: EliminationService,
        deal_service: DealService | None = None,
        rematch_service: RematchService | None = None,
        gameweek_processing_service: GameweekProcessingService | None = None,
        weekly_brief_service: WeeklyBriefService | None = None,
    ):
        self.bot = bot
        self.room_service = room_service
        self.pick_service = pick_service
        self.room_status_service = room_status_service
        self.player_status_service = player_status_service
        self.elimination_service = elimination_service
        self.deal_service = deal_service
        self.rematch_service = rematch_service
        self.gameweek_processing_service = gameweek_processing_service
        self.weekly_brief_service = weekly_brief_service

    async def cog_load(self):
        if SURVIVOR_ENABLED and self.gameweek_processing_service:
            self.process_results.start()

    def cog_unload(self):
        """Clean up when cog is unloaded."""
        self.process_results.cancel()

    @tasks.loop(minutes=RESULTS_POLL_INTERVAL_MINUTES)
    async def process_results(self):
        """Resolve finished gameweeks for every open room."""
        if not self.gameweek_processing_service:
            return
        try:
            summary = await asyncio.to_thread(self.gameweek_processing_service.process_all_rooms)
        except Exception as e:
            logger.error(f"Results processing pass failed: {e}")
            return
        if summary["processed"] or summary["flagged"]:
            logger.info(
                f"Results pass: {summary['processed']} rooms advanced, {summary['flagged']} flagged"
            )

    @process_results.before_loop
    async def before_process_results(self):
        """Wait until bot is ready before starting task."""
        await self.bot.wait_until_ready()
        logger.info(f"Results polling every {RESULTS_POLL_INTERVAL_MINUTES} minutes")

    async def _send_error(self, interaction: discord.Interaction, result) -> None:
        await safe_followup(interaction, content=f"❌ {result.error}", ephemeral=True)

    # =========================================================================
    # Rooms
    # =========================================================================

    @survivor.command(name="create", description="Create a survivor room")
    @app_commands.describe(
        name="Room name",
        buy_in="Buy-in per player (e.g. 10 or 10.50)",
        max_players="Player limit",
        public="List the room publicly",
        no_pick_policy="What happens to players who miss the deadline",
        dgw_rule="How double gameweeks are scored",
        deal_threshold="Players remaining at which a pot split may be proposed",
        code="Custom invite code",
    )
    @app_commands.choices(
        no_pick_policy=[
            app_commands.Choice(name="Eliminate", value="eliminate"),
            app_commands.Choice(name="Random pick", value="random_pick"),
        ],
        dgw_rule=[
            app_commands.Choice(name="First fixture only", value="first_only"),
            app_commands.Choice(name="Both fixtures count", value="both_count"),
        ],
    )
    async def create(
        self,
        interaction: discord.Interaction,
        name: str,
        buy_in: str = "0",
        max_players: int | None = None,
        public: bool = True,
        no_pick_policy: app_commands.Choice[str] | None = None,
        dgw_rule: app_commands.Choice[str] | None = None,
        deal_threshold: int | None = None,
        code: str | None = None,
    ):
        if not await safe_defer(interaction, ephemeral=True):
            return

        cents = parse_amount_to_cents(buy_in)
        if cents is None:
            await safe_followup(
                interaction, content="❌ Buy-in must be an amount like 10 or 10.50.", ephemeral=True
            )
            return

        result = self.room_service.create_room(
            host_id=interaction.user.id,
            name=name,
            buy_in=cents,
            max_players=max_players,
            is_public=public,
            no_pick_policy=no_pick_policy.value if no_pick_policy else None,
            dgw_rule=dgw_rule.value if dgw_rule else None,
            deal_threshold=deal_threshold,
            invite_code=code,
        )
        if not result.success:
            await self._send_error(interaction, result)
            return

        room = result.value
        await safe_followup(
            interaction,
            content=(
                f"✅ Created **{room.name}** (room {room.room_id}).\n"
                f"Invite code: `{room.invite_code}` · Buy-in {format_cents(room.buy_in)} · "
                f"Starts gameweek {room.current_gameweek}"
            ),
            ephemeral=True,
        )

    @survivor.command(name="join", description="Join a room by invite code")
    @app_commands.describe(code="Invite code")
    async def join(self, interaction: discord.Interaction, code: str):
        if not await safe_defer(interaction, ephemeral=True):
            return

        result = self.room_service.join_room_by_code(code, interaction.user.id)
        if not result.success:
            await self._send_error(interaction, result)
            return

        room = result.value
        await safe_followup(
            interaction,
            content=(
                f"✅ You're in **{room.name}**. Pick a team for gameweek "
                f"{room.current_gameweek} with `/survivor pick`."
            ),
            ephemeral=True,
        )

    @survivor.command(name="leave", description="Leave a room before it starts")
    @app_commands.describe(room_id="Room number")
    async def leave(self, interaction: discord.Interaction, room_id: int):
        if not await safe_defer(interaction, ephemeral=True):
            return

        result = self.room_service.leave_room(room_id, interaction.user.id)
        if not result.success:
            await self._send_error(interaction, result)
            return
        await safe_followup(interaction, content="👋 You have left the room.", ephemeral=True)

    @survivor.command(name="rooms", description="List your rooms and open public rooms")
    async def rooms(self, interaction: discord.Interaction):
        if not await safe_defer(interaction, ephemeral=True):
            return

        user_id = interaction.user.id
        mine = self.room_service.get_player_rooms(user_id)
        public = self.room_service.list_public_rooms(user_id)

        embed = discord.Embed(title="⚽ Survivor Rooms", color=EMBED_COLOR)
        embed.add_field(
            name="Your rooms",
            value="\n".join(
                f"`{r.room_id}` **{r.name}** · {r.status.value} · GW{r.current_gameweek}"
                for r in mine[:15]
            )
            or "None yet",
            inline=False,
        )
        embed.add_field(
            name="Open public rooms",
            value="\n".join(
                f"`{r.invite_code}` **{r.name}** · buy-in {format_cents(r.buy_in)}"
                for r in public[:15]
            )
            or "None right now",
            inline=False,
        )
        await safe_followup(interaction, embed=embed, ephemeral=True)

    @survivor.command(name="status", description="Show a room's status")
    @app_commands.describe(room_id="Room number")
    async def status(self, interaction: discord.Interaction, room_id: int):
        if not await safe_defer(interaction, ephemeral=True):
            return

        result = self.room_status_service.get_room_status(room_id)
        if not result.success:
            await self._send_error(interaction, result)
            return

        info = result.value
        embed = discord.Embed(
            title=f"⚽ {info['name']}",
            description=f"**{info['display_text']}** · Gameweek {info['gameweek']}",
            color=EMBED_COLOR,
        )
        embed.add_field(
            name="Players",
            value=f"{info['active_count']} still in / {info['total_players']} total",
            inline=True,
        )
        embed.add_field(name="Prize pot", value=format_cents(info["prize_pot"]), inline=True)
        if info["deadline"] and not info["deadline_passed"]:
            embed.add_field(name="Deadline", value=format_timestamp(info["deadline"]), inline=True)
        if info["winners"]:
            embed.add_field(
                name="🏆 Winners",
                value=", ".join(f"<@{pid}>" for pid in info["winners"]),
                inline=False,
            )
        if info["deal_available"]:
            embed.add_field(
                name="🤝 Deal available",
                value="Remaining players can propose a pot split with `/survivor deal`.",
                inline=False,
            )
        if info["needs_attention"]:
            embed.set_footer(text="This room is paused and waiting for an admin.")

        notice = self.room_status_service.get_recovery_notice(room_id, interaction.user.id)
        if notice:
            embed.add_field(name="🔁 Everyone survived", value=notice["message"], inline=False)
            self.room_status_service.acknowledge_recovery_notice(room_id, interaction.user.id)

        await safe_followup(interaction, embed=embed, ephemeral=True)

    # =========================================================================
    # Picks
    # =========================================================================

    @survivor.command(name="pick", description="Pick a team for a gameweek")
    @app_commands.describe(
        room_id="Room number",
        team="Team name or short name",
        gameweek="Gameweek (defaults to the room's current gameweek)",
    )
    async def pick(
        self,
        interaction: discord.Interaction,
        room_id: int,
        team: str,
        gameweek: int | None = None,
    ):
        if not await safe_defer(interaction, ephemeral=True):
            return

        found = self.pick_service.find_team(team)
        if found is None:
            await safe_followup(
                interaction, content=f"❌ No Premier League team matches '{team}'.", ephemeral=True
            )
            return

        if gameweek is None:
            room = self.room_service.get_room(room_id)
            if room is None:
                await safe_followup(interaction, content="❌ Room not found.", ephemeral=True)
                return
            gameweek = room.current_gameweek

        result = self.pick_service.submit_pick(room_id, interaction.user.id, gameweek, found.team_id)
        if not result.success:
            await self._send_error(interaction, result)
            return
        await safe_followup(
            interaction,
            content=f"✅ Picked **{found.name}** for gameweek {gameweek}.",
            ephemeral=True,
        )

    @survivor.command(name="unpick", description="Remove your pick before the deadline")
    @app_commands.describe(room_id="Room number", gameweek="Gameweek (defaults to current)")
    async def unpick(self, interaction: discord.Interaction, room_id: int, gameweek: int | None = None):
        if not await safe_defer(interaction, ephemeral=True):
            return

        if gameweek is None:
            room = self.room_service.get_room(room_id)
            if room is None:
                await safe_followup(interaction, content="❌ Room not found.", ephemeral=True)
                return
            gameweek = room.current_gameweek

        result = self.pick_service.remove_pick(room_id, interaction.user.id, gameweek)
        if not result.success:
            await self._send_error(interaction, result)
            return
        await safe_followup(
            interaction, content=f"🗑️ Removed your pick for gameweek {gameweek}.", ephemeral=True
        )

    @survivor.command(name="picks", description="Show your pick history and everyone's status")
    @app_commands.describe(room_id="Room number")
    async def picks(self, interaction: discord.Interaction, room_id: int):
        if not await safe_defer(interaction, ephemeral=True):
            return

        result = self.player_status_service.get_all_players_status(room_id)
        if not result.success:
            await self._send_error(interaction, result)
            return

        team_names = {t.team_id: t.name for t in self.pick_service.list_teams()}
        history = self.pick_service.get_player_picks(room_id, interaction.user.id)

        embed = discord.Embed(title="📋 Picks", color=EMBED_COLOR)
        embed.add_field(
            name="Your picks",
            value="\n".join(
                format_pick_line(
                    p.gameweek, team_names.get(p.team_id, str(p.team_id)), p.result.value, p.is_auto
                )
                for p in history
            )
            or "No picks yet",
            inline=False,
        )
        embed.add_field(
            name="Players",
            value="\n".join(
                format_player_status_line(f"<@{s['player_id']}>", s) for s in result.value[:25]
            )
            or "No players",
            inline=False,
        )
        await safe_followup(interaction, embed=embed, ephemeral=True)

    # =========================================================================
    # Weekly brief and fixtures
    # =========================================================================

    @survivor.command(name="brief", description="Your week at a glance across every room")
    async def brief(self, interaction: discord.Interaction):
        if not self.weekly_brief_service:
            await interaction.response.send_message("The weekly brief is not available.", ephemeral=True)
            return
        if not await safe_defer(interaction, ephemeral=True):
            return

        result = self.weekly_brief_service.get_weekly_brief(interaction.user.id)
        if not result.success:
            await self._send_error(interaction, result)
            return

        brief = result.value
        if brief["gameweek"] is None:
            description = "No gameweek is open for picks right now."
        else:
            description = (
                f"**Gameweek {brief['gameweek']}** picks lock {format_timestamp(brief['lock_time'])}"
            )
        embed = discord.Embed(title="🗓️ Weekly Brief", description=description, color=EMBED_COLOR)
        embed.add_field(name="Rooms still alive", value=str(brief["active_rooms"]), inline=True)
        embed.add_field(name="Players left", value=str(brief["active_players"]), inline=True)
        embed.add_field(name="Total pot", value=format_cents(brief["total_pot"]), inline=True)

        last = brief["last_pick"]
        last_text = "None yet"
        if last:
            last_text = f"{last['team_name']} · GW{last['gameweek']} in **{last['room_name']}**"
        embed.add_field(
            name="Last pick",
            value=last_text,
            inline=False,
        )
        if brief["rooms_awaiting_pick"]:
            embed.add_field(
                name="⏳ Pick needed",
                value="\n".join(
                    f"`{r['room_id']}` **{r['name']}** · GW{r['gameweek']}"
                    for r in brief["rooms_awaiting_pick"][:15]
                ),
                inline=False,
            )
        if brief["rooms_out_of_picks"]:
            embed.add_field(
                name="🚫 No teams left to pick",
                value="\n".join(
                    f"`{r['room_id']}` **{r['name']}**" for r in brief["rooms_out_of_picks"][:15]
                ),
                inline=False,
            )
        await safe_followup(interaction, embed=embed, ephemeral=True)

    @survivor.command(name="fixtures", description="Show a gameweek's fixtures")
    @app_commands.describe(
        gameweek="Gameweek (defaults to the next one open for picks)",
        team="Only show fixtures for this team",
    )
    async def fixtures(
        self, interaction: discord.Interaction, gameweek: int | None = None, team: str | None = None
    ):
        if not self.weekly_brief_service:
            await interaction.response.send_message("Fixtures are not available.", ephemeral=True)
            return
        if not await safe_defer(interaction, ephemeral=True):
            return

        team_id = None
        if team:
            found = self.pick_service.find_team(team)
            if found is None:
                await safe_followup(
                    interaction, content=f"❌ No Premier League team matches '{team}'.", ephemeral=True
                )
                return
            team_id = found.team_id

        result = self.weekly_brief_service.get_gameweek_fixtures(gameweek, team_id)
        if not result.success:
            await self._send_error(interaction, result)
            return

        info = result.value
        if info["is_finished"]:
            description = "Finished"
        elif info["deadline_passed"]:
            description = "🔒 Picks locked"
        else:
            description = f"Picks lock {format_timestamp(info['lock_time'])}"
        embed = discord.Embed(
            title=f"⚽ Gameweek {info['gameweek']} Fixtures",
            description=description,
            color=EMBED_COLOR,
        )
        embed.add_field(
            name="Fixtures",
            value="\n".join(format_fixture_line(f) for f in info["fixtures"][:20])
            or "No fixtures available",
            inline=False,
        )
        await safe_followup(interaction, embed=embed, ephemeral=True)

    # =========================================================================
    # Deals and rematches
    # =========================================================================

    @survivor.command(name="deal", description="Propose splitting the pot with the remaining players")
    @app_commands.describe(room_id="Room number")
    async def deal(self, interaction: discord.Interaction, room_id: int):
        if not self.deal_service:
            await interaction.response.send_message("Deals are not available.", ephemeral=True)
            return
        if not await safe_defer(interaction):
            return

        result = self.deal_service.create_deal_request(room_id, interaction.user.id)
        if not result.success:
            await self._send_error(interaction, result)
            return

        request = result.value
        mentions = " ".join(f"<@{pid}>" for pid in request.participants)
        await safe_followup(
            interaction,
            content=(
                f"🤝 <@{interaction.user.id}> proposed splitting the pot in room {room_id}.\n"
                f"{mentions}: vote with `/survivor dealvote` before "
                f"{format_timestamp(request.expires_at)}. Everyone must accept."
            ),
        )

    @survivor.command(name="dealvote", description="Accept or decline the pending deal")
    @app_commands.describe(room_id="Room number", vote="Your vote")
    @app_commands.choices(
        vote=[
            app_commands.Choice(name="Accept", value="accept"),
            app_commands.Choice(name="Decline", value="decline"),
        ]
    )
    async def dealvote(
        self, interaction: discord.Interaction, room_id: int, vote: app_commands.Choice[str]
    ):
        if not self.deal_service:
            await interaction.response.send_message("Deals are not available.", ephemeral=True)
            return
        if not await safe_defer(interaction, ephemeral=True):
            return

        request = self.deal_service.get_active_deal(room_id)
        if request is None:
            await safe_followup(
                interaction, content="❌ There is no pending deal in this room.", ephemeral=True
            )
            return

        result = self.deal_service.vote_on_deal(
            request.deal_id, interaction.user.id, DealVoteChoice(vote.value)
        )
        if not result.success:
            await self._send_error(interaction, result)
            return

        tally = result.value
        if tally["finalized"]:
            split = ", ".join(f"<@{pid}> {format_cents(amount)}" for pid, amount in tally["payouts"].items())
            content = f"🎉 Deal accepted! The pot is split: {split}"
        else:
            content = (
                f"🗳️ Vote recorded ({tally['accepted']}/{tally['required']} accepted, "
                f"{tally['declined']} declined)."
            )
        await safe_followup(interaction, content=content, ephemeral=True)

    @survivor.command(name="rematch", description="Vote on a rematch of a finished room")
    @app_commands.describe(room_id="Room number", vote="Play again?")
    @app_commands.choices(
        vote=[
            app_commands.Choice(name="Yes", value="yes"),
            app_commands.Choice(name="No", value="no"),
        ]
    )
    async def rematch(
        self, interaction: discord.Interaction, room_id: int, vote: app_commands.Choice[str]
    ):
        if not self.rematch_service:
            await interaction.response.send_message("Rematches are not available.", ephemeral=True)
            return
        if not await safe_defer(interaction, ephemeral=True):
            return

        result = self.rematch_service.vote_on_rematch(
            room_id, interaction.user.id, RematchVoteChoice(vote.value)
        )
        if not result.success:
            await self._send_error(interaction, result)
            return

        summary = result.value
        if summary["started"]:
            content = (
                f"🔁 Rematch on! {len(summary['yes'])} players start again in gameweek "
                f"{summary['gameweek']}."
            )
        else:
            content = (
                f"🗳️ Vote recorded ({len(summary['yes'])} yes, {len(summary['no'])} no "
                f"of {summary['required']})."
            )
        await safe_followup(interaction, content=content, ephemeral=True)

    # =========================================================================
    # Admin
    # =========================================================================

    @survivor.command(name="process", description="Process finished gameweeks now (Admin or host)")
    @app_commands.describe(room_id="Room number (omit to process every room)")
    async def process(self, interaction: discord.Interaction, room_id: int | None = None):
        room = self.room_service.get_room(room_id) if room_id is not None else None
        if not can_manage_room(interaction, room):
            await interaction.response.send_message(
                "This command requires admin permissions.", ephemeral=True
            )
            return
        if not await safe_defer(interaction, ephemeral=True):
            return

        if room_id is None:
            if not self.gameweek_processing_service:
                await safe_followup(
                    interaction, content="Results processing is not available.", ephemeral=True
                )
                return
            summary = await asyncio.to_thread(self.gameweek_processing_service.process_all_rooms)
            await safe_followup(
                interaction,
                content=(
                    f"✅ Processed {summary['processed']} rooms · {summary['waiting']} waiting · "
                    f"{summary['flagged']} flagged · {summary['errors']} errors"
                ),
                ephemeral=True,
            )
            return

        try:
            result = await asyncio.to_thread(self.elimination_service.process_gameweek_results, room_id)
        except Exception as e:
            logger.error(f"Manual processing of room {room_id} failed: {e}")
            await safe_followup(interaction, content=f"❌ Error: {e}", ephemeral=True)
            return

        if not result.success:
            await self._send_error(interaction, result)
            return

        summary = result.value
        if not summary["applied"]:
            content = f"Gameweek {summary['gameweek']} was already processed."
        elif summary["status"] == "completed":
            content = (
                f"🏁 Room {room_id} finished ({summary['completed_reason']}). Winners: "
                + ", ".join(f"<@{pid}>" for pid in summary["winners"])
            )
        else:
            content = (
                f"✅ Gameweek {summary['gameweek']} processed: {len(summary['eliminated'])} eliminated, "
                f"{len(summary['survivors'])} remaining."
            )
            if summary["recovered"]:
                content += " Everyone went out, so everyone is back in."
        await safe_followup(interaction, content=content, ephemeral=True)


async def setup(bot: commands.Bot):
    room_service = getattr(bot, "room_service", None)
    if room_service is None:
        raise RuntimeError("Room service not registered on bot.")
    pick_service = getattr(bot, "pick_service", None)
    if pick_service is None:
        raise RuntimeError("Pick service not registered on bot.")
    elimination_service = getattr(bot, "elimination_service", None)
    if elimination_service is None:
        raise RuntimeError("Elimination service not registered on bot.")
    room_status_service = getattr(bot, "room_status_service", None)
    player_status_service = getattr(bot, "player_status_service", None)
    if room_status_service is None or player_status_service is None:
        raise RuntimeError("Status services not registered on bot.")
    # deal, rematch, brief and background processing are optional
    deal_service = getattr(bot, "deal_service", None)
    rematch_service = getattr(bot, "rematch_service", None)
    gameweek_processing_service = getattr(bot, "gameweek_processing_service", None)
    weekly_brief_service = getattr(bot, "weekly_brief_service", None)

    cog = SurvivorCommands(
        bot,
        room_service,
        pick_service,
        room_status_service,
        player_status_service,
        elimination_service,
        deal_service,
        rematch_service,
        gameweek_processing_service,
        weekly_brief_service,
    )
    await bot.add_cog(cog)
