"""
Shared formatting helpers for survivor messages and embeds.
"""

PICK_RESULT_EMOJIS = {
    "win": "✅",
    "lose": "❌",
    "draw": "➖",
    "pending": "⏳",
}

PLAYER_STATUS_EMOJIS = {
    "active": "🟢",
    "picked": "🟢",
    "awaiting_pick": "🟡",
    "eliminated": "💀",
}


def format_cents(amount: int | None) -> str:
    """Format integer cents as a money string (e.g. 1050 -> '£10.50')."""
    if amount is None:
        return "-"
    sign = "-" if amount < 0 else ""
    whole, cents = divmod(abs(amount), 100)
    return f"{sign}£{whole:,}.{cents:02d}"


def parse_amount_to_cents(text: str) -> int | None:
    """Parse '10', '10.5' or '£10.50' into cents. Returns None on bad input."""
    cleaned = (text or "").strip().lstrip("£").replace(",", "")
    if not cleaned:
        return None
    try:
        whole, _, frac = cleaned.partition(".")
        if len(frac) > 2 or not whole.isdigit() or (frac and not frac.isdigit()):
            return None
        return int(whole) * 100 + int(frac.ljust(2, "0"))
    except ValueError:
        return None


def format_timestamp(ts: int | None) -> str:
    """Discord relative timestamp markup for a unix time."""
    if ts is None:
        return "unknown"
    return f"<t:{int(ts)}:R>"


def format_pick_line(gameweek: int, team_name: str, result: str, is_auto: bool = False) -> str:
    emoji = PICK_RESULT_EMOJIS.get(result, "")
    auto = " (auto)" if is_auto else ""
    return f"GW{gameweek}: {team_name}{auto} {emoji}".rstrip()


def format_player_status_line(name: str, status: dict) -> str:
    emoji = PLAYER_STATUS_EMOJIS.get(status["status"], "")
    return f"{emoji} {name} - {status['display_text']}"


def format_fixture_line(fixture: dict) -> str:
    """One fixture as 'Home 2-1 Away' once scored, otherwise 'Home v Away' with kickoff."""
    home, away = fixture["home_team"], fixture["away_team"]
    if fixture["home_score"] is not None and fixture["away_score"] is not None:
        line = f"{home} **{fixture['home_score']}-{fixture['away_score']}** {away}"
        if fixture["status"] != "finished":
            line += " (live)"
        return line
    kickoff = f" · {format_timestamp(fixture['kickoff'])}" if fixture["kickoff"] else ""
    return f"{home} v {away}{kickoff}"
