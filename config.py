"""
Centralized configuration for the Last Team Standing survivor bot.
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

load_dotenv()


def _parse_int(env_var: str, default: int) -> int:
    raw = os.getenv(env_var)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _parse_float(env_var: str, default: float) -> float:
    raw = os.getenv(env_var)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _parse_bool(env_var: str, default: bool) -> bool:
    raw = os.getenv(env_var)
    if raw is None:
        return default
    return raw.lower() in {"1", "true", "yes", "on"}


def _parse_int_list(env_var: str, default: list[int]) -> list[int]:
    raw = os.getenv(env_var)
    if raw is None:
        return default
    try:
        return [int(x.strip()) for x in raw.split(",") if x.strip()]
    except ValueError:
        return default


DB_PATH = os.getenv("DB_PATH", "survivor_pool.db")
DISCORD_BOT_TOKEN = os.getenv("DISCORD_BOT_TOKEN")
ADMIN_USER_IDS: list[int] = _parse_int_list("ADMIN_USER_IDS", [])

SURVIVOR_ENABLED = _parse_bool("SURVIVOR_ENABLED", True)

# Room defaults (used when the host does not override them)
DEFAULT_MAX_PLAYERS = _parse_int("DEFAULT_MAX_PLAYERS", 20)
DEFAULT_DEAL_THRESHOLD = _parse_int("DEFAULT_DEAL_THRESHOLD", 2)
DEFAULT_NO_PICK_POLICY = os.getenv("DEFAULT_NO_PICK_POLICY", "eliminate")
DEFAULT_DGW_RULE = os.getenv("DEFAULT_DGW_RULE", "first_only")
MAX_BUY_IN_CENTS = _parse_int("MAX_BUY_IN_CENTS", 100000)  # 1000.00
INVITE_CODE_LENGTH = _parse_int("INVITE_CODE_LENGTH", 6)

# Picks lock this many seconds before the gameweek deadline (0 = at the deadline)
PICK_LOCK_LEAD_SECONDS = _parse_int("PICK_LOCK_LEAD_SECONDS", 0)

# Deal negotiation
DEAL_EXPIRY_SECONDS = _parse_int("DEAL_EXPIRY_SECONDS", 86400)  # 24 hours

# Results polling
RESULTS_POLL_INTERVAL_MINUTES = _parse_int("RESULTS_POLL_INTERVAL_MINUTES", 15)
RESULTS_MAX_WORKERS = _parse_int("RESULTS_MAX_WORKERS", 4)
RESULTS_MAX_RETRIES = _parse_int("RESULTS_MAX_RETRIES", 3)
RESULTS_RETRY_BASE_DELAY = _parse_float("RESULTS_RETRY_BASE_DELAY", 1.0)  # seconds
