"""
Domain services containing pure business logic.
"""

from domain.services.elimination_rules import RoomInconsistencyError, RoundResolution, resolve_round
from domain.services.payouts import split_pot_evenly
from domain.services.result_resolver import is_gameweek_resolvable, resolve_fixture, team_outcomes

__all__ = [
    "RoomInconsistencyError",
    "RoundResolution",
    "resolve_round",
    "split_pot_evenly",
    "is_gameweek_resolvable",
    "resolve_fixture",
    "team_outcomes",
]
