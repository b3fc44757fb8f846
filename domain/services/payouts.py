"""
Prize pot distribution.
"""


def split_pot_evenly(pot: int, player_ids: list[int]) -> dict[int, int]:
    """
    Split a pot (integer cents) evenly between players.

    The remainder is handed out one cent at a time in ascending player id
    order so the split is deterministic and sums exactly to the pot.
    """
    if not player_ids or pot <= 0:
        return {pid: 0 for pid in player_ids}

    ordered = sorted(set(player_ids))
    per_player = pot // len(ordered)
    remainder = pot % len(ordered)
    return {
        pid: per_player + (1 if i < remainder else 0)
        for i, pid in enumerate(ordered)
    }
