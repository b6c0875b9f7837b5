"""Seat rotation for turns and dealers."""

from __future__ import annotations

from typing import List, Sequence

from .errors import PlayerNotFound
from .state import PlayerInfo, team_for_position

SEAT_COUNT = 4


def seating_order(players: Sequence[PlayerInfo]) -> List[PlayerInfo]:
    return sorted(players, key=lambda info: info.position)


def next_player(current_player_id: str, players: Sequence[PlayerInfo]) -> str:
    """Return the user id seated clockwise of ``current_player_id``."""
    ordered = seating_order(players)
    for index, info in enumerate(ordered):
        if info.user_id == current_player_id:
            return ordered[(index + 1) % len(ordered)].user_id
    raise PlayerNotFound(f"Player {current_player_id!r} is not seated.")


def next_dealer(previous_dealer_position: int) -> int:
    return (previous_dealer_position + 1) % SEAT_COUNT


def player_at(players: Sequence[PlayerInfo], position: int) -> PlayerInfo:
    for info in players:
        if info.position == position:
            return info
    raise PlayerNotFound(f"No player seated at position {position}.")


def first_bidder(players: Sequence[PlayerInfo], dealer_position: int) -> str:
    """The player immediately clockwise of the dealer opens the auction."""
    return player_at(players, (dealer_position + 1) % SEAT_COUNT).user_id


def team_of(players: Sequence[PlayerInfo], user_id: str) -> int:
    for info in players:
        if info.user_id == user_id:
            return team_for_position(info.position)
    raise PlayerNotFound(f"Player {user_id!r} is not seated.")
