"""Round scoring policies for Rangvaar."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Protocol


class ScoringError(ValueError):
    """Base class for scoring issues."""


@dataclass(frozen=True)
class Contract:
    bidding_team_id: int
    amount: int


@dataclass(frozen=True)
class RoundScore:
    team1: int
    team2: int
    penalty_applied: bool

    def for_team(self, team_id: int) -> int:
        return self.team1 if team_id == 1 else self.team2

    def as_dict(self) -> dict[int, int]:
        return {1: self.team1, 2: self.team2}


class ScoringPolicy(Protocol):
    def score(self, tricks_won: Mapping[int, int], contract: Contract) -> RoundScore:
        ...


class StandardScoring:
    """Each team scores its tricks; a bidding team that falls short scores ``2 * tricks - bid``."""

    def score(self, tricks_won: Mapping[int, int], contract: Contract) -> RoundScore:
        if contract.bidding_team_id not in (1, 2):
            raise ScoringError(f"Unknown bidding team {contract.bidding_team_id}.")
        if set(tricks_won) != {1, 2}:
            raise ScoringError("Trick counts are required for exactly teams 1 and 2.")

        scores = {team_id: tricks_won[team_id] for team_id in (1, 2)}
        bidder_tricks = tricks_won[contract.bidding_team_id]
        penalty_applied = bidder_tricks < contract.amount
        if penalty_applied:
            scores[contract.bidding_team_id] = 2 * bidder_tricks - contract.amount

        return RoundScore(team1=scores[1], team2=scores[2], penalty_applied=penalty_applied)
