"""Match and round state for Rangvaar."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Dict, List, Optional, Tuple, Union

from .cards import Card, Suit
from .errors import PlayerNotFound


class RoundPhase(Enum):
    BIDDING = "Bidding"
    TRUMP_SELECTION = "TrumpSelection"
    DEALING_REST = "DealingRest"
    TRICK_PLAYING = "TrickPlaying"
    ROUND_ENDED = "RoundEnded"


class MatchStatus(Enum):
    WAITING = "Waiting"
    STARTING = "Starting"
    PLAYING = "Playing"
    FINISHED = "Finished"
    CANCELLED = "Cancelled"


def team_for_position(position: int) -> int:
    """Seats 0 and 2 form team 1, seats 1 and 3 form team 2."""
    return 1 if position % 2 == 0 else 2


@dataclass(frozen=True)
class PlayerInfo:
    user_id: str
    position: int
    team_id: int


@dataclass
class Team:
    player_ids: List[str] = field(default_factory=list)
    cumulative_score: int = 0


@dataclass(frozen=True)
class Bid:
    """A contract offer of ``amount`` tricks."""

    player_id: str
    amount: int
    is_pass: ClassVar[bool] = False


@dataclass(frozen=True)
class Pass:
    """Declining to raise the current contract."""

    player_id: str
    is_pass: ClassVar[bool] = True


BidAction = Union[Bid, Pass]


@dataclass(frozen=True)
class TrickCard:
    player_id: str
    card: Card


@dataclass(frozen=True)
class Trick:
    cards: Tuple[TrickCard, ...]
    lead_suit: Suit
    winning_player_id: str
    trick_number: int


@dataclass(frozen=True)
class RoundSummary:
    """What a closed round leaves behind once its state is replaced."""

    round_number: int
    dealer_position: int
    contract: Optional[Bid]
    bidding_team_id: Optional[int]
    trump_suit: Optional[Suit]
    team_tricks_won: Dict[int, int]
    round_scores: Dict[int, int]
    penalty_applied: bool


@dataclass
class RoundState:
    round_number: int
    dealer_position: int
    phase: RoundPhase = RoundPhase.BIDDING
    current_turn_player_id: Optional[str] = None
    hands: Dict[str, List[Card]] = field(default_factory=dict)
    undealt_count: int = 0
    bids: List[BidAction] = field(default_factory=list)
    highest_bid: Optional[Bid] = None
    forced_bid: bool = False
    trump_suit: Optional[Suit] = None
    current_trick_number: int = 0
    current_trick_cards: List[TrickCard] = field(default_factory=list)
    completed_tricks: List[Trick] = field(default_factory=list)
    team_tricks_won: Dict[int, int] = field(default_factory=lambda: {1: 0, 2: 0})
    round_scores: Dict[int, int] = field(default_factory=lambda: {1: 0, 2: 0})
    penalty_applied: bool = False
    redeal_count: int = 0

    def cards_in_hands(self) -> int:
        return sum(len(hand) for hand in self.hands.values())

    def cards_played(self) -> int:
        return len(self.current_trick_cards) + sum(len(trick.cards) for trick in self.completed_tricks)

    def lead_suit(self) -> Optional[Suit]:
        return self.current_trick_cards[0].card.suit if self.current_trick_cards else None


@dataclass
class MatchState:
    match_id: str
    total_rounds: int
    deal_seed: int = 0
    players: List[PlayerInfo] = field(default_factory=list)
    teams: Dict[int, Team] = field(default_factory=lambda: {1: Team(), 2: Team()})
    status: MatchStatus = MatchStatus.WAITING
    current_round_number: int = 0
    current_round_state: Optional[RoundState] = None
    winner_team_id: Optional[int] = None
    round_history: List[RoundSummary] = field(default_factory=list)
    halt_reason: Optional[str] = None

    def player(self, user_id: str) -> PlayerInfo:
        for info in self.players:
            if info.user_id == user_id:
                return info
        raise PlayerNotFound(f"Player {user_id!r} is not seated in match {self.match_id!r}.")

    def is_seated(self, user_id: str) -> bool:
        return any(info.user_id == user_id for info in self.players)

    def clone(self) -> "MatchState":
        return copy.deepcopy(self)
