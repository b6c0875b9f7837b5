"""Auction rules for the Rangvaar bidding phase."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import List, Optional, Sequence

from .errors import IllegalBid, NotYourTurn, WrongPhase
from .rules_schema import AuctionConfig
from .state import Bid, BidAction, Pass, PlayerInfo, RoundState
from .turns import next_player

MIN_BID = 7
MAX_BID = 13


class AuctionPhase(Enum):
    ACTIVE = auto()
    COMPLETE = auto()
    ALL_PASSED = auto()


@dataclass
class Auction:
    """Four-seat auction over a round's recorded bids.

    The auction works on its own copy of the bid history; the orchestrator
    copies the outcome back into the round once it accepts it.
    """

    players: Sequence[PlayerInfo]
    current_player: str
    min_bid: int = MIN_BID
    max_bid: int = MAX_BID
    history: List[BidAction] = field(default_factory=list)
    highest_bid: Optional[Bid] = None
    phase: AuctionPhase = AuctionPhase.ACTIVE

    @classmethod
    def from_round(
        cls,
        round_state: RoundState,
        players: Sequence[PlayerInfo],
        config: Optional[AuctionConfig] = None,
    ) -> "Auction":
        config = config or AuctionConfig()
        if round_state.current_turn_player_id is None:
            raise WrongPhase("Round has no player on turn.")
        auction = cls(
            players=list(players),
            current_player=round_state.current_turn_player_id,
            min_bid=config.min_bid,
            max_bid=config.max_bid,
            history=list(round_state.bids),
            highest_bid=round_state.highest_bid,
        )
        auction._update_phase()
        return auction

    def apply(self, action: BidAction) -> None:
        if isinstance(action, Pass):
            self.pass_bid(action.player_id)
        else:
            self.bid(action.player_id, action.amount)

    def bid(self, player_id: str, amount: int) -> None:
        self._ensure_active(player_id)

        if amount < self.min_bid:
            raise IllegalBid(f"Bid {amount} is below the minimum of {self.min_bid}.")
        if amount > self.max_bid:
            raise IllegalBid(f"Bid {amount} exceeds the maximum of {self.max_bid}.")
        if self.highest_bid is not None and amount <= self.highest_bid.amount:
            raise IllegalBid(
                f"Bid {amount} must be higher than the current highest bid ({self.highest_bid.amount})."
            )

        placed = Bid(player_id, amount)
        self.highest_bid = placed
        self.history.append(placed)
        self._advance_turn()

    def pass_bid(self, player_id: str) -> None:
        self._ensure_active(player_id)
        self.history.append(Pass(player_id))
        self._advance_turn()

    def force_bid(self, player_id: str) -> Bid:
        """Saddle ``player_id`` with the minimum contract after an all-pass auction."""
        if self.phase is not AuctionPhase.ALL_PASSED:
            raise WrongPhase("A forced bid is only possible after every player passed.")
        forced = Bid(player_id, self.min_bid)
        self.highest_bid = forced
        self.history.append(forced)
        self.phase = AuctionPhase.COMPLETE
        self.current_player = player_id
        return forced

    def passes_since_highest(self) -> int:
        count = 0
        for action in reversed(self.history):
            if not action.is_pass:
                break
            count += 1
        return count

    def is_complete(self) -> bool:
        return self.phase is AuctionPhase.COMPLETE and self.highest_bid is not None

    def _advance_turn(self) -> None:
        self.current_player = next_player(self.current_player, self.players)
        self._update_phase()

    def _update_phase(self) -> None:
        passes = self.passes_since_highest()
        seats = len(self.players)
        if self.highest_bid is not None:
            if passes >= seats - 1:
                self.phase = AuctionPhase.COMPLETE
                self.current_player = self.highest_bid.player_id
        elif passes >= seats:
            self.phase = AuctionPhase.ALL_PASSED

    def _ensure_active(self, player_id: str) -> None:
        if self.phase is not AuctionPhase.ACTIVE:
            raise WrongPhase("Auction already complete.")
        if player_id != self.current_player:
            raise NotYourTurn("It is not your turn to bid.")
