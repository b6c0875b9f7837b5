"""High-level match orchestration for Rangvaar.

``MatchEngine`` owns every phase transition. Each public method takes a
``MatchState`` and returns a new one; the state passed in is never mutated,
so a caller can validate against a snapshot and discard the result freely.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from random import Random
from typing import Dict, List, Optional

from .bidding import Auction, AuctionPhase
from .cards import Card, Suit
from .deck import deal_initial, deal_remaining
from .errors import (
    AlreadySeated,
    DeckCorruption,
    InvalidConfiguration,
    MatchFull,
    NotAuctionWinner,
    WrongPhase,
)
from .rules_schema import DECK_SIZE, RuleSet
from .scoring import Contract, ScoringPolicy, StandardScoring
from .state import (
    BidAction,
    MatchState,
    MatchStatus,
    PlayerInfo,
    RoundPhase,
    RoundState,
    RoundSummary,
    Team,
    team_for_position,
)
from .trick import play_to_trick
from .turns import SEAT_COUNT, first_bidder, next_dealer, player_at, seating_order, team_of

log = logging.getLogger(__name__)


def check_card_conservation(round_state: RoundState) -> None:
    """Raise DeckCorruption unless every card is accounted for exactly once."""
    seen: List[str] = [card.id for hand in round_state.hands.values() for card in hand]
    seen.extend(play.card.id for play in round_state.current_trick_cards)
    for trick in round_state.completed_tricks:
        seen.extend(play.card.id for play in trick.cards)

    if len(seen) != len(set(seen)):
        raise DeckCorruption(f"Round {round_state.round_number} holds duplicate cards.")
    total = round_state.cards_in_hands() + round_state.cards_played() + round_state.undealt_count
    if total != DECK_SIZE:
        raise DeckCorruption(
            f"Round {round_state.round_number} accounts for {total} cards instead of {DECK_SIZE}."
        )


@dataclass
class MatchEngine:
    """Apply player intents to match snapshots."""

    rules: RuleSet = field(default_factory=RuleSet)
    scoring: ScoringPolicy = field(default_factory=StandardScoring)
    seed: Optional[int] = None

    # Lobby -------------------------------------------------------------

    def create_match(self, match_id: str, creator_id: str, total_rounds: int) -> MatchState:
        if total_rounds not in self.rules.match.allowed_round_counts:
            raise InvalidConfiguration(
                f"A match lasts one of {self.rules.match.allowed_round_counts} rounds, not {total_rounds}."
            )
        state = MatchState(match_id=match_id, total_rounds=total_rounds, deal_seed=self._match_seed(match_id))
        state = self._seat(state, creator_id)
        log.info("Match %s created by %s for %d rounds", match_id, creator_id, total_rounds)
        return state

    def join_match(self, state: MatchState, user_id: str) -> MatchState:
        if state.status in (MatchStatus.FINISHED, MatchStatus.CANCELLED):
            raise WrongPhase(f"Match already {state.status.value.lower()}.")
        if state.is_seated(user_id):
            raise AlreadySeated(f"Player {user_id!r} is already in this match.")
        if len(state.players) >= SEAT_COUNT:
            raise MatchFull("Match is already full.")
        if state.status is not MatchStatus.WAITING:
            raise WrongPhase(f"Match is not waiting for players (status {state.status.value}).")
        return self._seat(state, user_id)

    def start_match(self, state: MatchState) -> MatchState:
        if state.status is not MatchStatus.STARTING:
            raise WrongPhase(f"Match is not ready to start (status {state.status.value}).")
        if len(state.players) != SEAT_COUNT:
            raise WrongPhase("Match is not full yet.")
        new_state = state.clone()
        dealer = new_state.players[0].position
        new_state.current_round_number = 1
        new_state.current_round_state = self._deal_round(new_state, 1, dealer)
        new_state.status = MatchStatus.PLAYING
        log.info(
            "Match %s started, first bidder %s",
            state.match_id,
            new_state.current_round_state.current_turn_player_id,
        )
        return new_state

    def cancel_match(self, state: MatchState, reason: Optional[str] = None) -> MatchState:
        if state.status in (MatchStatus.FINISHED, MatchStatus.CANCELLED):
            raise WrongPhase(f"Match already {state.status.value.lower()}.")
        new_state = state.clone()
        new_state.status = MatchStatus.CANCELLED
        new_state.halt_reason = reason
        log.warning("Match %s cancelled: %s", state.match_id, reason or "no reason given")
        return new_state

    # Round actions -----------------------------------------------------

    def submit_bid(self, state: MatchState, action: BidAction) -> MatchState:
        round_state = self._ensure_phase(state, RoundPhase.BIDDING)
        state.player(action.player_id)

        auction = Auction.from_round(round_state, state.players, self.rules.auction)
        auction.apply(action)

        new_state = state.clone()
        new_round = new_state.current_round_state
        assert new_round is not None

        if auction.phase is AuctionPhase.ALL_PASSED:
            if self.rules.auction.all_pass_policy == "redeal":
                log.info("Match %s: all players passed, redealing round %d", state.match_id, new_round.round_number)
                new_state.current_round_state = self._deal_round(
                    new_state,
                    new_round.round_number,
                    new_round.dealer_position,
                    redeal_count=new_round.redeal_count + 1,
                )
                return new_state
            dealer_id = player_at(new_state.players, new_round.dealer_position).user_id
            auction.force_bid(dealer_id)
            new_round.forced_bid = True
            log.info("Match %s: all players passed, dealer %s forced to bid %d", state.match_id, dealer_id, auction.min_bid)

        new_round.bids = list(auction.history)
        new_round.highest_bid = auction.highest_bid
        new_round.current_turn_player_id = auction.current_player

        if auction.is_complete():
            assert auction.highest_bid is not None
            new_round.phase = RoundPhase.TRUMP_SELECTION
            log.info(
                "Match %s auction ended: %s bid %d",
                state.match_id,
                auction.highest_bid.player_id,
                auction.highest_bid.amount,
            )
        return new_state

    def select_trump(self, state: MatchState, player_id: str, suit: Suit) -> MatchState:
        round_state = self._ensure_phase(state, RoundPhase.TRUMP_SELECTION)
        state.player(player_id)
        if round_state.highest_bid is None or round_state.highest_bid.player_id != player_id:
            raise NotAuctionWinner("Only the highest bidder can select trump.")

        new_state = state.clone()
        new_round = new_state.current_round_state
        assert new_round is not None
        new_round.trump_suit = suit
        new_round.phase = RoundPhase.DEALING_REST
        log.info("Match %s: %s chose %s as trump", state.match_id, player_id, suit)
        return new_state

    def deal_rest(self, state: MatchState) -> MatchState:
        round_state = self._ensure_phase(state, RoundPhase.DEALING_REST)
        if round_state.highest_bid is None:
            raise DeckCorruption("Cannot deal the remaining cards without an auction winner.")

        new_state = state.clone()
        new_round = new_state.current_round_state
        assert new_round is not None
        order = self._deal_order(new_state.players, new_round.dealer_position)
        new_round.hands = deal_remaining(
            order,
            new_round.hands,
            per_player=self.rules.deal.remaining_cards,
            hand_size=self.rules.tricks_per_round,
            rng=self._deal_rng(new_state, new_round.round_number, new_round.redeal_count, "rest"),
        )
        new_round.undealt_count = 0
        new_round.phase = RoundPhase.TRICK_PLAYING
        new_round.current_turn_player_id = new_round.highest_bid.player_id
        new_round.current_trick_number = 1
        new_round.current_trick_cards = []
        new_round.completed_tricks = []
        new_round.team_tricks_won = {1: 0, 2: 0}
        check_card_conservation(new_round)
        return new_state

    def play_card(self, state: MatchState, player_id: str, card: Card) -> MatchState:
        round_state = self._ensure_phase(state, RoundPhase.TRICK_PLAYING)
        state.player(player_id)
        outcome = play_to_trick(round_state, state.players, player_id, card)

        new_state = state.clone()
        new_round = new_state.current_round_state
        assert new_round is not None
        new_round.hands[player_id] = outcome.hand
        new_round.current_trick_cards = list(outcome.trick_cards)
        new_round.current_turn_player_id = outcome.next_player_id

        if outcome.completed is not None:
            assert outcome.winning_team_id is not None
            new_round.completed_tricks.append(outcome.completed)
            new_round.team_tricks_won[outcome.winning_team_id] += 1
            log.info(
                "Match %s trick %d won by %s",
                state.match_id,
                outcome.completed.trick_number,
                outcome.completed.winning_player_id,
            )
            if outcome.completed.trick_number >= self.rules.tricks_per_round:
                check_card_conservation(new_round)
                return self._close_round(new_state)
            new_round.current_trick_number += 1

        check_card_conservation(new_round)
        return new_state

    def advance_round(self, state: MatchState) -> MatchState:
        round_state = self._ensure_phase(state, RoundPhase.ROUND_ENDED)
        if state.current_round_number >= state.total_rounds:
            raise WrongPhase("The final round has already been played.")
        new_state = state.clone()
        next_number = state.current_round_number + 1
        new_state.current_round_number = next_number
        new_state.current_round_state = self._deal_round(
            new_state, next_number, next_dealer(round_state.dealer_position)
        )
        log.info("Match %s round %d dealt", state.match_id, next_number)
        return new_state

    # Helpers -----------------------------------------------------------

    def _close_round(self, state: MatchState) -> MatchState:
        round_state = state.current_round_state
        assert round_state is not None and round_state.highest_bid is not None

        bidding_team = team_of(state.players, round_state.highest_bid.player_id)
        contract = Contract(bidding_team_id=bidding_team, amount=round_state.highest_bid.amount)
        result = self.scoring.score(dict(round_state.team_tricks_won), contract)

        round_state.round_scores = result.as_dict()
        round_state.penalty_applied = result.penalty_applied
        round_state.phase = RoundPhase.ROUND_ENDED
        round_state.current_turn_player_id = None
        for team_id in (1, 2):
            state.teams[team_id].cumulative_score += result.for_team(team_id)
        state.round_history.append(
            RoundSummary(
                round_number=round_state.round_number,
                dealer_position=round_state.dealer_position,
                contract=round_state.highest_bid,
                bidding_team_id=bidding_team,
                trump_suit=round_state.trump_suit,
                team_tricks_won=dict(round_state.team_tricks_won),
                round_scores=result.as_dict(),
                penalty_applied=result.penalty_applied,
            )
        )
        log.info(
            "Match %s round %d closed: scores %s, cumulative %d-%d",
            state.match_id,
            round_state.round_number,
            round_state.round_scores,
            state.teams[1].cumulative_score,
            state.teams[2].cumulative_score,
        )

        if round_state.round_number >= state.total_rounds:
            team1 = state.teams[1].cumulative_score
            team2 = state.teams[2].cumulative_score
            state.winner_team_id = 1 if team1 > team2 else 2 if team2 > team1 else None
            state.status = MatchStatus.FINISHED
            log.info("Match %s finished, winner team %s", state.match_id, state.winner_team_id)
            return state

        if self.rules.match.auto_advance_rounds:
            return self.advance_round(state)
        return state

    def _deal_round(
        self, state: MatchState, round_number: int, dealer_position: int, redeal_count: int = 0
    ) -> RoundState:
        order = self._deal_order(state.players, dealer_position)
        rng = self._deal_rng(state, round_number, redeal_count, "initial")
        hands, undealt = deal_initial(order, per_player=self.rules.deal.initial_cards, rng=rng)
        round_state = RoundState(
            round_number=round_number,
            dealer_position=dealer_position,
            phase=RoundPhase.BIDDING,
            current_turn_player_id=first_bidder(state.players, dealer_position),
            hands=hands,
            undealt_count=len(undealt),
            redeal_count=redeal_count,
        )
        check_card_conservation(round_state)
        return round_state

    def _match_seed(self, match_id: str) -> int:
        if self.seed is None:
            return Random().getrandbits(64)
        return Random(f"{self.seed}:{match_id}").getrandbits(64)

    def _deal_rng(self, state: MatchState, round_number: int, redeal_count: int, deal_pass: str) -> Random:
        """Seed one deal pass from the match seed, the round and the redeal count."""
        return Random(f"{state.deal_seed}:{round_number}:{redeal_count}:{deal_pass}")

    def _deal_order(self, players: List[PlayerInfo], dealer_position: int) -> List[str]:
        ordered = seating_order(players)
        start = (dealer_position + 1) % SEAT_COUNT
        return [info.user_id for info in ordered[start:] + ordered[:start]]

    def _seat(self, state: MatchState, user_id: str) -> MatchState:
        new_state = state.clone()
        position = len(new_state.players)
        team_id = team_for_position(position)
        new_state.players.append(PlayerInfo(user_id=user_id, position=position, team_id=team_id))
        new_state.teams.setdefault(team_id, Team()).player_ids.append(user_id)
        if len(new_state.players) == SEAT_COUNT:
            new_state.status = MatchStatus.STARTING
            log.info("Match %s is full", state.match_id)
        return new_state

    def _ensure_phase(self, state: MatchState, expected: RoundPhase) -> RoundState:
        if state.status is not MatchStatus.PLAYING:
            raise WrongPhase(f"Match is not in progress (status {state.status.value}).")
        round_state = state.current_round_state
        if round_state is None:
            raise WrongPhase("Current round state is missing.")
        if round_state.phase is not expected:
            raise WrongPhase(f"Action not allowed in phase {round_state.phase.value}. Expected {expected.value}.")
        return round_state


def hand_sizes(round_state: RoundState) -> Dict[str, int]:
    return {player_id: len(hand) for player_id, hand in round_state.hands.items()}
