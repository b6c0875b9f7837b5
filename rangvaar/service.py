"""Service layer binding the match engine to a versioned store."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Union

from .cards import Card, Suit, card_from_id, card_label, serialize_card
from .errors import (
    CardNotInHand,
    DeckCorruption,
    MalformedRequest,
    RangvaarError,
    VersionConflict,
)
from .game import MatchEngine, hand_sizes
from .state import Bid, BidAction, MatchState, Pass, RoundPhase, Trick, TrickCard
from .store import InMemoryMatchStore, MatchStore, VersionedMatch
from .trick import legal_cards

log = logging.getLogger(__name__)

Mutation = Callable[[MatchState], MatchState]


@dataclass(frozen=True)
class ActionResult:
    """Outcome of one player intent: the committed state or a typed error."""

    state: Optional[MatchState] = None
    version: Optional[int] = None
    error: Optional[Union[RangvaarError, DeckCorruption]] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def fatal(self) -> bool:
        return isinstance(self.error, DeckCorruption)

    @property
    def error_code(self) -> Optional[str]:
        return getattr(self.error, "code", None) if self.error is not None else None


@dataclass
class TrickPlayView:
    player_id: str
    card: dict
    label: str


@dataclass
class TrickView:
    trick_number: int
    lead_suit: Optional[str]
    plays: list[TrickPlayView]
    winner: Optional[str] = None


@dataclass
class PlayerView:
    match_id: str
    version: int
    status: str
    player_id: str
    team_id: int
    total_rounds: int
    round_number: int
    phase: Optional[str]
    dealer_position: Optional[int]
    current_player: Optional[str]
    trump: Optional[str]
    highest_bid: Optional[dict]
    bids: list[dict]
    hand: list[dict]
    hand_labels: list[str]
    legal_moves: list[dict]
    hand_sizes: dict[str, int]
    trick: Optional[TrickView]
    completed_tricks: list[TrickView]
    team_tricks_won: dict[int, int]
    round_scores: dict[int, int]
    cumulative_scores: dict[int, int]
    winner_team_id: Optional[int]
    round_history: list[dict]


def parse_suit(value: Union[Suit, str]) -> Suit:
    if isinstance(value, Suit):
        return value
    text = str(value).strip()
    for suit in Suit:
        if text.upper() in (suit.name, suit.value):
            return suit
    raise MalformedRequest(f"Unknown suit: {value!r}")


def bid_action(player_id: str, amount: Optional[int]) -> BidAction:
    """Translate a raw bid payload; ``None`` means pass."""
    if amount is None:
        return Pass(player_id)
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise MalformedRequest(f"Bid amount must be an integer, got {amount!r}.")
    return Bid(player_id, amount)


class MatchService:
    """Facade over MatchEngine for hosts: one call per player intent."""

    def __init__(self, store: Optional[MatchStore] = None, engine: Optional[MatchEngine] = None) -> None:
        self.store = store or InMemoryMatchStore()
        self.engine = engine or MatchEngine()

    # Match lifecycle ---------------------------------------------------

    def create_match(self, match_id: str, creator_id: str, total_rounds: int) -> ActionResult:
        try:
            state = self.engine.create_match(match_id, creator_id, total_rounds)
            version = self.store.create(match_id, state)
        except RangvaarError as exc:
            log.warning("create_match rejected for %s: %s", match_id, exc)
            return ActionResult(error=exc)
        return ActionResult(state=state, version=version)

    def join_match(self, match_id: str, user_id: str, expected_version: Optional[int] = None) -> ActionResult:
        return self._transact(
            match_id,
            "join_match",
            user_id,
            lambda state: self.engine.join_match(state, user_id),
            expected_version,
        )

    def start_match(self, match_id: str, expected_version: Optional[int] = None) -> ActionResult:
        return self._transact(match_id, "start_match", None, self.engine.start_match, expected_version)

    def cancel_match(
        self,
        match_id: str,
        reason: Optional[str] = None,
        expected_version: Optional[int] = None,
    ) -> ActionResult:
        return self._transact(
            match_id,
            "cancel_match",
            None,
            lambda state: self.engine.cancel_match(state, reason),
            expected_version,
        )

    # Player intents ----------------------------------------------------

    def submit_bid(
        self,
        match_id: str,
        player_id: str,
        amount: Optional[int],
        expected_version: Optional[int] = None,
    ) -> ActionResult:
        def mutate(state: MatchState) -> MatchState:
            return self.engine.submit_bid(state, bid_action(player_id, amount))

        return self._transact(match_id, "submit_bid", player_id, mutate, expected_version)

    def select_trump(
        self,
        match_id: str,
        player_id: str,
        suit: Union[Suit, str],
        expected_version: Optional[int] = None,
    ) -> ActionResult:
        def mutate(state: MatchState) -> MatchState:
            chosen = self.engine.select_trump(state, player_id, parse_suit(suit))
            return self.engine.deal_rest(chosen)

        return self._transact(match_id, "select_trump", player_id, mutate, expected_version)

    def play_card(
        self,
        match_id: str,
        player_id: str,
        card: Union[Card, str],
        expected_version: Optional[int] = None,
    ) -> ActionResult:
        def mutate(state: MatchState) -> MatchState:
            return self.engine.play_card(state, player_id, self._resolve_card(card))

        return self._transact(match_id, "play_card", player_id, mutate, expected_version)

    def advance_round(self, match_id: str, expected_version: Optional[int] = None) -> ActionResult:
        return self._transact(match_id, "advance_round", None, self.engine.advance_round, expected_version)

    # Views -------------------------------------------------------------

    def get_match(self, match_id: str) -> VersionedMatch:
        return self.store.load(match_id)

    def player_view(self, match_id: str, player_id: str) -> PlayerView:
        snapshot = self.store.load(match_id)
        state = snapshot.state
        player = state.player(player_id)
        round_state = state.current_round_state

        hand: list[Card] = []
        legal: list[Card] = []
        trick_view: Optional[TrickView] = None
        completed: list[TrickView] = []
        bids: list[dict] = []
        highest_bid: Optional[dict] = None
        if round_state is not None:
            hand = list(round_state.hands.get(player_id, []))
            if round_state.phase is RoundPhase.TRICK_PLAYING and round_state.current_turn_player_id == player_id:
                legal = legal_cards(hand, round_state.current_trick_cards)
            if round_state.current_trick_cards:
                trick_view = self._trick_view(
                    round_state.current_trick_number, round_state.current_trick_cards
                )
            completed = [self._completed_view(trick) for trick in round_state.completed_tricks]
            bids = [self._bid_payload(action) for action in round_state.bids]
            if round_state.highest_bid is not None:
                highest_bid = self._bid_payload(round_state.highest_bid)

        return PlayerView(
            match_id=state.match_id,
            version=snapshot.version,
            status=state.status.value,
            player_id=player_id,
            team_id=player.team_id,
            total_rounds=state.total_rounds,
            round_number=state.current_round_number,
            phase=round_state.phase.value if round_state else None,
            dealer_position=round_state.dealer_position if round_state else None,
            current_player=round_state.current_turn_player_id if round_state else None,
            trump=str(round_state.trump_suit) if round_state and round_state.trump_suit else None,
            highest_bid=highest_bid,
            bids=bids,
            hand=[serialize_card(card) for card in hand],
            hand_labels=[card_label(card) for card in hand],
            legal_moves=[serialize_card(card) for card in legal],
            hand_sizes=hand_sizes(round_state) if round_state else {},
            trick=trick_view,
            completed_tricks=completed,
            team_tricks_won=dict(round_state.team_tricks_won) if round_state else {1: 0, 2: 0},
            round_scores=dict(round_state.round_scores) if round_state else {1: 0, 2: 0},
            cumulative_scores={team_id: team.cumulative_score for team_id, team in state.teams.items()},
            winner_team_id=state.winner_team_id,
            round_history=[
                {
                    "round": summary.round_number,
                    "contract": self._bid_payload(summary.contract) if summary.contract else None,
                    "bidding_team": summary.bidding_team_id,
                    "trump": str(summary.trump_suit) if summary.trump_suit else None,
                    "tricks": dict(summary.team_tricks_won),
                    "scores": dict(summary.round_scores),
                    "penalty_applied": summary.penalty_applied,
                }
                for summary in state.round_history
            ],
        )

    # Helpers -----------------------------------------------------------

    def _transact(
        self,
        match_id: str,
        action: str,
        player_id: Optional[str],
        mutate: Mutation,
        expected_version: Optional[int],
    ) -> ActionResult:
        try:
            snapshot = self.store.load(match_id)
            if expected_version is not None and expected_version != snapshot.version:
                raise VersionConflict(
                    f"Match {match_id!r} is at version {snapshot.version}, not {expected_version}."
                )
            next_state = mutate(snapshot.state)
            version = self.store.commit(match_id, snapshot.version, next_state)
        except DeckCorruption as exc:
            log.exception("%s in match %s hit deck corruption, halting the match", action, match_id)
            return self._halt(match_id, exc)
        except VersionConflict as exc:
            log.warning("%s by %s in match %s lost a race: %s", action, player_id, match_id, exc)
            return ActionResult(error=exc)
        except RangvaarError as exc:
            log.warning("%s by %s in match %s rejected: %s", action, player_id, match_id, exc)
            return ActionResult(error=exc)

        log.info("%s by %s in match %s committed at version %d", action, player_id, match_id, version)
        return ActionResult(state=next_state, version=version)

    def _halt(self, match_id: str, exc: DeckCorruption) -> ActionResult:
        try:
            snapshot = self.store.load(match_id)
            halted = self.engine.cancel_match(snapshot.state, reason=f"deck corruption: {exc}")
            version = self.store.commit(match_id, snapshot.version, halted)
        except RangvaarError as halt_error:
            log.error("Could not halt match %s: %s", match_id, halt_error)
            return ActionResult(error=exc)
        return ActionResult(state=halted, version=version, error=exc)

    def _resolve_card(self, card: Union[Card, str]) -> Card:
        if isinstance(card, Card):
            return card
        if not isinstance(card, str):
            raise MalformedRequest(f"Card must be given by its id, got {card!r}.")
        try:
            return card_from_id(card)
        except ValueError as exc:
            raise CardNotInHand(f"Card {card!r} is not in your hand.") from exc

    def _bid_payload(self, action: BidAction) -> dict:
        if isinstance(action, Pass):
            return {"player": action.player_id, "action": "pass", "amount": None}
        return {"player": action.player_id, "action": "bid", "amount": action.amount}

    def _trick_view(self, trick_number: int, plays: list[TrickCard]) -> TrickView:
        return TrickView(
            trick_number=trick_number,
            lead_suit=str(plays[0].card.suit) if plays else None,
            plays=[
                TrickPlayView(player_id=play.player_id, card=serialize_card(play.card), label=card_label(play.card))
                for play in plays
            ],
        )

    def _completed_view(self, trick: Trick) -> TrickView:
        view = self._trick_view(trick.trick_number, list(trick.cards))
        view.winner = trick.winning_player_id
        return view
