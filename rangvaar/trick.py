"""Trick play: follow-suit legality and winner resolution."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from .cards import Card, Suit, beats
from .errors import CardNotInHand, MustFollowSuit, NotYourTurn
from .state import PlayerInfo, RoundState, Trick, TrickCard
from .turns import next_player, team_of


def is_playable(card: Card, hand: Iterable[Card], current_trick_cards: Sequence[TrickCard]) -> bool:
    cards = list(hand)
    if card not in cards:
        return False
    if not current_trick_cards:
        return True
    lead_suit = current_trick_cards[0].card.suit
    if any(held.suit is lead_suit for held in cards):
        return card.suit is lead_suit
    return True


def ensure_playable(card: Card, hand: Iterable[Card], current_trick_cards: Sequence[TrickCard]) -> None:
    cards = list(hand)
    if card not in cards:
        raise CardNotInHand(f"Card {card.id} is not in your hand.")
    if not is_playable(card, cards, current_trick_cards):
        lead_suit = current_trick_cards[0].card.suit
        raise MustFollowSuit(f"You must follow the lead suit ({lead_suit}) while you hold it.")


def legal_cards(hand: Iterable[Card], current_trick_cards: Sequence[TrickCard]) -> List[Card]:
    cards = list(hand)
    return [card for card in cards if is_playable(card, cards, current_trick_cards)]


def resolve_trick_winner(trick_cards: Sequence[TrickCard], trump_suit: Optional[Suit]) -> str:
    """Highest trump wins; without trump, the highest card of the lead suit."""
    if not trick_cards:
        raise ValueError("Cannot determine winner on empty trick.")
    lead_suit = trick_cards[0].card.suit
    winning = trick_cards[0]
    for play in trick_cards[1:]:
        if beats(play.card, winning.card, lead_suit, trump_suit):
            winning = play
    return winning.player_id


@dataclass(frozen=True)
class TrickOutcome:
    """Proposed change after one card is played."""

    player_id: str
    hand: List[Card]
    trick_cards: List[TrickCard]
    next_player_id: str
    completed: Optional[Trick] = None
    winning_team_id: Optional[int] = None


def play_to_trick(
    round_state: RoundState,
    players: Sequence[PlayerInfo],
    player_id: str,
    card: Card,
) -> TrickOutcome:
    if round_state.current_turn_player_id != player_id:
        raise NotYourTurn("It is not your turn to play.")

    hand = list(round_state.hands.get(player_id, []))
    ensure_playable(card, hand, round_state.current_trick_cards)
    hand.remove(card)
    trick_cards = list(round_state.current_trick_cards) + [TrickCard(player_id, card)]

    if len(trick_cards) < len(players):
        return TrickOutcome(
            player_id=player_id,
            hand=hand,
            trick_cards=trick_cards,
            next_player_id=next_player(player_id, players),
        )

    winner = resolve_trick_winner(trick_cards, round_state.trump_suit)
    completed = Trick(
        cards=tuple(trick_cards),
        lead_suit=trick_cards[0].card.suit,
        winning_player_id=winner,
        trick_number=round_state.current_trick_number,
    )
    return TrickOutcome(
        player_id=player_id,
        hand=hand,
        trick_cards=[],
        next_player_id=winner,
        completed=completed,
        winning_team_id=team_of(players, winner),
    )
