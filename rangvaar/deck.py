"""Deck creation and dealing utilities for Rangvaar."""

from __future__ import annotations

from random import Random
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .cards import Card, RANK_ORDER, Suit
from .errors import DeckCorruption
from .rules_schema import DECK_SIZE


def build_deck() -> List[Card]:
    """Return the ordered 52-card deck."""
    return [Card(suit, rank) for suit in Suit for rank in RANK_ORDER]


def shuffle_deck(deck: Sequence[Card], rng: Optional[Random] = None) -> List[Card]:
    """Return a shuffled copy of ``deck`` using Fisher-Yates."""
    if rng is None:
        rng = Random()
    cards = list(deck)
    for i in range(len(cards) - 1, 0, -1):
        j = rng.randint(0, i)
        cards[i], cards[j] = cards[j], cards[i]
    return cards


def _deal_round_robin(
    player_ids: Sequence[str],
    cards: List[Card],
    per_player: int,
) -> Dict[str, List[Card]]:
    if len(cards) < per_player * len(player_ids):
        raise DeckCorruption(
            f"Need {per_player * len(player_ids)} cards to deal, only {len(cards)} left."
        )
    dealt: Dict[str, List[Card]] = {player_id: [] for player_id in player_ids}
    for _ in range(per_player):
        for player_id in player_ids:
            dealt[player_id].append(cards.pop())
    return dealt


def deal_initial(
    player_ids: Sequence[str],
    *,
    per_player: int = 5,
    rng: Optional[Random] = None,
    deck: Optional[Sequence[Card]] = None,
) -> Tuple[Dict[str, List[Card]], List[Card]]:
    """Deal the pre-auction hands. Returns the hands and the undealt cards."""
    cards = list(deck) if deck is not None else shuffle_deck(build_deck(), rng)
    if len(cards) != DECK_SIZE:
        raise DeckCorruption(f"Deck must contain exactly {DECK_SIZE} cards, got {len(cards)}.")
    hands = _deal_round_robin(player_ids, cards, per_player)
    return hands, cards


def remaining_deck(hands: Mapping[str, Iterable[Card]]) -> List[Card]:
    """Rebuild the undealt cards by removing every dealt id from a fresh deck."""
    dealt_ids = set()
    dealt_count = 0
    for hand in hands.values():
        for card in hand:
            dealt_ids.add(card.id)
            dealt_count += 1
    if len(dealt_ids) != dealt_count:
        raise DeckCorruption("A card was dealt to more than one hand.")
    return [card for card in build_deck() if card.id not in dealt_ids]


def deal_remaining(
    player_ids: Sequence[str],
    hands: Mapping[str, Sequence[Card]],
    *,
    per_player: int = 8,
    hand_size: int = 13,
    rng: Optional[Random] = None,
) -> Dict[str, List[Card]]:
    """Complete every hand to ``hand_size`` cards from a reshuffled remainder."""
    already_dealt = sum(len(hand) for hand in hands.values())
    expected_remaining = DECK_SIZE - already_dealt
    undealt = shuffle_deck(remaining_deck(hands), rng)
    if len(undealt) != expected_remaining:
        raise DeckCorruption(
            f"Deck reconstruction error. Expected {expected_remaining} cards, found {len(undealt)}."
        )

    extra = _deal_round_robin(player_ids, undealt, per_player)
    completed = {player_id: list(hands[player_id]) + extra[player_id] for player_id in player_ids}
    for player_id, hand in completed.items():
        if len(hand) != hand_size:
            raise DeckCorruption(
                f"Hand of {player_id} holds {len(hand)} cards after the final deal, expected {hand_size}."
            )
    return completed
