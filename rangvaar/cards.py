"""Card-related data structures and helpers for Rangvaar."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional


class Suit(Enum):
    HEARTS = "H"
    DIAMONDS = "D"
    CLUBS = "C"
    SPADES = "S"

    def __str__(self) -> str:
        return self.name.lower()


class Rank(Enum):
    TWO = "2"
    THREE = "3"
    FOUR = "4"
    FIVE = "5"
    SIX = "6"
    SEVEN = "7"
    EIGHT = "8"
    NINE = "9"
    TEN = "10"
    JACK = "J"
    QUEEN = "Q"
    KING = "K"
    ACE = "A"

    def __str__(self) -> str:
        return self.name.lower()


# Rank order from lowest to highest for trick resolution.
RANK_ORDER: list[Rank] = list(Rank)

# Number cards keep their face value; Jack, Queen, King and Ace sit above them.
RANK_VALUES: dict[Rank, int] = {rank: index + 2 for index, rank in enumerate(RANK_ORDER)}

SUIT_SYMBOLS: dict[Suit, str] = {
    Suit.HEARTS: "♥",
    Suit.DIAMONDS: "♦",
    Suit.CLUBS: "♣",
    Suit.SPADES: "♠",
}


@dataclass(frozen=True)
class Card:
    """Immutable representation of a playing card."""

    suit: Suit
    rank: Rank

    @property
    def id(self) -> str:
        return f"{self.suit.value}{self.rank.value}"

    @property
    def value(self) -> int:
        return RANK_VALUES[self.rank]

    def __str__(self) -> str:
        return f"{self.rank.value}{SUIT_SYMBOLS[self.suit]}"


def card_from_id(card_id: str) -> Card:
    """Parse an id such as ``"H7"``, ``"S10"`` or ``"DA"`` back into a card."""
    if len(card_id) < 2:
        raise ValueError(f"Malformed card id {card_id!r}.")
    try:
        suit = Suit(card_id[0].upper())
        rank = Rank(card_id[1:].upper())
    except ValueError as exc:
        raise ValueError(f"Malformed card id {card_id!r}.") from exc
    return Card(suit, rank)


def beats(candidate: Card, current: Card, led_suit: Suit, trump: Optional[Suit]) -> bool:
    """Return True if candidate wins over current within the trick context."""
    if candidate == current:
        return False

    candidate_trump = trump is not None and candidate.suit is trump
    current_trump = trump is not None and current.suit is trump

    if candidate_trump and not current_trump:
        return True
    if current_trump and not candidate_trump:
        return False

    if candidate.suit is current.suit:
        return candidate.value > current.value

    if candidate.suit is led_suit and current.suit is not led_suit:
        return True

    return False


def serialize_card(card: Card) -> dict[str, str]:
    return {"id": card.id, "rank": card.rank.name.lower(), "suit": card.suit.name.lower()}


def deserialize_card(payload: Mapping[str, str]) -> Card:
    if "id" in payload:
        return card_from_id(payload["id"])
    rank_name = payload["rank"].upper()
    suit_name = payload["suit"].upper()
    return Card(Suit[suit_name], Rank[rank_name])


def card_label(card: Card) -> str:
    return f"{card.rank.name.title()} of {card.suit.name.title()}"
