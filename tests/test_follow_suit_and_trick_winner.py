import pytest

from rangvaar.cards import Card, Rank, Suit
from rangvaar.errors import CardNotInHand, MustFollowSuit
from rangvaar.trick import ensure_playable, is_playable, legal_cards, resolve_trick_winner
from rangvaar.state import TrickCard


def plays(*cards):
    return [TrickCard(f"p{index}", card) for index, card in enumerate(cards)]


def test_trump_beats_higher_card_of_lead_suit():
    trick = plays(
        Card(Suit.HEARTS, Rank.ACE),
        Card(Suit.SPADES, Rank.FIVE),
        Card(Suit.HEARTS, Rank.KING),
        Card(Suit.HEARTS, Rank.TWO),
    )

    assert resolve_trick_winner(trick, Suit.SPADES) == "p1"


def test_highest_lead_suit_card_wins_without_trump():
    trick = plays(
        Card(Suit.HEARTS, Rank.KING),
        Card(Suit.HEARTS, Rank.TWO),
        Card(Suit.HEARTS, Rank.ACE),
        Card(Suit.HEARTS, Rank.THREE),
    )

    assert resolve_trick_winner(trick, Suit.CLUBS) == "p2"


def test_off_suit_card_never_wins():
    trick = plays(
        Card(Suit.DIAMONDS, Rank.FOUR),
        Card(Suit.CLUBS, Rank.ACE),
        Card(Suit.DIAMONDS, Rank.THREE),
        Card(Suit.HEARTS, Rank.KING),
    )

    assert resolve_trick_winner(trick, Suit.SPADES) == "p0"


def test_highest_of_several_trumps_wins():
    trick = plays(
        Card(Suit.HEARTS, Rank.ACE),
        Card(Suit.SPADES, Rank.TEN),
        Card(Suit.SPADES, Rank.JACK),
        Card(Suit.SPADES, Rank.TWO),
    )

    assert resolve_trick_winner(trick, Suit.SPADES) == "p2"


def test_face_cards_rank_above_ten():
    trick = plays(
        Card(Suit.CLUBS, Rank.TEN),
        Card(Suit.CLUBS, Rank.JACK),
        Card(Suit.CLUBS, Rank.NINE),
        Card(Suit.CLUBS, Rank.QUEEN),
    )

    assert resolve_trick_winner(trick, None) == "p3"


def test_leader_may_play_any_card():
    hand = [Card(Suit.HEARTS, Rank.TWO), Card(Suit.SPADES, Rank.ACE)]

    assert legal_cards(hand, []) == hand


def test_must_follow_suit_when_holding_it():
    trick = plays(Card(Suit.HEARTS, Rank.TEN))
    hand = [Card(Suit.HEARTS, Rank.TWO), Card(Suit.SPADES, Rank.ACE)]

    assert is_playable(hand[0], hand, trick)
    assert not is_playable(hand[1], hand, trick)
    with pytest.raises(MustFollowSuit):
        ensure_playable(hand[1], hand, trick)


def test_void_in_lead_suit_may_play_anything():
    trick = plays(Card(Suit.HEARTS, Rank.TEN))
    hand = [Card(Suit.CLUBS, Rank.TWO), Card(Suit.SPADES, Rank.ACE)]

    assert legal_cards(hand, trick) == hand


def test_card_outside_hand_rejected():
    hand = [Card(Suit.CLUBS, Rank.TWO)]

    assert not is_playable(Card(Suit.CLUBS, Rank.THREE), hand, [])
    with pytest.raises(CardNotInHand):
        ensure_playable(Card(Suit.CLUBS, Rank.THREE), hand, [])


def test_empty_trick_has_no_winner():
    with pytest.raises(ValueError):
        resolve_trick_winner([], Suit.HEARTS)
