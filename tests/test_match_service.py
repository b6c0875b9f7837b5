import threading

from rangvaar.errors import (
    CardNotInHand,
    DeckCorruption,
    IllegalBid,
    MalformedRequest,
    MatchNotFound,
    NotYourTurn,
    PlayerNotFound,
    VersionConflict,
    WrongPhase,
)
from rangvaar.game import MatchEngine
from rangvaar.service import MatchService
from rangvaar.state import MatchStatus, RoundPhase

PLAYERS = ["north", "east", "south", "west"]


def started_service(seed=21):
    service = MatchService(engine=MatchEngine(seed=seed))
    assert service.create_match("m1", "north", 3).ok
    for user in PLAYERS[1:]:
        assert service.join_match("m1", user).ok
    result = service.start_match("m1")
    assert result.ok
    return service, result


def finish_auction(service, bidder="east", amount=8):
    """Seat 0 deals round 1, so east opens the auction."""
    order = PLAYERS[1:] + PLAYERS[:1]
    start = order.index(bidder)
    for user in order[:start]:
        assert service.submit_bid("m1", user, None).ok
    assert service.submit_bid("m1", bidder, amount).ok
    rotation = PLAYERS[PLAYERS.index(bidder) + 1 :] + PLAYERS[: PLAYERS.index(bidder)]
    result = None
    for user in rotation:
        result = service.submit_bid("m1", user, None)
        assert result.ok
    return result


def test_lobby_flow_through_service():
    service, result = started_service()

    assert result.state.status is MatchStatus.PLAYING
    assert result.version == 5
    assert service.join_match("m1", "late").error_code == "match_full"
    assert isinstance(service.create_match("m1", "north", 3).error, VersionConflict)
    assert service.create_match("m2", "north", 7).error_code == "invalid_configuration"


def test_auction_and_trump_selection_through_service():
    service, _ = started_service()

    result = finish_auction(service, bidder="east", amount=8)
    assert result.state.current_round_state.phase is RoundPhase.TRUMP_SELECTION
    assert result.state.current_round_state.current_turn_player_id == "east"

    wrong = service.select_trump("m1", "south", "hearts")
    assert wrong.error_code == "not_auction_winner"

    result = service.select_trump("m1", "east", "Hearts")
    assert result.ok
    round_state = result.state.current_round_state
    assert round_state.phase is RoundPhase.TRICK_PLAYING
    assert all(len(hand) == 13 for hand in round_state.hands.values())
    assert round_state.current_turn_player_id == "east"


def test_rule_violations_come_back_as_typed_results():
    service, _ = started_service()

    assert isinstance(service.submit_bid("m1", "north", 7).error, NotYourTurn)
    assert isinstance(service.submit_bid("m1", "east", 6).error, IllegalBid)
    assert isinstance(service.submit_bid("m1", "east", "seven").error, MalformedRequest)
    assert isinstance(service.submit_bid("m1", "ghost", 7).error, PlayerNotFound)
    assert isinstance(service.play_card("m1", "east", "H2").error, WrongPhase)
    assert isinstance(service.submit_bid("nope", "east", 7).error, MatchNotFound)

    finish_auction(service)
    assert isinstance(service.select_trump("m1", "east", "stars").error, MalformedRequest)


def test_playing_unknown_or_foreign_card_rejected():
    service, _ = started_service()
    finish_auction(service)
    result = service.select_trump("m1", "east", "S")
    hands = result.state.current_round_state.hands

    assert isinstance(service.play_card("m1", "east", "Z99").error, CardNotInHand)
    assert service.play_card("m1", "east", None).error_code == "malformed_request"
    assert service.play_card("m1", "east", 42).error_code == "malformed_request"
    assert isinstance(service.play_card("m1", "east", hands["west"][0].id).error, CardNotInHand)

    played = service.play_card("m1", "east", hands["east"][0].id)
    assert played.ok
    assert len(played.state.current_round_state.current_trick_cards) == 1


def test_stale_version_is_a_conflict_and_never_applies_twice():
    service, started = started_service()

    first = service.submit_bid("m1", "east", 7, expected_version=started.version)
    assert first.ok
    again = service.submit_bid("m1", "east", 7, expected_version=started.version)

    assert isinstance(again.error, VersionConflict)
    stored = service.get_match("m1")
    assert stored.version == first.version
    assert len(stored.state.current_round_state.bids) == 1


def test_concurrent_submissions_accept_exactly_one():
    service, started = started_service()
    barrier = threading.Barrier(8)
    results = []
    lock = threading.Lock()

    def submit():
        barrier.wait()
        result = service.submit_bid("m1", "east", 7, expected_version=started.version)
        with lock:
            results.append(result)

    threads = [threading.Thread(target=submit) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    accepted = [result for result in results if result.ok]
    assert len(accepted) == 1
    assert all(isinstance(result.error, VersionConflict) for result in results if not result.ok)
    assert len(service.get_match("m1").state.current_round_state.bids) == 1


def test_deck_corruption_halts_the_match(monkeypatch):
    service, _ = started_service()
    finish_auction(service)

    def broken_deal(state):
        raise DeckCorruption("card count mismatch")

    monkeypatch.setattr(service.engine, "deal_rest", broken_deal)
    result = service.select_trump("m1", "east", "clubs")

    assert result.fatal
    assert result.error_code == "deck_corruption"
    stored = service.get_match("m1").state
    assert stored.status is MatchStatus.CANCELLED
    assert "deck corruption" in stored.halt_reason
    assert stored.current_round_state.phase is RoundPhase.TRUMP_SELECTION
    assert isinstance(service.submit_bid("m1", "east", 9).error, WrongPhase)


def test_player_view_shows_only_own_hand():
    service, _ = started_service()

    view = service.player_view("m1", "south")
    assert view.phase == "Bidding"
    assert view.team_id == 1
    assert len(view.hand) == 5
    assert view.hand_sizes == {user: 5 for user in PLAYERS}
    assert view.legal_moves == []
    assert view.highest_bid is None

    service.submit_bid("m1", "east", 9)
    view = service.player_view("m1", "south")
    assert view.highest_bid == {"player": "east", "action": "bid", "amount": 9}
    assert view.current_player == "south"


def test_player_view_lists_legal_moves_on_turn():
    service, _ = started_service()
    finish_auction(service)
    service.select_trump("m1", "east", "diamonds")

    view = service.player_view("m1", "east")
    assert view.phase == "TrickPlaying"
    assert view.trump == "diamonds"
    assert len(view.hand) == 13
    assert len(view.legal_moves) == 13
    assert service.player_view("m1", "south").legal_moves == []
