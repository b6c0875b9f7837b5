import pytest

from rangvaar.scoring import Contract, RoundScore, ScoringError, StandardScoring


def test_contract_met_scores_tricks_won():
    result = StandardScoring().score({1: 8, 2: 6}, Contract(bidding_team_id=1, amount=7))

    assert isinstance(result, RoundScore)
    assert result.team1 == 8
    assert result.team2 == 6
    assert not result.penalty_applied


def test_exact_contract_is_met():
    result = StandardScoring().score({1: 4, 2: 9}, Contract(bidding_team_id=2, amount=9))

    assert result.as_dict() == {1: 4, 2: 9}
    assert not result.penalty_applied


def test_failed_contract_scores_twice_tricks_minus_bid():
    result = StandardScoring().score({1: 8, 2: 5}, Contract(bidding_team_id=2, amount=9))

    assert result.team1 == 8
    assert result.team2 == 1
    assert result.penalty_applied


def test_failed_contract_can_go_negative():
    result = StandardScoring().score({1: 2, 2: 11}, Contract(bidding_team_id=1, amount=10))

    assert result.for_team(1) == -6
    assert result.for_team(2) == 11


def test_scoring_requires_both_teams():
    with pytest.raises(ScoringError):
        StandardScoring().score({1: 13}, Contract(bidding_team_id=1, amount=7))
