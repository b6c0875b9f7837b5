"""Error taxonomy shared by the Rangvaar engine and its service layer."""

from __future__ import annotations


class RangvaarError(ValueError):
    """Base class for recoverable rule and request errors."""

    code = "rangvaar_error"


class NotYourTurn(RangvaarError):
    """Raised when a player acts while another player holds the turn."""

    code = "not_your_turn"


class WrongPhase(RangvaarError):
    """Raised when an action is submitted outside its match status or round phase."""

    code = "wrong_phase"


class IllegalBid(RangvaarError):
    """Raised when a bid is below the minimum, not above the highest bid, or above the maximum."""

    code = "illegal_bid"


class MustFollowSuit(RangvaarError):
    """Raised when a player holding the lead suit plays another suit."""

    code = "must_follow_suit"


class NotAuctionWinner(RangvaarError):
    """Raised when someone other than the highest bidder tries to name trump."""

    code = "not_auction_winner"


class PlayerNotFound(RangvaarError):
    """Raised when a user id is not seated in the match."""

    code = "player_not_found"


class CardNotInHand(RangvaarError):
    """Raised when the played card is not held by the player."""

    code = "card_not_in_hand"


class VersionConflict(RangvaarError):
    """Raised when an optimistic commit lost a race against a concurrent write."""

    code = "version_conflict"


class MatchNotFound(RangvaarError):
    code = "match_not_found"


class MatchFull(RangvaarError):
    code = "match_full"


class AlreadySeated(RangvaarError):
    code = "already_seated"


class InvalidConfiguration(RangvaarError):
    """Raised for match parameters the rules do not allow, such as an unsupported round count."""

    code = "invalid_configuration"


class MalformedRequest(RangvaarError):
    """Raised when an action payload cannot be understood at all."""

    code = "malformed_request"


class DeckCorruption(RuntimeError):
    """Card conservation failed. This points at a bug, not at a bad request."""

    code = "deck_corruption"
