"""Validation schema for Rangvaar rules configuration."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator

DECK_SIZE = 52
SEAT_COUNT = 4


class AuctionConfig(BaseModel):
    min_bid: int = Field(7, ge=1, description="Lowest contract a player may open the auction with.")
    max_bid: int = Field(13, ge=1, description="Highest contract; equals the number of tricks in a round.")
    all_pass_policy: Literal["force_dealer", "redeal"] = Field(
        "force_dealer",
        description="What happens when all four players pass without a single bid.",
    )

    @model_validator(mode="after")
    def check_bid_range(self) -> "AuctionConfig":
        if self.min_bid > self.max_bid:
            raise ValueError(f"min_bid {self.min_bid} exceeds max_bid {self.max_bid}.")
        if self.max_bid > DECK_SIZE // SEAT_COUNT:
            raise ValueError(f"max_bid cannot exceed {DECK_SIZE // SEAT_COUNT} tricks.")
        return self


class DealConfig(BaseModel):
    initial_cards: int = Field(5, ge=1, description="Cards each player receives before the auction.")

    @field_validator("initial_cards")
    @classmethod
    def leave_cards_for_second_pass(cls, value: int) -> int:
        if value >= DECK_SIZE // SEAT_COUNT:
            raise ValueError("The initial deal must leave cards for the second pass.")
        return value

    @property
    def remaining_cards(self) -> int:
        return DECK_SIZE // SEAT_COUNT - self.initial_cards


class MatchConfig(BaseModel):
    allowed_round_counts: list[int] = Field(default_factory=lambda: [3, 5])
    auto_advance_rounds: bool = Field(
        True,
        description="Deal the next round as soon as a non-final round closes.",
    )

    @field_validator("allowed_round_counts")
    @classmethod
    def ensure_positive(cls, value: list[int]) -> list[int]:
        if not value:
            raise ValueError("At least one round count must be allowed.")
        if any(count <= 0 for count in value):
            raise ValueError("Round counts must be positive.")
        return sorted(set(value))


class RuleSet(BaseModel):
    auction: AuctionConfig = Field(default_factory=AuctionConfig)
    deal: DealConfig = Field(default_factory=DealConfig)
    match: MatchConfig = Field(default_factory=MatchConfig)

    @property
    def tricks_per_round(self) -> int:
        return DECK_SIZE // SEAT_COUNT


def load_rules(source: Optional[Union[str, Path, dict]] = None) -> RuleSet:
    """Build a validated RuleSet from a JSON file path or a plain mapping."""
    if source is None:
        return RuleSet()
    if isinstance(source, dict):
        return RuleSet.model_validate(source)
    payload = json.loads(Path(source).read_text(encoding="utf-8"))
    return RuleSet.model_validate(payload)
