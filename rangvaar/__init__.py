"""Core rules engine for Rangvaar."""

__all__ = [
    "cards",
    "deck",
    "errors",
    "state",
    "turns",
    "bidding",
    "trick",
    "scoring",
    "game",
    "rules_schema",
    "store",
    "service",
]
