"""Rules, state and layout helpers for a small turn-based strategy game of units against invading waves."""

__version__ = "0.1.0"