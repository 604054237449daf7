"""Utility functions for romatype."""

import math


def round_half_up(value: float, digits: int = 0) -> float:
    """Round like a stopwatch does: halves always go up (2.25 -> 2.3)."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def clamp(value, low, high):
    """Clamp value into [low, high]."""
    return max(low, min(value, high))


def normalize_romaji(text: str) -> str:
    """Lowercase and drop all whitespace."""
    return ''.join(text.lower().split())
