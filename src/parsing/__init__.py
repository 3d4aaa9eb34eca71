"""Notification text parsing package."""

from src.parsing.amount_extractor import (
    AMOUNT_PATTERNS,
    MAX_KEYWORD_GAP,
    NO_MATCH,
    Amount,
    AmountPattern,
    ExtractionResult,
    NoMatch,
    extract,
    is_match,
)

__all__ = [
    "AMOUNT_PATTERNS",
    "MAX_KEYWORD_GAP",
    "NO_MATCH",
    "Amount",
    "AmountPattern",
    "ExtractionResult",
    "NoMatch",
    "extract",
    "is_match",
]
