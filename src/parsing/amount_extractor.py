"""
Transaction Amount Extractor

Scans the text of an incoming banking/UPI notification and pulls out the
debited amount, so the app can suggest an expense entry.

DESIGN DECISION: Patterns are an ordered, immutable table evaluated
top-to-bottom. The first pattern that matches anywhere in the text decides
the result; later patterns are never consulted, even if the winning
capture turns out to be unusable.

IMPORTANT: extract() never raises. Unrelated, empty or malformed text
simply yields NoMatch, so it is safe to run on every notification.
Every rule matches in time linear in the text length: captures split a
digit run only one way, and the keyword-to-amount gap is bounded.
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Union

from pydantic import BaseModel, ConfigDict, Field


# Currency markers are interchangeable across every rule
CURRENCY_MARKER = r"(?:INR|Rs\.?|₹)"

# One or more digits with optional thousands commas, optional decimal part.
# Fraction digits only follow the dot, so a digit run splits one way.
AMOUNT_CAPTURE = r"([0-9,]+(?:\.[0-9]*)?)"

# Longest stretch of text allowed between a debit keyword and the amount
# on the same line
MAX_KEYWORD_GAP = 200


class AmountPattern(BaseModel):
    """
    A single extraction rule.

    Priority is implicit: its position in AMOUNT_PATTERNS.
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    regex: re.Pattern[str]
    group: int = 1
    example: str = ""


class Amount(BaseModel):
    """A positive transaction amount found in the text."""
    model_config = ConfigDict(frozen=True)

    value: Decimal = Field(..., gt=0)


class NoMatch(BaseModel):
    """No usable amount was found."""
    model_config = ConfigDict(frozen=True)


ExtractionResult = Union[Amount, NoMatch]

NO_MATCH = NoMatch()


AMOUNT_PATTERNS: tuple[AmountPattern, ...] = (
    # Keyword before the amount: "debited by INR 250", "spent Rs. 1,250.50"
    AmountPattern(
        name="debit_keyword_first",
        regex=re.compile(
            r"(?:debited|spent|charged|withdrawn)"
            + r".{1,%d}?" % MAX_KEYWORD_GAP
            + CURRENCY_MARKER + r"\s*" + AMOUNT_CAPTURE,
            re.IGNORECASE,
        ),
        example="debited by INR 250",
    ),
    # Amount before the completion phrase: "INR 1,250.50 was spent"
    AmountPattern(
        name="amount_first",
        regex=re.compile(
            CURRENCY_MARKER + r"\s*" + AMOUNT_CAPTURE
            + r"\s*(?:was\s?spent|debited)",
            re.IGNORECASE,
        ),
        example="INR 1,250.50 was spent",
    ),
    # UPI payments: "paid ₹120 to X", "sent ₹450 to Y"
    AmountPattern(
        name="upi_payment",
        regex=re.compile(
            r"(?:paid|sent|transferred)\s*"
            + CURRENCY_MARKER + r"\s*" + AMOUNT_CAPTURE,
            re.IGNORECASE,
        ),
        example="paid ₹120 to John",
    ),
)


def _parse_amount(raw: str) -> ExtractionResult:
    """Strip thousands separators and parse; anything non-positive is NoMatch."""
    try:
        value = Decimal(raw.replace(",", ""))
    except InvalidOperation:
        return NO_MATCH

    if not value.is_finite() or value <= 0:
        return NO_MATCH

    return Amount(value=value)


def extract(
    text: str,
    patterns: tuple[AmountPattern, ...] = AMOUNT_PATTERNS,
) -> ExtractionResult:
    """
    Extract the transaction amount from notification text.

    Args:
        text: Raw notification body (any length, possibly unrelated)
        patterns: Ordered rule table; first match wins

    Returns:
        Amount(value) for a usable positive amount, otherwise NoMatch
    """
    if not isinstance(text, str) or not text:
        return NO_MATCH

    for pattern in patterns:
        match = pattern.regex.search(text)
        if match is None:
            continue
        # First structural match governs, even if its capture is unusable
        return _parse_amount(match.group(pattern.group))

    return NO_MATCH


def is_match(result: ExtractionResult) -> bool:
    """True when the result carries an amount."""
    return isinstance(result, Amount)
