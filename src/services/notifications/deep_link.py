"""
Add-expense deep links.

A tapped suggestion opens "<scheme>://add-expense?amount=<value>", which
pre-fills the add-expense form.
"""

from decimal import Decimal, InvalidOperation
from typing import Optional, Union
from urllib.parse import parse_qs, urlencode, urlsplit


ADD_EXPENSE_PATH = "add-expense"


def create_add_expense_url(amount: Union[Decimal, str], scheme: str) -> str:
    """Build the deep link that opens the add-expense screen with an amount."""
    query = urlencode({"amount": str(amount)})
    return f"{scheme}://{ADD_EXPENSE_PATH}?{query}"


def parse_add_expense_amount(url: str) -> Optional[Decimal]:
    """
    Read the pre-filled amount from an add-expense deep link.

    Returns None for other links, a missing amount, or anything that
    isn't a positive number.
    """
    parts = urlsplit(url)
    # "scheme://add-expense" puts the route in netloc; "scheme:///add-expense" in path
    route = (parts.netloc + parts.path).strip("/")
    if route != ADD_EXPENSE_PATH:
        return None

    values = parse_qs(parts.query).get("amount")
    if not values:
        return None

    try:
        amount = Decimal(values[0])
    except InvalidOperation:
        return None

    if not amount.is_finite() or amount <= 0:
        return None
    return amount
