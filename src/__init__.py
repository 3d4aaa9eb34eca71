"""
Expense Tracker - Source Package

A personal expense tracker that turns banking/UPI notifications into
expense suggestions.

DESIGN PRINCIPLES:
1. Detection suggests → Human confirms → System records
2. Amount detection never fails loudly; unrelated text is just no match
3. No silent corrections
4. Every step must be auditable
5. Storage and platform integrations are swappable
"""

__version__ = "1.0.0"
__author__ = "Expense Tracker Team"
