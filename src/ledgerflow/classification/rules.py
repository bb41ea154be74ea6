"""Deterministic transaction type rules.

The banking-data provider reports money leaving the account as a positive
amount and money arriving as a negative one. The ledger stores every amount
as a positive number and keeps the direction in ``type``.

Descriptions can also reveal a wrong direction (refunds reported as spend,
transfers reported as deposits). The patterns below are the same ones the
bulk "fix types" pass uses; they are explainable and run without network
calls.
"""

from __future__ import annotations

import json
import re
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from ledgerflow.models.transaction import TransactionType

CENT = Decimal("0.01")

# Descriptions the manual review screen surfaces.
REVIEW_PATTERNS: tuple[str, ...] = ("venmo", "transfer", "payment")

# Money coming IN to the account. Checked first.
_INCOME_PATTERNS: list[re.Pattern[str]] = [
    re.compile(p, re.I)
    for p in (
        r"deposit",
        r"payroll",
        r"salary",
        r"income",
        r"refund",
        r"credit",
        r"cashback",
        r"reimbursement",
        r"payment.*received",
        r"check.*deposit",
        r"transfer.*in",
        r"transfer.*from",
    )
]

# Money going OUT of the account.
_EXPENSE_PATTERNS: list[re.Pattern[str]] = [
    re.compile(p, re.I)
    for p in (
        r"payment",
        r"purchase",
        r"withdrawal",
        r"autopay",
        r"debit",
        r"bill.*pay",
        r"transfer.*to",
        r"transfer.*between",
        r"inst.*xfer",
        r"epay",
    )
]

# (keywords, color, icon); first match wins.
_CATEGORY_STYLES: list[tuple[tuple[str, ...], str | None, str]] = [
    (("marketing", "advertising"), "#8B5CF6", "megaphone"),
    # Payroll reads green as income, amber as expense.
    (("salary", "wage"), None, "users"),
    (("investment",), "#3B82F6", "trending-up"),
    (("software", "subscription"), "#6366F1", "cpu"),
    (("meal", "food"), "#EC4899", "coffee"),
    (("travel", "transport"), "#14B8A6", "plane"),
]


def to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def normalize_amount(provider_amount: Any) -> Decimal:
    """Absolute value of a provider amount, quantized to cents."""
    return abs(to_decimal(provider_amount)).quantize(CENT, rounding=ROUND_HALF_UP)


def infer_type(provider_amount: Any) -> TransactionType:
    """Initial type from the provider's sign: positive is money out."""
    if to_decimal(provider_amount) > 0:
        return TransactionType.EXPENSE
    return TransactionType.INCOME


def suggest_type(
    description: str | None, provider_category: Any = None
) -> TransactionType | None:
    """Suggest a type from description and provider labels.

    Args:
        description: Transaction description as reported by the bank.
        provider_category: Provider category labels (list, dict or None).

    Returns:
        The suggested type, or None if no pattern applies.
    """
    desc = (description or "").lower()
    labels = json.dumps(provider_category or {}).lower()

    suggested: TransactionType | None = None
    if any(p.search(desc) or p.search(labels) for p in _INCOME_PATTERNS):
        suggested = TransactionType.INCOME
    elif any(p.search(desc) or p.search(labels) for p in _EXPENSE_PATTERNS):
        suggested = TransactionType.EXPENSE

    # Card payments ("credit card payment") leave the account.
    if "credit" in desc and "payment" in desc:
        suggested = TransactionType.EXPENSE

    # Transfers between own accounts are expenses from the source account.
    if "transfer between" in desc or "transfer to" in desc:
        suggested = TransactionType.EXPENSE

    return suggested


def provider_label(provider_category: Any) -> str:
    """First provider category label, used to pick an initial category."""
    if isinstance(provider_category, (list, tuple)) and provider_category:
        first = provider_category[0]
        if isinstance(first, str) and first.strip():
            return first.strip()
    if isinstance(provider_category, dict):
        primary = provider_category.get("primary")
        if isinstance(primary, str) and primary.strip():
            return primary.strip()
    return "Other"


def category_style(name: str, type: TransactionType | str) -> tuple[str, str]:
    """Color and icon for a newly created category."""
    txn_type = TransactionType(type)
    lowered = (name or "").lower()

    for keywords, color, icon in _CATEGORY_STYLES:
        if any(k in lowered for k in keywords):
            if color is None:
                color = "#10B981" if txn_type is TransactionType.INCOME else "#F59E0B"
            return color, icon

    if txn_type is TransactionType.INCOME:
        return "#10B981", "dollar-sign"
    return "#EF4444", "credit-card"
