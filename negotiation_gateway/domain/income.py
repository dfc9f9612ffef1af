"""Income reading - turn a user's stated income into a monthly estimate"""

import re
from typing import Optional

from negotiation_gateway.domain.models import IncomeReading, PolicyConfig
from negotiation_gateway.utils.money_utils import format_dollars

_AMOUNT = re.compile(
    r"(?P<dollar>\$)?\s?(?P<number>\d{1,3}(?:,\d{3})+|\d+)(?:\.(?P<fraction>\d{1,2}))?\s?(?P<k>[kK])?\b"
    r"(?!\s?-?\s?(?:months?|mos?)\b)"
)

# Qualifiers count only when they follow the figure directly ("$4,000 a month", "60k/yr")
_ANNUAL_AFTER = re.compile(
    r"\s*(?:dollars\s+|bucks\s+)?(?:(?:a|per|each|every)\s+(?:year|yr)|/\s?(?:year|yr)|yearly|annually|annual|"
    r"per\s+annum|pre-?tax|salary)\b",
    re.IGNORECASE,
)
_MONTHLY_AFTER = re.compile(
    r"\s*(?:dollars\s+|bucks\s+)?(?:(?:a|per|each|every)\s+(?:month|mo)|/\s?(?:month|mo)|monthly)\b",
    re.IGNORECASE,
)
# ...or lead into it within the same clause ("my salary is $96,000")
_ANNUAL_BEFORE = re.compile(r"\b(?:salary|annual(?:ly)?|yearly|per\s+year|a\s+year)\b", re.IGNORECASE)
_MONTHLY_BEFORE = re.compile(r"\b(?:monthly|per\s+month|a\s+month|each\s+month)\b", re.IGNORECASE)
_CLAUSE_BREAK = re.compile(r"[,;!?]|\.\s|\b(?:and|but)\b", re.IGNORECASE)

# Small figures are only income when they carry a $ or K
MIN_BARE_INCOME_CENTS = 100_00


def annual_to_monthly(annual_cents: int) -> int:
    """Divide by 12, rounding half up to the cent"""
    return (annual_cents * 2 + 12) // 24


def _amount_cents(match: re.Match) -> int:
    whole = int(match.group("number").replace(",", ""))
    fraction = (match.group("fraction") or "0").ljust(2, "0")
    cents = whole * 100 + int(fraction)
    if match.group("k"):
        cents *= 1000
    return cents


def _period(text: str, match: re.Match) -> Optional[str]:
    """Period stated alongside the figure ("annual" or "monthly"), else None"""
    if _ANNUAL_AFTER.match(text, match.end()):
        return "annual"
    if _MONTHLY_AFTER.match(text, match.end()):
        return "monthly"

    clause_start = 0
    for brk in _CLAUSE_BREAK.finditer(text, 0, match.start()):
        clause_start = brk.end()
    clause = text[clause_start : match.start()]
    annual = bool(_ANNUAL_BEFORE.search(clause))
    monthly = bool(_MONTHLY_BEFORE.search(clause))
    if annual != monthly:
        return "annual" if annual else "monthly"
    return None


def read_income(text: str, policy: PolicyConfig) -> Optional[IncomeReading]:
    """
    Find an income figure in a message.

    Rules:
    - Annual qualifiers (a year, /yr, annual, salary, pretax) divide by 12
    - Monthly qualifiers (a month, /mo, monthly) keep the figure as-is
    - A qualifier only counts next to the figure or earlier in its clause;
      "can I do 12 months?" elsewhere in the message says nothing about income
    - K suffix multiplies by 1000
    - With no qualifier, a K figure or one at/above the ambiguity threshold
      is flagged ambiguous; the caller must ask before using it

    Returns:
        IncomeReading, or None when no plausible figure is present
    """
    for match in _AMOUNT.finditer(text):
        cents = _amount_cents(match)
        has_k = bool(match.group("k"))
        if not (match.group("dollar") or has_k) and cents < MIN_BARE_INCOME_CENTS:
            continue

        display = f"{match.group('number')}K" if has_k else format_dollars(cents)
        period = _period(text, match)
        if period == "annual":
            return IncomeReading(cents, annual_to_monthly(cents), ambiguous=False, display=display)
        if period == "monthly":
            return IncomeReading(cents, cents, ambiguous=False, display=display)
        if has_k or cents >= policy.ambiguous_income_threshold_cents:
            return IncomeReading(cents, None, ambiguous=True, display=display)
        return IncomeReading(cents, cents, ambiguous=False, display=display)

    return None


def resolve_period(amount_cents: int, period: str) -> int:
    """Monthly income once the user has said whether a figure was monthly or annual"""
    if period == "annual":
        return annual_to_monthly(amount_cents)
    return amount_cents
