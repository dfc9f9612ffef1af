"""Payment link building and parsing - the contract consumed by the chat UI"""

import re
from dataclasses import dataclass
from typing import List, Optional
from urllib.parse import parse_qs, urlencode

from negotiation_gateway.domain.models import InstallmentSchedule
from negotiation_gateway.utils.money_utils import plain_dollars, to_cents

DEFAULT_LINK_BASE = "collectwise.com/payments"

# Sentence punctuation that may trail a link in prose
_TRAILING = ".,;:!?"


@dataclass(frozen=True)
class PaymentLinkFields:
    """Query fields read back from a payment link; None when absent or unreadable"""

    term_length: Optional[int]
    total_debt_cents: Optional[int]
    term_payment_cents: Optional[int]
    final_payment_cents: Optional[int]

    @property
    def complete(self) -> bool:
        return None not in (
            self.term_length,
            self.total_debt_cents,
            self.term_payment_cents,
            self.final_payment_cents,
        )


@dataclass(frozen=True)
class LinkMatch:
    start: int
    end: int
    url: str


def build_payment_link(schedule: InstallmentSchedule, base: str = DEFAULT_LINK_BASE) -> str:
    """
    Render the payment link for an exact schedule.

    termLength, totalDebtAmount and termPaymentAmount lead in the order the
    chat UI matches them. Installment amounts are whole cents.

    Example:
        collectwise.com/payments?termLength=7&totalDebtAmount=2400.00
        &termPaymentAmount=34285&finalPaymentAmount=34290&totalDebtAmountCents=240000
    """
    query = urlencode(
        [
            ("termLength", schedule.term_length),
            ("totalDebtAmount", plain_dollars(schedule.total_cents)),
            ("termPaymentAmount", schedule.base_amount_cents),
            ("finalPaymentAmount", schedule.final_amount_cents),
            ("totalDebtAmountCents", schedule.total_cents),
        ]
    )
    return f"{base}?{query}"


def _link_pattern(base: str) -> re.Pattern:
    return re.compile(r"(?:https?://)?(?:www\.)?" + re.escape(base) + r"\?[^\s\]\)\(<>\"'`]+")


def find_payment_links(text: str, base: str = DEFAULT_LINK_BASE) -> List[LinkMatch]:
    matches = []
    for m in _link_pattern(base).finditer(text):
        url = m.group(0).rstrip(_TRAILING)
        matches.append(LinkMatch(start=m.start(), end=m.start() + len(url), url=url))
    return matches


def _int_field(values: dict, name: str) -> Optional[int]:
    raw = values.get(name, [None])[0]
    if raw is None:
        return None
    try:
        # Cent fields must be whole numbers; "34285.5" is not a cents value
        return int(raw)
    except ValueError:
        return None


def _dollar_field(values: dict, name: str) -> Optional[int]:
    raw = values.get(name, [None])[0]
    if raw is None:
        return None
    try:
        return to_cents(raw)
    except ValueError:
        return None


def _amount_field(values: dict, name: str) -> Optional[int]:
    """Installment amount: whole cents, or dollars when written with a decimal point"""
    raw = values.get(name, [None])[0]
    if raw is None:
        return None
    if "." in raw:
        return _dollar_field(values, name)
    return _int_field(values, name)


def parse_payment_link(url: str) -> PaymentLinkFields:
    """Read term length and amounts back from a link, tolerating the model's variants"""
    query = url.split("?", 1)[1] if "?" in url else ""
    values = parse_qs(query.replace("&amp;", "&"), keep_blank_values=True)

    total = _int_field(values, "totalDebtAmountCents")
    if total is None:
        total = _dollar_field(values, "totalDebtAmount")

    term_payment = _amount_field(values, "termPaymentAmount")
    if term_payment is None:
        term_payment = _int_field(values, "termPaymentAmountCents")

    final_payment = _amount_field(values, "finalPaymentAmount")
    if final_payment is None:
        final_payment = _int_field(values, "finalPaymentAmountCents")

    return PaymentLinkFields(
        term_length=_int_field(values, "termLength"),
        total_debt_cents=total,
        term_payment_cents=term_payment,
        final_payment_cents=final_payment,
    )


def matches_schedule(url: str, schedule: InstallmentSchedule) -> bool:
    """True when the link carries exactly this schedule"""
    fields = parse_payment_link(url)
    return (
        fields.term_length == schedule.term_length
        and fields.total_debt_cents == schedule.total_cents
        and fields.term_payment_cents == schedule.base_amount_cents
        and fields.final_payment_cents == schedule.final_amount_cents
    )
