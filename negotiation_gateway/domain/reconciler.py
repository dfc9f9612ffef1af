"""Response reconciler - verifies and corrects the model's figures before the user sees them"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from negotiation_gateway.domain.hardship import max_allowed_term
from negotiation_gateway.domain.installments import compute_schedule
from negotiation_gateway.domain.messaging import describe_schedule, documentation_notice, extended_cap_notice
from negotiation_gateway.domain.models import HardshipStatus, InstallmentSchedule, PolicyConfig
from negotiation_gateway.domain.payment_link import (
    DEFAULT_LINK_BASE,
    build_payment_link,
    find_payment_links,
    parse_payment_link,
)
from negotiation_gateway.domain.signals import TermMention, iter_term_mentions
from negotiation_gateway.utils.money_utils import format_dollars, to_cents

logger = logging.getLogger(__name__)

_PER_MONTH_AMOUNT = re.compile(
    r"\$\s?(?P<amount>\d{1,3}(?:,\d{3})+(?:\.\d{1,2})?|\d+(?:\.\d{1,2})?)"
    r"(?P<per>\s?(?:per month|a month|each month|every month|monthly|/\s?month|/\s?mo)\b)",
    re.IGNORECASE,
)
_SEGMENT_BREAK = re.compile(r"(\n+|(?<=[.!?])\s+)")
# Wording that states the documentation requirement rather than offering a term
_RESTRICTIVE = re.compile(
    r"\b(?:requires?|required|documentation|longer than)\b",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class Reconciliation:
    """Corrected text plus what was found and changed"""

    text: str
    schedule: Optional[InstallmentSchedule] = None
    payment_link: Optional[str] = None
    corrections: Tuple[str, ...] = ()
    capped: bool = False


class ResponseReconciler:
    """
    Safety net over the model's reply.

    The model is not trusted with arithmetic or caps: every term length it
    mentions is re-scheduled with compute_schedule, over-cap terms are cut
    back to the cap, and payment links and "$X per month" prose are rewritten
    to the exact figures. An over-cap payment link is removed and replaced by
    a counter-offer at the cap. Text with no term or link passes through
    unchanged.
    """

    def __init__(self, policy: PolicyConfig, payment_link_base: str = DEFAULT_LINK_BASE):
        self.policy = policy
        self.payment_link_base = payment_link_base

    def reconcile(self, raw_text: str, debt_cents: int, hardship_status: HardshipStatus) -> str:
        return self.review(raw_text, debt_cents, hardship_status).text

    def review(self, raw_text: str, debt_cents: int, hardship_status: HardshipStatus) -> Reconciliation:
        """Never raises; anything unparseable passes through untouched"""
        try:
            return self._review(raw_text, debt_cents, hardship_status)
        except Exception as e:
            logger.warning(f"Reconciliation skipped: {e}")
            return Reconciliation(text=raw_text)

    def _review(self, text: str, debt_cents: int, status: HardshipStatus) -> Reconciliation:
        cap = max_allowed_term(status, self.policy)
        corrections: List[str] = []

        text, schedule, link, link_capped = self._rewrite_links(text, debt_cents, cap, corrections)
        capped = link_capped
        over_cap_mentioned = False

        segments = _SEGMENT_BREAK.split(text)
        for i in range(0, len(segments), 2):
            segments[i], segment_capped, segment_over_cap = self._rewrite_segment(
                segments[i], debt_cents, cap, corrections
            )
            capped = capped or segment_capped
            over_cap_mentioned = over_cap_mentioned or segment_over_cap
        text = "".join(segments)

        if link_capped:
            counter = compute_schedule(debt_cents, cap)
            text = f"{text.rstrip()}\n\nThe longest plan available right now is {describe_schedule(counter)}."
        if capped or over_cap_mentioned:
            if status == HardshipStatus.APPROVED:
                notice = extended_cap_notice(cap)
            else:
                notice = documentation_notice(self.policy.base_term_cap)
            if notice not in text:
                text = f"{text.rstrip()}\n\n{notice}"

        if corrections:
            logger.warning("Model reply corrected", extra={"corrections": corrections, "capped": capped})

        return Reconciliation(
            text=text,
            schedule=schedule,
            payment_link=link,
            corrections=tuple(corrections),
            capped=capped,
        )

    def _rewrite_links(
        self, text: str, debt_cents: int, cap: int, corrections: List[str]
    ) -> Tuple[str, Optional[InstallmentSchedule], Optional[str], bool]:
        matches = find_payment_links(text, self.payment_link_base)
        if not matches:
            return text, None, None, False

        prose_term = next((m.months for m in iter_term_mentions(text)), None)
        schedule = None
        link = None
        capped = False

        # Right to left so earlier offsets stay valid
        for match in reversed(matches):
            fields = parse_payment_link(match.url)
            term = fields.term_length if fields.term_length and fields.term_length >= 1 else prose_term
            if term is None or term > cap:
                corrections.append("link_removed")
                if term is not None:
                    capped = True
                    corrections.append("capped")
                text = text[: match.start] + text[match.end :]
                continue

            exact = compute_schedule(debt_cents, term)
            url = build_payment_link(exact, self.payment_link_base)
            if url != match.url:
                corrections.append("link")
            text = text[: match.start] + url + text[match.end :]
            if schedule is None:
                # Last link in the text is the one that stands
                schedule, link = exact, url

        return text, schedule, link, capped

    def _rewrite_segment(
        self, segment: str, debt_cents: int, cap: int, corrections: List[str]
    ) -> Tuple[str, bool, bool]:
        """Returns the segment, whether a term was capped, and whether an over-cap term was left as stated"""
        mentions = list(iter_term_mentions(segment))
        if not mentions:
            return segment, False, False

        amounts = list(_PER_MONTH_AMOUNT.finditer(segment))
        is_offer = bool(amounts) or not _RESTRICTIVE.search(segment)

        edits: List[Tuple[int, int, str]] = []
        capped = False
        over_cap_left = False
        terms = {}
        for mention in mentions:
            term = mention.months
            if term > cap and is_offer:
                term = cap
                capped = True
                corrections.append("capped")
                edits.append(_term_edit(mention, cap))
            elif term > cap:
                over_cap_left = True
            terms[mention.start] = term

        for amount in amounts:
            mention = _nearest_mention(mentions, amount.start())
            schedule = compute_schedule(debt_cents, min(terms[mention.start], cap))
            stated = to_cents(amount.group("amount"))
            final_shown = format_dollars(schedule.final_amount_cents) in segment
            if stated == schedule.base_amount_cents and (schedule.is_even or final_shown):
                continue
            corrections.append("amount")
            edits.append((amount.start(), amount.end(), _per_month_phrase(schedule, amount.group("per"))))

        for start, end, replacement in sorted(edits, reverse=True):
            segment = segment[:start] + replacement + segment[end:]
        return segment, capped, over_cap_left


def _term_edit(mention: TermMention, term: int) -> Tuple[int, int, str]:
    if mention.unit == "year":
        unit = "month" if term == 1 else "months"
        return mention.start, mention.end, f"{term} {unit}"
    return mention.number_start, mention.number_end, str(term)


def _nearest_mention(mentions: List[TermMention], position: int) -> TermMention:
    """Closest term mention before the amount, else the first one after it"""
    before = [m for m in mentions if m.start < position]
    return before[-1] if before else mentions[0]


def _per_month_phrase(schedule: InstallmentSchedule, per: str) -> str:
    if schedule.term_length == 1:
        return f"{format_dollars(schedule.total_cents)} in a single payment"
    base = f"{format_dollars(schedule.base_amount_cents)}{per}"
    if schedule.is_even:
        return base
    return f"{base} (final payment {format_dollars(schedule.final_amount_cents)})"
