"""Offer policy - picks the term length to put in front of the user"""

from typing import Optional

from negotiation_gateway.domain.hardship import max_allowed_term
from negotiation_gateway.domain.installments import compute_schedule
from negotiation_gateway.domain.models import (
    HardshipStatus,
    IncomeTier,
    Offer,
    OfferContext,
    PolicyConfig,
    TermDecision,
    TermReason,
)
from negotiation_gateway.domain.payment_link import build_payment_link


def income_tier(monthly_cents: Optional[int], policy: PolicyConfig) -> IncomeTier:
    """Unknown income is treated like the lowest tier"""
    if monthly_cents is None:
        return IncomeTier.LOW
    if monthly_cents >= policy.high_income_threshold_cents:
        return IncomeTier.HIGH
    if monthly_cents >= policy.mid_income_threshold_cents:
        return IncomeTier.MID
    return IncomeTier.LOW


def next_ladder_term(current: int, policy: PolicyConfig) -> Optional[int]:
    """First rung of the term ladder strictly above current"""
    for term in policy.term_ladder:
        if term > current:
            return term
    return None


class OfferPolicy:
    """
    Chooses a term length for one negotiation turn.

    Decision rules, in priority order:
    1. A requested term at or below the current cap is honored as-is
    2. A request above the base cap without approved hardship is countered at
       the base cap, and the counter explains documentation is required
    3. A request above the extended cap is countered at the extended cap
    4. With no request, the first offer follows the income tier: higher
       income starts on a shorter term
    5. Each turn of resistance widens one ladder rung, never past the cap
    """

    def __init__(self, policy: PolicyConfig, payment_link_base: str):
        self.policy = policy
        self.payment_link_base = payment_link_base

    def propose_term(self, context: OfferContext) -> TermDecision:
        cap = max_allowed_term(context.hardship_status, self.policy)
        requested = context.requested_term

        if requested is not None and requested >= 1:
            if requested <= cap:
                return TermDecision(requested, TermReason.REQUESTED, cap, requested)
            if context.hardship_status != HardshipStatus.APPROVED:
                return TermDecision(cap, TermReason.CAPPED_NEEDS_DOCUMENTATION, cap, requested)
            return TermDecision(cap, TermReason.CAPPED_EXTENDED, cap, requested)

        if context.previous_term is None or context.negotiation_turn == 0:
            start = self.policy.starting_term_by_tier[income_tier(context.income_monthly_cents, self.policy).value]
            return TermDecision(min(start, cap), TermReason.INCOME_TIER, cap)

        previous = min(context.previous_term, cap)
        if not context.resisting:
            return TermDecision(previous, TermReason.HELD, cap)

        widened = next_ladder_term(previous, self.policy)
        if widened is None or previous >= cap:
            # Only documentation can move an unapproved user past the base cap
            reason = (
                TermReason.CAPPED_NEEDS_DOCUMENTATION
                if context.hardship_status != HardshipStatus.APPROVED
                else TermReason.AT_CAP
            )
            return TermDecision(cap, reason, cap)
        return TermDecision(min(widened, cap), TermReason.WIDENED, cap)

    def make_offer(self, debt_cents: int, decision: TermDecision) -> Offer:
        """A term is never surfaced without its exact schedule"""
        schedule = compute_schedule(debt_cents, decision.term_length)
        return Offer(
            decision=decision,
            schedule=schedule,
            payment_link=build_payment_link(schedule, self.payment_link_base),
        )

    def propose(self, debt_cents: int, context: OfferContext) -> Offer:
        return self.make_offer(debt_cents, self.propose_term(context))

    def pay_in_full(self, debt_cents: int, status: HardshipStatus) -> Offer:
        decision = TermDecision(1, TermReason.PAY_IN_FULL, max_allowed_term(status, self.policy))
        return self.make_offer(debt_cents, decision)
