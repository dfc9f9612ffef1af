"""User-facing wording for deterministic replies"""

from negotiation_gateway.domain.models import HardshipReview, HardshipStatus, InstallmentSchedule, Offer, TermReason
from negotiation_gateway.utils.money_utils import format_dollars

VALID_DOCUMENTS = "unemployment benefits, termination letters, medical bills ($500+), or reduced income statements"

COMPLETED_ACK = "Thank you! If you need any assistance with your payment plan, please don't hesitate to reach out."


def months(term_length: int) -> str:
    return "1 month" if term_length == 1 else f"{term_length} months"


def opening_message(debt_cents: int) -> str:
    return (
        f"Hello! Our records show that you currently owe {format_dollars(debt_cents)}. "
        "Are you able to resolve this debt today?"
    )


def ask_income() -> str:
    return (
        "No problem, let's find a plan that fits your budget. "
        "What is your monthly income, or how much could you comfortably pay each month?"
    )


def ask_income_period(display: str) -> str:
    return (
        f"Just to clarify - when you mentioned {display}, did you mean monthly or annual income?\n\n"
        "This helps me calculate the right payment plan for your budget."
    )


def describe_schedule(schedule: InstallmentSchedule) -> str:
    """
    Plain-language breakdown of an exact schedule.

    The term length is named before the amounts so each "per month" figure
    sits right after the term it belongs to.

    Example:
        "a 7-month plan: $342.85 per month, with a final payment of $342.90
        ($2,400.00 total)"
    """
    total = format_dollars(schedule.total_cents)
    if schedule.term_length == 1:
        return f"a single payment of {total}"
    plan = f"a {schedule.term_length}-month plan: {format_dollars(schedule.base_amount_cents)} per month"
    if schedule.is_even:
        return f"{plan} ({total} total)"
    return f"{plan}, with a final payment of {format_dollars(schedule.final_amount_cents)} ({total} total)"


def documentation_notice(base_cap: int) -> str:
    return (
        f"Plans longer than {months(base_cap)} require hardship documentation, "
        f"such as {VALID_DOCUMENTS}."
    )


def extended_cap_notice(extended_cap: int) -> str:
    return f"The longest plan we can offer is {months(extended_cap)}."


def offer_message(offer: Offer, base_cap: int) -> str:
    """Deterministic wording for an offer, used whenever the model is unavailable"""
    decision = offer.decision
    plan = describe_schedule(offer.schedule)

    if decision.reason == TermReason.PAY_IN_FULL:
        return f"Great! You can resolve the full balance today with {plan}. Shall I send your payment link?"
    if decision.reason == TermReason.CAPPED_NEEDS_DOCUMENTATION:
        asked = f"{months(decision.requested_term)} is" if decision.requested_term else "A longer plan is"
        return (
            f"{asked} beyond what I can offer right now. The longest plan available right now is "
            f"{plan}. {documentation_notice(base_cap)} Does this plan work for you?"
        )
    if decision.reason in (TermReason.CAPPED_EXTENDED, TermReason.AT_CAP):
        return f"{extended_cap_notice(decision.cap)} That would be {plan}. Does this plan work for you?"
    if decision.reason == TermReason.WIDENED:
        return f"No problem! Let's extend the timeline. How about {plan}?"
    if decision.reason == TermReason.REQUESTED:
        return f"We can do that: {plan}. Does this plan work for you?"
    return f"We can break this into manageable payments. How about {plan}?"


def agreement_message(offer: Offer) -> str:
    return (
        f"Great! Your plan is {describe_schedule(offer.schedule)}. "
        f"Here's your payment link to get started: {offer.payment_link}"
    )


def hardship_review_message(review: HardshipReview, extended_cap: int) -> str:
    if review.status == HardshipStatus.APPROVED:
        return (
            "Thank you for providing your documentation. Based on your circumstances, "
            f"we can now offer plans of up to {months(extended_cap)}."
        )
    return (
        "Thank you for uploading your documents. Unfortunately, the documents did not demonstrate "
        f"a qualifying hardship. Valid documents include {VALID_DOCUMENTS}. You're welcome to upload them again."
    )
