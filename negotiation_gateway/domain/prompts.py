"""System context handed to the language model for one turn"""

from typing import Optional

from negotiation_gateway.domain.messaging import describe_schedule, months
from negotiation_gateway.domain.models import HardshipStatus, NegotiationPhase, Offer, PolicyConfig, SessionState
from negotiation_gateway.utils.money_utils import format_dollars


def build_system_context(state: SessionState, policy: PolicyConfig, offer: Optional[Offer] = None) -> str:
    """
    Negotiation rules plus the exact figures the model must repeat.

    All arithmetic is done here; the model only words the reply.
    """
    debt = format_dollars(state.debt_cents)
    approved = state.hardship_status == HardshipStatus.APPROVED
    cap = policy.extended_term_cap if approved else policy.base_term_cap

    lines = [
        "You are a professional and empathetic debt collection assistant for CollectWise.",
        f"The debtor owes {debt}. Your goal is to agree a payment plan they can keep.",
        "",
        "RULES:",
        "- Never do your own payment arithmetic. Only quote the figures given below.",
        f"- The longest plan you may offer is {months(cap)}.",
    ]
    if not approved:
        lines.append(
            f"- Plans longer than {months(policy.base_term_cap)} need hardship documentation; "
            "invite the debtor to upload it if they ask for more time."
        )
    if state.income is not None:
        lines.append(f"- The debtor's monthly income is about {format_dollars(state.income.monthly_cents)}.")

    if state.phase == NegotiationPhase.AWAITING_INCOME:
        lines.append("- The debtor cannot pay in full. Ask for their monthly income.")

    if offer is not None:
        lines += [
            "",
            "CURRENT OFFER:",
            f"- {describe_schedule(offer.schedule)}.",
            "- Present this offer in your own words and ask if it works.",
            "- Only when the debtor clearly agrees, include this exact payment link, unchanged:",
            f"  {offer.payment_link}",
        ]

    lines += ["", "Keep replies short and friendly."]
    return "\n".join(lines)
