"""Unit tests for the negotiation session state machine"""

import asyncio
import pytest
from negotiation_gateway.domain.exceptions import ExternalServiceFailure, InvalidDebtError
from negotiation_gateway.domain.messaging import COMPLETED_ACK, ask_income, opening_message
from negotiation_gateway.domain.models import (
    ChatMessage,
    HardshipStatus,
    IncomeEstimate,
    NegotiationPhase,
    TurnRequest,
)
from negotiation_gateway.domain.payment_link import matches_schedule
from negotiation_gateway.domain.session import NegotiationSession, start_session
from tests.fakes import FakeClassifier, FakeModel, make_document


def negotiating_state(**changes):
    state = start_session("session-1", 240000)
    state.phase = NegotiationPhase.NEGOTIATING
    state.income = IncomeEstimate(monthly_cents=400000, source_text="$4,000 a month")
    state.offered_term = 6
    state.negotiation_turns = 1
    for name, value in changes.items():
        setattr(state, name, value)
    return state


def build(state, policy, model=None, classifier=None, model_timeout=0.5):
    return NegotiationSession(
        state,
        policy,
        model or FakeModel(),
        classifier or FakeClassifier({"termination_letter.pdf": True}),
        model_timeout=model_timeout,
        classifier_timeout=0.5,
    )


def test_start_session_rejects_zero_debt():
    with pytest.raises(InvalidDebtError):
        start_session("session-1", 0)


def test_opening_message_states_the_debt(negotiation):
    assert negotiation.opening_message() == (
        "Hello! Our records show that you currently owe $2,400.00. Are you able to resolve this debt today?"
    )


async def test_full_negotiation_with_fallback_wording(negotiation):
    """Initial → AwaitingIncome → Negotiating → Completed with the model unavailable"""
    result = await negotiation.handle_turn(TurnRequest("No, I can't pay that today"))
    assert result.phase == NegotiationPhase.AWAITING_INCOME
    assert result.response_text == ask_income()

    result = await negotiation.handle_turn(TurnRequest("I make $4,000 a month"))
    assert result.phase == NegotiationPhase.NEGOTIATING
    assert negotiation.state.offered_term == 6
    assert "$400.00 per month" in result.response_text

    result = await negotiation.handle_turn(TurnRequest("That's too high for me"))
    assert negotiation.state.offered_term == 9
    assert "$266.66 per month, with a final payment of $266.72" in result.response_text
    assert not result.agreement_reached

    result = await negotiation.handle_turn(TurnRequest("Yes, that works"))
    assert result.agreement_reached
    assert result.phase == NegotiationPhase.COMPLETED
    assert result.schedule.term_length == 9
    assert matches_schedule(result.payment_link, result.schedule)
    assert result.payment_link in result.response_text
    assert negotiation.state.agreed_schedule == result.schedule


async def test_yes_to_opening_question_sends_single_payment_link(negotiation):
    result = await negotiation.handle_turn(TurnRequest("Yes, I can pay it today"))

    assert result.agreement_reached
    assert result.schedule.term_length == 1
    assert "termLength=1" in result.payment_link


async def test_unclear_opening_reply_repeats_question(negotiation):
    result = await negotiation.handle_turn(TurnRequest("Who is this?"))

    assert result.phase == NegotiationPhase.INITIAL
    assert result.response_text == opening_message(240000)
    assert result.used_fallback


async def test_ambiguous_income_asks_before_using_it(negotiation):
    await negotiation.handle_turn(TurnRequest("No, I can't"))

    result = await negotiation.handle_turn(TurnRequest("I earn $8,000"))
    assert result.phase == NegotiationPhase.AWAITING_INCOME
    assert "did you mean monthly or annual income?" in result.response_text
    assert negotiation.state.pending_income_cents == 800000
    assert negotiation.state.income is None

    result = await negotiation.handle_turn(TurnRequest("That's annual"))
    assert result.phase == NegotiationPhase.NEGOTIATING
    assert negotiation.state.income.monthly_cents == 66667
    assert negotiation.state.offered_term == 9


async def test_monthly_clarification_gives_high_income_offer(negotiation):
    await negotiation.handle_turn(TurnRequest("No, I can't"))
    await negotiation.handle_turn(TurnRequest("I earn $8,000"))

    await negotiation.handle_turn(TurnRequest("monthly"))

    assert negotiation.state.income.monthly_cents == 800000
    assert negotiation.state.offered_term == 3


async def test_request_over_cap_asks_for_documentation(policy):
    session = build(negotiating_state(), policy)

    result = await session.handle_turn(TurnRequest("Can I do 18 months?"))

    assert session.state.offered_term == 12
    assert result.documentation_requested
    assert "18 months is beyond what I can offer right now" in result.response_text
    assert "$200.00 per month" in result.response_text
    assert "hardship documentation" in result.response_text


async def test_approved_documents_unlock_earlier_request(policy):
    """Documents approved after an 18-month request revisit that request"""
    state = negotiating_state(offered_term=12, requested_term=18, documentation_requested=True)
    session = build(state, policy)

    result = await session.handle_turn(
        TurnRequest("I've uploaded my termination letter", uploaded_documents=[make_document()])
    )

    assert result.hardship_approved
    assert result.hardship_review_status == HardshipStatus.APPROVED
    assert session.state.offered_term == 18
    assert result.response_text.startswith("Thank you for providing your documentation.")


async def test_extended_term_after_approval(policy):
    session = build(negotiating_state(hardship_status=HardshipStatus.APPROVED), policy)

    result = await session.handle_turn(TurnRequest("Can I do 20 months?"))

    assert session.state.offered_term == 20
    assert "$120.00 per month" in result.response_text


async def test_rejected_documents_keep_base_cap(policy):
    session = build(negotiating_state(), policy, classifier=FakeClassifier())

    result = await session.handle_turn(
        TurnRequest("Here is my document. Can I do 18 months?", uploaded_documents=[make_document("receipt.pdf")])
    )

    assert session.state.hardship_status == HardshipStatus.REJECTED
    assert not result.hardship_approved
    assert session.state.offered_term == 12
    assert "did not demonstrate a qualifying hardship" in result.response_text


async def test_model_timeout_falls_back_and_keeps_negotiating(policy):
    session = build(negotiating_state(), policy, model=FakeModel(["too late"], delay=1.0), model_timeout=0.01)

    result = await session.handle_turn(TurnRequest("Can we talk about it?"))

    assert result.used_fallback
    assert result.fallback_reason == "timeout"
    assert result.phase == NegotiationPhase.NEGOTIATING
    assert "$400.00 per month" in result.response_text


async def test_model_failure_keeps_confirmed_hardship_status(policy):
    model = FakeModel(error=ExternalServiceFailure("model returned 503"))
    session = build(negotiating_state(), policy, model=model)

    result = await session.handle_turn(TurnRequest("See attached", uploaded_documents=[make_document()]))

    assert result.fallback_reason == "failure"
    assert session.state.hardship_status == HardshipStatus.APPROVED


async def test_model_reply_is_reconciled(policy):
    model = FakeModel(["We could do 7 months at $342.86 per month."])
    session = build(negotiating_state(), policy, model=model)

    result = await session.handle_turn(TurnRequest("Could we do 7 months?"))

    assert result.response_text == "We could do 7 months at $342.85 per month (final payment $342.90)."
    assert result.corrections == ("amount",)
    assert not result.used_fallback


async def test_model_link_completes_session(policy):
    model = FakeModel(["Wonderful! Here's your link: collectwise.com/payments?termLength=6&totalDebtAmount=2400"])
    session = build(negotiating_state(), policy, model=model)

    result = await session.handle_turn(TurnRequest("Yes, that works"))

    assert result.agreement_reached
    assert session.state.agreed_schedule.term_length == 6
    assert "termPaymentAmount=40000" in result.payment_link


async def test_model_over_cap_link_does_not_complete(policy):
    model = FakeModel(["Done! collectwise.com/payments?termLength=18&totalDebtAmount=2400"])
    session = build(negotiating_state(), policy, model=model)

    result = await session.handle_turn(TurnRequest("Fine, 18 months it is"))

    assert not result.agreement_reached
    assert result.phase == NegotiationPhase.NEGOTIATING
    assert result.payment_link is None
    assert "termLength=18" not in result.response_text


async def test_model_receives_offer_and_history(policy):
    model = FakeModel(["How about 6 months at $400.00 per month?"])
    session = build(negotiating_state(), policy, model=model)
    history = [ChatMessage("assistant", "Hello!"), ChatMessage("user", "Hi")]

    await session.handle_turn(TurnRequest("What can you offer?", conversation_history=history))

    system_context, sent_history = model.calls[0]
    assert "CURRENT OFFER:" in system_context
    assert "termLength=6" in system_context
    assert sent_history[-1] == ChatMessage("user", "What can you offer?")
    assert sent_history[:2] == history


async def test_completed_session_only_acknowledges(policy):
    state = negotiating_state(phase=NegotiationPhase.COMPLETED)
    model = FakeModel(["anything"])
    session = build(state, policy, model=model)

    result = await session.handle_turn(TurnRequest("Thanks!"))

    assert result.response_text == COMPLETED_ACK
    assert result.agreement_reached
    assert model.calls == []


async def test_cancelled_turn_leaves_state_untouched(policy):
    state = start_session("session-1", 240000)
    state.phase = NegotiationPhase.AWAITING_INCOME
    session = build(state, policy, model=FakeModel(["late"], delay=5.0), model_timeout=10.0)

    task = asyncio.create_task(session.handle_turn(TurnRequest("I make $4,000 a month")))
    await asyncio.sleep(0.01)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert session.state.phase == NegotiationPhase.AWAITING_INCOME
    assert session.state.income is None
    assert session.state.offered_term is None


async def test_income_with_term_request_is_clarified_first(negotiation):
    """The term request survives the clarifying question and is honored afterwards"""
    await negotiation.handle_turn(TurnRequest("No, I can't"))

    result = await negotiation.handle_turn(TurnRequest("I make 60k, can I do 12 months?"))
    assert result.phase == NegotiationPhase.AWAITING_INCOME
    assert "did you mean monthly or annual income?" in result.response_text
    assert negotiation.state.income is None

    result = await negotiation.handle_turn(TurnRequest("annual"))
    assert result.phase == NegotiationPhase.NEGOTIATING
    assert negotiation.state.income.monthly_cents == 500000
    assert negotiation.state.offered_term == 12
    assert "$200.00 per month" in result.response_text
