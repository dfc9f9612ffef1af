"""Negotiation session - the per-conversation state machine driving each turn"""

import asyncio
import logging
from dataclasses import dataclass, replace
from typing import Awaitable, List, Optional, Protocol, Sequence, Tuple

from negotiation_gateway.domain.exceptions import (
    ExternalServiceError,
    ExternalServiceTimeout,
    InvalidDebtError,
)
from negotiation_gateway.domain.hardship import DocumentClassifier, HardshipGate
from negotiation_gateway.domain.income import read_income, resolve_period
from negotiation_gateway.domain.messaging import (
    COMPLETED_ACK,
    agreement_message,
    ask_income,
    ask_income_period,
    hardship_review_message,
    offer_message,
    opening_message,
)
from negotiation_gateway.domain.models import (
    ChatMessage,
    HardshipStatus,
    IncomeEstimate,
    InstallmentSchedule,
    NegotiationPhase,
    Offer,
    OfferContext,
    PolicyConfig,
    SessionState,
    TurnRequest,
    TurnResult,
    UserSignals,
)
from negotiation_gateway.domain.payment_link import DEFAULT_LINK_BASE
from negotiation_gateway.domain.policy import OfferPolicy
from negotiation_gateway.domain.prompts import build_system_context
from negotiation_gateway.domain.reconciler import ResponseReconciler
from negotiation_gateway.domain.signals import read_signals

logger = logging.getLogger(__name__)


class TextCompleter(Protocol):
    """The language model collaborator"""

    def complete(self, system_context: str, conversation_history: Sequence[ChatMessage]) -> Awaitable[str]: ...


@dataclass(frozen=True)
class _Reply:
    text: str
    used_fallback: bool = False
    fallback_reason: Optional[str] = None
    corrections: Tuple[str, ...] = ()
    payment_link: Optional[str] = None
    schedule: Optional[InstallmentSchedule] = None


def start_session(session_id: str, debt_cents: int) -> SessionState:
    """
    Fresh state for a new negotiation.

    Raises:
        InvalidDebtError: If the debt is not a positive amount
    """
    if debt_cents <= 0:
        raise InvalidDebtError(f"Debt must be positive to open a negotiation, got {debt_cents} cents")
    return SessionState(session_id=session_id, debt_cents=debt_cents)


class NegotiationSession:
    """
    Drives one conversation through Initial → AwaitingIncome → Negotiating → Completed.

    Each turn works on a copy of the state and commits it only once the turn
    has produced a reply, so a timed-out or cancelled collaborator call never
    leaves a half-applied transition behind. The hardship status is the one
    exception: it is committed as soon as the classifier result is confirmed.

    Flow per turn:
    1. Completed sessions only acknowledge
    2. Review uploaded documents through the hardship gate
    3. Dispatch on phase; every offer comes from OfferPolicy with its exact schedule
    4. Ask the model to word the reply, or fall back to deterministic wording
    5. Reconcile the model's text; a payment link in it completes the session
    """

    def __init__(
        self,
        state: SessionState,
        policy: PolicyConfig,
        model: TextCompleter,
        classifier: DocumentClassifier,
        payment_link_base: str = DEFAULT_LINK_BASE,
        model_timeout: float = 10.0,
        classifier_timeout: float = 10.0,
    ):
        self.state = state
        self.policy = policy
        self.model = model
        self.classifier = classifier
        self.offers = OfferPolicy(policy, payment_link_base)
        self.reconciler = ResponseReconciler(policy, payment_link_base)
        self.model_timeout = model_timeout
        self.classifier_timeout = classifier_timeout

    def opening_message(self) -> str:
        return opening_message(self.state.debt_cents)

    async def handle_turn(self, request: TurnRequest) -> TurnResult:
        if self.state.phase == NegotiationPhase.COMPLETED:
            return self._result(_Reply(COMPLETED_ACK))

        notes: List[str] = []
        approved_now = False
        reviewed: Optional[HardshipStatus] = None
        if request.uploaded_documents:
            gate = HardshipGate(self.policy, self.state.hardship_status)
            review = await gate.submit_documents(
                request.uploaded_documents, self.classifier, timeout=self.classifier_timeout
            )
            if review.classified:
                approved_now = review.status == HardshipStatus.APPROVED
                reviewed = review.status
                self.state.hardship_status = review.status
                notes.append(hardship_review_message(review, self.policy.extended_term_cap))
                logger.info(
                    "Hardship review completed",
                    extra={
                        "session_id": self.state.session_id,
                        "hardship_status": review.status.value,
                        "reason_label": review.reason_label,
                    },
                )

        draft = replace(self.state)
        signals = read_signals(request.message)
        reply = await self._dispatch(draft, request, signals, approved_now)
        self.state = draft

        if notes:
            reply = replace(reply, text="\n\n".join(notes + [reply.text]))
        return self._result(reply, reviewed)

    def _result(self, reply: _Reply, reviewed: Optional[HardshipStatus] = None) -> TurnResult:
        return TurnResult(
            response_text=reply.text,
            agreement_reached=self.state.phase == NegotiationPhase.COMPLETED,
            hardship_approved=self.state.hardship_status == HardshipStatus.APPROVED,
            phase=self.state.phase,
            used_fallback=reply.used_fallback,
            fallback_reason=reply.fallback_reason,
            payment_link=reply.payment_link,
            schedule=reply.schedule,
            corrections=reply.corrections,
            documentation_requested=self.state.documentation_requested,
            hardship_review_status=reviewed,
        )

    async def _dispatch(
        self, draft: SessionState, request: TurnRequest, signals: UserSignals, approved_now: bool
    ) -> _Reply:
        if draft.phase == NegotiationPhase.INITIAL:
            return await self._initial_turn(draft, request, signals)
        if draft.phase == NegotiationPhase.AWAITING_INCOME:
            return await self._income_turn(draft, request, signals)
        return await self._negotiation_turn(draft, request, signals, approved_now)

    async def _initial_turn(self, draft: SessionState, request: TurnRequest, signals: UserSignals) -> _Reply:
        can_pay_in_full = signals.affirmative and not (signals.negative or signals.resisting)
        if can_pay_in_full and signals.requested_term is None:
            draft.phase = NegotiationPhase.NEGOTIATING
            offer = self.offers.pay_in_full(draft.debt_cents, draft.hardship_status)
            draft.offered_term = offer.term_length
            return await self._present(draft, request, offer, accepted=True)

        wants_plan = signals.negative or signals.resisting or signals.hardship or signals.requested_term is not None
        if wants_plan or read_income(request.message, self.policy) is not None:
            draft.phase = NegotiationPhase.AWAITING_INCOME
            return await self._income_turn(draft, request, signals)

        return await self._converse(draft, request, fallback=opening_message(draft.debt_cents))

    async def _income_turn(self, draft: SessionState, request: TurnRequest, signals: UserSignals) -> _Reply:
        if draft.pending_income_cents is not None and signals.period_answer is not None:
            monthly = resolve_period(draft.pending_income_cents, signals.period_answer)
            draft.income = IncomeEstimate(monthly_cents=monthly, source_text=request.message)
            draft.pending_income_cents = None
            return await self._start_negotiating(draft, request, signals)

        reading = read_income(request.message, self.policy)
        if reading is not None:
            if reading.ambiguous:
                # One clarifying round-trip before the figure is used
                draft.pending_income_cents = reading.amount_cents
                if signals.requested_term is not None:
                    draft.requested_term = signals.requested_term
                return _Reply(ask_income_period(reading.display))
            draft.income = IncomeEstimate(monthly_cents=reading.monthly_cents, source_text=request.message)
            draft.pending_income_cents = None
            return await self._start_negotiating(draft, request, signals)

        if signals.requested_term is not None:
            return await self._start_negotiating(draft, request, signals)

        return await self._converse(draft, request, fallback=ask_income())

    async def _start_negotiating(self, draft: SessionState, request: TurnRequest, signals: UserSignals) -> _Reply:
        draft.phase = NegotiationPhase.NEGOTIATING
        draft.offered_term = None
        draft.negotiation_turns = 0
        # The message that carried the income is not pushback on an offer
        signals = replace(signals, resisting=False)
        if signals.requested_term is None and draft.requested_term is not None:
            # Term asked for alongside an income figure that needed clarifying
            signals = replace(signals, requested_term=draft.requested_term)
        return await self._negotiation_turn(draft, request, signals, approved_now=False)

    async def _negotiation_turn(
        self, draft: SessionState, request: TurnRequest, signals: UserSignals, approved_now: bool
    ) -> _Reply:
        accepted = (
            draft.offered_term is not None
            and signals.requested_term is None
            and not signals.resisting
            and (signals.accepted or (signals.affirmative and not signals.negative))
        )

        requested = signals.requested_term
        if requested is not None:
            draft.requested_term = requested
        elif approved_now:
            # Documents just unlocked longer terms; revisit what was asked for
            requested = draft.requested_term

        context = OfferContext(
            hardship_status=draft.hardship_status,
            income_monthly_cents=draft.income.monthly_cents if draft.income else None,
            requested_term=requested,
            previous_term=draft.offered_term,
            negotiation_turn=draft.negotiation_turns,
            resisting=signals.resisting or signals.hardship,
        )
        offer = self.offers.propose(draft.debt_cents, context)
        draft.offered_term = offer.term_length
        draft.negotiation_turns += 1
        if offer.decision.needs_documentation:
            draft.documentation_requested = True

        return await self._present(draft, request, offer, accepted)

    async def _present(self, draft: SessionState, request: TurnRequest, offer: Offer, accepted: bool) -> _Reply:
        if accepted:
            fallback = agreement_message(offer)
        else:
            fallback = offer_message(offer, self.policy.base_term_cap)
        return await self._converse(draft, request, fallback, offer, accepted)

    async def _converse(
        self,
        draft: SessionState,
        request: TurnRequest,
        fallback: str,
        offer: Optional[Offer] = None,
        accepted: bool = False,
    ) -> _Reply:
        """Have the model word the reply; deterministic fallback when it can't"""
        context = build_system_context(draft, self.policy, offer)
        history = list(request.conversation_history) + [ChatMessage(role="user", content=request.message)]
        text, failure = await self._complete(context, history)

        if text is None:
            reply = _Reply(fallback, used_fallback=True, fallback_reason=failure)
            if accepted and offer is not None:
                reply = replace(reply, payment_link=offer.payment_link, schedule=offer.schedule)
        else:
            review = self.reconciler.review(text, draft.debt_cents, draft.hardship_status)
            reply = _Reply(
                review.text,
                corrections=review.corrections,
                payment_link=review.payment_link,
                schedule=review.schedule,
            )

        if reply.payment_link is not None and reply.schedule is not None:
            draft.phase = NegotiationPhase.COMPLETED
            draft.agreed_schedule = reply.schedule
            draft.offered_term = reply.schedule.term_length
        return reply

    async def _complete(self, context: str, history: List[ChatMessage]) -> Tuple[Optional[str], Optional[str]]:
        try:
            text = await asyncio.wait_for(self.model.complete(context, history), timeout=self.model_timeout)
        except (asyncio.TimeoutError, ExternalServiceTimeout):
            logger.warning("Model call timed out, using fallback", extra={"session_id": self.state.session_id})
            return None, "timeout"
        except ExternalServiceError as e:
            logger.warning(f"Model call failed, using fallback: {e}", extra={"session_id": self.state.session_id})
            return None, "failure"

        if not text or not text.strip():
            return None, "failure"
        return text, None
