"""Data access layer for live negotiation sessions"""

from typing import Optional
from sqlalchemy.orm import Session
from negotiation_gateway.infrastructure.database.models import NegotiationSessionRecord
from negotiation_gateway.domain.models import (
    HardshipStatus,
    IncomeEstimate,
    InstallmentSchedule,
    NegotiationPhase,
    SessionState,
)


def _to_state(record: NegotiationSessionRecord) -> SessionState:
    income = None
    if record.income_monthly_cents is not None:
        income = IncomeEstimate(
            monthly_cents=record.income_monthly_cents,
            source_text=record.income_source_text or "",
        )

    agreed = None
    if record.agreed_term is not None:
        agreed = InstallmentSchedule(
            total_cents=record.debt_cents,
            term_length=record.agreed_term,
            base_amount_cents=record.agreed_base_cents,
            final_amount_cents=record.agreed_final_cents,
        )

    return SessionState(
        session_id=record.id,
        debt_cents=record.debt_cents,
        phase=NegotiationPhase(record.phase),
        hardship_status=HardshipStatus(record.hardship_status),
        income=income,
        pending_income_cents=record.pending_income_cents,
        offered_term=record.offered_term,
        requested_term=record.requested_term,
        negotiation_turns=record.negotiation_turns,
        documentation_requested=record.documentation_requested,
        agreed_schedule=agreed,
    )


def _apply_state(record: NegotiationSessionRecord, state: SessionState) -> None:
    record.debt_cents = state.debt_cents
    record.phase = state.phase.value
    record.hardship_status = state.hardship_status.value
    record.income_monthly_cents = state.income.monthly_cents if state.income else None
    record.income_source_text = state.income.source_text if state.income else None
    record.pending_income_cents = state.pending_income_cents
    record.offered_term = state.offered_term
    record.requested_term = state.requested_term
    record.negotiation_turns = state.negotiation_turns
    record.documentation_requested = state.documentation_requested

    agreed = state.agreed_schedule
    record.agreed_term = agreed.term_length if agreed else None
    record.agreed_base_cents = agreed.base_amount_cents if agreed else None
    record.agreed_final_cents = agreed.final_amount_cents if agreed else None


class SessionRepository:
    """Repository for live negotiation sessions"""

    def __init__(self, db: Session):
        self.db = db

    def create_session(self, state: SessionState) -> SessionState:
        """Persist a freshly started session"""
        record = NegotiationSessionRecord(id=state.session_id)
        _apply_state(record, state)
        self.db.add(record)
        self.db.flush()  # Surface key conflicts without committing
        return state

    def get_session(self, session_id: str) -> Optional[SessionState]:
        record = self.db.get(NegotiationSessionRecord, session_id)
        return _to_state(record) if record else None

    def save_session(self, state: SessionState) -> None:
        """Write back the state committed by the last turn"""
        record = self.db.get(NegotiationSessionRecord, state.session_id)
        if record is None:
            record = NegotiationSessionRecord(id=state.session_id)
            self.db.add(record)
        _apply_state(record, state)
        self.db.flush()

    def delete_session(self, session_id: str) -> bool:
        record = self.db.get(NegotiationSessionRecord, session_id)
        if record is None:
            return False
        self.db.delete(record)
        self.db.flush()
        return True
