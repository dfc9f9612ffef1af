"""/v1/sessions - open, inspect, and end live negotiation sessions"""

import uuid
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from negotiation_gateway.api.v1.schemas import (
    CreateSessionRequest,
    CreateSessionResponse,
    ScheduleSchema,
    SessionStateResponse,
)
from negotiation_gateway.domain.exceptions import InvalidDebtError
from negotiation_gateway.domain.messaging import opening_message
from negotiation_gateway.domain.session import start_session
from negotiation_gateway.infrastructure.database.repositories import SessionRepository
from negotiation_gateway.infrastructure.database.session import get_db
from negotiation_gateway.utils.money_utils import to_cents, to_dollars

router = APIRouter()


@router.post("/sessions", response_model=CreateSessionResponse, status_code=201)
def create_session(request_body: CreateSessionRequest, db: Session = Depends(get_db)):
    """
    Open a negotiation for a fixed debt.

    Returns:
        Session ID and the opening question asking whether the debt can be paid in full
    """
    try:
        state = start_session(str(uuid.uuid4()), to_cents(request_body.total_debt))
    except InvalidDebtError as e:
        raise HTTPException(status_code=422, detail=str(e))

    SessionRepository(db).create_session(state)
    db.commit()

    return CreateSessionResponse(
        session_id=state.session_id,
        response=opening_message(state.debt_cents),
        phase=state.phase.value,
    )


@router.get("/sessions/{session_id}", response_model=SessionStateResponse)
def get_session(session_id: str, db: Session = Depends(get_db)):
    state = SessionRepository(db).get_session(session_id)
    if state is None:
        raise HTTPException(status_code=404, detail="Session not found")

    return SessionStateResponse(
        session_id=state.session_id,
        total_debt=to_dollars(state.debt_cents),
        phase=state.phase.value,
        hardship_status=state.hardship_status.value,
        monthly_income_cents=state.income.monthly_cents if state.income else None,
        offered_term=state.offered_term,
        agreed_schedule=ScheduleSchema.from_domain(state.agreed_schedule) if state.agreed_schedule else None,
    )


@router.delete("/sessions/{session_id}", status_code=204)
def end_session(session_id: str, db: Session = Depends(get_db)):
    """End a session and drop its state"""
    if not SessionRepository(db).delete_session(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    db.commit()
