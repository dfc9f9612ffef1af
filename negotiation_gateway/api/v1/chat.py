"""POST /v1/chat - one negotiation turn"""

import time
import uuid
import logging
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from negotiation_gateway.api.v1.schemas import ChatRequest, ChatResponse, ScheduleSchema
from negotiation_gateway.api.dependencies import (
    get_classifier_client,
    get_model_client,
    get_policy,
    get_request_id,
)
from negotiation_gateway.config import settings
from negotiation_gateway.domain.exceptions import InvalidDebtError
from negotiation_gateway.domain.models import (
    ChatMessage,
    NegotiationPhase,
    PolicyConfig,
    TurnRequest,
    UploadedDocument,
)
from negotiation_gateway.domain.session import NegotiationSession, start_session
from negotiation_gateway.infrastructure.clients.classifier import ClassifierClient
from negotiation_gateway.infrastructure.clients.model import ModelClient
from negotiation_gateway.infrastructure.database.repositories import SessionRepository
from negotiation_gateway.infrastructure.database.session import get_db
from negotiation_gateway.infrastructure.observability.logging import log_turn
from negotiation_gateway.infrastructure.observability.metrics import record_hardship_review, record_turn
from negotiation_gateway.utils.money_utils import to_cents

router = APIRouter()


@router.post("/chat", response_model=ChatResponse)
async def chat_turn(
    request_body: ChatRequest,
    request: Request,
    db: Session = Depends(get_db),
    policy: PolicyConfig = Depends(get_policy),
    model_client: ModelClient = Depends(get_model_client),
    classifier_client: ClassifierClient = Depends(get_classifier_client),
):
    """
    Process one user turn of a negotiation.

    Flow:
    1. Load the live session (or start one for total_debt)
    2. Review any uploaded hardship documents
    3. Propose or confirm terms, worded by the model or the fallback path
    4. Persist the committed session state
    5. Return the reconciled reply and agreement flags
    """
    start_time = time.time()
    request_id = get_request_id(request)
    repo = SessionRepository(db)

    try:
        state = repo.get_session(request_body.session_id) if request_body.session_id else None
        if state is None:
            state = start_session(request_body.session_id or str(uuid.uuid4()), to_cents(request_body.total_debt))
            repo.create_session(state)
        phase_before = state.phase

        session = NegotiationSession(
            state,
            policy,
            model_client,
            classifier_client,
            payment_link_base=settings.payment_link_base,
            model_timeout=settings.model_timeout_seconds,
            classifier_timeout=settings.classifier_timeout_seconds,
        )
        result = await session.handle_turn(
            TurnRequest(
                message=request_body.message,
                conversation_history=[
                    ChatMessage(role="user" if m.sender == "user" else "assistant", content=m.content)
                    for m in request_body.conversation_history
                ],
                uploaded_documents=[
                    UploadedDocument(name=d.name, content_type=d.type, size=d.size, data_url=d.data_url)
                    for d in request_body.uploaded_documents
                ],
            )
        )

        repo.save_session(session.state)
        db.commit()

        # Record metrics and logs
        duration_ms = (time.time() - start_time) * 1000
        agreed_now = phase_before != NegotiationPhase.COMPLETED and result.agreement_reached
        record_turn(
            result.phase.value,
            result.schedule.term_length if agreed_now and result.schedule else None,
            result.fallback_reason,
            result.corrections,
        )
        if result.hardship_review_status is not None:
            record_hardship_review(result.hardship_approved)
        log_turn(
            request_id,
            state.session_id,
            phase_before.value,
            result.phase.value,
            result.agreement_reached,
            result.used_fallback,
            duration_ms,
        )

        return ChatResponse(
            session_id=state.session_id,
            response=result.response_text,
            agreement_reached=result.agreement_reached,
            hardship_approved=result.hardship_approved,
            documentation_requested=result.documentation_requested,
            phase=result.phase.value,
            payment_link=result.payment_link,
            schedule=ScheduleSchema.from_domain(result.schedule) if result.schedule else None,
        )

    except InvalidDebtError as e:
        db.rollback()
        logging.warning(f"Rejected session start: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")
