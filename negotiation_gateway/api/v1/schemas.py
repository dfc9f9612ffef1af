"""Pydantic schemas for API request/response validation"""

from decimal import Decimal
from pydantic import BaseModel, Field
from typing import List, Literal, Optional

from negotiation_gateway.domain.models import InstallmentSchedule
from negotiation_gateway.utils.money_utils import to_dollars


class ChatMessageSchema(BaseModel):
    """One prior message in the conversation"""

    sender: Literal["user", "bot"]
    content: str


class UploadedDocumentSchema(BaseModel):
    """Hardship document uploaded through the chat UI"""

    name: str = Field(..., min_length=1)
    type: str = Field(..., description="MIME type")
    size: int = Field(..., ge=0, description="Size in bytes")
    data_url: str = Field("", description="Base64 data URL of the file contents")


class ScheduleSchema(BaseModel):
    """Exact installment schedule"""

    term_length: int
    total_debt_amount: Decimal
    base_payment_cents: int
    base_payment_count: int
    final_payment_cents: int
    installments_cents: List[int]

    @classmethod
    def from_domain(cls, schedule: InstallmentSchedule) -> "ScheduleSchema":
        return cls(
            term_length=schedule.term_length,
            total_debt_amount=to_dollars(schedule.total_cents),
            base_payment_cents=schedule.base_amount_cents,
            base_payment_count=schedule.base_count,
            final_payment_cents=schedule.final_amount_cents,
            installments_cents=schedule.amounts(),
        )


class CreateSessionRequest(BaseModel):
    """Request body for POST /v1/sessions"""

    total_debt: Decimal = Field(..., gt=0, max_digits=14, decimal_places=2, description="Debt in dollars")


class CreateSessionResponse(BaseModel):
    """Response for POST /v1/sessions"""

    session_id: str
    response: str
    phase: str


class ChatRequest(BaseModel):
    """Request body for POST /v1/chat"""

    session_id: Optional[str] = Field(None, description="Omit to start a new session")
    message: str = Field(..., min_length=1)
    conversation_history: List[ChatMessageSchema] = Field(default_factory=list)
    total_debt: Decimal = Field(..., max_digits=14, decimal_places=2, description="Debt in dollars")
    uploaded_documents: List[UploadedDocumentSchema] = Field(default_factory=list)


class ChatResponse(BaseModel):
    """Response for POST /v1/chat"""

    session_id: str
    response: str
    agreement_reached: bool
    hardship_approved: bool
    documentation_requested: bool
    phase: str
    payment_link: Optional[str] = None
    schedule: Optional[ScheduleSchema] = None


class SessionStateResponse(BaseModel):
    """Response for GET /v1/sessions/{session_id}"""

    session_id: str
    total_debt: Decimal
    phase: str
    hardship_status: str
    monthly_income_cents: Optional[int] = None
    offered_term: Optional[int] = None
    agreed_schedule: Optional[ScheduleSchema] = None
