"""GET /v1/schedule - quote an exact installment schedule"""

from decimal import Decimal
from fastapi import APIRouter, HTTPException, Query

from negotiation_gateway.api.v1.schemas import ScheduleSchema
from negotiation_gateway.domain.exceptions import InvalidDebtError, InvalidTermError
from negotiation_gateway.domain.installments import compute_schedule
from negotiation_gateway.utils.money_utils import to_cents

router = APIRouter()


@router.get("/schedule", response_model=ScheduleSchema)
def quote_schedule(
    total_debt: Decimal = Query(..., description="Debt in dollars"),
    term_length: int = Query(..., description="Number of monthly installments"),
):
    """
    Split a debt into monthly installments.

    Returns:
        Base payment, count, and the final payment that absorbs rounding
    """
    try:
        schedule = compute_schedule(to_cents(total_debt), term_length)
    except (InvalidTermError, InvalidDebtError) as e:
        raise HTTPException(status_code=422, detail=str(e))

    return ScheduleSchema.from_domain(schedule)
