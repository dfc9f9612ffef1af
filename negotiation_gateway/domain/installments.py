"""Installment schedule computation for debt repayment"""

from negotiation_gateway.domain.exceptions import InvalidDebtError, InvalidTermError
from negotiation_gateway.domain.models import InstallmentSchedule


def compute_schedule(debt_cents: int, term_length: int) -> InstallmentSchedule:
    """
    Split a debt into monthly installments, penny-exact.

    Requirements:
    - Base payment = debt / term, truncated down to the cent
    - Final payment absorbs the rounding remainder so the total is exact
    - All arithmetic in integer cents

    Args:
        debt_cents: Total amount owed, in cents
        term_length: Number of monthly installments

    Returns:
        InstallmentSchedule with base and final amounts

    Raises:
        InvalidTermError: If term_length is below 1
        InvalidDebtError: If debt_cents is not positive

    Example:
        $2400.00 over 7 months → 6 × $342.85 + $342.90
        240000 // 7 = 34285 base
        Final: 240000 - 34285 * 6 = 34290
    """
    if isinstance(term_length, bool) or not isinstance(term_length, int):
        raise InvalidTermError(f"Term length must be a whole number of months, got {term_length!r}")
    if term_length < 1:
        raise InvalidTermError(f"Term length must be at least 1 month, got {term_length}")
    if debt_cents <= 0:
        raise InvalidDebtError(f"Debt must be positive, got {debt_cents} cents")

    base_amount = debt_cents // term_length
    final_amount = debt_cents - base_amount * (term_length - 1)

    schedule = InstallmentSchedule(
        total_cents=debt_cents,
        term_length=term_length,
        base_amount_cents=base_amount,
        final_amount_cents=final_amount,
    )

    return schedule
