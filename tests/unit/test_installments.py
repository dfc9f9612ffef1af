"""Unit tests for installment schedule computation"""

import pytest
from negotiation_gateway.domain.exceptions import InvalidDebtError, InvalidTermError
from negotiation_gateway.domain.installments import compute_schedule


def test_compute_schedule_absorbs_remainder_in_final_payment():
    """$2400.00 over 7 months → 6 × $342.85 + $342.90"""
    schedule = compute_schedule(240000, 7)

    assert schedule.base_amount_cents == 34285
    assert schedule.base_count == 6
    assert schedule.final_amount_cents == 34290
    assert sum(schedule.amounts()) == 240000


def test_compute_schedule_even_split():
    """$2400.00 over 3 months splits with no drift"""
    schedule = compute_schedule(240000, 3)

    assert schedule.base_amount_cents == 80000
    assert schedule.final_amount_cents == 80000
    assert schedule.is_even
    assert schedule.amounts() == [80000, 80000, 80000]


def test_compute_schedule_single_payment():
    """One month means the whole debt in the final payment"""
    schedule = compute_schedule(240000, 1)

    assert schedule.base_count == 0
    assert schedule.final_amount_cents == 240000
    assert schedule.amounts() == [240000]


@pytest.mark.parametrize("term_length", [0, -1, -12])
def test_compute_schedule_rejects_non_positive_term(term_length):
    with pytest.raises(InvalidTermError):
        compute_schedule(240000, term_length)


def test_compute_schedule_rejects_non_integer_term():
    with pytest.raises(InvalidTermError):
        compute_schedule(240000, 6.5)


def test_compute_schedule_rejects_non_positive_debt():
    with pytest.raises(InvalidDebtError):
        compute_schedule(0, 6)


def test_compute_schedule_total_is_exact_for_every_term():
    """Sum matches the debt to the cent for a spread of awkward amounts"""
    for debt_cents in (100, 101, 99999, 123457, 240000, 1000001):
        for term_length in range(1, 37):
            schedule = compute_schedule(debt_cents, term_length)
            assert (
                schedule.base_amount_cents * (term_length - 1) + schedule.final_amount_cents == debt_cents
            ), (debt_cents, term_length)


def test_compute_schedule_final_drift_stays_within_one_base_payment():
    """Final payment is never below the base and never more than double it"""
    for debt_cents in (2000, 5001, 99999, 240000, 777777):
        for term_length in range(1, 37):
            schedule = compute_schedule(debt_cents, term_length)
            drift = schedule.final_amount_cents - schedule.base_amount_cents
            assert 0 <= drift <= schedule.base_amount_cents, (debt_cents, term_length)


def test_compute_schedule_drift_below_one_cent_per_installment():
    """Rounding drift is at most term_length - 1 cents"""
    schedule = compute_schedule(240000, 36)

    assert schedule.base_amount_cents == 6666
    assert schedule.final_amount_cents == 6690
    assert schedule.final_amount_cents - schedule.base_amount_cents <= 35
