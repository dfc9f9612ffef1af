"""Unit tests for reading income from user messages"""

import pytest
from negotiation_gateway.domain.income import annual_to_monthly, read_income, resolve_period


@pytest.mark.parametrize(
    "message,monthly_cents",
    [
        ("I make $4,000 a month", 400000),
        ("I bring home 3500 monthly", 350000),
        ("My salary is $96,000", 800000),
        ("about 60k a year", 500000),
        ("I earn $2,000", 200000),
        ("$1,250.50 per month after rent", 125050),
    ],
)
def test_read_income_unambiguous(policy, message, monthly_cents):
    reading = read_income(message, policy)

    assert reading is not None
    assert not reading.ambiguous
    assert reading.monthly_cents == monthly_cents


@pytest.mark.parametrize("message", ["I earn $8,000", "around 5k", "I get 4000"])
def test_read_income_large_unqualified_figure_is_ambiguous(policy, message):
    reading = read_income(message, policy)

    assert reading.ambiguous
    assert reading.monthly_cents is None


def test_read_income_keeps_stated_figure_for_clarification(policy):
    reading = read_income("I make 50k", policy)

    assert reading.amount_cents == 5_000_000
    assert reading.display == "50K"


@pytest.mark.parametrize("message", ["I'd like 12 months", "I have 2 kids", "No, I can't pay today"])
def test_read_income_ignores_non_income_numbers(policy, message):
    assert read_income(message, policy) is None


def test_annual_to_monthly_rounds_half_up():
    assert annual_to_monthly(1_200_000) == 100_000
    assert annual_to_monthly(800_000) == 66_667
    assert annual_to_monthly(6) == 1  # 0.5 cents rounds up


def test_resolve_period():
    assert resolve_period(800_000, "monthly") == 800_000
    assert resolve_period(800_000, "annual") == 66_667


@pytest.mark.parametrize(
    "message,amount_cents",
    [
        ("I make 60k, can I do 12 months?", 6_000_000),
        ("I earn $5,000 and want 6 months", 500_000),
        ("I get 4000, could we stretch it over a year?", 400_000),
    ],
)
def test_read_income_term_request_is_not_an_income_qualifier(policy, message, amount_cents):
    """A term mentioned elsewhere in the message leaves the figure unclassified"""
    reading = read_income(message, policy)

    assert reading.ambiguous
    assert reading.monthly_cents is None
    assert reading.amount_cents == amount_cents


@pytest.mark.parametrize(
    "message,monthly_cents",
    [
        ("My monthly income is 5000", 500000),
        ("I take home $3,000/mo and would like 6 months", 300000),
        ("72k/yr, and I'd like 12 months", 600000),
    ],
)
def test_read_income_qualifier_next_to_figure(policy, message, monthly_cents):
    reading = read_income(message, policy)

    assert not reading.ambiguous
    assert reading.monthly_cents == monthly_cents
