"""
Tests for the digit-by-digit long division simulator.

Test Coverage:
- Leading and interior zero quotient digits (7248 ÷ 8 -> "0906")
- Remainder and complete endings
- A zero dividend and a dividend smaller than the divisor
- Agreement with integer division
- Invalid operands
"""

import pytest

from core.errors import ExtractionError
from core.long_division import (
    quotient_digits,
    quotient_from_steps,
    remainder_from_steps,
    simulate_long_division,
    trace_long_division,
)


def _types(steps):
    return [step.type for step in steps]


def test_zero_digits_get_their_own_rows():
    """7248 ÷ 8: 8 does not go into 7, and does not go into 4 after the 9."""
    steps = simulate_long_division(7248, 8)

    assert quotient_digits(steps) == "0906"
    assert quotient_from_steps(steps) == 906
    assert remainder_from_steps(steps) == 0
    assert _types(steps) == [
        "setup",
        "divide", "multiply", "subtract", "bring_down",
        "divide", "multiply", "subtract", "bring_down",
        "divide", "multiply", "subtract", "bring_down",
        "divide", "multiply", "subtract",
        "complete",
    ]


def test_setup_and_first_divide_rows():
    steps = simulate_long_division(7248, 8)
    setup, first_divide = steps[0], steps[1]

    assert setup.working_number == 7
    assert setup.quotient_start_position == 0
    assert first_divide.quotient_digit == 0
    assert first_divide.working_number == 7
    assert first_divide.calculation == "7 ÷ 8 = 0"


def test_step_numbers_are_sequential():
    steps = simulate_long_division(1001, 12)

    assert [step.step for step in steps] == list(range(len(steps)))


def test_setup_takes_longest_prefix_below_divisor():
    steps = simulate_long_division(1001, 12)

    assert steps[0].working_number == 10
    assert steps[0].position == 1
    assert quotient_digits(steps) == "083"
    assert remainder_from_steps(steps) == 5
    assert steps[-1].type == "remainder"
    assert steps[-1].calculation == "1001 ÷ 12 = 83 R 5"


def test_prefix_equal_or_above_divisor_is_not_taken_at_setup():
    """156 ÷ 12 starts from "1", not "15", so the digits carry a leading 0."""
    steps = simulate_long_division(156, 12)

    assert steps[0].working_number == 1
    assert quotient_digits(steps) == "013"
    assert quotient_from_steps(steps) == 13
    assert remainder_from_steps(steps) == 0
    assert steps[-1].type == "complete"


def test_dividend_smaller_than_divisor():
    steps = simulate_long_division(100, 400)

    assert _types(steps) == ["setup", "divide", "multiply", "subtract", "remainder"]
    assert steps[0].working_number == 100
    assert quotient_from_steps(steps) == 0
    assert remainder_from_steps(steps) == 100


def test_zero_dividend():
    steps = simulate_long_division(0, 7)

    assert _types(steps) == ["setup", "divide", "multiply", "subtract", "complete"]
    assert quotient_from_steps(steps) == 0
    assert remainder_from_steps(steps) == 0


def test_simulation_is_deterministic():
    assert simulate_long_division(7248, 8) == simulate_long_division(7248, 8)


@pytest.mark.parametrize("dividend, divisor", [
    (156, 12),
    (17, 5),
    (9999, 7),
    (123456, 321),
    (5, 7),
    (1000000, 1),
])
def test_trace_matches_integer_division(dividend, divisor):
    trace = trace_long_division(dividend, divisor)

    assert (trace.quotient, trace.remainder) == divmod(dividend, divisor)
    assert not trace.quotient_digits.startswith("00")


@pytest.mark.parametrize("dividend, divisor", [
    (10, 0),
    (10, -2),
    (-10, 2),
])
def test_invalid_operands(dividend, divisor):
    # Act & Assert
    with pytest.raises(ExtractionError):
        simulate_long_division(dividend, divisor)


def test_extraction_error_is_a_value_error():
    with pytest.raises(ValueError, match="Divisor must be positive"):
        simulate_long_division(10, 0)
