"""
long_division.py

Deterministic, digit-by-digit long division.

The trace is computed from (dividend, divisor) alone and never from tutor
text, so the diagram always agrees with the arithmetic. Every quotient digit,
including zeros, gets its own divide/multiply/subtract rows: skipping a zero
digit would leave the quotient string out of step with the rows that explain it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from core.errors import ExtractionError
from schemas.diagram import LongDivisionStep


@dataclass(frozen=True)
class LongDivisionTrace:
    dividend: int
    divisor: int
    quotient: int
    remainder: int
    steps: List[LongDivisionStep]

    @property
    def quotient_digits(self) -> str:
        return quotient_digits(self.steps)


def _divide_explanation(working: int, divisor: int, digit: int) -> str:
    if digit == 0:
        return f"{divisor} does not go into {working}, so write 0 in the quotient"
    return f"How many times does {divisor} go into {working}? {digit} times"


def simulate_long_division(dividend: int, divisor: int) -> List[LongDivisionStep]:
    """
    Return the ordered rows of the written method for `dividend ÷ divisor`.

    Setup takes the first digit, or, when that digit is smaller than the
    divisor, the longest leading run that is still smaller. The first divide
    row then records the leading 0 explicitly (7248 ÷ 8 starts with 7 → 0).
    """
    if divisor <= 0:
        raise ExtractionError(f"Divisor must be positive, got {divisor}",
                              details={"dividend": dividend, "divisor": divisor})
    if dividend < 0:
        raise ExtractionError(f"Dividend must be non-negative, got {dividend}",
                              details={"dividend": dividend, "divisor": divisor})

    digits = [int(char) for char in str(dividend)]
    steps: List[LongDivisionStep] = []

    def emit(**fields) -> None:
        steps.append(LongDivisionStep(step=len(steps), **fields))

    index = 0
    working = digits[0]
    if working < divisor:
        while index + 1 < len(digits) and working * 10 + digits[index + 1] < divisor:
            index += 1
            working = working * 10 + digits[index]

    emit(
        type="setup",
        position=index,
        quotient_start_position=index,
        working_number=working,
        explanation=f"Set up {dividend} ÷ {divisor} and start with {working}",
    )

    while True:
        digit = working // divisor
        product = digit * divisor
        difference = working - product

        emit(
            type="divide",
            position=index,
            working_number=working,
            quotient_digit=digit,
            calculation=f"{working} ÷ {divisor} = {digit}",
            explanation=_divide_explanation(working, divisor, digit),
        )
        emit(
            type="multiply",
            position=index,
            product=product,
            calculation=f"{digit} × {divisor} = {product}",
            explanation=f"Multiply {digit} by {divisor} and write {product} below {working}",
        )
        emit(
            type="subtract",
            position=index,
            difference=difference,
            calculation=f"{working} - {product} = {difference}",
            explanation=f"Subtract: {working} - {product} = {difference}",
        )

        if index + 1 < len(digits):
            index += 1
            working = difference * 10 + digits[index]
            emit(
                type="bring_down",
                position=index,
                working_number=working,
                explanation=f"Bring down the {digits[index]} to make {working}",
            )
            continue

        quotient, remainder = divmod(dividend, divisor)
        if difference > 0:
            emit(
                type="remainder",
                position=index,
                difference=difference,
                calculation=f"{dividend} ÷ {divisor} = {quotient} R {remainder}",
                explanation=f"No digits left to bring down, so {difference} is the remainder",
            )
        else:
            emit(
                type="complete",
                position=index,
                difference=0,
                calculation=f"{dividend} ÷ {divisor} = {quotient}",
                explanation="Nothing is left over, so the division is complete",
            )
        return steps


def quotient_digits(steps: List[LongDivisionStep]) -> str:
    """Quotient digits in the order the divide rows produced them (e.g. "0906")."""
    return "".join(str(step.quotient_digit) for step in steps if step.type == "divide")


def quotient_from_steps(steps: List[LongDivisionStep]) -> int:
    digits = quotient_digits(steps)
    return int(digits) if digits else 0


def remainder_from_steps(steps: List[LongDivisionStep]) -> int:
    if not steps or steps[-1].type not in ("remainder", "complete"):
        raise ExtractionError("Trace does not end in a remainder or complete row")
    return steps[-1].difference or 0


def trace_long_division(dividend: int, divisor: int) -> LongDivisionTrace:
    """Simulate and cross-check the trace against integer division."""
    steps = simulate_long_division(dividend, divisor)
    quotient, remainder = divmod(dividend, divisor)
    if quotient_from_steps(steps) != quotient or remainder_from_steps(steps) != remainder:
        raise ExtractionError(
            "Long division trace disagrees with integer division",
            details={"dividend": dividend, "divisor": divisor, "digits": quotient_digits(steps)},
        )
    return LongDivisionTrace(
        dividend=dividend,
        divisor=divisor,
        quotient=quotient,
        remainder=remainder,
        steps=steps,
    )
