"""
state_validator.py

Structural checks for diagram states, whether a builder produced them or the
dialogue service sent them as JSON.

Minor problems are repaired (a missing or negative visibleStep becomes 0, a
bad totalSteps becomes 1) and major ones reject the diagram outright (no type,
no data, an unknown type, a payload that does not fit its model). Running the
validator on its own output changes nothing.

Answer consistency is cross-checked with exact SymPy rationals and reported as
warnings: a long-division quotient that does not match the operands, an
equation whose stated solution does not satisfy it, or a numeric-answer
diagram whose last step does not show the answer. Payload text is only ever
read as numbers, never evaluated.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from fractions import Fraction
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import ValidationError
from sympy import Rational

from core.errors import DiagramValidationError
from schemas.diagram import (
    DATA_MODELS,
    NUMERIC_ANSWER_TYPES,
    DiagramState,
    DiagramType,
    ForceDiagramData,
)

logger = logging.getLogger(__name__)

DiagramInput = Union[DiagramState, Mapping[str, Any]]

_NUMBER = r"\d{1,12}(?:\.\d{1,12}|/\d{1,12})?"
_NUMBER_TEXT = re.compile(rf"^\s*-?{_NUMBER}\s*$")
_LINEAR_EQUATION = re.compile(
    rf"^\s*(?P<a>-?(?:{_NUMBER})?)\s*\*?\s*(?P<var>[A-Za-z])"
    rf"\s*(?:(?P<op>[+-])\s*(?P<b>{_NUMBER}))?"
    rf"\s*=\s*(?P<c>-?{_NUMBER})\s*$"
)


@dataclass
class ValidationResult:
    """
    Outcome of inspecting one diagram. `diagram` is the repaired state when
    `valid`, otherwise None.
    """

    valid: bool
    message: str
    diagram: Optional[DiagramState] = None
    repairs: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    details: Dict[str, Any] = field(default_factory=dict)


def _pick(raw: Mapping[str, Any], camel: str, snake: str) -> Any:
    if camel in raw:
        return raw[camel]
    return raw.get(snake)


def _is_count(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _exact_number(text: str) -> Optional[Rational]:
    """`"-7/3"`, `"2.5"` or `"19"` as an exact Rational; None for anything else."""
    if not isinstance(text, str) or not _NUMBER_TEXT.match(text):
        return None
    try:
        value = Fraction(text.strip())
    except (ValueError, ZeroDivisionError):
        return None
    return Rational(value.numerator, value.denominator)


class DiagramStateValidator:
    """
    Repair-minor, reject-major validation of `DiagramState` payloads.

    Usage:
        validator = DiagramStateValidator()
        result = validator.inspect(raw_json, category=DiagramType.FBD)
        if result.valid:
            render(result.diagram)
    """

    def __init__(self, *, tolerance: float = 0.1):
        self.tolerance = tolerance

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def inspect(self, diagram: DiagramInput, category: Optional[DiagramType] = None) -> ValidationResult:
        if isinstance(diagram, DiagramState):
            raw: Dict[str, Any] = diagram.to_payload()
        elif isinstance(diagram, Mapping):
            raw = dict(diagram)
        else:
            return self._reject(
                "Expected a diagram state or mapping.",
                {"received_type": type(diagram).__name__},
            )

        raw_type = raw.get("type")
        if not isinstance(raw_type, str) or not raw_type.strip():
            return self._reject("Diagram has no type.", {})
        try:
            diagram_type = DiagramType(raw_type.strip())
        except ValueError:
            return self._reject(f"Unknown diagram type '{raw_type}'.", {"type": raw_type})

        data = raw.get("data")
        if not isinstance(data, Mapping) or not data:
            return self._reject("Diagram has no data.", {"type": diagram_type.value})

        repairs: List[str] = []
        warnings: List[str] = []

        step_config = _pick(raw, "stepConfig", "step_config")
        if step_config is not None and not isinstance(step_config, list):
            repairs.append("stepConfig was not a list; dropped")
            step_config = None
        step_config = step_config or []

        visible_step = _pick(raw, "visibleStep", "visible_step")
        if not _is_count(visible_step) or visible_step < 0:
            if visible_step is not None:
                repairs.append(f"visibleStep {visible_step!r} reset to 0")
            else:
                repairs.append("visibleStep missing; set to 0")
            visible_step = 0
        elif visible_step != int(visible_step):
            repairs.append(f"visibleStep {visible_step} floored")
        visible_step = int(visible_step)

        total_steps = _pick(raw, "totalSteps", "total_steps")
        if total_steps is None:
            total_steps = max(1, len(step_config))
            repairs.append(f"totalSteps missing; derived {total_steps} from stepConfig")
        elif not _is_count(total_steps) or total_steps < 1:
            repairs.append(f"totalSteps {total_steps!r} reset to 1")
            total_steps = 1
        elif total_steps != int(total_steps):
            repairs.append(f"totalSteps {total_steps} floored")
        total_steps = int(total_steps)

        if visible_step >= total_steps:
            repairs.append(f"visibleStep {visible_step} clamped to {total_steps - 1}")
            visible_step = total_steps - 1

        evolution_mode = _pick(raw, "evolutionMode", "evolution_mode")
        if evolution_mode not in (None, "auto-advance"):
            repairs.append(f"evolutionMode {evolution_mode!r} dropped")
            evolution_mode = None

        conversation_turn = _pick(raw, "conversationTurn", "conversation_turn")
        if conversation_turn is not None and (not _is_count(conversation_turn) or conversation_turn < 0):
            repairs.append(f"conversationTurn {conversation_turn!r} dropped")
            conversation_turn = None

        if category is not None and DiagramType(category) != diagram_type:
            warnings.append(f"Expected a {DiagramType(category).value} diagram, got {diagram_type.value}")

        model = DATA_MODELS.get(diagram_type)
        typed = None
        if model is not None:
            try:
                typed = model.model_validate(data)
            except ValidationError as exc:
                return self._reject(
                    f"{diagram_type.value} data does not match its schema.",
                    {"type": diagram_type.value, "errors": exc.errors(include_url=False)},
                )

        try:
            state = DiagramState.model_validate({
                "type": diagram_type,
                "visibleStep": visible_step,
                "totalSteps": total_steps,
                "data": dict(data),
                "stepConfig": step_config,
                "evolutionMode": evolution_mode,
                "conversationTurn": int(conversation_turn) if conversation_turn is not None else None,
            })
        except ValidationError as exc:
            return self._reject(
                "Diagram state is structurally invalid.",
                {"type": diagram_type.value, "errors": exc.errors(include_url=False)},
            )

        if isinstance(typed, ForceDiagramData):
            warnings.extend(self._physics_warnings(diagram_type, typed))
        warnings.extend(self._answer_warnings(diagram_type, data))
        if diagram_type in NUMERIC_ANSWER_TYPES and state.step_config:
            warnings.extend(self._final_step_warnings(state))

        for repair in repairs:
            logger.info("[validate] %s: %s", diagram_type.value, repair)
        for warning in warnings:
            logger.warning("[validate] %s: %s", diagram_type.value, warning)

        return ValidationResult(
            valid=True,
            message="Diagram repaired." if repairs else "Diagram is valid.",
            diagram=state,
            repairs=repairs,
            warnings=warnings,
            details={"type": diagram_type.value},
        )

    def validate(self, diagram: DiagramInput, category: Optional[DiagramType] = None) -> Optional[DiagramState]:
        """Lenient entry point: the repaired state, or None when rejected."""
        return self.inspect(diagram, category).diagram

    def validate_strict(self, diagram: DiagramInput, category: Optional[DiagramType] = None) -> DiagramState:
        result = self.inspect(diagram, category)
        if not result.valid:
            raise DiagramValidationError(result.message, details=result.details)
        return result.diagram

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    def _reject(self, message: str, details: Dict[str, Any]) -> ValidationResult:
        logger.warning("[validate] Rejected diagram: %s %s", message, details or "")
        return ValidationResult(valid=False, message=message, details=details)

    def _physics_warnings(self, diagram_type: DiagramType, data: ForceDiagramData) -> List[str]:
        warnings: List[str] = []
        forces = {force.name: force for force in data.forces}
        weight = next((f for f in data.forces if f.type == "weight"), None)
        normal = next((f for f in data.forces if f.type == "normal"), None)

        if weight is not None and abs(weight.angle + 90) > self.tolerance:
            warnings.append(f"Weight should point straight down (-90°), got {weight.angle}°")

        if diagram_type == DiagramType.INCLINED_PLANE:
            if data.angle is None:
                warnings.append("Inclined plane has no angle")
            elif weight is not None and normal is not None:
                expected = weight.magnitude * math.cos(math.radians(data.angle))
                if abs(normal.magnitude - expected) > self.tolerance:
                    warnings.append(
                        f"Normal force {normal.magnitude}N differs from mg·cos θ = {expected:.1f}N"
                    )
        elif weight is not None and normal is not None and "applied" not in forces and "tension" not in forces:
            if abs(normal.magnitude - weight.magnitude) > self.tolerance:
                warnings.append(f"Normal force {normal.magnitude}N does not balance weight {weight.magnitude}N")
        return warnings

    def _answer_warnings(self, diagram_type: DiagramType, data: Mapping[str, Any]) -> List[str]:
        if diagram_type == DiagramType.LONG_DIVISION:
            dividend, divisor = data.get("dividend"), data.get("divisor")
            quotient, remainder = data.get("quotient"), data.get("remainder")
            if not all(isinstance(v, int) for v in (dividend, divisor, quotient, remainder)) or not divisor:
                return []
            if Rational(dividend) != Rational(quotient) * divisor + remainder or not 0 <= remainder < divisor:
                return [f"{dividend} ÷ {divisor} is not {quotient} R {remainder}"]
            return []

        if diagram_type == DiagramType.EQUATION:
            return self._equation_warnings(data)

        if diagram_type == DiagramType.FRACTION:
            return self._fraction_warnings(data)
        return []

    def _equation_warnings(self, data: Mapping[str, Any]) -> List[str]:
        """
        Check `ax + b = c` equations against their stated solution.

        Only the linear shape the equation builder writes is recognised; the
        numbers are read with regexes and never evaluated as expressions.
        """
        equation, variable, solution = data.get("originalEquation"), data.get("variable"), data.get("solution")
        if not all(isinstance(v, str) for v in (equation, variable, solution)):
            return []
        match = _LINEAR_EQUATION.match(equation.replace("−", "-"))
        value = _exact_number(solution)
        if match is None or value is None or match.group("var") != variable:
            logger.debug("[validate] Skipping solution check for %r", equation[:80])
            return []

        raw_coefficient = match.group("a") or "1"
        coefficient = _exact_number("-1" if raw_coefficient == "-" else raw_coefficient)
        constant = _exact_number(match.group("b") or "0")
        rhs = _exact_number(match.group("c"))
        if coefficient is None or constant is None or rhs is None:
            return []
        if match.group("op") == "-":
            constant = -constant
        if coefficient * value + constant != rhs:
            return [f"{variable} = {solution} does not satisfy {equation}"]
        return []

    def _final_step_warnings(self, state: DiagramState) -> List[str]:
        calculation = state.final_calculation
        if not calculation or not calculation.strip():
            return ["Final step shows no answer"]
        if "?" in calculation:
            return [f"Final step still has a placeholder: {calculation}"]
        return []

    def _fraction_warnings(self, data: Mapping[str, Any]) -> List[str]:
        try:
            first = Rational(data["fraction1"]["numerator"], data["fraction1"]["denominator"])
            second = Rational(data["fraction2"]["numerator"], data["fraction2"]["denominator"])
            result = Rational(data["result"]["numerator"], data["result"]["denominator"])
        except (KeyError, TypeError, ZeroDivisionError):
            return []
        operation = data.get("operationType")
        expected = {
            "add": lambda: first + second,
            "subtract": lambda: first - second,
            "multiply": lambda: first * second,
            "divide": lambda: first / second if second != 0 else None,
        }.get(operation, lambda: None)()
        if expected is not None and expected != result:
            return [f"Fraction result {result} does not match {operation} of {first} and {second}"]
        return []


def validate_diagram(diagram: DiagramInput, category: Optional[DiagramType] = None) -> Optional[DiagramState]:
    """
    Convenience function: repaired `DiagramState`, or None when the input is
    missing essentials.
    """
    return DiagramStateValidator().validate(diagram, category)


def validate_strict(diagram: DiagramInput, category: Optional[DiagramType] = None) -> DiagramState:
    return DiagramStateValidator().validate_strict(diagram, category)
