"""
math_builders.py

Step-by-step diagrams for arithmetic, algebra and geometry problems.

Each builder receives the quantities pulled out by `core.pattern_extractor`
and produces a `DiagramState` whose steps mirror how the problem is worked on
paper. Where a problem has a single numeric answer, the last step's
`showCalculation` carries that answer.
"""

from __future__ import annotations

import logging
import math
import re
from fractions import Fraction
from tokenize import TokenError
from typing import List, Optional, Sequence, Tuple

import numpy as np
from sympy import Eq, Poly, Rational, Symbol, lambdify, solve
from sympy.core.sympify import SympifyError
from sympy.parsing.sympy_parser import (
    implicit_multiplication_application,
    parse_expr,
    standard_transformations,
)

from core.errors import ExtractionError
from core.long_division import trace_long_division
from core.pattern_extractor import (
    MAX_EXPONENT,
    BarComparison,
    DivisionOperands,
    FractionOperation,
    GraphRequest,
    LinearEquation,
    TriangleMeasurements,
    is_bounded_expression,
)
from core.settings import DEFAULT_SETTINGS, DiagramSettings
from formatting.text_cleaner import format_number as fmt
from schemas.diagram import (
    BarModelData,
    BarSpec,
    CoordinatePlaneData,
    CurveSpec,
    DiagramState,
    DiagramType,
    EquationData,
    EquationStep,
    FractionData,
    FractionStep,
    FractionValue,
    LineSpec,
    LongDivisionData,
    LongDivisionStep,
    NumberLineData,
    NumberLineMark,
    Point,
    StepConfigEntry,
    TriangleData,
)

logger = logging.getLogger(__name__)

PARSE_TRANSFORMS = standard_transformations + (implicit_multiplication_application,)


# =============================================================================
# LONG DIVISION
# =============================================================================

def _division_row_label(row: LongDivisionStep, quotient: int, remainder: int) -> str:
    if row.type == "setup":
        return row.explanation or "Set up the division"
    if row.type == "multiply":
        return f"Multiply: {row.calculation}"
    if row.type == "remainder":
        return f"Answer: {quotient} remainder {remainder}"
    if row.type == "complete":
        return f"Answer: {quotient}"
    return row.explanation or row.type.replace("_", " ").capitalize()


def build_long_division_diagram(
    operands: DivisionOperands,
    question_text: str,
    settings: Optional[DiagramSettings] = None,
) -> DiagramState:
    """One reveal step per simulator row; the last one states quotient and remainder."""
    settings = settings or DEFAULT_SETTINGS
    if len(str(operands.dividend)) > settings.max_dividend_digits:
        raise ExtractionError(
            f"Dividend {operands.dividend} has more than {settings.max_dividend_digits} digits"
        )

    trace = trace_long_division(operands.dividend, operands.divisor)
    answer = f"{trace.dividend} ÷ {trace.divisor} = {trace.quotient} R {trace.remainder}"

    step_config: List[StepConfigEntry] = []
    for row in trace.steps:
        is_last = row.step == len(trace.steps) - 1
        step_config.append(StepConfigEntry(
            step=row.step,
            step_label=_division_row_label(row, trace.quotient, trace.remainder),
            show_calculation=answer if is_last else row.calculation,
            highlight_elements=[f"row-{row.step}"],
        ))

    data = LongDivisionData(
        dividend=trace.dividend,
        divisor=trace.divisor,
        quotient=trace.quotient,
        remainder=trace.remainder,
        steps=trace.steps,
        title=f"{trace.dividend} ÷ {trace.divisor}",
    )
    logger.debug("[long_division] %s digits=%s", answer, trace.quotient_digits)
    return DiagramState.build(DiagramType.LONG_DIVISION, data, step_config)


# =============================================================================
# EQUATION
# =============================================================================

def _exact(value: float) -> Rational:
    return Rational(str(value))


def _term(coefficient, variable: str) -> str:
    if coefficient == 1:
        return variable
    if coefficient == -1:
        return f"-{variable}"
    return f"{coefficient}{variable}"


def _plus(expression: str, constant) -> str:
    if constant == 0:
        return expression
    if constant < 0:
        return f"{expression} - {-constant}"
    return f"{expression} + {constant}"


def build_equation_diagram(
    equation: LinearEquation,
    question_text: str,
    settings: Optional[DiagramSettings] = None,
) -> DiagramState:
    """Balance-scale solution of ax + b = c, solved exactly with sympy."""
    a = _exact(equation.coefficient)
    b = _exact(equation.constant)
    c = _exact(equation.rhs)
    var = equation.variable
    x = Symbol(var)

    solutions = solve(Eq(a * x + b, c), x)
    if len(solutions) != 1:
        raise ExtractionError(f"Equation has no unique solution for {var}")
    solution = solutions[0]

    original = f"{_plus(_term(a, var), b)} = {c}"
    steps: List[EquationStep] = [EquationStep(
        step=0,
        left_side=_plus(_term(a, var), b),
        right_side=str(c),
        operation="initial",
        description=f"Start with {original}",
    )]

    def add(**fields) -> None:
        steps.append(EquationStep(step=len(steps), **fields))

    balanced = c - b
    if b != 0:
        operation = "subtract" if b > 0 else "add"
        verb = "Subtract" if b > 0 else "Add"
        add(
            left_side=f"{_plus(_term(a, var), b)} {'-' if b > 0 else '+'} {abs(b)}",
            right_side=f"{c} {'-' if b > 0 else '+'} {abs(b)}",
            operation=operation,
            description=f"{verb} {abs(b)} on both sides to keep the scale balanced",
            calculation=f"{c} {'-' if b > 0 else '+'} {abs(b)} = {balanced}",
        )
        add(
            left_side=_term(a, var),
            right_side=str(balanced),
            operation="simplify",
            description="Simplify both sides",
            calculation=f"{_term(a, var)} = {balanced}",
        )

    if a != 1:
        add(
            left_side=f"{_term(a, var)} ÷ {a}",
            right_side=f"{balanced} ÷ {a}",
            operation="divide",
            description=f"Divide both sides by {a}",
            calculation=f"{balanced} ÷ {a} = {solution}",
        )

    add(
        left_side=var,
        right_side=str(solution),
        operation="simplify",
        description=f"Solution: {var} = {solution}",
        calculation=f"{var} = {solution}",
    )

    step_config = [
        StepConfigEntry(
            step=step.step,
            step_label=step.description,
            show_calculation=step.calculation or f"{step.left_side} = {step.right_side}",
        )
        for step in steps
    ]
    data = EquationData(
        original_equation=original,
        variable=var,
        solution=str(solution),
        steps=steps,
    )
    logger.debug("[equation] %s -> %s = %s", original, var, solution)
    return DiagramState.build(DiagramType.EQUATION, data, step_config)


# =============================================================================
# FRACTION
# =============================================================================

SYMBOLS = {"add": "+", "subtract": "-", "multiply": "×", "divide": "÷"}


def _fraction_value(value: Fraction) -> FractionValue:
    return FractionValue(numerator=value.numerator, denominator=value.denominator)


def _show(numerator: int, denominator: int) -> str:
    return f"{numerator}/{denominator}"


def build_fraction_diagram(
    operation: FractionOperation,
    question_text: str,
    settings: Optional[DiagramSettings] = None,
) -> DiagramState:
    """Add/subtract go through the LCD; multiply multiplies straight across; divide flips first."""
    (n1, d1), (n2, d2) = operation.first, operation.second
    op = operation.operation
    first, second = FractionValue(numerator=n1, denominator=d1), FractionValue(numerator=n2, denominator=d2)
    symbol = SYMBOLS[op]

    steps: List[FractionStep] = [FractionStep(
        step=0,
        type="initial",
        fractions=[first, second],
        description=f"Start with {_show(n1, d1)} {symbol} {_show(n2, d2)}",
    )]
    calculations: List[Optional[str]] = [None]

    def add(calculation: str, **fields) -> None:
        steps.append(FractionStep(step=len(steps), **fields))
        calculations.append(calculation)

    if op in ("add", "subtract"):
        lcd = math.lcm(d1, d2)
        c1, c2 = n1 * (lcd // d1), n2 * (lcd // d2)
        raw = c1 + c2 if op == "add" else c1 - c2
        add(
            f"LCD({d1}, {d2}) = {lcd}",
            type="find_lcd", fractions=[first, second], lcd=lcd,
            description=f"Find the lowest common denominator of {d1} and {d2}",
        )
        add(
            f"{_show(n1, d1)} = {_show(c1, lcd)}, {_show(n2, d2)} = {_show(c2, lcd)}",
            type="convert", lcd=lcd,
            fractions=[FractionValue(numerator=c1, denominator=lcd), FractionValue(numerator=c2, denominator=lcd)],
            description=f"Rewrite both fractions over {lcd}",
        )
        unsimplified = (raw, lcd)
        add(
            f"{_show(c1, lcd)} {symbol} {_show(c2, lcd)} = {_show(raw, lcd)}",
            type="operate", lcd=lcd,
            fractions=[FractionValue(numerator=c1, denominator=lcd), FractionValue(numerator=c2, denominator=lcd)],
            result=FractionValue(numerator=raw, denominator=lcd),
            description=f"{'Add' if op == 'add' else 'Subtract'} the numerators and keep the denominator",
        )
    else:
        if op == "divide":
            flipped = FractionValue(numerator=d2, denominator=n2)
            add(
                f"{_show(n1, d1)} ÷ {_show(n2, d2)} = {_show(n1, d1)} × {_show(d2, n2)}",
                type="invert", fractions=[first, flipped],
                description=f"Keep the first fraction, change ÷ to ×, flip {_show(n2, d2)}",
            )
            n2, d2 = d2, n2
            second = flipped
        raw_n, raw_d = n1 * n2, d1 * d2
        unsimplified = (raw_n, raw_d)
        add(
            f"{_show(n1, d1)} × {_show(n2, d2)} = {_show(raw_n, raw_d)}",
            type="operate", fractions=[first, second],
            result=FractionValue(numerator=raw_n, denominator=raw_d),
            description="Multiply numerators together and denominators together",
        )

    result = Fraction(*unsimplified)
    answer = str(result.numerator) if result.denominator == 1 else _show(result.numerator, result.denominator)
    common = math.gcd(*unsimplified)
    if common == 1:
        simplify_description = f"{_show(*unsimplified)} is already in simplest form"
    else:
        simplify_description = f"Divide top and bottom by {common}"
    add(
        f"{_show(*operation.first)} {symbol} {_show(*operation.second)} = {answer}",
        type="simplify", fractions=[], result=_fraction_value(result),
        description=simplify_description,
    )

    step_config = [
        StepConfigEntry(step=step.step, step_label=step.description, show_calculation=calculation)
        for step, calculation in zip(steps, calculations)
    ]
    data = FractionData(
        operation_type=op,
        fraction1=FractionValue(numerator=operation.first[0], denominator=operation.first[1]),
        fraction2=FractionValue(numerator=operation.second[0], denominator=operation.second[1]),
        result=_fraction_value(result),
        steps=steps,
    )
    logger.debug("[fraction] %s -> %s", op, answer)
    return DiagramState.build(DiagramType.FRACTION, data, step_config)


# =============================================================================
# COORDINATE PLANE
# =============================================================================

def _bounds(values: Sequence[float], padding: float = 2.0, floor: float = 5.0) -> Tuple[float, float]:
    """Symmetric-ish window that always shows the origin and every value."""
    low = min([-floor, *values]) - padding
    high = max([floor, *values]) + padding
    return float(math.floor(low)), float(math.ceil(high))


def _line_steps(line, label: str) -> Tuple[List[StepConfigEntry], List[Point]]:
    m, b = line.slope, line.intercept
    points = [Point(x=0, y=b, label="y-intercept")]
    entries = [
        StepConfigEntry(
            step=1,
            step_label=f"Plot the y-intercept (0, {fmt(b)})",
            show_calculation=f"y = {fmt(m)}(0) + {fmt(b)} = {fmt(b)}",
            visible_elements=["axes", "y-intercept"],
            highlight_elements=["y-intercept"],
        ),
        StepConfigEntry(
            step=2,
            step_label=f"Use the slope {fmt(m)}: move right 1, {'up' if m >= 0 else 'down'} {fmt(abs(m))}",
            show_calculation=f"(1, {fmt(m + b)})",
            visible_elements=["axes", "y-intercept", "slope"],
            highlight_elements=["slope"],
        ),
        StepConfigEntry(
            step=3,
            step_label=f"Draw the line {label}",
            show_calculation=f"{label}: slope {fmt(m)}, y-intercept {fmt(b)}",
            visible_elements=["axes", "y-intercept", "slope", "line"],
            highlight_elements=["line"],
        ),
    ]
    if m != 0:
        root = -b / m
        points.append(Point(x=round(root, 2), y=0, label="x-intercept"))
        entries.append(StepConfigEntry(
            step=4,
            step_label=f"The line crosses the x-axis at ({fmt(root)}, 0)",
            show_calculation=f"0 = {fmt(m)}x + {fmt(b)} → x = {fmt(root)}",
            visible_elements=["axes", "y-intercept", "slope", "line", "x-intercept"],
            highlight_elements=["x-intercept"],
        ))
    return entries, points


def _curve_steps(expression: str, samples: int):
    x = Symbol("x")
    if not is_bounded_expression(expression):
        raise ExtractionError(f"Function {expression[:40]!r} is too large to sketch")
    try:
        expr = parse_expr(expression, local_dict={"x": x}, transformations=PARSE_TRANSFORMS)
    except (SympifyError, SyntaxError, TypeError, TokenError) as exc:
        raise ExtractionError(f"Cannot parse function {expression!r}") from exc
    if expr.free_symbols - {x}:
        raise ExtractionError(f"Function {expression!r} has variables other than x")
    for part in expr.as_numer_denom():
        if not part.is_polynomial(x) or Poly(part, x).degree() > MAX_EXPONENT:
            raise ExtractionError(f"Function {expression!r} is beyond degree {MAX_EXPONENT}")

    roots = sorted(float(root) for root in solve(expr, x) if root.is_real)
    key_points = [Point(x=round(root, 2), y=0, label="root") for root in roots]
    at_zero = expr.subs(x, 0)
    if not at_zero.is_finite:
        raise ExtractionError(f"Function {expression!r} is undefined at x = 0")
    y_intercept = float(at_zero)
    key_points.append(Point(x=0, y=round(y_intercept, 2), label="y-intercept"))

    vertex = None
    if expr.is_polynomial(x) and Poly(expr, x).degree() == 2:
        a2, a1, _ = Poly(expr, x).all_coeffs()
        vx = float(-a1 / (2 * a2))
        vertex = Point(x=round(vx, 2), y=round(float(expr.subs(x, vx)), 2), label="vertex")
        key_points.append(vertex)

    xs_of_interest = [p.x for p in key_points]
    x_min, x_max = _bounds(xs_of_interest)
    xs = np.linspace(x_min, x_max, max(samples, 2) * 4)
    ys = np.broadcast_to(np.asarray(lambdify(x, expr, "numpy")(xs), dtype=float), xs.shape)
    finite = np.isfinite(ys)
    curve = CurveSpec(
        expression=str(expr),
        samples=[Point(x=round(float(px), 2), y=round(float(py), 2)) for px, py in zip(xs[finite], ys[finite])],
    )

    entries = []
    if roots:
        entries.append(StepConfigEntry(
            step=len(entries) + 1,
            step_label=f"Find where y = 0: x = {', '.join(fmt(r) for r in roots)}",
            show_calculation=f"{expr} = 0 → x = {', '.join(fmt(r) for r in roots)}",
            visible_elements=["axes", "roots"],
            highlight_elements=["roots"],
        ))
    if vertex is not None:
        entries.append(StepConfigEntry(
            step=len(entries) + 1,
            step_label=f"Vertex at ({fmt(vertex.x)}, {fmt(vertex.y)})",
            show_calculation=f"x = -b/2a = {fmt(vertex.x)}",
            visible_elements=["axes", "roots", "vertex"],
            highlight_elements=["vertex"],
        ))
    entries.append(StepConfigEntry(
        step=len(entries) + 1,
        step_label=f"Sketch y = {expr}",
        show_calculation=f"y-intercept: y = {fmt(y_intercept)}",
        visible_elements=["axes", "roots", "vertex", "curve"],
        highlight_elements=["curve"],
    ))
    return entries, key_points, curve


def build_coordinate_plane_diagram(
    request: GraphRequest,
    question_text: str,
    settings: Optional[DiagramSettings] = None,
) -> DiagramState:
    settings = settings or DEFAULT_SETTINGS
    step_config = [StepConfigEntry(step=0, step_label="Draw the x and y axes", visible_elements=["axes"])]
    points: List[Point] = []
    lines: List[LineSpec] = []
    curves: List[CurveSpec] = []

    if request.line is not None:
        label = f"y = {request.expression}"
        lines.append(LineSpec(slope=request.line.slope, intercept=request.line.intercept, label=label))
        entries, points = _line_steps(request.line, label)
        step_config.extend(entries)
    elif request.expression is not None:
        entries, points, curve = _curve_steps(request.expression, settings.trajectory_samples)
        curves.append(curve)
        step_config.extend(entries)

    for index, (px, py) in enumerate(request.points):
        name = chr(ord("A") + index) if index < 26 else f"P{index}"
        points.append(Point(x=px, y=py, label=name))
        step_config.append(StepConfigEntry(
            step=len(step_config),
            step_label=f"Plot {name}({fmt(px)}, {fmt(py)}): {'right' if px >= 0 else 'left'} "
                       f"{fmt(abs(px))}, {'up' if py >= 0 else 'down'} {fmt(abs(py))}",
            visible_elements=["axes"] + [f"point-{i}" for i in range(index + 1)],
            highlight_elements=[f"point-{index}"],
        ))

    x_min, x_max = _bounds([p.x for p in points])
    y_min, y_max = _bounds([p.y for p in points])
    data = CoordinatePlaneData(
        x_min=x_min, x_max=x_max, y_min=y_min, y_max=y_max,
        points=points, lines=lines, curves=curves,
    )
    return DiagramState.build(DiagramType.COORDINATE_PLANE, data, step_config)


# =============================================================================
# BAR MODEL
# =============================================================================

def build_bar_model_diagram(
    comparison: BarComparison,
    question_text: str,
    settings: Optional[DiagramSettings] = None,
) -> DiagramState:
    """
    Comparison bars for "A has n more/fewer/times as many as B".

    The reference bar's value comes from the problem, or from the total when
    only the total is given.
    """
    kind, amount = comparison.comparison, comparison.amount
    ref_name, subject_name = comparison.reference, comparison.subject

    if comparison.reference_value is not None:
        reference = comparison.reference_value
        reference_known = True
    elif comparison.total is not None:
        if kind == "more":
            reference = (comparison.total - amount) / 2
        elif kind == "fewer":
            reference = (comparison.total + amount) / 2
        else:
            reference = comparison.total / (amount + 1)
        reference_known = False
    else:
        raise ExtractionError(f"Bar model needs {ref_name}'s amount or a total")

    if kind == "more":
        value = reference + amount
        relation = f"{subject_name} = {fmt(reference)} + {fmt(amount)} = {fmt(value)}"
    elif kind == "fewer":
        value = reference - amount
        relation = f"{subject_name} = {fmt(reference)} - {fmt(amount)} = {fmt(value)}"
    else:
        value = reference * amount
        relation = f"{subject_name} = {fmt(amount)} × {fmt(reference)} = {fmt(value)}"
    if value < 0 or reference < 0:
        raise ExtractionError("Bar model quantities cannot be negative")
    total = reference + value

    bars = [
        BarSpec(label=ref_name, value=reference, unknown=not reference_known),
        BarSpec(label=subject_name, value=value, unknown=True),
    ]

    step_config = [
        StepConfigEntry(
            step=0,
            step_label=f"Draw a bar for {ref_name}" + (f": {fmt(reference)}" if reference_known else ""),
            visible_elements=[f"bar-{ref_name}"],
        ),
        StepConfigEntry(
            step=1,
            step_label=(
                f"{subject_name}'s bar is {fmt(amount)} times as long"
                if kind == "times" else
                f"{subject_name}'s bar is {fmt(amount)} {'longer' if kind == 'more' else 'shorter'}"
            ),
            visible_elements=[f"bar-{ref_name}", f"bar-{subject_name}"],
            highlight_elements=[f"bar-{subject_name}"],
        ),
    ]
    if not reference_known:
        if kind == "times":
            unit_calc = f"{fmt(comparison.total)} ÷ {fmt(amount + 1)} = {fmt(reference)}"
        elif kind == "more":
            unit_calc = f"({fmt(comparison.total)} - {fmt(amount)}) ÷ 2 = {fmt(reference)}"
        else:
            unit_calc = f"({fmt(comparison.total)} + {fmt(amount)}) ÷ 2 = {fmt(reference)}"
        step_config.append(StepConfigEntry(
            step=len(step_config),
            step_label=f"Use the total to find {ref_name}'s amount",
            show_calculation=f"{ref_name} = {unit_calc}",
            visible_elements=[f"bar-{ref_name}", f"bar-{subject_name}", "total"],
            highlight_elements=[f"bar-{ref_name}"],
        ))
    step_config.append(StepConfigEntry(
        step=len(step_config),
        step_label=f"{subject_name} has {fmt(value)}",
        show_calculation=relation,
        visible_elements=[f"bar-{ref_name}", f"bar-{subject_name}", "total"],
        highlight_elements=[f"bar-{subject_name}"],
    ))
    if comparison.total is None and re.search(r"\b(?:altogether|in all|together|total)\b", question_text, re.I):
        step_config.append(StepConfigEntry(
            step=len(step_config),
            step_label=f"Together they have {fmt(total)}",
            show_calculation=f"{fmt(reference)} + {fmt(value)} = {fmt(total)}",
            visible_elements=[f"bar-{ref_name}", f"bar-{subject_name}", "total"],
            highlight_elements=["total"],
        ))

    data = BarModelData(
        comparison=kind,
        bars=bars,
        difference=abs(value - reference) if kind != "times" else None,
        multiplier=amount if kind == "times" else None,
        total=total,
    )
    return DiagramState.build(DiagramType.BAR_MODEL, data, step_config)


# =============================================================================
# TRIANGLE
# =============================================================================

def _angle_sum_triangle(angles: List[float], is_right: bool):
    known = list(angles[:3])
    if is_right and len(known) == 1 and known[0] != 90:
        known.append(90.0)
    if len(known) < 2:
        raise ExtractionError("Need two angles to use the angle sum")
    if len(known) == 3:
        if abs(sum(known) - 180) > 0.5:
            raise ExtractionError(f"Angles {known} do not add up to 180°")
        known = known[:2]
    if sum(known) >= 180:
        raise ExtractionError(f"Angles {known} leave nothing for the third angle")

    a, b = known
    c = 180 - a - b
    base = 4.0
    side = base * math.sin(math.radians(b)) / math.sin(math.radians(c))
    vertices = [
        Point(x=0, y=0, label="A"),
        Point(x=base, y=0, label="B"),
        Point(
            x=round(side * math.cos(math.radians(a)), 2),
            y=round(side * math.sin(math.radians(a)), 2),
            label="C",
        ),
    ]
    entries = [
        StepConfigEntry(step=0, step_label="Draw triangle ABC", visible_elements=["triangle"]),
        StepConfigEntry(
            step=1,
            step_label=f"Mark the known angles: A = {fmt(a)}°, B = {fmt(b)}°",
            visible_elements=["triangle", "angle-A", "angle-B"],
            highlight_elements=["angle-A", "angle-B"],
        ),
        StepConfigEntry(
            step=2,
            step_label="The angles of a triangle add up to 180°",
            show_calculation="A + B + C = 180°",
            visible_elements=["triangle", "angle-A", "angle-B"],
        ),
        StepConfigEntry(
            step=3,
            step_label=f"The missing angle is {fmt(c)}°",
            show_calculation=f"C = 180° - {fmt(a)}° - {fmt(b)}° = {fmt(c)}°",
            visible_elements=["triangle", "angle-A", "angle-B", "angle-C"],
            highlight_elements=["angle-C"],
        ),
    ]
    data = TriangleData(
        mode="angle_sum",
        vertices=vertices,
        angles=[a, b, c],
        right_angle=90.0 in (a, b, c),
        unknown="C",
    )
    return data, entries


def _pythagorean_triangle(legs: List[float], hypotenuse: Optional[float]):
    if len(legs) >= 2:
        a, b = legs[0], legs[1]
        c = math.sqrt(a * a + b * b)
        unknown = "c"
        substitution = f"c² = {fmt(a)}² + {fmt(b)}² = {fmt(a * a)} + {fmt(b * b)} = {fmt(a * a + b * b)}"
        answer = f"c = √{fmt(a * a + b * b)} = {fmt(c)}"
    elif legs and hypotenuse:
        a, c = legs[0], hypotenuse
        if c <= a:
            raise ExtractionError("Hypotenuse must be the longest side")
        b = math.sqrt(c * c - a * a)
        unknown = "b"
        substitution = f"b² = {fmt(c)}² - {fmt(a)}² = {fmt(c * c)} - {fmt(a * a)} = {fmt(c * c - a * a)}"
        answer = f"b = √{fmt(c * c - a * a)} = {fmt(b)}"
    else:
        raise ExtractionError("Need two sides to use the Pythagorean theorem")

    vertices = [
        Point(x=0, y=0, label="C"),
        Point(x=a, y=0, label="B"),
        Point(x=0, y=round(b, 2), label="A"),
    ]
    entries = [
        StepConfigEntry(step=0, step_label="Draw the right triangle", visible_elements=["triangle", "right-angle"]),
        StepConfigEntry(
            step=1,
            step_label="Label the legs a, b and the hypotenuse c",
            visible_elements=["triangle", "right-angle", "side-a", "side-b", "side-c"],
        ),
        StepConfigEntry(
            step=2,
            step_label="Pythagorean theorem",
            show_calculation="a² + b² = c²",
            visible_elements=["triangle", "right-angle", "side-a", "side-b", "side-c"],
        ),
        StepConfigEntry(
            step=3,
            step_label="Substitute the known sides",
            show_calculation=substitution,
            visible_elements=["triangle", "right-angle", "side-a", "side-b", "side-c"],
        ),
        StepConfigEntry(
            step=4,
            step_label=f"The missing side is {fmt(c if unknown == 'c' else b)}",
            show_calculation=answer,
            visible_elements=["triangle", "right-angle", "side-a", "side-b", "side-c"],
            highlight_elements=[f"side-{unknown}"],
        ),
    ]
    data = TriangleData(
        mode="pythagorean",
        vertices=vertices,
        sides=[a, round(b, 2), round(c, 2)],
        right_angle=True,
        unknown=unknown,
    )
    return data, entries


def build_triangle_diagram(
    measurements: TriangleMeasurements,
    question_text: str,
    settings: Optional[DiagramSettings] = None,
) -> DiagramState:
    use_pythagoras = measurements.is_right and (
        len(measurements.legs) >= 2 or (measurements.legs and measurements.hypotenuse)
    )
    if use_pythagoras:
        data, entries = _pythagorean_triangle(list(measurements.legs), measurements.hypotenuse)
    else:
        data, entries = _angle_sum_triangle(list(measurements.angles), measurements.is_right)
    return DiagramState.build(DiagramType.TRIANGLE, data, entries)


# =============================================================================
# NUMBER LINE
# =============================================================================

def _tick_interval(span: float) -> float:
    if span <= 20:
        return 1.0
    raw = span / 10
    magnitude = 10 ** math.floor(math.log10(raw))
    for factor in (1, 2, 5, 10):
        if raw <= factor * magnitude:
            return float(factor * magnitude)
    return float(10 * magnitude)


def build_number_line_diagram(
    values: Sequence[float],
    question_text: str,
    settings: Optional[DiagramSettings] = None,
) -> DiagramState:
    if not values:
        raise ExtractionError("Number line needs at least one value")

    ordered = sorted(set(values))
    low = min(math.floor(ordered[0]), 0) - 1
    high = max(math.ceil(ordered[-1]), 0) + 1
    interval = _tick_interval(high - low)
    marks = [NumberLineMark(value=value, label=fmt(value)) for value in ordered]

    step_config = [StepConfigEntry(
        step=0,
        step_label=f"Draw a number line from {fmt(low)} to {fmt(high)}",
        visible_elements=["line", "ticks"],
    )]
    for index, mark in enumerate(marks):
        if mark.value == 0:
            label = "Mark 0 at the origin"
        else:
            side = "left" if mark.value < 0 else "right"
            label = f"Mark {mark.label}, {fmt(abs(mark.value))} units {side} of zero"
        step_config.append(StepConfigEntry(
            step=len(step_config),
            step_label=label,
            visible_elements=["line", "ticks"] + [f"mark-{i}" for i in range(index + 1)],
            highlight_elements=[f"mark-{index}"],
        ))
    if len(marks) > 1:
        step_config.append(StepConfigEntry(
            step=len(step_config),
            step_label="Read the values from left to right",
            show_calculation=" < ".join(mark.label for mark in marks),
            visible_elements=["line", "ticks"] + [f"mark-{i}" for i in range(len(marks))],
        ))

    data = NumberLineData(min=low, max=high, interval=interval, marks=marks)
    return DiagramState.build(DiagramType.NUMBER_LINE, data, step_config)
