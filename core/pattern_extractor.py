"""
pattern_extractor.py

Pulls numeric quantities out of free-text homework problems.

Every field is described by an ordered list of (pattern, extractor) rules.
Rules are tried top to bottom and the first one that yields a value wins, so
precedence lives in the list order rather than in nested branches. Fields are
extracted independently: finding a mass says nothing about whether an angle
will be found. A `None` result means "no diagram possible for this field", never
an error.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, List, Match, Optional, Pattern, Sequence, Tuple

from core.science_data import ELEMENT_NAMES, MAX_BASE_PAIRS, MOLECULE_NAMES, MOLECULES, lookup_element
from schemas.diagram import PhysicsContext

# Numbers may carry thousands separators ("7,248"); decimals are allowed.
NUM = r"\d{1,3}(?:,\d{3})+(?:\.\d+)?|\d+(?:\.\d+)?"
INT = r"\d{1,3}(?:,\d{3})+|\d+"
SIGNED = r"-?(?:\d+(?:\.\d+)?)"

Rule = Tuple[Pattern[str], Callable[[Match[str]], Any]]

SUBSCRIPT_DIGITS = str.maketrans("₀₁₂₃₄₅₆₇₈₉", "0123456789")


def parse_number(raw: str) -> float:
    """Parse a numeric string, stripping thousands separators."""
    return float(raw.replace(",", ""))


def parse_int(raw: str) -> int:
    return int(raw.replace(",", ""))


def _group_float(index: int = 1) -> Callable[[Match[str]], float]:
    return lambda match: parse_number(match.group(index))


def _first_match(text: str, rules: Sequence[Rule]) -> Any:
    for pattern, extract in rules:
        match = pattern.search(text)
        if not match:
            continue
        value = extract(match)
        if value is not None:
            return value
    return None


def _rule(pattern: str, extract: Callable[[Match[str]], Any], flags: int = re.IGNORECASE) -> Rule:
    return re.compile(pattern, flags), extract


# =============================================================================
# PHYSICS
# =============================================================================

MASS_RULES: List[Rule] = [
    _rule(rf"({NUM})\s*(?:kg|kilograms?)\b", _group_float()),
    _rule(rf"mass\s*(?:of|is|=)?\s*({NUM})", _group_float()),
]

ANGLE_RULES: List[Rule] = [
    _rule(rf"({NUM})\s*(?:°|degrees?\b|deg\b)", _group_float()),
    _rule(rf"angle\s*(?:of|is|=)?\s*({NUM})", _group_float()),
]

APPLIED_FORCE_RULES: List[Rule] = [
    _rule(rf"(?:applied|horizontal|pull(?:ed|s|ing)?|push(?:ed|es|ing)?)\s*(?:force\s*)?(?:of|is|=|with)?\s*(?:a\s+force\s+of\s+)?({NUM})\s*N\b", _group_float()),
    _rule(rf"force\s*(?:of|is|=)?\s*({NUM})", _group_float()),
    _rule(rf"({NUM})\s*(?:N\b|[Nn]ewtons?\b)", _group_float(), flags=0),
]

FRICTION_RULES: List[Rule] = [
    _rule(rf"coefficient\s*of\s*(?:kinetic\s*|static\s*)?friction\s*(?:of|is|=)?\s*({NUM})", _group_float()),
    _rule(rf"(?:μ|\bmu)[ks]?\s*(?:is|=)?\s*({NUM})", _group_float()),
    _rule(rf"friction\s*coefficient\s*(?:of|is|=)?\s*({NUM})", _group_float()),
]

TENSION_RULES: List[Rule] = [
    _rule(rf"tension\s*(?:of|is|=)?\s*({NUM})", _group_float()),
    _rule(rf"({NUM})\s*N\s*(?:of\s+)?tension", _group_float()),
]

GRAVITY_RULES: List[Rule] = [
    _rule(rf"\bg\s*=\s*({NUM})", _group_float()),
    _rule(rf"gravity\s*(?:of|is|=)\s*({NUM})", _group_float()),
]


def extract_physics_context(text: str, default_gravity: float = 10.0) -> PhysicsContext:
    """Return a fresh PhysicsContext; absent fields stay None (gravity defaults)."""
    gravity = _first_match(text, GRAVITY_RULES)
    return PhysicsContext(
        mass=_first_match(text, MASS_RULES),
        angle=_first_match(text, ANGLE_RULES),
        applied_force=_first_match(text, APPLIED_FORCE_RULES),
        friction_coefficient=_first_match(text, FRICTION_RULES),
        tension=_first_match(text, TENSION_RULES),
        gravity=gravity if gravity else default_gravity,
    )


@dataclass(frozen=True)
class ProjectileLaunch:
    speed: Optional[float]
    angle: Optional[float]
    height: float = 0.0
    gravity: Optional[float] = None


SPEED_RULES: List[Rule] = [
    _rule(rf"({NUM})\s*m/s(?![²2^])", _group_float()),
    _rule(rf"(?:velocity|speed)\s*(?:of|is|=)?\s*({NUM})", _group_float()),
]

HEIGHT_RULES: List[Rule] = [
    _rule(rf"(?:height|cliff|building|tower|table)\s*(?:of|is|=)?\s*({NUM})\s*m\b", _group_float()),
    _rule(rf"({NUM})\s*m\s*(?:high|tall|above)", _group_float()),
]


def extract_projectile_launch(text: str) -> ProjectileLaunch:
    return ProjectileLaunch(
        speed=_first_match(text, SPEED_RULES),
        angle=_first_match(text, ANGLE_RULES),
        height=_first_match(text, HEIGHT_RULES) or 0.0,
        gravity=_first_match(text, GRAVITY_RULES),
    )


# =============================================================================
# DIVISION
# =============================================================================

@dataclass(frozen=True)
class DivisionOperands:
    dividend: int
    divisor: int


def _ordered_pair(first: int, second: int) -> Tuple[int, int]:
    return first, second


def _reversed_pair(first: int, second: int) -> Tuple[int, int]:
    return second, first


def _division_rule(pattern: str, order: Callable[[int, int], Tuple[int, int]]) -> Rule:
    return _rule(
        pattern,
        lambda match: order(parse_int(match.group(1)), parse_int(match.group(2))),
    )


GROUP_NOUNS = (
    r"boxes|groups|bags|teams|rows|shelves|students|friends|children|kids|people|"
    r"packs|pages|buses|tables|baskets|plates|classes|cars|crates|jars|trays|bins"
)

DIVISION_RULES: List[Rule] = [
    # 7,248 ÷ 8  |  156 / 12
    _division_rule(rf"({INT})\s*[÷/]\s*({INT})", _ordered_pair),
    # divide 456 by 12
    _division_rule(rf"divide\s+({INT})\s+(?:\w+\s+)?by\s+({INT})", _ordered_pair),
    # divide 12 into 456
    _division_rule(rf"divide\s+({INT})\s+into\s+({INT})", _reversed_pair),
    # 456 divided by 12
    _division_rule(rf"({INT})\s+divided\s+by\s+({INT})", _ordered_pair),
    # how many times does 8 go into 7248
    _division_rule(rf"({INT})\s+go(?:es)?\s+into\s+({INT})", _reversed_pair),
    # 7,248 crayons among 8 boxes
    _division_rule(
        rf"({INT})\s+(?:[a-z]+\s+){{0,4}}?(?:among|between|into|across|per|for)\s+(?:the\s+)?({INT})",
        _ordered_pair,
    ),
    # 8 boxes ... 7,248 crayons
    _division_rule(rf"({INT})\s+(?:equal\s+)?(?:{GROUP_NOUNS})\b[^\d]*?({INT})", _ordered_pair),
]


def extract_division_numbers(text: str) -> Optional[DivisionOperands]:
    """
    Find a dividend/divisor pair. The larger value is always the dividend, so
    reversed framings ("8 boxes hold 7,248 crayons") come out the right way round.
    """
    pair = _first_match(text, DIVISION_RULES)
    if pair is None:
        return None
    dividend, divisor = pair
    if dividend < divisor:
        dividend, divisor = divisor, dividend
    if divisor == 0:
        return None
    return DivisionOperands(dividend=dividend, divisor=divisor)


BRACKET_DIVISION_RULES: List[Rule] = [
    # 8 | 7248   8 ) 7248   8⟌7248  (divisor on the left of the bracket)
    _division_rule(rf"(?<![\d,.|])(?<!\|\s)({INT})\s*(?:\||\)|⟌)\s*({INT})", _reversed_pair),
]


def extract_bracket_division(text: str) -> Optional[DivisionOperands]:
    """Operands from hand-drawn bracket notation, where position fixes the roles."""
    pair = _first_match(text, BRACKET_DIVISION_RULES)
    if pair is None:
        return None
    dividend, divisor = pair
    if divisor == 0:
        return None
    return DivisionOperands(dividend=dividend, divisor=divisor)


# =============================================================================
# ALGEBRA & ARITHMETIC
# =============================================================================

@dataclass(frozen=True)
class LinearEquation:
    coefficient: float
    constant: float
    rhs: float
    variable: str


_EQUATION_PATTERN = re.compile(
    r"(?<![\w.(])(?P<a>-?\d+(?:\.\d+)?)?\s*\*?\s*(?P<var>[a-z])(?![a-z(])"
    r"\s*(?:(?P<op>[+\-])\s*(?P<b>\d+(?:\.\d+)?))?"
    r"\s*=\s*(?P<c>-?\d+(?:\.\d+)?)(?!\w)(?!\.\d)",
    re.IGNORECASE,
)


def extract_linear_equation(text: str) -> Optional[LinearEquation]:
    """Match `ax + b = c` (a, b optional) in a single variable."""
    match = _EQUATION_PATTERN.search(text.replace("−", "-"))
    if not match:
        return None
    coefficient = float(match.group("a")) if match.group("a") else 1.0
    if coefficient == 0:
        return None
    constant = float(match.group("b")) if match.group("b") else 0.0
    if match.group("op") == "-":
        constant = -constant
    return LinearEquation(
        coefficient=coefficient,
        constant=constant,
        rhs=float(match.group("c")),
        variable=match.group("var").lower(),
    )


@dataclass(frozen=True)
class FractionOperation:
    operation: str
    first: Tuple[int, int]
    second: Tuple[int, int]


OPERATION_SYMBOLS = {"+": "add", "-": "subtract", "−": "subtract", "×": "multiply",
                     "*": "multiply", "x": "multiply", "÷": "divide", ":": "divide"}

_FRACTION = r"(\d+)\s*/\s*(\d+)"


def _symbol_fraction(match: Match[str]) -> FractionOperation:
    return FractionOperation(
        operation=OPERATION_SYMBOLS[match.group(3).lower()],
        first=(int(match.group(1)), int(match.group(2))),
        second=(int(match.group(4)), int(match.group(5))),
    )


def _word_fraction(match: Match[str]) -> FractionOperation:
    verb = match.group(1).lower()
    first = (int(match.group(2)), int(match.group(3)))
    second = (int(match.group(5)), int(match.group(6)))
    if verb == "subtract" and match.group(4).lower() == "from":
        first, second = second, first
    return FractionOperation(operation=verb, first=first, second=second)


FRACTION_RULES: List[Rule] = [
    _rule(rf"{_FRACTION}\s*([+\-−×*x÷:])\s*{_FRACTION}", _symbol_fraction),
    _rule(rf"(add|subtract|multiply|divide)\s+{_FRACTION}\s+(and|by|from|to)\s+{_FRACTION}", _word_fraction),
]


def extract_fraction_operation(text: str) -> Optional[FractionOperation]:
    operation = _first_match(text, FRACTION_RULES)
    if operation is None:
        return None
    if operation.first[1] == 0 or operation.second[1] == 0:
        return None
    if operation.operation == "divide" and operation.second[0] == 0:
        return None
    return operation


_POINT_PATTERN = re.compile(rf"\(\s*({SIGNED})\s*,\s*({SIGNED})\s*\)")


def extract_points(text: str) -> List[Tuple[float, float]]:
    return [(float(x), float(y)) for x, y in _POINT_PATTERN.findall(text)]


_FUNCTION_PATTERN = re.compile(
    r"(?:\by|\bf\s*\(\s*x\s*\))\s*=\s*(?P<expr>[-+*/^()\d\sx.²³]+?)(?=\s*(?:$|\.$|[,;?!]|\.\s|\bby\b|\band\b|\bfor\b|\bfrom\b|\bwhen\b))",
    re.IGNORECASE,
)


MAX_FUNCTION_LENGTH = 40
MAX_EXPONENT = 4

# A power is only accepted as `**` followed by one small integer literal.
_POWER_PATTERN = re.compile(r"\*\*\s*(\d+)(?!\s*(?:\*\*|\d|\.|\())")
_FUNCTION_CHARS = re.compile(r"[-+*/()\d\sx.]+")


def is_bounded_expression(expression: str) -> bool:
    """Short, built from digits, x and operators, every exponent a small literal."""
    if len(expression) > MAX_FUNCTION_LENGTH or not _FUNCTION_CHARS.fullmatch(expression):
        return False
    powers = _POWER_PATTERN.findall(expression)
    return len(powers) == expression.count("**") and all(int(p) <= MAX_EXPONENT for p in powers)


def extract_function_expression(text: str) -> Optional[str]:
    """Return the right-hand side of `y = ...` / `f(x) = ...`, normalised for sympy."""
    match = _FUNCTION_PATTERN.search(text.strip())
    if not match:
        return None
    expression = match.group("expr").strip()
    if "x" not in expression.lower():
        return None
    expression = expression.replace("²", "^2").replace("³", "^3").replace("^", "**").lower()
    if not is_bounded_expression(expression):
        return None
    return expression


@dataclass(frozen=True)
class LinearFunction:
    slope: float
    intercept: float


_LINEAR_PATTERN = re.compile(
    r"^(?P<m>[-+]?\s*\d*(?:\.\d+)?)\s*\*?\s*x\s*(?:(?P<op>[+\-])\s*(?P<b>\d+(?:\.\d+)?))?$"
)


def extract_linear_function(text: str) -> Optional[LinearFunction]:
    """`y = mx + b` -> LinearFunction(m, b); None for anything non-linear."""
    expression = extract_function_expression(text)
    if expression is None:
        return None
    match = _LINEAR_PATTERN.match(expression.replace(" ", ""))
    if not match:
        return None
    raw_slope = match.group("m").replace(" ", "")
    if raw_slope in ("", "+"):
        slope = 1.0
    elif raw_slope == "-":
        slope = -1.0
    else:
        slope = float(raw_slope)
    intercept = float(match.group("b")) if match.group("b") else 0.0
    if match.group("op") == "-":
        intercept = -intercept
    return LinearFunction(slope=slope, intercept=intercept)


@dataclass(frozen=True)
class GraphRequest:
    points: Tuple[Tuple[float, float], ...] = ()
    expression: Optional[str] = None
    line: Optional[LinearFunction] = None


def extract_graph_request(text: str) -> Optional[GraphRequest]:
    """Points and/or a function to plot; None when there is nothing to draw."""
    points = tuple(extract_points(text))
    expression = extract_function_expression(text)
    if not points and expression is None:
        return None
    return GraphRequest(
        points=points,
        expression=expression,
        line=extract_linear_function(text) if expression else None,
    )


@dataclass(frozen=True)
class TriangleMeasurements:
    angles: Tuple[float, ...] = ()
    legs: Tuple[float, ...] = ()
    hypotenuse: Optional[float] = None
    is_right: bool = False


_DEGREE_PATTERN = re.compile(rf"({NUM})\s*(?:°|degrees?\b)", re.IGNORECASE)
_HYPOTENUSE_RULES: List[Rule] = [
    _rule(rf"hypotenuse\s*(?:of|is|=|measures)?\s*({NUM})", _group_float()),
    _rule(rf"({NUM})\s*(?:cm|m|in|ft|units?)?\s*(?:long\s+)?hypotenuse", _group_float()),
]
_LEG_PATTERN = re.compile(
    rf"(?:legs?|sides?|base|height)\s*(?:of|are|is|=|measure|measuring)?\s*({NUM})"
    rf"(?:\s*(?:cm|m|in|ft|units?))?(?:\s*(?:and|,)\s*({NUM}))?",
    re.IGNORECASE,
)


def extract_triangle(text: str) -> TriangleMeasurements:
    lowered = text.lower()
    is_right = any(cue in lowered for cue in ("right triangle", "right-angled", "right angle", "hypotenuse", "pythagor"))
    angles = tuple(parse_number(raw) for raw in _DEGREE_PATTERN.findall(text))[:3]
    legs: List[float] = []
    for first, second in _LEG_PATTERN.findall(text):
        legs.append(parse_number(first))
        if second:
            legs.append(parse_number(second))
    return TriangleMeasurements(
        angles=angles,
        legs=tuple(legs[:2]),
        hypotenuse=_first_match(text, _HYPOTENUSE_RULES),
        is_right=is_right,
    )


_NUMBER_LINE_VALUE = re.compile(r"(?<![\w/])(-?\d+(?:\.\d+)?(?:/\d+)?)(?![\w/])")


def extract_number_line_values(text: str, limit: int = 6) -> List[float]:
    values: List[float] = []
    for raw in _NUMBER_LINE_VALUE.findall(text.replace("−", "-")):
        if "/" in raw:
            numerator, denominator = raw.split("/")
            if float(denominator) == 0:
                continue
            values.append(float(numerator) / float(denominator))
        else:
            values.append(float(raw))
        if len(values) >= limit:
            break
    return values


@dataclass(frozen=True)
class BarComparison:
    subject: str
    reference: str
    comparison: str
    amount: float
    reference_value: Optional[float] = None
    total: Optional[float] = None


_NAME = r"[A-Z][a-z]+"


def _times_comparison(match: Match[str]) -> BarComparison:
    return BarComparison(match.group("subject"), match.group("ref"), "times", parse_number(match.group("amount")))


def _more_fewer_comparison(match: Match[str]) -> BarComparison:
    comparison = "more" if match.group("cmp").lower() == "more" else "fewer"
    return BarComparison(match.group("subject"), match.group("ref"), comparison, parse_number(match.group("amount")))


BAR_MODEL_RULES: List[Rule] = [
    _rule(
        rf"(?P<subject>{_NAME})\s+(?:has|had|owns|collected|read|scored)\s+(?P<amount>{NUM})\s+times\s+as\s+(?:many|much)\s+(?:\w+\s+)?as\s+(?P<ref>{_NAME})",
        _times_comparison,
        flags=0,
    ),
    _rule(
        rf"(?P<subject>{_NAME})\s+(?:has|had|owns|collected|read|scored)\s+(?P<amount>{NUM})\s+(?:\w+\s+)?(?P<cmp>more|fewer|less)\s+(?:\w+\s+)?than\s+(?P<ref>{_NAME})",
        _more_fewer_comparison,
        flags=0,
    ),
]

_TOTAL_RULES: List[Rule] = [
    _rule(rf"(?:together|in\s+all|altogether|in\s+total|total\s+of)[^\d]{{0,30}}({NUM})", _group_float()),
    _rule(rf"({NUM})\s+(?:\w+\s+)?(?:in\s+all|altogether|in\s+total)", _group_float()),
]


def extract_bar_model_quantities(text: str) -> Optional[BarComparison]:
    """Comparison word problems: "Ann has 5 more stickers than Ben. Ben has 12."""
    comparison = _first_match(text, BAR_MODEL_RULES)
    if comparison is None:
        return None
    reference_value = _first_match(
        text,
        [_rule(rf"\b{re.escape(comparison.reference)}\s+(?:has|had|owns|collected|read|scored)\s+({NUM})(?!\d)(?![.,]\d)(?!\s+(?:\w+\s+)?(?:more|fewer|less|times))", _group_float(), flags=0)],
    )
    return BarComparison(
        subject=comparison.subject,
        reference=comparison.reference,
        comparison=comparison.comparison,
        amount=comparison.amount,
        reference_value=reference_value,
        total=_first_match(text, _TOTAL_RULES),
    )


# =============================================================================
# CHEMISTRY & BIOLOGY
# =============================================================================

def _element_by_name(match: Match[str]) -> Optional[str]:
    return ELEMENT_NAMES.get(match.group(1).lower())


def _element_by_key(match: Match[str]) -> Optional[str]:
    element = lookup_element(match.group(1))
    return element["symbol"] if element else None


ELEMENT_RULES: List[Rule] = [
    _rule(r"\b(" + "|".join(sorted(ELEMENT_NAMES, key=len, reverse=True)) + r")\b", _element_by_name),
    _rule(r"\b([A-Z][a-z]?)\s+atom", _element_by_key, flags=0),
    _rule(r"atomic\s+number\s*(?:of|is|=)?\s*(\d{1,2})\b", _element_by_key),
]


def extract_element(text: str) -> Optional[str]:
    """Return an element symbol from the bundled table."""
    return _first_match(text, ELEMENT_RULES)


def _molecule_by_name(match: Match[str]) -> Optional[str]:
    return MOLECULE_NAMES.get(match.group(1).lower())


def _molecule_by_formula(match: Match[str]) -> Optional[str]:
    formula = match.group(1)
    return formula if formula in MOLECULES else None


MOLECULE_RULES: List[Rule] = [
    _rule(r"\b(" + "|".join(sorted(MOLECULE_NAMES, key=len, reverse=True)) + r")\b", _molecule_by_name),
    _rule(r"\b(" + "|".join(sorted(MOLECULES, key=len, reverse=True)) + r")\b", _molecule_by_formula, flags=0),
]


def extract_molecule(text: str) -> Optional[str]:
    """Return a formula key into MOLECULES (e.g. "H2O")."""
    return _first_match(text.translate(SUBSCRIPT_DIGITS), MOLECULE_RULES)


CELL_TYPE_RULES: List[Rule] = [
    _rule(r"\b(plant|leaf|root)\b", lambda match: "plant"),
    _rule(r"\b(bacteri\w*|prokaryot\w*)", lambda match: "bacteria"),
    _rule(r"\b(animal|human|cheek|eukaryot\w*)\b", lambda match: "animal"),
]


def extract_cell_type(text: str) -> Optional[str]:
    return _first_match(text, CELL_TYPE_RULES)


_DNA_PATTERN = re.compile(r"(?<![A-Za-z])[ATGC](?:[\s\-]?[ATGC]){3,}(?![A-Za-z])")


def extract_dna_sequence(text: str, limit: int = MAX_BASE_PAIRS) -> Optional[str]:
    """Return an uppercase strand like "ATGC" (separators removed, capped)."""
    match = _DNA_PATTERN.search(text)
    if not match:
        return None
    sequence = re.sub(r"[\s\-]", "", match.group(0))
    return sequence[:limit]
