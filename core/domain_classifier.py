"""
domain_classifier.py

Decides which diagram, if any, fits a homework problem.

Classification is keyword/regex driven over the problem text plus its topic.
It deliberately over-triggers: showing a diagram that turns out to be unhelpful
is recoverable (the builder or validator simply drops it), while never showing
one is the worse outcome for a student. Within each family the category order
is fixed, so a prompt carrying several cues ("graph y = x² by first finding
roots") always resolves to the same, higher-precedence category.
"""

from __future__ import annotations

import logging
import re
from typing import Dict, Iterable, List, Optional, Pattern, Sequence, Tuple, Union

from schemas.diagram import DiagramType, Subject

logger = logging.getLogger(__name__)

# A cue is either a keyword (matched at a word start, so stems like "incline"
# also hit "inclined") or a compiled regex.
Cue = Union[str, Pattern[str]]

STATISTICAL_PLOTS = ("dot plot", "box plot", "box and whisker", "scatter plot", "histogram")

_FRACTION_OPERATION = re.compile(r"\d+\s*/\s*\d+\s*(?:[+\-−×*x÷:]|and|by|from|to)\s*\d+\s*/\s*\d+")


PHYSICS_CUES: List[Tuple[DiagramType, Tuple[Cue, ...]]] = [
    (DiagramType.INCLINED_PLANE, (
        "incline", "slope", "ramp", "inclined plane",
        re.compile(r"\bangle\b.*\b(?:surface|plane)\b|\b(?:surface|plane)\b.*\bangle\b"),
    )),
    (DiagramType.FBD, (
        "force", "friction", "tension", "newton", "f = ma", "f=ma", "equilibrium",
        "acceleration", "pull", "push", "free body", "free-body", "normal force",
    )),
    (DiagramType.PROJECTILE, (
        "projectile", "trajectory", "launch", "kicked", "cannon",
        re.compile(r"\bthrow\w*\b.*\bangle\b|\bangle\b.*\bthrow\w*\b"),
    )),
]

MATH_CUES: List[Tuple[DiagramType, Tuple[Cue, ...]]] = [
    (DiagramType.COORDINATE_PLANE, (
        "graph", "coordinate", "ordered pair", "quadrant", "x-axis", "y-axis",
        "y-intercept", "x-intercept", "parabola", "plot the point", "slope of",
        re.compile(r"\by\s*=\s*[^=\n]*x"),
        re.compile(r"\bf\s*\(\s*x\s*\)\s*="),
        re.compile(r"\(\s*-?\d+(?:\.\d+)?\s*,\s*-?\d+(?:\.\d+)?\s*\)"),
    )),
    (DiagramType.BAR_MODEL, (
        "bar model", "tape diagram", "times as many", "times as much",
        re.compile(r"\b\d[\d,.]*\s+(?:\w+\s+)?(?:more|fewer|less)\s+(?:\w+\s+)?than\b"),
    )),
    (DiagramType.TRIANGLE, (
        "triangle", "hypotenuse", "pythagor", "right angle", "right-angled",
        "isosceles", "equilateral", "interior angle",
    )),
    (DiagramType.NUMBER_LINE, (
        "number line", "absolute value", "negative number", "opposite of",
    )),
    (DiagramType.LONG_DIVISION, (
        "divide", "division", "divided", "÷", "quotient", "remainder",
        "long division", "shared equally", "equal groups", "split equally",
        re.compile(r"\d[\d,]*\s+\w+\s+(?:among|between)\s+\d"),
        re.compile(r"\bgo(?:es)?\s+into\b"),
    )),
    (DiagramType.EQUATION, (
        "solve", "equation", "find x", "find the value", "unknown",
        re.compile(r"\d*[a-z]\s*[+\-]\s*\d+\s*="),
        re.compile(r"\b\d+[a-z]\s*="),
    )),
    (DiagramType.FRACTION, (
        "fraction", "numerator", "denominator", "mixed number",
        re.compile(r"\b\d+\s*/\s*\d+\b"),
    )),
]

CHEMISTRY_CUES: List[Tuple[DiagramType, Tuple[Cue, ...]]] = [
    (DiagramType.MOLECULE, (
        "molecule", "molecular", "covalent", "chemical bond", "ionic bond",
        "lewis", "structural formula", "bond angle", "vsepr",
        "water", "carbon dioxide", "methane", "ammonia",
        re.compile(r"\b(?:h2o|co2|ch4|nh3|hcl|h₂o|co₂|ch₄|nh₃)\b"),
    )),
    (DiagramType.ATOM, (
        "atom", "electron", "proton", "neutron", "atomic number", "bohr",
        "electron configuration", "valence", "energy level", "element",
    )),
]

BIOLOGY_CUES: List[Tuple[DiagramType, Tuple[Cue, ...]]] = [
    (DiagramType.DNA, (
        "dna", "base pair", "nucleotide", "double helix", "complementary strand",
        "replication", "adenine", "guanine", "cytosine", "thymine",
    )),
    (DiagramType.CELL, (
        "cell", "organelle", "mitochondri", "chloroplast", "cytoplasm",
        "ribosome", "vacuole", "golgi", "endoplasmic",
    )),
]

FAMILIES: Dict[str, List[Tuple[DiagramType, Tuple[Cue, ...]]]] = {
    "physics": PHYSICS_CUES,
    "math": MATH_CUES,
    "chemistry": CHEMISTRY_CUES,
    "biology": BIOLOGY_CUES,
}

FAMILY_ORDER: Dict[Subject, Tuple[str, ...]] = {
    Subject.MATH: ("math", "physics", "chemistry", "biology"),
    Subject.SCIENCE: ("physics", "chemistry", "biology", "math"),
}
DEFAULT_FAMILY_ORDER = ("physics", "math", "chemistry", "biology")


def _cue_matches(cue: Cue, text: str) -> bool:
    if isinstance(cue, re.Pattern):
        return cue.search(text) is not None
    keyword = str(cue)
    if not keyword[0].isalnum():
        return keyword in text
    return re.search(rf"(?<!\w){re.escape(keyword)}", text) is not None


def _any_cue(cues: Iterable[Cue], text: str) -> bool:
    return any(_cue_matches(cue, text) for cue in cues)


def _normalise(question_text: str, topic: str) -> str:
    return f"{question_text} {topic}".lower().strip()


def _category_applies(category: DiagramType, cues: Sequence[Cue], text: str, subject: Subject) -> bool:
    if category == DiagramType.COORDINATE_PLANE and any(plot in text for plot in STATISTICAL_PLOTS):
        return False
    if category == DiagramType.LONG_DIVISION and _FRACTION_OPERATION.search(text):
        # "divide 3/4 by 1/2" is fraction work, not long division
        return False
    if _any_cue(cues, text):
        return True
    if category == DiagramType.FBD and subject == Subject.SCIENCE:
        return re.search(r"(?<!\w)block", text) is not None
    return False


def _detect(family: str, text: str, subject: Subject) -> Optional[DiagramType]:
    for category, cues in FAMILIES[family]:
        if _category_applies(category, cues, text, subject):
            return category
    return None


def detect_physics_diagram_type(question_text: str, topic: str = "", subject: Subject = Subject.OTHER) -> Optional[DiagramType]:
    """Inclined plane beats generic force cues, which beat projectile cues."""
    return _detect("physics", _normalise(question_text, topic), subject)


def detect_math_diagram_type(question_text: str, topic: str = "") -> Optional[DiagramType]:
    """
    Coordinate plane > bar model > triangle > number line > long division >
    equation > fraction.
    """
    return _detect("math", _normalise(question_text, topic), Subject.MATH)


def detect_chemistry_diagram_type(question_text: str, topic: str = "") -> Optional[DiagramType]:
    return _detect("chemistry", _normalise(question_text, topic), Subject.SCIENCE)


def detect_biology_diagram_type(question_text: str, topic: str = "") -> Optional[DiagramType]:
    return _detect("biology", _normalise(question_text, topic), Subject.SCIENCE)


def classify(question_text: str, topic: str = "", subject: Subject = Subject.OTHER) -> Optional[DiagramType]:
    """
    Returns the diagram category for a problem, or None when nothing fits.

    The subject only changes which family is consulted first; every family is
    still tried so that a mislabelled subject does not hide a diagram.
    """
    subject = Subject(subject)
    text = _normalise(question_text, topic)
    if not text:
        return None

    for family in FAMILY_ORDER.get(subject, DEFAULT_FAMILY_ORDER):
        category = _detect(family, text, subject)
        if category is not None:
            logger.debug(
                "[classify] %s -> %s (family=%s, subject=%s)",
                text[:80], category.value, family, subject.value,
            )
            return category

    logger.debug("[classify] No diagram category for %r (subject=%s)", text[:80], subject.value)
    return None
