"""
Tests for core.domain_classifier.

Test Coverage:
- Category precedence inside each family
- Subject-driven family order
- Vetoes (fraction operations, statistical plots)
- The science-only "block" rule for free-body diagrams
- Problems that get no diagram
"""

import pytest

from core.domain_classifier import (
    classify,
    detect_math_diagram_type,
    detect_physics_diagram_type,
)
from schemas.diagram import DiagramType, Subject


@pytest.mark.parametrize("text, subject, expected", [
    ("A 5 kg block slides down a 30° incline", Subject.OTHER, DiagramType.INCLINED_PLANE),
    ("A 10 kg box is pushed with a force of 50 N", Subject.OTHER, DiagramType.FBD),
    ("A ball is launched at 20 m/s at 45°", Subject.OTHER, DiagramType.PROJECTILE),
    ("Graph y = 2x + 3 and find the slope", Subject.MATH, DiagramType.COORDINATE_PLANE),
    ("Find the value of x: 2x + 5 = 11", Subject.MATH, DiagramType.EQUATION),
    ("Draw the Bohr model of a sodium atom", Subject.SCIENCE, DiagramType.ATOM),
    ("What is the bond angle in water?", Subject.SCIENCE, DiagramType.MOLECULE),
    ("Write the complementary strand of the DNA sequence ATGC", Subject.SCIENCE, DiagramType.DNA),
    ("Label the organelles of a plant cell", Subject.SCIENCE, DiagramType.CELL),
])
def test_classify(text, subject, expected):
    assert classify(text, subject=subject) == expected


def test_division_symbol_beats_solve_keyword():
    """Long division outranks equation, so "solve 100 ÷ 4 = x" is a division."""
    assert classify("Solve 100 ÷ 4 = x") == DiagramType.LONG_DIVISION


def test_inclined_plane_beats_generic_force_cues():
    assert detect_physics_diagram_type("Find the friction force on a block on a ramp") == DiagramType.INCLINED_PLANE


def test_fraction_operation_vetoes_long_division():
    assert classify("Divide 3/4 by 1/2", subject=Subject.MATH) == DiagramType.FRACTION


def test_statistical_plot_vetoes_coordinate_plane():
    assert detect_math_diagram_type("Make a dot plot and graph the data") is None
    assert classify("Make a dot plot and graph the data", subject=Subject.MATH) is None


def test_block_alone_triggers_fbd_only_for_science():
    assert classify("A block rests on a table", subject=Subject.SCIENCE) == DiagramType.FBD
    assert classify("A block rests on a table", subject=Subject.OTHER) is None


def test_topic_contributes_cues():
    assert classify("What is 48 and 6?", topic="long division", subject=Subject.MATH) == DiagramType.LONG_DIVISION


def test_classify_is_deterministic():
    text = "Graph y = x² by first finding where it crosses the x-axis"
    results = {classify(text, subject=Subject.MATH) for _ in range(5)}

    assert results == {DiagramType.COORDINATE_PLANE}


@pytest.mark.parametrize("text, subject", [
    ("Who was the first president?", Subject.HISTORY),
    ("Summarise the second chapter", Subject.LANGUAGE),
    ("", Subject.OTHER),
])
def test_no_diagram(text, subject):
    assert classify(text, subject=subject) is None
