"""
Tests for generators.diagram_generator.

Test Coverage:
- End-to-end generation from a question analysis
- LaTeX problem text
- Settings overrides reaching the builders
- None for unmatched problems, missing operands and builder failures
- ensure_diagram_in_response keeping or replacing a supplied diagram
- Every numeric-answer category ends on a step showing its answer
- Oversized function text never reaches sympy
"""

import pytest

from core.settings import DiagramSettings
from generators.diagram_generator import (
    RECIPES,
    build_diagram,
    ensure_diagram_in_response,
    generate_diagram_for_problem,
)
from schemas.diagram import DATA_MODELS, NUMERIC_ANSWER_TYPES, DiagramType, Subject


def test_every_buildable_category_has_a_recipe():
    assert set(RECIPES) == set(DATA_MODELS)


def test_inclined_plane_problem(make_analysis):
    analysis = make_analysis("A 5 kg block on a 30° incline. Find the normal force.", subject=Subject.SCIENCE)
    diagram = generate_diagram_for_problem(analysis)

    assert diagram.type == DiagramType.INCLINED_PLANE
    assert diagram.visible_step == 0
    assert diagram.total_steps == 4
    assert diagram.data["object"]["mass"] == 5.0


@pytest.mark.parametrize("text", [
    "Divide 7,248 by 8",
    "What is 7248 divided by 8?",
    "7248 ÷ 8",
])
def test_long_division_problem(make_analysis, text):
    diagram = generate_diagram_for_problem(make_analysis(text, subject=Subject.MATH))

    assert diagram.type == DiagramType.LONG_DIVISION
    assert diagram.data["quotient"] == 906


def test_latex_fraction_problem(make_analysis):
    analysis = make_analysis("Compute \\frac{1}{2} + \\frac{1}{3}", subject=Subject.MATH)
    diagram = generate_diagram_for_problem(analysis)

    assert diagram.type == DiagramType.FRACTION
    assert diagram.final_calculation == "1/2 + 1/3 = 5/6"


def test_cell_question_without_type_draws_animal_cell(make_analysis):
    diagram = generate_diagram_for_problem(make_analysis("Label the organelles in a cell", subject=Subject.SCIENCE))

    assert diagram.type == DiagramType.CELL
    assert diagram.data["cellType"] == "animal"


def test_settings_reach_the_builder(make_analysis):
    analysis = make_analysis("A block is pushed across the floor with friction", subject=Subject.SCIENCE)
    diagram = generate_diagram_for_problem(analysis, DiagramSettings(default_mass=2.0))

    assert diagram.type == DiagramType.FBD
    forces = {force["name"]: force["magnitude"] for force in diagram.data["forces"]}
    assert forces == {"weight": 20.0, "normal": 20.0, "friction": 6.0}


def test_unmatched_problem(make_analysis):
    assert generate_diagram_for_problem(make_analysis("Who wrote Hamlet?", subject=Subject.LANGUAGE)) is None


def test_category_without_operands(make_analysis):
    assert generate_diagram_for_problem(make_analysis("Explain long division", subject=Subject.MATH)) is None


def test_builder_failure_becomes_none(make_analysis):
    analysis = make_analysis("A ball is launched horizontally at 0° at 20 m/s")

    assert generate_diagram_for_problem(analysis) is None


def test_build_diagram_for_explicit_category(settings):
    diagram = build_diagram(DiagramType.DNA, "Pair the bases in GGAT", settings)

    assert diagram.data["complement"] == "CCTA"


def test_ensure_keeps_valid_supplied_diagram(make_analysis, division_diagram):
    analysis = make_analysis("A 5 kg block on a 30° incline", subject=Subject.SCIENCE)

    diagram = ensure_diagram_in_response(analysis, division_diagram.to_payload())

    assert diagram.type == DiagramType.LONG_DIVISION


def test_ensure_replaces_invalid_supplied_diagram(make_analysis):
    analysis = make_analysis("A 5 kg block on a 30° incline", subject=Subject.SCIENCE)

    diagram = ensure_diagram_in_response(analysis, {"type": "fbd"})

    assert diagram.type == DiagramType.INCLINED_PLANE


FINAL_ANSWERS = [
    (DiagramType.FBD, "A 5 kg block rests on a table", "= 50N"),
    (DiagramType.INCLINED_PLANE, "A 5 kg block on a 30° incline", "= 25N"),
    (DiagramType.PROJECTILE, "A ball is launched at 20 m/s at 45°", "= 40 m"),
    (DiagramType.LONG_DIVISION, "7248 ÷ 8", "= 906 R 0"),
    (DiagramType.EQUATION, "Solve 3x + 4 = 19", "x = 5"),
    (DiagramType.FRACTION, "Compute 1/2 + 1/3", "= 5/6"),
    (DiagramType.BAR_MODEL, "Ann has 5 more stickers than Ben. Ben has 12 stickers.", "= 17"),
    (DiagramType.TRIANGLE, "A right triangle has legs 3 and 4. Find the hypotenuse.", "= 5"),
]


def test_final_answer_cases_cover_numeric_categories():
    assert {category for category, _, _ in FINAL_ANSWERS} == NUMERIC_ANSWER_TYPES


@pytest.mark.parametrize("category, text, answer", FINAL_ANSWERS)
def test_final_step_shows_the_answer(settings, category, text, answer):
    diagram = build_diagram(category, text, settings)

    assert diagram.final_calculation.endswith(answer)
    assert "?" not in diagram.final_calculation


@pytest.mark.parametrize("text", [
    "Graph y = x^(9^9^9)",
    "Graph y = x^9^9",
    "Sketch y = x^12 + 1",
])
def test_oversized_function_gives_no_diagram(make_analysis, text):
    assert generate_diagram_for_problem(make_analysis(text, subject=Subject.MATH)) is None
