"""
diagram_generator.py

Entry point that turns a `QuestionAnalysis` into a validated `DiagramState`:
classify the problem, extract its quantities, run the matching builder and
validate the result. Nothing here raises to the caller; every failure
becomes `None` plus a log line naming the category and a text excerpt.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from pydantic import ValidationError

from core.domain_classifier import classify
from core.pattern_extractor import (
    extract_bar_model_quantities,
    extract_cell_type,
    extract_division_numbers,
    extract_dna_sequence,
    extract_element,
    extract_fraction_operation,
    extract_graph_request,
    extract_linear_equation,
    extract_molecule,
    extract_number_line_values,
    extract_physics_context,
    extract_projectile_launch,
    extract_triangle,
)
from core.settings import DEFAULT_SETTINGS, DiagramSettings
from formatting.text_cleaner import clean_problem_text, excerpt
from generators import math_builders, physics_builders, science_builders
from schemas.diagram import DiagramState, DiagramType, QuestionAnalysis
from validators.state_validator import validate_diagram

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DiagramRecipe:
    """How to get from problem text to a diagram for one category."""

    extract: Callable[[str, DiagramSettings], Any]
    build: Callable[[Any, str, DiagramSettings], DiagramState]


def _triangle_measurements(text: str, settings: DiagramSettings):
    measurements = extract_triangle(text)
    if not (measurements.angles or measurements.legs or measurements.hypotenuse):
        return None
    return measurements


RECIPES: Dict[DiagramType, DiagramRecipe] = {
    DiagramType.FBD: DiagramRecipe(
        extract=lambda text, settings: extract_physics_context(text, settings.default_gravity),
        build=physics_builders.build_fbd_diagram,
    ),
    DiagramType.INCLINED_PLANE: DiagramRecipe(
        extract=lambda text, settings: extract_physics_context(text, settings.default_gravity),
        build=physics_builders.build_inclined_plane_diagram,
    ),
    DiagramType.PROJECTILE: DiagramRecipe(
        extract=lambda text, settings: extract_projectile_launch(text),
        build=physics_builders.build_projectile_diagram,
    ),
    DiagramType.LONG_DIVISION: DiagramRecipe(
        extract=lambda text, settings: extract_division_numbers(text),
        build=math_builders.build_long_division_diagram,
    ),
    DiagramType.EQUATION: DiagramRecipe(
        extract=lambda text, settings: extract_linear_equation(text),
        build=math_builders.build_equation_diagram,
    ),
    DiagramType.FRACTION: DiagramRecipe(
        extract=lambda text, settings: extract_fraction_operation(text),
        build=math_builders.build_fraction_diagram,
    ),
    DiagramType.COORDINATE_PLANE: DiagramRecipe(
        extract=lambda text, settings: extract_graph_request(text),
        build=math_builders.build_coordinate_plane_diagram,
    ),
    DiagramType.BAR_MODEL: DiagramRecipe(
        extract=lambda text, settings: extract_bar_model_quantities(text),
        build=math_builders.build_bar_model_diagram,
    ),
    DiagramType.TRIANGLE: DiagramRecipe(
        extract=_triangle_measurements,
        build=math_builders.build_triangle_diagram,
    ),
    DiagramType.NUMBER_LINE: DiagramRecipe(
        extract=lambda text, settings: extract_number_line_values(text) or None,
        build=math_builders.build_number_line_diagram,
    ),
    DiagramType.ATOM: DiagramRecipe(
        extract=lambda text, settings: extract_element(text),
        build=science_builders.build_atom_diagram,
    ),
    DiagramType.MOLECULE: DiagramRecipe(
        extract=lambda text, settings: extract_molecule(text),
        build=science_builders.build_molecule_diagram,
    ),
    # A generic cell question still gets the animal cell.
    DiagramType.CELL: DiagramRecipe(
        extract=lambda text, settings: extract_cell_type(text) or "animal",
        build=science_builders.build_cell_diagram,
    ),
    # Without a strand the builder draws a short sample ladder.
    DiagramType.DNA: DiagramRecipe(
        extract=lambda text, settings: extract_dna_sequence(text) or "",
        build=science_builders.build_dna_diagram,
    ),
}


def build_diagram(
    category: DiagramType,
    question_text: str,
    settings: Optional[DiagramSettings] = None,
) -> Optional[DiagramState]:
    """Extract, build and validate for a known category."""
    settings = settings or DEFAULT_SETTINGS
    recipe = RECIPES.get(category)
    if recipe is None:
        logger.info("[generate_diagram] No builder for %s", category.value)
        return None

    extracted = recipe.extract(question_text, settings)
    if extracted is None:
        logger.info(
            "[generate_diagram] %s detected but nothing to extract from %r",
            category.value, excerpt(question_text),
        )
        return None

    try:
        diagram = recipe.build(extracted, question_text, settings)
    except (ValueError, ValidationError) as exc:
        logger.warning(
            "[generate_diagram] %s builder failed for %r: %s",
            category.value, excerpt(question_text), exc,
        )
        return None

    return validate_diagram(diagram, category)


def generate_diagram_for_problem(
    analysis: QuestionAnalysis,
    settings: Optional[DiagramSettings] = None,
) -> Optional[DiagramState]:
    """
    Build the diagram for a problem, or None when no category applies or the
    problem lacks the numbers the diagram needs.
    """
    text = clean_problem_text(analysis.question_text)
    category = classify(text, analysis.topic, analysis.subject)
    if category is None:
        logger.debug("[generate_diagram] No diagram for %r", excerpt(text))
        return None

    diagram = build_diagram(category, text, settings)
    if diagram is not None:
        logger.info(
            "[generate_diagram] %s with %d steps for %r",
            category.value, diagram.total_steps, excerpt(text),
        )
    return diagram


def ensure_diagram_in_response(
    analysis: QuestionAnalysis,
    existing: Optional[Any] = None,
    settings: Optional[DiagramSettings] = None,
) -> Optional[DiagramState]:
    """
    Keep the diagram the dialogue service supplied when it passes validation;
    otherwise generate one from the problem.
    """
    if existing is not None:
        diagram = validate_diagram(existing)
        if diagram is not None:
            return diagram
        logger.warning(
            "[ensure_diagram] Discarding invalid supplied diagram for %r",
            excerpt(analysis.question_text),
        )
    return generate_diagram_for_problem(analysis, settings)
