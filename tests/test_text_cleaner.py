"""
Tests for formatting.text_cleaner and core.settings.

Test Coverage:
- LaTeX and escaped-Unicode normalisation
- Number formatting for step labels
- ASCII fragment detection and stripping
- Settings loaded from the environment
"""

import pytest

from core.settings import DiagramSettings
from formatting.text_cleaner import (
    clean_problem_text,
    excerpt,
    find_ascii_fragments,
    format_number,
    has_bracket_notation,
    strip_fragments,
)


@pytest.mark.parametrize("raw, expected", [
    ("7248 \\div 8", "7248 ÷ 8"),
    ("$\\frac{3}{4} \\times \\frac{1}{2}$", "3/4 × 1/2"),
    ("An incline at 30^\\circ", "An incline at 30°"),
    ("7248 u00f7 8", "7248 ÷ 8"),
    ("\\(x + 2 = 5\\)", "x + 2 = 5"),
    ("Find   the\tmass", "Find the mass"),
    ("", ""),
])
def test_clean_problem_text(raw, expected):
    assert clean_problem_text(raw) == expected


@pytest.mark.parametrize("value, expected", [
    (50.0, "50"),
    (43.30127, "43.3"),
    (0.5, "0.5"),
    (-1.5, "-1.5"),
    (2, "2"),
])
def test_format_number(value, expected):
    assert format_number(value) == expected


def test_excerpt_is_single_line_and_capped():
    text = "line one\n" + "word " * 40

    result = excerpt(text)

    assert "\n" not in result
    assert len(result) == 80
    assert result.endswith("...")


def test_bracket_notation():
    assert has_bracket_notation("8 | 7248")
    assert has_bracket_notation("8⟌7248")
    assert not has_bracket_notation("| 3 | 4 |")


def test_prose_code_block_is_not_a_fragment():
    message = "Try this:\n```\nprint(7248 // 8)\n```"

    assert find_ascii_fragments(message) == []


def test_layout_run_needs_rule_or_bracket():
    """A lone number on its own line is just text."""
    assert find_ascii_fragments("The answer is:\n906\nWell done.") == []


def test_strip_fragments_tidies_blank_lines():
    message = "Before\n\n```\n8 | 7248\n```\n\nAfter"
    spans = find_ascii_fragments(message)

    assert len(spans) == 1
    assert strip_fragments(message, spans) == "Before\n\nAfter"


def test_strip_without_spans_returns_message():
    assert strip_fragments("unchanged  ", []) == "unchanged  "


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("DIAGRAM_DEFAULT_GRAVITY", "9.8")
    monkeypatch.setenv("DIAGRAM_TRAJECTORY_SAMPLES", "20")
    monkeypatch.setenv("DIAGRAM_DEFAULT_MASS", "heavy")

    settings = DiagramSettings.from_env()

    assert settings.default_gravity == 9.8
    assert settings.trajectory_samples == 20
    assert settings.default_mass == 5.0
