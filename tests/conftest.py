import sys
from pathlib import Path

import pytest

# Make the top-level packages importable without an install
ROOT = Path(__file__).resolve().parent.parent
if ROOT.as_posix() not in sys.path:
    sys.path.insert(0, ROOT.as_posix())

from core.pattern_extractor import DivisionOperands
from core.settings import DiagramSettings
from generators.math_builders import build_long_division_diagram
from generators.physics_builders import build_fbd_diagram
from schemas.diagram import PhysicsContext, QuestionAnalysis, Subject


@pytest.fixture
def settings():
    """Default settings, independent of the test machine's environment."""
    return DiagramSettings()


@pytest.fixture
def make_analysis():
    def _make(text, topic="", subject=Subject.OTHER):
        return QuestionAnalysis(question_text=text, topic=topic, subject=subject)
    return _make


@pytest.fixture
def fbd_diagram(settings):
    """Three-step free-body diagram: object, weight, normal."""
    return build_fbd_diagram(PhysicsContext(mass=5, gravity=10), "A 5 kg block rests on a table", settings)


@pytest.fixture
def division_diagram(settings):
    return build_long_division_diagram(DivisionOperands(dividend=7248, divisor=8), "7248 ÷ 8", settings)
