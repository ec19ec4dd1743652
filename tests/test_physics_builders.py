"""
Tests for generators.physics_builders.

Test Coverage:
- Free-body diagram forces, reveal order and calculations
- Inclined plane normal force and weight decomposition
- Projectile range, peak height and trajectory sampling
- Rejection of impossible geometry
"""

import math

import pytest

from core.errors import ExtractionError
from core.pattern_extractor import ProjectileLaunch
from core.settings import DiagramSettings
from generators.physics_builders import (
    build_fbd_diagram,
    build_inclined_plane_diagram,
    build_projectile_diagram,
)
from schemas.diagram import DiagramType, PhysicsContext


def _forces(diagram):
    return {force["name"]: force for force in diagram.data["forces"]}


# =============================================================================
# FREE BODY DIAGRAM
# =============================================================================

def test_fbd_weight_and_normal(fbd_diagram):
    forces = _forces(fbd_diagram)

    assert fbd_diagram.type == DiagramType.FBD
    assert fbd_diagram.visible_step == 0
    assert fbd_diagram.total_steps == 3
    assert forces["weight"]["magnitude"] == 50
    assert forces["weight"]["angle"] == -90
    assert forces["normal"]["magnitude"] == 50
    assert fbd_diagram.step_config[1].show_calculation == "W = mg = 5 × 10 = 50N"


def test_fbd_reveals_friction_then_applied(settings):
    context = PhysicsContext(mass=5, gravity=10, friction_coefficient=0.2, applied_force=30)
    diagram = build_fbd_diagram(context, "Pull a 5 kg box", settings)

    assert [f["name"] for f in diagram.data["forces"]] == ["weight", "normal", "friction", "applied"]
    assert _forces(diagram)["friction"]["magnitude"] == 10.0
    assert diagram.total_steps == 5
    assert diagram.step_config[3].visible_forces == ["weight", "normal", "friction"]
    assert diagram.step_config[4].visible_forces == ["weight", "normal", "friction", "applied"]
    assert diagram.final_calculation == "F_app = 30N"


def test_fbd_mentioned_friction_uses_default_coefficient(settings):
    diagram = build_fbd_diagram(PhysicsContext(mass=5, gravity=10), "The box slides with friction", settings)

    assert _forces(diagram)["friction"]["magnitude"] == 15.0


def test_fbd_fills_missing_mass_from_settings():
    diagram = build_fbd_diagram(PhysicsContext(), "A box", DiagramSettings(default_mass=2.0))

    assert diagram.data["object"]["mass"] == 2.0
    assert _forces(diagram)["weight"]["magnitude"] == 20.0


# =============================================================================
# INCLINED PLANE
# =============================================================================

def test_inclined_plane_normal_is_mg_cos_theta(settings):
    diagram = build_inclined_plane_diagram(PhysicsContext(mass=5, angle=30, gravity=10), "", settings)
    forces = _forces(diagram)

    expected = 50 * math.cos(math.radians(30))
    assert abs(forces["normal"]["magnitude"] - expected) <= 0.1
    assert forces["normal"]["angle"] == 60
    assert diagram.data["angle"] == 30
    assert diagram.total_steps == 4


def test_inclined_plane_ends_with_decomposition(settings):
    diagram = build_inclined_plane_diagram(PhysicsContext(mass=5, angle=30, gravity=10), "", settings)
    last = diagram.step_config[-1]

    assert last.show_components is True
    assert "W∥" in last.show_calculation
    assert last.show_calculation.endswith("= 25N")


def test_inclined_plane_friction_uses_normal(settings):
    context = PhysicsContext(mass=10, angle=30, gravity=10, friction_coefficient=0.5)
    diagram = build_inclined_plane_diagram(context, "", settings)
    forces = _forces(diagram)

    assert forces["normal"]["magnitude"] == 86.6
    assert forces["friction"]["magnitude"] == 43.3
    assert forces["friction"]["angle"] == 150
    assert diagram.total_steps == 5


@pytest.mark.parametrize("angle", [90, 95])
def test_inclined_plane_rejects_bad_angle(settings, angle):
    # Act & Assert
    with pytest.raises(ExtractionError, match="Incline angle"):
        build_inclined_plane_diagram(PhysicsContext(mass=5, angle=angle), "", settings)


# =============================================================================
# PROJECTILE
# =============================================================================

def test_projectile_range_and_height(settings):
    diagram = build_projectile_diagram(ProjectileLaunch(speed=20, angle=45), "", settings)
    data = diagram.data

    assert diagram.type == DiagramType.PROJECTILE
    assert diagram.total_steps == 5
    assert abs(data["range"] - 40.0) < 0.01
    assert abs(data["maxHeight"] - 10.0) < 0.01
    assert diagram.final_calculation.endswith("= 40 m")


def test_projectile_trajectory_samples(settings):
    diagram = build_projectile_diagram(ProjectileLaunch(speed=20, angle=45), "", settings)
    trajectory = diagram.data["trajectory"]

    assert len(trajectory) == settings.trajectory_samples
    assert trajectory[0] == {"x": 0.0, "y": 0.0}
    assert abs(trajectory[-1]["x"] - 40.0) < 0.01
    assert all(point["y"] >= 0 for point in trajectory)


def test_projectile_uses_extracted_gravity(settings):
    diagram = build_projectile_diagram(ProjectileLaunch(speed=20, angle=45, gravity=5.0), "", settings)

    assert abs(diagram.data["range"] - 80.0) < 0.01


def test_horizontal_launch_from_height(settings):
    diagram = build_projectile_diagram(ProjectileLaunch(speed=10, angle=0, height=20), "", settings)

    # t = sqrt(2h/g) = 2s, so R = 20 m
    assert abs(diagram.data["timeOfFlight"] - 2.0) < 0.01
    assert abs(diagram.data["range"] - 20.0) < 0.01


def test_horizontal_launch_from_ground_is_rejected(settings):
    with pytest.raises(ExtractionError):
        build_projectile_diagram(ProjectileLaunch(speed=20, angle=0), "", settings)
