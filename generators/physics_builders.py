"""
physics_builders.py

Free-body, inclined-plane and projectile diagrams.

Builders are pure: they take an extracted context plus the problem text and
return a fresh `DiagramState` at step 0. Quantities the problem leaves out are
filled from `DiagramSettings` so a partially specified problem still gets a
diagram. Every `showCalculation` spells out the arithmetic with the actual
numbers (`W = mg = 5 × 10 = 50N`) rather than a symbolic placeholder.
"""

from __future__ import annotations

import logging
import math
from typing import List, Optional

import numpy as np

from core.errors import ExtractionError
from core.pattern_extractor import ProjectileLaunch
from core.settings import DEFAULT_SETTINGS, DiagramSettings
from formatting.text_cleaner import format_number as fmt
from schemas.diagram import (
    DiagramState,
    DiagramType,
    ForceData,
    ForceDiagramData,
    PhysicsContext,
    PhysicsObject,
    Point,
    ProjectileData,
    StepConfigEntry,
)

logger = logging.getLogger(__name__)


def _round1(value: float) -> float:
    return round(value, 1)


def _mentions_friction(question_text: str) -> bool:
    return "friction" in question_text.lower()


def _label(force: ForceData) -> str:
    return f"{force.symbol}_{force.subscript}" if force.subscript else force.symbol


def _reveal_steps(forces: List[ForceData], first_step: int, describe) -> List[StepConfigEntry]:
    """One entry per force after weight and normal, each revealing one more arrow."""
    entries: List[StepConfigEntry] = []
    for offset, force in enumerate(forces[2:]):
        label, calculation = describe(force)
        entries.append(StepConfigEntry(
            step=first_step + offset,
            step_label=label,
            show_calculation=calculation,
            visible_forces=[f.name for f in forces[: 3 + offset]],
            highlight_forces=[force.name],
        ))
    return entries


# =============================================================================
# FREE BODY DIAGRAM
# =============================================================================

def build_fbd_diagram(
    context: PhysicsContext,
    question_text: str,
    settings: Optional[DiagramSettings] = None,
) -> DiagramState:
    """
    Block on a level surface: weight and normal always, friction when a
    coefficient is given or friction is mentioned, then the applied force or
    tension when its magnitude is known.
    """
    settings = settings or DEFAULT_SETTINGS
    mass = context.mass or settings.default_mass
    g = context.gravity or settings.default_gravity
    weight = mass * g

    forces: List[ForceData] = [
        ForceData(name="weight", type="weight", magnitude=weight, angle=-90, symbol="W"),
        ForceData(name="normal", type="normal", magnitude=weight, angle=90, symbol="N"),
    ]

    mu = context.friction_coefficient
    if mu is not None or _mentions_friction(question_text):
        mu = mu if mu is not None else settings.default_friction_coefficient
        forces.append(ForceData(
            name="friction",
            type="friction",
            magnitude=_round1(mu * weight),
            angle=180,
            symbol="f",
            subscript="k",
        ))

    if context.tension:
        forces.append(ForceData(name="tension", type="tension", magnitude=context.tension, angle=0, symbol="T"))
    elif context.applied_force:
        forces.append(ForceData(
            name="applied",
            type="applied",
            magnitude=context.applied_force,
            angle=0,
            symbol="F",
            subscript="app",
        ))

    def describe(force: ForceData):
        if force.type == "friction":
            return (
                f"Friction opposes motion: f_k = {fmt(force.magnitude)}N",
                f"f = μN = {fmt(mu)} × {fmt(weight)} = {fmt(force.magnitude)}N",
            )
        if force.type == "tension":
            return (
                f"Tension pulls along the rope: T = {fmt(force.magnitude)}N",
                f"T = {fmt(force.magnitude)}N",
            )
        return (
            f"Applied force: {_label(force)} = {fmt(force.magnitude)}N",
            f"F_app = {fmt(force.magnitude)}N",
        )

    step_config = [
        StepConfigEntry(step=0, step_label="Start with the object", visible_forces=[]),
        StepConfigEntry(
            step=1,
            step_label=f"Weight acts straight down: W = {fmt(weight)}N",
            show_calculation=f"W = mg = {fmt(mass)} × {fmt(g)} = {fmt(weight)}N",
            visible_forces=["weight"],
            highlight_forces=["weight"],
        ),
        StepConfigEntry(
            step=2,
            step_label="Normal force balances weight vertically",
            show_calculation=f"N = W = {fmt(weight)}N",
            visible_forces=["weight", "normal"],
            highlight_forces=["normal"],
        ),
        *_reveal_steps(forces, 3, describe),
    ]

    data = ForceDiagramData(
        object=PhysicsObject(mass=mass),
        forces=forces,
        show_decomposition=False,
        friction_coefficient=context.friction_coefficient,
    )
    logger.debug("[fbd] mass=%s g=%s forces=%s", mass, g, [f.name for f in forces])
    return DiagramState.build(DiagramType.FBD, data, step_config)


# =============================================================================
# INCLINED PLANE
# =============================================================================

def build_inclined_plane_diagram(
    context: PhysicsContext,
    question_text: str,
    settings: Optional[DiagramSettings] = None,
) -> DiagramState:
    """
    Block on a slope. Normal force is mg·cos θ, the along-slope weight
    component mg·sin θ, both to one decimal. The last step shows the
    decomposition of weight into those components.
    """
    settings = settings or DEFAULT_SETTINGS
    mass = context.mass or settings.default_mass
    angle = context.angle or settings.default_incline_angle
    g = context.gravity or settings.default_gravity
    if not 0 < angle < 90:
        raise ExtractionError(f"Incline angle must be between 0 and 90 degrees, got {angle}")

    weight = mass * g
    radians = math.radians(angle)
    normal = _round1(weight * math.cos(radians))
    parallel = _round1(weight * math.sin(radians))

    forces: List[ForceData] = [
        ForceData(name="weight", type="weight", magnitude=weight, angle=-90, symbol="W"),
        ForceData(name="normal", type="normal", magnitude=normal, angle=90 - angle, symbol="N"),
    ]

    mu = context.friction_coefficient
    if mu is not None or _mentions_friction(question_text):
        mu = mu if mu is not None else settings.default_friction_coefficient
        forces.append(ForceData(
            name="friction",
            type="friction",
            magnitude=_round1(mu * normal),
            angle=180 - angle,
            symbol="f",
            subscript="k",
        ))

    if context.tension:
        forces.append(ForceData(name="tension", type="tension", magnitude=context.tension, angle=angle, symbol="T"))
    elif context.applied_force:
        forces.append(ForceData(
            name="applied",
            type="applied",
            magnitude=context.applied_force,
            angle=angle,
            symbol="F",
            subscript="app",
        ))

    def describe(force: ForceData):
        if force.type == "friction":
            return (
                f"Friction acts up the slope: f = {fmt(force.magnitude)}N",
                f"f = μN = {fmt(mu)} × {fmt(normal)} = {fmt(force.magnitude)}N",
            )
        return (
            f"{'Tension' if force.type == 'tension' else 'Applied force'} along the slope: "
            f"{_label(force)} = {fmt(force.magnitude)}N",
            f"{force.symbol} = {fmt(force.magnitude)}N",
        )

    step_config = [
        StepConfigEntry(step=0, step_label=f"Object on a {fmt(angle)}° incline", visible_forces=[]),
        StepConfigEntry(
            step=1,
            step_label=f"Weight points straight down: W = {fmt(weight)}N",
            show_calculation=f"W = mg = {fmt(mass)} × {fmt(g)} = {fmt(weight)}N",
            visible_forces=["weight"],
            highlight_forces=["weight"],
        ),
        StepConfigEntry(
            step=2,
            step_label=f"Normal force is perpendicular to the surface: N = {fmt(normal)}N",
            show_calculation=f"N = mg·cos({fmt(angle)}°) = {fmt(weight)} × {math.cos(radians):.3f} = {fmt(normal)}N",
            visible_forces=["weight", "normal"],
            highlight_forces=["normal"],
        ),
        *_reveal_steps(forces, 3, describe),
    ]
    step_config.append(StepConfigEntry(
        step=len(step_config),
        step_label=f"Weight component down the slope: W∥ = {fmt(parallel)}N",
        show_calculation=(
            f"W∥ = mg·sin({fmt(angle)}°) = {fmt(weight)} × {math.sin(radians):.3f} = {fmt(parallel)}N"
        ),
        visible_forces=[f.name for f in forces],
        show_components=True,
    ))

    data = ForceDiagramData(
        object=PhysicsObject(mass=mass),
        forces=forces,
        show_decomposition=True,
        angle=angle,
        friction_coefficient=context.friction_coefficient,
    )
    logger.debug("[inclined_plane] mass=%s angle=%s N=%s W_par=%s", mass, angle, normal, parallel)
    return DiagramState.build(DiagramType.INCLINED_PLANE, data, step_config)


# =============================================================================
# PROJECTILE
# =============================================================================

def build_projectile_diagram(
    launch: ProjectileLaunch,
    question_text: str,
    settings: Optional[DiagramSettings] = None,
) -> DiagramState:
    """
    Launch from height h with speed v at angle θ, no air resistance.

    The trajectory is sampled at evenly spaced times between launch and
    landing; the final step reports the range.
    """
    settings = settings or DEFAULT_SETTINGS
    speed = launch.speed or settings.default_launch_speed
    angle = launch.angle if launch.angle is not None else settings.default_launch_angle
    height = launch.height or 0.0
    g = launch.gravity or settings.default_gravity

    if not 0 <= angle <= 90:
        raise ExtractionError(f"Launch angle must be between 0 and 90 degrees, got {angle}")
    if angle == 0 and height == 0:
        raise ExtractionError("A horizontal launch from ground level never leaves the ground")

    radians = math.radians(angle)
    v0x = speed * math.cos(radians)
    v0y = speed * math.sin(radians)
    peak_time = v0y / g
    max_height = height + v0y ** 2 / (2 * g)
    time_of_flight = (v0y + math.sqrt(v0y ** 2 + 2 * g * height)) / g
    horizontal_range = v0x * time_of_flight

    times = np.linspace(0.0, time_of_flight, max(2, settings.trajectory_samples))
    xs = v0x * times
    ys = np.clip(height + v0y * times - 0.5 * g * times ** 2, 0.0, None)
    trajectory = [Point(x=round(float(x), 2), y=round(float(y), 2)) for x, y in zip(xs, ys)]

    data = ProjectileData(
        initial_speed=speed,
        launch_angle=angle,
        gravity=g,
        v0x=round(v0x, 2),
        v0y=round(v0y, 2),
        peak_time=round(peak_time, 2),
        time_of_flight=round(time_of_flight, 2),
        max_height=round(max_height, 2),
        range=round(horizontal_range, 2),
        trajectory=trajectory,
    )

    launch_label = f"Launch at {fmt(speed)} m/s, {fmt(angle)}° above horizontal"
    if height:
        launch_label += f" from {fmt(height)} m up"

    flight_calculation = (
        f"t = 2v₀y/g = 2 × {fmt(v0y)} / {fmt(g)} = {fmt(time_of_flight)}s"
        if not height else
        f"t = (v₀y + √(v₀y² + 2gh))/g = {fmt(time_of_flight)}s"
    )

    step_config = [
        StepConfigEntry(step=0, step_label=launch_label, visible_elements=["launcher", "velocity"]),
        StepConfigEntry(
            step=1,
            step_label="Split the launch velocity into components",
            show_calculation=(
                f"v₀x = {fmt(speed)}·cos({fmt(angle)}°) = {fmt(v0x)} m/s, "
                f"v₀y = {fmt(speed)}·sin({fmt(angle)}°) = {fmt(v0y)} m/s"
            ),
            visible_elements=["launcher", "velocity", "components"],
            highlight_elements=["components"],
        ),
        StepConfigEntry(
            step=2,
            step_label=f"Highest point after {fmt(peak_time)}s",
            show_calculation=f"H = h + v₀y²/2g = {fmt(height)} + {fmt(v0y)}² / {fmt(2 * g)} = {fmt(max_height)} m",
            visible_elements=["launcher", "velocity", "components", "peak"],
            highlight_elements=["peak"],
        ),
        StepConfigEntry(
            step=3,
            step_label=f"Time in the air: {fmt(time_of_flight)}s",
            show_calculation=flight_calculation,
            visible_elements=["launcher", "components", "peak", "trajectory"],
            highlight_elements=["trajectory"],
        ),
        StepConfigEntry(
            step=4,
            step_label=f"Horizontal range: {fmt(horizontal_range)} m",
            show_calculation=f"R = v₀x·t = {fmt(v0x)} × {fmt(time_of_flight)} = {fmt(horizontal_range)} m",
            visible_elements=["launcher", "components", "peak", "trajectory", "range"],
            highlight_elements=["range"],
        ),
    ]
    logger.debug("[projectile] v=%s angle=%s h=%s range=%.2f", speed, angle, height, horizontal_range)
    return DiagramState.build(DiagramType.PROJECTILE, data, step_config)
