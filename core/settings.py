"""
settings.py

Runtime configuration for the diagram engine. Values come from the process
environment (optionally seeded from a `.env` file) so that request handlers can
tune builder defaults without code changes. Nothing here is mutated after load;
callers pass a `DiagramSettings` snapshot into builders explicitly.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

ENV_PREFIX = "DIAGRAM_"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(ENV_PREFIX + name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logging.getLogger(__name__).warning(
            "[settings] Ignoring non-numeric %s%s=%r", ENV_PREFIX, name, raw
        )
        return default


def _env_int(name: str, default: int) -> int:
    return int(_env_float(name, float(default)))


@dataclass(frozen=True)
class DiagramSettings:
    """
    Defaults used by the builders when a problem statement leaves a value out.

    A partially extracted problem still gets a diagram: missing quantities are
    filled from here rather than failing the whole build.
    """

    default_gravity: float = 10.0
    default_mass: float = 5.0
    default_incline_angle: float = 30.0
    default_friction_coefficient: float = 0.3
    default_launch_speed: float = 20.0
    default_launch_angle: float = 45.0
    max_dividend_digits: int = 12
    trajectory_samples: int = 12
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "DiagramSettings":
        """Build settings from `DIAGRAM_*` environment variables."""
        base = cls()
        return cls(
            default_gravity=_env_float("DEFAULT_GRAVITY", base.default_gravity),
            default_mass=_env_float("DEFAULT_MASS", base.default_mass),
            default_incline_angle=_env_float("DEFAULT_INCLINE_ANGLE", base.default_incline_angle),
            default_friction_coefficient=_env_float(
                "DEFAULT_FRICTION_COEFFICIENT", base.default_friction_coefficient
            ),
            default_launch_speed=_env_float("DEFAULT_LAUNCH_SPEED", base.default_launch_speed),
            default_launch_angle=_env_float("DEFAULT_LAUNCH_ANGLE", base.default_launch_angle),
            max_dividend_digits=_env_int("MAX_DIVIDEND_DIGITS", base.max_dividend_digits),
            trajectory_samples=_env_int("TRAJECTORY_SAMPLES", base.trajectory_samples),
            log_level=os.getenv(ENV_PREFIX + "LOG_LEVEL", base.log_level).upper(),
        )


DEFAULT_SETTINGS = DiagramSettings()


def configure_logging(settings: Optional[DiagramSettings] = None) -> None:
    """Install a basic root handler. Library code never calls this itself."""
    settings = settings or DiagramSettings.from_env()
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)
