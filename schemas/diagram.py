from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Immutable model that serializes to the camelCase wire format."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# =============================================================================
# INPUT SCHEMAS
# =============================================================================

class Subject(str, Enum):
    MATH = "math"
    SCIENCE = "science"
    HISTORY = "history"
    LANGUAGE = "language"
    OTHER = "other"


class QuestionAnalysis(CamelModel):
    """Upstream description of a homework problem. Read-only here."""
    question_text: str = Field(..., description="Raw student-facing problem text")
    topic: str = Field("", description="Topic label from the question analysis step")
    subject: Subject = Field(Subject.OTHER, description="Coarse subject classification")


class DiagramType(str, Enum):
    """Diagram categories the renderer knows how to draw."""
    # Physics
    FBD = "fbd"
    INCLINED_PLANE = "inclined_plane"
    PROJECTILE = "projectile"

    # Math
    LONG_DIVISION = "long_division"
    EQUATION = "equation"
    FRACTION = "fraction"
    COORDINATE_PLANE = "coordinate_plane"
    BAR_MODEL = "bar_model"
    TRIANGLE = "triangle"
    NUMBER_LINE = "number_line"

    # Chemistry
    ATOM = "atom"
    MOLECULE = "molecule"

    # Biology
    CELL = "cell"
    DNA = "dna"

    # Renderer-only types the dialogue service may emit. No builder produces
    # these, so they are only checked structurally.
    PULLEY = "pulley"
    CIRCUIT = "circuit"
    WAVE = "wave"
    OPTICS = "optics"
    MOTION = "motion"
    CIRCLE = "circle"
    AREA_MODEL = "area_model"
    REACTION = "reaction"
    ENERGY_DIAGRAM = "energy_diagram"
    SYSTEM = "system"
    PROCESS_FLOW = "process_flow"


NUMERIC_ANSWER_TYPES = frozenset({
    DiagramType.FBD,
    DiagramType.INCLINED_PLANE,
    DiagramType.PROJECTILE,
    DiagramType.LONG_DIVISION,
    DiagramType.EQUATION,
    DiagramType.FRACTION,
    DiagramType.BAR_MODEL,
    DiagramType.TRIANGLE,
})


# =============================================================================
# PHYSICS SCHEMAS
# =============================================================================

class PhysicsContext(CamelModel):
    mass: Optional[float] = None
    angle: Optional[float] = None
    applied_force: Optional[float] = None
    friction_coefficient: Optional[float] = None
    tension: Optional[float] = None
    gravity: float = 10.0


ForceType = Literal["weight", "normal", "friction", "tension", "applied", "spring"]


class ForceData(CamelModel):
    name: str
    type: ForceType
    magnitude: float = Field(..., ge=0)
    angle: float = Field(..., description="Degrees, 0 = rightward, counter-clockwise positive")
    symbol: str
    subscript: Optional[str] = None


class PhysicsObject(CamelModel):
    type: str = "block"
    label: str = "m"
    mass: float
    color: str = "#e0e7ff"


class ForceDiagramData(CamelModel):
    object: PhysicsObject
    forces: List[ForceData]
    show_decomposition: bool = False
    angle: Optional[float] = None
    friction_coefficient: Optional[float] = None

    @model_validator(mode="after")
    def _unique_force_names(self) -> "ForceDiagramData":
        names = [force.name for force in self.forces]
        if len(names) != len(set(names)):
            raise ValueError(f"Force names must be unique, got {names}")
        return self


class Point(CamelModel):
    x: float
    y: float
    label: Optional[str] = None


class ProjectileData(CamelModel):
    initial_speed: float
    launch_angle: float
    gravity: float
    v0x: float
    v0y: float
    peak_time: float
    time_of_flight: float
    max_height: float
    range: float
    trajectory: List[Point] = Field(default_factory=list)


# =============================================================================
# MATH SCHEMAS
# =============================================================================

LongDivisionStepType = Literal[
    "setup", "divide", "multiply", "subtract", "bring_down", "remainder", "complete"
]


class LongDivisionStep(CamelModel):
    step: int = Field(..., ge=0)
    type: LongDivisionStepType
    position: int = Field(..., ge=0, description="Dividend digit index this row aligns with")
    quotient_start_position: Optional[int] = None
    working_number: Optional[int] = None
    quotient_digit: Optional[int] = None
    product: Optional[int] = None
    difference: Optional[int] = None
    calculation: Optional[str] = None
    explanation: Optional[str] = None


class LongDivisionData(CamelModel):
    dividend: int = Field(..., ge=0)
    divisor: int = Field(..., gt=0)
    quotient: int
    remainder: int
    steps: List[LongDivisionStep]
    title: Optional[str] = None


class EquationStep(CamelModel):
    step: int
    left_side: str
    right_side: str
    operation: Literal["initial", "add", "subtract", "multiply", "divide", "simplify"]
    description: str
    calculation: Optional[str] = None


class EquationData(CamelModel):
    original_equation: str
    variable: str
    solution: str
    steps: List[EquationStep]
    show_balance_scale: bool = True


class FractionValue(CamelModel):
    numerator: int
    denominator: int = Field(..., gt=0)


class FractionStep(CamelModel):
    step: int
    type: Literal["initial", "find_lcd", "convert", "operate", "invert", "simplify"]
    fractions: List[FractionValue]
    lcd: Optional[int] = None
    result: Optional[FractionValue] = None
    description: str


class FractionData(CamelModel):
    operation_type: Literal["add", "subtract", "multiply", "divide"]
    fraction1: FractionValue
    fraction2: FractionValue
    result: FractionValue
    steps: List[FractionStep]
    show_pie_chart: bool = True


class LineSpec(CamelModel):
    slope: float
    intercept: float
    label: Optional[str] = None


class CurveSpec(CamelModel):
    expression: str
    samples: List[Point]


class CoordinatePlaneData(CamelModel):
    x_min: float
    x_max: float
    y_min: float
    y_max: float
    points: List[Point] = Field(default_factory=list)
    lines: List[LineSpec] = Field(default_factory=list)
    curves: List[CurveSpec] = Field(default_factory=list)

    @model_validator(mode="after")
    def _ordered_bounds(self) -> "CoordinatePlaneData":
        if self.x_min >= self.x_max or self.y_min >= self.y_max:
            raise ValueError("Coordinate plane bounds must satisfy min < max")
        return self


class BarSpec(CamelModel):
    label: str
    value: float
    unknown: bool = False


class BarModelData(CamelModel):
    comparison: Literal["more", "fewer", "times"]
    bars: List[BarSpec]
    difference: Optional[float] = None
    multiplier: Optional[float] = None
    total: float


class TriangleData(CamelModel):
    mode: Literal["angle_sum", "pythagorean"]
    vertices: List[Point]
    angles: List[Optional[float]] = Field(default_factory=list)
    sides: List[Optional[float]] = Field(default_factory=list)
    right_angle: bool = False
    unknown: Optional[str] = None


class NumberLineMark(CamelModel):
    value: float
    label: str


class NumberLineData(CamelModel):
    min: float
    max: float
    interval: float = Field(..., gt=0)
    marks: List[NumberLineMark]

    @model_validator(mode="after")
    def _ordered_range(self) -> "NumberLineData":
        if self.min >= self.max:
            raise ValueError("Number line requires min < max")
        return self


# =============================================================================
# CHEMISTRY / BIOLOGY SCHEMAS
# =============================================================================

class ElectronShell(CamelModel):
    n: int = Field(..., ge=1)
    electrons: int = Field(..., ge=0)
    max_electrons: int


class ElementInfo(CamelModel):
    atomic_number: int
    symbol: str
    name: str
    atomic_mass: float
    neutrons: int
    shells: List[ElectronShell]


class AtomData(CamelModel):
    element: ElementInfo
    electron_config: str
    valence_electrons: int


class MoleculeAtom(CamelModel):
    symbol: str
    position: Point
    lone_pairs: int = 0


class ChemicalBond(CamelModel):
    from_atom: int = Field(..., ge=0)
    to_atom: int = Field(..., ge=0)
    order: int = Field(1, ge=1, le=3)


class MoleculeData(CamelModel):
    name: str
    formula: str
    atoms: List[MoleculeAtom]
    bonds: List[ChemicalBond]
    geometry: str
    bond_angle: Optional[float] = None


class Organelle(CamelModel):
    type: str
    label: str
    function: str
    position: Point


class CellData(CamelModel):
    cell_type: Literal["animal", "plant", "bacteria"]
    organelles: List[Organelle]


class BasePair(CamelModel):
    left: Literal["A", "T", "G", "C"]
    right: Literal["A", "T", "G", "C"]
    position: int


class DNAData(CamelModel):
    sequence: str
    complement: str
    base_pairs: List[BasePair]
    display_mode: Literal["helix", "ladder"] = "ladder"


# =============================================================================
# DIAGRAM STATE
# =============================================================================

DATA_MODELS: Dict[DiagramType, Type[CamelModel]] = {
    DiagramType.FBD: ForceDiagramData,
    DiagramType.INCLINED_PLANE: ForceDiagramData,
    DiagramType.PROJECTILE: ProjectileData,
    DiagramType.LONG_DIVISION: LongDivisionData,
    DiagramType.EQUATION: EquationData,
    DiagramType.FRACTION: FractionData,
    DiagramType.COORDINATE_PLANE: CoordinatePlaneData,
    DiagramType.BAR_MODEL: BarModelData,
    DiagramType.TRIANGLE: TriangleData,
    DiagramType.NUMBER_LINE: NumberLineData,
    DiagramType.ATOM: AtomData,
    DiagramType.MOLECULE: MoleculeData,
    DiagramType.CELL: CellData,
    DiagramType.DNA: DNAData,
}


class StepConfigEntry(CamelModel):
    step: int = Field(..., ge=0)
    step_label: str
    show_calculation: Optional[str] = None
    visible_forces: Optional[List[str]] = None
    highlight_forces: Optional[List[str]] = None
    show_components: Optional[bool] = None
    visible_elements: Optional[List[str]] = None
    highlight_elements: Optional[List[str]] = None


class DiagramState(CamelModel):
    """
    What a single conversational turn exposes to the renderer.

    `step_config[i]` describes what becomes visible at `visible_step == i`.
    """

    type: DiagramType
    visible_step: int = Field(0, ge=0)
    total_steps: int = Field(..., ge=1)
    data: Dict[str, Any]
    step_config: List[StepConfigEntry] = Field(default_factory=list)
    evolution_mode: Optional[Literal["auto-advance"]] = None
    conversation_turn: Optional[int] = Field(None, ge=0)

    @model_validator(mode="after")
    def _step_in_range(self) -> "DiagramState":
        if self.visible_step >= self.total_steps:
            raise ValueError(
                f"visibleStep {self.visible_step} must be < totalSteps {self.total_steps}"
            )
        return self

    @classmethod
    def build(
        cls,
        diagram_type: DiagramType,
        payload: CamelModel,
        step_config: List[StepConfigEntry],
        *,
        evolution_mode: Optional[str] = "auto-advance",
    ) -> "DiagramState":
        """Assemble a fresh state at step 0 from a typed payload."""
        return cls(
            type=diagram_type,
            visible_step=0,
            total_steps=max(1, len(step_config)),
            data=payload.to_payload(),
            step_config=step_config,
            evolution_mode=evolution_mode,
        )

    def with_step(self, visible_step: int, conversation_turn: Optional[int] = None) -> "DiagramState":
        """Return a new state revealing `visible_step`; the receiver is untouched."""
        return self.model_validate({
            **self.to_payload(),
            "visibleStep": visible_step,
            "conversationTurn": conversation_turn,
        })

    @property
    def final_calculation(self) -> Optional[str]:
        if not self.step_config:
            return None
        return self.step_config[-1].show_calculation
