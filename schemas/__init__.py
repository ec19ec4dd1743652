"""
Wire models shared by the builders, the validator and the web layer. Every
model serializes to the camelCase JSON the renderer consumes.
"""

from .diagram import (
    DATA_MODELS,
    NUMERIC_ANSWER_TYPES,
    DiagramState,
    DiagramType,
    ForceData,
    LongDivisionStep,
    PhysicsContext,
    QuestionAnalysis,
    StepConfigEntry,
    Subject,
)

__all__ = [
    "DATA_MODELS",
    "NUMERIC_ANSWER_TYPES",
    "DiagramState",
    "DiagramType",
    "ForceData",
    "LongDivisionStep",
    "PhysicsContext",
    "QuestionAnalysis",
    "StepConfigEntry",
    "Subject",
]
