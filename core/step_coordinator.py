"""
step_coordinator.py

Decides which diagram a conversational turn shows.

The caller passes the previous turn's diagram in explicitly; nothing is
remembered between calls. Each turn resolves in priority order:

1. a valid diagram supplied by the dialogue service (authoritative, even if it
   moves backwards; the regression is logged and reported),
2. the previous diagram advanced by one step (a finished one falls through,
   and is never rebuilt from scratch by step 4),
3. a long-division layout rescued from ASCII art in the reply text,
4. a fresh diagram built from the question analysis.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from pydantic import ValidationError

from core.pattern_extractor import extract_bracket_division, extract_division_numbers
from core.settings import DiagramSettings
from formatting.text_cleaner import (
    clean_problem_text,
    excerpt,
    find_ascii_fragments,
    has_bracket_notation,
    strip_fragments,
)
from generators.diagram_generator import generate_diagram_for_problem
from generators.math_builders import build_long_division_diagram
from schemas.diagram import DiagramState, DiagramType, QuestionAnalysis
from validators.state_validator import validate_diagram

logger = logging.getLogger(__name__)


class EvolutionPhase(str, Enum):
    NO_DIAGRAM = "no_diagram"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"


@dataclass(frozen=True)
class EvolutionState:
    phase: EvolutionPhase
    step: Optional[int] = None
    total: Optional[int] = None


@dataclass(frozen=True)
class ContinuationInstruction:
    """What to show next when the previous diagram carries on."""

    next_step: int
    is_complete: bool
    should_emit: bool
    diagram: Optional[DiagramState] = None


class TurnSource(str, Enum):
    INCOMING = "incoming"
    CONTINUED = "continued"
    RESCUED = "rescued"
    GENERATED = "generated"
    NONE = "none"


@dataclass(frozen=True)
class TurnResolution:
    diagram: Optional[DiagramState]
    message: str
    strip_ascii: bool = False
    source: TurnSource = TurnSource.NONE
    regressed: bool = False


@dataclass(frozen=True)
class RescueResult:
    diagram: DiagramState
    message: str


def evolution_state(previous: Optional[DiagramState]) -> EvolutionState:
    if previous is None:
        return EvolutionState(EvolutionPhase.NO_DIAGRAM)
    if previous.visible_step >= previous.total_steps - 1:
        return EvolutionState(EvolutionPhase.COMPLETE, step=previous.total_steps - 1, total=previous.total_steps)
    return EvolutionState(EvolutionPhase.IN_PROGRESS, step=previous.visible_step, total=previous.total_steps)


def _next_turn(previous: Optional[DiagramState]) -> int:
    if previous is None or previous.conversation_turn is None:
        return 0 if previous is None else 1
    return previous.conversation_turn + 1


def continue_diagram(previous: Optional[DiagramState], turn: Optional[int] = None) -> ContinuationInstruction:
    """
    Advance `previous` by one step. A finished diagram stays on its last step
    and is not re-emitted.
    """
    state = evolution_state(previous)
    if state.phase == EvolutionPhase.NO_DIAGRAM:
        return ContinuationInstruction(next_step=0, is_complete=False, should_emit=False)

    if state.phase == EvolutionPhase.COMPLETE:
        return ContinuationInstruction(
            next_step=state.step,
            is_complete=True,
            should_emit=False,
            diagram=previous,
        )

    next_step = state.step + 1
    advanced = previous.with_step(next_step, turn if turn is not None else _next_turn(previous))
    return ContinuationInstruction(
        next_step=next_step,
        is_complete=next_step == state.total - 1,
        should_emit=True,
        diagram=advanced,
    )


def rescue_from_message(message: str, settings: Optional[DiagramSettings] = None) -> Optional[RescueResult]:
    """
    Rebuild a long-division diagram from ASCII art in `message`.

    The operands are re-extracted and the division re-simulated, so the rescued
    diagram never inherits arithmetic slips from the hand-drawn layout. The
    drawn fragments are stripped from the message only when the rescue works.
    """
    fragments = find_ascii_fragments(message)
    if not fragments and not has_bracket_notation(message):
        return None

    operands = extract_bracket_division(message) or extract_division_numbers(clean_problem_text(message))
    if operands is None:
        logger.info("[rescue] ASCII layout found but no operands in %r", excerpt(message))
        return None

    try:
        diagram = build_long_division_diagram(operands, message, settings)
    except (ValueError, ValidationError) as exc:
        logger.warning("[rescue] Could not rebuild %s ÷ %s: %s", operands.dividend, operands.divisor, exc)
        return None

    diagram = validate_diagram(diagram, DiagramType.LONG_DIVISION)
    if diagram is None:
        return None
    logger.info("[rescue] Rebuilt %s ÷ %s from ASCII layout", operands.dividend, operands.divisor)
    return RescueResult(diagram=diagram, message=strip_fragments(message, fragments))


def _restarts(previous: Optional[DiagramState], diagram: DiagramState) -> bool:
    return previous is not None and previous.type == diagram.type and previous.data == diagram.data


def resolve_turn(
    previous: Optional[DiagramState],
    incoming: Optional[Any],
    message: str,
    analysis: Optional[QuestionAnalysis] = None,
    settings: Optional[DiagramSettings] = None,
) -> TurnResolution:
    turn = _next_turn(previous)

    if incoming is not None:
        diagram = validate_diagram(incoming)
        if diagram is not None:
            regressed = (
                previous is not None
                and previous.type == diagram.type
                and diagram.visible_step < previous.visible_step
            )
            if regressed:
                logger.warning(
                    "[resolve_turn] Incoming %s diagram moved back from step %d to %d",
                    diagram.type.value, previous.visible_step, diagram.visible_step,
                )
            if diagram.conversation_turn is None:
                diagram = diagram.with_step(diagram.visible_step, turn)
            return TurnResolution(
                diagram=diagram,
                message=message,
                source=TurnSource.INCOMING,
                regressed=regressed,
            )
        logger.warning("[resolve_turn] Ignoring invalid incoming diagram")

    if previous is not None:
        continuation = continue_diagram(previous, turn)
        if continuation.should_emit:
            return TurnResolution(diagram=continuation.diagram, message=message, source=TurnSource.CONTINUED)
        logger.info("[resolve_turn] %s diagram already complete", previous.type.value)

    rescued = rescue_from_message(message, settings)
    if rescued is not None:
        return TurnResolution(
            diagram=rescued.diagram.with_step(0, turn),
            message=rescued.message,
            strip_ascii=True,
            source=TurnSource.RESCUED,
        )

    if analysis is not None:
        diagram = generate_diagram_for_problem(analysis, settings)
        if diagram is not None and _restarts(previous, diagram):
            logger.info("[resolve_turn] Not restarting the finished %s diagram", diagram.type.value)
            diagram = None
        if diagram is not None:
            return TurnResolution(
                diagram=diagram.with_step(0, turn),
                message=message,
                source=TurnSource.GENERATED,
            )

    return TurnResolution(diagram=None, message=message)
