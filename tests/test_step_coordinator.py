"""
Tests for core.step_coordinator.

Test Coverage:
- Evolution state of a diagram
- Advancing one step per turn and stopping at the last step
- Rescuing long division from ASCII layouts in a reply
- resolve_turn priority: incoming > continued > rescued > generated
- Regression reporting for incoming diagrams
- A finished previous diagram falls through to rescue and generation
"""

from core.step_coordinator import (
    EvolutionPhase,
    TurnSource,
    continue_diagram,
    evolution_state,
    rescue_from_message,
    resolve_turn,
)
from schemas.diagram import DiagramType, Subject

CODE_BLOCK_REPLY = (
    "Let's set it up:\n"
    "\n"
    "```\n"
    "    0906\n"
    "  ______\n"
    "8 | 7248\n"
    "```\n"
    "\n"
    "What goes first?"
)

PLAIN_LAYOUT_REPLY = (
    "Here is the layout:\n"
    "   906\n"
    "  ____\n"
    "8)7248\n"
    "Now try it."
)


# =============================================================================
# EVOLUTION
# =============================================================================

def test_evolution_state_phases(fbd_diagram):
    assert evolution_state(None).phase == EvolutionPhase.NO_DIAGRAM

    state = evolution_state(fbd_diagram)
    assert state.phase == EvolutionPhase.IN_PROGRESS
    assert (state.step, state.total) == (0, 3)

    assert evolution_state(fbd_diagram.with_step(2)).phase == EvolutionPhase.COMPLETE


def test_continue_advances_one_step(fbd_diagram):
    instruction = continue_diagram(fbd_diagram)

    assert instruction.next_step == 1
    assert instruction.is_complete is False
    assert instruction.should_emit is True
    assert instruction.diagram.visible_step == 1
    assert instruction.diagram.conversation_turn == 1
    assert fbd_diagram.visible_step == 0


def test_continue_reaches_last_step(fbd_diagram):
    instruction = continue_diagram(fbd_diagram.with_step(1, 4))

    assert instruction.next_step == 2
    assert instruction.is_complete is True
    assert instruction.diagram.conversation_turn == 5


def test_complete_diagram_is_not_re_emitted(fbd_diagram):
    finished = fbd_diagram.with_step(2)
    instruction = continue_diagram(finished)

    assert instruction.is_complete is True
    assert instruction.should_emit is False
    assert instruction.diagram == finished


def test_continue_without_diagram():
    instruction = continue_diagram(None)

    assert instruction.should_emit is False
    assert instruction.diagram is None


# =============================================================================
# RESCUE
# =============================================================================

def test_rescue_from_code_block():
    rescued = rescue_from_message(CODE_BLOCK_REPLY)

    assert rescued.diagram.type == DiagramType.LONG_DIVISION
    assert rescued.diagram.data["dividend"] == 7248
    assert rescued.diagram.data["divisor"] == 8
    assert rescued.message == "Let's set it up:\n\nWhat goes first?"


def test_rescue_recomputes_instead_of_trusting_layout():
    """The drawn quotient is ignored; the trace comes from the operands."""
    reply = "```\n   905\n  ____\n8 | 7248\n```"
    rescued = rescue_from_message(reply)

    assert rescued.diagram.data["quotient"] == 906
    assert rescued.message == ""


def test_rescue_from_plain_layout():
    rescued = rescue_from_message(PLAIN_LAYOUT_REPLY)

    assert rescued.diagram.data["quotient"] == 906
    assert rescued.message == "Here is the layout:\nNow try it."


def test_rescue_leaves_plain_text_alone():
    assert rescue_from_message("Just a plain reply with no drawing.") is None


def test_rescue_without_operands_returns_none():
    assert rescue_from_message("Look:\n  ____\n  72\n  ---\nKeep going") is None


# =============================================================================
# RESOLVE TURN
# =============================================================================

def test_incoming_diagram_wins(fbd_diagram, division_diagram):
    resolution = resolve_turn(division_diagram, fbd_diagram.to_payload(), "Next, the forces.")

    assert resolution.source == TurnSource.INCOMING
    assert resolution.diagram.type == DiagramType.FBD
    assert resolution.regressed is False
    assert resolution.message == "Next, the forces."


def test_incoming_regression_is_reported(fbd_diagram):
    previous = fbd_diagram.with_step(2)
    resolution = resolve_turn(previous, fbd_diagram.to_payload(), "")

    assert resolution.source == TurnSource.INCOMING
    assert resolution.regressed is True
    assert resolution.diagram.visible_step == 0
    assert resolution.diagram.conversation_turn == 1


def test_invalid_incoming_falls_back_to_continuation(fbd_diagram):
    resolution = resolve_turn(fbd_diagram, {"type": "fbd"}, "")

    assert resolution.source == TurnSource.CONTINUED
    assert resolution.diagram.visible_step == 1


def test_previous_diagram_continues_before_rescue(fbd_diagram):
    resolution = resolve_turn(fbd_diagram, None, CODE_BLOCK_REPLY)

    assert resolution.source == TurnSource.CONTINUED
    assert resolution.diagram.type == DiagramType.FBD
    assert resolution.message == CODE_BLOCK_REPLY
    assert resolution.strip_ascii is False


def test_rescue_before_generation(make_analysis):
    analysis = make_analysis("A 5 kg block on a 30° incline", subject=Subject.SCIENCE)
    resolution = resolve_turn(None, None, CODE_BLOCK_REPLY, analysis)

    assert resolution.source == TurnSource.RESCUED
    assert resolution.strip_ascii is True
    assert resolution.diagram.type == DiagramType.LONG_DIVISION
    assert resolution.diagram.conversation_turn == 0
    assert "```" not in resolution.message


def test_generation_when_nothing_else_applies(make_analysis):
    analysis = make_analysis("Divide 7,248 by 8", subject=Subject.MATH)
    resolution = resolve_turn(None, None, "Sure, let's work through it.", analysis)

    assert resolution.source == TurnSource.GENERATED
    assert resolution.diagram.type == DiagramType.LONG_DIVISION
    assert resolution.diagram.visible_step == 0
    assert resolution.message == "Sure, let's work through it."


def test_no_diagram(make_analysis):
    analysis = make_analysis("Who wrote Hamlet?", subject=Subject.LANGUAGE)
    resolution = resolve_turn(None, None, "Shakespeare did.", analysis)

    assert resolution.source == TurnSource.NONE
    assert resolution.diagram is None
    assert resolution.message == "Shakespeare did."


def test_finished_diagram_falls_through_to_rescue(fbd_diagram):
    finished = fbd_diagram.with_step(2, conversation_turn=3)
    resolution = resolve_turn(finished, None, CODE_BLOCK_REPLY)

    assert resolution.source == TurnSource.RESCUED
    assert resolution.strip_ascii is True
    assert resolution.diagram.type == DiagramType.LONG_DIVISION
    assert resolution.diagram.conversation_turn == 4
    assert "```" not in resolution.message


def test_finished_diagram_falls_through_to_new_problem(fbd_diagram, make_analysis):
    finished = fbd_diagram.with_step(2, conversation_turn=3)
    analysis = make_analysis("Divide 7,248 by 8", subject=Subject.MATH)
    resolution = resolve_turn(finished, None, "Next problem.", analysis)

    assert resolution.source == TurnSource.GENERATED
    assert resolution.diagram.type == DiagramType.LONG_DIVISION
    assert resolution.diagram.conversation_turn == 4


def test_finished_diagram_is_not_restarted(fbd_diagram, make_analysis):
    finished = fbd_diagram.with_step(2, conversation_turn=3)
    analysis = make_analysis("A 5 kg block rests on a table", subject=Subject.SCIENCE)
    resolution = resolve_turn(finished, None, "Well done!", analysis)

    assert resolution.source == TurnSource.NONE
    assert resolution.diagram is None
    assert resolution.message == "Well done!"
