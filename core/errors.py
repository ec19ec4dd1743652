"""
errors.py

Exception types for the strict entry points. The lenient pipeline
(`generate_diagram_for_problem`, `validate_diagram`, the step coordinator)
catches these and degrades to "no diagram" plus a log line.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class DiagramError(Exception):
    """Base class for diagram engine failures."""

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}


class ExtractionError(DiagramError, ValueError):
    """Raised when operands are present but unusable (e.g. a zero divisor)."""


class DiagramValidationError(DiagramError, ValueError):
    """Raised by strict validation when a diagram cannot be repaired."""
