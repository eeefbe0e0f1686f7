# src/circuitsim_core/errors.py
import logging
from abc import ABCMeta, abstractmethod
from typing import Any, Dict

logger = logging.getLogger(__name__)

# --- User-Facing Exception Hierarchy ---

class CircuitSimError(Exception):
    """Base class for all custom, user-facing errors in CircuitSim Core."""
    pass

class CircuitBuildError(CircuitSimError):
    """
    Raised when turning an editor snapshot into simulation objects fails, from
    schema validation to parameter resolution. The message is a pre-formatted,
    user-friendly diagnostic report.
    """
    pass

class SimulationRunError(CircuitSimError):
    """
    Raised when a solve cannot even be attempted, e.g. because the caller passed
    an invalid configuration. Singular or open circuits are NOT errors; they are
    reported through the `singular` flag of the solve result.
    """
    pass


# --- Internal Diagnosable Base ---

class DiagnosableError(Exception, metaclass=ABCMeta):
    """
    Base class for internal exceptions that can describe themselves.

    The public entry points catch these and re-raise them as `CircuitBuildError`
    or `SimulationRunError` carrying the report. A subclass that does not
    implement `get_diagnostic_report` cannot be instantiated.
    """

    @abstractmethod
    def get_diagnostic_report(self) -> str:
        """Returns the complete multi-line report for this error."""


# --- Report Formatting ---

# Context keys rendered in the header, in display order.
_CONTEXT_LABELS = (
    ("component_id", "Component"),
    ("parameter", "Parameter"),
    ("source_file", "Source File"),
    ("user_input", "User Input"),
)
_RULE_WIDTH = 75


def _indented(text: str):
    return [f"  {line}" for line in text.splitlines()]


def format_diagnostic_report(
    error_type: str,
    details: str,
    suggestion: str,
    context: Dict[str, Any]
) -> str:
    """
    Formats the final multi-line report string so that every user-facing
    diagnostic has the same look.

    Args:
        error_type: The high-level category of the error (e.g., "Schema Validation Error").
        details: A detailed, potentially multi-line description of the problem.
        suggestion: Actionable advice for the user; omitted from the report when empty.
        context: Contextual information. Only the keys in `_CONTEXT_LABELS` are
                 shown, and only when they carry a value.

    Returns:
        A formatted report string ready for display.
    """
    title = " CircuitSim Core: Actionable Diagnostic Report "
    lines = ["\n", title.center(_RULE_WIDTH, "="), f"{'Error Type:':<16}{error_type}"]
    for key, label in _CONTEXT_LABELS:
        value = context.get(key)
        if not value:
            continue
        shown = f"'{value}'" if key == "user_input" else value
        lines.append(f"{label + ':':<16}{shown}")

    lines.append("\nDetails:")
    lines.extend(_indented(details))
    if suggestion:
        lines.append("\nSuggestion:")
        lines.extend(_indented(suggestion))
    lines.append("=" * _RULE_WIDTH)
    return "\n".join(lines)
