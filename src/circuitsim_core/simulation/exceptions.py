# src/circuitsim_core/simulation/exceptions.py
"""
Diagnosable exceptions of the simulation phase.

A singular or open circuit is NOT represented here: it is an expected outcome
and is reported through `SolveResult.singular`. These exceptions cover
contract violations found while assembling a system.
"""
from dataclasses import dataclass

from ..errors import DiagnosableError, format_diagnostic_report


@dataclass()
class MnaInputError(DiagnosableError):
    """
    Raised for structural errors found while stamping the MNA system, such as an
    element referencing a node outside the node space.
    """
    context: str
    details: str

    def __str__(self):
        return f"MNA input error in '{self.context}': {self.details}"

    def get_diagnostic_report(self) -> str:
        """Generates the diagnostic report for an MNA input error."""
        return format_diagnostic_report(
            error_type="MNA Input Error",
            details=self.details,
            suggestion="This indicates an inconsistent netlist. Rebuild the netlist from the snapshot before solving.",
            context={'component_id': self.context}
        )
