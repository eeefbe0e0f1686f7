# src/circuitsim_core/components/exceptions.py
"""
Defines the diagnosable exception raised while turning raw editor values into a
validated component instance.
"""
from dataclasses import dataclass
from typing import Optional

from ..errors import DiagnosableError, format_diagnostic_report


@dataclass()
class ComponentError(DiagnosableError):
    """
    The single exception type for invalid component definitions: unknown
    parameter or state names, values with the wrong unit, values outside the
    physically meaningful range.
    """
    component_id: str
    details: str
    parameter: Optional[str] = None

    def __str__(self):
        return f"Component '{self.component_id}': {self.details}"

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Invalid Component Definition",
            details=self.details,
            suggestion="Check the component's parameters and state against its type (e.g., units like '220 ohm' or '1 uF', non-negative values, allowed state values).",
            context={'component_id': self.component_id, 'parameter': self.parameter}
        )
