# src/circuitsim_core/circuit_builder.py

"""
Defines the CircuitBuilder, which turns a parsed snapshot (the IR produced by
the SnapshotParser) into the read-only `CircuitSnapshot` the simulation reads.

Its responsibilities are:

1.  **Variant Resolution:** mapping an editor entry's `type` plus optional
    `variant` (e.g. `switch` + `DPDT`) onto exactly one registered component
    class.

2.  **Component Instantiation:** building each component through its
    `from_raw` constructor, which resolves unit-bearing parameter values and
    validates discrete state.

3.  **Top-Level Error Handling:** catching any `DiagnosableError` raised on
    the way and re-raising it as a single `CircuitBuildError` carrying the
    formatted report.

Wire endpoints are carried over untouched. Dangling endpoints are topology
problems and are reported by the Net Builder, not here.
"""

import logging
from typing import Dict, Optional

from .components.base import COMPONENT_REGISTRY, ComponentBase
from .components.exceptions import ComponentError
from .data_structures import CircuitSnapshot, PinRef, Wire
from .parser.raw_data import ParsedComponentData, ParsedSnapshot
from .errors import CircuitBuildError, DiagnosableError, format_diagnostic_report


logger = logging.getLogger(__name__)

#: (editor type, variant) -> registered component type.
VARIANT_TYPES: Dict[tuple, str] = {
    ("switch", "SPST"): "switch",
    ("switch", "SPDT"): "switch_spdt",
    ("switch", "DPST"): "switch_dpst",
    ("switch", "DPDT"): "switch_dpdt",
    ("push_button", "NO"): "push_button",
    ("push_button", "NC"): "push_button_nc",
}


def resolve_component_type(component_type: str, variant: Optional[str]) -> str:
    """The registered type string for an editor type and optional variant."""
    if variant:
        return VARIANT_TYPES.get((component_type, variant.upper()), component_type)
    return component_type


class CircuitBuilder:
    """Synthesizes a `CircuitSnapshot` from a `ParsedSnapshot`."""

    def build(self, parsed: ParsedSnapshot) -> CircuitSnapshot:
        """
        The build-time entry point.

        Raises:
            CircuitBuildError: for any invalid component definition, with the
                                diagnostic report as its message.
        """
        logger.info(f"--- Starting circuit snapshot synthesis for '{parsed.name}' ---")
        try:
            components: Dict[str, ComponentBase] = {}
            for component_ir in parsed.components:
                components[component_ir.instance_id] = self._build_component(component_ir)

            wires = [
                Wire(
                    wire_id=wire_ir.wire_id,
                    start=PinRef(wire_ir.start_component, wire_ir.start_pin),
                    end=PinRef(wire_ir.end_component, wire_ir.end_pin),
                )
                for wire_ir in parsed.wires
            ]
            snapshot = CircuitSnapshot(name=parsed.name, components=components, wires=wires)
            logger.info(
                f"--- Snapshot '{snapshot.name}' built: {len(components)} component(s), {len(wires)} wire(s). ---"
            )
            return snapshot

        except DiagnosableError as e:
            raise CircuitBuildError(e.get_diagnostic_report()) from e

        except Exception as e:
            report = format_diagnostic_report(
                error_type=f"An Unexpected Error Occurred ({type(e).__name__})",
                details=f"The circuit builder encountered an unexpected internal error: {str(e)}",
                suggestion="This may indicate a bug in CircuitSim Core. Please review the traceback.",
                context={'source_file': parsed.source_path}
            )
            raise CircuitBuildError(report) from e

    def _build_component(self, component_ir: ParsedComponentData) -> ComponentBase:
        type_str = resolve_component_type(component_ir.component_type, component_ir.variant)
        component_class = COMPONENT_REGISTRY.get(type_str)
        if component_class is None:
            raise ComponentError(
                component_id=component_ir.instance_id,
                details=(
                    f"Unknown component type '{component_ir.component_type}'"
                    + (f" (variant '{component_ir.variant}')" if component_ir.variant else "")
                    + f". Known types: {sorted(COMPONENT_REGISTRY)}."
                ),
            )
        logger.debug(f"Building '{component_ir.instance_id}' as {component_class.__name__}.")
        return component_class.from_raw(
            component_ir.instance_id,
            component_ir.raw_parameters_dict,
            component_ir.raw_state_dict,
            component_ir.position,
        )
