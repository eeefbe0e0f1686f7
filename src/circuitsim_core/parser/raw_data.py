from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

# The classes in this module are the contract between the SnapshotParser and
# the CircuitBuilder: validated editor data, still carrying raw (unit-bearing)
# parameter values.

@dataclass(frozen=True)
class ParsedComponentData:
    """IR for one component entry of the editor snapshot."""
    instance_id: str
    component_type: str
    variant: Optional[str]
    raw_parameters_dict: Dict[str, Any]
    raw_state_dict: Dict[str, Any]
    position: Optional[Tuple[float, float]] = None
    source_path: Optional[Path] = None

@dataclass(frozen=True)
class ParsedWireData:
    """IR for one wire. Endpoints are not checked against the components here."""
    wire_id: str
    start_component: str
    start_pin: str
    end_component: str
    end_pin: str

@dataclass(frozen=True)
class ParsedSnapshot:
    """
    Top-level IR node for one snapshot, from a file or an in-memory mapping.
    `raw_analysis` and `raw_solver` are passed through for the config parsers.
    """
    name: str
    components: List[ParsedComponentData]
    wires: List[ParsedWireData]
    source_path: Optional[Path] = None
    raw_analysis: Optional[Dict[str, Any]] = None
    raw_solver: Dict[str, Any] = field(default_factory=dict)
