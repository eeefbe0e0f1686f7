# src/circuitsim_core/data_structures.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, TYPE_CHECKING

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from .components.base import ComponentBase

#: Separator between component id and pin id in a canonical pin key.
PIN_KEY_SEPARATOR = ":"


def pin_key(component_id: str, pin_id: str) -> str:
    """Builds the canonical `componentId:pinId` key used by the Net Builder."""
    return f"{component_id}{PIN_KEY_SEPARATOR}{pin_id}"


@dataclass(frozen=True)
class PinRef:
    """One end of a wire: a (component id, pin id) pair as the editor names it."""
    component_id: str
    pin_id: str

    @property
    def key(self) -> str:
        return pin_key(self.component_id, self.pin_id)


@dataclass(frozen=True)
class Wire:
    """
    A purely topological connection between two pins. Routing geometry from the
    editor is not carried; it has no electrical meaning.
    """
    wire_id: str
    start: PinRef
    end: PinRef


@dataclass(frozen=True)
class Net:
    """
    An equivalence class of pin keys sitting at one potential. The id is derived
    deterministically from the membership so it is stable across rebuilds.
    """
    net_id: str
    pin_keys: Tuple[str, ...]
    is_ground: bool = False

    @property
    def size(self) -> int:
        return len(self.pin_keys)


@dataclass(frozen=True)
class CircuitSnapshot:
    """
    Read-only input to one solve: the components (already validated, one tagged
    variant per kind) and the wires between their pins, in editor order.
    """
    name: str
    components: Dict[str, "ComponentBase"] = field(default_factory=dict)
    wires: List[Wire] = field(default_factory=list)

    def get_component(self, component_id: str) -> Optional["ComponentBase"]:
        return self.components.get(component_id)

    def components_of_type(self, *type_strs: str) -> List["ComponentBase"]:
        return [c for c in self.components.values() if c.component_type in type_strs]
