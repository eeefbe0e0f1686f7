# src/circuitsim_core/simulation/expansion.py
"""
Expansion of nonlinear devices into the linear companions implied by their
assumed discrete state.

Companions that need a hidden node (an ON LED or diode, a reverse-breaking
diode, a conducting base-emitter junction) take it from a `NodeArena` that
starts right after the netlist's nodes and grows per solve pass, so the node
count varies with how many devices are currently conducting.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Mapping, Sequence, Set, Tuple

from ..components.base_enums import DiodeRegion, TransistorRegion
from ..netlist.builder import Netlist
from ..netlist.elements import (
    CurrentSourceStamp, DiodeStamp, ElementStamp, LedStamp, ResistorStamp, TransistorStamp, VoltageSourceStamp,
    LINEAR_STAMP_TYPES,
)
from .device_state import CUTOFF, DeviceState
from .mna import AnalysisPoint, linear_element_current, node_voltage

logger = logging.getLogger(__name__)


class NodeArena:
    """Growable node index space for one solve pass."""

    def __init__(self, base_count: int):
        self._count = base_count

    @property
    def count(self) -> int:
        return self._count

    def allocate(self) -> int:
        index = self._count
        self._count += 1
        return index


@dataclass(frozen=True)
class ExpandedCircuit:
    """
    The purely linear element list for one solve pass.

    `companions` maps each nonlinear element id to the ids of the linear
    elements standing in for it, in a fixed order per device kind.
    """
    elements: Tuple[ElementStamp, ...]
    node_count: int
    hidden_nodes: Dict[str, int] = field(default_factory=dict)
    companions: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    breakdown_ids: FrozenSet[str] = frozenset()


def _expand_junction(
    arena: NodeArena,
    element_id: str,
    component_id: str,
    anode: int,
    cathode: int,
    resistance: float,
    voltage: float,
) -> Tuple[int, List[ElementStamp]]:
    """Series resistor anode -> mid plus a source holding V(mid) - V(cathode) = voltage."""
    mid = arena.allocate()
    return mid, [
        ResistorStamp(f"{element_id}:r", component_id, anode, mid, resistance),
        VoltageSourceStamp(f"{element_id}:v", component_id, mid, cathode, voltage),
    ]


def expand_for_solve(netlist: Netlist, device_state: DeviceState) -> ExpandedCircuit:
    """Replaces every LED, diode and transistor by its companion for `device_state`."""
    arena = NodeArena(netlist.node_count)
    elements: List[ElementStamp] = []
    hidden: Dict[str, int] = {}
    companions: Dict[str, Tuple[str, ...]] = {}
    breakdown: Set[str] = set()

    def emit(owner_id: str, stamps: Sequence[ElementStamp]) -> None:
        elements.extend(stamps)
        companions[owner_id] = companions.get(owner_id, ()) + tuple(s.element_id for s in stamps)

    for element in netlist.elements:
        if isinstance(element, LINEAR_STAMP_TYPES):
            elements.append(element)
            continue
        if isinstance(element, LedStamp):
            if element.floating:
                continue
            if device_state.led_on(element.element_id) and not element.burned:
                mid, stamps = _expand_junction(
                    arena, element.element_id, element.component_id,
                    element.anode, element.cathode, element.on_resistance, element.forward_voltage,
                )
                hidden[element.element_id] = mid
                emit(element.element_id, stamps)
            else:
                emit(element.element_id, [ResistorStamp(
                    f"{element.element_id}:r", element.component_id, element.anode, element.cathode, element.off_resistance
                )])
        elif isinstance(element, DiodeStamp):
            if element.floating:
                continue
            region = device_state.diode_region(element.element_id)
            if region is DiodeRegion.ON:
                mid, stamps = _expand_junction(
                    arena, element.element_id, element.component_id,
                    element.anode, element.cathode, element.on_resistance, element.forward_voltage,
                )
            elif region is DiodeRegion.BREAKDOWN:
                breakdown.add(element.element_id)
                # Reverse companion: cathode -> R_br -> mid, then V(mid) - V(anode) = V_br.
                mid, stamps = _expand_junction(
                    arena, element.element_id, element.component_id,
                    element.cathode, element.anode, element.breakdown_resistance, element.breakdown_voltage,
                )
            else:
                emit(element.element_id, [ResistorStamp(
                    f"{element.element_id}:r", element.component_id, element.anode, element.cathode, element.off_resistance
                )])
                continue
            hidden[element.element_id] = mid
            emit(element.element_id, stamps)
        elif isinstance(element, TransistorStamp):
            if element.floating:
                continue
            emit(element.element_id, _expand_transistor(arena, element, device_state, hidden))
        else:
            raise TypeError(f"Cannot expand element of type '{type(element).__name__}'.")

    return ExpandedCircuit(
        elements=tuple(elements),
        node_count=arena.count,
        hidden_nodes=hidden,
        companions=companions,
        breakdown_ids=frozenset(breakdown),
    )


def _expand_transistor(
    arena: NodeArena,
    transistor: TransistorStamp,
    device_state: DeviceState,
    hidden: Dict[str, int],
) -> List[ElementStamp]:
    tid, cid = transistor.element_id, transistor.component_id
    point = device_state.transistor_point(tid) or CUTOFF
    npn = transistor.sign > 0
    stamps: List[ElementStamp] = []

    if transistor.base is not None:
        if point.base_on:
            # Conventional base current always enters the junction's resistor first.
            high, low = (transistor.base, transistor.emitter) if npn else (transistor.emitter, transistor.base)
            mid, junction = _expand_junction(arena, f"{tid}:be", cid, high, low, transistor.base_resistance, transistor.vbe_on)
            hidden[tid] = mid
            stamps.extend(junction)
        else:
            stamps.append(ResistorStamp(f"{tid}:be:r", cid, transistor.base, transistor.emitter, transistor.off_resistance))

    c, e = transistor.collector, transistor.emitter
    if point.region is TransistorRegion.SATURATION:
        stamps.append(ResistorStamp(f"{tid}:ce:r", cid, c, e, point.saturation_resistance))
    else:
        stamps.append(ResistorStamp(f"{tid}:ce:r", cid, c, e, transistor.off_resistance))
        if point.region is TransistorRegion.ACTIVE:
            a, b = (c, e) if npn else (e, c)
            stamps.append(CurrentSourceStamp(f"{tid}:ce:i", cid, a, b, point.collector_current))
    return stamps


def device_currents(
    netlist: Netlist,
    expansion: ExpandedCircuit,
    node_voltages: Sequence[float],
    source_currents: Mapping[str, float],
    point: AnalysisPoint,
) -> Dict[str, float]:
    """
    Branch current of every netlist element, keyed by element id.

    LEDs and diodes report anode -> cathode current (negative in breakdown).
    Transistors report the collector current in their conducting direction
    (into C for NPN, out of C for PNP).
    """
    by_id = {e.element_id: e for e in expansion.elements}

    def companion_current(element_id: str) -> float:
        return linear_element_current(by_id[element_id], node_voltages, source_currents, point)

    currents: Dict[str, float] = {}
    for element in netlist.elements:
        eid = element.element_id
        if isinstance(element, LINEAR_STAMP_TYPES):
            currents[eid] = linear_element_current(element, node_voltages, source_currents, point)
        elif eid not in expansion.companions:
            currents[eid] = 0.0
        elif isinstance(element, (LedStamp, DiodeStamp)):
            # The resistor companion is always first and carries the whole junction current.
            current = companion_current(f"{eid}:r")
            currents[eid] = -current if eid in expansion.breakdown_ids else current
        elif isinstance(element, TransistorStamp):
            sign = element.sign
            current = sign * companion_current(f"{eid}:ce:r")
            if f"{eid}:ce:i" in by_id:
                current += by_id[f"{eid}:ce:i"].current
            currents[eid] = current
    return currents


def junction_voltage(element: ElementStamp, node_voltages: Sequence[float]) -> float:
    """Anode minus cathode voltage of an LED or diode; 0 when floating."""
    if element.floating:
        return 0.0
    a, b = element.terminals
    return node_voltage(node_voltages, a) - node_voltage(node_voltages, b)
