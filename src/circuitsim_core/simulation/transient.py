# src/circuitsim_core/simulation/transient.py
"""
History carried between Backward-Euler transient steps.

`TransientState` is the one object meant to be mutated across calls. It holds
the previous voltage of every capacitor (plus a sticky damage flag for
polarized ones), the previous current of every inductor and the discrete
device state, so each step starts from where the last one converged. It must
not be shared between simulations of different circuits.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

from ..data_structures import CircuitSnapshot
from ..netlist.builder import Netlist
from ..netlist.elements import CapacitorStamp, InductorStamp
from .device_state import DeviceState
from .mna import AnalysisPoint, node_voltage

logger = logging.getLogger(__name__)


@dataclass
class TransientState:
    capacitor_voltages: Dict[str, float] = field(default_factory=dict)
    capacitor_damaged: Dict[str, bool] = field(default_factory=dict)
    inductor_currents: Dict[str, float] = field(default_factory=dict)
    device_state: DeviceState = field(default_factory=DeviceState)
    time: float = 0.0
    step_index: int = 0

    @classmethod
    def initial(
        cls,
        snapshot: CircuitSnapshot,
        netlist: Netlist,
        device_state: Optional[DeviceState] = None,
        initial_capacitor_voltages: Optional[Mapping[str, float]] = None,
    ) -> "TransientState":
        """
        Fresh history: capacitors at their given initial voltage (0 V by
        default), inductors at 0 A. A polarized capacitor whose component is
        already marked damaged starts damaged.
        """
        initial_capacitor_voltages = initial_capacitor_voltages or {}
        state = cls(device_state=device_state.copy() if device_state else DeviceState.initial(netlist))
        for cap in netlist.elements_of_type(CapacitorStamp):
            state.capacitor_voltages[cap.element_id] = float(initial_capacitor_voltages.get(cap.element_id, 0.0))
            if cap.polarized:
                component = snapshot.get_component(cap.component_id)
                state.capacitor_damaged[cap.element_id] = bool(component and component.state.get("damaged", False))
        for inductor in netlist.elements_of_type(InductorStamp):
            state.inductor_currents[inductor.element_id] = 0.0
        return state

    def point(self, time: float, dt: float) -> AnalysisPoint:
        return AnalysisPoint.transient(time, dt, self.capacitor_voltages, self.inductor_currents)

    def is_damaged(self, element_id: str) -> bool:
        return self.capacitor_damaged.get(element_id, False)


def advance_history(
    netlist: Netlist,
    state: TransientState,
    node_voltages,
    dt: float,
    time: float,
) -> Dict[str, float]:
    """
    Commits one converged step into `state` and returns each capacitor's
    branch current, recomputed exactly as C * (V_now - V_prev) / dt.
    """
    capacitor_currents: Dict[str, float] = {}
    for cap in netlist.elements_of_type(CapacitorStamp):
        if cap.floating:
            continue
        v_now = node_voltage(node_voltages, cap.a) - node_voltage(node_voltages, cap.b)
        v_prev = state.capacitor_voltages.get(cap.element_id, 0.0)
        capacitor_currents[cap.element_id] = cap.capacitance * (v_now - v_prev) / dt
        state.capacitor_voltages[cap.element_id] = v_now
        if cap.polarized and v_now < -cap.reverse_voltage_limit and not state.is_damaged(cap.element_id):
            logger.warning(
                f"Polarized capacitor '{cap.component_id}' reverse-biased to {v_now:.3f} V "
                f"(limit {cap.reverse_voltage_limit:.3f} V); marking damaged."
            )
            state.capacitor_damaged[cap.element_id] = True

    for inductor in netlist.elements_of_type(InductorStamp):
        if inductor.floating:
            continue
        v_ab = node_voltage(node_voltages, inductor.a) - node_voltage(node_voltages, inductor.b)
        i_prev = state.inductor_currents.get(inductor.element_id, 0.0)
        state.inductor_currents[inductor.element_id] = i_prev + dt / inductor.inductance * v_ab

    state.time = time
    state.step_index += 1
    return capacitor_currents
