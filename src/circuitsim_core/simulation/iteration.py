# src/circuitsim_core/simulation/iteration.py
"""
The nonlinear device iterator: a bounded fixed-point loop over `DeviceState`.

Each pass expands the devices for the currently assumed state, solves the
linear system (with one gmin retry) and re-derives every device's natural
state from the new voltages. The loop stops as soon as a pass leaves the state
unchanged, or after `max_iterations` passes.
"""
import logging
from dataclasses import dataclass
from typing import Dict

from ..netlist.builder import Netlist
from ..netlist.elements import DiodeStamp, LedStamp, TransistorStamp
from .config import SolverConfig
from .device_state import (
    CUTOFF, DeviceState, next_diode_region, next_led_state, next_transistor_point
)
from .expansion import ExpandedCircuit, device_currents, expand_for_solve, junction_voltage
from .mna import AnalysisPoint, MnaAssembler, node_voltage
from .solver import LinearSolution, solve_with_gmin_retry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IterationOutcome:
    """Final linear solution together with the device state it was solved for."""
    solution: LinearSolution
    device_state: DeviceState
    expansion: ExpandedCircuit
    point: AnalysisPoint
    iterations: int
    converged: bool

    @property
    def singular(self) -> bool:
        return self.solution.singular

    @property
    def node_voltages(self):
        return self.solution.node_voltages

    def element_currents(self, netlist: Netlist) -> Dict[str, float]:
        if self.solution.singular:
            return {element.element_id: 0.0 for element in netlist.elements}
        return device_currents(
            netlist, self.expansion, self.solution.node_voltages, self.solution.source_currents, self.point
        )


class NonlinearIterator:
    """Runs the expand -> solve -> re-derive loop for one netlist."""

    def __init__(self, netlist: Netlist, config: SolverConfig):
        self.netlist = netlist
        self.config = config

    def solve_once(self, device_state: DeviceState, point: AnalysisPoint):
        expansion = expand_for_solve(self.netlist, device_state)
        assembler = MnaAssembler(expansion.node_count, point).stamp_all(expansion.elements)
        solution = solve_with_gmin_retry(assembler, self.config.pivot_tolerance, self.config.gmin)
        return expansion, solution

    def next_state(self, current: DeviceState, voltages) -> DeviceState:
        """Re-derives the natural state of every device from solved voltages."""
        cfg = self.config
        proposed = current.copy()
        for led in self.netlist.elements_of_type(LedStamp):
            proposed.leds[led.element_id] = next_led_state(
                led, current.led_on(led.element_id), junction_voltage(led, voltages), cfg.led_hysteresis
            )
        for diode in self.netlist.elements_of_type(DiodeStamp):
            proposed.diodes[diode.element_id] = next_diode_region(
                diode, current.diode_region(diode.element_id), junction_voltage(diode, voltages), cfg.diode_hysteresis
            )
        for transistor in self.netlist.elements_of_type(TransistorStamp):
            if transistor.floating:
                proposed.transistors[transistor.element_id] = CUTOFF
                continue
            proposed.transistors[transistor.element_id] = next_transistor_point(
                transistor,
                current.transistor_point(transistor.element_id) or CUTOFF,
                node_voltage(voltages, transistor.base),
                node_voltage(voltages, transistor.collector),
                node_voltage(voltages, transistor.emitter),
                cfg.transistor_hysteresis,
            )
        return proposed

    def run(self, initial_state: DeviceState, point: AnalysisPoint) -> IterationOutcome:
        """
        Iterates from `initial_state` until the device state is a fixed point.

        A singular solve ends the loop immediately with the singular solution.
        If the cap is reached, the last proposed state is solved once more so
        that the returned voltages belong to the returned state, and the
        outcome is flagged `converged=False`.
        """
        state = initial_state.copy()
        for iteration in range(1, self.config.max_iterations + 1):
            expansion, solution = self.solve_once(state, point)
            if solution.singular:
                logger.debug(f"Singular solve on pass {iteration}; stopping device iteration.")
                return IterationOutcome(solution, state, expansion, point, iteration, converged=True)

            proposed = self.next_state(state, solution.node_voltages)
            if proposed.same_as(state, self.config.state_tolerance):
                logger.debug(f"Device state converged after {iteration} pass(es).")
                return IterationOutcome(solution, state, expansion, point, iteration, converged=True)
            logger.debug(
                f"Pass {iteration}: {proposed.changed_devices(state, self.config.state_tolerance)} device(s) changed state."
            )
            state = proposed

        expansion, solution = self.solve_once(state, point)
        logger.warning(
            f"Device state did not converge within {self.config.max_iterations} iteration(s); "
            f"accepting the last iterate."
        )
        return IterationOutcome(solution, state, expansion, point, self.config.max_iterations, converged=False)
