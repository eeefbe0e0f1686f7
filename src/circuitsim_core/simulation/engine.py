# src/circuitsim_core/simulation/engine.py

"""
Defines the `SimulationEngine`, the service that runs one snapshot through the
whole pipeline: nets, netlist, the nonlinear device iterator, transient
history, conductivity analysis and output synthesis.

The engine holds the per-snapshot products (nets, netlist, analyzers) but no
simulation history. History lives in the caller-owned `TransientState`, so one
engine can serve a DC solve and any number of transient steps of the same
snapshot.
"""
import logging
from typing import Dict, List, Optional

from ..analysis import ConductivityAnalyzer
from ..constants import R_DC_INDUCTOR_OPEN, R_DC_INDUCTOR_SHORT
from ..data_structures import CircuitSnapshot
from ..netlist.builder import NetlistBuilder
from ..netlist.nets import NetBuilder

from .config import SolverConfig
from .device_state import DeviceState
from .iteration import IterationOutcome, NonlinearIterator
from .mna import AnalysisPoint
from .outputs import OutputSynthesizer, SolvedPoint, net_voltages
from .results import SolveResult
from .transient import TransientState, advance_history

logger = logging.getLogger(__name__)

AC_DC_OFFSET_WARNING = "AC sources require transient simulation; showing DC offset only."
GMIN_WARNING = "Applied gmin stabilization"


def _dedupe(messages: List[str]) -> tuple:
    seen = set()
    ordered = []
    for message in messages:
        if message not in seen:
            seen.add(message)
            ordered.append(message)
    return tuple(ordered)


class SimulationEngine:
    """
    Orchestrates one snapshot's solves. Building the engine builds the nets
    and the netlist; `solve_dc` and `step` each run the iterator and package a
    `SolveResult`.
    """

    def __init__(self, snapshot: CircuitSnapshot, config: Optional[SolverConfig] = None):
        self.snapshot = snapshot
        self.config = config or SolverConfig()
        self.net_graph = NetBuilder(snapshot).build()
        self.netlist = NetlistBuilder(snapshot, self.net_graph).build()
        self.iterator = NonlinearIterator(self.netlist, self.config)
        self.analyzer = ConductivityAnalyzer(snapshot, self.net_graph)
        self.synthesizer = OutputSynthesizer(snapshot, self.net_graph, self.netlist, self.analyzer)
        logger.debug(f"SimulationEngine initialized for '{snapshot.name}'.")

    @property
    def dc_inductor_resistance(self) -> float:
        if self.config.dc_inductor_model == "short":
            return R_DC_INDUCTOR_SHORT
        return R_DC_INDUCTOR_OPEN

    def initial_device_state(self) -> DeviceState:
        return DeviceState.initial(self.netlist)

    def solve_dc(self, device_state: Optional[DeviceState] = None) -> SolveResult:
        """DC operating point from `device_state` (all devices off when omitted)."""
        point = AnalysisPoint.dc(self.dc_inductor_resistance)
        outcome = self.iterator.run(device_state or self.initial_device_state(), point)
        result = self._package(outcome, mode="dc", time=None, capacitor_damaged={}, capacitor_currents=None)
        logger.info(
            f"DC solve of '{self.snapshot.name}': singular={result.singular}, "
            f"iterations={result.iterations}, converged={result.converged}."
        )
        return result

    def step(self, state: TransientState, dt: float, time: float) -> SolveResult:
        """
        One Backward-Euler step ending at `time`. On success the step's history
        is committed into `state`; a singular step leaves the history untouched
        but still moves `state.time` forward.
        """
        point = state.point(time, dt)
        outcome = self.iterator.run(state.device_state, point)

        capacitor_currents = None
        if outcome.singular:
            state.time = time
        else:
            state.device_state = outcome.device_state.copy()
            capacitor_currents = advance_history(self.netlist, state, outcome.node_voltages, dt, time)

        result = self._package(
            outcome,
            mode="transient",
            time=time,
            capacitor_damaged=dict(state.capacitor_damaged),
            capacitor_currents=capacitor_currents,
        )
        logger.debug(f"Transient step {state.step_index} at t={time:g}s: singular={result.singular}.")
        return result

    def _package(
        self,
        outcome: IterationOutcome,
        mode: str,
        time: Optional[float],
        capacitor_damaged: Dict[str, bool],
        capacitor_currents: Optional[Dict[str, float]],
    ) -> SolveResult:
        solution = outcome.solution
        currents = outcome.element_currents(self.netlist)
        if capacitor_currents:
            currents.update(capacitor_currents)

        paths = self.analyzer.analyze(outcome.device_state)
        solved = SolvedPoint(
            net_voltages=net_voltages(self.netlist, solution.node_voltages),
            currents=currents,
            device_state=outcome.device_state,
            singular=solution.singular,
            reason=solution.reason,
            paths=paths,
            capacitor_damaged=capacitor_damaged,
        )
        outputs = self.synthesizer.synthesize(solved)
        active_net_ids, net_pair_currents = self.synthesizer.flow_sets(solved)
        debug = self.synthesizer.debug_snapshot(solved, outputs)

        return SolveResult(
            mode=mode,
            time=time,
            node_voltages=tuple(float(v) for v in solution.node_voltages),
            net_voltages=dict(solved.net_voltages),
            branch_currents=currents,
            outputs=outputs,
            device_state=outcome.device_state.copy(),
            singular=solution.singular,
            reason=solution.reason,
            converged=outcome.converged,
            iterations=outcome.iterations,
            warnings=self._collect_warnings(outcome, mode),
            issues=self.net_graph.issues,
            nets=self.net_graph.nets,
            net_of_pin=dict(self.net_graph.net_of_pin),
            ground_net_id=self.netlist.ground_net_id,
            has_topology_path=paths.has_topology_path,
            has_return_path=paths.has_return_path,
            active_net_ids=active_net_ids,
            feed_net_ids=paths.feed_net_ids,
            net_pair_currents=net_pair_currents,
            debug=debug,
        )

    def _collect_warnings(self, outcome: IterationOutcome, mode: str) -> tuple:
        messages = [issue.message for issue in self.net_graph.issues]
        messages.extend(self.netlist.warnings)
        if outcome.solution.used_gmin:
            messages.append(GMIN_WARNING)
        if mode == "dc" and self.netlist.has_ac_sources:
            messages.append(AC_DC_OFFSET_WARNING)
        if not outcome.converged:
            messages.append(
                f"Nonlinear devices did not converge within {outcome.iterations} iteration(s); "
                f"showing the last iterate."
            )
        return _dedupe(messages)
