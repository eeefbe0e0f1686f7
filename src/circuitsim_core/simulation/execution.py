# src/circuitsim_core/simulation/execution.py
"""
Provides the public API functions for running simulations.

These are thin wrappers around `SimulationEngine`: they build the engine for a
snapshot, run it and hand back formal result objects. Circuit conditions such
as an open loop or a singular matrix are part of the result, never an
exception. Only a call that cannot be attempted at all (bad timestep, a broken
internal invariant) is reported, as a single `SimulationRunError` carrying a
diagnostic report.
"""
import logging
import math
from typing import Callable, Mapping, Optional

from ..data_structures import CircuitSnapshot
from ..errors import DiagnosableError, SimulationRunError, format_diagnostic_report

from .config import ConfigParsingError, SolverConfig, TransientConfig
from .engine import SimulationEngine
from .results import SolveResult, TransientRunResult
from .transient import TransientState

logger = logging.getLogger(__name__)

StepCallback = Callable[[float, SolveResult], None]


def _run_guarded(description: str, action):
    try:
        return action()
    except DiagnosableError as e:
        logger.error(f"A diagnosable error occurred during {description}: {e}")
        raise SimulationRunError(e.get_diagnostic_report()) from e
    except ConfigParsingError as e:
        logger.error(f"Invalid simulation settings for {description}: {e}")
        report = format_diagnostic_report(
            error_type="Invalid Simulation Settings",
            details=str(e),
            suggestion="Check the solver and transient settings passed to the simulation call.",
            context={},
        )
        raise SimulationRunError(report) from e


def solve_circuit(snapshot: CircuitSnapshot, config: Optional[SolverConfig] = None) -> SolveResult:
    """
    Solves the DC operating point of `snapshot` starting from a fresh device
    state (every LED and diode off, every transistor in cutoff).

    Raises:
        SimulationRunError: if the solve could not be attempted.
    """
    logger.info(f"--- Starting DC solve for '{snapshot.name}' ---")
    return _run_guarded("DC solve", lambda: SimulationEngine(snapshot, config).solve_dc())


def step_transient(
    snapshot: CircuitSnapshot,
    state: TransientState,
    dt: float,
    time: float,
    config: Optional[SolverConfig] = None,
) -> SolveResult:
    """
    Advances `state` by one Backward-Euler step ending at `time`.

    `state` is mutated in place: capacitor voltages, inductor currents, the
    device state and the damage flags carry over to the next call.
    """
    if not dt > 0:
        raise SimulationRunError(format_diagnostic_report(
            error_type="Invalid Timestep",
            details=f"Transient timestep must be > 0, got {dt}.",
            suggestion="Pass a positive dt, e.g. 1e-3 for a 1 ms step.",
            context={},
        ))
    return _run_guarded(
        f"transient step at t={time:g}s", lambda: SimulationEngine(snapshot, config).step(state, dt, time)
    )


def run_transient(
    snapshot: CircuitSnapshot,
    transient: TransientConfig,
    config: Optional[SolverConfig] = None,
    on_step: Optional[StepCallback] = None,
    initial_capacitor_voltages: Optional[Mapping[str, float]] = None,
) -> TransientRunResult:
    """
    Runs a fixed-step transient over `transient.duration`.

    A DC pass seeds the device state; capacitors start at the given initial
    voltages (0 V by default) and inductors at 0 A. Step k ends at (k+1)*dt and
    at least one step is always taken. `on_step(time, result)` is called after
    every step.

    Returns:
        A `TransientRunResult` with the last step's result, the final history
        and the time axis that was covered.
    """
    logger.info(
        f"--- Starting transient run for '{snapshot.name}' (dt={transient.dt:g}s, "
        f"duration={transient.duration:g}s) ---"
    )

    def run() -> TransientRunResult:
        engine = SimulationEngine(snapshot, config)
        seed = engine.solve_dc()
        state = TransientState.initial(
            snapshot, engine.netlist, seed.device_state, initial_capacitor_voltages
        )
        n_steps = max(1, math.floor(transient.duration / transient.dt + 1e-9))
        times = []
        result = seed
        for k in range(n_steps):
            t = (k + 1) * transient.dt
            result = engine.step(state, transient.dt, t)
            times.append(t)
            if on_step is not None:
                on_step(t, result)
        logger.info(f"Transient run finished after {n_steps} step(s) at t={state.time:g}s.")
        return TransientRunResult(last_result=result, state=state, times=times, steps=n_steps)

    return _run_guarded("transient run", run)


class TransientStepper:
    """
    Holds the history of one interactive transient session. Each `advance`
    solves one step of the snapshot it is given, so the host may toggle
    switches between steps as long as the circuit's element ids stay the same.
    """

    def __init__(
        self,
        dt: float,
        config: Optional[SolverConfig] = None,
        initial_capacitor_voltages: Optional[Mapping[str, float]] = None,
    ):
        if not dt > 0:
            raise ConfigParsingError(f"Transient timestep must be > 0, got {dt}.")
        self.dt = dt
        self.config = config
        self.initial_capacitor_voltages = dict(initial_capacitor_voltages or {})
        self.state: Optional[TransientState] = None

    @property
    def time(self) -> float:
        return self.state.time if self.state else 0.0

    def reset(self) -> None:
        self.state = None

    def advance(self, snapshot: CircuitSnapshot) -> SolveResult:
        def step() -> SolveResult:
            engine = SimulationEngine(snapshot, self.config)
            if self.state is None:
                seed = engine.solve_dc()
                self.state = TransientState.initial(
                    snapshot, engine.netlist, seed.device_state, self.initial_capacitor_voltages
                )
            return engine.step(self.state, self.dt, self.state.time + self.dt)

        return _run_guarded("interactive transient step", step)
