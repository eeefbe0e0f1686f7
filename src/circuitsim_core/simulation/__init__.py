# src/circuitsim_core/simulation/__init__.py
from .exceptions import MnaInputError
from .config import (
    ConfigParsingError,
    SolverConfig,
    TransientConfig,
    parse_solver_config,
    parse_transient_config,
)
from .device_state import DeviceState, TransistorOperatingPoint
from .mna import AnalysisPoint, MnaAssembler, MnaSystem
from .solver import LinearSolution, solve_mna_system, solve_with_gmin_retry
from .iteration import IterationOutcome, NonlinearIterator
from .transient import TransientState
from .results import (
    BuzzerOutput,
    CapacitorOutput,
    DebugSnapshot,
    DiodeOutput,
    LedOutput,
    MotorOutput,
    PotentiometerOutput,
    RgbLedOutput,
    SolveResult,
    TransientRunResult,
    TransistorOutput,
    VoltmeterOutput,
)
from .engine import SimulationEngine
from .execution import run_transient, solve_circuit, step_transient, TransientStepper

__all__ = [
    # Exceptions
    "MnaInputError",
    "ConfigParsingError",
    # Configuration
    "SolverConfig",
    "TransientConfig",
    "parse_solver_config",
    "parse_transient_config",
    # Core Classes
    "DeviceState",
    "TransistorOperatingPoint",
    "AnalysisPoint",
    "MnaAssembler",
    "MnaSystem",
    "LinearSolution",
    "solve_mna_system",
    "solve_with_gmin_retry",
    "IterationOutcome",
    "NonlinearIterator",
    "TransientState",
    "SimulationEngine",
    # Results
    "SolveResult",
    "TransientRunResult",
    "DebugSnapshot",
    "LedOutput",
    "RgbLedOutput",
    "MotorOutput",
    "BuzzerOutput",
    "DiodeOutput",
    "TransistorOutput",
    "PotentiometerOutput",
    "VoltmeterOutput",
    "CapacitorOutput",
    # Public API
    "solve_circuit",
    "step_transient",
    "run_transient",
    "TransientStepper",
]
