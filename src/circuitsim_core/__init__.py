# src/circuitsim_core/__init__.py
import logging
from .log_config import setup_logging

setup_logging()
logger = logging.getLogger(__name__)
logger.info("CircuitSim Core package initialized.")

from .units import ureg, pint, Quantity, to_si_magnitude
from .data_structures import CircuitSnapshot, Net, PinRef, Wire
from .components import COMPONENT_REGISTRY, ComponentBase, ComponentError
from .parser import SnapshotParser, ParsedSnapshot
from .circuit_builder import CircuitBuilder
from .netlist import NetBuilder, NetGraph, Netlist, NetlistBuilder
from .analysis import ConductivityAnalyzer, PathAnalysisResults
from .simulation import (
    SolverConfig, TransientConfig, ConfigParsingError, parse_solver_config, parse_transient_config,
    SimulationEngine, SolveResult, TransientRunResult, TransientState, TransientStepper,
    solve_circuit, step_transient, run_transient,
)
from .errors import CircuitSimError, CircuitBuildError, SimulationRunError

__all__ = [
    # Units
    "ureg", "pint", "Quantity", "to_si_magnitude",
    # Data Structures
    "CircuitSnapshot", "Net", "PinRef", "Wire",
    # Components
    "COMPONENT_REGISTRY", "ComponentBase", "ComponentError",
    # Parser and Builder
    "SnapshotParser", "ParsedSnapshot", "CircuitBuilder",
    # Netlist and Analysis
    "NetBuilder", "NetGraph", "Netlist", "NetlistBuilder",
    "ConductivityAnalyzer", "PathAnalysisResults",
    # Simulation
    "SolverConfig", "TransientConfig", "ConfigParsingError", "parse_solver_config", "parse_transient_config",
    "SimulationEngine", "SolveResult", "TransientRunResult", "TransientState", "TransientStepper",
    "solve_circuit", "step_transient", "run_transient",
    # Top-Level Errors (Actionable Diagnostics)
    "CircuitSimError", "CircuitBuildError", "SimulationRunError",
]
