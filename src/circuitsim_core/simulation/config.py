# src/circuitsim_core/simulation/config.py
import logging
from dataclasses import dataclass, fields
from typing import Any, Dict, Optional

import pint

from ..units import to_si_magnitude

logger = logging.getLogger(__name__)

DC_INDUCTOR_MODELS = ("open", "short")


class ConfigParsingError(ValueError):
    """Custom exception for errors during simulation configuration parsing."""
    pass


@dataclass(frozen=True)
class SolverConfig:
    """
    Tuning of the linear solver and the nonlinear device iterator.

    `dc_inductor_model` selects what an inductor looks like in a DC solve:
    "open" stamps a 1 GOhm stand-in, "short" a 1 uOhm one.
    """
    max_iterations: int = 10
    gmin: float = 1e-12
    pivot_tolerance: float = 1e-13
    led_hysteresis: float = 0.05
    diode_hysteresis: float = 0.01
    transistor_hysteresis: float = 0.01
    state_tolerance: float = 1e-6
    dc_inductor_model: str = "open"

    def __post_init__(self):
        if self.max_iterations < 1:
            raise ConfigParsingError("max_iterations must be at least 1.")
        if self.gmin < 0 or self.pivot_tolerance <= 0:
            raise ConfigParsingError("gmin must be >= 0 and pivot_tolerance must be > 0.")
        if min(self.led_hysteresis, self.diode_hysteresis, self.transistor_hysteresis) <= 0:
            raise ConfigParsingError("Hysteresis margins must be > 0.")
        if self.dc_inductor_model not in DC_INDUCTOR_MODELS:
            raise ConfigParsingError(
                f"dc_inductor_model must be one of {DC_INDUCTOR_MODELS}, got '{self.dc_inductor_model}'."
            )


@dataclass(frozen=True)
class TransientConfig:
    """Fixed timestep and total duration of a transient run, in seconds."""
    dt: float
    duration: float

    def __post_init__(self):
        if not self.dt > 0:
            raise ConfigParsingError(f"Transient timestep must be > 0, got {self.dt}.")
        if self.duration < 0:
            raise ConfigParsingError(f"Transient duration must be >= 0, got {self.duration}.")


_VOLTAGE_FIELDS = {"led_hysteresis", "diode_hysteresis", "transistor_hysteresis"}
_CONDUCTANCE_FIELDS = {"gmin"}


def parse_solver_config(raw_solver_config: Optional[Dict[str, Any]]) -> SolverConfig:
    """
    Parses a raw solver block into a `SolverConfig`. Missing keys keep their
    defaults; hysteresis margins and gmin may carry units ("50 mV", "1 pS").
    """
    if not raw_solver_config:
        return SolverConfig()
    known = {f.name for f in fields(SolverConfig)}
    unknown = sorted(set(raw_solver_config) - known)
    if unknown:
        raise ConfigParsingError(f"Unknown solver setting(s): {unknown}. Known settings: {sorted(known)}.")
    try:
        values: Dict[str, Any] = {}
        for key, value in raw_solver_config.items():
            if key in _VOLTAGE_FIELDS:
                values[key] = to_si_magnitude(value, "volt")
            elif key in _CONDUCTANCE_FIELDS:
                values[key] = to_si_magnitude(value, "siemens")
            elif key == "max_iterations":
                values[key] = int(value)
            elif key == "dc_inductor_model":
                values[key] = str(value)
            else:
                values[key] = float(value)
        return SolverConfig(**values)
    except (ValueError, TypeError, pint.DimensionalityError, pint.UndefinedUnitError) as e:
        if isinstance(e, ConfigParsingError):
            raise
        raise ConfigParsingError(f"Failed to parse solver configuration: {e}") from e


def parse_transient_config(raw_transient_config: Optional[Dict[str, Any]]) -> TransientConfig:
    """
    Parses a raw analysis block ({dt, duration}, numbers in seconds or unit
    strings such as "1 ms") into a `TransientConfig`.
    """
    if not raw_transient_config:
        raise ConfigParsingError("Transient configuration is missing or empty.")
    try:
        dt = to_si_magnitude(raw_transient_config["dt"], "second")
        duration = to_si_magnitude(raw_transient_config["duration"], "second")
        return TransientConfig(dt=dt, duration=duration)
    except (KeyError, ValueError, TypeError, pint.DimensionalityError, pint.UndefinedUnitError) as e:
        if isinstance(e, ConfigParsingError):
            raise
        raise ConfigParsingError(f"Failed to parse transient configuration: {e}") from e
