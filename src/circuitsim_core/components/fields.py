# src/circuitsim_core/components/fields.py
"""
Declarative field specifications for component parameters and runtime state.

Every component kind declares its electrical parameters as `ParameterSpec`s and
its discrete settings/flags as `StateSpec`s. Resolution happens exactly once,
when the component is built from the editor snapshot, so the netlist builder
works with required, already-validated values and never needs fallbacks.
"""
import logging
import math
from dataclasses import dataclass
from typing import Any, Optional, Tuple

import pint

from ..units import ParameterValue, to_si_magnitude
from .exceptions import ComponentError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParameterSpec:
    """
    Declaration of one unit-bearing parameter.

    Attributes:
        unit: The pint unit the value is stored in ("ohm", "volt", ...). Empty for
              dimensionless parameters.
        default: Value used when the snapshot omits the parameter.
        minimum: Hard lower bound; smaller values are rejected.
        floor: Numerical lower clamp applied after validation.
        ceiling: Numerical upper clamp applied after validation.
        aliases: Alternative names the editor may use for this parameter.
    """
    unit: str
    default: float
    minimum: Optional[float] = None
    floor: Optional[float] = None
    ceiling: Optional[float] = None
    aliases: Tuple[str, ...] = ()

    def resolve(self, name: str, raw: Optional[ParameterValue], component_id: str) -> float:
        if raw is None:
            value = self.default
        else:
            try:
                value = to_si_magnitude(raw, self.unit)
            except (pint.DimensionalityError, pint.UndefinedUnitError, TypeError, ValueError, AttributeError) as e:
                raise ComponentError(
                    component_id=component_id,
                    details=f"Parameter '{name}' value {raw!r} could not be read as '{self.unit or 'dimensionless'}': {e}",
                    parameter=name,
                ) from e

        if not math.isfinite(value):
            raise ComponentError(component_id, f"Parameter '{name}' must be finite, got {value}.", name)
        if self.minimum is not None and value < self.minimum:
            raise ComponentError(
                component_id, f"Parameter '{name}' must be >= {self.minimum} {self.unit}, got {value}.", name
            )
        if self.floor is not None:
            value = max(self.floor, value)
        if self.ceiling is not None:
            value = min(self.ceiling, value)
        return value


@dataclass(frozen=True)
class StateSpec:
    """
    Declaration of one discrete setting or mutable runtime flag (switch position,
    LED burn state, ...). The value type is taken from the default.
    """
    default: Any
    allowed: Optional[Tuple[Any, ...]] = None
    aliases: Tuple[str, ...] = ()

    def resolve(self, name: str, raw: Any, component_id: str) -> Any:
        if raw is None:
            return self.default

        expected = type(self.default)
        # bool is a subclass of int; keep them apart in both directions.
        if expected is bool and not isinstance(raw, bool):
            raise ComponentError(component_id, f"State '{name}' must be a boolean, got {raw!r}.", name)
        if expected is int and (isinstance(raw, bool) or not isinstance(raw, int) or raw < 0):
            raise ComponentError(component_id, f"State '{name}' must be a non-negative integer, got {raw!r}.", name)
        if expected is str:
            if not isinstance(raw, str):
                raise ComponentError(component_id, f"State '{name}' must be a string, got {raw!r}.", name)
            if self.allowed is not None:
                matches = [a for a in self.allowed if a.lower() == raw.lower()]
                if not matches:
                    raise ComponentError(
                        component_id, f"State '{name}' must be one of {list(self.allowed)}, got {raw!r}.", name
                    )
                return matches[0]
        return raw
