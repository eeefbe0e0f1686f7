# src/circuitsim_core/units.py
import logging
from numbers import Real
from typing import Union

import pint

logger = logging.getLogger(__name__)
ureg = pint.UnitRegistry()
Quantity = ureg.Quantity
logger.debug("Pint Unit Registry initialized.")

ParameterValue = Union[str, int, float]


def to_si_magnitude(value: ParameterValue, unit: str) -> float:
    """
    Converts an editor-supplied parameter value to a plain float in `unit`.

    Bare numbers (and bare numeric strings) are taken to be already expressed in
    `unit`. Strings carrying a unit ("220 ohm", "1 uF", "20 mA") are converted with
    pint, which raises `pint.DimensionalityError` for incompatible units.
    An empty `unit` means the parameter is dimensionless.
    """
    if isinstance(value, bool):
        raise TypeError(f"Expected a number or quantity string, got boolean {value!r}.")
    if isinstance(value, Real):
        return float(value)
    if not isinstance(value, str):
        raise TypeError(f"Expected a number or quantity string, got {type(value).__name__}.")

    qty = Quantity(value.strip())
    if not isinstance(qty, Quantity):
        # A bare number string parses to a plain int/float.
        return float(qty)
    if qty.dimensionless:
        return float(qty.to("dimensionless").magnitude)
    if not unit:
        raise pint.DimensionalityError(qty.units, ureg.dimensionless)
    return float(qty.to(unit).magnitude)
