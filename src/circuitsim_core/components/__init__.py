# src/circuitsim_core/components/__init__.py
"""
Component model: the base class, the capability protocols, the registry and
every registered component kind. Importing this package registers all kinds.
"""
import logging

from .base import ComponentBase, TwoTerminalComponent, COMPONENT_REGISTRY, register_component
from .base_enums import DiodeRegion, TransistorRegion
from .capabilities import (
    ComponentCapability, Contact, ConductiveEdge, INetlistContributor, IContactProvider,
    ITopologyContributor, IConductionContributor, provides
)
from .exceptions import ComponentError
from .fields import ParameterSpec, StateSpec
from .sources import DcSupply, Ground, PowerRail
from .passives import (
    Resistor, DcMotor, AcMotor, Buzzer, Capacitor, PolarizedCapacitor, Inductor, Potentiometer, Voltmeter
)
from .switches import SpstSwitch, SpdtSwitch, DpstSwitch, DpdtSwitch, PushButton, NormallyClosedPushButton
from .semiconductors import Led, RgbLed, Diode, Transistor

logger = logging.getLogger(__name__)
logger.debug(f"Component registry ready with {len(COMPONENT_REGISTRY)} type(s).")

__all__ = [
    "ComponentBase", "TwoTerminalComponent", "COMPONENT_REGISTRY", "register_component",
    "DiodeRegion", "TransistorRegion",
    "ComponentCapability", "Contact", "ConductiveEdge", "INetlistContributor", "IContactProvider",
    "ITopologyContributor", "IConductionContributor", "provides",
    "ComponentError", "ParameterSpec", "StateSpec",
    "DcSupply", "Ground", "PowerRail",
    "Resistor", "DcMotor", "AcMotor", "Buzzer", "Capacitor", "PolarizedCapacitor", "Inductor",
    "Potentiometer", "Voltmeter",
    "SpstSwitch", "SpdtSwitch", "DpstSwitch", "DpdtSwitch", "PushButton", "NormallyClosedPushButton",
    "Led", "RgbLed", "Diode", "Transistor",
]
