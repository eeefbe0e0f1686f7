# src/circuitsim_core/components/base.py

import logging
import inspect
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Tuple, Type

from ..data_structures import pin_key
from .capabilities import (
    ComponentCapability, TCapability, ConductiveEdge,
    ITopologyContributor, IConductionContributor, provides
)
from .exceptions import ComponentError
from .fields import ParameterSpec, StateSpec


logger = logging.getLogger(__name__)


class ComponentBase(ABC):
    """
    The abstract base class for all circuit components in CircuitSim Core.

    A concrete subclass is one tagged variant: it declares its canonical pins,
    the editor aliases for those pins, its unit-bearing parameters and its
    discrete state. Behavior toward the analysis stages is exposed only through
    the queryable capability system.
    """
    component_type_str: ClassVar[str] = "BaseComponent"

    def __init__(
        self,
        instance_id: str,
        parameters: Mapping[str, float],
        state: Mapping[str, Any],
        position: Optional[Tuple[float, float]] = None,
    ):
        """
        Initializes an instance from already-resolved values. Use `from_raw`
        to build one from editor input.

        Args:
            instance_id: The unique editor id of this component (e.g., 'led1').
            parameters: Resolved parameter values in the units of their specs.
            state: Resolved discrete settings and runtime flags.
            position: Canvas position; carried for the host, electrically meaningless.
        """
        self.instance_id: str = instance_id
        self.component_type: str = type(self).component_type_str
        self.parameters: Dict[str, float] = dict(parameters)
        self.state: Dict[str, Any] = dict(state)
        self.position = position

        # Each capability object is created once, on first request.
        self._capability_cache: Dict[Type[ComponentCapability], ComponentCapability] = {}
        logger.debug(f"Initialized {type(self).__name__} '{self.instance_id}'")

    @classmethod
    def from_raw(
        cls,
        instance_id: str,
        raw_parameters: Optional[Mapping[str, Any]] = None,
        raw_state: Optional[Mapping[str, Any]] = None,
        position: Optional[Tuple[float, float]] = None,
    ) -> "ComponentBase":
        """
        Validates raw editor values against the declared specs and returns a new
        instance. Raises `ComponentError` on unknown names or invalid values.
        """
        parameters = cls._resolve_fields(instance_id, cls.declare_parameters(), raw_parameters or {}, "parameter")
        state = cls._resolve_fields(instance_id, cls.declare_state(), raw_state or {}, "state")
        return cls(instance_id, parameters, state, position)

    @staticmethod
    def _resolve_fields(
        instance_id: str,
        specs: Mapping[str, Any],
        raw_values: Mapping[str, Any],
        kind: str,
    ) -> Dict[str, Any]:
        lookup: Dict[str, str] = {}
        for name, spec in specs.items():
            lookup[name] = name
            for alias in spec.aliases:
                lookup[alias] = name

        unknown = sorted(k for k in raw_values if k not in lookup)
        if unknown:
            raise ComponentError(
                component_id=instance_id,
                details=f"Undeclared {kind}(s) {unknown}. Declared: {sorted(specs)}.",
                parameter=unknown[0],
            )

        canonical_raw: Dict[str, Any] = {}
        for raw_name, value in raw_values.items():
            name = lookup[raw_name]
            if name in canonical_raw:
                raise ComponentError(instance_id, f"{kind.capitalize()} '{name}' is given more than once (via alias '{raw_name}').", name)
            canonical_raw[name] = value

        return {
            name: spec.resolve(name, canonical_raw.get(name), instance_id)
            for name, spec in specs.items()
        }

    def param(self, name: str) -> float:
        return self.parameters[name]

    def pin_key(self, pin_id: str) -> str:
        return pin_key(self.instance_id, pin_id)

    def canonical_pin(self, pin_id: str) -> Optional[str]:
        """Maps an editor pin name (canonical or alias) to the canonical pin, or None."""
        ports = type(self).declare_ports()
        if pin_id in ports:
            return pin_id
        return type(self).declare_pin_aliases().get(pin_id)

    def ground_ports(self) -> List[str]:
        """Pins that are tied to the global ground net (ground symbols, supply negative, ...)."""
        return []

    @classmethod
    def declare_capabilities(cls) -> Dict[Type[ComponentCapability], Type]:
        """
        Discovers the capabilities map by inspecting nested classes decorated
        with `@provides` along the MRO. The most derived implementation wins.
        """
        discovered_capabilities = {}
        for base_class in cls.__mro__:
            for _, member_obj in inspect.getmembers(base_class):
                if hasattr(member_obj, '_implements_capability'):
                    protocol = member_obj._implements_capability
                    if protocol not in discovered_capabilities:
                        discovered_capabilities[protocol] = member_obj
        return discovered_capabilities

    def get_capability(self, capability_type: Type[TCapability]) -> Optional[TCapability]:
        """
        Queries the component instance for a specific capability.

        Returns:
            An instance of the capability implementation if supported, otherwise `None`.
        """
        if capability_type in self._capability_cache:
            return self._capability_cache[capability_type]

        impl_class = type(self).declare_capabilities().get(capability_type)
        if impl_class:
            instance = impl_class()
            self._capability_cache[capability_type] = instance
            return instance

        return None

    @classmethod
    @abstractmethod
    def declare_ports(cls) -> List[str]:
        """Declare the canonical pin names of the component, in a fixed order."""
        pass

    @classmethod
    def declare_parameters(cls) -> Dict[str, ParameterSpec]:
        """Declare unit-bearing parameters. Components without any keep the default."""
        return {}

    @classmethod
    def declare_state(cls) -> Dict[str, StateSpec]:
        """Declare discrete settings and runtime flags."""
        return {}

    @classmethod
    def declare_pin_aliases(cls) -> Dict[str, str]:
        """Declare editor pin names that map onto canonical pins."""
        return {}

    def __str__(self) -> str:
        return f"{type(self).__name__}('{self.instance_id}')"

    def __repr__(self) -> str:
        return f"{type(self).__name__}(instance_id='{self.instance_id}')"


class TwoTerminalComponent(ComponentBase):
    """
    Base for ohmic-like two-pin parts (resistor, capacitor, inductor, motor,
    buzzer) that are always wired between their pins and conduct both ways.
    """

    @property
    def terminals(self) -> Tuple[str, str]:
        ports = type(self).declare_ports()
        return ports[0], ports[1]

    @provides(ITopologyContributor)
    class TopologyContributor:
        def get_topology_edges(self, component: "TwoTerminalComponent") -> List[tuple]:
            return [component.terminals]

    @provides(IConductionContributor)
    class ConductionContributor:
        def get_conductive_edges(self, component: "TwoTerminalComponent", device_state) -> List[ConductiveEdge]:
            a, b = component.terminals
            return [ConductiveEdge(a, b)]


# --- Global Component Registry and Decorator ---

COMPONENT_REGISTRY: Dict[str, Type[ComponentBase]] = {}


def register_component(type_str: str):
    """
    A class decorator registering a component class under its editor type
    string, making it available to the CircuitBuilder.
    """
    def decorator(cls: Type[ComponentBase]):
        if not issubclass(cls, ComponentBase):
            raise TypeError(f"Class {cls.__name__} must inherit from ComponentBase.")

        ports = cls.declare_ports()
        if not isinstance(ports, list) or not all(isinstance(p, str) and p for p in ports):
            raise TypeError(
                f"Component class '{cls.__name__}' violates API contract. "
                f"declare_ports() must return a list of non-empty strings, but returned: {ports}."
            )
        if len(set(ports)) != len(ports):
            raise TypeError(
                f"Component class '{cls.__name__}' violates API contract. "
                f"declare_ports() must return unique names, but found duplicates in: {ports}."
            )

        bad_aliases = {k: v for k, v in cls.declare_pin_aliases().items() if v not in ports}
        if bad_aliases:
            raise TypeError(
                f"Component class '{cls.__name__}' declares pin aliases {bad_aliases} "
                f"that do not target a declared port {ports}."
            )

        params = cls.declare_parameters()
        if not all(isinstance(k, str) and isinstance(v, ParameterSpec) for k, v in params.items()):
            raise TypeError(
                f"Component class '{cls.__name__}' violates API contract. "
                f"declare_parameters() must return a Dict[str, ParameterSpec]."
            )
        state = cls.declare_state()
        if not all(isinstance(k, str) and isinstance(v, StateSpec) for k, v in state.items()):
            raise TypeError(
                f"Component class '{cls.__name__}' violates API contract. "
                f"declare_state() must return a Dict[str, StateSpec]."
            )

        if type_str in COMPONENT_REGISTRY:
            logger.warning(f"Component type '{type_str}' is being redefined/overwritten.")
        cls.component_type_str = type_str
        COMPONENT_REGISTRY[type_str] = cls
        logger.debug(f"Registered component type '{type_str}' -> {cls.__name__}")
        return cls
    return decorator
