# src/circuitsim_core/netlist/nets.py
"""
The Net Builder: unions pins into equipotential nets.

Pins are identified by canonical `componentId:pinId` keys. Unions come from
fully-wired connections, closed switch/button contacts and the global ground.
Problems with the input topology are reported as `ValidationIssue` records;
nothing in this module raises for a malformed circuit.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from networkx.utils import UnionFind

from ..components.capabilities import IContactProvider
from ..data_structures import CircuitSnapshot, Net, PinRef
from ..validation import ConnectivityIssueCode, ValidationIssue

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NetGraph:
    """Result of net building: the nets, the pin -> net map and the issues found."""
    nets: Tuple[Net, ...]
    net_of_pin: Dict[str, str]
    ground_net_id: Optional[str]
    issues: Tuple[ValidationIssue, ...] = field(default_factory=tuple)

    def get_net(self, net_id: str) -> Optional[Net]:
        for net in self.nets:
            if net.net_id == net_id:
                return net
        return None

    def net_size(self, net_id: Optional[str]) -> int:
        net = self.get_net(net_id) if net_id is not None else None
        return net.size if net else 0


class NetBuilder:
    """Builds the `NetGraph` for one snapshot. Stateless between calls to `build`."""

    def __init__(self, snapshot: CircuitSnapshot):
        self.snapshot = snapshot

    def build(self) -> NetGraph:
        issues: List[ValidationIssue] = []
        all_keys = [
            component.pin_key(pin)
            for component in self.snapshot.components.values()
            for pin in type(component).declare_ports()
        ]
        uf = UnionFind(all_keys)

        self._union_wires(uf, issues)
        self._union_closed_contacts(uf)
        ground_keys = self._union_ground(uf)

        if self.snapshot.components and not ground_keys:
            issues.append(ValidationIssue.from_code(ConnectivityIssueCode.NO_REFERENCE_NODE))

        nets, net_of_pin = self._assign_net_ids(uf, all_keys, set(ground_keys))
        ground_net_id = net_of_pin[ground_keys[0]] if ground_keys else None
        issues.extend(self._find_open_switch_floating_pins(nets, net_of_pin))

        logger.debug(
            f"Built {len(nets)} net(s) for '{self.snapshot.name}' "
            f"(ground: {ground_net_id}, issues: {len(issues)})."
        )
        return NetGraph(nets=tuple(nets), net_of_pin=net_of_pin, ground_net_id=ground_net_id, issues=tuple(issues))

    def _resolve_endpoint(self, ref: PinRef) -> Optional[str]:
        component = self.snapshot.get_component(ref.component_id)
        if component is None:
            return None
        pin = component.canonical_pin(ref.pin_id)
        return component.pin_key(pin) if pin else None

    def _union_wires(self, uf: UnionFind, issues: List[ValidationIssue]) -> None:
        for wire in self.snapshot.wires:
            resolved = []
            for endpoint_name, ref in (("from", wire.start), ("to", wire.end)):
                key = self._resolve_endpoint(ref)
                if key is None:
                    issues.append(ValidationIssue.from_code(
                        ConnectivityIssueCode.WIRE_PIN_MISSING,
                        component_id=ref.component_id,
                        details={"wire_id": wire.wire_id},
                        wire_id=wire.wire_id, endpoint=endpoint_name, pin_key=ref.key,
                    ))
                resolved.append(key)
            if all(resolved):
                uf.union(*resolved)

    def _union_closed_contacts(self, uf: UnionFind) -> None:
        for component in self.snapshot.components.values():
            provider = component.get_capability(IContactProvider)
            if not provider:
                continue
            for contact in provider.get_contacts(component):
                if contact.closed:
                    uf.union(component.pin_key(contact.pin_a), component.pin_key(contact.pin_b))

    def _union_ground(self, uf: UnionFind) -> List[str]:
        ground_keys = [
            component.pin_key(pin)
            for component in self.snapshot.components.values()
            for pin in component.ground_ports()
        ]
        if ground_keys:
            uf.union(*ground_keys)
        return ground_keys

    @staticmethod
    def _assign_net_ids(uf: UnionFind, all_keys: List[str], ground_keys: set) -> Tuple[List[Net], Dict[str, str]]:
        groups: Dict[str, List[str]] = {}
        for key in all_keys:
            groups.setdefault(uf[key], []).append(key)

        # Ids follow the smallest member key so they survive unrelated edits.
        ordered = sorted((sorted(members) for members in groups.values()), key=lambda members: members[0])

        nets: List[Net] = []
        net_of_pin: Dict[str, str] = {}
        for index, members in enumerate(ordered):
            net = Net(
                net_id=f"n{index}",
                pin_keys=tuple(members),
                is_ground=any(key in ground_keys for key in members),
            )
            nets.append(net)
            for key in members:
                net_of_pin[key] = net.net_id
        return nets, net_of_pin

    def _find_open_switch_floating_pins(self, nets: List[Net], net_of_pin: Dict[str, str]) -> List[ValidationIssue]:
        sizes = {net.net_id: net.size for net in nets}
        issues: List[ValidationIssue] = []
        for component in self.snapshot.components.values():
            provider = component.get_capability(IContactProvider)
            if not provider:
                continue
            contacts = provider.get_contacts(component)
            closed_pins = {p for c in contacts if c.closed for p in (c.pin_a, c.pin_b)}
            open_pins = sorted({p for c in contacts if not c.closed for p in (c.pin_a, c.pin_b)} - closed_pins)
            for pin in open_pins:
                key = component.pin_key(pin)
                if sizes.get(net_of_pin[key], 0) > 1:
                    continue
                issues.append(ValidationIssue.from_code(
                    ConnectivityIssueCode.OPEN_SWITCH_FLOATING,
                    component_id=component.instance_id,
                    pin_key=key,
                ))
        return issues
