# src/circuitsim_core/simulation/mna.py

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Type

import numpy as np
import scipy.sparse as sp

from ..constants import G_NEGLIGIBLE, R_DC_INDUCTOR_OPEN
from ..netlist.elements import (
    CapacitorStamp, CurrentSourceStamp, ElementStamp, InductorStamp, Node, ResistorStamp, VoltageSourceStamp
)
from .exceptions import MnaInputError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisPoint:
    """
    Where in the analysis one linear solve sits. A DC point stamps capacitors
    by their leakage and inductors by their DC stand-in; a transient point
    stamps Backward-Euler companions fed by the history maps.
    """
    mode: str = "dc"
    time: Optional[float] = None
    dt: Optional[float] = None
    capacitor_voltages: Mapping[str, float] = field(default_factory=dict)
    inductor_currents: Mapping[str, float] = field(default_factory=dict)
    dc_inductor_resistance: float = R_DC_INDUCTOR_OPEN

    @property
    def is_transient(self) -> bool:
        return self.mode == "transient"

    @classmethod
    def dc(cls, dc_inductor_resistance: float = R_DC_INDUCTOR_OPEN) -> "AnalysisPoint":
        return cls(mode="dc", dc_inductor_resistance=dc_inductor_resistance)

    @classmethod
    def transient(
        cls,
        time: float,
        dt: float,
        capacitor_voltages: Mapping[str, float],
        inductor_currents: Mapping[str, float],
    ) -> "AnalysisPoint":
        if not dt > 0:
            raise MnaInputError(context="transient", details=f"Timestep must be > 0, got {dt}.")
        return cls("transient", time, dt, dict(capacitor_voltages), dict(inductor_currents))


@dataclass(frozen=True)
class MnaSystem:
    """
    The reduced augmented system `[G B; C 0][V; J] = [I; E]` with the ground
    row and column removed. Unknown `k` for `k < node_count - 1` is the voltage
    of node `k + 1`; the remaining unknowns are the branch currents of the
    voltage-type branches, in `branch_ids` order.
    """
    matrix: sp.csc_matrix
    rhs: np.ndarray
    node_count: int
    branch_ids: List[str]
    gmin: float = 0.0

    @property
    def size(self) -> int:
        return self.matrix.shape[0]


class MnaAssembler:
    """
    Collects stamps for one linear solve into COO triplets.

    Every stamp is written against the full node space including ground; the
    ground row and column are dropped in `assemble`, which is equivalent to
    fixing node 0 at 0 V. Elements with a floating (None) terminal are skipped.
    """

    def __init__(self, node_count: int, point: Optional[AnalysisPoint] = None):
        if node_count < 1:
            raise MnaInputError(context="assembly", details=f"Node count must include ground, got {node_count}.")
        self.node_count = node_count
        self.point = point or AnalysisPoint.dc()
        self._g_rows: List[int] = []
        self._g_cols: List[int] = []
        self._g_data: List[float] = []
        self._b_rows: List[int] = []
        self._b_cols: List[int] = []
        self._b_data: List[float] = []
        self._injections = np.zeros(node_count, dtype=float)
        self._source_values: List[float] = []
        self.branch_ids: List[str] = []

        self._stampers: Dict[Type[ElementStamp], Callable[[ElementStamp], None]] = {
            ResistorStamp: self._stamp_resistor,
            VoltageSourceStamp: self._stamp_voltage_source,
            CurrentSourceStamp: self._stamp_current_source,
            CapacitorStamp: self._stamp_capacitor,
            InductorStamp: self._stamp_inductor,
        }

    def _check_node(self, node: int, element_id: str) -> None:
        if not 0 <= node < self.node_count:
            raise MnaInputError(
                context=element_id,
                details=f"Terminal node {node} is outside the node space [0, {self.node_count}).",
            )

    def add_conductance(self, a: int, b: int, g: float) -> None:
        """Symmetric two-terminal conductance stamp."""
        if g < G_NEGLIGIBLE:
            return
        self._g_rows.extend((a, b, a, b))
        self._g_cols.extend((a, b, b, a))
        self._g_data.extend((g, g, -g, -g))

    def add_current(self, a: int, b: int, current: float) -> None:
        """A current `current` flowing from `a` through the source to `b`."""
        self._injections[a] -= current
        self._injections[b] += current

    def add_voltage_branch(self, branch_id: str, positive: int, negative: int, value: float) -> int:
        """Adds one branch-current unknown constraining V(positive) - V(negative) = value."""
        k = len(self.branch_ids)
        self.branch_ids.append(branch_id)
        self._source_values.append(value)
        self._b_rows.extend((positive, negative))
        self._b_cols.extend((k, k))
        self._b_data.extend((1.0, -1.0))
        return k

    def stamp(self, element: ElementStamp) -> None:
        if element.floating:
            return
        stamper = self._stampers.get(type(element))
        if stamper is None:
            raise MnaInputError(
                context=element.element_id,
                details=f"'{type(element).__name__}' is not a linear element and must be expanded before assembly.",
            )
        for node in element.terminals:
            self._check_node(node, element.element_id)
        stamper(element)

    def stamp_all(self, elements: Sequence[ElementStamp]) -> "MnaAssembler":
        for element in elements:
            self.stamp(element)
        return self

    def _stamp_resistor(self, element: ResistorStamp) -> None:
        self.add_conductance(element.a, element.b, 1.0 / element.resistance)

    def _stamp_voltage_source(self, element: VoltageSourceStamp) -> None:
        self.add_voltage_branch(element.element_id, element.positive, element.negative, element.value_at(self.point.time))

    def _stamp_current_source(self, element: CurrentSourceStamp) -> None:
        self.add_current(element.a, element.b, element.current)

    def _stamp_capacitor(self, element: CapacitorStamp) -> None:
        self.add_conductance(element.a, element.b, 1.0 / element.leakage_resistance)
        if not self.point.is_transient:
            return
        g = element.capacitance / self.point.dt
        v_prev = self.point.capacitor_voltages.get(element.element_id, 0.0)
        self.add_conductance(element.a, element.b, g)
        # Norton history source pushes g * v_prev into terminal a.
        self.add_current(element.b, element.a, g * v_prev)

    def _stamp_inductor(self, element: InductorStamp) -> None:
        if not self.point.is_transient:
            self.add_conductance(element.a, element.b, 1.0 / self.point.dc_inductor_resistance)
            return
        i_prev = self.point.inductor_currents.get(element.element_id, 0.0)
        self.add_conductance(element.a, element.b, self.point.dt / element.inductance)
        self.add_current(element.a, element.b, i_prev)

    def assemble(self, gmin: float = 0.0) -> MnaSystem:
        """
        Builds the reduced sparse system. Duplicate COO entries are summed.
        `gmin` adds a uniform shunt conductance on every non-ground node.
        """
        n = self.node_count
        m = len(self.branch_ids)
        size = n + m

        rows = list(self._g_rows)
        cols = list(self._g_cols)
        data = list(self._g_data)
        for r, k, value in zip(self._b_rows, self._b_cols, self._b_data):
            rows.extend((r, n + k))
            cols.extend((n + k, r))
            data.extend((value, value))
        if gmin > 0:
            rows.extend(range(1, n))
            cols.extend(range(1, n))
            data.extend([gmin] * (n - 1))

        full = sp.coo_matrix((np.asarray(data, dtype=float), (rows, cols)), shape=(size, size)).tocsc()
        rhs = np.concatenate([self._injections, np.asarray(self._source_values, dtype=float)])

        keep = np.arange(1, size)
        reduced = full[keep, :][:, keep]
        logger.debug(f"Assembled MNA system: {n - 1} node unknown(s), {m} branch unknown(s), gmin={gmin:g}.")
        return MnaSystem(matrix=reduced.tocsc(), rhs=rhs[1:], node_count=n, branch_ids=list(self.branch_ids), gmin=gmin)


def node_voltage(voltages: Sequence[float], node: Node) -> float:
    if node is None:
        return 0.0
    return float(voltages[node])


def linear_element_current(
    element: ElementStamp,
    voltages: Sequence[float],
    source_currents: Mapping[str, float],
    point: AnalysisPoint,
) -> float:
    """
    Branch current of a linear element from a solved system, positive from the
    element's first terminal to its second. Floating elements carry none.
    """
    if element.floating:
        return 0.0
    if isinstance(element, VoltageSourceStamp):
        return source_currents.get(element.element_id, 0.0)
    if isinstance(element, CurrentSourceStamp):
        return element.current

    a, b = element.terminals
    v_ab = node_voltage(voltages, a) - node_voltage(voltages, b)
    if isinstance(element, ResistorStamp):
        return v_ab / element.resistance
    if isinstance(element, CapacitorStamp):
        if point.is_transient:
            v_prev = point.capacitor_voltages.get(element.element_id, 0.0)
            return element.capacitance * (v_ab - v_prev) / point.dt
        return v_ab / element.leakage_resistance
    if isinstance(element, InductorStamp):
        if point.is_transient:
            return point.inductor_currents.get(element.element_id, 0.0) + point.dt / element.inductance * v_ab
        return v_ab / point.dc_inductor_resistance
    raise MnaInputError(context=element.element_id, details=f"No current rule for '{type(element).__name__}'.")
