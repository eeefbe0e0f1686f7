# src/circuitsim_core/simulation/solver.py
import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

import numpy as np

from .mna import MnaAssembler, MnaSystem

logger = logging.getLogger(__name__)

SINGULAR_REASON = "Circuit is floating or open (singular matrix); no solution"


@dataclass(frozen=True)
class LinearSolution:
    """
    Outcome of one linear solve. `node_voltages[0]` is ground. A singular
    solve carries all-zero voltages and currents plus a reason string.
    """
    node_voltages: np.ndarray
    source_currents: Dict[str, float] = field(default_factory=dict)
    singular: bool = False
    reason: Optional[str] = None
    used_gmin: bool = False


def gaussian_eliminate(matrix: np.ndarray, rhs: np.ndarray, pivot_tolerance: float) -> Optional[np.ndarray]:
    """
    Solves `matrix @ x = rhs` by Gaussian elimination with partial pivoting.

    Returns None when the best available pivot in some column is smaller in
    magnitude than `pivot_tolerance`.
    """
    a = np.array(matrix, dtype=float, copy=True)
    b = np.array(rhs, dtype=float, copy=True)
    n = a.shape[0]
    if n == 0:
        return np.zeros(0)

    for col in range(n):
        pivot_row = col + int(np.argmax(np.abs(a[col:, col])))
        if abs(a[pivot_row, col]) < pivot_tolerance:
            return None
        if pivot_row != col:
            a[[col, pivot_row]] = a[[pivot_row, col]]
            b[[col, pivot_row]] = b[[pivot_row, col]]
        factors = a[col + 1:, col] / a[col, col]
        a[col + 1:, col:] -= np.outer(factors, a[col, col:])
        b[col + 1:] -= factors * b[col]

    x = np.zeros(n)
    for row in range(n - 1, -1, -1):
        x[row] = (b[row] - a[row, row + 1:] @ x[row + 1:]) / a[row, row]
    if not np.all(np.isfinite(x)):
        return None
    return x


def solve_mna_system(system: MnaSystem, pivot_tolerance: float) -> LinearSolution:
    """Solves an assembled system and splits the unknowns into voltages and branch currents."""
    n = system.node_count
    x = gaussian_eliminate(system.matrix.toarray(), system.rhs, pivot_tolerance)
    if x is None:
        return LinearSolution(
            node_voltages=np.zeros(n),
            source_currents={branch_id: 0.0 for branch_id in system.branch_ids},
            singular=True,
            reason=SINGULAR_REASON,
            used_gmin=system.gmin > 0,
        )
    voltages = np.concatenate([[0.0], x[: n - 1]])
    currents = {branch_id: float(x[n - 1 + k]) for k, branch_id in enumerate(system.branch_ids)}
    return LinearSolution(node_voltages=voltages, source_currents=currents, used_gmin=system.gmin > 0)


def solve_with_gmin_retry(assembler: MnaAssembler, pivot_tolerance: float, gmin: float) -> LinearSolution:
    """
    Solves the assembled system; if it is singular, retries exactly once with a
    gmin shunt on every non-ground node. The second result is returned whether
    or not it succeeded.
    """
    solution = solve_mna_system(assembler.assemble(), pivot_tolerance)
    if not solution.singular or gmin <= 0:
        return solution
    logger.warning(f"Singular MNA system; retrying with gmin={gmin:g} S on {assembler.node_count - 1} node(s).")
    retried = solve_mna_system(assembler.assemble(gmin=gmin), pivot_tolerance)
    if retried.singular:
        logger.warning("MNA system is still singular after gmin stabilization.")
    return retried
