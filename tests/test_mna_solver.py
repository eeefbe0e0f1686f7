# tests/test_mna_solver.py

import numpy as np
import pytest

from circuitsim_core.netlist import (
    CapacitorStamp, CurrentSourceStamp, InductorStamp, LedStamp, ResistorStamp, VoltageSourceStamp
)
from circuitsim_core.simulation import AnalysisPoint, MnaAssembler, MnaInputError
from circuitsim_core.simulation.mna import linear_element_current
from circuitsim_core.simulation.solver import (
    SINGULAR_REASON, gaussian_eliminate, solve_mna_system, solve_with_gmin_retry
)

PIVOT_TOLERANCE = 1e-13


def solve(node_count, elements, point=None, gmin=0.0):
    assembler = MnaAssembler(node_count, point).stamp_all(elements)
    return solve_mna_system(assembler.assemble(gmin=gmin), PIVOT_TOLERANCE)


class TestGaussianElimination:

    def test_matches_numpy_on_well_conditioned_system(self):
        rng = np.random.default_rng(1234)
        matrix = rng.normal(size=(6, 6)) + 6 * np.eye(6)
        rhs = rng.normal(size=6)
        x = gaussian_eliminate(matrix, rhs, PIVOT_TOLERANCE)
        np.testing.assert_allclose(x, np.linalg.solve(matrix, rhs), rtol=1e-10)

    def test_needs_row_exchange(self):
        matrix = np.array([[0.0, 1.0], [1.0, 0.0]])
        x = gaussian_eliminate(matrix, np.array([2.0, 3.0]), PIVOT_TOLERANCE)
        np.testing.assert_allclose(x, [3.0, 2.0])

    def test_singular_returns_none(self):
        matrix = np.array([[1.0, 2.0], [2.0, 4.0]])
        assert gaussian_eliminate(matrix, np.array([1.0, 2.0]), PIVOT_TOLERANCE) is None

    def test_inputs_are_not_modified(self):
        matrix = np.array([[2.0, 1.0], [1.0, 3.0]])
        rhs = np.array([1.0, 2.0])
        gaussian_eliminate(matrix, rhs, PIVOT_TOLERANCE)
        np.testing.assert_array_equal(matrix, [[2.0, 1.0], [1.0, 3.0]])
        np.testing.assert_array_equal(rhs, [1.0, 2.0])

    def test_empty_system(self):
        assert gaussian_eliminate(np.zeros((0, 0)), np.zeros(0), PIVOT_TOLERANCE).shape == (0,)


class TestMnaAssembly:

    def test_voltage_divider(self):
        solution = solve(3, [
            VoltageSourceStamp("v1", "v1", 1, 0, 10.0),
            ResistorStamp("r1", "r1", 1, 2, 1000.0),
            ResistorStamp("r2", "r2", 2, 0, 1000.0),
        ])
        assert not solution.singular
        np.testing.assert_allclose(solution.node_voltages, [0.0, 10.0, 5.0])
        # Current into the positive terminal through the source: negative while delivering.
        assert solution.source_currents["v1"] == pytest.approx(-0.005)

    def test_current_source_direction(self):
        solution = solve(2, [
            CurrentSourceStamp("i1", "i1", 0, 1, 1e-3),
            ResistorStamp("r1", "r1", 1, 0, 1000.0),
        ])
        assert solution.node_voltages[1] == pytest.approx(1.0)

    def test_duplicate_entries_are_summed(self):
        solution = solve(2, [
            VoltageSourceStamp("v1", "v1", 1, 0, 1.0),
            ResistorStamp("r1", "r1", 1, 0, 100.0),
            ResistorStamp("r2", "r2", 1, 0, 100.0),
        ])
        assert solution.source_currents["v1"] == pytest.approx(-0.02)

    def test_floating_elements_are_skipped(self):
        solution = solve(2, [
            VoltageSourceStamp("v1", "v1", 1, 0, 3.0),
            ResistorStamp("r1", "r1", 1, 0, 100.0),
            ResistorStamp("dangling", "dangling", 1, None, 1.0),
        ])
        assert solution.source_currents["v1"] == pytest.approx(-0.03)

    def test_node_out_of_range(self):
        with pytest.raises(MnaInputError, match="outside the node space"):
            MnaAssembler(2).stamp(ResistorStamp("r1", "r1", 1, 5, 100.0))

    def test_nonlinear_element_must_be_expanded(self):
        with pytest.raises(MnaInputError, match="must be expanded"):
            MnaAssembler(2).stamp(LedStamp("led1", "led1", 1, 0, 2.0, 30.0, 1e6))

    def test_system_shape_drops_ground(self):
        assembler = MnaAssembler(3).stamp_all([
            VoltageSourceStamp("v1", "v1", 1, 0, 1.0),
            ResistorStamp("r1", "r1", 1, 2, 1.0),
        ])
        system = assembler.assemble()
        assert system.size == 3
        assert system.branch_ids == ["v1"]

    def test_capacitor_is_leakage_only_at_dc(self):
        solution = solve(3, [
            VoltageSourceStamp("v1", "v1", 1, 0, 10.0),
            ResistorStamp("r1", "r1", 1, 2, 1000.0),
            CapacitorStamp("c1", "c1", 2, 0, capacitance=1e-6, leakage_resistance=1000.0),
        ])
        assert solution.node_voltages[2] == pytest.approx(5.0)

    def test_capacitor_companion_in_transient(self):
        point = AnalysisPoint.transient(time=1e-3, dt=1e-3, capacitor_voltages={"c1": 2.0}, inductor_currents={})
        cap = CapacitorStamp("c1", "c1", 1, 0, capacitance=1e-3, leakage_resistance=1e12)
        solution = solve(2, [cap, ResistorStamp("r1", "r1", 1, 0, 1.0)], point)
        # G_c = 1 S with a 2 A history source, into 1 ohm: 2 V / 2 = 1 V.
        assert solution.node_voltages[1] == pytest.approx(1.0, rel=1e-9)
        current = linear_element_current(cap, solution.node_voltages, {}, point)
        assert current == pytest.approx(-1.0, rel=1e-9)

    def test_inductor_dc_stand_in(self):
        elements = [
            VoltageSourceStamp("v1", "v1", 1, 0, 1.0),
            InductorStamp("l1", "l1", 1, 0, inductance=1e-3),
        ]
        open_solution = solve(2, elements, AnalysisPoint.dc())
        assert open_solution.source_currents["v1"] == pytest.approx(-1e-9)
        short_solution = solve(2, elements, AnalysisPoint.dc(dc_inductor_resistance=1e-6))
        assert short_solution.source_currents["v1"] == pytest.approx(-1e6)

    def test_transient_point_rejects_bad_timestep(self):
        with pytest.raises(MnaInputError):
            AnalysisPoint.transient(time=0.0, dt=0.0, capacitor_voltages={}, inductor_currents={})


class TestSingularity:

    def parallel_ideal_sources(self):
        return MnaAssembler(2).stamp_all([
            VoltageSourceStamp("v1", "v1", 1, 0, 5.0),
            VoltageSourceStamp("v2", "v2", 1, 0, 3.0),
        ])

    def test_conflicting_sources_are_singular(self):
        solution = solve_mna_system(self.parallel_ideal_sources().assemble(), PIVOT_TOLERANCE)
        assert solution.singular
        assert solution.reason == SINGULAR_REASON
        np.testing.assert_array_equal(solution.node_voltages, [0.0, 0.0])
        assert solution.source_currents == {"v1": 0.0, "v2": 0.0}

    def test_gmin_retry_cannot_fix_conflicting_sources(self):
        solution = solve_with_gmin_retry(self.parallel_ideal_sources(), PIVOT_TOLERANCE, gmin=1e-12)
        assert solution.singular
        assert solution.used_gmin

    def test_gmin_rescues_floating_node(self):
        # Node 2 is only reachable through a current source: no DC path to ground.
        assembler = MnaAssembler(3).stamp_all([
            VoltageSourceStamp("v1", "v1", 1, 0, 5.0),
            ResistorStamp("r1", "r1", 1, 0, 100.0),
            CurrentSourceStamp("i1", "i1", 2, 1, 0.0),
        ])
        assert solve_mna_system(assembler.assemble(), PIVOT_TOLERANCE).singular
        solution = solve_with_gmin_retry(assembler, PIVOT_TOLERANCE, gmin=1e-12)
        assert not solution.singular
        assert solution.used_gmin
        assert solution.node_voltages[1] == pytest.approx(5.0)

    def test_no_retry_when_gmin_disabled(self):
        solution = solve_with_gmin_retry(self.parallel_ideal_sources(), PIVOT_TOLERANCE, gmin=0.0)
        assert solution.singular
        assert not solution.used_gmin
