# tests/test_transient.py

"""
Transient behavior: Backward-Euler capacitor and inductor companions, the
caller-owned history, sticky reverse-voltage damage and the step APIs.
"""

import math

import pytest

from circuitsim_core import (
    SimulationRunError, SolverConfig, TransientConfig, TransientState, TransientStepper,
    run_transient, step_transient,
)
from circuitsim_core.simulation import ConfigParsingError, SimulationEngine

from conftest import part


@pytest.fixture
def rc_discharge(build_snapshot):
    """1 mF charged capacitor discharging through its own 1 kohm leakage (tau = 1 s)."""
    return build_snapshot(
        [
            part("c1", "capacitor", capacitance="1 mF", leakage_resistance="1 kohm"),
            part("gnd", "ground"),
            part("vm", "voltmeter"),
        ],
        [("c1.b", "gnd.gnd"), ("c1.a", "vm.pos"), ("vm.neg", "gnd.gnd")],
        name="RcDischarge",
    )


@pytest.fixture
def reversed_electrolytic(build_snapshot):
    def _build(voltage=5):
        return build_snapshot(
            [part("bat", "dc_supply", voltage=voltage), part("c1", "capacitor_polarized")],
            [("bat.pos", "c1.N"), ("c1.P", "bat.neg")],
            name="ReversedElectrolytic",
        )

    return _build


class TestRcDischarge:

    def test_backward_euler_decay(self, rc_discharge):
        run = run_transient(
            rc_discharge, TransientConfig(dt=0.01, duration=0.5), initial_capacitor_voltages={"c1": 5.0}
        )

        assert run.steps == 50
        assert run.times[0] == pytest.approx(0.01)
        assert run.times[-1] == pytest.approx(0.5)
        assert run.state.step_index == 50
        assert run.state.time == pytest.approx(0.5)

        # One BE step of an RC decay divides by (1 + dt / tau).
        expected = 5.0 / (1.01 ** 50)
        assert run.state.capacitor_voltages["c1"] == pytest.approx(expected, rel=1e-9)
        # Within first-order discretization error of the exact exponential.
        assert run.state.capacitor_voltages["c1"] == pytest.approx(5.0 * math.exp(-0.5), rel=0.01)

        result = run.last_result
        assert result.mode == "transient"
        assert result.time == pytest.approx(0.5)
        assert result.outputs["vm"].volts == pytest.approx(expected, rel=1e-9)

    def test_capacitor_current_balances_leakage(self, rc_discharge):
        run = run_transient(
            rc_discharge, TransientConfig(dt=0.01, duration=0.1), initial_capacitor_voltages={"c1": 5.0}
        )
        cap = run.last_result.outputs["c1"]
        assert cap.current < 0
        assert cap.current == pytest.approx(-cap.voltage / 1000.0, rel=1e-9)
        assert cap.energy == pytest.approx(0.5 * 1e-3 * cap.voltage ** 2)

    def test_at_least_one_step(self, rc_discharge):
        run = run_transient(rc_discharge, TransientConfig(dt=0.01, duration=0.0))
        assert run.steps == 1
        assert run.times == [pytest.approx(0.01)]

    def test_on_step_callback(self, rc_discharge):
        seen = []
        run_transient(rc_discharge, TransientConfig(dt=0.1, duration=0.3), on_step=lambda t, r: seen.append((t, r.time)))
        assert [t for t, _ in seen] == pytest.approx([0.1, 0.2, 0.3])
        assert all(t == r for t, r in seen)


class TestManualStepping:

    def test_step_transient_commits_history(self, rc_discharge):
        engine = SimulationEngine(rc_discharge)
        state = TransientState.initial(rc_discharge, engine.netlist, initial_capacitor_voltages={"c1": 2.0})

        result = step_transient(rc_discharge, state, dt=0.01, time=0.01)

        assert not result.singular
        assert state.capacitor_voltages["c1"] == pytest.approx(2.0 / 1.01)
        assert state.time == pytest.approx(0.01)
        assert state.step_index == 1

    def test_step_transient_rejects_bad_timestep(self, rc_discharge):
        engine = SimulationEngine(rc_discharge)
        state = TransientState.initial(rc_discharge, engine.netlist)
        with pytest.raises(SimulationRunError, match="Invalid Timestep"):
            step_transient(rc_discharge, state, dt=0.0, time=0.0)

    def test_stepper_seeds_and_advances(self, rc_discharge):
        stepper = TransientStepper(dt=0.01, initial_capacitor_voltages={"c1": 5.0})
        assert stepper.state is None
        assert stepper.time == 0.0

        stepper.advance(rc_discharge)
        result = stepper.advance(rc_discharge)

        assert stepper.time == pytest.approx(0.02)
        assert result.time == pytest.approx(0.02)
        assert stepper.state.capacitor_voltages["c1"] == pytest.approx(5.0 / 1.01 ** 2)

        stepper.reset()
        assert stepper.state is None

    def test_stepper_rejects_bad_timestep(self):
        with pytest.raises(ConfigParsingError):
            TransientStepper(dt=-1.0)


class TestPolarizedDamage:

    def test_reverse_bias_marks_damage(self, reversed_electrolytic):
        run = run_transient(reversed_electrolytic(), TransientConfig(dt=1e-5, duration=1e-4))

        assert run.state.capacitor_damaged["c1"] is True
        cap = run.last_result.outputs["c1"]
        assert cap.reversed
        assert cap.damaged
        assert cap.voltage < -1.0

    def test_damage_is_sticky(self, reversed_electrolytic):
        stepper = TransientStepper(dt=1e-5)
        for _ in range(5):
            stepper.advance(reversed_electrolytic(voltage=5))
        assert stepper.state.capacitor_damaged["c1"]

        # Remove the reverse drive; the capacitor relaxes but stays damaged.
        for _ in range(50):
            result = stepper.advance(reversed_electrolytic(voltage=0))
        assert result.outputs["c1"].voltage > -0.1
        assert result.outputs["c1"].damaged
        assert stepper.state.capacitor_damaged["c1"]

    def test_dc_solve_reports_component_damage_flag(self, build_snapshot):
        snapshot = build_snapshot(
            [part("bat", "dc_supply"), part("c1", "capacitor_polarized", state={"damaged": True})],
            [("bat.pos", "c1.P"), ("c1.N", "bat.neg")],
        )
        result = SimulationEngine(snapshot).solve_dc()
        assert result.outputs["c1"].damaged
        assert not result.outputs["c1"].reversed


class TestInductor:

    def test_rl_current_rises_to_steady_state(self, build_snapshot):
        snapshot = build_snapshot(
            [part("bat", "dc_supply"), part("r1", "resistor", resistance=100), part("l1", "inductor", inductance="1 mH")],
            [("bat.pos", "r1.a"), ("r1.b", "l1.a"), ("l1.b", "bat.neg")],
        )
        run = run_transient(snapshot, TransientConfig(dt=1e-6, duration=1e-4))
        assert run.state.inductor_currents["l1"] == pytest.approx(5.0 / 150.0, rel=1e-3)
        assert run.last_result.branch_currents["l1"] == pytest.approx(5.0 / 150.0, rel=1e-3)

    def test_first_step_current(self, build_snapshot):
        snapshot = build_snapshot(
            [part("bat", "dc_supply", internal_resistance=0), part("r1", "resistor", resistance=100),
             part("l1", "inductor", inductance="1 mH")],
            [("bat.pos", "r1.a"), ("r1.b", "l1.a"), ("l1.b", "bat.neg")],
        )
        run = run_transient(snapshot, TransientConfig(dt=1e-5, duration=1e-5))
        # BE: i1 = (dt / L) * V / (1 + R dt / L) with i0 = 0.
        g = 1e-5 / 1e-3
        assert run.state.inductor_currents["l1"] == pytest.approx(g * 5.0 / (1.0 + 100.0 * g), rel=1e-6)

    def test_dc_inductor_models(self, build_snapshot):
        snapshot = build_snapshot(
            [part("bat", "dc_supply"), part("r1", "resistor", resistance=100), part("l1", "inductor")],
            [("bat.pos", "r1.a"), ("r1.b", "l1.a"), ("l1.b", "bat.neg")],
        )
        open_result = SimulationEngine(snapshot).solve_dc()
        assert abs(open_result.branch_currents["l1"]) < 1e-8

        short_result = SimulationEngine(snapshot, SolverConfig(dc_inductor_model="short")).solve_dc()
        assert short_result.branch_currents["l1"] == pytest.approx(5.0 / 150.0, rel=1e-6)


class TestAcSource:

    def test_dc_solve_warns_and_uses_offset(self, build_snapshot):
        snapshot = build_snapshot(
            [
                part("bat", "dc_supply", state={"ac_enabled": True}, ac_amplitude=2, frequency="50 Hz"),
                part("r1", "resistor", resistance=950),
            ],
            [("bat.pos", "r1.a"), ("r1.b", "bat.neg")],
        )
        result = SimulationEngine(snapshot).solve_dc()
        assert "AC sources require transient simulation; showing DC offset only." in result.warnings
        assert result.branch_currents["r1"] == pytest.approx(5.0 / 1000.0)

    def test_transient_follows_waveform(self, build_snapshot):
        snapshot = build_snapshot(
            [
                part("bat", "dc_supply", internal_resistance=0, state={"ac_enabled": True},
                     ac_amplitude=2, frequency="50 Hz"),
                part("r1", "resistor", resistance=1000),
            ],
            [("bat.pos", "r1.a"), ("r1.b", "bat.neg")],
        )
        # 5 ms is a quarter period of 50 Hz: the waveform peaks.
        run = run_transient(snapshot, TransientConfig(dt=5e-3, duration=5e-3))
        assert run.last_result.branch_currents["r1"] == pytest.approx(7.0 / 1000.0)
        assert "AC sources require transient simulation; showing DC offset only." not in run.last_result.warnings
