# tests/test_circuit_builder.py

"""
Tests for the CircuitBuilder: variant resolution, parameter/state resolution
through the component specs and top-level error reporting.
"""

import pytest

from circuitsim_core import CircuitBuilder, CircuitBuildError, SnapshotParser
from circuitsim_core.circuit_builder import resolve_component_type
from circuitsim_core.components import (
    DcSupply, DpdtSwitch, NormallyClosedPushButton, PushButton, Resistor, SpdtSwitch, SpstSwitch
)
from circuitsim_core.data_structures import PinRef

from conftest import part, snapshot_dict


def build(components, wires=()):
    return CircuitBuilder().build(SnapshotParser().parse_dict(snapshot_dict(components, wires)))


class TestVariantResolution:

    @pytest.mark.parametrize("type_str, variant, expected", [
        ("switch", None, "switch"),
        ("switch", "SPST", "switch"),
        ("switch", "spdt", "switch_spdt"),
        ("switch", "DPST", "switch_dpst"),
        ("switch", "DPDT", "switch_dpdt"),
        ("push_button", "NO", "push_button"),
        ("push_button", "nc", "push_button_nc"),
        ("resistor", "anything", "resistor"),
    ])
    def test_resolve_component_type(self, type_str, variant, expected):
        assert resolve_component_type(type_str, variant) == expected

    def test_variants_build_distinct_classes(self):
        snapshot = build([
            part("s1", "switch"),
            part("s2", "switch", variant="SPDT"),
            part("s3", "switch", variant="DPDT"),
            part("b1", "push_button"),
            part("b2", "push_button", variant="NC"),
        ])
        assert isinstance(snapshot.components["s1"], SpstSwitch)
        assert isinstance(snapshot.components["s2"], SpdtSwitch)
        assert isinstance(snapshot.components["s3"], DpdtSwitch)
        assert type(snapshot.components["b1"]) is PushButton
        assert isinstance(snapshot.components["b2"], NormallyClosedPushButton)


class TestSnapshotSynthesis:

    def test_components_and_wires_are_carried(self):
        snapshot = build(
            [part("bat", "dc_supply", voltage="9 V"), part("r1", "resistor", resistance="1 kohm")],
            [("bat.+", "r1.a"), ("r1.b", "bat.-")],
        )
        assert list(snapshot.components) == ["bat", "r1"]
        assert isinstance(snapshot.components["bat"], DcSupply)
        assert isinstance(snapshot.components["r1"], Resistor)
        assert snapshot.components["r1"].param("resistance") == pytest.approx(1000.0)
        assert snapshot.components["bat"].param("voltage") == pytest.approx(9.0)
        # Wire endpoints are kept exactly as the editor named them.
        assert snapshot.wires[0].start == PinRef("bat", "+")
        assert snapshot.wires[1].end.key == "bat:-"

    def test_defaults_fill_missing_parameters(self):
        snapshot = build([part("led1", "led")])
        led = snapshot.components["led1"]
        assert led.param("forward_voltage") == pytest.approx(2.0)
        assert led.state == {"burned": False, "damage_ticks": 0}

    def test_dangling_wire_is_not_a_build_error(self):
        snapshot = build([part("r1", "resistor")], [("r1.a", "ghost.x")])
        assert len(snapshot.wires) == 1


class TestBuildFailures:
    """Every invalid definition surfaces as one CircuitBuildError with a report."""

    def test_unknown_component_type(self):
        with pytest.raises(CircuitBuildError, match="Unknown component type 'flux_capacitor'"):
            build([part("fc", "flux_capacitor")])

    def test_negative_resistance_is_rejected(self):
        with pytest.raises(CircuitBuildError, match="must be >= 0.0"):
            build([part("r1", "resistor", resistance=-5)])

    def test_wrong_dimension_is_rejected(self):
        with pytest.raises(CircuitBuildError) as excinfo:
            build([part("r1", "resistor", resistance="5 V")])
        report = str(excinfo.value)
        assert "Invalid Component Definition" in report
        assert "Component:      r1" in report
        assert "Parameter:      resistance" in report

    def test_undeclared_parameter_is_rejected(self):
        with pytest.raises(CircuitBuildError, match="Undeclared parameter"):
            build([part("r1", "resistor", capacitance="1 uF")])

    def test_invalid_state_value_is_rejected(self):
        with pytest.raises(CircuitBuildError, match="must be one of"):
            build([part("q1", "transistor", state={"polarity": "JFET"})])
