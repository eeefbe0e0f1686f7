# tests/test_components.py

import math

import pint
import pytest

from circuitsim_core import COMPONENT_REGISTRY, ComponentBase, ComponentError, to_si_magnitude
from circuitsim_core.components import (
    Capacitor, Contact, ConductiveEdge, DcSupply, DpdtSwitch, IConductionContributor, IContactProvider,
    INetlistContributor, ITopologyContributor, Led, ParameterSpec, PolarizedCapacitor, Potentiometer,
    PushButton, NormallyClosedPushButton, SpdtSwitch, SpstSwitch, StateSpec, Transistor, TransistorRegion, Voltmeter,
    register_component,
)
from circuitsim_core.simulation import DeviceState, TransistorOperatingPoint


class TestUnitConversion:

    @pytest.mark.parametrize("raw, unit, expected", [
        (220, "ohm", 220.0),
        ("220", "ohm", 220.0),
        ("220 ohm", "ohm", 220.0),
        ("4.7 kohm", "ohm", 4700.0),
        ("1 uF", "farad", 1e-6),
        ("20 mA", "ampere", 0.02),
        ("50 mV", "volt", 0.05),
        (0.5, "", 0.5),
    ])
    def test_to_si_magnitude(self, raw, unit, expected):
        assert to_si_magnitude(raw, unit) == pytest.approx(expected)

    def test_incompatible_unit_raises(self):
        with pytest.raises(pint.DimensionalityError):
            to_si_magnitude("5 V", "ohm")

    def test_boolean_is_not_a_number(self):
        with pytest.raises(TypeError):
            to_si_magnitude(True, "volt")


class TestFieldSpecs:

    def test_parameter_default_floor_and_ceiling(self):
        spec = ParameterSpec("", 0.5, floor=0.0, ceiling=1.0)
        assert spec.resolve("position", None, "p1") == 0.5
        assert spec.resolve("position", 1.7, "p1") == 1.0
        assert spec.resolve("position", -0.2, "p1") == 0.0

    def test_parameter_minimum_rejects(self):
        spec = ParameterSpec("ohm", 100.0, minimum=0.0)
        with pytest.raises(ComponentError) as excinfo:
            spec.resolve("resistance", -1, "r1")
        assert excinfo.value.parameter == "resistance"
        assert excinfo.value.component_id == "r1"

    def test_parameter_must_be_finite(self):
        with pytest.raises(ComponentError, match="finite"):
            ParameterSpec("ohm", 1.0).resolve("resistance", math.inf, "r1")

    def test_state_allowed_values_are_case_insensitive(self):
        spec = StateSpec("NPN", allowed=("NPN", "PNP"))
        assert spec.resolve("polarity", "pnp", "q1") == "PNP"

    def test_state_types_are_enforced(self):
        with pytest.raises(ComponentError):
            StateSpec(False).resolve("on", "yes", "sw1")
        with pytest.raises(ComponentError):
            StateSpec(0).resolve("damage_ticks", True, "led1")
        with pytest.raises(ComponentError):
            StateSpec(0).resolve("damage_ticks", -3, "led1")


class TestComponentConstruction:

    def test_registry_contains_every_kind(self):
        expected = {
            "dc_supply", "ground", "power_rail", "resistor", "potentiometer", "capacitor",
            "capacitor_polarized", "inductor", "motor_dc", "motor_ac", "buzzer", "voltmeter",
            "switch", "switch_spdt", "switch_dpst", "switch_dpdt", "push_button", "push_button_nc",
            "led", "rgb_led", "diode", "transistor",
        }
        assert expected <= set(COMPONENT_REGISTRY)

    def test_parameter_aliases(self):
        led = Led.from_raw("led1", {"vf": "1.8 V", "rOn": 25})
        assert led.param("forward_voltage") == pytest.approx(1.8)
        assert led.param("on_resistance") == pytest.approx(25.0)

    def test_parameter_given_twice_via_alias(self):
        with pytest.raises(ComponentError, match="more than once"):
            Led.from_raw("led1", {"vf": 1.8, "forward_voltage": 2.0})

    def test_state_alias(self):
        switch = SpstSwitch.from_raw("sw1", raw_state={"closed": True})
        assert switch.state["on"] is True

    def test_pin_aliases(self):
        supply = DcSupply.from_raw("bat")
        assert supply.canonical_pin("+") == "pos"
        assert supply.canonical_pin("neg") == "neg"
        assert supply.canonical_pin("nope") is None
        assert PolarizedCapacitor.from_raw("c1").canonical_pin("-") == "N"

    def test_supply_voltage_is_clamped_to_max(self):
        supply = DcSupply.from_raw("bat", {"voltage": 20, "max_voltage": 12})
        assert supply.effective_voltage == pytest.approx(12.0)
        assert supply.waveform is None

    def test_supply_waveform_requires_ac_enabled(self):
        supply = DcSupply.from_raw("bat", {"ac_amplitude": 2, "frequency": "50 Hz"}, {"ac_enabled": True})
        waveform = supply.waveform
        assert waveform.amplitude == pytest.approx(2.0)
        assert waveform.value_at(1 / 200) == pytest.approx(2.0)

    def test_potentiometer_segments(self):
        pot = Potentiometer.from_raw("p1", {"total_resistance": "10 kohm", "position": 0.25})
        r_top, r_bot = pot.segment_resistances()
        assert r_top == pytest.approx(2500.0)
        assert r_bot == pytest.approx(7500.0)

        log_pot = Potentiometer.from_raw("p2", {"position": 0.5}, {"taper": "log"})
        assert log_pot.effective_position == pytest.approx(0.5 ** 2.2)

    def test_potentiometer_segments_never_collapse(self):
        pot = Potentiometer.from_raw("p1", {"total_resistance": 1000, "position": 0.0})
        r_top, r_bot = pot.segment_resistances()
        assert r_top == pytest.approx(0.1)
        assert r_bot == pytest.approx(999.9)

    def test_capacitor_reverse_limit_follows_rating(self):
        assert Capacitor.from_raw("c1", {"rated_voltage": 6.3}).reverse_voltage_limit == pytest.approx(0.63)
        assert Capacitor.from_raw("c2", {"rated_voltage": 50}).reverse_voltage_limit == pytest.approx(1.0)


class TestCapabilities:

    def test_voltmeter_contributes_nothing_to_the_matrix(self):
        meter = Voltmeter.from_raw("vm")
        assert meter.get_capability(INetlistContributor) is None
        assert meter.get_capability(IConductionContributor) is None

    def test_capability_instances_are_cached(self):
        led = Led.from_raw("led1")
        assert led.get_capability(ITopologyContributor) is led.get_capability(ITopologyContributor)

    def test_led_conducts_only_when_on(self):
        led = Led.from_raw("led1")
        conduction = led.get_capability(IConductionContributor)
        assert conduction.get_conductive_edges(led, DeviceState()) == []
        edges = conduction.get_conductive_edges(led, DeviceState(leds={"led1": True}))
        assert edges == [ConductiveEdge("anode", "cathode", bidirectional=False)]

    def test_transistor_edges_follow_polarity(self):
        pnp = Transistor.from_raw("q1", raw_state={"polarity": "PNP"})
        point = TransistorOperatingPoint(TransistorRegion.ACTIVE, True, 1e-4, 1e-2)
        edges = pnp.get_capability(IConductionContributor).get_conductive_edges(
            pnp, DeviceState(transistors={"q1": point})
        )
        assert [(e.source_pin, e.target_pin) for e in edges] == [("E", "B"), ("E", "C")]

    @pytest.mark.parametrize("component, closed_pairs", [
        (SpstSwitch.from_raw("s", raw_state={"on": True}), [("a", "b")]),
        (SpstSwitch.from_raw("s"), []),
        (SpdtSwitch.from_raw("s", raw_state={"position": "B"}), [("P2", "P3")]),
        (DpdtSwitch.from_raw("s"), [("P2", "P1"), ("P5", "P4")]),
        (PushButton.from_raw("s"), []),
        (PushButton.from_raw("s", raw_state={"pressed": True}), [("P1", "P2")]),
        (NormallyClosedPushButton.from_raw("s"), [("P1", "P2")]),
    ])
    def test_switch_contacts(self, component, closed_pairs):
        contacts = component.get_capability(IContactProvider).get_contacts(component)
        assert all(isinstance(c, Contact) for c in contacts)
        assert [(c.pin_a, c.pin_b) for c in contacts if c.closed] == closed_pairs

    def test_contact_element_ids(self):
        spst = SpstSwitch.from_raw("s1")
        assert spst.contact_element_id(spst.contacts()[0]) == "s1"
        dpdt = DpdtSwitch.from_raw("s2")
        assert [dpdt.contact_element_id(c) for c in dpdt.contacts()] == [
            "s2:COM1-A1", "s2:COM1-B1", "s2:COM2-A2", "s2:COM2-B2"
        ]


class TestRegistrationContracts:
    """The registry decorator rejects classes that break the component contract."""

    def test_duplicate_ports_rejected(self):
        with pytest.raises(TypeError, match="unique names"):
            @register_component("bad_duplicate_ports")
            class BadPorts(ComponentBase):
                @classmethod
                def declare_ports(cls):
                    return ["a", "a"]

        assert "bad_duplicate_ports" not in COMPONENT_REGISTRY

    def test_alias_to_unknown_port_rejected(self):
        with pytest.raises(TypeError, match="pin aliases"):
            @register_component("bad_alias")
            class BadAlias(ComponentBase):
                @classmethod
                def declare_ports(cls):
                    return ["a", "b"]

                @classmethod
                def declare_pin_aliases(cls):
                    return {"x": "c"}

    def test_non_spec_parameters_rejected(self):
        with pytest.raises(TypeError, match="ParameterSpec"):
            @register_component("bad_params")
            class BadParams(ComponentBase):
                @classmethod
                def declare_ports(cls):
                    return ["a"]

                @classmethod
                def declare_parameters(cls):
                    return {"resistance": 100.0}
