# tests/conftest.py
import pytest

from circuitsim_core import CircuitBuilder, SnapshotParser


def part(instance_id, type_str, state=None, variant=None, **parameters):
    """One editor component entry, e.g. part("r1", "resistor", resistance="1 kohm")."""
    entry = {"id": instance_id, "type": type_str}
    if variant:
        entry["variant"] = variant
    if parameters:
        entry["parameters"] = parameters
    if state:
        entry["state"] = state
    return entry


def snapshot_dict(components, wires=(), name="TestCircuit"):
    """
    Builds the raw snapshot mapping the editor would send.
    Wires are given as ("bat.pos", "r1.a") pairs.
    """
    def endpoint(ref):
        component, pin = ref.split(".", 1)
        return {"component": component, "pin": pin}

    return {
        "name": name,
        "components": list(components),
        "wires": [{"from": endpoint(a), "to": endpoint(b)} for a, b in wires],
    }


@pytest.fixture
def build_snapshot():
    """Factory fixture: parses and builds a `CircuitSnapshot` from parts and wire pairs."""
    parser = SnapshotParser()
    builder = CircuitBuilder()

    def _build(components, wires=(), name="TestCircuit"):
        return builder.build(parser.parse_dict(snapshot_dict(components, wires, name)))

    return _build


@pytest.fixture
def led_circuit(build_snapshot):
    """5V supply (50 ohm internal) -> 220 ohm -> red LED -> supply negative. Draws 10 mA."""
    return build_snapshot(
        [
            part("bat", "dc_supply", voltage="5 V"),
            part("r1", "resistor", resistance="220 ohm"),
            part("led1", "led"),
        ],
        [("bat.pos", "r1.a"), ("r1.b", "led1.anode"), ("led1.cathode", "bat.neg")],
        name="LedCircuit",
    )


@pytest.fixture
def motor_with_switch(build_snapshot):
    """Supply -> motor -> SPST switch -> supply negative; the switch state is a parameter of the factory."""
    def _build(switch_on, **motor_parameters):
        return build_snapshot(
            [
                part("bat", "dc_supply"),
                part("m1", "motor_dc", **motor_parameters),
                part("sw1", "switch", state={"on": switch_on}),
            ],
            [("bat.pos", "m1.P"), ("m1.N", "sw1.a"), ("sw1.b", "bat.neg")],
            name="MotorLoop",
        )

    return _build
