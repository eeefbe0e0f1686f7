# tests/test_parser.py

import pytest
from pathlib import Path

from circuitsim_core.parser import (
    SnapshotParser,
    ParsingError,
    SchemaValidationError,
    ParsedComponentData,
    ParsedWireData,
)

from conftest import part, snapshot_dict


@pytest.fixture
def parser():
    return SnapshotParser()


class TestSnapshotParserSuccess:
    """Structural validation of well-formed snapshots."""

    def test_parse_dict_builds_ir(self, parser):
        data = snapshot_dict(
            [part("bat", "dc_supply", voltage="9 V"), part("r1", "resistor", resistance=470)],
            [("bat.pos", "r1.a"), ("r1.b", "bat.neg")],
            name="Divider",
        )
        parsed = parser.parse_dict(data)

        assert parsed.name == "Divider"
        assert [c.instance_id for c in parsed.components] == ["bat", "r1"]
        bat = parsed.components[0]
        assert isinstance(bat, ParsedComponentData)
        assert bat.component_type == "dc_supply"
        assert bat.raw_parameters_dict == {"voltage": "9 V"}
        assert bat.raw_state_dict == {}
        assert parsed.components[1].raw_parameters_dict == {"resistance": 470}

        assert len(parsed.wires) == 2
        wire = parsed.wires[0]
        assert isinstance(wire, ParsedWireData)
        assert (wire.start_component, wire.start_pin, wire.end_component, wire.end_pin) == ("bat", "pos", "r1", "a")

    def test_wire_ids_default_to_their_index(self, parser):
        data = snapshot_dict([part("r1", "resistor"), part("r2", "resistor")], [("r1.a", "r2.a"), ("r1.b", "r2.b")])
        data["wires"][1]["id"] = "custom"
        parsed = parser.parse_dict(data)
        assert [w.wire_id for w in parsed.wires] == ["w0", "custom"]

    def test_wires_are_optional(self, parser):
        parsed = parser.parse_dict({"components": [part("r1", "resistor")]})
        assert parsed.wires == []
        assert parsed.name == "snapshot"

    def test_variant_state_and_position_are_carried(self, parser):
        data = {"components": [
            {"id": "sw1", "type": "switch", "variant": "DPDT", "state": {"position": "B"}, "position": [10, 20.5]},
        ]}
        component = parser.parse_dict(data).components[0]
        assert component.variant == "DPDT"
        assert component.raw_state_dict == {"position": "B"}
        assert component.position == (10, 20.5)

    def test_analysis_and_solver_blocks_pass_through(self, parser):
        data = {
            "components": [part("r1", "resistor")],
            "analysis": {"mode": "transient", "dt": "1 ms", "duration": 0.1},
            "solver": {"max_iterations": 20, "led_hysteresis": "20 mV"},
        }
        parsed = parser.parse_dict(data)
        assert parsed.raw_analysis == {"mode": "transient", "dt": "1 ms", "duration": 0.1}
        assert parsed.raw_solver == {"max_iterations": 20, "led_hysteresis": "20 mV"}

    def test_parse_yaml_file(self, parser, tmp_path):
        path = tmp_path / "blink.yaml"
        path.write_text("""
components:
  - id: bat
    type: dc_supply
    parameters: {voltage: "5 V"}
  - id: led1
    type: led
wires:
  - {from: {component: bat, pin: pos}, to: {component: led1, pin: anode}}
  - {from: {component: led1, pin: cathode}, to: {component: bat, pin: neg}}
""")
        parsed = parser.parse_file(path)
        assert parsed.name == "blink"
        assert parsed.source_path == path.resolve()
        assert parsed.components[0].source_path == path.resolve()
        assert len(parsed.wires) == 2

    def test_parse_json_file(self, parser, tmp_path):
        path = tmp_path / "single.json"
        path.write_text('{"name": "Single", "components": [{"id": "r1", "type": "resistor"}], "wires": []}')
        parsed = parser.parse_file(path)
        assert parsed.name == "Single"
        assert parsed.components[0].instance_id == "r1"


class TestSnapshotParserFailures:
    """Malformed snapshots are rejected with diagnosable errors."""

    def test_missing_file(self, parser, tmp_path):
        with pytest.raises(ParsingError, match="not found"):
            parser.parse_file(tmp_path / "missing.yaml")

    def test_invalid_yaml_syntax(self, parser, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("components: [ {id: r1, type: resistor")
        with pytest.raises(ParsingError, match="Invalid YAML/JSON syntax"):
            parser.parse_file(path)

    def test_empty_file(self, parser, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        with pytest.raises(ParsingError, match="empty"):
            parser.parse_file(path)

    def test_non_mapping_root(self, parser):
        with pytest.raises(ParsingError):
            parser.parse_dict(["not", "a", "mapping"])

    def test_missing_components(self, parser):
        with pytest.raises(SchemaValidationError) as excinfo:
            parser.parse_dict({"name": "Empty"})
        assert "components" in excinfo.value.errors

    def test_duplicate_component_ids(self, parser):
        data = {"components": [part("r1", "resistor"), part("r1", "led")]}
        with pytest.raises(SchemaValidationError, match="Duplicate values found for key 'id'"):
            parser.parse_dict(data)

    @pytest.mark.parametrize("bad_id", ["r:1", "r#1", "r 1"])
    def test_ids_must_be_pin_key_safe(self, parser, bad_id):
        with pytest.raises(SchemaValidationError, match="forbidden character"):
            parser.parse_dict({"components": [part(bad_id, "resistor")]})

    def test_wire_without_pin(self, parser):
        data = {
            "components": [part("r1", "resistor")],
            "wires": [{"from": {"component": "r1"}, "to": {"component": "r1", "pin": "b"}}],
        }
        with pytest.raises(SchemaValidationError):
            parser.parse_dict(data)

    def test_unknown_top_level_key(self, parser):
        with pytest.raises(SchemaValidationError):
            parser.parse_dict({"components": [], "layout": {}})

    def test_invalid_analysis_mode(self, parser):
        with pytest.raises(SchemaValidationError):
            parser.parse_dict({"components": [], "analysis": {"mode": "ac"}})

    def test_schema_report_is_actionable(self, parser):
        with pytest.raises(SchemaValidationError) as excinfo:
            parser.parse_dict({"components": [part("a:b", "resistor")]})
        report = excinfo.value.get_diagnostic_report()
        assert "Snapshot Schema Validation Error" in report
        assert "may not contain ':' or '#'" in report
