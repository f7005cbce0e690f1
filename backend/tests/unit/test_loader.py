# backend/tests/unit/test_loader.py
import json

import pytest

from kaani.config.settings import DEFAULT_FLOWS_DIR
from kaani.workflows.errors import FlowDefinitionError
from kaani.workflows.loader import FlowRegistry, flow_filename, parse_flow_file


def _write_flow(directory, audience, data, flow_id="default"):
    path = directory / flow_filename(audience, flow_id)
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def test_flow_filename():
    assert flow_filename("farmer", "default") == "farmer.default.flow.json"


def test_registry_loads_and_caches(flows_dir):
    registry = FlowRegistry(str(flows_dir))
    first = registry.load("loan_officer", "default")

    assert first is not None
    assert first.id == "default"
    assert [step.id for step in first.steps] == ["ask_crop", "ask_hectares", "ask_province", "ask_irrigation"]
    assert registry.load("loan_officer", "default") is first


def test_registry_loads_bundled_flows():
    registry = FlowRegistry(DEFAULT_FLOWS_DIR, strict=True)
    assert registry.load("farmer").audience == "farmer"
    assert registry.load("loan_officer").audience == "loan_officer"


def test_clear_forces_reload(flows_dir):
    registry = FlowRegistry(str(flows_dir))
    first = registry.load("farmer")
    registry.clear()
    second = registry.load("farmer")
    assert second is not first
    assert second == first


def test_missing_flow_returns_none(tmp_path):
    assert FlowRegistry(str(tmp_path)).load("farmer", "nope") is None


def test_invalid_json_returns_none(tmp_path):
    (tmp_path / "farmer.default.flow.json").write_text("{not json", encoding="utf-8")
    registry = FlowRegistry(str(tmp_path))

    assert registry.load("farmer") is None
    with pytest.raises(FlowDefinitionError, match="JSON parse error"):
        registry.load_strict("farmer")


def test_schema_violation_lists_problems(tmp_path, guided_flow_data):
    del guided_flow_data["steps"][0]["prompt"]
    guided_flow_data["slots"][1]["type"] = "integer"
    path = _write_flow(tmp_path, "loan_officer", guided_flow_data)

    with pytest.raises(FlowDefinitionError) as exc_info:
        parse_flow_file(str(path))

    error = exc_info.value
    assert str(error).startswith(f"{path} - Schema validation failed")
    assert any("steps.0.prompt" in problem for problem in error.problems)
    assert any("slots.1.type" in problem for problem in error.problems)
    assert FlowRegistry(str(tmp_path)).load("loan_officer") is None


def test_dangling_reference_rejected_only_in_strict_mode(tmp_path, guided_flow_data):
    guided_flow_data["steps"][0]["next"] = "ask_budget"
    _write_flow(tmp_path, "loan_officer", guided_flow_data)

    assert FlowRegistry(str(tmp_path)).load("loan_officer") is not None

    strict_registry = FlowRegistry(str(tmp_path), strict=True)
    assert strict_registry.load("loan_officer") is None
    with pytest.raises(FlowDefinitionError, match="Referential validation failed") as exc_info:
        strict_registry.load_strict("loan_officer")
    assert exc_info.value.problems == ["Step 'ask_crop' transitions to unknown step 'ask_budget'"]


def test_audience_mismatch_is_rejected(tmp_path, guided_flow_data):
    # File named for farmers but declaring the loan officer audience
    _write_flow(tmp_path, "farmer", guided_flow_data)
    registry = FlowRegistry(str(tmp_path))

    with pytest.raises(FlowDefinitionError, match="does not match requested audience"):
        registry.load_strict("farmer")
    assert registry.load("farmer") is None


def test_invalid_pattern_returns_none_in_lenient_mode(tmp_path, guided_flow_data):
    guided_flow_data["slots"][2]["validation"] = {"pattern": "([a-z"}
    path = _write_flow(tmp_path, "loan_officer", guided_flow_data)

    with pytest.raises(FlowDefinitionError) as exc_info:
        parse_flow_file(str(path))
    assert any(problem.startswith("slots.2.validation.pattern") for problem in exc_info.value.problems)
    assert FlowRegistry(str(tmp_path)).load("loan_officer") is None


def test_numeric_in_condition_loads(tmp_path, guided_flow_data):
    guided_flow_data["steps"][1]["next"] = {
        "when": [{"slotKey": "hectares", "op": "in", "value": [1, 2, 3]}], "go": "ask_province",
    }
    _write_flow(tmp_path, "loan_officer", guided_flow_data)

    flow = FlowRegistry(str(tmp_path), strict=True).load("loan_officer")
    assert flow is not None
    assert flow.get_step("ask_hectares").next.when[0].value == [1, 2, 3]


def test_preload_reports_loaded_audiences(flows_dir):
    registry = FlowRegistry(str(flows_dir))
    assert registry.preload() == ["loan_officer", "farmer"]
    assert registry.load("farmer") is registry.load("farmer")


def test_preload_skips_missing_flows(tmp_path, guided_flow_data):
    _write_flow(tmp_path, "loan_officer", guided_flow_data)
    assert FlowRegistry(str(tmp_path)).preload() == ["loan_officer"]
