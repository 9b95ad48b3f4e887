from __future__ import annotations

import pytest

from calldata_builder import CallBuilder, IncompleteCallError
from calldata_builder.abi_types import parse_type
from calldata_builder.validator import check_leaf, validate_function_name
from conftest import ALICE


@pytest.mark.parametrize(
    ("tag", "value"),
    [
        ("address", ALICE),
        ("address", "0x" + "aB" * 20),
        ("uint8", "255"),
        ("uint8", "0"),
        ("int8", "-128"),
        ("int8", "127"),
        ("uint256", str(2**256 - 1)),
        ("bool", "true"),
        ("bool", "FALSE"),
        ("bool", True),
        ("string", "hello"),
        ("bytes", "0x"),
        ("bytes", "0xdeadbeef"),
        ("bytes4", "0xdeadbeef"),
    ],
)
def test_valid_leaves(tag: str, value: object) -> None:
    assert check_leaf(parse_type(tag), value) is None


@pytest.mark.parametrize(
    ("tag", "value", "reason"),
    [
        ("address", "0x" + "11" * 19, "Invalid address format"),
        ("address", "11" * 21, "Invalid address format"),
        ("address", "0x" + "zz" * 20, "Invalid address format"),
        ("uint8", "256", "exceeds uint8 maximum"),
        ("uint8", "-1", "non-negative integer"),
        ("uint8", "1.5", "non-negative integer"),
        ("int8", "-129", "out of int8 range"),
        ("int8", "128", "out of int8 range"),
        ("int8", "--1", "Must be an integer"),
        ("uint256", str(2**256), "exceeds uint256 maximum"),
        ("bool", "yes", '"true" or "false"'),
        ("bytes", "0xabc", "even number"),
        ("bytes", "deadbeef", "Must be hex"),
        ("bytes4", "0xdead", "exactly 8 hex characters"),
        ("uint8", 5, "Expected text"),
        ("uint256", "\u0661\u0662", "non-negative integer"),
        ("int16", "-\u0661", "Must be an integer"),
    ],
)
def test_invalid_leaves(tag: str, value: object, reason: str) -> None:
    result = check_leaf(parse_type(tag), value)
    assert result is not None
    assert reason in result


@pytest.mark.parametrize("name", ["transfer", "_x", "a1_b2"])
def test_valid_function_names(name: str) -> None:
    assert validate_function_name(name) is None


@pytest.mark.parametrize("name", ["", "   ", "1abc", "with space", "dash-ed", "f()", "transfer\n", "f\u00e9"])
def test_invalid_function_names(name: str) -> None:
    assert validate_function_name(name) is not None


class TestWholeTree:
    def test_uint8_boundary(self) -> None:
        b = CallBuilder("f")
        p = b.add_parameter("x", "uint8")
        b.set_value([p], "256")
        report = b.validate()
        assert not report.valid
        assert "exceeds" in report.by_path()[(p,)][0]

        b.set_value([p], "255")
        assert b.validate().valid

    def test_empty_values_are_required_for_completeness(self) -> None:
        b = CallBuilder("f")
        p = b.add_parameter("to", "address")
        assert b.validate_node([p]) == []
        report = b.validate()
        assert report.by_path() == {(p,): ["Value is required"]}
        assert report.extractable_count == 0
        assert report.parameter_count == 1

    def test_empty_string_argument_is_complete(self) -> None:
        b = CallBuilder("f")
        b.add_parameter("note", "string")
        assert b.validate().valid

    def test_function_name_reported_at_root(self) -> None:
        b = CallBuilder("")
        report = b.validate()
        assert [(f.path, f.reason) for f in report.failures] == [((), "Function name is required")]
        b.set_function_name("9lives")
        assert b.validate().failures[0].path == ()

    def test_trailing_newline_in_function_name_is_rejected(self) -> None:
        report = CallBuilder("transfer\n").validate()
        assert not report.valid
        with pytest.raises(IncompleteCallError):
            CallBuilder("transfer\n").encode()

    def test_zero_field_tuple_is_incomplete(self) -> None:
        b = CallBuilder("f")
        t = b.add_parameter("s", "tuple")
        assert b.validate_node([t]) == []
        assert b.validate().by_path() == {(t,): ["Tuple must have at least one field"]}

    def test_missing_tuple_key_reported_on_field(self) -> None:
        b = CallBuilder("f")
        t = b.add_parameter("s", "tuple")
        f = b.add_component([t], "a", "uint8")
        b.store.get(t).pop("a")
        assert b.validate().by_path() == {(t, f): ["Missing component: a"]}

    def test_array_failures_point_at_items(self) -> None:
        b = CallBuilder("f")
        arr = b.add_parameter("xs", "uint8[]")
        ok = b.add_item([arr], "1")
        bad = b.add_item([arr], "300")
        failures = b.validate().failures
        assert [f.path for f in failures] == [(arr, bad)]
        assert ok not in failures[0].path

    def test_empty_array_is_valid(self) -> None:
        b = CallBuilder("f")
        b.add_parameter("xs", "address[]")
        assert b.validate().valid

    def test_validate_node_reports_invalid_nonempty(self) -> None:
        b = CallBuilder("f")
        p = b.add_parameter("flag", "bool")
        b.set_value([p], "maybe")
        (failure,) = b.validate_node([p])
        assert failure.path == (p,)
        assert failure.to_dict()["code"] == 2001

    def test_report_to_dict(self) -> None:
        b = CallBuilder("f")
        p = b.add_parameter("x", "uint8")
        b.set_value([p], "999")
        d = b.validate().to_dict()
        assert d["valid"] is False
        assert d["failures"][0]["path"] == [p]

    def test_orphaned_cells_are_ignored(self) -> None:
        b = CallBuilder("f")
        p = b.add_parameter("x", "uint8")
        b.store.put("orphan", "not a number")
        assert b.validate().valid
        assert b.extract() == [0]
        assert p in b.store

    def test_extract_requires_completeness(self) -> None:
        b = CallBuilder("f")
        b.add_parameter("to", "address")
        with pytest.raises(IncompleteCallError) as exc:
            b.extract()
        assert len(exc.value.failures) == 1
