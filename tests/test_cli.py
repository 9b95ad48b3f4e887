from __future__ import annotations

import json
from pathlib import Path

import pytest
from eth_utils import to_checksum_address

from calldata_builder.cli import main
from conftest import ALICE, MIXED


def _run(argv: list[str], capsys) -> tuple[int, str]:
    try:
        main(argv)
    except SystemExit as e:
        return int(e.code or 0), capsys.readouterr().out
    return 0, capsys.readouterr().out


def test_encode_builtin_template(capsys) -> None:
    code, out = _run(["encode", "--template", "erc20-transfer"], capsys)
    assert code == 0
    assert out.strip() == "0xa9059cbb" + "0" * 24 + "11" * 20 + f"{10**18:064x}"


def test_encode_with_overrides(capsys) -> None:
    code, out = _run(["encode", "--template", "storage-set", "--set", "value=7"], capsys)
    assert code == 0
    assert out.strip() == "0x60fe47b1" + f"{7:064x}"


def test_encode_struct_field_override(capsys) -> None:
    code, out = _run(
        ["encode", "--template", "swap-exact-input-single", "--set", "params.amountIn=5"],
        capsys,
    )
    assert code == 0
    assert out.strip().startswith("0x414bf389")


def test_encode_array_override(capsys) -> None:
    code, out = _run(
        ["encode", "--template", "disperse-ether", "--set", f'recipients=["{ALICE}"]', "--set", "values=[1]"],
        capsys,
    )
    assert code == 0
    assert out.strip().startswith("0x")


def test_encode_transaction(capsys) -> None:
    code, out = _run(["encode", "--template", "storage-set", "--to", MIXED, "--value", "3"], capsys)
    assert code == 0
    tx = json.loads(out)
    assert tx["to"] == to_checksum_address(MIXED)
    assert tx["value"] == 3
    assert tx["data"].startswith("0x60fe47b1")


def test_encode_default_target_from_environment(capsys, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CALLDATA_BUILDER_TARGET", ALICE)
    code, out = _run(["encode", "--template", "storage-set"], capsys)
    assert code == 0
    assert json.loads(out)["to"] == ALICE


def test_encode_invalid_value_fails(capsys) -> None:
    code, out = _run(["encode", "--template", "storage-set", "--set", "value=abc"], capsys)
    assert code == 1
    assert "Validation failures" in out
    assert "value" in out


def test_encode_unknown_field_fails(capsys) -> None:
    code, out = _run(["encode", "--template", "storage-set", "--set", "nope=1"], capsys)
    assert code == 1
    assert "Error:" in out


def test_encode_non_ascii_index_fails(capsys) -> None:
    code, out = _run(["encode", "--template", "disperse-ether", "--set", f"recipients.\u00b2={ALICE}"], capsys)
    assert code == 1
    assert "Error:" in out


def test_encode_invalid_target_fails(capsys) -> None:
    code, out = _run(["encode", "--template", "storage-set", "--to", "0x1234"], capsys)
    assert code == 1
    assert "Invalid transaction to" in out


def test_encode_from_file_with_logs(tmp_path: Path, capsys) -> None:
    call = tmp_path / "call.json"
    call.write_text(
        json.dumps(
            {
                "name": "transfer",
                "inputs": [{"name": "to", "type": "address"}, {"name": "amount", "type": "uint256"}],
                "values": [ALICE, "1000000"],
            }
        )
    )
    log_dir = tmp_path / "logs"
    code, out = _run(["encode", str(call), "--log-dir", str(log_dir)], capsys)
    assert code == 0
    assert out.strip().endswith(f"{1_000_000:064x}")

    (run_dir,) = list(log_dir.iterdir())
    events = [json.loads(line)["event"] for line in (run_dir / "events.jsonl").read_text().splitlines()]
    assert events == ["template_loaded", "encoded"]
    payload = json.loads((run_dir / "payloads.jsonl").read_text())
    assert payload["signature"] == "transfer(address,uint256)"
    session = json.loads((run_dir / "session.json").read_text())
    assert session["function"]["name"] == "transfer"
    assert session["values"] == {"to": ALICE, "amount": "1000000"}


def test_invalid_file_template(tmp_path: Path, capsys) -> None:
    call = tmp_path / "call.json"
    call.write_text(json.dumps({"name": "f", "inputs": [{"name": "x"}]}))
    code, out = _run(["validate", str(call)], capsys)
    assert code == 1
    assert "missing required field 'type'" in out


def test_missing_source(capsys) -> None:
    code, out = _run(["describe"], capsys)
    assert code == 1
    assert "FILE or --template" in out


def test_validate_reports_ok(capsys) -> None:
    code, out = _run(["validate", "--template", "erc721-transfer-from"], capsys)
    assert code == 0
    assert "is complete" in out


def test_describe(capsys) -> None:
    code, out = _run(["describe", "--template", "erc20-transfer"], capsys)
    assert code == 0
    assert "transfer(address,uint256)" in out
    assert "transfer(address to, uint256 amount)" in out


def test_templates_listing(capsys) -> None:
    code, out = _run(["templates"], capsys)
    assert code == 0
    assert "erc20-transfer" in out
    assert "storage-set" in out


def test_types_search(capsys) -> None:
    code, out = _run(["types", "u256"], capsys)
    assert code == 0
    assert "uint256" in out
    assert "int128" not in out
    assert "non-negative integer below 2^256" in out


def test_unknown_template_is_an_argument_error(capsys) -> None:
    with pytest.raises(SystemExit) as exc:
        main(["encode", "--template", "nope"])
    assert exc.value.code == 2
