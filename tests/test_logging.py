from __future__ import annotations

import json
from pathlib import Path

from calldata_builder import CallBuilder
from calldata_builder.logging import JsonlLogger, _safe_filename, default_run_id
from conftest import ALICE, TRANSFER_DATA


def test_events_are_numbered_in_order(tmp_path: Path) -> None:
    log = JsonlLogger(base_dir=tmp_path, run_id="run1")
    log("parameter_added", name="to", identifier="p-1")
    log("value_set", path=["p-1"])

    events = log.events()
    assert [e["seq"] for e in events] == [1, 2]
    assert events[0]["event"] == "parameter_added"
    assert events[0]["name"] == "to"
    assert isinstance(events[0]["t"], int)
    assert log.payloads() == []


def test_logger_is_a_builder_event_sink(tmp_path: Path) -> None:
    log = JsonlLogger(base_dir=tmp_path, run_id="session")
    b = CallBuilder("f", event_log=log)
    p = b.add_parameter("x", "uint8")
    b.set_value([p], "1")
    data = b.encode()

    assert [e["event"] for e in log.events()] == ["parameter_added", "value_set", "encoded"]
    assert log.payloads() == [{"event": "encoded", "signature": "f(uint8)", "data": data}]


def test_prepared_transaction_is_a_payload(tmp_path: Path, transfer: CallBuilder) -> None:
    log = JsonlLogger(base_dir=tmp_path, run_id="tx")
    transfer._event_log = log
    transfer.prepare_transaction(ALICE, 5)

    rows = log.payloads()
    assert [r["event"] for r in rows] == ["encoded", "transaction_prepared"]
    assert rows[1] == {"event": "transaction_prepared", "to": ALICE, "data": TRANSFER_DATA, "value": 5}


def test_snapshot_describes_the_call(tmp_path: Path, transfer: CallBuilder) -> None:
    log = JsonlLogger(base_dir=tmp_path, run_id="snap")
    log.snapshot(transfer, template="erc20-transfer")

    session = json.loads(log.session_path.read_text())
    assert session["template"] == "erc20-transfer"
    assert session["function"]["signature"] == "transfer(address,uint256)"
    assert session["abi"]["type"] == "function"
    assert session["values"] == {"to": ALICE, "amount": "1000000"}


def test_run_ids() -> None:
    rid = default_run_id(prefix="encode")
    assert rid.startswith("encode_")
    assert rid != default_run_id(prefix="encode")
    assert _safe_filename("a/b c") == "a_b_c"
    assert _safe_filename("ü") == "_"


def test_run_id_is_sanitized(tmp_path: Path) -> None:
    log = JsonlLogger(base_dir=tmp_path, run_id="../escape")
    assert log.root.parent == tmp_path
