"""
On-disk session log for a CallBuilder.

A session directory holds:
- session.json: the call as last snapshotted (description, ABI entry, values)
- events.jsonl: every builder event, in emission order
- payloads.jsonl: one row per encoded call or prepared transaction

The logger is itself the builder's event sink, so payload rows are derived
from the ``encoded`` and ``transaction_prepared`` events rather than written
by callers.
"""

from __future__ import annotations

import json
import logging
import re
import secrets
import time
from pathlib import Path
from typing import TYPE_CHECKING, Any

from calldata_builder.store import plain_value

if TYPE_CHECKING:
    from calldata_builder.builder import CallBuilder

logger = logging.getLogger(__name__)

PAYLOAD_EVENTS = frozenset({"encoded", "transaction_prepared"})

_UNSAFE = re.compile(r"[^\w.-]", re.ASCII)


def _safe_filename(s: str) -> str:
    return _UNSAFE.sub("_", s)[:120]


def default_run_id(*, prefix: str) -> str:
    """``<prefix>_<UTC timestamp>_<random hex>``, unique per call."""
    return f"{prefix}_{time.strftime('%Y%m%dT%H%M%SZ', time.gmtime())}_{secrets.token_hex(4)}"


class JsonlLogger:
    """
    Builder event sink that records a session under ``base_dir / run_id``.

    Pass an instance as ``CallBuilder(event_log=...)``. Every event becomes a
    row in events.jsonl carrying ``seq``, ``t`` and ``event``; events in
    ``PAYLOAD_EVENTS`` also append their fields to payloads.jsonl.
    """

    def __init__(self, *, base_dir: Path, run_id: str) -> None:
        self.root = Path(base_dir) / _safe_filename(run_id)
        self.root.mkdir(parents=True, exist_ok=True)
        self.session_path = self.root / "session.json"
        self.events_path = self.root / "events.jsonl"
        self.payloads_path = self.root / "payloads.jsonl"
        self._seq = 0

    def __repr__(self) -> str:
        return f"JsonlLogger({str(self.root)!r})"

    def __call__(self, event: str, /, **fields: Any) -> None:
        self._seq += 1
        row = {"seq": self._seq, "t": int(time.time()), "event": event, **fields}
        _append(self.events_path, row)
        if event in PAYLOAD_EVENTS:
            _append(self.payloads_path, {"event": event, **fields})

    def snapshot(self, builder: CallBuilder, **extra: Any) -> None:
        """Write session.json from the builder's current call; ``extra`` keys are merged in."""
        session = {
            "function": builder.describe(),
            "abi": builder.to_abi(),
            "values": {p.name: plain_value(builder.store.get(p.identifier)) for p in builder.parameters},
            **extra,
        }
        self.session_path.write_text(json.dumps(session, indent=2, sort_keys=True, default=str) + "\n", encoding="utf-8")
        logger.debug("session snapshot written to %s", self.session_path)

    def events(self) -> list[dict[str, Any]]:
        if not self.events_path.exists():
            return []
        return [json.loads(line) for line in self.events_path.read_text(encoding="utf-8").splitlines()]

    def payloads(self) -> list[dict[str, Any]]:
        if not self.payloads_path.exists():
            return []
        return [json.loads(line) for line in self.payloads_path.read_text(encoding="utf-8").splitlines()]


def _append(path: Path, row: dict[str, Any]) -> None:
    with path.open("a", encoding="utf-8") as f:
        f.write(json.dumps(row, sort_keys=True, default=str) + "\n")
