"""
Shared pytest fixtures for calldata-builder tests.

This module provides:
- Well-formed sample addresses
- A builder with a deterministic identifier prefix
- The canonical ERC-20 transfer call used as the acceptance example
"""

from __future__ import annotations

import pytest

from calldata_builder import CallBuilder

ALICE = "0x" + "11" * 20
BOB = "0x" + "22" * 20
MIXED = "0x" + "ab" * 20

TRANSFER_DATA = "0xa9059cbb" + "0" * 24 + "11" * 20 + f"{1_000_000:064x}"


class Recorder:
    """Event sink that keeps every emitted event in memory."""

    def __init__(self) -> None:
        self.events: list[tuple[str, dict]] = []

    def __call__(self, event: str, /, **fields: object) -> None:
        self.events.append((event, fields))

    @property
    def names(self) -> list[str]:
        return [name for name, _ in self.events]


@pytest.fixture
def builder() -> CallBuilder:
    return CallBuilder("call", id_prefix="t")


@pytest.fixture
def transfer() -> CallBuilder:
    """``transfer(address to, uint256 amount)`` with both values filled in."""
    b = CallBuilder("transfer", id_prefix="tx")
    to = b.add_parameter("to", "address")
    amount = b.add_parameter("amount", "uint256")
    b.set_value([to], ALICE)
    b.set_value([amount], "1000000")
    return b


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture(autouse=True)
def _no_default_target(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("CALLDATA_BUILDER_TARGET", raising=False)
