from __future__ import annotations

import pytest

from calldata_builder import CallBuilder, UnknownTemplateError, get_template, list_templates
from calldata_builder.templates import EXAMPLE_TEMPLATES


@pytest.mark.parametrize("slug", list_templates())
def test_every_template_is_ready_to_encode(slug: str) -> None:
    b = CallBuilder()
    b.load_template(get_template(slug))
    report = b.validate()
    assert report.valid, report.to_dict()
    data = b.encode()
    assert data.startswith("0x")
    assert len(data) % 2 == 0
    assert len(b.decode(data)) == len(EXAMPLE_TEMPLATES[slug]["inputs"])
    assert b.prepare_transaction(EXAMPLE_TEMPLATES[slug]["target"])["data"] == data


@pytest.mark.parametrize(
    ("slug", "selector"),
    [
        ("erc20-transfer", "0xa9059cbb"),
        ("erc20-approve", "0x095ea7b3"),
        ("erc721-transfer-from", "0x23b872dd"),
        ("storage-set", "0x60fe47b1"),
        ("swap-exact-input-single", "0x414bf389"),
    ],
)
def test_known_selectors(slug: str, selector: str) -> None:
    b = CallBuilder()
    b.load_template(get_template(slug))
    assert b.encode()[:10] == selector


def test_struct_template_signature() -> None:
    b = CallBuilder()
    b.load_template(get_template("swap-exact-input-single"))
    assert b.describe()["signature"] == (
        "exactInputSingle((address,address,uint24,address,uint256,uint256,uint256,uint160))"
    )


def test_get_template_returns_a_copy() -> None:
    t = get_template("storage-set")
    t["inputs"][0]["value"] = "1"
    assert EXAMPLE_TEMPLATES["storage-set"]["inputs"][0]["value"] == "42"


def test_unknown_template() -> None:
    with pytest.raises(UnknownTemplateError) as exc:
        get_template("nope")
    assert isinstance(exc.value, KeyError)
    assert str(exc.value) == "Unknown template 'nope'"
    assert "erc20-transfer" in exc.value.data["available"]
