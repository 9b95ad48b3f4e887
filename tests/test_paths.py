from __future__ import annotations

from calldata_builder import CallBuilder
from calldata_builder.paths import RefKind, resolve


def _orders(builder: CallBuilder) -> tuple[str, str, str, str, str]:
    orders = builder.add_parameter("orders", "tuple[]")
    template = builder.parameters[0].template.identifier
    amount = builder.add_component([orders, template], "amount", "uint256")
    first = builder.add_item([orders], {"amount": "1"})
    second = builder.add_item([orders], {"amount": "2"})
    return orders, template, amount, first, second


def test_broken_links_return_none(builder: CallBuilder) -> None:
    p = builder.add_parameter("x", "uint256")
    assert resolve(builder.function, builder.store, []) is None
    assert resolve(builder.function, builder.store, ["nope"]) is None
    assert resolve(builder.function, builder.store, [p, "below-leaf"]) is None
    # A bare string is not a path.
    assert resolve(builder.function, builder.store, p) is None


def test_top_level_and_field(builder: CallBuilder) -> None:
    t = builder.add_parameter("s", "tuple")
    f = builder.add_component([t], "a", "uint8")

    ref = builder.resolve([t])
    assert ref.kind is RefKind.PARAMETER
    assert ref.parent is None

    ref = builder.resolve([t, f])
    assert ref.kind is RefKind.FIELD
    assert ref.node.name == "a"
    assert ref.value_slot.get() == "0"
    assert ref.path == (t, f)


def test_shape_path_fans_out_over_items(builder: CallBuilder) -> None:
    orders, template, amount, _, _ = _orders(builder)
    ref = builder.resolve([orders, template, amount])
    assert ref.through_template
    assert ref.value_slot is None
    assert [s.get() for s in ref.slots] == ["1", "2"]


def test_item_path_addresses_one_value(builder: CallBuilder) -> None:
    orders, template, amount, first, second = _orders(builder)

    item = builder.resolve([orders, second])
    assert item.kind is RefKind.ITEM
    assert item.node.identifier == template
    assert item.item.identifier == second

    ref = builder.resolve([orders, second, amount])
    assert not ref.through_template
    assert ref.value_slot.get() == "2"
    assert ref.shape_path() == (orders, template, amount)
    assert [a.kind for a in ref.ancestors()] == [RefKind.ITEM, RefKind.PARAMETER]


def test_unknown_item_is_not_found(builder: CallBuilder) -> None:
    orders, _, _, first, _ = _orders(builder)
    builder.remove_component([orders, first])
    assert builder.resolve([orders, first]) is None


def test_items_never_resolve_as_tuple_fields(builder: CallBuilder) -> None:
    t = builder.add_parameter("s", "tuple")
    builder.add_component([t], "a", "uint8")
    arr = builder.add_parameter("xs", "uint8[]")
    item = builder.add_item([arr], "1")
    assert builder.resolve([t, item]) is None
