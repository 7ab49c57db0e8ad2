import random

import pytest

from variant_studio.schemas.builder import ColorGroup, SimpleProductData, SizeEntry, VariantTemplate
from variant_studio.schemas.catalog import Attribute, AttributeValue
from variant_studio.schemas.product import VariantRecord
from variant_studio.services.expander import (
    build_sku,
    ensure_unique_skus,
    expand_color_groups,
    expand_shared,
    expand_simple,
    normalize_featured_images,
)
from variant_studio.services.selection import AttributeSelectionState
from variant_studio.services.validation import IssueCode, VariantValidationError

TS = 1700000000000


def _expand(groups, template=None, *, requires_sizes=False, **kwargs):
    return expand_color_groups(
        groups,
        template or VariantTemplate(),
        product_slug="summer-tee",
        requires_sizes=requires_sizes,
        timestamp=TS,
        rng=random.Random(0),
        **kwargs,
    )


def test_single_color_without_sizes():
    group = ColorGroup(color_value="blue", base_price="10.00", base_stock="5", images=["/blue.jpg"])

    result = _expand([group])

    assert len(result.variants) == 1
    record = result.variants[0]
    assert record.color == "blue"
    assert record.size is None
    assert record.price == 10
    assert record.stock == 5
    assert record.sku == f"summer-tee-{TS}-1"
    assert record.image_url == "/blue.jpg"


def test_sizes_expand_to_one_record_each():
    group = ColorGroup(
        color_value="red",
        base_price="20",
        images=["/red.jpg"],
        sizes=[SizeEntry(size_value="s", stock="2"), SizeEntry(size_value="m", stock="3")],
    )

    result = _expand([group], requires_sizes=True)

    assert [(v.color, v.size, v.stock) for v in result.variants] == [("red", "s", 2), ("red", "m", 3)]
    assert len({v.sku for v in result.variants}) == 2
    assert [v.sku for v in result.variants] == [f"summer-tee-{TS}-1-1", f"summer-tee-{TS}-1-2"]


def test_requires_sizes_without_sizes_emits_nothing():
    group = ColorGroup(color_value="red", base_price="20", base_stock="4", images=["/red.jpg"])

    with pytest.raises(VariantValidationError) as exc_info:
        _expand([group], requires_sizes=True)

    assert [issue.code for issue in exc_info.value.issues] == [IssueCode.MISSING_SIZES]
    assert exc_info.value.issues[0].color == "red"


def test_no_colors_is_rejected():
    with pytest.raises(VariantValidationError) as exc_info:
        _expand([])
    assert exc_info.value.issues[0].code == IssueCode.NO_COLORS


def test_price_precedence_size_over_color_over_template():
    template = VariantTemplate(price="30", compare_at_price="40")
    groups = [
        ColorGroup(
            color_value="red",
            base_price="25",
            images=["/r.jpg"],
            sizes=[SizeEntry(size_value="s", stock="1", price="22"), SizeEntry(size_value="m", stock="1")],
        ),
        ColorGroup(color_value="blue", base_stock="1", images=["/b.jpg"]),
    ]

    result = _expand(groups, template)

    assert [v.price for v in result.variants] == [22, 25, 30]
    assert [v.compare_at_price for v in result.variants] == [40, 40, 40]


def test_zero_compare_at_price_is_dropped():
    group = ColorGroup(
        color_value="blue", base_price="10", base_compare_at_price="0", base_stock="1", images=["/b.jpg"]
    )
    assert _expand([group]).variants[0].compare_at_price is None


def test_template_sku_gets_position_suffix_only_when_multiple():
    one = ColorGroup(color_value="blue", base_price="10", base_stock="1", images=["/b.jpg"])
    two = ColorGroup(color_value="red", base_price="10", base_stock="1", images=["/r.jpg"])

    assert [v.sku for v in _expand([one], VariantTemplate(sku="TEE")).variants] == ["TEE"]
    assert [v.sku for v in _expand([one, two], VariantTemplate(sku="TEE")).variants] == ["TEE-1", "TEE-2"]


def test_build_sku_without_slug_falls_back_to_product():
    assert build_sku("", product_slug="", timestamp=1, color_index=0, size_index=2, multiple=True) == "product-1-1-3"


def test_ensure_unique_skus_resuffixes_repeats():
    records = [VariantRecord(sku="A"), VariantRecord(sku="A"), VariantRecord(sku="B"), VariantRecord(sku="A")]

    unique = ensure_unique_skus(records, rng=random.Random(1), suffix_length=4)

    skus = [r.sku for r in unique]
    assert skus[0] == "A"
    assert skus[2] == "B"
    assert len(set(skus)) == 4
    assert all(s.startswith("A-") and len(s) == 6 for s in (skus[1], skus[3]))


def test_only_first_featured_color_stays_featured():
    groups = [
        ColorGroup(color_value="red", base_price="10", base_stock="1", images=["/r.jpg"], is_featured=True),
        ColorGroup(color_value="blue", base_price="10", base_stock="1", images=["/b.jpg"], is_featured=True),
    ]
    result = _expand(groups)
    assert [v.is_featured for v in result.variants] == [True, False]


def test_nothing_featured_leaves_records_unflagged():
    groups = [
        ColorGroup(color_value="red", base_price="10", base_stock="1"),
        ColorGroup(color_value="blue", base_price="10", base_stock="1", images=["/b.jpg"]),
    ]
    result = _expand(groups)

    assert [v.is_featured for v in result.variants] == [False, False]
    assert [(i.url, i.is_featured) for i in result.images] == [("/b.jpg", True)]
    assert [w.code for w in result.warnings] == [IssueCode.MISSING_IMAGE]


class ScriptedRandom:
    """Hands out characters in a fixed order."""

    def __init__(self, chars: str):
        self.chars = iter(chars)

    def choice(self, seq):
        return next(self.chars)


def test_regenerated_sku_avoids_later_originals():
    records = [VariantRecord(sku="A"), VariantRecord(sku="A"), VariantRecord(sku="A-x")]

    unique = ensure_unique_skus(records, rng=ScriptedRandom("xy"), suffix_length=1)

    assert [r.sku for r in unique] == ["A", "A-y", "A-x"]


def test_duplicate_size_in_a_color_is_rejected():
    group = ColorGroup(
        color_value="red",
        base_price="10",
        sizes=[SizeEntry(size_value="s", stock="2"), SizeEntry(size_value="s", stock="3")],
    )
    with pytest.raises(VariantValidationError) as exc_info:
        _expand([group])
    assert [(i.code, i.size) for i in exc_info.value.issues] == [(IssueCode.DUPLICATE_SIZE, "s")]


def test_sized_group_features_only_its_first_size():
    group = ColorGroup(
        color_value="red",
        base_price="10",
        images=["/r.jpg"],
        is_featured=True,
        sizes=[SizeEntry(size_value="s", stock="1"), SizeEntry(size_value="m", stock="1")],
    )
    assert [v.is_featured for v in _expand([group]).variants] == [True, False]


def test_normalize_featured_images_orders_featured_first():
    groups = [
        ColorGroup(color_value="red", images=["/r1.jpg", "/r2.jpg"]),
        ColorGroup(color_value="blue", images=["/b1.jpg"], is_featured=True),
    ]
    images = normalize_featured_images(groups)

    assert images[0].url == "/b1.jpg"
    assert images[0].is_featured
    assert sum(i.is_featured for i in images) == 1


def test_expand_simple():
    result = expand_simple(
        SimpleProductData(price="15", quantity="9"), product_slug="Gift Card", timestamp=TS
    )
    record = result.variants[0]
    assert (record.price, record.stock, record.sku) == (15, 9, f"gift-card-{TS}")
    assert record.color is None and record.options == []


def test_expand_simple_requires_price_and_quantity():
    with pytest.raises(VariantValidationError) as exc_info:
        expand_simple(SimpleProductData(), product_slug="x", timestamp=TS)
    assert {i.code for i in exc_info.value.issues} == {IssueCode.MISSING_PRICE, IssueCode.MISSING_STOCK}


def test_expand_shared_one_row_many_attributes():
    color = Attribute(
        id="c", key="color", values=[AttributeValue(id="c-red", value="red"), AttributeValue(id="c-blue", value="blue")]
    )
    size = Attribute(id="s", key="size", values=[AttributeValue(id="s-m", value="m")])
    selection = AttributeSelectionState().select_all_values(color).select_all_values(size)

    shared = expand_shared(
        selection,
        [color, size],
        VariantTemplate(price="12", stock="7", sku="MUG", images=["/mug.jpg"]),
        product_slug="mug",
        timestamp=TS,
    )

    assert shared.attribute_ids == ["c", "s"]
    assert shared.variant.sku == "MUG"
    assert shared.variant.stock == 7
    assert [(o.attribute_key, o.value) for o in shared.variant.options] == [
        ("color", "red"),
        ("color", "blue"),
        ("size", "m"),
    ]
    assert shared.combinations == [{"color": "red", "size": "m"}, {"color": "blue", "size": "m"}]


def test_expand_shared_needs_a_selected_value():
    with pytest.raises(VariantValidationError) as exc_info:
        expand_shared(
            AttributeSelectionState(),
            [],
            VariantTemplate(price="1", stock="1"),
            product_slug="x",
            timestamp=TS,
        )
    assert exc_info.value.issues[0].code == IssueCode.NO_ATTRIBUTES
