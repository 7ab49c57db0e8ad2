from variant_studio.schemas.catalog import Attribute, AttributeValue
from variant_studio.schemas.product import VariantRecord
from variant_studio.services.collapser import (
    DEFAULT_COLOR,
    collapse_variants,
    resolve_attribute,
)


def _record(**data) -> VariantRecord:
    return VariantRecord.model_validate(data)


def test_size_less_stock_is_additive():
    result = collapse_variants([_record(color="red", stock=3, price=10), _record(color="red", stock=4, price=10)])

    assert len(result.groups) == 1
    assert result.groups[0].color_value == "red"
    assert result.groups[0].base_stock == "7"


def test_sizes_group_under_their_color_in_first_seen_order():
    records = [
        _record(color="red", size="m", stock=3, price=20, sku="T-1-1"),
        _record(color="blue", size="s", stock=1, price=20, sku="T-2-1"),
        _record(color="red", size="s", stock=2, price=20, sku="T-1-2"),
    ]
    result = collapse_variants(records)

    assert [g.color_value for g in result.groups] == ["red", "blue"]
    red = result.groups[0]
    assert [(s.size_value, s.stock) for s in red.sizes] == [("m", "3"), ("s", "2")]
    assert red.base_price == "20"
    assert red.base_stock == ""
    assert result.issues == []


def test_per_size_price_kept_only_when_it_differs():
    records = [
        _record(color="red", size="s", stock=1, price=20),
        _record(color="red", size="m", stock=1, price=25, compareAtPrice=30),
    ]
    red = collapse_variants(records).groups[0]

    assert red.find_size("s").price is None
    assert red.find_size("m").price == "25"
    assert red.find_size("m").compare_at_price == "30"


def test_base_price_is_the_most_common_record_price():
    records = [
        _record(color="red", size="s", stock=1, price=25),
        _record(color="red", size="m", stock=1, price=20),
        _record(color="red", size="l", stock=1, price=20),
    ]
    red = collapse_variants(records).groups[0]

    assert red.base_price == "20"
    assert [(s.size_value, s.price) for s in red.sizes] == [("s", "25"), ("m", None), ("l", None)]


def test_resolves_flat_and_nested_option_shapes():
    flat = _record(sku="x", options=[{"attributeKey": "color", "value": "red"}, {"key": "size", "value": "m"}])
    nested = _record(
        sku="y",
        options=[{"attributeValue": {"value": "blue", "attribute": {"key": "color"}}}],
    )

    assert resolve_attribute(flat, "color") == ("red", "option")
    assert resolve_attribute(flat, "size") == ("m", "option")
    assert resolve_attribute(nested, "color") == ("blue", "option_relation")


def test_legacy_sku_parsing_is_reported():
    result = collapse_variants([_record(sku="tee-red-m", stock=2, price=10)])

    group = result.groups[0]
    assert group.color_value == "red"
    assert group.sizes[0].size_value == "m"
    assert [issue.reason for issue in result.issues] == ["attributes parsed from SKU"]


def test_unresolvable_record_lands_in_default_color():
    result = collapse_variants([_record(sku="GIFTCARD", stock=2, price=10)])

    assert result.groups[0].color_value == DEFAULT_COLOR
    assert result.groups[0].color_label == "Default"
    assert result.issues[0].reason == "no color found, using default color"


def test_numeric_sku_segment_is_not_a_color():
    value, source = resolve_attribute(_record(sku="tee-1700000000000-1"), "color")
    assert (value, source) == (None, None)


def test_labels_come_from_catalog_attributes():
    attributes = [
        Attribute(id="c", key="color", values=[AttributeValue(id="c1", value="navy", label="Navy Blue")]),
        Attribute(id="s", key="size", values=[AttributeValue(id="s1", value="xl", label="Extra Large")]),
    ]
    result = collapse_variants([_record(color="navy", size="xl", stock=1, price=5)], attributes)

    assert result.groups[0].color_label == "Navy Blue"
    assert result.groups[0].sizes[0].size_label == "Extra Large"


def test_images_are_merged_across_records():
    records = [
        _record(color="red", size="s", stock=1, price=5, imageUrl="/r1.jpg,data:image/png;base64,AAAA=="),
        _record(color="red", size="m", stock=1, price=5, imageUrl="/r1.jpg,/r2.jpg"),
    ]
    red = collapse_variants(records).groups[0]
    assert red.images == ["/r1.jpg", "data:image/png;base64,AAAA==", "/r2.jpg"]


def test_template_seeded_from_first_record():
    records = [
        _record(color="red", size="s", stock=1, price=20, compareAtPrice=0, sku="TEE-1-1"),
        _record(color="red", size="m", stock=1, price=20, sku="TEE-1-2"),
    ]
    template = collapse_variants(records).template

    assert template.price == "20"
    assert template.compare_at_price == ""
    assert template.sku == "TEE"


def test_empty_input():
    result = collapse_variants([])
    assert result.groups == []
    assert result.template.sku == ""
