import pytest

from variant_studio.schemas.builder import ColorGroup, SizeEntry, VariantTemplate
from variant_studio.services.validation import (
    IssueCode,
    blocking,
    find_duplicate_skus,
    parse_price,
    parse_stock,
    validate_color_groups,
)


def _codes(issues) -> list[str]:
    return [issue.code.value for issue in issues]


@pytest.mark.parametrize(
    "raw,expected",
    [("10.00", 10.0), (" 7 ", 7.0), ("", None), (None, None), ("abc", None), ("nan", None), ("inf", None)],
)
def test_parse_price(raw, expected):
    assert parse_price(raw) == expected


@pytest.mark.parametrize("raw,expected", [("5", 5), ("5.0", 5), ("5.5", None), ("", None), ("-1", -1)])
def test_parse_stock(raw, expected):
    assert parse_stock(raw) == expected


def test_no_groups_is_a_single_blocking_issue():
    issues = validate_color_groups([], VariantTemplate(), requires_sizes=False)
    assert _codes(issues) == ["NO_COLORS"]
    assert issues[0].blocking


def test_missing_price_and_stock_are_located_by_color():
    group = ColorGroup(color_value="blue", images=["/b.jpg"])
    issues = validate_color_groups([group], VariantTemplate(), requires_sizes=False)

    assert _codes(issues) == ["MISSING_PRICE", "MISSING_STOCK"]
    assert all(issue.color == "blue" for issue in issues)
    assert issues[0].field == "basePrice"


def test_template_price_fills_a_missing_base_price():
    group = ColorGroup(color_value="blue", base_stock="3", images=["/b.jpg"])
    issues = validate_color_groups([group], VariantTemplate(price="9.99"), requires_sizes=False)
    assert issues == []


@pytest.mark.parametrize("price", ["0", "-5", "free"])
def test_price_must_be_positive(price: str):
    group = ColorGroup(color_value="blue", base_price=price, base_stock="1", images=["/b.jpg"])
    issues = validate_color_groups([group], VariantTemplate(), requires_sizes=False)
    assert _codes(issues) == ["INVALID_PRICE"]


def test_requires_sizes_gate():
    group = ColorGroup(color_value="red", base_price="20", images=["/r.jpg"])
    issues = validate_color_groups([group], VariantTemplate(), requires_sizes=True)

    assert _codes(issues) == ["MISSING_SIZES"]
    assert issues[0].field == "sizes"


def test_size_stock_checked_per_size():
    group = ColorGroup(
        color_value="red",
        base_price="20",
        images=["/r.jpg"],
        sizes=[SizeEntry(size_value="s", stock="2"), SizeEntry(size_value="m", stock="-1")],
    )
    issues = validate_color_groups([group], VariantTemplate(), requires_sizes=True)

    assert _codes(issues) == ["INVALID_STOCK"]
    assert issues[0].size == "m"


def test_every_size_priced_makes_base_price_optional():
    group = ColorGroup(
        color_value="red",
        images=["/r.jpg"],
        sizes=[SizeEntry(size_value="s", stock="2", price="15")],
    )
    assert validate_color_groups([group], VariantTemplate(), requires_sizes=True) == []


def test_missing_image_is_reported_but_not_blocking():
    group = ColorGroup(color_value="blue", base_price="10", base_stock="1")
    issues = validate_color_groups([group], VariantTemplate(), requires_sizes=False)

    assert _codes(issues) == ["MISSING_IMAGE"]
    assert blocking(issues) == []


def test_same_color_twice_is_blocking():
    groups = [
        ColorGroup(color_value="red", base_price="20", base_stock="1", images=["/r.jpg"]),
        ColorGroup(color_value="red", base_price="25", base_stock="2", images=["/r2.jpg"]),
    ]
    issues = validate_color_groups(groups, VariantTemplate(), requires_sizes=False)

    assert _codes(issues) == ["DUPLICATE_COLOR"]
    assert issues[0].color == "red"
    assert issues[0].blocking


def test_same_size_twice_in_one_color_is_blocking():
    group = ColorGroup(
        color_value="red",
        base_price="20",
        images=["/r.jpg"],
        sizes=[SizeEntry(size_value="s", stock="2"), SizeEntry(size_value="s", stock="3")],
    )
    issues = validate_color_groups([group], VariantTemplate(), requires_sizes=True)

    assert _codes(issues) == ["DUPLICATE_SIZE"]
    assert (issues[0].color, issues[0].size, issues[0].field) == ("red", "s", "sizes")


def test_same_size_in_different_colors_is_fine():
    groups = [
        ColorGroup(color_value=color, base_price="20", images=["/x.jpg"], sizes=[SizeEntry(size_value="s", stock="1")])
        for color in ("red", "blue")
    ]
    assert validate_color_groups(groups, VariantTemplate(), requires_sizes=True) == []


def test_find_duplicate_skus_reports_each_sku_once():
    issues = find_duplicate_skus(["a", "b", "a", "a", "b", "c"])
    assert [issue.code for issue in issues] == [IssueCode.DUPLICATE_SKU, IssueCode.DUPLICATE_SKU]
    assert "'a'" in issues[0].message
