"""Variant collapse (edit-load path): flat variant records -> color groups.

Color and size of a record are resolved by trying, in order:
1. the record's own `color` / `size` field
2. a flat option ({"attributeKey"|"key"|"attribute": key, "value": ...})
3. a nested option relation ({"attributeValue": {"attribute": {"key": key}}})
4. SKU segments ("{base}-{color}-{size}"), best effort, legacy records only

A record whose color cannot be resolved lands in the synthetic "default"
color. Records of the same color are merged: images de-duplicated, sized
stock set per size, size-less stock summed. A color's base price is the
most frequent price among its records, lowest on a tie.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass, field
import logging

from variant_studio.schemas.builder import ColorGroup, SizeEntry, VariantTemplate, format_number
from variant_studio.schemas.catalog import Attribute, find_attribute
from variant_studio.schemas.product import VariantRecord
from variant_studio.services.images import merge_images, smart_split_urls
from variant_studio.services.slugs import humanize_token, size_label_fallback
from variant_studio.services.validation import parse_stock

logger = logging.getLogger("uvicorn.error")

DEFAULT_COLOR = "default"
DEFAULT_COLOR_LABEL = "Default"

COLOR_KEY = "color"
SIZE_KEY = "size"

# SKU segment holding each attribute in the "{base}-{color}-{size}" convention.
_SKU_SEGMENT = {COLOR_KEY: 1, SIZE_KEY: 2}


@dataclass(frozen=True)
class DataShapeIssue:
    """A record that needed a fallback to be placed; reported, never fatal."""

    index: int
    sku: str
    reason: str

    def to_dict(self) -> dict[str, object]:
        return {"index": self.index, "sku": self.sku, "reason": self.reason}


@dataclass
class CollapseResult:
    groups: list[ColorGroup]
    template: VariantTemplate
    issues: list[DataShapeIssue] = field(default_factory=list)


# ============================================================
# Resolver strategies
# ============================================================

Resolver = Callable[[VariantRecord, str], "str | None"]


def _clean(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def resolve_from_field(record: VariantRecord, key: str) -> str | None:
    if key == COLOR_KEY:
        return _clean(record.color)
    if key == SIZE_KEY:
        return _clean(record.size)
    return None


def resolve_from_option(record: VariantRecord, key: str) -> str | None:
    for option in record.options:
        if key in (option.attribute_key, option.key, option.attribute):
            return _clean(option.value)
    return None


def resolve_from_option_relation(record: VariantRecord, key: str) -> str | None:
    for option in record.options:
        relation = option.attribute_value
        if relation is None:
            continue
        relation_key = relation.attribute.key if relation.attribute else None
        if key in (relation_key, relation.attribute_key):
            return _clean(relation.value)
    return None


def resolve_from_sku(record: VariantRecord, key: str) -> str | None:
    """Best-effort fallback for legacy records that stored no attribute data.

    Only applies to records without a top-level color/size field, and misreads
    SKUs that do not follow "{base}-{color}-{size}".
    """
    if record.color or record.size or not record.sku:
        return None
    segment = _SKU_SEGMENT.get(key)
    parts = record.sku.split("-")
    if segment is None or len(parts) <= segment:
        return None
    candidate = _clean(parts[segment])
    if key == COLOR_KEY and candidate and candidate.isdigit():
        return None
    return candidate


RESOLVERS: tuple[tuple[str, Resolver], ...] = (
    ("field", resolve_from_field),
    ("option", resolve_from_option),
    ("option_relation", resolve_from_option_relation),
    ("sku", resolve_from_sku),
)


def resolve_attribute(record: VariantRecord, key: str) -> tuple[str | None, str | None]:
    """Return (value, resolver name) using the first resolver that succeeds."""
    for name, resolver in RESOLVERS:
        value = resolver(record, key)
        if value:
            return value, name
    return None, None


# ============================================================
# Collapse
# ============================================================


@dataclass
class _SizeDraft:
    value: str
    label: str
    stock: str
    price: str | None = None
    compare_at_price: str | None = None


@dataclass
class _GroupDraft:
    value: str
    label: str
    images: list[str]
    base_stock: str
    is_featured: bool
    prices: list[str] = field(default_factory=list)
    compare_at_prices: list[str] = field(default_factory=list)
    sizes: dict[str, _SizeDraft] = field(default_factory=dict)

    def add_prices(self, record: VariantRecord) -> None:
        self.prices.append(_number_text(record.price))
        self.compare_at_prices.append(_number_text(record.compare_at_price))

    def freeze(self) -> ColorGroup:
        base_price = _base_value(self.prices)
        base_compare_at = _base_value(self.compare_at_prices)
        return ColorGroup(
            color_value=self.value,
            color_label=self.label,
            images=self.images,
            base_price=base_price,
            base_compare_at_price=base_compare_at,
            base_stock=self.base_stock,
            is_featured=self.is_featured,
            sizes=[
                SizeEntry(
                    size_value=s.value,
                    size_label=s.label,
                    stock=s.stock,
                    price=_override(s.price, base_price),
                    compare_at_price=_override(s.compare_at_price, base_compare_at),
                )
                for s in self.sizes.values()
            ],
        )


def _number_text(value: float | int | None) -> str:
    return "" if value is None else format_number(value)


def _base_value(values: list[str]) -> str:
    """Most frequent value; ties go to the lowest, blank counting lowest of all."""
    if not values:
        return ""
    counts = Counter(values)
    return min(counts, key=lambda value: (-counts[value], float(value) if value else float("-inf")))


def _override(value: str | None, base: str) -> str | None:
    return value if value and value != base else None


def _color_label(color: str, color_attribute: Attribute | None) -> str:
    if color == DEFAULT_COLOR:
        return DEFAULT_COLOR_LABEL
    match = color_attribute.find_value(color) if color_attribute else None
    if match and match.label:
        return match.label
    return humanize_token(color)


def _size_label(record: VariantRecord, size: str, size_attribute: Attribute | None) -> str:
    match = size_attribute.find_value(size) if size_attribute else None
    if match and match.label:
        return match.label
    return _clean(record.size_label) or size_label_fallback(size)


def _apply_size(
    draft: _GroupDraft,
    record: VariantRecord,
    size: str,
    size_attribute: Attribute | None,
) -> None:
    stock = _number_text(record.stock)
    price = _number_text(record.price)
    compare_at = _number_text(record.compare_at_price)
    entry = draft.sizes.get(size)
    if entry is None:
        entry = _SizeDraft(value=size, label=_size_label(record, size, size_attribute), stock=stock)
        draft.sizes[size] = entry
    else:
        entry.stock = stock
    # Resolved against the color's base price on freeze.
    entry.price = price or None
    entry.compare_at_price = compare_at or None


def _add_base_stock(current: str, record: VariantRecord) -> str:
    total = (parse_stock(current) or 0) + (record.stock or 0)
    return str(total)


def collapse_variants(
    records: list[VariantRecord],
    attributes: list[Attribute] | None = None,
) -> CollapseResult:
    """Rebuild editable color groups from persisted variant records.

    Groups and sizes keep first-seen order.
    """
    attributes = attributes or []
    color_attribute = find_attribute(attributes, COLOR_KEY)
    size_attribute = find_attribute(attributes, SIZE_KEY)

    drafts: dict[str, _GroupDraft] = {}
    issues: list[DataShapeIssue] = []

    for index, record in enumerate(records):
        color, color_source = resolve_attribute(record, COLOR_KEY)
        size, size_source = resolve_attribute(record, SIZE_KEY)

        if color_source == "sku" or size_source == "sku":
            issues.append(DataShapeIssue(index, record.sku, "attributes parsed from SKU"))
        if color is None:
            color = DEFAULT_COLOR
            issues.append(DataShapeIssue(index, record.sku, "no color found, using default color"))

        draft = drafts.get(color)
        if draft is None:
            draft = _GroupDraft(
                value=color,
                label=_color_label(color, color_attribute),
                images=merge_images([], smart_split_urls(record.image_url)),
                base_stock="" if size else _number_text(record.stock),
                is_featured=record.is_featured,
            )
            drafts[color] = draft
            draft.add_prices(record)
            if size:
                _apply_size(draft, record, size, size_attribute)
            continue

        draft.images = merge_images(draft.images, smart_split_urls(record.image_url))
        draft.add_prices(record)
        if size:
            _apply_size(draft, record, size, size_attribute)
        else:
            # Size-less records of one color are additive.
            draft.base_stock = _add_base_stock(draft.base_stock, record)
        draft.is_featured = draft.is_featured or record.is_featured

    for issue in issues:
        logger.warning(f"[collapse] variant #{issue.index} sku={issue.sku!r}: {issue.reason}")

    groups = [draft.freeze() for draft in drafts.values()]
    logger.info(f"[collapse] {len(records)} variant(s) -> {len(groups)} color group(s)")
    return CollapseResult(groups=groups, template=_template_from_first(records), issues=issues)


def _template_from_first(records: list[VariantRecord]) -> VariantTemplate:
    """Shared price/compare/SKU defaults seeded from the first record."""
    if not records:
        return VariantTemplate()
    first = records[0]
    price = first.price if first.price and first.price > 0 else None
    compare_at = first.compare_at_price if first.compare_at_price and first.compare_at_price > 0 else None
    return VariantTemplate(
        price=_number_text(price),
        compare_at_price=_number_text(compare_at),
        sku=_template_sku(records),
    )


def _template_sku(records: list[VariantRecord]) -> str:
    """Strip the "-{color#}[-{size#}]" position suffix from the first SKU.

    Re-expanding the collapsed groups then reproduces the original SKUs
    instead of stacking a new suffix on every save.
    """
    first = records[0]
    if len(records) < 2:
        return first.sku
    parts = first.sku.split("-")
    positions = 2 if first.size else 1
    if len(parts) > positions and all(p.isdigit() for p in parts[-positions:]):
        return "-".join(parts[:-positions])
    return first.sku
