"""Variant expansion (save path): color groups -> flat variant records.

Three authoring modes, chosen explicitly by the caller:
- color/size: one record per (color, size), or per color when it has no sizes
- simple: a single record with no attributes
- shared: one record for many selected attribute values (no per-combination
  stock); the Cartesian product is only reported, never stocked

Override precedence for price / compareAtPrice:
    size override > color base > template default

SKU rules:
- template SKU set: "{sku}-{color#}-{size#}" when the set has more than one
  color or size, else the template SKU unchanged
- template SKU empty: "{slug}-{timestamp}-{color#}[-{size#}]"
- any repeat is re-suffixed with random characters until unique
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import random
import string
import time

from variant_studio.schemas.builder import ColorGroup, SimpleProductData, SizeEntry, VariantTemplate
from variant_studio.schemas.catalog import Attribute
from variant_studio.schemas.product import VariantOption, VariantRecord
from variant_studio.services.images import join_urls
from variant_studio.services.selection import AttributeSelectionState, combinations, resolve_selected_values
from variant_studio.services.slugs import slugify
from variant_studio.services.validation import (
    IssueCode,
    ValidationIssue,
    VariantValidationError,
    blocking,
    effective_base_compare_at,
    effective_base_price,
    find_duplicate_skus,
    parse_price,
    parse_stock,
    validate_color_groups,
)
from variant_studio.settings import get_settings

logger = logging.getLogger("uvicorn.error")

_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits


@dataclass(frozen=True)
class VariantImage:
    url: str
    is_featured: bool = False


@dataclass
class ExpansionResult:
    """Records ready for submission plus the normalized variant image list."""

    variants: list[VariantRecord]
    images: list[VariantImage] = field(default_factory=list)
    warnings: list[ValidationIssue] = field(default_factory=list)


@dataclass
class SharedExpansion:
    """Result of the "one variant, many attributes" mode."""

    variant: VariantRecord
    attribute_ids: list[str]
    combinations: list[dict[str, str]]


# ============================================================
# SKU helpers
# ============================================================


def current_timestamp_ms() -> int:
    return int(time.time() * 1000)


def build_sku(
    template_sku: str,
    *,
    product_slug: str,
    timestamp: int,
    color_index: int,
    size_index: int | None,
    multiple: bool,
) -> str:
    """Build the SKU of one combination (indexes are 0-based)."""
    position = [str(color_index + 1)]
    if size_index is not None:
        position.append(str(size_index + 1))

    base = template_sku.strip()
    if base:
        return "-".join([base, *position]) if multiple else base
    return "-".join([slugify(product_slug) or "product", str(timestamp), *position])


def _random_suffix(rng: random.Random, length: int) -> str:
    return "".join(rng.choice(_SUFFIX_ALPHABET) for _ in range(length))


def ensure_unique_skus(
    records: list[VariantRecord],
    *,
    rng: random.Random | None = None,
    suffix_length: int | None = None,
) -> list[VariantRecord]:
    """Re-suffix every repeated SKU so that all SKUs are unique.

    The first occurrence keeps its SKU; later ones get "-{random}" appended.
    """
    duplicates = find_duplicate_skus([record.sku for record in records])
    if not duplicates:
        return records
    logger.info(f"[expand] {len(duplicates)} SKU(s) repeated, regenerating suffixes")

    rng = rng or random.Random()
    length = suffix_length or get_settings().sku_suffix_length
    taken = {record.sku for record in records}
    seen: set[str] = set()
    unique: list[VariantRecord] = []
    for record in records:
        sku = record.sku
        if sku in seen:
            candidate = f"{sku}-{_random_suffix(rng, length)}"
            while candidate in taken:
                candidate = f"{sku}-{_random_suffix(rng, length)}"
            logger.info(f"[expand] duplicate SKU {sku!r} regenerated as {candidate!r}")
            record = record.model_copy(update={"sku": candidate})
            sku = candidate
            taken.add(sku)
        seen.add(sku)
        unique.append(record)
    return unique


# ============================================================
# Featured images
# ============================================================


def normalize_featured_images(groups: list[ColorGroup]) -> list[VariantImage]:
    """Collect variant images, featured ones first.

    The first image of a featured color is featured. When no color is
    featured, the very first image is promoted.
    """
    images: list[VariantImage] = []
    for group in groups:
        for position, url in enumerate(group.images):
            images.append(VariantImage(url=url, is_featured=group.is_featured and position == 0))

    images.sort(key=lambda image: not image.is_featured)
    if images and not any(image.is_featured for image in images):
        images[0] = VariantImage(url=images[0].url, is_featured=True)
    return images


def _single_featured(groups: list[ColorGroup]) -> list[ColorGroup]:
    """Keep only the first featured color featured."""
    seen = False
    normalized: list[ColorGroup] = []
    for group in groups:
        if group.is_featured and seen:
            group = group.model_copy(update={"is_featured": False})
        seen = seen or group.is_featured
        normalized.append(group)
    return normalized


# ============================================================
# Color/size expansion
# ============================================================


def _first_set(*candidates: str | None) -> str | None:
    for candidate in candidates:
        if candidate is not None and str(candidate).strip():
            return candidate
    return None


def _compare_at(raw: str | None) -> float | None:
    value = parse_price(raw)
    return value if value is not None and value > 0 else None


def _size_record(
    group: ColorGroup,
    entry: SizeEntry,
    template: VariantTemplate,
    *,
    sku: str,
    is_first: bool,
    published: bool,
) -> VariantRecord:
    price = _first_set(entry.price, effective_base_price(group, template))
    compare_at = _first_set(entry.compare_at_price, effective_base_compare_at(group, template))
    return VariantRecord(
        price=parse_price(price),
        compare_at_price=_compare_at(compare_at),
        sku=sku,
        color=group.color_value,
        size=entry.size_value,
        size_label=entry.size_label or None,
        stock=parse_stock(entry.stock),
        image_url=join_urls(group.images) or None,
        is_featured=group.is_featured and is_first,
        published=published,
    )


def _color_record(
    group: ColorGroup,
    template: VariantTemplate,
    *,
    sku: str,
    published: bool,
) -> VariantRecord:
    return VariantRecord(
        price=parse_price(effective_base_price(group, template)),
        compare_at_price=_compare_at(effective_base_compare_at(group, template)),
        sku=sku,
        color=group.color_value,
        stock=parse_stock(group.base_stock),
        image_url=join_urls(group.images) or None,
        is_featured=group.is_featured,
        published=published,
    )


def expand_color_groups(
    groups: list[ColorGroup],
    template: VariantTemplate,
    *,
    product_slug: str,
    requires_sizes: bool,
    published: bool = True,
    timestamp: int | None = None,
    rng: random.Random | None = None,
) -> ExpansionResult:
    """Expand color groups into one variant record per concrete combination.

    Raises:
        VariantValidationError: if any invariant is violated; no records are
            produced in that case.
    """
    issues = validate_color_groups(groups, template, requires_sizes=requires_sizes)
    errors = blocking(issues)
    if errors:
        logger.info(f"[expand] rejected: {len(errors)} validation issue(s)")
        raise VariantValidationError(errors)

    groups = _single_featured(groups)
    ts = timestamp if timestamp is not None else current_timestamp_ms()
    distinct_sizes = {entry.size_value for group in groups for entry in group.sizes}
    multiple = len(groups) > 1 or len(distinct_sizes) > 1

    records: list[VariantRecord] = []
    for color_index, group in enumerate(groups):
        if group.sizes:
            for size_index, entry in enumerate(group.sizes):
                sku = build_sku(
                    template.sku,
                    product_slug=product_slug,
                    timestamp=ts,
                    color_index=color_index,
                    size_index=size_index,
                    multiple=multiple,
                )
                records.append(
                    _size_record(group, entry, template, sku=sku, is_first=size_index == 0, published=published)
                )
        else:
            sku = build_sku(
                template.sku,
                product_slug=product_slug,
                timestamp=ts,
                color_index=color_index,
                size_index=None,
                multiple=multiple,
            )
            records.append(_color_record(group, template, sku=sku, published=published))

    records = ensure_unique_skus(records, rng=rng)

    logger.info(f"[expand] {len(groups)} color(s) -> {len(records)} variant(s)")
    return ExpansionResult(
        variants=records,
        images=normalize_featured_images(groups),
        warnings=[issue for issue in issues if not issue.blocking],
    )


# ============================================================
# Simple and shared modes
# ============================================================


def _check_single_row(price: str, stock: str, *, stock_field: str) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    parsed_price = parse_price(price)
    if not price.strip():
        issues.append(ValidationIssue(IssueCode.MISSING_PRICE, "Price is required", field="price"))
    elif parsed_price is None or parsed_price <= 0:
        issues.append(ValidationIssue(IssueCode.INVALID_PRICE, "Price must be a positive number", field="price"))
    parsed_stock = parse_stock(stock)
    if not stock.strip():
        issues.append(ValidationIssue(IssueCode.MISSING_STOCK, "Stock is required", field=stock_field))
    elif parsed_stock is None or parsed_stock < 0:
        issues.append(
            ValidationIssue(IssueCode.INVALID_STOCK, "Stock must be a non-negative whole number", field=stock_field)
        )
    return issues


def expand_simple(
    data: SimpleProductData,
    *,
    product_slug: str,
    published: bool = True,
    timestamp: int | None = None,
) -> ExpansionResult:
    """Single-SKU product: exactly one record without color or size."""
    issues = _check_single_row(data.price, data.quantity, stock_field="quantity")
    if issues:
        raise VariantValidationError(issues)

    ts = timestamp if timestamp is not None else current_timestamp_ms()
    sku = data.sku.strip() or f"{slugify(product_slug) or 'product'}-{ts}"
    record = VariantRecord(
        price=parse_price(data.price),
        compare_at_price=_compare_at(data.compare_at_price),
        sku=sku,
        stock=parse_stock(data.quantity),
        published=published,
    )
    return ExpansionResult(variants=[record])


def expand_shared(
    selection: AttributeSelectionState,
    attributes: list[Attribute],
    template: VariantTemplate,
    *,
    product_slug: str,
    published: bool = True,
    timestamp: int | None = None,
) -> SharedExpansion:
    """One shared price/stock/SKU/image row for all selected attribute values.

    This mode deliberately does not create per-combination stock rows; the
    combinations are returned for display only.
    """
    resolved = resolve_selected_values(selection, attributes)
    issues: list[ValidationIssue] = []
    if not resolved:
        issues.append(ValidationIssue(IssueCode.NO_ATTRIBUTES, "Select at least one attribute value"))
    issues.extend(_check_single_row(template.price, template.stock, stock_field="stock"))
    if issues:
        raise VariantValidationError(issues)

    ts = timestamp if timestamp is not None else current_timestamp_ms()
    sku = template.sku.strip() or f"{slugify(product_slug) or 'product'}-{ts}"
    options = [
        VariantOption(attribute_key=attribute.key, value_id=value.id, value=value.value)
        for attribute, values in resolved
        for value in values
    ]
    variant = VariantRecord(
        price=parse_price(template.price),
        compare_at_price=_compare_at(template.compare_at_price),
        sku=sku,
        stock=parse_stock(template.stock),
        image_url=join_urls(template.images) or None,
        is_featured=bool(template.images),
        published=published,
        options=options,
    )
    combos = [
        {key: value.value for key, value in combo.items()}
        for combo in combinations(selection, attributes)
    ]
    logger.info(f"[expand] shared mode: {len(options)} value(s), {len(combos)} combination(s), 1 variant")
    return SharedExpansion(
        variant=variant,
        attribute_ids=[attribute.id for attribute, _ in resolved],
        combinations=combos,
    )
