"""Storefront variant selection.

Given the shopper's current color/size/other choices, pick the variant to
show. Matching is case-insensitive and degrades gracefully:

1. exact match on every selected attribute
2. any variant of the selected color (in stock first)
3. any variant of the selected size (in stock first)
4. any in-stock variant, else the first one
"""

from __future__ import annotations

from collections.abc import Mapping

from variant_studio.schemas.product import VariantRecord
from variant_studio.services.collapser import COLOR_KEY, SIZE_KEY, resolve_attribute


def _norm(value: str | None) -> str | None:
    if value is None:
        return None
    text = value.strip().lower()
    return text or None


def option_values(record: VariantRecord, key: str) -> set[str]:
    """Every value a variant carries for one attribute.

    A variant may list several values of the same attribute (e.g. two colors).
    """
    values: set[str] = set()
    resolved, _ = resolve_attribute(record, key)
    if resolved:
        values.add(resolved.lower())
    for option in record.options:
        if key in (option.attribute_key, option.key, option.attribute) and option.value:
            values.add(option.value.strip().lower())
        if option.value_id and key in (option.attribute_key, option.key, option.attribute):
            values.add(option.value_id.strip().lower())
    return values


def _in_stock(record: VariantRecord) -> bool:
    return (record.stock or 0) > 0


def _prefer_in_stock(candidates: list[VariantRecord]) -> VariantRecord | None:
    if not candidates:
        return None
    return next((v for v in candidates if _in_stock(v)), candidates[0])


def find_variant(
    variants: list[VariantRecord],
    color: str | None = None,
    size: str | None = None,
    others: Mapping[str, str] | None = None,
) -> VariantRecord | None:
    """Pick the best variant for the current selection (None if there are none)."""
    if not variants:
        return None

    wanted: dict[str, str] = {}
    if _norm(color):
        wanted[COLOR_KEY] = _norm(color)
    if _norm(size):
        wanted[SIZE_KEY] = _norm(size)
    for key, value in (others or {}).items():
        if key not in (COLOR_KEY, SIZE_KEY) and _norm(value):
            wanted[key] = _norm(value)

    if wanted:
        exact = [v for v in variants if all(value in option_values(v, key) for key, value in wanted.items())]
        if exact:
            return _prefer_in_stock(exact)

    for key in (COLOR_KEY, SIZE_KEY):
        if key in wanted:
            match = _prefer_in_stock([v for v in variants if wanted[key] in option_values(v, key)])
            if match is not None:
                return match

    return _prefer_in_stock(variants)


def available_sizes(variants: list[VariantRecord], color: str | None = None) -> list[str]:
    """Sizes that can be bought, optionally restricted to one color (first-seen order)."""
    wanted = _norm(color)
    sizes: dict[str, None] = {}
    for variant in variants:
        if not _in_stock(variant):
            continue
        if wanted and wanted not in option_values(variant, COLOR_KEY):
            continue
        size, _ = resolve_attribute(variant, SIZE_KEY)
        if size:
            sizes.setdefault(size, None)
    return list(sizes)
