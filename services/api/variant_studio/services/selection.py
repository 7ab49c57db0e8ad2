"""Which attributes and values are chosen for the product being authored.

Attribute selection and value selection are tracked separately: an attribute
can be selected while none of its values are yet. Every operation returns a
new state; the mapping never holds duplicate value ids and never keeps values
for an attribute after it is deselected.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from itertools import product
from types import MappingProxyType
from typing import Mapping

from variant_studio.schemas.catalog import Attribute, AttributeValue


@dataclass(frozen=True)
class AttributeSelectionState:
    attribute_ids: tuple[str, ...] = ()
    value_ids: Mapping[str, tuple[str, ...]] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self) -> None:
        object.__setattr__(self, "value_ids", MappingProxyType(dict(self.value_ids)))

    # ------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------

    def is_selected(self, attribute_id: str) -> bool:
        return attribute_id in self.attribute_ids

    def values_for(self, attribute_id: str) -> tuple[str, ...]:
        return self.value_ids.get(attribute_id, ())

    def active_attribute_ids(self) -> list[str]:
        """Selected attributes that have at least one selected value."""
        return [a for a in self.attribute_ids if self.value_ids.get(a)]

    def to_dict(self) -> dict[str, list[str]]:
        return {a: list(self.values_for(a)) for a in self.attribute_ids}

    # ------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------

    def _replace(self, attribute_ids: tuple[str, ...], value_ids: dict[str, tuple[str, ...]]) -> AttributeSelectionState:
        return AttributeSelectionState(attribute_ids=attribute_ids, value_ids=value_ids)

    def select_attribute(self, attribute_id: str) -> AttributeSelectionState:
        if self.is_selected(attribute_id):
            return self
        return self._replace(self.attribute_ids + (attribute_id,), dict(self.value_ids))

    def deselect_attribute(self, attribute_id: str) -> AttributeSelectionState:
        """Deselect an attribute and drop all of its selected values."""
        if not self.is_selected(attribute_id):
            return self
        values = {a: v for a, v in self.value_ids.items() if a != attribute_id}
        return self._replace(tuple(a for a in self.attribute_ids if a != attribute_id), values)

    def toggle_value(self, attribute_id: str, value_id: str) -> AttributeSelectionState:
        """Add the value if absent, remove it if present.

        Adding a value to an unselected attribute selects the attribute too;
        removing from an unselected attribute is a no-op.
        """
        current = self.values_for(attribute_id)
        if value_id in current:
            values = dict(self.value_ids)
            values[attribute_id] = tuple(v for v in current if v != value_id)
            return self._replace(self.attribute_ids, values)

        state = self.select_attribute(attribute_id)
        values = dict(state.value_ids)
        values[attribute_id] = current + (value_id,)
        return self._replace(state.attribute_ids, values)

    def select_all_values(self, attribute: Attribute) -> AttributeSelectionState:
        """Select the attribute and every one of its values (the "All" checkbox)."""
        state = self.select_attribute(attribute.id)
        values = dict(state.value_ids)
        values[attribute.id] = tuple(dict.fromkeys(v.id for v in attribute.values))
        return self._replace(state.attribute_ids, values)

    def clear_values(self, attribute_id: str) -> AttributeSelectionState:
        """Unselect every value but keep the attribute selected."""
        if not self.value_ids.get(attribute_id):
            return self
        values = dict(self.value_ids)
        values[attribute_id] = ()
        return self._replace(self.attribute_ids, values)


def resolve_selected_values(
    state: AttributeSelectionState,
    attributes: list[Attribute],
) -> list[tuple[Attribute, list[AttributeValue]]]:
    """Pair each active attribute with its selected catalog values.

    Value ids no longer present in the catalog are skipped.
    """
    by_id = {attribute.id: attribute for attribute in attributes}
    resolved: list[tuple[Attribute, list[AttributeValue]]] = []
    for attribute_id in state.active_attribute_ids():
        attribute = by_id.get(attribute_id)
        if attribute is None:
            continue
        values = [v for v in (attribute.find_value(ref) for ref in state.values_for(attribute_id)) if v]
        if values:
            resolved.append((attribute, values))
    return resolved


def combinations(
    state: AttributeSelectionState,
    attributes: list[Attribute],
) -> list[dict[str, AttributeValue]]:
    """Full Cartesian product of the selected values, keyed by attribute key.

    Example:
        color={red, blue} x size={s, m} -> 4 combinations
    """
    resolved = resolve_selected_values(state, attributes)
    if not resolved:
        return []
    keys = [attribute.key for attribute, _ in resolved]
    return [dict(zip(keys, combo)) for combo in product(*(values for _, values in resolved))]
