"""Product editor state as an immutable value driven by explicit actions.

Every action is applied by `reduce(state, action) -> state`; the previous
state is never modified, so a session can be replayed action by action.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, replace
import functools

from variant_studio.schemas.builder import ColorGroup, SizeEntry, VariantTemplate
from variant_studio.schemas.catalog import Attribute
from variant_studio.services.images import merge_images, same_image
from variant_studio.services.selection import AttributeSelectionState
from variant_studio.services.slugs import humanize_token, size_label_fallback


@dataclass(frozen=True)
class ProductFormState:
    color_groups: tuple[ColorGroup, ...] = ()
    selection: AttributeSelectionState = field(default_factory=AttributeSelectionState)
    template: VariantTemplate = field(default_factory=VariantTemplate)
    requires_sizes: bool = False

    def find_group(self, color_value: str) -> ColorGroup | None:
        for group in self.color_groups:
            if group.color_value == color_value:
                return group
        return None

    def featured_colors(self) -> list[str]:
        return [g.color_value for g in self.color_groups if g.is_featured]


# ============================================================
# Actions
# ============================================================


@dataclass(frozen=True)
class SelectAttribute:
    attribute_id: str


@dataclass(frozen=True)
class DeselectAttribute:
    attribute_id: str


@dataclass(frozen=True)
class ToggleValue:
    attribute_id: str
    value_id: str


@dataclass(frozen=True)
class SelectAllValues:
    attribute: Attribute


@dataclass(frozen=True)
class ClearValues:
    attribute_id: str


@dataclass(frozen=True)
class AddColor:
    color_value: str
    color_label: str = ""


@dataclass(frozen=True)
class RemoveColor:
    color_value: str


@dataclass(frozen=True)
class AddColorImages:
    color_value: str
    urls: tuple[str, ...]


@dataclass(frozen=True)
class RemoveColorImage:
    color_value: str
    url: str


@dataclass(frozen=True)
class UpdateColorPricing:
    color_value: str
    price: str | None = None
    compare_at_price: str | None = None


@dataclass(frozen=True)
class UpdateColorStock:
    color_value: str
    stock: str


@dataclass(frozen=True)
class AddSize:
    color_value: str
    size_value: str
    manual_label: str = ""
    size_attribute: Attribute | None = None


@dataclass(frozen=True)
class RemoveSize:
    color_value: str
    size_value: str


@dataclass(frozen=True)
class UpdateSizeEntry:
    """Change fields of one size; None leaves a field unchanged, "" clears it."""

    color_value: str
    size_value: str
    stock: str | None = None
    price: str | None = None
    compare_at_price: str | None = None


@dataclass(frozen=True)
class SetFeaturedColor:
    color_value: str


@dataclass(frozen=True)
class UpdateTemplate:
    price: str | None = None
    compare_at_price: str | None = None
    sku: str | None = None
    stock: str | None = None


Action = (
    SelectAttribute
    | DeselectAttribute
    | ToggleValue
    | SelectAllValues
    | ClearValues
    | AddColor
    | RemoveColor
    | AddColorImages
    | RemoveColorImage
    | UpdateColorPricing
    | UpdateColorStock
    | AddSize
    | RemoveSize
    | UpdateSizeEntry
    | SetFeaturedColor
    | UpdateTemplate
)


# ============================================================
# Helpers
# ============================================================


def _map_group(
    state: ProductFormState,
    color_value: str,
    change: Callable[[ColorGroup], ColorGroup],
) -> ProductFormState:
    """Apply `change` to one color group; unknown colors leave state as is."""
    if state.find_group(color_value) is None:
        return state
    groups = tuple(change(g) if g.color_value == color_value else g for g in state.color_groups)
    return replace(state, color_groups=groups)


def _changes(**fields: str | None) -> dict[str, str]:
    return {name: value for name, value in fields.items() if value is not None}


def resolve_size_label(size_value: str, manual_label: str = "", size_attribute: Attribute | None = None) -> str:
    """Catalog label first, then the label typed by the admin, then "SIZE-SLUG"."""
    match = size_attribute.find_value(size_value) if size_attribute else None
    if match and match.label:
        return match.label
    return manual_label.strip() or size_label_fallback(size_value)


# ============================================================
# Handlers
# ============================================================


def _select_attribute(state: ProductFormState, action: SelectAttribute) -> ProductFormState:
    return replace(state, selection=state.selection.select_attribute(action.attribute_id))


def _deselect_attribute(state: ProductFormState, action: DeselectAttribute) -> ProductFormState:
    return replace(state, selection=state.selection.deselect_attribute(action.attribute_id))


def _toggle_value(state: ProductFormState, action: ToggleValue) -> ProductFormState:
    return replace(state, selection=state.selection.toggle_value(action.attribute_id, action.value_id))


def _select_all_values(state: ProductFormState, action: SelectAllValues) -> ProductFormState:
    return replace(state, selection=state.selection.select_all_values(action.attribute))


def _clear_values(state: ProductFormState, action: ClearValues) -> ProductFormState:
    return replace(state, selection=state.selection.clear_values(action.attribute_id))


def _add_color(state: ProductFormState, action: AddColor) -> ProductFormState:
    if state.find_group(action.color_value) is not None:
        return state
    group = ColorGroup(
        color_value=action.color_value,
        color_label=action.color_label or humanize_token(action.color_value),
    )
    return replace(state, color_groups=state.color_groups + (group,))


def _remove_color(state: ProductFormState, action: RemoveColor) -> ProductFormState:
    groups = tuple(g for g in state.color_groups if g.color_value != action.color_value)
    return replace(state, color_groups=groups)


def _add_color_images(state: ProductFormState, action: AddColorImages) -> ProductFormState:
    return _map_group(
        state,
        action.color_value,
        lambda g: g.model_copy(update={"images": merge_images(g.images, action.urls)}),
    )


def _remove_color_image(state: ProductFormState, action: RemoveColorImage) -> ProductFormState:
    return _map_group(
        state,
        action.color_value,
        lambda g: g.model_copy(update={"images": [u for u in g.images if not same_image(u, action.url)]}),
    )


def _update_color_pricing(state: ProductFormState, action: UpdateColorPricing) -> ProductFormState:
    update = _changes(base_price=action.price, base_compare_at_price=action.compare_at_price)
    return _map_group(state, action.color_value, lambda g: g.model_copy(update=update))


def _update_color_stock(state: ProductFormState, action: UpdateColorStock) -> ProductFormState:
    return _map_group(state, action.color_value, lambda g: g.model_copy(update={"base_stock": action.stock}))


def _add_size(state: ProductFormState, action: AddSize) -> ProductFormState:
    def change(group: ColorGroup) -> ColorGroup:
        if group.find_size(action.size_value) is not None:
            return group
        entry = SizeEntry(
            size_value=action.size_value,
            size_label=resolve_size_label(action.size_value, action.manual_label, action.size_attribute),
        )
        return group.model_copy(update={"sizes": [*group.sizes, entry]})

    return _map_group(state, action.color_value, change)


def _remove_size(state: ProductFormState, action: RemoveSize) -> ProductFormState:
    return _map_group(
        state,
        action.color_value,
        lambda g: g.model_copy(update={"sizes": [s for s in g.sizes if s.size_value != action.size_value]}),
    )


def _update_size_entry(state: ProductFormState, action: UpdateSizeEntry) -> ProductFormState:
    update: dict[str, str | None] = {}
    if action.stock is not None:
        update["stock"] = action.stock
    if action.price is not None:
        update["price"] = action.price or None
    if action.compare_at_price is not None:
        update["compare_at_price"] = action.compare_at_price or None

    def change(group: ColorGroup) -> ColorGroup:
        sizes = [
            s.model_copy(update=update) if s.size_value == action.size_value else s
            for s in group.sizes
        ]
        return group.model_copy(update={"sizes": sizes})

    return _map_group(state, action.color_value, change)


def _set_featured_color(state: ProductFormState, action: SetFeaturedColor) -> ProductFormState:
    """Clear the flag on every sibling before setting it on the target."""
    if state.find_group(action.color_value) is None:
        return state
    groups = tuple(
        g.model_copy(update={"is_featured": g.color_value == action.color_value})
        for g in state.color_groups
    )
    return replace(state, color_groups=groups)


def _update_template(state: ProductFormState, action: UpdateTemplate) -> ProductFormState:
    update = _changes(
        price=action.price,
        compare_at_price=action.compare_at_price,
        sku=action.sku,
        stock=action.stock,
    )
    return replace(state, template=state.template.model_copy(update=update))


_HANDLERS: dict[type, Callable[[ProductFormState, object], ProductFormState]] = {
    SelectAttribute: _select_attribute,
    DeselectAttribute: _deselect_attribute,
    ToggleValue: _toggle_value,
    SelectAllValues: _select_all_values,
    ClearValues: _clear_values,
    AddColor: _add_color,
    RemoveColor: _remove_color,
    AddColorImages: _add_color_images,
    RemoveColorImage: _remove_color_image,
    UpdateColorPricing: _update_color_pricing,
    UpdateColorStock: _update_color_stock,
    AddSize: _add_size,
    RemoveSize: _remove_size,
    UpdateSizeEntry: _update_size_entry,
    SetFeaturedColor: _set_featured_color,
    UpdateTemplate: _update_template,
}


def reduce(state: ProductFormState, action: Action) -> ProductFormState:
    """Apply one action and return the next state."""
    handler = _HANDLERS.get(type(action))
    if handler is None:
        raise TypeError(f"Unknown form action: {type(action).__name__}")
    return handler(state, action)


def replay(actions: Iterable[Action], state: ProductFormState | None = None) -> ProductFormState:
    """Fold a sequence of actions over an initial (default: empty) state."""
    return functools.reduce(reduce, actions, state or ProductFormState())
