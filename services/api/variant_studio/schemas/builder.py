"""Editable variant-builder state.

Numeric fields hold the raw form text ("10.00", "5", "") exactly as the admin
typed it; parsing and validation happen at expand time so a half-filled form
can still be stored, replayed and re-rendered.
"""

from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, Field


def format_number(value: float | int) -> str:
    """Render a number the way an admin would type it (10.0 -> "10")."""
    number = float(value)
    if number.is_integer():
        return str(int(number))
    return repr(number)


def _as_text(v: object) -> object:
    if v is None:
        return ""
    if isinstance(v, bool):
        return v
    if isinstance(v, (int, float)):
        return format_number(v)
    return v


def _as_optional_text(v: object) -> object:
    if v is None or v == "":
        return None
    return _as_text(v)


# Accepts 10, 10.5 or "10.50" from JSON clients and keeps the text form.
FormText = Annotated[str, BeforeValidator(_as_text)]
OptionalFormText = Annotated[str | None, BeforeValidator(_as_optional_text)]


class SizeEntry(BaseModel):
    """Stock (and optional price override) of one size within a color."""

    size_value: str = Field(alias="sizeValue", min_length=1)
    size_label: str = Field(alias="sizeLabel", default="")
    stock: FormText = ""
    price: OptionalFormText = None
    compare_at_price: OptionalFormText = Field(alias="compareAtPrice", default=None)

    model_config = {"populate_by_name": True, "frozen": True}


class ColorGroup(BaseModel):
    """One color of a product: its images, base price/stock and sizes."""

    color_value: str = Field(alias="colorValue", min_length=1)
    color_label: str = Field(alias="colorLabel", default="")
    images: list[str] = Field(default_factory=list)
    base_price: FormText = Field(alias="basePrice", default="")
    base_compare_at_price: FormText = Field(alias="baseCompareAtPrice", default="")
    base_stock: FormText = Field(alias="baseStock", default="")
    is_featured: bool = Field(alias="isFeatured", default=False)
    sizes: list[SizeEntry] = Field(default_factory=list)

    model_config = {"populate_by_name": True, "frozen": True}

    def find_size(self, size_value: str) -> SizeEntry | None:
        for entry in self.sizes:
            if entry.size_value == size_value:
                return entry
        return None


class VariantTemplate(BaseModel):
    """Shared defaults applied when a color or size carries no override."""

    price: FormText = ""
    compare_at_price: FormText = Field(alias="compareAtPrice", default="")
    sku: FormText = ""
    stock: FormText = ""
    images: list[str] = Field(default_factory=list)

    model_config = {"populate_by_name": True, "frozen": True}


class SimpleProductData(BaseModel):
    """Single-SKU product fields (no attributes)."""

    price: FormText = ""
    compare_at_price: FormText = Field(alias="compareAtPrice", default="")
    sku: FormText = ""
    quantity: FormText = ""

    model_config = {"populate_by_name": True, "frozen": True}


def dump_groups(groups: list[ColorGroup]) -> list[dict[str, Any]]:
    return [group.model_dump(by_alias=True) for group in groups]
