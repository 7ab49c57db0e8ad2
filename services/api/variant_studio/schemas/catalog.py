"""Catalog reference data owned by the external backend.

Attributes, brands and categories are read-only for the variant builder;
the create payloads are only forwarded to the backend.
"""

from pydantic import AliasChoices, BaseModel, Field


class AttributeValue(BaseModel):
    """A single value of an attribute (e.g. "red" of Color)."""

    id: str
    value: str  # machine token, used to match legacy variant records
    label: str = ""
    color_swatch: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("colorSwatch", "colors", "color_swatch"),
        serialization_alias="colorSwatch",
    )
    image_url: str | None = Field(alias="imageUrl", default=None)

    model_config = {"populate_by_name": True}

    @property
    def display_label(self) -> str:
        return self.label or self.value


class Attribute(BaseModel):
    """A named axis of product variation with its catalog-managed values."""

    id: str
    key: str  # stable machine name: "color", "size", ...
    name: str = ""
    type: str = "select"
    filterable: bool = True
    values: list[AttributeValue] = Field(default_factory=list)

    model_config = {"populate_by_name": True}

    def find_value(self, ref: str) -> AttributeValue | None:
        """Find a value by id, falling back to its raw token."""
        for value in self.values:
            if value.id == ref:
                return value
        for value in self.values:
            if value.value == ref:
                return value
        return None


class AttributeList(BaseModel):
    """Response of GET /api/v1/admin/attributes."""

    data: list[Attribute] = Field(default_factory=list)


class AttributeCreate(BaseModel):
    name: str = Field(min_length=1)
    key: str = Field(min_length=1)
    type: str = "select"
    filterable: bool = True
    locale: str = "en"


class AttributeValueCreate(BaseModel):
    label: str = Field(min_length=1)
    locale: str = "en"


class Brand(BaseModel):
    id: str
    name: str = ""
    slug: str = ""


class BrandCreate(BaseModel):
    name: str = Field(min_length=1)
    locale: str = "en"


class Category(BaseModel):
    id: str
    title: str = ""
    slug: str = ""
    parent_id: str | None = Field(alias="parentId", default=None)
    requires_sizes: bool = Field(alias="requiresSizes", default=False)

    model_config = {"populate_by_name": True}


class CategoryCreate(BaseModel):
    title: str = Field(min_length=1)
    locale: str = "en"
    requires_sizes: bool = Field(alias="requiresSizes", default=False)

    model_config = {"populate_by_name": True}


def find_attribute(attributes: list[Attribute], key: str) -> Attribute | None:
    """Return the attribute with the given machine key (e.g. "color")."""
    for attribute in attributes:
        if attribute.key == key:
            return attribute
    return None
