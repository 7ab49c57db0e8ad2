"""Product wire shapes exchanged with the catalog backend.

VariantRecord is the flat, persisted representation of one sellable SKU.
Reads tolerate the legacy option shapes; writes always use camelCase aliases.
"""

from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator


class OptionAttributeRef(BaseModel):
    key: str | None = None


class OptionAttributeValue(BaseModel):
    """Nested `attributeValue` relation on legacy variant options."""

    id: str | None = None
    value: str | None = None
    attribute_key: str | None = Field(alias="attributeKey", default=None)
    attribute: OptionAttributeRef | None = None

    model_config = {"populate_by_name": True}


class VariantOption(BaseModel):
    """One attribute assignment of a variant.

    Backends have shipped three shapes over time:
    - {"attributeKey": "color", "value": "red"}
    - {"key": "color", "value": "red"} / {"attribute": "color", "value": "red"}
    - {"attributeValue": {"value": "red", "attribute": {"key": "color"}}}
    """

    attribute_key: str | None = Field(alias="attributeKey", default=None)
    key: str | None = None
    attribute: str | None = None
    value: str | None = None
    value_id: str | None = Field(alias="valueId", default=None)
    attribute_value: OptionAttributeValue | None = Field(alias="attributeValue", default=None)

    model_config = {"populate_by_name": True}


class VariantRecord(BaseModel):
    """Flat variant record (one concrete SKU)."""

    id: str | None = None
    price: float | None = None
    compare_at_price: float | None = Field(alias="compareAtPrice", default=None)
    sku: str = ""
    color: str | None = None
    size: str | None = None
    size_label: str | None = Field(alias="sizeLabel", default=None)
    stock: int | None = None
    image_url: str | None = Field(alias="imageUrl", default=None)
    is_featured: bool = Field(alias="isFeatured", default=False)
    published: bool = True
    options: list[VariantOption] = Field(default_factory=list)
    attributes: dict[str, Any] = Field(default_factory=dict)

    model_config = {"populate_by_name": True}

    @field_validator("sku", mode="before")
    @classmethod
    def _sku_text(cls, v: object) -> str:
        return "" if v is None else str(v)

    @field_validator("options", mode="before")
    @classmethod
    def _options_list(cls, v: object) -> object:
        return v if isinstance(v, list) else []

    @field_validator("attributes", mode="before")
    @classmethod
    def _attributes_dict(cls, v: object) -> object:
        return v if isinstance(v, dict) else {}

    def to_payload(self) -> dict[str, Any]:
        """Serialize for the product create/update endpoint."""
        payload = self.model_dump(
            by_alias=True,
            exclude_none=True,
            exclude={"id", "attributes"},
        )
        if not self.options:
            payload.pop("options", None)
        return payload


class MediaEntry(BaseModel):
    url: str
    type: Literal["image"] = "image"
    position: int = Field(default=0, ge=0)
    is_featured: bool = Field(alias="isFeatured", default=False)

    model_config = {"populate_by_name": True}


LabelPosition = Literal["top-left", "top-right", "bottom-left", "bottom-right"]


class ProductLabel(BaseModel):
    """Badge rendered on top of the product image."""

    id: str | None = None
    type: Literal["text", "percentage"] = "text"
    value: str = ""
    position: LabelPosition = "top-left"
    color: str | None = Field(default=None, pattern=r"^#(?:[0-9a-fA-F]{3}){1,2}$")

    @field_validator("type", "position", "color", mode="before")
    @classmethod
    def _blank_as_default(cls, v: object, info) -> object:
        # Older records store "" for unset label fields.
        if v in ("", None):
            return {"type": "text", "position": "top-left"}.get(info.field_name)
        return v


class ProductPayload(BaseModel):
    """Body of POST /api/v1/admin/products and PUT /api/v1/admin/products/{id}."""

    title: str = Field(min_length=1)
    slug: str = Field(min_length=1)
    description_html: str | None = Field(alias="descriptionHtml", default=None)
    brand_id: str | None = Field(alias="brandId", default=None)
    primary_category_id: str | None = Field(alias="primaryCategoryId", default=None)
    category_ids: list[str] | None = Field(alias="categoryIds", default=None)
    published: bool = False
    featured: bool = False
    variants: list[VariantRecord] = Field(default_factory=list)
    media: list[MediaEntry] = Field(default_factory=list)
    labels: list[ProductLabel] = Field(default_factory=list)
    attribute_ids: list[str] | None = Field(alias="attributeIds", default=None)

    model_config = {"populate_by_name": True}

    def to_payload(self) -> dict[str, Any]:
        payload = self.model_dump(by_alias=True, exclude_none=True, exclude={"variants", "labels"})
        payload["variants"] = [v.to_payload() for v in self.variants]
        payload["labels"] = [
            label.model_dump(exclude={"id"}) for label in self.labels
        ]
        return payload


class ProductData(BaseModel):
    """Product as returned by GET /api/v1/admin/products/{id}."""

    id: str
    title: str = ""
    slug: str = ""
    description_html: str | None = Field(alias="descriptionHtml", default=None)
    brand_id: str | None = Field(alias="brandId", default=None)
    primary_category_id: str | None = Field(alias="primaryCategoryId", default=None)
    category_ids: list[str] = Field(alias="categoryIds", default_factory=list)
    published: bool = False
    featured: bool = False
    variants: list[VariantRecord] = Field(default_factory=list)
    media: list[MediaEntry] = Field(default_factory=list)
    labels: list[ProductLabel] = Field(default_factory=list)
    attribute_ids: list[str] = Field(alias="attributeIds", default_factory=list)
    main_product_image: str | None = Field(alias="mainProductImage", default=None)

    model_config = {"populate_by_name": True}

    @field_validator("media", mode="before")
    @classmethod
    def _media_entries(cls, v: object) -> list[dict[str, Any]]:
        """Media may be a list of plain URL strings or of objects."""
        if not isinstance(v, list):
            return []
        entries: list[dict[str, Any]] = []
        for position, item in enumerate(v):
            if isinstance(item, str):
                if item.strip():
                    entries.append({"url": item.strip(), "position": position})
            elif isinstance(item, dict) and item.get("url") and item.get("type", "image") == "image":
                entries.append({"position": position, **item})
        return entries

    @field_validator("category_ids", "attribute_ids", "variants", "labels", mode="before")
    @classmethod
    def _none_as_empty(cls, v: object) -> object:
        return [] if v is None else v
