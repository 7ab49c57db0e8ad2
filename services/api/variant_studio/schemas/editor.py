"""Admin product editor schemas (load-for-edit response and submit form)."""

from typing import Literal

from pydantic import BaseModel, Field

from variant_studio.schemas.builder import ColorGroup, SimpleProductData, VariantTemplate
from variant_studio.schemas.product import ProductLabel

ProductMode = Literal["simple", "variable", "shared"]


class SelectionIn(BaseModel):
    """Serialized attribute selection: selected attribute ids and their value ids."""

    attribute_ids: list[str] = Field(alias="attributeIds", default_factory=list)
    value_ids: dict[str, list[str]] = Field(alias="valueIds", default_factory=dict)

    model_config = {"populate_by_name": True}


class DataShapeIssueOut(BaseModel):
    index: int
    sku: str
    reason: str


class EditableProduct(BaseModel):
    """A persisted product reshaped for the editor form."""

    id: str
    title: str = ""
    slug: str = ""
    description_html: str | None = Field(alias="descriptionHtml", default=None)
    brand_id: str | None = Field(alias="brandId", default=None)
    primary_category_id: str | None = Field(alias="primaryCategoryId", default=None)
    category_ids: list[str] = Field(alias="categoryIds", default_factory=list)
    published: bool = False
    featured: bool = False
    labels: list[ProductLabel] = Field(default_factory=list)
    main_images: list[str] = Field(alias="mainImages", default_factory=list)
    featured_media_index: int = Field(alias="featuredMediaIndex", default=0)
    product_type: Literal["simple", "variable"] = Field(alias="productType", default="variable")
    color_groups: list[ColorGroup] = Field(alias="colorGroups", default_factory=list)
    template: VariantTemplate = Field(default_factory=VariantTemplate)
    simple: SimpleProductData | None = None
    attribute_ids: list[str] = Field(alias="attributeIds", default_factory=list)
    issues: list[DataShapeIssueOut] = Field(default_factory=list)

    model_config = {"populate_by_name": True}


class ProductForm(BaseModel):
    """Everything the editor submits on save.

    `new_brand_name` / `new_category_title` are created on the backend first
    and take precedence over `brand_id` / `primary_category_id`.
    """

    title: str = Field(min_length=1)
    slug: str = ""
    description_html: str | None = Field(alias="descriptionHtml", default=None)
    brand_id: str | None = Field(alias="brandId", default=None)
    new_brand_name: str | None = Field(alias="newBrandName", default=None)
    primary_category_id: str | None = Field(alias="primaryCategoryId", default=None)
    category_ids: list[str] = Field(alias="categoryIds", default_factory=list)
    new_category_title: str | None = Field(alias="newCategoryTitle", default=None)
    requires_sizes: bool = Field(alias="requiresSizes", default=False)
    published: bool = False
    featured: bool = False
    labels: list[ProductLabel] = Field(default_factory=list)
    main_images: list[str] = Field(alias="mainImages", default_factory=list)
    featured_media_index: int = Field(alias="featuredMediaIndex", default=0, ge=0)
    mode: ProductMode = "variable"
    color_groups: list[ColorGroup] = Field(alias="colorGroups", default_factory=list)
    template: VariantTemplate = Field(default_factory=VariantTemplate)
    simple: SimpleProductData = Field(default_factory=SimpleProductData)
    selection: SelectionIn = Field(default_factory=SelectionIn)

    model_config = {"populate_by_name": True, "frozen": True}


class SubmitResult(BaseModel):
    product_id: str | None = Field(alias="productId", default=None)
    brand_id: str | None = Field(alias="brandId", default=None)
    primary_category_id: str | None = Field(alias="primaryCategoryId", default=None)
    variant_count: int = Field(alias="variantCount", default=0)
    warnings: list[dict] = Field(default_factory=list)
    combinations: list[dict[str, str]] = Field(default_factory=list)

    model_config = {"populate_by_name": True}
