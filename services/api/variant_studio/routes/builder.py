"""Variant builder endpoints (pure transformations, no backend calls).

POST /v1/builder/expand        - color groups -> variant records
POST /v1/builder/collapse      - variant records -> color groups
POST /v1/builder/combinations  - Cartesian product of an attribute selection
POST /v1/builder/shared        - one variant shared by many attribute values

Routers are thin: call services for business logic.
"""

from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel, Field

from variant_studio.schemas.builder import ColorGroup, VariantTemplate, dump_groups
from variant_studio.schemas.catalog import Attribute
from variant_studio.schemas.editor import SelectionIn
from variant_studio.schemas.product import VariantRecord
from variant_studio.services.collapser import collapse_variants
from variant_studio.services.expander import expand_color_groups, expand_shared
from variant_studio.services.selection import AttributeSelectionState, combinations

router = APIRouter()


class ExpandRequest(BaseModel):
    color_groups: list[ColorGroup] = Field(alias="colorGroups", default_factory=list)
    template: VariantTemplate = Field(default_factory=VariantTemplate)
    product_slug: str = Field(alias="productSlug", default="product")
    requires_sizes: bool = Field(alias="requiresSizes", default=False)
    published: bool = True
    timestamp: int | None = None

    model_config = {"populate_by_name": True}


class CollapseRequest(BaseModel):
    variants: list[VariantRecord] = Field(default_factory=list)
    attributes: list[Attribute] = Field(default_factory=list)


class SelectionRequest(BaseModel):
    selection: SelectionIn = Field(default_factory=SelectionIn)
    attributes: list[Attribute] = Field(default_factory=list)


class SharedRequest(SelectionRequest):
    template: VariantTemplate = Field(default_factory=VariantTemplate)
    product_slug: str = Field(alias="productSlug", default="product")
    published: bool = True
    timestamp: int | None = None

    model_config = {"populate_by_name": True}


def to_selection_state(selection: SelectionIn) -> AttributeSelectionState:
    return AttributeSelectionState(
        attribute_ids=tuple(dict.fromkeys(selection.attribute_ids)),
        value_ids={
            attribute_id: tuple(dict.fromkeys(value_ids))
            for attribute_id, value_ids in selection.value_ids.items()
            if attribute_id in selection.attribute_ids
        },
    )


@router.post("/expand")
async def expand(request: ExpandRequest) -> dict[str, Any]:
    """Generate variant records; 422 with per-group issues when invalid."""
    result = expand_color_groups(
        request.color_groups,
        request.template,
        product_slug=request.product_slug,
        requires_sizes=request.requires_sizes,
        published=request.published,
        timestamp=request.timestamp,
    )
    return {
        "variants": [v.to_payload() for v in result.variants],
        "images": [{"url": i.url, "isFeatured": i.is_featured} for i in result.images],
        "warnings": [w.to_dict() for w in result.warnings],
    }


@router.post("/collapse")
async def collapse(request: CollapseRequest) -> dict[str, Any]:
    result = collapse_variants(request.variants, request.attributes)
    return {
        "colorGroups": dump_groups(result.groups),
        "template": result.template.model_dump(by_alias=True),
        "issues": [issue.to_dict() for issue in result.issues],
    }


@router.post("/combinations")
async def list_combinations(request: SelectionRequest) -> dict[str, Any]:
    combos = combinations(to_selection_state(request.selection), request.attributes)
    return {
        "combinations": [{key: value.value for key, value in combo.items()} for combo in combos],
        "count": len(combos),
    }


@router.post("/shared")
async def shared(request: SharedRequest) -> dict[str, Any]:
    result = expand_shared(
        to_selection_state(request.selection),
        request.attributes,
        request.template,
        product_slug=request.product_slug,
        published=request.published,
        timestamp=request.timestamp,
    )
    return {
        "variant": result.variant.to_payload(),
        "attributeIds": result.attribute_ids,
        "combinations": result.combinations,
    }
