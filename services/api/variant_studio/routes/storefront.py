"""Storefront endpoints.

POST /v1/storefront/select-variant - variant for the shopper's current choice
"""

from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel, Field

from variant_studio.schemas.product import VariantRecord
from variant_studio.services.variant_finder import available_sizes, find_variant

router = APIRouter()


class SelectVariantRequest(BaseModel):
    variants: list[VariantRecord] = Field(default_factory=list)
    color: str | None = None
    size: str | None = None
    others: dict[str, str] = Field(default_factory=dict)


@router.post("/select-variant")
async def select_variant(request: SelectVariantRequest) -> dict[str, Any]:
    variant = find_variant(request.variants, request.color, request.size, request.others)
    return {
        "variant": variant.model_dump(by_alias=True, exclude={"attributes"}) if variant else None,
        "availableSizes": available_sizes(request.variants, request.color),
    }
