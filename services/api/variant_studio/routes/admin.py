"""Admin endpoints: catalog reference data and the product editor.

Reference data (attributes, brands, categories) is proxied to the catalog
backend; product endpoints run the editor load/save orchestration.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel, Field

from variant_studio.schemas.catalog import Attribute, Brand, Category
from variant_studio.schemas.editor import EditableProduct, ProductForm, SubmitResult
from variant_studio.services.catalog_client import CatalogClient, get_catalog_client
from variant_studio.services.product_editor import load_product_for_edit, submit_product

router = APIRouter()
logger = logging.getLogger("uvicorn.error")


class AttributeCreateRequest(BaseModel):
    name: str = Field(min_length=1)
    key: str | None = None
    type: str = "select"
    filterable: bool = True


class AttributeValueRequest(BaseModel):
    label: str = Field(min_length=1)


class BrandCreateRequest(BaseModel):
    name: str = Field(min_length=1)


class CategoryCreateRequest(BaseModel):
    title: str = Field(min_length=1)
    requires_sizes: bool = Field(alias="requiresSizes", default=False)

    model_config = {"populate_by_name": True}


# ============================================================
# Attributes
# ============================================================


@router.get("/attributes")
async def list_attributes(
    refresh: bool = Query(default=False, description="Bypass the reference cache"),
    client: CatalogClient = Depends(get_catalog_client),
) -> dict[str, list[Attribute]]:
    return {"data": await client.list_attributes(use_cache=not refresh)}


@router.post("/attributes", response_model=Attribute, status_code=201)
async def create_attribute(
    request: AttributeCreateRequest,
    client: CatalogClient = Depends(get_catalog_client),
) -> Attribute:
    """Create an attribute; the key defaults to the slugified name."""
    return await client.create_attribute(
        request.name,
        key=request.key,
        type=request.type,
        filterable=request.filterable,
    )


@router.post("/attributes/{attribute_id}/values", response_model=Attribute, status_code=201)
async def add_attribute_value(
    attribute_id: str,
    request: AttributeValueRequest,
    client: CatalogClient = Depends(get_catalog_client),
) -> Attribute:
    return await client.add_attribute_value(attribute_id, request.label)


@router.delete("/attributes/{attribute_id}", status_code=204)
async def delete_attribute(
    attribute_id: str,
    client: CatalogClient = Depends(get_catalog_client),
) -> Response:
    await client.delete_attribute(attribute_id)
    return Response(status_code=204)


@router.delete("/attributes/{attribute_id}/values/{value_id}", status_code=204)
async def delete_attribute_value(
    attribute_id: str,
    value_id: str,
    client: CatalogClient = Depends(get_catalog_client),
) -> Response:
    await client.delete_attribute_value(attribute_id, value_id)
    return Response(status_code=204)


# ============================================================
# Brands and categories
# ============================================================


@router.get("/brands")
async def list_brands(
    refresh: bool = Query(default=False),
    client: CatalogClient = Depends(get_catalog_client),
) -> dict[str, list[Brand]]:
    return {"data": await client.list_brands(use_cache=not refresh)}


@router.post("/brands", response_model=Brand, status_code=201)
async def create_brand(
    request: BrandCreateRequest,
    client: CatalogClient = Depends(get_catalog_client),
) -> Brand:
    return await client.create_brand(request.name)


@router.get("/categories")
async def list_categories(
    refresh: bool = Query(default=False),
    client: CatalogClient = Depends(get_catalog_client),
) -> dict[str, list[Category]]:
    return {"data": await client.list_categories(use_cache=not refresh)}


@router.post("/categories", response_model=Category, status_code=201)
async def create_category(
    request: CategoryCreateRequest,
    client: CatalogClient = Depends(get_catalog_client),
) -> Category:
    return await client.create_category(request.title, requires_sizes=request.requires_sizes)


# ============================================================
# Products
# ============================================================


@router.get("/products/{product_id}/edit")
async def get_product_for_edit(
    product_id: str,
    client: CatalogClient = Depends(get_catalog_client),
) -> dict[str, Any]:
    """Product reshaped for the editor: color groups, template, main media."""
    editable: EditableProduct = await load_product_for_edit(product_id, client)
    return editable.model_dump(by_alias=True)


@router.post("/products", status_code=201)
async def create_product(
    form: ProductForm,
    client: CatalogClient = Depends(get_catalog_client),
) -> dict[str, Any]:
    result: SubmitResult = await submit_product(form, client)
    return result.model_dump(by_alias=True)


@router.put("/products/{product_id}")
async def update_product(
    product_id: str,
    form: ProductForm,
    client: CatalogClient = Depends(get_catalog_client),
) -> dict[str, Any]:
    result: SubmitResult = await submit_product(form, client, product_id=product_id)
    return result.model_dump(by_alias=True)
