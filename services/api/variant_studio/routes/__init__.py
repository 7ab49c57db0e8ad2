"""API routes."""

from fastapi import APIRouter

from variant_studio.routes import admin, builder, storefront

api_router = APIRouter()

# Variant builder (pure expand/collapse)
api_router.include_router(builder.router, prefix="/v1/builder", tags=["builder"])

# Admin endpoints (reference data, product editor)
api_router.include_router(admin.router, prefix="/v1/admin", tags=["admin"])

# Storefront variant selection
api_router.include_router(storefront.router, prefix="/v1/storefront", tags=["storefront"])
