"""HTTP client for the external catalog backend (admin REST API).

Endpoints used:
- GET/POST   /api/v1/admin/attributes
- POST       /api/v1/admin/attributes/{id}/values
- DELETE     /api/v1/admin/attributes/{id}[/values/{valueId}]
- GET        /api/v1/admin/products/{id}
- POST/PUT   /api/v1/admin/products[/{id}]
- GET/POST   /api/v1/admin/brands
- GET/POST   /api/v1/admin/categories

Caching:
- Attribute, brand and category lists are cached in Redis (best effort)
- Every write invalidates the list it changes

Errors come back as problem+json ({status, type, title, detail}) and are
raised as ExternalServiceError.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel

from variant_studio.schemas.catalog import (
    Attribute,
    AttributeCreate,
    AttributeValueCreate,
    Brand,
    BrandCreate,
    Category,
    CategoryCreate,
)
from variant_studio.schemas.product import ProductData, ProductPayload
from variant_studio.services.slugs import attribute_key_from_name
from variant_studio.settings import get_settings
from variant_studio.stores.redis import (
    get_reference_cache,
    invalidate_reference_cache,
    set_reference_cache,
)

logger = logging.getLogger("uvicorn.error")

ModelT = TypeVar("ModelT", bound=BaseModel)

ADMIN_PREFIX = "/api/v1/admin"


class ExternalServiceError(RuntimeError):
    """A call to the catalog backend failed.

    `partial` describes work already completed by a multi-step operation
    (e.g. {"brandId": "..."}), so the caller does not redo it.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        detail: Any = None,
        partial: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.detail = detail
        self.partial = dict(partial or {})

    def with_partial(self, partial: dict[str, Any]) -> ExternalServiceError:
        return ExternalServiceError(
            self.message,
            status_code=self.status_code,
            detail=self.detail,
            partial={**self.partial, **partial},
        )

    @classmethod
    def from_response(cls, response: httpx.Response, action: str) -> ExternalServiceError:
        detail: Any = None
        message = f"{action} failed with HTTP {response.status_code}"
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            detail = body
            text = body.get("detail") or body.get("title") or body.get("message")
            if isinstance(body.get("error"), dict):
                text = text or body["error"].get("message")
            if text:
                message = f"{action} failed: {text}"
        elif response.text:
            detail = {"body": response.text[:500]}
        return cls(message, status_code=response.status_code, detail=detail)


def _unwrap(payload: Any) -> Any:
    """Accept both `{...}` and `{"data": {...}}` envelopes."""
    if isinstance(payload, dict) and "data" in payload and isinstance(payload["data"], (dict, list)):
        return payload["data"]
    return payload


class CatalogClient:
    """Async client for the catalog backend."""

    def __init__(
        self,
        base_url: str | None = None,
        *,
        locale: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        use_cache: bool = True,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.catalog_api_url).rstrip("/")
        self.locale = locale or settings.catalog_locale
        self.timeout = timeout or settings.catalog_api_timeout
        self.use_cache = use_cache
        self._transport = transport
        self._http_client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._http_client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def __aenter__(self) -> CatalogClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # ------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------

    async def _request(self, method: str, path: str, json: dict[str, Any] | None = None) -> Any:
        action = f"{method} {path}"
        logger.info(f"[catalog] {action}")
        client = await self._get_client()
        try:
            response = await client.request(method, f"{ADMIN_PREFIX}{path}", json=json)
        except httpx.HTTPError as e:
            logger.warning(f"[catalog] {action} transport error: {e}")
            raise ExternalServiceError(f"{action} failed: {e}") from e

        if response.status_code >= 400:
            error = ExternalServiceError.from_response(response, action)
            logger.warning(f"[catalog] {error.message}")
            raise error
        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ExternalServiceError(f"{action} returned invalid JSON", status_code=response.status_code) from e

    def _parse(self, model: type[ModelT], payload: Any, action: str) -> ModelT:
        try:
            return model.model_validate(_unwrap(payload))
        except ValueError as e:
            raise ExternalServiceError(f"{action} returned an unexpected shape", detail={"error": str(e)}) from e

    def _parse_list(self, model: type[ModelT], payload: Any, action: str) -> list[ModelT]:
        items = _unwrap(payload)
        if not isinstance(items, list):
            raise ExternalServiceError(f"{action} returned an unexpected shape")
        return [self._parse(model, item, action) for item in items]

    # ------------------------------------------------------------
    # Cached reference lists
    # ------------------------------------------------------------

    async def _cached_list(self, kind: str, model: type[ModelT], use_cache: bool) -> list[ModelT]:
        if use_cache and self.use_cache:
            try:
                cached = await get_reference_cache(kind, self.locale)
                if cached is not None:
                    logger.info(f"[catalog] cache HIT for {kind} ({len(cached)} items)")
                    return [model.model_validate(item) for item in cached]
            except Exception as e:
                logger.warning(f"Redis cache read failed: {e}")

        items = self._parse_list(model, await self._request("GET", f"/{kind}"), f"GET /{kind}")

        if self.use_cache:
            try:
                await set_reference_cache(kind, self.locale, [i.model_dump(by_alias=True) for i in items])
            except Exception as e:
                logger.warning(f"Redis cache write failed: {e}")
        return items

    async def _invalidate(self, kind: str) -> None:
        if not self.use_cache:
            return
        try:
            await invalidate_reference_cache(kind, self.locale)
        except Exception as e:
            logger.warning(f"Redis cache invalidation failed for {kind}: {e}")

    # ------------------------------------------------------------
    # Attributes
    # ------------------------------------------------------------

    async def list_attributes(self, use_cache: bool = True) -> list[Attribute]:
        return await self._cached_list("attributes", Attribute, use_cache)

    async def create_attribute(
        self,
        name: str,
        *,
        key: str | None = None,
        type: str = "select",
        filterable: bool = True,
    ) -> Attribute:
        """Create an attribute; the key is derived from the name when omitted."""
        body = AttributeCreate(
            name=name.strip(),
            key=key or attribute_key_from_name(name),
            type=type,
            filterable=filterable,
            locale=self.locale,
        )
        payload = await self._request("POST", "/attributes", json=body.model_dump())
        await self._invalidate("attributes")
        return self._parse(Attribute, payload, "POST /attributes")

    async def add_attribute_value(self, attribute_id: str, label: str) -> Attribute:
        body = AttributeValueCreate(label=label.strip(), locale=self.locale)
        path = f"/attributes/{attribute_id}/values"
        payload = await self._request("POST", path, json=body.model_dump())
        await self._invalidate("attributes")
        return self._parse(Attribute, payload, f"POST {path}")

    async def delete_attribute(self, attribute_id: str) -> None:
        await self._request("DELETE", f"/attributes/{attribute_id}")
        await self._invalidate("attributes")

    async def delete_attribute_value(self, attribute_id: str, value_id: str) -> None:
        await self._request("DELETE", f"/attributes/{attribute_id}/values/{value_id}")
        await self._invalidate("attributes")

    # ------------------------------------------------------------
    # Brands and categories
    # ------------------------------------------------------------

    async def list_brands(self, use_cache: bool = True) -> list[Brand]:
        return await self._cached_list("brands", Brand, use_cache)

    async def create_brand(self, name: str) -> Brand:
        body = BrandCreate(name=name.strip(), locale=self.locale)
        payload = await self._request("POST", "/brands", json=body.model_dump())
        await self._invalidate("brands")
        return self._parse(Brand, payload, "POST /brands")

    async def list_categories(self, use_cache: bool = True) -> list[Category]:
        return await self._cached_list("categories", Category, use_cache)

    async def create_category(self, title: str, *, requires_sizes: bool = False) -> Category:
        body = CategoryCreate(title=title.strip(), locale=self.locale, requires_sizes=requires_sizes)
        payload = await self._request("POST", "/categories", json=body.model_dump(by_alias=True))
        await self._invalidate("categories")
        return self._parse(Category, payload, "POST /categories")

    # ------------------------------------------------------------
    # Products
    # ------------------------------------------------------------

    async def get_product(self, product_id: str) -> ProductData:
        path = f"/products/{product_id}"
        return self._parse(ProductData, await self._request("GET", path), f"GET {path}")

    async def create_product(self, payload: ProductPayload) -> dict[str, Any]:
        created = await self._request("POST", "/products", json=payload.to_payload())
        return _unwrap(created) or {}

    async def update_product(self, product_id: str, payload: ProductPayload) -> dict[str, Any]:
        updated = await self._request("PUT", f"/products/{product_id}", json=payload.to_payload())
        return _unwrap(updated) or {}


async def get_catalog_client() -> AsyncGenerator[CatalogClient, None]:
    """FastAPI dependency: one client per request, closed afterwards."""
    client = CatalogClient()
    try:
        yield client
    finally:
        await client.close()
