"""Admin product editor orchestration.

Load path:
    product + attributes (fetched concurrently) -> collapse -> EditableProduct

Save path (strictly sequential, stops at the first failure):
    create brand? -> create category? -> expand variants -> create/update product

The submitted form is never modified; a failure after a backend write
carries the ids created so far in `partial`, so a retry can reuse them.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Any

from variant_studio.schemas.builder import ColorGroup, SimpleProductData
from variant_studio.schemas.catalog import Attribute
from variant_studio.schemas.editor import (
    DataShapeIssueOut,
    EditableProduct,
    ProductForm,
    SubmitResult,
)
from variant_studio.schemas.product import MediaEntry, ProductData, ProductPayload, VariantRecord
from variant_studio.services.catalog_client import CatalogClient, ExternalServiceError
from variant_studio.services.collapser import collapse_variants
from variant_studio.services.expander import expand_color_groups, expand_shared, expand_simple
from variant_studio.services.images import clean_image_urls, separate_main_and_variant_images
from variant_studio.services.selection import AttributeSelectionState
from variant_studio.services.slugs import slugify
from variant_studio.services.validation import VariantValidationError

logger = logging.getLogger("uvicorn.error")


# ============================================================
# Load
# ============================================================


def _is_variable(variants: list[VariantRecord]) -> bool:
    return any(v.options or v.attributes or v.color or v.size for v in variants)


def _simple_fields(variants: list[VariantRecord]) -> SimpleProductData:
    if not variants:
        return SimpleProductData()
    first = variants[0]
    return SimpleProductData(
        price=first.price,
        compare_at_price=first.compare_at_price,
        sku=first.sku,
        quantity=first.stock,
    )


def _media_urls(product: ProductData) -> tuple[list[str], int | None]:
    """Media URLs in position order plus the position of the featured entry."""
    entries = sorted(product.media, key=lambda m: m.position)
    urls = [m.url for m in entries]
    featured = next((i for i, m in enumerate(entries) if m.is_featured), None)
    if product.main_product_image and product.main_product_image not in urls:
        urls.insert(0, product.main_product_image)
        featured = 0 if featured is None else featured + 1
    return urls, featured


def build_editable_product(product: ProductData, attributes: list[Attribute]) -> EditableProduct:
    """Reshape a fetched product for the editor (no I/O)."""
    variable = _is_variable(product.variants)
    groups: list[ColorGroup] = []
    issues: list[DataShapeIssueOut] = []
    template = None
    if variable:
        collapsed = collapse_variants(product.variants, attributes)
        groups = collapsed.groups
        template = collapsed.template
        issues = [DataShapeIssueOut(**issue.to_dict()) for issue in collapsed.issues]

    variant_images = [url for group in groups for url in group.images]
    media_urls, featured = _media_urls(product)
    main_images, echoed = separate_main_and_variant_images(media_urls, variant_images)

    featured_index = 0
    if featured is not None and media_urls:
        featured_url = media_urls[featured]
        if featured_url in main_images:
            featured_index = main_images.index(featured_url)

    if echoed:
        logger.info(f"[editor] product {product.id}: {len(echoed)} variant image(s) removed from main media")

    editable = EditableProduct(
        id=product.id,
        title=product.title,
        slug=product.slug,
        description_html=product.description_html,
        brand_id=product.brand_id,
        primary_category_id=product.primary_category_id,
        category_ids=product.category_ids,
        published=product.published,
        featured=product.featured,
        labels=product.labels,
        main_images=main_images,
        featured_media_index=featured_index,
        product_type="variable" if variable else "simple",
        color_groups=groups,
        simple=None if variable else _simple_fields(product.variants),
        attribute_ids=product.attribute_ids,
        issues=issues,
    )
    if template is not None:
        editable = editable.model_copy(update={"template": template})
    return editable


async def load_product_for_edit(product_id: str, client: CatalogClient) -> EditableProduct:
    """Fetch a product with the attribute catalog and collapse it for editing."""
    product, attributes = await asyncio.gather(
        client.get_product(product_id),
        client.list_attributes(),
    )
    editable = build_editable_product(product, attributes)
    logger.info(
        f"[editor] loaded product {product_id}: type={editable.product_type} "
        f"groups={len(editable.color_groups)} issues={len(editable.issues)}"
    )
    return editable


# ============================================================
# Save
# ============================================================


def build_media(main_images: list[str], featured_index: int) -> list[MediaEntry]:
    """Main product images as ordered media entries; one of them featured."""
    urls = clean_image_urls(main_images)
    if featured_index >= len(urls):
        featured_index = 0
    return [
        MediaEntry(url=url, position=position, is_featured=position == featured_index)
        for position, url in enumerate(urls)
    ]


async def submit_product(
    form: ProductForm,
    client: CatalogClient,
    *,
    product_id: str | None = None,
    timestamp: int | None = None,
    rng: random.Random | None = None,
) -> SubmitResult:
    """Create (or update, when `product_id` is given) a product from the editor form.

    Raises:
        VariantValidationError: variants could not be generated.
        ExternalServiceError: a backend call failed; `partial` lists what was
            already created.
    """
    progress: dict[str, Any] = {}

    brand_id = form.brand_id
    if form.new_brand_name and form.new_brand_name.strip():
        try:
            brand = await client.create_brand(form.new_brand_name)
        except ExternalServiceError as e:
            raise e.with_partial({**progress, "step": "brand"}) from e
        brand_id = brand.id
        progress["brandId"] = brand_id
        logger.info(f"[editor] created brand {brand_id}")

    category_id = form.primary_category_id
    if form.new_category_title and form.new_category_title.strip():
        try:
            category = await client.create_category(form.new_category_title, requires_sizes=form.requires_sizes)
        except ExternalServiceError as e:
            raise e.with_partial({**progress, "step": "category"}) from e
        category_id = category.id
        progress["primaryCategoryId"] = category_id
        logger.info(f"[editor] created category {category_id}")

    slug = form.slug.strip() or slugify(form.title)
    category_ids = list(form.category_ids)
    if category_id and category_id not in category_ids:
        category_ids.insert(0, category_id)

    attribute_ids: list[str] | None = None
    combos: list[dict[str, str]] = []
    warnings: list[dict] = []
    try:
        if form.mode == "simple":
            variants = expand_simple(
                form.simple, product_slug=slug, published=form.published, timestamp=timestamp
            ).variants
        elif form.mode == "shared":
            selection = AttributeSelectionState(
                attribute_ids=tuple(form.selection.attribute_ids),
                value_ids={k: tuple(v) for k, v in form.selection.value_ids.items()},
            )
            attributes = await client.list_attributes()
            shared = expand_shared(
                selection,
                attributes,
                form.template,
                product_slug=slug,
                published=form.published,
                timestamp=timestamp,
            )
            variants = [shared.variant]
            attribute_ids = shared.attribute_ids
            combos = shared.combinations
        else:
            result = expand_color_groups(
                form.color_groups,
                form.template,
                product_slug=slug,
                requires_sizes=form.requires_sizes,
                published=form.published,
                timestamp=timestamp,
                rng=rng,
            )
            variants = result.variants
            warnings = [issue.to_dict() for issue in result.warnings]
    except VariantValidationError as e:
        if progress:
            logger.info(f"[editor] validation failed after partial progress: {progress}")
        raise VariantValidationError(e.issues, partial={**progress, "step": "variants"}) from e
    except ExternalServiceError as e:
        raise e.with_partial({**progress, "step": "variants"}) from e

    payload = ProductPayload(
        title=form.title,
        slug=slug,
        description_html=form.description_html,
        brand_id=brand_id,
        primary_category_id=category_id,
        category_ids=category_ids or None,
        published=form.published,
        featured=form.featured,
        variants=variants,
        media=build_media(form.main_images, form.featured_media_index),
        labels=form.labels,
        attribute_ids=attribute_ids,
    )

    try:
        if product_id:
            saved = await client.update_product(product_id, payload)
        else:
            saved = await client.create_product(payload)
    except ExternalServiceError as e:
        raise e.with_partial({**progress, "step": "product"}) from e

    saved_id = saved.get("id") if isinstance(saved, dict) else None
    logger.info(f"[editor] saved product {saved_id or product_id}: {len(variants)} variant(s)")
    return SubmitResult(
        product_id=saved_id or product_id,
        brand_id=brand_id,
        primary_category_id=category_id,
        variant_count=len(variants),
        warnings=warnings,
        combinations=combos,
    )
