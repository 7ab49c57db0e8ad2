#!/usr/bin/env python3
"""Inspect how a stored product collapses into editable color groups.

Prints every color group (images, base price/stock, sizes) and any variant
that needed a fallback (SKU parsing, default color) to be placed.

Usage:
  cd services/api
  CATALOG_API_URL='https://catalog.example.com' python -m scripts.inspect_product <product-id>

Optional flags:
  --json   print the EditableProduct as JSON instead of a summary
"""

import argparse
import asyncio
import json
import os
import sys

# Add parent to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv  # noqa: E402

from variant_studio.services.catalog_client import CatalogClient  # noqa: E402
from variant_studio.services.product_editor import load_product_for_edit  # noqa: E402

load_dotenv()


def _print_summary(editable) -> None:
    print(f"Product {editable.id}: {editable.title!r} ({editable.product_type})")
    print(f"  main images: {len(editable.main_images)} (featured #{editable.featured_media_index})")
    print(f"  template: price={editable.template.price!r} sku={editable.template.sku!r}")

    if editable.simple is not None:
        s = editable.simple
        print(f"  simple: price={s.price} compareAt={s.compare_at_price} sku={s.sku} qty={s.quantity}")

    for group in editable.color_groups:
        flag = " *featured*" if group.is_featured else ""
        print(f"\n  [{group.color_value}] {group.color_label}{flag}")
        print(f"    images: {len(group.images)}  basePrice={group.base_price}  baseStock={group.base_stock!r}")
        for size in group.sizes:
            override = f" price={size.price}" if size.price else ""
            print(f"    - {size.size_value} ({size.size_label}) stock={size.stock}{override}")

    if editable.issues:
        print(f"\n  {len(editable.issues)} data-shape issue(s):")
        for issue in editable.issues:
            print(f"    #{issue.index} sku={issue.sku!r}: {issue.reason}")


async def main() -> None:
    parser = argparse.ArgumentParser(description="Collapse a stored product for inspection")
    parser.add_argument("product_id")
    parser.add_argument("--json", action="store_true")
    args = parser.parse_args()

    # Reference cache is not initialized here; always read attributes fresh.
    async with CatalogClient(use_cache=False) as client:
        editable = await load_product_for_edit(args.product_id, client)

    if args.json:
        print(json.dumps(editable.model_dump(by_alias=True), indent=2, ensure_ascii=False))
    else:
        _print_summary(editable)


if __name__ == "__main__":
    asyncio.run(main())
