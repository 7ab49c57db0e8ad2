import pytest

from variant_studio.schemas.builder import ColorGroup, SimpleProductData, SizeEntry
from variant_studio.schemas.catalog import Attribute, AttributeValue, Brand, Category
from variant_studio.schemas.editor import ProductForm, SelectionIn
from variant_studio.schemas.product import ProductData, ProductPayload
from variant_studio.services.catalog_client import ExternalServiceError
from variant_studio.services.product_editor import build_media, load_product_for_edit, submit_product
from variant_studio.services.validation import IssueCode, VariantValidationError

COLOR = Attribute(
    id="a-color",
    key="color",
    values=[AttributeValue(id="c-red", value="red", label="Cherry Red"), AttributeValue(id="c-blue", value="blue")],
)


class FakeCatalogClient:
    """Records calls; fails on the step named in `fail_on`."""

    def __init__(self, product: dict | None = None, fail_on: str | None = None):
        self.product = product
        self.fail_on = fail_on
        self.calls: list[str] = []
        self.payloads: list[ProductPayload] = []

    def _maybe_fail(self, step: str) -> None:
        self.calls.append(step)
        if self.fail_on == step:
            raise ExternalServiceError(f"{step} failed", status_code=500)

    async def get_product(self, product_id: str) -> ProductData:
        self._maybe_fail("get_product")
        return ProductData.model_validate(self.product)

    async def list_attributes(self, use_cache: bool = True) -> list[Attribute]:
        self._maybe_fail("list_attributes")
        return [COLOR]

    async def create_brand(self, name: str) -> Brand:
        self._maybe_fail("brand")
        return Brand(id="brand-new", name=name)

    async def create_category(self, title: str, *, requires_sizes: bool = False) -> Category:
        self._maybe_fail("category")
        return Category(id="cat-new", title=title, requires_sizes=requires_sizes)

    async def create_product(self, payload: ProductPayload) -> dict:
        self._maybe_fail("product")
        self.payloads.append(payload)
        return {"id": "p-new"}

    async def update_product(self, product_id: str, payload: ProductPayload) -> dict:
        self._maybe_fail("product")
        self.payloads.append(payload)
        return {"id": product_id}


def _form(**overrides) -> ProductForm:
    data = {
        "title": "Summer Tee",
        "colorGroups": [
            {"colorValue": "red", "basePrice": "20", "images": ["/red.jpg"], "isFeatured": True,
             "sizes": [{"sizeValue": "s", "sizeLabel": "S", "stock": "2"}]},
        ],
        "requiresSizes": True,
        "mainImages": ["/main-1.jpg", "/main-2.jpg"],
        "featuredMediaIndex": 1,
    }
    data.update(overrides)
    return ProductForm.model_validate(data)


# ============================================================
# Load
# ============================================================


@pytest.mark.asyncio
async def test_load_collapses_variants_and_separates_media():
    client = FakeCatalogClient(
        product={
            "id": "p1",
            "title": "Tee",
            "slug": "tee",
            "variants": [
                {"sku": "TEE-1-1", "color": "red", "size": "s", "stock": 2, "price": 20, "imageUrl": "/red.jpg"},
                {"sku": "TEE-1-2", "color": "red", "size": "m", "stock": 1, "price": 20, "imageUrl": "/red.jpg"},
            ],
            "media": [
                {"url": "/main.jpg", "position": 0},
                {"url": "red.jpg", "position": 1},
                {"url": "/detail.jpg", "position": 2, "isFeatured": True},
            ],
            "labels": [{"type": "", "value": "New", "position": "", "color": ""}],
        }
    )

    editable = await load_product_for_edit("p1", client)

    assert sorted(client.calls) == ["get_product", "list_attributes"]
    assert editable.product_type == "variable"
    assert editable.simple is None
    assert [g.color_label for g in editable.color_groups] == ["Cherry Red"]
    assert [s.size_value for s in editable.color_groups[0].sizes] == ["s", "m"]
    assert editable.main_images == ["/main.jpg", "/detail.jpg"]
    assert editable.featured_media_index == 1
    assert editable.template.sku == "TEE"
    label = editable.labels[0]
    assert (label.type, label.position, label.color) == ("text", "top-left", None)


@pytest.mark.asyncio
async def test_load_simple_product_exposes_first_variant_fields():
    client = FakeCatalogClient(
        product={
            "id": "p2",
            "variants": [{"sku": "CARD", "price": 25, "compareAtPrice": 30, "stock": 100}],
            "media": ["/card.jpg"],
        }
    )

    editable = await load_product_for_edit("p2", client)

    assert editable.product_type == "simple"
    assert editable.color_groups == []
    assert editable.simple == SimpleProductData(price="25", compare_at_price="30", sku="CARD", quantity="100")
    assert editable.main_images == ["/card.jpg"]


# ============================================================
# Save
# ============================================================


@pytest.mark.asyncio
async def test_submit_runs_brand_category_product_in_order():
    client = FakeCatalogClient()
    form = _form(newBrandName="Acme", newCategoryTitle="Shirts", categoryIds=["c-other"])

    result = await submit_product(form, client, timestamp=1)

    assert client.calls == ["brand", "category", "product"]
    assert result.product_id == "p-new"
    assert result.brand_id == "brand-new"
    assert result.primary_category_id == "cat-new"
    assert result.variant_count == 1

    payload = client.payloads[0]
    assert payload.slug == "summer-tee"
    assert payload.category_ids == ["cat-new", "c-other"]
    assert payload.variants[0].sku == "summer-tee-1-1-1"
    assert [(m.url, m.is_featured) for m in payload.media] == [("/main-1.jpg", False), ("/main-2.jpg", True)]


@pytest.mark.asyncio
async def test_product_failure_reports_partial_progress_and_keeps_form():
    client = FakeCatalogClient(fail_on="product")
    form = _form(newBrandName="Acme")
    before = form.model_dump()

    with pytest.raises(ExternalServiceError) as exc_info:
        await submit_product(form, client, timestamp=1)

    assert exc_info.value.partial == {"brandId": "brand-new", "step": "product"}
    assert form.model_dump() == before


@pytest.mark.asyncio
async def test_brand_failure_stops_the_chain():
    client = FakeCatalogClient(fail_on="brand")

    with pytest.raises(ExternalServiceError) as exc_info:
        await submit_product(_form(newBrandName="Acme", newCategoryTitle="Shirts"), client)

    assert client.calls == ["brand"]
    assert exc_info.value.partial == {"step": "brand"}


@pytest.mark.asyncio
async def test_validation_failure_never_calls_product_endpoint():
    client = FakeCatalogClient()
    form = _form(newBrandName="Acme", colorGroups=[{"colorValue": "red", "basePrice": "20", "baseStock": "1"}])

    with pytest.raises(VariantValidationError) as exc_info:
        await submit_product(form, client)

    assert [i.code for i in exc_info.value.issues] == [IssueCode.MISSING_SIZES]
    assert exc_info.value.partial["brandId"] == "brand-new"
    assert client.calls == ["brand"]


@pytest.mark.asyncio
async def test_simple_mode_submits_one_variant_on_update():
    client = FakeCatalogClient()
    form = _form(mode="simple", simple={"price": "9", "quantity": "3", "sku": "CARD"})

    result = await submit_product(form, client, product_id="p9")

    assert result.product_id == "p9"
    payload = client.payloads[0]
    assert [(v.sku, v.price, v.stock, v.color) for v in payload.variants] == [("CARD", 9, 3, None)]


@pytest.mark.asyncio
async def test_shared_mode_sends_attribute_ids():
    client = FakeCatalogClient()
    form = _form(
        mode="shared",
        template={"price": "5", "stock": "10", "sku": "PIN"},
        selection=SelectionIn(attribute_ids=["a-color"], value_ids={"a-color": ["c-red", "c-blue"]}),
    )

    result = await submit_product(form, client, timestamp=1)

    payload = client.payloads[0]
    assert payload.attribute_ids == ["a-color"]
    assert len(payload.variants) == 1
    assert result.combinations == [{"color": "red"}, {"color": "blue"}]


def test_build_media_resets_out_of_range_featured_index():
    media = build_media(["/a.jpg", " ", "/b.jpg"], 5)
    assert [(m.url, m.position, m.is_featured) for m in media] == [("/a.jpg", 0, True), ("/b.jpg", 1, False)]
