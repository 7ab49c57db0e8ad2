"""Pydantic schemas for API request/response validation."""

from variant_studio.schemas.builder import ColorGroup, SimpleProductData, SizeEntry, VariantTemplate
from variant_studio.schemas.catalog import Attribute, AttributeValue, Brand, Category
from variant_studio.schemas.common import ErrorDetail, ErrorResponse
from variant_studio.schemas.editor import EditableProduct, ProductForm, SubmitResult
from variant_studio.schemas.product import MediaEntry, ProductData, ProductLabel, ProductPayload, VariantRecord

__all__ = [
    "Attribute",
    "AttributeValue",
    "Brand",
    "Category",
    "ColorGroup",
    "EditableProduct",
    "ErrorDetail",
    "ErrorResponse",
    "MediaEntry",
    "ProductData",
    "ProductForm",
    "ProductLabel",
    "ProductPayload",
    "SimpleProductData",
    "SizeEntry",
    "SubmitResult",
    "VariantRecord",
    "VariantTemplate",
]
