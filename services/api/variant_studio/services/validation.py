"""Pre-submission validation of color groups.

Policy (strictest of the admin editor generations):
- price is mandatory and must be > 0, per color unless every size overrides it
- categories with requiresSizes need at least one size per color
- stock is mandatory and must be a non-negative integer
- a color appears once per product, a size once per color
- a color without images is reported but does not block submission
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum

from variant_studio.schemas.builder import ColorGroup, VariantTemplate


class IssueCode(str, Enum):
    NO_COLORS = "NO_COLORS"
    NO_ATTRIBUTES = "NO_ATTRIBUTES"
    MISSING_PRICE = "MISSING_PRICE"
    INVALID_PRICE = "INVALID_PRICE"
    MISSING_SIZES = "MISSING_SIZES"
    MISSING_STOCK = "MISSING_STOCK"
    INVALID_STOCK = "INVALID_STOCK"
    DUPLICATE_COLOR = "DUPLICATE_COLOR"
    DUPLICATE_SIZE = "DUPLICATE_SIZE"
    DUPLICATE_SKU = "DUPLICATE_SKU"
    MISSING_IMAGE = "MISSING_IMAGE"


@dataclass(frozen=True)
class ValidationIssue:
    """A single problem, located by color/size/field for the editor to highlight."""

    code: IssueCode
    message: str
    color: str | None = None
    size: str | None = None
    field: str | None = None
    blocking: bool = True

    def to_dict(self) -> dict[str, object]:
        data = asdict(self)
        data["code"] = self.code.value
        return data


class VariantValidationError(ValueError):
    """Raised when variants cannot be generated; nothing is emitted."""

    def __init__(self, issues: list[ValidationIssue], partial: dict[str, object] | None = None):
        self.issues = issues
        self.partial = dict(partial or {})
        summary = "; ".join(issue.message for issue in issues[:3])
        if len(issues) > 3:
            summary += f" (+{len(issues) - 3} more)"
        super().__init__(summary or "Invalid variant data")


def parse_price(raw: str | None) -> float | None:
    """Parse a price field; None when blank or not a finite number."""
    if raw is None or not str(raw).strip():
        return None
    try:
        value = float(str(raw).strip())
    except ValueError:
        return None
    if value != value or value in (float("inf"), float("-inf")):
        return None
    return value


def parse_stock(raw: str | None) -> int | None:
    """Parse a stock field; None when blank or not a whole number."""
    if raw is None or not str(raw).strip():
        return None
    text = str(raw).strip()
    try:
        return int(text)
    except ValueError:
        pass
    try:
        value = float(text)
    except ValueError:
        return None
    return int(value) if value.is_integer() else None


def _is_blank(raw: str | None) -> bool:
    return raw is None or not str(raw).strip()


def _check_price(
    raw: str | None,
    *,
    color: str,
    size: str | None,
    field: str,
) -> ValidationIssue | None:
    where = f"color '{color}'" + (f" size '{size}'" if size else "")
    if _is_blank(raw):
        return ValidationIssue(IssueCode.MISSING_PRICE, f"Price is required for {where}", color, size, field)
    value = parse_price(raw)
    if value is None or value <= 0:
        return ValidationIssue(
            IssueCode.INVALID_PRICE, f"Price for {where} must be a positive number", color, size, field
        )
    return None


def _check_compare_at(raw: str | None, *, color: str, size: str | None, field: str) -> ValidationIssue | None:
    if _is_blank(raw):
        return None
    value = parse_price(raw)
    if value is None or value < 0:
        where = f"color '{color}'" + (f" size '{size}'" if size else "")
        return ValidationIssue(
            IssueCode.INVALID_PRICE, f"Compare-at price for {where} must be a non-negative number", color, size, field
        )
    return None


def _check_stock(raw: str | None, *, color: str, size: str | None, field: str) -> ValidationIssue | None:
    where = f"color '{color}'" + (f" size '{size}'" if size else "")
    if _is_blank(raw):
        return ValidationIssue(IssueCode.MISSING_STOCK, f"Stock is required for {where}", color, size, field)
    value = parse_stock(raw)
    if value is None or value < 0:
        return ValidationIssue(
            IssueCode.INVALID_STOCK, f"Stock for {where} must be a non-negative whole number", color, size, field
        )
    return None


def effective_base_price(group: ColorGroup, template: VariantTemplate) -> str:
    return group.base_price if not _is_blank(group.base_price) else template.price


def effective_base_compare_at(group: ColorGroup, template: VariantTemplate) -> str:
    if not _is_blank(group.base_compare_at_price):
        return group.base_compare_at_price
    return template.compare_at_price


def validate_color_groups(
    groups: list[ColorGroup],
    template: VariantTemplate,
    *,
    requires_sizes: bool,
) -> list[ValidationIssue]:
    """Check every invariant that must hold before variants are generated.

    Returns all issues (blocking and non-blocking) in group/size order.
    """
    if not groups:
        return [ValidationIssue(IssueCode.NO_COLORS, "Select at least one color")]

    issues: list[ValidationIssue] = []
    seen_colors: set[str] = set()
    for group in groups:
        color = group.color_value
        if color in seen_colors:
            issues.append(
                ValidationIssue(IssueCode.DUPLICATE_COLOR, f"Color '{color}' is added more than once", color)
            )
        seen_colors.add(color)

        if not group.images:
            issues.append(
                ValidationIssue(
                    IssueCode.MISSING_IMAGE,
                    f"Color '{color}' has no images",
                    color,
                    field="images",
                    blocking=False,
                )
            )

        if requires_sizes and not group.sizes:
            issues.append(
                ValidationIssue(
                    IssueCode.MISSING_SIZES,
                    f"Color '{color}' needs at least one size for this category",
                    color,
                    field="sizes",
                )
            )

        every_size_priced = bool(group.sizes) and all(not _is_blank(s.price) for s in group.sizes)
        if not every_size_priced:
            issue = _check_price(effective_base_price(group, template), color=color, size=None, field="basePrice")
            if issue:
                issues.append(issue)
        issue = _check_compare_at(
            effective_base_compare_at(group, template), color=color, size=None, field="baseCompareAtPrice"
        )
        if issue:
            issues.append(issue)

        if not group.sizes:
            # baseStock only counts for categories that sell colors without sizes.
            if not requires_sizes:
                issue = _check_stock(group.base_stock, color=color, size=None, field="baseStock")
                if issue:
                    issues.append(issue)
            continue

        seen_sizes: set[str] = set()
        for entry in group.sizes:
            size = entry.size_value
            if size in seen_sizes:
                issues.append(
                    ValidationIssue(
                        IssueCode.DUPLICATE_SIZE,
                        f"Size '{size}' is added more than once to color '{color}'",
                        color,
                        size,
                        field="sizes",
                    )
                )
            seen_sizes.add(size)
            issue = _check_stock(entry.stock, color=color, size=size, field="stock")
            if issue:
                issues.append(issue)
            if not _is_blank(entry.price):
                issue = _check_price(entry.price, color=color, size=size, field="price")
                if issue:
                    issues.append(issue)
            issue = _check_compare_at(entry.compare_at_price, color=color, size=size, field="compareAtPrice")
            if issue:
                issues.append(issue)

    return issues


def blocking(issues: list[ValidationIssue]) -> list[ValidationIssue]:
    return [issue for issue in issues if issue.blocking]


def find_duplicate_skus(skus: list[str]) -> list[ValidationIssue]:
    """Report SKUs that appear more than once (in first-repeat order)."""
    seen: set[str] = set()
    reported: set[str] = set()
    issues: list[ValidationIssue] = []
    for sku in skus:
        if sku in seen and sku not in reported:
            reported.add(sku)
            issues.append(ValidationIssue(IssueCode.DUPLICATE_SKU, f"SKU '{sku}' is used more than once", field="sku"))
        seen.add(sku)
    return issues
