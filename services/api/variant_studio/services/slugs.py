"""Slug and label normalization.

- slugify: product/SKU slugs ("Red Shirt!" -> "red-shirt")
- attribute_key_from_name: stable attribute keys created from admin input
- humanize_token: display label for a raw value token ("light-blue" -> "Light blue")
"""

import re

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9]+")
_WHITESPACE = re.compile(r"\s+")
_NON_KEY_CHARS = re.compile(r"[^a-z0-9-]")


def slugify(text: str) -> str:
    """Lowercase, collapse every non-alphanumeric run into a single dash."""
    return _NON_SLUG_CHARS.sub("-", text.lower()).strip("-")


def attribute_key_from_name(name: str) -> str:
    """Derive an attribute key from its display name.

    Example:
        >>> attribute_key_from_name("Sleeve Length")
        "sleeve-length"
    """
    key = _WHITESPACE.sub("-", name.strip().lower())
    return _NON_KEY_CHARS.sub("", key)


def humanize_token(token: str) -> str:
    """Title-case the first letter and turn dashes into spaces."""
    if not token:
        return ""
    return token[0].upper() + token[1:].replace("-", " ")


def size_label_fallback(size_value: str) -> str:
    """Label shown for a manually entered size with no catalog label."""
    return slugify(size_value).upper() or size_value.upper()
