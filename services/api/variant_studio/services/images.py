"""Image URL helpers for variant records.

Variant records store their images as one comma-joined string. Base64 data
URIs carry a comma of their own between the MIME prefix and the payload
("data:image/png;base64,AAAA=="), so naive splitting corrupts them:
`smart_split_urls` re-joins a `data:` segment with the segment that follows.
"""

from collections.abc import Iterable

DATA_URI_PREFIX = "data:"


def smart_split_urls(value: str | None) -> list[str]:
    """Split a comma-joined image string, keeping data URIs intact.

    Example:
        >>> smart_split_urls("/a.jpg,data:image/png;base64,AAAA==,/b.jpg")
        ['/a.jpg', 'data:image/png;base64,AAAA==', '/b.jpg']
    """
    if not value:
        return []

    segments = value.split(",")
    urls: list[str] = []
    i = 0
    while i < len(segments):
        segment = segments[i].strip()
        if segment.startswith(DATA_URI_PREFIX) and i + 1 < len(segments):
            # MIME prefix and payload were separated by the data URI's own comma.
            urls.append(f"{segment},{segments[i + 1].strip()}")
            i += 2
            continue
        if segment:
            urls.append(segment)
        i += 1
    return urls


def join_urls(urls: Iterable[str]) -> str:
    """Inverse of `smart_split_urls`."""
    return ",".join(url for url in urls if url)


def _with_leading_slash(url: str) -> str:
    return url if url.startswith("/") else f"/{url}"


def same_image(a: str, b: str) -> bool:
    """Compare two image references.

    Data URIs are opaque and compared verbatim; path-like URLs are equal with
    or without a leading slash.
    """
    if a.startswith(DATA_URI_PREFIX) or b.startswith(DATA_URI_PREFIX):
        return a == b
    return a == b or _with_leading_slash(a) == _with_leading_slash(b)


def merge_images(existing: list[str], incoming: Iterable[str]) -> list[str]:
    """Append incoming images that are not already present (insertion ordered)."""
    merged = list(existing)
    for url in incoming:
        if url and not any(same_image(url, known) for known in merged):
            merged.append(url)
    return merged


def clean_image_urls(urls: Iterable[str]) -> list[str]:
    """Strip blanks and duplicates from a list of image references."""
    return merge_images([], (url.strip() for url in urls if url and url.strip()))


def _match_keys(url: str) -> set[str]:
    """All spellings under which a variant image may appear in product media."""
    if url.startswith(DATA_URI_PREFIX):
        return {url}
    keys = {url, _with_leading_slash(url), url.lstrip("/")}
    without_query = url.split("?", 1)[0]
    if without_query != url:
        keys.update({without_query, _with_leading_slash(without_query), without_query.lstrip("/")})
    return keys


def separate_main_and_variant_images(
    media_urls: Iterable[str],
    variant_images: Iterable[str],
) -> tuple[list[str], list[str]]:
    """Split product media into main images and images owned by variants.

    Backends echo variant images into the product media list; the editor shows
    them under their color instead, so they are removed from the main gallery.

    Returns:
        (main, variant) lists, both in media order.
    """
    known: set[str] = set()
    for url in variant_images:
        known.update(_match_keys(url))

    main: list[str] = []
    variant: list[str] = []
    for url in media_urls:
        if not url:
            continue
        if _match_keys(url) & known:
            variant.append(url)
        else:
            main.append(url)
    return main, variant
