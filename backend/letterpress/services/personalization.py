"""
Personalization extraction.

Turns raw line items into OrderItem records: every property is kept verbatim,
and values are classified as free text or image URLs.

Public API:
  extract_order_items(line_items) -> list[OrderItem]
  get_image_url(item) -> Optional[str]
"""

import logging
from typing import Iterable, List, Optional
from urllib.parse import urlparse

from letterpress.models.order import OrderItem, RawLineItem

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".webp", ".svg")

# Product customizer apps store uploads as "@https://cdn.../file.png"
_UPLOAD_PREFIX = "@"


def is_text_field(value: str) -> bool:
    """True for non-empty strings that are not (prefixed) links."""
    return bool(value) and not value.startswith("http") and not value.startswith("@http")


def extract_image_url(value: str) -> Optional[str]:
    """
    Return the image URL contained in a property value, or None.

    One leading "@" is stripped. The remainder must be an absolute URL whose
    path ends with a known image extension (case-insensitive). Anything that
    does not parse is dropped, not reported.
    """
    if not value:
        return None

    url = value[1:] if value.startswith(_UPLOAD_PREFIX) else value

    try:
        parsed = urlparse(url)
    except ValueError:
        return None

    if not parsed.scheme or not parsed.netloc:
        return None

    if parsed.path.lower().endswith(IMAGE_EXTENSIONS):
        return url
    return None


def extract_order_item(line_item: RawLineItem) -> OrderItem:
    properties = {}
    text_fields = {}
    image_urls: List[str] = []

    for prop in line_item.properties:
        properties[prop.name] = prop.value

        if is_text_field(prop.value):
            text_fields[prop.name] = prop.value

        image_url = extract_image_url(prop.value)
        if image_url:
            image_urls.append(image_url)

    return OrderItem(
        line_item_id=line_item.id,
        product_id=line_item.product_id,
        variant_id=line_item.variant_id,
        product_title=line_item.title,
        quantity=line_item.quantity,
        price=line_item.price,
        sku=line_item.sku or None,
        vendor=line_item.vendor or None,
        properties=properties,
        text_fields=text_fields,
        image_urls=image_urls,
    )


def extract_order_items(line_items: Iterable[RawLineItem]) -> List[OrderItem]:
    """
    Extract one OrderItem per line item.

    An empty result means there is nothing to generate; callers must not
    treat it as an error.
    """
    items = [extract_order_item(line_item) for line_item in line_items]
    logger.debug(f"Extracted {len(items)} order item(s)")
    return items


def get_image_url(item: OrderItem) -> Optional[str]:
    """First image URL in property order, or None."""
    return item.image_urls[0] if item.image_urls else None
