"""
Placeholder substitution for letter templates.

A template is parsed once into a token stream of literal runs and
``{{name}}`` placeholders, then rendered in a single pass. Nothing here does
I/O; the same template and data always produce the same HTML.

Resolution order for a placeholder:
  1. composite sections (imageSection, downloadButtonSection,
     orderDetailsSection) and the image URL slots
  2. known order fields (productTitle, orderName, ...)
  3. custom line item properties
  4. otherwise the placeholder is written back untouched

Public API:
  parse_template(html) -> tuple[Token, ...]
  render_template(template, data, image_url=None) -> str
"""

import html
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, Dict, Optional, Tuple, Union

from letterpress.models.order import PersonalizationMap

_PLACEHOLDER_RE = re.compile(r"\{\{([^{}]+)\}\}")

# Template name -> PersonalizationMap attribute
KNOWN_FIELDS: Dict[str, str] = {
    "productTitle": "product_title",
    "orderName": "order_name",
    "customerEmail": "customer_email",
    "quantity": "quantity",
    "price": "price",
    "sku": "sku",
    "vendor": "vendor",
}

# Keys never listed in the generated order details block
RESERVED_KEYS = frozenset(KNOWN_FIELDS) | {"imageUrl"}

IMAGE_URL_SLOTS = frozenset({"imageUrl", "highQualityImageUrl"})

IMAGE_SECTION_HTML = """
      <div class="image-section">
        <img src="{url}" alt="Personalized Image" style="max-width: 100%; height: auto; border-radius: 8px; box-shadow: 0 4px 15px rgba(0,0,0,0.1);" />
      </div>
    """

DOWNLOAD_BUTTON_SECTION_HTML = """
      <div style="text-align: center; margin-top: 30px; padding: 20px;">
        <a href="{url}"
           class="download-button"
           download
           style="display: inline-block; padding: 15px 30px; background: #d4af37; color: white; text-decoration: none; border-radius: 5px; font-weight: bold; font-size: 16px; box-shadow: 0 2px 5px rgba(0,0,0,0.2);">
          Download High-Quality Image
        </a>
        <p style="margin-top: 10px; color: #7f8c8d; font-size: 14px;">Click the button above to download your high-quality personalized image</p>
      </div>
    """

ORDER_DETAILS_SECTION_HTML = """
      <div class="order-details">
        <h2 style="color: #2c3e50; margin-top: 30px; margin-bottom: 20px;">Order Details</h2>
        {lines}
      </div>
    """


@dataclass(frozen=True)
class Literal:
    text: str


@dataclass(frozen=True)
class Placeholder:
    name: str
    raw: str


Token = Union[Literal, Placeholder]


def escape(value) -> str:
    """HTML-escape a scalar (& < > " ') after converting it to text."""
    if value is None:
        return ""
    return html.escape(str(value), quote=True)


@lru_cache(maxsize=256)
def parse_template(template: str) -> Tuple[Token, ...]:
    """Split markup into literal runs and placeholder tokens."""
    tokens = []
    position = 0
    for match in _PLACEHOLDER_RE.finditer(template):
        if match.start() > position:
            tokens.append(Literal(template[position:match.start()]))
        tokens.append(Placeholder(name=match.group(1), raw=match.group(0)))
        position = match.end()
    if position < len(template):
        tokens.append(Literal(template[position:]))
    return tuple(tokens)


def build_image_section(image_url: Optional[str]) -> str:
    if not image_url:
        return ""
    return IMAGE_SECTION_HTML.format(url=escape(image_url))


def build_download_button_section(image_url: Optional[str]) -> str:
    if not image_url:
        return ""
    return DOWNLOAD_BUTTON_SECTION_HTML.format(url=escape(image_url))


def build_order_details_section(custom: Dict[str, str]) -> str:
    """
    One <p> per custom property with a non-blank text value, reserved keys
    excluded. Newlines inside a value become <br>.
    """
    lines = []
    for key, value in custom.items():
        if key in RESERVED_KEYS:
            continue
        if not isinstance(value, str) or not value.strip():
            continue
        rendered = escape(value).replace("\n", "<br>")
        lines.append(f"<p><strong>{escape(key)}:</strong> {rendered}</p>")

    if not lines:
        return ""
    return ORDER_DETAILS_SECTION_HTML.format(lines="".join(lines))


def _composite_builders(data: PersonalizationMap, image_url: Optional[str]) -> Dict[str, Callable[[], str]]:
    # Builders are lazy so a template without orderDetailsSection never pays for it
    return {
        "imageSection": lambda: build_image_section(image_url),
        "downloadButtonSection": lambda: build_download_button_section(image_url),
        "orderDetailsSection": lambda: build_order_details_section(data.custom),
    }


def render_template(
    template: str,
    data: PersonalizationMap,
    image_url: Optional[str] = None,
) -> str:
    """
    Substitute every placeholder in ``template`` and return the HTML.

    Unknown placeholders are left as literal ``{{...}}`` text.
    """
    builders = _composite_builders(data, image_url)
    resolved_sections: Dict[str, str] = {}
    parts = []

    for token in parse_template(template):
        if isinstance(token, Literal):
            parts.append(token.text)
            continue

        name = token.name
        if name in builders:
            if name not in resolved_sections:
                resolved_sections[name] = builders[name]()
            parts.append(resolved_sections[name])
        elif name in IMAGE_URL_SLOTS:
            parts.append(escape(image_url))
        elif name in KNOWN_FIELDS:
            parts.append(escape(getattr(data, KNOWN_FIELDS[name])))
        elif name in data.custom:
            parts.append(escape(data.custom[name]))
        else:
            parts.append(token.raw)

    return "".join(parts)
