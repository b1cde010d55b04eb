"""
Letter generation pipeline.

For every eligible line item of an order:
  template → stored image → substituted HTML → PDF → stored PDF → token → record

Any failure on one item is logged and the item is skipped; the remaining
items are still generated. Template and artifact store failures propagate.
"""

import logging
import os
import time
from typing import List, Optional
from urllib.parse import urlparse

from letterpress.errors import (
    ExternalFetchError,
    PersistenceError,
    RenderError,
    StorageError,
    ValidationError,
)
from letterpress.models.letter import GeneratedPdf, GeneratedPdfCreate
from letterpress.models.order import OrderItem, OrderPayload, PersonalizationMap
from letterpress.services.downloads import new_download_token
from letterpress.services.personalization import extract_order_items, get_image_url
from letterpress.services.placeholders import render_template
from letterpress.services.template_resolver import TemplateResolver

logger = logging.getLogger(__name__)

# Failures confined to a single line item
ITEM_ERRORS = (ExternalFetchError, RenderError, StorageError)


def _timestamp_ms() -> int:
    return int(time.time() * 1000)


def image_filename(order_id: str, line_item_id: Optional[str], image_url: str) -> str:
    extension = os.path.splitext(urlparse(image_url).path)[1].lower() or ".png"
    return f"image_{order_id}_{line_item_id}_{_timestamp_ms()}{extension}"


def apply_css(html: str, css: Optional[str]) -> str:
    """Inject a template's separate stylesheet into its <head>."""
    if not css:
        return html
    style = f"<style>{css}</style>"
    index = html.lower().find("</head>")
    if index == -1:
        return f"{style}\n{html}"
    return f"{html[:index]}{style}\n{html[index:]}"


def pdf_filename(order: OrderPayload, line_item_id: Optional[str]) -> str:
    return f"letter_{order.order_number or order.order_name}_{line_item_id}_{_timestamp_ms()}.pdf"


class LetterPipeline:
    """Generates, stores and records personalized letters for orders."""

    def __init__(self, template_resolver: TemplateResolver, artifact_store, storage, renderer):
        self.template_resolver = template_resolver
        self.artifact_store = artifact_store
        self.storage = storage
        self.renderer = renderer

    def generate_for_order(self, order: OrderPayload, shop: str) -> List[GeneratedPdf]:
        """
        Generate one letter per line item of ``order``.

        Returns the successfully generated records; an order without line
        items returns an empty list.

        Raises:
            ValidationError: shop or order id missing
            PersistenceError: template or artifact store failed
        """
        if not shop:
            raise ValidationError("Shop is required")
        if not order.order_id:
            raise ValidationError("Order id is required")

        items = extract_order_items(order.line_items)
        if not items:
            logger.info(f"Order {order.order_name or order.order_id} has no line items; nothing to generate")
            return []

        generated: List[GeneratedPdf] = []
        for item in items:
            try:
                generated.append(self.generate_for_item(order, item, shop))
            except PersistenceError:
                raise
            except ITEM_ERRORS as e:
                logger.error(
                    f"Error generating letter for {item.product_title!r} "
                    f"(order {order.order_name or order.order_id}, line item {item.line_item_id}): {e}"
                )
            except Exception:
                logger.exception(
                    f"Unexpected error generating letter for {item.product_title!r} "
                    f"(order {order.order_name or order.order_id}, line item {item.line_item_id})"
                )

        logger.info(
            f"Generated {len(generated)}/{len(items)} letter(s) for order {order.order_name or order.order_id}"
        )
        return generated

    def generate_for_item(self, order: OrderPayload, item: OrderItem, shop: str) -> GeneratedPdf:
        template = self.template_resolver.resolve(shop, item.product_id, item.product_title)

        image_url = get_image_url(item)
        stored_image_url = None
        if image_url:
            stored_image_url = self._store_image(order, item, image_url, shop)

        data = PersonalizationMap.for_item(item, order)
        html = render_template(template.html_content, data, image_url)
        html = apply_css(html, template.css_content)

        # The browser loads the original remote URL; a stored copy may be root-relative
        pdf_bytes = self.renderer.render_to_pdf(html, image_url)

        stored_pdf = self.storage.store_pdf(pdf_bytes, pdf_filename(order, item.line_item_id), shop)

        record = GeneratedPdfCreate(
            order_id=order.order_id,
            order_number=order.order_number or "",
            order_name=order.order_name,
            line_item_id=item.line_item_id,
            product_id=item.product_id,
            product_title=item.product_title,
            customer_email=order.customer_email,
            template_id=template.id,
            pdf_url=stored_pdf.url,
            pdf_key=stored_pdf.key,
            personalization_data=dict(item.properties),
            image_url=stored_image_url or image_url,
            download_token=new_download_token(),
            shop=shop,
        )
        generated = self.artifact_store.create(record)
        logger.info(f"Generated letter {generated.id} for {item.product_title!r} (order {order.order_name})")
        return generated

    def _store_image(self, order: OrderPayload, item: OrderItem, image_url: str, shop: str) -> Optional[str]:
        """Keep a copy of the customer's image; the letter is still produced if this fails."""
        try:
            stored = self.storage.store_image(
                image_url,
                image_filename(order.order_id, item.line_item_id, image_url),
                shop,
            )
        except (ExternalFetchError, StorageError) as e:
            logger.error(f"Error storing image {image_url}: {e}")
            return None
        return stored.url
