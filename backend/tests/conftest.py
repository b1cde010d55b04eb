"""
Shared in-memory collaborators for pipeline and API tests.

The Supabase-backed stores and the Playwright renderer are replaced with
small fakes that keep the same method signatures, so tests exercise the
real pipeline, substitution, storage and download code without a database
or a browser.
"""

from datetime import datetime, timedelta, timezone
from typing import List, Optional
from unittest.mock import Mock

import pytest

from letterpress.config import StorageConfig, StorageKind
from letterpress.errors import RenderError
from letterpress.models.letter import GeneratedPdf, GeneratedPdfCreate, LetterTemplate
from letterpress.services.default_template import DEFAULT_TEMPLATE_HTML, default_template_name
from letterpress.services.letter_pipeline import LetterPipeline
from letterpress.services.storage import LetterStorage
from letterpress.services.template_resolver import TemplateResolver

_EPOCH = datetime(2026, 1, 1, tzinfo=timezone.utc)


class InMemoryTemplateStore:
    def __init__(self):
        self.templates: List[LetterTemplate] = []
        self.create_calls = 0

    def add(self, shop, product_id, html_content, css_content=None, is_active=True) -> LetterTemplate:
        template = LetterTemplate(
            id=f"tpl-{len(self.templates) + 1}",
            shop=shop,
            product_id=product_id,
            name=f"Template {len(self.templates) + 1}",
            html_content=html_content,
            css_content=css_content,
            is_active=is_active,
            created_at=(_EPOCH + timedelta(seconds=len(self.templates))).isoformat(),
        )
        self.templates.append(template)
        return template

    def find_active(self, shop, product_id) -> Optional[LetterTemplate]:
        for template in self.templates:
            if template.shop == shop and template.product_id == product_id and template.is_active:
                return template
        return None

    def create_default(self, shop, product_id, product_title) -> LetterTemplate:
        self.create_calls += 1
        template = self.add(shop, product_id, DEFAULT_TEMPLATE_HTML)
        template.name = default_template_name(product_title)
        return template


class InMemoryArtifactStore:
    def __init__(self):
        self.records: List[GeneratedPdf] = []

    def create(self, record: GeneratedPdfCreate) -> GeneratedPdf:
        pdf = GeneratedPdf(
            id=f"pdf-{len(self.records) + 1}",
            created_at=(_EPOCH + timedelta(seconds=len(self.records))).isoformat(),
            **record.model_dump(),
        )
        self.records.append(pdf)
        return pdf

    def find_by_token(self, token) -> Optional[GeneratedPdf]:
        for pdf in self.records:
            if pdf.download_token == token:
                return pdf
        return None

    def find_by_order_identifier(self, identifier, order_id=None) -> List[GeneratedPdf]:
        bare = identifier.lstrip("#")
        names = {identifier, bare, f"#{bare}"}
        matches = [
            pdf for pdf in self.records
            if pdf.order_number == identifier
            or pdf.order_name in names
            or (order_id and pdf.order_id == order_id)
        ]
        return sorted(matches, key=lambda pdf: pdf.created_at, reverse=True)


class FakeRenderer:
    """Records every render; raises RenderError when the HTML contains fail_marker."""

    def __init__(self, fail_marker: Optional[str] = None):
        self.fail_marker = fail_marker
        self.calls = []

    def render_to_pdf(self, html, image_url=None) -> bytes:
        self.calls.append({"html": html, "image_url": image_url})
        if self.fail_marker and self.fail_marker in html:
            raise RenderError("PDF generation failed: browser crashed")
        return b"%PDF-1.4 fake letter"


def make_shopify_order(line_items=None, **overrides) -> dict:
    """Return a minimal Shopify order object as delivered by orders/create."""
    order = {
        "id": 5001,
        "order_number": 1001,
        "name": "#1001",
        "email": "jane@example.com",
        "line_items": line_items if line_items is not None else [make_line_item()],
    }
    order.update(overrides)
    return order


def make_line_item(
    item_id=9001,
    title="Custom Letter",
    product_id=7001,
    properties=None,
    **overrides,
) -> dict:
    item = {
        "id": item_id,
        "title": title,
        "quantity": 1,
        "price": "29.00",
        "sku": "LETTER-1",
        "vendor": "The Best Letters",
        "product_id": product_id,
        "variant_id": 8001,
        "properties": properties if properties is not None else [
            {"name": "Single Line Text", "value": "Happy Birthday"},
        ],
    }
    item.update(overrides)
    return item


@pytest.fixture()
def template_store():
    return InMemoryTemplateStore()


@pytest.fixture()
def artifact_store():
    return InMemoryArtifactStore()


@pytest.fixture()
def renderer():
    return FakeRenderer()


@pytest.fixture()
def local_storage(tmp_path):
    return LetterStorage(StorageConfig(kind=StorageKind.LOCAL, local_root=str(tmp_path)))


@pytest.fixture()
def pipeline(template_store, artifact_store, local_storage, renderer):
    return LetterPipeline(
        template_resolver=TemplateResolver(template_store),
        artifact_store=artifact_store,
        storage=local_storage,
        renderer=renderer,
    )


def image_response(content=b"\x89PNG fake image", status_code=200, content_type="image/png"):
    """Mock requests.Response for an image download."""
    response = Mock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.reason = "OK" if response.ok else "Not Found"
    response.content = content
    response.headers = {"Content-Type": content_type}
    return response
