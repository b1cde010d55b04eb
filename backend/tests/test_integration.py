"""
Integration tests for end-to-end API flows.

Tests full request/response cycles through the FastAPI app using TestClient.
Supabase, the platform Admin API and the browser are replaced through
dependency overrides; extraction, substitution, local storage and download
resolution run for real.

Flows tested:
  1. orders/create webhook → letter → download
  2. Webhook signature verification
  3. On-demand generation for an existing order
  4. Order-status lookup
  5. Download outcomes (file, redirect, not found, missing file)
"""

import json
from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from conftest import make_line_item, make_shopify_order
from letterpress.config import Settings, get_settings
from letterpress.dependencies import get_artifact_store, get_order_source, get_pipeline
from letterpress.errors import ExternalFetchError
from letterpress.main import app
from letterpress.models.letter import GeneratedPdfCreate
from letterpress.models.order import OrderPayload
from letterpress.security import compute_webhook_hmac

SHOP = "shop.myshopify.com"
WEBHOOK_SECRET = "whsec-test"
API_KEY = "letters-api-key"
BASE_URL = "https://letters.example.com"


def _settings() -> Settings:
    return Settings(
        shopify_api_secret=WEBHOOK_SECRET,
        letters_api_key=API_KEY,
        public_base_url=BASE_URL,
    )


def _webhook_headers(body: bytes, secret: str = WEBHOOK_SECRET) -> dict:
    return {
        "Content-Type": "application/json",
        "X-Shopify-Hmac-Sha256": compute_webhook_hmac(body, secret),
        "X-Shopify-Shop-Domain": SHOP,
        "X-Shopify-Topic": "orders/create",
    }


def _api_headers(api_key: str = API_KEY) -> dict:
    return {"X-Api-Key": api_key, "X-Shop-Domain": SHOP}


def _record(**overrides) -> GeneratedPdfCreate:
    data = {
        "order_id": "5001",
        "order_number": "1001",
        "order_name": "#1001",
        "line_item_id": "9001",
        "product_id": "7001",
        "product_title": "Custom Letter",
        "customer_email": "jane@example.com",
        "template_id": "tpl-1",
        "pdf_url": "https://letters.s3.us-east-1.amazonaws.com/pdfs/shop/letter.pdf",
        "pdf_key": "pdfs/shop/letter.pdf",
        "download_token": "tok-remote",
        "shop": SHOP,
    }
    data.update(overrides)
    return GeneratedPdfCreate(**data)


@pytest.fixture()
def order_source():
    return Mock()


@pytest.fixture()
def client(pipeline, artifact_store, order_source):
    """TestClient with stores, order source and renderer overridden."""
    app.dependency_overrides[get_settings] = _settings
    app.dependency_overrides[get_pipeline] = lambda: pipeline
    app.dependency_overrides[get_artifact_store] = lambda: artifact_store
    app.dependency_overrides[get_order_source] = lambda: order_source
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestPublicEndpoints:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_root(self, client):
        assert client.get("/").status_code == 200

    def test_webhook_probe(self, client):
        response = client.get("/webhooks/orders/create")
        assert response.status_code == 200
        assert response.json()["path"] == "/webhooks/orders/create"


class TestOrdersCreateWebhook:
    """Webhook → letter generation → download by token."""

    def test_letter_generated_and_downloadable(self, client, artifact_store):
        body = json.dumps(make_shopify_order()).encode()

        response = client.post("/webhooks/orders/create", content=body, headers=_webhook_headers(body))

        assert response.status_code == 200
        assert response.json() == {"orderName": "#1001", "generated": 1}
        assert len(artifact_store.records) == 1

        token = artifact_store.records[0].download_token
        download = client.get(f"/download/{token}")
        assert download.status_code == 200
        assert download.headers["content-type"] == "application/pdf"
        assert download.headers["content-disposition"] == 'attachment; filename="Custom_Letter_1001.pdf"'
        assert download.content == b"%PDF-1.4 fake letter"

    def test_order_without_line_items(self, client, artifact_store):
        body = json.dumps(make_shopify_order(line_items=[])).encode()

        response = client.post("/webhooks/orders/create", content=body, headers=_webhook_headers(body))

        assert response.status_code == 200
        assert response.json()["generated"] == 0
        assert artifact_store.records == []

    def test_invalid_signature_rejected(self, client, artifact_store):
        body = json.dumps(make_shopify_order()).encode()

        response = client.post(
            "/webhooks/orders/create",
            content=body,
            headers=_webhook_headers(body, secret="wrong-secret"),
        )

        assert response.status_code == 401
        assert artifact_store.records == []

    def test_missing_signature_rejected(self, client):
        response = client.post("/webhooks/orders/create", content=b"{}", headers={"X-Shopify-Shop-Domain": SHOP})
        assert response.status_code == 401

    def test_tampered_body_rejected(self, client):
        body = json.dumps(make_shopify_order()).encode()
        headers = _webhook_headers(body)
        tampered = body.replace(b"Happy Birthday", b"Happy Hacking!")

        response = client.post("/webhooks/orders/create", content=tampered, headers=headers)

        assert response.status_code == 401

    def test_invalid_json_answers_200_with_error(self, client):
        body = b"not json"

        response = client.post("/webhooks/orders/create", content=body, headers=_webhook_headers(body))

        assert response.status_code == 200
        assert "error" in response.json()

    def test_missing_shop_reported_not_raised(self, client, artifact_store):
        body = json.dumps(make_shopify_order()).encode()
        headers = _webhook_headers(body)
        del headers["X-Shopify-Shop-Domain"]

        response = client.post("/webhooks/orders/create", content=body, headers=headers)

        assert response.status_code == 200
        assert response.json()["error"] == "Shop is required"
        assert artifact_store.records == []

    def test_unexpected_item_error_still_answers_200(self, client, template_store, artifact_store):
        original_find = template_store.find_active

        def flaky_find(shop, product_id):
            if product_id == "1":
                raise KeyError("html_content")
            return original_find(shop, product_id)

        template_store.find_active = flaky_find
        body = json.dumps(make_shopify_order([
            make_line_item(item_id=1, product_id=1, title="First"),
            make_line_item(item_id=2, product_id=2, title="Second"),
        ])).encode()

        response = client.post("/webhooks/orders/create", content=body, headers=_webhook_headers(body))

        assert response.status_code == 200
        assert response.json()["generated"] == 1
        assert [pdf.product_title for pdf in artifact_store.records] == ["Second"]

    def test_unexpected_pipeline_error_answers_200(self, client, pipeline):
        pipeline.generate_for_order = Mock(side_effect=RuntimeError("boom"))
        body = json.dumps(make_shopify_order()).encode()

        response = client.post("/webhooks/orders/create", content=body, headers=_webhook_headers(body))

        assert response.status_code == 200
        assert "boom" in response.json()["error"]


class TestGeneratePdfEndpoint:
    def test_generates_for_every_line_item(self, client, order_source, artifact_store):
        order_source.fetch_order.return_value = OrderPayload.from_shopify(make_shopify_order([
            make_line_item(item_id=1, product_id=1, title="First"),
            make_line_item(item_id=2, product_id=2, title="Second"),
        ]))

        response = client.post(
            "/api/generate-pdf/gid%3A%2F%2Fshopify%2FOrderIdentity%2F5001",
            headers=_api_headers(),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["orderNumber"] == "1001"
        assert data["count"] == 2
        assert [pdf["productTitle"] for pdf in data["pdfs"]] == ["First", "Second"]
        token = artifact_store.records[0].download_token
        assert data["pdfs"][0]["downloadUrl"] == f"{BASE_URL}/download/{token}"
        order_source.fetch_order.assert_called_once_with(SHOP, "gid://shopify/OrderIdentity/5001")

    def test_requires_api_key(self, client, order_source):
        response = client.post("/api/generate-pdf/5001", headers=_api_headers("wrong"))

        assert response.status_code == 401
        order_source.fetch_order.assert_not_called()

    def test_requires_shop_header(self, client):
        response = client.post("/api/generate-pdf/5001", headers={"X-Api-Key": API_KEY})
        assert response.status_code == 400

    def test_unknown_order_is_404(self, client, order_source):
        order_source.fetch_order.return_value = None

        response = client.post("/api/generate-pdf/5001", headers=_api_headers())

        assert response.status_code == 404
        assert response.json()["detail"] == "Order not found"

    def test_order_without_line_items_is_404(self, client, order_source):
        order_source.fetch_order.return_value = OrderPayload.from_shopify(make_shopify_order(line_items=[]))

        response = client.post("/api/generate-pdf/5001", headers=_api_headers())

        assert response.status_code == 404
        assert response.json()["detail"] == "No line items found in this order"

    def test_platform_error_is_502(self, client, order_source):
        order_source.fetch_order.side_effect = ExternalFetchError("Failed to fetch order 5001: 503 Service Unavailable")

        response = client.post("/api/generate-pdf/5001", headers=_api_headers())

        assert response.status_code == 502


class TestOrderLookup:
    def test_lookup_by_order_number_most_recent_first(self, client, artifact_store):
        artifact_store.create(_record(download_token="tok-old", product_title="Old"))
        artifact_store.create(_record(download_token="tok-new", product_title="New"))
        artifact_store.create(_record(download_token="tok-other", order_number="2002", order_name="#2002", order_id="6001"))

        response = client.get("/api/pdfs/1001")

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 2
        assert [pdf["productTitle"] for pdf in data["pdfs"]] == ["New", "Old"]
        assert data["pdfs"][0]["downloadUrl"] == f"{BASE_URL}/download/tok-new"
        assert data["pdfs"][0]["createdAt"]

    def test_lookup_by_order_name_with_hash(self, client, artifact_store):
        artifact_store.create(_record(order_number=""))

        response = client.get("/api/pdfs/%231001")

        assert response.json()["count"] == 1

    def test_lookup_by_gid(self, client, artifact_store):
        artifact_store.create(_record(order_number="", order_name=""))

        response = client.get("/api/pdfs/gid%3A%2F%2Fshopify%2FOrderIdentity%2F5001")

        assert response.json()["count"] == 1

    def test_lookup_by_order_id_query(self, client, artifact_store):
        artifact_store.create(_record(order_number="", order_name=""))

        response = client.get("/api/pdfs/unknown", params={"orderId": "5001"})

        assert response.json()["count"] == 1

    def test_no_pdfs_yet(self, client):
        response = client.get("/api/pdfs/1001")

        assert response.status_code == 200
        assert response.json() == {"orderNumber": "1001", "pdfs": [], "count": 0}


class TestDownload:
    def test_unknown_token_is_404(self, client):
        response = client.get("/download/does-not-exist")

        assert response.status_code == 404
        assert response.json()["detail"] == "PDF not found"

    def test_missing_file_is_distinct_404(self, client, artifact_store, tmp_path):
        artifact_store.create(_record(download_token="tok-gone", pdf_url="/pdfs/shop/gone.pdf", pdf_key=str(tmp_path / "gone.pdf")))

        response = client.get("/download/tok-gone")

        assert response.status_code == 404
        assert response.json()["detail"] == "PDF file not found"

    def test_remote_pdf_redirects(self, client, artifact_store):
        artifact_store.create(_record())

        response = client.get("/download/tok-remote", follow_redirects=False)

        assert response.status_code == 302
        assert response.headers["location"] == "https://letters.s3.us-east-1.amazonaws.com/pdfs/shop/letter.pdf"

    def test_relative_pdf_redirects_against_base_url(self, client, artifact_store):
        artifact_store.create(_record(download_token="tok-rel", pdf_url="/files/letter.pdf", pdf_key="files/letter.pdf"))

        response = client.get("/download/tok-rel", follow_redirects=False)

        assert response.status_code == 302
        assert response.headers["location"] == f"{BASE_URL}/files/letter.pdf"
