"""
Tests for download tokens and their resolution.
"""

import pytest

from letterpress.errors import ArtifactMissingError, NotFoundError, ValidationError
from letterpress.models.letter import GeneratedPdfCreate
from letterpress.services.downloads import (
    FileDownload,
    RedirectDownload,
    build_download_url,
    download_filename,
    new_download_token,
    resolve_download,
)


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
        "pdf_url": "/pdfs/shop/letter.pdf",
        "pdf_key": "/nonexistent/letter.pdf",
        "download_token": "tok-1",
        "shop": "shop.myshopify.com",
    }
    data.update(overrides)
    return GeneratedPdfCreate(**data)


class TestTokens:
    def test_tokens_are_unique(self):
        tokens = {new_download_token() for _ in range(1000)}
        assert len(tokens) == 1000

    def test_token_is_url_safe(self):
        token = new_download_token()
        assert len(token) >= 32
        assert all(c.isalnum() or c in "-_" for c in token)


class TestBuildDownloadUrl:
    def test_absolute_with_base_url(self):
        assert build_download_url("https://letters.example.com/", "abc") == "https://letters.example.com/download/abc"

    def test_relative_without_base_url(self):
        assert build_download_url("", "abc") == "/download/abc"
        assert build_download_url(None, "abc") == "/download/abc"


class TestDownloadFilename:
    def test_non_alphanumeric_runs_collapsed(self):
        assert download_filename("Custom Letter", "#1001") == "Custom_Letter_1001.pdf"

    def test_punctuation_heavy_title(self):
        assert download_filename("Mom's  Birthday -- Card!", "#1002") == "Mom_s_Birthday_Card_1002.pdf"


class TestResolveDownload:
    def test_unknown_token_is_not_found(self, artifact_store):
        with pytest.raises(NotFoundError) as exc_info:
            resolve_download("missing", artifact_store, "")
        assert not isinstance(exc_info.value, ArtifactMissingError)

    def test_empty_token_is_validation_error(self, artifact_store):
        with pytest.raises(ValidationError):
            resolve_download("", artifact_store, "")

    def test_local_file_is_returned_as_bytes(self, artifact_store, tmp_path):
        pdf_path = tmp_path / "letter.pdf"
        pdf_path.write_bytes(b"%PDF-1.4 letter")
        artifact_store.create(_record(pdf_key=str(pdf_path)))

        result = resolve_download("tok-1", artifact_store, "")

        assert isinstance(result, FileDownload)
        assert result.content == b"%PDF-1.4 letter"
        assert result.filename == "Custom_Letter_1001.pdf"
        assert result.media_type == "application/pdf"

    def test_missing_local_file_is_distinct_outcome(self, artifact_store, tmp_path):
        artifact_store.create(_record(pdf_key=str(tmp_path / "gone.pdf")))

        with pytest.raises(ArtifactMissingError):
            resolve_download("tok-1", artifact_store, "")

    def test_remote_url_is_redirected(self, artifact_store):
        artifact_store.create(_record(
            pdf_url="https://letters.s3.us-east-1.amazonaws.com/pdfs/shop/letter.pdf",
            pdf_key="pdfs/shop/letter.pdf",
        ))

        result = resolve_download("tok-1", artifact_store, "https://app.example.com")

        assert result == RedirectDownload(url="https://letters.s3.us-east-1.amazonaws.com/pdfs/shop/letter.pdf")

    def test_relative_url_joined_to_base(self, artifact_store):
        artifact_store.create(_record(pdf_url="/pdfs/shop/letter.pdf", pdf_key="pdfs/shop/letter.pdf"))

        result = resolve_download("tok-1", artifact_store, "https://app.example.com/")

        assert result == RedirectDownload(url="https://app.example.com/pdfs/shop/letter.pdf")

    def test_relative_url_without_base_stays_relative(self, artifact_store):
        artifact_store.create(_record(pdf_url="pdfs/shop/letter.pdf", pdf_key="pdfs/shop/letter.pdf"))

        result = resolve_download("tok-1", artifact_store, "")

        assert result == RedirectDownload(url="/pdfs/shop/letter.pdf")
