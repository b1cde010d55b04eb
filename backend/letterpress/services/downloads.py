"""
Download tokens and their resolution to a file or a redirect.

Tokens are minted once per generated PDF, stored on its record, and never
rotated or expired.
"""

import logging
import os
import re
import secrets
from dataclasses import dataclass
from typing import Union

from letterpress.errors import ArtifactMissingError, NotFoundError, ValidationError
from letterpress.models.letter import GeneratedPdf

logger = logging.getLogger(__name__)

TOKEN_BYTES = 24


@dataclass(frozen=True)
class FileDownload:
    content: bytes
    filename: str
    media_type: str = "application/pdf"


@dataclass(frozen=True)
class RedirectDownload:
    url: str


DownloadResolution = Union[FileDownload, RedirectDownload]


def new_download_token() -> str:
    """Cryptographically random, URL-safe opaque token."""
    return secrets.token_urlsafe(TOKEN_BYTES)


def build_download_url(public_base_url: str, token: str) -> str:
    """Absolute link when a base URL is configured, root-relative otherwise."""
    return f"{(public_base_url or '').rstrip('/')}/download/{token}"


def download_filename(product_title: str, order_name: str) -> str:
    """e.g. ("Custom Letter", "#1001") -> "Custom_Letter_1001.pdf"."""
    stem = re.sub(r"[^A-Za-z0-9]+", "_", f"{product_title}_{order_name}").strip("_")
    return f"{stem or 'letter'}.pdf"


def is_local_key(pdf_key: str) -> bool:
    return bool(pdf_key) and os.path.isabs(pdf_key)


def resolve_artifact(pdf: GeneratedPdf, public_base_url: str) -> DownloadResolution:
    """Decide how a stored PDF is delivered."""
    if is_local_key(pdf.pdf_key):
        try:
            with open(pdf.pdf_key, "rb") as f:
                content = f.read()
        except FileNotFoundError as e:
            logger.error(f"PDF file missing on disk for {pdf.id}: {pdf.pdf_key}")
            raise ArtifactMissingError("PDF file not found") from e
        return FileDownload(
            content=content,
            filename=download_filename(pdf.product_title, pdf.order_name),
        )

    if pdf.pdf_url.startswith("http"):
        return RedirectDownload(url=pdf.pdf_url)

    base = (public_base_url or "").rstrip("/")
    path = pdf.pdf_url if pdf.pdf_url.startswith("/") else f"/{pdf.pdf_url}"
    return RedirectDownload(url=f"{base}{path}")


def resolve_download(token: str, artifact_store, public_base_url: str) -> DownloadResolution:
    """
    Resolve a download token.

    Raises:
        ValidationError: empty token
        NotFoundError: no PDF carries this token
        ArtifactMissingError: the record points at a file that no longer exists
    """
    if not token:
        raise ValidationError("Download token required")

    pdf = artifact_store.find_by_token(token)
    if pdf is None:
        raise NotFoundError("PDF not found")

    return resolve_artifact(pdf, public_base_url)
