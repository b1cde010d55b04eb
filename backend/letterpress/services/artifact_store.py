"""
Supabase persistence for generated PDFs (table ``generated_pdfs``).
"""

import logging
from typing import List, Optional

from pydantic import ValidationError as ModelValidationError
from supabase import Client

from letterpress.db import get_supabase_admin
from letterpress.errors import PersistenceError
from letterpress.models.letter import GeneratedPdf, GeneratedPdfCreate

logger = logging.getLogger(__name__)

TABLE = "generated_pdfs"


def _quote(value: str) -> str:
    """Quote a value for a PostgREST or= filter ("#1001" contains reserved chars)."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def order_identifier_filter(identifier: str, order_id: Optional[str] = None) -> str:
    """
    Build the or= filter used for order-status lookups.

    Matches the order number, the order name with and without a leading "#",
    and the numeric order id when one is known.
    """
    bare = identifier.lstrip("#")
    clauses = [
        f"order_number.eq.{_quote(identifier)}",
        f"order_name.eq.{_quote(identifier)}",
        f"order_name.eq.{_quote('#' + bare)}",
        f"order_name.eq.{_quote(bare)}",
    ]
    if order_id:
        clauses.append(f"order_id.eq.{_quote(order_id)}")
    # Duplicates are harmless to PostgREST but noisy in logs
    return ",".join(dict.fromkeys(clauses))


def _to_generated_pdf(row: dict) -> GeneratedPdf:
    try:
        return GeneratedPdf(**row)
    except (ModelValidationError, TypeError) as e:
        raise PersistenceError(f"Malformed {TABLE} row: {str(e)}") from e


class SupabaseArtifactStore:
    """Artifact store backed by the Supabase admin client."""

    def __init__(self, client: Optional[Client] = None):
        self._client = client

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = get_supabase_admin()
        return self._client

    def create(self, record: GeneratedPdfCreate) -> GeneratedPdf:
        try:
            result = self.client.table(TABLE).insert(record.model_dump()).execute()
        except Exception as e:
            raise PersistenceError(f"Failed to save generated PDF: {str(e)}") from e

        if not result.data:
            raise PersistenceError("Generated PDF insert returned no data")

        return _to_generated_pdf(result.data[0])

    def find_by_token(self, token: str) -> Optional[GeneratedPdf]:
        try:
            result = (
                self.client.table(TABLE)
                .select("*")
                .eq("download_token", token)
                .limit(1)
                .execute()
            )
        except Exception as e:
            raise PersistenceError(f"Failed to look up download token: {str(e)}") from e

        if not result.data:
            return None
        return _to_generated_pdf(result.data[0])

    def find_by_order_identifier(self, identifier: str, order_id: Optional[str] = None) -> List[GeneratedPdf]:
        """Generated PDFs for an order, most recent first."""
        try:
            result = (
                self.client.table(TABLE)
                .select("*")
                .or_(order_identifier_filter(identifier, order_id))
                .order("created_at", desc=True)
                .execute()
            )
        except Exception as e:
            raise PersistenceError(f"Failed to look up generated PDFs: {str(e)}") from e

        return [_to_generated_pdf(row) for row in result.data or []]
