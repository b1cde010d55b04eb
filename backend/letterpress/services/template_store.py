"""
Supabase persistence for letter templates (table ``letter_templates``).
"""

import logging
from typing import Optional

from pydantic import ValidationError as ModelValidationError
from supabase import Client

from letterpress.db import get_supabase_admin
from letterpress.errors import PersistenceError
from letterpress.models.letter import LetterTemplate
from letterpress.services.default_template import DEFAULT_TEMPLATE_HTML, default_template_name

logger = logging.getLogger(__name__)

TABLE = "letter_templates"


def _to_template(row: dict) -> LetterTemplate:
    try:
        return LetterTemplate(**row)
    except (ModelValidationError, TypeError) as e:
        raise PersistenceError(f"Malformed {TABLE} row: {str(e)}") from e


class SupabaseTemplateStore:
    """Template store backed by the Supabase admin client."""

    def __init__(self, client: Optional[Client] = None):
        self._client = client

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = get_supabase_admin()
        return self._client

    def find_active(self, shop: str, product_id: Optional[str]) -> Optional[LetterTemplate]:
        """
        Return the active template for (shop, product_id), or None.

        Ordered by creation time so that if two defaults were ever created
        for the same product, every caller sees the same (oldest) one.
        """
        try:
            query = self.client.table(TABLE).select("*").eq("shop", shop)
            # eq.null never matches a NULL column
            if product_id is None:
                query = query.is_("product_id", "null")
            else:
                query = query.eq("product_id", product_id)
            result = query.eq("is_active", True).order("created_at").limit(1).execute()
        except Exception as e:
            raise PersistenceError(f"Failed to look up template: {str(e)}") from e

        if not result.data:
            return None
        return _to_template(result.data[0])

    def create_default(self, shop: str, product_id: Optional[str], product_title: str) -> LetterTemplate:
        """Insert the default template for a product and return it."""
        try:
            result = self.client.table(TABLE).insert({
                "name": default_template_name(product_title),
                "shop": shop,
                "product_id": product_id,
                "html_content": DEFAULT_TEMPLATE_HTML,
                "css_content": None,
                "is_active": True,
            }).execute()
        except Exception as e:
            raise PersistenceError(f"Failed to create default template: {str(e)}") from e

        if not result.data:
            raise PersistenceError("Template insert returned no data")

        logger.info(f"Created default template for shop={shop!r} product_id={product_id!r}")
        return _to_template(result.data[0])
