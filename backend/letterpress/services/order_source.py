"""
Order source: reads orders from the Shopify Admin REST API for on-demand
letter generation.
"""

import logging
from typing import Optional

import requests

from letterpress.errors import ExternalFetchError, ValidationError
from letterpress.models.order import OrderPayload

logger = logging.getLogger(__name__)


def numeric_order_id(order_id: str) -> str:
    """Accept a GID ("gid://shopify/OrderIdentity/16528344416605") or a bare id."""
    return order_id.rsplit("/", 1)[-1] if "/" in order_id else order_id


class ShopifyOrderSource:
    def __init__(self, access_token: Optional[str], api_version: str = "2024-10", timeout: float = 15.0):
        self.access_token = access_token
        self.api_version = api_version
        self.timeout = timeout

    def order_url(self, shop: str, order_id: str) -> str:
        return f"https://{shop}/admin/api/{self.api_version}/orders/{order_id}.json"

    def fetch_order(self, shop: str, order_id: str) -> Optional[OrderPayload]:
        """
        Fetch one order with its line item properties.

        Returns None when the order does not exist.

        Raises:
            ValidationError: no access token configured
            ExternalFetchError: the Admin API could not be reached or errored
        """
        if not self.access_token:
            raise ValidationError("SHOPIFY_ADMIN_ACCESS_TOKEN is required to fetch orders")

        url = self.order_url(shop, numeric_order_id(order_id))
        try:
            response = requests.get(
                url,
                headers={"X-Shopify-Access-Token": self.access_token},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise ExternalFetchError(f"Failed to fetch order {order_id}: {str(e)}") from e

        if response.status_code == 404:
            return None
        if not response.ok:
            raise ExternalFetchError(
                f"Failed to fetch order {order_id}: {response.status_code} {response.reason}"
            )

        order = response.json().get("order")
        if not order:
            return None
        return OrderPayload.from_shopify(order)
