"""
Pydantic models for incoming orders and the personalization data derived
from their line items.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _id_to_str(value: Any) -> Optional[str]:
    """Platform ids arrive as ints in webhooks and strings elsewhere."""
    if value is None or value == "":
        return None
    return str(value)


class LineItemProperty(BaseModel):
    """One customer-entered name/value pair on a line item."""
    name: str = ""
    value: str = ""

    @field_validator("name", "value", mode="before")
    @classmethod
    def _coerce_text(cls, v: Any) -> str:
        if v is None:
            return ""
        return v if isinstance(v, str) else str(v)


class RawLineItem(BaseModel):
    """A line item exactly as the order source delivers it."""
    id: Optional[str] = None
    title: str = ""
    quantity: int = 0
    price: Optional[str] = None
    sku: Optional[str] = None
    vendor: Optional[str] = None
    product_id: Optional[str] = None
    variant_id: Optional[str] = None
    properties: List[LineItemProperty] = Field(default_factory=list)

    @field_validator("id", "product_id", "variant_id", "price", mode="before")
    @classmethod
    def _coerce_ids(cls, v: Any) -> Optional[str]:
        return _id_to_str(v)

    @field_validator("properties", mode="before")
    @classmethod
    def _default_properties(cls, v: Any) -> Any:
        return v or []


class OrderPayload(BaseModel):
    """An already-authenticated order, as handed to the pipeline."""
    order_id: Optional[str] = None
    order_number: Optional[str] = None
    order_name: str = ""
    customer_email: str = ""
    line_items: List[RawLineItem] = Field(default_factory=list)

    @field_validator("order_id", "order_number", mode="before")
    @classmethod
    def _coerce_ids(cls, v: Any) -> Optional[str]:
        return _id_to_str(v)

    @classmethod
    def from_shopify(cls, payload: Dict[str, Any]) -> "OrderPayload":
        """
        Build an OrderPayload from a Shopify order object (webhook body or the
        ``order`` key of an Admin REST response).
        """
        return cls(
            order_id=payload.get("id"),
            order_number=payload.get("order_number"),
            order_name=payload.get("name") or "",
            customer_email=payload.get("email") or "",
            line_items=payload.get("line_items") or [],
        )


class OrderItem(BaseModel):
    """
    Personalization record derived from one line item.

    properties holds every raw pair; text_fields and image_urls are the
    classified subsets. Frozen: derived once per extraction call.
    """
    model_config = ConfigDict(frozen=True)

    line_item_id: Optional[str] = None
    product_id: Optional[str] = None
    variant_id: Optional[str] = None
    product_title: str = ""
    quantity: int = 0
    price: Optional[str] = None
    sku: Optional[str] = None
    vendor: Optional[str] = None
    properties: Dict[str, str] = Field(default_factory=dict)
    text_fields: Dict[str, str] = Field(default_factory=dict)
    image_urls: List[str] = Field(default_factory=list)


class PersonalizationMap(BaseModel):
    """
    Values available to a letter template.

    The known fields are typed; anything the customer typed on the product
    page lives in ``custom`` keyed by the property name.
    """
    product_title: Optional[str] = None
    order_name: Optional[str] = None
    customer_email: Optional[str] = None
    quantity: Optional[int] = None
    price: Optional[str] = None
    sku: Optional[str] = None
    vendor: Optional[str] = None
    custom: Dict[str, str] = Field(default_factory=dict)

    @classmethod
    def for_item(cls, item: OrderItem, order: OrderPayload) -> "PersonalizationMap":
        """Merge order-level fields with one item's properties and text fields."""
        custom = dict(item.properties)
        custom.update(item.text_fields)
        return cls(
            product_title=item.product_title,
            order_name=order.order_name,
            customer_email=order.customer_email,
            quantity=item.quantity,
            price=item.price,
            sku=item.sku or "",
            vendor=item.vendor or "",
            custom=custom,
        )
