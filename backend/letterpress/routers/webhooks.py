"""
Platform webhook endpoints.
"""

import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header
from fastapi.responses import JSONResponse

from letterpress.dependencies import get_pipeline
from letterpress.errors import LetterpressError
from letterpress.models.order import OrderPayload
from letterpress.security import verify_shopify_webhook
from letterpress.services.letter_pipeline import LetterPipeline

router = APIRouter()

logger = logging.getLogger(__name__)


@router.get("/orders/create")
async def orders_create_probe():
    """Reachability check used when registering the webhook."""
    return {
        "message": "Webhook route is accessible",
        "path": "/webhooks/orders/create",
        "method": "GET",
    }


@router.post("/orders/create")
def orders_create(
    body: bytes = Depends(verify_shopify_webhook),
    x_shopify_shop_domain: Optional[str] = Header(None),
    pipeline: LetterPipeline = Depends(get_pipeline),
):
    """
    Generate letters for a newly created order.

    Once the signature is verified this always answers 200, reporting
    failures in the body: a non-2xx makes the platform redeliver the order,
    and redelivery would create duplicate letters.
    """
    try:
        payload = json.loads(body)
        order = OrderPayload.from_shopify(payload)
    except (ValueError, AttributeError) as e:
        logger.error(f"Invalid order webhook payload: {e}")
        return JSONResponse({"error": f"Invalid payload: {str(e)}"}, status_code=200)

    logger.info(
        f"orders/create webhook: shop={x_shopify_shop_domain!r}, order={order.order_name!r}, "
        f"line_items={len(order.line_items)}"
    )

    try:
        generated = pipeline.generate_for_order(order, x_shopify_shop_domain or "")
    except LetterpressError as e:
        logger.error(f"Error processing order {order.order_name or order.order_id}: {e}")
        return JSONResponse({"error": str(e)}, status_code=200)
    except Exception as e:
        logger.exception(f"Unexpected error processing order {order.order_name or order.order_id}")
        return JSONResponse({"error": f"Internal error: {str(e)}"}, status_code=200)

    return {"orderName": order.order_name, "generated": len(generated)}
