"""
Letter API endpoints: on-demand generation and order-status lookup.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query

from letterpress.config import Settings, get_settings
from letterpress.dependencies import get_artifact_store, get_order_source, get_pipeline
from letterpress.errors import ExternalFetchError, PersistenceError, ValidationError
from letterpress.models.letter import GeneratedPdf, OrderPdfs, PdfLink
from letterpress.security import verify_api_key
from letterpress.services.downloads import build_download_url
from letterpress.services.letter_pipeline import LetterPipeline
from letterpress.services.order_source import ShopifyOrderSource, numeric_order_id

router = APIRouter()

logger = logging.getLogger(__name__)


def _to_link(pdf: GeneratedPdf, base_url: str, include_created_at: bool = False) -> PdfLink:
    return PdfLink(
        id=pdf.id,
        productTitle=pdf.product_title,
        downloadUrl=build_download_url(base_url, pdf.download_token),
        createdAt=pdf.created_at if include_created_at else None,
    )


@router.post(
    "/generate-pdf/{order_id:path}",
    response_model=OrderPdfs,
    response_model_exclude_none=True,
    dependencies=[Depends(verify_api_key)],
    responses={
        400: {"description": "Missing shop or order id"},
        401: {"description": "Missing or invalid API key"},
        404: {"description": "Order not found or has no line items"},
        502: {"description": "Order could not be fetched from the platform"},
    },
)
def generate_pdfs_for_order(
    order_id: str,
    x_shop_domain: Optional[str] = Header(None),
    order_source: ShopifyOrderSource = Depends(get_order_source),
    pipeline: LetterPipeline = Depends(get_pipeline),
    settings: Settings = Depends(get_settings),
):
    """
    Generate letters for every line item of an existing order.

    Accepts a numeric order id or a GID. Items that fail to render are
    skipped; the response lists the letters that were produced.
    """
    if not x_shop_domain:
        raise HTTPException(status_code=400, detail="X-Shop-Domain header required")

    try:
        order = order_source.fetch_order(x_shop_domain, order_id)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ExternalFetchError as e:
        logger.error(f"Failed to fetch order {order_id}: {e}")
        raise HTTPException(status_code=502, detail=str(e))

    if order is None:
        raise HTTPException(status_code=404, detail="Order not found")

    if not order.line_items:
        raise HTTPException(status_code=404, detail="No line items found in this order")

    if not order.order_id:
        order = order.model_copy(update={"order_id": numeric_order_id(order_id)})

    try:
        generated = pipeline.generate_for_order(order, x_shop_domain)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PersistenceError as e:
        logger.error(f"Letter generation failed for order {order_id}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to generate PDF: {str(e)}")

    links = [_to_link(pdf, settings.public_base_url) for pdf in generated]
    return OrderPdfs(
        orderNumber=order.order_number or order.order_name,
        pdfs=links,
        count=len(links),
    )


@router.get("/pdfs/{order_number:path}", response_model=OrderPdfs)
def list_pdfs_for_order(
    order_number: str,
    order_id: Optional[str] = Query(None, alias="orderId"),
    artifact_store=Depends(get_artifact_store),
    settings: Settings = Depends(get_settings),
):
    """
    Letters generated for an order, most recent first.

    ``order_number`` may be the order number, the order name (with or
    without "#"), or an OrderIdentity GID.
    """
    if "OrderIdentity" in order_number:
        order_id = numeric_order_id(order_number)

    try:
        pdfs = artifact_store.find_by_order_identifier(order_number, order_id)
    except PersistenceError as e:
        logger.error(f"Failed to fetch PDFs for order {order_number}: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch PDFs")

    links = [_to_link(pdf, settings.public_base_url, include_created_at=True) for pdf in pdfs]
    return OrderPdfs(orderNumber=order_number, pdfs=links, count=len(links))
