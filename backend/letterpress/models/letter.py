"""
Pydantic models for letter templates and generated PDFs.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class LetterTemplate(BaseModel):
    """A per-product HTML template with {{placeholder}} slots."""
    id: str
    shop: str
    product_id: Optional[str] = None
    name: str = ""
    html_content: str
    css_content: Optional[str] = None
    is_active: bool = True
    created_at: Optional[str] = None

    class Config:
        from_attributes = True


class GeneratedPdfCreate(BaseModel):
    """Row inserted by the pipeline once a letter has been rendered and stored."""
    order_id: str
    order_number: str = ""
    order_name: str = ""
    line_item_id: Optional[str] = None
    product_id: Optional[str] = None
    product_title: str = ""
    customer_email: str = ""
    template_id: str
    pdf_url: str
    pdf_key: str
    # Raw line item properties, kept as the audit record of what was ordered
    personalization_data: Dict[str, str] = Field(default_factory=dict)
    image_url: Optional[str] = None
    download_token: str
    shop: str


class GeneratedPdf(GeneratedPdfCreate):
    """Full generated PDF record from the database."""
    id: str
    created_at: Optional[str] = None

    class Config:
        from_attributes = True


class PdfLink(BaseModel):
    """Public view of a generated PDF: what the storefront needs to link it."""
    id: str
    productTitle: str
    downloadUrl: str
    createdAt: Optional[str] = None


class OrderPdfs(BaseModel):
    """Response body for the generate and lookup endpoints."""
    orderNumber: str
    pdfs: List[PdfLink]
    count: int
