from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class Address(BaseModel):
    street: Optional[str] = None
    street2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    country: Optional[str] = None

    def is_empty(self) -> bool:
        return not any(
            [self.street, self.street2, self.city, self.state, self.zip, self.country]
        )


class ProductLine(BaseModel):
    key: Optional[str] = Field(default=None, description="Form product key, e.g. special_1001")
    name: str
    display_name: str = Field(..., description="Name with the selected options folded in")
    unit_price: float = 0.0
    quantity: int
    currency: Optional[str] = None
    options: List[str] = []


class OrderSubmission(BaseModel):
    customer_name: str
    email: str
    phone: str = ""
    billing: Address = Address()
    shipping: Optional[Address] = None
    notes: Optional[str] = None
    lines: List[ProductLine]


class OrderResult(BaseModel):
    sale_order_id: int
    sale_order_name: Optional[str] = None
    partner_id: int
    shipping_partner_id: Optional[int] = None
    invoice_ids: List[int] = []
    invoice_emailed: bool = False
    fulfillment_status: Optional[str] = None
    lines: List[ProductLine]


class WebhookResponse(BaseModel):
    success: bool = True
    message: str = "Order received and processed"
    sale_order_id: int
    sale_order_name: Optional[str] = None
    partner_id: int
    invoice_ids: List[int] = []
    invoice_emailed: bool = False
    fulfillment_status: Optional[str] = None
    products: List[ProductLine]
    order_lines: int


class PreviewResponse(BaseModel):
    submission: OrderSubmission
    order_lines: int


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime


class OdooHealthResponse(BaseModel):
    status: str
    server_version: Optional[str] = None
    details: Dict[str, Any] = {}
