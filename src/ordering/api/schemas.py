"""Pydantic API schemas for the Ordering context.

Request fields use the camelCase names the printer integration sends;
responses mirror the stored order.
"""

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------
class UpdateStatusRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    order_id: str = Field(..., alias="orderId", min_length=1)
    status: str
    tracking_number: str | None = Field(None, alias="trackingNumber")
    carrier: str | None = None


class PrinterOrderRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    order_id: str = Field(..., alias="orderId", min_length=1)
    tracking_number: str | None = Field(None, alias="trackingNumber")
    carrier: str | None = None


class UpdateTrackingRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    order_id: str = Field(..., alias="orderId", min_length=1)
    tracking_number: str = Field(..., alias="trackingNumber", min_length=1)
    carrier: str | None = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------
class OrderItemResponse(BaseModel):
    id: str
    order_id: str
    sku: str | None = None
    title: str | None = None
    qty: int
    blank_cost_cents_snapshot: int
    print_cost_cents_snapshot: int


class OrderResponse(BaseModel):
    id: str
    email: str
    status: str
    tracking_number: str | None = None
    carrier: str | None = None
    base_printer_fee_cents: int | None = None
    printer_payable_status: str
    subtotal_cents: int
    shipping_cents: int
    tax_cents: int
    total_cents: int
    created_at: str | None = None
    updated_at: str | None = None


class UpdateStatusResponse(BaseModel):
    success: bool = True
    order: OrderResponse


class PrinterActionResponse(BaseModel):
    ok: bool = True
    order: OrderResponse


class UpdateTrackingResponse(BaseModel):
    success: bool = True
    message: str = "Tracking information updated successfully"


class OrderDetailResponse(BaseModel):
    order: OrderResponse
    items: list[OrderItemResponse]
