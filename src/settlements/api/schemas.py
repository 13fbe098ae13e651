"""Pydantic API schemas for the Settlements context."""

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------
class CreateSettlementRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    order_ids: list[str] = Field(..., alias="orderIds")
    note: str | None = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------
class CreateSettlementResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    settlement_id: str = Field(..., serialization_alias="settlementId")
    total_cents: int = Field(..., serialization_alias="totalCents")
    order_count: int = Field(..., serialization_alias="orderCount")


class SettlementLinkResponse(BaseModel):
    settlement_id: str
    order_id: str
    amount_cents: int
    calc_detail_json: dict


class PrinterActionEntry(BaseModel):
    id: int
    settlement_id: str
    action: str
    created_at: str | None = None


class SettlementResponse(BaseModel):
    id: str
    status: str
    printer_email: str
    subtotal_cents: int
    total_cents: int
    notes: str | None = None
    order_count: int
    created_at: str | None = None
    updated_at: str | None = None


class SettlementDetailResponse(SettlementResponse):
    orders: list[SettlementLinkResponse]
    actions: list[PrinterActionEntry]


class SettlementListResponse(BaseModel):
    settlements: list[SettlementResponse]


class UnbatchedOrderResponse(BaseModel):
    id: str
    email: str
    status: str
    base_printer_fee_cents: int | None = None
    printer_payable_status: str
    payable_cents: int
    created_at: str | None = None


class UnbatchedSummaryResponse(BaseModel):
    orders: list[UnbatchedOrderResponse]
    unbatched_count: int
    total_owed_cents: int
    pending_settlements: int
