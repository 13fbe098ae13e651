"""FastAPI routes for the Ordering context — printer webhooks and order reads.

POST endpoints are for system-to-system calls and answer with JSON. The GET
variants back the plain links in printer emails and answer with a redirect
to the storefront's printer pages.
"""

from urllib.parse import urlencode

import structlog
from fastapi import APIRouter, Depends, Query
from fastapi.responses import RedirectResponse

from ordering.api.schemas import (
    OrderDetailResponse,
    PrinterActionResponse,
    PrinterOrderRequest,
    UpdateStatusRequest,
    UpdateStatusResponse,
    UpdateTrackingRequest,
    UpdateTrackingResponse,
)
from ordering.order.order import OrderStatus
from shared.api import failure_reason, get_container, require_admin, require_printer
from shared.container import Container
from shared.exceptions import FulfillmentError, ValidationError

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["orders"])


def _require_order_id(order_id: str | None) -> str:
    if not order_id:
        raise ValidationError({"orderId": ["Missing orderId"]})
    return order_id


def _transition_and_redirect(container: Container, order_id: str, status: str) -> RedirectResponse:
    """Apply a status change from an email link and send the printer to a result page."""
    try:
        container.orders.transition(order_id, status)
    except FulfillmentError as exc:
        reason = failure_reason(exc)
        logger.warning("Printer link failed", order_id=order_id, status=status, reason=reason)
        return RedirectResponse(container.settings.site_link(f"/printer/error?{urlencode({'reason': reason})}"))
    return RedirectResponse(container.settings.site_link("/printer/success"))


# ---------------------------------------------------------------------------
# Status updates
# ---------------------------------------------------------------------------
@router.post(
    "/orders/update-status",
    response_model=UpdateStatusResponse,
    dependencies=[Depends(require_printer)],
)
def update_status(body: UpdateStatusRequest, container: Container = Depends(get_container)) -> UpdateStatusResponse:
    """Move an order to a new status, optionally recording tracking."""
    order = container.orders.transition(
        body.order_id,
        body.status,
        tracking_number=body.tracking_number,
        carrier=body.carrier,
    )
    return UpdateStatusResponse(order=order)


@router.get("/orders/update-status", dependencies=[Depends(require_printer)])
def update_status_link(
    order_id: str | None = Query(None, alias="orderId"),
    status: str = Query(OrderStatus.DELIVERED.value),
    container: Container = Depends(get_container),
) -> RedirectResponse:
    return _transition_and_redirect(container, _require_order_id(order_id), status)


# ---------------------------------------------------------------------------
# Printer shortcuts
# ---------------------------------------------------------------------------
@router.post(
    "/printer/received",
    response_model=PrinterActionResponse,
    dependencies=[Depends(require_printer)],
)
def printer_received(body: PrinterOrderRequest, container: Container = Depends(get_container)) -> PrinterActionResponse:
    order = container.orders.transition(body.order_id, OrderStatus.RECEIVED_BY_PRINTER)
    return PrinterActionResponse(order=order)


@router.get("/printer/received", dependencies=[Depends(require_printer)])
def printer_received_link(
    order_id: str | None = Query(None, alias="orderId"),
    container: Container = Depends(get_container),
) -> RedirectResponse:
    return _transition_and_redirect(container, _require_order_id(order_id), OrderStatus.RECEIVED_BY_PRINTER.value)


@router.post(
    "/printer/shipped",
    response_model=PrinterActionResponse,
    dependencies=[Depends(require_printer)],
)
def printer_shipped(body: PrinterOrderRequest, container: Container = Depends(get_container)) -> PrinterActionResponse:
    order = container.orders.transition(
        body.order_id,
        OrderStatus.SHIPPED,
        tracking_number=body.tracking_number,
        carrier=body.carrier,
    )
    return PrinterActionResponse(order=order)


@router.get("/printer/shipped", dependencies=[Depends(require_printer)])
def printer_shipped_link(
    order_id: str | None = Query(None, alias="orderId"),
    container: Container = Depends(get_container),
) -> RedirectResponse:
    return _transition_and_redirect(container, _require_order_id(order_id), OrderStatus.SHIPPED.value)


# ---------------------------------------------------------------------------
# Tracking
# ---------------------------------------------------------------------------
@router.post(
    "/orders/update-tracking",
    response_model=UpdateTrackingResponse,
    dependencies=[Depends(require_printer)],
)
def update_tracking(
    body: UpdateTrackingRequest, container: Container = Depends(get_container)
) -> UpdateTrackingResponse:
    container.tracking.update_tracking(body.order_id, body.tracking_number, body.carrier)
    return UpdateTrackingResponse()


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------
@router.get("/orders/{order_id}", response_model=OrderDetailResponse, dependencies=[Depends(require_admin)])
def get_order(order_id: str, container: Container = Depends(get_container)) -> OrderDetailResponse:
    return OrderDetailResponse(**container.lookup.get_order(order_id))
