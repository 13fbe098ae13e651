"""FastAPI routes for the Settlements context.

The agree / needs-updated / paid endpoints are the links in the printer's
settlement email, so they are GETs that redirect back to the studio
settlements page with an ``ok`` or ``error`` flag.
"""

from collections.abc import Callable
from urllib.parse import urlencode

import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import RedirectResponse

from settlements.api.schemas import (
    CreateSettlementRequest,
    CreateSettlementResponse,
    SettlementDetailResponse,
    SettlementListResponse,
    UnbatchedSummaryResponse,
)
from shared.api import failure_reason, get_container, require_admin, require_printer
from shared.container import Container
from shared.exceptions import FulfillmentError

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/settlements", tags=["settlements"])


def _studio_redirect(container: Container, **params: str) -> RedirectResponse:
    return RedirectResponse(container.settings.site_link(f"/studio/settlements?{urlencode(params)}"))


def _apply_printer_action(
    container: Container,
    settlement_id: str,
    action: str,
    operation: Callable[[str], dict],
) -> RedirectResponse:
    try:
        operation(settlement_id)
    except FulfillmentError as exc:
        reason = failure_reason(exc)
        logger.warning("Settlement action failed", settlement_id=settlement_id, action=action, reason=reason)
        return _studio_redirect(container, error=reason)
    return _studio_redirect(container, ok=action)


# ---------------------------------------------------------------------------
# Batching
# ---------------------------------------------------------------------------
@router.post(
    "/create-and-send",
    response_model=CreateSettlementResponse,
    response_model_by_alias=True,
    dependencies=[Depends(require_admin)],
)
def create_and_send(
    body: CreateSettlementRequest, container: Container = Depends(get_container)
) -> CreateSettlementResponse:
    """Batch unbatched orders into a settlement and email it to the printer."""
    settlement = container.batcher.create_settlement(body.order_ids, note=body.note)
    return CreateSettlementResponse(
        settlement_id=settlement["id"],
        total_cents=settlement["total_cents"],
        order_count=settlement["order_count"],
    )


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------
@router.get("", response_model=SettlementListResponse, dependencies=[Depends(require_admin)])
def list_settlements(container: Container = Depends(get_container)) -> SettlementListResponse:
    return SettlementListResponse(settlements=container.dashboard.list_settlements())


@router.get("/unbatched", response_model=UnbatchedSummaryResponse, dependencies=[Depends(require_admin)])
def unbatched_orders(container: Container = Depends(get_container)) -> UnbatchedSummaryResponse:
    return UnbatchedSummaryResponse(**container.dashboard.unbatched_summary())


@router.get("/{settlement_id}", response_model=SettlementDetailResponse, dependencies=[Depends(require_admin)])
def get_settlement(settlement_id: str, container: Container = Depends(get_container)) -> SettlementDetailResponse:
    return SettlementDetailResponse(**container.dashboard.get_settlement(settlement_id))


# ---------------------------------------------------------------------------
# Printer actions
# ---------------------------------------------------------------------------
@router.get("/{settlement_id}/agree", dependencies=[Depends(require_printer)])
def agree(settlement_id: str, container: Container = Depends(get_container)) -> RedirectResponse:
    return _apply_printer_action(container, settlement_id, "agree", container.settlements.agree)


@router.get("/{settlement_id}/needs-updated", dependencies=[Depends(require_printer)])
def needs_updated(settlement_id: str, container: Container = Depends(get_container)) -> RedirectResponse:
    return _apply_printer_action(container, settlement_id, "needs-updated", container.settlements.request_adjustment)


@router.get("/{settlement_id}/paid", dependencies=[Depends(require_printer)])
def paid(settlement_id: str, container: Container = Depends(get_container)) -> RedirectResponse:
    return _apply_printer_action(container, settlement_id, "paid", container.settlements.mark_paid)
