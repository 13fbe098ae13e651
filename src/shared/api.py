"""FastAPI dependencies shared by the bounded-context routers."""

from fastapi import Depends, Request

from shared.container import Container
from shared.exceptions import ConcurrencyConflict, FulfillmentError, NotFound, Unauthorized, ValidationError


def get_container(request: Request) -> Container:
    return request.app.state.container


def require_printer(request: Request, container: Container = Depends(get_container)) -> None:
    """Reject the request unless it carries the printer webhook secret."""
    container.guard.check_request(request)


def require_admin(request: Request, container: Container = Depends(get_container)) -> None:
    """Reject the request unless it carries the admin API key."""
    container.admin_guard.check_request(request)


def failure_reason(exc: FulfillmentError) -> str:
    """Short machine-readable reason used in redirect query strings."""
    if isinstance(exc, NotFound):
        return "not-found"
    if isinstance(exc, ValidationError):
        return "invalid-transition"
    if isinstance(exc, ConcurrencyConflict):
        return "conflict"
    if isinstance(exc, Unauthorized):
        return "unauthorized"
    return "error"
