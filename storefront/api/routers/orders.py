# storefront/api/routers/orders.py
from fastapi import APIRouter, Body, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from storefront.api.deps import get_request_context, require_admin
from storefront.data.database import get_db
from storefront.domain.context import RequestContext
from storefront.domain.errors import OrderProcessingError, StorefrontError
from storefront.domain.schemas import (
    ConfirmPaymentIn,
    OrderOut,
    OrderPage,
    OrderTrackingOut,
    PlaceOrderIn,
    UpdateOrderStatusIn,
)
from storefront.services.order_service import OrderService
from storefront.utils.settings import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE

router = APIRouter(prefix="/orders", tags=["orders"])


def get_service(db: Session):
    return OrderService(db)


def _to_http(e: Exception) -> HTTPException:
    if isinstance(e, StorefrontError):
        return HTTPException(status_code=e.status_code, detail=str(e))
    # store failures keep their details in the log
    return HTTPException(status_code=500, detail="Unexpected error")


@router.post("/", response_model=OrderOut, status_code=201)
def place_order(
    payload: PlaceOrderIn | None = Body(None),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """
    Places an order from the caller's cart.
    Stock is reserved and the cart cleared in the same transaction.
    """
    svc = get_service(db)
    note = payload.note if payload else None
    try:
        return svc.place_order(ctx, note)
    except (StorefrontError, OrderProcessingError) as e:
        raise _to_http(e)


@router.post("/{order_id}/confirm-payment", response_model=OrderOut)
def confirm_payment(
    order_id: int,
    payload: ConfirmPaymentIn,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        return svc.confirm_payment(ctx, order_id, payload.payment_reference)
    except (StorefrontError, OrderProcessingError) as e:
        raise _to_http(e)


@router.get("/", response_model=OrderPage)
def get_my_orders(
    page: int = Query(1, ge=1),
    size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """Order history of the caller, newest first."""
    svc = get_service(db)
    try:
        return svc.get_my_orders(ctx, page, size)
    except (StorefrontError, OrderProcessingError) as e:
        raise _to_http(e)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: int,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        return svc.get_order_by_id(ctx, order_id)
    except (StorefrontError, OrderProcessingError) as e:
        raise _to_http(e)


@router.get("/{order_id}/tracking", response_model=OrderTrackingOut)
def get_order_tracking(
    order_id: int,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        return svc.get_order_tracking(ctx, order_id)
    except (StorefrontError, OrderProcessingError) as e:
        raise _to_http(e)


@router.patch("/{order_id}/cancel", response_model=OrderOut)
def cancel_order(
    order_id: int,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        return svc.cancel_order(ctx, order_id)
    except (StorefrontError, OrderProcessingError) as e:
        raise _to_http(e)


@router.patch("/{order_id}/status", response_model=OrderOut)
def update_order_status(
    order_id: int,
    payload: UpdateOrderStatusIn,
    ctx: RequestContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Admin only."""
    svc = get_service(db)
    try:
        return svc.update_order_status(ctx, order_id, payload.status, payload.note)
    except (StorefrontError, OrderProcessingError) as e:
        raise _to_http(e)
