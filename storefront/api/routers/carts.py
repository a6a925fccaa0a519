# storefront/api/routers/carts.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from storefront.api.deps import get_request_context
from storefront.data.database import get_db
from storefront.domain.context import RequestContext
from storefront.domain.errors import StorefrontError
from storefront.domain.schemas import CartOut, ItemIn, ItemUpdateIn
from storefront.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["cart"])


def get_service(db: Session):
    return CartService(db)


@router.get("/", response_model=CartOut)
def get_cart(
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    return svc.get_cart(ctx.user_id)


@router.post("/items", response_model=CartOut)
def add_item(
    payload: ItemIn,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        return svc.add_product(ctx.user_id, payload.product_id, payload.quantity)
    except StorefrontError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.put("/items/{item_id}", response_model=CartOut)
def update_item(
    item_id: int,
    payload: ItemUpdateIn,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        return svc.update_item(ctx.user_id, item_id, payload.quantity)
    except StorefrontError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/items/{item_id}", response_model=CartOut)
def remove_item(
    item_id: int,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        return svc.remove_item(ctx.user_id, item_id)
    except StorefrontError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
