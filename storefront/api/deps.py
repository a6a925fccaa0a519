# storefront/api/deps.py
from fastapi import Depends, HTTPException, Query
from sqlalchemy.orm import Session

from storefront.data.database import get_db
from storefront.domain.context import RequestContext
from storefront.domain.errors import NotFound
from storefront.services.user_service import UserService


def get_request_context(
    user_id: int | None = Query(None, gt=0),
    db: Session = Depends(get_db),
) -> RequestContext:
    """Resolve the calling user; authentication itself happens upstream."""
    if user_id is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        user = UserService(db).get_user(user_id)
    except NotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    return RequestContext(user_id=user.id, is_admin=user.is_admin)


def require_admin(ctx: RequestContext = Depends(get_request_context)) -> RequestContext:
    if not ctx.is_admin:
        raise HTTPException(status_code=403, detail="Admin role required")
    return ctx
