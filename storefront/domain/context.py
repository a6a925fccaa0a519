# storefront/domain/context.py
from dataclasses import dataclass


@dataclass(frozen=True)
class RequestContext:
    """Who is calling. Passed explicitly into every order use case."""

    user_id: int
    is_admin: bool = False
