"""
Shared request dependencies and error mapping for the routers.
"""

import uuid

from fastapi import Header, HTTPException

from poker_settlement.exceptions import NotFoundError


def get_actor_id(
    x_user_id: uuid.UUID | None = Header(default=None),
) -> uuid.UUID | None:
    """
    The acting user, taken from the X-User-Id header.

    Authentication happens upstream; this service trusts the header.
    """
    return x_user_id


def http_error(e: ValueError) -> HTTPException:
    """Translate a rejected input into the matching HTTP error."""
    status_code = 404 if isinstance(e, NotFoundError) else 400
    return HTTPException(status_code=status_code, detail=str(e))
