"""Shared request dependencies."""

from typing import Annotated

from fastapi import Header, HTTPException, status

from rivals.config import settings


async def require_admin(
    x_admin_token: Annotated[str | None, Header()] = None,
    authorization: Annotated[str | None, Header()] = None,
) -> None:
    """
    Admin gate for inventory publishing.

    Accepts the token as ``x-admin-token`` or as ``Authorization: Bearer``.
    Responds 500 when the server has no token configured, 401 on mismatch.
    """
    expected = settings.admin_token
    if not expected:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="ADMIN_TOKEN not set",
        )

    supplied = x_admin_token
    if supplied is None and authorization and authorization.lower().startswith("bearer "):
        supplied = authorization[len("bearer ") :].strip()

    if supplied != expected:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
