from collections.abc import Mapping
from typing import Any


def is_seller(user: Mapping[str, Any] | None) -> bool:
    """Sellers have role "seller" (any case) or a truthy ``isSeller`` flag."""
    if not user:
        return False
    role = user.get("role")
    if role is not None and str(role).lower() == "seller":
        return True
    return bool(user.get("isSeller"))
