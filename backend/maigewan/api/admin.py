"""Admin pages. The session middleware already gates /admin; each route checks again."""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query

from maigewan.api.deps import get_pocketbase, require_admin
from maigewan.core.errors import internal_error
from maigewan.services.account import search_users
from maigewan.services.pocketbase import PocketBaseClient, PocketBaseError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


def parse_page(raw: str | None) -> int:
    """Page number from the query string; anything unusable means page 1."""
    try:
        page = int(raw) if raw else 1
    except ValueError:
        return 1
    return page if page > 0 else 1


@router.get("/users")
async def list_users(
    pb: Annotated[PocketBaseClient, Depends(get_pocketbase)],
    _: Annotated[dict[str, Any], Depends(require_admin)],
    page: Annotated[str | None, Query()] = None,
    search: Annotated[str, Query()] = "",
):
    """List users with optional search over username, email and name."""
    try:
        return await search_users(pb, page=parse_page(page), search=search)
    except PocketBaseError as e:
        logger.error(f"Failed to fetch users: {e}")
        raise internal_error("获取用户列表失败") from e
