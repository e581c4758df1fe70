"""Record lookups behind the account and admin pages."""

import logging
import math
from typing import Any

from maigewan.core.config import settings
from maigewan.services.login_log import escape_filter_value, user_filter
from maigewan.services.pocketbase import PocketBaseClient, PocketBaseError

logger = logging.getLogger(__name__)

USER_SEARCH_FIELDS = ("username", "email", "name")


async def list_licenses(client: PocketBaseClient, user_id: str) -> list[dict[str, Any]]:
    """Licenses owned by user_id, newest first. Empty on store errors."""
    try:
        return await client.collection(settings.LICENSE_COLLECTION).get_full_list(
            filter=user_filter(user_id),
            sort="-created",
        )
    except PocketBaseError as e:
        logger.error(f"Error fetching licenses: {e}")
        return []


async def list_notifications(client: PocketBaseClient, user_id: str | None) -> list[dict[str, Any]]:
    """Notifications addressed to user_id, newest first."""
    if not user_id:
        return []
    return await client.collection(settings.NOTIFICATION_COLLECTION).get_full_list(
        filter=f'user ~ "{escape_filter_value(user_id)}"',
        sort="-created",
    )


def user_search_filter(search: str) -> str | None:
    if not search:
        return None
    value = escape_filter_value(search)
    return " || ".join(f'{field} ~ "{value}"' for field in USER_SEARCH_FIELDS)


async def search_users(
    client: PocketBaseClient,
    page: int,
    search: str = "",
    per_page: int | None = None,
) -> dict[str, Any]:
    """
    One page of users for the admin listing.

    The client must carry an admin token so that hidden fields such as
    email are included in the response.

    Raises:
        PocketBaseError: If the users collection cannot be read
    """
    per_page = per_page or settings.ADMIN_USERS_PER_PAGE
    data = await client.collection(settings.USERS_COLLECTION).get_list(
        page=page,
        per_page=per_page,
        sort="-created",
        filter=user_search_filter(search),
    )

    total_items = data.get("totalItems") or 0
    total_pages = data.get("totalPages") or math.ceil(total_items / per_page)

    return {
        "users": data.get("items") or [],
        "totalPages": total_pages,
        "totalItems": total_items,
        "currentPage": page,
        "search": search,
    }
