"""Data every page needs: current user, notifications and the contact form."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends

from maigewan.api.deps import get_optional_user, get_pocketbase
from maigewan.schemas.forms import ContactFormSchema, empty_form
from maigewan.services.account import list_notifications
from maigewan.services.pocketbase import PocketBaseClient

router = APIRouter(tags=["layout"])


@router.get("/layout")
async def layout_data(
    pb: Annotated[PocketBaseClient, Depends(get_pocketbase)],
    user: Annotated[dict[str, Any] | None, Depends(get_optional_user)],
):
    notifications = await list_notifications(pb, user.get("id") if user else None)
    return {
        "user": user,
        "globalNotifications": notifications,
        "form": empty_form(ContactFormSchema),
    }
