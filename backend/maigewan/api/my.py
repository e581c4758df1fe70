from typing import Annotated, Any

from fastapi import APIRouter, Depends

from maigewan.api.deps import get_pocketbase, require_user
from maigewan.services.account import list_licenses
from maigewan.services.login_log import list_login_logs
from maigewan.services.pocketbase import PocketBaseClient

router = APIRouter(prefix="/my", tags=["my"])


@router.get("/login-logs")
async def my_login_logs(
    pb: Annotated[PocketBaseClient, Depends(get_pocketbase)],
    user: Annotated[dict[str, Any], Depends(require_user)],
):
    """The signed-in user's login history, newest first."""
    return {"loginLogs": await list_login_logs(pb, user["id"])}


@router.get("/licenses")
async def my_licenses(
    pb: Annotated[PocketBaseClient, Depends(get_pocketbase)],
    user: Annotated[dict[str, Any], Depends(require_user)],
):
    return {"licenses": await list_licenses(pb, user["id"])}
