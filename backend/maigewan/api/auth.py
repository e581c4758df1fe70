import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import RedirectResponse

from maigewan.api.deps import get_audit_store, get_pocketbase
from maigewan.core.config import settings
from maigewan.core.errors import ErrorCode, HTTPError
from maigewan.schemas.forms import LoginUserSchema, empty_form
from maigewan.services.login_log import RecordWriter, record_login_attempt
from maigewan.services.pocketbase import PocketBaseClient, PocketBaseError
from maigewan.utils.request import get_client_ip, proxy_headers

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/login")
async def login_page():
    return {"form": empty_form(LoginUserSchema)}


@router.post("/login")
async def login(
    form: LoginUserSchema,
    request: Request,
    pb: Annotated[PocketBaseClient, Depends(get_pocketbase)],
    audit_store: Annotated[RecordWriter, Depends(get_audit_store)],
):
    """
    Sign in with email and password.

    Every submission that passes form validation leaves exactly one
    login log record, whether authentication succeeds or not.
    """
    client_ip = get_client_ip(request)
    logger.debug(f"Login IP headers: {proxy_headers(request)}, detected IP: {client_ip}")

    try:
        await pb.collection(settings.USERS_COLLECTION).auth_with_password(form.email, form.password)
    except PocketBaseError as e:
        logger.info(f"Login failed: {e.message}")
        await record_login_attempt(audit_store, None, client_ip, False)
        raise HTTPError(
            status_code=e.status_code or status.HTTP_400_BAD_REQUEST,
            code=ErrorCode.AUTH_FAILED,
            message=e.message,
            details=e.data or None,
        ) from e

    record = pb.auth_store.record
    if not record:
        # Authenticated but no record came back: the account is not verified yet
        pb.auth_store.clear()
        await record_login_attempt(audit_store, None, client_ip, False)
        return {"notVerified": True}

    await record_login_attempt(audit_store, record.get("id"), client_ip, True)
    return RedirectResponse("/", status_code=status.HTTP_303_SEE_OTHER)
