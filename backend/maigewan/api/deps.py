from typing import Annotated, Any

from fastapi import Depends, HTTPException, Request, status

from maigewan.core.config import settings
from maigewan.services.login_log import RecordWriter
from maigewan.services.pocketbase import ClientRecordWriter, PocketBaseClient, SuperuserRecordWriter

LOGIN_PATH = "/auth/login"


def redirect(location: str) -> HTTPException:
    """A 303 redirect raised from inside a dependency or route."""
    return HTTPException(
        status_code=status.HTTP_303_SEE_OTHER,
        headers={"Location": location},
    )


def get_pocketbase(request: Request) -> PocketBaseClient:
    """PocketBase client set up by the session middleware for this request."""
    pb = getattr(request.state, "pb", None)
    if pb is None:
        # Routes mounted without the session middleware get an anonymous client
        pb = PocketBaseClient()
        request.state.pb = pb
        request.state.user = None
    return pb


def get_optional_user(
    request: Request,
    _: Annotated[PocketBaseClient, Depends(get_pocketbase)],
) -> dict[str, Any] | None:
    return request.state.user


def require_user(
    pb: Annotated[PocketBaseClient, Depends(get_pocketbase)],
) -> dict[str, Any]:
    """Signed-in user record; anonymous visitors are sent to the login page."""
    record = pb.auth_store.record
    if not pb.auth_store.is_valid or not record or not record.get("id"):
        raise redirect(LOGIN_PATH)
    return record


def require_admin(
    user: Annotated[dict[str, Any] | None, Depends(get_optional_user)],
) -> dict[str, Any]:
    """Admin user record; everyone else is sent to the home page."""
    if not user or user.get("role") != "admin":
        raise redirect("/")
    return user


def get_audit_store(
    pb: Annotated[PocketBaseClient, Depends(get_pocketbase)],
) -> RecordWriter:
    """
    Writer for login logs.

    Uses superuser credentials when configured so that anonymous failed
    logins can be recorded; otherwise falls back to the request's own client.
    """
    if settings.has_superuser_credentials:
        return SuperuserRecordWriter(
            settings.POCKETBASE_SUPERUSER_EMAIL,
            settings.POCKETBASE_SUPERUSER_PASSWORD,
            client=pb.anonymous_copy(),
        )
    return ClientRecordWriter(pb)
