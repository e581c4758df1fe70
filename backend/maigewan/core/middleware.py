"""Custom middleware for session handling."""

import logging
from typing import Callable

from fastapi import Request, Response, status
from fastapi.responses import RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from maigewan.core.config import settings
from maigewan.services.pocketbase import PocketBaseClient, PocketBaseError

logger = logging.getLogger(__name__)

ADMIN_PATH_PREFIX = "/admin"
LOGIN_PATH = "/auth/login"


class PocketBaseSessionMiddleware(BaseHTTPMiddleware):
    """Per-request PocketBase client restored from the auth cookie.

    For every request:
    - loads the auth store from the cookie and refreshes it against PocketBase
    - exposes the client and user record on request.state
    - redirects anonymous or non-admin users away from admin pages
    - writes the current auth state back as a cookie
    """

    def __init__(
        self,
        app: ASGIApp,
        client_factory: Callable[[], PocketBaseClient] = PocketBaseClient,
    ) -> None:
        super().__init__(app)
        self.client_factory = client_factory

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        pb = self.client_factory()
        pb.auth_store.load_from_cookie(request.cookies.get(settings.AUTH_COOKIE_NAME))

        if pb.auth_store.is_valid:
            try:
                await pb.collection(settings.USERS_COLLECTION).auth_refresh()
            except PocketBaseError as e:
                logger.info(f"Auth refresh failed, clearing session: {e}")
                pb.auth_store.clear()
        else:
            # The record in an expired cookie is client-supplied and unverified
            pb.auth_store.clear()

        request.state.pb = pb
        request.state.user = pb.auth_store.record

        if request.url.path.startswith(ADMIN_PATH_PREFIX):
            user = request.state.user
            if not user:
                return RedirectResponse(LOGIN_PATH, status_code=status.HTTP_303_SEE_OTHER)
            if user.get("role") != "admin":
                return RedirectResponse("/", status_code=status.HTTP_303_SEE_OTHER)

        response = await call_next(request)
        write_auth_cookie(response, pb)
        return response


def write_auth_cookie(response: Response, pb: PocketBaseClient) -> None:
    """Send the latest auth state back to the browser."""
    common = {
        "path": "/",
        "secure": not settings.DEBUG,
        "httponly": False,
        "samesite": "lax",
    }
    if pb.auth_store.is_valid:
        response.set_cookie(
            settings.AUTH_COOKIE_NAME,
            pb.auth_store.export_cookie_value(),
            expires=pb.auth_store.cookie_expires(),
            **common,
        )
    else:
        response.set_cookie(settings.AUTH_COOKIE_NAME, "", max_age=0, **common)
