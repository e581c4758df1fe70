"""
Login attempt audit trail.

Usage:
    from maigewan.services.login_log import record_login_attempt
    await record_login_attempt(store, user_id, client_ip, success=True)

Writes are best-effort: the outcome of a login never depends on whether
its audit record could be stored.
"""
import logging
from dataclasses import dataclass
from typing import Any, Protocol

from maigewan.core.config import settings
from maigewan.services.pocketbase import PocketBaseClient, PocketBaseError

logger = logging.getLogger(__name__)


class RecordWriter(Protocol):
    async def create(self, collection: str, data: dict[str, Any]) -> dict[str, Any]: ...


@dataclass(frozen=True)
class LoginAttempt:
    """One login submission. ``created`` is stamped by the store."""

    user_id: str | None
    ip: str
    success: bool

    def to_record(self) -> dict[str, Any]:
        return {
            "userRef": self.user_id or None,
            "ip": self.ip,
            "success": self.success,
        }


async def record_login_attempt(
    store: RecordWriter,
    user_id: str | None,
    ip: str,
    success: bool,
) -> None:
    """
    Store a login attempt record.

    Args:
        store: Writer with permission to create login log records
        user_id: Authenticated user, or None when the user is unknown
        ip: Resolved client address
        success: Whether authentication succeeded

    Never raises; store failures are logged and dropped.
    """
    attempt = LoginAttempt(user_id=user_id, ip=ip, success=success)
    try:
        await store.create(settings.LOGIN_LOG_COLLECTION, attempt.to_record())
    except Exception as e:
        logger.error(f"Failed to write login log: {e}")


def user_filter(user_id: str) -> str:
    """PocketBase filter matching records owned by user_id."""
    return f'userRef = "{escape_filter_value(user_id)}"'


def escape_filter_value(value: str) -> str:
    """Escape a value for use inside a double-quoted PocketBase filter literal."""
    return value.replace("\\", "\\\\").replace('"', '\\"')


async def list_login_logs(client: PocketBaseClient, user_id: str) -> list[dict[str, Any]]:
    """
    Login logs for one user, newest first.

    Returns an empty list if the store cannot be read.
    """
    try:
        return await client.collection(settings.LOGIN_LOG_COLLECTION).get_full_list(
            filter=user_filter(user_id),
            sort="-created",
            expand="userRef",
        )
    except PocketBaseError as e:
        logger.error(f"Error fetching login logs: {e}")
        return []
