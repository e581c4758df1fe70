"""
PocketBase REST client.

Thin async wrapper over the PocketBase HTTP API: an auth store that
round-trips through the ``pb_auth`` cookie, per-collection record
operations, and a superuser writer for records that must bypass
collection rules.
"""

import json
import logging
import time
from datetime import datetime, timezone
from typing import Any
from urllib.parse import quote, unquote

import httpx
from jose import JWTError, jwt

from maigewan.core.config import settings

logger = logging.getLogger(__name__)

SUPERUSERS_COLLECTION = "_superusers"


class PocketBaseError(Exception):
    """Exception raised for PocketBase API errors."""

    def __init__(self, message: str, status_code: int | None = None, data: dict | None = None):
        self.message = message
        self.status_code = status_code
        self.data = data or {}
        super().__init__(self.message)


def decode_token_payload(token: str) -> dict[str, Any] | None:
    """Claims of a JWT, read without verifying the signature."""
    try:
        return jwt.get_unverified_claims(token)
    except JWTError:
        return None


class AuthStore:
    """Holds the current auth token and record for one client."""

    def __init__(self, token: str = "", record: dict[str, Any] | None = None):
        self.token = token
        self.record = record

    @property
    def expires_at(self) -> float | None:
        payload = decode_token_payload(self.token) if self.token else None
        if not payload:
            return None
        exp = payload.get("exp")
        return float(exp) if isinstance(exp, (int, float)) else None

    @property
    def is_valid(self) -> bool:
        """True when a token is loaded and has not expired."""
        exp = self.expires_at
        return exp is not None and exp > time.time()

    @property
    def is_superuser(self) -> bool:
        if not self.record:
            return False
        return self.record.get("collectionName") == SUPERUSERS_COLLECTION

    def save(self, token: str, record: dict[str, Any] | None) -> None:
        self.token = token or ""
        self.record = record

    def clear(self) -> None:
        self.token = ""
        self.record = None

    def load_from_cookie(self, cookie_value: str | None) -> None:
        """
        Restore token and record from a ``pb_auth`` cookie value.

        Malformed cookies leave the store empty.
        """
        self.clear()
        if not cookie_value:
            return
        try:
            data = json.loads(unquote(cookie_value))
        except ValueError:
            logger.debug("Ignoring malformed auth cookie")
            return
        if not isinstance(data, dict):
            return
        record = data.get("record") or data.get("model")
        self.save(str(data.get("token") or ""), record if isinstance(record, dict) else None)

    def export_cookie_value(self) -> str:
        """URL-encoded JSON cookie value, compatible with the PocketBase JS SDK."""
        return quote(json.dumps({"token": self.token, "model": self.record}, separators=(",", ":")), safe="")

    def cookie_expires(self) -> datetime | None:
        exp = self.expires_at
        if exp is None:
            return None
        return datetime.fromtimestamp(exp, tz=timezone.utc)


class RecordService:
    """Record and auth operations for a single collection."""

    def __init__(self, client: "PocketBaseClient", collection: str):
        self.client = client
        self.collection = collection

    @property
    def base_path(self) -> str:
        return f"/api/collections/{quote(self.collection, safe='')}"

    async def auth_with_password(self, identity: str, password: str) -> dict[str, Any]:
        """
        Authenticate with identity/password and save the result in the auth store.

        Returns:
            The raw auth response ({"token": ..., "record": ...})
        """
        data = await self.client.send(
            "POST",
            f"{self.base_path}/auth-with-password",
            json_data={"identity": identity, "password": password},
        )
        self.client.auth_store.save(data.get("token", ""), data.get("record"))
        return data

    async def auth_refresh(self) -> dict[str, Any]:
        """Refresh the current token and record."""
        data = await self.client.send("POST", f"{self.base_path}/auth-refresh")
        self.client.auth_store.save(data.get("token", ""), data.get("record"))
        return data

    async def get_list(
        self,
        page: int = 1,
        per_page: int = 30,
        sort: str | None = None,
        filter: str | None = None,
        expand: str | None = None,
    ) -> dict[str, Any]:
        """
        Fetch one page of records.

        Returns:
            {"page", "perPage", "totalItems", "totalPages", "items"}
        """
        params: dict[str, Any] = {"page": page, "perPage": per_page}
        if sort:
            params["sort"] = sort
        if filter:
            params["filter"] = filter
        if expand:
            params["expand"] = expand
        return await self.client.send("GET", f"{self.base_path}/records", params=params)

    async def get_full_list(
        self,
        sort: str | None = None,
        filter: str | None = None,
        expand: str | None = None,
        batch: int = 500,
    ) -> list[dict[str, Any]]:
        """Fetch every matching record, page by page."""
        items: list[dict[str, Any]] = []
        page = 1
        while True:
            result = await self.get_list(page=page, per_page=batch, sort=sort, filter=filter, expand=expand)
            page_items = result.get("items") or []
            items.extend(page_items)
            if len(page_items) < batch:
                return items
            page += 1

    async def create(self, data: dict[str, Any]) -> dict[str, Any]:
        return await self.client.send("POST", f"{self.base_path}/records", json_data=data)


class PocketBaseClient:
    """Async client for one PocketBase instance, scoped to one auth identity."""

    def __init__(
        self,
        base_url: str | None = None,
        auth_store: AuthStore | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.POCKETBASE_URL).rstrip("/")
        self.auth_store = auth_store or AuthStore()
        self.timeout = timeout if timeout is not None else settings.POCKETBASE_TIMEOUT
        self._transport = transport

    def collection(self, name: str) -> RecordService:
        return RecordService(self, name)

    def anonymous_copy(self) -> "PocketBaseClient":
        """A client for the same server with an empty auth store."""
        return PocketBaseClient(base_url=self.base_url, timeout=self.timeout, transport=self._transport)

    def _get_headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.auth_store.token:
            headers["Authorization"] = self.auth_store.token
        return headers

    async def send(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json_data: dict[str, Any] | None = None,
    ) -> Any:
        """
        Make an HTTP request to the PocketBase API.

        Raises:
            PocketBaseError: If the API returns an error or cannot be reached
        """
        url = f"{self.base_url}{path}"

        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout) as client:
                response = await client.request(
                    method=method,
                    url=url,
                    headers=self._get_headers(),
                    params=params,
                    json=json_data,
                )
        except httpx.TimeoutException as e:
            logger.error(f"PocketBase timeout: {method} {path}")
            raise PocketBaseError(
                message="Request timed out while connecting to PocketBase",
                data={"timeout": self.timeout},
            ) from e
        except httpx.RequestError as e:
            logger.error(f"PocketBase network error: {e}")
            raise PocketBaseError(message=f"Network error while connecting to PocketBase: {e}") from e

        if response.status_code in (200, 201, 204):
            if response.status_code == 204 or not response.content:
                return {}
            return response.json()

        message = f"PocketBase API error: {response.status_code}"
        data: dict[str, Any] = {}
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            message = body.get("message") or message
            data = body.get("data") or {}
        elif response.text:
            message = response.text[:500]

        logger.debug(f"PocketBase API error: {response.status_code} - {message}")
        raise PocketBaseError(message=message, status_code=response.status_code, data=data)


class SuperuserRecordWriter:
    """
    Creates records with superuser credentials.

    Superuser requests ignore collection API rules, so records can be written
    on behalf of callers that have no identity of their own. Authentication
    happens on first use and again whenever the token has expired.
    """

    def __init__(self, email: str, password: str, client: PocketBaseClient | None = None):
        self.email = email
        self.password = password
        self.client = client or PocketBaseClient()

    async def _ensure_authenticated(self) -> None:
        if self.client.auth_store.is_valid and self.client.auth_store.is_superuser:
            return
        await self.client.collection(SUPERUSERS_COLLECTION).auth_with_password(self.email, self.password)

    async def create(self, collection: str, data: dict[str, Any]) -> dict[str, Any]:
        await self._ensure_authenticated()
        return await self.client.collection(collection).create(data)


class ClientRecordWriter:
    """Creates records with the caller's own client and collection rules."""

    def __init__(self, client: PocketBaseClient):
        self.client = client

    async def create(self, collection: str, data: dict[str, Any]) -> dict[str, Any]:
        return await self.client.collection(collection).create(data)
