import json
import logging
from typing import Any

import httpx
from arcade_tdk import ToolContext

from arcade_filemaker.constants import (
    DATA_API_DATABASES_PATH,
    DATA_API_PATH,
    DATABASE_SECRET,
    FM_CODE_INVALID_TOKEN,
    FM_CODE_NO_RECORDS_MATCH,
    HOST_SECRET,
    NOT_FOUND_CODES,
    PASSWORD_SECRET,
    USERNAME_SECRET,
)
from arcade_filemaker.exceptions import (
    FileMakerAuthError,
    FileMakerNotFoundError,
    FileMakerRemoteError,
)
from arcade_filemaker.models import FileMakerMessage, FileMakerRecord, FoundSet
from arcade_filemaker.settings import get_settings

logger = logging.getLogger(__name__)

AUTH_FAILURE_MESSAGES = {
    401: "Authentication failed: invalid username or password",
    403: "Access denied: the account does not have access to this database",
    404: "Database not found or not accessible",
}


def _parse_messages(response: httpx.Response) -> list[FileMakerMessage]:
    try:
        payload = response.json()
    except ValueError:
        return []
    if not isinstance(payload, dict):
        return []
    return [
        FileMakerMessage(code=str(msg.get("code", "")), message=str(msg.get("message", "")))
        for msg in payload.get("messages") or []
        if isinstance(msg, dict)
    ]


def _build_sort(sort: list[dict[str, str]] | None) -> list[dict[str, str]] | None:
    if not sort:
        return None
    return [{"fieldName": s["fieldName"], "sortOrder": s.get("sortOrder", "ascend")} for s in sort]


class FileMakerClient:
    """Async client for the FileMaker Data API.

    Holds one session token. Requests authenticate lazily, and a rejected token is
    renewed once before the request is retried.
    """

    def __init__(
        self,
        host: str,
        database: str,
        username: str,
        password: str,
        timeout_seconds: float | None = None,
        verify_ssl: bool | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        settings = get_settings()
        self.host = host.rstrip("/")
        if not self.host.startswith(("http://", "https://")):
            self.host = f"https://{self.host}"
        self.database = database
        self.username = username
        self._password = password
        self.timeout_seconds = timeout_seconds or settings.request_timeout_seconds
        self.token: str | None = None
        self._http = httpx.AsyncClient(
            base_url=f"{self.host}/{DATA_API_DATABASES_PATH}/{database}",
            headers={"Content-Type": "application/json"},
            timeout=self.timeout_seconds,
            verify=settings.verify_ssl if verify_ssl is None else verify_ssl,
            transport=transport,
        )

    @classmethod
    def from_context(cls, context: ToolContext) -> "FileMakerClient":
        return cls(
            host=context.get_secret(HOST_SECRET),
            database=context.get_secret(DATABASE_SECRET),
            username=context.get_secret(USERNAME_SECRET),
            password=context.get_secret(PASSWORD_SECRET),
        )

    async def __aenter__(self) -> "FileMakerClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        try:
            await self.logout()
        finally:
            await self._http.aclose()

    # ----------------------------
    # Session handling
    # ----------------------------

    async def authenticate(self) -> str:
        try:
            response = await self._http.post(
                "/sessions", json={}, auth=(self.username, self._password)
            )
        except httpx.TimeoutException as e:
            raise FileMakerRemoteError(
                f"Timed out connecting to FileMaker Server at {self.host}", status_code=504
            ) from e
        except httpx.RequestError as e:
            raise FileMakerRemoteError(
                f"Cannot reach FileMaker Server at {self.host}: {e}", status_code=503
            ) from e

        if response.status_code >= 400:
            message = AUTH_FAILURE_MESSAGES.get(
                response.status_code,
                f"Authentication failed with status code {response.status_code}",
            )
            raise FileMakerAuthError(
                message, status_code=response.status_code, messages=_parse_messages(response)
            )

        token = response.json().get("response", {}).get("token") or response.headers.get(
            "X-FM-Data-Access-Token"
        )
        if not token:
            raise FileMakerAuthError("No token received from FileMaker", status_code=502)

        self.token = token
        logger.debug("Opened FileMaker Data API session for database '%s'", self.database)
        return token

    async def logout(self) -> None:
        if not self.token:
            return
        token, self.token = self.token, None
        try:
            await self._http.delete(f"/sessions/{token}")
        except httpx.HTTPError as e:
            logger.warning("Failed to close FileMaker session: %s", e)

    # ----------------------------
    # Request primitives
    # ----------------------------

    async def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        headers = {"Authorization": f"Bearer {self.token}"}
        try:
            return await self._http.request(method, path, headers=headers, **kwargs)
        except httpx.TimeoutException as e:
            raise FileMakerRemoteError(
                f"Request timeout - {method} {path} took too long", status_code=504
            ) from e
        except httpx.RequestError as e:
            raise FileMakerRemoteError(
                f"Network error on {method} {path}: {e}", status_code=503
            ) from e

    async def request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        if not self.token:
            await self.authenticate()

        response = await self._send(method, path, **kwargs)
        if self._is_token_rejected(response):
            logger.info("FileMaker session expired, re-authenticating")
            await self.authenticate()
            response = await self._send(method, path, **kwargs)

        self._raise_for_status(method, path, response)
        payload: dict[str, Any] = response.json()
        return payload.get("response") or {}

    @staticmethod
    def _is_token_rejected(response: httpx.Response) -> bool:
        codes = {msg.code for msg in _parse_messages(response)}
        if FM_CODE_INVALID_TOKEN in codes:
            return True
        # "No records match" is also reported with HTTP 401
        return response.status_code == 401 and FM_CODE_NO_RECORDS_MATCH not in codes

    @staticmethod
    def _raise_for_status(method: str, path: str, response: httpx.Response) -> None:
        if response.status_code < 400:
            return

        messages = _parse_messages(response)
        codes = {msg.code for msg in messages}
        message = f"{method} {path} failed with status code {response.status_code}"

        if FM_CODE_NO_RECORDS_MATCH in codes:
            raise FileMakerRemoteError(message, status_code=response.status_code, messages=messages)
        if response.status_code == 401 or FM_CODE_INVALID_TOKEN in codes:
            raise FileMakerAuthError(message, status_code=response.status_code, messages=messages)
        if response.status_code == 404 or codes & NOT_FOUND_CODES:
            raise FileMakerNotFoundError(
                message, status_code=response.status_code, messages=messages
            )
        raise FileMakerRemoteError(message, status_code=response.status_code, messages=messages)

    # ----------------------------
    # Record operations
    # ----------------------------

    async def create_record(self, layout: str, field_data: dict[str, Any]) -> str:
        response = await self.request(
            "POST", f"/layouts/{layout}/records", json={"fieldData": field_data}
        )
        return str(response.get("recordId", ""))

    async def update_record(self, layout: str, record_id: str, field_data: dict[str, Any]) -> str:
        response = await self.request(
            "PATCH", f"/layouts/{layout}/records/{record_id}", json={"fieldData": field_data}
        )
        return str(response.get("modId", ""))

    async def delete_record(self, layout: str, record_id: str) -> None:
        await self.request("DELETE", f"/layouts/{layout}/records/{record_id}")

    async def get_record(self, layout: str, record_id: str) -> FileMakerRecord:
        response = await self.request("GET", f"/layouts/{layout}/records/{record_id}")
        data = response.get("data") or []
        if not data:
            raise FileMakerNotFoundError(
                f"Record {record_id} not found on layout '{layout}'", status_code=404
            )
        return FileMakerRecord.from_api(data[0])

    async def find_records(
        self,
        layout: str,
        query: list[dict[str, Any]] | dict[str, Any] | None = None,
        limit: int = 100,
        offset: int = 0,
        sort: list[dict[str, str]] | None = None,
    ) -> FoundSet:
        """Find records on a layout.

        `offset` is the number of records to skip; the Data API's own offset is
        1-based. Without a query the layout's records are listed in order.
        """
        sort = _build_sort(sort)
        kwargs: dict[str, Any]
        if query:
            body: dict[str, Any] = {
                "query": query if isinstance(query, list) else [query],
                "limit": limit,
                "offset": offset + 1,
            }
            if sort:
                body["sort"] = sort
            method, path, kwargs = "POST", f"/layouts/{layout}/_find", {"json": body}
        else:
            params: dict[str, Any] = {"_limit": limit, "_offset": offset + 1}
            if sort:
                params["_sort"] = json.dumps(sort, separators=(",", ":"))
            method, path, kwargs = "GET", f"/layouts/{layout}/records", {"params": params}

        try:
            response = await self.request(method, path, **kwargs)
        except FileMakerRemoteError as e:
            # Finds and listings over an empty set report code 401
            if FM_CODE_NO_RECORDS_MATCH in e.codes:
                return FoundSet()
            raise

        records = [FileMakerRecord.from_api(item) for item in response.get("data") or []]
        data_info = response.get("dataInfo") or {}
        return FoundSet(
            records=records,
            found_count=int(data_info.get("foundCount", len(records))),
            returned_count=int(data_info.get("returnedCount", len(records))),
        )

    async def find_one(self, layout: str, query: dict[str, Any]) -> FileMakerRecord | None:
        found = await self.find_records(layout, query=query, limit=1)
        return found.records[0] if found.records else None

    async def get_product_info(self) -> dict[str, Any]:
        response = await self._http.get(f"{self.host}/{DATA_API_PATH}/productInfo")
        self._raise_for_status("GET", "/productInfo", response)
        info: dict[str, Any] = response.json().get("response", {}).get("productInfo", {})
        return info
