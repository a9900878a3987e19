"""
HTTP Implementation of the Remote Transaction Service

Talks JSON over HTTP using httpx's async client:
- GET    /transactions        -> 200 [Transaction, ...]
- GET    /transactions/{id}   -> 200 Transaction | 404
- POST   /transactions        -> 201/200 Transaction or {"id": N, "message": ...}
- DELETE /transactions/{id}   -> 200/204 (404 also counts as deleted)
- GET    /health              -> 200 {"status": "healthy"}

Every httpx transport failure becomes a NetworkError; every unexpected
status or unparseable body becomes a ServiceError.
"""

from typing import Any, Optional

import httpx
import pydantic
import structlog

from fintrack.config import RemoteServiceSettings
from fintrack.models.transaction import Transaction, TransactionDraft
from fintrack.services.remote.interface import (
    NetworkError,
    ServiceError,
    TransactionServiceInterface,
)


logger = structlog.get_logger(__name__)


class HttpTransactionService(TransactionServiceInterface):
    """
    Remote service client over HTTP.

    The underlying httpx.AsyncClient is created lazily on first use so
    it binds to whichever event loop actually runs the calls.
    """

    def __init__(
        self,
        settings: Optional[RemoteServiceSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._settings = settings or RemoteServiceSettings()
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def base_url(self) -> str:
        return self._settings.base_url

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._settings.base_url + "/",
                timeout=self._settings.timeout_seconds,
                transport=self._transport,
                headers={"Accept": "application/json"},
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Send a single request, translating encoding and transport failures."""
        client = self._get_client()
        try:
            request = client.build_request(method, path, **kwargs)
        except (TypeError, ValueError) as e:
            raise ServiceError(f"Could not encode {method} {path} request: {e}") from e

        try:
            return await client.send(request)
        except httpx.TransportError as e:
            raise NetworkError(f"{method} {path} failed: {e!r}") from e

    def _json(self, response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise ServiceError(
                f"Malformed JSON from {response.request.method} {response.request.url}",
                status_code=response.status_code,
            ) from e

    def _ensure_success(self, response: httpx.Response, *accepted: int) -> None:
        if response.status_code not in accepted:
            raise ServiceError(
                f"{response.request.method} {response.request.url} returned "
                f"{response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )

    def _parse_transaction(self, data: Any, response: httpx.Response) -> Transaction:
        try:
            return Transaction.model_validate(data)
        except pydantic.ValidationError as e:
            raise ServiceError(
                f"Malformed transaction in response: {e.error_count()} errors",
                status_code=response.status_code,
            ) from e

    async def list(self) -> list[Transaction]:
        response = await self._request("GET", "transactions")
        self._ensure_success(response, 200)

        data = self._json(response)
        if not isinstance(data, list):
            raise ServiceError(
                f"Expected a JSON array of transactions, got {type(data).__name__}",
                status_code=response.status_code,
            )

        transactions = [self._parse_transaction(item, response) for item in data]
        ids = [t.id for t in transactions]
        if len(ids) != len(set(ids)):
            raise ServiceError("Duplicate transaction ids in response", status_code=response.status_code)

        logger.debug("remote_list_ok", count=len(transactions))
        return transactions

    async def get(self, transaction_id: int) -> Optional[Transaction]:
        response = await self._request("GET", f"transactions/{transaction_id}")
        if response.status_code == 404:
            return None
        self._ensure_success(response, 200)
        return self._parse_transaction(self._json(response), response)

    async def create(self, draft: TransactionDraft) -> Transaction:
        response = await self._request(
            "POST",
            "transactions",
            json=draft.model_dump(mode="json"),
        )
        self._ensure_success(response, 200, 201)

        data = self._json(response)
        if not isinstance(data, dict) or "id" not in data:
            raise ServiceError(
                "Create response does not contain an id",
                status_code=response.status_code,
            )

        # Some servers only echo {"id": N, "message": ...}
        if {"description", "amount", "type", "date"} <= data.keys():
            created = self._parse_transaction(data, response)
        else:
            try:
                created = Transaction.from_draft(draft, int(data["id"]))
            except (TypeError, ValueError) as e:
                raise ServiceError(
                    f"Invalid id in create response: {data['id']!r}",
                    status_code=response.status_code,
                ) from e

        logger.debug("remote_create_ok", transaction_id=created.id)
        return created

    async def delete(self, transaction_id: int) -> None:
        response = await self._request("DELETE", f"transactions/{transaction_id}")
        if response.status_code == 404:
            logger.debug("remote_delete_absent", transaction_id=transaction_id)
            return
        self._ensure_success(response, 200, 202, 204)

    async def health(self) -> bool:
        try:
            response = await self._request("GET", "health")
        except NetworkError as e:
            logger.info("remote_health_unreachable", error=str(e))
            return False

        if response.status_code != 200:
            return False
        try:
            data = response.json()
        except ValueError:
            return False
        return isinstance(data, dict) and data.get("status") == "healthy"
