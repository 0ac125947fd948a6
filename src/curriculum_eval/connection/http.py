"""TypeDB HTTP API connection."""

import logging
import time
from typing import Any, Optional

import httpx
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from curriculum_eval.config.defaults import DEFAULT_ADDRESS, DEFAULT_PASSWORD, DEFAULT_USERNAME
from curriculum_eval.connection.protocol import QueryResponse, detect_transaction_type
from curriculum_eval.errors import QueryExecutionError
from curriculum_eval.models.enums import TransactionType

logger = logging.getLogger("curriculum_eval.connection.http")

RETRYABLE_ERRORS = (httpx.ConnectTimeout, httpx.ReadTimeout, httpx.ConnectError)


class TypeDBHttpConnection:
    """DatabaseConnection backed by the TypeDB 3.x HTTP API.

    Each query runs in its own one-shot transaction. Write and schema
    transactions are committed.
    """

    def __init__(
        self,
        address: str = DEFAULT_ADDRESS,
        username: str = DEFAULT_USERNAME,
        password: str = DEFAULT_PASSWORD,
        timeout: float = 30.0,
        retry_attempts: int = 3,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the connection.

        Args:
            address: Base URL of the TypeDB HTTP endpoint.
            username: TypeDB username.
            password: TypeDB password.
            timeout: Request timeout in seconds.
            retry_attempts: Attempts for requests that time out or cannot connect.
            transport: Optional httpx transport (used in tests).
        """
        self._address = address.rstrip("/")
        self._username = username
        self._password = password
        self._retry_attempts = retry_attempts
        self._token: Optional[str] = None
        self._client = httpx.AsyncClient(
            base_url=self._address,
            timeout=timeout,
            transport=transport,
        )

    @property
    def address(self) -> str:
        """Base URL of the server."""
        return self._address

    async def __aenter__(self) -> "TypeDBHttpConnection":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def sign_in(self) -> str:
        """Exchange credentials for a bearer token."""
        response = await self._send(
            "POST",
            "/v1/signin",
            json={"username": self._username, "password": self._password},
            authenticated=False,
        )
        token = response.json().get("token")
        if not token:
            raise QueryExecutionError("Sign-in response contained no token", code="AUTH_ERROR")
        self._token = token
        logger.debug(f"Signed in to {self._address} as {self._username}")
        return token

    async def execute_query(
        self,
        database: str,
        query: str,
        transaction_type: Optional[TransactionType] = None,
    ) -> QueryResponse:
        """Execute a query in a one-shot transaction.

        Args:
            database: Target database name.
            query: TypeQL query text.
            transaction_type: Transaction type; detected from the query if omitted.

        Returns:
            QueryResponse normalised to match/fetch/ok data.

        Raises:
            QueryExecutionError: If the server rejects the query.
        """
        tx_type = transaction_type or detect_transaction_type(query)
        payload: dict[str, Any] = {
            "databaseName": database,
            "transactionType": tx_type.value,
            "query": query,
        }
        if tx_type != TransactionType.READ:
            payload["commit"] = True

        start = time.perf_counter()
        response = await self._request("POST", "/v1/query", json=payload)
        elapsed_ms = (time.perf_counter() - start) * 1000

        return QueryResponse(
            query=query,
            transaction_type=tx_type,
            execution_time_ms=elapsed_ms,
            data=self._normalize_answer(response.json() if response.content else {}),
        )

    async def create_database(self, name: str) -> None:
        """Create a database."""
        await self._request("POST", f"/v1/databases/{name}")
        logger.debug(f"Created database {name}")

    async def delete_database(self, name: str) -> None:
        """Delete a database."""
        await self._request("DELETE", f"/v1/databases/{name}")
        logger.debug(f"Deleted database {name}")

    async def list_databases(self) -> list[str]:
        """Names of all databases on the server."""
        response = await self._request("GET", "/v1/databases")
        return [db["name"] for db in response.json().get("databases", [])]

    async def database_exists(self, name: str) -> bool:
        """Check whether a database exists."""
        return name in await self.list_databases()

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Send an authenticated request, signing in again once on 401."""
        if self._token is None:
            await self.sign_in()
        try:
            return await self._send(method, path, **kwargs)
        except QueryExecutionError as e:
            if e.code != "HTTP_401":
                raise
            logger.debug("Token rejected, signing in again")
            await self.sign_in()
            return await self._send(method, path, **kwargs)

    async def _send(
        self,
        method: str,
        path: str,
        authenticated: bool = True,
        **kwargs: Any,
    ) -> httpx.Response:
        """Send a request with retry logic for timeouts and connection errors."""
        headers = {"Authorization": f"Bearer {self._token}"} if authenticated else {}

        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._retry_attempts),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            retry=retry_if_exception_type(RETRYABLE_ERRORS),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        ):
            with attempt:
                try:
                    response = await self._client.request(method, path, headers=headers, **kwargs)
                except httpx.ConnectError:
                    logger.error(
                        f"Cannot connect to TypeDB at {self._address}. "
                        "Make sure the server is running with the HTTP endpoint enabled."
                    )
                    raise

        if response.is_error:
            raise self._to_error(response)
        return response

    @staticmethod
    def _to_error(response: httpx.Response) -> QueryExecutionError:
        """Convert an error response into a QueryExecutionError."""
        try:
            body = response.json()
        except ValueError:
            body = None

        message = response.text or response.reason_phrase
        if isinstance(body, dict):
            message = body.get("message") or message

        return QueryExecutionError(
            message=message,
            code=f"HTTP_{response.status_code}",
            details={"status": response.status_code, "body": body},
        )

    @staticmethod
    def _normalize_answer(body: dict[str, Any]) -> dict[str, Any]:
        """Map a TypeDB answer onto the match/fetch/ok result shape."""
        answer_type = body.get("answerType")
        answers = body.get("answers") or []
        if answer_type == "conceptRows":
            return {"type": "match", "answers": answers}
        if answer_type == "conceptDocuments":
            return {"type": "fetch", "documents": answers}
        return {"type": "ok"}
