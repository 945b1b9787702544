"""Client for the remote habits API.

Completion and deletion calls never raise for transport or HTTP failures;
they return a RemoteResult whose failure variant carries the classified error.
"""

import logging
from typing import Any

import httpx

from src.core.config import constants, settings
from src.core.errors import RemoteAPIError, classify_remote_error
from src.domain.habit import Habit, PendingCompletion
from src.models.service_models import RemoteResult


logger = logging.getLogger(__name__)


def _extract_completion_id(data: Any) -> str | None:  # noqa: ANN401
    """Pull the completion id out of a create response.

    The API answers either with the record ({"id": 12, ...}) or wrapped
    ({"data": {"id": 12, ...}}); numeric ids are normalised to strings.
    """
    if not isinstance(data, dict):
        return None
    if isinstance(data.get("data"), dict):
        data = data["data"]
    raw_id = data.get("id")
    if raw_id is None:
        return None
    return str(raw_id)


def _parse_habit(item: dict[str, Any]) -> Habit:
    """Build a Habit from an API record, normalising numeric ids to strings."""
    data = {**item, "id": str(item["id"])}
    if data.get("todays_completion_id") is not None:
        data["todays_completion_id"] = str(data["todays_completion_id"])
    return Habit.model_validate(data)


class HabitsAPIClient:
    """Async wrapper around the remote habits and completions endpoints."""

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: API base URL, defaults to settings.api_base_url
            token: Bearer token, defaults to settings.api_token
            transport: Optional httpx transport (used to stub the API in tests)
        """
        self._base_url = (base_url or settings.api_base_url).rstrip("/")
        self._token = token if token is not None else settings.api_token
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    async def _request(self, method: str, path: str, *, json: dict[str, Any] | None = None) -> httpx.Response:
        url = f"{self._base_url}{path}"
        try:
            async with httpx.AsyncClient(
                timeout=constants.API_TIMEOUT_SECONDS,
                transport=self._transport,
            ) as client:
                response = await client.request(method, url, json=json, headers=self._headers())
        except httpx.HTTPError as e:
            raise RemoteAPIError(f"{method} {path} failed: {e}") from e

        if not response.is_success:
            raise RemoteAPIError(
                f"{method} {path} returned {response.status_code}: {response.text}",
                status_code=response.status_code,
            )
        return response

    @staticmethod
    def _failure(operation: str, error: Exception, **context: object) -> RemoteResult:
        category = classify_remote_error(error)
        logger.warning(
            "%s failed (%s): %s",
            operation,
            category.value,
            error,
            extra={"operation": operation, **context},
        )
        return RemoteResult(success=False, error=str(error), error_category=category)

    async def create_completion(self, record: PendingCompletion) -> RemoteResult:
        """Create a remote completion for a habit period."""
        try:
            response = await self._request("POST", "/completions", json=record.to_remote_payload())
            completion_id = _extract_completion_id(response.json() if response.content else None)
        except (RemoteAPIError, ValueError) as e:
            return self._failure("create_completion", e, habit_id=record.habit_id, date=record.date)

        logger.info(
            "Created remote completion",
            extra={"habit_id": record.habit_id, "date": record.date, "completion_id": completion_id},
        )
        return RemoteResult(success=True, completion_id=completion_id)

    async def delete_completion(self, completion_id: str) -> RemoteResult:
        """Delete a remote completion by id."""
        try:
            await self._request("DELETE", f"/completions/{completion_id}")
        except RemoteAPIError as e:
            return self._failure("delete_completion", e, completion_id=completion_id)

        logger.info("Deleted remote completion", extra={"completion_id": completion_id})
        return RemoteResult(success=True)

    async def delete_habit(self, habit_id: str) -> RemoteResult:
        """Delete a habit remotely."""
        try:
            await self._request("DELETE", f"/habits/{habit_id}")
        except RemoteAPIError as e:
            return self._failure("delete_habit", e, habit_id=habit_id)

        logger.info("Deleted remote habit", extra={"habit_id": habit_id})
        return RemoteResult(success=True)

    async def list_habits(self) -> list[Habit]:
        """Fetch the user's habits to populate the local projection.

        Raises:
            RemoteAPIError: If the list cannot be fetched or parsed
        """
        response = await self._request("GET", "/habits")
        try:
            payload = response.json()
            items = payload.get("data", []) if isinstance(payload, dict) else payload
            habits = [_parse_habit(item) for item in items]
        except (ValueError, KeyError, AttributeError) as e:
            raise RemoteAPIError(f"GET /habits returned an unexpected payload: {e}") from e
        logger.info("Fetched remote habits", extra={"count": len(habits)})
        return habits


# Global API client instance
api_client = HabitsAPIClient()
