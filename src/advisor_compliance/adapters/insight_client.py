"""Remote insight service client.

Sends the compliance snapshot to the insight-generation service and validates
its response. The service is expected to answer ``{"insights": [...]}`` where
each insight carries type, title, description, confidence and action.

Every failure mode (connection error, timeout, non-2xx status, invalid JSON,
shape deviation) is raised as InsightServiceError so the insight generator
can fall back to its heuristics.
"""

from typing import Any, Literal

import httpx
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from advisor_compliance.errors import InsightServiceError
from advisor_compliance.observability import get_logger

logger = get_logger(__name__)

_DEFAULT_TIMEOUT_SECONDS = 30.0


class RemoteInsight(BaseModel):
    """One insight as returned by the remote service."""

    type: Literal["alert", "suggestion", "risk", "trend"]
    title: str = Field(min_length=1)
    description: str
    confidence: int = Field(ge=0, le=100)
    action: str


class RemoteInsightPayload(BaseModel):
    """Top-level response body of the remote service."""

    insights: list[RemoteInsight]


class InsightClient:
    """Async client for the remote insight-generation service.

    One request per call; there is no retry. Slow responses are cut off by
    the httpx timeout and reported as failures.

    Args:
        service_url: Endpoint accepting the snapshot as a JSON POST body.
        api_key: Optional bearer token.
        timeout_seconds: Request timeout.
        transport: Optional httpx transport, used by tests.
    """

    def __init__(
        self,
        service_url: str,
        api_key: str = "",
        timeout_seconds: float = _DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._service_url = service_url
        self._api_key = api_key
        self._timeout_seconds = timeout_seconds
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    async def fetch_insights(self, payload: dict[str, Any]) -> list[dict[str, Any]]:
        """Request insights for a snapshot.

        Args:
            payload: ``{"rules": [...], "checks": [...], "cases": [...], "documents": [...]}``.

        Returns:
            Validated insight dicts in the order the service returned them.

        Raises:
            InsightServiceError: On any transport, status or payload failure.
        """
        logger.debug(
            "Requesting remote insights",
            url=self._service_url,
            rules=len(payload.get("rules", [])),
            checks=len(payload.get("checks", [])),
        )

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.post(self._service_url, json=payload, headers=self._headers())
        except httpx.TimeoutException as exc:
            raise InsightServiceError(
                f"Insight service timed out after {self._timeout_seconds}s"
            ) from exc
        except httpx.RequestError as exc:
            raise InsightServiceError(f"Insight service request error: {exc}") from exc
        except httpx.InvalidURL as exc:
            raise InsightServiceError(f"Insight service URL is invalid: {exc}") from exc
        except httpx.HTTPError as exc:
            raise InsightServiceError(f"Insight service HTTP error: {exc}") from exc

        if not response.is_success:
            raise InsightServiceError(
                f"Insight service returned status {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise InsightServiceError("Insight service returned a non-JSON body") from exc

        try:
            parsed = RemoteInsightPayload.model_validate(body)
        except PydanticValidationError as exc:
            raise InsightServiceError(
                f"Insight service payload is malformed: {exc.error_count()} validation error(s)"
            ) from exc

        return [insight.model_dump() for insight in parsed.insights]
