"""AppSync GraphQL client.

Supports the two authorization modes the backend uses:
- ``api_key``: public reads, ``x-api-key`` header
- ``user_pool``: owner-scoped reads/writes, Cognito access token in the
  ``Authorization`` header

Usage:
    with AppSyncClient(endpoint, api_key=key) as client:
        data = client.execute(LIST_PROJECTS)
        client.set_access_token(tokens["AccessToken"])
        client.execute(CREATE_PROJECT, {"input": {...}}, auth_mode="user_pool")
"""
from __future__ import annotations

import logging
from typing import Any, Literal

import httpx

logger = logging.getLogger(__name__)

AuthMode = Literal["api_key", "user_pool"]


class GraphQLError(Exception):
    """Raised on transport failures or a response carrying ``errors``."""

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None, status_code: int | None = None):
        super().__init__(message)
        self.errors = errors or []
        self.status_code = status_code


class AppSyncClient:
    """Synchronous client for an AppSync GraphQL endpoint.

    Args:
        endpoint: GraphQL URL from the Amplify configuration
        api_key: API key for public operations
        timeout: Request timeout in seconds
        transport: Optional httpx transport (tests use ``httpx.MockTransport``)
    """

    def __init__(
        self,
        endpoint: str,
        api_key: str = "",
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        if not endpoint:
            raise ValueError("GraphQL endpoint is required")
        self.endpoint = endpoint
        self.api_key = api_key
        self._access_token: str | None = None
        self._client = httpx.Client(timeout=timeout, transport=transport)

    def set_access_token(self, access_token: str | None) -> None:
        """Set (or clear) the token used for ``user_pool`` requests."""
        self._access_token = access_token

    def _headers(self, auth_mode: AuthMode) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if auth_mode == "api_key":
            if not self.api_key:
                raise GraphQLError("API key auth requested but no API key is configured")
            headers["x-api-key"] = self.api_key
        elif auth_mode == "user_pool":
            if not self._access_token:
                raise GraphQLError("User pool auth requested but no user is signed in")
            headers["Authorization"] = self._access_token
        else:
            raise ValueError(f"Unknown auth mode: {auth_mode}")
        return headers

    def execute(
        self,
        query: str,
        variables: dict[str, Any] | None = None,
        auth_mode: AuthMode = "api_key",
    ) -> dict[str, Any]:
        """Run a query or mutation and return its ``data`` object.

        Raises:
            GraphQLError: on HTTP errors or when the response lists ``errors``
        """
        payload: dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = variables

        try:
            response = self._client.post(self.endpoint, json=payload, headers=self._headers(auth_mode))
        except httpx.HTTPError as e:
            raise GraphQLError(f"Request failed: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = {}

        errors = body.get("errors") if isinstance(body, dict) else None
        if response.status_code >= 400 or errors:
            message = _first_error_message(errors) or f"HTTP {response.status_code}"
            logger.debug(f"GraphQL error ({auth_mode}): {message}")
            raise GraphQLError(message, errors=errors, status_code=response.status_code)

        if not isinstance(body, dict):
            raise GraphQLError("Unexpected response body", status_code=response.status_code)
        return body.get("data") or {}

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> AppSyncClient:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def _first_error_message(errors: list[dict[str, Any]] | None) -> str:
    if not errors:
        return ""
    first = errors[0]
    message = first.get("message", "") if isinstance(first, dict) else str(first)
    error_type = first.get("errorType") if isinstance(first, dict) else None
    return f"{error_type}: {message}" if error_type else message
