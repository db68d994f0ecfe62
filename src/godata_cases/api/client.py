"""Go.Data REST API client.

Go.Data issues an access token from /api/oauth/token; every other endpoint takes
it as the access_token query parameter. Exports (including the case creation
call used here) run as background jobs tracked by export logs:
1. Start: the endpoint returns {"exportLogId": ...}
2. Status: GET /api/export-logs/{id} until statusStep is EXPORT_FINISHED
3. Result: GET /api/export-logs/{id}/download
"""

import json
import logging
from typing import Any, Optional

import httpx

from godata_cases.config import PipelineConfig
from godata_cases.exceptions import (
    AuthenticationError,
    PlatformConnectionError,
    PlatformError,
)

logger = logging.getLogger(__name__)


class GoDataClient:
    """
    Thin synchronous client for the Go.Data endpoints used by the pipeline.
    Errors surface as PlatformError subclasses; nothing is retried.
    """

    TOKEN_PATH = "/api/oauth/token"
    USERS_PATH = "/api/users"
    CASES_PATH_TEMPLATE = "/api/outbreaks/{outbreak_id}/cases"
    CASES_EXPORT_PATH_TEMPLATE = "/api/outbreaks/{outbreak_id}/cases/export"
    EXPORT_LOG_PATH_TEMPLATE = "/api/export-logs/{job_id}"
    DOWNLOAD_PATH_TEMPLATE = "/api/export-logs/{job_id}/download"

    DEFAULT_HEADERS = {
        "User-Agent": "godata-cases/0.1",
        "Accept": "application/json",
    }

    def __init__(
        self,
        url: str,
        username: str,
        password: str,
        *,
        timeout: float = 60.0,
        client: Optional[httpx.Client] = None,
    ):
        """
        Args:
            url: Base URL of the Go.Data instance (e.g. http://localhost:3000)
            username: Login email address
            password: Login password
            timeout: Per-request timeout in seconds
            client: Optional httpx client (base_url must already be set)
        """
        self._client = client or httpx.Client(
            base_url=url.rstrip("/"),
            timeout=timeout,
            follow_redirects=True,
            headers=self.DEFAULT_HEADERS,
        )
        self.username = username
        self._password = password
        self._token: Optional[str] = None

    @classmethod
    def from_config(
        cls,
        config: PipelineConfig,
        client: Optional[httpx.Client] = None,
    ) -> "GoDataClient":
        return cls(
            config.url,
            config.username,
            config.password.get_secret_value(),
            timeout=config.http_timeout,
            client=client,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "GoDataClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _send(
        self,
        method: str,
        path: str,
        *,
        authenticated: bool = True,
        params: Optional[dict[str, Any]] = None,
        **kwargs: Any,
    ) -> httpx.Response:
        """Send one request; raise PlatformError on transport failure or non-2xx."""
        params = dict(params or {})
        if authenticated:
            params["access_token"] = self.access_token()

        try:
            resp = self._client.request(method, path, params=params, **kwargs)
        except (httpx.ConnectError, httpx.ConnectTimeout) as e:
            raise PlatformConnectionError(
                f"Could not connect to Go.Data for {method} {path}: {e}",
                request_sent=False,
            ) from e
        except httpx.RequestError as e:
            raise PlatformConnectionError(
                f"{method} {path} failed: {e}",
                request_sent=True,
            ) from e

        try:
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise PlatformError(
                f"{method} {path} returned HTTP {resp.status_code}",
                status_code=resp.status_code,
            ) from e
        return resp

    @staticmethod
    def _json(resp: httpx.Response, path: str) -> Any:
        try:
            return resp.json()
        except ValueError as e:
            raise PlatformError(
                f"Malformed JSON from {path}",
                status_code=resp.status_code,
            ) from e

    def access_token(self) -> str:
        """Return the cached access token, logging in on first use."""
        if self._token is None:
            self._token = self._login()
        return self._token

    def _login(self) -> str:
        try:
            resp = self._send(
                "POST",
                self.TOKEN_PATH,
                authenticated=False,
                json={"username": self.username, "password": self._password},
            )
        except PlatformConnectionError:
            raise
        except PlatformError as e:
            raise AuthenticationError(
                f"Error getting access token for {self.username}: {e}",
                status_code=e.status_code,
            ) from e

        data = self._json(resp, self.TOKEN_PATH)
        token = data.get("access_token") if isinstance(data, dict) else None
        if not token:
            raise AuthenticationError("Token response did not contain an access_token.")
        logger.debug("Obtained access token for %s", self.username)
        return token

    def get_active_outbreak(self) -> str:
        """ID of the active outbreak of the logged-in user."""
        data = self._json(self._send("GET", self.USERS_PATH), self.USERS_PATH)
        wanted = self.username.strip().lower()
        for user in data or []:
            if (user.get("email") or "").strip().lower() == wanted:
                outbreak_id = user.get("activeOutbreakId")
                if not outbreak_id:
                    raise PlatformError(f"User {self.username} has no active outbreak.")
                return outbreak_id
        raise PlatformError(f"User {self.username} not found in Go.Data users.")

    def resolve_outbreak(self, outbreak: str) -> str:
        """'active' resolves to the user's active outbreak; anything else is an outbreak ID."""
        if outbreak.strip().lower() == "active":
            outbreak_id = self.get_active_outbreak()
            logger.info("Using active outbreak %s", outbreak_id)
            return outbreak_id
        return outbreak

    def create_cases(self, outbreak_id: str, body: str) -> Any:
        """POST a serialized JSON array of cases. Not idempotent."""
        path = self.CASES_PATH_TEMPLATE.format(outbreak_id=outbreak_id)
        resp = self._send(
            "POST",
            path,
            content=body.encode("utf-8"),
            headers={"Content-Type": "application/json"},
        )
        return self._json(resp, path)

    def export_cases(self, outbreak_id: str, where: dict[str, Any]) -> Any:
        """Start a JSON export of the outbreak's cases matching a loopback `where` filter."""
        path = self.CASES_EXPORT_PATH_TEMPLATE.format(outbreak_id=outbreak_id)
        params = {
            "filter": json.dumps({"where": where}, separators=(",", ":")),
            "type": "json",
            "useDbColumns": "true",
            "dontTranslateValues": "true",
            "jsonReplaceUndefinedWithNull": "true",
        }
        return self._json(self._send("GET", path, params=params), path)

    def get_export_status(self, job_id: str) -> dict[str, Any]:
        path = self.EXPORT_LOG_PATH_TEMPLATE.format(job_id=job_id)
        data = self._json(self._send("GET", path), path)
        if not isinstance(data, dict):
            raise PlatformError(f"Unexpected export log response for {job_id}")
        return data

    def download_export(self, job_id: str) -> Any:
        """Result of a finished export job; an empty body is an empty result."""
        path = self.DOWNLOAD_PATH_TEMPLATE.format(job_id=job_id)
        resp = self._send("GET", path)
        if not resp.content.strip():
            return []
        return self._json(resp, path)
