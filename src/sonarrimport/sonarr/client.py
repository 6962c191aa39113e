"""Async client for the Sonarr v3 REST API.

Wraps the handful of endpoints the importer needs. Every request is retried
with exponential back-off on connection errors, timeouts, 429 and 5xx
responses; other 4xx responses fail immediately.
"""

import asyncio
import logging
from http import HTTPStatus
from types import TracebackType
from typing import Any, Dict, List, Optional, Sequence, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from sonarrimport.__about__ import __version__
from sonarrimport.models.core import ImportMode
from sonarrimport.sonarr.models import (
    Command,
    Episode,
    Language,
    QualityDefinition,
    Series,
)

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v3"
DOWNLOAD_CLIENT_ID = "SonarrAutoImporter"
DEFAULT_TIMEOUT = 30.0
MAX_BACKOFF = 4.0

ModelT = TypeVar("ModelT", bound=BaseModel)


class SonarrError(Exception):
    """Raised when Sonarr rejects a request."""

    def __init__(
        self, message: str, status_code: int | None = None, body: str = ""
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class SonarrUnavailableError(SonarrError):
    """Raised when Sonarr is unreachable or keeps failing after retries."""


def _is_retryable(status_code: int) -> bool:
    return (
        status_code == HTTPStatus.TOO_MANY_REQUESTS
        or status_code >= HTTPStatus.INTERNAL_SERVER_ERROR
    )


def _parse_list(model: Type[ModelT], data: Any, endpoint: str) -> List[ModelT]:
    """Validate a JSON array from *endpoint* into *model* instances."""
    if data is None:
        return []
    if not isinstance(data, list):
        raise SonarrError(
            f"Unexpected response from {endpoint}: expected a list",
            body=str(data)[:500],
        )
    try:
        return [model.model_validate(item) for item in data]
    except ValidationError as exc:
        raise SonarrError(
            f"Malformed {model.__name__} in response from {endpoint}: "
            f"{exc.error_count()} validation error(s)",
            body=str(exc),
        ) from exc


class SonarrClient:
    """Async Sonarr API client. Use as ``async with SonarrClient(...)``."""

    def __init__(
        self,
        url: str,
        api_key: str,
        *,
        retries: int = 3,
        backoff: float = 0.5,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialise the client.

        Args:
            url: Sonarr base URL, e.g. ``http://localhost:8989``.
            api_key: API key sent as ``X-Api-Key``.
            retries: Total attempts per request (at least 1).
            backoff: Initial delay between attempts in seconds; doubles after
                each failure, capped at 4 seconds.
            timeout: Per-request timeout in seconds.
            transport: Optional httpx transport (used by tests).
        """
        self.url = url.rstrip("/")
        self.retries = max(1, retries)
        self.backoff = backoff
        self._client = httpx.AsyncClient(
            base_url=self.url,
            headers={
                "X-Api-Key": api_key,
                "Content-Type": "application/json",
                "User-Agent": f"sonarrimport/{__version__}",
            },
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "SonarrClient":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, endpoint: str, **kwargs: Any) -> Any:
        """Send a request with retries and return the decoded JSON body."""
        path = f"{API_PREFIX}/{endpoint.lstrip('/')}"
        delay = self.backoff
        last_error = ""
        for attempt in range(1, self.retries + 1):
            try:
                response = await self._client.request(method, path, **kwargs)
            except httpx.TransportError as exc:
                last_error = f"{type(exc).__name__}: {exc}"
            else:
                if response.is_success:
                    if not response.content:
                        return None
                    try:
                        return response.json()
                    except ValueError as exc:
                        raise SonarrError(
                            f"API request {method} {path} returned a non-JSON "
                            f"response (status {response.status_code})",
                            status_code=response.status_code,
                            body=response.text[:500],
                        ) from exc
                if not _is_retryable(response.status_code):
                    raise SonarrError(
                        f"API request {method} {path} failed with status "
                        f"{response.status_code}",
                        status_code=response.status_code,
                        body=response.text,
                    )
                last_error = f"status {response.status_code}"

            if attempt < self.retries:
                logger.warning(
                    "%s %s failed (%s); retrying in %.1fs (attempt %d/%d)",
                    method,
                    path,
                    last_error,
                    delay,
                    attempt,
                    self.retries,
                )
                await asyncio.sleep(delay)
                delay = min(delay * 2, MAX_BACKOFF)

        raise SonarrUnavailableError(
            f"Sonarr unavailable at {self.url}: {method} {path} failed after "
            f"{self.retries} attempt(s) ({last_error})"
        )

    async def get_system_status(self) -> Dict[str, Any]:
        return await self._request("GET", "system/status")

    async def get_series(self) -> List[Series]:
        """Return every series in the library."""
        data = await self._request("GET", "series")
        return _parse_list(Series, data, "series")

    async def get_episodes(self, series_id: int) -> List[Episode]:
        """Return all episodes of *series_id*."""
        data = await self._request("GET", "episode", params={"seriesId": series_id})
        return _parse_list(Episode, data, "episode")

    async def get_quality_definitions(self) -> List[QualityDefinition]:
        data = await self._request("GET", "qualitydefinition")
        return _parse_list(QualityDefinition, data, "qualitydefinition")

    async def get_languages(self) -> List[Language]:
        data = await self._request("GET", "language")
        return _parse_list(Language, data, "language")

    async def post_command(self, payload: Dict[str, Any]) -> Command:
        logger.debug("API Payload: %s", payload)
        data = await self._request("POST", "command", json=payload)
        if isinstance(data, dict):
            try:
                return Command.model_validate(data)
            except ValidationError as exc:
                raise SonarrError(
                    f"Malformed command response for {payload['name']}",
                    body=str(data)[:500],
                ) from exc
        return Command(name=payload["name"])

    async def downloaded_episodes_scan(
        self, path: str, import_mode: ImportMode
    ) -> Command:
        """Ask Sonarr to scan and import *path* using its own parser."""
        return await self.post_command(
            {
                "name": "DownloadedEpisodesScan",
                "path": path,
                "importMode": import_mode.value,
                "downloadClientId": DOWNLOAD_CLIENT_ID,
            }
        )

    async def manual_import(
        self, files: Sequence[Dict[str, Any]], import_mode: ImportMode
    ) -> Command:
        """Import *files* (see :func:`manual_import_file`) into known series."""
        return await self.post_command(
            {
                "name": "ManualImport",
                "files": list(files),
                "importMode": import_mode.value,
            }
        )


def manual_import_file(
    path: str,
    series_id: int,
    episode_ids: Sequence[int],
    quality: QualityDefinition | None,
    language: Language | None,
    *,
    revision: int = 1,
    release_group: str | None = None,
) -> Dict[str, Any]:
    """Build one entry of a ManualImport command's ``files`` list."""
    entry: Dict[str, Any] = {
        "path": path,
        "seriesId": series_id,
        "episodeIds": list(episode_ids),
        "releaseGroup": release_group or "",
    }
    if quality is not None:
        entry["quality"] = {
            "quality": quality.quality.model_dump(by_alias=True, exclude_none=True),
            "revision": {"version": revision, "real": 0, "isRepack": False},
        }
    if language is not None:
        entry["languages"] = [language.model_dump(by_alias=True)]
    return entry
