import logging
from typing import Any

import httpx
from pydantic import ValidationError

from phimgg.core.errors import APIError
from phimgg.core.settings import Settings
from phimgg.models.ophim import MovieDetail, MovieListPage

logger = logging.getLogger(__name__)

_SUCCESS_STATUSES = ("success", True)


class OphimClient:
    """Thin async client for the Ophim list and detail endpoints.

    Retries and pacing are applied by the caller, so every method performs
    exactly one HTTP request.
    """

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None):
        self.settings = settings
        self._client = httpx.AsyncClient(
            base_url=settings.ophim_base_url,
            timeout=settings.ophim_timeout_seconds,
            headers={"User-Agent": settings.ophim_user_agent, "Accept": "application/json"},
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def _get_json(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        try:
            response = await self._client.get(path, params=params)
        except httpx.TransportError as exc:
            raise APIError(
                "ophim_upstream_unavailable",
                "Ophim upstream is temporarily unavailable",
                status_code=502,
                details={"path": path, "error_type": exc.__class__.__name__},
            ) from exc

        if response.status_code >= 400:
            raise APIError(
                "ophim_request_failed",
                f"Ophim API returned {response.status_code}",
                status_code=502,
                details={"path": path, "status_code": response.status_code, "response": response.text[:200]},
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise APIError(
                "ophim_invalid_payload",
                "Ophim API returned a non-JSON body",
                status_code=502,
                details={"path": path},
            ) from exc

        if not isinstance(payload, dict):
            raise APIError("ophim_invalid_payload", "Empty response from Ophim API", status_code=502, details={"path": path})

        if not any(payload.get("status") == ok for ok in _SUCCESS_STATUSES):
            raise APIError(
                "ophim_bad_status",
                f"Ophim API error: {payload.get('msg') or payload.get('message') or 'Unknown error'}",
                status_code=502,
                details={"path": path, "status": payload.get("status")},
            )
        return payload

    async def fetch_movie_list(self, page: int = 1) -> MovieListPage:
        path = "/danh-sach/phim-moi"
        payload = await self._get_json(path, params={"page": page})
        data = payload.get("data") or {}
        try:
            listing = MovieListPage(
                items=data.get("items") or [],
                pagination=(data.get("params") or {}).get("pagination") or {},
            )
        except ValidationError as exc:
            raise APIError(
                "ophim_invalid_payload",
                "Ophim movie list payload did not parse",
                status_code=502,
                details={"path": path, "page": page, "errors": exc.error_count()},
            ) from exc

        logger.debug(
            "Fetched Ophim movie list",
            extra={"page": page, "items": len(listing.items), "total_pages": listing.pagination.total_pages},
        )
        return listing

    async def fetch_movie_detail(self, slug: str) -> MovieDetail:
        path = f"/phim/{slug}"
        payload = await self._get_json(path)
        data = payload.get("data") or {}
        if not data.get("item"):
            raise APIError(
                "ophim_invalid_payload",
                "Response missing data.item object",
                status_code=502,
                details={"path": path, "slug": slug},
            )
        try:
            return MovieDetail.model_validate(data)
        except ValidationError as exc:
            raise APIError(
                "ophim_invalid_payload",
                "Ophim movie detail payload did not parse",
                status_code=502,
                details={"path": path, "slug": slug, "errors": exc.error_count()},
            ) from exc
