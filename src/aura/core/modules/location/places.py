"""Places text search over HTTP."""

from typing import Any

import httpx
import structlog

from aura.core.modules.location.models import Place

logger = structlog.get_logger(__name__)

SEARCH_RADIUS_M = 400


class PlacesClient:
    """Thin async client for the Google Places text search endpoint."""

    def __init__(
        self, api_key: str, url: str, timeout: float = 10.0, transport: httpx.AsyncBaseTransport | None = None
    ) -> None:
        self._api_key = api_key
        self._url = url
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def text_search(self, query: str, lat: float, lng: float) -> list[Place]:
        """Return the places matching ``query`` near a point.

        Raises:
            httpx.HTTPError: The request failed or returned an error status.
        """
        params: dict[str, Any] = {
            "query": query,
            "radius": SEARCH_RADIUS_M,
            "location": f"{lat},{lng}",
            "key": self._api_key,
        }
        response = await self._client.get(self._url, params=params)
        response.raise_for_status()
        payload = response.json()

        places = [
            Place(
                name=item["name"],
                address=item.get("formatted_address", ""),
                lat=item["geometry"]["location"]["lat"],
                lng=item["geometry"]["location"]["lng"],
            )
            for item in payload.get("results", [])
        ]
        logger.debug("places_search_done", query=query, status=payload.get("status"), count=len(places))
        return places

    async def aclose(self) -> None:
        await self._client.aclose()
