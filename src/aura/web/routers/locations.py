from typing import Annotated

from fastapi import APIRouter, Query

from aura.core.modules.location.models import LocationSearchResult
from aura.web.deps import AppDep, AuthTokenDep
from aura.web.openapi import ErrorResponse

router = APIRouter(tags=["locations"])


@router.get(
    "/locations/search",
    summary="Search locations",
    description=(
        "Find places near a point by name. Stored locations are returned when there are enough good "
        "matches, otherwise the places API is queried and its results are stored."
    ),
    operation_id="searchLocations",
    responses={
        200: {"description": "Matching locations, best first"},
        400: {"model": ErrorResponse, "description": "Malformed location or empty query"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def search_locations(
    app: AppDep,
    auth_token: AuthTokenDep,
    location: Annotated[str, Query(description="Point to search around, 'lat,lng' with up to 2 decimals")],
    q: Annotated[str, Query(min_length=1, description="Name to search for")],
) -> LocationSearchResult:
    return await app.search_locations(auth_token, location, q)
