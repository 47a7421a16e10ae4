"""
Provider preview routes.

  GET /api/v1/providers/nearby  -- providers that would be notified for a
                                   request at the given point
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Query

from rigsnap.api.deps import DBSession
from rigsnap.api.schemas.provider import NearbyProviderOut, NearbyProvidersResponse
from rigsnap.models.notification import NotificationChannel
from rigsnap.models.request import ServiceType
from rigsnap.services import matchingEngine, providerService
from rigsnap.services.geoService import Coordinates
from rigsnap.services.matchingEngine import RequestDetails

router = APIRouter(prefix="/providers", tags=["Providers"])


@router.get(
    "/nearby",
    response_model=NearbyProvidersResponse,
    summary="Preview eligible providers around a point",
    description=(
        "Runs the same eligibility filter as the notification trigger "
        "(contact, location, service radius, service type) and returns the "
        "matching providers, closest first."
    ),
)
async def nearby_providers(
    db: DBSession,
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    service_type: Optional[ServiceType] = Query(default=None),
    channel: NotificationChannel = Query(default=NotificationChannel.PUSH),
) -> NearbyProvidersResponse:
    candidates = await providerService.list_providers_for_channel(db, channel)
    preview = RequestDetails(
        id="preview",
        requester_id=None,
        coordinates=Coordinates(latitude=lat, longitude=lng),
        service_type=service_type.value if service_type else None,
    )
    eligible = matchingEngine.select_eligible(preview, candidates, channel=channel)
    eligible.sort(key=lambda match: match.distance_km)

    return NearbyProvidersResponse(
        latitude=lat,
        longitude=lng,
        service_type=preview.service_type,
        channel=channel.value,
        total_candidates_evaluated=len(candidates),
        total_eligible=len(eligible),
        providers=[
            NearbyProviderOut(
                id=match.provider.id,
                name=match.provider.name,
                distance_km=round(match.distance_km, 2),
                service_radius_km=matchingEngine.effective_radius(match.provider),
                services=match.provider.services,
            )
            for match in eligible
        ],
    )
