"""
Pydantic v2 schemas for the nearby-provider preview endpoint.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class NearbyProviderOut(BaseModel):
    id: str
    name: Optional[str] = None
    distance_km: float
    service_radius_km: float
    services: list[str]


class NearbyProvidersResponse(BaseModel):
    latitude: float
    longitude: float
    service_type: Optional[str] = None
    channel: str
    total_candidates_evaluated: int
    total_eligible: int
    providers: list[NearbyProviderOut]
