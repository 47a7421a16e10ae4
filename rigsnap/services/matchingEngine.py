"""
Provider Matching Engine
========================

Decides which registered providers should hear about a new roadside
request.

HARD REQUIREMENTS (must pass ALL):
  - Provider has a contact for the channel being dispatched
    (push token for push, email address for email)
  - Provider location resolves to coordinates (see ``locationParser``)
  - Haversine distance <= provider service radius (50 km when unset)
  - Provider offers the requested service type, or lists no services

Service type matching has two rules, selected per channel:
  - ``exact``    -- the request's service type is a member of the list
  - ``contains`` -- some listed service contains it, case-insensitively

Key functions:
  - select_eligible -- full pass over the candidates, returns the matches
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any, Optional

from rigsnap.core.config import settings
from rigsnap.models.notification import NotificationChannel
from rigsnap.models.user import User
from rigsnap.services.geoService import Coordinates, distance_between
from rigsnap.services.locationParser import LocationParser, build_location_parser

logger = logging.getLogger(__name__)


class ServiceMatchRule(str, enum.Enum):
    EXACT = "exact"
    CONTAINS = "contains"


# ---------------------------------------------------------------------------
# Plain-data views of the collaborator records
# ---------------------------------------------------------------------------

@dataclass
class RequestDetails:
    """The fields of a new service request that matching and messaging read."""

    id: str
    requester_id: Optional[str]
    coordinates: Coordinates
    service_type: Optional[str]
    urgency: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    budget: Any = None


@dataclass
class ProviderCandidate:
    """A provider as seen by the matching engine."""

    id: str
    name: Optional[str]
    push_token: Optional[str]
    email: Optional[str]
    location: Any
    service_radius_km: Optional[float]
    services: list[str] = field(default_factory=list)

    @classmethod
    def from_user(cls, user: User) -> "ProviderCandidate":
        return cls(
            id=str(user.id),
            name=user.name,
            push_token=user.push_token,
            email=user.email,
            location=user.location,
            service_radius_km=(
                float(user.service_radius) if user.service_radius is not None else None
            ),
            services=normalise_services(user.services),
        )


@dataclass
class EligibleProvider:
    """A provider that passed all checks, with its distance to the request."""

    provider: ProviderCandidate
    distance_km: float


def normalise_services(raw: Any) -> list[str]:
    """Coerce a stored services value into a list of strings.

    None becomes an empty list and a bare string a one-element list.
    """
    if raw is None:
        return []
    if isinstance(raw, str):
        return [raw] if raw else []
    return [str(item) for item in raw if item is not None]


# ---------------------------------------------------------------------------
# Individual checks
# ---------------------------------------------------------------------------

def has_contact(provider: ProviderCandidate, channel: NotificationChannel) -> bool:
    if channel == NotificationChannel.PUSH:
        return bool(provider.push_token)
    return bool(provider.email)


def effective_radius(
    provider: ProviderCandidate,
    default_radius_km: float | None = None,
) -> float:
    """Provider's own radius, or the configured default when unset."""
    if provider.service_radius_km is not None:
        return float(provider.service_radius_km)
    if default_radius_km is None:
        default_radius_km = settings.default_service_radius_km
    return default_radius_km


def offers_service(
    services: Sequence[str],
    service_type: Optional[str],
    rule: ServiceMatchRule = ServiceMatchRule.EXACT,
) -> bool:
    """True if the provider's services cover ``service_type``.

    An empty service list means the provider takes any job, and a request
    without a service type matches every provider.
    """
    if not service_type or not services:
        return True
    if rule == ServiceMatchRule.CONTAINS:
        wanted = service_type.lower()
        return any(wanted in service.lower() for service in services)
    return service_type in services


def match_rule_for(channel: NotificationChannel) -> ServiceMatchRule:
    """Configured service match rule for a channel."""
    if channel == NotificationChannel.PUSH:
        return ServiceMatchRule(settings.push_service_match)
    return ServiceMatchRule(settings.email_service_match)


# ---------------------------------------------------------------------------
# Full pass
# ---------------------------------------------------------------------------

def _evaluate_candidate(
    request: RequestDetails,
    provider: ProviderCandidate,
    *,
    channel: NotificationChannel,
    parser: LocationParser,
    match_rule: ServiceMatchRule,
    default_radius_km: float | None,
) -> EligibleProvider | None:
    if not has_contact(provider, channel):
        logger.debug("Skipping provider %s: no %s contact", provider.id, channel.value)
        return None

    coords = parser.parse(provider.location)
    if coords is None:
        logger.info("Skipping provider %s: missing or invalid location", provider.id)
        return None

    distance = distance_between(request.coordinates, coords)
    radius = effective_radius(provider, default_radius_km)

    logger.debug(
        "Provider %s: distance %.2f km, service radius %.1f km",
        provider.id,
        distance,
        radius,
    )

    if distance > radius:
        logger.debug("Provider %s is outside service radius", provider.id)
        return None

    if not offers_service(provider.services, request.service_type, match_rule):
        logger.debug(
            "Provider %s doesn't offer service type: %s",
            provider.id,
            request.service_type,
        )
        return None

    return EligibleProvider(provider=provider, distance_km=distance)


def select_eligible(
    request: RequestDetails,
    providers: Iterable[ProviderCandidate],
    *,
    channel: NotificationChannel = NotificationChannel.PUSH,
    parser: LocationParser | None = None,
    match_rule: ServiceMatchRule | None = None,
    default_radius_km: float | None = None,
) -> list[EligibleProvider]:
    """Return the providers that should be notified about ``request``.

    Problems with a single provider record are logged and that provider is
    skipped; they never stop the evaluation of the others. The order of the
    result is not significant.

    Args:
        request: The new service request.
        providers: Candidate providers (typically every provider with a
            contact for ``channel``).
        channel: Channel being dispatched; decides which contact is required.
        parser: Location parser; defaults to the configured chain.
        match_rule: Service match rule; defaults to the channel's setting.
        default_radius_km: Radius for providers without one; defaults to
            the configured value.

    Returns:
        List of EligibleProvider.
    """
    if parser is None:
        parser = build_location_parser()
    if match_rule is None:
        match_rule = match_rule_for(channel)

    eligible: list[EligibleProvider] = []
    for provider in providers:
        try:
            match = _evaluate_candidate(
                request,
                provider,
                channel=channel,
                parser=parser,
                match_rule=match_rule,
                default_radius_km=default_radius_km,
            )
        except Exception as exc:
            logger.warning("Error evaluating provider %s: %s", provider.id, exc)
            continue
        if match is not None:
            eligible.append(match)

    logger.info(
        "Request %s: %d eligible %s recipients",
        request.id,
        len(eligible),
        channel.value,
    )
    return eligible
