"""
Location Parser
===============

Normalises the heterogeneous location values stored on provider profiles
into ``Coordinates``. Profiles were filled in by hand, by live GPS capture
in the app, and by legacy seed data, so a single column may hold any of:

  - a mapping such as ``{"latitude": 31.52, "longitude": 74.35}``
  - the same mapping serialised as JSON text
  - a ``"lat,lng"`` string
  - a free-text place name such as ``"Lahore Auto Shop"``

Parsing is an ordered chain of strategies; the first one that produces
coordinates wins. Place names are resolved through a keyword lookup table
(configured, not hardcoded) and finally a single default coordinate. A value
that none of the strategies can use yields ``None`` so that the caller can
skip the provider instead of failing the whole dispatch.
"""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Callable, Mapping
from decimal import Decimal
from typing import Any, Optional

from rigsnap.core.config import settings
from rigsnap.services.geoService import Coordinates

logger = logging.getLogger(__name__)

LocationStrategy = Callable[[Any], Optional[Coordinates]]

_LATITUDE_KEYS = ("latitude", "lat")
_LONGITUDE_KEYS = ("longitude", "lng", "lon")


class LocationParseError(Exception):
    """Raised by a strategy to stop the chain: the value was recognised but
    cannot be turned into coordinates."""


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _as_degree(value: Any) -> float | None:
    """Return ``value`` as a finite float, or None if it is not numeric."""
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        return None
    try:
        number = float(value)
    except OverflowError:
        return None
    if not math.isfinite(number):
        return None
    return number


def _first_present(data: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


def coordinates_from_mapping(data: Mapping[str, Any]) -> Coordinates | None:
    """Extract numeric latitude/longitude fields from a mapping."""
    latitude = _as_degree(_first_present(data, _LATITUDE_KEYS))
    longitude = _as_degree(_first_present(data, _LONGITUDE_KEYS))
    if latitude is None or longitude is None:
        return None
    return Coordinates(latitude=latitude, longitude=longitude)


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

def parse_mapping(raw: Any) -> Coordinates | None:
    if not isinstance(raw, Mapping):
        return None
    coords = coordinates_from_mapping(raw)
    if coords is None:
        raise LocationParseError("mapping has no numeric latitude/longitude")
    return coords


def parse_json_string(raw: Any) -> Coordinates | None:
    if not isinstance(raw, str):
        return None
    try:
        decoded = json.loads(raw)
    except ValueError:
        return None
    except RecursionError:
        raise LocationParseError("JSON location is nested too deeply")
    if isinstance(decoded, Mapping):
        coords = coordinates_from_mapping(decoded)
        if coords is not None:
            return coords
    raise LocationParseError(f"JSON location is not a coordinate object: {raw!r}")


def parse_delimited_string(raw: Any) -> Coordinates | None:
    if not isinstance(raw, str):
        return None
    parts = raw.split(",")
    if len(parts) != 2:
        return None
    try:
        latitude = float(parts[0].strip())
        longitude = float(parts[1].strip())
    except ValueError:
        return None
    if not (math.isfinite(latitude) and math.isfinite(longitude)):
        return None
    return Coordinates(latitude=latitude, longitude=longitude)


class PlaceNameResolver:
    """Keyword lookup for free-text place names.

    Keywords are matched case-insensitively as substrings, in insertion
    order. When nothing matches, ``default`` is returned (if configured).
    """

    def __init__(
        self,
        keywords: Mapping[str, Coordinates],
        default: Coordinates | None = None,
    ) -> None:
        self.keywords = {key.lower(): coords for key, coords in keywords.items()}
        self.default = default

    def __call__(self, raw: Any) -> Coordinates | None:
        if not isinstance(raw, str):
            return None
        lowered = raw.lower()
        for keyword, coords in self.keywords.items():
            if keyword in lowered:
                logger.debug("Resolved place name %r via keyword %r", raw, keyword)
                return coords
        if self.default is not None:
            logger.debug("Using default coordinates for place name %r", raw)
        return self.default


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

class LocationParser:
    """Run the strategy chain over a raw stored location."""

    def __init__(self, strategies: list[LocationStrategy]) -> None:
        self.strategies = strategies

    def parse(self, raw: Any) -> Coordinates | None:
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            return None
        for strategy in self.strategies:
            try:
                coords = strategy(raw)
            except LocationParseError as exc:
                logger.info("Unusable location value: %s", exc)
                return None
            if coords is not None:
                return coords
        return None


def build_location_parser(
    fallback_cities: Mapping[str, tuple[float, float]] | None = None,
    default_coordinates: tuple[float, float] | None = None,
) -> LocationParser:
    """Build the standard parser chain from configuration.

    Falls back to ``settings`` for any argument left as None.
    """
    if fallback_cities is None:
        fallback_cities = settings.fallback_city_coordinates
    if default_coordinates is None:
        default_coordinates = settings.default_provider_coordinates

    resolver = PlaceNameResolver(
        {name: Coordinates(*pair) for name, pair in fallback_cities.items()},
        default=Coordinates(*default_coordinates),
    )
    return LocationParser(
        [parse_mapping, parse_json_string, parse_delimited_string, resolver]
    )
