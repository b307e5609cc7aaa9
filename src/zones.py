"""
Static Delhi zone dataset.

Handles:
- The fixed table of named zones with risk status and coordinates
- Status colors, risk labels and advisory recommendations
- Filter validation and zone lookup (by id or by map coordinates)

Zones are defined once at import time and never mutated.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

logger = logging.getLogger(__name__)


STATUS_RED = "red"
STATUS_YELLOW = "yellow"
STATUS_GREEN = "green"
FILTER_ALL = "all"

STATUSES = (STATUS_RED, STATUS_YELLOW, STATUS_GREEN)
FILTER_OPTIONS = (FILTER_ALL,) + STATUSES


@dataclass(frozen=True)
class Zone:
    """A named Delhi area with a risk classification."""
    id: int
    name: str
    status: str
    lat: float
    lng: float


ZONES = (
    Zone(1, "Connaught Place", STATUS_RED, 28.6289, 77.2074),
    Zone(2, "Karol Bagh", STATUS_RED, 28.6518, 77.1929),
    Zone(3, "Chandni Chowk", STATUS_RED, 28.6505, 77.2303),
    Zone(4, "Lajpat Nagar", STATUS_YELLOW, 28.5689, 77.2373),
    Zone(5, "Dwarka", STATUS_YELLOW, 28.5921, 77.0460),
    Zone(6, "Saket", STATUS_YELLOW, 28.5237, 77.2111),
    Zone(7, "Rohini", STATUS_GREEN, 28.7410, 77.1154),
    Zone(8, "Janakpuri", STATUS_GREEN, 28.6219, 77.0878),
)

_ZONES_BY_ID = {zone.id: zone for zone in ZONES}

# Marker and swatch colors
STATUS_COLORS = {
    STATUS_RED: "#dc2626",
    STATUS_YELLOW: "#eab308",
    STATUS_GREEN: "#16a34a",
}

# Zone list entry backgrounds
STATUS_BACKGROUNDS = {
    STATUS_RED: "#fee2e2",
    STATUS_YELLOW: "#fef3c7",
    STATUS_GREEN: "#dcfce7",
}

RISK_LEVELS = {
    STATUS_RED: "High Risk",
    STATUS_YELLOW: "Moderate Risk",
    STATUS_GREEN: "Low Risk",
}

FILTER_LABELS = {
    FILTER_ALL: "All",
    STATUS_RED: "Red Zones",
    STATUS_YELLOW: "Yellow Zones",
    STATUS_GREEN: "Green Zones",
}

RECOMMENDATIONS: Dict[str, List[str]] = {
    STATUS_RED: [
        "Avoid non-essential travel to this area",
        "Follow strict social distancing measures",
        "Always wear protective equipment",
        "Monitor symptoms daily if residing in this zone",
    ],
    STATUS_YELLOW: [
        "Limit non-essential travel",
        "Maintain social distancing",
        "Wear masks in public spaces",
        "Follow local health authority guidelines",
    ],
    STATUS_GREEN: [
        "Follow standard precautions",
        "Safe for essential activities",
        "Monitor local updates",
        "Continue practicing good hygiene",
    ],
}


def status_color(status: str) -> str:
    """
    Return the marker color for a zone status.

    Args:
        status: One of 'red', 'yellow', 'green'

    Returns:
        Hex color string

    Raises:
        ValueError: If status is not a known zone status
    """
    try:
        return STATUS_COLORS[status]
    except KeyError:
        raise ValueError(f"Unknown zone status: {status!r}") from None


def get_zone(zone_id: int) -> Zone:
    """Look up a zone by id. Raises KeyError for unknown ids."""
    try:
        return _ZONES_BY_ID[zone_id]
    except KeyError:
        raise KeyError(f"Unknown zone id: {zone_id}") from None


def validate_filter(status: str) -> str:
    """Return status unchanged if it is a valid filter value, else raise ValueError."""
    if status not in FILTER_OPTIONS:
        raise ValueError(
            f"Invalid filter status {status!r}; expected one of {', '.join(FILTER_OPTIONS)}"
        )
    return status


def matches_filter(zone: Zone, status: str) -> bool:
    """True when the zone is emphasized under the given filter."""
    return status == FILTER_ALL or zone.status == status


def filter_zones(status: str, zones: Sequence[Zone] = ZONES) -> List[Zone]:
    """
    Filter zones by status, keeping dataset order.

    Args:
        status: Filter value ('all', 'red', 'yellow', 'green')
        zones: Zones to filter (defaults to the static dataset)

    Returns:
        List of zones matching the filter
    """
    validate_filter(status)
    return [zone for zone in zones if matches_filter(zone, status)]


def find_zone_at(
    lat: float,
    lng: float,
    tolerance: float = 1e-4,
    zones: Sequence[Zone] = ZONES
) -> Optional[Zone]:
    """
    Resolve a map coordinate back to the zone whose marker sits there.

    Marker clicks come back from the map widget as coordinates only, so
    the closest zone within `tolerance` degrees is returned.

    Returns:
        Matching zone or None if nothing lies within tolerance
    """
    best = None
    best_distance = None
    for zone in zones:
        distance = max(abs(zone.lat - lat), abs(zone.lng - lng))
        if distance <= tolerance and (best_distance is None or distance < best_distance):
            best = zone
            best_distance = distance

    if best is None:
        logger.debug(f"No zone found at ({lat}, {lng})")
    return best
