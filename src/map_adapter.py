"""
Zone map adapter.

Keeps the imperative marker state of a Leaflet map in step with the two
pieces of declarative UI state on the map page:
- filter status (which zones are emphasized)
- selected zone (camera target and open popup)

The adapter owns a marker registry keyed by zone id. Markers are created
exactly once when the map becomes ready and afterwards only mutated
(opacity, popup open/closed); the registry is never rebuilt on filter or
selection changes.

Lifecycle:
    UNLOADED -> LOADING -> READY -> TORN_DOWN
                   |
                   +-> FAILED (library load failure or timeout)

LOADING -> READY fires only once both the external map library has
signalled it is loaded AND the container exists. Either signal may arrive
first; each one re-checks the join.
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

import config
from zones import (
    FILTER_ALL,
    ZONES,
    Zone,
    matches_filter,
    status_color,
    validate_filter,
)

logger = logging.getLogger(__name__)


class MapState(Enum):
    UNLOADED = "unloaded"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"
    TORN_DOWN = "torn_down"


class MapStateError(RuntimeError):
    """Raised for an operation that is illegal in the adapter's current state."""


# ============================================================================
# External Assets
# ============================================================================

class MapAssets:
    """
    Reference-counted handle on the external map library assets.

    The first acquire() injects the stylesheet and script; the last
    release() removes them. Views that share the library each hold one
    reference. acquire/release may be called from different script threads.
    """

    def __init__(self, css_url: str = config.LEAFLET_CSS_URL, js_url: str = config.LEAFLET_JS_URL):
        self.css_url = css_url
        self.js_url = js_url
        self._refcount = 0
        self._lock = threading.Lock()

    @property
    def refcount(self) -> int:
        return self._refcount

    @property
    def is_loaded(self) -> bool:
        return self._refcount > 0

    @property
    def urls(self) -> Tuple[str, str]:
        return self.css_url, self.js_url

    def acquire(self) -> "MapAssets":
        with self._lock:
            if self._refcount == 0:
                logger.info(f"Injecting map assets: {self.css_url}, {self.js_url}")
            self._refcount += 1
        return self

    def release(self) -> None:
        with self._lock:
            if self._refcount == 0:
                logger.warning("Map assets released more times than acquired")
                return
            self._refcount -= 1
            if self._refcount == 0:
                logger.info("Removed map assets")


# ============================================================================
# Marker Registry Types
# ============================================================================

def marker_icon_html(color: str) -> str:
    """Round colored dot used as the marker icon."""
    return (
        f'<div style="background-color: {color}; width: 16px; height: 16px; '
        f'border-radius: 50%; border: 2px solid white;"></div>'
    )


def marker_popup_html(zone: Zone) -> str:
    return f"<b>{zone.name}</b><br>{zone.status.upper()} Zone"


@dataclass
class MarkerHandle:
    """Live visual state of one zone's marker."""
    zone: Zone
    color: str
    icon_html: str
    popup_html: str
    opacity: float = config.FULL_OPACITY
    popup_open: bool = False

    @classmethod
    def for_zone(cls, zone: Zone) -> "MarkerHandle":
        color = status_color(zone.status)
        return cls(
            zone=zone,
            color=color,
            icon_html=marker_icon_html(color),
            popup_html=marker_popup_html(zone),
        )

    @property
    def dimmed(self) -> bool:
        return self.opacity < config.FULL_OPACITY


@dataclass(frozen=True)
class CameraMove:
    """One animated fly-to."""
    lat: float
    lng: float
    zoom: int
    duration: float
    animate: bool = True


@dataclass
class Camera:
    center: Tuple[float, float] = config.MAP_CENTER
    zoom: int = config.MAP_ZOOM
    moves: List[CameraMove] = field(default_factory=list)

    def fly_to(self, lat: float, lng: float, zoom: int, duration: float) -> CameraMove:
        move = CameraMove(lat=lat, lng=lng, zoom=zoom, duration=duration)
        self.moves.append(move)
        self.center = (lat, lng)
        self.zoom = zoom
        return move


# ============================================================================
# Adapter
# ============================================================================

ZoneRef = Union[Zone, int, None]


class ZoneMapAdapter:
    """
    Bridges filter/selection state to the marker registry and camera.

    Args:
        zones: Zones to place on the map (defaults to the static dataset)
        assets: Shared external library handle
        filter_status: Initial filter (honored when the map becomes ready)
        clock: Monotonic time source, used for the load timeout
        load_timeout: Seconds the adapter may stay LOADING before FAILED
    """

    def __init__(
        self,
        zones: Sequence[Zone] = ZONES,
        assets: Optional[MapAssets] = None,
        filter_status: str = FILTER_ALL,
        clock: Callable[[], float] = time.monotonic,
        load_timeout: float = config.MAP_LOAD_TIMEOUT_SECONDS
    ):
        self.zones = tuple(zones)
        self._zones_by_id = {zone.id: zone for zone in self.zones}
        self.assets = assets if assets is not None else MapAssets()
        self.state = MapState.UNLOADED
        self.camera = Camera()
        self.error_message: Optional[str] = None
        self.container: Any = None

        self._filter_status = validate_filter(filter_status)
        self._selected_zone: Optional[Zone] = None
        self._markers: Dict[int, MarkerHandle] = {}
        self._library_loaded = False
        self._clock = clock
        self._load_timeout = load_timeout
        self._loading_since: Optional[float] = None
        self._holds_assets = False

    # ------------------------------------------------------------------
    # UI state
    # ------------------------------------------------------------------

    @property
    def filter_status(self) -> str:
        return self._filter_status

    @property
    def selected_zone(self) -> Optional[Zone]:
        return self._selected_zone

    @property
    def is_ready(self) -> bool:
        return self.state is MapState.READY

    @property
    def markers(self) -> List[MarkerHandle]:
        """Marker handles in dataset order (empty until READY)."""
        return [self._markers[zone.id] for zone in self.zones if zone.id in self._markers]

    def marker_for(self, zone_id: int) -> MarkerHandle:
        return self._markers[zone_id]

    @property
    def open_popup_zone_id(self) -> Optional[int]:
        for marker in self.markers:
            if marker.popup_open:
                return marker.zone.id
        return None

    def visible_zones(self) -> List[Zone]:
        """Zones matching the current filter, for the zone list."""
        return [zone for zone in self.zones if matches_filter(zone, self._filter_status)]

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def mount(self) -> None:
        """View mounted: start loading the external library."""
        if self.state is not MapState.UNLOADED:
            raise MapStateError(f"Cannot mount a map in state {self.state.value}")

        self.assets.acquire()
        self._holds_assets = True
        self._loading_since = self._clock()
        self.state = MapState.LOADING
        logger.info("Zone map loading")
        self._try_initialize()

    def notify_library_loaded(self) -> None:
        """External library load callback."""
        if self._library_loaded:
            return
        self._library_loaded = True
        self._try_initialize()

    def attach_container(self, container: Any = True) -> None:
        """Register the view container the map is bound to."""
        if container is None:
            return
        self.container = container
        self._try_initialize()

    def notify_load_failed(self, reason: str) -> None:
        """External library failed to load; surface the failure."""
        if self.state is not MapState.LOADING:
            return
        self.state = MapState.FAILED
        self.error_message = f"Map library failed to load: {reason}"
        logger.error(self.error_message)

    def check_load_timeout(self, now: Optional[float] = None) -> bool:
        """
        Fail a map that has been LOADING longer than the load timeout.

        Returns:
            True if the adapter transitioned to FAILED
        """
        if self.state is not MapState.LOADING or self._loading_since is None:
            return False

        now = self._clock() if now is None else now
        elapsed = now - self._loading_since
        if elapsed < self._load_timeout:
            return False

        self.state = MapState.FAILED
        self.error_message = f"Map did not load within {self._load_timeout:g} seconds"
        logger.warning(self.error_message)
        return True

    def _try_initialize(self) -> bool:
        if self.state is not MapState.LOADING:
            return False
        if not (self._library_loaded and self.assets.is_loaded and self.container is not None):
            return False
        self.initialize()
        return True

    def initialize(self) -> None:
        """
        Create one marker per zone and apply the current UI state.

        Raises:
            MapStateError: If called outside LOADING
        """
        if self.state is not MapState.LOADING:
            raise MapStateError(f"Cannot initialize a map in state {self.state.value}")

        markers = {zone.id: MarkerHandle.for_zone(zone) for zone in self.zones}
        self._markers = markers
        self.camera = Camera()
        self.state = MapState.READY
        logger.info(f"Zone map ready with {len(markers)} markers")

        self._apply_filter()
        if self._selected_zone is not None:
            self._apply_selection(self._selected_zone)

    def teardown(self) -> None:
        """View unmounted: release the external assets and discard the map."""
        if self.state is MapState.TORN_DOWN:
            return
        if self._holds_assets:
            self.assets.release()
            self._holds_assets = False
        self._markers = {}
        self.container = None
        self.state = MapState.TORN_DOWN
        logger.info("Zone map torn down")

    # ------------------------------------------------------------------
    # Synchronization
    # ------------------------------------------------------------------

    def set_filter(self, status: str) -> None:
        """Emphasize markers matching status; dim the rest (all stay clickable)."""
        self._filter_status = validate_filter(status)
        logger.debug(f"Filter set to {status}")
        self._apply_filter()

    def _apply_filter(self) -> None:
        for marker in self._markers.values():
            if matches_filter(marker.zone, self._filter_status):
                marker.opacity = config.FULL_OPACITY
            else:
                marker.opacity = config.DIMMED_OPACITY

    def select_zone(self, zone: ZoneRef) -> None:
        """
        Select a zone (or clear the selection with None).

        Selecting a zone flies the camera to it and opens its popup,
        closing any other open popup. Clearing has no camera effect.
        """
        if zone is None:
            logger.debug("Selection cleared")
            self._selected_zone = None
            return

        zone = self._resolve_zone(zone)
        self._selected_zone = zone
        logger.debug(f"Selected zone {zone.id} ({zone.name})")

        if self.is_ready:
            self._apply_selection(zone)

    def _resolve_zone(self, zone: Union[Zone, int]) -> Zone:
        """Return the adapter's own zone for an id or Zone; KeyError if it has no marker."""
        zone_id = zone.id if isinstance(zone, Zone) else zone
        known = self._zones_by_id.get(zone_id)
        if known is None or (isinstance(zone, Zone) and zone != known):
            raise KeyError(f"Zone not on this map: {zone!r}")
        return known

    def handle_marker_click(self, zone_id: int) -> None:
        self.select_zone(zone_id)

    def _apply_selection(self, zone: Zone) -> None:
        self.camera.fly_to(
            zone.lat,
            zone.lng,
            zoom=config.SELECTED_ZOOM,
            duration=config.FLY_DURATION_SECONDS,
        )
        for marker in self._markers.values():
            marker.popup_open = marker.zone.id == zone.id
