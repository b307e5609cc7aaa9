"""
folium rendering for the zone map.

Turns the adapter's marker registry and camera into a folium (Leaflet)
map, and turns streamlit-folium click results back into zones.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import folium

import config
from map_adapter import ZoneMapAdapter
from zones import Zone, find_zone_at

logger = logging.getLogger(__name__)


def build_zone_map(adapter: ZoneMapAdapter) -> folium.Map:
    """
    Build a folium map reflecting the adapter's current state.

    The map is centered on the adapter camera. Markers are drawn only
    once the adapter is READY; each carries the registry's opacity and
    popup state.

    Args:
        adapter: Zone map adapter

    Returns:
        folium.Map ready for st_folium or saving to HTML
    """
    fmap = folium.Map(
        location=list(adapter.camera.center),
        zoom_start=adapter.camera.zoom,
        tiles=None,
    )
    folium.TileLayer(
        tiles=config.TILE_URL,
        attr=config.TILE_ATTRIBUTION,
        name="OpenStreetMap",
    ).add_to(fmap)

    for marker in adapter.markers:
        zone = marker.zone
        icon = folium.DivIcon(
            html=marker.icon_html,
            icon_size=(20, 20),
            icon_anchor=(10, 10),
            class_name="custom-div-icon",
        )
        folium.Marker(
            location=[zone.lat, zone.lng],
            icon=icon,
            popup=folium.Popup(marker.popup_html, show=marker.popup_open),
            tooltip=zone.name,
            opacity=marker.opacity,
        ).add_to(fmap)

    return fmap


def frontend_reported(result: Optional[Dict[str, Any]]) -> bool:
    """
    True once the browser-side map has drawn and reported its bounds.

    st_folium returns a default result (bounds with null corners) before
    its frontend has rendered, so a non-empty result alone does not mean
    Leaflet loaded.
    """
    if not result:
        return False

    bounds = result.get("bounds")
    if not isinstance(bounds, dict):
        return False

    for corner in ("_southWest", "_northEast"):
        point = bounds.get(corner)
        if not isinstance(point, dict):
            return False
        if point.get("lat") is None or point.get("lng") is None:
            return False
    return True


def zone_from_click(result: Optional[Dict[str, Any]]) -> Optional[Zone]:
    """
    Resolve the marker clicked in a st_folium result to its zone.

    Args:
        result: Return value of st_folium (may be None)

    Returns:
        Clicked zone or None if nothing (or no marker) was clicked
    """
    if not result:
        return None

    clicked = result.get("last_object_clicked")
    if not clicked:
        return None

    try:
        lat = float(clicked["lat"])
        lng = float(clicked["lng"])
    except (KeyError, TypeError, ValueError):
        logger.warning(f"Ignoring malformed map click: {clicked!r}")
        return None

    return find_zone_at(lat, lng)


def export_zone_map(adapter: ZoneMapAdapter, output_path: Union[str, Path]) -> Path:
    """
    Save the rendered zone map as standalone HTML.

    Returns:
        Path of the written file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    fmap = build_zone_map(adapter)
    fmap.save(str(output_path))

    logger.info(f"✅ Exported zone map with {len(adapter.markers)} markers: {output_path}")
    return output_path
