"""
Configuration for the Delhi driver dashboard.

Paths, endpoint settings, map defaults and chart palettes live here as
module-level constants so the app and scripts share a single source.
"""

import logging
import os
from pathlib import Path

# Paths
PROJECT_ROOT = Path(__file__).parent.parent
DATA_CACHE_DIR = PROJECT_ROOT / "data_cache"
EXPORT_DIR = DATA_CACHE_DIR / "maps"

# Report API
REPORT_API_BASE_URL = os.environ.get("REPORT_API_URL", "http://localhost:3000")
REPORT_ENDPOINT = "/report"
REQUEST_TIMEOUT_SECONDS = 10

# Map defaults (Delhi)
MAP_CENTER = (28.6139, 77.2090)
MAP_ZOOM = 11
SELECTED_ZOOM = 14
FLY_DURATION_SECONDS = 1.0
FULL_OPACITY = 1.0
DIMMED_OPACITY = 0.2
MAP_HEIGHT = 420
MAP_LOAD_TIMEOUT_SECONDS = 15

TILE_URL = "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png"
TILE_ATTRIBUTION = (
    '&copy; <a href="https://www.openstreetmap.org/copyright">OpenStreetMap</a> contributors'
)

# Leaflet assets injected for the lifetime of the map view
LEAFLET_CSS_URL = "https://cdnjs.cloudflare.com/ajax/libs/leaflet/1.9.4/leaflet.css"
LEAFLET_JS_URL = "https://cdnjs.cloudflare.com/ajax/libs/leaflet/1.9.4/leaflet.js"

# Charts
CHART_COLORS = ["#0088FE", "#00C49F", "#FFBB28", "#FF8042", "#8884D8"]
EXPENSE_CATEGORY_COLORS = {
    "petrol": "#F59E0B",
    "toll": "#8B5CF6",
    "maintenance": "#EC4899",
    "misc": "#6B7280",
}
EXPENSE_CATEGORY_LABELS = {
    "petrol": "Petrol",
    "toll": "Toll",
    "maintenance": "Maintenance",
    "misc": "Miscellaneous",
}

# Logging
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(level: int = logging.INFO) -> None:
    """Configure root logging for app and script entry points."""
    logging.basicConfig(level=level, format=LOG_FORMAT)
