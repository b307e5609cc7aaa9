#!/usr/bin/env python3
"""
Export the Delhi zone map to a standalone HTML file.

Usage:
    python scripts/export_zone_map.py [filter] [zone_id]

    filter   all | red | yellow | green (default: all)
    zone_id  optional zone to select (map centered on it, popup open)
"""

import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

import config
from map_adapter import ZoneMapAdapter
from map_render import export_zone_map
from zones import FILTER_ALL, FILTER_OPTIONS, get_zone


def build_ready_adapter(filter_status: str, zone_id=None) -> ZoneMapAdapter:
    """Run an adapter through its lifecycle without a browser."""
    adapter = ZoneMapAdapter(filter_status=filter_status)
    adapter.mount()
    adapter.attach_container("export")
    adapter.notify_library_loaded()

    if zone_id is not None:
        adapter.select_zone(get_zone(zone_id))

    return adapter


def main(argv) -> int:
    filter_status = argv[1] if len(argv) > 1 else FILTER_ALL
    if filter_status not in FILTER_OPTIONS:
        print(f"❌ Unknown filter: {filter_status} (expected one of {', '.join(FILTER_OPTIONS)})")
        return 1

    zone_id = None
    if len(argv) > 2:
        try:
            zone_id = int(argv[2])
            get_zone(zone_id)
        except (ValueError, KeyError):
            print(f"❌ Unknown zone id: {argv[2]}")
            return 1

    print("=" * 60)
    print("EXPORTING DELHI ZONE MAP")
    print("=" * 60)

    adapter = build_ready_adapter(filter_status, zone_id)
    try:
        suffix = "" if filter_status == FILTER_ALL else f"_{filter_status}"
        output_path = config.EXPORT_DIR / f"delhi_zones{suffix}.html"
        export_zone_map(adapter, output_path)
    finally:
        adapter.teardown()

    emphasized = len(adapter.visible_zones())
    print(f"  ✅ {emphasized}/{len(adapter.zones)} zones emphasized ({filter_status})")
    print(f"  ✅ Saved {output_path}")
    return 0


if __name__ == "__main__":
    config.configure_logging()
    sys.exit(main(sys.argv))
