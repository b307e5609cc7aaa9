"""Tests for zone map lifecycle and marker synchronization."""

import threading

import pytest

import config
from map_adapter import MapAssets, MapState, MapStateError, ZoneMapAdapter
from zones import FILTER_OPTIONS, ZONES, Zone, get_zone, status_color


# ------------------------------------------------------
# Lifecycle
# ------------------------------------------------------

def test_new_adapter_is_unloaded():
    adapter = ZoneMapAdapter()
    assert adapter.state is MapState.UNLOADED
    assert adapter.markers == []


def test_mount_starts_loading_and_acquires_assets(adapter, assets):
    assert adapter.state is MapState.LOADING
    assert assets.is_loaded
    assert adapter.markers == []


def test_ready_requires_library_and_container(adapter):
    adapter.notify_library_loaded()
    assert adapter.state is MapState.LOADING

    adapter.attach_container("leaflet-map")
    assert adapter.state is MapState.READY


def test_ready_when_container_arrives_first(adapter):
    adapter.attach_container("leaflet-map")
    assert adapter.state is MapState.LOADING

    adapter.notify_library_loaded()
    assert adapter.state is MapState.READY


def test_missing_container_is_not_an_error(adapter):
    adapter.notify_library_loaded()
    adapter.attach_container(None)
    assert adapter.state is MapState.LOADING


def test_signals_before_mount_initialize_on_mount(assets):
    adapter = ZoneMapAdapter(assets=assets)
    adapter.attach_container("leaflet-map")
    adapter.notify_library_loaded()
    assert adapter.state is MapState.UNLOADED

    adapter.mount()
    assert adapter.state is MapState.READY


def test_mount_twice_raises(adapter):
    with pytest.raises(MapStateError):
        adapter.mount()


def test_initialize_outside_loading_raises(ready_adapter):
    with pytest.raises(MapStateError):
        ready_adapter.initialize()


def test_teardown_releases_assets_and_markers(ready_adapter, assets):
    ready_adapter.teardown()
    assert ready_adapter.state is MapState.TORN_DOWN
    assert not assets.is_loaded
    assert ready_adapter.markers == []

    # Idempotent
    ready_adapter.teardown()
    assert assets.refcount == 0


def test_no_return_to_ready_after_teardown(ready_adapter):
    ready_adapter.teardown()
    with pytest.raises(MapStateError):
        ready_adapter.mount()
    ready_adapter.notify_library_loaded()
    assert ready_adapter.state is MapState.TORN_DOWN


def test_shared_assets_are_reference_counted(clock):
    assets = MapAssets()
    first = ZoneMapAdapter(assets=assets, clock=clock)
    second = ZoneMapAdapter(assets=assets, clock=clock)
    first.mount()
    second.mount()
    assert assets.refcount == 2

    first.teardown()
    assert assets.is_loaded
    second.teardown()
    assert not assets.is_loaded


def test_release_without_acquire_is_ignored():
    assets = MapAssets()
    assets.release()
    assert assets.refcount == 0


def test_assets_refcount_consistent_across_threads():
    assets = MapAssets()
    start = threading.Barrier(8)

    def churn():
        start.wait()
        for _ in range(2000):
            assets.acquire()
            assets.release()

    workers = [threading.Thread(target=churn) for _ in range(8)]
    for worker in workers:
        worker.start()
    for worker in workers:
        worker.join()

    assert assets.refcount == 0
    assert not assets.is_loaded


def test_adapters_on_threads_release_all_assets(clock):
    assets = MapAssets()
    adapters = [ZoneMapAdapter(assets=assets, clock=clock) for _ in range(16)]

    threads = [threading.Thread(target=adapter.mount) for adapter in adapters]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert assets.refcount == 16

    threads = [threading.Thread(target=adapter.teardown) for adapter in adapters]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert assets.refcount == 0


def test_load_timeout_fails_map(adapter, clock):
    clock.advance(config.MAP_LOAD_TIMEOUT_SECONDS - 1)
    assert adapter.check_load_timeout() is False
    assert adapter.state is MapState.LOADING

    clock.advance(1)
    assert adapter.check_load_timeout() is True
    assert adapter.state is MapState.FAILED
    assert "did not load" in adapter.error_message

    # A late library signal does not revive a failed map
    adapter.attach_container("leaflet-map")
    adapter.notify_library_loaded()
    assert adapter.state is MapState.FAILED


def test_timeout_ignored_once_ready(ready_adapter, clock):
    clock.advance(config.MAP_LOAD_TIMEOUT_SECONDS * 10)
    assert ready_adapter.check_load_timeout() is False
    assert ready_adapter.state is MapState.READY


def test_library_load_failure_is_surfaced(adapter):
    adapter.notify_load_failed("network error")
    assert adapter.state is MapState.FAILED
    assert "network error" in adapter.error_message


# ------------------------------------------------------
# Markers
# ------------------------------------------------------

def test_one_marker_per_zone_colored_by_status(ready_adapter):
    markers = ready_adapter.markers
    assert len(markers) == len(ZONES)
    assert [marker.zone for marker in markers] == list(ZONES)
    for marker in markers:
        assert marker.color == status_color(marker.zone.status)
        assert marker.color in marker.icon_html
        assert marker.popup_open is False


def test_popup_shows_name_and_uppercased_status(ready_adapter):
    marker = ready_adapter.marker_for(7)
    assert marker.popup_html == "<b>Rohini</b><br>GREEN Zone"


def test_markers_are_never_recreated(ready_adapter):
    before = {marker.zone.id: id(marker) for marker in ready_adapter.markers}

    ready_adapter.set_filter("red")
    ready_adapter.select_zone(4)
    ready_adapter.set_filter("all")
    ready_adapter.select_zone(None)

    after = {marker.zone.id: id(marker) for marker in ready_adapter.markers}
    assert before == after


# ------------------------------------------------------
# Filter
# ------------------------------------------------------

@pytest.mark.parametrize("status", FILTER_OPTIONS)
def test_filter_sets_full_opacity_iff_matching(ready_adapter, status):
    ready_adapter.set_filter(status)
    for marker in ready_adapter.markers:
        expected_full = status == "all" or marker.zone.status == status
        if expected_full:
            assert marker.opacity == config.FULL_OPACITY
        else:
            assert marker.opacity == config.DIMMED_OPACITY


def test_filter_is_idempotent(ready_adapter):
    ready_adapter.set_filter("green")
    once = [marker.opacity for marker in ready_adapter.markers]
    ready_adapter.set_filter("green")
    twice = [marker.opacity for marker in ready_adapter.markers]
    assert once == twice


def test_yellow_filter_scenario(ready_adapter):
    ready_adapter.set_filter("yellow")
    full = [m for m in ready_adapter.markers if m.opacity == config.FULL_OPACITY]
    dimmed = [m for m in ready_adapter.markers if m.dimmed]
    assert len(full) == 3
    assert len(dimmed) == 5
    assert [z.status for z in ready_adapter.visible_zones()] == ["yellow"] * 3


def test_initial_filter_applied_when_ready(assets, clock):
    adapter = ZoneMapAdapter(assets=assets, clock=clock, filter_status="red")
    adapter.mount()
    adapter.attach_container("leaflet-map")
    adapter.notify_library_loaded()

    full = {m.zone.id for m in adapter.markers if m.opacity == config.FULL_OPACITY}
    assert full == {1, 2, 3}


def test_filter_changed_while_loading_applied_when_ready(adapter):
    adapter.set_filter("green")
    adapter.attach_container("leaflet-map")
    adapter.notify_library_loaded()

    full = {m.zone.id for m in adapter.markers if m.opacity == config.FULL_OPACITY}
    assert full == {7, 8}


def test_invalid_filter_rejected(ready_adapter):
    with pytest.raises(ValueError):
        ready_adapter.set_filter("blue")
    assert ready_adapter.filter_status == "all"


# ------------------------------------------------------
# Selection
# ------------------------------------------------------

def test_select_flies_to_zone_coordinates(ready_adapter):
    zone = get_zone(5)
    ready_adapter.select_zone(zone)

    move = ready_adapter.camera.moves[-1]
    assert (move.lat, move.lng) == (zone.lat, zone.lng)
    assert move.zoom == 14
    assert move.duration == 1
    assert move.animate is True
    assert ready_adapter.camera.center == (zone.lat, zone.lng)
    assert ready_adapter.open_popup_zone_id == 5


def test_select_none_leaves_camera_unchanged(ready_adapter):
    ready_adapter.select_zone(2)
    center = ready_adapter.camera.center
    moves = len(ready_adapter.camera.moves)

    ready_adapter.select_zone(None)

    assert ready_adapter.selected_zone is None
    assert ready_adapter.camera.center == center
    assert len(ready_adapter.camera.moves) == moves


def test_sequential_selection_closes_previous_popup(ready_adapter):
    ready_adapter.select_zone(3)
    ready_adapter.select_zone(7)

    rohini = get_zone(7)
    assert len(ready_adapter.camera.moves) == 2
    assert ready_adapter.camera.center == (rohini.lat, rohini.lng)
    assert ready_adapter.marker_for(7).popup_open is True
    assert ready_adapter.marker_for(3).popup_open is False


def test_marker_click_selects_zone(ready_adapter):
    ready_adapter.handle_marker_click(1)
    assert ready_adapter.selected_zone.name == "Connaught Place"
    assert ready_adapter.open_popup_zone_id == 1


def test_selection_persists_when_filtered_out(ready_adapter):
    ready_adapter.select_zone(7)
    ready_adapter.set_filter("red")

    assert ready_adapter.selected_zone.id == 7
    assert get_zone(7) not in ready_adapter.visible_zones()
    assert ready_adapter.marker_for(7).dimmed


def test_selection_before_ready_applied_on_ready(adapter):
    adapter.select_zone(6)
    assert adapter.camera.moves == []

    adapter.attach_container("leaflet-map")
    adapter.notify_library_loaded()

    saket = get_zone(6)
    assert len(adapter.camera.moves) == 1
    assert adapter.camera.center == (saket.lat, saket.lng)
    assert adapter.open_popup_zone_id == 6


def test_select_unknown_zone_id_raises(ready_adapter):
    with pytest.raises(KeyError):
        ready_adapter.select_zone(42)


def test_select_zone_not_in_dataset_raises(ready_adapter):
    ready_adapter.select_zone(2)
    moves = list(ready_adapter.camera.moves)

    with pytest.raises(KeyError):
        ready_adapter.select_zone(Zone(99, "Nowhere", "red", 0, 0))

    # A lookalike with a known id but different data is not a map zone either
    with pytest.raises(KeyError):
        ready_adapter.select_zone(Zone(1, "Fake Place", "green", 0, 0))

    assert ready_adapter.selected_zone == get_zone(2)
    assert ready_adapter.camera.moves == moves
    assert ready_adapter.open_popup_zone_id == 2


def test_select_zone_outside_adapter_subset_raises(assets, clock):
    adapter = ZoneMapAdapter(zones=ZONES[:2], assets=assets, clock=clock)
    adapter.mount()
    adapter.attach_container("leaflet-map")
    adapter.notify_library_loaded()

    with pytest.raises(KeyError):
        adapter.select_zone(7)
    with pytest.raises(KeyError):
        adapter.handle_marker_click(7)

    assert adapter.selected_zone is None
    assert adapter.camera.moves == []

    adapter.select_zone(ZONES[1])
    assert adapter.selected_zone is ZONES[1]
