"""
Delhi Driver Dashboard Streamlit Application

A two-page dashboard:
1. Financial Report - date-wise earnings/expense report fetched from the report API
2. Zone Map - Delhi zone risk map with status filter and zone details

Design Principles:
- Pages are plain render functions selected from the sidebar (?page=map for the map)
- Report fetching and map state live in st.session_state per browser session
- The zone map adapter owns marker state; folium/streamlit-folium only draws it
"""

import streamlit as st
from pathlib import Path
import logging
import sys
import time
from typing import Optional

from streamlit_folium import st_folium

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import config
from charts import (
    build_distribution_pie,
    build_expense_category_chart,
    earnings_frame,
    expense_category_frame,
    expenses_frame,
    format_inr,
    summary_cards,
)
from map_adapter import MapAssets, MapState, ZoneMapAdapter
from map_render import build_zone_map, frontend_reported, zone_from_click
from report_client import ReportController, STATUS_ERROR, STATUS_SUCCESS
from zones import (
    FILTER_ALL,
    FILTER_LABELS,
    FILTER_OPTIONS,
    RECOMMENDATIONS,
    RISK_LEVELS,
    STATUS_BACKGROUNDS,
    STATUS_COLORS,
    STATUS_RED,
    STATUS_YELLOW,
    Zone,
)

# Configure logging
config.configure_logging()
logger = logging.getLogger(__name__)

# Pages and their routes
PAGE_REPORT = "Financial Report"
PAGE_MAP = "Zone Map"
PAGE_ROUTES = {PAGE_REPORT: "/", PAGE_MAP: "/map"}

# Session state keys
REPORT_CONTROLLER_KEY = "report_controller"
MAP_ADAPTER_KEY = "zone_map_adapter"
MAP_ASSETS_KEY = "zone_map_assets"
MAP_FILTER_KEY = "zone_filter"
MAP_LAST_CLICK_KEY = "zone_map_last_click"
MAP_CONTAINER_ID = "leaflet-map"
MAP_POLL_SECONDS = 1


# ============================================================================
# Session Helpers
# ============================================================================

def get_map_assets() -> MapAssets:
    """Leaflet assets for this browser session's map views."""
    if MAP_ASSETS_KEY not in st.session_state:
        st.session_state[MAP_ASSETS_KEY] = MapAssets()
    return st.session_state[MAP_ASSETS_KEY]


def get_report_controller() -> ReportController:
    if REPORT_CONTROLLER_KEY not in st.session_state:
        st.session_state[REPORT_CONTROLLER_KEY] = ReportController()
    return st.session_state[REPORT_CONTROLLER_KEY]


def get_zone_map_adapter() -> ZoneMapAdapter:
    """Return this session's map adapter, mounting a fresh one when needed."""
    adapter = st.session_state.get(MAP_ADAPTER_KEY)
    if adapter is None or adapter.state is MapState.TORN_DOWN:
        adapter = ZoneMapAdapter(
            assets=get_map_assets(),
            filter_status=st.session_state.get(MAP_FILTER_KEY, FILTER_ALL),
        )
        adapter.mount()
        st.session_state[MAP_ADAPTER_KEY] = adapter
        st.session_state.pop(MAP_LAST_CLICK_KEY, None)
    return adapter


def teardown_zone_map() -> None:
    """Release the map view when navigating away from it."""
    adapter = st.session_state.pop(MAP_ADAPTER_KEY, None)
    if adapter is not None:
        adapter.teardown()
    st.session_state.pop(MAP_LAST_CLICK_KEY, None)


def select_zone(zone_id: Optional[int]) -> None:
    """Widget callback: select a zone by id, or clear the selection."""
    adapter = st.session_state.get(MAP_ADAPTER_KEY)
    if adapter is not None:
        adapter.select_zone(zone_id)


def current_page() -> str:
    """Page named by the ?page= query parameter (report page by default)."""
    if st.query_params.get("page") == "map":
        return PAGE_MAP
    return PAGE_REPORT


# ============================================================================
# Page 1: Financial Report
# ============================================================================

def render_report_dashboard():
    """
    Financial Report Page

    Displays:
    - Date form that fetches the report
    - Summary cards (earnings, expenses, balance)
    - Earnings and expense distribution pies
    - Earnings and expense breakdown tables
    - Category-wise expense trend
    """
    st.title("💰 Financial Report")

    controller = get_report_controller()

    with st.form("report_form"):
        selected_date = st.date_input("Report date", value=None, format="YYYY-MM-DD")
        submitted = st.form_submit_button("Fetch Report")

    if submitted:
        if selected_date is None:
            st.warning("Please choose a date.")
        else:
            with st.spinner("Loading report..."):
                controller.load(selected_date)

    state = controller.state

    if state.status == STATUS_ERROR:
        st.error(state.message)
    elif state.status == STATUS_SUCCESS and state.report is not None:
        render_report(state.report)

    # ========================================
    # Category-wise Expenses (static history)
    # ========================================
    st.header("📈 Category-wise Expenses")
    st.plotly_chart(
        build_expense_category_chart(expense_category_frame()),
        use_container_width=True,
    )


def render_report(report):
    """Render summary cards, distribution charts and breakdown tables."""
    # ========================================
    # Section 1: Summary
    # ========================================
    for column, (label, value) in zip(st.columns(3), summary_cards(report)):
        with column:
            st.metric(label=label, value=value)

    earnings = earnings_frame(report)
    expenses = expenses_frame(report)

    # ========================================
    # Section 2: Distribution
    # ========================================
    col1, col2 = st.columns(2)

    with col1:
        st.plotly_chart(
            build_distribution_pie(earnings, "Earnings Distribution", color_offset=0),
            use_container_width=True,
        )

    with col2:
        st.plotly_chart(
            build_distribution_pie(expenses, "Expenses Distribution", color_offset=2),
            use_container_width=True,
        )

    # ========================================
    # Section 3: Breakdown Tables
    # ========================================
    col1, col2 = st.columns(2)

    with col1:
        st.subheader("Earnings Breakdown")
        render_breakdown_table(earnings, "Platform")

    with col2:
        st.subheader("Expenses Breakdown")
        render_breakdown_table(expenses, "Category")


def render_breakdown_table(frame, label_title: str):
    table = frame[["label", "amount", "percentage_label"]].copy()
    table["amount"] = table["amount"].map(format_inr)

    st.dataframe(
        table,
        column_config={
            "label": st.column_config.TextColumn(label_title),
            "amount": st.column_config.TextColumn("Amount"),
            "percentage_label": st.column_config.TextColumn("Percentage"),
        },
        hide_index=True,
        use_container_width=True
    )


# ============================================================================
# Page 2: Zone Map
# ============================================================================

def render_zone_map():
    """
    Zone Map Page

    Displays:
    - Status filter and legend
    - Leaflet map with one marker per zone
    - Filtered zone list
    - Selected zone details and recommendations
    """
    st.title("🗺️ Delhi Zone Status Map")
    st.markdown("Visualizing red and yellow zones in Delhi, India")

    adapter = get_zone_map_adapter()

    filter_status = st.radio(
        "Filter zones:",
        options=list(FILTER_OPTIONS),
        format_func=FILTER_LABELS.get,
        horizontal=True,
        key=MAP_FILTER_KEY,
    )
    adapter.set_filter(filter_status)

    st.caption(
        "🔴 Red Zone (High Risk) | 🟡 Yellow Zone (Moderate Risk) | 🟢 Green Zone (Low Risk)"
    )

    col_map, col_list = st.columns([2, 1])

    with col_map:
        render_map_widget(adapter)

    with col_list:
        render_zone_list(adapter)

    if adapter.selected_zone is not None:
        render_zone_details(adapter.selected_zone)


def render_map_widget(adapter: ZoneMapAdapter):
    adapter.attach_container(MAP_CONTAINER_ID)
    adapter.check_load_timeout()

    if adapter.state is MapState.FAILED:
        st.error(f"❌ {adapter.error_message}")
        return

    try:
        result = st_folium(
            build_zone_map(adapter),
            center=list(adapter.camera.center),
            zoom=adapter.camera.zoom,
            height=config.MAP_HEIGHT,
            use_container_width=True,
            key=MAP_CONTAINER_ID,
            returned_objects=["last_object_clicked", "bounds"],
        )
    except Exception as e:
        adapter.notify_load_failed(str(e))
        st.error(f"❌ {adapter.error_message}")
        return

    # Only the browser reporting real bounds counts as Leaflet having loaded
    if adapter.state is MapState.LOADING and frontend_reported(result):
        adapter.notify_library_loaded()
        if adapter.is_ready:
            st.rerun()

    if not adapter.is_ready:
        st.info("Loading map...")
        # Rerun until the frontend reports back or the load timeout fails the map
        time.sleep(MAP_POLL_SECONDS)
        st.rerun()

    # The component keeps reporting its last click, so only act on new ones
    click = (result or {}).get("last_object_clicked")
    if click and click != st.session_state.get(MAP_LAST_CLICK_KEY):
        st.session_state[MAP_LAST_CLICK_KEY] = click
        zone = zone_from_click(result)
        if zone is not None:
            adapter.handle_marker_click(zone.id)
            st.rerun()


def render_zone_list(adapter: ZoneMapAdapter):
    st.subheader("Delhi Zones")

    zones = adapter.visible_zones()
    if not zones:
        st.write("No zones match your filter.")
        return

    selected = adapter.selected_zone
    for zone in zones:
        is_selected = selected is not None and selected.id == zone.id
        st.button(
            zone.name,
            key=f"zone_button_{zone.id}",
            on_click=select_zone,
            args=(zone.id,),
            type="primary" if is_selected else "secondary",
            use_container_width=True,
        )
        st.markdown(
            f'<div style="background-color: {STATUS_BACKGROUNDS[zone.status]}; '
            f'border-left: 4px solid {STATUS_COLORS[zone.status]}; '
            f'padding: 4px 8px; margin-bottom: 8px; font-size: 0.85rem;">'
            f'Status: {zone.status.capitalize()} Zone<br>'
            f'Location: {zone.lat:.4f}, {zone.lng:.4f}</div>',
            unsafe_allow_html=True,
        )


def render_zone_details(zone: Zone):
    st.header(f"📍 Zone Details: {zone.name}")
    st.button("Close", key="close_zone_details", on_click=select_zone, args=(None,))

    col1, col2 = st.columns(2)

    with col1:
        st.subheader("Zone Information")
        st.markdown(
            f"**ID:** {zone.id}  \n"
            f"**Name:** {zone.name}  \n"
            f"**Status:** {zone.status.capitalize()} Zone  \n"
            f"**Location:** {zone.lat:.6f}, {zone.lng:.6f}"
        )

    with col2:
        st.subheader("Recommendations")
        advice = "\n".join(f"- {item}" for item in RECOMMENDATIONS[zone.status])
        body = f"**{RISK_LEVELS[zone.status]} Zone**\n\n{advice}"
        if zone.status == STATUS_RED:
            st.error(body)
        elif zone.status == STATUS_YELLOW:
            st.warning(body)
        else:
            st.success(body)


# ============================================================================
# Main Application
# ============================================================================

def main():
    """
    Main application entry point.

    Configures page layout and navigation.
    """
    # Page configuration
    st.set_page_config(
        page_title="Delhi Driver Dashboard",
        page_icon="🛺",
        layout="wide",
        initial_sidebar_state="expanded"
    )

    # Sidebar navigation
    st.sidebar.title("🛺 Delhi Driver Dashboard")
    st.sidebar.markdown("---")

    pages = list(PAGE_ROUTES)
    page = st.sidebar.radio(
        "Navigation",
        pages,
        index=pages.index(current_page())
    )

    # Mirror the page in the URL so /?page=map links straight to the map
    if page == PAGE_MAP:
        st.query_params["page"] = "map"
    elif "page" in st.query_params:
        del st.query_params["page"]

    st.sidebar.markdown("---")
    st.sidebar.caption(f"Report API: {config.REPORT_API_BASE_URL}")

    # Route to selected page
    if page == PAGE_MAP:
        render_zone_map()
    else:
        teardown_zone_map()
        render_report_dashboard()


if __name__ == "__main__":
    main()
