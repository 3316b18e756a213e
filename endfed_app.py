import re
from typing import Dict, List, Set, Tuple

import pandas as pd
import streamlit as st

from band_table import DistanceUnit, known_bands
from endfed_chart import (
    DEFAULT_PLOT_HEIGHT_PX,
    MAX_FIGURE_WIDTH_PX,
    MIN_FIGURE_WIDTH_PX,
    build_figure,
    figure_html,
    figure_width_px,
)
from endfed_lengths import build_chart_payload_safe, regions_table
from logging_config import setup_logging

# Streamlit app: pick UK bands, see the end-fed wire lengths to avoid.

# ---- Page config ----
st.set_page_config(page_title="End-fed Length Visualizer", layout="wide")

# =============================================================================
# Settings (single place to tune defaults)
# =============================================================================

DEFAULT_BANDS: Tuple[int, ...] = (40, 20, 15, 10)
PLOT_HEIGHT_MIN_PX = 80
PLOT_HEIGHT_MAX_PX = 600
PLOT_HEIGHT_STEP_PX = 20
FIGURE_WIDTH_STEP_PX = 50
EXPORT_FILENAME_PREFIX = "endfed_lengths"


def parse_band_tokens(raw_text: str) -> List[str]:
    """
    Parse typed band list using mixed separators: tab, space, comma, semicolon, newline.
    Returns deduplicated tokens preserving first-seen order.
    """
    txt = str(raw_text or "").strip()
    if not txt:
        return []
    parts = [p.strip() for p in re.split(r"[\s,;]+", txt) if p and p.strip()]
    seen: Set[str] = set()
    out: List[str] = []
    for p in parts:
        if p in seen:
            continue
        seen.add(p)
        out.append(p)
    return out


def _merge_bands(picked: List[int], typed: List[str]) -> List[object]:
    out: List[object] = []
    seen: Set[str] = set()
    for b in list(picked) + list(typed):
        key = str(b).strip()
        if not key or key in seen:
            continue
        seen.add(key)
        out.append(b)
    return out


@st.cache_data(show_spinner=False)
def cached_chart_payload(bands: Tuple[str, ...], use_cw: bool, metric: bool) -> Dict[str, object]:
    unit = DistanceUnit.METERS if metric else DistanceUnit.FEET
    return build_chart_payload_safe(list(bands), use_cw=bool(use_cw), dist_unit=unit)


def _export_filename(bands: List[object], use_cw: bool, metric: bool) -> str:
    parts = [EXPORT_FILENAME_PREFIX] + [str(b) for b in bands]
    if use_cw:
        parts.append("cw")
    if metric:
        parts.append("m")
    return "_".join(parts) + ".html"


def main():
    setup_logging(console=True)
    st.title("End-fed Antenna High Impedance Lengths")

    # Bands
    st.sidebar.header("Bands")
    picked = st.sidebar.multiselect(
        "UK amateur bands (m)",
        options=list(known_bands()),
        default=list(DEFAULT_BANDS),
    )
    typed_raw = st.sidebar.text_input(
        "Other bands (m)",
        value="",
        help="Extra band numbers separated by spaces or commas.",
    )
    bands = _merge_bands(list(picked), parse_band_tokens(typed_raw))
    st.sidebar.markdown("---")

    # Controls
    st.sidebar.header("Controls")
    use_cw = st.sidebar.checkbox("CW sub-bands", value=False)
    metric = st.sidebar.checkbox("Metric (m)", value=False)
    plot_height = st.sidebar.slider(
        "Plot area height (px)",
        min_value=PLOT_HEIGHT_MIN_PX,
        max_value=PLOT_HEIGHT_MAX_PX,
        value=DEFAULT_PLOT_HEIGHT_PX,
        step=PLOT_HEIGHT_STEP_PX,
    )
    use_auto_width = st.sidebar.checkbox("Auto width (fit container)", value=True)
    width_px = None
    if not use_auto_width:
        width_px = st.sidebar.slider(
            "Figure width (px)",
            min_value=MIN_FIGURE_WIDTH_PX,
            max_value=MAX_FIGURE_WIDTH_PX,
            value=figure_width_px(len(bands)),
            step=FIGURE_WIDTH_STEP_PX,
        )
    st.sidebar.markdown("---")

    if not bands:
        st.warning("Select at least one band.")
        st.stop()

    payload = cached_chart_payload(tuple(str(b) for b in bands), bool(use_cw), bool(metric))
    for msg in payload.get("warnings", []):
        st.sidebar.warning(str(msg))
    if not payload.get("available"):
        st.error(f"Cannot draw chart: {payload.get('error')}")
        st.stop()

    layout = payload["layout"]
    fig = build_figure(layout, plot_height=int(plot_height), use_auto_width=bool(use_auto_width), width_px=width_px)

    st.caption("Red bands are half-wave multiples for the selected bands; lengths in them are hard to match.")
    st.plotly_chart(fig, use_container_width=bool(use_auto_width), key="endfed_lengths_chart")

    st.sidebar.header("Download")
    st.sidebar.download_button(
        "Chart (HTML)",
        data=figure_html(fig),
        file_name=_export_filename(list(payload["spec"].bands), bool(use_cw), bool(metric)),
        mime="text/html",
    )

    st.subheader("Lengths to avoid")
    st.dataframe(pd.DataFrame(regions_table(layout)), use_container_width=True, hide_index=True)


if __name__ == "__main__":
    main()
