import altair as alt
import pandas as pd
import streamlit as st
from typing import Dict, List

from manpower.charts import department_bar_chart, gender_donut_chart, series_frame
from manpower.data import UploadError
from manpower.filters import DIMENSIONS
from manpower.state import DashboardState, EmptySelectionError, FilterChanged, FiltersCleared

alt.data_transformers.disable_max_rows()

FILTER_LABELS: Dict[str, str] = {
    "executiveType": "Cadre Type",
    "ageGroup": "Age Group",
    "gender": "Gender",
    "department": "Plant/Unit",
}
SCHEMA_LABELS: Dict[str, str] = {
    "cohort": "Plant / cadre manpower sheet",
    "person": "One row per employee",
}


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .app-top-bar {padding: 6px 0 4px;border-bottom: 1px solid #e5e7eb;margin-bottom: 10px;}
        .app-top-bar .page-title {font-size: 1.4rem;font-weight: 700;color: #111827;}
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}
        .chip {background: #f3f4f6;border: 1px solid #e5e7eb;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #374151;}
        .source-badge {background: #dcfce7;border: 1px solid #86efac;border-radius: 8px;padding: 6px 10px;color: #166534;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


def get_dashboard() -> DashboardState:
    if "dashboard" not in st.session_state:
        st.session_state["dashboard"] = DashboardState()
    return st.session_state["dashboard"]


def format_filter_summary(filters: Dict[str, List[str]]) -> str:
    chips = []
    for dim in DIMENSIONS:
        values = filters.get(dim) or []
        chips.append(f"{FILTER_LABELS[dim]}: {', '.join(values) if values else 'All'}")
    return "".join([f"<span class='chip'>{txt}</span>" for txt in chips])


def _widget_key(dimension: str) -> str:
    return f"filter_{dimension}"


def on_filter_change(dimension: str):
    get_dashboard().apply(FilterChanged(dimension, st.session_state.get(_widget_key(dimension)) or []))


def on_clear_filters():
    get_dashboard().apply(FiltersCleared())
    for dim in DIMENSIONS:
        st.session_state.pop(_widget_key(dim), None)


def handle_upload(uploaded, schema: str):
    signature = (uploaded.name, uploaded.size, schema)
    if st.session_state.get("_upload_signature") == signature:
        return
    st.session_state["_upload_signature"] = signature
    try:
        view = get_dashboard().load_upload(uploaded.getvalue(), uploaded.name, schema)
    except UploadError as exc:
        st.error(f"Upload Failed: {exc}")
        return
    # Option lists changed; let the widgets re-seed from the retained selection.
    for dim in DIMENSIONS:
        st.session_state.pop(_widget_key(dim), None)
    st.success(f"Loaded {view.total_records:,} rows of data from {uploaded.name}")


# ---------- UI setup ----------
st.set_page_config(page_title="Manpower Overview Dashboard", layout="wide")
inject_base_styles()
st.markdown("<div class='app-top-bar'><div class='page-title'>Manpower Overview Dashboard</div></div>", unsafe_allow_html=True)

dashboard = get_dashboard()

with st.sidebar:
    st.markdown("### Upload Excel File")
    schema_choice = st.radio(
        "Sheet layout",
        options=list(SCHEMA_LABELS.keys()),
        format_func=lambda key: SCHEMA_LABELS[key],
        index=0,
    )
    uploaded_file = st.file_uploader("Choose Excel File", type=["xlsx", "xls"])
    if uploaded_file is not None:
        handle_upload(uploaded_file, schema_choice)

    st.markdown("---")
    st.markdown("### Filters")
    options = dashboard.view.filter_options
    selection = dashboard.selection
    for dim in DIMENSIONS:
        dim_options = options.get(dim, [])
        key = _widget_key(dim)
        if key not in st.session_state:
            st.session_state[key] = [v for v in selection.values(dim) if v in dim_options]
        st.multiselect(
            FILTER_LABELS[dim],
            options=dim_options,
            key=key,
            on_change=on_filter_change,
            args=(dim,),
            placeholder=f"Select {FILTER_LABELS[dim].lower()}s",
        )
    st.button("Clear filters", on_click=on_clear_filters)

view = dashboard.view

if dashboard.dataset is None:
    st.info("Upload a manpower Excel file to populate the dashboard.")
    st.stop()

st.markdown(
    f"<div class='source-badge'>Data Source: {view.source_name or 'Uploaded Manpower Excel File'}"
    f" ({view.filtered_records:,} of {view.total_records:,} rows match)</div>",
    unsafe_allow_html=True,
)
st.markdown(f"<div class='chip-row'>{format_filter_summary(view.selection.to_dict())}</div>", unsafe_allow_html=True)

# ----- Key metrics -----
metrics = view.metrics
cols = st.columns(4)
cols[0].metric("Total Manpower", f"{metrics.total_employees:,}", help="Active workforce")
cols[1].metric("Executives", f"{metrics.executives:,}", help="Executive cadre")
cols[2].metric("Plants/Units", f"{metrics.departments}", help="Operating units")
cols[3].metric("Avg. Age", f"{metrics.avg_age}", help="Years old")
if view.years:
    st.caption(f"Years covered: {', '.join(view.years)}")

if st.button("Generate Report"):
    try:
        dashboard.generate_report()
        st.success("Report Generated: charts reflect the selected filters.")
    except EmptySelectionError as exc:
        st.error(str(exc))

# ----- Charts -----
c1, c2 = st.columns(2)
with c1:
    st.altair_chart(department_bar_chart(view.department_series), use_container_width=True)
    dept_df = series_frame(view.department_series)
    if not dept_df.empty:
        st.download_button(
            "Export CSV",
            data=dept_df.to_csv(index=False).encode("utf-8"),
            file_name="department.csv",
            mime="text/csv",
            key="export_department",
        )
with c2:
    if view.gender_series:
        st.altair_chart(gender_donut_chart(view.gender_series), use_container_width=True)
        st.download_button(
            "Export CSV",
            data=series_frame(view.gender_series).to_csv(index=False).encode("utf-8"),
            file_name="gender.csv",
            mime="text/csv",
            key="export_gender",
        )
    else:
        st.info("No gender data for the selected filters.")

with st.expander("Filtered series"):
    st.dataframe(
        pd.concat(
            [
                series_frame(view.department_series).assign(series="Plant/Unit"),
                series_frame(view.gender_series).assign(series="Gender"),
            ],
            ignore_index=True,
        ),
        hide_index=True,
        use_container_width=True,
    )
