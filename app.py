"""
Health Sample Importer
Streamlit app that surveys an Apple Health export and imports synthetic
samples of a selected type for the previous 90 days.
"""
import streamlit as st
import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

from health_import.config import Config
from health_import.errors import HealthImportError, SinkError, UnsupportedTypeError
from health_import.importer import ImportSession, ImportState
from health_import.sink import LocalHealthStore
from health_import.survey import summarize_record_types

config = Config()

# Page configuration
st.set_page_config(
    page_title=config.dashboard_title,
    page_icon=config.dashboard_icon,
    layout=config.dashboard_layout,
)

# Initialize session state
if 'session' not in st.session_state:
    st.session_state.session = ImportSession(config.catalog, generator=config.make_generator())
if 'confirm_import' not in st.session_state:
    st.session_state.confirm_import = False
if 'last_batch' not in st.session_state:
    st.session_state.last_batch = None
if 'summary' not in st.session_state:
    st.session_state.summary = None
if 'selected_path' not in st.session_state:
    st.session_state.selected_path = None

session = st.session_state.session
store = LocalHealthStore(config.store_dir)


def show_error(error: Exception):
    """Show an error with details in an expander"""
    st.error(f"❌ {error}")
    import traceback
    with st.expander("🔍 Error Details"):
        st.code(traceback.format_exc())


st.title(f"{config.dashboard_icon} {config.dashboard_title}")
st.markdown("Select an Apple Health export, pick a data type it contains, and import synthetic samples for the previous days.")

# File selection
st.markdown("### 📁 Select File")
uploaded = st.file_uploader("Apple Health export (export.xml or export.zip)", type=["xml", "zip"])
file_path_input = st.text_input(
    "📂 ...or paste a file path:",
    value=config.export_path,
    placeholder="/path/to/export.zip",
)

if uploaded is not None and uploaded.name != session.file_name:
    try:
        session.select_file(uploaded.getvalue(), name=uploaded.name)
    except HealthImportError as e:
        st.error(f"❌ {e}")
elif uploaded is None and file_path_input.strip() and file_path_input.strip() != st.session_state.selected_path:
    st.session_state.selected_path = file_path_input.strip()
    try:
        session.select_file(st.session_state.selected_path)
    except HealthImportError as e:
        st.error(f"❌ {e}")

st.write(f"Selected File: `{session.file_name}`" if session.file_name else "No file selected")

# Analyze
if st.button("🔎 Analyze File", use_container_width=True, disabled=session.xml_bytes is None):
    st.session_state.confirm_import = False
    st.session_state.last_batch = None
    with st.spinner("Scanning records..."):
        try:
            session.analyze()
            st.session_state.summary = summarize_record_types(session.record_counts)
        except HealthImportError as e:
            st.session_state.summary = None
            show_error(e)

if st.session_state.summary:
    summary = st.session_state.summary
    with st.expander("📊 Data Summary", expanded=False):
        st.write(f"**Record Types:** {summary.get('total_record_types', 0)}")
        st.write(f"**Total Records:** {summary.get('total_records', 0):,}")
        for cat, types in summary.get('categories', {}).items():
            st.write(f"**{cat}:** {len(types)} types")

# Type picker
if session.available_types:
    labels = session.labels()
    st.markdown("### Select a Data Type:")
    selected = st.selectbox(
        "Select Data Type",
        options=session.available_types,
        index=session.available_types.index(session.selected_type) if session.selected_type in session.available_types else 0,
        format_func=lambda t: labels.get(t, t),
    )
    if selected != session.selected_type:
        session.select_type(selected)
        st.session_state.confirm_import = False
elif session.state == ImportState.SURVEYED:
    st.info("No importable data types found in this export.")

# Import
if st.button("📥 Import Data", use_container_width=True, type="primary"):
    if not session.selected_type:
        st.warning("No data type selected.")
    else:
        st.session_state.confirm_import = True

if st.session_state.confirm_import and session.selected_type:
    label = config.catalog.label(session.selected_type)
    st.markdown("#### Start Import")
    st.write(f"Would you like to start import for **{label}**?")
    col1, col2 = st.columns(2)
    with col1:
        start = st.button("Yes", use_container_width=True)
    with col2:
        cancel = st.button("Cancel", use_container_width=True)

    if cancel:
        st.session_state.confirm_import = False
        st.rerun()

    if start:
        st.session_state.confirm_import = False
        try:
            with st.spinner("Generating samples..."):
                batch = session.generate()
                st.session_state.last_batch = batch
                ack = session.submit(store)
            st.success(f"Data for {label} has been successfully imported. Number of data points: {ack.sample_count}")
            st.caption(f"💾 Stored in: `{ack.destination}`")
        except UnsupportedTypeError:
            st.error("**Unsupported Data Type**")
            st.write(f"The selected data type {session.selected_type} is not supported for writing.")
        except HealthImportError as e:
            show_error(e)

# Preview of the last generated batch
if st.session_state.last_batch is not None:
    batch = st.session_state.last_batch
    df = batch.to_dataframe()
    st.markdown("### 📈 Generated Samples")
    if batch.importable.is_category:
        st.bar_chart(df["value"].value_counts())
    else:
        st.line_chart(df.set_index("startDate")["value"])
    with st.expander("Raw samples", expanded=False):
        st.dataframe(df, use_container_width=True)

with st.sidebar:
    st.header("💾 Local Store")
    st.caption(f"`{config.store_dir}`")
    stored = sorted(store.stored_types())
    if stored:
        for record_type in stored:
            try:
                stored_df = store.load(record_type)
            except SinkError as e:
                st.warning(f"**{config.catalog.label(record_type)}:** {e}")
                continue
            st.write(f"**{config.catalog.label(record_type)}:** {len(stored_df):,} samples")
        if st.button("🗑️ Clear Store", use_container_width=True):
            store.clear()
            st.rerun()
    else:
        st.write("No samples stored yet.")
    if os.getenv("STORE_DIR"):
        st.caption("Store directory set from STORE_DIR")
