"""
Streamlit Web Interface for CNJ Validator
Local page for single number analysis and CSV batch processing
"""

import streamlit as st
import pandas as pd
import plotly.express as px

# Import our main application
from cnj_analyzer import write_cnj
from cnj_classifiers import get_classifier_summary
from cnj_reference_data import get_district_index
from cnj_validator_base import CNJValidationError, validate_cnj
from cnj_validator_local import (
    Config, FileProcessor, BatchProcessor, SUPPORTED_SEPARATORS,
    results_to_dataframe
)

# Page configuration
st.set_page_config(
    page_title="CNJ Validator",
    page_icon="⚖️",
    layout="wide",
    initial_sidebar_state="expanded"
)

# Initialize session state
if 'config' not in st.session_state:
    st.session_state.config = Config.from_json("config.json")
if 'processor' not in st.session_state:
    st.session_state.processor = FileProcessor(st.session_state.config)


def main():
    """Main application"""
    st.sidebar.title("⚖️ CNJ Validator")
    st.sidebar.markdown("---")

    page = st.sidebar.radio("Navigation", ["🔍 Analyze", "📤 Batch CSV", "📚 Reference"])

    stats = get_district_index().get_statistics()
    st.sidebar.markdown("---")
    st.sidebar.info(f"{stats['total_districts']} districts loaded\n{stats['total_states']} states")

    if page == "🔍 Analyze":
        show_analyze_page()
    elif page == "📤 Batch CSV":
        show_batch_page()
    else:
        show_reference_page()


def show_analyze_page():
    """Single CNJ analysis page"""
    st.title("🔍 Analyze CNJ Number")

    cnj = st.text_input("CNJ number", placeholder="0001327-64.2018.8.26.0158 or 00013276420188260158")
    if not cnj:
        return

    validation = validate_cnj(cnj.strip())
    try:
        analysis = st.session_state.processor.analyzer.analyze(cnj.strip())
    except CNJValidationError as e:
        st.error(f"❌ {e.message}")
        return

    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("Check digit", "VALID" if analysis.valid_cnj else "INVALID")
    with col2:
        st.metric("Expected digit", validation.expected_digit or "-")
    with col3:
        st.metric("Tribunal", analysis.detailed.tj or "-")

    if validation.error:
        st.warning(validation.error)

    st.markdown(f"**{write_cnj(analysis)}**")

    st.dataframe(results_to_dataframe([analysis]).T.rename(columns={0: "value"}),
                 use_container_width=True)


def show_batch_page():
    """Upload and process CSV page"""
    st.title("📤 Batch CSV Processing")

    config = st.session_state.config
    separator = st.selectbox("Separator", SUPPORTED_SEPARATORS,
                             index=SUPPORTED_SEPARATORS.index(config.separator),
                             format_func=lambda s: {'\t': 'TAB'}.get(s, s))
    include_header = st.checkbox("Include header row", value=config.include_header)

    uploaded_file = st.file_uploader("Choose a CSV file", type=['csv', 'txt'])
    if uploaded_file is None:
        return

    content = uploaded_file.getvalue().decode(config.encoding, errors='replace')
    result = st.session_state.processor.batch_processor.process_text(content, separator=separator)

    col1, col2, col3, col4 = st.columns(4)
    with col1:
        st.metric("Total Lines", result.total_processed)
    with col2:
        st.metric("Valid", result.valid_count)
    with col3:
        st.metric("Invalid", result.invalid_count)
    with col4:
        st.metric("Errors", len(result.errors))

    if result.total_processed:
        fig = px.pie(
            names=["Valid", "Invalid"],
            values=[result.valid_count, result.invalid_count],
            title="Validity",
        )
        st.plotly_chart(fig, use_container_width=True)

    if result.errors:
        st.markdown("### ⚠️ Errors")
        st.dataframe(pd.DataFrame([e.__dict__ for e in result.errors]), use_container_width=True, hide_index=True)

    st.markdown("### 📋 Results")
    st.dataframe(results_to_dataframe(result.analyses), use_container_width=True, height=400)

    st.download_button(
        "📥 Download CSV",
        BatchProcessor.render(result.analyses, include_header),
        file_name=f"{uploaded_file.name.rsplit('.', 1)[0]}_processed.csv",
        mime="text/csv",
    )


def show_reference_page():
    """Segments and classification rules"""
    st.title("📚 Reference")

    summary = get_classifier_summary()
    df = pd.DataFrame.from_dict(summary, orient='index')
    st.dataframe(df, use_container_width=True)

    stats = get_district_index().get_statistics()
    counts = pd.DataFrame(
        sorted(stats['segment_counts'].items()), columns=['segment', 'districts']
    )
    st.plotly_chart(px.bar(counts, x='segment', y='districts', title="Districts per segment"),
                    use_container_width=True)


if __name__ == "__main__":
    main()
