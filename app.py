"""
DroneFit Streamlit App - Adaptive Drone Recommendation Quiz

Run with: streamlit run app.py

Architecture:
- This file: Streamlit UI only
- core/orchestrator.py: Event processing coordination
- handlers/: Event-specific handlers (select, next, back, reset)
- core/: Questionnaire engine (scoring, diagnosis, candidates)
- catalog_loader.py: JSON reference data loading
- ui/: UI helpers (state, formatting)
"""

import streamlit as st

from catalog_loader import CatalogLoadError, load_all, catalog_to_dataframe, get_catalog_statistics
from config import messages
from config.settings import (
    DEBUG_MODE,
    LONG_FLOW_CLOSENESS_THRESHOLD,
    SHORT_FLOW_CLOSENESS_THRESHOLD,
    WEIGHT_PREFERENCES,
    get_data_dir,
)
from core.orchestrator import QuizComponents, QuizOrchestrator
from core.structured_logging import setup_logging, get_logger
from ui.responses import get_response_formatter, score_frame, candidates_frame
from ui.state import QuizSession, save_session_to_streamlit, load_session_from_streamlit


# =============================================================================
# CONFIGURATION
# =============================================================================

setup_logging(
    log_dir="logs",
    console_level=20,  # INFO
    file_level=10,     # DEBUG
    enable_console=True,
    enable_file=False,
    enable_error_log=True,
)
app_logger = get_logger("app")

st.set_page_config(
    page_title="DroneFit - Drone Finder",
    page_icon="🚁",
    layout="wide"
)

FLOWS = {
    "Full diagnosis": ("dynamic", LONG_FLOW_CLOSENESS_THRESHOLD),
    "Quick check": ("quick", SHORT_FLOW_CLOSENESS_THRESHOLD),
}


# =============================================================================
# DATA LOADING
# =============================================================================

@st.cache_resource
def load_data(data_dir: str):
    """Load catalog, question sets and templates (cached)."""
    try:
        data = load_all(data_dir)
        stats = get_catalog_statistics(data["catalog"])
        return data, stats, None
    except CatalogLoadError as e:
        app_logger.error(f"Failed to load data: {e}")
        return None, {}, str(e)


def get_orchestrator(data: dict, flow_key: str, threshold: float) -> QuizOrchestrator:
    components = QuizComponents(
        question_set=data[flow_key],
        catalog=data["catalog"],
        templates=data["templates"],
        closeness_threshold=threshold,
    )
    return QuizOrchestrator(components, debug_mode=DEBUG_MODE)


def get_session(flow_key: str, preferred_weight, recommended_type=None) -> QuizSession:
    """Load the quiz session, starting over when the flow, weight preference or recommended type changed."""
    settings = (flow_key, preferred_weight, recommended_type)
    if st.session_state.get("quiz_settings") != settings:
        st.session_state.quiz_settings = settings
        st.session_state.quiz_session_data = None
        return QuizSession(preferred_weight=preferred_weight)
    return load_session_from_streamlit(st.session_state, preferred_weight=preferred_weight)


# =============================================================================
# RENDERING
# =============================================================================

def render_result(view, catalog, formatter, constraints):
    template = view.template
    if template:
        st.subheader(template.title)
        st.write(template.main_message)
    elif view.primary_category:
        st.subheader(view.primary_category)

    selection = view.selection
    if selection.primary:
        st.markdown(formatter.format_product(selection.primary))
    else:
        st.warning(messages.NO_RESULT_AVAILABLE)

    if selection.note:
        st.info(selection.note)

    if selection.alternatives:
        with st.expander("Alternatives", expanded=True):
            for i, product in enumerate(selection.alternatives, 1):
                st.markdown(formatter.format_product(product, i))

    secondary = formatter.format_secondary(view.summary, catalog)
    if secondary:
        st.write(secondary)

    highlights = formatter.format_highlights(view.result_summary)
    if highlights:
        st.markdown(highlights)

    if template:
        if template.price_note:
            st.caption(template.price_note)
        for tip in template.tips:
            st.write(f"💡 {tip}")
        if template.cta:
            st.link_button(template.cta.label, template.cta.href)
        if template.secondary_cta:
            st.link_button(template.secondary_cta.label, template.secondary_cta.href)

    with st.expander("Score breakdown"):
        st.dataframe(score_frame(view.summary, catalog), hide_index=True)
        st.dataframe(candidates_frame(selection, constraints), hide_index=True)


def finish_event(view, session):
    """Persist the session after an event and rerun to show the new view."""
    # Debug lines would be lost on rerun, so keep them for the next render
    st.session_state.last_debug_lines = view.debug_lines
    save_session_to_streamlit(session, st.session_state)
    st.rerun()


def render_gallery(view, formatter):
    if not view.gallery_models:
        return
    with st.expander(messages.GALLERY_HEADER):
        for model in view.gallery_models:
            st.markdown(formatter.format_product(model))


def render_question(view, orchestrator, session):
    question = view.question
    if question is None:
        return

    st.subheader(question.text)
    for option in question.options:
        label = f"✅ {option.label}" if option.key == view.selected_option_key else option.label
        if st.button(label, key=f"{question.id}:{option.key}", use_container_width=True):
            finish_event(orchestrator.select(session, question.id, option.key), session)


# =============================================================================
# MAIN APPLICATION
# =============================================================================

def main():
    st.title("🚁 DroneFit - Find the right drone")
    st.markdown("*Answer a few questions and we'll narrow the lineup down for you.*")

    # Sidebar - Configuration
    with st.sidebar:
        st.header("⚙️ Settings")
        flow_label = st.radio("Flow", list(FLOWS.keys()))
        weight_choice = st.selectbox(
            "Weight preference",
            [None, *WEIGHT_PREFERENCES],
            format_func=lambda value: messages.WEIGHT_PREFERENCE_LABELS.get(value, "No preference"),
        )
        st.markdown("---")

    data, stats, error = load_data(str(get_data_dir()))
    if error:
        st.error(f"❌ {error}")
        st.stop()

    catalog = data["catalog"]
    with st.sidebar:
        type_choice = st.selectbox(
            "Recommended type",
            [None, *catalog.types],
            format_func=lambda key: catalog.types[key].label if key else "Not sure yet",
        )

    formatter = get_response_formatter(catalog.currency or "JPY")
    flow_key, threshold = FLOWS[flow_label]
    orchestrator = get_orchestrator(data, flow_key, threshold)
    session = get_session(flow_key, weight_choice, type_choice)

    quiz_tab, lineup_tab = st.tabs(["Diagnosis", "Lineup"])

    with quiz_tab:
        view = orchestrator.start(session)

        banner = formatter.format_recommended_type(catalog, type_choice)
        if banner:
            st.info(banner)

        label, fraction = formatter.format_progress(view.progress)
        st.progress(fraction, text=f"{messages.PROGRESS_LABEL}: {label}")

        if view.error_message:
            st.error(view.error_message)
        if view.validation_message:
            st.warning(view.validation_message)

        if view.complete:
            render_result(view, catalog, formatter, session.diagnosis.constraints)
        else:
            render_question(view, orchestrator, session)
            render_gallery(view, formatter)

        col_back, col_next, col_reset = st.columns(3)
        with col_back:
            if st.button("← Back", disabled=not view.has_answers):
                finish_event(orchestrator.go_back(session), session)
        with col_next:
            if st.button("Next →", disabled=view.complete):
                finish_event(orchestrator.advance(session), session)
        with col_reset:
            if st.button("🔄 Start over"):
                finish_event(orchestrator.reset(session), session)

        save_session_to_streamlit(session, st.session_state)

    # Sidebar - Current conditions
    with st.sidebar:
        st.header("📋 Your conditions")
        st.write(f"**Mode:** {messages.MODE_LABELS.get(session.diagnosis.mode.value)}")
        for chip in formatter.format_constraint_chips(session.diagnosis.constraints):
            st.write(f"• {chip}")
        if view.preferred_models:
            st.write("**Pinned models:**")
            for model in view.preferred_models:
                st.write(f"• {model.name}")
        if not view.has_answers:
            st.caption(messages.EMPTY_CANDIDATES)

        if DEBUG_MODE:
            with st.expander("🔍 Debug Info"):
                debug_lines = st.session_state.get("last_debug_lines") or []
                if debug_lines:
                    st.code("\n".join(debug_lines))
                st.caption(f"Session duration: {session.get_session_duration():.0f}s")
                st.json(session.to_dict())

    with lineup_tab:
        st.metric("Total Models", stats["total"])
        col1, col2 = st.columns(2)
        with col1:
            st.metric("Micro (<100 g)", stats["micro"])
        with col2:
            st.metric("Payloads", stats["by_kind"].get("payload", 0))
        if stats["dangling_ids"]:
            st.warning(f"Missing catalog entries: {', '.join(stats['dangling_ids'])}")

        for category in catalog.types.values():
            with st.expander(category.label):
                if category.summary:
                    st.write(category.summary)
                primary = catalog.get_model(category.primary_model_id)
                if primary:
                    st.markdown(formatter.format_product(primary))

        st.dataframe(catalog_to_dataframe(catalog), hide_index=True)


if __name__ == "__main__":
    main()
