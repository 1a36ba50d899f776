"""
Streamlit Dashboard for Review Sentiment Analysis

Analyze a single text, run batch analysis over uploaded documents, and explore
generated sample reviews.
"""
import asyncio
from typing import List, Optional

import pandas as pd
import plotly.express as px
import streamlit as st

from config.settings import settings
from layer_1_document_ingestion.file_queue import FileQueue
from layer_1_document_ingestion.normalizer import SUPPORTED_EXTENSIONS, NormalizationError, normalize
from layer_2_sentiment_analysis.manual import ManualInputError, analyze_manual_text
from layer_3_batch_processing.aggregator import sentiment_counts, average_score, summarize
from layer_3_batch_processing.orchestrator import BatchOrchestrator, EVENT_ITEM, EVENT_FILE_ERROR
from layer_4_reporting.exporter import (
    export_filename,
    single_result_to_csv,
    single_result_to_docx,
    single_result_to_json,
    single_result_to_pdf,
    to_csv,
    to_docx,
    to_json,
    to_pdf,
)
from layer_4_reporting.history import AnalysisHistory, JsonHistoryStore
from models.analysis import AnalyzedItem, BatchState, BatchStatus, SentimentResult, UploadedFile
from utils.llm_client import ClassifierError, GeminiSentimentClient
from utils.logger import get_logger

logger = get_logger(__name__)

# Page configuration
st.set_page_config(
    page_title="Review Sentiment Dashboard",
    page_icon="📊",
    layout="wide",
    initial_sidebar_state="expanded"
)

st.markdown("""
    <style>
    .main-header {
        font-size: 2.5rem;
        font-weight: bold;
        color: #14b8a6;
        margin-bottom: 1rem;
    }
    </style>
""", unsafe_allow_html=True)

SENTIMENT_COLORS = {
    "Positive": "#4ade80",
    "Negative": "#f87171",
    "Neutral": "#38bdf8",
    "Mixed": "#fbbf24",
}

DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


@st.cache_resource
def get_client() -> Optional[GeminiSentimentClient]:
    """Create the Gemini client once per server process"""
    try:
        return GeminiSentimentClient()
    except ValueError as e:
        logger.error(f"Gemini client unavailable: {e}")
        return None


def init_session_state():
    """Create per-session objects on first run"""
    if "file_queue" not in st.session_state:
        st.session_state["file_queue"] = FileQueue()
    if "offered_uploads" not in st.session_state:
        st.session_state["offered_uploads"] = set()
    if "upload_generation" not in st.session_state:
        st.session_state["upload_generation"] = 0
    if "batch_state" not in st.session_state:
        st.session_state["batch_state"] = BatchState()
    if "history" not in st.session_state:
        st.session_state["history"] = AnalysisHistory(JsonHistoryStore())
    if "manual_result" not in st.session_state:
        st.session_state["manual_result"] = None
    if "samples" not in st.session_state:
        st.session_state["samples"] = []


def results_dataframe(results: List[AnalyzedItem]) -> pd.DataFrame:
    return pd.DataFrame([
        {
            "File": item.source_file_name,
            "Sentiment": item.analysis.overall_sentiment.value,
            "Score": round(item.analysis.sentiment_score, 3),
            "Summary": item.analysis.summary,
            "Text": item.source_text,
            "Error": item.error or "",
        }
        for item in results
    ])


def render_sentiment_result(result: SentimentResult):
    """Show a single SentimentResult with its emotion breakdown"""
    col1, col2 = st.columns(2)
    with col1:
        st.metric("Overall Sentiment", result.overall_sentiment.value)
    with col2:
        st.metric("Sentiment Score", f"{result.sentiment_score:+.2f}")
    st.markdown(f"**Summary:** {result.summary}")

    if result.emotions:
        df_emotions = pd.DataFrame([{"Emotion": e.name, "Score": e.score} for e in result.emotions])
        fig = px.bar(df_emotions, x="Emotion", y="Score", title="Detected Emotions", range_y=[0, 1])
        fig.update_layout(height=320)
        st.plotly_chart(fig, width='stretch')
    else:
        st.info("No distinct emotions detected.")


def render_batch_summary(results: List[AnalyzedItem]):
    """Summary metrics, charts and the results table for a batch"""
    counts = sentiment_counts(results)
    avg = average_score(results)

    col1, col2 = st.columns(2)
    with col1:
        st.metric("Total Reviews Analyzed", len(results))
    with col2:
        st.metric("Avg. Score", f"{avg:.3f}")

    if counts:
        df_counts = pd.DataFrame([{"Sentiment": k, "Count": v} for k, v in counts.items()])
        df_counts["Share"] = (df_counts["Count"] / len(results) * 100).round(1)
        chart_col, table_col = st.columns([2, 1])
        with chart_col:
            df_scores = results_dataframe(results)
            fig = px.strip(
                df_scores,
                x="Score",
                y="Sentiment",
                color="Sentiment",
                color_discrete_map=SENTIMENT_COLORS,
                hover_data=["File", "Summary"],
                title="Sentiment Distribution",
            )
            fig.update_layout(height=380, xaxis_range=[-1.05, 1.05])
            st.plotly_chart(fig, width='stretch')
        with table_col:
            st.dataframe(df_counts, width='stretch', hide_index=True)

    st.dataframe(results_dataframe(results), width='stretch', hide_index=True)


def render_manual_tab(client: GeminiSentimentClient):
    st.header("Manual Analysis")
    history: AnalysisHistory = st.session_state["history"]

    uploaded = st.file_uploader(
        "Load text from a file (optional)",
        type=list(SUPPORTED_EXTENSIONS),
        key="manual_upload",
    )
    default_text = ""
    if uploaded is not None:
        try:
            default_text = normalize(UploadedFile.from_upload(uploaded))
        except NormalizationError as e:
            st.error(str(e))

    text = st.text_area("Text to analyze", value=default_text, height=200)

    if st.button("🔍 Analyze Sentiment", type="primary"):
        with st.spinner("Analyzing..."):
            try:
                st.session_state["manual_result"] = asyncio.run(analyze_manual_text(client, text, history))
            except ManualInputError as e:
                st.warning(str(e))
            except ClassifierError as e:
                logger.error(f"Manual analysis failed: {e}")
                st.error(f"Failed to analyze sentiment: {e}")

    result = st.session_state.get("manual_result")
    if result is not None:
        st.markdown("---")
        render_sentiment_result(result)
        col1, col2, col3, col4 = st.columns(4)
        with col1:
            st.download_button("📥 Download JSON", single_result_to_json(result),
                               file_name="sentiment-analysis.json", mime="application/json")
        with col2:
            st.download_button("📥 Download CSV", single_result_to_csv(result),
                               file_name="sentiment-analysis.csv", mime="text/csv")
        with col3:
            st.download_button("📥 Download PDF", single_result_to_pdf(result),
                               file_name="sentiment-analysis.pdf", mime="application/pdf")
        with col4:
            st.download_button("📥 Download Word", single_result_to_docx(result),
                               file_name="sentiment-analysis.docx", mime=DOCX_MIME)

    st.sidebar.header("🕘 History")
    if not history.items:
        st.sidebar.markdown("No analyses yet.")
    for item in history.items:
        label = f"{item.timestamp} - {item.analysis.overall_sentiment.value}"
        if st.sidebar.button(label, key=f"history_{item.id}"):
            st.session_state["manual_result"] = item.analysis
            st.rerun()
    if history.items and st.sidebar.button("🗑️ Clear History"):
        history.clear()
        st.rerun()


def render_batch_tab(client: GeminiSentimentClient):
    st.header("Batch Sentiment Analyzer")
    queue: FileQueue = st.session_state["file_queue"]
    batch_state: BatchState = st.session_state["batch_state"]

    uploads = st.file_uploader(
        "Upload files (PDF, DOCX, JSON, TXT)",
        type=list(SUPPORTED_EXTENSIONS),
        accept_multiple_files=True,
        key=f"batch_upload_{st.session_state['upload_generation']}",
    )
    # The uploader keeps returning its files on every rerun; only offer each
    # upload to the queue once so a removed file stays removed. The queue
    # itself de-duplicates by name and content.
    new_files = []
    for upload in uploads or []:
        if upload.file_id not in st.session_state["offered_uploads"]:
            st.session_state["offered_uploads"].add(upload.file_id)
            new_files.append(UploadedFile.from_upload(upload))
    if new_files:
        added = queue.add(new_files)
        if added < len(new_files):
            st.info(f"Skipped {len(new_files) - added} file(s) already in the queue.")

    if len(queue) > 0:
        st.subheader(f"File Queue ({len(queue)})")
        for file in queue:
            col1, col2 = st.columns([6, 1])
            with col1:
                st.markdown(file.name)
            with col2:
                if st.button("🗑️", key=f"remove_{file.id}"):
                    queue.remove(file.id)
                    st.rerun()

    col1, col2 = st.columns([3, 1])
    with col1:
        analyze = st.button(f"🚀 Analyze {len(queue)} File(s)", type="primary", disabled=len(queue) == 0)
    with col2:
        if st.button("Clear All"):
            queue.clear()
            # A new uploader key empties the widget so cleared files can be picked again
            st.session_state["upload_generation"] += 1
            st.session_state["offered_uploads"] = set()
            st.session_state["batch_state"] = BatchState()
            st.rerun()

    if analyze:
        progress_placeholder = st.empty()
        error_placeholder = st.empty()
        results_placeholder = st.empty()

        def on_event(event):
            progress = event.state.progress
            progress_placeholder.progress(
                min(progress.percent / 100, 1.0),
                text=f"{progress.stage} {progress.detail}".strip(),
            )
            if event.kind == EVENT_FILE_ERROR:
                error_placeholder.error(event.state.error)
            if event.kind == EVENT_ITEM or event.kind == EVENT_FILE_ERROR:
                results_placeholder.dataframe(
                    results_dataframe(list(event.state.results)),
                    width='stretch',
                    hide_index=True,
                )

        orchestrator = BatchOrchestrator(client)
        batch_state = asyncio.run(orchestrator.run_to_completion(queue.snapshot(), on_event=on_event))
        st.session_state["batch_state"] = batch_state
        progress_placeholder.empty()
        results_placeholder.empty()

    if batch_state.error:
        st.error(f"An Error Occurred: {batch_state.error}")

    if batch_state.is_finished and batch_state.results:
        results = list(batch_state.results)
        summary = summarize(results)
        st.markdown("---")
        st.subheader("📊 Batch Analysis Results")
        if batch_state.status == BatchStatus.COMPLETED_WITH_ERRORS:
            st.warning("Some files could not be read. They are listed with an error below.")
        render_batch_summary(results)

        col1, col2, col3, col4 = st.columns(4)
        with col1:
            st.download_button("📥 JSON", to_json(results, summary),
                               file_name=export_filename("json"), mime="application/json")
        with col2:
            st.download_button("📥 CSV", to_csv(results),
                               file_name=export_filename("csv"), mime="text/csv")
        with col3:
            st.download_button("📥 PDF", to_pdf(results, summary),
                               file_name=export_filename("pdf"), mime="application/pdf")
        with col4:
            st.download_button("📥 Word", to_docx(results, summary),
                               file_name=export_filename("docx"), mime=DOCX_MIME)


def render_explorer_tab(client: GeminiSentimentClient):
    st.header("Find Reviews by Topic")
    topic = st.text_input("Topic", placeholder="a recent popular movie")

    if st.button("🔎 Generate Reviews"):
        if not topic.strip():
            st.warning("Please enter a topic to search for reviews.")
        else:
            with st.spinner("Generating reviews..."):
                try:
                    st.session_state["samples"] = asyncio.run(client.generate_samples(topic.strip()))
                except ClassifierError as e:
                    st.error(f"Failed to generate reviews: {e}")

    for idx, sample in enumerate(st.session_state["samples"]):
        with st.container(border=True):
            st.markdown(f"**{sample.reviewer_name}** {'⭐' * sample.rating}")
            st.markdown(sample.review_text)
            if st.button("Analyze", key=f"sample_{idx}"):
                with st.spinner("Analyzing..."):
                    try:
                        render_sentiment_result(asyncio.run(client.classify(sample.review_text)))
                    except ClassifierError as e:
                        st.error(f"Analysis failed: {e}")


def main():
    """Main Streamlit app"""
    st.markdown('<h1 class="main-header">📊 Review Sentiment Dashboard</h1>', unsafe_allow_html=True)
    settings.ensure_directories()
    init_session_state()

    client = get_client()
    if client is None:
        st.error("GEMINI_API_KEY is not set. Add it to your .env file and restart the dashboard.")
        st.stop()

    tab1, tab2, tab3 = st.tabs(["✍️ Manual Analysis", "📁 Batch Analysis", "🔎 Review Explorer"])
    with tab1:
        render_manual_tab(client)
    with tab2:
        render_batch_tab(client)
    with tab3:
        render_explorer_tab(client)


if __name__ == "__main__":
    main()
