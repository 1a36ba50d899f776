"""
Command-line entry point

Runs a batch sentiment analysis over files on disk and writes a report:

    python main.py reviews.pdf feedback.docx comments.json --format pdf

Progress is logged as the batch runs; the report lands in EXPORTS_DIR unless
--export-dir is given.
"""
import argparse
import asyncio
import os
import sys

from config.settings import settings
from layer_1_document_ingestion.file_queue import FileQueue
from layer_3_batch_processing.aggregator import summarize
from layer_3_batch_processing.orchestrator import BatchOrchestrator, EVENT_FILE_ERROR, EVENT_PROGRESS
from layer_4_reporting.exporter import export_filename, to_csv, to_docx, to_json, to_pdf
from models.analysis import BatchStatus, UploadedFile
from utils.llm_client import GeminiSentimentClient
from utils.logger import get_logger

logger = get_logger(__name__)

EXPORT_FORMATS = ("json", "csv", "docx", "pdf")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Batch sentiment analysis of review documents")
    parser.add_argument("files", nargs="+", help="Files to analyze (.pdf, .docx, .json, .txt)")
    parser.add_argument("--format", choices=EXPORT_FORMATS, default="json", help="Report format")
    parser.add_argument("--export-dir", default=None, help="Directory for the report")
    return parser.parse_args(argv)


def write_report(state, export_format: str, export_dir: str) -> str:
    """Serialize the final results and return the written path"""
    results = list(state.results)
    summary = summarize(results)
    os.makedirs(export_dir, exist_ok=True)
    path = os.path.join(export_dir, export_filename(export_format))

    if export_format in ("docx", "pdf"):
        content = to_docx(results, summary) if export_format == "docx" else to_pdf(results, summary)
        with open(path, "wb") as f:
            f.write(content)
    else:
        content = to_json(results, summary) if export_format == "json" else to_csv(results)
        with open(path, "w", encoding="utf-8", newline="") as f:
            f.write(content)
    return path


def log_event(event):
    if event.kind == EVENT_PROGRESS:
        progress = event.state.progress
        logger.info(f"{progress.percent:5.1f}% {progress.stage} - {progress.detail}")
    elif event.kind == EVENT_FILE_ERROR:
        logger.warning(event.state.error)


def main(argv=None):
    """
    Run the batch and write the report

    Returns:
        0 on success, 1 if the run could not be started or the report not written
    """
    args = parse_args(argv)
    try:
        queue = FileQueue()
        for path in args.files:
            if not os.path.isfile(path):
                logger.error(f"File not found: {path}")
                return 1
            queue.add([UploadedFile.from_path(path)])

        client = GeminiSentimentClient()
        orchestrator = BatchOrchestrator(client)
        state = asyncio.run(orchestrator.run_to_completion(queue.snapshot(), on_event=log_event))

        report_path = write_report(state, args.format, args.export_dir or settings.EXPORTS_DIR)
        summary = summarize(list(state.results))

        logger.info("=" * 60)
        logger.info(f"Analyzed {summary['totalReviews']} review(s), average score {summary['averageScore']:.3f}")
        for label, count in summary["sentimentCounts"].items():
            logger.info(f"  - {label}: {count}")
        if state.status == BatchStatus.COMPLETED_WITH_ERRORS:
            logger.warning("Some files could not be read; see the report for details")
        logger.info(f"Report written to {report_path}")
        logger.info("=" * 60)
        return 0

    except Exception as e:
        logger.error(f"Error in batch analysis: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
