"""
Report exporter - serializes analysis results to JSON, CSV, Word and PDF
"""
import io
import json
from datetime import date, datetime
from typing import Any, Dict, Optional, Sequence
from xml.sax.saxutils import escape

import docx
import pandas as pd
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from models.analysis import AnalyzedItem, SentimentResult, results_to_dicts
from utils.logger import get_logger

logger = get_logger(__name__)

BATCH_CSV_COLUMNS = ["Source File", "Overall Sentiment", "Sentiment Score", "Summary", "Source Text", "Error"]
SINGLE_CSV_COLUMNS = ["Overall Sentiment", "Sentiment Score", "Summary", "Emotion", "Emotion Score"]
SENTIMENT_LABELS = ["Positive", "Negative", "Neutral", "Mixed"]


def export_filename(extension: str, prefix: str = "batch-sentiment-analysis", today: Optional[date] = None) -> str:
    """File name like batch-sentiment-analysis-2024-05-01.csv"""
    today = today or datetime.now().date()
    return f"{prefix}-{today.isoformat()}.{extension}"


def to_json(results: Sequence[AnalyzedItem], summary: Dict[str, Any]) -> str:
    """Summary plus every result as pretty-printed JSON"""
    return json.dumps({"summary": summary, "results": results_to_dicts(results)}, indent=2)


def to_csv(results: Sequence[AnalyzedItem]) -> str:
    """One row per analyzed item"""
    df = pd.DataFrame(
        [
            {
                "Source File": item.source_file_name,
                "Overall Sentiment": item.analysis.overall_sentiment.value,
                "Sentiment Score": item.analysis.sentiment_score,
                "Summary": item.analysis.summary,
                "Source Text": item.source_text,
                "Error": item.error or "",
            }
            for item in results
        ],
        columns=BATCH_CSV_COLUMNS,
    )
    return df.to_csv(index=False)


def to_docx(results: Sequence[AnalyzedItem], summary: Dict[str, Any]) -> bytes:
    """
    Build a Word report with a summary section and a detailed results table

    Args:
        results: Analyzed items
        summary: Output of aggregator.summarize()

    Returns:
        The .docx file contents
    """
    document = docx.Document()
    document.add_heading("Batch Sentiment Analysis Report", level=0)
    document.add_paragraph(f"Generated on: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")

    total = summary.get("totalReviews", 0)
    counts = summary.get("sentimentCounts", {})
    document.add_heading("Analysis Summary", level=1)
    document.add_paragraph(f"Total Reviews Analyzed: {total}", style="List Bullet")
    document.add_paragraph(f"Average Sentiment Score: {summary.get('averageScore', 0.0):.3f}", style="List Bullet")
    for label in SENTIMENT_LABELS:
        count = counts.get(label, 0)
        share = (count / total * 100) if total > 0 else 0.0
        document.add_paragraph(f"{label}: {count} ({share:.1f}%)", style="List Bullet")

    document.add_heading("Detailed Results", level=1)
    table = document.add_table(rows=1, cols=5)
    table.style = "Table Grid"
    for cell, title in zip(table.rows[0].cells, ["File", "Sentiment", "Score", "Summary", "Full Text"]):
        cell.text = title

    for item in results:
        row = table.add_row().cells
        row[0].text = item.source_file_name
        row[1].text = item.analysis.overall_sentiment.value
        row[2].text = f"{item.analysis.sentiment_score:.3f}"
        row[3].text = item.analysis.summary
        row[4].text = item.source_text

    buffer = io.BytesIO()
    document.save(buffer)
    logger.info(f"Built Word report with {len(results)} result(s)")
    return buffer.getvalue()


def single_result_to_json(result: SentimentResult) -> str:
    return json.dumps(result.to_dict(), indent=2)


def single_result_to_csv(result: SentimentResult) -> str:
    """One row per emotion, or a single N/A row when there are none"""
    base = {
        "Overall Sentiment": result.overall_sentiment.value,
        "Sentiment Score": result.sentiment_score,
        "Summary": result.summary,
    }
    if result.emotions:
        rows = [{**base, "Emotion": e.name, "Emotion Score": e.score} for e in result.emotions]
    else:
        rows = [{**base, "Emotion": "N/A", "Emotion Score": "N/A"}]
    return pd.DataFrame(rows, columns=SINGLE_CSV_COLUMNS).to_csv(index=False)


def single_result_to_docx(result: SentimentResult) -> bytes:
    """Word report for one manual analysis: verdict, score, summary and emotions table"""
    document = docx.Document()
    document.add_heading("Sentiment Analysis Report", level=0)
    document.add_paragraph(f"Generated on: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")

    document.add_heading("Overall Sentiment", level=1)
    document.add_paragraph(result.overall_sentiment.value)
    document.add_heading("Sentiment Score", level=1)
    document.add_paragraph(f"{result.sentiment_score:.3f}")
    document.add_heading("Summary", level=1)
    document.add_paragraph(result.summary)

    document.add_heading("Detected Emotions", level=1)
    if result.emotions:
        table = document.add_table(rows=1, cols=2)
        table.style = "Table Grid"
        table.rows[0].cells[0].text = "Emotion"
        table.rows[0].cells[1].text = "Score"
        for emotion in result.emotions:
            row = table.add_row().cells
            row[0].text = emotion.name
            row[1].text = f"{emotion.score:.3f}"
    else:
        document.add_paragraph("No specific emotions detected.")

    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


# ============================================================
# PDF reports
# ============================================================

HEADER_COLOR = colors.HexColor("#0f766e")


def _pdf_styles():
    styles = getSampleStyleSheet()
    cell_style = ParagraphStyle("Cell", parent=styles["BodyText"], fontSize=8, leading=10)
    header_style = ParagraphStyle("HeaderCell", parent=cell_style, textColor=colors.white, fontName="Helvetica-Bold")
    return styles, cell_style, header_style


def _pdf_table(header, rows, col_widths, cell_style, header_style) -> Table:
    """Grid table with a teal header row; cell text wraps"""
    data = [[Paragraph(escape(str(value)), header_style) for value in header]]
    data += [[Paragraph(escape(str(value)), cell_style) for value in row] for row in rows]
    table = Table(data, colWidths=col_widths, repeatRows=1)
    table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), HEADER_COLOR),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
    ]))
    return table


def _build_pdf(story) -> bytes:
    buffer = io.BytesIO()
    document = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=20 * mm,
        rightMargin=20 * mm,
        topMargin=20 * mm,
        bottomMargin=20 * mm,
    )
    document.build(story)
    return buffer.getvalue()


def to_pdf(results: Sequence[AnalyzedItem], summary: Dict[str, Any]) -> bytes:
    """
    Build a PDF report with a summary section and a results table

    Args:
        results: Analyzed items
        summary: Output of aggregator.summarize()

    Returns:
        The .pdf file contents
    """
    styles, cell_style, header_style = _pdf_styles()
    total = summary.get("totalReviews", 0)
    counts = summary.get("sentimentCounts", {})

    story = [
        Paragraph("Batch Sentiment Analysis Report", styles["Title"]),
        Paragraph(f"Generated on: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}", styles["Normal"]),
        Spacer(1, 8 * mm),
        Paragraph("Analysis Summary", styles["Heading2"]),
        Paragraph(f"Total Reviews Analyzed: {total}", styles["Normal"]),
        Paragraph(f"Average Sentiment Score: {summary.get('averageScore', 0.0):.3f}", styles["Normal"]),
    ]
    for label in SENTIMENT_LABELS:
        count = counts.get(label, 0)
        share = (count / total * 100) if total > 0 else 0.0
        story.append(Paragraph(f"{label}: {count} ({share:.1f}%)", styles["Normal"]))

    story += [Spacer(1, 6 * mm), Paragraph("Detailed Results", styles["Heading2"])]
    rows = [
        (
            item.source_file_name,
            item.analysis.overall_sentiment.value,
            f"{item.analysis.sentiment_score:.3f}",
            item.analysis.summary,
        )
        for item in results
    ]
    story.append(_pdf_table(
        ["File", "Sentiment", "Score", "Summary"],
        rows,
        [40 * mm, 22 * mm, 16 * mm, 92 * mm],
        cell_style,
        header_style,
    ))

    content = _build_pdf(story)
    logger.info(f"Built PDF report with {len(results)} result(s)")
    return content


def single_result_to_pdf(result: SentimentResult) -> bytes:
    """PDF report for one manual analysis"""
    styles, cell_style, header_style = _pdf_styles()
    story = [
        Paragraph("Sentiment Analysis Report", styles["Title"]),
        Paragraph(f"Generated on: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}", styles["Normal"]),
        Spacer(1, 8 * mm),
    ]
    sections = [
        ("Overall Sentiment:", result.overall_sentiment.value),
        ("Sentiment Score:", f"{result.sentiment_score:.3f}"),
        ("Summary:", result.summary),
    ]
    for title, content in sections:
        story.append(Paragraph(title, styles["Heading3"]))
        story.append(Paragraph(escape(content), styles["Normal"]))

    if result.emotions:
        story.append(Spacer(1, 4 * mm))
        story.append(_pdf_table(
            ["Emotion", "Score"],
            [(emotion.name, f"{emotion.score:.3f}") for emotion in result.emotions],
            [60 * mm, 30 * mm],
            cell_style,
            header_style,
        ))
    else:
        story.append(Paragraph("No specific emotions detected.", styles["Normal"]))
    return _build_pdf(story)
