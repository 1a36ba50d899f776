"""
Layer 4: Reporting
- Exporter (JSON, CSV, Word and PDF reports)
- History (capped list of recent manual analyses)
"""
from .exporter import (
    export_filename,
    to_json,
    to_csv,
    to_docx,
    single_result_to_json,
    single_result_to_csv,
    single_result_to_docx,
    single_result_to_pdf,
    to_pdf,
)
from .history import JsonHistoryStore, AnalysisHistory

__all__ = [
    'export_filename',
    'to_json',
    'to_csv',
    'to_docx',
    'single_result_to_json',
    'single_result_to_csv',
    'single_result_to_docx',
    'single_result_to_pdf',
    'to_pdf',
    'JsonHistoryStore',
    'AnalysisHistory',
]
