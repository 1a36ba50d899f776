"""
Layer 1: Document Ingestion
- Normalizer (PDF, DOCX, JSON, TXT to plain text)
- File Queue (ordered, de-duplicated uploads)
"""
from .normalizer import (
    normalize,
    NormalizationError,
    UnsupportedFileType,
    UnsupportedJsonShape,
    DocumentReadError,
    SUPPORTED_EXTENSIONS,
)
from .file_queue import FileQueue

__all__ = [
    'normalize',
    'NormalizationError',
    'UnsupportedFileType',
    'UnsupportedJsonShape',
    'DocumentReadError',
    'SUPPORTED_EXTENSIONS',
    'FileQueue',
]
