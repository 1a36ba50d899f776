"""
Manual analysis history persisted as JSON
"""
import json
import os
from datetime import datetime
from typing import List, Optional

from config.settings import settings
from models.analysis import HistoryItem, SentimentResult
from utils.logger import get_logger

logger = get_logger(__name__)


class JsonHistoryStore:
    """Load and save the history list as a single JSON file"""

    def __init__(self, path: str = None):
        """
        Initialize store

        Args:
            path: JSON file location (defaults to settings.HISTORY_FILE)
        """
        self.path = path or settings.HISTORY_FILE

    def load(self) -> List[HistoryItem]:
        """
        Load saved history

        A missing file yields an empty list. A corrupt file is deleted and
        an empty list returned, so a bad write never breaks the dashboard.
        """
        if not os.path.exists(self.path):
            return []
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            return [HistoryItem.from_dict(entry) for entry in data]
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Failed to parse history from {self.path}, discarding it: {e}")
            try:
                os.remove(self.path)
            except OSError as remove_error:
                logger.error(f"Could not remove corrupt history file: {remove_error}")
            return []

    def save(self, items: List[HistoryItem]):
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        try:
            with open(self.path, 'w', encoding='utf-8') as f:
                json.dump([item.to_dict() for item in items], f, indent=2)
        except OSError as e:
            logger.error(f"Failed to save history to {self.path}: {e}")


class AnalysisHistory:
    """Most recent manual analyses, newest first, capped at max_items"""

    def __init__(self, store: JsonHistoryStore, max_items: Optional[int] = None):
        self.store = store
        self.max_items = settings.HISTORY_MAX_ITEMS if max_items is None else max_items
        self._items: List[HistoryItem] = store.load()[: self.max_items]

    @property
    def items(self) -> List[HistoryItem]:
        return list(self._items)

    def add(self, source_text: str, analysis: SentimentResult, now: Optional[datetime] = None) -> HistoryItem:
        """
        Record an analysis at the front of the history and persist it

        Args:
            source_text: Analyzed text
            analysis: Classifier result
            now: Timestamp (defaults to the current time)

        Returns:
            The new HistoryItem
        """
        now = now or datetime.now()
        item = HistoryItem(
            id=now.isoformat(),
            timestamp=now.strftime("%Y-%m-%d %H:%M:%S"),
            source_text=source_text,
            analysis=analysis,
        )
        self._items = ([item] + self._items)[: max(self.max_items, 0)]
        self.store.save(self._items)
        return item

    def get(self, item_id: str) -> Optional[HistoryItem]:
        for item in self._items:
            if item.id == item_id:
                return item
        return None

    def clear(self):
        self._items = []
        self.store.save(self._items)
