"""
File queue - ordered list of uploaded files awaiting batch analysis
"""
from typing import Iterable, Iterator, List, Tuple

from models.analysis import UploadedFile
from utils.logger import get_logger

logger = get_logger(__name__)


class FileQueue:
    """Ordered queue of uploaded files, de-duplicated by name and modification time"""

    def __init__(self, files: Iterable[UploadedFile] = ()):
        self._files: List[UploadedFile] = []
        self.add(files)

    def add(self, files: Iterable[UploadedFile]) -> int:
        """
        Append files that are not already queued

        Args:
            files: Files to enqueue, in selection order

        Returns:
            Number of files actually added
        """
        existing_ids = {f.id for f in self._files}
        added = 0
        duplicates = 0

        for file in files:
            if file.id in existing_ids:
                duplicates += 1
                continue
            self._files.append(file)
            existing_ids.add(file.id)
            added += 1

        if duplicates > 0:
            logger.info(f"Skipped {duplicates} duplicate file(s)")
        return added

    def remove(self, file_id: str) -> bool:
        """Remove a file by id. Returns True if it was queued."""
        for idx, file in enumerate(self._files):
            if file.id == file_id:
                del self._files[idx]
                return True
        return False

    def clear(self):
        self._files = []

    def snapshot(self) -> Tuple[UploadedFile, ...]:
        """Fixed copy of the queue to hand to a batch run"""
        return tuple(self._files)

    def __len__(self) -> int:
        return len(self._files)

    def __iter__(self) -> Iterator[UploadedFile]:
        return iter(list(self._files))

    def __contains__(self, file_id: object) -> bool:
        return any(f.id == file_id for f in self._files)
