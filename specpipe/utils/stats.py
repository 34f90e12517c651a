"""Processing statistics accumulated while assembling a document."""

import time
from typing import Optional

from ..core.models import ProcessingStats


class StatsTracker:
    def __init__(self):
        self._stats = ProcessingStats()
        self._start_time: Optional[float] = None

    def start(self) -> None:
        self._start_time = time.perf_counter()

    def stop(self) -> None:
        if self._start_time is not None:
            elapsed_ms = (time.perf_counter() - self._start_time) * 1000
            self._stats.processing_time += elapsed_ms
            self._start_time = None

    def increment_elements(self, count: int = 1) -> None:
        self._stats.elements_processed += count

    def increment_files(self, count: int = 1) -> None:
        self._stats.files_included += count

    def increment_markdown_blocks(self, count: int = 1) -> None:
        self._stats.markdown_blocks += count

    def snapshot(self) -> ProcessingStats:
        return self._stats.model_copy()
