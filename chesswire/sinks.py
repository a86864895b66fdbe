"""
Write-only persistence sinks for analysis results.
"""

import threading
from pathlib import Path
from typing import Protocol, Union

from chesswire.models.analysis import AnalysisResult
from chesswire.utils.logger import get_logger

logger = get_logger("sinks")


class ResultSink(Protocol):
    """Receives finished analysis results; nothing is ever read back."""

    def write(self, result: AnalysisResult) -> None:
        ...


class JsonLinesResultSink:
    """
    Appends one camelCase JSON document per result to a file.

    Writes from concurrent batch workers are serialized with a lock.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        """
        Initialize the sink.

        Args:
            path: Output file; parent directories are created as needed
        """
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def write(self, result: AnalysisResult) -> None:
        line = result.model_dump_json(by_alias=True)
        with self._lock:
            with self.path.open("a", encoding="utf-8") as f:
                f.write(line + "\n")
        logger.debug("Wrote %s result to %s", result.content_type.value, self.path)
