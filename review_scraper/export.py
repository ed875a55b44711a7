"""
CSV export of a finished run.
"""

import csv
import io
import logging
import tempfile
import time
from pathlib import Path
from typing import List, Optional, Protocol, Sequence

from .errors import ExportTransportError
from .models import COLUMNS, ItemRecord

logger = logging.getLogger(__name__)

BOM = "\ufeff"


class Exporter(Protocol):
    def export(self, records: Sequence[ItemRecord], page_count: int, total_count: int) -> str:
        ...


def to_csv(records: Sequence[ItemRecord]) -> str:
    """Render records as BOM-prefixed CSV with every field quoted."""
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(COLUMNS)
    writer.writerows(record.as_row() for record in records)
    # Rows are newline-joined; drop the last row's terminator.
    return BOM + buf.getvalue()[:-1]


class CsvExporter:
    """Writes ``reviews_<epoch ms>.csv`` into ``output_dir``.

    If the primary directory cannot be written, the file goes to
    ``fallback_dir`` (the system temp directory by default).
    """

    def __init__(self, output_dir: str = "output", fallback_dir: Optional[str] = None):
        self.output_dir = output_dir
        self.fallback_dir = fallback_dir or tempfile.gettempdir()

    def export(self, records: Sequence[ItemRecord], page_count: int, total_count: int) -> str:
        payload = to_csv(records)
        filename = f"reviews_{int(time.time() * 1000)}.csv"

        errors: List[str] = []
        for directory in (self.output_dir, self.fallback_dir):
            try:
                path = self._write(Path(directory), filename, payload)
            except OSError as exc:
                logger.warning("Cannot write export to %s: %s", directory, exc)
                errors.append(f"{directory}: {exc}")
                continue
            logger.info("Exported %s reviews from %s pages to %s", total_count, page_count, path)
            return str(path)

        raise ExportTransportError("All export transports failed (" + "; ".join(errors) + ")")

    @staticmethod
    def _write(directory: Path, filename: str, payload: str) -> Path:
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / filename
        with open(path, "w", encoding="utf-8", newline="") as f:
            f.write(payload)
        return path
