"""Table ingestion: file reader and the bundled sample dataset."""

from .reader import TableReadError, read_table_file
from .sample_data import SAMPLE_DATA

__all__ = [
    "TableReadError",
    "read_table_file",
    "SAMPLE_DATA",
]
