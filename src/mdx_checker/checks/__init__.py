"""Per-file compile checks and batch aggregation."""

from .model import BatchResult, FileResult
from .runner import aggregate, process_file, run, run_files

__all__ = ["BatchResult", "FileResult", "aggregate", "process_file", "run", "run_files"]
