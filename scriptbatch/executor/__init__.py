from .executor import SUMMARY_FILE, BatchRunner
from .types import Outcome, Summary, TaskResult

__all__ = ["BatchRunner", "Outcome", "Summary", "TaskResult", "SUMMARY_FILE"]
