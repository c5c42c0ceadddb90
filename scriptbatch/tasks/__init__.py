from .discovery import discover, enumerate_tasks, filter_changed, read_change_list
from .types import EnumerationError, Task

__all__ = [
    "Task",
    "EnumerationError",
    "discover",
    "filter_changed",
    "read_change_list",
    "enumerate_tasks",
]
