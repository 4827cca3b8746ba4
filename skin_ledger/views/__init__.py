"""View-model query engine and view state."""
from .query import SORT_KEYS, clamp_int, filter_sort_page, sort_rows
from .state import Debouncer, ValueCache, ViewState

__all__ = [
    "SORT_KEYS",
    "Debouncer",
    "ValueCache",
    "ViewState",
    "clamp_int",
    "filter_sort_page",
    "sort_rows",
]
