"""
Project ordering for the projects table.

Ordering rule
-------------
- Values are compared with their natural ordering (text lexicographically,
  numbers numerically). Enums are str enums and compare by their value.
- "desc" uses the same comparator with the sign flipped; the list is never
  reversed, so ties keep their input order in both directions.
- A missing value (attribute absent or None) equals any other missing value and
  sorts after every defined value in "asc". Since "desc" is the exact reverse
  comparator, missing values lead in "desc".
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import cmp_to_key
from typing import Any, Dict, Iterable, List, Optional

from ops_dashboard.models import Project

ASC = "asc"
DESC = "desc"
DIRECTIONS = (ASC, DESC)

# Column header -> sort key, in table order
SORTABLE_COLUMNS: Dict[str, str] = {
    "Customer": "customer",
    "Type": "job_type",
    "Status": "status",
    "Revenue": "revenue",
    "Balance Due": "balance_due",
    "Margin": "actual_margin_pct",
    "Priority": "priority",
}


@dataclass(frozen=True)
class SortConfig:
    key: Optional[str] = None
    direction: str = ASC


def toggle_sort(config: SortConfig, key: str) -> SortConfig:
    """Header click: the active ascending key flips to desc, anything else sorts asc."""
    if config.key == key and config.direction == ASC:
        return SortConfig(key, DESC)
    return SortConfig(key, ASC)


def header_label(config: SortConfig, column: str) -> str:
    """Column header text, with ▲/▼ on the active sort column."""
    if SORTABLE_COLUMNS.get(column) != config.key or config.key is None:
        return column
    return f"{column} {'▲' if config.direction == ASC else '▼'}"


def _compare_values(a: Any, b: Any) -> int:
    if a is None and b is None:
        return 0
    if a is None:
        return 1
    if b is None:
        return -1
    if a < b:
        return -1
    if a > b:
        return 1
    return 0


def sort_projects(
    projects: Iterable[Project],
    key: Optional[str],
    direction: str = ASC,
) -> List[Project]:
    """Return a new, stably sorted list; `projects` is left untouched."""
    if direction not in DIRECTIONS:
        raise ValueError(f"Unknown sort direction {direction!r}; expected one of {DIRECTIONS}")

    items = list(projects)
    if key is None:
        return items

    sign = 1 if direction == ASC else -1

    def compare(a: Project, b: Project) -> int:
        return sign * _compare_values(getattr(a, key, None), getattr(b, key, None))

    return sorted(items, key=cmp_to_key(compare))


def apply_sort(projects: Iterable[Project], config: SortConfig) -> List[Project]:
    return sort_projects(projects, config.key, config.direction)
