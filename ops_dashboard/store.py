"""
Project store: the current snapshot plus the schedule mutations.

A snapshot is a tuple of frozen Project records. Mutations never edit a record
in place; the touched project is replaced with dataclasses.replace and a new
tuple is returned, so any snapshot handed to a reader stays valid forever.
Unknown project ids are ignored (the UI may hold a stale reference).
"""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from typing import Callable, Iterable, Optional, Tuple

from ops_dashboard.models import Project

logger = logging.getLogger(__name__)

Snapshot = Tuple[Project, ...]


def _update_project(
    projects: Snapshot,
    project_id: int,
    change: Callable[[Project], Project],
) -> Snapshot:
    for i, p in enumerate(projects):
        if p.id != project_id:
            continue
        updated = change(p)
        if updated is p:
            return projects
        return projects[:i] + (updated,) + projects[i + 1:]

    logger.debug("No project with id %r in snapshot; ignoring schedule change", project_id)
    return projects


def add_to_schedule(projects: Snapshot, project_id: int, day: str) -> Snapshot:
    """Return the snapshot with `day` appended to the project's scheduled days."""
    def change(p: Project) -> Project:
        if day in p.scheduled_days:
            return p
        return replace(p, scheduled_days=p.scheduled_days + (day,))

    return _update_project(projects, project_id, change)


def remove_from_schedule(projects: Snapshot, project_id: int, day: str) -> Snapshot:
    """Return the snapshot with `day` removed from the project's scheduled days."""
    def change(p: Project) -> Project:
        if day not in p.scheduled_days:
            return p
        return replace(p, scheduled_days=tuple(d for d in p.scheduled_days if d != day))

    return _update_project(projects, project_id, change)


class ProjectStore:
    """
    Holds the current snapshot. Writers are serialized; readers take
    `store.projects` and work on that tuple without locking.

    `version` increases only when a mutation actually changes the snapshot,
    so callers can key their own caches on it.
    """

    def __init__(self, projects: Iterable[Project] = ()):
        self._projects: Snapshot = tuple(projects)
        self._version = 0
        self._lock = threading.Lock()

    @property
    def projects(self) -> Snapshot:
        return self._projects

    @property
    def version(self) -> int:
        return self._version

    def __len__(self) -> int:
        return len(self._projects)

    def get(self, project_id: int) -> Optional[Project]:
        for p in self._projects:
            if p.id == project_id:
                return p
        return None

    def add_to_schedule(self, project_id: int, day: str) -> Snapshot:
        return self._apply(add_to_schedule, project_id, day)

    def remove_from_schedule(self, project_id: int, day: str) -> Snapshot:
        return self._apply(remove_from_schedule, project_id, day)

    def _apply(self, op, project_id: int, day: str) -> Snapshot:
        with self._lock:
            new = op(self._projects, project_id, day)
            if new is not self._projects:
                self._projects = new
                self._version += 1
                logger.debug(
                    "%s(%r, %r) -> version %d", op.__name__, project_id, day, self._version
                )
            return self._projects
