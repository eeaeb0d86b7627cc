"""
Weekly schedule board.

The schedule is manual tagging: a project lists the weekdays it is booked on.
No conflict or capacity checks are made. A project booked on several days
shows up under each of them and adds its crew-hours to each day.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple

import pandas as pd

from ops_dashboard.config import HOURS_PER_CREW_DAY, WEEK_DAYS, WeekDay
from ops_dashboard.models import Project


def scheduled_for(projects: Iterable[Project], day: str) -> List[Project]:
    return [p for p in projects if day in p.scheduled_days]


def crew_hours(projects: Iterable[Project], day: str) -> int:
    return sum(p.crew_size * HOURS_PER_CREW_DAY for p in scheduled_for(projects, day))


def unscheduled(projects: Iterable[Project]) -> List[Project]:
    """Open jobs that are not booked on any day."""
    return [p for p in projects if not p.scheduled_days and not p.is_complete]


@dataclass(frozen=True)
class DayPlan:
    day: str
    date_label: str
    projects: Tuple[Project, ...]
    crew_hours: int

    @property
    def project_count(self) -> int:
        return len(self.projects)


@dataclass(frozen=True)
class WeekPlan:
    days: Tuple[DayPlan, ...]
    unscheduled: Tuple[Project, ...]

    @property
    def total_crew_hours(self) -> int:
        return sum(d.crew_hours for d in self.days)


def plan_week(projects: Sequence[Project], week: Sequence[WeekDay] = WEEK_DAYS) -> WeekPlan:
    days = []
    for wd in week:
        booked = tuple(scheduled_for(projects, wd.name))
        days.append(DayPlan(
            day=wd.name,
            date_label=wd.date_label,
            projects=booked,
            crew_hours=crew_hours(booked, wd.name),
        ))
    return WeekPlan(days=tuple(days), unscheduled=tuple(unscheduled(projects)))


def schedule_frame(plan: WeekPlan) -> pd.DataFrame:
    """One row per weekday, in week order, for the crew-hours chart."""
    rows = [
        {
            "Day": d.day,
            "Date": d.date_label,
            "Jobs": d.project_count,
            "Crew_Hours": d.crew_hours,
            "Revenue": float(sum(p.revenue for p in d.projects)),
        }
        for d in plan.days
    ]
    return pd.DataFrame(rows, columns=["Day", "Date", "Jobs", "Crew_Hours", "Revenue"])
