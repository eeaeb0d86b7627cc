"""
Dashboard configuration.

Plain module constants. The working week carries fixed calendar labels: the
schedule board is planned one week at a time and the labels are set here, not
derived from today's date.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple


# =============================================================================
# WEEK
# =============================================================================

@dataclass(frozen=True)
class WeekDay:
    name: str
    date_label: str


WEEK_DAYS: Tuple[WeekDay, ...] = (
    WeekDay("Monday", "11/11"),
    WeekDay("Tuesday", "11/12"),
    WeekDay("Wednesday", "11/13"),
    WeekDay("Thursday", "11/14"),
    WeekDay("Friday", "11/15"),
)

WEEKDAY_NAMES: Tuple[str, ...] = tuple(d.name for d in WEEK_DAYS)

WEEK_LABEL = "Week of November 11-15, 2025"

HOURS_PER_CREW_DAY = 8


# =============================================================================
# DISPLAY THRESHOLDS
# =============================================================================

# Balance due above this share of revenue is highlighted in the projects table
HIGH_BALANCE_RATIO = 0.8

# Number of no-deposit jobs listed in the dashboard alert
DEPOSIT_ALERT_COUNT = 3


# =============================================================================
# DATA SOURCE + LOGGING
# =============================================================================

DEFAULT_DATA_PATH = Path(os.environ.get("OPS_DASHBOARD_DATA", "data/projects.json"))

LOG_LEVEL = os.environ.get("OPS_DASHBOARD_LOG_LEVEL", "INFO").upper()
