"""
Project record.

Currency fields are Decimal so portfolio sums stay exact; conversion to float
happens only when a view model is built for charts and tables.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional, Tuple


class JobType(str, Enum):
    WATER = "Water"
    MOLD = "Mold"
    STRUCTURE = "Structure"
    FIRE = "Fire"
    STORM = "Storm"
    OTHER = "Other"


class Status(str, Enum):
    NOT_STARTED = "Not Started"
    ACTIVE = "Active"
    COMPLETE = "Complete"


class Priority(str, Enum):
    CRITICAL = "Critical"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


ZERO = Decimal("0")


@dataclass(frozen=True)
class Project:
    id: int
    customer: str
    job_type: JobType
    status: Status
    priority: Priority

    revenue: Decimal
    deposit: Decimal
    balance_due: Decimal
    budgeted_margin: Decimal  # fraction of revenue, 0..1
    budgeted_labor: Decimal
    actual_labor: Decimal
    budgeted_materials: Decimal
    actual_materials: Decimal

    duration: int
    crew_size: int
    scheduled_days: Tuple[str, ...] = ()

    overdue: bool = False
    due_date: Optional[date] = None
    issues: Tuple[str, ...] = ()

    @property
    def actual_costs(self) -> Decimal:
        return self.actual_labor + self.actual_materials

    @property
    def budgeted_margin_amount(self) -> Decimal:
        return self.revenue * self.budgeted_margin

    @property
    def actual_margin(self) -> Decimal:
        return self.revenue - self.actual_costs

    @property
    def actual_margin_pct(self) -> Decimal:
        """Actual margin as a fraction of revenue (0 when there is no revenue)."""
        if self.revenue == 0:
            return ZERO
        return self.actual_margin / self.revenue

    @property
    def is_complete(self) -> bool:
        return self.status == Status.COMPLETE
