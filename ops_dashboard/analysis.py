"""
Disaster Ops — Portfolio Metrics & Margin Analysis
==================================================

This module powers the dashboard and margin views.

Core business definitions (IMPORTANT)
------------------------------------
1) REVENUE = contracted job value.
2) DEPOSIT = money collected up front. A job that is not Complete and has a
   zero deposit is "at risk": its full revenue counts toward No-Deposit Amount.
3) BALANCE DUE = amount still owed by the customer.
4) BUDGETED MARGIN = planned margin, stored as a fraction of revenue.
   - Budgeted Margin ($) = Revenue × Budgeted Margin
5) ACTUAL MARGIN ($) = Revenue - (Actual Labor + Actual Materials)

Variance sign conventions
-------------------------
A) Margin Variance   = Actual Margin - Budgeted Margin ($)   (+ = better than budget)
B) Labor Variance    = Actual Labor - Budgeted Labor          (+ = over budget)
C) Material Variance = Actual Materials - Budgeted Materials  (+ = over budget)
D) Performance       = Actual Margin / Budgeted Margin ($), clamped to 0..1 for
                       the progress bar only. With a zero budget it is 1 when the
                       actual margin is >= 0, otherwise 0.

All money sums are Decimal and exact. Floats appear only in the DataFrames
built for tables and charts.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Sequence, Tuple

import numpy as np
import pandas as pd

from ops_dashboard.config import DEPOSIT_ALERT_COUNT, HIGH_BALANCE_RATIO
from ops_dashboard.models import ZERO, Priority, Project

ONE = Decimal("1")


# =============================================================================
# HELPERS
# =============================================================================

def _dsum(values: Iterable[Decimal]) -> Decimal:
    return sum(values, ZERO)

def _fraction(n: Decimal, d: Decimal) -> Decimal:
    return n / d if d != 0 else ZERO

def safe_div(n, d):
    """Vector-safe divide. Supports scalars, numpy arrays, and pandas Series."""
    n_arr = np.asarray(n, dtype="float64")
    d_arr = np.asarray(d, dtype="float64")
    out = np.zeros_like(n_arr, dtype="float64")
    np.divide(n_arr, d_arr, out=out, where=d_arr != 0)
    return float(out) if out.shape == () else out

def pct(n, d):
    """Percent = (n/d)*100 with vector-safe divide."""
    return safe_div(n, d) * 100.0


# =============================================================================
# DASHBOARD METRICS
# =============================================================================

@dataclass(frozen=True)
class DashboardMetrics:
    total_revenue: Decimal
    outstanding_balance: Decimal
    critical_projects: int
    deposits_collected: Decimal
    no_deposit_projects: Tuple[Project, ...]
    no_deposit_amount: Decimal
    overdue_count: int
    budgeted_margin_total: Decimal
    actual_margin_total: Decimal

    @property
    def budgeted_margin_pct(self) -> Decimal:
        return _fraction(self.budgeted_margin_total, self.total_revenue)

    @property
    def actual_margin_pct(self) -> Decimal:
        return _fraction(self.actual_margin_total, self.total_revenue)


def needs_deposit(p: Project) -> bool:
    return p.deposit == 0 and not p.is_complete

def calculate_dashboard_metrics(projects: Sequence[Project]) -> DashboardMetrics:
    no_deposit = tuple(p for p in projects if needs_deposit(p))
    return DashboardMetrics(
        total_revenue=_dsum(p.revenue for p in projects),
        outstanding_balance=_dsum(p.balance_due for p in projects),
        critical_projects=sum(1 for p in projects if p.priority == Priority.CRITICAL),
        deposits_collected=_dsum(p.deposit for p in projects),
        no_deposit_projects=no_deposit,
        no_deposit_amount=_dsum(p.revenue for p in no_deposit),
        overdue_count=sum(1 for p in projects if p.overdue),
        budgeted_margin_total=_dsum(p.budgeted_margin_amount for p in projects),
        actual_margin_total=_dsum(p.actual_margin for p in projects),
    )

def deposit_alerts(metrics: DashboardMetrics, n: int = DEPOSIT_ALERT_COUNT) -> Tuple[Project, ...]:
    return metrics.no_deposit_projects[:n]

def generate_priorities(metrics: DashboardMetrics) -> List[str]:
    """
    "Today's Top Priorities" bullets, most urgent first.
    """
    items: List[str] = []
    if metrics.overdue_count > 0:
        items.append(f"Call {metrics.overdue_count} overdue customer(s)")
    if metrics.no_deposit_projects:
        items.append(f"Get deposits from {len(metrics.no_deposit_projects)} jobs")
    return items


# =============================================================================
# MARGIN ANALYSIS (per project)
# =============================================================================

@dataclass(frozen=True)
class ProjectMargin:
    project_id: int
    customer: str
    revenue: Decimal
    budgeted_margin_amount: Decimal
    actual_margin: Decimal
    margin_variance: Decimal
    labor_variance: Decimal
    material_variance: Decimal
    performance_ratio: Decimal

    @property
    def is_favorable(self) -> bool:
        return self.margin_variance >= 0


def performance_ratio(actual_margin: Decimal, budgeted_margin_amount: Decimal) -> Decimal:
    """Actual vs budgeted margin for a progress bar, bounded to [0, 1]."""
    if budgeted_margin_amount == 0:
        return ONE if actual_margin >= 0 else ZERO
    ratio = actual_margin / budgeted_margin_amount
    return max(ZERO, min(ONE, ratio))

def project_margin(p: Project) -> ProjectMargin:
    budgeted = p.budgeted_margin_amount
    actual = p.actual_margin
    return ProjectMargin(
        project_id=p.id,
        customer=p.customer,
        revenue=p.revenue,
        budgeted_margin_amount=budgeted,
        actual_margin=actual,
        margin_variance=actual - budgeted,
        labor_variance=p.actual_labor - p.budgeted_labor,
        material_variance=p.actual_materials - p.budgeted_materials,
        performance_ratio=performance_ratio(actual, budgeted),
    )


# =============================================================================
# MARGIN ANALYSIS (portfolio)
# =============================================================================

@dataclass(frozen=True)
class CostBreakdown:
    budgeted_labor: Decimal
    actual_labor: Decimal
    budgeted_materials: Decimal
    actual_materials: Decimal

    @property
    def labor_variance(self) -> Decimal:
        return self.actual_labor - self.budgeted_labor

    @property
    def material_variance(self) -> Decimal:
        return self.actual_materials - self.budgeted_materials

    @property
    def labor_over_budget(self) -> bool:
        return self.labor_variance > 0

    @property
    def materials_over_budget(self) -> bool:
        return self.material_variance > 0


def cost_breakdown(projects: Sequence[Project]) -> CostBreakdown:
    return CostBreakdown(
        budgeted_labor=_dsum(p.budgeted_labor for p in projects),
        actual_labor=_dsum(p.actual_labor for p in projects),
        budgeted_materials=_dsum(p.budgeted_materials for p in projects),
        actual_materials=_dsum(p.actual_materials for p in projects),
    )


# =============================================================================
# VIEW MODELS (DataFrames for tables / charts)
# =============================================================================

MARGIN_TABLE_COLS = [
    "Project_ID", "Customer", "Revenue",
    "Budgeted_Margin", "Actual_Margin", "Margin_Variance",
    "Labor_Variance", "Material_Variance",
    "Budgeted_Margin_Pct", "Actual_Margin_Pct",
    "Performance", "Is_Favorable",
]

PROJECT_TABLE_COLS = [
    "Project_ID", "Customer", "Job_Type", "Status", "Priority",
    "Revenue", "Deposit", "Balance_Due",
    "Budgeted_Margin_Pct", "Actual_Margin_Pct",
    "Scheduled_Days", "Issues",
    "Is_Overdue", "Is_High_Balance", "Is_Margin_Low",
]

def margin_table(projects: Sequence[Project]) -> pd.DataFrame:
    """One row per project, input order. Percent columns are 0..100."""
    rows = []
    for p in projects:
        m = project_margin(p)
        rows.append({
            "Project_ID": m.project_id,
            "Customer": m.customer,
            "Revenue": float(m.revenue),
            "Budgeted_Margin": float(m.budgeted_margin_amount),
            "Actual_Margin": float(m.actual_margin),
            "Margin_Variance": float(m.margin_variance),
            "Labor_Variance": float(m.labor_variance),
            "Material_Variance": float(m.material_variance),
            "Performance": float(m.performance_ratio),
            "Is_Favorable": m.is_favorable,
        })
    out = pd.DataFrame(rows, columns=[c for c in MARGIN_TABLE_COLS if not c.endswith("_Pct")])
    out["Budgeted_Margin_Pct"] = pct(out["Budgeted_Margin"], out["Revenue"])
    out["Actual_Margin_Pct"] = pct(out["Actual_Margin"], out["Revenue"])
    return out[MARGIN_TABLE_COLS]

def projects_frame(projects: Sequence[Project]) -> pd.DataFrame:
    """Projects table view model, keeps the caller's (sorted) order."""
    rows = [
        {
            "Project_ID": p.id,
            "Customer": p.customer,
            "Job_Type": p.job_type.value,
            "Status": p.status.value,
            "Priority": p.priority.value,
            "Revenue": float(p.revenue),
            "Deposit": float(p.deposit),
            "Balance_Due": float(p.balance_due),
            "Budgeted_Margin_Pct": float(p.budgeted_margin) * 100.0,
            "Actual_Margin_Pct": float(p.actual_margin_pct) * 100.0,
            "Scheduled_Days": ", ".join(p.scheduled_days),
            "Issues": ", ".join(p.issues),
            "Is_Overdue": p.overdue,
        }
        for p in projects
    ]
    out = pd.DataFrame(rows, columns=PROJECT_TABLE_COLS[:-2])
    out["Is_High_Balance"] = np.where(
        out["Balance_Due"] > out["Revenue"] * HIGH_BALANCE_RATIO, True, False
    ).astype(bool)
    out["Is_Margin_Low"] = np.where(
        out["Actual_Margin_Pct"] < out["Budgeted_Margin_Pct"], True, False
    ).astype(bool)
    return out


METRIC_DEFINITIONS: Dict[str, Dict[str, str]] = {
    "total_revenue": {"name": "Total Revenue", "formula": "Σ Revenue", "description": "Contracted value across all jobs."},
    "outstanding_balance": {"name": "Outstanding Balance", "formula": "Σ Balance Due", "description": "Money still owed by customers."},
    "deposits_collected": {"name": "Deposits Collected", "formula": "Σ Deposit", "description": "Up-front money received."},
    "no_deposit_amount": {"name": "Revenue at Risk (No Deposit)", "formula": "Σ Revenue where Deposit = 0 and Status ≠ Complete", "description": "Open jobs started or booked without a deposit."},
    "budgeted_margin_total": {"name": "Budgeted Margin ($)", "formula": "Σ Revenue × Budgeted Margin", "description": "Planned margin in dollars."},
    "actual_margin_total": {"name": "Actual Margin ($)", "formula": "Σ Revenue - (Actual Labor + Actual Materials)", "description": "Realised margin in dollars."},
    "margin_variance": {"name": "Margin Variance", "formula": "Actual Margin - Budgeted Margin ($)", "description": "Positive = better than budget."},
    "labor_variance": {"name": "Labor Variance", "formula": "Actual Labor - Budgeted Labor", "description": "Positive = over budget."},
    "material_variance": {"name": "Material Variance", "formula": "Actual Materials - Budgeted Materials", "description": "Positive = over budget."},
    "crew_hours": {"name": "Crew-Hours", "formula": "Σ Crew Size × 8 per scheduled day", "description": "Labour booked on a given weekday."},
}
