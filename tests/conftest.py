"""Shared fixtures: a small project builder and a mixed sample snapshot."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from ops_dashboard.models import JobType, Priority, Project, Status


def make_project(id: int = 1, **overrides) -> Project:
    fields = dict(
        id=id,
        customer=f"Customer {id}",
        job_type=JobType.WATER,
        status=Status.ACTIVE,
        priority=Priority.MEDIUM,
        revenue=Decimal("10000"),
        deposit=Decimal("2000"),
        balance_due=Decimal("8000"),
        budgeted_margin=Decimal("0.3"),
        budgeted_labor=Decimal("4000"),
        actual_labor=Decimal("4000"),
        budgeted_materials=Decimal("3000"),
        actual_materials=Decimal("2000"),
        duration=3,
        crew_size=2,
        scheduled_days=(),
        overdue=False,
        due_date=date(2025, 11, 14),
        issues=(),
    )
    for k, v in overrides.items():
        if isinstance(v, (int, float, str)) and k in {
            "revenue", "deposit", "balance_due", "budgeted_margin",
            "budgeted_labor", "actual_labor", "budgeted_materials", "actual_materials",
        }:
            v = Decimal(str(v))
        fields[k] = v
    return Project(**fields)


@pytest.fixture()
def project_factory():
    return make_project


@pytest.fixture()
def sample_projects():
    return (
        make_project(1, customer="Dave Bleeker", priority=Priority.CRITICAL,
                     scheduled_days=("Monday", "Tuesday"), crew_size=3),
        make_project(2, customer="American Legion", status=Status.NOT_STARTED,
                     deposit=0, revenue=24000, priority=Priority.HIGH),
        make_project(3, customer="Kelly Carmody", overdue=True, revenue=42000,
                     actual_labor=19800, scheduled_days=("Tuesday",), crew_size=5),
        make_project(4, customer="Riverside Dental", status=Status.COMPLETE,
                     deposit=0, revenue=9600, overdue=True, priority=Priority.LOW),
        make_project(5, customer="Maria Gonzalez", status=Status.NOT_STARTED,
                     deposit=0, revenue=56000, priority=Priority.CRITICAL),
    )
