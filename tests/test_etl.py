"""Loading and validating project datasets."""

from __future__ import annotations

import io
import json
from datetime import date
from decimal import Decimal
from pathlib import Path

import pandas as pd
import pytest

from ops_dashboard.etl import (
    MalformedRecordError, load_projects, projects_from_frame, projects_from_records, read_source,
)
from ops_dashboard.models import JobType, Priority, Status

DATA_FILE = Path(__file__).resolve().parents[1] / "data" / "projects.json"


def _record(**overrides):
    rec = {
        "id": 1,
        "customer": "Dave Bleeker",
        "jobType": "Water",
        "status": "Active",
        "priority": "Critical",
        "revenue": 10000,
        "deposit": 2500,
        "balanceDue": 7500,
        "budgetedMargin": 0.3,
        "budgetedLabor": 4000,
        "actualLabor": 4200,
        "budgetedMaterials": 3000,
        "actualMaterials": 2900.5,
        "scheduledDays": ["Monday", "Tuesday"],
        "duration": 3,
        "crewSize": 2,
        "overdue": False,
        "dueDate": "2025-11-14",
        "issues": ["Labor overrun"],
    }
    rec.update(overrides)
    return rec


def test_records_become_typed_projects():
    (p,) = projects_from_records([_record()])

    assert p.id == 1
    assert p.job_type is JobType.WATER
    assert p.status is Status.ACTIVE
    assert p.priority is Priority.CRITICAL
    assert p.revenue == Decimal("10000")
    assert p.actual_materials == Decimal("2900.5")
    assert p.budgeted_margin == Decimal("0.3")
    assert p.scheduled_days == ("Monday", "Tuesday")
    assert p.due_date == date(2025, 11, 14)
    assert p.issues == ("Labor overrun",)
    assert p.overdue is False


def test_order_is_preserved():
    projects = projects_from_records([_record(id=3), _record(id=1), _record(id=2)])
    assert [p.id for p in projects] == [3, 1, 2]


def test_duplicate_scheduled_days_collapse():
    (p,) = projects_from_records([_record(scheduledDays=["Monday", "monday", "Friday"])])
    assert p.scheduled_days == ("Monday", "Friday")


def test_snake_case_columns_are_accepted():
    rec = _record()
    rec["balance_due"] = rec.pop("balanceDue")
    rec["crew_size"] = rec.pop("crewSize")
    (p,) = projects_from_records([rec])
    assert p.balance_due == Decimal("7500")
    assert p.crew_size == 2


def test_optional_fields_default():
    rec = _record()
    for key in ("scheduledDays", "overdue", "dueDate", "issues"):
        del rec[key]
    (p,) = projects_from_records([rec])
    assert p.scheduled_days == ()
    assert p.overdue is False
    assert p.due_date is None
    assert p.issues == ()


@pytest.mark.parametrize("overrides, fragment", [
    ({"revenue": "lots"}, "revenue"),
    ({"deposit": -5}, "deposit"),
    ({"status": "Paused"}, "status"),
    ({"priority": "Urgent"}, "priority"),
    ({"budgetedMargin": 1.5}, "budgeted_margin"),
    ({"crewSize": 0}, "crew_size"),
    ({"duration": 2.5}, "duration"),
    ({"scheduledDays": ["Saturday"]}, "weekday"),
    ({"dueDate": "someday"}, "due_date"),
    ({"customer": ""}, "missing customer"),
])
def test_malformed_record_rejects_snapshot(overrides, fragment):
    with pytest.raises(MalformedRecordError) as exc:
        projects_from_records([_record(id=1), _record(id=2, **overrides)])
    assert "record 1" in str(exc.value)
    assert fragment in str(exc.value)


def test_all_problems_are_reported():
    with pytest.raises(MalformedRecordError) as exc:
        projects_from_records([_record(id=1, revenue="x"), _record(id=1), _record(id=1)])
    assert len(exc.value.problems) == 2
    assert "duplicate id 1" in str(exc.value)


def test_missing_column_rejects_snapshot():
    df = pd.DataFrame([_record()]).drop(columns=["revenue"])
    with pytest.raises(MalformedRecordError, match="revenue"):
        projects_from_frame(df)


def test_negative_balance_is_allowed():
    (p,) = projects_from_records([_record(balanceDue=-200)])
    assert p.balance_due == Decimal("-200")


# ---------------------------------------------------------------------------
# File sources
# ---------------------------------------------------------------------------


def test_load_json_list_and_wrapped(tmp_path):
    bare = tmp_path / "bare.json"
    bare.write_text(json.dumps([_record(id=1), _record(id=2)]))
    wrapped = tmp_path / "wrapped.json"
    wrapped.write_text(json.dumps({"projects": [_record(id=7)]}))

    assert [p.id for p in load_projects(bare)] == [1, 2]
    assert [p.id for p in load_projects(wrapped)] == [7]


def test_load_csv_with_separated_lists(tmp_path):
    rec = _record(scheduledDays="Monday; Wednesday", issues="No deposit;Permit pending",
                  overdue="yes", actualMaterials="$2,900.50")
    path = tmp_path / "projects.csv"
    pd.DataFrame([rec]).to_csv(path, index=False)

    (p,) = load_projects(path)
    assert p.scheduled_days == ("Monday", "Wednesday")
    assert p.issues == ("No deposit", "Permit pending")
    assert p.overdue is True
    assert p.actual_materials == Decimal("2900.50")
    assert p.revenue == Decimal("10000")


def test_load_uploaded_file_object():
    buf = io.BytesIO(json.dumps([_record(id=4)]).encode("utf-8"))
    buf.name = "upload.json"
    assert [p.id for p in load_projects(buf)] == [4]


def test_unsupported_format(tmp_path):
    path = tmp_path / "projects.txt"
    path.write_text("id,customer\n")
    with pytest.raises(ValueError, match="Unsupported"):
        read_source(path)


def test_bad_json_shape(tmp_path):
    path = tmp_path / "projects.json"
    path.write_text(json.dumps({"jobs": []}))
    with pytest.raises(ValueError, match="Could not read"):
        read_source(path)


def test_missing_file(tmp_path):
    with pytest.raises(ValueError, match="Could not read"):
        load_projects(tmp_path / "nope.json")


def test_bundled_sample_data_loads():
    projects = load_projects(DATA_FILE)
    assert len(projects) == 7
    assert len({p.id for p in projects}) == 7


def test_empty_dataset_is_an_empty_snapshot(tmp_path):
    wrapped = tmp_path / "empty.json"
    wrapped.write_text(json.dumps({"projects": []}))
    bare = tmp_path / "bare.json"
    bare.write_text("[]")

    assert load_projects(wrapped) == ()
    assert load_projects(bare) == ()
    assert projects_from_records([]) == ()


def test_load_xlsx(tmp_path):
    rec = _record(id=9, scheduledDays="Monday;Friday", issues="No deposit", overdue="no",
                  revenue=12500, budgetedMargin=0.25)
    path = tmp_path / "projects.xlsx"
    pd.DataFrame([rec]).to_excel(path, index=False)

    (p,) = load_projects(path)
    assert p.id == 9
    assert p.customer == "Dave Bleeker"
    assert p.job_type is JobType.WATER
    assert p.revenue == Decimal("12500")
    assert p.budgeted_margin == Decimal("0.25")
    assert p.actual_materials == Decimal("2900.5")
    assert p.scheduled_days == ("Monday", "Friday")
    assert p.issues == ("No deposit",)
    assert p.overdue is False
    assert p.due_date == date(2025, 11, 14)


def test_legacy_xls_is_not_accepted(tmp_path):
    path = tmp_path / "projects.xls"
    path.write_bytes(b"")
    with pytest.raises(ValueError, match="Unsupported"):
        read_source(path)
