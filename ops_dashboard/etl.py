import json
import logging
from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path

import pandas as pd

from ops_dashboard.config import WEEKDAY_NAMES
from ops_dashboard.models import JobType, Priority, Project, Status

logger = logging.getLogger(__name__)


class MalformedRecordError(ValueError):
    """The dataset has records the engine cannot compute with."""

    def __init__(self, problems):
        self.problems = list(problems)
        super().__init__(
            f"{len(self.problems)} malformed record problem(s): " + "; ".join(self.problems)
        )


# Source column (camelCase, as exported by the field app) -> Project field
COLUMN_MAP = {
    'id': 'id',
    'customer': 'customer',
    'jobType': 'job_type',
    'status': 'status',
    'priority': 'priority',
    'revenue': 'revenue',
    'deposit': 'deposit',
    'balanceDue': 'balance_due',
    'budgetedMargin': 'budgeted_margin',
    'budgetedLabor': 'budgeted_labor',
    'actualLabor': 'actual_labor',
    'budgetedMaterials': 'budgeted_materials',
    'actualMaterials': 'actual_materials',
    'scheduledDays': 'scheduled_days',
    'duration': 'duration',
    'crewSize': 'crew_size',
    'overdue': 'overdue',
    'dueDate': 'due_date',
    'issues': 'issues',
}

CURRENCY_FIELDS = [
    'revenue', 'deposit', 'balance_due',
    'budgeted_labor', 'actual_labor', 'budgeted_materials', 'actual_materials',
]

REQUIRED_FIELDS = [
    'id', 'customer', 'job_type', 'status', 'priority',
    *CURRENCY_FIELDS, 'budgeted_margin', 'duration', 'crew_size',
]

LIST_SEPARATOR = ';'


def read_source(file_source):
    """
    Reads a project dataset into a raw DataFrame.

    Accepts a path (.json, .csv, .xlsx) or an uploaded file object with a
    `.name` attribute. JSON may be a list of records or {"projects": [...]}.
    """
    name = str(getattr(file_source, 'name', file_source))
    suffix = Path(name).suffix.lower()

    try:
        if suffix == '.json':
            return pd.DataFrame(_read_json_records(file_source))
        if suffix == '.csv':
            return pd.read_csv(file_source, dtype=str, keep_default_na=False)
        if suffix == '.xlsx':
            return pd.read_excel(file_source, dtype=str, keep_default_na=False)
    except (OSError, ValueError) as e:
        raise ValueError(f"Could not read project data from {name}: {e}") from e

    raise ValueError(f"Unsupported project data format: {suffix or name!r} (use .json, .csv or .xlsx)")


def _read_json_records(file_source):
    if hasattr(file_source, 'read'):
        data = json.load(file_source)
    else:
        with open(file_source, encoding='utf-8') as fh:
            data = json.load(fh)

    if isinstance(data, dict):
        data = data.get('projects')
    if not isinstance(data, list):
        raise ValueError('expected a list of project records or {"projects": [...]}')
    return data


def _is_blank(val):
    if val is None:
        return True
    if isinstance(val, (list, tuple)):
        return False
    if isinstance(val, str):
        return val.strip() == ''
    return bool(pd.isna(val))


def _as_decimal(val):
    if isinstance(val, bool):
        raise ValueError(f"not a number: {val!r}")
    s = str(val).strip().replace('$', '').replace(',', '')
    try:
        d = Decimal(s)
    except InvalidOperation:
        raise ValueError(f"not a number: {val!r}") from None
    if not d.is_finite():
        raise ValueError(f"not a number: {val!r}")
    return d


def _as_int(val):
    d = _as_decimal(val)
    if d != d.to_integral_value():
        raise ValueError(f"not a whole number: {val!r}")
    return int(d)


def _as_bool(val):
    if _is_blank(val):
        return False
    if isinstance(val, bool):
        return val
    s = str(val).strip().lower()
    if s in {'yes', 'y', 'true', '1'}:
        return True
    if s in {'no', 'n', 'false', '0'}:
        return False
    raise ValueError(f"not a yes/no value: {val!r}")


def _as_date(val):
    if _is_blank(val):
        return None
    ts = pd.to_datetime(val, errors='coerce')
    if pd.isna(ts):
        raise ValueError(f"not a date: {val!r}")
    return date(ts.year, ts.month, ts.day)


def _as_list(val):
    if _is_blank(val):
        return ()
    if isinstance(val, (list, tuple)):
        items = [str(v).strip() for v in val]
    else:
        items = [s.strip() for s in str(val).split(LIST_SEPARATOR)]
    return tuple(s for s in items if s)


def _as_days(val):
    days = []
    for d in _as_list(val):
        day = d.capitalize()
        if day not in WEEKDAY_NAMES:
            raise ValueError(f"unknown weekday {d!r}")
        if day not in days:
            days.append(day)
    return tuple(days)


def _parse_record(rec):
    """Builds one Project from a normalized dict; raises ValueError naming the field."""
    parsed = {}
    for f in CURRENCY_FIELDS:
        try:
            parsed[f] = _as_decimal(rec[f])
        except ValueError as e:
            raise ValueError(f"{f}: {e}")
        # balance due may be negative (customer credit)
        if f != 'balance_due' and parsed[f] < 0:
            raise ValueError(f"{f}: must be >= 0, got {parsed[f]}")

    try:
        margin = _as_decimal(rec['budgeted_margin'])
    except ValueError as e:
        raise ValueError(f"budgeted_margin: {e}")
    if not (0 <= margin <= 1):
        raise ValueError(f"budgeted_margin: must be a fraction between 0 and 1, got {margin}")

    for f in ('duration', 'crew_size'):
        try:
            parsed[f] = _as_int(rec[f])
        except ValueError as e:
            raise ValueError(f"{f}: {e}")
        if parsed[f] <= 0:
            raise ValueError(f"{f}: must be > 0, got {parsed[f]}")

    enums = {}
    for f, enum_cls in (('job_type', JobType), ('status', Status), ('priority', Priority)):
        try:
            enums[f] = enum_cls(str(rec[f]).strip())
        except ValueError:
            allowed = ', '.join(e.value for e in enum_cls)
            raise ValueError(f"{f}: {rec[f]!r} is not one of {allowed}") from None

    try:
        scheduled_days = _as_days(rec.get('scheduled_days'))
    except ValueError as e:
        raise ValueError(f"scheduled_days: {e}")
    try:
        overdue = _as_bool(rec.get('overdue'))
    except ValueError as e:
        raise ValueError(f"overdue: {e}")
    try:
        due_date = _as_date(rec.get('due_date'))
    except ValueError as e:
        raise ValueError(f"due_date: {e}")

    try:
        project_id = _as_int(rec['id'])
    except ValueError as e:
        raise ValueError(f"id: {e}")

    return Project(
        id=project_id,
        customer=str(rec['customer']).strip(),
        job_type=enums['job_type'],
        status=enums['status'],
        priority=enums['priority'],
        revenue=parsed['revenue'],
        deposit=parsed['deposit'],
        balance_due=parsed['balance_due'],
        budgeted_margin=margin,
        budgeted_labor=parsed['budgeted_labor'],
        actual_labor=parsed['actual_labor'],
        budgeted_materials=parsed['budgeted_materials'],
        actual_materials=parsed['actual_materials'],
        duration=parsed['duration'],
        crew_size=parsed['crew_size'],
        scheduled_days=scheduled_days,
        overdue=overdue,
        due_date=due_date,
        issues=_as_list(rec.get('issues')),
    )


def projects_from_frame(df):
    """
    Standardizes a raw project table and validates it into a snapshot.

    Every record is checked before anything is returned; if any record is
    malformed the whole snapshot is rejected with MalformedRecordError.
    """
    if len(df) == 0:
        logger.info("Loaded 0 projects (empty dataset)")
        return ()

    df = df.rename(columns=COLUMN_MAP)

    # Validate columns
    missing_cols = [c for c in REQUIRED_FIELDS if c not in df.columns]
    if missing_cols:
        raise MalformedRecordError([f"missing required column(s): {', '.join(missing_cols)}"])

    problems = []
    projects = []
    seen_ids = set()
    for idx, rec in enumerate(df.to_dict(orient='records')):
        blank = [f for f in REQUIRED_FIELDS if _is_blank(rec.get(f))]
        if blank:
            problems.append(f"record {idx}: missing {', '.join(blank)}")
            continue
        try:
            p = _parse_record(rec)
        except ValueError as e:
            problems.append(f"record {idx}: {e}")
            continue
        if p.id in seen_ids:
            problems.append(f"record {idx}: duplicate id {p.id}")
            continue
        seen_ids.add(p.id)
        projects.append(p)

    if problems:
        raise MalformedRecordError(problems)

    logger.info("Loaded %d project(s)", len(projects))
    return tuple(projects)


def projects_from_records(records):
    return projects_from_frame(pd.DataFrame(list(records)))


def load_projects(file_source):
    """Reads and validates a project dataset. Returns the initial snapshot."""
    return projects_from_frame(read_source(file_source))
