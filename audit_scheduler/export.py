from __future__ import annotations

from pathlib import Path
from typing import Dict, List

import pandas as pd

from .models import ScheduleData
from .timeline import week_label

ID_COLUMNS = ["Audit Name", "Staff Type", "Team Member", "Split #", "Total Hrs"]


def schedule_to_frame(schedule: ScheduleData) -> pd.DataFrame:
    """Flatten the grid: identifying columns, then one column per week."""
    week_columns = [week_label(week) for week in schedule.headers]
    records: List[Dict[str, object]] = []
    for row in schedule.rows:
        record: Dict[str, object] = {
            "Audit Name": row.project_name,
            "Staff Type": row.staff_role,
            "Team Member": row.staff_type_name,
            "Split #": row.split_index,
            "Total Hrs": row.total_hours,
        }
        for column, cell in zip(week_columns, row.cells):
            record[column] = cell.hours
        records.append(record)
    return pd.DataFrame(records, columns=ID_COLUMNS + week_columns)


def role_summary(schedule: ScheduleData) -> pd.DataFrame:
    """Total and average weekly hours per role, plus an ``All`` line."""
    weeks = len(schedule.headers) or 1
    frame = pd.DataFrame(
        [{"role": row.staff_role, "total_hours": row.total_hours} for row in schedule.rows],
        columns=["role", "total_hours"],
    )
    summary = frame.groupby("role", sort=True)["total_hours"].sum().reset_index()
    summary = pd.concat(
        [summary, pd.DataFrame([{"role": "All", "total_hours": frame["total_hours"].sum()}])],
        ignore_index=True,
    )
    summary["avg_weekly_hours"] = (summary["total_hours"] / weeks).round(1)
    return summary


def write_schedule(frame: pd.DataFrame, path: str | Path) -> Path:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    if target.suffix.lower() == ".xlsx":
        frame.to_excel(target, index=False, sheet_name="Schedule", engine="openpyxl")
    else:
        frame.to_csv(target, index=False)
    return target
