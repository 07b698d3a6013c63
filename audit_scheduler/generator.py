"""Deterministic per-role, per-week hour grid.

The grid is rebuilt from scratch on every data change: natural phase layout
first, then phase overrides, then hour overrides on individual cells.
"""

from __future__ import annotations

import math
from datetime import date
from typing import Dict, List, Optional, Sequence

from .hours import canonical_round, phase_total_hours, rate_divisor, scheduled_weeks
from .models import (
    GlobalConfig,
    PhaseName,
    ProjectInput,
    ScheduleCell,
    ScheduleData,
    ScheduleRow,
    StaffSlot,
    StaffType,
)
from .timeline import build_timeline

PhaseProfile = Dict[PhaseName, Dict[str, float]]


def _phase_profiles(project: ProjectInput) -> PhaseProfile:
    """Unrounded weekly hours per staff type for every phase of ``project``."""
    profiles: PhaseProfile = {}
    for phase in project.phases_config:
        weekly_phase_hours = phase_total_hours(project, phase) / rate_divisor(phase)
        # a later phase with the same name replaces the earlier profile
        rates: Dict[str, float] = {}
        profiles[phase.name] = rates
        for sa in phase.staff_allocation:
            rates[sa.staff_type_id] = rates.get(sa.staff_type_id, 0.0) + weekly_phase_hours * sa.percentage / 100
    return profiles


def _weekly_phases(project: ProjectInput, headers: Sequence[date]) -> List[Optional[PhaseName]]:
    weekly: List[Optional[PhaseName]] = [None] * len(headers)
    week_cursor = project.start_week_offset
    for phase in project.phases_config:
        for _ in range(scheduled_weeks(phase)):
            if 0 <= week_cursor < len(headers):
                weekly[week_cursor] = phase.name
            week_cursor += 1
    positions = {week: idx for idx, week in enumerate(headers)}
    for week, phase_name in project.overrides.phase.items():
        idx = positions.get(week)
        if idx is not None:
            weekly[idx] = phase_name
    return weekly


def _split_count(
    project: ProjectInput,
    staff: StaffType,
    weekly_rates: Sequence[float],
    auto_split_overflow: bool,
) -> int:
    splits = max(1, project.overrides.max_split_for(staff.id))
    if auto_split_overflow and staff.max_hours_per_week > 0:
        peak = max(weekly_rates, default=0.0)
        splits = max(splits, math.ceil(peak / staff.max_hours_per_week))
    return splits


def _project_rows(
    project: ProjectInput,
    config: GlobalConfig,
    headers: Sequence[date],
) -> List[ScheduleRow]:
    profiles = _phase_profiles(project)
    weekly_phases = _weekly_phases(project, headers)
    rows: List[ScheduleRow] = []
    for staff in config.staff_types:
        weekly_rates = [
            profiles.get(phase_name, {}).get(staff.id, 0.0) if phase_name else 0.0
            for phase_name in weekly_phases
        ]
        num_splits = _split_count(project, staff, weekly_rates, config.auto_split_overflow)
        max_override_split = project.overrides.max_split_for(staff.id)
        allocated = project.allocates(staff.id)
        for split_index in range(1, num_splits + 1):
            slot = StaffSlot(staff.id, split_index)
            cells: List[ScheduleCell] = []
            has_hours = False
            for week, phase_name, rate in zip(headers, weekly_phases, weekly_rates):
                override = project.overrides.hours_for(slot, week)
                if override is not None:
                    cells.append(ScheduleCell(date=week, hours=override, phase=phase_name, is_override=True))
                    has_hours = has_hours or override > 0
                    continue
                hours = canonical_round(rate / num_splits) if rate > 0 else 0
                if hours > 0:
                    cells.append(ScheduleCell(date=week, hours=hours, phase=phase_name))
                    has_hours = True
                else:
                    cells.append(ScheduleCell(date=week))
            emit = has_hours or (split_index == 1 and allocated) or split_index <= max_override_split
            if not emit:
                continue
            rows.append(
                ScheduleRow(
                    project_id=project.id,
                    project_name=project.name,
                    staff_type_id=staff.id,
                    staff_type_name=staff.name,
                    staff_role=staff.role,
                    split_index=split_index,
                    cells=tuple(cells),
                    total_hours=sum(cell.hours for cell in cells),
                )
            )
    return rows


def generate_schedule(projects: Sequence[ProjectInput], config: GlobalConfig) -> ScheduleData:
    headers = build_timeline(config.year)
    rows: List[ScheduleRow] = []
    for project in projects:
        rows.extend(_project_rows(project, config, headers))
    return ScheduleData(headers=tuple(headers), rows=tuple(rows))
