from __future__ import annotations

from typing import Dict, Iterable, List

from .hours import scheduled_weeks, weekly_slot_hours
from .models import WEEKS_IN_YEAR, GlobalConfig, ProjectInput


def empty_loads(config: GlobalConfig) -> Dict[str, List[float]]:
    return {staff.id: [0.0] * WEEKS_IN_YEAR for staff in config.staff_types}


def weekly_aggregates(
    projects: Iterable[ProjectInput],
    config: GlobalConfig,
) -> Dict[str, List[float]]:
    """Rounded weekly hours per staff type across ``projects``.

    Phases are laid out back to back from each project's start offset, each
    one lasting exactly ``max_weeks``. Weeks past the end of the year are
    dropped.
    """
    loads = empty_loads(config)
    for project in projects:
        week_cursor = project.start_week_offset
        for phase in project.phases_config:
            duration = scheduled_weeks(phase)
            if duration <= 0:
                continue
            for sa in phase.staff_allocation:
                weekly = weekly_slot_hours(project, phase, sa.percentage)
                if weekly <= 0:
                    continue
                staff_loads = loads.setdefault(sa.staff_type_id, [0.0] * WEEKS_IN_YEAR)
                for offset in range(duration):
                    week_idx = week_cursor + offset
                    if 0 <= week_idx < WEEKS_IN_YEAR:
                        staff_loads[week_idx] += weekly
            week_cursor += duration
    return loads


def organization_totals(loads: Dict[str, List[float]]) -> List[float]:
    totals = [0.0] * WEEKS_IN_YEAR
    for weeks in loads.values():
        for idx, hours in enumerate(weeks):
            totals[idx] += hours
    return totals
