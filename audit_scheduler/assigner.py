"""Greedy best-fit resolution of placeholder staffing slots.

Each unassigned slot becomes a :class:`Task`. Tasks are placed largest first;
every candidate is scored on team affinity, skill match and how the task's
weekly hours would sit on top of the load they already carry. The winner's
load table is updated immediately so later tasks see the commitment.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Sequence, Tuple

from .aggregator import weekly_aggregates
from .hours import scheduled_weeks, weekly_slot_hours
from .models import (
    SKILL_LEVEL_BONUS,
    WEEKS_IN_YEAR,
    Assigned,
    GlobalConfig,
    PhaseName,
    ProjectInput,
    StaffAllocation,
    StaffType,
)

logger = logging.getLogger(__name__)

TEAM_MATCH_BONUS = 50
OVERTIME_WEIGHT = 10
UTILIZATION_WEIGHT = 1


@dataclass(frozen=True)
class Task:
    project_id: str
    project_name: str
    team: str
    required_skills: Tuple[str, ...]
    phase_idx: int
    phase_name: PhaseName
    slot_idx: int
    start_week: int
    duration: int
    weekly_hours: float

    @property
    def total_effort(self) -> float:
        return self.weekly_hours * self.duration

    def weeks(self) -> range:
        start = max(0, self.start_week)
        end = min(WEEKS_IN_YEAR, self.start_week + self.duration)
        return range(start, max(start, end))


@dataclass(frozen=True)
class AssignmentResult:
    projects: List[ProjectInput]
    warnings: List[str]


def build_tasks(projects: Sequence[ProjectInput]) -> List[Task]:
    tasks: List[Task] = []
    for project in projects:
        week_cursor = project.start_week_offset
        for phase_idx, phase in enumerate(project.phases_config):
            duration = scheduled_weeks(phase)
            for slot_idx, sa in enumerate(phase.staff_allocation):
                if not sa.is_placeholder or sa.percentage <= 0:
                    continue
                tasks.append(
                    Task(
                        project_id=project.id,
                        project_name=project.name,
                        team=project.team,
                        required_skills=tuple(project.required_skills),
                        phase_idx=phase_idx,
                        phase_name=phase.name,
                        slot_idx=slot_idx,
                        start_week=week_cursor,
                        duration=duration,
                        weekly_hours=weekly_slot_hours(project, phase, sa.percentage),
                    )
                )
            week_cursor += duration
    return tasks


def score_candidate(task: Task, staff: StaffType, load: Sequence[float]) -> float:
    bonus = 0.0
    if staff.team == task.team:
        bonus += TEAM_MATCH_BONUS
    for skill in task.required_skills:
        bonus += SKILL_LEVEL_BONUS[staff.skill_level(skill)]
    overtime_penalty = 0.0
    utilization_reward = 0.0
    for week_idx in task.weeks():
        projected = load[week_idx] + task.weekly_hours
        if projected > staff.max_hours_per_week:
            excess = projected - staff.max_hours_per_week
            overtime_penalty += excess * excess
        else:
            utilization_reward += task.weekly_hours
    return bonus - OVERTIME_WEIGHT * overtime_penalty + UTILIZATION_WEIGHT * utilization_reward


def _pick_candidate(
    task: Task,
    staff_pool: Sequence[StaffType],
    excluded: set,
    loads: Dict[str, List[float]],
) -> Optional[StaffType]:
    best: Optional[StaffType] = None
    best_score = float("-inf")
    for staff in staff_pool:
        if staff.id in excluded:
            continue
        load = loads.setdefault(staff.id, [0.0] * WEEKS_IN_YEAR)
        score = score_candidate(task, staff, load)
        if score > best_score:
            best, best_score = staff, score
    return best


def assign_placeholders(
    projects: Sequence[ProjectInput],
    config: GlobalConfig,
) -> AssignmentResult:
    """Bind placeholder slots to concrete staff; unfillable slots become warnings."""
    loads = weekly_aggregates(projects, config)
    staff_pool = config.concrete_staff()
    allocations: Dict[str, List[List[StaffAllocation]]] = {
        project.id: [list(phase.staff_allocation) for phase in project.phases_config]
        for project in projects
    }
    held: Dict[str, set] = {project.id: project.assigned_staff_ids() for project in projects}
    warnings: List[str] = []

    tasks = sorted(build_tasks(projects), key=lambda t: t.total_effort, reverse=True)
    logger.debug("Resolving %d placeholder slots across %d staff", len(tasks), len(staff_pool))
    for task in tasks:
        chosen = _pick_candidate(task, staff_pool, held[task.project_id], loads)
        if chosen is None:
            message = f"Could not assign staff for {task.project_name} - {task.phase_name.value}"
            logger.warning(message)
            warnings.append(message)
            continue
        slots = allocations[task.project_id][task.phase_idx]
        slots[task.slot_idx] = replace(slots[task.slot_idx], assignment=Assigned(chosen.id))
        held[task.project_id].add(chosen.id)
        load = loads[chosen.id]
        for week_idx in task.weeks():
            load[week_idx] += task.weekly_hours
        logger.debug(
            "Assigned %s to %s (%s), %s h/wk for %d weeks",
            chosen.id,
            task.project_name,
            task.phase_name.value,
            task.weekly_hours,
            task.duration,
        )

    updated: List[ProjectInput] = []
    for project in projects:
        phases = tuple(
            replace(phase, staff_allocation=tuple(slots))
            for phase, slots in zip(project.phases_config, allocations[project.id])
        )
        updated.append(replace(project, phases_config=phases))
    return AssignmentResult(projects=updated, warnings=warnings)
