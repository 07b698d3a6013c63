"""Value-returning edits used by the project and configuration editors.

Nothing here mutates its arguments: every helper returns a new project or a
new config, so a computation always sees one consistent snapshot.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Iterable

from .models import (
    GlobalConfig,
    PhaseName,
    ProjectInput,
    ProjectOverrides,
    StaffAllocation,
    StaffSlot,
    StaffType,
    assignment_for,
    snapshot_phases,
)


def create_project(
    config: GlobalConfig,
    *,
    id: str,
    name: str,
    budget_hours: float,
    start_week_offset: int = 0,
    locked: bool = False,
    team: str = "",
    required_skills: Iterable[str] = (),
) -> ProjectInput:
    """New project carrying its own copy of the current phase configuration."""
    return ProjectInput(
        id=id,
        name=name,
        budget_hours=budget_hours,
        start_week_offset=start_week_offset,
        locked=locked,
        phases_config=snapshot_phases(config.phases),
        team=team,
        required_skills=tuple(required_skills),
    )


def update_project(project: ProjectInput, **changes: object) -> ProjectInput:
    return replace(project, **changes)


def set_hours_override(
    project: ProjectInput,
    staff_type_id: str,
    split_index: int,
    week: date,
    hours: float,
) -> ProjectInput:
    if split_index < 1:
        raise ValueError("split_index is 1-based")
    slot = StaffSlot(staff_type_id, split_index)
    staff = {key: dict(cells) for key, cells in project.overrides.staff.items()}
    staff.setdefault(slot, {})[week] = float(hours)
    overrides = ProjectOverrides(phase=dict(project.overrides.phase), staff=staff)
    return replace(project, overrides=overrides)


def set_phase_override(project: ProjectInput, week: date, phase: PhaseName) -> ProjectInput:
    phases = dict(project.overrides.phase)
    phases[week] = PhaseName(phase)
    overrides = ProjectOverrides(
        phase=phases,
        staff={key: dict(cells) for key, cells in project.overrides.staff.items()},
    )
    return replace(project, overrides=overrides)


def add_staff_type(config: GlobalConfig, staff: StaffType) -> GlobalConfig:
    """Register ``staff`` and give it a 0% slot in every configured phase."""
    if config.staff_type(staff.id) is not None:
        raise ValueError(f"staff type '{staff.id}' already exists")
    phases = tuple(
        replace(
            phase,
            staff_allocation=phase.staff_allocation + (StaffAllocation(assignment_for(staff.id), 0),),
        )
        for phase in config.phases
    )
    return replace(config, staff_types=config.staff_types + (staff,), phases=phases)


def remove_staff_type(config: GlobalConfig, staff_type_id: str) -> GlobalConfig:
    target = config.staff_type(staff_type_id)
    if target is None:
        return config
    if target.is_placeholder:
        raise ValueError("the placeholder staff type cannot be removed")
    phases = tuple(
        replace(
            phase,
            staff_allocation=tuple(
                sa for sa in phase.staff_allocation if sa.staff_type_id != staff_type_id
            ),
        )
        for phase in config.phases
    )
    staff_types = tuple(staff for staff in config.staff_types if staff.id != staff_type_id)
    return replace(config, staff_types=staff_types, phases=phases)
