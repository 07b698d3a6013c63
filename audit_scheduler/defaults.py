from __future__ import annotations

from typing import Dict, List, Sequence, Tuple

from .models import (
    PLACEHOLDER_ID,
    GlobalConfig,
    PhaseConfig,
    PhaseName,
    ProjectInput,
    StaffAllocation,
    StaffType,
    assignment_for,
    snapshot_phases,
)

DEFAULT_YEAR = 2026

DEFAULT_SKILLS: Tuple[str, ...] = ("IT Audit", "Financial Controls", "Data Analytics", "Compliance")

DEFAULT_STAFF_TYPES: Tuple[StaffType, ...] = (
    StaffType(id=PLACEHOLDER_ID, name="Unassigned", role="Placeholder", max_hours_per_week=40, color="bg-slate-100 text-slate-800"),
    StaffType(id="pm", name="Portfolio Manager", role="Manager", max_hours_per_week=10, color="bg-purple-100 text-purple-800"),
    StaffType(id="lead", name="Audit Lead", role="Lead", max_hours_per_week=40, color="bg-blue-100 text-blue-800"),
    StaffType(id="staff", name="Staff Auditor", role="Auditor", max_hours_per_week=40, color="bg-green-100 text-green-800"),
)


def _allocation(pairs: Dict[str, float]) -> Tuple[StaffAllocation, ...]:
    return tuple(StaffAllocation(assignment_for(staff_id), pct) for staff_id, pct in pairs.items())


DEFAULT_PHASES: Tuple[PhaseConfig, ...] = (
    PhaseConfig(PhaseName.PRE_PLANNING, 10, 1, 2, _allocation({"pm": 40, "lead": 60, "staff": 0})),
    PhaseConfig(PhaseName.PLANNING, 20, 2, 4, _allocation({"pm": 10, "lead": 40, "staff": 50})),
    PhaseConfig(PhaseName.FIELDWORK, 50, 4, 8, _allocation({"pm": 5, "lead": 25, "staff": 70})),
    PhaseConfig(PhaseName.REPORTING, 20, 2, 4, _allocation({"pm": 20, "lead": 50, "staff": 30})),
)


def default_config(**overrides: object) -> GlobalConfig:
    values = {
        "year": DEFAULT_YEAR,
        "phases": DEFAULT_PHASES,
        "staff_types": DEFAULT_STAFF_TYPES,
        "skills": DEFAULT_SKILLS,
    }
    values.update(overrides)
    return GlobalConfig(**values)  # type: ignore[arg-type]


_SEED_PROJECTS: Sequence[Tuple[str, str, float, int]] = (
    ("1", "Cybersecurity Review", 400, 0),
    ("2", "Financial Controls 2026", 600, 4),
    ("3", "HR Compliance Audit", 300, 12),
)


def initial_projects(config: GlobalConfig) -> List[ProjectInput]:
    return [
        ProjectInput(
            id=project_id,
            name=name,
            budget_hours=budget,
            start_week_offset=offset,
            locked=False,
            phases_config=snapshot_phases(config.phases),
        )
        for project_id, name, budget, offset in _SEED_PROJECTS
    ]
