from __future__ import annotations

import json
from pathlib import Path

import pytest

from audit_scheduler.defaults import default_config, initial_projects
from audit_scheduler.io_utils import config_to_dict, projects_to_list
from audit_scheduler.models import (
    PLACEHOLDER_ID,
    Assigned,
    GlobalConfig,
    PhaseConfig,
    PhaseName,
    ProjectInput,
    SkillLevel,
    StaffAllocation,
    StaffType,
    UNASSIGNED,
)


def make_phase(name=PhaseName.FIELDWORK, percent=100, weeks=4, allocations=None) -> PhaseConfig:
    slots = tuple(
        StaffAllocation(UNASSIGNED if staff_id == PLACEHOLDER_ID else Assigned(staff_id), pct)
        for staff_id, pct in (allocations or {"roleA": 100}).items()
    )
    return PhaseConfig(name=name, percent_budget=percent, min_weeks=1, max_weeks=weeks, staff_allocation=slots)


def make_project(
    project_id="p1",
    budget=400,
    offset=0,
    phases=None,
    locked=False,
    team="",
    required_skills=(),
) -> ProjectInput:
    return ProjectInput(
        id=project_id,
        name=f"Project {project_id}",
        budget_hours=budget,
        start_week_offset=offset,
        locked=locked,
        phases_config=tuple(phases or (make_phase(),)),
        team=team,
        required_skills=tuple(required_skills),
    )


@pytest.fixture
def single_role_config() -> GlobalConfig:
    return GlobalConfig(
        year=2026,
        phases=(make_phase(),),
        staff_types=(StaffType(id="roleA", name="Role A", role="Auditor", max_hours_per_week=40),),
    )


@pytest.fixture
def team_config() -> GlobalConfig:
    return GlobalConfig(
        year=2026,
        phases=(make_phase(allocations={PLACEHOLDER_ID: 100}),),
        staff_types=(
            StaffType(id=PLACEHOLDER_ID, name="Unassigned", role="Placeholder", max_hours_per_week=40),
            StaffType(
                id="alice",
                name="Alice",
                role="Lead",
                max_hours_per_week=40,
                team="IT",
                skills={"IT Audit": SkillLevel.ADVANCED},
            ),
            StaffType(id="bob", name="Bob", role="Auditor", max_hours_per_week=40, team="Finance"),
        ),
        skills=("IT Audit",),
    )


@pytest.fixture
def portfolio_dir(tmp_path: Path) -> Path:
    config = default_config(optimizer_iterations=200, random_seed=7)
    directory = tmp_path / "demo"
    input_dir = directory / "input"
    input_dir.mkdir(parents=True)
    (input_dir / "config.json").write_text(json.dumps(config_to_dict(config)))
    (input_dir / "projects.json").write_text(json.dumps(projects_to_list(initial_projects(config))))
    return directory
