from __future__ import annotations

from dataclasses import replace

from audit_scheduler.assigner import Task, assign_placeholders, build_tasks, score_candidate
from audit_scheduler.editing import add_staff_type, create_project
from audit_scheduler.models import (
    PLACEHOLDER_ID,
    WEEKS_IN_YEAR,
    Assigned,
    PhaseName,
    StaffType,
    Unassigned,
)

from conftest import make_phase, make_project


def _assignments(project):
    return [sa.assignment for phase in project.phases_config for sa in phase.staff_allocation]


def _placeholder_project(project_id="p1", budget=160, weeks=4, **kwargs):
    return make_project(
        project_id,
        budget=budget,
        phases=(make_phase(weeks=weeks, allocations={PLACEHOLDER_ID: 100}),),
        **kwargs,
    )


def test_build_tasks_skips_assigned_and_zero_slots():
    project = make_project(
        offset=3,
        phases=(
            make_phase(PhaseName.PLANNING, percent=50, weeks=2, allocations={"alice": 50, PLACEHOLDER_ID: 50}),
            make_phase(PhaseName.FIELDWORK, percent=50, weeks=4, allocations={PLACEHOLDER_ID: 0, "bob": 100}),
        ),
    )

    tasks = build_tasks([project])

    assert len(tasks) == 1
    task = tasks[0]
    assert (task.phase_idx, task.slot_idx) == (0, 1)
    assert (task.start_week, task.duration) == (3, 2)
    assert task.weekly_hours == 52
    assert task.total_effort == 104


def test_team_and_skill_match_wins(team_config):
    project = _placeholder_project(team="IT", required_skills=("IT Audit",))

    result = assign_placeholders([project], team_config)

    assert result.warnings == []
    assert _assignments(result.projects[0]) == [Assigned("alice")]
    assert _assignments(project) == [Unassigned()]


def test_score_combines_bonus_overtime_and_utilization():
    staff = StaffType(id="carol", name="Carol", max_hours_per_week=40, team="IT")
    task = Task(
        project_id="p1",
        project_name="P1",
        team="IT",
        required_skills=(),
        phase_idx=0,
        phase_name=PhaseName.FIELDWORK,
        slot_idx=0,
        start_week=0,
        duration=2,
        weekly_hours=20,
    )
    load = [0.0] * WEEKS_IN_YEAR
    load[1] = 30

    # week 0 fits (+20), week 1 is 10 h over (-10 * 100), team +50
    assert score_candidate(task, staff, load) == 50 + 20 - 1000


def test_one_person_one_role_per_project(team_config):
    project = make_project(
        team="IT",
        required_skills=("IT Audit",),
        phases=(make_phase(allocations={"alice": 50, PLACEHOLDER_ID: 50}),),
    )

    result = assign_placeholders([project], team_config)

    assert _assignments(result.projects[0]) == [Assigned("alice"), Assigned("bob")]


def test_same_person_not_bound_twice_within_project(team_config):
    project = make_project(
        phases=(
            make_phase(PhaseName.PLANNING, percent=50, weeks=2, allocations={PLACEHOLDER_ID: 100}),
            make_phase(PhaseName.FIELDWORK, percent=50, weeks=2, allocations={PLACEHOLDER_ID: 100}),
        ),
    )

    result = assign_placeholders([project], team_config)

    bound = [a.staff_id for a in _assignments(result.projects[0]) if isinstance(a, Assigned)]
    assert len(bound) == len(set(bound)) == 2


def test_unfillable_slots_produce_one_warning_each(team_config):
    config = replace(
        team_config,
        staff_types=tuple(s for s in team_config.staff_types if s.id in (PLACEHOLDER_ID, "alice")),
    )
    project = make_project(
        phases=(
            make_phase(PhaseName.PLANNING, percent=50, weeks=2, allocations={"alice": 50, PLACEHOLDER_ID: 50}),
            make_phase(PhaseName.FIELDWORK, percent=50, weeks=2, allocations={PLACEHOLDER_ID: 100}),
        ),
    )

    result = assign_placeholders([project], config)

    assert sorted(result.warnings) == [
        "Could not assign staff for Project p1 - Fieldwork",
        "Could not assign staff for Project p1 - Planning",
    ]
    assert _assignments(result.projects[0]) == [Assigned("alice"), Unassigned(), Unassigned()]


def test_running_load_spreads_overlapping_tasks(team_config):
    first = _placeholder_project("p1")
    second = _placeholder_project("p2")

    result = assign_placeholders([first, second], team_config)

    assert _assignments(result.projects[0]) == [Assigned("alice")]
    assert _assignments(result.projects[1]) == [Assigned("bob")]


def test_largest_task_is_placed_first(team_config):
    small = _placeholder_project("small", budget=16, weeks=2)
    big = _placeholder_project("big", budget=160, weeks=4)

    result = assign_placeholders([small, big], team_config)

    by_id = {project.id: _assignments(project) for project in result.projects}
    assert by_id["big"] == [Assigned("alice")]
    assert by_id["small"] == [Assigned("bob")]


def test_existing_assignments_count_towards_load(team_config):
    busy = make_project("busy", budget=160, phases=(make_phase(allocations={"alice": 100}),))
    new = _placeholder_project("new")

    result = assign_placeholders([busy, new], team_config)

    assert _assignments(result.projects[1]) == [Assigned("bob")]


def test_rerun_is_idempotent(team_config):
    projects = [_placeholder_project("p1"), _placeholder_project("p2", offset=2)]

    first = assign_placeholders(projects, team_config)
    second = assign_placeholders(projects, team_config)

    assert first == second


def test_zero_percent_slots_do_not_block_candidates(team_config):
    project = make_project(phases=(make_phase(allocations={PLACEHOLDER_ID: 100, "alice": 0, "bob": 0}),))

    result = assign_placeholders([project], team_config)

    assert result.warnings == []
    bound = _assignments(result.projects[0])[0]
    assert isinstance(bound, Assigned)
    assert bound.staff_id in {"alice", "bob"}
    assert project.assigned_staff_ids() == set()


def test_newly_added_staff_type_is_a_candidate(team_config):
    dana = StaffType(id="dana", name="Dana", role="Auditor", max_hours_per_week=40)
    config = add_staff_type(replace(team_config, staff_types=team_config.staff_types[:1]), dana)
    project = create_project(config, id="p9", name="New audit", budget_hours=160)

    result = assign_placeholders([project], config)

    assert result.warnings == []
    assert _assignments(result.projects[0]) == [Assigned("dana"), Assigned("dana")]
