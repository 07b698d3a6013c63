from __future__ import annotations

from datetime import date

import pytest

from audit_scheduler.defaults import default_config
from audit_scheduler.editing import (
    add_staff_type,
    create_project,
    remove_staff_type,
    set_hours_override,
    set_phase_override,
    update_project,
)
from audit_scheduler.models import PLACEHOLDER_ID, PhaseName, StaffSlot, StaffType


def test_project_snapshot_is_independent_of_later_config_edits():
    config = default_config()
    project = create_project(config, id="9", name="Treasury", budget_hours=500, team="Finance")

    edited = add_staff_type(config, StaffType(id="intern", name="Intern", max_hours_per_week=20))
    edited = remove_staff_type(edited, "pm")

    assert project.phases_config == config.phases
    assert any(sa.staff_type_id == "pm" for sa in project.phases_config[0].staff_allocation)
    assert not any(sa.staff_type_id == "pm" for sa in edited.phases[0].staff_allocation)
    assert edited.phases[0].staff_allocation[-1].staff_type_id == "intern"
    assert edited.phases[0].staff_allocation[-1].percentage == 0
    assert config.staff_type("intern") is None


def test_add_duplicate_staff_type_rejected():
    config = default_config()
    with pytest.raises(ValueError):
        add_staff_type(config, StaffType(id="pm", name="Other PM", max_hours_per_week=10))


def test_placeholder_cannot_be_removed():
    with pytest.raises(ValueError):
        remove_staff_type(default_config(), PLACEHOLDER_ID)


def test_remove_unknown_staff_type_returns_same_config():
    config = default_config()
    assert remove_staff_type(config, "nobody") is config


def test_overrides_return_new_projects():
    project = create_project(default_config(), id="1", name="Cyber", budget_hours=400)
    week = date(2026, 1, 5)

    with_hours = set_hours_override(project, "lead", 2, week, 16)
    with_phase = set_phase_override(with_hours, week, PhaseName.REPORTING)

    assert project.overrides.staff == {}
    assert with_hours.overrides.staff == {StaffSlot("lead", 2): {week: 16.0}}
    assert with_hours.overrides.phase == {}
    assert with_phase.overrides.phase == {week: PhaseName.REPORTING}
    assert with_phase.overrides.staff == with_hours.overrides.staff


def test_split_index_is_one_based():
    project = create_project(default_config(), id="1", name="Cyber", budget_hours=400)
    with pytest.raises(ValueError):
        set_hours_override(project, "lead", 0, date(2026, 1, 5), 8)


def test_update_project_replaces_fields():
    project = create_project(default_config(), id="1", name="Cyber", budget_hours=400)

    moved = update_project(project, start_week_offset=6, locked=True)

    assert (moved.start_week_offset, moved.locked) == (6, True)
    assert (project.start_week_offset, project.locked) == (0, False)
