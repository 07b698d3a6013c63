from __future__ import annotations

from audit_scheduler.aggregator import organization_totals, weekly_aggregates
from audit_scheduler.defaults import default_config
from audit_scheduler.editing import create_project
from audit_scheduler.models import WEEKS_IN_YEAR

from conftest import make_phase, make_project


def test_default_phases_laid_out_back_to_back():
    config = default_config()
    project = create_project(config, id="1", name="Cyber", budget_hours=400)

    loads = weekly_aggregates([project], config)

    assert set(loads) == {"placeholder", "pm", "lead", "staff"}
    assert all(len(weeks) == WEEKS_IN_YEAR for weeks in loads.values())
    # Pre-Planning: 2 weeks, pm 8 h and lead 12 h, staff 0%.
    assert loads["pm"][:2] == [8, 8]
    assert loads["lead"][:2] == [12, 12]
    assert loads["staff"][:2] == [0, 0]
    # Planning: pm's 2 h/wk is promoted to the 4 h minimum.
    assert loads["pm"][2:6] == [4, 4, 4, 4]
    assert loads["staff"][2:6] == [12, 12, 12, 12]
    assert sum(loads["placeholder"]) == 0
    assert sum(loads["pm"][18:]) == 0


def test_weeks_past_year_end_are_dropped(single_role_config):
    project = make_project(offset=50)

    loads = weekly_aggregates([project], single_role_config)

    assert loads["roleA"][49] == 0
    assert loads["roleA"][50:] == [100, 100, 100]


def test_projects_accumulate_in_shared_weeks(single_role_config):
    first = make_project("a", budget=160)
    second = make_project("b", budget=160, offset=2)

    loads = weekly_aggregates([first, second], single_role_config)

    assert loads["roleA"][:6] == [40, 40, 80, 80, 40, 40]


def test_unknown_staff_ids_get_their_own_row(single_role_config):
    project = make_project(phases=(make_phase(allocations={"roleA": 50, "ghost": 50}),))

    loads = weekly_aggregates([project], single_role_config)

    assert loads["ghost"][:4] == [52, 52, 52, 52]


def test_non_positive_duration_phase_contributes_nothing(single_role_config):
    project = make_project(
        phases=(make_phase(percent=50, weeks=0), make_phase(percent=50, weeks=2)),
    )

    loads = weekly_aggregates([project], single_role_config)

    assert loads["roleA"][:3] == [100, 100, 0]


def test_organization_totals_sum_all_staff():
    loads = {"a": [1.0] * WEEKS_IN_YEAR, "b": [2.0] * WEEKS_IN_YEAR}
    assert organization_totals(loads) == [3.0] * WEEKS_IN_YEAR
