"""Hour arithmetic shared by the aggregator, assigner and schedule generator.

Every weekly figure the engine emits goes through :func:`canonical_round`, so
the three components always agree on what a phase rate looks like on the grid.
"""

from __future__ import annotations

import math
from typing import Optional

from .models import PhaseConfig, ProjectInput

HOUR_GRANULARITY = 4


def canonical_round(raw_weekly: float) -> float:
    """Round to the nearest multiple of 4; positive rates never round to 0.

    Halves round up (2 -> 4, 6 -> 8).
    """
    if raw_weekly <= 0:
        return 0
    rounded = math.floor(raw_weekly / HOUR_GRANULARITY + 0.5) * HOUR_GRANULARITY
    if rounded == 0:
        return HOUR_GRANULARITY
    return rounded


def phase_total_hours(project: ProjectInput, phase: PhaseConfig) -> float:
    return project.budget_hours * phase.percent_budget / 100


def scheduled_weeks(phase: PhaseConfig) -> int:
    """Weeks a phase occupies on the timeline; non-positive durations occupy none."""
    return max(0, phase.max_weeks)


def rate_divisor(phase: PhaseConfig) -> int:
    return max(1, phase.max_weeks)


def raw_weekly_rate(project: ProjectInput, phase: PhaseConfig, percentage: float) -> Optional[float]:
    """Unrounded weekly hours for one allocation slot, or None if it carries nothing.

    A phase without a positive duration or a slot without positive hours yields
    None so callers can skip it outright.
    """
    duration = scheduled_weeks(phase)
    if duration <= 0:
        return None
    staff_hours = phase_total_hours(project, phase) * percentage / 100
    if staff_hours <= 0:
        return None
    return staff_hours / duration


def weekly_slot_hours(project: ProjectInput, phase: PhaseConfig, percentage: float) -> float:
    raw = raw_weekly_rate(project, phase, percentage)
    if raw is None:
        return 0
    return canonical_round(raw)
