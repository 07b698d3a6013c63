from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .assigner import assign_placeholders
from .generator import generate_schedule
from .models import GlobalConfig, ProjectInput, ScheduleData
from .optimizer import optimize_timing

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OptimizeOutcome:
    projects: List[ProjectInput]
    warnings: List[str]
    initial_cost: float
    final_cost: float


def optimize(
    projects: Sequence[ProjectInput],
    config: GlobalConfig,
    *,
    seed: Optional[int] = None,
) -> OptimizeOutcome:
    """Fill placeholder slots, then move unlocked projects to flatten load."""
    assignment = assign_placeholders(projects, config)
    timing = optimize_timing(assignment.projects, config, seed=seed)
    if assignment.warnings:
        logger.warning("%d placeholder slot(s) left unassigned", len(assignment.warnings))
    return OptimizeOutcome(
        projects=timing.projects,
        warnings=assignment.warnings,
        initial_cost=timing.initial_cost,
        final_cost=timing.final_cost,
    )


def refresh(projects: Sequence[ProjectInput], config: GlobalConfig) -> ScheduleData:
    return generate_schedule(projects, config)


def optimize_and_refresh(
    projects: Sequence[ProjectInput],
    config: GlobalConfig,
    *,
    seed: Optional[int] = None,
) -> Tuple[OptimizeOutcome, ScheduleData]:
    outcome = optimize(projects, config, seed=seed)
    return outcome, refresh(outcome.projects, config)
