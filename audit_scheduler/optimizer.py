from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Sequence

from .aggregator import organization_totals, weekly_aggregates
from .models import COST_MODES, GlobalConfig, ProjectInput

logger = logging.getLogger(__name__)

LAST_START_WEEK = 52


@dataclass(frozen=True)
class OptimizationResult:
    projects: List[ProjectInput]
    initial_cost: float
    final_cost: float
    accepted_moves: int = 0
    iterations_run: int = 0


def schedule_cost(loads: Dict[str, List[float]], mode: str = "per_staff") -> float:
    """Sum of squared weekly hours; squaring makes peaks expensive.

    ``per_staff`` squares each staff type's week separately, ``organization``
    squares the organisation-wide total for the week.
    """
    if mode == "per_staff":
        return sum(hours * hours for weeks in loads.values() for hours in weeks)
    if mode == "organization":
        return sum(hours * hours for hours in organization_totals(loads))
    raise ValueError(f"unknown cost mode '{mode}' (expected one of {', '.join(COST_MODES)})")


def max_start_week(project: ProjectInput) -> int:
    return max(0, LAST_START_WEEK - project.total_duration())


def optimize_timing(
    projects: Sequence[ProjectInput],
    config: GlobalConfig,
    *,
    seed: Optional[int] = None,
    iterations: Optional[int] = None,
    cost_mode: Optional[str] = None,
    time_budget_seconds: Optional[float] = None,
) -> OptimizationResult:
    """Randomised hill-climbing over the start weeks of unlocked projects.

    Each step moves one unlocked project to a random feasible start week and
    keeps the move only if the cost strictly drops. Locked projects still
    contribute load but never move.

    The final cost never exceeds the initial cost for feasible inputs. A
    project whose input offset is already past ``max_start_week`` is clamped
    after the search, and that clamp may raise the cost.
    """
    mode = cost_mode or config.cost_mode
    iterations = config.optimizer_iterations if iterations is None else iterations
    rng_seed = seed if seed is not None else (config.random_seed if config.random_seed is not None else 0)
    rng = random.Random(rng_seed)

    current = list(projects)

    def _cost(candidate: Sequence[ProjectInput]) -> float:
        return schedule_cost(weekly_aggregates(candidate, config), mode)

    best_cost = _cost(current)
    initial_cost = best_cost
    unlocked = [idx for idx, project in enumerate(current) if not project.locked]
    if not unlocked:
        logger.info("No unlocked projects; timing left unchanged")
        return OptimizationResult(projects=list(projects), initial_cost=initial_cost, final_cost=initial_cost)

    max_starts = {idx: max_start_week(current[idx]) for idx in unlocked}
    deadline = time.monotonic() + time_budget_seconds if time_budget_seconds is not None else None
    accepted = 0
    iterations_run = 0
    for _ in range(iterations):
        if deadline is not None and time.monotonic() >= deadline:
            logger.info("Optimizer time budget exhausted after %d iterations", iterations_run)
            break
        iterations_run += 1
        idx = rng.choice(unlocked)
        original = current[idx]
        new_offset = rng.randint(0, max_starts[idx])
        if new_offset == original.start_week_offset:
            continue
        current[idx] = replace(original, start_week_offset=new_offset)
        new_cost = _cost(current)
        if new_cost < best_cost:
            best_cost = new_cost
            accepted += 1
        else:
            current[idx] = original

    for idx in unlocked:
        if current[idx].start_week_offset > max_starts[idx]:
            current[idx] = replace(current[idx], start_week_offset=max_starts[idx])
    final_cost = _cost(current)

    logger.info(
        "Timing optimisation (%s cost): %.0f -> %.0f, %d of %d moves accepted",
        mode,
        initial_cost,
        final_cost,
        accepted,
        iterations_run,
    )
    return OptimizationResult(
        projects=current,
        initial_cost=initial_cost,
        final_cost=final_cost,
        accepted_moves=accepted,
        iterations_run=iterations_run,
    )
