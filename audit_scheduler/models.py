from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, Iterable, List, NamedTuple, Optional, Tuple, Union


PLACEHOLDER_ID = "placeholder"
WEEKS_IN_YEAR = 53
COST_MODES = ("per_staff", "organization")


class PhaseName(str, Enum):
    PRE_PLANNING = "Pre-Planning"
    PLANNING = "Planning"
    FIELDWORK = "Fieldwork"
    REPORTING = "Reporting"


class SkillLevel(str, Enum):
    NONE = "None"
    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"


SKILL_LEVEL_BONUS: Dict[SkillLevel, int] = {
    SkillLevel.NONE: 0,
    SkillLevel.BEGINNER: 10,
    SkillLevel.INTERMEDIATE: 20,
    SkillLevel.ADVANCED: 30,
}


@dataclass(frozen=True)
class Unassigned:
    """Staffing slot still waiting for a concrete person."""

    @property
    def staff_type_id(self) -> str:
        return PLACEHOLDER_ID


@dataclass(frozen=True)
class Assigned:
    staff_id: str

    @property
    def staff_type_id(self) -> str:
        return self.staff_id


Assignment = Union[Unassigned, Assigned]
UNASSIGNED = Unassigned()


def assignment_for(staff_type_id: str) -> Assignment:
    if staff_type_id == PLACEHOLDER_ID:
        return UNASSIGNED
    return Assigned(staff_type_id)


@dataclass(frozen=True)
class StaffAllocation:
    assignment: Assignment
    percentage: float

    @property
    def staff_type_id(self) -> str:
        return self.assignment.staff_type_id

    @property
    def is_placeholder(self) -> bool:
        return isinstance(self.assignment, Unassigned)


@dataclass(frozen=True)
class PhaseConfig:
    name: PhaseName
    percent_budget: float
    min_weeks: int
    max_weeks: int
    staff_allocation: Tuple[StaffAllocation, ...] = ()

    def allocation_for(self, staff_type_id: str) -> float:
        return sum(
            sa.percentage for sa in self.staff_allocation if sa.staff_type_id == staff_type_id
        )


@dataclass(frozen=True)
class StaffType:
    """A staff member (or generic role) that can carry project hours."""

    id: str
    name: str
    max_hours_per_week: float
    role: str = "Auditor"
    team: str = ""
    skills: Dict[str, SkillLevel] = field(default_factory=dict)
    color: str = ""

    @property
    def is_placeholder(self) -> bool:
        return self.id == PLACEHOLDER_ID

    def skill_level(self, skill: str) -> SkillLevel:
        return self.skills.get(skill, SkillLevel.NONE)


@dataclass(frozen=True)
class GlobalConfig:
    year: int
    phases: Tuple[PhaseConfig, ...]
    staff_types: Tuple[StaffType, ...]
    skills: Tuple[str, ...] = ()
    random_seed: Optional[int] = None
    cost_mode: str = "per_staff"
    auto_split_overflow: bool = False
    optimizer_iterations: int = 5000
    logging_level: str = "INFO"

    def staff_type(self, staff_type_id: str) -> Optional[StaffType]:
        for staff in self.staff_types:
            if staff.id == staff_type_id:
                return staff
        return None

    def concrete_staff(self) -> List[StaffType]:
        return [staff for staff in self.staff_types if not staff.is_placeholder]


class StaffSlot(NamedTuple):
    """Override key: one split row of one staff type on a project."""

    staff_type_id: str
    split_index: int


@dataclass(frozen=True)
class ProjectOverrides:
    phase: Dict[date, PhaseName] = field(default_factory=dict)
    staff: Dict[StaffSlot, Dict[date, float]] = field(default_factory=dict)

    def hours_for(self, slot: StaffSlot, week: date) -> Optional[float]:
        return self.staff.get(slot, {}).get(week)

    def max_split_for(self, staff_type_id: str) -> int:
        return max(
            (slot.split_index for slot in self.staff if slot.staff_type_id == staff_type_id),
            default=0,
        )


@dataclass(frozen=True)
class ProjectInput:
    id: str
    name: str
    budget_hours: float
    start_week_offset: int
    locked: bool
    phases_config: Tuple[PhaseConfig, ...]
    team: str = ""
    required_skills: Tuple[str, ...] = ()
    overrides: ProjectOverrides = field(default_factory=ProjectOverrides)

    def total_duration(self) -> int:
        return sum(max(0, phase.max_weeks) for phase in self.phases_config)

    def assigned_staff_ids(self) -> set:
        return {
            sa.staff_type_id
            for phase in self.phases_config
            for sa in phase.staff_allocation
            if not sa.is_placeholder and sa.percentage > 0
        }

    def allocates(self, staff_type_id: str) -> bool:
        return any(phase.allocation_for(staff_type_id) > 0 for phase in self.phases_config)


def snapshot_phases(phases: Iterable[PhaseConfig]) -> Tuple[PhaseConfig, ...]:
    return tuple(copy.deepcopy(phase) for phase in phases)


@dataclass(frozen=True)
class ScheduleCell:
    date: date
    hours: float = 0.0
    phase: Optional[PhaseName] = None
    is_override: bool = False


@dataclass(frozen=True)
class ScheduleRow:
    project_id: str
    project_name: str
    staff_type_id: str
    staff_type_name: str
    staff_role: str
    split_index: int
    cells: Tuple[ScheduleCell, ...]
    total_hours: float

    @property
    def row_id(self) -> str:
        return f"{self.project_id}-{self.staff_type_id}-{self.split_index - 1}"


@dataclass(frozen=True)
class ScheduleData:
    headers: Tuple[date, ...]
    rows: Tuple[ScheduleRow, ...]
