from __future__ import annotations

import json
import logging
from datetime import date
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Sequence, Tuple

from dateutil import parser as dateparser

from .defaults import DEFAULT_PHASES, DEFAULT_SKILLS, DEFAULT_STAFF_TYPES, DEFAULT_YEAR
from .models import (
    COST_MODES,
    PLACEHOLDER_ID,
    GlobalConfig,
    PhaseConfig,
    PhaseName,
    ProjectInput,
    ProjectOverrides,
    SkillLevel,
    StaffAllocation,
    StaffSlot,
    StaffType,
    assignment_for,
    snapshot_phases,
)

logger = logging.getLogger(__name__)

PERCENT_TOLERANCE = 1e-6


def _require_keys(entry: Mapping[str, object], required: Iterable[str], source: str) -> None:
    missing = [key for key in required if key not in entry]
    if missing:
        raise ValueError(f"{source} missing required keys: {', '.join(missing)}")


def _parse_number(value: object, field_name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ValueError(f"'{field_name}' must be a number, got {value!r}")
    try:
        return float(value)
    except ValueError as exc:
        raise ValueError(f"invalid numeric value in '{field_name}': {value!r}") from exc


def _parse_int(value: object, field_name: str) -> int:
    number = _parse_number(value, field_name)
    if number != int(number):
        raise ValueError(f"'{field_name}' must be a whole number, got {value!r}")
    return int(number)


def _parse_bool(value: object, field_name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "t", "1", "yes", "y"}:
            return True
        if lowered in {"false", "f", "0", "no", "n", ""}:
            return False
    raise ValueError(f"cannot interpret boolean value '{value}' in '{field_name}'")


def _parse_phase_name(value: object) -> PhaseName:
    try:
        return PhaseName(str(value))
    except ValueError as exc:
        valid = ", ".join(phase.value for phase in PhaseName)
        raise ValueError(f"unknown phase '{value}' (expected one of {valid})") from exc


def parse_week(value: object, field_name: str) -> date:
    if isinstance(value, date):
        return value
    try:
        return dateparser.isoparse(str(value)).date()
    except (ValueError, TypeError) as exc:
        raise ValueError(f"invalid date in '{field_name}': {value}") from exc


def _parse_slot_key(key: str) -> StaffSlot:
    """Split a legacy ``"<staffTypeId>-<splitIndex>"`` key on its last dash."""
    staff_type_id, sep, split_raw = str(key).rpartition("-")
    if not sep or not staff_type_id:
        raise ValueError(f"invalid staff override key '{key}' (expected '<staffTypeId>-<split>')")
    try:
        split_index = int(split_raw)
    except ValueError as exc:
        raise ValueError(f"invalid split index in staff override key '{key}'") from exc
    if split_index < 1:
        raise ValueError(f"split index must be >= 1 in staff override key '{key}'")
    return StaffSlot(staff_type_id, split_index)


def _parse_allocation(entry: Mapping[str, object], source: str) -> StaffAllocation:
    _require_keys(entry, ("staffTypeId", "percentage"), source)
    percentage = _parse_number(entry["percentage"], f"{source}.percentage")
    if not 0 <= percentage <= 100:
        raise ValueError(f"{source}.percentage must be in [0, 100]")
    return StaffAllocation(assignment_for(str(entry["staffTypeId"])), percentage)


def _parse_phase(entry: Mapping[str, object], source: str) -> PhaseConfig:
    if not isinstance(entry, Mapping):
        raise ValueError(f"{source} must be an object")
    _require_keys(entry, ("name", "percentBudget", "maxWeeks"), source)
    allocations_raw = entry.get("staffAllocation") or []
    if not isinstance(allocations_raw, list):
        raise ValueError(f"{source}.staffAllocation must be an array")
    allocations = tuple(
        _parse_allocation(item, f"{source}.staffAllocation[{idx}]")
        for idx, item in enumerate(allocations_raw)
    )
    max_weeks = _parse_int(entry["maxWeeks"], f"{source}.maxWeeks")
    phase = PhaseConfig(
        name=_parse_phase_name(entry["name"]),
        percent_budget=_parse_number(entry["percentBudget"], f"{source}.percentBudget"),
        min_weeks=_parse_int(entry.get("minWeeks", max_weeks), f"{source}.minWeeks"),
        max_weeks=max_weeks,
        staff_allocation=allocations,
    )
    allocated = sum(sa.percentage for sa in allocations)
    if allocations and abs(allocated - 100) > PERCENT_TOLERANCE:
        logger.warning("%s staff allocation sums to %s%%, not 100%%", source, allocated)
    return phase


def _parse_phases(raw: object, source: str) -> Tuple[PhaseConfig, ...]:
    if not isinstance(raw, list):
        raise ValueError(f"{source} must be an array")
    phases = tuple(_parse_phase(item, f"{source}[{idx}]") for idx, item in enumerate(raw))
    budget = sum(phase.percent_budget for phase in phases)
    if phases and abs(budget - 100) > PERCENT_TOLERANCE:
        logger.warning("%s phase budgets sum to %s%%, not 100%%", source, budget)
    return phases


def parse_staff_type(entry: Mapping[str, object], known_skills: Sequence[str]) -> StaffType:
    if not isinstance(entry, Mapping):
        raise ValueError("staffTypes entries must be objects")
    _require_keys(entry, ("id", "name", "maxHoursPerWeek"), "staffTypes entry")
    staff_id = str(entry["id"])
    skills_raw = entry.get("skills") or {}
    if not isinstance(skills_raw, Mapping):
        raise ValueError(f"skills must be an object for staff type '{staff_id}'")
    skills: Dict[str, SkillLevel] = {}
    for skill, level in skills_raw.items():
        try:
            skills[str(skill)] = SkillLevel(str(level))
        except ValueError as exc:
            raise ValueError(f"unknown skill level '{level}' for '{staff_id}'") from exc
        if known_skills and skill not in known_skills:
            logger.warning("staff type '%s' lists unknown skill '%s'", staff_id, skill)
    max_hours = _parse_number(entry["maxHoursPerWeek"], f"{staff_id}.maxHoursPerWeek")
    if max_hours < 0:
        raise ValueError(f"maxHoursPerWeek must be non-negative for '{staff_id}'")
    return StaffType(
        id=staff_id,
        name=str(entry["name"]),
        max_hours_per_week=max_hours,
        role=str(entry.get("role") or "Auditor"),
        team=str(entry.get("team") or ""),
        skills=skills,
        color=str(entry.get("color") or ""),
    )


def parse_config(data: Mapping[str, object]) -> GlobalConfig:
    if not isinstance(data, Mapping):
        raise ValueError("config must be a JSON object")
    year = _parse_int(data.get("year", DEFAULT_YEAR), "year")
    if not 1900 <= year <= 9999:
        raise ValueError("year must be a four-digit year")
    skills_raw = data.get("skills")
    skills = tuple(str(skill) for skill in skills_raw) if isinstance(skills_raw, list) else DEFAULT_SKILLS
    phases = _parse_phases(data["phases"], "phases") if "phases" in data else DEFAULT_PHASES
    if "staffTypes" in data:
        staff_raw = data["staffTypes"]
        if not isinstance(staff_raw, list):
            raise ValueError("staffTypes must be an array")
        staff_types = tuple(parse_staff_type(entry, skills) for entry in staff_raw)
    else:
        staff_types = DEFAULT_STAFF_TYPES
    ids = [staff.id for staff in staff_types]
    duplicates = sorted({staff_id for staff_id in ids if ids.count(staff_id) > 1})
    if duplicates:
        raise ValueError(f"duplicate staff type ids: {', '.join(duplicates)}")
    if PLACEHOLDER_ID not in ids:
        logger.info("config has no '%s' staff type; unassigned slots will not appear on the grid", PLACEHOLDER_ID)

    random_seed = data.get("random_seed")
    if random_seed is not None and (isinstance(random_seed, bool) or not isinstance(random_seed, int)):
        raise ValueError("random_seed must be an integer if provided")
    cost_mode = str(data.get("cost_mode", "per_staff"))
    if cost_mode not in COST_MODES:
        raise ValueError(f"cost_mode must be one of {', '.join(COST_MODES)}")
    iterations = _parse_int(data.get("optimizer_iterations", 5000), "optimizer_iterations")
    if iterations < 0:
        raise ValueError("optimizer_iterations must be non-negative")
    return GlobalConfig(
        year=year,
        phases=phases,
        staff_types=staff_types,
        skills=skills,
        random_seed=random_seed,
        cost_mode=cost_mode,
        auto_split_overflow=_parse_bool(data.get("auto_split_overflow", False), "auto_split_overflow"),
        optimizer_iterations=iterations,
        logging_level=str(data.get("logging_level", "INFO")),
    )


def load_config(path: str | Path) -> GlobalConfig:
    return parse_config(json.loads(Path(path).read_text()))


def _parse_overrides(raw: object, source: str) -> ProjectOverrides:
    if raw is None:
        return ProjectOverrides()
    if not isinstance(raw, Mapping):
        raise ValueError(f"{source}.overrides must be an object")
    phase_raw = raw.get("phase") or {}
    staff_raw = raw.get("staff") or {}
    if not isinstance(phase_raw, Mapping) or not isinstance(staff_raw, Mapping):
        raise ValueError(f"{source}.overrides.phase and .staff must be objects")
    phase = {
        parse_week(week, f"{source}.overrides.phase"): _parse_phase_name(name)
        for week, name in phase_raw.items()
    }
    staff: Dict[StaffSlot, Dict[date, float]] = {}
    for key, cells in staff_raw.items():
        if not isinstance(cells, Mapping):
            raise ValueError(f"{source}.overrides.staff['{key}'] must be an object")
        slot = _parse_slot_key(key)
        target = staff.setdefault(slot, {})
        for week, hours in cells.items():
            target[parse_week(week, f"{source}.overrides.staff")] = _parse_number(
                hours, f"{source}.overrides.staff['{key}']"
            )
    return ProjectOverrides(phase=phase, staff=staff)


def _parse_project(entry: Mapping[str, object], config: GlobalConfig, source: str) -> ProjectInput:
    if not isinstance(entry, Mapping):
        raise ValueError(f"{source} must be an object")
    _require_keys(entry, ("id", "name", "budgetHours"), source)
    budget = _parse_number(entry["budgetHours"], f"{source}.budgetHours")
    if budget < 0:
        raise ValueError(f"{source}.budgetHours must be non-negative")
    if entry.get("phasesConfig") is not None:
        phases = _parse_phases(entry["phasesConfig"], f"{source}.phasesConfig")
    else:
        phases = snapshot_phases(config.phases)
    required_raw = entry.get("requiredSkills") or []
    if not isinstance(required_raw, list):
        raise ValueError(f"{source}.requiredSkills must be an array")
    return ProjectInput(
        id=str(entry["id"]),
        name=str(entry["name"]),
        budget_hours=budget,
        start_week_offset=_parse_int(entry.get("startWeekOffset", 0), f"{source}.startWeekOffset"),
        locked=_parse_bool(entry.get("locked", False), f"{source}.locked"),
        phases_config=phases,
        team=str(entry.get("team") or ""),
        required_skills=tuple(str(skill) for skill in required_raw),
        overrides=_parse_overrides(entry.get("overrides"), source),
    )


PROJECT_FIELDS = {
    "name": "name",
    "budgetHours": "budget_hours",
    "startWeekOffset": "start_week_offset",
    "locked": "locked",
    "team": "team",
    "requiredSkills": "required_skills",
}


def parse_project_changes(data: Mapping[str, object]) -> Dict[str, object]:
    """Validated field edits for an existing project, keyed by attribute name."""
    if not isinstance(data, Mapping):
        raise ValueError("project changes must be an object")
    unknown = sorted(set(data) - set(PROJECT_FIELDS))
    if unknown:
        raise ValueError(f"cannot edit project fields: {', '.join(unknown)}")
    changes: Dict[str, object] = {}
    for key, value in data.items():
        if key == "budgetHours":
            budget = _parse_number(value, key)
            if budget < 0:
                raise ValueError("budgetHours must be non-negative")
            changes["budget_hours"] = budget
        elif key == "startWeekOffset":
            changes["start_week_offset"] = _parse_int(value, key)
        elif key == "locked":
            changes["locked"] = _parse_bool(value, key)
        elif key == "requiredSkills":
            if not isinstance(value, list):
                raise ValueError("requiredSkills must be an array")
            changes["required_skills"] = tuple(str(skill) for skill in value)
        else:
            changes[PROJECT_FIELDS[key]] = str(value or "")
    return changes


def parse_projects(data: object, config: GlobalConfig) -> List[ProjectInput]:
    if not isinstance(data, list):
        raise ValueError("projects file must be a JSON array")
    projects = [_parse_project(entry, config, f"projects[{idx}]") for idx, entry in enumerate(data)]
    ids = [project.id for project in projects]
    duplicates = sorted({project_id for project_id in ids if ids.count(project_id) > 1})
    if duplicates:
        raise ValueError(f"duplicate project ids: {', '.join(duplicates)}")
    return projects


def load_projects(path: str | Path, config: GlobalConfig) -> List[ProjectInput]:
    return parse_projects(json.loads(Path(path).read_text()), config)


def _phase_to_dict(phase: PhaseConfig) -> Dict[str, object]:
    return {
        "name": phase.name.value,
        "percentBudget": phase.percent_budget,
        "minWeeks": phase.min_weeks,
        "maxWeeks": phase.max_weeks,
        "staffAllocation": [
            {"staffTypeId": sa.staff_type_id, "percentage": sa.percentage}
            for sa in phase.staff_allocation
        ],
    }


def config_to_dict(config: GlobalConfig) -> Dict[str, object]:
    return {
        "year": config.year,
        "phases": [_phase_to_dict(phase) for phase in config.phases],
        "staffTypes": [
            {
                "id": staff.id,
                "name": staff.name,
                "role": staff.role,
                "maxHoursPerWeek": staff.max_hours_per_week,
                "team": staff.team,
                "skills": {skill: level.value for skill, level in staff.skills.items()},
                "color": staff.color,
            }
            for staff in config.staff_types
        ],
        "skills": list(config.skills),
        "random_seed": config.random_seed,
        "cost_mode": config.cost_mode,
        "auto_split_overflow": config.auto_split_overflow,
        "optimizer_iterations": config.optimizer_iterations,
        "logging_level": config.logging_level,
    }


def project_to_dict(project: ProjectInput) -> Dict[str, object]:
    return {
        "id": project.id,
        "name": project.name,
        "budgetHours": project.budget_hours,
        "startWeekOffset": project.start_week_offset,
        "locked": project.locked,
        "team": project.team,
        "requiredSkills": list(project.required_skills),
        "phasesConfig": [_phase_to_dict(phase) for phase in project.phases_config],
        "overrides": {
            "phase": {
                week.isoformat(): name.value for week, name in sorted(project.overrides.phase.items())
            },
            "staff": {
                f"{slot.staff_type_id}-{slot.split_index}": {
                    week.isoformat(): hours for week, hours in sorted(cells.items())
                }
                for slot, cells in sorted(project.overrides.staff.items())
            },
        },
    }


def projects_to_list(projects: Iterable[ProjectInput]) -> List[Dict[str, object]]:
    return [project_to_dict(project) for project in projects]


def ensure_directory(path: str | Path) -> Path:
    target = Path(path)
    target.mkdir(parents=True, exist_ok=True)
    return target


def write_json(data: object, path: str | Path) -> None:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    Path(path).write_text(json.dumps(data, indent=2) + "\n")


def write_projects(projects: Iterable[ProjectInput], path: str | Path) -> None:
    write_json(projects_to_list(projects), path)


def write_config(config: GlobalConfig, path: str | Path) -> None:
    write_json(config_to_dict(config), path)
