from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Tuple

from flask import Flask, abort, jsonify, request, send_file

from audit_scheduler import orchestrator
from audit_scheduler.editing import (
    add_staff_type,
    remove_staff_type,
    set_hours_override,
    set_phase_override,
    update_project,
)
from audit_scheduler.export import role_summary, schedule_to_frame, write_schedule
from audit_scheduler.io_utils import (
    config_to_dict,
    load_config,
    load_projects,
    parse_project_changes,
    parse_staff_type,
    parse_week,
    write_config,
    write_projects,
)
from audit_scheduler.models import GlobalConfig, PhaseName, ProjectInput, ScheduleData

PORTFOLIO_INPUTS = ("config.json", "projects.json")
EXPORT_FORMATS = ("csv", "xlsx")


@dataclass
class Portfolio:
    """One portfolio directory: ``input/`` holds the editable JSON files."""

    directory: Path
    config: GlobalConfig
    projects: List[ProjectInput]

    @property
    def config_path(self) -> Path:
        return self.directory / "input" / "config.json"

    @property
    def projects_path(self) -> Path:
        return self.directory / "input" / "projects.json"

    def save_config(self) -> None:
        write_config(self.config, self.config_path)

    def save_projects(self) -> None:
        write_projects(self.projects, self.projects_path)

    def schedule(self) -> ScheduleData:
        return orchestrator.refresh(self.projects, self.config)


def _portfolios_root() -> Path:
    configured = os.getenv("PROJECTS_ROOT")
    if configured:
        return Path(configured).expanduser().resolve()
    return (Path(__file__).resolve().parent.parent / "portfolios").resolve()


def _missing_inputs(directory: Path) -> List[str]:
    return [name for name in PORTFOLIO_INPUTS if not (directory / "input" / name).is_file()]


def _portfolio_dir(name: str, root: Path) -> Path:
    directory = (root / name).resolve()
    try:
        directory.relative_to(root)
    except ValueError as exc:
        raise ValueError(f"Portfolio directory must be inside {root}") from exc
    if not directory.is_dir():
        abort(404)
    missing = _missing_inputs(directory)
    if missing:
        raise ValueError(f"portfolio '{name}' is missing input/{', input/'.join(missing)}")
    return directory


def _open_portfolio(name: str, root: Path) -> Portfolio:
    directory = _portfolio_dir(name, root)
    config = load_config(directory / "input" / "config.json")
    projects = load_projects(directory / "input" / "projects.json", config)
    return Portfolio(directory=directory, config=config, projects=projects)


def _portfolio_listing(root: Path) -> List[Dict[str, object]]:
    if not root.is_dir():
        return []
    return [
        {"name": child.name, "isValid": not _missing_inputs(child), "missing": _missing_inputs(child)}
        for child in sorted(root.iterdir())
        if child.is_dir()
    ]


def _schedule_to_dict(schedule: ScheduleData) -> Dict[str, object]:
    return {
        "headers": [week.isoformat() for week in schedule.headers],
        "rows": [
            {
                "rowId": row.row_id,
                "projectId": row.project_id,
                "projectName": row.project_name,
                "staffTypeId": row.staff_type_id,
                "staffTypeName": row.staff_type_name,
                "staffRole": row.staff_role,
                "staffIndex": row.split_index,
                "totalHours": row.total_hours,
                "cells": [
                    {
                        "date": cell.date.isoformat(),
                        "hours": cell.hours,
                        "phase": cell.phase.value if cell.phase else None,
                        "isOverride": cell.is_override,
                    }
                    for cell in row.cells
                ],
            }
            for row in schedule.rows
        ],
        "roleSummary": role_summary(schedule).to_dict(orient="records"),
    }


def _apply_cell_update(project: ProjectInput, data: Dict[str, object]) -> ProjectInput:
    week = parse_week(data.get("date"), "date")
    kind = data.get("type", "hours")
    if kind == "phase":
        try:
            phase = PhaseName(str(data.get("value")))
        except ValueError as exc:
            raise ValueError(f"unknown phase '{data.get('value')}'") from exc
        return set_phase_override(project, week, phase)
    if kind == "hours":
        try:
            hours = float(data.get("value"))  # type: ignore[arg-type]
            split_index = int(data.get("staffIndex", 1))  # type: ignore[arg-type]
        except (TypeError, ValueError) as exc:
            raise ValueError("hours and staffIndex must be numeric") from exc
        staff_type_id = data.get("staffTypeId")
        if not staff_type_id:
            raise ValueError("staffTypeId is required for hour overrides")
        return set_hours_override(project, str(staff_type_id), split_index, week, hours)
    raise ValueError("type must be 'hours' or 'phase'")


def _replace_project(portfolio: Portfolio, project_id: str, edit) -> Tuple[bool, List[ProjectInput]]:
    found = False
    projects: List[ProjectInput] = []
    for project in portfolio.projects:
        if project.id == project_id:
            found = True
            project = edit(project)
        projects.append(project)
    return found, projects


def create_app() -> Flask:
    app = Flask(__name__)
    projects_root = _portfolios_root()
    app.config["PROJECTS_ROOT"] = projects_root

    @app.get("/dirs")
    def directories():
        return jsonify({"projects": _portfolio_listing(projects_root)})

    @app.get("/api/schedule/<portfolio_name>")
    def get_schedule(portfolio_name: str):
        """Current grid for a portfolio, recomputed from its input files"""
        try:
            portfolio = _open_portfolio(portfolio_name, projects_root)
            return jsonify(_schedule_to_dict(portfolio.schedule()))
        except (ValueError, OSError) as e:
            return jsonify({"error": str(e)}), 400

    @app.post("/api/optimize/<portfolio_name>")
    def optimize_portfolio(portfolio_name: str):
        """Fill placeholders, re-time unlocked projects and save the result"""
        try:
            portfolio = _open_portfolio(portfolio_name, projects_root)
            data = request.get_json(silent=True) or {}
            seed = data.get("seed")
            if seed is not None and not isinstance(seed, int):
                return jsonify({"error": "seed must be an integer"}), 400
            outcome, schedule = orchestrator.optimize_and_refresh(portfolio.projects, portfolio.config, seed=seed)
            portfolio.projects = outcome.projects
            portfolio.save_projects()
            return jsonify(
                {
                    "warnings": outcome.warnings,
                    "initialCost": outcome.initial_cost,
                    "finalCost": outcome.final_cost,
                    "schedule": _schedule_to_dict(schedule),
                }
            )
        except (ValueError, OSError) as e:
            return jsonify({"error": str(e)}), 400

    @app.post("/api/cells/<portfolio_name>")
    def update_cell(portfolio_name: str):
        """Record a manual hour or phase override for one cell"""
        try:
            portfolio = _open_portfolio(portfolio_name, projects_root)
            data = request.get_json(silent=True) or {}
            project_id = str(data.get("projectId", ""))
            found, projects = _replace_project(
                portfolio, project_id, lambda project: _apply_cell_update(project, data)
            )
            if not found:
                return jsonify({"error": f"project '{project_id}' not found"}), 404
            portfolio.projects = projects
            portfolio.save_projects()
            return jsonify(_schedule_to_dict(portfolio.schedule()))
        except (ValueError, OSError) as e:
            return jsonify({"error": str(e)}), 400

    @app.patch("/api/projects/<portfolio_name>/<project_id>")
    def edit_project(portfolio_name: str, project_id: str):
        """Change name, budget, start week, lock, team or required skills"""
        try:
            portfolio = _open_portfolio(portfolio_name, projects_root)
            changes = parse_project_changes(request.get_json(silent=True) or {})
            found, projects = _replace_project(
                portfolio, project_id, lambda project: update_project(project, **changes)
            )
            if not found:
                return jsonify({"error": f"project '{project_id}' not found"}), 404
            portfolio.projects = projects
            portfolio.save_projects()
            return jsonify(_schedule_to_dict(portfolio.schedule()))
        except (ValueError, OSError) as e:
            return jsonify({"error": str(e)}), 400

    @app.post("/api/staff/<portfolio_name>")
    def create_staff_type(portfolio_name: str):
        """Register a staff type and give it a 0% slot in every phase"""
        try:
            portfolio = _open_portfolio(portfolio_name, projects_root)
            staff = parse_staff_type(request.get_json(silent=True) or {}, portfolio.config.skills)
            portfolio.config = add_staff_type(portfolio.config, staff)
            portfolio.save_config()
            return jsonify(config_to_dict(portfolio.config)), 201
        except (ValueError, OSError) as e:
            return jsonify({"error": str(e)}), 400

    @app.delete("/api/staff/<portfolio_name>/<staff_type_id>")
    def delete_staff_type(portfolio_name: str, staff_type_id: str):
        try:
            portfolio = _open_portfolio(portfolio_name, projects_root)
            if portfolio.config.staff_type(staff_type_id) is None:
                return jsonify({"error": f"staff type '{staff_type_id}' not found"}), 404
            portfolio.config = remove_staff_type(portfolio.config, staff_type_id)
            portfolio.save_config()
            return jsonify(config_to_dict(portfolio.config))
        except (ValueError, OSError) as e:
            return jsonify({"error": str(e)}), 400

    @app.get("/api/export/<portfolio_name>")
    def export_schedule(portfolio_name: str):
        """Write the grid to output/ and send it as a download"""
        fmt = request.args.get("format", "csv")
        if fmt not in EXPORT_FORMATS:
            return jsonify({"error": f"format must be one of {', '.join(EXPORT_FORMATS)}"}), 400
        try:
            portfolio = _open_portfolio(portfolio_name, projects_root)
            target = write_schedule(
                schedule_to_frame(portfolio.schedule()),
                portfolio.directory / "output" / f"Audit_Schedule_{portfolio.config.year}.{fmt}",
            )
            return send_file(target, as_attachment=True)
        except (ValueError, OSError) as e:
            return jsonify({"error": str(e)}), 400

    return app
