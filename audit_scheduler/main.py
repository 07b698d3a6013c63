from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, NamedTuple, Optional

from . import orchestrator
from .export import role_summary, schedule_to_frame, write_schedule
from .io_utils import ensure_directory, load_config, load_projects, write_projects
from .models import ScheduleData


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Audit staffing scheduler (JSON in, CSV/XLSX out, no UI)."
    )
    parser.add_argument(
        "--project-dir",
        help="Portfolio directory containing input/ and output/ subfolders",
    )
    parser.add_argument("--config", help="Path to configuration JSON file (overrides project-dir default)")
    parser.add_argument("--projects", help="Path to projects JSON file (overrides project-dir default)")
    parser.add_argument(
        "--outdir",
        default=None,
        help="Output directory for generated files (default: <project-dir>/output or ./out)",
    )
    parser.add_argument(
        "--optimize",
        action="store_true",
        help="Fill placeholder slots and re-time unlocked projects before rendering",
    )
    parser.add_argument(
        "--seed",
        type=int,
        help="Override config.random_seed for a reproducible optimisation run",
    )
    parser.add_argument(
        "--format",
        choices=("csv", "xlsx"),
        default="csv",
        help="Schedule export format",
    )
    parser.add_argument(
        "--log-level",
        help="Override config.logging_level (DEBUG, INFO, WARNING, ...)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Compute and print a summary without writing output files",
    )
    return parser.parse_args(argv)


class PortfolioPaths(NamedTuple):
    config: Path
    projects: Path
    outdir: Path


def _portfolio_paths(args: argparse.Namespace) -> PortfolioPaths:
    """Explicit --config/--projects win; otherwise read <project-dir>/input."""
    portfolio = Path(args.project_dir).resolve() if args.project_dir else None
    if portfolio is not None and not portfolio.is_dir():
        raise ValueError(f"project directory not found: {portfolio}")

    inputs = {}
    for label in ("config", "projects"):
        explicit = getattr(args, label)
        if explicit:
            inputs[label] = Path(explicit)
        elif portfolio is not None:
            inputs[label] = portfolio / "input" / f"{label}.json"
        else:
            raise ValueError(f"missing --{label} (or provide --project-dir)")
        if not inputs[label].is_file():
            raise ValueError(f"{label} file not found at {inputs[label]}")

    if args.outdir:
        outdir = Path(args.outdir)
    else:
        outdir = portfolio / "output" if portfolio is not None else Path("out")
    return PortfolioPaths(config=inputs["config"], projects=inputs["projects"], outdir=outdir)


def _configure_logging(level_name: str) -> None:
    level = logging.getLevelName(level_name.upper())
    if not isinstance(level, int):
        raise ValueError(f"unknown logging level '{level_name}'")
    logging.basicConfig(level=level, format="%(levelname)s %(message)s")


def _print_summary(schedule: ScheduleData, warnings: List[str]) -> None:
    if not schedule.rows:
        print("No schedule rows.")
    else:
        print(f"Schedule rows ({len(schedule.headers)} weeks):")
        for row in schedule.rows:
            split_label = f" #{row.split_index}" if row.split_index > 1 else ""
            print(
                f"- {row.project_name} / {row.staff_type_name}{split_label}: "
                f"{row.total_hours:g} h"
            )
    if warnings:
        print("\nUnassigned slots:")
        for warning in warnings:
            print(f"- {warning}")


def _write_warnings_markdown(warnings: List[str], outdir: Path) -> Path:
    path = outdir / "assignment_warnings.md"
    lines: List[str] = ["# Unassigned Staffing Slots", ""]
    if not warnings:
        lines.append("Every placeholder slot was assigned.")
    else:
        lines.extend(f"- {warning}" for warning in warnings)
    path.write_text("\n".join(lines).strip() + "\n")
    return path


def main(argv: Optional[List[str]] = None) -> None:
    args = _parse_args(argv)
    try:
        paths = _portfolio_paths(args)
        cfg = load_config(paths.config)
        projects = load_projects(paths.projects, cfg)
        _configure_logging(args.log_level or cfg.logging_level)
    except ValueError as exc:
        print(str(exc), file=sys.stderr)
        sys.exit(2)
    if args.seed is not None:
        cfg = replace(cfg, random_seed=args.seed)

    warnings: List[str] = []
    if args.optimize:
        outcome = orchestrator.optimize(projects, cfg)
        projects = outcome.projects
        warnings = outcome.warnings
        print(f"Workload cost {outcome.initial_cost:.0f} -> {outcome.final_cost:.0f}")
    schedule = orchestrator.refresh(projects, cfg)

    if args.dry_run:
        _print_summary(schedule, warnings)
        return

    outdir_path = ensure_directory(paths.outdir)
    schedule_path = write_schedule(schedule_to_frame(schedule), outdir_path / f"schedule.{args.format}")
    summary_path = write_schedule(role_summary(schedule), outdir_path / "role_summary.csv")
    print(f"Wrote {schedule_path}")
    print(f"Wrote {summary_path}")
    if args.optimize:
        projects_out = outdir_path / "projects.json"
        write_projects(projects, projects_out)
        print(f"Wrote {projects_out}")
        print(f"Wrote {_write_warnings_markdown(warnings, outdir_path)}")
    if warnings:
        print("Unassigned slots:")
        for warning in warnings:
            print(f"- {warning}")


if __name__ == "__main__":
    main()
