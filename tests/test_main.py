from __future__ import annotations

import json

import pandas as pd
import pytest

from audit_scheduler.main import main


def test_dry_run_prints_rows(portfolio_dir, capsys):
    main(["--project-dir", str(portfolio_dir), "--dry-run"])

    out = capsys.readouterr().out
    assert "Cybersecurity Review / Audit Lead" in out
    assert not (portfolio_dir / "output").exists()


def test_optimize_writes_outputs(portfolio_dir, capsys):
    main(["--project-dir", str(portfolio_dir), "--optimize", "--seed", "3"])

    output = portfolio_dir / "output"
    schedule = pd.read_csv(output / "schedule.csv")
    assert schedule["Audit Name"].nunique() == 3
    assert (output / "role_summary.csv").exists()
    projects = json.loads((output / "projects.json").read_text())
    assert [p["id"] for p in projects] == ["1", "2", "3"]
    assert "Every placeholder slot was assigned." in (output / "assignment_warnings.md").read_text()
    assert "Workload cost" in capsys.readouterr().out


def test_missing_inputs_exit_with_usage_error(tmp_path, capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(["--config", str(tmp_path / "nope.json"), "--projects", str(tmp_path / "nope.json")])

    assert excinfo.value.code == 2
    assert "config file not found" in capsys.readouterr().err


def test_unknown_log_level_is_a_usage_error(portfolio_dir, capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(["--project-dir", str(portfolio_dir), "--log-level", "chatty", "--dry-run"])

    assert excinfo.value.code == 2
    assert "unknown logging level 'chatty'" in capsys.readouterr().err


def test_project_dir_without_inputs(tmp_path, capsys):
    (tmp_path / "empty").mkdir()

    with pytest.raises(SystemExit):
        main(["--project-dir", str(tmp_path / "empty")])

    assert "config file not found" in capsys.readouterr().err
