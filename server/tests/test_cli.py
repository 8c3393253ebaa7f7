import json
import os
from pathlib import Path

import pytest

from treescope import run
from treescope.config import CACHE_FILE_NAME
from treescope.routers import analysis as analysis_router

BLOCK = "\n".join([
    "def helper(items):",
    "    total = 0",
    "    for item in items:",
    "        total += item",
    "    print(total)",
    "    return total",
])


def _project(root: Path) -> Path:
    (root / "lib").mkdir(parents=True)
    (root / "lib" / "one.py").write_text(BLOCK)
    (root / "lib" / "two.py").write_text(BLOCK)
    (root / "notes.txt").write_text("todo\n")
    return root


def test_report_prints_stats_json(tmp_path: Path, capsys) -> None:
    root = _project(tmp_path / "proj")

    run.main([str(root), "--report"])

    data = json.loads(capsys.readouterr().out)
    assert "root" not in data
    assert data["stats"]["files"] == 3
    assert data["stats"]["languages"] == {"Python": 2}
    assert data["duplicates"] is None


def test_report_with_duplicates(tmp_path: Path, capsys) -> None:
    root = _project(tmp_path / "proj")

    run.main([str(root), "--report", "--duplicates", "--min-lines", "5"])

    data = json.loads(capsys.readouterr().out)
    assert data["duplicates"]["total_duplications"] == 1
    assert data["duplicates"]["duplications"][0]["blocks"][0]["line_count"] == 6


def test_report_honors_ignore_flags(tmp_path: Path, capsys) -> None:
    root = _project(tmp_path / "proj")

    run.main([str(root), "--report", "--ignore", "lib", "--ignore-extensions", ".txt"])

    data = json.loads(capsys.readouterr().out)
    assert data["stats"]["files"] == 0
    assert data["stats"]["directories"] == 1


def test_missing_path_exits(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        run.main([str(tmp_path / "nope"), "--report"])

    assert "Path does not exist" in str(excinfo.value)


def test_file_path_exits_with_message(tmp_path: Path) -> None:
    target = tmp_path / "file.txt"
    target.write_text("x")

    with pytest.raises(SystemExit) as excinfo:
        run.main([str(target), "--report"])

    assert "not a directory" in str(excinfo.value)


def test_invalid_option_is_a_usage_error(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        run.main([str(tmp_path), "--report", "--similarity", "2"])

    assert excinfo.value.code == 2


def test_options_from_args() -> None:
    args = run.build_parser().parse_args(
        ["src", "-d", "2", "--gitignore", "--workers", "4", "--complexity-threshold", "high"]
    )

    options = run.options_from_args(args)

    assert options.max_depth == 2
    assert options.respect_gitignore is True
    assert options.max_workers == 4
    assert options.complexity_threshold == "high"
    assert options.include_content is True
    assert "node_modules" in options.ignore_dirs


def test_serve_mode_configures_router(monkeypatch, tmp_path: Path, capsys) -> None:
    calls = {}

    def fake_run(app, host, port, reload):
        calls["host"] = host
        calls["port"] = port

    monkeypatch.setattr(run.uvicorn, "run", fake_run)
    monkeypatch.setattr(analysis_router, "ROOT_PATH", analysis_router.ROOT_PATH)
    monkeypatch.setattr(analysis_router, "SCAN_OPTIONS", analysis_router.SCAN_OPTIONS)

    run.main([str(tmp_path), "--no-browser", "--port", "9001", "-d", "3"])

    assert calls == {"host": "127.0.0.1", "port": 9001}
    assert analysis_router.ROOT_PATH == tmp_path
    assert analysis_router.SCAN_OPTIONS.max_depth == 3
    assert "Starting server at http://127.0.0.1:9001" in capsys.readouterr().out


def test_report_survives_undecodable_file_names(tmp_path: Path, capsys) -> None:
    root = _project(tmp_path / "proj")
    try:
        with open(os.fsencode(root) + b"/bad\xff.py", "wb") as f:
            f.write(b"x = 1\n")
    except OSError:
        pytest.skip("filesystem rejects names that are not valid UTF-8")

    run.main([str(root), "--report"])

    data = json.loads(capsys.readouterr().out)
    assert data["stats"]["files"] == 4
    assert data["stats"]["languages"] == {"Python": 3}


def test_custom_ignore_files_still_skip_the_cache_file() -> None:
    args = run.build_parser().parse_args(["src", "--ignore-files", "secret.txt"])

    options = run.options_from_args(args)

    assert options.ignore_files == {"secret.txt", CACHE_FILE_NAME}


def test_report_with_tech_debt(tmp_path: Path, capsys) -> None:
    root = _project(tmp_path / "proj")
    (root / "lib" / "old.py").write_text("class Legacy(object):\n    pass  # HACK: temporary\n")

    run.main([str(root), "--report", "--tech-debt"])

    debt = json.loads(capsys.readouterr().out)["tech_debt"]
    assert [t["type"] for t in debt["todos"]] == ["HACK"]
    assert [p["pattern"] for p in debt["outdated_patterns"]] == ["Old-style Python class"]
    assert debt["summary"]["debt_score"] == 3
