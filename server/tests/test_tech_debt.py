import pytest

from treescope.models import DirectoryNode, FileNode, Metrics
from treescope.services.tech_debt import (
    analyze_tech_debt,
    assess_debt,
    find_outdated_patterns,
    find_todos,
)

PYTHON_SOURCE = "\n".join([
    "# TODO: split this module",
    "DEBUG = True",
    '    print "hello"',
    "    return 1  # FIXME handle errors",
    "class Old(object):",
    "    pass",
])

JS_SOURCE = "\n".join([
    "var count = 1;",
    "$('#panel').hide();",
    "setTimeout('tick()', 10);",
])


def _file(name: str, content=None, language=None, metrics=None) -> FileNode:
    return FileNode(
        name=name,
        path=f"/repo/{name}",
        relative_path=name,
        content=content,
        language=language,
        metrics=metrics,
    )


def _tree() -> DirectoryNode:
    return DirectoryNode(
        name="repo",
        path="/repo",
        relative_path=".",
        children=[
            _file("app.py", PYTHON_SOURCE, "Python"),
            _file("legacy.js", JS_SOURCE, "JavaScript"),
            _file("engine.py", "x = 1", "Python", Metrics(complexity="high", complexity_score=40)),
            _file("simple.py", "y = 2", "Python", Metrics(complexity="medium", complexity_score=20)),
        ],
    )


def test_markers_are_found_per_line() -> None:
    todos = find_todos(_tree().iter_files())

    assert [(t.file, t.line, t.type, t.message) for t in todos] == [
        ("app.py", 1, "TODO", "split this module"),
        ("app.py", 4, "FIXME", "handle errors"),
    ]
    assert todos[1].context == "return 1  # FIXME handle errors"


def test_markers_only_match_whole_words() -> None:
    todos = find_todos([_file("a.py", "DEBUG = 1\nTODOS = []\nlog('BUG: off by one')", "Python")])

    assert [(t.line, t.type, t.message) for t in todos] == [(3, "BUG", "off by one')")]


def test_custom_keywords() -> None:
    todos = find_todos([_file("a.py", "# NOTE: keep\n# TODO: drop", "Python")], keywords=("NOTE",))

    assert [t.message for t in todos] == ["keep"]


def test_outdated_patterns_by_language() -> None:
    found = find_outdated_patterns(_tree().iter_files())

    assert [(p.file, p.line, p.pattern) for p in found] == [
        ("app.py", 3, "Python 2 print statements"),
        ("app.py", 5, "Old-style Python class"),
        ("legacy.js", 1, "var declarations"),
        ("legacy.js", 2, "jQuery usage"),
        ("legacy.js", 3, "setTimeout with strings"),
    ]
    assert found[2].match == "var count"


def test_patterns_do_not_cross_languages() -> None:
    found = find_outdated_patterns([_file("notes.rb", "var x = 1\nprint 'hi'", "Ruby")])

    assert found == []


def test_print_function_is_not_flagged() -> None:
    found = find_outdated_patterns([_file("ok.py", "print('hi')\nprint (x)\nprint\nprint = log", "Python")])

    assert found == []


def test_full_report_and_score() -> None:
    report = analyze_tech_debt(_tree())

    assert [f.file for f in report.complex_files] == ["engine.py"]
    assert report.complex_files[0].metrics.complexity_score == 40
    assert report.summary.todo_count == 2
    assert report.summary.complex_file_count == 1
    assert report.summary.outdated_pattern_count == 5
    # 2 * 1 + 1 * 5 + 5 * 2
    assert report.summary.debt_score == 17
    assert report.summary.assessment == "Moderate technical debt"


def test_passes_can_be_switched_off() -> None:
    report = analyze_tech_debt(
        _tree(), include_todos=False, include_complexity=False, include_outdated=False
    )

    assert report.todos == report.complex_files == report.outdated_patterns == []
    assert report.summary.debt_score == 0
    assert report.summary.assessment == "Low technical debt"


@pytest.mark.parametrize(
    "score, assessment",
    [
        (0, "Low technical debt"),
        (9, "Low technical debt"),
        (10, "Moderate technical debt"),
        (49, "Moderate technical debt"),
        (50, "Significant technical debt"),
        (99, "Significant technical debt"),
        (100, "High technical debt"),
    ],
)
def test_assessment_steps(score: int, assessment: str) -> None:
    assert assess_debt(score) == assessment
