"""
Technical-debt summary built from an already scanned tree.

Three independent passes over the files: marker comments (TODO, FIXME, ...)
found line by line, files whose complexity label is high or very high, and a
short list of per-language outdated idioms. The debt score weights them
1 / 5 / 2.
"""

import re
from dataclasses import dataclass
from typing import FrozenSet, Iterable, List, Pattern, Sequence

from treescope.models import (
    ComplexFile,
    DebtMarker,
    DirectoryNode,
    FileNode,
    OutdatedPattern,
    TechDebtReport,
    TechDebtSummary,
)

TODO_KEYWORDS = ("TODO", "FIXME", "HACK", "XXX", "BUG", "REFACTOR")

TODO_WEIGHT = 1
COMPLEX_FILE_WEIGHT = 5
OUTDATED_PATTERN_WEIGHT = 2

JAVASCRIPT_LANGUAGES = frozenset({
    "JavaScript",
    "JavaScript (React)",
    "JavaScript (Config)",
    "JavaScript (Test)",
})
PYTHON_LANGUAGES = frozenset({"Python"})


@dataclass(frozen=True)
class OutdatedRule:
    name: str
    languages: FrozenSet[str]
    pattern: Pattern[str]
    suggestion: str


OUTDATED_RULES = (
    OutdatedRule(
        "var declarations",
        JAVASCRIPT_LANGUAGES,
        re.compile(r"\bvar\s+\w+"),
        "Use let or const instead of var",
    ),
    OutdatedRule(
        "jQuery usage",
        JAVASCRIPT_LANGUAGES,
        re.compile(r"\$\(.*?\)"),
        "Consider using modern DOM APIs instead of jQuery",
    ),
    OutdatedRule(
        "setTimeout with strings",
        JAVASCRIPT_LANGUAGES,
        re.compile(r"setTimeout\s*\(\s*[\"'].*?[\"']"),
        "Use function references instead of strings with setTimeout",
    ),
    OutdatedRule(
        "Python 2 print statements",
        PYTHON_LANGUAGES,
        re.compile(r"^[ \t]*print[ \t]+[^(\s=]", re.MULTILINE),
        "Use print() function (Python 3 style)",
    ),
    OutdatedRule(
        "Old-style Python class",
        PYTHON_LANGUAGES,
        re.compile(r"\bclass\s+\w+\s*\(object\)\s*:"),
        "In Python 3, classes inherit from object by default",
    ),
)

HIGH_COMPLEXITY = frozenset({"high", "very high"})


def _marker_pattern(keyword: str) -> Pattern[str]:
    return re.compile(rf"\b{re.escape(keyword)}\b:?\s*(.*)$")


def find_todos(files: Iterable[FileNode], keywords: Sequence[str] = TODO_KEYWORDS) -> List[DebtMarker]:
    """One marker per keyword per line; keywords only match as whole words."""
    patterns = [(keyword, _marker_pattern(keyword)) for keyword in keywords]
    markers: List[DebtMarker] = []
    for node in files:
        if not node.content:
            continue
        for number, line in enumerate(node.content.split("\n"), start=1):
            for keyword, pattern in patterns:
                match = pattern.search(line)
                if match is None:
                    continue
                markers.append(
                    DebtMarker(
                        file=node.relative_path,
                        line=number,
                        type=keyword,
                        message=match.group(1).strip(),
                        context=line.strip(),
                    )
                )
    return markers


def find_complex_files(files: Iterable[FileNode]) -> List[ComplexFile]:
    return [
        ComplexFile(
            file=node.relative_path,
            language=node.language,
            complexity=node.metrics.complexity,
            metrics=node.metrics,
        )
        for node in files
        if node.metrics is not None and node.metrics.complexity in HIGH_COMPLEXITY
    ]


def find_outdated_patterns(
    files: Iterable[FileNode],
    rules: Sequence[OutdatedRule] = OUTDATED_RULES,
) -> List[OutdatedPattern]:
    found: List[OutdatedPattern] = []
    for node in files:
        if not node.content or not node.language:
            continue
        for rule in rules:
            if node.language not in rule.languages:
                continue
            for match in rule.pattern.finditer(node.content):
                found.append(
                    OutdatedPattern(
                        file=node.relative_path,
                        line=node.content.count("\n", 0, match.start()) + 1,
                        pattern=rule.name,
                        match=match.group(0),
                        suggestion=rule.suggestion,
                    )
                )
    return found


def assess_debt(score: int) -> str:
    if score < 10:
        return "Low technical debt"
    if score < 50:
        return "Moderate technical debt"
    if score < 100:
        return "Significant technical debt"
    return "High technical debt"


def analyze_tech_debt(
    tree: DirectoryNode,
    keywords: Sequence[str] = TODO_KEYWORDS,
    include_todos: bool = True,
    include_complexity: bool = True,
    include_outdated: bool = True,
) -> TechDebtReport:
    files = list(tree.iter_files())

    todos = find_todos(files, keywords) if include_todos else []
    complex_files = find_complex_files(files) if include_complexity else []
    outdated = find_outdated_patterns(files) if include_outdated else []

    score = (
        len(todos) * TODO_WEIGHT
        + len(complex_files) * COMPLEX_FILE_WEIGHT
        + len(outdated) * OUTDATED_PATTERN_WEIGHT
    )
    return TechDebtReport(
        todos=todos,
        complex_files=complex_files,
        outdated_patterns=outdated,
        summary=TechDebtSummary(
            todo_count=len(todos),
            complex_file_count=len(complex_files),
            outdated_pattern_count=len(outdated),
            debt_score=score,
            assessment=assess_debt(score),
        ),
    )
