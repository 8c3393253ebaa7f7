import pytest

from treescope.services.complexity import (
    analyze_code_complexity,
    complexity_label,
    complexity_score,
    line_count_label,
    meets_threshold,
)

THREE_FUNCTIONS_FIVE_BRANCHES = """
def a(x):
    if x:
        return 1
    return 0

def b(y):
    for i in y:
        while i:
            i -= 1

def c(z):
    try:
        pass
    except ValueError:
        pass
    if z:
        pass
"""


@pytest.mark.parametrize(
    "score, label",
    [
        (0, "low"),
        (15, "low"),
        (16, "medium"),
        (30, "medium"),
        (31, "high"),
        (50, "high"),
        (51, "very high"),
    ],
)
def test_label_is_a_step_function_of_score(score: int, label: str) -> None:
    assert complexity_label(score) == label


def test_score_formula() -> None:
    assert complexity_score(3, 0, 5) == 11
    assert complexity_score(2, 1, 4) == 10


def test_three_functions_five_conditionals_is_low() -> None:
    metrics = analyze_code_complexity(THREE_FUNCTIONS_FIVE_BRANCHES, "Python")

    assert metrics.function_count == 3
    assert metrics.conditional_count == 5
    assert metrics.complexity_score == 11
    assert metrics.complexity == "low"


def test_score_of_thirty_stays_medium() -> None:
    body = "".join(
        f"def f{n}(x):\n" + "    if x:\n        pass\n" * 4
        for n in range(5)
    )
    metrics = analyze_code_complexity(body, "Python")

    assert metrics.function_count == 5
    assert metrics.conditional_count == 20
    assert metrics.complexity_score == 30
    assert metrics.complexity == "medium"


def test_fallback_mode_uses_line_count_only() -> None:
    metrics = analyze_code_complexity("x\n" * 600, "Ruby")
    assert metrics.structural is False
    assert metrics.complexity_score == 0
    assert metrics.complexity == "high"

    assert analyze_code_complexity("x\n" * 250, "Go").complexity == "medium"
    assert analyze_code_complexity("x\n" * 10, "Go").complexity == "low"


def test_fallback_mode_never_reaches_very_high() -> None:
    assert line_count_label(100_000) == "high"
    assert line_count_label(501) == "high"
    assert line_count_label(500) == "medium"
    assert line_count_label(200) == "low"


def test_no_metrics_without_content_or_language() -> None:
    assert analyze_code_complexity(None, "Python") is None
    assert analyze_code_complexity("x = 1", None) is None
    assert analyze_code_complexity(b"\xff\xfe", "Python") is None


def test_threshold_filter() -> None:
    metrics = analyze_code_complexity(THREE_FUNCTIONS_FIVE_BRANCHES, "Python")

    assert meets_threshold(metrics, None)
    assert meets_threshold(metrics, "low")
    assert not meets_threshold(metrics, "medium")
