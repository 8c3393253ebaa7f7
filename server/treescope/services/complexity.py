from typing import Optional, Union

from treescope.config import ComplexityLabel
from treescope.models import Metrics
from treescope.services.line_classifier import LineCounts, analyze_lines

COMPLEXITY_ORDER = {"low": 0, "medium": 1, "high": 2, "very high": 3}


def complexity_score(function_count: int, class_count: int, conditional_count: int) -> int:
    return (function_count + class_count) * 2 + conditional_count


def complexity_label(score: int) -> ComplexityLabel:
    if score > 50:
        return "very high"
    if score > 30:
        return "high"
    if score > 15:
        return "medium"
    return "low"


def line_count_label(lines: int) -> ComplexityLabel:
    # Without structural counts we never claim "very high".
    if lines > 500:
        return "high"
    if lines > 200:
        return "medium"
    return "low"


def score_counts(counts: LineCounts) -> Metrics:
    if counts.structural:
        score = complexity_score(counts.function_count, counts.class_count, counts.conditional_count)
        label = complexity_label(score)
    else:
        score = 0
        label = line_count_label(counts.lines)

    return Metrics(
        lines=counts.lines,
        code_lines=counts.code_lines,
        comment_lines=counts.comment_lines,
        blank_lines=counts.blank_lines,
        function_count=counts.function_count,
        class_count=counts.class_count,
        conditional_count=counts.conditional_count,
        complexity_score=score,
        complexity=label,
        structural=counts.structural,
    )


def analyze_code_complexity(content: Union[str, bytes, None], language: Optional[str]) -> Optional[Metrics]:
    """Full metrics for one file, or None when there is nothing to measure."""
    if content is None or not language:
        return None
    counts = analyze_lines(content, language)
    if counts is None:
        return None
    return score_counts(counts)


def meets_threshold(metrics: Metrics, threshold: Optional[ComplexityLabel]) -> bool:
    if threshold is None:
        return True
    return COMPLEXITY_ORDER[metrics.complexity] >= COMPLEXITY_ORDER[threshold]
