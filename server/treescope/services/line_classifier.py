"""
Per-line classification of source text into code, comment and blank lines.

Each language family gets a small scanner with a single entry point,
``classify_line(line, state) -> (category, state)``. Scanners look only at
the trimmed start and end of a line (comment markers, triple quotes), so a
string literal containing a comment marker can be misclassified. That is a
known limitation of the heuristic, not something to patch around here.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Pattern, Tuple, Union

from treescope.services.languages import C_STYLE, PLAIN, PYTHON, language_family


class LineCategory(str, Enum):
    BLANK = "blank"
    CODE = "code"
    COMMENT = "comment"
    # A code line that also carries a trailing comment; counted as both.
    CODE_AND_COMMENT = "code_and_comment"


class ScanMode(str, Enum):
    NORMAL = "normal"
    IN_BLOCK_COMMENT = "in_block_comment"
    IN_MULTILINE_STRING = "in_multiline_string"


@dataclass(frozen=True)
class LineState:
    mode: ScanMode = ScanMode.NORMAL
    # The token that ends the current block, when not NORMAL.
    closer: Optional[str] = None


NORMAL = LineState()


@dataclass
class LineCounts:
    lines: int = 0
    code_lines: int = 0
    comment_lines: int = 0
    blank_lines: int = 0
    function_count: int = 0
    class_count: int = 0
    conditional_count: int = 0
    structural: bool = True


class LineScanner:
    """Fallback scanner: every non-blank line is code, no structural counts."""

    family = PLAIN
    line_comment: Optional[str] = None
    # (opener, closer) pairs, tried in order.
    block_delimiters: Tuple[Tuple[str, str], ...] = ()
    block_mode = ScanMode.IN_BLOCK_COMMENT

    function_pattern: Optional[Pattern[str]] = None
    class_pattern: Optional[Pattern[str]] = None
    conditional_pattern: Optional[Pattern[str]] = None

    @property
    def structural(self) -> bool:
        return self.function_pattern is not None

    def classify_line(self, line: str, state: LineState = NORMAL) -> Tuple[LineCategory, LineState]:
        trimmed = line.strip()
        if not trimmed:
            return LineCategory.BLANK, state

        if state.mode is not ScanMode.NORMAL:
            if state.closer and state.closer in trimmed:
                return LineCategory.COMMENT, NORMAL
            return LineCategory.COMMENT, state

        if self.line_comment and trimmed.startswith(self.line_comment):
            return LineCategory.COMMENT, state

        for opener, closer in self.block_delimiters:
            if trimmed.startswith(opener):
                if closer in trimmed[len(opener):]:
                    break
                return LineCategory.COMMENT, LineState(self.block_mode, closer)

        if self.line_comment and self.line_comment in trimmed:
            return LineCategory.CODE_AND_COMMENT, state
        return LineCategory.CODE, state

    def count_structure(self, text: str) -> Tuple[int, int, int]:
        if not self.structural:
            return 0, 0, 0
        return (
            len(self.function_pattern.findall(text)),
            len(self.class_pattern.findall(text)),
            len(self.conditional_pattern.findall(text)),
        )


class CStyleScanner(LineScanner):
    family = C_STYLE
    line_comment = "//"
    block_delimiters = (("/*", "*/"),)

    function_pattern = re.compile(
        r"\bfunction\s*\*?\s*\w+\s*\("
        r"|\([^()]*\)\s*=>"
        r"|\b(?!(?:if|for|while|switch|catch|return|else|do|new|typeof|sizeof)\b)\w+\s*\([^()]*\)\s*\{"
    )
    class_pattern = re.compile(r"\b(?:class|interface|struct|enum)\s+\w+")
    conditional_pattern = re.compile(
        r"\bif\s*\(|\belse\b|\bswitch\b|\bcase\b|\bfor\s*\(|\bwhile\s*\(|\bcatch\s*\("
    )


class PythonScanner(LineScanner):
    family = PYTHON
    line_comment = "#"
    block_delimiters = (('"""', '"""'), ("'''", "'''"))
    block_mode = ScanMode.IN_MULTILINE_STRING

    function_pattern = re.compile(r"\bdef\s+\w+\s*\(")
    class_pattern = re.compile(r"\bclass\s+\w+")
    conditional_pattern = re.compile(r"\b(?:if|elif|for|while)\s+|\belse\s*:|\bexcept\b")


SCANNERS: Dict[str, LineScanner] = {
    C_STYLE: CStyleScanner(),
    PYTHON: PythonScanner(),
    PLAIN: LineScanner(),
}


def scanner_for(language: Optional[str]) -> LineScanner:
    return SCANNERS[language_family(language)]


def decode_text(data: bytes) -> Optional[str]:
    """Decode file bytes as UTF-8 text, or None for binary/undecodable data."""
    if b"\x00" in data:
        return None
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return None


def analyze_lines(content: Union[str, bytes], language: Optional[str]) -> Optional[LineCounts]:
    """
    Count code, comment and blank lines plus structural matches.

    Returns None when the content is not text.
    """
    if isinstance(content, bytes):
        text = decode_text(content)
        if text is None:
            return None
    else:
        text = content
        if "\x00" in text:
            return None

    scanner = scanner_for(language)
    counts = LineCounts(structural=scanner.structural)

    state = NORMAL
    for line in text.split("\n"):
        counts.lines += 1
        category, state = scanner.classify_line(line, state)
        if category is LineCategory.BLANK:
            counts.blank_lines += 1
        elif category is LineCategory.COMMENT:
            counts.comment_lines += 1
        elif category is LineCategory.CODE_AND_COMMENT:
            counts.code_lines += 1
            counts.comment_lines += 1
        else:
            counts.code_lines += 1

    counts.function_count, counts.class_count, counts.conditional_count = scanner.count_structure(text)
    return counts
