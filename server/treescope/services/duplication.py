"""
Line-window duplicate detection across files of the same language.

Every unordered pair of files is compared once. For each window of
``min_lines`` lines in file A, the windows of file B are scanned left to
right; a window whose token Jaccard similarity reaches the threshold seeds a
match that is then extended while the following lines are identical. The
inner scan resumes after the match, but the outer scan does not, so a long
block can be reported again from a later starting line in A. Comparison is
O(F^2 * L^2); callers bound it through file-count and size limits.
"""

import logging
from typing import FrozenSet, Iterable, List, Optional

from treescope.config import ScanOptions
from treescope.models import DirectoryNode, DuplicateBlock, DuplicateGroup, DuplicateReport, FileNode

logger = logging.getLogger(__name__)


def calculate_similarity(text_a: str, text_b: str) -> float:
    """Jaccard index of the two texts' whitespace-separated token sets."""
    if text_a == text_b:
        return 1.0
    return _jaccard(frozenset(text_a.split()), frozenset(text_b.split()))


def _jaccard(tokens_a: FrozenSet[str], tokens_b: FrozenSet[str]) -> float:
    union = tokens_a | tokens_b
    if not union:
        # Both windows are whitespace only.
        return 1.0
    return len(tokens_a & tokens_b) / len(union)


class _Windows:
    """The joined text and token set of every ``size``-line window of a file."""

    def __init__(self, lines: List[str], size: int):
        count = max(len(lines) - size + 1, 0)
        self.texts = ["\n".join(lines[k:k + size]) for k in range(count)]
        self.tokens = [frozenset(text.split()) for text in self.texts]

    def __len__(self) -> int:
        return len(self.texts)

    def similarity(self, index: int, other: "_Windows", other_index: int) -> float:
        if self.texts[index] == other.texts[other_index]:
            return 1.0
        return _jaccard(self.tokens[index], other.tokens[other_index])


def find_duplicate_blocks(
    lines_a: List[str],
    lines_b: List[str],
    min_lines: int = 5,
    similarity_threshold: float = 0.8,
) -> List[DuplicateBlock]:
    blocks: List[DuplicateBlock] = []
    windows_a = _Windows(lines_a, min_lines)
    windows_b = _Windows(lines_b, min_lines)

    for i in range(len(windows_a)):
        j = 0
        while j < len(windows_b):
            if windows_a.similarity(i, windows_b, j) < similarity_threshold:
                j += 1
                continue

            end_a = i + min_lines
            end_b = j + min_lines
            while end_a < len(lines_a) and end_b < len(lines_b) and lines_a[end_a] == lines_b[end_b]:
                end_a += 1
                end_b += 1

            blocks.append(
                DuplicateBlock(
                    start_line_a=i + 1,
                    end_line_a=end_a,
                    start_line_b=j + 1,
                    end_line_b=end_b,
                    line_count=end_a - i,
                    content="\n".join(lines_a[i:end_a]),
                )
            )
            # Resume the inner scan after the matched region.
            j = end_b

    return blocks


def find_duplicates(
    files: Iterable[FileNode],
    min_lines: int = 5,
    similarity_threshold: float = 0.8,
) -> List[DuplicateGroup]:
    """Compare every same-language pair of files that has content."""
    candidates = [f for f in files if f.content is not None and f.language]
    lines = {f.path: f.content.split("\n") for f in candidates}
    logger.info("Checking %d files for duplicate blocks", len(candidates))

    groups: List[DuplicateGroup] = []
    for index, file_a in enumerate(candidates):
        for file_b in candidates[index + 1:]:
            if file_a.language != file_b.language:
                continue
            blocks = find_duplicate_blocks(
                lines[file_a.path], lines[file_b.path], min_lines, similarity_threshold
            )
            if blocks:
                groups.append(
                    DuplicateGroup(
                        file_a=file_a.path,
                        file_b=file_b.path,
                        language=file_a.language,
                        blocks=blocks,
                    )
                )
    return groups


def analyze_duplication(tree: DirectoryNode, options: Optional[ScanOptions] = None) -> DuplicateReport:
    options = options or ScanOptions()
    duplications = find_duplicates(
        tree.iter_files(),
        min_lines=options.duplicate_min_lines,
        similarity_threshold=options.duplicate_similarity_threshold,
    )
    return DuplicateReport(total_duplications=len(duplications), duplications=duplications)
