from typing import Callable, Generic, List, Tuple, TypeVar

from treescope.models import AggregateStats, DirectoryNode, FileNode, RankedFile, TreeNode
from treescope.services.complexity import COMPLEXITY_ORDER

TOP_K = 10

T = TypeVar("T")


class TopK(Generic[T]):
    """
    Bounded ranked list: push, re-sort by key, truncate to ``limit``.

    Keys sort ascending, so callers negate anything ranked descending and
    append the path as a final tiebreak.
    """

    def __init__(self, key: Callable[[T], Tuple], limit: int = TOP_K):
        self.key = key
        self.limit = limit
        self.items: List[T] = []

    def push(self, item: T) -> None:
        self.items.append(item)
        self.items.sort(key=self.key)
        del self.items[self.limit:]

    def __len__(self) -> int:
        return len(self.items)


class Aggregator:
    """Folds a scanned tree into counts, histograms and top-K rankings."""

    def __init__(self, limit: int = TOP_K):
        self.directories = 0
        self.files = 0
        self.total_size = 0
        self.extensions: dict[str, int] = {}
        self.languages: dict[str, int] = {}
        self.complexity = {label: 0 for label in COMPLEXITY_ORDER}

        self.largest = TopK(lambda f: (-f.size, f.path), limit)
        self.newest = TopK(lambda f: (-f.modified_at, f.path), limit)
        self.oldest = TopK(lambda f: (f.modified_at, f.path), limit)
        self.most_complex = TopK(
            lambda f: (-COMPLEXITY_ORDER[f.complexity], -f.complexity_score, f.path), limit
        )

    def fold(self, node: TreeNode) -> "Aggregator":
        self.visit(node)
        if node.type == "directory":
            for child in node.children:
                self.fold(child)
        return self

    def visit(self, node: TreeNode) -> None:
        if node.type == "directory":
            self.directories += 1
        else:
            self._visit_file(node)

    def _visit_file(self, node: FileNode) -> None:
        self.files += 1
        path = node.relative_path

        if node.extension:
            self.extensions[node.extension] = self.extensions.get(node.extension, 0) + 1
        if node.language:
            self.languages[node.language] = self.languages.get(node.language, 0) + 1

        if node.size is not None:
            self.total_size += node.size
            self.largest.push(RankedFile(path=path, size=node.size))

        if node.modified_at is not None:
            self.newest.push(RankedFile(path=path, modified_at=node.modified_at))
            self.oldest.push(RankedFile(path=path, modified_at=node.modified_at))

        if node.metrics is not None:
            self.complexity[node.metrics.complexity] += 1
            self.most_complex.push(
                RankedFile(
                    path=path,
                    complexity=node.metrics.complexity,
                    complexity_score=node.metrics.complexity_score,
                )
            )

    def stats(self) -> AggregateStats:
        return AggregateStats(
            directories=self.directories,
            files=self.files,
            total_size=self.total_size,
            extensions=dict(self.extensions),
            languages=dict(self.languages),
            complexity=dict(self.complexity),
            largest_files=list(self.largest.items),
            most_complex_files=list(self.most_complex.items),
            oldest_files=list(self.oldest.items),
            newest_files=list(self.newest.items),
        )


def get_stats(tree: DirectoryNode, limit: int = TOP_K) -> AggregateStats:
    return Aggregator(limit).fold(tree).stats()
