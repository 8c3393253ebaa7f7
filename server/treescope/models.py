from typing import Dict, List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field

from treescope.config import ComplexityLabel


class Metrics(BaseModel):
    lines: int = 0
    code_lines: int = 0
    comment_lines: int = 0
    blank_lines: int = 0
    function_count: int = 0
    class_count: int = 0
    conditional_count: int = 0
    complexity_score: int = 0
    complexity: ComplexityLabel = "low"
    # False when the language has no structural patterns and the label
    # was derived from the line count alone.
    structural: bool = True


class EntryError(BaseModel):
    path: str
    message: str


class FileNode(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["file"] = "file"
    name: str
    path: str
    relative_path: str
    extension: Optional[str] = None
    size: Optional[int] = None
    modified_at: Optional[float] = None
    hash: Optional[str] = None
    content: Optional[str] = None
    content_error: Optional[str] = None
    language: Optional[str] = None
    metrics: Optional[Metrics] = None


class DirectoryNode(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["directory"] = "directory"
    name: str
    path: str
    relative_path: str
    size: Optional[int] = None
    gitignored_count: int = 0
    errors: List[EntryError] = Field(default_factory=list)
    # Use default_factory to avoid sharing the same list across instances
    children: List[Union["DirectoryNode", FileNode]] = Field(default_factory=list)

    def iter_files(self):
        """Yield every FileNode below this directory in pre-order."""
        for child in self.children:
            if child.type == "directory":
                yield from child.iter_files()
            else:
                yield child


TreeNode = Union[DirectoryNode, FileNode]


class DuplicateBlock(BaseModel):
    start_line_a: int
    end_line_a: int
    start_line_b: int
    end_line_b: int
    line_count: int
    content: str = ""


class DuplicateGroup(BaseModel):
    file_a: str
    file_b: str
    language: str
    blocks: List[DuplicateBlock]


class DuplicateReport(BaseModel):
    total_duplications: int = 0
    duplications: List[DuplicateGroup] = Field(default_factory=list)


class RankedFile(BaseModel):
    path: str
    size: Optional[int] = None
    modified_at: Optional[float] = None
    complexity: Optional[ComplexityLabel] = None
    complexity_score: Optional[int] = None


class AggregateStats(BaseModel):
    directories: int = 0
    files: int = 0
    total_size: int = 0
    extensions: Dict[str, int] = Field(default_factory=dict)
    languages: Dict[str, int] = Field(default_factory=dict)
    complexity: Dict[str, int] = Field(
        default_factory=lambda: {"low": 0, "medium": 0, "high": 0, "very high": 0}
    )
    largest_files: List[RankedFile] = Field(default_factory=list)
    most_complex_files: List[RankedFile] = Field(default_factory=list)
    oldest_files: List[RankedFile] = Field(default_factory=list)
    newest_files: List[RankedFile] = Field(default_factory=list)


class DebtMarker(BaseModel):
    file: str
    line: int
    type: str
    message: str
    context: str


class ComplexFile(BaseModel):
    file: str
    language: Optional[str] = None
    complexity: ComplexityLabel
    metrics: Metrics


class OutdatedPattern(BaseModel):
    file: str
    line: int
    pattern: str
    match: str
    suggestion: str


class TechDebtSummary(BaseModel):
    todo_count: int = 0
    complex_file_count: int = 0
    outdated_pattern_count: int = 0
    debt_score: int = 0
    assessment: str = "Low technical debt"


class TechDebtReport(BaseModel):
    todos: List[DebtMarker] = Field(default_factory=list)
    complex_files: List[ComplexFile] = Field(default_factory=list)
    outdated_patterns: List[OutdatedPattern] = Field(default_factory=list)
    summary: TechDebtSummary = Field(default_factory=TechDebtSummary)


class CodebaseReport(BaseModel):
    root: DirectoryNode
    stats: AggregateStats
    duplicates: Optional[DuplicateReport] = None
    tech_debt: Optional[TechDebtReport] = None


DirectoryNode.model_rebuild()


class DiffEntry(BaseModel):
    path: str
    type: Literal["directory", "file"]
    # Per-attribute {"from": ..., "to": ...} changes, empty when unchanged.
    modifications: Dict[str, Dict[str, Union[str, int, float, None]]] = Field(default_factory=dict)


class StructureDiff(BaseModel):
    added: List[DiffEntry] = Field(default_factory=list)
    removed: List[DiffEntry] = Field(default_factory=list)
    modified: List[DiffEntry] = Field(default_factory=list)
    unchanged: List[DiffEntry] = Field(default_factory=list)
