from typing import FrozenSet, Literal, Optional

from pydantic import BaseModel, ConfigDict, field_validator

IGNORE_DIRS: FrozenSet[str] = frozenset({
    '.git',
    'node_modules',
    'venv',
    '.venv',
    '__pycache__',
    'dist',
    'build',
    '.next',
    '.cache',
    'coverage',
    '.idea',
    '.vscode',
})

# Scans are cached next to the scanned root under this name.
CACHE_FILE_NAME = ".treescope.json"

IGNORE_FILES: FrozenSet[str] = frozenset({
    '.DS_Store', 'Thumbs.db', '.env', '.env.local',
    CACHE_FILE_NAME,
})

IGNORE_EXTENSIONS: FrozenSet[str] = frozenset()

# 100KB max for content analysis
CONTENT_MAX_SIZE_BYTES = 100 * 1024

ComplexityLabel = Literal["low", "medium", "high", "very high"]


def normalize_extension(ext: str) -> str:
    return ext.lstrip(".").lower()


class ScanOptions(BaseModel):
    """
    Everything a single scan needs to know, built once per invocation and
    passed down unchanged.
    """

    model_config = ConfigDict(frozen=True)

    ignore_dirs: FrozenSet[str] = IGNORE_DIRS
    ignore_files: FrozenSet[str] = IGNORE_FILES
    ignore_extensions: FrozenSet[str] = IGNORE_EXTENSIONS
    # None means no depth limit; the root directory is depth 0.
    max_depth: Optional[int] = None
    show_files: bool = True

    include_size: bool = True
    include_mod_time: bool = True
    include_hash: bool = False
    include_content: bool = False
    content_max_size_bytes: int = CONTENT_MAX_SIZE_BYTES
    detect_language: bool = False
    analyze_complexity: bool = False
    # Files whose label ranks below this keep no metrics.
    complexity_threshold: Optional[ComplexityLabel] = None

    duplicate_min_lines: int = 5
    duplicate_similarity_threshold: float = 0.8

    respect_gitignore: bool = False
    max_workers: int = 1

    @field_validator("ignore_extensions", mode="before")
    @classmethod
    def _strip_dots(cls, value):
        return frozenset(normalize_extension(ext) for ext in value)

    @field_validator("max_depth")
    @classmethod
    def _non_negative_depth(cls, value):
        if value is not None and value < 0:
            raise ValueError("max_depth must be >= 0")
        return value

    @field_validator("duplicate_min_lines", "max_workers")
    @classmethod
    def _positive(cls, value):
        if value < 1:
            raise ValueError("must be >= 1")
        return value

    @field_validator("duplicate_similarity_threshold")
    @classmethod
    def _ratio(cls, value):
        if not 0.0 <= value <= 1.0:
            raise ValueError("duplicate_similarity_threshold must be between 0 and 1")
        return value

    @classmethod
    def for_analysis(cls, **overrides) -> "ScanOptions":
        """Options with content loading, language detection and complexity all on."""
        settings = {
            "include_content": True,
            "detect_language": True,
            "analyze_complexity": True,
        }
        settings.update(overrides)
        return cls(**settings)
