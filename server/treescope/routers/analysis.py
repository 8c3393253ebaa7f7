from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import PlainTextResponse
from pathlib import Path
import os
from typing import List, Optional

from treescope.config import ScanOptions
from treescope.models import AggregateStats, DirectoryNode, DuplicateReport, TechDebtReport
from treescope.services import analysis, cache, structure
from treescope.services.aggregation import get_stats
from treescope.services.duplication import analyze_duplication
from treescope.services.tech_debt import TODO_KEYWORDS, analyze_tech_debt

router = APIRouter(prefix="/api/analysis", tags=["analysis"])

# Both are replaced by the CLI before the server starts.
ROOT_PATH = Path.cwd()
SCAN_OPTIONS = ScanOptions.for_analysis()


def _resolve_target(path: Optional[str]) -> Path:
    if not path:
        return ROOT_PATH
    target_path = Path(path)
    if not target_path.exists():
        raise HTTPException(status_code=404, detail="Path not found")
    return target_path


def _scan(target_path: Path) -> DirectoryNode:
    try:
        return analysis.scan_codebase(target_path, SCAN_OPTIONS)
    except analysis.ScanError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _load_tree(path: Optional[str]) -> DirectoryNode:
    """Cached tree for the target when present, otherwise a fresh scan."""
    target_path = _resolve_target(path)
    cached_tree = cache.load_analysis(target_path)
    if cached_tree:
        return cached_tree

    tree = _scan(target_path)
    cache.save_analysis(target_path, tree)
    return tree


@router.get("", response_model=DirectoryNode)
async def get_analysis(path: Optional[str] = None):
    """
    Get the scanned tree of the codebase, without file contents.
    Returns cached result if available, otherwise triggers a scan.
    """
    return structure.strip_content(_load_tree(path))


@router.post("/refresh", response_model=DirectoryNode)
async def refresh_analysis(path: Optional[str] = None):
    """
    Force a re-scan of the codebase.
    """
    target_path = _resolve_target(path)
    tree = _scan(target_path)
    cache.save_analysis(target_path, tree)
    return structure.strip_content(tree)


@router.get("/stats", response_model=AggregateStats)
async def get_analysis_stats(path: Optional[str] = None):
    return get_stats(_load_tree(path))


@router.get("/duplicates", response_model=DuplicateReport)
async def get_duplicates(
    path: Optional[str] = None,
    min_lines: Optional[int] = Query(None, ge=1, description="Minimum window size in lines"),
    similarity: Optional[float] = Query(None, ge=0.0, le=1.0, description="Jaccard similarity threshold"),
):
    """
    Detect near-duplicate line blocks between files of the same language.
    """
    overrides = {}
    if min_lines is not None:
        overrides["duplicate_min_lines"] = min_lines
    if similarity is not None:
        overrides["duplicate_similarity_threshold"] = similarity
    options = SCAN_OPTIONS.model_copy(update=overrides)

    return analyze_duplication(_load_tree(path), options)


@router.get("/tech-debt", response_model=TechDebtReport)
async def get_tech_debt(
    path: Optional[str] = None,
    keywords: Optional[List[str]] = Query(None, description="Marker words to look for (default: TODO, FIXME, ...)"),
    include_todos: bool = True,
    include_complexity: bool = True,
    include_outdated: bool = True,
):
    """
    Summarize marker comments, high-complexity files and outdated idioms.
    """
    return analyze_tech_debt(
        _load_tree(path),
        keywords=keywords or TODO_KEYWORDS,
        include_todos=include_todos,
        include_complexity=include_complexity,
        include_outdated=include_outdated,
    )


@router.get("/paths", response_model=List[str])
async def get_paths(
    path: Optional[str] = None,
    relative: bool = True,
    include_dirs: bool = True,
    include_files: bool = True,
):
    return structure.to_paths(
        _load_tree(path),
        include_files=include_files,
        include_dirs=include_dirs,
        relative=relative,
    )


@router.get("/tree", response_class=PlainTextResponse)
async def get_tree_text(path: Optional[str] = None, show_size: bool = False):
    return structure.format_as_tree(_load_tree(path), show_size=show_size)


def _estimate_counts(root: Path) -> tuple[int, int]:
    """
    Return an estimated (file_count, folder_count) for a given root directory.

    This applies the same directory ignore rules used during a full scan to
    keep the estimate reasonably fast while still informative.
    """
    file_count = 0
    folder_count = 0

    for _, dirnames, filenames in os.walk(root):
        dirnames[:] = [d for d in dirnames if d not in SCAN_OPTIONS.ignore_dirs]
        folder_count += len(dirnames)
        file_count += len(filenames)

    return file_count, folder_count


@router.get("/context")
async def get_analysis_context():
    """
    Return basic information about the current analysis root directory and
    the repository that encloses it.
    """
    current_root = ROOT_PATH
    repo_root = analysis.find_repo_root(current_root)

    current_file_count, current_folder_count = _estimate_counts(current_root)
    repo_file_count, repo_folder_count = _estimate_counts(repo_root)

    return {
        "root_path": str(current_root),
        "file_count": current_file_count,
        "folder_count": current_folder_count,
        "repo_root_path": str(repo_root),
        "repo_file_count": repo_file_count,
        "repo_folder_count": repo_folder_count,
    }
