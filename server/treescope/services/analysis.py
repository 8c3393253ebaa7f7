import hashlib
import locale
import logging
import os
import stat
import concurrent.futures
from pathlib import Path
from typing import Callable, FrozenSet, List, Optional, Tuple

from pathspec import PathSpec

from treescope.config import ScanOptions, normalize_extension
from treescope.models import CodebaseReport, DirectoryNode, EntryError, FileNode
from treescope.services.aggregation import get_stats
from treescope.services.complexity import analyze_code_complexity, meets_threshold
from treescope.services.duplication import analyze_duplication
from treescope.services.languages import detect_language
from treescope.services.line_classifier import decode_text
from treescope.services.tech_debt import analyze_tech_debt

logger = logging.getLogger(__name__)


class ScanError(Exception):
    """Base class for errors that abort a whole scan."""


class RootNotADirectory(ScanError, NotADirectoryError):
    pass


class RootUnreadable(ScanError, PermissionError):
    pass


class ScanCancelled(ScanError):
    pass


def find_repo_root(start_path: Path) -> Path:
    current = start_path.resolve()
    for parent in [current, *current.parents]:
        if (parent / ".git").exists(): return parent
    return current


def _translate_gitignore_pattern(raw_line: str, base_rel: str) -> str | None:
    """
    Translate a single .gitignore pattern that lives in a directory `base_rel`
    (relative to the repo root) into a repo-root-relative gitwildmatch pattern.

    Negation ('!'), anchoring ('/') and bare names that apply anywhere in the
    directory subtree are all preserved.
    """
    line = raw_line.rstrip("\n")
    if not line or line.lstrip().startswith("#"):
        return None

    negated = line.startswith("!")
    body = line[1:] if negated else line
    anchored = body.startswith("/")
    if anchored:
        body = body[1:]

    prefix = f"{base_rel}/" if base_rel else ""
    if anchored:
        pat = f"/{prefix}{body}"
    elif "/" in body.rstrip("/"):
        pat = prefix + body
    elif base_rel:
        pat = f"{base_rel}/**/{body}"
    else:
        pat = f"**/{body}"

    return f"!{pat}" if negated else pat


def _load_gitignore_spec(root_path: Path, ignore_dirs: FrozenSet[str]) -> tuple[Path, PathSpec | None]:
    """
    Collect every .gitignore visible from `root_path` into one PathSpec.

    Patterns are rebased onto the enclosing repository root, so scanning a
    subdirectory still honors the repo-level and nested ignore files.
    """
    repo_root = find_repo_root(root_path)
    all_patterns: list[str] = []

    for dirpath, dirnames, filenames in os.walk(repo_root):
        dirnames[:] = [d for d in dirnames if d != ".git" and d not in ignore_dirs]
        if ".gitignore" not in filenames:
            continue

        current = Path(dirpath)
        base_rel = current.relative_to(repo_root).as_posix() if current != repo_root else ""
        try:
            with open(current / ".gitignore", "r", encoding="utf-8", errors="replace") as f:
                for raw in f:
                    translated = _translate_gitignore_pattern(raw, base_rel)
                    if translated is not None:
                        all_patterns.append(translated)
        except OSError as exc:
            logger.warning("Could not read %s: %s", current / ".gitignore", exc)

    if not all_patterns:
        return repo_root, None
    return repo_root, PathSpec.from_lines("gitwildmatch", all_patterns)


def _is_gitignored(path: Path, ignore_root: Path, spec: PathSpec | None, is_dir: bool = False) -> bool:
    if spec is None:
        return False
    try:
        rel = path.relative_to(ignore_root)
    except ValueError:
        rel = path
    rel_str = rel.as_posix()
    if is_dir:
        # Directory-only patterns ("build/") only match with a trailing slash.
        return spec.match_file(rel_str) or spec.match_file(rel_str + "/")
    return spec.match_file(rel_str)


def _display_text(value: str) -> str:
    """
    Make an OS-level name safe to store and serialize.

    Names that are not valid UTF-8 come back from os.listdir with lone
    surrogates; those bytes are rendered as ``\\xNN`` escapes instead. The
    original name is still used for every filesystem call.
    """
    return value.encode("utf-8", "surrogateescape").decode("utf-8", "backslashreplace")


def _sort_key(node) -> Tuple[str, str]:
    return (locale.strxfrm(node.name), node.name)


class _TreeWalker:
    """One depth-first walk; holds the per-scan settings so the recursion stays small."""

    def __init__(
        self,
        options: ScanOptions,
        executor: Optional[concurrent.futures.Executor],
        should_cancel: Optional[Callable[[], bool]],
        ignore_root: Optional[Path] = None,
        gitignore_spec: Optional[PathSpec] = None,
    ):
        self.options = options
        self.executor = executor
        self.should_cancel = should_cancel
        self.ignore_root = ignore_root
        self.gitignore_spec = gitignore_spec

    def _check_cancelled(self) -> None:
        if self.should_cancel is not None and self.should_cancel():
            raise ScanCancelled("Scan cancelled")

    def walk_directory(
        self,
        abs_path: Path,
        rel_path: str,
        depth: int,
        ancestors: FrozenSet[Tuple[int, int]],
    ) -> DirectoryNode:
        options = self.options
        entries = sorted(os.listdir(abs_path))

        directories: List[DirectoryNode] = []
        pending_files: list = []
        errors: List[EntryError] = []
        gitignored = 0

        for entry in entries:
            self._check_cancelled()
            child_abs = abs_path / entry
            label = _display_text(entry)
            child_rel = f"{rel_path}/{label}" if rel_path else label

            try:
                st = os.stat(child_abs)
            except OSError as exc:
                logger.warning("Error processing %s: %s", child_abs, exc)
                errors.append(EntryError(path=child_rel, message=str(exc)))
                continue

            if stat.S_ISDIR(st.st_mode):
                if entry in options.ignore_dirs:
                    continue
                if options.max_depth is not None and depth + 1 > options.max_depth:
                    continue
                if _is_gitignored(child_abs, self.ignore_root, self.gitignore_spec, is_dir=True):
                    gitignored += 1
                    continue
                identity = (st.st_dev, st.st_ino)
                if identity in ancestors:
                    logger.warning("Skipping directory loop at %s", child_abs)
                    errors.append(EntryError(path=child_rel, message="Directory loop detected"))
                    continue
                try:
                    directories.append(
                        self.walk_directory(child_abs, child_rel, depth + 1, ancestors | {identity})
                    )
                except OSError as exc:
                    logger.warning("Error processing directory %s: %s", child_abs, exc)
                    errors.append(EntryError(path=child_rel, message=str(exc)))
                continue

            if not options.show_files or entry in options.ignore_files:
                continue
            extension = normalize_extension(Path(label).suffix)
            if extension and extension in options.ignore_extensions:
                continue
            if _is_gitignored(child_abs, self.ignore_root, self.gitignore_spec):
                gitignored += 1
                continue
            pending_files.append((label, child_abs, child_rel, extension or None, st))

        # Every file is fully loaded before this directory's node is built.
        if self.executor is not None and len(pending_files) > 1:
            files = list(self.executor.map(lambda args: self.build_file(*args), pending_files))
        else:
            files = [self.build_file(*args) for args in pending_files]

        directories.sort(key=_sort_key)
        files.sort(key=_sort_key)
        children = [*directories, *files]

        size = None
        if options.include_size:
            size = sum(child.size or 0 for child in children)

        return DirectoryNode(
            name=_display_text(abs_path.name or str(abs_path)),
            path=_display_text(str(abs_path)),
            relative_path=rel_path or ".",
            size=size,
            gitignored_count=gitignored,
            errors=errors,
            children=children,
        )

    def build_file(self, name: str, abs_path: Path, rel_path: str, extension: Optional[str], st: os.stat_result) -> FileNode:
        options = self.options
        wants_content = options.include_content and st.st_size <= options.content_max_size_bytes

        data = None
        content = None
        content_error = None
        if (wants_content or options.include_hash) and stat.S_ISREG(st.st_mode):
            try:
                data = abs_path.read_bytes()
            except OSError as exc:
                logger.warning("Could not read %s: %s", abs_path, exc)
                content_error = f"Could not read file content: {exc}"

        file_hash = None
        if options.include_hash and data is not None:
            file_hash = hashlib.md5(data).hexdigest()

        if wants_content and data is not None:
            content = decode_text(data)
            if content is None:
                content_error = "Could not read file content: not valid UTF-8 text"

        language = None
        if options.detect_language or options.analyze_complexity:
            language = detect_language(name, extension, content)

        metrics = None
        if options.analyze_complexity and content is not None and language:
            metrics = analyze_code_complexity(content, language)
            if metrics is not None and not meets_threshold(metrics, options.complexity_threshold):
                metrics = None

        return FileNode(
            name=name,
            path=_display_text(str(abs_path)),
            relative_path=rel_path,
            extension=extension,
            size=st.st_size if options.include_size else None,
            modified_at=st.st_mtime if options.include_mod_time else None,
            hash=file_hash,
            content=content,
            content_error=content_error,
            language=language if options.detect_language else None,
            metrics=metrics,
        )


def scan_codebase(
    root_path: Path,
    options: Optional[ScanOptions] = None,
    should_cancel: Optional[Callable[[], bool]] = None,
) -> DirectoryNode:
    """
    Walk `root_path` and return the annotated directory tree.

    Raises RootNotADirectory or RootUnreadable for a bad root; any failure
    below the root is logged, recorded on the parent node and skipped.
    """
    options = options or ScanOptions()
    root = Path(root_path).resolve()

    try:
        root_stat = os.stat(root)
    except OSError as exc:
        raise RootNotADirectory(f"Path is not a directory: {root} ({exc.strerror})") from exc
    if not stat.S_ISDIR(root_stat.st_mode):
        raise RootNotADirectory(f"Path is not a directory: {root}")

    ignore_root, gitignore_spec = (None, None)
    if options.respect_gitignore:
        ignore_root, gitignore_spec = _load_gitignore_spec(root, options.ignore_dirs)

    logger.info("Scanning %s", root)

    executor = None
    if options.max_workers > 1:
        executor = concurrent.futures.ThreadPoolExecutor(max_workers=options.max_workers)
    try:
        walker = _TreeWalker(options, executor, should_cancel, ignore_root, gitignore_spec)
        try:
            return walker.walk_directory(root, "", 0, frozenset({(root_stat.st_dev, root_stat.st_ino)}))
        except OSError as exc:
            raise RootUnreadable(f"Cannot list directory {root}: {exc.strerror or exc}") from exc
    finally:
        if executor is not None:
            executor.shutdown(wait=True)


build_tree = scan_codebase


def analyze_codebase(
    root_path: Path,
    options: Optional[ScanOptions] = None,
    include_duplicates: bool = False,
    include_tech_debt: bool = False,
) -> CodebaseReport:
    """Scan, aggregate and optionally run duplicate and tech-debt detection in one go."""
    options = options or ScanOptions.for_analysis()
    tree = scan_codebase(root_path, options)
    stats = get_stats(tree)

    duplicates = None
    if include_duplicates:
        duplicates = analyze_duplication(tree, options)

    tech_debt = analyze_tech_debt(tree) if include_tech_debt else None

    return CodebaseReport(root=tree, stats=stats, duplicates=duplicates, tech_debt=tech_debt)
