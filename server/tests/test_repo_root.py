from pathlib import Path

from treescope.services.analysis import find_repo_root


def test_find_repo_root_starts_in_repo_root(tmp_path: Path) -> None:
    """Should return the current dir if it is a repo root."""
    repo_root = tmp_path / "repo"
    repo_root.mkdir()
    (repo_root / ".git").mkdir()

    result = find_repo_root(repo_root)
    assert result == repo_root.resolve()


def test_find_repo_root_from_subdirectory(tmp_path: Path) -> None:
    """Should walk upwards to the enclosing repo root."""
    repo_root = tmp_path / "repo"
    repo_root.mkdir()
    (repo_root / ".git").mkdir()
    subdir = repo_root / "subdir" / "nested"
    subdir.mkdir(parents=True)

    result = find_repo_root(subdir)
    assert result == repo_root.resolve()


def test_find_repo_root_accepts_git_file(tmp_path: Path) -> None:
    """Worktrees and submodules use a .git file instead of a directory."""
    repo_root = tmp_path / "worktree"
    repo_root.mkdir()
    (repo_root / ".git").write_text("gitdir: /elsewhere\n")

    assert find_repo_root(repo_root / ".") == repo_root.resolve()


def test_find_repo_root_no_git_falls_back_to_start(tmp_path: Path) -> None:
    """Should fall back to the original start path when no .git is found."""
    start = tmp_path / "no_repo"
    start.mkdir()

    result = find_repo_root(start)
    assert result == start.resolve()
