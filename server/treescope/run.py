import argparse
import logging
import os
import threading
import time
import webbrowser
from pathlib import Path

import uvicorn

from treescope.config import CACHE_FILE_NAME, IGNORE_DIRS, IGNORE_EXTENSIONS, IGNORE_FILES, ScanOptions
from treescope.services.analysis import ScanError, analyze_codebase


def _open_browser_later(url: str, delay: float = 1.0) -> None:
    """
    Open the default web browser after a short delay.

    This lets the server start first so the page is reachable.
    """

    def _worker() -> None:
        time.sleep(delay)
        try:
            webbrowser.open(url)
        except webbrowser.Error:
            # Don't crash the CLI if opening the browser fails (e.g. headless env)
            pass

    thread = threading.Thread(target=_worker, daemon=True)
    thread.start()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="treescope",
        description=(
            "Source tree structure, complexity and duplication analyzer. "
            "By default, analyzes the current working directory."
        ),
    )
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the codebase to analyze (default: current directory).",
    )
    parser.add_argument("--host", default="127.0.0.1", help="Host interface to bind the server to (default: 127.0.0.1).")
    parser.add_argument("--port", type=int, default=8000, help="Port to run the server on (default: 8000).")
    parser.add_argument("--no-browser", action="store_true", help="Do not open a browser window.")

    parser.add_argument("-d", "--depth", type=int, default=None, help="Maximum directory depth to traverse.")
    parser.add_argument("-i", "--ignore", nargs="+", default=None, metavar="DIR", help="Directory names to ignore.")
    parser.add_argument("--ignore-files", nargs="+", default=None, metavar="NAME", help="File names to ignore.")
    parser.add_argument("--ignore-extensions", nargs="+", default=None, metavar="EXT", help="File extensions to ignore.")
    parser.add_argument("--gitignore", action="store_true", help="Also skip paths matched by .gitignore files.")
    parser.add_argument("--workers", type=int, default=1, help="Threads used to read files (default: 1).")
    parser.add_argument(
        "--complexity-threshold",
        choices=["low", "medium", "high", "very high"],
        default=None,
        help="Only keep metrics for files at or above this complexity.",
    )

    parser.add_argument("--report", action="store_true", help="Print a JSON report and exit instead of serving.")
    parser.add_argument("--duplicates", action="store_true", help="Include duplicate-block detection in the report.")
    parser.add_argument("--tech-debt", action="store_true", help="Include the technical-debt summary in the report.")
    parser.add_argument("--min-lines", type=int, default=5, help="Minimum lines for duplicate detection (default: 5).")
    parser.add_argument("--similarity", type=float, default=0.8, help="Duplicate similarity threshold (default: 0.8).")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log scan progress and skipped entries.")
    return parser


def options_from_args(args: argparse.Namespace) -> ScanOptions:
    return ScanOptions.for_analysis(
        ignore_dirs=IGNORE_DIRS if args.ignore is None else args.ignore,
        ignore_files=IGNORE_FILES if args.ignore_files is None else {*args.ignore_files, CACHE_FILE_NAME},
        ignore_extensions=IGNORE_EXTENSIONS if args.ignore_extensions is None else args.ignore_extensions,
        max_depth=args.depth,
        complexity_threshold=args.complexity_threshold,
        duplicate_min_lines=args.min_lines,
        duplicate_similarity_threshold=args.similarity,
        respect_gitignore=args.gitignore,
        max_workers=args.workers,
    )


def main(argv: list[str] | None = None) -> None:
    """
    Entry point for the CLI.

    - Uses the current working directory (or a provided path) as the codebase root.
    - With --report, prints the analysis as JSON and exits.
    - Otherwise starts the FastAPI server and opens the default browser.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    target_path = os.path.abspath(args.path)
    if not os.path.exists(target_path):
        raise SystemExit(f"Path does not exist: {target_path}")

    try:
        options = options_from_args(args)
    except ValueError as e:
        parser.error(str(e))

    if args.report:
        try:
            report = analyze_codebase(
                Path(target_path),
                options,
                include_duplicates=args.duplicates,
                include_tech_debt=args.tech_debt,
            )
        except ScanError as e:
            raise SystemExit(str(e))
        print(report.model_dump_json(indent=2, exclude={"root"}))
        return

    from treescope.main import app
    from treescope.routers import analysis as analysis_router

    analysis_router.ROOT_PATH = Path(target_path)
    analysis_router.SCAN_OPTIONS = options
    print(f"📂 Analyzing codebase at: {target_path}")

    url = f"http://{args.host}:{args.port}"
    print(f"🚀 Starting server at {url}")
    print("   Press Ctrl+C to stop.")

    if not args.no_browser:
        _open_browser_later(url)

    uvicorn.run(app, host=args.host, port=args.port, reload=False)


if __name__ == "__main__":
    main()
