"""Source file discovery for selector-lint."""

from __future__ import annotations

import logging
from fnmatch import fnmatch
from typing import TYPE_CHECKING, cast

from gitignore_parser import parse_gitignore  # type: ignore[import-untyped]

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from pathlib import Path

logger = logging.getLogger(__name__)


def _relative_to_root(path: Path, root: Path) -> str | None:
    """POSIX path relative to root, or None when the resolved path escapes it."""
    try:
        resolved = path.resolve()
        resolved.relative_to(root.resolve())
        return path.relative_to(root).as_posix()
    except (OSError, ValueError):
        return None


def _matches_any(rel_path: str, patterns: list[str] | None) -> bool:
    return bool(patterns) and any(fnmatch(rel_path, pat) for pat in patterns or ())


def _should_include_file(
    path: Path,
    directory: Path,
    output_dir: str,
    gitignore_matches: Callable[[str], bool] | None,
    include_patterns: list[str] | None,
    exclude_patterns: list[str] | None,
) -> bool:
    """Check if a file should be analyzed based on all filtering rules."""
    if path.is_symlink() or not path.is_file():
        return False

    rel_path = _relative_to_root(path, directory)
    if rel_path is None:
        logger.debug("Skipping %s: resolves outside %s", path, directory)
        return False

    if output_dir and rel_path.split("/", 1)[0] == output_dir:
        return False

    if gitignore_matches is not None and gitignore_matches(str(path)):
        return False

    if include_patterns and not _matches_any(rel_path, include_patterns):
        return False

    return not _matches_any(rel_path, exclude_patterns)


def _build_gitignore_matcher(
    root: Path,
    *,
    nested_gitignore: bool,
) -> Callable[[str], bool] | None:
    if nested_gitignore:
        gitignore_paths = sorted(
            {p for p in [root / ".gitignore", *root.rglob(".gitignore")] if p.is_file()},
            key=lambda p: p.relative_to(root).as_posix(),
        )
    else:
        gitignore_paths = [p for p in [root / ".gitignore"] if p.is_file()]

    if not gitignore_paths:
        return None
    if len(gitignore_paths) == 1:
        return cast("Callable[[str], bool]", parse_gitignore(gitignore_paths[0]))

    matchers = [parse_gitignore(path) for path in gitignore_paths]

    def matches(path_str: str) -> bool:
        for matcher in matchers:
            try:
                if matcher(path_str):
                    return True
            except ValueError:
                # path lies outside this .gitignore base
                continue
        return False

    return matches


def find_source_files(
    directory: Path,
    *,
    suffix: str = ".cs",
    output_dir: str = ".selectorlint",
    include_patterns: list[str] | None = None,
    exclude_patterns: list[str] | None = None,
    nested_gitignore: bool = False,
) -> Iterator[Path]:
    """Find source files to analyze, respecting .gitignore.

    Args:
        directory: Repository root to search
        suffix: File suffix to match (default ".cs")
        output_dir: Top-level directory name to skip (the report directory)
        include_patterns: Optional fnmatch patterns; when given, files must
            match at least one
        exclude_patterns: Optional fnmatch patterns; matching files are skipped
        nested_gitignore: Compose every .gitignore under the root, not only
            the root one

    Yields:
        Paths sorted by relative POSIX path, for deterministic reports.
    """
    gitignore_matches = _build_gitignore_matcher(
        directory,
        nested_gitignore=nested_gitignore,
    )

    matched_files = sorted(
        (
            path
            for path in directory.rglob(f"*{suffix}")
            if _should_include_file(
                path,
                directory,
                output_dir,
                gitignore_matches,
                include_patterns,
                exclude_patterns,
            )
        ),
        key=lambda p: p.relative_to(directory).as_posix(),
    )

    yield from matched_files


__all__ = ["_should_include_file", "find_source_files"]
