"""Fingerprint builder for repository structure analysis.

Walks a repository breadth-first and produces an immutable Fingerprint:
recorded file and directory paths up to a depth cutoff, shallow manifest
keys, file sizes, the root .gitignore patterns and aggregate counts.

The walk is bounded three ways:
    - depth: entries deeper than the depth limit are not recorded, and
      directories are not entered beyond the probe depth
    - breadth: enumeration stops once the sampling cap is reached
    - time: an optional wall-clock budget stops the walk early

Each level is read by a thread pool; all workers of a level finish before
the next level starts, and the Fingerprint is built only after the walk.
"""

import os
import time
import warnings
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

from repostruct.analyzers.ignore import (
    GITIGNORE_FILENAME,
    build_exclusions,
    parse_gitignore,
    should_exclude,
)
from repostruct.analyzers.manifests import is_manifest, read_manifest
from repostruct.config import AnalysisConfig
from repostruct.errors import PartialReadWarning, RepositoryIOError
from repostruct.logging import ProgressBar, logger
from repostruct.models.structure import Fingerprint, TreeEntry

# Largest .gitignore we bother to read
_MAX_GITIGNORE_BYTES = 256 * 1024


@dataclass
class DirListing:
    """Raw result of reading one directory."""

    rel: str
    abs_path: Path
    entries: list[tuple[str, bool, int]] = field(default_factory=list)  # (name, is_dir, size)
    error: str | None = None


@dataclass
class _WalkState:
    files: list[str] = field(default_factory=list)
    directories: list[str] = field(default_factory=list)
    tree: list[TreeEntry] = field(default_factory=list)
    sizes: dict[str, int] = field(default_factory=dict)
    unreadable: list[str] = field(default_factory=list)
    total_files: int = 0
    max_depth: int = 0
    deepest_path: str | None = None
    sampled: bool = False
    timed_out: bool = False


def _list_dir(path: Path) -> list[tuple[str, bool, int]]:
    """Read one directory without following directory symlinks.

    Raises:
        OSError: If the directory cannot be read.
    """
    entries: list[tuple[str, bool, int]] = []
    with os.scandir(path) as it:
        for entry in it:
            try:
                is_dir = entry.is_dir(follow_symlinks=False)
                size = 0 if is_dir else entry.stat(follow_symlinks=False).st_size
            except OSError:
                # Entry vanished or is unreadable; treat as an empty file
                is_dir, size = False, 0
            entries.append((entry.name, is_dir, size))
    entries.sort()
    return entries


def _scan(rel: str, abs_path: Path) -> DirListing:
    listing = DirListing(rel=rel, abs_path=abs_path)
    try:
        listing.entries = _list_dir(abs_path)
    except OSError as e:
        listing.error = str(e)
    return listing


def _resolve_root(root: str | Path) -> Path:
    try:
        resolved = Path(root).expanduser().resolve(strict=True)
    except (OSError, RuntimeError) as e:
        raise RepositoryIOError(f"Repository root does not exist: {root}", path=root) from e
    if not resolved.is_dir():
        raise RepositoryIOError(f"Repository root is not a directory: {resolved}", path=resolved)
    return resolved


def _record_level(
    listings: list[DirListing],
    depth: int,
    config: AnalysisConfig,
    exclusions: frozenset[str],
    state: _WalkState,
) -> list[tuple[str, Path]]:
    """Fold one level of listings into the walk state.

    Returns:
        Subdirectories to read at the next level. Empty once the sampling
        cap is hit.
    """
    next_level: list[tuple[str, Path]] = []

    for listing in listings:
        if listing.error is not None:
            unreadable = f"{listing.rel}/"
            state.unreadable.append(unreadable)
            logger.warning("  Cannot read %s: %s", unreadable, listing.error)
            warnings.warn(
                f"Skipped unreadable directory {unreadable}: {listing.error}",
                PartialReadWarning,
                stacklevel=3,
            )
            continue

        for name, is_dir, size in listing.entries:
            rel = f"{listing.rel}/{name}" if listing.rel else name
            if should_exclude(rel, exclusions):
                continue

            if is_dir:
                dir_path = f"{rel}/"
                if depth > state.max_depth:
                    state.max_depth = depth
                    state.deepest_path = dir_path
                if depth <= config.depth_limit:
                    state.directories.append(dir_path)
                    state.tree.append(TreeEntry(depth=depth, path=dir_path, is_dir=True))
                next_level.append((rel, listing.abs_path / name))
                continue

            if state.total_files >= config.sample_cap:
                state.sampled = True
                return []
            state.total_files += 1
            if depth <= config.depth_limit:
                state.files.append(rel)
                state.sizes[rel] = size
                state.tree.append(TreeEntry(depth=depth, path=rel))

    return next_level


def build_fingerprint(
    root: str | Path,
    config: AnalysisConfig | None = None,
) -> Fingerprint:
    """Walk a repository and build its structural fingerprint.

    Args:
        root: Repository root directory.
        config: Walk limits; defaults to AnalysisConfig().

    Returns:
        Immutable Fingerprint. Unreadable subdirectories, the sampling cap
        and the time budget degrade it (flags set) instead of failing.

    Raises:
        RepositoryIOError: If the root is missing, not a directory,
            unreadable, or vanishes during the walk.
    """
    config = config or AnalysisConfig()
    resolved = _resolve_root(root)
    exclusions = build_exclusions(config.exclude)
    deadline = time.monotonic() + config.timeout_seconds if config.timeout_seconds else None

    try:
        root_entries = _list_dir(resolved)
    except OSError as e:
        raise RepositoryIOError(f"Cannot read repository root: {e}", path=resolved) from e

    state = _WalkState()
    listings = [DirListing(rel="", abs_path=resolved, entries=root_entries)]
    depth = 1

    with ThreadPoolExecutor(max_workers=config.effective_workers) as executor:
        with ProgressBar(total=None, desc="Scanning", unit="dirs") as pbar:
            while listings:
                next_level = _record_level(listings, depth, config, exclusions, state)
                pbar.update(len(listings))
                depth += 1
                if not next_level or depth > config.probe_depth:
                    break
                if deadline is not None and time.monotonic() > deadline:
                    state.timed_out = True
                    break
                # map() preserves order and joins every worker of this level
                listings = list(executor.map(lambda item: _scan(*item), next_level))

    if not resolved.is_dir():
        raise RepositoryIOError(f"Repository root vanished during scan: {resolved}", path=resolved)

    if state.sampled or state.timed_out:
        logger.info(
            "  Walk stopped early after %d files (sampled=%s, timed_out=%s)",
            state.total_files,
            state.sampled,
            state.timed_out,
        )

    manifests = {
        rel: read_manifest(resolved / rel, rel.rsplit("/", 1)[-1])
        for rel in state.files
        if is_manifest(rel)
    }

    return Fingerprint(
        root=str(resolved),
        files=tuple(sorted(state.files)),
        directories=tuple(sorted(state.directories)),
        tree=tuple(state.tree),
        manifests=manifests,
        file_sizes=state.sizes,
        ignore_patterns=_read_gitignore(resolved),
        total_files=state.total_files,
        max_depth=state.max_depth,
        deepest_path=state.deepest_path,
        partial_read=bool(state.unreadable),
        unreadable_paths=tuple(state.unreadable),
        sampled=state.sampled or state.timed_out,
        timed_out=state.timed_out,
    )


def _read_gitignore(root: Path) -> tuple[str, ...]:
    path = root / GITIGNORE_FILENAME
    try:
        if not path.is_file() or path.stat().st_size > _MAX_GITIGNORE_BYTES:
            return ()
        return parse_gitignore(path.read_text(encoding="utf-8", errors="replace"))
    except OSError as e:
        logger.warning("  Failed to read %s: %s", path, e)
        return ()
