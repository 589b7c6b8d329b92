"""Centralized exclusion and ignore-pattern handling.

Two separate concerns live here:
    - Traversal exclusions: directories the fingerprint walk never enters
      (version-control internals, dependency trees, caches) plus user globs.
    - .gitignore semantics: whether a recorded path is covered by the
      repository's own ignore file, and which patterns to suggest for it.
"""

from fnmatch import fnmatchcase

from repostruct.analyzers.catalog import template_chain
from repostruct.logging import logger
from repostruct.models.structure import Classification, RuleCatalog

GITIGNORE_FILENAME = ".gitignore"

# Version-control internals, never traversed
VCS_DIRS: frozenset[str] = frozenset({".git", ".svn", ".hg", ".bzr"})

# Universal exclusions - always skipped by the walk
DEFAULT_IGNORES: frozenset[str] = VCS_DIRS | frozenset({
    # Dependencies
    "node_modules",
    "bower_components",
    # Python
    "__pycache__",
    ".pytest_cache",
    ".mypy_cache",
    ".ruff_cache",
    ".tox",
    ".nox",
    "*.egg-info",
    ".eggs",
    # Virtual environments
    "venv",
    ".venv",
    # IDE state (not editor config)
    ".idea",
    # Test coverage
    "htmlcov",
    ".nyc_output",
})

# Patterns every generated .gitignore starts with
BASELINE_GITIGNORE: tuple[str, ...] = (
    ".DS_Store",
    "*.log",
    ".env",
    ".idea/",
)


def get_default_ignores() -> set[str]:
    """Get a mutable copy of default exclusion patterns."""
    return set(DEFAULT_IGNORES)


def build_exclusions(extra: tuple[str, ...] | list[str] = ()) -> frozenset[str]:
    """Combine default exclusions with user-supplied globs."""
    patterns = get_default_ignores()
    patterns.update(p.rstrip("/") for p in extra if p.strip())
    return frozenset(patterns)


def should_exclude(rel_path: str, patterns: frozenset[str] | set[str]) -> bool:
    """Check if a walk entry should be skipped.

    Matches each pattern against the entry's name and against its full
    relative path, so both "node_modules" and "docs/generated" style
    exclusions work.

    Args:
        rel_path: POSIX path relative to the repository root (no trailing slash).
        patterns: Exclusion names or globs.

    Returns:
        True if the entry should not be traversed or recorded.
    """
    name = rel_path.rsplit("/", 1)[-1]
    for pattern in patterns:
        if name == pattern or rel_path == pattern:
            return True
        if fnmatchcase(name, pattern) or fnmatchcase(rel_path, pattern):
            return True
    return False


def parse_gitignore(content: str) -> tuple[str, ...]:
    """Parse .gitignore content into a pattern tuple.

    - Lines starting with # are comments
    - Empty lines are ignored
    - Negations (!pattern) are skipped
    """
    patterns: list[str] = []
    for line in content.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("!"):
            logger.debug("  Negation patterns not supported: %s", line)
            continue
        patterns.append(line)
    return tuple(patterns)


def is_gitignored(rel_path: str, patterns: tuple[str, ...] | list[str]) -> bool:
    """Check whether a file path is covered by .gitignore patterns.

    Approximates git's rules: a pattern containing a slash is anchored at
    the root and matches the path or any of its parent directories; a
    pattern without one matches any path component; a trailing slash
    restricts the pattern to directories.

    Args:
        rel_path: File path relative to the repository root.
        patterns: Parsed .gitignore patterns.
    """
    parts = rel_path.strip("/").split("/")
    prefixes = ["/".join(parts[: i + 1]) for i in range(len(parts))]

    for raw in patterns:
        dir_only = raw.endswith("/")
        pattern = raw.rstrip("/")
        anchored = pattern.startswith("/") or "/" in pattern
        pattern = pattern.lstrip("/")
        if pattern.startswith("**/"):
            pattern = pattern[3:]
            anchored = "/" in pattern
        if not pattern:
            continue

        if anchored:
            candidates = prefixes[:-1] if dir_only else prefixes
        else:
            candidates = parts[:-1] if dir_only else parts

        if any(fnmatchcase(candidate, pattern) for candidate in candidates):
            return True
    return False


def suggest_ignore_patterns(
    classification: Classification,
    catalog: RuleCatalog,
) -> list[str]:
    """Suggested .gitignore patterns for a classification.

    Combines the baseline with the ignore lists of the classification's
    template chain and of its secondary labels' templates.

    Returns:
        Deduplicated patterns, baseline first.
    """
    patterns: list[str] = list(BASELINE_GITIGNORE)
    template_ids: list[str] = []
    if classification.template:
        template_ids.append(classification.template)
    template_ids.extend(label for label in classification.secondary_labels if label in catalog.templates)

    for template_id in template_ids:
        for template in template_chain(catalog, template_id):
            for pattern in template.ignore:
                if pattern not in patterns:
                    patterns.append(pattern)
    return patterns


def generate_gitignore_content(
    classification: Classification,
    catalog: RuleCatalog,
) -> str:
    """Generate .gitignore file content with a short header."""
    lines = [
        "# .gitignore - suggested by repostruct",
        f"# Detected project type: {classification.label}",
        "",
    ]
    lines.extend(suggest_ignore_patterns(classification, catalog))
    return "\n".join(lines) + "\n"
