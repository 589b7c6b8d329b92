"""Classification-independent anti-pattern detection.

Each predicate looks only at the fingerprint. Predicates are independent and
order-insensitive: every applicable one fires, none short-circuits another.
"""

import re
from collections import defaultdict
from collections.abc import Callable, Iterable
from fnmatch import fnmatchcase

from repostruct.analyzers.constants import (
    ANTI_PATTERN_IDS,
    CI_MARKERS,
    DEFAULT_ANTI_PATTERN_IDS,
    LICENSE_STEMS,
    README_STEMS,
    STRAY_FILE_PATTERNS,
    TEST_DIR_NAMES,
    is_test_file,
    severity_for,
)
from repostruct.analyzers.ignore import GITIGNORE_FILENAME, is_gitignored
from repostruct.config import AnalysisConfig
from repostruct.logging import logger
from repostruct.models.structure import ActionKind, Finding, Fingerprint, RemediationAction

# Naming styles; single lowercase words match none and never conflict
_NAMING_STYLES: dict[str, re.Pattern[str]] = {
    "kebab-case": re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)+$"),
    "snake_case": re.compile(r"^[a-z0-9]+(?:_[a-z0-9]+)+$"),
    "camelCase": re.compile(r"^[a-z]+(?:[A-Z][a-z0-9]*)+$"),
    "PascalCase": re.compile(r"^(?:[A-Z][a-z0-9]+){2,}$"),
}

Predicate = Callable[[Fingerprint, AnalysisConfig], list[Finding]]


def _finding(
    predicate: str,
    path: str,
    action: ActionKind,
    rationale: str | None = None,
    related: Iterable[str] = (),
    target: str | None = None,
    template: str | None = None,
) -> Finding:
    rationale = rationale or predicate
    return Finding(
        kind="AntiPattern",
        path=path,
        related_paths=tuple(related),
        severity=severity_for(rationale),
        rationale=rationale,
        source=f"predicate:{predicate}",
        remediation=RemediationAction(action=action, path=path, target=target, template=template),
    )


def naming_style(name: str) -> str | None:
    """Return the naming style of a directory name, or None if neutral."""
    for style, pattern in _NAMING_STYLES.items():
        if pattern.match(name):
            return style
    return None


def check_deep_nesting(fp: Fingerprint, config: AnalysisConfig) -> list[Finding]:
    if fp.max_depth <= config.nesting_threshold or fp.deepest_path is None:
        return []
    return [_finding("deep_nesting", fp.deepest_path, "flatten")]


def check_mixed_naming(fp: Fingerprint, config: AnalysisConfig) -> list[Finding]:
    """Siblings that mix kebab-case, snake_case, camelCase or PascalCase."""
    siblings: dict[str, list[str]] = defaultdict(list)
    for directory in fp.directories:
        path = directory.rstrip("/")
        parent, _, name = path.rpartition("/")
        if name.startswith((".", "_")):
            continue
        siblings[parent].append(name)

    findings: list[Finding] = []
    for parent in sorted(siblings):
        styles: dict[str, list[str]] = defaultdict(list)
        for name in siblings[parent]:
            style = naming_style(name)
            if style is not None:
                styles[style].append(name)
        if len(styles) < 2:
            continue
        parent_path = f"{parent}/" if parent else "./"
        related = sorted(f"{parent}/{n}/" if parent else f"{n}/" for names in styles.values() for n in names)
        findings.append(_finding("mixed_naming", parent_path, "normalize_names", related=related))
    return findings


def check_missing_gitignore(fp: Fingerprint, config: AnalysisConfig) -> list[Finding]:
    if GITIGNORE_FILENAME in fp.files:
        return []
    return [
        _finding(
            "missing_gitignore",
            GITIGNORE_FILENAME,
            "create_file",
            rationale="missing_vcs_ignore",
            template="gitignore",
        )
    ]


def _has_root_file(fp: Fingerprint, stems: frozenset[str]) -> bool:
    """Case-insensitive match of root file names against stems."""
    wanted = {s.upper() for s in stems}
    for path in fp.root_files():
        name = path.upper()
        stem = name.split(".", 1)[0] if not name.startswith(".") else name
        if stem in wanted or any(name.startswith(f"{s}-") for s in wanted):
            return True
    return False


def has_license(fp: Fingerprint) -> bool:
    """A root LICENSE, LICENCE, COPYING or UNLICENSE file in any case or extension."""
    return _has_root_file(fp, LICENSE_STEMS)


def check_missing_license(fp: Fingerprint, config: AnalysisConfig) -> list[Finding]:
    if has_license(fp):
        return []
    return [_finding("missing_license", "LICENSE", "create_file")]


def has_test_structure(fp: Fingerprint) -> bool:
    """Any recognizable test directory or test-file naming pattern."""
    for directory in fp.directories:
        if any(part in TEST_DIR_NAMES for part in directory.rstrip("/").split("/")):
            return True
    return any(is_test_file(path) for path in fp.files)


def check_missing_tests(fp: Fingerprint, config: AnalysisConfig) -> list[Finding]:
    if has_test_structure(fp):
        return []
    return [_finding("missing_tests", "tests/", "create_dir")]


def check_large_unignored_files(fp: Fingerprint, config: AnalysisConfig) -> list[Finding]:
    findings: list[Finding] = []
    for path in fp.files:
        size = fp.file_sizes.get(path, 0)
        if size <= config.large_file_bytes:
            continue
        if is_gitignored(path, fp.ignore_patterns):
            continue
        findings.append(_finding("large_unignored_file", path, "add_ignore_entry", target=GITIGNORE_FILENAME))
    return findings


def check_missing_ci(fp: Fingerprint, config: AnalysisConfig) -> list[Finding]:
    if any(fp.has_path(marker) for marker in CI_MARKERS):
        return []
    return [_finding("missing_ci", ".github/workflows/", "create_dir")]


def check_missing_readme(fp: Fingerprint, config: AnalysisConfig) -> list[Finding]:
    if _has_root_file(fp, README_STEMS):
        return []
    return [_finding("missing_readme", "README.md", "create_file", rationale="missing_docs")]


def check_missing_editorconfig(fp: Fingerprint, config: AnalysisConfig) -> list[Finding]:
    if ".editorconfig" in fp.files:
        return []
    return [_finding("missing_editorconfig", ".editorconfig", "create_file", rationale="missing_editor")]


def check_missing_devcontainer(fp: Fingerprint, config: AnalysisConfig) -> list[Finding]:
    """Containerized projects without a dev container definition."""
    if "Dockerfile" not in fp.files and "docker-compose.yml" not in fp.files:
        return []
    if fp.has_path(".devcontainer/") or ".devcontainer.json" in fp.files:
        return []
    return [_finding("missing_devcontainer", ".devcontainer/", "create_dir", rationale="missing_devcontainer")]


def check_stray_files(fp: Fingerprint, config: AnalysisConfig) -> list[Finding]:
    findings: list[Finding] = []
    for path in fp.files:
        name = path.rsplit("/", 1)[-1]
        if any(fnmatchcase(name, pattern) for pattern in STRAY_FILE_PATTERNS):
            findings.append(_finding("stray_files", path, "remove"))
    return findings


PREDICATES: dict[str, Predicate] = {
    "deep_nesting": check_deep_nesting,
    "mixed_naming": check_mixed_naming,
    "missing_gitignore": check_missing_gitignore,
    "missing_license": check_missing_license,
    "missing_tests": check_missing_tests,
    "large_unignored_file": check_large_unignored_files,
    "missing_ci": check_missing_ci,
    "missing_readme": check_missing_readme,
    "missing_editorconfig": check_missing_editorconfig,
    "missing_devcontainer": check_missing_devcontainer,
    "stray_files": check_stray_files,
}


def detect_antipatterns(
    fingerprint: Fingerprint,
    config: AnalysisConfig | None = None,
    enabled: Iterable[str] | None = None,
) -> list[Finding]:
    """Run every enabled anti-pattern predicate against a fingerprint.

    Args:
        fingerprint: Structural snapshot. The classification is never consulted.
        config: Thresholds (nesting depth, large-file size).
        enabled: Predicate ids to run. Defaults to DEFAULT_ANTI_PATTERN_IDS;
            the optional documentation and editor predicates only run when
            listed here.

    Returns:
        AntiPattern findings, grouped by predicate in evaluation order.
    """
    config = config or AnalysisConfig()
    selected = set(enabled) if enabled is not None else set(DEFAULT_ANTI_PATTERN_IDS)

    findings: list[Finding] = []
    for predicate_id in ANTI_PATTERN_IDS:
        if predicate_id not in selected:
            continue
        found = PREDICATES[predicate_id](fingerprint, config)
        if found:
            logger.debug("  %s: %d finding(s)", predicate_id, len(found))
        findings.extend(found)
    return findings
