"""Shared constants for analyzers.

Constants that are used across multiple analyzer modules.
"""

import re

from repostruct.models.structure import Tier

# Directory names that hold tests in most ecosystems
TEST_DIR_NAMES: frozenset[str] = frozenset({
    "tests", "test", "spec", "specs", "__tests__", "testing", "e2e",
})

# Patterns for identifying test files
TEST_FILE_PATTERNS = [
    re.compile(r"(^|/)test_[^/]+\.py$"),  # test_*.py
    re.compile(r"[^/]+_test\.(py|go)$"),  # *_test.py, *_test.go
    re.compile(r"\.test\.[tj]sx?$"),  # *.test.ts, *.test.js, etc.
    re.compile(r"\.spec\.[tj]sx?$"),  # *.spec.ts, *.spec.js, etc.
    re.compile(r"_spec\.rb$"),  # *_spec.rb
    re.compile(r"[A-Z]\w*Tests?\.(java|kt|cs)$"),  # FooTest.java, FooTests.cs
    re.compile(r"(^|/)tests?/"),  # tests/ or test/ directory
    re.compile(r"(^|/)__tests__/"),  # __tests__/ directory
]

# Root file names (without extension, any case) accepted as a license
LICENSE_STEMS: frozenset[str] = frozenset({"LICENSE", "LICENCE", "COPYING", "UNLICENSE"})

README_STEMS: frozenset[str] = frozenset({"README"})

# Any of these paths marks the repository as having CI/CD configured
CI_MARKERS: tuple[str, ...] = (
    ".github/workflows/",
    ".gitlab-ci.yml",
    "Jenkinsfile",
    ".circleci/",
    ".travis.yml",
    "azure-pipelines.yml",
    "bitbucket-pipelines.yml",
    ".drone.yml",
    ".buildkite/",
)

# Backup, temp and OS artifacts that should not be committed
STRAY_FILE_PATTERNS: tuple[str, ...] = (
    "*.bak",
    "*.orig",
    "*.old",
    "*.tmp",
    "*.swp",
    "*~",
    ".DS_Store",
    "Thumbs.db",
)

# Anti-pattern predicate identifiers, in evaluation order
ANTI_PATTERN_IDS: tuple[str, ...] = (
    "deep_nesting",
    "mixed_naming",
    "missing_gitignore",
    "missing_license",
    "missing_tests",
    "large_unignored_file",
    "missing_ci",
    "missing_readme",
    "missing_editorconfig",
    "missing_devcontainer",
    "stray_files",
)

# Known predicates that only run when a catalog enables them explicitly
OPTIONAL_ANTI_PATTERN_IDS: frozenset[str] = frozenset({
    "missing_readme",
    "missing_editorconfig",
    "missing_devcontainer",
})

DEFAULT_ANTI_PATTERN_IDS: tuple[str, ...] = tuple(
    p for p in ANTI_PATTERN_IDS if p not in OPTIONAL_ANTI_PATTERN_IDS
)

# Fixed severity table keyed by finding rationale
CRITICAL_RATIONALES: frozenset[str] = frozenset({
    "missing_vcs_ignore",
    "large_unignored_file",
    "missing_tests",
    "missing_license",
})

IMPORTANT_RATIONALES: frozenset[str] = frozenset({
    "mixed_naming",
    "deep_nesting",
    "misplaced_path",
    "nonstandard_tests_location",
    "missing_ci",
    "missing_source",
    "stray_files",
})


def severity_for(rationale: str) -> Tier:
    """Map a rationale key to its severity tier.

    Version-control hygiene, test structure and licensing are critical;
    naming/organization and CI/CD are important; everything else
    (documentation, editor config, dev containers) is an enhancement.
    """
    if rationale in CRITICAL_RATIONALES:
        return "critical"
    if rationale in IMPORTANT_RATIONALES:
        return "important"
    return "enhancement"


def missing_rationale(concern: str) -> str:
    """Rationale key for a missing template entry of the given concern."""
    if concern == "vcs":
        return "missing_vcs_ignore"
    return f"missing_{concern}"


def is_test_file(file_path: str) -> bool:
    """Check if a file path is a test file.

    Args:
        file_path: Relative path to the file.

    Returns:
        True if the file is a test file, False otherwise.
    """
    if not file_path:
        return False
    for pattern in TEST_FILE_PATTERNS:
        if pattern.search(file_path):
            return True
    return False
