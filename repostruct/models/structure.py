"""Structural data models for repository layout analysis.

Pydantic models shared by every stage of the pipeline. Stage inputs are frozen
so that no stage can mutate a predecessor's output.
"""

from datetime import UTC, datetime
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field

UNCLASSIFIED = "unclassified"

Band = Literal["framework", "language", "purpose"]
BAND_ORDER: tuple[Band, ...] = ("framework", "language", "purpose")

Tier = Literal["critical", "important", "enhancement"]
TIER_ORDER: dict[str, int] = {"critical": 0, "important": 1, "enhancement": 2}

FindingKind = Literal["MissingPath", "ExtraOrMisplacedPath", "AntiPattern"]

Concern = Literal[
    "tests", "vcs", "license", "ci", "docs", "source", "config", "editor", "devcontainer"
]

ActionKind = Literal[
    "create_dir",
    "create_file",
    "move",
    "flatten",
    "normalize_names",
    "add_ignore_entry",
    "remove",
]


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


# Fingerprint


class TreeEntry(_Frozen):
    """One entry of the directory tree listing."""

    depth: int = Field(ge=1, description="Number of path components (root children are 1)")
    path: str = Field(description="Relative POSIX path; directories end with '/'")
    is_dir: bool = Field(default=False)


class Fingerprint(_Frozen):
    """Immutable structural snapshot of a repository."""

    root: str = Field(description="Resolved root directory")
    files: tuple[str, ...] = Field(default=(), description="Relative file paths within the depth cutoff")
    directories: tuple[str, ...] = Field(
        default=(), description="Relative directory paths within the depth cutoff (trailing '/')"
    )
    tree: tuple[TreeEntry, ...] = Field(default=(), description="Breadth-first (depth, path) listing")
    manifests: dict[str, tuple[str, ...]] = Field(
        default_factory=dict, description="Manifest path -> extracted keys (dependency names)"
    )
    file_sizes: dict[str, int] = Field(default_factory=dict, description="Size in bytes per recorded file")
    ignore_patterns: tuple[str, ...] = Field(default=(), description="Patterns from the root .gitignore")
    total_files: int = Field(default=0, description="Files enumerated, including below the cutoff")
    max_depth: int = Field(default=0, description="Deepest directory depth observed")
    deepest_path: str | None = Field(default=None, description="A directory at max_depth")
    partial_read: bool = Field(default=False, description="Some subdirectory could not be read")
    unreadable_paths: tuple[str, ...] = Field(default=())
    sampled: bool = Field(default=False, description="Enumeration stopped at the sampling cap")
    timed_out: bool = Field(default=False, description="Enumeration stopped at the time budget")

    def all_paths(self) -> tuple[str, ...]:
        """Files and directories together, for prefix matching."""
        return self.directories + self.files

    def has_path(self, prefix: str) -> bool:
        """Case-sensitive prefix match against every recorded path."""
        return any(p == prefix or p.startswith(prefix) for p in self.all_paths())

    def root_files(self) -> tuple[str, ...]:
        return tuple(f for f in self.files if "/" not in f)

    def dependency_keys(self) -> set[str]:
        """Union of extracted keys over every manifest."""
        keys: set[str] = set()
        for values in self.manifests.values():
            keys.update(values)
        return keys


# Rule catalog


class MarkerFileSignal(_Frozen):
    """Rule matches when a file or directory with this exact path exists."""

    kind: Literal["marker_file"] = "marker_file"
    path: str


class DependencySignal(_Frozen):
    """Rule matches when a manifest declares the dependency key."""

    kind: Literal["dependency"] = "dependency"
    key: str
    manifest: str | None = Field(
        default=None, description="Restrict to one manifest filename (any depth)"
    )


class PathPatternSignal(_Frozen):
    """Rule matches when any recorded path matches the glob."""

    kind: Literal["path_pattern"] = "path_pattern"
    pattern: str


Signal = Annotated[
    MarkerFileSignal | DependencySignal | PathPatternSignal,
    Field(discriminator="kind"),
]


class Rule(_Frozen):
    """A named predicate plus the ecosystem label it votes for."""

    id: str
    label: str
    band: Band
    signal: Signal
    weight: float = Field(gt=0.0, le=1.0)
    template: str | None = Field(default=None, description="Canonical template reference")


class TemplateEntry(_Frozen):
    """An expected path in a canonical layout."""

    path: str = Field(description="Expected path; directories end with '/'")
    concern: Concern
    optional: bool = False
    alternatives: tuple[str, ...] = Field(default=(), description="Other accepted paths")


class AntiLocation(_Frozen):
    """A place where files should not live for a classification."""

    pattern: str = Field(description="fnmatch glob, case-sensitive")
    root_only: bool = True
    exclude: tuple[str, ...] = Field(default=(), alias="except")
    suggest: str = Field(description="Suggested destination directory")

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class CanonicalTemplate(_Frozen):
    """Expected layout keyed by classification label."""

    extends: str | None = None
    entries: tuple[TemplateEntry, ...] = ()
    anti_locations: tuple[AntiLocation, ...] = ()
    ignore: tuple[str, ...] = Field(default=(), description="Suggested .gitignore patterns")


class RuleCatalog(_Frozen):
    """Versioned rule data, loaded once per process."""

    version: str
    bands: dict[Band, tuple[Rule, ...]]
    templates: dict[str, CanonicalTemplate] = Field(default_factory=dict)
    anti_patterns: tuple[str, ...] = ()

    def rules(self, band: Band) -> tuple[Rule, ...]:
        return self.bands.get(band, ())

    def labels(self) -> list[str]:
        """Declared classification labels in declaration order."""
        seen: list[str] = []
        for band in BAND_ORDER:
            for rule in self.rules(band):
                if rule.label not in seen:
                    seen.append(rule.label)
        return seen


# Results


class Classification(_Frozen):
    """Chosen ecosystem/purpose label with confidence and provenance."""

    label: str = Field(default=UNCLASSIFIED)
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    band: Band | None = None
    contributing_rules: tuple[str, ...] = Field(default=(), description="Rule ids, declaration order")
    template: str | None = None
    ambiguous: bool = Field(default=False, description="Another label tied in the winning band")
    alternatives: tuple[str, ...] = Field(default=(), description="Labels tied with the winner")
    secondary_labels: tuple[str, ...] = Field(default=(), description="Winners of lower bands")

    @property
    def is_classified(self) -> bool:
        return self.confidence > 0.0


class RemediationAction(_Frozen):
    """Structured remediation, e.g. {action: "create_dir", path: "tests/"}."""

    action: ActionKind
    path: str
    target: str | None = None
    template: str | None = Field(default=None, description="Suggested content hint")


class Finding(_Frozen):
    """A single detected deviation."""

    kind: FindingKind
    path: str
    related_paths: tuple[str, ...] = ()
    severity: Tier
    rationale: str = Field(description="Machine-readable rationale key")
    source: str = Field(description="Rule, template or predicate id that produced the finding")
    remediation: RemediationAction

    @computed_field  # type: ignore[prop-decorator]
    @property
    def id(self) -> str:
        return f"{self.kind}:{self.rationale}:{self.path}"


class Recommendation(_Frozen):
    """Deduplicated, prioritized remediation derived from one or more findings."""

    id: str
    tier: Tier
    path: str
    action: RemediationAction
    findings: tuple[Finding, ...] = Field(min_length=1)
    rationales: tuple[str, ...] = ()


class FingerprintSummary(BaseModel):
    """Aggregate view of the fingerprint included in results."""

    root: str
    total_files: int
    recorded_files: int
    max_depth: int
    partial_read: bool
    unreadable_paths: list[str] = Field(default_factory=list)
    sampled: bool
    timed_out: bool
    manifests: list[str] = Field(default_factory=list)


class AnalysisResult(BaseModel):
    """Structured output consumed by report layers."""

    fingerprint: FingerprintSummary
    classification: Classification
    findings: list[Finding] = Field(default_factory=list)
    recommendations: list[Recommendation] = Field(default_factory=list)
    catalog_version: str
    generated_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC), description="Analysis time in UTC"
    )

    def counts_by_tier(self) -> dict[str, int]:
        counts = {tier: 0 for tier in TIER_ORDER}
        for rec in self.recommendations:
            counts[rec.tier] += 1
        return counts
