"""End-to-end repository structure analysis.

Runs the linear pipeline once per call:

    Fingerprint -> Classification -> Findings -> Recommendations

No stage re-enters an earlier one and nothing is carried across calls except
the read-only rule catalog, so independent repositories may be analyzed from
parallel threads.
"""

from pathlib import Path

from repostruct.analyzers.antipatterns import detect_antipatterns
from repostruct.analyzers.catalog import get_catalog, load_catalog
from repostruct.analyzers.classifier import classify
from repostruct.analyzers.comparator import compare_structure
from repostruct.analyzers.fingerprint import build_fingerprint
from repostruct.analyzers.prioritizer import prioritize
from repostruct.config import AnalysisConfig
from repostruct.logging import log_operation, logger
from repostruct.models.structure import (
    AnalysisResult,
    Fingerprint,
    FingerprintSummary,
    RuleCatalog,
)


def summarize_fingerprint(fingerprint: Fingerprint) -> FingerprintSummary:
    return FingerprintSummary(
        root=fingerprint.root,
        total_files=fingerprint.total_files,
        recorded_files=len(fingerprint.files),
        max_depth=fingerprint.max_depth,
        partial_read=fingerprint.partial_read,
        unreadable_paths=list(fingerprint.unreadable_paths),
        sampled=fingerprint.sampled,
        timed_out=fingerprint.timed_out,
        manifests=sorted(fingerprint.manifests),
    )


def resolve_catalog(config: AnalysisConfig, catalog: RuleCatalog | None = None) -> RuleCatalog:
    """Pick the catalog for a run: explicit, config override, or process-wide."""
    if catalog is not None:
        return catalog
    if config.catalog_path:
        return load_catalog(config.catalog_path)
    return get_catalog()


def analyze_repository(
    root: str | Path,
    config: AnalysisConfig | None = None,
    catalog: RuleCatalog | None = None,
) -> AnalysisResult:
    """Analyze a repository's layout and produce prioritized recommendations.

    Args:
        root: Repository root directory.
        config: Analysis knobs; defaults to AnalysisConfig().
        catalog: Rule catalog; defaults to config.catalog_path or the
            process-wide catalog.

    Returns:
        AnalysisResult with the classification, every finding and the
        deduplicated, ordered recommendations. Findings are not failures.

    Raises:
        RepositoryIOError: If the root cannot be read. Nothing is produced.
        CatalogIntegrityError: If the catalog fails validation.
    """
    config = config or AnalysisConfig()
    rules = resolve_catalog(config, catalog)

    with log_operation("fingerprint", {"root": root, "depth": config.depth_limit}) as timing:
        fingerprint = build_fingerprint(root, config)
    logger.debug("  Walked %d file(s) in %.1fms", fingerprint.total_files, timing.elapsed_ms)

    with log_operation("classify"):
        classification = classify(fingerprint, rules)
    logger.info(
        "  Classified as %s (confidence %.2f%s)",
        classification.label,
        classification.confidence,
        ", ambiguous" if classification.ambiguous else "",
    )

    with log_operation("detect"):
        findings = compare_structure(fingerprint, classification, rules)
        findings.extend(detect_antipatterns(fingerprint, config, enabled=rules.anti_patterns or None))

    recommendations = prioritize(findings)
    logger.info("  %d finding(s), %d recommendation(s)", len(findings), len(recommendations))

    return AnalysisResult(
        fingerprint=summarize_fingerprint(fingerprint),
        classification=classification,
        findings=findings,
        recommendations=recommendations,
        catalog_version=rules.version,
    )
