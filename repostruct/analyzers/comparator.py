"""Structure comparison against canonical templates.

Diffs a fingerprint against the canonical template of its classification:
required template entries that are absent become MissingPath findings, and
files sitting in a known anti-location become ExtraOrMisplacedPath findings.
Matching is prefix-based and case-sensitive; there is no fuzzy matching.
License and test entries defer to the concern-level checks: any recognized
root license satisfies the license entry, and tests found elsewhere demote a
missing tests entry from missing_tests to nonstandard_tests_location.
"""

from fnmatch import fnmatchcase

from repostruct.analyzers.antipatterns import has_license, has_test_structure
from repostruct.analyzers.catalog import resolve_entries, template_chain
from repostruct.analyzers.constants import missing_rationale, severity_for
from repostruct.models.structure import (
    AntiLocation,
    Classification,
    Finding,
    Fingerprint,
    RemediationAction,
    RuleCatalog,
    TemplateEntry,
)


def _entry_present(entry: TemplateEntry, fingerprint: Fingerprint) -> bool:
    return any(fingerprint.has_path(candidate) for candidate in (entry.path, *entry.alternatives))


def _anti_locations(catalog: RuleCatalog, template_id: str) -> tuple[AntiLocation, ...]:
    """Anti-locations of the most specific template in the chain that defines any."""
    for template in reversed(template_chain(catalog, template_id)):
        if template.anti_locations:
            return template.anti_locations
    return ()


def _is_misplaced(path: str, location: AntiLocation) -> bool:
    if location.root_only and "/" in path:
        return False
    if not fnmatchcase(path, location.pattern):
        return False
    name = path.rsplit("/", 1)[-1]
    return not any(fnmatchcase(name, ex) or fnmatchcase(path, ex) for ex in location.exclude)


def compare_structure(
    fingerprint: Fingerprint,
    classification: Classification,
    catalog: RuleCatalog,
) -> list[Finding]:
    """Compare a fingerprint with the template for its classification.

    Args:
        fingerprint: Structural snapshot.
        classification: Result of classify().
        catalog: Catalog holding the templates.

    Returns:
        MissingPath and ExtraOrMisplacedPath findings in template order then
        path order. Empty when the classification has zero confidence or no
        template.
    """
    if not classification.is_classified or classification.template is None:
        return []

    template_id = classification.template
    findings: list[Finding] = []

    for entry in resolve_entries(catalog, template_id):
        if entry.optional or _entry_present(entry, fingerprint):
            continue
        rationale = missing_rationale(entry.concern)
        if entry.concern == "license" and has_license(fingerprint):
            continue
        if entry.concern == "tests" and has_test_structure(fingerprint):
            # tests exist, just not where the template expects them
            rationale = "nonstandard_tests_location"
        action = "create_dir" if entry.path.endswith("/") else "create_file"
        findings.append(
            Finding(
                kind="MissingPath",
                path=entry.path,
                related_paths=entry.alternatives,
                severity=severity_for(rationale),
                rationale=rationale,
                source=f"template:{template_id}",
                remediation=RemediationAction(
                    action=action,
                    path=entry.path,
                    template=f"{template_id}:{entry.concern}",
                ),
            )
        )

    locations = _anti_locations(catalog, template_id)
    for path in fingerprint.files:
        for location in locations:
            if not _is_misplaced(path, location):
                continue
            name = path.rsplit("/", 1)[-1]
            findings.append(
                Finding(
                    kind="ExtraOrMisplacedPath",
                    path=path,
                    severity=severity_for("misplaced_path"),
                    rationale="misplaced_path",
                    source=f"template:{template_id}",
                    remediation=RemediationAction(
                        action="move",
                        path=path,
                        target=f"{location.suggest.rstrip('/')}/{name}",
                    ),
                )
            )
            break

    return findings
