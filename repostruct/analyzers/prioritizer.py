"""Recommendation prioritizer.

Collapses findings that share a remediation (same action on the same path)
into one Recommendation and orders the result by severity tier, then path.
Pure: no I/O, no logging, no shared state.
"""

from collections.abc import Iterable

from repostruct.models.structure import TIER_ORDER, Finding, Recommendation


def _severity_key(finding: Finding) -> tuple[int, str]:
    return TIER_ORDER[finding.severity], finding.id


def recommendation_id(action: str, path: str) -> str:
    """Stable identifier derived from the remediation, never from run state."""
    return f"{action}:{path}"


def prioritize(findings: Iterable[Finding]) -> list[Recommendation]:
    """Deduplicate and order findings into recommendations.

    Args:
        findings: Comparator and detector findings, in any order. The same
            finding may appear more than once.

    Returns:
        Recommendations sorted by (tier, path, action). Each keeps the
        set-union of its source findings; the tier is the most severe tier
        among them.
    """
    groups: dict[tuple[str, str], dict[Finding, None]] = {}
    for finding in findings:
        key = (finding.remediation.action, finding.remediation.path)
        # dict keys give set-union semantics while keeping first-seen order
        groups.setdefault(key, {})[finding] = None

    recommendations: list[Recommendation] = []
    for (action, path), members in groups.items():
        ordered = sorted(members, key=_severity_key)
        lead = ordered[0]
        recommendations.append(
            Recommendation(
                id=recommendation_id(action, path),
                tier=lead.severity,
                path=path,
                action=lead.remediation,
                findings=tuple(ordered),
                rationales=tuple(sorted({f.rationale for f in ordered})),
            )
        )

    recommendations.sort(key=lambda r: (TIER_ORDER[r.tier], r.path, r.action.action))
    return recommendations


def filter_by_tier(recommendations: Iterable[Recommendation], min_tier: str) -> list[Recommendation]:
    """Keep recommendations at least as severe as min_tier."""
    threshold = TIER_ORDER[min_tier]
    return [r for r in recommendations if TIER_ORDER[r.tier] <= threshold]
