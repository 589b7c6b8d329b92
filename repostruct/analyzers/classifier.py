"""Project-type classification by priority cascade.

Rules are evaluated in three bands, highest priority first:

    1. framework - framework config files or framework dependency keys
    2. language  - manifest presence
    3. purpose   - directory naming heuristics (cli, service, library, docs)

The first band with any match wins outright, regardless of how many rules
match in lower bands. Within the winning band, matching rules are grouped by
label and their weights summed (capped at 1.0); the label with the highest
score wins. Ties go to the label whose first matching rule is declared
earliest in the catalog, and are reported as ambiguous. The reported
confidence is floored at the best score of any lower band that also matched,
so adding higher-priority evidence never lowers it.
"""

from fnmatch import fnmatchcase

from repostruct.models.structure import (
    BAND_ORDER,
    UNCLASSIFIED,
    Band,
    Classification,
    DependencySignal,
    Fingerprint,
    MarkerFileSignal,
    PathPatternSignal,
    Rule,
    RuleCatalog,
)


def rule_matches(rule: Rule, fingerprint: Fingerprint) -> bool:
    """Evaluate a single rule's signal against the fingerprint."""
    signal = rule.signal

    if isinstance(signal, MarkerFileSignal):
        target = signal.path.rstrip("/")
        return target in fingerprint.files or f"{target}/" in fingerprint.directories

    if isinstance(signal, DependencySignal):
        key = signal.key.lower()
        for manifest_path, keys in fingerprint.manifests.items():
            name = manifest_path.rsplit("/", 1)[-1]
            if signal.manifest is not None and name != signal.manifest:
                continue
            if key in keys:
                return True
        return False

    if isinstance(signal, PathPatternSignal):
        return any(fnmatchcase(path, signal.pattern) for path in fingerprint.all_paths())

    return False


def _score_band(matched: list[Rule]) -> list[tuple[str, float, list[Rule]]]:
    """Group matched rules by label in declaration order.

    Returns:
        (label, capped score, contributing rules) per label, in order of each
        label's first matching rule.
    """
    grouped: dict[str, list[Rule]] = {}
    for rule in matched:
        grouped.setdefault(rule.label, []).append(rule)
    return [
        (label, min(1.0, round(sum(r.weight for r in rules), 6)), rules)
        for label, rules in grouped.items()
    ]


def _band_winner(
    scored: list[tuple[str, float, list[Rule]]],
) -> tuple[tuple[str, float, list[Rule]], list[str]]:
    """Pick the highest score; earlier declaration wins ties.

    Returns:
        The winning entry and the labels that tied with it.
    """
    best = scored[0]
    for entry in scored[1:]:
        if entry[1] > best[1]:
            best = entry
    tied = [label for label, score, _ in scored if score == best[1] and label != best[0]]
    return best, tied


def _pick_template(
    catalog: RuleCatalog,
    label: str,
    rules: list[Rule],
    secondary_labels: list[str],
) -> str | None:
    for rule in rules:
        if rule.template is not None:
            return rule.template
    if label in catalog.templates:
        return label
    for secondary in secondary_labels:
        if secondary in catalog.templates:
            return secondary
    return None


def classify(fingerprint: Fingerprint, catalog: RuleCatalog) -> Classification:
    """Classify a repository from its fingerprint.

    Args:
        fingerprint: Structural snapshot of the repository.
        catalog: Validated rule catalog.

    Returns:
        Classification with label, confidence and contributing rule ids.
        Zero matches yields the "unclassified" label with confidence 0.
    """
    band_results: dict[Band, list[tuple[str, float, list[Rule]]]] = {}
    for band in BAND_ORDER:
        matched = [rule for rule in catalog.rules(band) if rule_matches(rule, fingerprint)]
        if matched:
            band_results[band] = _score_band(matched)

    if not band_results:
        return Classification(label=UNCLASSIFIED, confidence=0.0)

    winning_band = next(band for band in BAND_ORDER if band in band_results)
    (label, score, rules), tied = _band_winner(band_results[winning_band])

    secondary_labels: list[str] = []
    confidence = score
    for band in BAND_ORDER[BAND_ORDER.index(winning_band) + 1 :]:
        if band not in band_results:
            continue
        (lower_label, lower_score, _), _ = _band_winner(band_results[band])
        # confidence never drops below a lower band's best score
        confidence = max(confidence, lower_score)
        if lower_label != label and lower_label not in secondary_labels:
            secondary_labels.append(lower_label)

    return Classification(
        label=label,
        confidence=round(min(1.0, confidence), 4),
        band=winning_band,
        contributing_rules=tuple(rule.id for rule in rules),
        template=_pick_template(catalog, label, rules, secondary_labels),
        ambiguous=bool(tied),
        alternatives=tuple(tied),
        secondary_labels=tuple(secondary_labels),
    )
