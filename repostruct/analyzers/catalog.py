"""Rule catalog loading and validation.

The catalog is versioned JSON data: ordered rules per priority band,
canonical templates keyed by classification label, and the anti-pattern
predicate identifiers. It is validated once at load time and then shared
read-only by every analysis in the process.

Configuration via environment variables:
    REPOSTRUCT_CATALOG: Path to a catalog JSON file (default: bundled catalog)
"""

import json
import os
from importlib import resources
from pathlib import Path
from threading import Lock
from typing import Any

from pydantic import ValidationError

from repostruct.analyzers.constants import ANTI_PATTERN_IDS
from repostruct.errors import CatalogIntegrityError
from repostruct.logging import logger
from repostruct.models.structure import (
    BAND_ORDER,
    UNCLASSIFIED,
    CanonicalTemplate,
    RuleCatalog,
    TemplateEntry,
)

BUNDLED_CATALOG = "catalog.json"

# Process-wide catalog, loaded at most once
_catalog: RuleCatalog | None = None
_catalog_lock = Lock()


def load_catalog(path: str | Path | None = None) -> RuleCatalog:
    """Load and validate a rule catalog.

    Args:
        path: Catalog JSON file. Uses the bundled catalog when None.

    Returns:
        Validated RuleCatalog.

    Raises:
        CatalogIntegrityError: If the file is unreadable, malformed or
            internally inconsistent.
    """
    source: str
    try:
        if path is None:
            source = f"repostruct/data/{BUNDLED_CATALOG}"
            text = resources.files("repostruct.data").joinpath(BUNDLED_CATALOG).read_text(encoding="utf-8")
        else:
            source = str(path)
            text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise CatalogIntegrityError(f"Cannot read catalog: {e}", path=path) from e

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise CatalogIntegrityError(f"Catalog is not valid JSON: {e}", path=source) from e

    catalog = parse_catalog(data, source=source)
    logger.debug(
        "  Loaded catalog %s (%d labels, %d templates) from %s",
        catalog.version,
        len(catalog.labels()),
        len(catalog.templates),
        source,
    )
    return catalog


def parse_catalog(data: dict[str, Any], source: str = "<memory>") -> RuleCatalog:
    """Validate catalog data already decoded from JSON.

    Raises:
        CatalogIntegrityError: On schema or consistency failures.
    """
    try:
        catalog = RuleCatalog.model_validate(data)
    except ValidationError as e:
        raise CatalogIntegrityError(f"Catalog schema validation failed: {e}", path=source) from e

    problems = validate_catalog(catalog)
    if problems:
        raise CatalogIntegrityError(
            "Catalog is inconsistent: " + "; ".join(problems),
            path=source,
        )
    return catalog


def validate_catalog(catalog: RuleCatalog) -> list[str]:
    """Check the catalog's internal consistency.

    Checks:
    1. Rule ids are unique and each rule sits in the band it declares
    2. Every rule template reference resolves to a declared template
    3. Every template key is a declared classification label
    4. Template extends-chains resolve and contain no cycles
    5. Anti-pattern identifiers are known predicates

    Returns:
        List of problems; empty when the catalog is consistent.
    """
    problems: list[str] = []
    seen_ids: set[str] = set()

    for band_name, rules in catalog.bands.items():
        for rule in rules:
            if rule.id in seen_ids:
                problems.append(f"duplicate rule id '{rule.id}'")
            seen_ids.add(rule.id)
            if rule.band != band_name:
                problems.append(f"rule '{rule.id}' declares band '{rule.band}' but is listed under '{band_name}'")
            if rule.label == UNCLASSIFIED:
                problems.append(f"rule '{rule.id}' uses reserved label '{UNCLASSIFIED}'")
            if rule.template is not None and rule.template not in catalog.templates:
                problems.append(f"rule '{rule.id}' references unknown template '{rule.template}'")

    labels = set(catalog.labels())
    for template_id, template in catalog.templates.items():
        if template_id not in labels:
            problems.append(f"template '{template_id}' is not a declared classification label")
        if template.extends is not None and template.extends not in catalog.templates:
            problems.append(f"template '{template_id}' extends unknown template '{template.extends}'")

    for template_id in catalog.templates:
        if _has_cycle(catalog, template_id):
            problems.append(f"template '{template_id}' has a cyclic extends chain")

    for predicate in catalog.anti_patterns:
        if predicate not in ANTI_PATTERN_IDS:
            problems.append(f"unknown anti-pattern predicate '{predicate}'")

    return problems


def _has_cycle(catalog: RuleCatalog, template_id: str) -> bool:
    visited: set[str] = set()
    current: str | None = template_id
    while current is not None and current in catalog.templates:
        if current in visited:
            return True
        visited.add(current)
        current = catalog.templates[current].extends
    return False


def template_chain(catalog: RuleCatalog, template_id: str) -> list[CanonicalTemplate]:
    """Resolve a template and its ancestors, root ancestor first."""
    chain: list[CanonicalTemplate] = []
    current: str | None = template_id
    visited: set[str] = set()
    while current is not None and current in catalog.templates and current not in visited:
        visited.add(current)
        template = catalog.templates[current]
        chain.append(template)
        current = template.extends
    chain.reverse()
    return chain


def resolve_entries(catalog: RuleCatalog, template_id: str) -> list[TemplateEntry]:
    """Flatten a template's entries including inherited ones.

    Parent entries come first; a child entry with the same path replaces the
    inherited one in place.
    """
    entries: dict[str, TemplateEntry] = {}
    for template in template_chain(catalog, template_id):
        for entry in template.entries:
            entries[entry.path] = entry
    return list(entries.values())


def get_catalog() -> RuleCatalog:
    """Get the process-wide catalog, loading it on first use.

    Honours REPOSTRUCT_CATALOG on first load. Thread-safe.

    Raises:
        CatalogIntegrityError: If the catalog fails validation.
    """
    global _catalog

    if _catalog is not None:
        return _catalog

    with _catalog_lock:
        if _catalog is None:
            override = os.getenv("REPOSTRUCT_CATALOG")
            _catalog = load_catalog(override or None)
            logger.info("  Using rule catalog %s", _catalog.version)
    return _catalog


def reset_catalog() -> None:
    """Reset the cached catalog.

    Useful for testing or when changing configuration at runtime.
    """
    global _catalog
    with _catalog_lock:
        _catalog = None


def catalog_summary(catalog: RuleCatalog) -> dict[str, Any]:
    """Short description of a catalog for CLI output."""
    return {
        "version": catalog.version,
        "labels": catalog.labels(),
        "rules_per_band": {band: len(catalog.rules(band)) for band in BAND_ORDER},
        "templates": sorted(catalog.templates),
        "anti_patterns": list(catalog.anti_patterns),
    }
