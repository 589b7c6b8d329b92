"""Analyzers for repository structure."""

from repostruct.analyzers.antipatterns import detect_antipatterns
from repostruct.analyzers.catalog import (
    catalog_summary,
    get_catalog,
    load_catalog,
    parse_catalog,
    reset_catalog,
    validate_catalog,
)
from repostruct.analyzers.classifier import classify
from repostruct.analyzers.comparator import compare_structure
from repostruct.analyzers.fingerprint import build_fingerprint
from repostruct.analyzers.ignore import (
    DEFAULT_IGNORES,
    generate_gitignore_content,
    is_gitignored,
    suggest_ignore_patterns,
)
from repostruct.analyzers.pipeline import analyze_repository
from repostruct.analyzers.prioritizer import filter_by_tier, prioritize

__all__ = [
    # Pipeline
    "analyze_repository",
    # Stages
    "build_fingerprint",
    "classify",
    "compare_structure",
    "detect_antipatterns",
    "prioritize",
    "filter_by_tier",
    # Catalog
    "catalog_summary",
    "get_catalog",
    "load_catalog",
    "parse_catalog",
    "reset_catalog",
    "validate_catalog",
    # Ignore handling
    "DEFAULT_IGNORES",
    "generate_gitignore_content",
    "is_gitignored",
    "suggest_ignore_patterns",
]
