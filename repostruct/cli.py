"""CLI interface for repostruct.

Provides commands for analyzing a repository's layout, classifying it,
validating rule catalogs and suggesting .gitignore content.

Exit status: 0 when the analysis completes (findings are not failures),
1 when the repository root cannot be read, 2 on configuration or catalog
errors.
"""

import json
import sys
from typing import NoReturn

import click
from dotenv import load_dotenv

# Load .env before importing other repostruct modules
# This ensures env vars are set before module-level code reads them
load_dotenv()

from repostruct import __version__  # noqa: E402
from repostruct.config import AnalysisConfig  # noqa: E402
from repostruct.errors import (  # noqa: E402
    AnalysisError,
    CatalogIntegrityError,
    ConfigurationError,
    RepositoryIOError,
)
from repostruct.logging import set_verbosity  # noqa: E402
from repostruct.models.structure import TIER_ORDER, AnalysisResult  # noqa: E402

EXIT_IO_ERROR = 1
EXIT_CONFIG_ERROR = 2

_TIER_LABELS = {"critical": "CRITICAL", "important": "IMPORTANT", "enhancement": "ENHANCEMENT"}


def _fail(error: AnalysisError) -> NoReturn:
    click.echo(f"Error [{error.stage}]: {error}", err=True)
    if isinstance(error, RepositoryIOError):
        sys.exit(EXIT_IO_ERROR)
    sys.exit(EXIT_CONFIG_ERROR)


def _build_config(**overrides: object) -> AnalysisConfig:
    try:
        return AnalysisConfig.from_env(**overrides)
    except ConfigurationError as e:
        _fail(e)


def render_summary(result: AnalysisResult) -> str:
    """Plain-text rendering of an analysis result."""
    fp = result.fingerprint
    cls = result.classification
    lines = [
        f"Repository: {fp.root}",
        f"Files: {fp.total_files} enumerated, {fp.recorded_files} recorded, max depth {fp.max_depth}",
    ]
    flags = [name for name in ("partial_read", "sampled", "timed_out") if getattr(fp, name)]
    if flags:
        lines.append(f"Flags: {', '.join(flags)}")

    label = f"{cls.label} ({cls.confidence:.2f})"
    if cls.band:
        label += f" via {cls.band} rules"
    lines.append(f"Project type: {label}")
    if cls.ambiguous:
        lines.append(f"  Tied with: {', '.join(cls.alternatives)}")
    if cls.secondary_labels:
        lines.append(f"  Also looks like: {', '.join(cls.secondary_labels)}")

    counts = result.counts_by_tier()
    lines.append("")
    lines.append(
        "Recommendations: "
        + ", ".join(f"{counts[tier]} {tier}" for tier in TIER_ORDER)
    )
    for rec in result.recommendations:
        target = f" -> {rec.action.target}" if rec.action.target else ""
        lines.append(
            f"  [{_TIER_LABELS[rec.tier]}] {rec.action.action} {rec.path}{target}"
            f"  ({', '.join(rec.rationales)})"
        )
    return "\n".join(lines)


@click.group()
@click.version_option(version=__version__, prog_name="repostruct")
@click.option("-v", "--verbose", count=True, help="Show debug logging on stderr")
@click.option("-q", "--quiet", is_flag=True, help="Only log warnings and errors")
def cli(verbose: int, quiet: bool) -> None:
    """repostruct - classify repository layouts and recommend fixes."""
    set_verbosity(verbose, quiet)


@cli.command()
@click.argument("repo_path", type=click.Path())
@click.option("--depth", type=int, default=None, help="Depth limit for the fingerprint (default: 3)")
@click.option("--sample-cap", type=int, default=None, help="Files enumerated before sampling (default: 1000)")
@click.option("--exclude", multiple=True, help="Extra exclusion glob. Can specify multiple.")
@click.option("--catalog", "catalog_path", type=click.Path(dir_okay=False), help="Rule catalog JSON file")
@click.option("--timeout", type=float, default=None, help="Walk time budget in seconds")
@click.option(
    "--min-tier",
    type=click.Choice(list(TIER_ORDER)),
    default="enhancement",
    help="Least severe tier to report (default: enhancement)",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["json", "summary"]),
    default="json",
    help="Output format (default: json)",
)
def analyze(
    repo_path: str,
    depth: int | None,
    sample_cap: int | None,
    exclude: tuple[str, ...],
    catalog_path: str | None,
    timeout: float | None,
    min_tier: str,
    output_format: str,
) -> None:
    """Analyze a repository and output prioritized recommendations.

    REPO_PATH: Path to the repository to analyze.
    """
    from repostruct.analyzers import analyze_repository, filter_by_tier

    config = _build_config(
        depth_limit=depth,
        sample_cap=sample_cap,
        exclude=exclude or None,
        catalog_path=catalog_path,
        timeout_seconds=timeout,
    )

    try:
        result = analyze_repository(repo_path, config)
    except AnalysisError as e:
        _fail(e)

    result = result.model_copy(
        update={"recommendations": filter_by_tier(result.recommendations, min_tier)}
    )

    if output_format == "summary":
        click.echo(render_summary(result))
    else:
        click.echo(result.model_dump_json(indent=2))


@cli.command()
@click.argument("repo_path", type=click.Path())
@click.option("--catalog", "catalog_path", type=click.Path(dir_okay=False), help="Rule catalog JSON file")
def classify(repo_path: str, catalog_path: str | None) -> None:
    """Classify a repository without producing recommendations.

    REPO_PATH: Path to the repository to classify.
    """
    from repostruct.analyzers import build_fingerprint
    from repostruct.analyzers import classify as classify_fingerprint
    from repostruct.analyzers.pipeline import resolve_catalog

    config = _build_config(catalog_path=catalog_path)
    try:
        rules = resolve_catalog(config)
        fingerprint = build_fingerprint(repo_path, config)
    except AnalysisError as e:
        _fail(e)

    click.echo(classify_fingerprint(fingerprint, rules).model_dump_json(indent=2))


@cli.command()
@click.option("--catalog", "catalog_path", type=click.Path(dir_okay=False), help="Rule catalog JSON file")
def catalog(catalog_path: str | None) -> None:
    """Validate a rule catalog and print its contents.

    Uses the bundled catalog (or REPOSTRUCT_CATALOG) when --catalog is omitted.
    """
    from repostruct.analyzers import catalog_summary
    from repostruct.analyzers.pipeline import resolve_catalog

    config = _build_config(catalog_path=catalog_path)
    try:
        rules = resolve_catalog(config)
    except CatalogIntegrityError as e:
        _fail(e)

    click.echo(json.dumps(catalog_summary(rules), indent=2))


@cli.command()
@click.argument("repo_path", type=click.Path())
@click.option("--catalog", "catalog_path", type=click.Path(dir_okay=False), help="Rule catalog JSON file")
def gitignore(repo_path: str, catalog_path: str | None) -> None:
    """Print suggested .gitignore content for a repository.

    REPO_PATH: Path to the repository. Nothing is written to it.
    """
    from repostruct.analyzers import build_fingerprint, classify, generate_gitignore_content
    from repostruct.analyzers.pipeline import resolve_catalog

    config = _build_config(catalog_path=catalog_path)
    try:
        rules = resolve_catalog(config)
        fingerprint = build_fingerprint(repo_path, config)
    except AnalysisError as e:
        _fail(e)

    click.echo(generate_gitignore_content(classify(fingerprint, rules), rules), nl=False)


def main() -> None:
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
