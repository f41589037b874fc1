"""
Command line interface for product taxonomy matching.

Matches single products or whole import files against a taxonomy export and
shows the active configuration.
"""
import json
import sys
from pathlib import Path
from typing import Optional

import click
import structlog
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from product_matching import __version__
from product_matching.config.logging import configure_logging
from product_matching.config.settings import (
    ApplicationSettings,
    get_environment_info,
    get_settings,
    validate_settings,
)
from product_matching.core.exceptions import (
    ImportRecordError,
    MatchingPipelineError,
    TaxonomyLoadError,
)
from product_matching.models.domain import (
    EXPOSURE_FIELDS,
    ImportedProductRecord,
    ProductRole,
)
from product_matching.pipeline.import_pipeline import ImportPipeline
from product_matching.pipeline.smart_matcher import SmartProductMatcher
from product_matching.repositories.taxonomy_repository import load_rows_from_file
from product_matching.services.taxonomy_service import TaxonomyService
from product_matching.taxonomy.index import TaxonomyIndex

console = Console()
logger = structlog.get_logger(__name__)

EXPOSURE_LABELS = {
    "exposure_stocks": "Stocks",
    "exposure_bonds": "Bonds",
    "exposure_foreign_currency": "Foreign currency",
    "exposure_foreign_investments": "Foreign investments",
    "exposure_israel": "Israel",
    "exposure_illiquid_assets": "Illiquid assets",
}


def _load_index(taxonomy_path: Optional[Path], settings: ApplicationSettings) -> TaxonomyIndex:
    """Index from --taxonomy, else from the configured taxonomy source"""
    if taxonomy_path is not None:
        return TaxonomyIndex.build(load_rows_from_file(taxonomy_path))

    if not settings.taxonomy.is_configured():
        raise click.UsageError(
            "No taxonomy source: pass --taxonomy or set TAXONOMY_SOURCE_FILE / TAXONOMY_DATABASE_URL"
        )

    service = TaxonomyService.from_settings(settings)
    if not service.reload():
        raise TaxonomyLoadError(
            "Configured taxonomy source could not be loaded",
            source_path=str(settings.taxonomy.source_file or ""),
        )
    return service.index


def _read_records(file_path: Path) -> list[ImportedProductRecord]:
    """Read imported product rows from a JSON list"""
    try:
        with open(file_path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise ImportRecordError(
            f"Cannot read import file: {e}", file_path=str(file_path), original_exception=e
        ) from e

    if not isinstance(data, list):
        raise ImportRecordError("Import file must contain a JSON list", file_path=str(file_path))

    records = []
    for position, item in enumerate(data):
        try:
            records.append(ImportedProductRecord.model_validate(item))
        except ValidationError as e:
            raise ImportRecordError(
                "Invalid import record",
                file_path=str(file_path),
                record_index=position,
                original_exception=e,
            ) from e
    return records


def _format_percent(value) -> str:
    return "-" if value is None else f"{value:g}%"


@click.group()
@click.version_option(version=__version__, prog_name="Product Matching")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx, verbose):
    """
    Product Taxonomy Matching CLI

    Resolves free-text product descriptions to canonical taxonomy entries
    and their asset exposures.
    """
    settings = get_settings()
    configure_logging(
        log_level="DEBUG" if verbose else settings.monitoring.log_level,
        log_format=settings.monitoring.log_format,
    )

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["settings"] = settings


@cli.command()
@click.pass_context
def info(ctx):
    """Show application information and configuration"""
    info_data = get_environment_info()

    table = Table(title="Configuration")
    table.add_column("Setting", style="cyan", no_wrap=True)
    table.add_column("Value", style="green")

    table.add_row("Application", f"{info_data['app_name']} v{info_data['app_version']}")
    table.add_row("Environment", info_data["environment"])
    table.add_row("Match threshold", str(info_data["match_threshold"]))
    table.add_row("Default sub-category", info_data["default_sub_category"])
    table.add_row(
        "Taxonomy database",
        "✓ Configured" if info_data["taxonomy_database_configured"] else "✗ Not configured",
    )
    table.add_row("Taxonomy file", info_data["taxonomy_source_file"] or "-")
    table.add_row("Logging", f"{info_data['log_level']} ({info_data['log_format']})")

    console.print(table)

    if ctx.obj["verbose"]:
        click.echo(json.dumps(info_data, indent=2, ensure_ascii=False))


@cli.command()
def validate():
    """Validate application configuration"""
    try:
        validate_settings()
    except ValueError as e:
        console.print(f"[red]✗ Validation failed: {escape(str(e))}[/red]")
        sys.exit(1)
    console.print("[green]✓ Configuration valid[/green]")


@cli.command()
@click.option(
    "--taxonomy",
    "taxonomy_path",
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Taxonomy export (.json or .csv); defaults to the configured taxonomy source",
)
@click.option("--category", default="", help="Free-text product category")
@click.option("--sub-category", default="", help="Free-text investment track")
@click.option("--company", default="", help="Free-text company name")
@click.option("--product-number", default=None, help="Known product number")
@click.option(
    "--threshold",
    type=click.FloatRange(0.0, 1.0),
    default=None,
    help="Similarity threshold (defaults to MATCHING_MATCH_THRESHOLD)",
)
@click.option("--json", "as_json", is_flag=True, help="Print the match as JSON")
@click.pass_context
def match(ctx, taxonomy_path, category, sub_category, company, product_number, threshold, as_json):
    """Match a single product against the taxonomy"""
    settings = ctx.obj["settings"]

    try:
        index = _load_index(taxonomy_path, settings)
    except MatchingPipelineError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        sys.exit(1)

    matcher = SmartProductMatcher(
        index,
        threshold=threshold if threshold is not None else settings.matching.match_threshold,
        default_sub_category=settings.matching.default_sub_category,
    )
    outcome = matcher.match_product(category, sub_category, company, product_number)

    if as_json:
        payload = outcome.model_dump(mode="json")
        payload["exposure_found"] = outcome.exposure_found
        click.echo(json.dumps(payload, indent=2, ensure_ascii=False))
        return

    result = outcome.result
    table = Table(title=f"Match ({outcome.matched_via.value}, score {outcome.score:.2f})")
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Value", style="green")

    table.add_row("Category", result.category or "-")
    table.add_row("Sub-category", result.sub_category or "-")
    table.add_row("Company", result.company or "-")
    table.add_row("Product number", result.product_number or "-")
    for name in EXPOSURE_FIELDS:
        table.add_row(EXPOSURE_LABELS[name], _format_percent(getattr(result, name)))

    console.print(table)
    if not outcome.exposure_found:
        console.print("[yellow]No taxonomy row found for exposure data[/yellow]")


@cli.command("import-file")
@click.argument("file_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--taxonomy",
    "taxonomy_path",
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Taxonomy export (.json or .csv); defaults to the configured taxonomy source",
)
@click.option(
    "--role",
    type=click.Choice([role.value for role in ProductRole]),
    default=ProductRole.CURRENT.value,
    help="Mark products as current or recommended",
)
@click.option("--output", "-o", type=click.Path(dir_okay=False, path_type=Path), help="Output JSON file")
@click.pass_context
def import_file(ctx, file_path, taxonomy_path, role, output):
    """Match every product of an import file (JSON list of rows)"""
    settings = ctx.obj["settings"]

    try:
        index = _load_index(taxonomy_path, settings)
        records = _read_records(file_path)
    except MatchingPipelineError as e:
        logger.error("Import failed", **e.to_dict())
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        sys.exit(1)

    matcher = SmartProductMatcher(
        index,
        threshold=settings.matching.match_threshold,
        default_sub_category=settings.matching.default_sub_category,
    )
    result = ImportPipeline(matcher).run(records, role=ProductRole(role))

    table = Table(title=f"Imported products ({len(result.products)})")
    table.add_column("ID", style="dim")
    table.add_column("Category", style="cyan")
    table.add_column("Sub-category", style="cyan")
    table.add_column("Company", style="green")
    table.add_column("Amount", style="yellow", justify="right")
    table.add_column("Via", style="magenta")

    for product, outcome in zip(result.products, result.outcomes):
        table.add_row(
            product.id,
            product.category,
            product.sub_category,
            product.company,
            f"{product.amount:,.2f}",
            outcome.matched_via.value,
        )
    console.print(table)

    kpis = result.kpis
    console.print(
        f"Savings: {kpis.savings_product_count} "
        f"(total {kpis.total_accumulation:,.2f}, "
        f"avg accumulation fee {kpis.avg_accumulation_fee:.2f}%, "
        f"avg deposit fee {kpis.avg_deposit_fee:.2f}%)"
    )
    console.print(
        f"Insurance: {kpis.insurance_policy_count} "
        f"(monthly premium {kpis.total_monthly_premium:,.2f})"
    )
    if result.duplicates_merged:
        console.print(f"[dim]Merged {result.duplicates_merged} duplicate rows[/dim]")

    if output:
        output.write_text(
            json.dumps(
                [product.model_dump(mode="json") for product in result.products],
                indent=2,
                ensure_ascii=False,
            ),
            encoding="utf-8",
        )
        console.print(f"[green]✓ Wrote {len(result.products)} products to {output}[/green]")


def main():
    """Entry point for the product-matching script"""
    cli(obj={})


if __name__ == "__main__":
    main()
