"""
cloudaudit CLI Interface
Command-line interface for running checks against a collected cache
"""

import json
import logging
import sys
from typing import Dict, Tuple

import click
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from . import __version__
from .core.cache import CacheSnapshot
from .core.engine import ScanEngine, ScanReport
from .core.exceptions import CloudAuditError
from .core.framework import FindingStatus
from .core.output import OutputEngine
from .core.provider import RegionMetadata
from .core.registry import CheckRegistry
from .core.settings import setting_enabled

console = Console()

STATUS_STYLES = {
    FindingStatus.PASSING: "green",
    FindingStatus.WARNING: "yellow",
    FindingStatus.FAILING: "bold red",
    FindingStatus.UNKNOWN: "magenta",
}


def _parse_settings(pairs: Tuple[str, ...]) -> Dict[str, str]:
    settings = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        if not sep or not name:
            raise click.BadParameter(f"expected key=value, got {pair!r}",
                                     param_hint="--setting")
        settings[name.strip()] = value
    return settings


@click.group()
@click.version_option(version=__version__)
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.pass_context
def cli(ctx, verbose):
    """cloudaudit cloud configuration checks"""
    ctx.ensure_object(dict)

    # Configure logging
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    # Reduce noise from boto3
    logging.getLogger('boto3').setLevel(logging.WARNING)
    logging.getLogger('botocore').setLevel(logging.WARNING)
    logging.getLogger('urllib3').setLevel(logging.WARNING)


@cli.command()
@click.argument('cache_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--checks', '-c', multiple=True, help='Specific checks to run')
@click.option('--category', multiple=True, help='Check categories to run (ec2, s3, ...)')
@click.option('--setting', '-s', 'settings', multiple=True, help='Check setting as key=value')
@click.option('--region', '-r', 'regions', multiple=True,
              help='Restrict every service to these regions')
@click.option('--govcloud', is_flag=True, help='Cache was collected from AWS GovCloud')
@click.option('--china', is_flag=True, help='Cache was collected from AWS China')
@click.option('--output', '-o', type=click.Path(), help='Output file path')
@click.option('--parallel/--no-parallel', default=True, help='Enable parallel execution')
@click.option('--max-workers', type=int, default=5, help='Maximum checks run at once')
@click.option('--quiet', '-q', is_flag=True, help='Quiet mode - JSON output only')
@click.option('--pretty', is_flag=True, help='Pretty print JSON output')
def scan(cache_file, checks, category, settings, regions, govcloud, china,
         output, parallel, max_workers, quiet, pretty):
    """Run checks against a collected CACHE_FILE"""

    scan_settings = _parse_settings(settings)
    if govcloud:
        scan_settings['govcloud'] = 'true'
    if china:
        scan_settings['china'] = 'true'

    try:
        cache = CacheSnapshot.from_json_file(cache_file)
        region_metadata = RegionMetadata.from_settings(
            scan_settings, restrict_to=list(regions) or None)

        engine = ScanEngine(CheckRegistry(), regions=region_metadata,
                            max_workers=max_workers)

        def run():
            return engine.run_scan(cache, scan_settings,
                                   check_ids=list(checks) or None,
                                   categories=list(category) or None,
                                   parallel=parallel)

        if not quiet:
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                console=console,
            ) as progress:
                task = progress.add_task("Evaluating cached resources...", total=None)
                report = run()
                progress.update(task, description="Scan completed!")
        else:
            report = run()
    except CloudAuditError as e:
        if not quiet:
            console.print(f"[red]Scan failed: {e}[/red]")
        else:
            click.echo(json.dumps({"error": True, "message": str(e)}))
        sys.exit(2)

    account_id = _account_id(cache, region_metadata)
    result = OutputEngine.format_json(report, account_id, {
        "cache_file": cache_file,
        "partition": region_metadata.partition,
        "govcloud": setting_enabled(scan_settings, 'govcloud'),
    })

    if output:
        OutputEngine.save_report(result, output, pretty=pretty)
        if not quiet:
            console.print(f"[green]Results written to {output}[/green]")
    elif quiet:
        click.echo(json.dumps(result, indent=2 if pretty else None, default=str))

    if not quiet:
        _display_summary(report)

    # Exit with error code if there are failing findings
    if any(f.status == FindingStatus.FAILING for f in report.findings):
        sys.exit(1)


def _account_id(cache: CacheSnapshot, regions: RegionMetadata):
    entry = cache.get('sts', 'getCallerIdentity', regions.default_region)
    return entry.data if entry is not None and not entry.error else None


def _display_summary(report: ScanReport):
    """Display scan summary in rich format"""
    findings = report.findings

    table = Table(title="Scan Summary", show_header=True, header_style="bold magenta")
    table.add_column("Status", style="cyan", width=10)
    table.add_column("Count", style="green", width=8)

    for status in FindingStatus:
        count = sum(1 for f in findings if f.status == status)
        table.add_row(f"[{STATUS_STYLES[status]}]{status.label}[/]", str(count))

    console.print(table)

    if findings:
        details = Table(title="Findings", show_header=True, header_style="bold blue")
        details.add_column("Check", style="cyan", overflow="fold")
        details.add_column("Status")
        details.add_column("Region", style="dim")
        details.add_column("Resource", overflow="fold")
        details.add_column("Message", overflow="fold")

        for finding in findings:
            details.add_row(finding.check_id,
                            f"[{STATUS_STYLES[finding.status]}]{finding.status.label}[/]",
                            finding.region or "", finding.resource_id or "",
                            finding.message)
        console.print(details)

    for check_id, error in report.errors.items():
        console.print(f"[red]{check_id}: {error}[/red]")


@cli.command()
def list_checks():
    """List all available checks"""
    registry = CheckRegistry()

    console.print("[bold blue]Available Checks[/bold blue]\n")

    by_category: Dict[str, list] = {}
    for check in registry.get_all_checks():
        by_category.setdefault(check.category, []).append(check)

    for category, category_checks in sorted(by_category.items()):
        console.print(f"[bold green]{category}:[/bold green]")
        for check in category_checks:
            console.print(f"  • {check.check_id} - {check.check_title}")
            for option in check.options:
                console.print(f"      [dim]{option.name} (default: {option.default!r})[/dim]")
        console.print()


def main():
    """Main CLI entry point"""
    try:
        cli()
    except KeyboardInterrupt:
        console.print("\n[yellow]Scan interrupted by user[/yellow]")
        sys.exit(1)


if __name__ == "__main__":
    main()
