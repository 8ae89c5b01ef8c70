"""Command-line interface for the CAMcogni telemetry simulator."""

import asyncio
import json
import logging
import sys
from pathlib import Path

import click
from dotenv import load_dotenv

from . import __version__
from .config import Config
from .dashboard import DashboardSession, DashboardTab
from .errors import ConfigError, GenerationError
from .generators import TelemetryGenerator
from .historic import HistoricAggregator, HistoricRange
from .navigation import Navigator, View
from .randomness import SeededRandomSource
from .reports import AnalysisClient, ReportsViewer, ReportState, ReportWorkflow

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


def _echo_json(data) -> None:
    click.echo(json.dumps(data, indent=2))


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(path_type=Path),
    default=Path("config/config.yaml"),
    help="Configuration file (defaults apply if missing)",
)
@click.pass_context
def main(ctx, config_path):
    """CAMcogni Simulator - synthetic facility telemetry for the dashboard.

    Generates a session snapshot of worker counts, equipment utilization,
    zone activity and predictive insights, and drives the save-report
    workflow against the remote analysis service.

    Dashboard tabs:
      blueprint, analytics, equipment, predictions
    """
    env_path = Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(env_path)
        logger.info(f"Loaded environment from: {env_path}")
    try:
        ctx.obj = Config.from_env(Config.from_yaml(config_path))
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@main.command()
@click.option("--seed", "-s", type=int, default=None, help="Random seed for the session")
@click.option(
    "--tab",
    "-t",
    type=click.Choice([t.value for t in DashboardTab]),
    default=DashboardTab.BLUEPRINT.value,
    help="Dashboard tab to show",
)
@click.option("--zone", "-z", default=None, help='Zone to select, e.g. "Zone B"')
@click.pass_obj
def snapshot(config, seed, tab, zone):
    """Start a dashboard session and print the selected tab as JSON."""
    if seed is None:
        seed = config.session.random_seed

    session = DashboardSession(TelemetryGenerator(SeededRandomSource(seed)))
    try:
        session.start()
    except GenerationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    session.select_tab(tab)
    if zone:
        try:
            session.select_zone(zone)
        except ValueError as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)

    _echo_json(session.view())


@main.command()
@click.option(
    "--range",
    "-r",
    "range_",
    type=click.Choice([r.value for r in HistoricRange]),
    default=None,
    help="Look-back window (default from config)",
)
@click.option("--seed", "-s", type=int, default=None, help="Random seed")
@click.pass_obj
def historic(config, range_, seed):
    """Print the historic summary series and quick stats."""
    if seed is None:
        seed = config.session.random_seed

    aggregator = HistoricAggregator(
        SeededRandomSource(seed),
        initial_range=range_ or config.historic.default_range,
        days_shown=config.historic.days_shown,
    )
    _echo_json(aggregator.to_dict())


@main.command("save-report")
@click.option("--base-url", "-u", default=None, help="Analysis service base URL")
@click.pass_obj
def save_report(config, base_url):
    """Trigger the remote analysis and wait for the report to settle.

    On success, follows the workflow's navigation to the historic summary.
    """
    if base_url:
        config.api.base_url = base_url

    navigator = Navigator(initial=View.BLUEPRINT)

    async def _run():
        async with AnalysisClient(config.api) as client:
            workflow = ReportWorkflow(
                client,
                navigator=navigator,
                settle_delay_ms=config.session.settle_delay_ms,
                source=SeededRandomSource(config.session.random_seed),
            )
            return workflow, await workflow.save()

    click.echo(f"Saving report via {config.api.base_url} ...")
    workflow, result = asyncio.run(_run())

    if result.state != ReportState.SAVED:
        click.echo(f"Report not saved: {result.error}", err=True)
        sys.exit(1)

    click.echo(f"Report saved (job {result.job_id})")
    workflow.view_historic_summary()
    click.echo(f"Navigated to: {navigator.current.value}")

    aggregator = HistoricAggregator(
        SeededRandomSource(config.session.random_seed),
        initial_range=config.historic.default_range,
        days_shown=config.historic.days_shown,
    )
    _echo_json(aggregator.to_dict())


@main.command()
@click.option("--base-url", "-u", default=None, help="Analysis service base URL")
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path),
    default=Path("ai_reports.html"),
    help="Where to write the reports document",
)
@click.pass_obj
def reports(config, base_url, output):
    """Fetch the AI-generated reports and write them as an HTML document."""
    if base_url:
        config.api.base_url = base_url

    failed = []

    def open_document(document: str) -> None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(document)
        click.echo(f"Created: {output}")

    def alert(message: str) -> None:
        failed.append(message)
        click.echo(message, err=True)

    async def _run():
        async with AnalysisClient(config.api) as client:
            await ReportsViewer(client, open_document, alert).show()

    asyncio.run(_run())
    if failed:
        sys.exit(1)


@main.command()
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path),
    default=Path("config"),
    help="Output directory for config files",
)
def init(output):
    """Generate a sample configuration file.

    Creates config.yaml with default settings for the analysis service,
    the dashboard session and the historic summary.
    """
    output.mkdir(parents=True, exist_ok=True)

    cfg = Config.default()
    config_path = output / "config.yaml"
    cfg.to_yaml(config_path)

    click.echo(f"Created: {config_path}")
    click.echo()
    click.echo("Edit the config file to customize:")
    click.echo("  - Analysis service URL and timeout")
    click.echo("  - Session seed and settle delay")
    click.echo("  - Historic summary range")
    click.echo()
    click.echo(f"Run with: camcogni-sim --config {config_path} snapshot")


if __name__ == "__main__":
    main()
