"""
Command-line interface for lotkeeper.

Provides commands for:
- lots: add, list, delete and import purchase lots
- portfolios: add, list and delete portfolios
- tickers: set ticker metadata
- summary: show per-ticker cost basis
- migrate: run the legacy membership migration
"""

import asyncio
import sys
from decimal import Decimal
from pathlib import Path
from typing import Awaitable, Callable, Optional, TypeVar

import click

from lotkeeper import __version__
from lotkeeper.config import ConfigurationError, Settings, load_settings
from lotkeeper.data.collections.base import CollectionError
from lotkeeper.data.loaders import DataLoadError, load_lots_csv, save_summaries_csv
from lotkeeper.errors import LotkeeperError
from lotkeeper.logging.audit_log import configure_logging
from lotkeeper.models import LotFields
from lotkeeper.service import PortfolioDataService, open_service

T = TypeVar("T")


def _run(
    settings: Settings,
    action: Callable[[PortfolioDataService], Awaitable[T]],
    migrate: bool = True,
) -> T:
    """Open the service, run one action against it, and always unsubscribe."""

    async def runner() -> T:
        service = open_service(settings)
        try:
            await service.start(migrate=migrate)
            return await action(service)
        finally:
            service.stop()

    try:
        return asyncio.run(runner())
    except (LotkeeperError, CollectionError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def _money(value: Decimal) -> str:
    return f"${value:,.2f}"


@click.group()
@click.version_option(version=__version__, prog_name="lotkeeper")
@click.option(
    "--config", "-c",
    type=click.Path(exists=True),
    default=None,
    help="Path to settings YAML file",
)
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Directory holding the data files. Overrides the config file.",
)
@click.pass_context
def main(ctx: click.Context, config: Optional[str], data_dir: Optional[str]):
    """
    Track purchase lots per ticker across portfolios.
    """
    try:
        settings = load_settings(config)
    except ConfigurationError as e:
        click.echo(f"Error loading config: {e}", err=True)
        sys.exit(1)

    if data_dir:
        settings.data_dir = Path(data_dir)
        settings.audit_log = settings.data_dir / "audit_log.jsonl"

    configure_logging(settings.log_level)
    ctx.obj = settings


@main.group()
def lots():
    """Manage purchase lots."""
    pass


@lots.command("add")
@click.option("--ticker", "-t", required=True, help="Ticker symbol")
@click.option("--shares", "-s", required=True, type=str, help="Number of shares")
@click.option("--cost", "-p", required=True, type=str, help="Cost per share")
@click.option("--date", "-d", "purchase_date", required=True, help="Purchase date (YYYY-MM-DD)")
@click.option(
    "--portfolio", "-P", "portfolios",
    multiple=True,
    help="Portfolio name (repeatable). Defaults to the default portfolio.",
)
@click.option("--notes", "-n", default="", help="Notes")
@click.option("--id", "lot_id", default=None, help="Update this lot instead of creating one")
@click.pass_obj
def lots_add(
    settings: Settings,
    ticker: str,
    shares: str,
    cost: str,
    purchase_date: str,
    portfolios: tuple[str, ...],
    notes: str,
    lot_id: Optional[str],
):
    """Add a lot, or update an existing one with --id."""
    fields = LotFields(
        instrument_symbol=ticker,
        shares=shares,
        cost_per_share=cost,
        purchase_date=purchase_date,
        portfolios=list(portfolios) or [settings.default_portfolio],
        notes=notes,
    )
    lot = _run(settings, lambda service: service.save_lot(fields, lot_id))
    click.echo(f"Saved lot {lot.id}: {lot.instrument_symbol} {lot.shares} @ "
               f"{_money(lot.cost_per_share)} = {_money(lot.total_cost)}")


@lots.command("list")
@click.option("--ticker", "-t", default=None, help="Only lots for this ticker")
@click.option("--portfolio", "-P", default=None, help="Only lots in this portfolio")
@click.pass_obj
def lots_list(settings: Settings, ticker: Optional[str], portfolio: Optional[str]):
    """List lots, most recent purchase first."""

    async def action(service: PortfolioDataService):
        if ticker:
            items = service.lots.lots_for_symbol(ticker)
        else:
            items = sorted(
                service.lots.items, key=lambda lot: lot.purchase_date, reverse=True
            )
        if portfolio:
            items = [lot for lot in items if portfolio in lot.portfolios]
        return items

    found = _run(settings, action)
    if not found:
        click.echo("No lots found.")
        return

    for lot in found:
        click.echo(
            f"{lot.id}  {lot.purchase_date}  {lot.instrument_symbol:<8} "
            f"{lot.shares:>12} @ {_money(lot.cost_per_share):>12}  "
            f"{_money(lot.total_cost):>14}  [{', '.join(lot.portfolios)}]"
        )


@lots.command("delete")
@click.argument("lot_ids", nargs=-1, required=True)
@click.pass_obj
def lots_delete(settings: Settings, lot_ids: tuple[str, ...]):
    """Delete one or more lots by id."""
    if len(lot_ids) == 1:
        _run(settings, lambda service: service.delete_lot(lot_ids[0]))
        click.echo(f"Deleted lot {lot_ids[0]}")
        return

    report = _run(settings, lambda service: service.delete_lots(list(lot_ids)))
    click.echo(f"Deleted {len(report.succeeded)} lots")


@lots.command("import")
@click.argument("csv_path", type=click.Path(exists=True))
@click.pass_obj
def lots_import(settings: Settings, csv_path: str):
    """Import lots from a CSV file."""
    try:
        rows = load_lots_csv(csv_path, settings.default_portfolio)
    except DataLoadError as e:
        click.echo(f"Error loading lots: {e}", err=True)
        sys.exit(1)

    async def action(service: PortfolioDataService):
        created = []
        for row in rows:
            created.append(await service.save_lot(row))
        return created

    created = _run(settings, action)
    click.echo(f"Imported {len(created)} lots from {csv_path}")


@main.group()
def portfolios():
    """Manage portfolios."""
    pass


@portfolios.command("add")
@click.argument("name")
@click.option("--description", "-D", default="", help="Description")
@click.pass_obj
def portfolios_add(settings: Settings, name: str, description: str):
    """Create a portfolio."""
    portfolio = _run(settings, lambda service: service.create_portfolio(name, description))
    click.echo(f"Created portfolio {portfolio.name!r} ({portfolio.id})")


@portfolios.command("list")
@click.pass_obj
def portfolios_list(settings: Settings):
    """List portfolios with their lot counts."""

    async def action(service: PortfolioDataService):
        return [
            (p, len(service.lots.lots_in_portfolio(p.name)))
            for p in service.portfolios.items
        ]

    for portfolio, lot_count in _run(settings, action):
        line = f"{portfolio.name:<20} {lot_count:>5} lots"
        if portfolio.description:
            line += f"  {portfolio.description}"
        click.echo(line)


@portfolios.command("delete")
@click.argument("name")
@click.pass_obj
def portfolios_delete(settings: Settings, name: str):
    """Delete a portfolio, moving orphaned lots to the default portfolio."""

    async def action(service: PortfolioDataService):
        portfolio = service.portfolios.find_by_name(name)
        if portfolio is None:
            raise LotkeeperError(f"No portfolio named {name!r}")
        return await service.delete_portfolio(portfolio.id, portfolio.name)

    report = _run(settings, action)
    click.echo(f"Deleted portfolio {name!r}; updated {len(report.succeeded)} lots")


@main.group()
def tickers():
    """Manage ticker metadata."""
    pass


@tickers.command("set")
@click.argument("symbol")
@click.option("--company", "-C", default="", help="Company name")
@click.option("--yield", "-y", "base_yield", default="0", help="Base yield (%)")
@click.pass_obj
def tickers_set(settings: Settings, symbol: str, company: str, base_yield: str):
    """Create or update metadata for a ticker."""
    instrument = _run(
        settings, lambda service: service.update_instrument(symbol, company, base_yield)
    )
    click.echo(f"Saved {instrument.symbol}: {instrument.company_name} "
               f"(yield {instrument.base_yield}%)")


@main.command()
@click.option("--portfolio", "-P", default=None, help="Only lots in this portfolio")
@click.option(
    "--output", "-o",
    type=click.Path(),
    default=None,
    help="Write the summary to this CSV file",
)
@click.pass_obj
def summary(settings: Settings, portfolio: Optional[str], output: Optional[str]):
    """Show per-ticker totals, largest cost basis first."""

    async def action(service: PortfolioDataService):
        if portfolio:
            return service.summaries_for_portfolio(portfolio)
        return service.summaries

    summaries = _run(settings, action)

    if output:
        path = save_summaries_csv(summaries, output)
        click.echo(f"Summary saved: {path}")

    if not summaries:
        click.echo("No lots found.")
        return

    click.echo(
        f"{'Ticker':<8} {'Shares':>12} {'Total Cost':>14} {'Avg Cost':>12} "
        f"{'Lots':>5}  Date Range"
    )
    for s in summaries:
        click.echo(
            f"{s.instrument_symbol:<8} {s.total_shares:>12} {_money(s.total_cost):>14} "
            f"{_money(s.average_cost_per_share):>12} {s.lot_count:>5}  "
            f"{s.earliest_purchase} - {s.latest_purchase}"
        )

    grand_total = sum((s.total_cost for s in summaries), Decimal("0"))
    click.echo()
    click.echo(f"Total cost basis: {_money(grand_total)}")


@main.command()
@click.pass_obj
def migrate(settings: Settings):
    """Ensure the default portfolio exists and backfill lot memberships."""

    async def action(service: PortfolioDataService):
        return await service.migrator.run()

    report = _run(settings, action, migrate=False)
    if report.write_count == 0:
        click.echo("Nothing to migrate.")
        return
    if report.default_created:
        click.echo(f"Created portfolio {settings.default_portfolio!r}")
    click.echo(f"Backfilled {len(report.lot_updates.succeeded)} lots")


if __name__ == "__main__":
    main()
