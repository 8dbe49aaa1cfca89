"""Command line interface for trscrape."""

from __future__ import annotations

import asyncio
import logging

import click
from rich.console import Console
from rich.markup import escape

from trscrape import __version__
from trscrape.cli.render import render_results
from trscrape.config.config import init_config
from trscrape.core.infohash import InfoHash
from trscrape.models import LogLevel
from trscrape.scrape import run
from trscrape.utils.exceptions import InfoHashError, TrscrapeError
from trscrape.utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


class InfoHashParamType(click.ParamType):
    """Click parameter type parsing a 40 digit hex info hash."""

    name = "infohash"

    def convert(self, value, param, ctx):
        """Convert the command line value to an InfoHash."""
        if isinstance(value, InfoHash):
            return value
        try:
            return InfoHash.from_hex(value)
        except InfoHashError as e:
            self.fail(e.message, param, ctx)


INFO_HASH = InfoHashParamType()


def _log_level(trace: bool, verbose: int, configured: LogLevel) -> LogLevel:
    if trace or verbose >= 2:
        return LogLevel.DEBUG
    if verbose == 1:
        return LogLevel.INFO
    return configured


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("tracker")
@click.argument("hashes", nargs=-1, required=True, type=INFO_HASH)
@click.option(
    "--timeout",
    "-t",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Overall timeout in seconds (default: 30)",
)
@click.option("--trace", is_flag=True, help="Emit debug logs of tracker interactions")
@click.option(
    "--verbose",
    "-v",
    count=True,
    help="Increase verbosity (-v: info, -vv: debug)",
)
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False),
    help="Configuration file path",
)
@click.version_option(__version__, prog_name="trscrape")
@click.pass_context
def cli(ctx, tracker, hashes, timeout, trace, verbose, config):
    """Scrape a BitTorrent tracker for seeder, leecher and download counts.

    TRACKER is an http, https or udp announce URL. HASHES are 1 to 50 info
    hashes as 40 hex digits.
    """
    out = Console(highlight=False, soft_wrap=True)
    err = Console(stderr=True, highlight=False)

    try:
        cfg = init_config(config).config
    except TrscrapeError as e:
        err.print(f"[red]Error: {escape(str(e))}[/red]")
        ctx.exit(e.exit_code)

    observability = cfg.observability.model_copy(
        update={"log_level": _log_level(trace, verbose, cfg.observability.log_level)}
    )
    setup_logging(observability)

    try:
        results = asyncio.run(run(tracker, list(hashes), timeout))
    except TrscrapeError as e:
        logger.debug("Scrape failed", exc_info=True)
        err.print(f"[red]Error: {escape(str(e))}[/red]")
        ctx.exit(e.exit_code)

    for line in render_results(results):
        out.print(line, markup=False)


def main():
    """Main CLI entry point."""
    cli()


if __name__ == "__main__":
    main()
