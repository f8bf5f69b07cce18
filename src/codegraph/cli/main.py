"""codegraph CLI - cg command."""

import click

from codegraph import __version__
from codegraph.cli.index import index_command
from codegraph.cli.metrics import metrics_command
from codegraph.cli.query import (
    blast_radius_command,
    callees_command,
    callers_command,
    cycles_command,
    dead_code_command,
    exports_command,
    find_command,
)
from codegraph.cli.status import status_command
from codegraph.core.logging import configure_logging


@click.group()
@click.version_option(version=__version__, prog_name="cg")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """codegraph - code knowledge graph for TypeScript, JavaScript and Ruby."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    configure_logging(level="DEBUG" if verbose else "WARNING")


cli.add_command(index_command, name="index")
cli.add_command(callers_command, name="callers")
cli.add_command(callees_command, name="callees")
cli.add_command(blast_radius_command, name="blast-radius")
cli.add_command(cycles_command, name="cycles")
cli.add_command(dead_code_command, name="dead-code")
cli.add_command(exports_command, name="exports")
cli.add_command(find_command, name="find")
cli.add_command(status_command, name="status")
cli.add_command(metrics_command, name="metrics")


if __name__ == "__main__":
    cli()
