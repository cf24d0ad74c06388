"""Main CLI entry point for catalog-service management commands."""

import click

from catalog_service import __version__
from catalog_service.cli.commands import cache, db, server
from catalog_service.infra.logging.config import setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="catalog-service")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Catalog Service CLI - management commands for the products API.

    \b
    Command Groups:
      db         Schema creation and product seeding
      cache      Products cache version and invalidation
      server     Run the API server

    \b
    Quick Start:
      catalog-service db seed --count 100000
      catalog-service cache invalidate
      catalog-service server --reload
    """
    ctx.ensure_object(dict)


cli.add_command(db.db)
cli.add_command(cache.cache)
cli.add_command(server.server)


def main() -> None:
    """Entry point for CLI."""
    setup_logging()
    cli(obj={})


if __name__ == "__main__":
    main()
