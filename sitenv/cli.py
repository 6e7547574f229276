"""
Command-line interface for sitenv
"""

import json
import sys
from typing import Optional

import click

from sitenv.bootstrap import create_resolver
from sitenv.config import settings
from sitenv.dotenv_loader import load_environment
from sitenv.errors import UnresolvableDatabaseName, UnsafeDefaultSiteRefusal
from sitenv.logging_utils import get_logger
from sitenv.models import build_site_config


logger = get_logger("cli")

EXIT_UNRESOLVABLE = 1
EXIT_REFUSED = 2


@click.group()
@click.option(
    '--app',
    'app_name',
    default=None,
    help='App machine name (default: SITENV_APP_NAME)'
)
@click.option(
    '--site',
    '-l',
    'site_name',
    default=None,
    help='Site machine name (default: SITENV_SITE_NAME)'
)
@click.option(
    '--allow-default-site',
    is_flag=True,
    help='Allow the "default" site as a database name in multi-site installs'
)
@click.option(
    '--project-path',
    type=click.Path(exists=True, file_okay=False),
    default=None,
    help='Directory holding the env files (default: SITENV_PROJECT_PATH)'
)
@click.pass_context
def cli(ctx, app_name: Optional[str], site_name: Optional[str], allow_default_site: bool,
        project_path: Optional[str]):
    """Resolve multi-site configuration from environment variables."""
    ctx.ensure_object(dict)

    environ = load_environment(project_path if project_path is not None else settings.PROJECT_PATH)
    ctx.obj['resolver'] = create_resolver(
        environ,
        app_name=app_name,
        site_name=site_name,
        allow_default_site=allow_default_site or None,
    )


def _fail(exc: Exception, code: int):
    click.echo(f"Error: {exc}", err=True)
    sys.exit(code)


@cli.command()
@click.pass_context
def config(ctx):
    """Print the resolved site configuration as JSON."""
    try:
        site_config = build_site_config(ctx.obj['resolver'])
    except UnsafeDefaultSiteRefusal as e:
        _fail(e, EXIT_REFUSED)
    except UnresolvableDatabaseName as e:
        logger.error("Database name could not be computed", extra={"candidate": e.candidate})
        _fail(e, EXIT_UNRESOLVABLE)
    else:
        click.echo(site_config.model_dump_json(indent=2))


@cli.command('database-name')
@click.pass_context
def database_name(ctx):
    """Print the database name for the selected site."""
    try:
        name = ctx.obj['resolver'].get_database_name()
    except UnsafeDefaultSiteRefusal as e:
        _fail(e, EXIT_REFUSED)
    except UnresolvableDatabaseName as e:
        _fail(e, EXIT_UNRESOLVABLE)
    else:
        click.echo(name)


@cli.command()
@click.pass_context
def sites(ctx):
    """Print the site matrix as JSON."""
    resolver = ctx.obj['resolver']
    click.echo(json.dumps({
        "multi_site": resolver.is_multi_site(),
        "domains": resolver.get_domains(),
        "sites": resolver.get_sites(),
    }, indent=2))


@cli.command()
@click.option(
    '--host',
    default='0.0.0.0',
    help='Host to bind to (default: 0.0.0.0)'
)
@click.option(
    '--port',
    default=8000,
    type=int,
    help='Port to bind to (default: 8000)'
)
def serve(host: str, port: int):
    """Start the configuration API server."""
    import uvicorn

    uvicorn.run("sitenv.main:app", host=host, port=port, log_config=None)


if __name__ == '__main__':
    cli()
