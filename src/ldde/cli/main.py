"""ldde CLI main entry point with global options."""

import logging
import os

import click

from .. import __version__
from ..home import env_flag
from ..log import configure_logging
from ..process_utils import safe_env
from .context import LddeContext

logger = logging.getLogger(__name__)


@click.group()
@click.version_option(__version__, prog_name="ldde")
@click.option(
    "--root",
    type=click.Path(file_okay=False),
    help="Workspace root (overrides $LDDE_ROOT; default: current directory)",
)
@click.option("--debug", is_flag=True, help="Enable debug logging (same as DEBUG=1)")
@click.pass_context
def cli(ctx, root, debug):
    """LDDE - declarative provisioning pipelines for developer machines."""
    ctx.ensure_object(LddeContext)

    # Snapshot the environment once; everything below receives it explicitly
    environ = dict(os.environ)
    ctx.obj.root_option = root
    ctx.obj.environ = environ
    ctx.obj.env = safe_env(environ)
    ctx.obj.debug = debug or env_flag(environ, "DEBUG")
    configure_logging(ctx.obj.debug)


# Register commands at module level so tests can import cli with commands attached
from .commands.install import install
from .commands.plan import plan
from .commands.tools import tools

cli.add_command(install)
cli.add_command(plan)
cli.add_command(tools)


def main():
    """Entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
