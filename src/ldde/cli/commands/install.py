"""Install command - run every (or selected) element."""

import logging
import sys

import click

from ...exceptions import DependencyError, LddeError
from ...home import resolve_run_settings, resolve_workspace
from ...loader import load_elements, select_elements
from ...log import success
from ...orchestrator import Orchestrator
from ..context import pass_context

logger = logging.getLogger("ldde.cli")


@click.command()
@click.option(
    "--element",
    "-e",
    "element_names",
    multiple=True,
    help="Run only the specified element(s). Can be passed multiple times.",
)
@click.option(
    "--concurrency",
    type=int,
    default=None,
    help="Parallel independent elements (overrides $LDDE_CONCURRENCY; default 4)",
)
@click.option(
    "--keep-going",
    is_flag=True,
    help="Keep running elements whose dependencies succeeded after a failure",
)
@pass_context
def install(ctx, element_names, concurrency, keep_going):
    """Install all the elements found under the workspace root.

    Examples:
        ldde install                     # Everything
        ldde install -e neovim -e tmux   # Selected elements and their dependencies
        ldde --root ~/dotfiles install --keep-going
    """
    try:
        settings = resolve_run_settings(
            ctx.environ, concurrency, keep_going, ctx.debug
        )
        workspace = resolve_workspace(ctx.root_option, ctx.environ)
        logger.debug("Storage directory resolved: %s", workspace.storage_directory)

        registry = ctx.registry_factory()
        logger.debug("Loaded %d tools: %s", len(registry), ", ".join(registry.names()))

        elements = load_elements(workspace.element_files, registry)
        total = len(elements)
        if element_names:
            elements, extra = select_elements(elements, element_names)
            logger.info(
                "Element filter applied: %s%s",
                ", ".join(element_names),
                f" (including dependencies: {', '.join(extra)})" if extra else "",
            )

        logger.info(
            "Installing %d element(s)%s...",
            len(elements),
            f" (filtered from {total})" if element_names else "",
        )

        Orchestrator(
            elements,
            registry,
            storage_directory=workspace.storage_directory,
            env=ctx.env,
            concurrency=settings.concurrency,
            keep_going=settings.keep_going,
        ).run()
    except DependencyError as e:
        logger.error("Dependency resolution failed: %s", e)
        sys.exit(1)
    except LddeError as e:
        logger.error("%s", e)
        sys.exit(1)

    success(logger, "All elements processed successfully")
