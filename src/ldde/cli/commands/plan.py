"""Plan command - show the execution order without running anything."""

import logging
import sys

import click

from ...exceptions import DependencyError, LddeError
from ...home import find_element_files, resolve_root
from ...loader import load_elements, select_elements
from ...resolver import DependencyResolver
from ..context import pass_context

logger = logging.getLogger("ldde.cli")


@click.command()
@click.option(
    "--element",
    "-e",
    "element_names",
    multiple=True,
    help="Plan only the specified element(s) and their dependencies.",
)
@pass_context
def plan(ctx, element_names):
    """Print the resolved execution order, one element per line.

    Independent elements (no dependencies) run in parallel and are marked.
    """
    try:
        root = resolve_root(ctx.root_option, ctx.environ)
        elements = load_elements(find_element_files(root), ctx.registry_factory())
        if element_names:
            elements, _ = select_elements(elements, element_names)

        resolver = DependencyResolver(elements)
        order = resolver.resolve_execution_order()
        independent = {e.name for e in resolver.get_independent_elements()}
    except DependencyError as e:
        logger.error("Dependency resolution failed: %s", e)
        sys.exit(1)
    except LddeError as e:
        logger.error("%s", e)
        sys.exit(1)

    for i, element in enumerate(order, start=1):
        marker = "  (independent)" if element.name in independent else ""
        deps = f"  <- {', '.join(element.dependencies)}" if element.dependencies else ""
        click.echo(f"{i}. {element.name}{marker}{deps}")
