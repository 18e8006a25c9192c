"""Tools command - list built-in tools or show one tool's schema."""

import json
import sys

import click

from ..context import pass_context


@click.command()
@click.argument("name", required=False)
@pass_context
def tools(ctx, name):
    """List registered tools, or print NAME's parameter schema as JSON."""
    registry = ctx.registry_factory()

    if name is None:
        for tool in registry:
            click.echo(f"{tool.name:<24} {tool.description}".rstrip())
        return

    if name not in registry:
        click.echo(f"Error: Unknown tool: {name}", err=True)
        click.echo(f"Available: {', '.join(registry.names())}", err=True)
        sys.exit(1)

    click.echo(json.dumps(registry.get(name).schema(), indent=2))
