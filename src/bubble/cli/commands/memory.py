"""Memory management commands."""

import asyncio
import json
from pathlib import Path
from typing import TYPE_CHECKING, Annotated, Any

import click
import typer

from bubble.cli.console import console, create_table, dim, error, success
from bubble.cli.commands.chat import DEFAULT_USER

if TYPE_CHECKING:
    from bubble.memory import LayeredMemoryStore


def register(app: typer.Typer) -> None:
    """Register the memory command."""

    @app.command()
    def memory(
        action: Annotated[
            str | None,
            typer.Argument(help="Action: set, list, compact"),
        ] = None,
        layer: Annotated[
            str | None,
            typer.Argument(help="Memory layer (e.g. preferences, interests)"),
        ] = None,
        key: Annotated[
            str | None,
            typer.Argument(help="Key within the layer (for set)"),
        ] = None,
        value: Annotated[
            str | None,
            typer.Argument(help="Value to store; JSON is decoded (for set)"),
        ] = None,
        user_id: Annotated[
            str,
            typer.Option("--user", "-u", help="User id"),
        ] = DEFAULT_USER,
        config_path: Annotated[
            Path | None,
            typer.Option("--config", "-c", help="Path to configuration file"),
        ] = None,
        path: Annotated[
            Path | None,
            typer.Option("--path", "-p", help="Memory directory (overrides config)"),
        ] = None,
    ) -> None:
        """Manage the layered user memory.

        Examples:
            bubble memory set preferences tone '"casual"'
            bubble memory list
            bubble memory list interests --user alice
            bubble memory compact
        """
        if action is None:
            ctx = click.get_current_context()
            click.echo(ctx.get_help())
            raise typer.Exit(0)

        from bubble.memory import LayeredMemoryStore

        store = LayeredMemoryStore(_resolve_path(path, config_path))

        if action == "set":
            if not (layer and key and value is not None):
                error("Usage: bubble memory set LAYER KEY VALUE")
                raise typer.Exit(1)
            asyncio.run(store.store(user_id, layer, key, _parse_value(value)))
            success(f"Stored {layer}.{key}")
        elif action == "list":
            asyncio.run(_list(store, user_id, layer, config_path))
        elif action == "compact":
            removed = asyncio.run(store.compact(user_id))
            success(f"Removed {removed} superseded entries")
        else:
            error(f"Unknown action: {action}")
            raise typer.Exit(1)


def _resolve_path(path: Path | None, config_path: Path | None) -> Path:
    if path is not None:
        return path.expanduser()
    from bubble.cli.context import get_config

    return get_config(config_path).memory.path


def _parse_value(raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


async def _list(
    store: "LayeredMemoryStore",
    user_id: str,
    layer: str | None,
    config_path: Path | None,
) -> None:
    if layer:
        layers = [layer]
    else:
        from bubble.cli.context import get_config

        layers = get_config(config_path).agent.memory_layers

    context = await store.get_context(layers, user_id=user_id)
    rows = [
        (name, key, json.dumps(value, ensure_ascii=False))
        for name, entries in context.items()
        for key, value in sorted(entries.items())
    ]
    if not rows:
        dim(f"No memories for {user_id}")
        return

    table = create_table(
        f"Memory for {user_id}",
        [("Layer", "cyan"), ("Key", "green"), ("Value", "white")],
    )
    for row in rows:
        table.add_row(*row)
    console.print(table)
