"""Main CLI application."""

import typer

from bubble.cli.commands import chat, memory

app = typer.Typer(
    name="bubble",
    help="Bubble - autonomous chat agent",
    no_args_is_help=True,
)

chat.register(app)
memory.register(app)


if __name__ == "__main__":
    app()
