"""Chat command: run a single agent turn from the terminal."""

import asyncio
import base64
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer

from bubble.cli.console import console, dim, error, success, warning

if TYPE_CHECKING:
    from bubble.config import BubbleConfig
    from bubble.core import AgentExecutionResult, AutonomousAgent

logger = logging.getLogger(__name__)

DEFAULT_USER = "local"


def register(app: typer.Typer) -> None:
    """Register the chat command."""

    @app.command()
    def chat(
        prompt: Annotated[
            str,
            typer.Argument(help="Prompt to send"),
        ],
        config_path: Annotated[
            Path | None,
            typer.Option(
                "--config",
                "-c",
                help="Path to configuration file",
            ),
        ] = None,
        model: Annotated[
            str | None,
            typer.Option(
                "--model",
                "-m",
                help="Model id (default: default_model from config)",
            ),
        ] = None,
        user_id: Annotated[
            str,
            typer.Option(
                "--user",
                "-u",
                help="User id for memory and usage counters",
            ),
        ] = DEFAULT_USER,
        image_out: Annotated[
            Path | None,
            typer.Option(
                "--image-out",
                help="Where to save a generated image (PNG)",
            ),
        ] = None,
        verbose: Annotated[
            bool,
            typer.Option(
                "--verbose",
                "-v",
                help="Show debug logs from the agent loop and providers",
            ),
        ] = False,
        log_file: Annotated[
            bool,
            typer.Option(
                "--log-file",
                help="Also write logs as JSONL under ~/.bubble/logs",
            ),
        ] = False,
    ) -> None:
        """Run one turn of the agent and stream the answer.

        Examples:
            bubble chat "What's new in Python 3.13?"
            bubble chat "Draw a lighthouse at dusk" --image-out lighthouse.png
            bubble chat "Explain monads" --model openai/gpt-4o-mini
            bubble chat "Plan a trip" --verbose --log-file
        """
        try:
            asyncio.run(
                _run_chat(
                    prompt, config_path, model, user_id, image_out, verbose, log_file
                )
            )
        except KeyboardInterrupt:
            console.print("\n[dim]Cancelled[/dim]")


def _build_agent(config: "BubbleConfig") -> "AutonomousAgent":
    from bubble.core import create_agent

    return create_agent(config)


class ConsoleSink:
    """Prints streamed chunks, rendering status markers as dim notes."""

    def send(self, text: str) -> None:
        from bubble.core import IMAGE_GENERATION_START, split_status_markers

        visible, markers = split_status_markers(text)
        for marker in markers:
            if marker.get("type") == IMAGE_GENERATION_START:
                dim("\nGenerating image...")
        if visible:
            console.print(visible, end="", markup=False, highlight=False)


def _print_result(result: "AgentExecutionResult", image_out: Path | None) -> None:
    console.print()
    if not result.messages:
        return
    message = result.messages[0]

    if message.image_base64:
        if image_out is not None:
            image_out.write_bytes(base64.b64decode(message.image_base64))
            success(f"Image saved to {image_out}")
        else:
            dim("Image generated. Use --image-out to save it.")

    if message.grounding_metadata:
        console.print("\n[bold]Sources[/bold]")
        for i, ref in enumerate(message.grounding_metadata, 1):
            console.print(f"  [{i}] {ref.title} - {ref.uri}", markup=False)

    if result.hop_budget_exhausted:
        warning("Stopped after reaching the step limit.")


async def _run_chat(
    prompt: str,
    config_path: Path | None,
    model: str | None,
    user_id: str,
    image_out: Path | None,
    verbose: bool = False,
    log_file: bool = False,
) -> None:
    from bubble.cli.context import get_config
    from bubble.core import AgentInput, UserSettings
    from bubble.logging import configure_logging

    configure_logging(
        level="DEBUG" if verbose else "WARNING",
        use_rich=verbose,
        log_to_file=log_file,
    )

    config = get_config(config_path)

    gemini_key = config.resolve_gemini_key()
    if gemini_key is None:
        error("No Gemini API key. Set GEMINI_API_KEY or [gemini] api_key in config")
        raise typer.Exit(1)

    openrouter_key = config.resolve_openrouter_key()
    settings = UserSettings(
        openrouter_api_key=openrouter_key.get_secret_value() if openrouter_key else None,
        preferred_image_model=config.image.preferred_model,
    )

    agent = _build_agent(config)
    logger.debug(
        "chat_turn_start",
        extra={"user.id": user_id, "model": model or config.default_model},
    )

    result = await agent.run(
        AgentInput(
            prompt=prompt,
            model=model or config.default_model,
            user_id=user_id,
            api_key=gemini_key.get_secret_value(),
            sink=ConsoleSink(),
            settings=settings,
        )
    )

    # Turns that never streamed (e.g. failures) only carry the final text
    if result.messages and not result.hops:
        console.print(result.messages[0].text, markup=False, highlight=False)

    _print_result(result, image_out)
