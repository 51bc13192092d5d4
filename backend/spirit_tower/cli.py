"""
Spirit Tower CLI - Command line interface for the Spirit Tower backend.

Usage:
    spirit-tower run              Start the API server
    spirit-tower extract NAME     Roll a new character and submit it
"""

import asyncio
import logging
import random
import sys

import click

from spirit_tower import __version__
from spirit_tower import config
from spirit_tower.engine.extractor import (
    AttributeExtractor,
    AttributeGenerator,
    CandidateSheet,
    ExtractorPhase,
    SpiritPrompt,
    SubmissionError,
    ValidationError,
)
from spirit_tower.engine.submitter import HttpCharacterSubmitter


@click.group()
@click.version_option(version=__version__, prog_name="spirit-tower")
def main():
    """Spirit Tower - Sentinel/Guide roleplay backend."""
    pass


@main.command()
@click.option("--host", "-h", default=config.HOST, help="Host to bind to")
@click.option("--port", "-p", default=config.PORT, type=int, help="Port to bind to")
@click.option("--reload", "-r", is_flag=True, help="Enable auto-reload for development")
def run(host: str, port: int, reload: bool):
    """Start the Spirit Tower API server."""
    import uvicorn

    click.echo(f"⏳ Starting Spirit Tower on http://{host}:{port} ...")
    uvicorn.run(
        "spirit_tower.main:app",
        host=host,
        port=port,
        reload=reload,
        log_level="info",
    )


@main.command()
@click.argument("name")
@click.option("--api-url", default=config.API_URL, show_default=True, help="Spirit Tower API base URL")
@click.option("--seed", type=int, default=None, help="Seed the generator (reproducible draws)")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
def extract(name: str, api_url: str, seed: int | None, verbose: bool):
    """Draw ten candidate sheets for NAME, pick one and submit it.

    Sentinels and Guides may keep their spirit or summon a new one by name.
    The choice is final once the server accepts it.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    extractor = AttributeExtractor(
        player_name=name,
        submitter=HttpCharacterSubmitter(base_url=api_url),
        generator=AttributeGenerator(random.Random(seed)),
    )
    sheet = asyncio.run(_run_session(extractor))
    if sheet is None:
        click.echo("Nothing was saved. Run extract again to start a new session.")
        sys.exit(1)

    click.echo("")
    click.echo(click.style("🔒 FINAL LOCKED", fg="red", bold=True))
    click.echo(format_sheet(sheet))
    click.echo("Your profile has been submitted and is awaiting review.")


async def _run_session(extractor: AttributeExtractor) -> CandidateSheet | None:
    while extractor.phase is ExtractorPhase.DRAWING:
        click.prompt(
            f"Press Enter to draw ({extractor.draws_remaining} left)",
            default="", show_default=False, prompt_suffix=" ",
        )
        sheet = extractor.draw()
        click.echo(format_sheet(sheet))

    while not extractor.is_locked:
        try:
            if extractor.phase is ExtractorPhase.AWAITING_CHOICE:
                _show_history(extractor.history)
                index = click.prompt(
                    "Choose one draw", type=click.IntRange(1, extractor.draw_count)
                )
                await extractor.select(index - 1)
            elif extractor.spirit_prompt is SpiritPrompt.QUESTION:
                spirit = extractor.draft.spirit
                if click.confirm(f"Do you like your spirit, {spirit.name}?", default=True):
                    await extractor.accept_spirit()
                else:
                    click.echo("Your spirit has left you. Call a new one:")
                    extractor.reject_spirit()
            else:
                spirit_name = click.prompt("New spirit name", default="", show_default=False)
                await extractor.confirm_custom_spirit(spirit_name)
        except ValidationError as e:
            click.echo(click.style(f"⚠️ {e}", fg="yellow"))
        except SubmissionError as e:
            click.echo(click.style(f"Error: {e.reason}", fg="red"))
            if not click.confirm("Choose again?", default=True):
                return None

    return extractor.final_sheet


def _show_history(history: tuple[CandidateSheet, ...]) -> None:
    click.echo("")
    click.echo(click.style(f"Fate's choice ({len(history)} draws)", bold=True))
    for i, sheet in enumerate(history, start=1):
        click.echo(f"  [{i:2}] {format_sheet(sheet)}")


def format_sheet(sheet: CandidateSheet) -> str:
    return (
        f"{sheet.role.value:<9} "
        f"mental/physical {sheet.mental_rank.value}/{sheet.physical_rank.value}  "
        f"gold {sheet.gold:>5}  "
        f"ability {sheet.ability.value:<11} "
        f"spirit {sheet.spirit.name} ({sheet.spirit.kind.value})"
    )


if __name__ == "__main__":
    main()
