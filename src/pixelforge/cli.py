import logging
from pathlib import Path

import typer
from typing_extensions import Annotated
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from pixelforge import __version__
from pixelforge.client import GenerationClient
from pixelforge.config import settings
from pixelforge.web_server import run

app = typer.Typer(
    name="pixelforge",
    help="🎨 Generate images from text prompts through the Stability AI API.",
    add_completion=False,
)
console = Console()


def configure_logging(level: str):
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def version_callback(value: bool):
    if value:
        console.print(f"pixelforge Version: [bold green]{__version__}[/bold green]")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-v",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
):
    pass


@app.command()
def serve(
    host: Annotated[str, typer.Option(help="Interface to bind to.")] = None,
    port: Annotated[int, typer.Option(help="Port to listen on.")] = None,
    debug: Annotated[
        bool, typer.Option("--debug", help="Run Flask in debug mode.")
    ] = False,
):
    """Run the web interface and the generation endpoint."""
    configure_logging(settings.log_level)
    overrides = {
        k: v
        for k, v in {"host": host, "port": port, "debug": debug or None}.items()
        if v is not None
    }
    run(settings.model_copy(update=overrides))


@app.command()
def generate(
    prompt: Annotated[
        str,
        typer.Option(
            "--prompt",
            "-p",
            help="The text prompt for image generation. If not provided, you will be asked to enter it.",
            show_default=False,
        ),
    ] = None,
    output: Annotated[
        Path,
        typer.Option(
            "--output",
            "-o",
            help="Output filename (e.g., my_image.png). If not provided, one will be generated.",
        ),
    ] = None,
    server: Annotated[
        str, typer.Option(help="URL of a running pixelforge server.")
    ] = None,
):
    """Ask a running server for an image and save it."""
    configure_logging("WARNING")
    if prompt is None:
        prompt = typer.prompt("Please enter the prompt for image generation")

    with GenerationClient(server or settings.server_url) as client:
        console.print(f'📜 Prompt: "{prompt}"')
        with console.status("[spinner]Generating...", spinner="dots"):
            state = client.submit(prompt)

        if state.credits_used or state.remaining_credits:
            table = Table(title="Credits", show_header=True, header_style="bold magenta")
            table.add_column("Used", style="cyan")
            table.add_column("Remaining", style="yellow")
            table.add_row(state.credits_used or "-", state.remaining_credits or "-")
            console.print(table)

        if state.error:
            console.print(f"[bold red]Error:[/bold red] {state.error}")
            raise typer.Exit(code=1)

        saved_path = client.save_image(output)
        if saved_path is None:
            console.print("[bold red]Error:[/bold red] Failed to save the image.")
            raise typer.Exit(code=1)
        console.print(
            Panel(
                f"Image generated (seed {state.seed}). Saved to: [green]{saved_path}[/green]",
                title="[bold green]Success ✨[/bold green]",
                expand=False,
            )
        )


@app.command(name="show-config")
def show_config_command():
    """Show the effective configuration."""
    table = Table(title="⚙️ pixelforge Configuration")
    table.add_column("Setting", style="cyan", no_wrap=True)
    table.add_column("Value", style="yellow")
    table.add_row(
        "API Key", "✅ Set" if settings.has_api_key else "⚠️ Not Set (STABILITY_API_KEY)"
    )
    table.add_row("API Host", settings.api_host)
    table.add_row("Engine", settings.engine_id)
    table.add_row("Max Retries", str(settings.max_retries))
    table.add_row("Backoff Base", f"{settings.backoff_base_seconds}s")
    table.add_row("Request Timeout", f"{settings.request_timeout_seconds}s")
    table.add_row("Server", f"{settings.host}:{settings.port}")
    console.print(table)


if __name__ == "__main__":
    app()
