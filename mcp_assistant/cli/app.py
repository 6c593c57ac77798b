"""
Main CLI application using Typer.
"""

import asyncio
import logging
from pathlib import Path
from typing import Annotated, Optional

import pendulum
import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..adapters.calendar_client import GoogleCalendarClient
from ..adapters.google_auth import SERVICE_SCOPES, GoogleAuthenticator
from ..adapters.llm_client import AnswerGenerator
from ..client.hub import ToolHub
from ..config import AppConfig
from ..domain.models import FreeSlotRequest, parse_timestamp
from ..logging_config import configure_logging
from ..servers import SERVER_FACTORIES, build_server
from ..services.free_slot_service import FreeSlotService
from .commands import USAGE, ReplDispatcher

app = typer.Typer(
    name="mcp-assistant",
    help="Command-line assistant for calendar, mail, web search and PDF tool servers",
    add_completion=False,
)

console = Console()
logger = logging.getLogger(__name__)

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml"),
]


def _load_config(config_file: Optional[Path]) -> AppConfig:
    try:
        return AppConfig.load(config_file)
    except (ValueError, FileNotFoundError) as e:
        console.print(f"[bold red]Config error:[/bold red] {e}")
        raise typer.Exit(1)


async def _run_repl(config: AppConfig) -> None:
    generator = AnswerGenerator(config.llm)

    async with ToolHub(config.servers) as hub:
        for server, tools in hub.servers.items():
            console.print(f"[bold]{server}[/bold] tools: {', '.join(tools)}")
        console.print(USAGE, markup=False)

        dispatcher = ReplDispatcher(hub, config, answer=generator.generate, console=console)

        while True:
            try:
                line = await asyncio.to_thread(console.input, "[bold cyan]>[/bold cyan] ")
            except EOFError:
                break
            if not await dispatcher.dispatch(line):
                break


@app.command()
def repl(config_file: ConfigOption = None):
    """
    Start the interactive assistant.

    Spawns every configured tool server, lists their tools, then reads
    commands until `exit`.
    """
    config = _load_config(config_file)
    configure_logging(config.log_level)

    try:
        asyncio.run(_run_repl(config))
    except KeyboardInterrupt:
        console.print()
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def serve(
    name: Annotated[str, typer.Argument(help=f"Server to run: {', '.join(sorted(SERVER_FACTORIES))}")],
    config_file: ConfigOption = None,
):
    """
    Run one bundled tool server over stdio.
    """
    config = _load_config(config_file)
    # stdout carries the protocol stream
    configure_logging(config.log_level, stderr=True)

    try:
        server = build_server(name, config)
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    logger.info("Serving '%s' over stdio", name)
    server.run("stdio")


@app.command()
def free(
    duration: Annotated[Optional[int], typer.Option("--duration", "-d", help="Meeting duration in minutes")] = None,
    start: Annotated[Optional[str], typer.Option("--start", help="Window start (ISO-8601). Defaults to now")] = None,
    end: Annotated[Optional[str], typer.Option("--end", help="Window end (ISO-8601). Defaults to start + search_days")] = None,
    timezone: Annotated[Optional[str], typer.Option("--timezone", "-z", help="IANA time zone")] = None,
    config_file: ConfigOption = None,
):
    """
    Find the first free slot on the primary calendar.

    Examples:

        mcp-assistant free --duration 45

        mcp-assistant free -d 30 --start 2025-10-25T09:00 --end 2025-10-25T17:00
    """
    config = _load_config(config_file)
    configure_logging(config.log_level)
    tz = timezone or config.defaults.timezone

    try:
        window_start = parse_timestamp(start, tz) if start else pendulum.now(tz)
        window_end = (
            parse_timestamp(end, tz) if end
            else window_start.add(days=config.defaults.search_days)
        )

        request = FreeSlotRequest(
            durationMinutes=duration or config.defaults.duration_minutes,
            timeMin=window_start.to_iso8601_string(),
            timeMax=window_end.to_iso8601_string(),
            timeZone=tz,
        )

        credentials = GoogleAuthenticator(config.google, "calendar").get_credentials()
        payload = FreeSlotService(GoogleCalendarClient(credentials)).find_free(request)
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if payload["slotStart"] is None:
        console.print(
            "[yellow]⚠ No free slot found.[/yellow]\n"
            "Try a longer window or a shorter duration."
        )
        return

    console.print(Panel.fit(
        f"[bold]Start:[/bold] {payload['slotStart']}\n"
        f"[bold]End:[/bold] {payload['slotEnd']}\n"
        f"[bold]Time zone:[/bold] {payload['timeZone']}",
        title="✓ Free slot",
    ))


@app.command()
def auth(
    service: Annotated[str, typer.Argument(help="Google service: calendar or gmail")],
    force: Annotated[bool, typer.Option("--force", help="Force re-authorization")] = False,
    config_file: ConfigOption = None,
):
    """
    Authorize access to a Google service and store the token.
    """
    config = _load_config(config_file)
    configure_logging(config.log_level)

    if service not in SERVICE_SCOPES:
        console.print(f"[bold red]Error:[/bold red] unknown service '{service}' (use calendar or gmail)")
        raise typer.Exit(1)

    try:
        authenticator = GoogleAuthenticator(config.google, service)
        authenticator.get_credentials(force_refresh=force)
    except Exception as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {e}\n")
        raise typer.Exit(1)

    console.print(Panel.fit(
        f"[bold green]✓ Authorization successful![/bold green]\n\n"
        f"[bold]Token:[/bold] {authenticator.token_file}",
        title=f"✓ {service}",
    ))


@app.command()
def clear_tokens(
    service: Annotated[Optional[str], typer.Argument(help="calendar or gmail; all when omitted")] = None,
    config_file: ConfigOption = None,
):
    """
    Delete stored Google tokens (forces re-authorization next time).
    """
    config = _load_config(config_file)
    services = [service] if service else sorted(SERVICE_SCOPES)

    for name in services:
        try:
            removed = GoogleAuthenticator(config.google, name).clear_token()
        except ValueError as e:
            console.print(f"[bold red]Error:[/bold red] {e}")
            raise typer.Exit(1)
        status = "[green]✓ removed[/green]" if removed else "[dim]no token[/dim]"
        console.print(f"{name}: {status}")


@app.command()
def servers(config_file: ConfigOption = None):
    """
    List configured tool servers.
    """
    config = _load_config(config_file)

    table = Table(
        title="Configured tool servers",
        show_header=True,
        header_style="bold cyan",
    )
    table.add_column("Name", style="bold yellow")
    table.add_column("Command", style="dim")
    table.add_column("Env", style="dim")

    for server in config.servers:
        table.add_row(
            server.name,
            " ".join([server.command, *server.args]),
            ", ".join(sorted(server.env)) or "-",
        )

    console.print()
    console.print(table)
    console.print()


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]mcp-assistant[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
