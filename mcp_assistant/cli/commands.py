"""
REPL command parsing and dispatch to the tool servers.
"""

import asyncio
import json
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol

import pendulum
from pendulum import DateTime
from rich.console import Console
from rich.table import Table

from ..config import AppConfig
from ..domain.models import parse_timestamp

logger = logging.getLogger(__name__)

USAGE = """
Commands:
  load <pathOrUrl>                         - load a PDF
  pages                                    - get page count
  text <page>                              - extract text for a page
  askpdf <question>                        - answer using loaded PDF text (LLM)
  search <query>                           - web search via SerpAPI
  emailme                                  - Gmail profile
  emaildraft to|subject|body               - create draft
  emailsend to|subject|body                - send email
  calme                                    - show next 5 events (today window)
  calsearch 2025-10-25                     - list events on a specific date
  calfree minutes|startISO|endISO          - find a free slot
  calschedule summary|startISO|endISO|att1,att2|location|description
  tools                                    - list discovered tools per server
  help                                     - show this help
  exit
"""

ASKPDF_MAX_PAGES = 5
ASKPDF_PAGE_CHARS = 4000
TEXT_OUTPUT_CHARS = 2000


class ToolCaller(Protocol):
    """What the dispatcher needs from the hub."""

    servers: Dict[str, List[str]]

    async def call(self, tool: str, arguments: Optional[Dict[str, Any]] = None) -> Any:
        ...


@dataclass
class ReplCommand:
    """One parsed input line: the command word and everything after it."""
    name: str
    arg: str = ""
    words: List[str] = field(default_factory=list)


def parse_command(line: str) -> ReplCommand:
    """Split a line into the command word, the raw argument string and its words."""
    parts = line.strip().split()
    if not parts:
        return ReplCommand(name="")
    return ReplCommand(name=parts[0].lower(), arg=" ".join(parts[1:]), words=parts[1:])


def split_fields(arg: str, count: int) -> List[str]:
    """
    Split a pipe-separated argument into exactly ``count`` stripped fields.

    Missing fields are empty strings; extra pipes stay in the last field.
    """
    fields = [part.strip() for part in arg.split("|", count - 1)] if arg else []
    return fields + [""] * (count - len(fields))


def format_event(index: int, event: Dict[str, Any]) -> str:
    start = event.get("start") or {}
    end = event.get("end") or {}
    return (
        f"\n{index}. {event.get('summary') or '(no title)'}\n"
        f"   {start.get('dateTime') or start.get('date')} → {end.get('dateTime') or end.get('date')}\n"
        f"   {event.get('location') or ''}"
    )


def build_pdf_prompt(question: str, pages: List[str]) -> str:
    """Prompt asking the model to answer only from the given page excerpts."""
    context = "".join(
        f"\n\n[Page {number}]\n{text[:ASKPDF_PAGE_CHARS]}"
        for number, text in enumerate(pages, 1)
    )
    return "\n".join([
        "You are a precise assistant. Answer based ONLY on the provided PDF excerpts.",
        "Cite the page numbers like (p.2). If unsure, ask for more pages.",
        "",
        f"Question: {question}",
        "",
        "PDF Excerpts:",
        context,
    ])


class ReplDispatcher:
    """
    Maps REPL commands onto tool calls and prints the results.

    The PDF server is addressed with this dispatcher's own session handle.
    """

    def __init__(
        self,
        hub: ToolCaller,
        config: AppConfig,
        answer: Callable[[str], str],
        console: Optional[Console] = None,
        session_id: Optional[str] = None,
        now: Optional[Callable[[], DateTime]] = None,
    ):
        self.hub = hub
        self.config = config
        self.timezone = config.defaults.timezone
        self.console = console or Console()
        self.session_id = session_id or uuid.uuid4().hex
        self._answer = answer
        self._now = now or (lambda: pendulum.now(self.timezone))
        self._handlers: Dict[str, Callable[[ReplCommand], Awaitable[None]]] = {
            "load": self.load,
            "pages": self.pages,
            "text": self.text,
            "askpdf": self.askpdf,
            "search": self.search,
            "emailme": self.emailme,
            "emaildraft": self.emaildraft,
            "emailsend": self.emailsend,
            "calme": self.calme,
            "calsearch": self.calsearch,
            "calfree": self.calfree,
            "calschedule": self.calschedule,
            "tools": self.tools,
            "help": self.help,
        }

    async def dispatch(self, line: str) -> bool:
        """
        Run one input line.

        Returns:
            False when the loop should stop, True otherwise
        """
        command = parse_command(line)
        if not command.name:
            return True
        if command.name in ("exit", "quit"):
            return False

        handler = self._handlers.get(command.name)
        if handler is None:
            self.console.print("Unknown command")
            return True

        try:
            await handler(command)
        except Exception as e:
            logger.debug("Command %s failed", command.name, exc_info=True)
            self.console.print(f"[bold red]Error:[/bold red] {e}")
        return True

    def _show(self, label: str, payload: Any) -> None:
        self.console.print(f"[bold]{label}[/bold]")
        self.console.print_json(data=payload)

    # PDF

    async def load(self, command: ReplCommand) -> None:
        if not command.arg:
            self.console.print("Usage: load <pathOrUrl>")
            return
        payload = await self.hub.call("load_pdf", {"target": command.arg, "session": self.session_id})
        self._show("Loaded:", payload)

    async def pages(self, command: ReplCommand) -> None:
        payload = await self.hub.call("page_count", {"session": self.session_id})
        self._show("Pages:", payload)

    async def text(self, command: ReplCommand) -> None:
        first = command.words[0] if command.words else "1"
        if not first.isdigit():
            self.console.print("Usage: text <page>")
            return
        payload = await self.hub.call("extract_text", {"page": int(first), "session": self.session_id})
        self.console.print(json.dumps(payload, indent=2, ensure_ascii=False)[:TEXT_OUTPUT_CHARS], markup=False)

    async def askpdf(self, command: ReplCommand) -> None:
        if not command.arg:
            self.console.print("Usage: askpdf <question>")
            return

        count = await self.hub.call("page_count", {"session": self.session_id}) or {}
        total = count.get("pages") or 1

        pages: List[str] = []
        for number in range(1, min(total, ASKPDF_MAX_PAGES) + 1):
            payload = await self.hub.call("extract_text", {"page": number, "session": self.session_id}) or {}
            pages.append(payload.get("text") or "")

        prompt = build_pdf_prompt(command.arg, pages)
        answer = await asyncio.to_thread(self._answer, prompt)
        self.console.print(answer, markup=False)

    # Search

    async def search(self, command: ReplCommand) -> None:
        if not command.arg:
            self.console.print("Usage: search <query>")
            return
        data = await self.hub.call(
            "web_search",
            {"query": command.arg, "num": self.config.search.default_results},
        ) or {}
        self.console.print(f"\n🔎 {data.get('query', command.arg)}", markup=False)
        for index, result in enumerate(data.get("results") or [], 1):
            self.console.print(
                f"\n{index}. {result.get('title')}\n   {result.get('url')}\n   {result.get('snippet')}",
                markup=False,
            )

    # Mail

    async def emailme(self, command: ReplCommand) -> None:
        self._show("Profile:", await self.hub.call("gmail_profile", {}))

    async def emaildraft(self, command: ReplCommand) -> None:
        to, subject, body = split_fields(command.arg, 3)
        if not to or not subject or not body:
            self.console.print("Usage: emaildraft to|subject|body")
            return
        payload = await self.hub.call("gmail_create_draft", {"to": to, "subject": subject, "body": body})
        self._show("Draft:", payload)

    async def emailsend(self, command: ReplCommand) -> None:
        to, subject, body = split_fields(command.arg, 3)
        if not to or not subject or not body:
            self.console.print("Usage: emailsend to|subject|body")
            return
        payload = await self.hub.call("gmail_send_message", {"to": to, "subject": subject, "body": body})
        self._show("Sent:", payload)

    # Calendar

    async def _print_events(self, time_min: DateTime, time_max: DateTime, max_results: int) -> None:
        data = await self.hub.call(
            "calendar_list_events",
            {
                "timeMin": time_min.to_iso8601_string(),
                "timeMax": time_max.to_iso8601_string(),
                "maxResults": max_results,
            },
        ) or {}
        items = data.get("items") or []
        if not items:
            self.console.print("[yellow]No events found.[/yellow]")
            return
        for index, event in enumerate(items, 1):
            self.console.print(format_event(index, event), markup=False)

    async def calme(self, command: ReplCommand) -> None:
        now = self._now()
        await self._print_events(now, now.end_of("day"), 5)

    async def calsearch(self, command: ReplCommand) -> None:
        day = command.arg.strip()
        try:
            start = pendulum.from_format(day, "YYYY-MM-DD", tz=self.timezone).start_of("day")
        except ValueError:
            self.console.print("Usage: calsearch YYYY-MM-DD")
            return
        await self._print_events(start, start.end_of("day"), 20)

    async def calfree(self, command: ReplCommand) -> None:
        minutes, start, end = split_fields(command.arg, 3)
        if minutes and not minutes.isdigit():
            self.console.print("Usage: calfree minutes|startISO|endISO")
            return

        duration = int(minutes) if minutes else self.config.defaults.duration_minutes
        if not start:
            start = self._now().to_iso8601_string()
        if not end:
            window_start = parse_timestamp(start, self.timezone)
            end = window_start.add(days=self.config.defaults.search_days).to_iso8601_string()

        payload = await self.hub.call(
            "calendar_find_free",
            {"durationMinutes": duration, "timeMin": start, "timeMax": end},
        )
        self._show("Free slot:", payload)

    async def calschedule(self, command: ReplCommand) -> None:
        summary, start, end, attendees_csv, location, description = split_fields(command.arg, 6)
        if not summary or not start or not end:
            self.console.print("Usage: calschedule summary|startISO|endISO|att1,att2|location|description")
            return

        attendees = [email.strip() for email in attendees_csv.split(",") if email.strip()]
        arguments: Dict[str, Any] = {
            "summary": summary,
            "start": start,
            "end": end,
            "attendees": attendees,
        }
        if location:
            arguments["location"] = location
        if description:
            arguments["description"] = description

        payload = await self.hub.call("calendar_create_event", arguments)
        self._show("Created:", payload)

    # Meta

    async def tools(self, command: ReplCommand) -> None:
        table = Table(title="Discovered tools", show_header=True, header_style="bold cyan")
        table.add_column("Server", style="bold yellow")
        table.add_column("Tools", style="dim")
        for server, names in self.hub.servers.items():
            table.add_row(server, ", ".join(names))
        self.console.print(table)

    async def help(self, command: ReplCommand) -> None:
        self.console.print(USAGE, markup=False)
