# wayfarer/cli.py
"""
Command-line interface (CLI) for the Wayfarer browser agent.

Lists the tool catalog and configured backends, and runs an interactive
chat in which a model drives a Selenium-controlled Chrome page. Built with
Typer and rendered with Rich.
"""

import asyncio
import uuid
from typing import Dict, List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from typing_extensions import Annotated

from wayfarer.agents.browser_agent import BrowserAgent
from wayfarer.exceptions import ConfigurationError, ProviderError, WayfarerError
from wayfarer.registry import SafetyLevel, list_tools
from wayfarer.schemas.backend import ConnectionCheck
from wayfarer.schemas.conversation import AgentExecutionOptions, AgentResponse
from wayfarer.schemas.runtime import AgentRuntimeConfig
from wayfarer.utils.backend_loader import get_backend_config, list_backend_profiles
from wayfarer.utils.config import get_config
from wayfarer.utils.llm_query import get_provider_for_profile
from wayfarer.utils.logger import setup_logger

app = typer.Typer(
    name="wayfarer",
    help="A conversational agent that drives a live browser page.",
    add_completion=False,
)
console = Console()
logger = setup_logger(__name__)

_SAFETY_STYLE = {
    SafetyLevel.SAFE: "green",
    SafetyLevel.MODERATE: "yellow",
    SafetyLevel.DANGEROUS: "bold red",
}


@app.command(name="tools")
def tools_command() -> None:
    """
    Lists every browser tool with its safety level.
    """
    table = Table(title="Browser Tools")
    table.add_column("Tool", style="cyan", no_wrap=True)
    table.add_column("Safety", no_wrap=True)
    table.add_column("Category", style="magenta")
    table.add_column("Description")
    for entry in list_tools():
        style = _SAFETY_STYLE[entry.safety]
        table.add_row(
            entry.name,
            f"[{style}]{entry.safety.value}[/{style}]",
            entry.category or "-",
            entry.description,
        )
    console.print(table)


async def _check_profiles(names: List[str]) -> Dict[str, ConnectionCheck]:
    checks: Dict[str, ConnectionCheck] = {}
    for name in names:
        try:
            provider = get_provider_for_profile(name)
        except ProviderError as e:
            checks[name] = ConnectionCheck(ok=False, provider=e.provider, detail=e.user_message)
            continue
        except ConfigurationError as e:
            checks[name] = ConnectionCheck(ok=False, provider=name, detail=str(e))
            continue
        with console.status(f"Checking {escape(name)}..."):
            checks[name] = await provider.test_connection()
    return checks


@app.command(name="backends")
def backends_command(
        check: Annotated[
            bool,
            typer.Option("--check", help="Contact each backend to verify credentials and connectivity."),
        ] = False,
) -> None:
    """
    Lists the backend profiles configured in backends.yaml.
    """
    try:
        profiles = list_backend_profiles()
    except ConfigurationError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(code=1)

    table = Table(title="Backend Profiles")
    table.add_column("Profile", style="cyan", no_wrap=True)
    table.add_column("Type", style="magenta")
    table.add_column("Model")
    table.add_column("Status")
    checks: Dict[str, ConnectionCheck] = {}
    if check:
        names = [p.get("profile_name", "?") for p in profiles]
        checks = asyncio.run(_check_profiles(names))
        table.add_column("Connection")
    for profile in profiles:
        name = profile.get("profile_name", "?")
        try:
            cfg = get_backend_config(name)
            status = "[green]ok[/green]"
            if getattr(cfg, "api_key", "n/a") is None:
                status = "[yellow]missing API key[/yellow]"
        except ConfigurationError as e:
            status = f"[red]{escape(str(e))}[/red]"
        row = [name, str(profile.get("type", "?")), str(profile.get("model", "-")), status]
        if check:
            result = checks[name]
            if result.ok:
                row.append(f"[green]reachable[/green] [dim]({len(result.models)} model(s))[/dim]")
            else:
                row.append(f"[red]{escape(result.detail)}[/red]")
        table.add_row(*row)
    console.print(table)


def _print_response(response: AgentResponse) -> None:
    for result in response.tool_results:
        if result.success:
            console.print(
                f"  [green]✓[/green] [cyan]{result.tool_name}[/cyan] {escape(result.message or '')}"
                f" [dim]({result.latency_ms} ms)[/dim]"
            )
        else:
            console.print(
                f"  [red]✗[/red] [cyan]{result.tool_name}[/cyan] {escape(result.error or '')}"
            )
    if response.context_update:
        console.print(f"  [dim]page: {escape(response.context_update)}[/dim]")
    console.print(f"[bold magenta]agent>[/bold magenta] {escape(response.message)}")


_PAGE_HELPERS = {
    "/summarize": "/summarize",
    "/analyze": "/analyze <question>",
    "/suggest": "/suggest <goal>",
}


async def _page_helper(
    agent: BrowserAgent, session_id: str, backend: str, command: str, argument: str
) -> None:
    try:
        with console.status("[bold green]Reading the page..."):
            if command == "/summarize":
                reply = await agent.summarize_page(session_id, backend)
            elif command == "/analyze":
                reply = await agent.analyze_page(session_id, backend, argument)
            else:
                reply = await agent.suggest_automation(session_id, backend, argument)
    except ProviderError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(e.user_message)}")
        return
    console.print(f"[bold magenta]agent>[/bold magenta] {escape(reply or '(no reply)')}")


async def _chat(
    backend: str,
    url: Optional[str],
    auto_confirm: bool,
    grant: Optional[SafetyLevel],
    headed: bool,
) -> None:
    from wayfarer.executors.selenium_exec import SeleniumDriver

    runtime = AgentRuntimeConfig.from_config(get_config())
    driver = SeleniumDriver(headless=not headed)
    agent = BrowserAgent(driver, config=runtime)
    session_id = "main"
    conversation_id = uuid.uuid4().hex[:12]

    console.rule(f"[bold blue]Wayfarer chat[/bold blue] ({backend})")
    console.print("[dim]/exit to quit, /clear to start a new conversation, /context to show the page[/dim]")
    console.print("[dim]/summarize, /analyze <question> and /suggest <goal> ask about the page without acting on it[/dim]")
    options = AgentExecutionOptions(
        provider_kind=backend,
        page_session_id=session_id,
        auto_confirm=auto_confirm,
        safety_level=grant or runtime.default_safety_level,
    )
    loop = asyncio.get_running_loop()
    try:
        opened = await driver.open_session(session_id, url)
        if not opened.success:
            console.print(f"[bold red]Could not open browser:[/bold red] {escape(opened.error or '')}")
            raise typer.Exit(code=1)

        while True:
            text = (await loop.run_in_executor(None, console.input, "[bold cyan]you>[/bold cyan] ")).strip()
            if not text:
                continue
            if text in ("/exit", "/quit"):
                break
            if text == "/clear":
                agent.clear_conversation(conversation_id)
                conversation_id = uuid.uuid4().hex[:12]
                console.print("[dim]Conversation cleared.[/dim]")
                continue
            if text == "/context":
                await agent.update_context(session_id)
                tracker = agent.context_store.tracker(session_id)
                console.print(tracker.context_summary(), markup=False)
                continue
            command, _, argument = text.partition(" ")
            if command in _PAGE_HELPERS:
                argument = argument.strip()
                if command != "/summarize" and not argument:
                    console.print(f"[dim]Usage: {escape(_PAGE_HELPERS[command])}[/dim]")
                    continue
                await _page_helper(agent, session_id, backend, command, argument)
                continue
            with console.status("[bold green]Thinking..."):
                response = await agent.send_message(conversation_id, text, options)
            _print_response(response)
    finally:
        await agent.close_page_session(session_id)
        await driver.shutdown()


@app.command(name="chat")
def chat_command(
        backend: Annotated[
            str,
            typer.Option("--backend", "-b", help="Backend profile name from backends.yaml."),
        ],
        url: Annotated[
            Optional[str],
            typer.Option(help="Page to open before the first message."),
        ] = None,
        auto_confirm: Annotated[
            bool,
            typer.Option("--auto-confirm", help="Run every tool without asking for a higher grant."),
        ] = False,
        grant: Annotated[
            Optional[SafetyLevel],
            typer.Option(help="Highest tool safety level allowed without confirmation."),
        ] = None,
        headed: Annotated[
            bool,
            typer.Option("--headed", help="Show the Chrome window."),
        ] = False,
) -> None:
    """
    Starts an interactive chat session that drives a Chrome page.
    """
    try:
        get_backend_config(backend)
        asyncio.run(_chat(backend, url, auto_confirm, grant, headed))
    except WayfarerError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(code=1)
    except KeyboardInterrupt:
        console.print("\n[dim]Bye.[/dim]")


if __name__ == "__main__":
    app()
