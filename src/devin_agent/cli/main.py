"""
Devin CLI — `devin` command.

Commands:
  devin auth login         Store a Devin API key
  devin chat [session-id]  Interactive REPL chat
  devin send <message>     One-shot request
  devin sessions <cmd>     List / spawn sessions
  devin upload <path>      Upload a file
"""

import asyncio
import logging
import os
from typing import Any, Callable, Optional

try:
    import click
    from rich.console import Console
    from rich.logging import RichHandler
    from rich.markdown import Markdown
except ImportError:
    raise SystemExit("CLI requires extras: pip install devin-agent[cli]")

from devin_agent import __version__
from devin_agent.agent import DevinAgent
from devin_agent.config import AppConfig, load_config
from devin_agent.errors import DevinError
from devin_agent.models.items import ResponseItem

console = Console()


def _load_config(**overrides: Any) -> AppConfig:
    try:
        return load_config(**overrides)
    except DevinError as e:
        console.print(f"[red]{e.message}[/red]")
        raise SystemExit(1)


def _get_agent(
    on_item: Callable[[ResponseItem], None],
    on_loading: Callable[[bool], None] = lambda _loading: None,
    on_last_response_id: Callable[[str], None] = lambda _session_id: None,
    model: Optional[str] = None,
    approval_policy: Optional[str] = None,
) -> DevinAgent:
    cfg = _load_config(model=model, approval_policy=approval_policy)
    if not cfg.api_key:
        console.print("[red]No Devin API key. Run `devin auth login` or set DEVIN_API_KEY.[/red]")
        raise SystemExit(1)
    try:
        return DevinAgent(
            api_key=cfg.api_key,
            approval_policy=cfg.approval_policy,
            config=cfg,
            on_item=on_item,
            on_loading=on_loading,
            on_last_response_id=on_last_response_id,
        )
    except DevinError as e:
        console.print(f"[red]{e.message}[/red]")
        raise SystemExit(1)


def render_item(item: ResponseItem) -> None:
    if item.role == "assistant":
        console.print(Markdown(item.text))
        for f in item.files:
            console.print(f"[cyan]{f.filename}[/cyan] ({f.mime_type}): {f.file_url}")
    else:
        console.print(f"[yellow]{item.text}[/yellow]")


def _run(coro):
    try:
        return asyncio.run(coro)
    except DevinError as e:
        console.print(f"[red]{e.message}[/red]")
        raise SystemExit(1)


def _configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(name)s: %(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


@click.group()
@click.version_option(__version__)
@click.option("--debug", is_flag=True, default=lambda: os.environ.get("DEVIN_DEBUG") == "1", help="Verbose logging")
def main(debug: bool):
    """Devin CLI — hand coding requests to Devin AI."""
    _configure_logging(debug)


# Register subcommands from separate modules
from devin_agent.cli.auth import auth
from devin_agent.cli.chat import chat_cmd, send_cmd
from devin_agent.cli.files import upload_cmd
from devin_agent.cli.sessions import sessions

main.add_command(auth)
main.add_command(chat_cmd)
main.add_command(send_cmd)
main.add_command(sessions)
main.add_command(upload_cmd)


if __name__ == "__main__":
    main()
