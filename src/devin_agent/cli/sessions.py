"""CLI: devin sessions list|spawn"""

import json

import click
from rich.console import Console
from rich.table import Table

console = Console()


def _get_agent():
    from devin_agent.cli.main import _get_agent, render_item
    return _get_agent(on_item=render_item)


def _run(coro):
    from devin_agent.cli.main import _run
    return _run(coro)


@click.group()
def sessions():
    """Session management."""


@sessions.command("list")
@click.option("--json-output", "--json", is_flag=True)
def sessions_list(json_output):
    """List Devin sessions."""

    async def _list():
        agent = _get_agent()
        try:
            result = await agent.list_sessions()
        finally:
            await agent.aclose()
        if json_output:
            click.echo(json.dumps([s.model_dump() for s in result], indent=2))
            return
        table = Table(title=f"Sessions ({len(result)} total)")
        table.add_column("ID", style="bold")
        table.add_column("Status")
        table.add_column("Title")
        for s in result:
            table.add_row(s.id, s.status or "", s.title or "")
        console.print(table)

    _run(_list())


@sessions.command("spawn")
@click.argument("prompt")
@click.option("--parent", "parent_id", default=None, help="Parent session ID")
def sessions_spawn(prompt, parent_id):
    """Create a session tagged as spawned by automation."""

    async def _spawn():
        agent = _get_agent()
        try:
            with console.status("Creating session..."):
                session_id = await agent.create_recursive_session(prompt, parent_id)
        finally:
            await agent.aclose()
        console.print(f"[green]Session created: {session_id}[/green]")

    _run(_spawn())
