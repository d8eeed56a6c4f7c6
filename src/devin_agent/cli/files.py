"""CLI: devin upload"""

from pathlib import Path
from typing import Optional

import click
from rich.console import Console

console = Console()


def _get_agent():
    from devin_agent.cli.main import _get_agent, render_item
    return _get_agent(on_item=render_item)


def _run(coro):
    from devin_agent.cli.main import _run
    return _run(coro)


@click.command("upload")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option("-s", "--session", "session_id", default=None, help="Present the file to this session")
def upload_cmd(path: str, session_id: Optional[str]):
    """Upload a file and print its URL."""

    async def _upload():
        agent = _get_agent()
        try:
            with console.status(f"Uploading {Path(path).name}..."):
                url = await agent.upload_file(path, Path(path).read_bytes(), session_id=session_id)
        finally:
            await agent.aclose()
        click.echo(url)

    _run(_upload())
