"""CLI: devin chat, devin send"""

import asyncio
from pathlib import Path
from typing import Optional

import click
from rich.console import Console

from devin_agent.agent import DevinAgent, user_message
from devin_agent.attachments import upload_and_substitute
from devin_agent.models.items import ResponseItem
from devin_agent.paths import LOCAL_PATH_NOTICE, detect_local_file_paths, format_local_path_notice
from devin_agent.policy import ApprovalPolicy, is_devin_model_supported

console = Console()

LOCAL_PATH_CHOICES = ["ask", "upload", "remote", "notice"]


def _run(coro):
    from devin_agent.cli.main import _run
    return _run(coro)


def _make_agent(model: Optional[str], approval_policy: Optional[str], json_output: bool = False):
    from devin_agent.cli.main import _get_agent, render_item

    if model and not is_devin_model_supported(model):
        console.print(f"[red]Unsupported Devin model: {model}[/red]")
        raise SystemExit(1)

    idle = asyncio.Event()

    def on_item(item: ResponseItem) -> None:
        if json_output:
            click.echo(item.model_dump_json())
        else:
            render_item(item)

    def on_loading(loading: bool) -> None:
        if loading:
            idle.clear()
        else:
            idle.set()

    def on_last_response_id(session_id: str) -> None:
        if not json_output:
            console.print(f"[dim]Session: {session_id}[/dim]")

    agent = _get_agent(on_item, on_loading, on_last_response_id, model=model, approval_policy=approval_policy)
    return agent, idle


async def _resolve_local_paths(agent: DevinAgent, message: str, mode: str) -> Optional[str]:
    """Apply the local-path choice to ``message``; None means the user cancelled."""
    paths = detect_local_file_paths(message)
    if not paths:
        return message
    if mode == "ask":
        console.print(f"[yellow]{LOCAL_PATH_NOTICE.format(paths=', '.join(paths))}[/yellow]")
        mode = click.prompt(
            "Choice", type=click.Choice(["upload", "remote", "cancel"]), default="upload",
        )
    if mode == "cancel":
        return None
    if mode == "upload":
        with console.status(f"Uploading {len(paths)} file(s)..."):
            return await upload_and_substitute(agent, message, paths)
    if mode == "notice":
        return format_local_path_notice(message, paths)
    return message


async def _run_turn(
    agent: DevinAgent,
    idle: asyncio.Event,
    text: str,
    session_id: Optional[str],
    attachments: Optional[list[str]] = None,
) -> None:
    idle.clear()
    await agent.run([user_message(text)], session_id, attachments)
    await idle.wait()


def _model_options(fn):
    fn = click.option("-m", "--model", default=None, help="devin-standard or devin-deep")(fn)
    fn = click.option(
        "--approval-policy", type=click.Choice(ApprovalPolicy.ALL), default=None,
        help="approve-plan asks Devin to wait for plan confirmation",
    )(fn)
    return fn


@click.command("chat")
@click.argument("session_id", required=False)
@_model_options
def chat_cmd(session_id: Optional[str], model: Optional[str], approval_policy: Optional[str]):
    """Interactive chat with Devin."""

    async def _chat():
        agent, idle = _make_agent(model, approval_policy)
        sid = session_id
        console.print("[cyan]Type your message (/sessions to list, /quit to exit, Ctrl+C to abort)[/cyan]\n")
        try:
            while True:
                msg = click.prompt("You", prompt_suffix=": ")
                if msg.lower() in ("/quit", "/exit"):
                    break
                if msg.lower() == "/sessions":
                    for known_id, entry in agent.get_active_sessions().items():
                        console.print(f"[bold]{known_id}[/bold] [{entry.status}] {entry.title}")
                    continue
                text = await _resolve_local_paths(agent, msg, "ask")
                if text is None:
                    console.print("[dim]Request canceled.[/dim]")
                    continue
                await _run_turn(agent, idle, text, sid)
                sid = agent.session_id or sid
        except (KeyboardInterrupt, EOFError, click.Abort):
            pass
        finally:
            agent.terminate()
            await agent.aclose()

    _run(_chat())


@click.command("send")
@click.argument("message")
@click.option("-s", "--session", "session_id", default=None, help="Continue this session")
@_model_options
@click.option("-a", "--attach", multiple=True, type=click.Path(exists=True, dir_okay=False), help="File to attach")
@click.option("--local-paths", type=click.Choice(LOCAL_PATH_CHOICES), default="ask",
              help="What to do with local file paths in MESSAGE")
@click.option("--json-output", "--json", is_flag=True)
def send_cmd(
    message: str,
    session_id: Optional[str],
    model: Optional[str],
    approval_policy: Optional[str],
    attach: tuple[str, ...],
    local_paths: str,
    json_output: bool,
):
    """Send a one-shot request and wait for Devin to finish."""

    async def _send():
        agent, idle = _make_agent(model, approval_policy, json_output)
        try:
            mode = "notice" if local_paths == "ask" and json_output else local_paths
            text = await _resolve_local_paths(agent, message, mode)
            if text is None:
                console.print("[dim]Request canceled.[/dim]")
                return
            urls = [await agent.upload_file(p, Path(p).read_bytes(), present_to_agent=False) for p in attach]
            await _run_turn(agent, idle, text, session_id, urls)
        finally:
            agent.terminate()
            await agent.aclose()

    _run(_send())
