"""CLI: devin auth login|status|logout"""

import click
from rich.console import Console

from devin_agent.config import read_config_file, write_config_file
from devin_agent.credentials import mask_for_logging, validate_api_key

console = Console()


def _load_config():
    from devin_agent.cli.main import _load_config
    return _load_config()


@click.group()
def auth():
    """Authentication commands."""


@auth.command("login")
@click.option("--base-url", default=None, help="Devin API base URL")
def auth_login(base_url):
    """Store a Devin API key."""
    api_key = click.prompt("Devin API key", hide_input=True).strip()
    if not validate_api_key(api_key):
        console.print("[red]That does not look like a Devin API key (expected apk_...).[/red]")
        raise SystemExit(1)
    cfg = read_config_file()
    cfg["api_key"] = api_key
    if base_url:
        cfg["base_url"] = base_url
    write_config_file(cfg)
    console.print(f"[green]Saved API key {mask_for_logging(api_key)}[/green]")
    console.print("[dim]Key saved to ~/.devin/config.json[/dim]")


@auth.command("status")
def auth_status():
    """Show current auth status."""
    cfg = _load_config()
    if cfg.api_key:
        state = "valid format" if validate_api_key(cfg.api_key) else "[red]invalid format[/red]"
        console.print(f"[green]API key[/green] {mask_for_logging(cfg.api_key)} ({state}) -> {cfg.base_url}")
    else:
        console.print("[yellow]No API key. Run `devin auth login` or set DEVIN_API_KEY.[/yellow]")


@auth.command("logout")
def auth_logout():
    """Remove the stored API key."""
    cfg = read_config_file()
    cfg.pop("api_key", None)
    write_config_file(cfg)
    console.print("[green]Logged out.[/green]")
