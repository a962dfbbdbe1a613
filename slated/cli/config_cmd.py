"""Config-related CLI commands."""

from __future__ import annotations

import click
from rich.markup import escape

from slated.cli.utils import console
from slated.config import get_config, init_config
from slated.utils.editor import open_in_editor


def register_config_commands(cli: click.Group) -> None:
    """Register all config-related commands with the CLI."""
    cli.add_command(config_cmd)


@click.group("config", invoke_without_command=True)
@click.pass_context
def config_cmd(ctx: click.Context) -> None:
    """Manage configuration settings.

    When called without a subcommand, opens the config file in the editor.

    \b
    Subcommands:
      get <key>           Get a configuration value
      set <key> <value>   Set a configuration value
      list                List all configurable settings

    \b
    Examples:
      slated config get tasks.tasks_header
      slated config set tasks.preserve_moved_tasks true
      slated config set tasks.tasks_header "## Todo"
    """
    if ctx.invoked_subcommand is None:
        config = get_config()

        if not config.config_path.exists():
            init_config(config.notes_root)

        console.print(f"[dim]Opening {config.config_path}...[/dim]")
        try:
            open_in_editor(config.config_path, config.editor)
        except RuntimeError as e:
            console.print(f"[red]Error:[/red] {e}")
            raise SystemExit(1) from None


@config_cmd.command("get")
@click.argument("key")
def config_get(key: str) -> None:
    """Get a configuration value.

    Run 'slated config list' for the full set of configurable settings.
    """
    from slated.config import get_config_value

    value = get_config_value(key)
    if value is None:
        console.print(f"[red]Unknown setting:[/red] {key}")
        console.print("[dim]Use 'slated config list' to see available settings.[/dim]")
        raise SystemExit(1)

    console.print(f"{key} = {escape(str(value))}")


@config_cmd.command("set")
@click.argument("key")
@click.argument("value")
def config_set(key: str, value: str) -> None:
    """Set a configuration value.

    \b
    Examples:
      slated config set editor code
      slated config set tasks.alias_links true
      slated config set watch.debounce_seconds 5

    Run 'slated config list' for the full set of configurable settings.
    """
    from slated.config import set_config_value

    try:
        if set_config_value(key, value):
            console.print(f"[green]Set[/green] {key} = {escape(value)}")
        else:
            console.print(f"[red]Unknown setting:[/red] {key}")
            console.print("[dim]Use 'slated config list' to see available settings.[/dim]")
            raise SystemExit(1)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(1) from None


@config_cmd.command("list")
def config_list() -> None:
    """List all configurable settings."""
    from slated.config import list_config_settings

    settings = list_config_settings()

    console.print("\n[bold]Configurable Settings[/bold]\n")
    for key, (description, value) in settings.items():
        value_str = escape(str(value)) if value is not None else "[dim]<not set>[/dim]"
        console.print(f"  [cyan]{key}[/cyan]")
        console.print(f"    {description}")
        console.print(f"    Current: {value_str}")
        console.print()
