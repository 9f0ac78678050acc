"""Europarcel MCP CLI.

Usage:
    europarcel-mcp serve                     Run the MCP server (stdio)
    europarcel-mcp serve --transport http    Run the MCP server over HTTP
    europarcel-mcp config show               Show resolved configuration
    europarcel-mcp validate request.json     Check a request offline
"""

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from src.cli.config import load_config
from src.cli.output import format_config, format_violation_table
from src.services.shipment_rules import OPERATION_RULES, StructuralError, prepare
from src.utils.log_setup import configure_logging

_log = logging.getLogger(__name__)

app = typer.Typer(
    name="europarcel-mcp",
    help="Europarcel shipping API as an MCP server",
    no_args_is_help=True,
)
config_app = typer.Typer(help="Configuration management")

app.add_typer(config_app, name="config")

err_console = Console(stderr=True)

# --- Global state ---
_config_path: str | None = None


@app.callback()
def main(
    config: Optional[str] = typer.Option(
        None, "--config", help="Path to europarcel.yaml config file"
    ),
):
    """Europarcel MCP server and tooling."""
    global _config_path
    _config_path = config


def _load(config_path: str | None):
    try:
        return load_config(config_path=config_path)
    except FileNotFoundError as e:
        err_console.print(f"[red]Config file not found:[/red] {e}")
        raise typer.Exit(1)
    except (ValueError, TypeError) as e:
        err_console.print(f"[red]Config validation failed:[/red] {e}")
        raise typer.Exit(1)


# --- Server ---


@app.command()
def serve(
    transport: Optional[str] = typer.Option(
        None, "--transport", "-t", help="stdio or http (default from config)"
    ),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="HTTP port"),
    host: Optional[str] = typer.Option(None, "--host", help="HTTP bind address"),
    config: Optional[str] = typer.Option(None, "--config", help="Config file path"),
):
    """Run the Europarcel MCP server."""
    cfg = _load(config or _config_path)

    overrides = {
        key: value
        for key, value in (("transport", transport), ("port", port), ("host", host))
        if value is not None
    }
    if overrides:
        try:
            server_cfg = cfg.server.model_validate({**cfg.server.model_dump(), **overrides})
        except ValueError as e:
            err_console.print(f"[red]Invalid server option:[/red] {e}")
            raise typer.Exit(1)
        cfg = cfg.model_copy(update={"server": server_cfg})

    configure_logging(cfg.server.log_level, cfg.server.log_format)

    # Imported here so tool registration only happens when serving.
    from src.mcp.europarcel.server import MissingApiKeyError, run

    try:
        run(cfg)
    except MissingApiKeyError as e:
        err_console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)


# --- Config commands ---


@config_app.command("show")
def config_show(
    as_json: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Display resolved configuration (secrets masked)."""
    cfg = _load(_config_path)
    typer.echo(format_config(cfg, as_json=as_json))


# --- Offline validation ---


@app.command()
def validate(
    file: Path = typer.Argument(..., help="JSON file with a pricing or order request"),
    operation: str = typer.Option(
        "pricing", "--operation", "-o", help="pricing or order"
    ),
    as_json: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Check a request against the pricing or order rules without calling the API.

    Exits 0 when the request is valid, 1 otherwise.
    """
    rules = OPERATION_RULES.get(operation.lower())
    if rules is None:
        err_console.print(
            f"[red]Unknown operation '{operation}'.[/red] "
            f"Choose from: {', '.join(OPERATION_RULES)}"
        )
        raise typer.Exit(2)

    try:
        raw = json.loads(file.read_text())
    except FileNotFoundError:
        err_console.print(f"[red]File not found:[/red] {file}")
        raise typer.Exit(2)
    except json.JSONDecodeError as e:
        err_console.print(f"[red]Invalid JSON:[/red] {e}")
        raise typer.Exit(2)

    try:
        _, violations = prepare(raw, rules)
    except StructuralError as e:
        err_console.print(f"[red]Malformed request:[/red] {e}")
        raise typer.Exit(1)

    typer.echo(format_violation_table(violations, rules.name, as_json=as_json))
    _log.debug("Validated %s against %s rules: %d violation(s)", file, rules.name, len(violations))
    if violations:
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
