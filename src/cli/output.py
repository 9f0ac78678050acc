"""CLI output formatters for Rich tables and JSON.

Provides human-readable Rich output (default) and machine-parseable JSON
output (--json flag) for the config and validate commands.
"""

import json

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from src.cli.config import EuroparcelConfig
from src.errors import get_error
from src.services.shipment_rules import ConstraintViolation

console = Console()


def mask_secret(value: str) -> str:
    """Mask a secret, keeping the last 4 characters when it is long enough.

    Returns:
        "(not set)" for empty values, "***" for short ones, else "***abcd".
    """
    if not value:
        return "(not set)"
    if len(value) <= 8:
        return "***"
    return "***" + value[-4:]


def format_config(cfg: EuroparcelConfig, as_json: bool = False) -> str:
    """Format the resolved configuration with secrets masked.

    Args:
        cfg: Loaded configuration.
        as_json: If True, return JSON string instead of Rich panels.

    Returns:
        Formatted string output.
    """
    data = cfg.model_dump()
    data["api"]["api_key"] = mask_secret(cfg.api.api_key)
    if as_json:
        return json.dumps(data, indent=2)

    with console.capture() as capture:
        for section, values in data.items():
            table = Table(show_header=False, box=None)
            for key, value in values.items():
                table.add_row(f"{key}:", str(value))
            console.print(Panel(table, title=f"[bold]{section}[/bold]", border_style="cyan"))
    return capture.get()


def format_violation_table(
    violations: list[ConstraintViolation],
    operation: str,
    as_json: bool = False,
) -> str:
    """Format rule violations as a Rich table or JSON.

    Args:
        violations: Output of shipment_rules.validate().
        operation: Operation name the request was checked against.
        as_json: If True, return JSON string instead of a Rich table.

    Returns:
        Formatted string output.
    """
    if as_json:
        return json.dumps(
            {
                "operation": operation,
                "valid": not violations,
                "violations": [v.to_dict() for v in violations],
            },
            indent=2,
        )

    if not violations:
        return f"Request is valid for {operation}."

    table = Table(title=f"{len(violations)} problem(s) for {operation}", show_lines=True)
    table.add_column("Code", style="cyan", no_wrap=True)
    table.add_column("Rule", style="yellow")
    table.add_column("Field", style="white")
    table.add_column("Message")

    for violation in violations:
        error_def = get_error(violation.error_code)
        table.add_row(
            violation.error_code,
            error_def.title if error_def else violation.machine_code,
            violation.field_path,
            violation.message,
        )

    with console.capture() as capture:
        console.print(table)
    return capture.get()
