"""Shared utilities for InfraStack CLI modules."""
from __future__ import annotations

import os
from typing import Optional

import typer
from rich.console import Console

from infrastack.core.config import InfraStackConfig, get_config
from infrastack.core.inventory import InventoryStore
from infrastack.core.validator import ValidationError, parse_ctid


def is_mock() -> bool:
    """Return True when CLI runs in mock mode."""
    return os.environ.get("INFRASTACK_MOCK") == "1"


def setup_file_logging(log_file: Optional[str] = None, verbose: bool = False) -> None:
    """Set up file logging for CLI commands."""
    from infrastack.core.logger import setup_file_logging as _setup_file_logging
    _setup_file_logging(log_file=log_file, verbose=verbose)


def require_root(console: Console) -> None:
    """Exit unless running as root (mock mode runs anywhere)."""
    if is_mock() or os.geteuid() == 0:
        return
    console.print("[red]Error:[/red] This command must be run as root")
    raise typer.Exit(1)


def load_inventory(config: Optional[InfraStackConfig] = None) -> InventoryStore:
    """Inventory store for the active configuration, created if missing."""
    inventory = InventoryStore.from_config(config or get_config())
    inventory.initialize()
    return inventory


def ctid_argument(value: Optional[str], console: Console, required: bool = True) -> Optional[int]:
    """Parse a --ctid option, exiting with 1 on malformed input."""
    if value is None:
        if required:
            console.print("[red]Error:[/red] Container ID is required (-i/--ctid)")
            raise typer.Exit(1)
        return None

    try:
        return parse_ctid(value)
    except ValidationError as e:
        handle_cli_error(e, console)


def confirm_action(message: str, yes_flag: bool = False, mock: bool = False) -> bool:
    """Prompt user for confirmation unless --yes or mock mode.

    Args:
        message: Confirmation message to display
        yes_flag: Skip prompt if True (from --yes flag)
        mock: Skip prompt if True (mock mode)

    Returns:
        True if confirmed, False otherwise
    """
    if yes_flag or mock:
        return True
    return typer.confirm(message)


def handle_cli_error(
    e: Exception,
    console: Console,
    verbose: bool = False,
    exit_code: int = 1
) -> None:
    """Handle CLI errors with consistent formatting.

    Args:
        e: Exception to handle
        console: Rich console for output
        verbose: Show exception traceback if True
        exit_code: Exit code to use
    """
    console.print(f"[red]Error:[/red] {e}")
    if verbose:
        console.print_exception()
    raise typer.Exit(exit_code)


def print_success(console: Console, message: str, prefix: str = "✓") -> None:
    console.print(f"[green]{prefix}[/green] {message}")


def print_error(console: Console, message: str, prefix: str = "✗") -> None:
    console.print(f"[red]{prefix}[/red] {message}")


def print_warning(console: Console, message: str, prefix: str = "⚠") -> None:
    console.print(f"[yellow]{prefix}[/yellow] {message}")


def print_info(console: Console, message: str, prefix: str = "ℹ") -> None:
    console.print(f"[cyan]{prefix}[/cyan] {message}")
