#!/usr/bin/env python3
"""InfraStack CLI - Sysadmin toolkit for Proxmox hosts."""

import typer
from rich.console import Console

from infrastack.cli_radio_commands import register_radio_commands
from infrastack.core.config import VERSION

app = typer.Typer(
    name="infrastack",
    help="""InfraStack - Sysadmin toolkit for Proxmox hosts

Radio stations in LXC containers, backed by ZFS datasets.

Quick start:
  infrastack radio deploy azuracast -i 340 -n main-station
  infrastack radio status
  infrastack radio backup -i 340 -t full

More commands: infrastack radio --help
""",
    add_completion=False,
)

console = Console()


@app.command()
def version():
    """Show InfraStack version."""
    console.print(f"InfraStack v{VERSION}")


register_radio_commands(app, console)

if __name__ == "__main__":
    app()
