"""Helper functions for radio CLI output."""
from __future__ import annotations

from typing import Dict, List, Optional

from rich.console import Console
from rich.table import Table

from infrastack.radio.bulk import BulkResult
from infrastack.radio.status import StationStatus

STATUS_STYLES = {
    "running": "green",
    "stopped": "yellow",
}


def status_markup(status: str) -> str:
    style = STATUS_STYLES.get(status, "red")
    return f"[{style}]●[/{style}] {status}"


def show_status_table(rows: List[StationStatus], console: Console,
                      platform_type: Optional[str] = None) -> None:
    """Render live station status in a table."""
    if not rows:
        if platform_type:
            console.print(f"[yellow]No {platform_type} stations found[/yellow]")
        else:
            console.print("[yellow]No stations found in inventory[/yellow]")
        return

    title = (
        f"{platform_type} Station Status ({len(rows)} stations)" if platform_type
        else f"Radio Station Status ({len(rows)} stations)"
    )
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("CTID", style="cyan")
    if not platform_type:
        table.add_column("Type", style="blue")
    table.add_column("Hostname", style="bold")
    table.add_column("IP")
    table.add_column("Status")

    for row in rows:
        record = row.record
        cells = [str(record.ctid)]
        if not platform_type:
            cells.append(record.platform_type)
        cells.extend([record.hostname, record.ip, status_markup(row.live_status)])
        table.add_row(*cells)

    console.print(table)


def show_unfinished_operations(operations: List[Dict], console: Console) -> None:
    """Render deploys and removals that stopped partway through."""
    if not operations:
        return

    table = Table(title="Unfinished Operations", show_header=True, header_style="bold yellow")
    table.add_column("CTID", style="cyan")
    table.add_column("Operation")
    table.add_column("Last completed step")
    table.add_column("Failed at", style="red")
    table.add_column("Reason")

    for op in operations:
        table.add_row(
            str(op['ctid']),
            op['operation'],
            op['last_step'] or "-",
            op['failed_step'] or "-",
            op['reason'] or "",
        )

    console.print(table)


def show_station_detail(detail: Dict, console: Console) -> None:
    """Render detailed status of a single container."""
    container = detail['container']
    record = detail['record']
    memory = container['memory']

    console.print(f"\n[bold]Detailed Status for Container {container['vmid']}[/bold]")
    console.print(f"  Container ID:  {container['vmid']}")
    console.print(f"  Hostname:      {container['hostname']}")
    console.print(f"  Status:        {status_markup(container['status'])}")
    console.print(f"  IP Address:    {container['ip']}")
    console.print(f"  CPU Cores:     {container['cores']}")
    console.print(f"  Memory:        {memory}MB" if memory != 'N/A' else "  Memory:        N/A")

    if record is None:
        console.print("\n[dim]Not recorded in the station inventory[/dim]")
        return

    console.print("\n[bold]Inventory[/bold]")
    console.print(f"  Platform:      {record.platform_type}")
    console.print(f"  Description:   {record.description or '-'}")
    console.print(f"  Created:       {record.created}")
    console.print(f"  Label:         {record.status}")
    if record.dataset_path:
        console.print(f"  Dataset:       {record.dataset_path}")


def show_station_info(info: Dict, console: Console) -> None:
    """Render inventory record, dataset and credentials for one station."""
    record = info['record']
    usage = info['usage']

    table = Table(title=f"Station {record.ctid}", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")

    table.add_row("Hostname", record.hostname)
    table.add_row("Platform", record.platform_type)
    table.add_row("IP", record.ip)
    table.add_row("Description", record.description or "-")
    table.add_row("Created", record.created)
    table.add_row("Status", status_markup(info['live_status']))
    table.add_row("Dataset", info['dataset'] or "-")
    if usage:
        table.add_row("Dataset usage", f"{usage['used']} used, {usage['available']} available, quota {usage['quota']}")
    else:
        table.add_row("Dataset usage", "[yellow]dataset not found[/yellow]")

    credentials = info['credentials_file']
    if credentials is None:
        table.add_row("Credentials", "-")
    elif info['credentials_present']:
        table.add_row("Credentials", str(credentials))
    else:
        table.add_row("Credentials", f"{credentials} [yellow](missing)[/yellow]")

    console.print(table)


def show_summary(summary: Dict, console: Console) -> None:
    """Render station counts."""
    table = Table(title="Radio Stations Summary", show_header=True, header_style="bold cyan")
    table.add_column("Platform", style="bold")
    table.add_column("Stations", justify="right")

    for platform_type, count in summary['per_platform'].items():
        table.add_row(platform_type, str(count))
    table.add_row("[bold]Total[/bold]", f"[bold]{summary['total']}[/bold]")

    console.print(table)
    console.print(f"\n[dim]Running: {summary['running']}/{summary['total']}  "
                  f"Inventory: {summary['inventory_file']}[/dim]")


def show_backups(backups: List[Dict[str, str]], console: Console, storage: str) -> None:
    """Render vzdump backups found in storage."""
    if not backups:
        return

    table = Table(title=f"Backups in {storage}", show_header=True, header_style="bold cyan")
    table.add_column("Volume", style="bold")
    table.add_column("Format")
    table.add_column("Size", justify="right")

    for backup in backups:
        table.add_row(backup['volid'], backup['format'], backup['size'])

    console.print(table)


def show_bulk_summary(result: BulkResult, action: str, console: Console) -> None:
    """One line per station, then the failure count."""
    for ctid, ok in result.results:
        mark = "[green]✓[/green]" if ok else "[red]✗[/red]"
        console.print(f"  {mark} {ctid}")

    failed = len(result.failed)
    if failed:
        console.print(f"[red]{action}: {len(result.succeeded)} succeeded, {failed} failed[/red]")
    else:
        console.print(f"[green]{action}: {len(result.succeeded)} succeeded, 0 failed[/green]")
