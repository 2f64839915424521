"""Radio station CLI commands."""
from __future__ import annotations

from typing import Optional

import typer
from rich.console import Console

from infrastack.cli_radio_helpers import (
    show_backups,
    show_bulk_summary,
    show_station_detail,
    show_station_info,
    show_status_table,
    show_summary,
    show_unfinished_operations,
)
from infrastack.cli_support import (
    confirm_action,
    ctid_argument,
    handle_cli_error,
    is_mock,
    load_inventory,
    print_error,
    print_info,
    print_success,
    print_warning,
    require_root,
    setup_file_logging,
)
from infrastack.core.config import get_config
from infrastack.core.inventory import InventoryError
from infrastack.core.lock import LockError
from infrastack.core.validator import ValidationError
from infrastack.radio import (
    BackupManager,
    LogViewer,
    RadioDeployer,
    RemovalManager,
    StationInfo,
    StationUpdater,
    StatusReporter,
)
from infrastack.radio.platforms import get_platform, platform_names
from infrastack.radio.remove import PURGE_CONFIRMATION

RadioTyper = typer.Typer(help="Deploy and manage radio streaming stations (AzuraCast, LibreTime)")

STORE_ERRORS = (ValidationError, InventoryError, LockError)


def register_radio_commands(root: typer.Typer, console: Console) -> None:
    """Attach radio commands to the main CLI."""

    @RadioTyper.command("deploy")
    def deploy_command(
        platform: str = typer.Argument(..., help=f"Platform to deploy ({', '.join(platform_names())})."),
        ctid: Optional[str] = typer.Option(None, "--ctid", "-i", help="Container ID for the new station."),
        name: Optional[str] = typer.Option(None, "--name", "-n", help="Station name (lowercase, digits, hyphens)."),
        cores: Optional[int] = typer.Option(None, "--cores", "-c", help="CPU cores (platform default if omitted)."),
        memory: Optional[int] = typer.Option(None, "--memory", "-m", help="Memory in MB (platform default if omitted)."),
        quota: Optional[str] = typer.Option(None, "--quota", "-q", help="Media dataset quota, e.g. 500G."),
        ip_suffix: Optional[int] = typer.Option(None, "--ip", "-p", help="Last octet of the static IP address."),
        description: str = typer.Option("", "--description", "-d", help="Free-text station description."),
        verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
        log_file: Optional[str] = typer.Option(None, "--log-file", help="Path to log file"),
    ) -> None:
        """Deploy a new radio station into its own LXC container.

        Examples:
            infrastack radio deploy azuracast -i 340 -n main-station
            infrastack radio deploy libretime -i 350 -n station1 -q 200G -p 50
        """
        require_root(console)
        setup_file_logging(log_file=log_file, verbose=verbose)

        ctid_value = ctid_argument(ctid, console)
        if not name:
            print_error(console, "Station name is required (-n/--name)")
            raise typer.Exit(1)

        deployer = RadioDeployer(inventory=load_inventory(), mock=is_mock())
        try:
            record = deployer.deploy(
                platform,
                ctid_value,
                name,
                cores=cores,
                memory=memory,
                quota=quota,
                ip_suffix=ip_suffix,
                description=description,
            )
        except STORE_ERRORS as e:
            handle_cli_error(e, console, verbose)

        if record is None:
            print_error(console, f"Deployment of container {ctid_value} failed")
            raise typer.Exit(1)

        credentials = get_platform(record.platform_type).credentials_file(
            deployer.config.credentials_dir, record.ctid
        )
        print_success(console, f"Deployed {record.hostname} (CTID {record.ctid})")
        console.print(f"  IP:          {record.ip}")
        console.print(f"  Dataset:     {record.dataset_path}")
        console.print(f"  Credentials: {credentials}")

    @RadioTyper.command("status")
    def status_command(
        show_all: bool = typer.Option(False, "--all", "-a", help="Show all stations (default)."),
        platform: Optional[str] = typer.Option(None, "--platform", "-p", help="Only stations of this platform."),
        ctid: Optional[str] = typer.Option(None, "--ctid", "-i", help="Detailed status of one container."),
    ) -> None:
        """Show live status of radio stations."""
        reporter = StatusReporter(load_inventory(), mock=is_mock())

        if ctid is not None:
            ctid_value = ctid_argument(ctid, console)
            detail = reporter.station_detail(ctid_value)
            if detail is None:
                print_error(console, f"Container {ctid_value} does not exist")
                raise typer.Exit(1)
            show_station_detail(detail, console)
            return

        if platform and not show_all:
            show_status_table(reporter.collect(platform), console, platform_type=platform)
            return

        show_status_table(reporter.collect(), console)
        show_unfinished_operations(reporter.unfinished_operations(), console)

    @RadioTyper.command("update")
    def update_command(
        ctid: Optional[str] = typer.Option(None, "--ctid", "-i", help="Update one station."),
        platform: Optional[str] = typer.Option(None, "--platform", "-p", help="Update every station of a platform."),
        update_all: bool = typer.Option(False, "--all", "-a", help="Update every station."),
        verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
        log_file: Optional[str] = typer.Option(None, "--log-file", help="Path to log file"),
    ) -> None:
        """Update the platform software of running stations."""
        if ctid is None and not platform and not update_all:
            print_error(console, "Specify --ctid, --platform or --all")
            raise typer.Exit(1)

        require_root(console)
        setup_file_logging(log_file=log_file, verbose=verbose)

        inventory = load_inventory()
        updater = StationUpdater(inventory, mock=is_mock())

        if ctid is not None:
            ctid_value = ctid_argument(ctid, console)
            if not updater.update_station(ctid_value):
                print_error(console, f"Update of container {ctid_value} failed")
                raise typer.Exit(1)
            print_success(console, f"Updated container {ctid_value}")
            return

        records = inventory.list() if update_all else inventory.list_by_platform(platform)
        if not records:
            print_info(console, "No stations to update")
            return

        result = updater.update_many(records)
        show_bulk_summary(result, "Update", console)
        if not result.ok:
            raise typer.Exit(1)

    @RadioTyper.command("backup")
    def backup_command(
        ctid: Optional[str] = typer.Option(None, "--ctid", "-i", help="Back up one container."),
        backup_all: bool = typer.Option(False, "--all", "-a", help="Back up every station."),
        backup_type: str = typer.Option("container", "--type", "-t", help="container, application or full."),
        list_only: bool = typer.Option(False, "--list", "-l", help="List existing backups (optionally for --ctid)."),
        verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
        log_file: Optional[str] = typer.Option(None, "--log-file", help="Path to log file"),
    ) -> None:
        """Back up stations with vzdump, platform exports or ZFS snapshots.

        Examples:
            infrastack radio backup -i 340
            infrastack radio backup -i 340 -t full
            infrastack radio backup -a -t application
            infrastack radio backup -l -i 340
        """
        require_root(console)
        setup_file_logging(log_file=log_file, verbose=verbose)

        manager = BackupManager(inventory=load_inventory(), mock=is_mock())
        ctid_value = ctid_argument(ctid, console, required=False)

        if list_only:
            backups = manager.list_backups(ctid_value)
            show_backups(backups, console, manager.storage.storage)
            return

        if ctid_value is None and not backup_all:
            print_error(console, "Specify --ctid, --all or --list")
            raise typer.Exit(1)

        try:
            if backup_all:
                result = manager.backup_all(backup_type)
                if result.total:
                    show_bulk_summary(result, "Backup", console)
                if not result.ok:
                    raise typer.Exit(1)
                return

            if not manager.backup(ctid_value, backup_type):
                print_error(console, f"Backup of container {ctid_value} failed")
                raise typer.Exit(1)
        except ValidationError as e:
            handle_cli_error(e, console, verbose)

        print_success(console, f"Backup of container {ctid_value} completed")

    @RadioTyper.command("logs")
    def logs_command(
        ctid: Optional[str] = typer.Option(None, "--ctid", "-i", help="Container ID."),
        log_type: str = typer.Option("application", "--type", "-t", help="container, application or both."),
        lines: int = typer.Option(50, "--lines", "-n", help="Number of lines to show."),
        follow: bool = typer.Option(False, "--follow", "-f", help="Follow logs until interrupted."),
        service: Optional[str] = typer.Option(None, "--service", "-s", help="Logs of one service only."),
    ) -> None:
        """Show container or platform logs of a station."""
        ctid_value = ctid_argument(ctid, console)

        viewer = LogViewer(load_inventory(), mock=is_mock())
        try:
            rc = viewer.show(ctid_value, log_type, lines=lines, follow=follow, service=service)
        except ValidationError as e:
            handle_cli_error(e, console)

        # 130 is a Ctrl+C out of follow mode
        if rc not in (0, 130):
            raise typer.Exit(rc)

    @RadioTyper.command("info")
    def info_command(
        ctid: Optional[str] = typer.Option(None, "--ctid", "-i", help="Show one station's details."),
        summary: bool = typer.Option(False, "--summary", "-s", help="Show station counts (default)."),
    ) -> None:
        """Show station details or a summary of all stations."""
        info = StationInfo(inventory=load_inventory(), mock=is_mock())

        if ctid is not None and not summary:
            ctid_value = ctid_argument(ctid, console)
            station = info.station(ctid_value)
            if station is None:
                print_error(console, f"Container {ctid_value} not found in inventory")
                raise typer.Exit(1)
            show_station_info(station, console)
            return

        show_summary(info.summary(), console)

    @RadioTyper.command("remove")
    def remove_command(
        ctid: Optional[str] = typer.Option(None, "--ctid", "-i", help="Container to remove."),
        remove_data: bool = typer.Option(False, "--data", "-d", help="Also destroy the media dataset (asks again)."),
        yes: bool = typer.Option(False, "--yes", "-y", help="Skip the container removal prompt."),
        yes_data: bool = typer.Option(False, "--yes-data", help="Skip the dataset deletion prompt of --data."),
        purge_all: bool = typer.Option(False, "--purge-all", help="Remove ALL station containers (datasets are kept)."),
        verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
        log_file: Optional[str] = typer.Option(None, "--log-file", help="Path to log file"),
    ) -> None:
        """Remove a station container, its inventory row and optionally its data."""
        require_root(console)
        setup_file_logging(log_file=log_file, verbose=verbose)

        inventory = load_inventory()
        manager = RemovalManager(config=get_config(), inventory=inventory, mock=is_mock())

        if purge_all:
            _purge_all(manager, console)
            return

        ctid_value = ctid_argument(ctid, console)
        target = manager.describe(ctid_value)
        record = target['record']
        if record is None and not target['exists']:
            print_error(console, f"Container {ctid_value} not found on host or in inventory")
            raise typer.Exit(1)

        console.print("\n[bold yellow]Container Removal[/bold yellow]")
        console.print(f"  Container ID:  {ctid_value}")
        if record:
            console.print(f"  Hostname:      {record.hostname}")
            console.print(f"  Platform:      {record.platform_type}")
        console.print(f"  Remove data:   {'yes' if remove_data else 'no'}")
        if target['dataset']:
            console.print(f"  Dataset:       {target['dataset']}")
        print_warning(console, "This action cannot be undone!")

        if not confirm_action(f"Remove container {ctid_value}?", yes_flag=yes, mock=is_mock()):
            print_info(console, "Removal cancelled")
            return

        confirm_data = None
        if remove_data and not yes_data:
            confirm_data = lambda message: typer.confirm(message, default=False)  # noqa: E731

        try:
            removed = manager.remove_station(ctid_value, remove_data=remove_data, confirm_data=confirm_data)
        except (InventoryError, LockError) as e:
            handle_cli_error(e, console, verbose)

        if not removed:
            print_error(console, f"Failed to remove container {ctid_value}")
            raise typer.Exit(1)
        print_success(console, f"Container {ctid_value} removed")

    root.add_typer(RadioTyper, name="radio")


def _purge_all(manager: RemovalManager, console: Console) -> None:
    records = manager.inventory.list()
    if not records:
        print_info(console, "No containers found in inventory")
        return

    console.print("\n[bold red]EMERGENCY PURGE - ALL RADIO CONTAINERS[/bold red]")
    console.print(f"This will remove ALL {len(records)} radio containers:")
    for record in records:
        console.print(f"  {record.ctid}  {record.platform_type:<10} {record.hostname}")
    console.print("[dim]Media datasets are kept.[/dim]")
    print_error(console, "THIS ACTION CANNOT BE UNDONE!")

    confirmation = typer.prompt(
        f"Type {PURGE_CONFIRMATION} in capitals to confirm",
        default="",
        show_default=False,
    )
    try:
        result = manager.purge_all(confirmation)
    except (InventoryError, LockError) as e:
        handle_cli_error(e, console)

    if result is None:
        print_info(console, "Purge cancelled")
        return

    show_bulk_summary(result, "Purge", console)
    if not result.ok:
        raise typer.Exit(1)
