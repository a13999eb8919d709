import typer
from rich.console import Console
from rich.markup import escape
import getpass
from typing import List, Optional
import sys
import time
from aggregator import generate_report
from config import Config
from diagnostics import close_handler, run_stamp, setup_logging, transcript_path
from errors import ShareStatsError, describe_failure
from memory_gauge import sample
from models import ErrorPolicy, LongPathPolicy, MemoryStatus
from report import read_report, results_table
from share_enumerator import SMBShareLister, create_snapshot, resolve_hostname

app = typer.Typer(help="Share statistics - snapshot Windows shares and report their size")
console = Console()

STATUS_STYLE = {
    MemoryStatus.OK: "green",
    MemoryStatus.WARNING: "yellow",
    MemoryStatus.CRITICAL: "red"
}

def get_password(username: str) -> str:
    """Prompt for the password of a domain account"""
    try:
        return getpass.getpass(f"Password for {username}: ")
    except (KeyboardInterrupt, EOFError):
        console.print("\n[yellow]Operation cancelled by user.[/yellow]")
        sys.exit(1)

def fail(exc: BaseException) -> None:
    """Print a fatal error with the place it came from and stop"""
    record = describe_failure(exc)
    console.print(f"[red]{record.error_type}: {escape(record.message)}[/red]")
    if record.location:
        console.print(f"[red]  at {escape(record.location)}[/red]")
    if record.statement:
        console.print(f"[red]  in: {escape(record.statement)}[/red]")
    sys.exit(1)

@app.command()
def snapshot(
    path: Optional[str] = typer.Option(None, "--path", help="Directory the snapshot is written to"),
    host: Optional[str] = typer.Option(None, "--host", help="Host whose shares are listed (default: localhost)"),
    exclude: Optional[List[str]] = typer.Option(None, "--exclude", help="Share name to skip (repeatable)"),
    user: Optional[str] = typer.Option(None, "--user", help="Account used to query the host (domain\\username)"),
    domain: Optional[str] = typer.Option(None, "--domain", help="Domain of the account"),
    include_admin: bool = typer.Option(False, "--include-admin", help="Keep drive shares such as C$"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show trace output")
):
    """
    Enumerate the host's shares and save their names and paths to shares_<hostname>.json
    """
    setup_logging(verbose, console=console)
    try:
        config = Config()
        if host:
            config.SMB_HOST = host
        if user:
            config.SMB_USER = user
        if domain is not None:
            config.SMB_DOMAIN = domain
        if config.has_credentials and not config.SMB_PASSWORD:
            config.SMB_PASSWORD = get_password(config.SMB_USER)

        lister = SMBShareLister(
            config.SMB_HOST,
            username=config.SMB_USER,
            password=config.SMB_PASSWORD,
            domain=config.SMB_DOMAIN,
            port=config.SMB_PORT
        )
        destination = create_snapshot(
            path or config.SNAPSHOT_DIR,
            exclude if exclude else config.DEFAULT_EXCLUDED_SHARES,
            lister,
            resolve_hostname(config.SMB_HOST),
            skip_admin_drives=not include_admin
        )
        console.print(f"[green]Snapshot written to {destination}[/green]")
    except KeyboardInterrupt:
        console.print("\n[yellow]Snapshot interrupted by user.[/yellow]")
        sys.exit(1)
    except (ShareStatsError, ValueError, OSError) as e:
        fail(e)

@app.command()
def report(
    input_snapshot: str = typer.Option(..., "--input", "-i", help="Snapshot file written by the snapshot command"),
    output_dir: Optional[str] = typer.Option(None, "--output-dir", "-o", help="Directory for the report files"),
    exclude: Optional[List[str]] = typer.Option(None, "--exclude", help="Share name to skip (repeatable)"),
    first: int = typer.Option(0, "--first", help="Only walk the first N shares, pausing between them (0: all)"),
    base_name: Optional[str] = typer.Option(None, "--base-name", help="Base name of the report files"),
    error_policy: Optional[ErrorPolicy] = typer.Option(None, "--error-policy", help="How unreadable entries are handled"),
    long_path_policy: Optional[LongPathPolicy] = typer.Option(None, "--long-path-policy", help="Walk or skip shares with long paths"),
    transcript: Optional[bool] = typer.Option(None, "--transcript/--no-transcript", help="Write a run transcript"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show trace output")
):
    """
    Walk every share in a snapshot and write size, file and folder counts to CSV
    """
    start_time = time.time()
    file_handler = None
    try:
        config = Config()
        if error_policy is not None:
            config.ERROR_POLICY = error_policy
        if long_path_policy is not None:
            config.LONG_PATH_POLICY = long_path_policy
        if transcript is not None:
            config.TRANSCRIPT = transcript
        output_dir = output_dir or config.OUTPUT_DIR
        base_name = base_name or config.BASE_NAME

        stamp = run_stamp()
        log_file = transcript_path(output_dir, base_name, stamp) if config.TRANSCRIPT else None
        file_handler = setup_logging(verbose, log_file, console=console)
        if log_file:
            console.print(f"Transcript: {log_file}")

        outcome, files = generate_report(
            input_snapshot,
            output_dir,
            exclude if exclude else config.DEFAULT_EXCLUDED_SHARES,
            first,
            config,
            base_name=base_name,
            stamp=stamp
        )

        if files.csv_path:
            console.print(f"[green]Results written to {files.csv_path}[/green]")
        if files.error_log_path:
            console.print(f"[yellow]{len(outcome.errors)} share(s) failed, see {files.error_log_path}[/yellow]")
    except KeyboardInterrupt:
        console.print("\n[yellow]Report interrupted by user.[/yellow]")
        sys.exit(1)
    except (ShareStatsError, ValueError, OSError) as e:
        fail(e)
    finally:
        if file_handler:
            close_handler(file_handler)

    elapsed_time = time.time() - start_time
    console.print(f"\n[green]Report completed in {elapsed_time:.2f} seconds[/green]")

@app.command()
def memory():
    """
    Show the host's current memory health
    """
    try:
        reading = sample()
    except ShareStatsError as e:
        fail(e)
    style = STATUS_STYLE[reading.status]
    console.print(
        f"[{style}]{reading.status.value}[/{style}]: {reading.pct_free:.2f}% free "
        f"({reading.free_gb:.2f} GB of {reading.total_gb} GB)"
    )

@app.command()
def show(csv_path: str = typer.Argument(..., help="CSV report to display")):
    """
    Display a saved report
    """
    try:
        rows = read_report(csv_path)
    except ShareStatsError as e:
        fail(e)
    if not rows:
        console.print("[yellow]Report is empty[/yellow]")
        return
    console.print(results_table(rows, title=csv_path))

if __name__ == "__main__":
    app()
