import csv
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from diagnostics import run_stamp
from errors import ReportError
from models import ShareError, ShareResult

logger = logging.getLogger(__name__)

CSV_FIELDS = ['Name', 'Path', 'Size', 'Files', 'Folders']
GB = 1024 ** 3

@dataclass
class ReportFiles:
    csv_path: Optional[Path] = None
    error_log_path: Optional[Path] = None

def format_size(size_bytes: int) -> str:
    """Render a byte count in binary gigabytes, e.g. 12.34GB"""
    return f"{size_bytes / GB:.2f}GB"

def report_path(output_dir, base_name: str) -> Path:
    return Path(output_dir) / f"{base_name}.csv"

def error_log_path(output_dir, base_name: str, stamp: str) -> Path:
    return Path(output_dir) / f"{base_name}_errors_{stamp}.json"

def to_row(result: ShareResult) -> Dict[str, str]:
    return {
        'Name': result.name,
        'Path': result.path,
        'Size': format_size(result.size_bytes),
        'Files': result.files,
        'Folders': result.folders
    }

def write_results_csv(results: List[ShareResult], destination: Path) -> Path:
    """Write share results to CSV in the order they were collected"""
    try:
        with open(destination, 'w', newline='', encoding='utf-8') as csvfile:
            writer = csv.DictWriter(csvfile, fieldnames=CSV_FIELDS)
            writer.writeheader()
            for result in results:
                writer.writerow(to_row(result))
    except OSError as e:
        raise ReportError(f"Error writing CSV {destination}: {str(e)}") from e
    return destination

def write_error_log(errors: List[ShareError], destination: Path) -> Path:
    """Add share failures to the error log, keeping the file a single JSON array"""
    entries = []
    try:
        if destination.exists():
            with open(destination, 'r', encoding='utf-8') as f:
                entries = json.load(f)
            if not isinstance(entries, list):
                raise ReportError(f"Error log {destination} does not contain a JSON array")
        entries.extend(e.to_dict() for e in errors)
        with open(destination, 'w', encoding='utf-8') as f:
            json.dump(entries, f, indent=2, ensure_ascii=False)
            f.write('\n')
    except ValueError as e:
        raise ReportError(f"Error log {destination} is not valid JSON: {str(e)}") from e
    except OSError as e:
        raise ReportError(f"Error writing error log {destination}: {str(e)}") from e
    return destination

def write_report(results: List[ShareResult], errors: List[ShareError], output_dir,
                 base_name: str, stamp: Optional[str] = None) -> ReportFiles:
    """Write the CSV report and the error log; files are only created when there is content"""
    files = ReportFiles()
    if not results and not errors:
        logger.info("Nothing to report")
        return files

    try:
        Path(output_dir).mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ReportError(f"Unable to create output directory {output_dir}: {str(e)}") from e

    if results:
        files.csv_path = write_results_csv(results, report_path(output_dir, base_name))
        logger.info("Results written to %s", files.csv_path)

    if errors:
        stamp = stamp or run_stamp()
        files.error_log_path = write_error_log(errors, error_log_path(output_dir, base_name, stamp))
        logger.info("%d share errors written to %s", len(errors), files.error_log_path)

    return files

def read_report(csv_path) -> List[Dict[str, str]]:
    """Read a CSV report back as a list of rows"""
    try:
        with open(csv_path, 'r', newline='', encoding='utf-8') as csvfile:
            return list(csv.DictReader(csvfile))
    except OSError as e:
        raise ReportError(f"Unable to read report {csv_path}: {str(e)}") from e

def results_table(rows: List[Dict[str, str]], title: str = "Share Statistics") -> Table:
    table = Table(title=title)
    table.add_column("Name", style="cyan")
    table.add_column("Path", style="green")
    table.add_column("Size", justify="right", style="yellow")
    table.add_column("Files", justify="right")
    table.add_column("Folders", justify="right")

    for row in rows:
        table.add_row(
            str(row['Name']),
            str(row['Path']),
            str(row['Size']),
            str(row['Files']),
            str(row['Folders'])
        )
    return table

def render_summary(results: List[ShareResult], errors: List[ShareError], console: Console) -> None:
    """Display the outcome of a run"""
    if results:
        console.print(results_table([to_row(r) for r in results]))

    if errors:
        table = Table(title="[red]Failed Shares[/red]")
        table.add_column("Name", style="cyan")
        table.add_column("Path", style="green")
        table.add_column("Error", style="red")
        table.add_column("Timestamp", style="magenta")
        for error in errors:
            table.add_row(error.name, error.path, error.error, error.timestamp)
        console.print(Panel.fit(table, title="Share Errors", border_style="red"))

    total_bytes = sum(r.size_bytes for r in results)
    console.print(
        f"\n[bold]Shares walked:[/bold] {len(results)}  "
        f"[bold]Failed:[/bold] {len(errors)}  "
        f"[bold]Total size:[/bold] {format_size(total_bytes)}"
    )
